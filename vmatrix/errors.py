"""Failure taxonomy for the matrix runner."""

from typing import List, Optional


class MatrixError(Exception):
    """Base exception for matrix runner failures."""


class ConfigError(MatrixError, ValueError):
    """Raised when a configuration file or override is invalid."""


class CommandError(MatrixError, RuntimeError):
    """Raised when an external command exits nonzero."""

    def __init__(self, cmd: List[str], returncode: int, output: Optional[str] = None):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.output = output or ""
        super().__init__(f"{' '.join(self.cmd)} failed with exit code {returncode}")


class SetupFailure(CommandError):
    """A component could not be cloned; nothing can run without its sources."""


class BuildFailure(CommandError):
    """Checkout or build of a component failed; only the current check is lost."""


class VersionLookupError(MatrixError, LookupError):
    """No tuple in the checks file matches the requested version."""
