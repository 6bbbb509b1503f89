"""Running external tools (hg, git, python, make, prove)."""

import subprocess
from pathlib import Path
from typing import List, Optional, Type

from .errors import CommandError

# Shell convention for "command not found"
NOT_FOUND = 127


def run_cmd(
    cmd: List[str],
    cwd: Optional[Path] = None,
    capture: bool = True,
) -> subprocess.CompletedProcess:
    """Run a command and return the result.

    Commands inherit the process environment. Raises OSError if the
    program cannot be started.
    """
    print(f"  Running: {' '.join(cmd)}")
    result = subprocess.run(
        cmd,
        cwd=cwd,
        capture_output=capture,
        text=True,
    )
    if result.returncode != 0 and capture:
        print(f"  FAILED: {result.stderr or result.stdout}")
    return result


def check_cmd(
    cmd: List[str],
    cwd: Optional[Path] = None,
    error: Type[CommandError] = CommandError,
) -> subprocess.CompletedProcess:
    """Run a command, raising ``error`` if it exits nonzero or cannot start."""
    try:
        result = run_cmd(cmd, cwd=cwd)
    except OSError as e:
        print(f"  FAILED: {e}")
        raise error(cmd, NOT_FOUND, str(e)) from e
    if result.returncode != 0:
        raise error(cmd, result.returncode, result.stderr or result.stdout)
    return result
