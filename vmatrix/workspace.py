"""Working directories for a matrix run.

A run uses three locations:
- the persistent cache, one checkout per component, reused across runs
- a private build tree (bin/ and python/) the components are built into
- a private directory for test suite output

The last two live only as long as the process.
"""

import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Generator, List

from .components import ComponentRegistry


@dataclass(frozen=True)
class Workspace:
    """Directories shared by every check of a run."""
    cache_dir: Path
    build_dir: Path
    test_output_dir: Path

    @property
    def bin_dir(self) -> Path:
        return self.build_dir / "bin"

    @property
    def python_dir(self) -> Path:
        return self.build_dir / "python"

    @classmethod
    @contextmanager
    def open(cls, cache_dir: Path) -> Generator["Workspace", None, None]:
        """Create the private directories, removing them on exit whatever happens."""
        build_dir = Path(tempfile.mkdtemp(prefix="vmatrix_build_"))
        try:
            test_output_dir = Path(tempfile.mkdtemp(prefix="vmatrix_tests_"))
            try:
                yield cls(
                    cache_dir=Path(cache_dir),
                    build_dir=build_dir,
                    test_output_dir=test_output_dir,
                )
            finally:
                shutil.rmtree(test_output_dir, ignore_errors=True)
        finally:
            shutil.rmtree(build_dir, ignore_errors=True)


def setup(registry: ComponentRegistry, workspace: Workspace) -> List[str]:
    """Create the working directories and clone components that are missing.

    Safe to call on every run: existing checkouts are left alone, switching
    versions is the job of checkout.

    Returns:
        Ids of the components that were cloned.

    Raises:
        SetupFailure: If a clone fails.
    """
    workspace.bin_dir.mkdir(parents=True, exist_ok=True)
    workspace.python_dir.mkdir(parents=True, exist_ok=True)
    workspace.cache_dir.mkdir(parents=True, exist_ok=True)

    cloned = []
    for component in registry.values():
        component.dir.parent.mkdir(parents=True, exist_ok=True)
        if not component.dir.exists():
            component.clone()
            cloned.append(component.id)
    return cloned
