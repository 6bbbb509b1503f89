"""Temporary changes to the process environment."""

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Mapping, Optional, Union

PathLike = Union[str, Path]


def prepend_path(directory: PathLike, existing: Optional[str]) -> str:
    """Put ``directory`` in front of a search path value."""
    if existing:
        return f"{directory}{os.pathsep}{existing}"
    return str(directory)


@contextmanager
def scoped_env(
    prepend: Mapping[str, PathLike],
    assign: Optional[Mapping[str, PathLike]] = None,
) -> Generator[None, None, None]:
    """Run a block with directories prepended to search path variables.

    Args:
        prepend: Variable name to the directory put in front of its value.
        assign: Variables assigned outright for the duration of the block.

    The whole environment is restored on exit, including anything the
    block itself changed, even if it raises.

    Example:
        with scoped_env({"PATH": build / "bin"}, assign={"HGRCPATH": ""}):
            subprocess.run(["hg", "version"])
    """
    saved = dict(os.environ)
    try:
        for name, directory in prepend.items():
            os.environ[name] = prepend_path(directory, os.environ.get(name))
        for name, value in (assign or {}).items():
            os.environ[name] = str(value)
        yield
    finally:
        os.environ.clear()
        os.environ.update(saved)
