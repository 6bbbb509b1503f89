"""Checks and results files.

Both are plain text with one version tuple per line::

    # hg    hg-git   dulwich
    hg:4.5 hggit:0.8.0 dulwich:0.18.0
    hg:4.7 hggit:0.8.12 dulwich:0.19.7 # latest releases

Blank lines and lines starting with ``#`` are skipped, and `` # `` starts a
trailing comment. The results file uses the same format, with the outcome
of each tuple as its comment (`` # OK`` or `` # FAIL``).
"""

import os
import tempfile
from pathlib import Path
from typing import Iterable, List, Tuple

from .versions import VersionTuple, format_tuple, parse_tuple

COMMENT_MARKER = " # "

ResultEntry = Tuple[VersionTuple, bool]


def parse_checks(text: str) -> List[VersionTuple]:
    """Parse the contents of a checks file into version tuples."""
    checks = []
    for lineno, line in enumerate(text.splitlines(), 1):
        line = line.split(COMMENT_MARKER, 1)[0].strip()
        if not line or line.startswith("#"):
            continue
        try:
            checks.append(parse_tuple(line.split()))
        except ValueError as e:
            raise ValueError(f"line {lineno}: {e}") from None
    return checks


def load_checks(path: Path) -> List[VersionTuple]:
    """Load version tuples from a checks file; a missing file has none."""
    path = Path(path)
    if not path.exists():
        return []
    try:
        return parse_checks(path.read_text())
    except ValueError as e:
        raise ValueError(f"{path}: {e}") from None


def format_results(results: Iterable[ResultEntry]) -> str:
    """Format results as checks-file lines with an OK/FAIL comment."""
    lines = []
    for versions, ok in results:
        lines.append(f"{format_tuple(versions)}{COMMENT_MARKER}{'OK' if ok else 'FAIL'}\n")
    return "".join(lines)


def write_results(path: Path, results: Iterable[ResultEntry]) -> None:
    """Write the results file, replacing any previous one atomically."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    content = format_results(results)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
