"""Version strings and version tuples.

A version tuple maps component ids to the version each component is
tested at, e.g. ``{"hg": "4.7", "hggit": "0.8.12", "dulwich": "0.19.7"}``.
On the command line and in the checks file a tuple is written as
space-separated ``id:version`` pairs.
"""

from typing import Dict, Iterable, List, Optional, Tuple

# Version placeholder meaning "the latest revision", resolved per tool
WILDCARD = "@"

VersionTuple = Dict[str, str]


def _segments(version: str) -> List[int]:
    try:
        return [int(part) for part in version.split(".")]
    except ValueError:
        raise ValueError(f"Not a dotted numeric version: {version!r}") from None


def compare_versions(a: str, b: str) -> int:
    """Compare two dotted version strings.

    Returns -1, 0 or 1. Segments compare as integers, so "4.10" is newer
    than "4.9", and a version that is a strict prefix of another is older.
    The wildcard is newer than (or equal to) anything.
    """
    if a == WILDCARD:
        return 0 if b == WILDCARD else 1
    if b == WILDCARD:
        return -1
    left, right = _segments(a), _segments(b)
    return (left > right) - (left < right)


def check_version(version: str, minimum: str) -> bool:
    """True if ``version`` is at least ``minimum``."""
    return compare_versions(version, minimum) >= 0


def parse_pair(word: str) -> Tuple[str, Optional[str]]:
    """Split an ``id:version`` word; a bare ``id`` has no version."""
    if ":" not in word:
        if not word:
            raise ValueError("Empty component specification")
        return word, None
    component_id, version = word.split(":", 1)
    if not component_id:
        raise ValueError(f"Invalid component specification: {word!r}")
    return component_id, version or None


def parse_tuple(words: Iterable[str]) -> VersionTuple:
    """Parse ``id:version`` words into a version tuple.

    Raises:
        ValueError: If a word has no version.
    """
    versions: VersionTuple = {}
    for word in words:
        component_id, version = parse_pair(word)
        if version is None:
            raise ValueError(f"Missing version for {component_id!r}; use {component_id}:VERSION")
        versions[component_id] = version
    return versions


def format_tuple(versions: VersionTuple) -> str:
    """Format a version tuple as space-separated ``id:version`` pairs."""
    return " ".join(f"{component_id}:{version}" for component_id, version in versions.items())
