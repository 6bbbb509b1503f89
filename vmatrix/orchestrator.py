"""Running the test suite against version tuples.

A check brings every component named in a tuple to its version, builds it
into the run's private build tree and runs the test suite with that tree
first on the search paths. Three run modes sit on top of it:

- single-axis: move only the primary component (``hg:4.5``, ``hg:@``),
  taking the other versions from the checks file
- explicit tuple: check exactly the tuple given on the command line
- full matrix: check every tuple of the checks file and write the results
"""

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .checks import ResultEntry, write_results
from .components import ComponentRegistry
from .config import DEFAULT_TESTS
from .environ import scoped_env
from .errors import BuildFailure, VersionLookupError
from .runner import NORMAL, run_tests
from .versions import WILDCARD, VersionTuple, format_tuple, parse_pair, parse_tuple
from .workspace import Workspace

# Tells the sharness scripts where to put their trash directories and logs
TEST_OUTPUT_VARIABLE = "SHARNESS_TEST_OUTPUT_DIRECTORY"


@dataclass
class Matrix:
    """Everything a check needs, threaded through the run modes."""
    registry: ComponentRegistry
    workspace: Workspace
    test_dir: Path
    tests: List[str] = field(default_factory=lambda: list(DEFAULT_TESTS))
    verbosity: int = NORMAL
    python: str = "python2"

    def check(self, versions: VersionTuple) -> bool:
        """Check out and build the tuple's components, then run the tests.

        Ids that are not in the registry are skipped, so checks files can
        name components this configuration does not know about.

        Returns:
            True if the test suite passed. A failed checkout or build counts
            as a failed check.
        """
        print(f"\n=== Checking {format_tuple(versions)} ===")
        try:
            for component_id, version in versions.items():
                component = self.registry.get(component_id)
                if component is None:
                    continue
                component.checkout(version)
                component.build(self.workspace.build_dir, python=self.python)
        except BuildFailure as e:
            print(f"Error: {e}", file=sys.stderr)
            if e.output:
                print(e.output.rstrip(), file=sys.stderr)
            return False

        search_paths = {
            "PATH": self.workspace.bin_dir,
            "PYTHONPATH": self.workspace.python_dir,
        }
        with scoped_env(search_paths, assign={TEST_OUTPUT_VARIABLE: self.workspace.test_output_dir}):
            return run_tests(self.tests, self.test_dir, self.verbosity)


def select_single(
    checks: Sequence[VersionTuple],
    component_id: str,
    version: Optional[str],
) -> VersionTuple:
    """Pick the tuple to check when only one component's version is given.

    With no version or the wildcard, the last tuple of the checks file is
    used with that component moved to the wildcard. Otherwise the first
    tuple with exactly that version is used.

    Raises:
        VersionLookupError: If no tuple matches.
    """
    if version is None or version == WILDCARD:
        if not checks:
            raise VersionLookupError("The checks file has no tuples to take versions from")
        versions = dict(checks[-1])
        versions[component_id] = WILDCARD
        return versions

    for versions in checks:
        if versions.get(component_id) == version:
            return dict(versions)
    raise VersionLookupError(f"No check found for {component_id}:{version}")


def run_single(matrix: Matrix, checks: Sequence[VersionTuple], component_id: str,
               version: Optional[str]) -> bool:
    return matrix.check(select_single(checks, component_id, version))


def run_explicit(matrix: Matrix, versions: VersionTuple) -> bool:
    return matrix.check(versions)


def run_full(matrix: Matrix, checks: Sequence[VersionTuple], results_file: Path) -> bool:
    """Check every tuple, recording each outcome in ``results_file``.

    The results file is written once, when the run ends, even if it ends
    early, so an interrupted run still records the tuples it finished.

    Returns:
        True if every check passed.
    """
    results: List[ResultEntry] = []
    try:
        for versions in checks:
            results.append((versions, matrix.check(versions)))
    finally:
        write_results(results_file, results)
        print(f"\nResults written to {results_file}")

    failed = [versions for versions, ok in results if not ok]
    print(f"{len(results) - len(failed)}/{len(results)} checks passed")
    for versions in failed:
        print(f"  FAIL {format_tuple(versions)}")
    return not failed


def dispatch(matrix: Matrix, args: Sequence[str], checks: Sequence[VersionTuple],
             results_file: Path) -> int:
    """Run the mode selected by the command-line arguments.

    Returns:
        Process exit code: 0 if the checks passed, 1 otherwise.

    Raises:
        VersionLookupError: If a single-axis version is not in the checks file.
        ValueError: If an argument is not a valid ``id:version`` pair.
    """
    if not args:
        ok = run_full(matrix, checks, results_file)
    else:
        primary = matrix.registry.primary
        component_id, version = parse_pair(args[0])
        if len(args) == 1 and primary is not None and component_id == primary.id:
            ok = run_single(matrix, checks, component_id, version)
        else:
            ok = run_explicit(matrix, parse_tuple(args))
    return 0 if ok else 1
