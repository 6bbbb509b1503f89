"""Invoking the project's test suite.

The suite is a set of sharness scripts (``test/<name>.t``) driven by the
project's ``test/Makefile``. How it is invoked depends on the verbosity:

- 0: ``prove -q`` keeps going past failing scripts and prints a summary
- 1: ``make -j1`` runs the scripts one at a time with their normal output
- 2 and up: the same, with ``TEST_OPTS=-v -i`` so every step is shown and
  the trash directory of a failing test is left behind
"""

import sys
from pathlib import Path
from typing import List, Sequence

from . import commands

QUIET = 0
NORMAL = 1
VERBOSE = 2


def suite_command(tests: Sequence[str], verbosity: int = NORMAL) -> List[str]:
    """Build the command line running ``tests`` at ``verbosity``."""
    scripts = [f"{name}.t" for name in tests]
    if verbosity <= QUIET:
        return ["prove", "-q", *scripts]
    cmd = ["make", "-j1", *scripts]
    if verbosity >= VERBOSE:
        cmd.append("TEST_OPTS=-v -i")
    return cmd


def run_tests(tests: Sequence[str], test_dir: Path, verbosity: int = NORMAL) -> bool:
    """Run the test suite, returning True if every script passed.

    Output goes straight to the terminal; individual results are not parsed.
    A runner that cannot be started counts as a failed run.
    """
    cmd = suite_command(tests, verbosity)
    try:
        result = commands.run_cmd(cmd, cwd=test_dir, capture=False)
    except OSError as e:
        print(f"Error: cannot run {cmd[0]}: {e}", file=sys.stderr)
        return False
    return result.returncode == 0
