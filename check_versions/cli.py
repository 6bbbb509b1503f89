#!/usr/bin/env python3
"""Main CLI entry point for the remote-hg version matrix.

This provides the `check-versions` command, which tests the bridge against
combinations of Mercurial, hg-git and dulwich versions.

Usage:
    check-versions                          # every tuple in the checks file
    check-versions hg:4.5                   # the checks-file tuple with hg 4.5
    check-versions hg:@                     # latest hg, other versions from the last tuple
    check-versions hg:4.7 hggit:0.8.12 dulwich:0.19.7
"""

import argparse
import dataclasses
import sys
from pathlib import Path
from typing import Optional, Sequence

from vmatrix.checks import load_checks
from vmatrix.components import build_registry
from vmatrix.config import Config, get_config
from vmatrix.errors import CommandError, MatrixError
from vmatrix.orchestrator import Matrix, dispatch
from vmatrix.runner import QUIET
from vmatrix.workspace import Workspace, setup


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='check-versions',
        description='Run the remote-hg test suite against component versions',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Modes:
  (no arguments)        Check every tuple in the checks file and write the
                        results file
  hg:VERSION            Check the first checks-file tuple with that hg version
  hg:@ or hg            Check latest hg with the other versions of the last
                        checks-file tuple
  ID:VERSION ...        Check exactly the given tuple

'@' as a version means the latest revision of that component.

Examples:
  check-versions -q
  check-versions hg:4.5
  check-versions -v hg:@ dulwich:@
  check-versions --cache-dir ./.checkouts hg:4.7 hggit:0.8.12 dulwich:0.19.7

Environment Variables:
  VMATRIX_CACHE_DIR     Component checkout cache directory
  VMATRIX_CHECKS_FILE   Checks file (default: tools/versions.txt)
  VMATRIX_RESULTS_FILE  Results file (default: tools/results.txt)
  VMATRIX_PYTHON        Interpreter used to build the components
"""
    )

    parser.add_argument(
        '--version', '-V',
        action='version',
        version='%(prog)s 0.1.0'
    )
    parser.add_argument(
        'versions',
        nargs='*',
        metavar='ID:VERSION',
        help='Component versions to check (default: the whole checks file)'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='count',
        default=0,
        help='Show more test output (repeatable)'
    )
    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Run the tests through prove with summary output only'
    )
    parser.add_argument(
        '--checks-file',
        type=Path,
        metavar='FILE',
        help='Checks file listing the version tuples'
    )
    parser.add_argument(
        '--results-file',
        type=Path,
        metavar='FILE',
        help='Where a full matrix run writes its results'
    )
    parser.add_argument(
        '--cache-dir', '-C',
        type=Path,
        metavar='DIR',
        help='Directory for component checkouts (default: ~/.cache/remote-hg-matrix/checkouts)'
    )
    parser.add_argument(
        '--project-dir',
        type=Path,
        metavar='DIR',
        help='Root of the project under test (default: current directory)'
    )
    parser.add_argument(
        '--python',
        metavar='PYTHON',
        help='Interpreter used to run setup.py for each component'
    )
    parser.add_argument(
        '--list-components',
        action='store_true',
        help='List configured components and exit'
    )

    return parser


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Return a copy of the configuration with command-line options applied."""
    overrides = {}
    if args.cache_dir:
        overrides['cache_dir'] = args.cache_dir.resolve()
    if args.project_dir:
        overrides['project_dir'] = args.project_dir.resolve()
    if args.checks_file:
        overrides['checks_file'] = args.checks_file.resolve()
    if args.results_file:
        overrides['results_file'] = args.results_file.resolve()
    if args.python:
        overrides['python'] = args.python
    if args.quiet:
        overrides['verbosity'] = QUIET
    elif args.verbose:
        overrides['verbosity'] = config.verbosity + args.verbose
    return dataclasses.replace(config, **overrides)


def list_components(config: Config) -> None:
    registry = build_registry(config)
    print("Configured components:")
    for component in registry.values():
        fmt = f" (tags: {component.version_format})" if component.version_format else ""
        print(f"  {component.id:10} {component.kind.value:4} {component.url}{fmt}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the check-versions command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = apply_overrides(get_config(), args)

        if args.list_components:
            list_components(config)
            return 0

        registry = build_registry(config)
        with Workspace.open(config.cache_dir) as workspace:
            setup(registry, workspace)
            checks = load_checks(config.checks_path)
            matrix = Matrix(
                registry=registry,
                workspace=workspace,
                test_dir=config.test_dir,
                tests=list(config.tests),
                verbosity=config.verbosity,
                python=config.python,
            )
            return dispatch(matrix, args.versions, checks, config.results_path)
    except CommandError as e:
        print(f"\nError: {e}", file=sys.stderr)
        if e.output:
            print(e.output.rstrip(), file=sys.stderr)
        return 1
    except (MatrixError, ValueError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
