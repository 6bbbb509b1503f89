"""Version matrix runner for the remote-hg bridge.

This package provides utilities for:
- Checking out and building Mercurial, hg-git and dulwich at given versions
- Running the bridge's test suite against each combination
- Reading the checks file and writing the results file
- Configuration management for checkouts and test runs
"""

from .checks import load_checks, parse_checks, format_results, write_results
from .components import (
    Component,
    ComponentRegistry,
    ToolKind,
    KIND_COMMANDS,
    build_registry,
    apply_patch,
    write_version_marker,
)
from .config import get_config, load_config, reset_config, Config
from .environ import scoped_env
from .errors import (
    MatrixError,
    CommandError,
    ConfigError,
    SetupFailure,
    BuildFailure,
    VersionLookupError,
)
from .orchestrator import Matrix, dispatch, select_single, run_full
from .runner import run_tests
from .versions import WILDCARD, compare_versions, check_version, format_tuple, parse_tuple
from .workspace import Workspace, setup

__all__ = [
    # Checks and results files
    'load_checks',
    'parse_checks',
    'format_results',
    'write_results',
    # Components
    'Component',
    'ComponentRegistry',
    'ToolKind',
    'KIND_COMMANDS',
    'build_registry',
    'apply_patch',
    'write_version_marker',
    # Config functions
    'get_config',
    'load_config',
    'reset_config',
    'Config',
    # Errors
    'MatrixError',
    'CommandError',
    'ConfigError',
    'SetupFailure',
    'BuildFailure',
    'VersionLookupError',
    # Running checks
    'Matrix',
    'dispatch',
    'select_single',
    'run_full',
    'run_tests',
    'scoped_env',
    'Workspace',
    'setup',
    # Versions
    'WILDCARD',
    'compare_versions',
    'check_version',
    'format_tuple',
    'parse_tuple',
]
