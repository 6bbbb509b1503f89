"""Configuration management for the version matrix runner.

This module handles configuration for the matrix runner, including:
- The persistent checkout cache location
- Checks and results file locations
- The components taking part in the matrix
- Test suite invocation settings

Configuration is loaded from (in order of precedence):
1. Environment variables (VMATRIX_* prefix)
2. Project-local .vmatrix.toml
3. User config ~/.config/remote-hg-matrix/config.toml
4. Built-in defaults
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Any, List

# Try to import tomllib (Python 3.11+) or tomli as fallback
try:
    import tomllib
except ImportError:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None

from .errors import ConfigError


@dataclass
class PatchConfig:
    """A compatibility patch applied after checkout for a range of versions."""
    path: Path
    # Inclusive lower bound; empty means every version
    since: str = ""
    # Exclusive upper bound; empty means no upper bound
    until: str = ""


@dataclass
class ComponentConfig:
    """Configuration for one matrix component."""
    url: str
    # "hg" or "git"; inferred from the URL when empty
    kind: str = ""
    # str.format template applied to versions, e.g. "dulwich-{}"
    version_format: str = ""
    # Component installs executables into the build bin/ directory
    scripts: bool = False
    # File (relative to the checkout) that receives the checked-out version
    version_marker: str = ""
    patches: List[PatchConfig] = field(default_factory=list)


# The components of the remote-hg compatibility matrix, in checkout order.
# The first entry is the primary component used by single-axis runs.
DEFAULT_COMPONENTS: Dict[str, ComponentConfig] = {
    "hg": ComponentConfig(
        url="https://www.mercurial-scm.org/repo/hg",
        kind="hg",
        scripts=True,
        version_marker="mercurial/__version__.py",
    ),
    "hggit": ComponentConfig(
        url="https://foss.heptapod.net/mercurial/hg-git",
        kind="hg",
    ),
    "dulwich": ComponentConfig(
        url="https://github.com/dulwich/dulwich",
        kind="git",
        version_format="dulwich-{}",
    ),
}

DEFAULT_TESTS: List[str] = ["main", "bidi", "hg-git"]


@dataclass
class Config:
    """Main configuration for the matrix runner."""

    # Directory holding one persistent checkout per component
    cache_dir: Path = field(default_factory=lambda: Path.home() / ".cache" / "remote-hg-matrix" / "checkouts")

    # Root of the project under test (its test suite lives in test/)
    project_dir: Path = field(default_factory=Path.cwd)

    # Checks and results files; relative paths are taken from project_dir
    checks_file: Path = Path("tools") / "versions.txt"
    results_file: Path = Path("tools") / "results.txt"

    # Interpreter used to run each component's setup.py
    python: str = "python2"

    # 0 = quiet (prove), 1 = normal (make), 2 = verbose (make, verbose tests)
    verbosity: int = 1

    # Test scripts (without the .t suffix) making up the fixed suite
    tests: List[str] = field(default_factory=lambda: list(DEFAULT_TESTS))

    # Matrix components, in checkout order
    components: Dict[str, ComponentConfig] = field(default_factory=dict)

    def __post_init__(self):
        # Ensure paths are Path objects
        if isinstance(self.cache_dir, str):
            self.cache_dir = Path(self.cache_dir)
        if isinstance(self.project_dir, str):
            self.project_dir = Path(self.project_dir)
        if isinstance(self.checks_file, str):
            self.checks_file = Path(self.checks_file)
        if isinstance(self.results_file, str):
            self.results_file = Path(self.results_file)

        # Expand ~ in paths
        self.cache_dir = self.cache_dir.expanduser()
        self.project_dir = self.project_dir.expanduser()

        # Add default components if not overridden
        for name, component in DEFAULT_COMPONENTS.items():
            if name not in self.components:
                self.components[name] = ComponentConfig(
                    url=component.url,
                    kind=component.kind,
                    version_format=component.version_format,
                    scripts=component.scripts,
                    version_marker=component.version_marker,
                )

    @property
    def test_dir(self) -> Path:
        """Directory holding the project's test suite."""
        return self.project_dir / "test"

    @property
    def checks_path(self) -> Path:
        return self.project_dir / self.checks_file.expanduser()

    @property
    def results_path(self) -> Path:
        return self.project_dir / self.results_file.expanduser()


# Default configuration file locations
USER_CONFIG_PATH = Path.home() / ".config" / "remote-hg-matrix" / "config.toml"
PROJECT_CONFIG_NAME = ".vmatrix.toml"


def _find_project_config() -> Optional[Path]:
    """Find project-local config file by walking up from cwd."""
    current = Path.cwd()
    while current != current.parent:
        config_path = current / PROJECT_CONFIG_NAME
        if config_path.exists():
            return config_path
        current = current.parent
    return None


def _load_toml(path: Path) -> Dict[str, Any]:
    """Load a TOML file and return its contents."""
    if tomllib is None:
        # No TOML parser available, return empty dict
        return {}
    if not path.exists():
        return {}
    with open(path, "rb") as f:
        try:
            return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {path}: {e}") from e


def _parse_patches(patches: List[Any], base: Path) -> List[PatchConfig]:
    """Parse a component's patches list; patch paths are relative to the config file."""
    result = []
    for info in patches:
        if isinstance(info, str):
            info = {"path": info}
        if not isinstance(info, dict) or "path" not in info:
            raise ConfigError(f"Invalid patch entry: {info!r}")
        path = Path(info["path"]).expanduser()
        if not path.is_absolute():
            path = base / path
        result.append(PatchConfig(
            path=path,
            since=str(info.get("since", "")),
            until=str(info.get("until", "")),
        ))
    return result


def _parse_components(
    components_dict: Dict[str, Any],
    existing: Dict[str, ComponentConfig],
    base: Path,
) -> Dict[str, ComponentConfig]:
    """Parse components section from config file.

    Entries for already-known components only override the keys they set.
    """
    result = {}
    for name, info in components_dict.items():
        current = existing.get(name)
        if isinstance(info, str):
            # Simple URL string
            info = {"url": info}
        if not isinstance(info, dict):
            raise ConfigError(f"Invalid component entry for {name!r}")
        url = info.get("url", current.url if current else "")
        if not url:
            raise ConfigError(f"Component {name!r} has no url")
        kind = info.get("kind", current.kind if current and "url" not in info else "")
        if kind and kind not in ("hg", "git"):
            raise ConfigError(f"Component {name!r} has unknown kind {kind!r}")
        result[name] = ComponentConfig(
            url=url,
            kind=kind,
            version_format=info.get("version_format", current.version_format if current else ""),
            scripts=bool(info.get("scripts", current.scripts if current else False)),
            version_marker=info.get("version_marker", current.version_marker if current else ""),
            patches=(
                _parse_patches(info["patches"], base) if "patches" in info
                else list(current.patches) if current else []
            ),
        )
    return result


def load_config() -> Config:
    """Load configuration from files and environment.

    Returns:
        Config object with merged settings.
    """
    config = Config()

    # Load user config
    user_data = _load_toml(USER_CONFIG_PATH)

    # Load project config (overrides user)
    project_path = _find_project_config()
    project_data = _load_toml(project_path) if project_path else {}

    # Merge configs (project overrides user)
    sources = [(user_data, USER_CONFIG_PATH.parent)]
    if project_path:
        sources.append((project_data, project_path.parent))
    for data, base in sources:
        if not data:
            continue

        # Paths section
        if "paths" in data:
            paths = data["paths"]
            if "cache_dir" in paths:
                config.cache_dir = Path(paths["cache_dir"]).expanduser()
            if "project_dir" in paths:
                config.project_dir = (base / Path(paths["project_dir"]).expanduser()).resolve()
            if "checks_file" in paths:
                config.checks_file = Path(paths["checks_file"])
            if "results_file" in paths:
                config.results_file = Path(paths["results_file"])

        # Run section
        if "run" in data:
            run = data["run"]
            if "python" in run:
                config.python = run["python"]
            if "verbosity" in run:
                config.verbosity = int(run["verbosity"])
            if "tests" in run:
                config.tests = list(run["tests"])

        # Components section
        if "components" in data:
            config.components.update(_parse_components(data["components"], config.components, base))

    # Environment overrides (highest precedence)
    if env_cache := os.environ.get("VMATRIX_CACHE_DIR"):
        config.cache_dir = Path(env_cache).expanduser()
    if env_project := os.environ.get("VMATRIX_PROJECT_DIR"):
        config.project_dir = Path(env_project).expanduser()
    if env_checks := os.environ.get("VMATRIX_CHECKS_FILE"):
        config.checks_file = Path(env_checks)
    if env_results := os.environ.get("VMATRIX_RESULTS_FILE"):
        config.results_file = Path(env_results)
    if env_python := os.environ.get("VMATRIX_PYTHON"):
        config.python = env_python
    if env_verbosity := os.environ.get("VMATRIX_VERBOSITY"):
        try:
            config.verbosity = int(env_verbosity)
        except ValueError:
            raise ConfigError(f"VMATRIX_VERBOSITY must be an integer, got {env_verbosity!r}")

    return config


def get_config() -> Config:
    """Get the current configuration (cached).

    Returns:
        Config object.
    """
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reset_config():
    """Reset the cached configuration."""
    global _cached_config
    _cached_config = None


# Cached config instance
_cached_config: Optional[Config] = None


def generate_sample_config() -> str:
    """Generate a sample configuration file.

    Returns:
        Sample TOML configuration as a string.
    """
    return '''# remote-hg matrix runner configuration
# Place this file at ~/.config/remote-hg-matrix/config.toml (user)
# or .vmatrix.toml in your project directory (project)

[paths]
# Directory holding one persistent checkout per component
cache_dir = "~/.cache/remote-hg-matrix/checkouts"

# Checks and results files, relative to the project directory
checks_file = "tools/versions.txt"
results_file = "tools/results.txt"

[run]
# Interpreter used to run each component's setup.py
python = "python2"

# 0 = quiet (prove), 1 = normal (make -j1), 2 = verbose
verbosity = 1

# Test scripts in test/ (without the .t suffix)
tests = ["main", "bidi", "hg-git"]

[components.hg]
url = "https://www.mercurial-scm.org/repo/hg"
kind = "hg"
scripts = true
version_marker = "mercurial/__version__.py"

[components.hggit]
url = "https://foss.heptapod.net/mercurial/hg-git"

[components.dulwich]
url = "https://github.com/dulwich/dulwich"
kind = "git"
version_format = "dulwich-{}"

# Compatibility patches applied after checkout, paths relative to this file:
# [[components.hg.patches]]
# path = "fixes/hg-old-python.patch"
# since = "4.0"
# until = "4.4"
'''
