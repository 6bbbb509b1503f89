"""Configuration loading."""

from pathlib import Path

import pytest

from vmatrix import config as config_module
from vmatrix.config import Config, generate_sample_config, get_config, load_config, reset_config
from vmatrix.errors import ConfigError


class TestDefaults:

    def test_default_components(self):
        config = Config()
        assert list(config.components) == ["hg", "hggit", "dulwich"]
        assert config.components["dulwich"].version_format == "dulwich-{}"
        assert config.tests == ["main", "bidi", "hg-git"]
        assert config.verbosity == 1

    def test_paths_relative_to_project(self, tmp_path):
        config = Config(project_dir=tmp_path)
        assert config.test_dir == tmp_path / "test"
        assert config.checks_path == tmp_path / "tools" / "versions.txt"
        assert config.results_path == tmp_path / "tools" / "results.txt"

    def test_absolute_checks_file(self, tmp_path):
        config = Config(project_dir=tmp_path / "project", checks_file=tmp_path / "mine.txt")
        assert config.checks_path == tmp_path / "mine.txt"

    def test_string_paths(self, tmp_path):
        config = Config(cache_dir=str(tmp_path), checks_file="checks")
        assert config.cache_dir == tmp_path
        assert config.checks_file == Path("checks")


class TestLoadConfig:
    """Files and environment override the defaults."""

    def test_project_file(self, tmp_path):
        (tmp_path / ".vmatrix.toml").write_text(
            '[paths]\n'
            'cache_dir = "checkouts"\n'
            'checks_file = "ci/versions.txt"\n'
            '[run]\n'
            'python = "python2.7"\n'
            'verbosity = 0\n'
            'tests = ["main"]\n'
        )
        config = load_config()
        assert config.cache_dir == Path("checkouts")
        assert config.checks_file == Path("ci/versions.txt")
        assert config.python == "python2.7"
        assert config.verbosity == 0
        assert config.tests == ["main"]

    def test_project_file_found_from_subdirectory(self, tmp_path, monkeypatch):
        (tmp_path / ".vmatrix.toml").write_text('[run]\npython = "python3"\n')
        sub = tmp_path / "tools"
        sub.mkdir()
        monkeypatch.chdir(sub)
        assert load_config().python == "python3"

    def test_project_overrides_user(self, tmp_path, monkeypatch):
        user = tmp_path / "user.toml"
        user.write_text('[run]\npython = "python2.6"\nverbosity = 2\n')
        monkeypatch.setattr(config_module, "USER_CONFIG_PATH", user)
        (tmp_path / ".vmatrix.toml").write_text('[run]\npython = "python2.7"\n')
        config = load_config()
        assert config.python == "python2.7"
        assert config.verbosity == 2

    def test_component_override_keeps_other_settings(self, tmp_path):
        (tmp_path / ".vmatrix.toml").write_text(
            '[components.hg]\n'
            'url = "https://hg.example.org/hg"\n'
            '[components.hggit]\n'
            'version_format = "v{}"\n'
        )
        config = load_config()
        assert config.components["hg"].url == "https://hg.example.org/hg"
        assert config.components["hg"].scripts
        assert config.components["hg"].version_marker == "mercurial/__version__.py"
        assert config.components["hggit"].url == "https://foss.heptapod.net/mercurial/hg-git"
        assert config.components["hggit"].version_format == "v{}"

    def test_new_component_with_patches(self, tmp_path):
        (tmp_path / ".vmatrix.toml").write_text(
            '[components.evolve]\n'
            'url = "https://foss.heptapod.net/mercurial/evolve"\n'
            '[[components.evolve.patches]]\n'
            'path = "fixes/evolve.patch"\n'
            'since = "8.0"\n'
        )
        config = load_config()
        assert list(config.components)[-1] == "evolve"
        patch = config.components["evolve"].patches[0]
        assert patch.path == tmp_path / "fixes" / "evolve.patch"
        assert patch.since == "8.0"
        assert patch.until == ""

    def test_unknown_kind_rejected(self, tmp_path):
        (tmp_path / ".vmatrix.toml").write_text('[components.x]\nurl = "https://x"\nkind = "svn"\n')
        with pytest.raises(ConfigError, match="svn"):
            load_config()

    def test_invalid_toml(self, tmp_path):
        (tmp_path / ".vmatrix.toml").write_text('[run\n')
        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config()

    def test_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("VMATRIX_CACHE_DIR", str(tmp_path / "cache"))
        monkeypatch.setenv("VMATRIX_RESULTS_FILE", "out.txt")
        monkeypatch.setenv("VMATRIX_VERBOSITY", "2")
        config = load_config()
        assert config.cache_dir == tmp_path / "cache"
        assert config.results_file == Path("out.txt")
        assert config.verbosity == 2

    def test_bad_verbosity(self, monkeypatch):
        monkeypatch.setenv("VMATRIX_VERBOSITY", "loud")
        with pytest.raises(ConfigError):
            load_config()

    def test_cached(self):
        assert get_config() is get_config()
        first = get_config()
        reset_config()
        assert get_config() is not first

    def test_sample_config_loads(self, tmp_path):
        (tmp_path / ".vmatrix.toml").write_text(generate_sample_config())
        config = load_config()
        assert list(config.components) == ["hg", "hggit", "dulwich"]
        assert config.components["dulwich"].kind == "git"
