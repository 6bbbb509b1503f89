"""Pytest configuration and fixtures for the matrix runner tests.

External tools (hg, git, python setup.py, make, prove) are never run:
the ``fake_commands`` fixture replaces ``vmatrix.commands.run_cmd`` with a
recorder that answers every command with success unless told otherwise.
Clone commands create the destination directory, as the real tools do.

Usage:
    def test_something(fake_commands, matrix):
        fake_commands.fail("make")
        assert not matrix.check({"hg": "4.5"})
"""

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from vmatrix import commands, config as config_module
from vmatrix.components import Component, ComponentRegistry, ToolKind
from vmatrix.orchestrator import Matrix
from vmatrix.workspace import Workspace


# ============================================================================
# Command recording
# ============================================================================

@dataclass
class Call:
    """One recorded command."""
    cmd: List[str]
    cwd: Optional[Path]
    capture: bool
    # Process environment at the time of the call
    environ: Dict[str, str]


class FakeCommands:
    """Stand-in for run_cmd that records commands instead of running them."""

    def __init__(self):
        self.calls: List[Call] = []
        self._failures: List[Callable[[Call], bool]] = []
        self._missing: List[str] = []

    def fail(self, *words: str):
        """Make commands containing all of ``words`` exit with status 1."""
        self._failures.append(lambda call: all(word in call.cmd for word in words))

    def fail_if(self, predicate: Callable[[Call], bool]):
        """Make commands for which ``predicate(call)`` holds exit with status 1."""
        self._failures.append(predicate)

    def missing(self, *programs: str):
        """Make ``programs`` fail to start, as if they were not installed."""
        self._missing.extend(programs)

    def __call__(self, cmd, cwd=None, capture=True):
        call = Call(
            cmd=[str(word) for word in cmd],
            cwd=Path(cwd) if cwd is not None else None,
            capture=capture,
            environ=dict(os.environ),
        )
        self.calls.append(call)
        if call.cmd[0] in self._missing:
            raise FileNotFoundError(2, "No such file or directory", call.cmd[0])
        if any(failure(call) for failure in self._failures):
            return subprocess.CompletedProcess(call.cmd, 1, "", "simulated failure\n")
        if call.cmd[1:2] == ["clone"]:
            Path(call.cmd[-1]).mkdir(parents=True)
        return subprocess.CompletedProcess(call.cmd, 0, "", "")

    def named(self, program: str) -> List[Call]:
        """Recorded calls of one program."""
        return [call for call in self.calls if call.cmd[0] == program]

    def checkouts(self) -> List[List[str]]:
        """Checkout commands in order, as (tool, revision, directory name)."""
        result = []
        for call in self.calls:
            if call.cmd[1:2] in (["update"], ["checkout"]):
                result.append([call.cmd[0], call.cmd[-1], call.cwd.name])
        return result


@pytest.fixture
def fake_commands(monkeypatch) -> FakeCommands:
    """Replace external commands with a recorder."""
    fake = FakeCommands()
    monkeypatch.setattr(commands, "run_cmd", fake)
    return fake


# ============================================================================
# Configuration isolation
# ============================================================================

@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep user config files and VMATRIX_* variables out of every test."""
    monkeypatch.setattr(config_module, "USER_CONFIG_PATH", tmp_path / "no-user-config.toml")
    for name in list(os.environ):
        if name.startswith("VMATRIX_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    config_module.reset_config()
    yield
    config_module.reset_config()


# ============================================================================
# Matrix fixtures
# ============================================================================

@pytest.fixture
def workspace(tmp_path) -> Workspace:
    """A workspace rooted in the test's temporary directory."""
    return Workspace(
        cache_dir=tmp_path / "cache",
        build_dir=tmp_path / "build",
        test_output_dir=tmp_path / "test-output",
    )


@pytest.fixture
def registry(workspace) -> ComponentRegistry:
    """The three remote-hg components, checked out under the workspace cache."""
    root = workspace.cache_dir
    return ComponentRegistry([
        Component("hg", "https://www.mercurial-scm.org/repo/hg", ToolKind.HG, root, scripts=True),
        Component("hggit", "https://foss.heptapod.net/mercurial/hg-git", ToolKind.HG, root),
        Component("dulwich", "https://github.com/dulwich/dulwich", ToolKind.GIT, root,
                  version_format="dulwich-{}"),
    ])


@pytest.fixture
def matrix(registry, workspace, tmp_path) -> Matrix:
    """A matrix over ``registry`` whose test suite lives in tmp_path/project/test."""
    test_dir = tmp_path / "project" / "test"
    test_dir.mkdir(parents=True)
    return Matrix(registry=registry, workspace=workspace, test_dir=test_dir)


@pytest.fixture
def sample_checks():
    """The two-tuple checks file used by the run mode tests."""
    return [
        {"hg": "4.5", "hggit": "0.8.0", "dulwich": "0.18.0"},
        {"hg": "4.7", "hggit": "0.8.12", "dulwich": "0.19.7"},
    ]
