"""Test suite invocation."""

from vmatrix.runner import NORMAL, QUIET, VERBOSE, run_tests, suite_command

TESTS = ["main", "bidi", "hg-git"]


class TestSuiteCommand:
    """The invocation depends on the verbosity."""

    def test_quiet_uses_prove(self):
        assert suite_command(TESTS, QUIET) == ["prove", "-q", "main.t", "bidi.t", "hg-git.t"]

    def test_normal_uses_make(self):
        assert suite_command(TESTS, NORMAL) == ["make", "-j1", "main.t", "bidi.t", "hg-git.t"]

    def test_verbose_forwards_test_options(self):
        assert suite_command(TESTS, VERBOSE) == [
            "make", "-j1", "main.t", "bidi.t", "hg-git.t", "TEST_OPTS=-v -i",
        ]
        assert suite_command(TESTS, VERBOSE + 1) == suite_command(TESTS, VERBOSE)


class TestRunTests:
    """run_tests reduces the whole run to one outcome."""

    def test_success(self, fake_commands, tmp_path):
        assert run_tests(TESTS, tmp_path) is True
        call = fake_commands.calls[0]
        assert call.cwd == tmp_path
        assert call.capture is False

    def test_failure(self, fake_commands, tmp_path):
        fake_commands.fail("make")
        assert run_tests(TESTS, tmp_path) is False

    def test_missing_runner(self, fake_commands, tmp_path, capsys):
        fake_commands.missing("prove")
        assert run_tests(TESTS, tmp_path, QUIET) is False
        assert "cannot run prove" in capsys.readouterr().err
