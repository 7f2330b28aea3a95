"""Integration tests for nested golog invocations.

Each test runs the real CLI in a child interpreter, wrapping further
golog processes, and checks that a failure is reported exactly once no
matter how deep it happens.
"""

import subprocess

import pytest

from conftest import golog_cmd, python_cmd

pytestmark = pytest.mark.slow

FAIL_3 = python_cmd("import sys; print('inner output'); sys.exit(3)")


def run_chain(argv, env):
    result = subprocess.run(argv, env=env, capture_output=True, text=True, timeout=120)
    return result, (result.stdout + result.stderr).splitlines()


def records(output, label):
    return [line for line in output if line.startswith(label + " ")]


class TestNestedFatal:
    """Critical failures propagate by sentinel, not by message."""

    def test_two_levels(self, child_env):
        """Inner FATAL, outer passes the status on silently."""
        argv = golog_cmd("run", "--critical", "--",
                         *golog_cmd("run", "--", *FAIL_3))
        result, output = run_chain(argv, child_env)
        assert result.returncode == 3
        assert len(records(output, "FATAL")) == 1
        assert records(output, "ERROR") == []
        assert "inner output" in output

    def test_three_levels(self, child_env):
        """Exactly one FATAL from the innermost golog, status preserved."""
        argv = golog_cmd("run", "--critical", "--",
                         *golog_cmd("run", "--",
                                    *golog_cmd("run", "--", *FAIL_3)))
        result, output = run_chain(argv, child_env)
        assert result.returncode == 3
        fatal = records(output, "FATAL")
        assert len(fatal) == 1
        assert fatal[0].endswith("(exit status 3)")
        assert records(output, "ERROR") == []
        assert len(records(output, "RUN")) == 3

    def test_no_sentinel_reaches_top(self, child_env):
        """The top-level process never prints the sentinel."""
        argv = golog_cmd("run", "--critical", "--",
                         *golog_cmd("run", "--",
                                    *golog_cmd("run", "--", *FAIL_3)))
        result, output = run_chain(argv, child_env)
        assert not any("@golog.command" in line for line in output)

    def test_inner_critical_outer_plain(self, child_env):
        """A reported failure isn't re-reported as ERROR by the parent."""
        argv = golog_cmd("run", "--",
                         *golog_cmd("run", "--critical-level", "QUIT", "--", *FAIL_3))
        result, output = run_chain(argv, child_env)
        assert result.returncode == 3
        assert len(records(output, "QUIT")) == 1
        assert records(output, "ERROR") == []
        assert records(output, "FATAL") == []


class TestNestedRecoverable:
    """Without critical sections every level sees a plain failure."""

    def test_error_returned(self, child_env):
        argv = golog_cmd("run", "--", *FAIL_3)
        result, output = run_chain(argv, child_env)
        assert result.returncode == 3
        assert len(records(output, "ERROR")) == 1
        assert records(output, "FATAL") == []

    def test_success_chain(self, child_env):
        argv = golog_cmd("run", "--",
                         *golog_cmd("run", "--", *python_cmd("print('ok')")))
        result, output = run_chain(argv, child_env)
        assert result.returncode == 0
        assert "ok" in output
        assert result.stderr == ""


class TestNestedLogFile:
    """A shared log file receives every line once."""

    def test_no_duplicates(self, child_env, tmp_path):
        log = tmp_path / "build.log"
        argv = golog_cmd("--log-file", str(log), "run", "--",
                         *golog_cmd("run", "--", *python_cmd("print('hello')")))
        result, _ = run_chain(argv, child_env)
        assert result.returncode == 0
        content = log.read_text(encoding="utf-8").splitlines()
        assert content.count("hello") == 1
        assert len([line for line in content if line.startswith("RUN ")]) == 2

    def test_dry_run_spawns_nothing(self, child_env, tmp_path):
        """A dry run at the top logs the command and stops."""
        marker = tmp_path / "ran"
        inner = golog_cmd("run", "--", *python_cmd(f"open({str(marker)!r}, 'w').close()"))
        result, output = run_chain(golog_cmd("run", "--dry-run", "--", *inner),
                                   child_env)
        assert result.returncode == 0
        assert not marker.exists()
        assert len(records(output, "RUN")) == 1
