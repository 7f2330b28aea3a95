"""Tests for golog.cli — CLI argument parsing and dispatch."""

import sys

import pytest

from golog import __version__
from golog.cli import _build_common_parser, _extract_global_flags, main
from golog.lib.log_lib import manager as _manager_mod


@pytest.fixture(autouse=True)
def isolated(tmp_config_home, tmp_path, monkeypatch):
    """Run each CLI test away from real config files and reset the manager."""
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    saved = _manager_mod._manager
    _manager_mod._manager = None
    yield workdir
    if _manager_mod._manager is not None:
        _manager_mod._manager.close()
    _manager_mod._manager = saved


class TestGlobalFlagExtraction:
    """Test the Docker-style two-pass global flag parsing."""

    def test_flag_before_subcommand(self):
        """--level-filter before subcommand should be extracted."""
        global_args, remaining = _extract_global_flags(
            ["--level-filter", "WARN", "log", "INFO", "x"]
        )
        assert global_args.level_filter == "WARN"
        assert remaining == ["log", "INFO", "x"]

    def test_flag_after_subcommand(self):
        """Global flags after the subcommand are extracted too."""
        global_args, remaining = _extract_global_flags(
            ["run", "--log-file", "build.log", "--", "make"]
        )
        assert global_args.log_file == "build.log"
        assert remaining == ["run", "--", "make"]

    def test_wrapped_command_flags_untouched(self):
        """Nothing after '--' is taken as a golog flag."""
        global_args, remaining = _extract_global_flags(
            ["run", "--", "tool", "--log-file", "theirs.log"]
        )
        assert global_args.log_file is None
        assert remaining == ["run", "--", "tool", "--log-file", "theirs.log"]

    def test_wrapped_command_without_separator(self):
        """Flags after the wrapped program name belong to the program."""
        global_args, remaining = _extract_global_flags(
            ["run", "--critical", "tool", "--log-file", "theirs.log"]
        )
        assert global_args.log_file is None
        assert remaining == ["run", "--critical", "tool", "--log-file", "theirs.log"]

    def test_flag_values_skipped_before_wrapped_command(self):
        """Option values are not mistaken for the program name."""
        global_args, remaining = _extract_global_flags(
            ["run", "--level-filter", "WARN", "--critical-level", "QUIT",
             "tool", "--config", "theirs.json"]
        )
        assert global_args.level_filter == "WARN"
        assert global_args.config is None
        assert remaining == ["run", "--critical-level", "QUIT",
                             "tool", "--config", "theirs.json"]

    def test_setup_script_args_untouched(self):
        global_args, remaining = _extract_global_flags(
            ["setup", "--root", "proj", "scripts/setup", "--log-file", "x"]
        )
        assert global_args.log_file is None
        assert remaining == ["setup", "--root", "proj", "scripts/setup",
                             "--log-file", "x"]

    def test_force_formatting(self):
        global_args, _ = _extract_global_flags(["--force-formatting", "levels"])
        assert global_args.formatting is True

    def test_no_global_flags(self):
        """When no global flags, all args pass through with None defaults."""
        global_args, remaining = _extract_global_flags(["levels"])
        assert global_args.level_filter is None
        assert global_args.formatting is None
        assert global_args.config is None
        assert remaining == ["levels"]

    def test_empty_argv(self):
        global_args, remaining = _extract_global_flags([])
        assert remaining == []


class TestCommonParser:
    """Shared flags inherited by subcommands."""

    def test_dry_run_default_none(self):
        """Unset --dry-run stays None so lower config layers apply."""
        args = _build_common_parser().parse_args([])
        assert args.dry_run is None

    def test_dry_run_set(self):
        args = _build_common_parser().parse_args(["--dry-run"])
        assert args.dry_run is True


class TestMain:
    """End-to-end dispatch through main()."""

    def test_no_args_prints_help(self, capsys):
        assert main([]) == 0
        assert "commands" in capsys.readouterr().out

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert capsys.readouterr().out.strip() == f"golog {__version__}"

    def test_log_info(self, capsys):
        assert main(["log", "INFO", "Deploying", "build"]) == 0
        assert capsys.readouterr().out == "INFO    Deploying build\n"

    def test_log_error_status(self, capsys):
        """ERROR returns its status as the exit code."""
        assert main(["log", "ERROR", "3", "Upload", "failed"]) == 3
        assert capsys.readouterr().err == "ERROR   Upload failed (exit status 3)\n"

    def test_log_fatal(self, capsys):
        """FATAL ends the command with its status and a trace."""
        assert main(["log", "FATAL", "boom"]) == 1
        err = capsys.readouterr().err.splitlines()
        assert err[0] == "FATAL   boom"
        assert len(err) > 1

    def test_log_unknown_level(self, capsys):
        assert main(["log", "LOUD", "hey"]) == 1
        assert "WARN    hey" in capsys.readouterr().err

    def test_level_filter(self, capsys):
        assert main(["--level-filter", "WARN", "log", "INFO", "hidden"]) == 0
        assert capsys.readouterr().out == ""

    def test_env_level_filter(self, capsys, monkeypatch):
        monkeypatch.setenv("GOLOG_LEVEL_FILTER", "ERROR")
        main(["log", "WARN", "hidden"])
        assert capsys.readouterr().err == ""

    def test_project_config(self, capsys, isolated):
        (isolated / ".golog.json").write_text('{"timestamp_format": "[ts]"}')
        main(["log", "INFO", "x"])
        assert capsys.readouterr().out == "[ts] INFO    x\n"

    def test_bad_filter_is_fatal(self, capsys):
        assert main(["--level-filter", "LOUD", "log", "INFO", "x"]) == 1
        assert "Unknown log level filter: LOUD" in capsys.readouterr().err

    def test_run_success(self, capsys):
        code = main(["run", "--", sys.executable, "-c", "print('from child')"])
        assert code == 0
        out = capsys.readouterr().out.splitlines()
        assert out[0].startswith("RUN     ")
        assert out[1] == "from child"

    def test_run_failure(self, capsys):
        code = main(["run", "--", sys.executable, "-c", "raise SystemExit(4)"])
        assert code == 4
        assert capsys.readouterr().err.startswith("ERROR   ")

    def test_run_critical(self, capsys):
        code = main(["run", "--critical", sys.executable, "-c", "raise SystemExit(5)"])
        assert code == 5
        assert capsys.readouterr().err.startswith("FATAL   ")

    def test_run_critical_quit(self, capsys):
        code = main(["run", "--critical-level", "quit", "--",
                     sys.executable, "-c", "raise SystemExit(6)"])
        assert code == 6
        assert capsys.readouterr().err.startswith("QUIT    ")

    def test_run_bad_critical_level(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["run", "--critical-level", "ERROR", "--", sys.executable, "-c", "pass"])
        assert exc_info.value.code == 2
        assert "invalid choice" in capsys.readouterr().err

    def test_run_keeps_command_flags(self, capsys, isolated):
        """Global-looking flags after the program go to the program."""
        code = main(["run", sys.executable, "-c", "import sys; print(sys.argv[1:])",
                     "--log-file", "theirs.log"])
        assert code == 0
        out = capsys.readouterr().out.splitlines()
        assert out[1] == "['--log-file', 'theirs.log']"
        assert not (isolated / "theirs.log").exists()

    def test_run_without_command(self, capsys):
        """A missing command is a usage error reported as FATAL."""
        assert main(["run"]) == 1
        assert "no command given" in capsys.readouterr().err

    def test_run_dry_run(self, capsys, isolated):
        marker = isolated / "ran"
        code = main(["run", "--dry-run", "--", sys.executable, "-c",
                     f"open({str(marker)!r}, 'w').close()"])
        assert code == 0
        assert not marker.exists()

    def test_log_file(self, capsys, isolated):
        code = main(["--log-file", "logs/build.log:ERROR", "log", "ERROR", "oops"])
        assert code == 1
        assert (isolated / "logs" / "build.log").read_text() == "ERROR   oops\n"

    def test_levels(self, capsys):
        assert main(["levels"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("Log levels (lowest priority first):")
        assert "FATAL" in out
        assert "Level filter: RUN" in out
