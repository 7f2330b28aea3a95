"""Shared test fixtures for golog test suite."""

import io
import os
import sys
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from golog.lib.log_lib import LogManager, LogSettings
from golog.lib.log_lib.settings import ENV_VARS
from golog.lib.log_lib.critical import CRITICAL_VAR, DEPTH_VAR


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = PROJECT_ROOT / "src"

GOLOG_VARS = [*ENV_VARS.values(), DEPTH_VAR, CRITICAL_VAR]

# Fixed clock for timestamp tests
FIXED_TIME = datetime(2026, 10, 12, 9, 30, 15)


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "slow: spawns real child processes")


# ---------------------------------------------------------------------------
# Streams
# ---------------------------------------------------------------------------
class TtyStringIO(io.StringIO):
    """StringIO that claims to be a terminal."""

    def isatty(self):
        return True


@pytest.fixture
def streams():
    """Plain (non-terminal) buffers for stdout and stderr."""
    return {1: io.StringIO(), 2: io.StringIO()}


@pytest.fixture
def tty_streams():
    """Terminal-like buffers for stdout and stderr."""
    return {1: TtyStringIO(), 2: TtyStringIO()}


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove every GOLOG_* variable so tests start at the top level."""
    for name in GOLOG_VARS:
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def tmp_config_home(tmp_path):
    """Provide a temporary home directory for ~/.golog/config.json."""
    home = tmp_path / "home"
    home.mkdir()
    with patch.dict(os.environ, {"HOME": str(home), "USERPROFILE": str(home)}):
        with patch("pathlib.Path.home", return_value=home):
            yield home


@pytest.fixture
def child_env():
    """Environment for child processes that can import golog from src/."""
    env = {k: v for k, v in os.environ.items() if k not in GOLOG_VARS}
    paths = [str(SRC_DIR)]
    if env.get("PYTHONPATH"):
        paths.append(env["PYTHONPATH"])
    env["PYTHONPATH"] = os.pathsep.join(paths)
    env["PYTHONUNBUFFERED"] = "1"
    return env


# ---------------------------------------------------------------------------
# Managers
# ---------------------------------------------------------------------------
@pytest.fixture
def make_manager(streams):
    """Factory for LogManagers writing to the streams fixture.

    Keyword arguments are LogSettings fields; environ defaults to empty
    so the manager runs at the top level.
    """
    created = []

    def _make(environ=None, clock=None, **settings):
        manager = LogManager(
            settings=LogSettings(**settings),
            streams=streams,
            environ=environ or {},
            clock=clock or (lambda: FIXED_TIME),
            self_invocations=[[sys.executable, "-m", "golog.cli"]],
        )
        created.append(manager)
        return manager

    yield _make
    for manager in created:
        manager.close()


@pytest.fixture
def manager(make_manager):
    """A LogManager with default settings."""
    return make_manager()


def python_cmd(code):
    """argv that runs a snippet of Python in a child interpreter."""
    return [sys.executable, "-c", code]


def golog_cmd(*args):
    """argv that runs the golog CLI in a child interpreter."""
    return [sys.executable, "-m", "golog.cli", *args]
