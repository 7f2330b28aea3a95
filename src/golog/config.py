"""Configuration management for golog.

Four-layer config resolution (highest priority wins):
  1. CLI flags — explicit on the command line
  2. Environment — GOLOG_* variables (also how child processes inherit)
  3. Project config — .golog.json in the working directory or a parent
  4. Global config — ~/.golog/config.json (or --config PATH)

Anything left unset falls back to the LogSettings defaults.
"""

import json
import os
from dataclasses import fields
from pathlib import Path

from golog.lib.log_lib.settings import BOOLEAN_FIELDS, ENV_VARS, LogSettings, parse_bool


# ---------------------------------------------------------------------------
# Config file locations
# ---------------------------------------------------------------------------
def get_global_config_dir():
    """Return the global config directory (~/.golog/)."""
    return Path.home() / ".golog"


def get_global_config_path():
    """Return path to the global config file."""
    return get_global_config_dir() / "config.json"


def find_project_config(start_dir=None):
    """Walk up from start_dir looking for .golog.json.

    Returns the path if found, None otherwise.
    """
    current = Path(start_dir or os.getcwd()).resolve()
    for _ in range(20):  # safety limit
        candidate = current / ".golog.json"
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


# ---------------------------------------------------------------------------
# Config loading
# ---------------------------------------------------------------------------
def load_json(path):
    """Load a JSON file, returning empty dict on error."""
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def load_global_config(path=None):
    """Load the global config file (or an explicit --config file)."""
    return load_json(path or get_global_config_path())


def load_project_config(start_dir=None):
    """Load the nearest .golog.json walking upward from start_dir."""
    path = find_project_config(start_dir)
    if path:
        return load_json(path), path
    return {}, None


def _lookup(cfg, key):
    # JSON may spell keys with hyphens or underscores
    for candidate in (key, key.replace("_", "-")):
        if cfg.get(candidate) is not None:
            return cfg[candidate]
    return None


def _coerce(key, value):
    if key in BOOLEAN_FIELDS:
        return parse_bool(value)
    return str(value)


# ---------------------------------------------------------------------------
# Config resolution
# ---------------------------------------------------------------------------
def resolve_settings(args=None, environ=None, start_dir=None, config_path=None):
    """Resolve LogSettings using four-layer precedence.

    For each LogSettings field, checks (in order):
      1. CLI args (argparse namespace attribute of the same name)
      2. Environment variable (GOLOG_<FIELD>)
      3. Project .golog.json
      4. Global ~/.golog/config.json (or config_path / args.config)

    Returns a LogSettings instance.
    """
    if environ is None:
        environ = os.environ
    if config_path is None:
        config_path = getattr(args, "config", None)

    project_cfg, _ = load_project_config(start_dir)
    global_cfg = load_global_config(config_path)

    resolved = {}
    for f in fields(LogSettings):
        key = f.name

        # Layer 1: CLI
        cli_val = getattr(args, key, None)
        if cli_val is not None:
            resolved[key] = _coerce(key, cli_val)
            continue

        # Layer 2: Environment
        env_val = environ.get(ENV_VARS[key])
        if env_val is not None:
            resolved[key] = _coerce(key, env_val)
            continue

        # Layer 3: Project config
        proj_val = _lookup(project_cfg, key)
        if proj_val is not None:
            resolved[key] = _coerce(key, proj_val)
            continue

        # Layer 4: Global config
        global_val = _lookup(global_cfg, key)
        if global_val is not None:
            resolved[key] = _coerce(key, global_val)

    return LogSettings(**resolved)
