"""Output utilities for golog commands.

Thin wrappers that route through the dispatcher's LogManager, so command
modules don't have to pass the manager around for one-off messages.

Also re-exports the log_lib public API for convenience imports.
"""

# Re-export log_lib public API for command modules
from golog.lib.log_lib import (                      # noqa: F401
    LogManager, LogSettings, UsageError, KEEP,
    init_context, get_context, format_level_list,
)


def log(level, *args):
    """Emit a record through the active LogManager."""
    return get_context().emit(level, *args)


def run(args, **kwargs):
    """Run a logged command through the active LogManager."""
    return get_context().run(args, **kwargs)


def critical_section(level=None):
    """Critical section on the active LogManager (context manager)."""
    return get_context().critical_section(level)
