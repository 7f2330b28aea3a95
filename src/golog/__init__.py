"""golog — leveled logging and logged command execution.

Runs commands with their output relayed live, reports failures once
across any number of nested invocations, and routes records to the
console and log files by level.
"""

from golog._version import __version__, __app_name__

__all__ = ["__version__", "__app_name__"]
