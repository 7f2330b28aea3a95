"""
Formatting helpers shared by the emitter and the command output relay.

Terminal formatting is plain ANSI: level format codes are written ahead
of the padded label and every formatted record ends with RESET. When the
destination is not a terminal (and formatting is not forced) all CSI
sequences are stripped so log files and pipes get clean text.
"""

import re
from datetime import datetime
from typing import Callable, Optional, Union

RESET = '\x1b[0m'

# CSI sequences: ESC [ <params> <final letter>
ESCAPE_PATTERN = re.compile(r'\x1b\[[0-9;?]*[A-Za-z]')

_STATUS_PATTERN = re.compile(r'-?[0-9]+')


def strip_formatting(text: str) -> str:
    """Remove all recognized terminal escape sequences from text."""
    return ESCAPE_PATTERN.sub('', text)


def label_width(names) -> int:
    """Width every label is padded to (the longest level name)."""
    return max((len(name) for name in names), default=0)


def format_label(name: str, width: int, format_code: str = '') -> str:
    """Pad a level name to width, wrapping it in format_code if given."""
    padded = name.ljust(width)
    if not format_code:
        return padded
    return f"{format_code}{padded}{RESET}"


def timestamp(fmt: str, clock: Optional[Callable[[], datetime]] = None) -> str:
    """Return the current time formatted with fmt, or '' if unavailable.

    An empty format disables timestamps. A missing or broken clock
    degrades to no timestamp rather than failing the log call.
    """
    if not fmt or clock is None:
        return ''
    try:
        return clock().strftime(fmt)
    except (OSError, ValueError, OverflowError):
        return ''


def parse_status(value: Union[int, str, None]) -> Optional[int]:
    """Interpret value as an exit status argument.

    Returns the status for an int or an (optionally negative) integer
    string, 1 for an empty string, and None when value is ordinary
    message text.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        return None
    if value == '':
        return 1
    if _STATUS_PATTERN.fullmatch(value):
        return int(value)
    return None
