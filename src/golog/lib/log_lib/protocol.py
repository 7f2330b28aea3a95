"""
Sentinel protocol carried on the secondary output channel.

A process running underneath a command executor reports how it ended by
writing one reserved line as the last thing it prints:

    @golog.command exit:<status>     ordinary ERROR-class termination
    @golog.command fatal:<status>    QUIT/FATAL already reported

The enclosing executor captures stdout and stderr together, so the line
arrives as the final line of the combined output. Only a final line is
ever treated as a sentinel; the executor relays earlier look-alikes
verbatim.
"""

import re
from dataclasses import dataclass
from typing import Optional, TextIO

MARKER = '@golog.command'

EXIT = 'exit'
FATAL = 'fatal'
STATES = (EXIT, FATAL)

SENTINEL_PATTERN = re.compile(
    '^' + re.escape(MARKER) + r' (exit|fatal):([0-9]+)$')


@dataclass(frozen=True)
class Sentinel:
    """Decoded sentinel line."""
    state: str
    status: int

    @property
    def fatal(self) -> bool:
        """True if the failure was already reported by the sender."""
        return self.state == FATAL


def encode(state: str, status: int) -> str:
    """Build the sentinel line (without newline) for state and status.

    Statuses are reduced to the 0-255 range of a process exit status,
    so a negative status round-trips the way the OS would report it.
    """
    if state not in STATES:
        raise ValueError(f"Unknown sentinel state: {state!r}")
    return f"{MARKER} {state}:{int(status) % 256}"


def decode(line: str) -> Optional[Sentinel]:
    """Parse a line of captured output, returning None if not a sentinel."""
    match = SENTINEL_PATTERN.match(line.rstrip('\r\n'))
    if match is None:
        return None
    return Sentinel(state=match.group(1), status=int(match.group(2)))


def write_sentinel(stream: TextIO, state: str, status: int) -> None:
    """Write a sentinel line to stream and flush it."""
    stream.write(encode(state, status) + '\n')
    stream.flush()
