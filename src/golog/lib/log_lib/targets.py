"""
Output targets for the level registry.

A target is a small positive integer, the same way a shell script
routes output by file descriptor. The manager keeps a table mapping each
id to a writable text stream:

    1   standard output (primary)
    2   standard error (secondary, carries the sentinel)
    3+  log files opened with add_output_file()

Target spec syntax (compact, positional):
    PATH[:LEVEL[,LEVEL...]]

    Examples:
        build.log               # every level
        build.log:RUN,ERROR     # only RUN and ERROR records
        C:\\logs\\build.log      # Windows drive letters are kept intact
        logs/build:nightly      # not a registered level: part of the path
"""

import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, TextIO, Tuple

STDOUT = 1
STDERR = 2

# Descriptors that never get suppressed during nested execution
PRIMARY_TARGETS = (STDOUT, STDERR)

_SPEC_PATTERN = re.compile(
    r'^(?P<path>.+?)'
    r'(?::(?P<levels>[A-Za-z][A-Za-z0-9_]*(?:,[A-Za-z][A-Za-z0-9_]*)*))?$')


@dataclass
class TargetConfig:
    """A log file destination parsed from a target spec."""
    path: str
    levels: Optional[Tuple[str, ...]] = None


def parse_target_spec(spec: str,
                      known_levels: Optional[Iterable[str]] = None) -> TargetConfig:
    """Parse a PATH[:LEVEL,...] spec into a TargetConfig.

    A trailing ':LEVEL,LEVEL' group is only recognized when it consists
    of level-like words, so drive letters and colons inside directory
    names stay part of the path. With known_levels, a group naming none
    of them is part of the path too ('/var/log/build:nightly').

    Args:
        spec: Target spec string like "build.log:RUN,ERROR"
        known_levels: Registered level names, if they should be checked

    Returns:
        TargetConfig with the path and upper-cased level names (None for
        every level)

    Raises:
        ValueError: Empty spec, or a level group mixing known and
            unknown names
    """
    spec = spec.strip()
    match = _SPEC_PATTERN.match(spec)
    if match is None:
        raise ValueError(f"Empty log file spec: {spec!r}")
    path = match.group('path')
    levels = match.group('levels')
    if not levels:
        return TargetConfig(path=path)
    # 'C:foo' is a drive-relative path, not a level list
    if len(path) == 1 and path.isalpha():
        return TargetConfig(path=spec)
    names = tuple(name.upper() for name in levels.split(','))
    if known_levels is not None:
        known = {name.upper() for name in known_levels}
        unknown = [name for name in names if name not in known]
        if len(unknown) == len(names):
            return TargetConfig(path=spec)
        if unknown:
            raise ValueError(
                f"Unknown log level {unknown[0]} in log file spec: {spec!r}")
    return TargetConfig(path=path, levels=names)


class OutputTargets:
    """Table of output descriptors and the streams behind them."""

    def __init__(self, streams: Optional[Dict[int, TextIO]] = None):
        if streams is None:
            streams = {STDOUT: sys.stdout, STDERR: sys.stderr}
        self._streams: Dict[int, TextIO] = dict(streams)
        self._opened: List[TextIO] = []

    def stream(self, target: int) -> Optional[TextIO]:
        """Return the stream for target, or None if it is not registered."""
        return self._streams.get(target)

    def is_open(self, target: int) -> bool:
        """True if target maps to a stream currently open for writing."""
        stream = self._streams.get(target)
        if stream is None or stream.closed:
            return False
        try:
            return stream.writable()
        except ValueError:
            return False

    def is_terminal(self, target: int) -> bool:
        """True if target is attached to a terminal."""
        stream = self._streams.get(target)
        if stream is None or stream.closed:
            return False
        try:
            return stream.isatty()
        except ValueError:
            return False

    def is_console(self, target: int) -> bool:
        """True for the standard descriptors and any terminal target."""
        return target in PRIMARY_TARGETS or self.is_terminal(target)

    def register(self, stream: TextIO) -> int:
        """Add stream under the next free descriptor id and return the id."""
        target = max([STDERR, *self._streams]) + 1
        self._streams[target] = stream
        return target

    def open_file(self, path) -> int:
        """Open path for appending and register it as a new target."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        stream = open(path, 'a', encoding='utf-8')
        self._opened.append(stream)
        return self.register(stream)

    def flush(self) -> None:
        """Flush every open stream."""
        for target in sorted(self._streams):
            if self.is_open(target):
                self._streams[target].flush()

    def close(self) -> None:
        """Close the files this table opened."""
        for stream in self._opened:
            if not stream.closed:
                stream.close()
        self._opened.clear()

    def __contains__(self, target: int) -> bool:
        return target in self._streams

    def __iter__(self):
        return iter(sorted(self._streams))


def format_level_list(registry, targets: OutputTargets,
                      level_filter: str = '', console_filter: str = '') -> str:
    """Format the level registry for display.

    Returns:
        Formatted string listing each level (lowest priority first) with
        its output targets.
    """
    lines = ["Log levels (lowest priority first):"]
    width = max((len(level.name) for level in registry), default=0)
    for level in registry:
        names = []
        for target in level.targets:
            if target == STDOUT:
                names.append('stdout')
            elif target == STDERR:
                names.append('stderr')
            else:
                stream = targets.stream(target)
                names.append(f"{target}:{getattr(stream, 'name', '?')}")
        lines.append(f"  {level.name:<{width}}  -> {', '.join(names) or '(none)'}")
    if level_filter:
        lines.append(f"Level filter: {level_filter}")
    if console_filter:
        lines.append(f"Console filter: {console_filter}")
    return "\n".join(lines)
