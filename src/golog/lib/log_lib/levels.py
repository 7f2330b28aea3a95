"""
Log level registry.

Levels are ordered by priority: a level's index in the registry is its
priority, and a record passes a filter when its index is >= the filter
level's index.

Default levels:
    ←── lower priority ────────────────────────── higher priority ──→
    DEBUG  RUN  INFO  START  FINISH  SUCCESS  WARN  ERROR  QUIT  FATAL

FATAL is always the highest priority level. New levels are inserted
just below it, so existing levels keep their indices and only FATAL
moves up.

The registry can be changed until the first record is emitted. The
manager then freezes it, which computes the padded labels; any change
after that raises UsageError.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional

from .errors import UsageError
from .formatting import format_label, label_width
from .targets import STDERR, STDOUT

FATAL = 'FATAL'
RUN = 'RUN'
QUIT = 'QUIT'
ERROR = 'ERROR'

# Levels that take an exit status as their first argument
ERROR_LEVELS = (ERROR, QUIT, FATAL)

# Levels that end the process once written
EXIT_LEVELS = (QUIT, FATAL)

_BOLD = '\x1b[1m'

# (name, format code, target), lowest priority first
DEFAULT_LEVELS = (
    ('DEBUG',   _BOLD + '\x1b[90m', STDERR),
    ('RUN',     _BOLD + '\x1b[35m', STDOUT),
    ('INFO',    _BOLD + '\x1b[96m', STDOUT),
    ('START',   _BOLD + '\x1b[32m', STDOUT),
    ('FINISH',  _BOLD + '\x1b[32m', STDOUT),
    ('SUCCESS', _BOLD + '\x1b[32m', STDOUT),
    ('WARN',    _BOLD + '\x1b[33m', STDERR),
    ('ERROR',   _BOLD + '\x1b[31m', STDERR),
    ('QUIT',    _BOLD + '\x1b[31m', STDERR),
    ('FATAL',   _BOLD + '\x1b[31m', STDERR),
)

_NAME_PATTERN = re.compile(r'[A-Za-z][A-Za-z0-9_]*')


class _Keep:
    """Marker for 'leave this field as it is' in LevelRegistry.define()."""

    def __repr__(self):
        return 'KEEP'


KEEP = _Keep()


@dataclass
class LogLevel:
    """A named severity with its format code and output targets."""
    name: str
    format_code: str = ''
    targets: List[int] = field(default_factory=list)
    # Computed at freeze
    label: str = ''
    plain_label: str = ''


def _check_target(target) -> None:
    if isinstance(target, bool) or not isinstance(target, int) or target <= 0:
        raise UsageError(f"Output target must be a positive integer: {target!r}")


def _normalize(name) -> str:
    if not isinstance(name, str) or not _NAME_PATTERN.fullmatch(name):
        raise UsageError(f"Invalid log level name: {name!r}")
    return name.upper()


class LevelRegistry:
    """Ordered catalog of log levels, mutable until frozen."""

    def __init__(self, levels: Optional[Iterable[LogLevel]] = None):
        self._levels: List[LogLevel] = list(levels or [])
        self._frozen = False

    @classmethod
    def with_defaults(cls) -> 'LevelRegistry':
        """Build a registry holding the default levels."""
        return cls(LogLevel(name, code, [target])
                   for name, code, target in DEFAULT_LEVELS)

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def names(self) -> List[str]:
        return [level.name for level in self._levels]

    def index(self, name: str) -> Optional[int]:
        """Return the priority index of an (upper-case) level name."""
        for i, level in enumerate(self._levels):
            if level.name == name:
                return i
        return None

    def get(self, name: str) -> Optional[LogLevel]:
        """Look up a level by name, ignoring case."""
        if not isinstance(name, str):
            return None
        i = self.index(name.upper())
        return None if i is None else self._levels[i]

    def define(self, name: str, format_code=KEEP, target=None) -> LogLevel:
        """Add a new level or update an existing one.

        Args:
            name: Level name (stored upper-case)
            format_code: Terminal escape string, or KEEP to leave an
                existing level's format unchanged
            target: Output descriptor; KEEP (or None) leaves an existing
                level's targets unchanged, None on a new level means
                standard output

        Returns:
            The new or updated LogLevel

        Raises:
            UsageError: After freeze, for KEEP on a new level, or for an
                invalid name or target
        """
        self._check_mutable()
        name = _normalize(name)
        if target is not None and target is not KEEP:
            _check_target(target)

        level = self.get(name)
        if level is None:
            if format_code is KEEP or target is KEEP:
                raise UsageError(
                    f"Can't keep the format or target of new log level {name}")
            level = LogLevel(name, format_code,
                             [STDOUT if target is None else target])
            self._insert(level)
            return level

        if format_code is not KEEP:
            level.format_code = format_code
        if target is not None and target is not KEEP:
            level.targets = [target]
        return level

    def add_target(self, target: int, names: Optional[Iterable[str]] = None) -> None:
        """Append target to the named levels (every level if none given).

        Names that aren't registered yet become new levels with an empty
        format code.
        """
        self._check_mutable()
        _check_target(target)
        names = list(names or [])
        if not names:
            levels = list(self._levels)
        else:
            levels = []
            for name in names:
                level = self.get(_normalize(name))
                if level is None:
                    level = LogLevel(name.upper(), '', [])
                    self._insert(level)
                levels.append(level)
        for level in levels:
            if target not in level.targets:
                level.targets.append(target)

    def validate(self) -> None:
        """Raise UsageError if the registry is internally inconsistent."""
        seen = set()
        for level in self._levels:
            if (not isinstance(level.format_code, str)
                    or not isinstance(level.targets, list)
                    or level.name in seen):
                raise UsageError(f"Corrupt log level registry at {level.name!r}")
            for target in level.targets:
                _check_target(target)
            seen.add(level.name)
        if not self._levels or self._levels[-1].name != FATAL:
            raise UsageError("Corrupt log level registry: FATAL must be the "
                             "highest priority level")

    def freeze(self) -> None:
        """Validate and lock the registry, computing padded labels."""
        if self._frozen:
            return
        self.validate()
        width = label_width(self.names)
        for level in self._levels:
            level.label = format_label(level.name, width, level.format_code)
            level.plain_label = format_label(level.name, width)
        self._frozen = True

    def _insert(self, level: LogLevel) -> None:
        fatal = self.index(FATAL)
        if fatal is None:
            self._levels.append(level)
        else:
            self._levels.insert(fatal, level)

    def _check_mutable(self) -> None:
        if self._frozen:
            raise UsageError(
                "Log levels can't be changed after the first message is logged")

    def __iter__(self) -> Iterator[LogLevel]:
        return iter(self._levels)

    def __len__(self) -> int:
        return len(self._levels)

    def __getitem__(self, index: int) -> LogLevel:
        return self._levels[index]
