"""
Execution state and critical sections.

Inside a critical section a failing command is escalated from a
recoverable ERROR to the section's level (QUIT or FATAL), which ends the
process. Sections nest; the outermost begin() picks the level and inner
begin() calls only deepen the nesting.

ExecutionState also tracks how many command executors are active. That
count is inherited by child processes through GOLOG_COMMAND_DEPTH: a
parent exports its depth outside the executor that spawned the child, and
the child starts one level deeper. An open critical section is inherited
through GOLOG_CRITICAL_SECTION the same way.
"""

import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Set

from .errors import UsageError
from .levels import EXIT_LEVELS, FATAL

DEPTH_VAR = 'GOLOG_COMMAND_DEPTH'
CRITICAL_VAR = 'GOLOG_CRITICAL_SECTION'


@dataclass
class ExecutionState:
    """Process-wide state threaded through the manager and executor."""
    critical_depth: int = 0
    critical_level: str = FATAL
    nesting_depth: int = 0
    baseline_depth: int = 0
    skipped_targets: Set[int] = field(default_factory=set)

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> 'ExecutionState':
        """Restore the state a parent executor exported to this process."""
        if environ is None:
            environ = os.environ
        state = cls()
        depth = environ.get(DEPTH_VAR, '')
        if depth.isdigit():
            state.baseline_depth = int(depth)
            state.nesting_depth = state.baseline_depth + 1
        level = environ.get(CRITICAL_VAR, '').upper()
        if level in EXIT_LEVELS:
            state.critical_depth = 1
            state.critical_level = level
        return state

    @property
    def nested(self) -> bool:
        """True while output is being captured by an enclosing executor."""
        return self.nesting_depth != 0

    def child_environ(self, outer_depth: int) -> Dict[str, Optional[str]]:
        """Variables to export to a child spawned at outer_depth.

        A value of None means the variable must be removed from the
        child's environment.
        """
        return {
            DEPTH_VAR: str(outer_depth),
            CRITICAL_VAR: self.critical_level if self.critical_depth else None,
        }


class CriticalSectionTracker:
    """Nesting counter for critical sections plus the latched level."""

    def __init__(self, state: ExecutionState, default_level: str = FATAL):
        self.state = state
        self.default_level = default_level

    @property
    def active(self) -> bool:
        return self.state.critical_depth > 0

    @property
    def level(self) -> str:
        return self.state.critical_level

    def begin(self, level: Optional[str] = None) -> None:
        """Open a (possibly nested) critical section.

        Raises:
            UsageError: If level is not QUIT or FATAL
        """
        if level is None:
            level = self.default_level
        name = str(level).upper()
        if name not in EXIT_LEVELS:
            raise UsageError(
                f"Critical section level must be QUIT or FATAL, not {level!r}")
        if self.state.critical_depth == 0:
            self.state.critical_level = name
        self.state.critical_depth += 1

    def end(self) -> None:
        """Close the innermost critical section; extra calls are ignored."""
        if self.state.critical_depth > 0:
            self.state.critical_depth -= 1

    @contextmanager
    def section(self, level: Optional[str] = None):
        """Context manager form of begin()/end()."""
        self.begin(level)
        try:
            yield self
        finally:
            self.end()
