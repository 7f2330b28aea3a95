"""
LogManager: the log level registry's emitter and the engine's context.

One LogManager owns everything a logged command chain needs: the level
registry, the output target table, the resolved settings and the
process-wide ExecutionState (critical sections and executor nesting).
The dispatcher creates it once per process; tests build a fresh one per
case.

Record layout:

    [TIMESTAMP ]LABEL MESSAGE[ (exit status N)]

Routing rules for each target of a level:
    - skipped if the level is below the filter (the console filter
      replaces the global one for stdout, stderr and terminals)
    - skipped if the target is suppressed while nested (log files that
      an enclosing executor already relays into)
    - written verbatim with a trailing RESET on terminals or when
      formatting is forced, otherwise stripped of escape sequences

ERROR returns its exit status. QUIT and FATAL end the process; FATAL
first writes a stack trace. When running under an executor, both leave a
'fatal' sentinel on stderr so the enclosing executor won't report the
failure a second time.
"""

import sys
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, TextIO

from . import protocol
from .command import CommandExecutor
from .critical import CriticalSectionTracker, ExecutionState
from .errors import UsageError
from .formatting import RESET, parse_status, strip_formatting, timestamp
from .levels import (
    ERROR, ERROR_LEVELS, EXIT_LEVELS, FATAL, KEEP, RUN, LevelRegistry, LogLevel,
)
from .settings import LogSettings
from .targets import PRIMARY_TARGETS, STDERR, OutputTargets, parse_target_spec
from .trace import produce_trace

FALLBACK_LEVEL = 'WARN'


class LogManager:
    """Central coordinator for leveled output and logged commands.

    Usage::

        log = LogManager()
        log.emit('INFO', 'Building', 'project')
        with log.critical_section():
            log.run(['make', 'all'])
        status = log.emit('ERROR', 3, 'Something went wrong')
    """

    def __init__(
        self,
        settings: Optional[LogSettings] = None,
        streams: Optional[Dict[int, TextIO]] = None,
        environ: Optional[Mapping[str, str]] = None,
        clock: Optional[Callable[[], datetime]] = datetime.now,
        self_invocations: Optional[Sequence[Sequence[str]]] = None,
        command_name: str = 'golog',
    ):
        self.settings = settings if settings is not None else LogSettings()
        self.registry = LevelRegistry.with_defaults()
        self.targets = OutputTargets(streams)
        self.state = ExecutionState.from_environ(environ)
        self.critical = CriticalSectionTracker(
            self.state, self.settings.critical_section_default.upper())
        self.executor = CommandExecutor(self)
        self.clock = clock
        # argv prefixes that re-enter this framework (shown as command_name)
        self.self_invocations = [list(p) for p in (self_invocations or [])]
        self.command_name = command_name
        self._filter_index = 0
        self._console_filter_index: Optional[int] = None

        if self.settings.log_file:
            cfg = parse_target_spec(self.settings.log_file, self.registry.names)
            self.add_output_file(cfg.path, cfg.levels)

    # -------------------------------------------------------------------
    # Registry configuration (before the first record)
    # -------------------------------------------------------------------
    def define_level(self, name: str, format_code=KEEP, target=None) -> LogLevel:
        """Add or update a level, checking the target is open for writing."""
        self._check_open(target)
        return self.registry.define(name, format_code, target)

    def add_output_target(self, target: int, levels: Optional[Iterable[str]] = None) -> None:
        """Route the given levels (all levels by default) to target too."""
        self._check_open(target)
        self.registry.add_target(target, levels)

    def add_output_file(self, path, levels: Optional[Iterable[str]] = None) -> int:
        """Append the given levels (all by default) to a log file.

        Returns:
            The descriptor id assigned to the file
        """
        if self.registry.frozen:
            raise UsageError(
                f"Can't add log file {path} after the first message is logged")
        target = self.targets.open_file(path)
        self.registry.add_target(target, levels)
        return target

    def _check_open(self, target) -> None:
        # Type and range errors are reported by the registry
        if isinstance(target, bool) or not isinstance(target, int) or target <= 0:
            return
        if not self.targets.is_open(target):
            raise UsageError(f"Output target {target} is not open for writing")

    def level_index(self, name: str) -> Optional[int]:
        """Priority index of a level, ignoring case."""
        return self.registry.index(str(name).upper())

    def freeze(self) -> None:
        """Lock the registry and resolve filters; runs on the first emit."""
        if self.registry.frozen:
            return
        self.registry.freeze()

        run = self.registry.get(RUN)
        if run is not None:
            self.state.skipped_targets = {
                t for t in run.targets if t not in PRIMARY_TARGETS}

        level_filter = self.settings.level_filter or RUN
        index = self.level_index(level_filter)
        if index is None:
            raise UsageError(f"Unknown log level filter: {level_filter}")
        self._filter_index = index

        if self.settings.console_filter:
            index = self.level_index(self.settings.console_filter)
            if index is None:
                raise UsageError(
                    f"Unknown console log level filter: {self.settings.console_filter}")
            self._console_filter_index = index

    # -------------------------------------------------------------------
    # Emitter
    # -------------------------------------------------------------------
    def emit(self, level_name: str, *args: Any) -> int:
        """Write a record at level_name to each of the level's targets.

        For ERROR, QUIT and FATAL a leading int, integer string or empty
        string is taken as the exit status and noted in the message.

        Returns:
            0 for ordinary levels, the exit status for ERROR, 1 after
            falling back from an unknown level. QUIT and FATAL don't
            return.
        """
        self.freeze()
        level = self.registry.get(level_name)
        if level is None:
            self.emit(ERROR, f"Unknown log level {level_name}; defaulting to {FALLBACK_LEVEL}")
            self.emit(FALLBACK_LEVEL, *args)
            return 1

        parts = [str(arg) for arg in args]
        status = 0
        if level.name in ERROR_LEVELS:
            status = 1
            parsed = parse_status(args[0]) if args else None
            if parsed is not None:
                status = parsed
                parts = parts[1:] + [f"(exit status {status})"]

        index = self.registry.index(level.name)
        record = self._format_record(level, parts)
        for target in level.targets:
            if not self._passes_filter(index, target):
                continue
            if self.suppressed(target, self.state.nesting_depth):
                continue
            self._write_record(level, target, record)

        if level.name in EXIT_LEVELS:
            self.exit(status, report=self.state.nested)
        return status

    def exit(self, status: int, report: bool = False):
        """Flush output and end the process with status.

        Args:
            status: Process exit status
            report: Leave a 'fatal' sentinel on stderr for an enclosing
                executor first
        """
        self.targets.flush()
        if report:
            stderr = self.targets.stream(STDERR)
            if stderr is not None and self.targets.is_open(STDERR):
                protocol.write_sentinel(stderr, protocol.FATAL, status)
        sys.exit(status)

    def suppressed(self, target: int, depth: int) -> bool:
        """True if target must not be written by code running at depth."""
        return depth > 0 and target in self.state.skipped_targets

    def formatting_for(self, target: int) -> bool:
        """True if escape sequences should reach target."""
        return self.settings.formatting or self.targets.is_terminal(target)

    def write_line(self, target: int, text: str) -> None:
        """Write one line to target, stripping formatting if needed."""
        stream = self.targets.stream(target)
        if stream is None or not self.targets.is_open(target):
            return
        if not self.formatting_for(target):
            text = strip_formatting(text)
        text += '\n'
        try:
            stream.write(text)
        except UnicodeEncodeError:
            # Stream can't represent some characters; escape them instead
            encoding = getattr(stream, 'encoding', None) or 'ascii'
            stream.write(text.encode(encoding, 'backslashreplace').decode(encoding))
        stream.flush()

    def timestamp(self) -> str:
        """Current time in the configured format, or '' if disabled."""
        return timestamp(self.settings.timestamp_format, self.clock)

    def _format_record(self, level: LogLevel, parts: List[str]) -> Dict[bool, str]:
        prefix = []
        stamp = self.timestamp()
        if stamp:
            prefix.append(stamp)
        message = ' '.join(parts)
        formatted = ' '.join(prefix + [level.label] + ([message] if message else []))
        plain = ' '.join(prefix + [level.plain_label] + ([message] if message else []))
        return {True: formatted, False: plain}

    def _write_record(self, level: LogLevel, target: int, record: Dict[bool, str]) -> None:
        formatted = self.formatting_for(target)
        text = record[formatted]
        if formatted:
            text += RESET
        self.write_line(target, text)
        if level.name == FATAL:
            # Skip _write_record and emit
            for line in produce_trace(skip_frames=2):
                self.write_line(target, line)

    def _passes_filter(self, index: int, target: int) -> bool:
        threshold = self._filter_index
        if self._console_filter_index is not None and self.targets.is_console(target):
            threshold = self._console_filter_index
        return index >= threshold

    # -------------------------------------------------------------------
    # Critical sections and commands
    # -------------------------------------------------------------------
    def begin_critical_section(self, level: Optional[str] = None) -> None:
        self.critical.begin(level)

    def end_critical_section(self) -> None:
        self.critical.end()

    def critical_section(self, level: Optional[str] = None):
        """Context manager: escalate command failures inside the block."""
        return self.critical.section(level)

    def run(self, args, env: Optional[Mapping[str, str]] = None, cwd=None) -> int:
        """Run a command with logging; see CommandExecutor.run()."""
        return self.executor.run(args, env=env, cwd=cwd)

    def close(self) -> None:
        """Flush all targets and close opened log files."""
        self.targets.flush()
        self.targets.close()


# =============================================================================
# Module-level singleton (owned by the dispatcher)
# =============================================================================

_manager: Optional[LogManager] = None


def init_context(settings: Optional[LogSettings] = None, **kwargs: Any) -> LogManager:
    """Initialize the module-level LogManager.

    Call once at program startup after resolving configuration.

    Args:
        settings: Resolved LogSettings (defaults when None)
        **kwargs: Passed through to LogManager (streams, self_invocations, ...)

    Returns:
        The initialized LogManager instance
    """
    global _manager
    if _manager is not None:
        _manager.close()
    _manager = LogManager(settings=settings, **kwargs)
    return _manager


def get_context() -> LogManager:
    """Get the module-level LogManager, creating a default if needed."""
    global _manager
    if _manager is None:
        _manager = LogManager()
    return _manager
