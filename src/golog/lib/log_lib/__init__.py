"""
log_lib — leveled logging and logged command execution.

A reusable engine providing:
- Priority-ordered level registry with per-level format and targets
- Emitter with global/console filters and escape stripping
- Critical sections that escalate command failures to QUIT/FATAL
- Command executor with live output relay and a sentinel protocol
  that carries "already reported" failures across processes

Public API:
    LogManager          — central coordinator (registry, emitter, executor)
    init_context        — singleton initialization
    get_context         — access singleton
    LogSettings         — resolved configuration
    LevelRegistry       — level catalog
    LogLevel            — level dataclass
    KEEP                — "leave unchanged" marker for define()
    UsageError          — misuse of the registry/tracker/executor
    OutputTargets       — descriptor table
    parse_target_spec   — parse PATH[:LEVEL,...] log file specs
    format_level_list   — registry listing for display
    produce_trace       — stack trace lines for FATAL records
"""

from .errors import UsageError
from .levels import KEEP, DEFAULT_LEVELS, LevelRegistry, LogLevel
from .settings import LogSettings
from .targets import OutputTargets, TargetConfig, parse_target_spec, format_level_list
from .trace import produce_trace
from .manager import LogManager, init_context, get_context

__all__ = [
    'LogManager', 'init_context', 'get_context',
    'LogSettings',
    'LevelRegistry', 'LogLevel', 'KEEP', 'DEFAULT_LEVELS',
    'UsageError',
    'OutputTargets', 'TargetConfig', 'parse_target_spec', 'format_level_list',
    'produce_trace',
]
