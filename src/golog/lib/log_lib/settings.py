"""
Runtime settings for the log manager.

LogSettings is the resolved configuration the manager runs with. The
project config layer (golog.config) builds it from CLI flags, the
environment and config files; this module only knows how each field is
named in the environment so settings can be exported to child
processes.
"""

from dataclasses import dataclass, fields
from typing import Dict, Optional

# Field name -> environment variable
ENV_VARS = {
    'timestamp_format': 'GOLOG_TIMESTAMP_FORMAT',
    'level_filter': 'GOLOG_LEVEL_FILTER',
    'console_filter': 'GOLOG_CONSOLE_FILTER',
    'formatting': 'GOLOG_FORMATTING',
    'dry_run': 'GOLOG_DRY_RUN',
    'critical_section_default': 'GOLOG_CRITICAL_SECTION_DEFAULT',
    'log_file': 'GOLOG_LOG_FILE',
}

BOOLEAN_FIELDS = {'formatting', 'dry_run'}

TRUE_VALUES = {'1', 'true', 'yes', 'on'}


def parse_bool(value) -> bool:
    """Interpret a config or environment value as a boolean."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUE_VALUES


@dataclass
class LogSettings:
    """Resolved log manager configuration."""
    timestamp_format: str = ''
    level_filter: str = 'RUN'
    console_filter: Optional[str] = None
    formatting: bool = False
    dry_run: bool = False
    critical_section_default: str = 'FATAL'
    log_file: Optional[str] = None

    def to_environ(self) -> Dict[str, Optional[str]]:
        """Environment variables that reproduce these settings in a child.

        Unset optional fields map to None (remove from the environment).
        """
        env: Dict[str, Optional[str]] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in BOOLEAN_FIELDS:
                value = 'true' if value else None
            elif value == '':
                value = None
            env[ENV_VARS[f.name]] = value
        return env
