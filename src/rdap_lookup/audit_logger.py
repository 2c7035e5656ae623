"""
Structured logger for the RDAP lookup tool.

Provides leveled logging with dual-format output (JSON and human-readable
text) to stderr, so log lines never mix with documents printed to stdout.
Values under sensitive keys, such as an Authorization header in a logged
request, are masked.
"""

import json
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, TextIO

from rdap_lookup.config import LOG_OUTPUT_FORMATS
from rdap_lookup.enums import LogLevel


# Ordering used for the minimum-level filter
LEVEL_ORDER = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARN: 2,
    LogLevel.ERROR: 3,
}


@dataclass
class LogEntry:
    """Represents a single log entry with all metadata."""

    timestamp: str
    level: LogLevel
    component: str
    message: str
    data: dict = field(default_factory=dict)


class AuditLogger:
    """
    Leveled logger with dual-format output.

    Supports:
    - JSON and human-readable text output formats
    - A minimum level below which entries are dropped
    - Automatic masking of sensitive data (tokens, authorization headers)
    """

    # Keys that should be masked in log output
    SENSITIVE_KEYS = frozenset({
        'token', 'secret', 'password', 'api_key', 'auth', 'authorization',
        'cookie', 'credential', 'credentials', 'access_token',
    })

    MASK_VALUE = "***MASKED***"

    def __init__(
        self,
        output_format: str = "text",
        output_stream: Optional[TextIO] = None,
        min_level: LogLevel = LogLevel.WARN,
    ):
        """
        Initialize the logger.

        Args:
            output_format: Output format - 'json', 'text', or 'both'
            output_stream: Output stream for log entries (defaults to sys.stderr)
            min_level: Entries below this level are discarded
        """
        if output_format not in LOG_OUTPUT_FORMATS:
            raise ValueError(f"Invalid output_format: {output_format}")

        self._output_format = output_format
        self._output_stream = output_stream
        self._min_level = min_level
        self._entries: list[LogEntry] = []  # Store entries for testing

    @classmethod
    def from_config(cls, level: str, output_format: str = "text") -> "AuditLogger":
        """
        Build a logger from configuration strings.

        Unknown level names fall back to 'warn'.
        """
        try:
            min_level = LogLevel(level.lower())
        except ValueError:
            min_level = LogLevel.WARN
        return cls(output_format=output_format, min_level=min_level)

    @property
    def output_format(self) -> str:
        """Get the current output format."""
        return self._output_format

    @property
    def min_level(self) -> LogLevel:
        return self._min_level

    @property
    def entries(self) -> list[LogEntry]:
        """Get all logged entries (for testing)."""
        return self._entries.copy()

    def is_enabled_for(self, level: LogLevel) -> bool:
        return LEVEL_ORDER[level] >= LEVEL_ORDER[self._min_level]

    def log(
        self,
        level: LogLevel,
        component: str,
        message: str,
        data: Optional[dict] = None,
    ) -> Optional[LogEntry]:
        """
        Log an entry in the configured format(s).

        Args:
            level: Log severity level
            component: Component name generating the log
            message: Human-readable log message
            data: Optional additional data to include

        Returns:
            The created LogEntry, or None if the level is filtered out
        """
        if not self.is_enabled_for(level):
            return None

        entry = LogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            level=level,
            component=component,
            message=message,
            data=self.mask_sensitive_data(data or {}),
        )

        self._entries.append(entry)
        self._output_entry(entry)

        return entry

    def debug(self, component: str, message: str, data: Optional[dict] = None) -> None:
        self.log(LogLevel.DEBUG, component, message, data)

    def info(self, component: str, message: str, data: Optional[dict] = None) -> None:
        self.log(LogLevel.INFO, component, message, data)

    def warn(self, component: str, message: str, data: Optional[dict] = None) -> None:
        self.log(LogLevel.WARN, component, message, data)

    def mask_sensitive_data(self, data: dict) -> dict:
        """Copy of ``data`` with values under sensitive keys replaced, at any depth."""
        if not isinstance(data, dict):
            return data
        return {key: self._mask_item(key, value) for key, value in data.items()}

    def _mask_item(self, key: Any, value: Any) -> Any:
        lowered = str(key).lower()
        if any(sensitive in lowered for sensitive in self.SENSITIVE_KEYS):
            return self.MASK_VALUE
        if isinstance(value, dict):
            return self.mask_sensitive_data(value)
        if isinstance(value, (list, tuple)):
            return [self.mask_sensitive_data(item) for item in value]
        return value

    def _output_entry(self, entry: LogEntry) -> None:
        # Resolve stderr lazily so test capture of sys.stderr works
        stream = self._output_stream or sys.stderr
        lines = []
        if self._output_format in ("json", "both"):
            lines.append(self._format_json(entry))
        if self._output_format in ("text", "both"):
            lines.append(self._format_text(entry))
        stream.write("".join(line + "\n" for line in lines))
        stream.flush()

    @staticmethod
    def _dump(value: Any) -> str:
        return json.dumps(value, ensure_ascii=False, default=str)

    def _format_json(self, entry: LogEntry) -> str:
        return self._dump({
            "timestamp": entry.timestamp,
            "level": entry.level.value,
            "component": entry.component,
            "message": entry.message,
            "data": entry.data,
        })

    def _format_text(self, entry: LogEntry) -> str:
        # [TIMESTAMP] LEVEL [COMPONENT] MESSAGE {data}
        line = f"[{entry.timestamp}] {entry.level.value.upper()} [{entry.component}] {entry.message}"
        if entry.data:
            line += " " + self._dump(entry.data)
        return line
