"""Activity log data structures."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class LogLevel(StrEnum):
    """Level of an activity log entry."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


@dataclass(frozen=True)
class LogEntry:
    """A single user-facing activity log line."""

    timestamp: datetime
    level: LogLevel
    message: str
