"""Bounded, append-only activity log.

The log keeps the most recent ``capacity`` entries; once full, every append
evicts the oldest entry. Display order is newest-first, retention order is
oldest-first.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable
from datetime import UTC, datetime

from gitopsim.models.activity import LogEntry, LogLevel
from gitopsim.observability.logging import get_logger

_logger = get_logger("activity")

SEED_MESSAGES: tuple[str, ...] = (
    "GitOps agent initialized and watching repository",
    "Cluster state synchronized with Git repository",
)

DEFAULT_CAPACITY = 20


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class ActivityLog:
    """Ring buffer of LogEntry values.

    Args:
        capacity: Maximum number of retained entries. Must hold the seed.
        clock:    Timestamp source, injectable for tests.
        seed:     Baseline entries restored by ``reset()``. Defaults to the
                  two agent start-up messages stamped at construction time.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        clock: Callable[[], datetime] = _utcnow,
        seed: Iterable[LogEntry] | None = None,
    ) -> None:
        self._clock = clock
        if seed is None:
            now = clock()
            seed = [LogEntry(timestamp=now, level=LogLevel.INFO, message=m) for m in SEED_MESSAGES]
        self._seed = tuple(seed)
        if capacity < len(self._seed):
            raise ValueError(f"capacity {capacity} cannot hold the {len(self._seed)} seed entries")
        self._capacity = capacity
        self._entries: deque[LogEntry] = deque(self._seed, maxlen=capacity)
        self._evicted = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def evicted(self) -> int:
        """Entries dropped since construction or the last reset."""
        return self._evicted

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, level: LogLevel | str, message: str) -> LogEntry:
        entry = LogEntry(timestamp=self._clock(), level=LogLevel(level), message=message)
        if len(self._entries) == self._capacity:
            self._evicted += 1
        self._entries.append(entry)
        _logger.debug("activity_appended", level=entry.level.value, message=message)
        return entry

    def extend(self, lines: Iterable[tuple[LogLevel, str]]) -> list[LogEntry]:
        return [self.append(level, message) for level, message in lines]

    def entries(self) -> tuple[LogEntry, ...]:
        """Retained entries, oldest first."""
        return tuple(self._entries)

    def newest_first(self) -> tuple[LogEntry, ...]:
        return tuple(reversed(self._entries))

    def reset(self) -> None:
        self._entries = deque(self._seed, maxlen=self._capacity)
        self._evicted = 0
