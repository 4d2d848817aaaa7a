"""Injectable, cancellable suspension between pipeline phases.

A delay is an awaitable callable ``delay(seconds, cancelled) -> bool`` that
suspends for the simulated duration and returns True when it was cut short
by the cancellation event. The orchestrator never calls ``asyncio.sleep``
itself, so tests can swap in :class:`VirtualClock` and run every pipeline
without wall-clock waits.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Delay(Protocol):
    async def __call__(self, seconds: float, cancelled: asyncio.Event) -> bool: ...


class AsyncioDelay:
    """Real-time delay scaled by ``scale`` (0 disables waiting entirely)."""

    def __init__(self, scale: float = 1.0) -> None:
        if scale < 0:
            raise ValueError("scale must be >= 0")
        self._scale = scale

    async def __call__(self, seconds: float, cancelled: asyncio.Event) -> bool:
        timeout = seconds * self._scale
        if timeout <= 0:
            # Still yield so that phases remain separate suspension points.
            await asyncio.sleep(0)
            return cancelled.is_set()
        try:
            await asyncio.wait_for(cancelled.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return True


class VirtualClock:
    """Deterministic delay and clock in one.

    Each delay advances simulated time instantly and yields once to the
    event loop. ``now()`` returns the start instant plus all simulated time,
    so timestamps produced during a run are reproducible.
    """

    def __init__(self, start: datetime | None = None) -> None:
        self._start = start or datetime(2025, 1, 1, 9, 0, 0, tzinfo=UTC)
        self._elapsed = 0.0
        self.requested: list[float] = []

    @property
    def elapsed(self) -> float:
        return self._elapsed

    def now(self) -> datetime:
        return self._start + timedelta(seconds=self._elapsed)

    def advance(self, seconds: float) -> None:
        self._elapsed += seconds

    async def __call__(self, seconds: float, cancelled: asyncio.Event) -> bool:
        self.requested.append(seconds)
        self._elapsed += seconds
        await asyncio.sleep(0)
        return cancelled.is_set()
