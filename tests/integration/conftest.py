"""Shared fixtures for gitopsim integration tests.

Provides sessions wired to a VirtualClock so pipelines run to completion
without wall-clock waits, plus a gated delay that parks a run at a chosen
phase so tests can act while it is in flight.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest

from gitopsim.models.config import LedgerConfig, SimulatorConfig
from gitopsim.models.notifications import StateChange
from gitopsim.notifications import CallbackListener
from gitopsim.orchestrator.delay import Delay, VirtualClock
from gitopsim.session import SimulatorSession

# ---------------------------------------------------------------------------
# Delays
# ---------------------------------------------------------------------------


class GatedDelay:
    """Delay that blocks from the ``block_at``-th phase until released.

    Earlier phases pass after a single event-loop yield. ``blocked`` is set
    once a phase is parked; ``release()`` lets it and every later phase
    through. A cancellation also unparks the waiting phase.
    """

    def __init__(self, block_at: int = 0) -> None:
        self.block_at = block_at
        self.calls = 0
        self.blocked = asyncio.Event()
        self._gate = asyncio.Event()

    def release(self) -> None:
        self._gate.set()

    async def __call__(self, seconds: float, cancelled: asyncio.Event) -> bool:
        index = self.calls
        self.calls += 1
        if index < self.block_at or self._gate.is_set():
            await asyncio.sleep(0)
            return cancelled.is_set()

        self.blocked.set()
        waiters = {
            asyncio.ensure_future(self._gate.wait()),
            asyncio.ensure_future(cancelled.wait()),
        }
        _, pending = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        for waiter in pending:
            waiter.cancel()
        return cancelled.is_set()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock()


@pytest.fixture
def session(clock: VirtualClock) -> SimulatorSession:
    """Session whose delays and timestamps both come from ``clock``."""
    return SimulatorSession(delay=clock, clock=clock.now, session_id="test-session")


@pytest.fixture
def gate() -> GatedDelay:
    return GatedDelay()


@pytest.fixture
def make_session(clock: VirtualClock) -> Callable[..., SimulatorSession]:
    """Factory for sessions with a custom delay or divergence limit."""

    def _make(delay: Delay | None = None, max_divergence: int = 20) -> SimulatorSession:
        config = SimulatorConfig(ledger=LedgerConfig(max_divergence=max_divergence))
        return SimulatorSession(config, delay=delay or clock, clock=clock.now, session_id="test-session")

    return _make


@pytest.fixture
def recorded_changes(session: SimulatorSession) -> list[StateChange]:
    """Every StateChange emitted by ``session`` after subscription."""
    changes: list[StateChange] = []
    session.subscribe(CallbackListener(changes.append, name="recorder"))
    return changes
