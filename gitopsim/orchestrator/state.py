"""Owner of the orchestrator-managed simulation state.

Holds one immutable :class:`SimulationState`; ``commit`` swaps in a new value
atomically. Only the orchestrator commits during a run; the session commits
only on reset.
"""

from __future__ import annotations

from gitopsim.models.cluster import SimulationState


class SimulationStore:
    def __init__(self, baseline: SimulationState) -> None:
        self._baseline = baseline
        self._state = baseline

    @property
    def state(self) -> SimulationState:
        return self._state

    @property
    def baseline(self) -> SimulationState:
        return self._baseline

    def commit(self, state: SimulationState) -> None:
        if len(state.history) < len(self._state.history):
            raise ValueError("deployment history may only grow")
        self._state = state

    def reset(self) -> None:
        self._state = self._baseline
