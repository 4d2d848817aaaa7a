"""Exception hierarchy for the simulation engine.

SimulatorError         -- Base class for every engine error.
ConcurrentRunRejected  -- A run (or reset) was refused; no state changed.
InvariantViolation     -- Internal consistency broke. Always a bug in the engine.
PhaseFailed            -- A pipeline phase failed; the run stops before mutating.
"""

from __future__ import annotations


class SimulatorError(Exception):
    """Base class for all gitopsim errors."""


class ConcurrentRunRejected(SimulatorError):
    """Raised when the orchestrator refuses a request.

    ``reason`` is one of ``busy`` (a run is already active), ``at_baseline``
    (rollback requested while the cluster already runs the baseline version)
    or ``reset_while_running``.
    """

    def __init__(self, reason: str, detail: str = "") -> None:
        super().__init__(detail or f"request rejected: {reason}")
        self.reason = reason


class InvariantViolation(SimulatorError):
    """Raised when engine state breaks one of its own invariants."""


class PhaseFailed(SimulatorError):
    """Raised by a phase transition to abort the run without applying it."""

    def __init__(self, phase: str, cause: str = "") -> None:
        super().__init__(f"phase '{phase}' failed" + (f": {cause}" if cause else ""))
        self.phase = phase
        self.cause = cause
