"""Pipeline, phase and run-result data structures."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from gitopsim.models.activity import LogLevel
from gitopsim.models.cluster import SimulationState


class PipelineName(StrEnum):
    """Named orchestrator pipelines."""

    FEATURE_DEPLOYMENT = "feature-deployment"
    ROLLBACK = "rollback"
    MULTI_ENV_DEPLOYMENT = "multi-env-deployment"


class OrchestratorStatus(StrEnum):
    """Single-flight orchestrator status."""

    IDLE = "idle"
    RUNNING = "running"


class RunOutcome(StrEnum):
    """Terminal outcome of an orchestrator run."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


# A phase transition maps (current state, now) to the next state plus the
# activity log lines describing it.
Transition = Callable[[SimulationState, datetime], "PhaseOutcome"]


@dataclass(frozen=True)
class PhaseOutcome:
    """State produced by a phase and the log lines it emits."""

    state: SimulationState
    logs: tuple[tuple[LogLevel, str], ...] = ()


@dataclass(frozen=True)
class Phase:
    """One ordered step of a pipeline."""

    name: str
    delay_seconds: float
    transition: Transition


@dataclass(frozen=True)
class Pipeline:
    """A fixed, ordered phase list."""

    name: PipelineName
    phases: tuple[Phase, ...]
    opening_logs: tuple[tuple[LogLevel, str], ...] = ()

    @property
    def phase_names(self) -> list[str]:
        return [p.name for p in self.phases]


@dataclass(frozen=True)
class RunResult:
    """Result of one orchestrator run."""

    pipeline: PipelineName
    outcome: RunOutcome
    completed_phases: tuple[str, ...] = ()
    failed_phase: str | None = None
    error: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
