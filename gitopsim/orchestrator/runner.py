"""Single-flight driver for the deployment, rollback and promotion pipelines.

A run walks its phase list strictly in order. For every phase it (1) awaits
the injected delay, (2) honours a pending cancellation, (3) computes the next
state from the current snapshot and commits it in one assignment, and (4)
appends the phase's activity log lines. Suspension happens only in step 1,
so observers never see a half-applied phase.

A second ``run`` while one is active is rejected, never queued.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime

from gitopsim.activity.log import ActivityLog
from gitopsim.errors import ConcurrentRunRejected, PhaseFailed
from gitopsim.models.activity import LogLevel
from gitopsim.models.config import OrchestratorConfig
from gitopsim.models.notifications import ChangeTopic
from gitopsim.models.pipeline import (
    OrchestratorStatus,
    Pipeline,
    PipelineName,
    RunOutcome,
    RunResult,
)
from gitopsim.notifications.manager import StateChangeDispatcher
from gitopsim.observability.logging import get_logger
from gitopsim.orchestrator.delay import AsyncioDelay, Delay
from gitopsim.orchestrator.pipelines import (
    feature_deployment_pipeline,
    multi_env_promotion_pipeline,
    rollback_pipeline,
)
from gitopsim.orchestrator.state import SimulationStore

_logger = get_logger("orchestrator")

_LABELS = {
    PipelineName.FEATURE_DEPLOYMENT: "Feature deployment",
    PipelineName.ROLLBACK: "Rollback",
    PipelineName.MULTI_ENV_DEPLOYMENT: "Multi-environment deployment",
}


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class DeploymentOrchestrator:
    """Runs one pipeline at a time against a SimulationStore.

    Args:
        store:      Owner of cluster, agent, repository and history.
        activity:   Learner-facing log the phases write to.
        config:     Baseline version, feature branch and delay scale.
        delay:      Suspension between phases. Defaults to a real-time
                    AsyncioDelay scaled by ``config.phase_delay_scale``.
        clock:      Timestamp source for phase transitions.
        dispatcher: Optional state-change fan-out.
    """

    def __init__(
        self,
        store: SimulationStore,
        activity: ActivityLog,
        config: OrchestratorConfig | None = None,
        delay: Delay | None = None,
        clock: Callable[[], datetime] = _utcnow,
        dispatcher: StateChangeDispatcher | None = None,
    ) -> None:
        self._store = store
        self._activity = activity
        self._config = config or OrchestratorConfig()
        self._delay: Delay = delay or AsyncioDelay(self._config.phase_delay_scale)
        self._clock = clock
        self._dispatcher = dispatcher

        self._status = OrchestratorStatus.IDLE
        self._active: PipelineName | None = None
        self._cancel = asyncio.Event()
        self._armed_failures: dict[str, str] = {}
        self._stop_requested = False
        self._last_result: RunResult | None = None

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def status(self) -> OrchestratorStatus:
        return self._status

    @property
    def is_running(self) -> bool:
        return self._status is OrchestratorStatus.RUNNING

    @property
    def active_pipeline(self) -> PipelineName | None:
        return self._active

    @property
    def last_result(self) -> RunResult | None:
        return self._last_result

    @property
    def baseline_version(self) -> str:
        return self._config.baseline_version

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def cancel(self) -> bool:
        """Request cancellation of the active run.

        Takes effect at the next phase boundary. Returns False when idle.
        """
        if not self.is_running:
            return False
        self._cancel.set()
        _logger.info("run_cancel_requested", pipeline=str(self._active))
        return True

    def inject_failure(self, phase: str, cause: str = "injected failure") -> None:
        """Arm a one-shot failure for the next run that reaches *phase*."""
        self._armed_failures[phase] = cause

    def request_stop(self) -> None:
        """Refuse to start any further phase until ``reset()``.

        Cancels the active run at its next phase boundary, and a run that
        starts afterwards ends CANCELLED before its first phase.
        """
        self._stop_requested = True
        _logger.info("run_stop_requested", active=str(self._active))
        if self.is_running:
            self._cancel.set()

    def reset(self) -> None:
        """Forget armed failures, a stop request and the last run result. Only valid while idle."""
        self._armed_failures.clear()
        self._stop_requested = False
        self._last_result = None

    async def run_feature_deployment(self) -> RunResult:
        return await self.run(feature_deployment_pipeline(self._config))

    async def run_multi_env_deployment(self) -> RunResult:
        return await self.run(multi_env_promotion_pipeline(self._config))

    async def run_rollback(self) -> RunResult:
        """Roll the cluster back to the baseline version.

        Raises:
            ConcurrentRunRejected: ``busy`` if a run is active, ``at_baseline``
                if the cluster already runs the baseline version.
        """
        if not self.is_running and self._store.state.cluster.current_version == self._config.baseline_version:
            _logger.warning("run_rejected", pipeline=PipelineName.ROLLBACK.value, reason="at_baseline")
            raise ConcurrentRunRejected(
                "at_baseline",
                f"cluster already runs baseline version {self._config.baseline_version}",
            )
        return await self.run(rollback_pipeline(self._config))

    async def run(self, pipeline: Pipeline) -> RunResult:
        """Execute *pipeline* to completion, failure or cancellation.

        Raises:
            ConcurrentRunRejected: if another run is active. Nothing is
                mutated or written to the activity log in that case.
        """
        if self.is_running:
            _logger.warning(
                "run_rejected",
                pipeline=pipeline.name.value,
                reason="busy",
                active=str(self._active),
            )
            raise ConcurrentRunRejected("busy", f"{self._active} run already in progress")

        self._status = OrchestratorStatus.RUNNING
        self._active = pipeline.name
        self._cancel = asyncio.Event()
        if self._stop_requested:
            self._cancel.set()
        started_at = self._clock()
        completed: list[str] = []
        label = _LABELS.get(pipeline.name, pipeline.name.value)
        _logger.info("run_started", pipeline=pipeline.name.value, phases=pipeline.phase_names)
        self._emit(ChangeTopic.ORCHESTRATOR, "run_started", pipeline=pipeline.name.value)

        try:
            if pipeline.opening_logs and not self._cancel.is_set():
                self._activity.extend(pipeline.opening_logs)
                self._emit(ChangeTopic.ACTIVITY, "appended")

            for phase in pipeline.phases:
                interrupted = self._cancel.is_set() or await self._delay(phase.delay_seconds, self._cancel)
                if interrupted or self._cancel.is_set():
                    self._activity.append(LogLevel.WARNING, f"{label} cancelled before {phase.name}")
                    return self._finish(pipeline, RunOutcome.CANCELLED, completed, started_at, failed_phase=phase.name)

                try:
                    cause = self._armed_failures.pop(phase.name, None)
                    if cause is not None:
                        raise PhaseFailed(phase.name, cause)
                    outcome = phase.transition(self._store.state, self._clock())
                except PhaseFailed as exc:
                    self._activity.append(LogLevel.ERROR, f"{label} failed at {phase.name}: {exc.cause or 'error'}")
                    return self._finish(
                        pipeline,
                        RunOutcome.FAILED,
                        completed,
                        started_at,
                        failed_phase=phase.name,
                        error=str(exc),
                    )

                self._store.commit(outcome.state)
                self._activity.extend(outcome.logs)
                completed.append(phase.name)
                _logger.debug("phase_completed", pipeline=pipeline.name.value, phase=phase.name)
                self._emit(ChangeTopic.CLUSTER, "phase_completed", pipeline=pipeline.name.value, phase=phase.name)

            return self._finish(pipeline, RunOutcome.SUCCEEDED, completed, started_at)
        finally:
            self._status = OrchestratorStatus.IDLE
            self._active = None
            self._emit(ChangeTopic.ORCHESTRATOR, "run_finished", pipeline=pipeline.name.value)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _finish(
        self,
        pipeline: Pipeline,
        outcome: RunOutcome,
        completed: list[str],
        started_at: datetime,
        failed_phase: str | None = None,
        error: str | None = None,
    ) -> RunResult:
        result = RunResult(
            pipeline=pipeline.name,
            outcome=outcome,
            completed_phases=tuple(completed),
            failed_phase=failed_phase,
            error=error,
            started_at=started_at,
            finished_at=self._clock(),
        )
        self._last_result = result
        log = _logger.info if outcome is RunOutcome.SUCCEEDED else _logger.warning
        log(
            "run_finished",
            pipeline=pipeline.name.value,
            outcome=outcome.value,
            completed=len(completed),
            failed_phase=failed_phase,
        )
        return result

    def _emit(self, topic: ChangeTopic, action: str, **detail: object) -> None:
        if self._dispatcher is not None:
            self._dispatcher.emit(topic, action, **detail)
