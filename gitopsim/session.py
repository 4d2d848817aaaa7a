"""Simulator session: the engine's single entry point.

One session owns one instance of every component (ledger, activity log,
simulation store, orchestrator, walkthrough) and is the only writer of
each. Ledger actions are synchronous; orchestrator actions are coroutines.
After every mutation the session notifies subscribed listeners.

Push and pull with nothing to move are not errors: they leave the ledger
untouched and add an informational activity entry.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from uuid import uuid4

from gitopsim.activity.log import ActivityLog
from gitopsim.cluster.transitions import baseline_state
from gitopsim.errors import ConcurrentRunRejected
from gitopsim.ledger.commit_ledger import CommitLedger
from gitopsim.ledger.file_tracker import FileChangeTracker
from gitopsim.models.activity import LogEntry, LogLevel
from gitopsim.models.cluster import ClusterState, DeploymentRecord, GitOpsAgentState, GitRepository
from gitopsim.models.config import SimulatorConfig
from gitopsim.models.ledger import Commit, FileStatus, LedgerCounts
from gitopsim.models.notifications import ChangeTopic
from gitopsim.models.pipeline import OrchestratorStatus, RunOutcome, RunResult
from gitopsim.models.promotion import CIRunner, Environment
from gitopsim.notifications.manager import StateChangeDispatcher, StateListener
from gitopsim.observability.logging import get_logger
from gitopsim.orchestrator.delay import Delay
from gitopsim.orchestrator.runner import DeploymentOrchestrator
from gitopsim.orchestrator.state import SimulationStore
from gitopsim.scenarios import Scenario, Walkthrough
from gitopsim.views import SessionSnapshot, snapshot_to_dict

_logger = get_logger("session")

DEFAULT_LOCAL_FILES = ("src/cart.js", "package.json")
DEFAULT_REMOTE_FILES = ("src/catalog.js", "package.json")


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class SimulatorSession:
    """In-memory simulator for the Git sync and GitOps deployment demos.

    Args:
        config:     Simulator configuration; defaults apply when omitted.
        delay:      Phase delay passed to the orchestrator (inject a
                    VirtualClock in tests).
        clock:      Timestamp source for every component.
        dispatcher: State-change fan-out; a private one is created if omitted.
        session_id: Identifier bound to operator logs.
    """

    def __init__(
        self,
        config: SimulatorConfig | None = None,
        *,
        delay: Delay | None = None,
        clock: Callable[[], datetime] = _utcnow,
        dispatcher: StateChangeDispatcher | None = None,
        session_id: str | None = None,
    ) -> None:
        self.config = config or SimulatorConfig()
        self.session_id = session_id or uuid4().hex[:12]
        self._clock = clock
        self._dispatcher = dispatcher or StateChangeDispatcher()

        orch_cfg = self.config.orchestrator
        self._activity = ActivityLog(capacity=self.config.activity.capacity, clock=clock)
        self._ledger = CommitLedger(clock=clock)
        self._files = FileChangeTracker(self._ledger)
        self._store = SimulationStore(baseline_state(clock(), orch_cfg.baseline_version, orch_cfg.replicas))
        self._orchestrator = DeploymentOrchestrator(
            store=self._store,
            activity=self._activity,
            config=orch_cfg,
            delay=delay,
            clock=clock,
            dispatcher=self._dispatcher,
        )
        self._walkthrough = Walkthrough()
        _logger.info("session_created", session_id=self.session_id, baseline=orch_cfg.baseline_version)

    # ------------------------------------------------------------------
    # Ledger actions
    # ------------------------------------------------------------------

    def commit_local(self, message: str | None = None, files: Iterable[str] | None = None) -> Commit | None:
        """Record a local-only commit.

        Returns None (and logs a warning entry) when the branches have
        diverged by more than ``config.ledger.max_divergence`` commits.
        """
        counts = self._ledger.counts()
        divergence = counts.ahead + counts.behind
        if divergence > self.config.ledger.max_divergence:
            self._log(
                LogLevel.WARNING,
                f"Local commit refused: {divergence} commits out of sync, push or pull first",
            )
            _logger.info("commit_local_refused", divergence=divergence)
            return None
        next_id = self._ledger.peek_next_id()
        commit = self._ledger.append_local_commit(
            message or f"local change {next_id}",
            DEFAULT_LOCAL_FILES if files is None else files,
        )
        self._log(LogLevel.INFO, f"Committed locally: {commit.message} ({commit.id})")
        self._emit_ledger("commit_local", commit_id=commit.id)
        return commit

    def simulate_remote_push(self, message: str | None = None, files: Iterable[str] | None = None) -> Commit:
        """Record a commit a teammate pushed to the remote."""
        next_id = self._ledger.peek_next_id()
        commit = self._ledger.append_remote_commit(
            message or f"remote change {next_id}",
            DEFAULT_REMOTE_FILES if files is None else files,
        )
        self._log(LogLevel.WARNING, f"Teammate pushed to origin: {commit.message} ({commit.id})")
        self._emit_ledger("remote_push", commit_id=commit.id)
        return commit

    def push(self) -> int:
        pushed = self._ledger.push()
        if pushed == 0:
            self._log(LogLevel.INFO, "Nothing to push: origin already has every local commit")
            return 0
        self._log(LogLevel.SUCCESS, f"Pushed {pushed} commit(s) to origin")
        self._emit_ledger("push", count=pushed)
        return pushed

    def pull(self) -> int:
        pulled = self._ledger.pull()
        if pulled == 0:
            self._log(LogLevel.INFO, "Nothing to pull: local branch is up to date")
            return 0
        self._log(LogLevel.SUCCESS, f"Pulled {pulled} commit(s) from origin")
        self._emit_ledger("pull", count=pulled)
        return pulled

    def reset(self) -> None:
        """Restore every component to its seeded baseline.

        Raises:
            ConcurrentRunRejected: if a pipeline run is in progress.
        """
        if self._orchestrator.is_running:
            _logger.warning("reset_rejected", reason="reset_while_running")
            raise ConcurrentRunRejected("reset_while_running", "cannot reset while a run is in progress")
        self._ledger.reset()
        self._activity.reset()
        self._store.reset()
        self._walkthrough.reset()
        self._orchestrator.reset()
        _logger.info("session_reset", session_id=self.session_id)
        self._dispatcher.emit(ChangeTopic.SESSION, "reset")

    # ------------------------------------------------------------------
    # Orchestrator actions
    # ------------------------------------------------------------------

    async def run_feature_deployment(self) -> RunResult:
        result = await self._orchestrator.run_feature_deployment()
        if result.outcome is RunOutcome.SUCCEEDED:
            self._walkthrough.complete()
        return result

    async def run_rollback(self) -> RunResult:
        return await self._orchestrator.run_rollback()

    async def run_multi_env_deployment(self) -> RunResult:
        return await self._orchestrator.run_multi_env_deployment()

    def cancel_run(self) -> bool:
        return self._orchestrator.cancel()

    def select_scenario(self, scenario_id: str) -> Scenario:
        scenario = self._walkthrough.select(scenario_id)
        self._dispatcher.emit(ChangeTopic.SESSION, "scenario_selected", scenario=scenario.id)
        return scenario

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        return self._dispatcher.subscribe(listener)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def orchestrator(self) -> DeploymentOrchestrator:
        return self._orchestrator

    @property
    def cluster(self) -> ClusterState:
        return self._store.state.cluster

    @property
    def agent(self) -> GitOpsAgentState:
        return self._store.state.agent

    @property
    def repository(self) -> GitRepository:
        return self._store.state.repository

    @property
    def history(self) -> tuple[DeploymentRecord, ...]:
        return self._store.state.history

    @property
    def environments(self) -> tuple[Environment, ...]:
        return self._store.state.environments

    @property
    def ci(self) -> CIRunner:
        return self._store.state.ci

    @property
    def walkthrough(self) -> Walkthrough:
        return self._walkthrough

    def commits(self) -> tuple[Commit, ...]:
        return self._ledger.commits

    def ledger_counts(self) -> LedgerCounts:
        return self._ledger.counts()

    def file_statuses(self) -> dict[str, FileStatus]:
        return self._files.statuses()

    def activity(self) -> tuple[LogEntry, ...]:
        """Activity entries, newest first."""
        return self._activity.newest_first()

    def snapshot(self) -> SessionSnapshot:
        state = self._store.state
        return SessionSnapshot(
            session_id=self.session_id,
            commits=self._ledger.commits,
            counts=self._ledger.counts(),
            file_statuses=self._files.statuses(),
            cluster=state.cluster,
            agent=state.agent,
            repository=state.repository,
            history=state.history,
            environments=state.environments,
            ci=state.ci,
            activity=self._activity.newest_first(),
            orchestrator_status=self._orchestrator.status,
            active_pipeline=self._orchestrator.active_pipeline,
            last_result=self._orchestrator.last_result,
            current_step=self._walkthrough.current_step,
            selected_scenario=self._walkthrough.selected_scenario.id if self._walkthrough.selected_scenario else None,
        )

    def snapshot_to_dict(self) -> dict[str, object]:
        return snapshot_to_dict(self.snapshot())

    @property
    def is_idle(self) -> bool:
        return self._orchestrator.status is OrchestratorStatus.IDLE

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _log(self, level: LogLevel, message: str) -> None:
        self._activity.append(level, message)
        self._dispatcher.emit(ChangeTopic.ACTIVITY, "appended")

    def _emit_ledger(self, action: str, **detail: object) -> None:
        self._dispatcher.emit(ChangeTopic.LEDGER, action, **detail)
