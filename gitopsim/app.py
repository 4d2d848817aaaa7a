"""Application bootstrap for gitopsim.

Wires the engine in dependency order and manages the asyncio lifecycle of
pipeline runs submitted by the rendering layer.
Startup order: config -> logging -> dispatcher -> session

Runs submitted through :meth:`SimulatorApp.submit_feature_deployment`,
:meth:`SimulatorApp.submit_rollback` and
:meth:`SimulatorApp.submit_multi_env_deployment` execute as background
tasks. Shutdown is graceful: an active run is cancelled at its next phase
boundary, a submitted run that has not started yet ends before its first
phase, and tasks still alive after the grace period are cancelled outright.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from typing import TYPE_CHECKING, Any

from gitopsim.config import load_config
from gitopsim.errors import ConcurrentRunRejected
from gitopsim.models.config import SimulatorConfig
from gitopsim.models.pipeline import RunResult
from gitopsim.notifications.manager import StateChangeDispatcher, StateListener
from gitopsim.observability.logging import bind_session, get_logger, setup_logging
from gitopsim.orchestrator.delay import Delay
from gitopsim.session import SimulatorSession

if TYPE_CHECKING:
    import structlog

_SHUTDOWN_GRACE_SECONDS = 15


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class SimulatorApp:
    """Application root. Owns the session and every in-flight run task.

    ``stop()`` is safe to call on an app that was never started or is
    already stopped.
    """

    def __init__(
        self,
        config: SimulatorConfig | None = None,
        delay: Delay | None = None,
        listeners: list[StateListener] | None = None,
    ) -> None:
        self.config = config
        self._delay = delay
        self._listeners = list(listeners or [])
        self._session: SimulatorSession | None = None
        self._dispatcher: StateChangeDispatcher | None = None
        self._background_tasks: list[asyncio.Task[RunResult]] = []
        self._running = False
        self._log: structlog.stdlib.BoundLogger | None = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def session(self) -> SimulatorSession:
        if self._session is None:
            raise RuntimeError("SimulatorApp.start() has not been called")
        return self._session

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> SimulatorSession:
        """Start all components in dependency order.

        Raises _ComponentError if configuration or the session cannot be built.
        """
        # --- 1. Configuration -------------------------------------------
        if self.config is None:
            try:
                self.config = load_config()
            except ValueError as exc:
                raise _ComponentError("config", exc) from exc

        # --- 2. Logging -------------------------------------------------
        setup_logging(self.config.log.level, self.config.log.format)
        self._log = get_logger("app")
        self._log.info("gitopsim starting", version=_gitopsim_version())

        # --- 3. Notification dispatcher ---------------------------------
        self._dispatcher = StateChangeDispatcher(self._listeners)

        # --- 4. Session -------------------------------------------------
        try:
            self._session = SimulatorSession(self.config, delay=self._delay, dispatcher=self._dispatcher)
        except Exception as exc:
            raise _ComponentError("session", exc) from exc
        bind_session(self._session.session_id)

        self._running = True
        self._log.info(
            "gitopsim started",
            activity_capacity=self.config.activity.capacity,
            phase_delay_scale=self.config.orchestrator.phase_delay_scale,
        )
        return self._session

    # ------------------------------------------------------------------
    # Background runs
    # ------------------------------------------------------------------

    def submit_feature_deployment(self) -> asyncio.Task[RunResult]:
        return self._submit("feature-deployment", self.session.run_feature_deployment)

    def submit_rollback(self) -> asyncio.Task[RunResult]:
        return self._submit("rollback", self.session.run_rollback)

    def submit_multi_env_deployment(self) -> asyncio.Task[RunResult]:
        return self._submit("multi-env-deployment", self.session.run_multi_env_deployment)

    def _submit(self, name: str, run: Callable[[], Coroutine[Any, Any, RunResult]]) -> asyncio.Task[RunResult]:
        """Schedule *run* as a tracked background task.

        A request made while a run is already active is refused here, before
        any task is created.
        """
        if not self._running:
            raise RuntimeError("SimulatorApp is not running")
        if self.session.orchestrator.is_running:
            raise ConcurrentRunRejected("busy", f"cannot start {name}: a run is already in progress")
        task = asyncio.create_task(run(), name=f"run-{name}")
        task.add_done_callback(self._on_task_done)
        self._background_tasks.append(task)
        return task

    def _on_task_done(self, task: asyncio.Task[RunResult]) -> None:
        if task in self._background_tasks:
            self._background_tasks.remove(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        log = self._log or get_logger("app")
        if isinstance(exc, ConcurrentRunRejected):
            log.warning("background run rejected", task=task.get_name(), reason=exc.reason)
        else:
            log.error("background run raised an error", task=task.get_name(), error=str(exc))

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Stop every submitted run at its next phase boundary and wait for it to end."""
        if not self._running and self._log is None:
            return

        log = self._log or get_logger("app")
        log.info("gitopsim shutting down")
        self._running = False

        if self._session is not None:
            self._session.orchestrator.request_stop()

        pending = [t for t in self._background_tasks if not t.done()]
        if pending:
            try:
                await asyncio.wait_for(
                    asyncio.gather(*pending, return_exceptions=True),
                    timeout=_SHUTDOWN_GRACE_SECONDS,
                )
            except TimeoutError:
                log.warning("run tasks did not finish in time", timeout=_SHUTDOWN_GRACE_SECONDS)
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)
        self._background_tasks.clear()

        log.info("gitopsim stopped")


def _gitopsim_version() -> str:
    from gitopsim import __version__

    return __version__
