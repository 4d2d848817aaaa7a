"""State-change fan-out for gitopsim.

StateListener        -- ABC every subscriber implements.
CallbackListener     -- Adapts a plain callable into a StateListener.
StateChangeDispatcher -- Delivers each StateChange to all listeners;
                         a failing listener never blocks the others or
                         the engine mutation that triggered it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

import structlog

from gitopsim.models.notifications import ChangeTopic, StateChange

_log = structlog.get_logger(component="notifications.manager")


class StateListener(ABC):
    """Abstract base class for all state-change subscribers.

    ``on_change`` runs synchronously on the event loop thread, right after
    the mutation is committed. It should be quick and should not raise;
    exceptions are caught and logged by the dispatcher.
    """

    @property
    @abstractmethod
    def listener_name(self) -> str:
        """Identifier used in logs."""

    @abstractmethod
    def on_change(self, change: StateChange) -> None:
        """React to *change*."""


class CallbackListener(StateListener):
    """Wraps ``callback(change)``, optionally filtered to a set of topics."""

    def __init__(
        self,
        callback: Callable[[StateChange], None],
        topics: set[ChangeTopic] | None = None,
        name: str = "",
    ) -> None:
        self._callback = callback
        self._topics = topics
        self._name = name or getattr(callback, "__name__", "callback")

    @property
    def listener_name(self) -> str:
        return self._name

    def on_change(self, change: StateChange) -> None:
        if self._topics is not None and change.topic not in self._topics:
            return
        self._callback(change)


class StateChangeDispatcher:
    """Synchronous fan-out to every subscribed listener.

    * Never raises: listener exceptions are logged and counted.
    * Preserves delivery order: listeners see changes in commit order.
    """

    def __init__(self, listeners: list[StateListener] | None = None) -> None:
        self._listeners: list[StateListener] = list(listeners or [])
        self._failures = 0

    @property
    def failures(self) -> int:
        return self._failures

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Add *listener*; returns a callable that unsubscribes it."""
        self._listeners.append(listener)
        _log.debug("listener_subscribed", listener=listener.listener_name)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def emit(self, topic: ChangeTopic, action: str, **detail: object) -> StateChange:
        change = StateChange(topic=topic, action=action, detail=detail)
        self.dispatch(change)
        return change

    def dispatch(self, change: StateChange) -> None:
        # Iterate over a copy so a listener may unsubscribe itself.
        for listener in list(self._listeners):
            try:
                listener.on_change(change)
            except Exception as exc:  # noqa: BLE001
                self._failures += 1
                _log.error(
                    "state_listener_unexpected_error",
                    listener=listener.listener_name,
                    topic=change.topic.value,
                    action=change.action,
                    error=str(exc),
                )
