"""Unit tests for StateChangeDispatcher fan-out."""

from __future__ import annotations

from gitopsim.models.notifications import ChangeTopic, StateChange
from gitopsim.notifications import CallbackListener, StateChangeDispatcher, StateListener


class _Recorder(StateListener):
    def __init__(self, name: str = "recorder") -> None:
        self._name = name
        self.seen: list[StateChange] = []

    @property
    def listener_name(self) -> str:
        return self._name

    def on_change(self, change: StateChange) -> None:
        self.seen.append(change)


class _Exploding(StateListener):
    @property
    def listener_name(self) -> str:
        return "exploding"

    def on_change(self, change: StateChange) -> None:
        raise RuntimeError("boom")


class TestDispatch:
    def test_delivers_to_every_listener(self) -> None:
        a, b = _Recorder("a"), _Recorder("b")
        dispatcher = StateChangeDispatcher([a, b])
        change = dispatcher.emit(ChangeTopic.LEDGER, "push", pushed=2)
        assert a.seen == [change]
        assert b.seen == [change]
        assert change.detail == {"pushed": 2}

    def test_failing_listener_is_isolated(self) -> None:
        recorder = _Recorder()
        dispatcher = StateChangeDispatcher([_Exploding(), recorder])
        dispatcher.emit(ChangeTopic.SESSION, "reset")
        assert dispatcher.failures == 1
        assert len(recorder.seen) == 1

    def test_unsubscribe(self) -> None:
        dispatcher = StateChangeDispatcher()
        recorder = _Recorder()
        unsubscribe = dispatcher.subscribe(recorder)
        assert dispatcher.listener_count == 1
        unsubscribe()
        unsubscribe()
        dispatcher.emit(ChangeTopic.ACTIVITY, "appended")
        assert recorder.seen == []
        assert dispatcher.listener_count == 0


class TestCallbackListener:
    def test_topic_filter(self) -> None:
        seen: list[str] = []
        listener = CallbackListener(lambda c: seen.append(c.action), topics={ChangeTopic.CLUSTER})
        dispatcher = StateChangeDispatcher([listener])
        dispatcher.emit(ChangeTopic.LEDGER, "push")
        dispatcher.emit(ChangeTopic.CLUSTER, "phase_completed")
        assert seen == ["phase_completed"]

    def test_name_defaults_to_callable_name(self) -> None:
        def on_update(change: StateChange) -> None:
            pass

        assert CallbackListener(on_update).listener_name == "on_update"
