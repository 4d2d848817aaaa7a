"""State-change notification data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum


class ChangeTopic(StrEnum):
    """Which part of the session changed."""

    LEDGER = "ledger"
    CLUSTER = "cluster"
    ACTIVITY = "activity"
    ORCHESTRATOR = "orchestrator"
    SESSION = "session"


@dataclass(frozen=True)
class StateChange:
    """Emitted after every committed mutation, consumed by the rendering layer."""

    topic: ChangeTopic
    action: str
    at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    detail: dict[str, object] = field(default_factory=dict)
