"""Commit ledger data structures."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class FileStatus(StrEnum):
    """Derived sync status of a single file."""

    BOTH = "both"
    LOCAL = "local"
    REMOTE = "remote"
    CLEAN = "clean"


@dataclass(frozen=True)
class Commit:
    """One entry in the commit ledger.

    Immutable: flag changes produce a new Commit inside a new ledger tuple.
    """

    id: str
    message: str
    author: str
    timestamp: datetime
    local: bool
    remote: bool
    changed_files: tuple[str, ...] = ()

    @property
    def state(self) -> str:
        """Display state: ``synced``, ``local-only`` or ``remote-only``."""
        if self.local and self.remote:
            return "synced"
        return "local-only" if self.local else "remote-only"


@dataclass(frozen=True)
class LedgerCounts:
    """Ahead/behind/synced counts of a ledger."""

    ahead: int
    behind: int
    synced: int
    total: int
