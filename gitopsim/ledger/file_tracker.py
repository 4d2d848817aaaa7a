"""Per-file sync status derived from the commit ledger.

The derivation looks only at the most recent local-only commit and the most
recent remote-only commit. It is memoized on the commit tuple itself; since
the ledger swaps in a new tuple on every mutation, a cached result can never
describe a stale ledger.
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING

from gitopsim.models.ledger import Commit, FileStatus

if TYPE_CHECKING:
    from gitopsim.ledger.commit_ledger import CommitLedger


def _latest(commits: tuple[Commit, ...], *, local: bool) -> Commit | None:
    for c in reversed(commits):
        if c.local == local and c.remote != local:
            return c
    return None


@lru_cache(maxsize=64)
def derive_file_statuses(commits: tuple[Commit, ...]) -> dict[str, FileStatus]:
    """Classify every filename ever seen in ``commits``.

    Returns a new dict in first-seen filename order. Callers must not mutate
    it in place (it is shared through the cache); copy first if needed.
    """
    latest_local = _latest(commits, local=True)
    latest_remote = _latest(commits, local=False)
    local_files = set(latest_local.changed_files) if latest_local else set()
    remote_files = set(latest_remote.changed_files) if latest_remote else set()

    statuses: dict[str, FileStatus] = {}
    for c in commits:
        for name in c.changed_files:
            if name in statuses:
                continue
            in_local = name in local_files
            in_remote = name in remote_files
            if in_local and in_remote:
                statuses[name] = FileStatus.BOTH
            elif in_local:
                statuses[name] = FileStatus.LOCAL
            elif in_remote:
                statuses[name] = FileStatus.REMOTE
            else:
                statuses[name] = FileStatus.CLEAN
    return statuses


class FileChangeTracker:
    """Read-only view of file statuses over a live CommitLedger."""

    def __init__(self, ledger: CommitLedger) -> None:
        self._ledger = ledger

    def statuses(self) -> dict[str, FileStatus]:
        return dict(derive_file_statuses(self._ledger.commits))

    def status_of(self, filename: str) -> FileStatus:
        return derive_file_statuses(self._ledger.commits).get(filename, FileStatus.CLEAN)

    @staticmethod
    def cache_info() -> object:
        return derive_file_statuses.cache_info()
