"""In-memory commit ledger with local/remote presence flags.

Every operation replaces the whole commit tuple (copy-on-write); no partial
state is ever observable between calls. Each ledger owns its id counter, so
two ledgers in one process never interfere.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, datetime, timedelta

from gitopsim.errors import InvariantViolation
from gitopsim.models.ledger import Commit, LedgerCounts
from gitopsim.observability.logging import get_logger

_logger = get_logger("ledger")

_ID_WIDTH = 4

_SEED_COMMITS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("init project (v0.1)", ("package.json", "src/index.js")),
    ("add catalog (v0.2)", ("src/catalog.js",)),
    ("cart feature (v0.3)", ("src/cart.js",)),
    ("accounts (v0.4)", ("src/accounts.js", "src/index.js")),
    ("db integration (v0.5)", ("src/db.js", "package.json")),
)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def seed_commits(seeded_at: datetime) -> tuple[Commit, ...]:
    """Build the fully-synced baseline, one hour apart, ending at ``seeded_at``."""
    count = len(_SEED_COMMITS)
    return tuple(
        Commit(
            id=str(i + 1).zfill(_ID_WIDTH),
            message=message,
            author="dev-team",
            timestamp=seeded_at - timedelta(hours=count - 1 - i),
            local=True,
            remote=True,
            changed_files=files,
        )
        for i, (message, files) in enumerate(_SEED_COMMITS)
    )


def compute_counts(commits: Sequence[Commit]) -> LedgerCounts:
    """Count ahead/behind/synced commits; raise if any commit has neither flag."""
    ahead = behind = synced = 0
    for c in commits:
        if c.local and c.remote:
            synced += 1
        elif c.local:
            ahead += 1
        elif c.remote:
            behind += 1
        else:
            raise InvariantViolation(f"commit {c.id} is present neither locally nor remotely")
    return LedgerCounts(ahead=ahead, behind=behind, synced=synced, total=len(commits))


class CommitLedger:
    """Ordered commits with ahead/behind/synced accounting.

    Insertion order equals creation order and is never changed. ``commits``
    always returns the current immutable tuple; callers may hold on to it as
    a snapshot.
    """

    def __init__(
        self,
        seed: Iterable[Commit] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._clock = clock
        self._seed: tuple[Commit, ...] = tuple(seed) if seed is not None else seed_commits(clock())
        compute_counts(self._seed)
        self._commits = self._seed
        self._counter = len(self._seed)

    @property
    def commits(self) -> tuple[Commit, ...]:
        return self._commits

    def counts(self) -> LedgerCounts:
        return compute_counts(self._commits)

    def get(self, commit_id: str) -> Commit:
        """Return the commit with ``commit_id``.

        Raises:
            InvariantViolation: if no such commit exists. Callers only ever
                reference ids the ledger handed out, so a miss is a bug.
        """
        for c in self._commits:
            if c.id == commit_id:
                return c
        raise InvariantViolation(f"unknown commit id: {commit_id!r}")

    def peek_next_id(self) -> str:
        return str(self._counter + 1).zfill(_ID_WIDTH)

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def append_local_commit(self, message: str, files: Iterable[str], author: str = "you") -> Commit:
        """Append a commit that exists only locally (ahead +1)."""
        return self._append(message, files, author, local=True, remote=False)

    def append_remote_commit(self, message: str, files: Iterable[str], author: str = "teammate") -> Commit:
        """Append a commit that exists only on the remote (behind +1)."""
        return self._append(message, files, author, local=False, remote=True)

    def push(self) -> int:
        """Mark every local-only commit as present on the remote.

        Returns the number of commits pushed; 0 means nothing changed and the
        commit tuple is left as the very same object.
        """
        moved = sum(1 for c in self._commits if c.local and not c.remote)
        if moved == 0:
            return 0
        self._replace(
            tuple(dataclasses.replace(c, remote=True) if c.local and not c.remote else c for c in self._commits)
        )
        _logger.debug("ledger_push", pushed=moved)
        return moved

    def pull(self) -> int:
        """Mark every remote-only commit as present locally. Returns the count."""
        moved = sum(1 for c in self._commits if c.remote and not c.local)
        if moved == 0:
            return 0
        self._replace(
            tuple(dataclasses.replace(c, local=True) if c.remote and not c.local else c for c in self._commits)
        )
        _logger.debug("ledger_pull", pulled=moved)
        return moved

    def reset(self) -> None:
        """Restore the seeded baseline and rewind the id counter."""
        self._commits = self._seed
        self._counter = len(self._seed)
        _logger.debug("ledger_reset", total=len(self._seed))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _append(self, message: str, files: Iterable[str], author: str, *, local: bool, remote: bool) -> Commit:
        self._counter += 1
        commit = Commit(
            id=str(self._counter).zfill(_ID_WIDTH),
            message=message,
            author=author,
            timestamp=self._clock(),
            local=local,
            remote=remote,
            changed_files=tuple(files),
        )
        self._replace(self._commits + (commit,))
        _logger.debug("ledger_append", commit_id=commit.id, local=local, remote=remote)
        return commit

    def _replace(self, commits: tuple[Commit, ...]) -> None:
        before = len(self._commits)
        counts = compute_counts(commits)
        if counts.ahead + counts.behind + counts.synced != counts.total or counts.total < before:
            raise InvariantViolation(f"ledger counts inconsistent: {counts}")
        self._commits = commits
