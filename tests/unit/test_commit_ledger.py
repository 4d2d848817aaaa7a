"""Unit tests for CommitLedger.

Covers seeding, local/remote appends, push/pull, reset, copy-on-write
snapshots, per-instance id counters and the ahead/behind/synced invariant.
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from gitopsim.errors import InvariantViolation
from gitopsim.ledger.commit_ledger import CommitLedger, compute_counts, seed_commits
from gitopsim.models.ledger import Commit

_TS = datetime(2025, 3, 1, 12, 0, 0, tzinfo=UTC)


def _ledger() -> CommitLedger:
    return CommitLedger(clock=lambda: _TS)


# ---------------------------------------------------------------------------
# Seed
# ---------------------------------------------------------------------------


class TestSeed:
    def test_seed_has_five_synced_commits(self) -> None:
        ledger = _ledger()
        counts = ledger.counts()
        assert (counts.ahead, counts.behind, counts.synced, counts.total) == (0, 0, 5, 5)

    def test_seed_ids_are_zero_padded_and_ordered(self) -> None:
        ledger = _ledger()
        assert [c.id for c in ledger.commits] == ["0001", "0002", "0003", "0004", "0005"]
        assert ledger.commits[0].message == "init project (v0.1)"
        assert ledger.commits[-1].message == "db integration (v0.5)"

    def test_seed_timestamps_increase(self) -> None:
        commits = seed_commits(_TS)
        stamps = [c.timestamp for c in commits]
        assert stamps == sorted(stamps)
        assert stamps[-1] == _TS

    def test_commit_with_no_presence_flag_is_rejected(self) -> None:
        orphan = Commit(id="0001", message="x", author="a", timestamp=_TS, local=False, remote=False)
        with pytest.raises(InvariantViolation):
            CommitLedger(seed=[orphan])


# ---------------------------------------------------------------------------
# Appends
# ---------------------------------------------------------------------------


class TestAppend:
    def test_local_commit_increases_ahead_by_one(self) -> None:
        ledger = _ledger()
        commit = ledger.append_local_commit("wip", ["a.js"])
        counts = ledger.counts()
        assert counts.ahead == 1
        assert counts.total == 6
        assert commit.local is True
        assert commit.remote is False
        assert commit.id == "0006"
        assert commit.changed_files == ("a.js",)

    def test_remote_commit_increases_behind_by_one(self) -> None:
        ledger = _ledger()
        commit = ledger.append_remote_commit("theirs", ["b.js"])
        counts = ledger.counts()
        assert counts.behind == 1
        assert counts.total == 6
        assert (commit.local, commit.remote) == (False, True)

    def test_ids_are_monotonic_across_both_sides(self) -> None:
        ledger = _ledger()
        a = ledger.append_local_commit("a", [])
        b = ledger.append_remote_commit("b", [])
        c = ledger.append_local_commit("c", [])
        assert [a.id, b.id, c.id] == ["0006", "0007", "0008"]

    def test_peek_next_id_does_not_consume(self) -> None:
        ledger = _ledger()
        assert ledger.peek_next_id() == "0006"
        assert ledger.peek_next_id() == "0006"
        assert ledger.append_local_commit("a", []).id == "0006"

    def test_ledgers_have_independent_counters(self) -> None:
        first = _ledger()
        second = _ledger()
        first.append_local_commit("a", [])
        first.append_local_commit("b", [])
        assert second.append_local_commit("c", []).id == "0006"


# ---------------------------------------------------------------------------
# Push / pull
# ---------------------------------------------------------------------------


class TestPushPull:
    def test_push_marks_local_only_commits_remote(self) -> None:
        ledger = _ledger()
        ledger.append_local_commit("a", [])
        ledger.append_local_commit("b", [])
        assert ledger.push() == 2
        counts = ledger.counts()
        assert counts.ahead == 0
        assert counts.synced == 7

    def test_push_preserves_order(self) -> None:
        ledger = _ledger()
        ledger.append_local_commit("a", [])
        ledger.append_remote_commit("r", [])
        ledger.append_local_commit("b", [])
        ids_before = [c.id for c in ledger.commits]
        ledger.push()
        assert [c.id for c in ledger.commits] == ids_before
        assert ledger.get("0007").local is False

    def test_push_with_nothing_ahead_is_identity(self) -> None:
        ledger = _ledger()
        before = ledger.commits
        assert ledger.push() == 0
        assert ledger.commits is before

    def test_pull_marks_remote_only_commits_local(self) -> None:
        ledger = _ledger()
        ledger.append_remote_commit("r", [])
        assert ledger.pull() == 1
        assert ledger.counts().behind == 0
        assert ledger.counts().synced == 6

    def test_pull_with_nothing_behind_is_identity(self) -> None:
        ledger = _ledger()
        ledger.append_local_commit("a", [])
        before = ledger.commits
        assert ledger.pull() == 0
        assert ledger.commits is before

    def test_push_does_not_touch_earlier_snapshot(self) -> None:
        ledger = _ledger()
        ledger.append_local_commit("a", [])
        snapshot = ledger.commits
        ledger.push()
        assert snapshot[-1].remote is False
        assert ledger.commits[-1].remote is True


# ---------------------------------------------------------------------------
# Reset and lookup
# ---------------------------------------------------------------------------


class TestResetAndLookup:
    def test_reset_restores_seed_and_counter(self) -> None:
        ledger = _ledger()
        seed = ledger.commits
        ledger.append_local_commit("a", [])
        ledger.append_remote_commit("b", [])
        ledger.reset()
        assert ledger.commits == seed
        assert ledger.append_local_commit("c", []).id == "0006"

    def test_get_returns_commit(self) -> None:
        ledger = _ledger()
        assert ledger.get("0003").message == "cart feature (v0.3)"

    def test_get_unknown_id_fails_fast(self) -> None:
        ledger = _ledger()
        with pytest.raises(InvariantViolation):
            ledger.get("9999")


# ---------------------------------------------------------------------------
# Invariant under arbitrary operation sequences
# ---------------------------------------------------------------------------

_OPS = st.lists(st.sampled_from(["local", "remote", "push", "pull"]), max_size=40)


class TestInvariantProperty:
    @given(ops=_OPS)
    @settings(max_examples=150, deadline=None)
    def test_counts_always_sum_to_total(self, ops: list[str]) -> None:
        ledger = _ledger()
        expected_total = 5
        for op in ops:
            before = ledger.counts()
            if op == "local":
                ledger.append_local_commit("l", ["f"])
                expected_total += 1
                assert ledger.counts().ahead == before.ahead + 1
            elif op == "remote":
                ledger.append_remote_commit("r", ["g"])
                expected_total += 1
                assert ledger.counts().behind == before.behind + 1
            elif op == "push":
                ledger.push()
                assert ledger.counts().ahead == 0
                assert ledger.counts().behind == before.behind
            else:
                ledger.pull()
                assert ledger.counts().behind == 0
                assert ledger.counts().ahead == before.ahead
            counts = compute_counts(ledger.commits)
            assert counts.ahead + counts.behind + counts.synced == counts.total == expected_total
