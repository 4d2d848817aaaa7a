"""Commit ledger for gitopsim.

Models the divergence between a local branch and its remote as an ordered
list of commits with presence flags.

Submodules:
    commit_ledger -- Copy-on-write ledger with per-instance id counter.
    file_tracker  -- Memoized per-file status derivation.
"""

from gitopsim.ledger.commit_ledger import CommitLedger, compute_counts, seed_commits
from gitopsim.ledger.file_tracker import FileChangeTracker, derive_file_statuses

__all__ = [
    "CommitLedger",
    "FileChangeTracker",
    "compute_counts",
    "derive_file_statuses",
    "seed_commits",
]
