"""Simulated deployment target: cluster, GitOps agent and watched repository.

Submodules:
    transitions -- Pure functions producing new frozen state values.
"""

from gitopsim.cluster.transitions import (
    BASELINE_COMMIT_ID,
    baseline_state,
    next_major_version,
    roll_pods,
)

__all__ = ["BASELINE_COMMIT_ID", "baseline_state", "next_major_version", "roll_pods"]
