"""gitopsim: commit-ledger reconciliation and rollout orchestration engine.

A deterministic, in-memory simulation behind the Git sync and GitOps
deployment teaching demos. The rendering layer drives it through
:class:`gitopsim.session.SimulatorSession`.
"""

__version__ = "0.3.0"
