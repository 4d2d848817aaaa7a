"""Core data structures for gitopsim."""

from gitopsim.models.activity import LogEntry, LogLevel
from gitopsim.models.cluster import (
    AgentStatus,
    ClusterState,
    DeploymentRecord,
    DeploymentStatus,
    GitOpsAgentState,
    GitRepository,
    Pod,
    RepoCommit,
    SimulationState,
)
from gitopsim.models.config import SimulatorConfig
from gitopsim.models.ledger import Commit, FileStatus, LedgerCounts
from gitopsim.models.notifications import ChangeTopic, StateChange
from gitopsim.models.pipeline import (
    OrchestratorStatus,
    Phase,
    PhaseOutcome,
    Pipeline,
    PipelineName,
    RunOutcome,
    RunResult,
)
from gitopsim.models.promotion import (
    CIRun,
    CIRunner,
    CIStatus,
    Environment,
    EnvironmentName,
    PullRequest,
    PullRequestStatus,
)

__all__ = [
    "AgentStatus",
    "CIRun",
    "CIRunner",
    "CIStatus",
    "ChangeTopic",
    "ClusterState",
    "Commit",
    "DeploymentRecord",
    "DeploymentStatus",
    "Environment",
    "EnvironmentName",
    "FileStatus",
    "GitOpsAgentState",
    "GitRepository",
    "LedgerCounts",
    "LogEntry",
    "LogLevel",
    "OrchestratorStatus",
    "Phase",
    "PhaseOutcome",
    "Pipeline",
    "PipelineName",
    "Pod",
    "PullRequest",
    "PullRequestStatus",
    "RepoCommit",
    "RunOutcome",
    "RunResult",
    "SimulationState",
    "SimulatorConfig",
    "StateChange",
]
