"""Simulated cluster, GitOps agent and repository data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from gitopsim.models.promotion import CIRunner, Environment, PullRequest


class AgentStatus(StrEnum):
    """Status of the simulated GitOps agent."""

    WATCHING = "watching"
    SYNCING = "syncing"
    SYNCED = "synced"


class DeploymentStatus(StrEnum):
    """Outcome recorded in a DeploymentRecord."""

    SUCCESS = "success"
    ROLLBACK = "rollback"


@dataclass(frozen=True)
class Pod:
    """A simulated pod."""

    name: str
    status: str
    version: str


@dataclass(frozen=True)
class ClusterState:
    """Simulated deployment target.

    Pods are replaced wholesale on every version transition; no progressive
    rollout is modelled.
    """

    status: str
    pods: tuple[Pod, ...]
    services: tuple[str, ...]
    current_version: str


@dataclass(frozen=True)
class GitOpsAgentState:
    """Simulated watcher/syncer."""

    status: AgentStatus
    last_sync: datetime | None
    auto_sync: bool = True


@dataclass(frozen=True)
class RepoCommit:
    """A commit in the GitOps demo repository (newest-first)."""

    id: str
    message: str
    author: str
    timestamp: datetime


@dataclass(frozen=True)
class GitRepository:
    """The repository the GitOps agent watches."""

    branches: tuple[str, ...]
    current_branch: str
    commits: tuple[RepoCommit, ...]
    has_changes: bool = False
    pull_request: PullRequest | None = None

    @property
    def head(self) -> RepoCommit:
        return self.commits[0]


@dataclass(frozen=True)
class DeploymentRecord:
    """Immutable history entry describing the outcome of one run."""

    version: str
    timestamp: datetime
    status: DeploymentStatus
    commit_id: str


@dataclass(frozen=True)
class SimulationState:
    """Everything the orchestrator owns, committed as one value."""

    repository: GitRepository
    cluster: ClusterState
    agent: GitOpsAgentState
    history: tuple[DeploymentRecord, ...] = field(default_factory=tuple)
    environments: tuple[Environment, ...] = ()
    ci: CIRunner = field(default_factory=CIRunner)
