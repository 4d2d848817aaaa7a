"""Multi-environment promotion data structures.

Staging and production environments, the CI runner that deploys to them,
and the pull request that starts a promotion.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class EnvironmentName(StrEnum):
    """Promotion targets, in promotion order."""

    STAGING = "staging"
    PRODUCTION = "production"


class CIStatus(StrEnum):
    """Status of the simulated CI runner."""

    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    WAITING_APPROVAL = "waiting_approval"


class PullRequestStatus(StrEnum):
    OPEN = "open"
    MERGED = "merged"


@dataclass(frozen=True)
class Environment:
    """One deployment environment."""

    name: EnvironmentName
    status: str
    version: str
    url: str
    last_deployed: datetime
    requires_approval: bool = False


@dataclass(frozen=True)
class CIRun:
    """One workflow run on the CI runner."""

    id: int
    workflow: str
    status: CIStatus


@dataclass(frozen=True)
class CIRunner:
    """Simulated CI service. ``current_job`` is None while no job executes."""

    status: CIStatus = CIStatus.IDLE
    workflows: tuple[str, ...] = ("ci.yml", "deploy-staging.yml", "deploy-production.yml")
    current_job: str | None = None
    last_run: CIRun | None = None


@dataclass(frozen=True)
class PullRequest:
    id: int
    title: str
    status: PullRequestStatus
