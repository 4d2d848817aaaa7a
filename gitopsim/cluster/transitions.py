"""Pure transitions for the simulated cluster, agent, repository, environments and CI.

Every function returns a new frozen value; nothing is mutated in place.
Pod replacement is wholesale: the old pod tuple is swapped for a new one
tagged with the target version. No progressive rollout is modelled.
"""

from __future__ import annotations

import dataclasses
import hashlib
import re
from datetime import datetime, timedelta

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
from gitopsim.models.promotion import (
    CIRun,
    CIRunner,
    CIStatus,
    Environment,
    EnvironmentName,
    PullRequest,
    PullRequestStatus,
)

BASELINE_COMMIT_ID = "abc123"
DEFAULT_SERVICES = ("app-service", "database-service")
STAGING_URL = "https://staging.myapp.com"
PRODUCTION_URL = "https://myapp.com"
FIRST_CI_RUN_ID = 1234

_VERSION_RE = re.compile(r"^v(\d+)\.(\d+)\.(\d+)$")


def _parse(version: str) -> tuple[int, int, int]:
    match = _VERSION_RE.match(version)
    if match is None:
        raise ValueError(f"not a vMAJOR.MINOR.PATCH version: {version!r}")
    return int(match.group(1)), int(match.group(2)), int(match.group(3))


def next_major_version(version: str) -> str:
    """``v1.0.0`` -> ``v2.0.0``; minor and patch reset to zero."""
    major, _, _ = _parse(version)
    return f"v{major + 1}.0.0"


def next_minor_version(version: str) -> str:
    """``v1.0.0`` -> ``v1.1.0``; patch resets to zero."""
    major, minor, _ = _parse(version)
    return f"v{major}.{minor + 1}.0"


def build_pods(version: str, replicas: int) -> tuple[Pod, ...]:
    major, _, _ = _parse(version)

    return tuple(Pod(name=f"app-v{major}-pod-{i}", status="running", version=version) for i in range(1, replicas + 1))


# ---------------------------------------------------------------------------
# Baselines
# ---------------------------------------------------------------------------


def baseline_cluster(version: str, replicas: int) -> ClusterState:
    return ClusterState(
        status="running",
        pods=build_pods(version, replicas),
        services=DEFAULT_SERVICES,
        current_version=version,
    )


def baseline_agent(now: datetime) -> GitOpsAgentState:
    return GitOpsAgentState(status=AgentStatus.WATCHING, last_sync=now - timedelta(seconds=30), auto_sync=True)


def baseline_repository(now: datetime) -> GitRepository:
    return GitRepository(
        branches=("main",),
        current_branch="main",
        commits=(
            RepoCommit(
                id=BASELINE_COMMIT_ID,
                message="Initial application setup",
                author="dev-team",
                timestamp=now - timedelta(hours=2),
            ),
        ),
        has_changes=False,
    )


def baseline_environments(now: datetime, version: str) -> tuple[Environment, ...]:
    return (
        Environment(
            name=EnvironmentName.STAGING,
            status="running",
            version=version,
            url=STAGING_URL,
            last_deployed=now - timedelta(hours=1),
        ),
        Environment(
            name=EnvironmentName.PRODUCTION,
            status="running",
            version=version,
            url=PRODUCTION_URL,
            last_deployed=now - timedelta(days=1),
            requires_approval=True,
        ),
    )


def baseline_state(now: datetime, version: str, replicas: int) -> SimulationState:
    return SimulationState(
        repository=baseline_repository(now),
        cluster=baseline_cluster(version, replicas),
        agent=baseline_agent(now),
        history=(),
        environments=baseline_environments(now, version),
        ci=CIRunner(),
    )


# ---------------------------------------------------------------------------
# Cluster and agent
# ---------------------------------------------------------------------------


def roll_pods(cluster: ClusterState, version: str) -> ClusterState:
    """Replace every pod with a fresh set running ``version``."""
    replicas = len(cluster.pods) or 1
    return dataclasses.replace(cluster, pods=build_pods(version, replicas), current_version=version)


def set_agent_status(agent: GitOpsAgentState, status: AgentStatus, synced_at: datetime | None = None) -> GitOpsAgentState:
    if synced_at is None:
        return dataclasses.replace(agent, status=status)
    return dataclasses.replace(agent, status=status, last_sync=synced_at)


def record_deployment(
    history: tuple[DeploymentRecord, ...],
    version: str,
    status: DeploymentStatus,
    commit_id: str,
    now: datetime,
) -> tuple[DeploymentRecord, ...]:
    """Prepend a record; history is newest-first and only ever grows."""
    record = DeploymentRecord(version=version, timestamp=now, status=status, commit_id=commit_id)
    return (record,) + history


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


def make_commit_id(repository: GitRepository, message: str) -> str:
    """Deterministic short id derived from the parent commit and message."""
    parent = repository.head.id if repository.commits else ""
    digest = hashlib.sha1(f"{parent}:{len(repository.commits)}:{message}".encode()).hexdigest()
    return digest[:6]


def create_branch(repository: GitRepository, branch: str) -> GitRepository:
    """Create ``branch`` (if new) and check it out."""
    branches = repository.branches if branch in repository.branches else repository.branches + (branch,)
    return dataclasses.replace(repository, branches=branches, current_branch=branch, has_changes=True)


def checkout(repository: GitRepository, branch: str) -> GitRepository:
    if branch not in repository.branches:
        raise ValueError(f"unknown branch: {branch!r}")
    return dataclasses.replace(repository, current_branch=branch)


def add_commit(repository: GitRepository, message: str, author: str, now: datetime) -> GitRepository:
    commit = RepoCommit(id=make_commit_id(repository, message), message=message, author=author, timestamp=now)
    return dataclasses.replace(repository, commits=(commit,) + repository.commits)


def open_pull_request(repository: GitRepository, title: str, pr_id: int = 42) -> GitRepository:
    if repository.pull_request is not None:
        pr_id = repository.pull_request.id + 1
    return dataclasses.replace(repository, pull_request=PullRequest(id=pr_id, title=title, status=PullRequestStatus.OPEN))


def merge_pull_request(repository: GitRepository) -> GitRepository:
    if repository.pull_request is None:
        raise ValueError("no pull request to merge")
    return dataclasses.replace(
        repository,
        pull_request=dataclasses.replace(repository.pull_request, status=PullRequestStatus.MERGED),
    )


# ---------------------------------------------------------------------------
# Environments and CI
# ---------------------------------------------------------------------------


def get_environment(environments: tuple[Environment, ...], name: EnvironmentName) -> Environment:
    for env in environments:
        if env.name == name:
            return env
    raise ValueError(f"unknown environment: {name!r}")


def deploy_environment(
    environments: tuple[Environment, ...],
    name: EnvironmentName,
    version: str,
    now: datetime,
) -> tuple[Environment, ...]:
    """Return ``environments`` with ``name`` running ``version`` as of ``now``."""
    get_environment(environments, name)
    return tuple(
        dataclasses.replace(env, status="running", version=version, last_deployed=now) if env.name == name else env
        for env in environments
    )


def start_ci_run(
    ci: CIRunner,
    workflow: str,
    job: str | None,
    status: CIStatus = CIStatus.RUNNING,
) -> CIRunner:
    """Begin a new workflow run; run ids increase from FIRST_CI_RUN_ID."""
    run_id = ci.last_run.id + 1 if ci.last_run is not None else FIRST_CI_RUN_ID
    return dataclasses.replace(
        ci,
        status=status,
        current_job=job,
        last_run=CIRun(id=run_id, workflow=workflow, status=status),
    )


def update_ci_run(ci: CIRunner, status: CIStatus, job: str | None = None) -> CIRunner:
    """Move the current run to ``status``; ``job`` None means no job executes."""
    if ci.last_run is None:
        raise ValueError("no CI run in progress")
    return dataclasses.replace(
        ci,
        status=status,
        current_job=job,
        last_run=dataclasses.replace(ci.last_run, status=status),
    )
