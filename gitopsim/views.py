"""Read-only session views for the rendering layer.

:class:`SessionSnapshot` bundles every component's current value at one
instant. ``snapshot_to_dict`` flattens it into JSON-safe primitives (ISO-8601
timestamps, enum values as strings) so a view can render without importing
any engine types.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from gitopsim.models.activity import LogEntry
from gitopsim.models.cluster import ClusterState, DeploymentRecord, GitOpsAgentState, GitRepository
from gitopsim.models.ledger import Commit, FileStatus, LedgerCounts
from gitopsim.models.pipeline import OrchestratorStatus, PipelineName, RunResult
from gitopsim.models.promotion import CIRunner, Environment, PullRequest


@dataclass(frozen=True)
class SessionSnapshot:
    session_id: str
    commits: tuple[Commit, ...]
    counts: LedgerCounts
    file_statuses: dict[str, FileStatus]
    cluster: ClusterState
    agent: GitOpsAgentState
    repository: GitRepository
    history: tuple[DeploymentRecord, ...]
    environments: tuple[Environment, ...]
    ci: CIRunner
    activity: tuple[LogEntry, ...]  # newest first
    orchestrator_status: OrchestratorStatus
    active_pipeline: PipelineName | None
    last_result: RunResult | None
    current_step: int
    selected_scenario: str | None


def _ts(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _pull_request(pr: PullRequest | None) -> dict[str, object] | None:
    if pr is None:
        return None
    return {"id": pr.id, "title": pr.title, "status": pr.status.value}


def snapshot_to_dict(snapshot: SessionSnapshot) -> dict[str, object]:
    """Serialise *snapshot* to plain dicts, lists and strings."""
    last = snapshot.last_result
    return {
        "session_id": snapshot.session_id,
        "ledger": {
            "commits": [
                {
                    "id": c.id,
                    "message": c.message,
                    "author": c.author,
                    "timestamp": _ts(c.timestamp),
                    "local": c.local,
                    "remote": c.remote,
                    "state": c.state,
                    "changed_files": list(c.changed_files),
                }
                for c in snapshot.commits
            ],
            "ahead": snapshot.counts.ahead,
            "behind": snapshot.counts.behind,
            "synced": snapshot.counts.synced,
            "total": snapshot.counts.total,
            "files": {name: status.value for name, status in snapshot.file_statuses.items()},
        },
        "cluster": {
            "status": snapshot.cluster.status,
            "current_version": snapshot.cluster.current_version,
            "services": list(snapshot.cluster.services),
            "pods": [{"name": p.name, "status": p.status, "version": p.version} for p in snapshot.cluster.pods],
        },
        "agent": {
            "status": snapshot.agent.status.value,
            "last_sync": _ts(snapshot.agent.last_sync),
            "auto_sync": snapshot.agent.auto_sync,
        },
        "repository": {
            "branches": list(snapshot.repository.branches),
            "current_branch": snapshot.repository.current_branch,
            "has_changes": snapshot.repository.has_changes,
            "pull_request": _pull_request(snapshot.repository.pull_request),
            "commits": [
                {"id": c.id, "message": c.message, "author": c.author, "timestamp": _ts(c.timestamp)}
                for c in snapshot.repository.commits
            ],
        },
        "history": [
            {
                "version": r.version,
                "timestamp": _ts(r.timestamp),
                "status": r.status.value,
                "commit_id": r.commit_id,
            }
            for r in snapshot.history
        ],
        "environments": [
            {
                "name": e.name.value,
                "status": e.status,
                "version": e.version,
                "url": e.url,
                "last_deployed": _ts(e.last_deployed),
                "requires_approval": e.requires_approval,
            }
            for e in snapshot.environments
        ],
        "ci": {
            "status": snapshot.ci.status.value,
            "workflows": list(snapshot.ci.workflows),
            "current_job": snapshot.ci.current_job,
            "last_run": None
            if snapshot.ci.last_run is None
            else {
                "id": snapshot.ci.last_run.id,
                "workflow": snapshot.ci.last_run.workflow,
                "status": snapshot.ci.last_run.status.value,
            },
        },
        "activity": [
            {"timestamp": _ts(e.timestamp), "level": e.level.value, "message": e.message} for e in snapshot.activity
        ],
        "orchestrator": {
            "status": snapshot.orchestrator_status.value,
            "active_pipeline": snapshot.active_pipeline.value if snapshot.active_pipeline else None,
            "last_result": None
            if last is None
            else {
                "pipeline": last.pipeline.value,
                "outcome": last.outcome.value,
                "completed_phases": list(last.completed_phases),
                "failed_phase": last.failed_phase,
                "error": last.error,
            },
        },
        "walkthrough": {
            "current_step": snapshot.current_step,
            "selected_scenario": snapshot.selected_scenario,
        },
    }
