"""Phase lists for the feature deployment, rollback and promotion pipelines.

Each phase pairs a simulated delay with a pure transition
``(state, now) -> PhaseOutcome``. Transitions never touch shared containers;
they return a new SimulationState built with ``dataclasses.replace``.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime

from gitopsim.cluster import transitions
from gitopsim.cluster.transitions import BASELINE_COMMIT_ID
from gitopsim.errors import InvariantViolation
from gitopsim.models.activity import LogLevel
from gitopsim.models.cluster import AgentStatus, DeploymentStatus, GitRepository, SimulationState
from gitopsim.models.config import OrchestratorConfig
from gitopsim.models.pipeline import Phase, PhaseOutcome, Pipeline, PipelineName
from gitopsim.models.promotion import CIRunner, CIStatus, EnvironmentName, PullRequest

# Feature deployment
CREATE_BRANCH = "create-branch"
COMMIT_CHANGE = "commit-change"
MERGE_TO_MAIN = "merge-to-main"
AGENT_DETECTS_CHANGE = "agent-detects-change"
APPLY_AND_SYNC = "apply-and-sync"

# Rollback
FLAG_ISSUE = "flag-issue"
REVERT_COMMIT = "revert-commit"
AGENT_DETECTS_REVERT = "agent-detects-revert"
APPLY_ROLLBACK = "apply-rollback"

# Multi-environment promotion
OPEN_PULL_REQUEST = "open-pull-request"
RUN_CI = "run-ci"
CI_PASSED = "ci-passed"
DEPLOY_STAGING = "deploy-staging"
AWAIT_APPROVAL = "await-approval"
APPROVE_PRODUCTION = "approve-production"
DEPLOY_PRODUCTION = "deploy-production"

FEATURE_COMMIT_MESSAGE = "Add new user interface components"
FEATURE_COMMIT_AUTHOR = "jane-dev"
MAIN_BRANCH = "main"
PULL_REQUEST_TITLE = "Add new API endpoint"

_I = LogLevel.INFO
_W = LogLevel.WARNING
_E = LogLevel.ERROR
_S = LogLevel.SUCCESS


def feature_deployment_pipeline(config: OrchestratorConfig) -> Pipeline:
    """create-branch -> commit-change -> merge-to-main -> agent-detects-change -> apply-and-sync."""
    branch = config.feature_branch

    def create_branch(state: SimulationState, now: datetime) -> PhaseOutcome:
        repo = transitions.create_branch(state.repository, branch)
        return PhaseOutcome(
            dataclasses.replace(state, repository=repo),
            ((_I, f"Created feature branch: {branch}"),),
        )

    def commit_change(state: SimulationState, now: datetime) -> PhaseOutcome:
        repo = transitions.add_commit(state.repository, FEATURE_COMMIT_MESSAGE, FEATURE_COMMIT_AUTHOR, now)
        return PhaseOutcome(
            dataclasses.replace(state, repository=repo),
            ((_I, f"Committed changes: {FEATURE_COMMIT_MESSAGE}"),),
        )

    def merge_to_main(state: SimulationState, now: datetime) -> PhaseOutcome:
        repo = transitions.checkout(state.repository, MAIN_BRANCH)
        repo = dataclasses.replace(repo, has_changes=False)
        return PhaseOutcome(
            dataclasses.replace(state, repository=repo),
            ((_I, "Merged feature branch to main"),),
        )

    def agent_detects_change(state: SimulationState, now: datetime) -> PhaseOutcome:
        agent = transitions.set_agent_status(state.agent, AgentStatus.SYNCING, synced_at=now)
        return PhaseOutcome(
            dataclasses.replace(state, agent=agent),
            (
                (_W, "GitOps agent detected changes in repository"),
                (_I, "Starting synchronization process..."),
            ),
        )

    def apply_and_sync(state: SimulationState, now: datetime) -> PhaseOutcome:
        version = transitions.next_major_version(state.cluster.current_version)
        commit_id = state.repository.head.id
        new_state = dataclasses.replace(
            state,
            cluster=transitions.roll_pods(state.cluster, version),
            agent=transitions.set_agent_status(state.agent, AgentStatus.SYNCED, synced_at=now),
            history=transitions.record_deployment(state.history, version, DeploymentStatus.SUCCESS, commit_id, now),
        )
        return PhaseOutcome(
            new_state,
            (
                (_S, f"Successfully deployed version {version}"),
                (_I, "All pods healthy and running"),
                (_I, "Deployment completed successfully!"),
            ),
        )

    return Pipeline(
        name=PipelineName.FEATURE_DEPLOYMENT,
        phases=(
            Phase(CREATE_BRANCH, 1.0, create_branch),
            Phase(COMMIT_CHANGE, 1.5, commit_change),
            Phase(MERGE_TO_MAIN, 1.0, merge_to_main),
            Phase(AGENT_DETECTS_CHANGE, 1.5, agent_detects_change),
            Phase(APPLY_AND_SYNC, 2.0, apply_and_sync),
        ),
        opening_logs=((_I, "Starting feature deployment simulation..."),),
    )


def rollback_pipeline(config: OrchestratorConfig) -> Pipeline:
    """flag-issue -> revert-commit -> agent-detects-revert -> apply-rollback."""
    baseline = config.baseline_version

    def flag_issue(state: SimulationState, now: datetime) -> PhaseOutcome:
        return PhaseOutcome(
            state,
            (
                (_E, "Critical issue detected in production!"),
                (_W, "Initiating emergency rollback procedure..."),
            ),
        )

    def revert_commit(state: SimulationState, now: datetime) -> PhaseOutcome:
        repo = transitions.add_commit(
            state.repository,
            f"Revert to {BASELINE_COMMIT_ID} ({baseline})",
            "ops-oncall",
            now,
        )
        agent = transitions.set_agent_status(state.agent, AgentStatus.SYNCING)
        return PhaseOutcome(
            dataclasses.replace(state, repository=repo, agent=agent),
            ((_I, f"Reverting to previous stable commit: {BASELINE_COMMIT_ID}"),),
        )

    def agent_detects_revert(state: SimulationState, now: datetime) -> PhaseOutcome:
        agent = transitions.set_agent_status(state.agent, AgentStatus.SYNCING, synced_at=now)
        return PhaseOutcome(
            dataclasses.replace(state, agent=agent),
            ((_I, "GitOps agent detected revert commit"),),
        )

    def apply_rollback(state: SimulationState, now: datetime) -> PhaseOutcome:
        new_state = dataclasses.replace(
            state,
            cluster=transitions.roll_pods(state.cluster, baseline),
            agent=transitions.set_agent_status(state.agent, AgentStatus.SYNCED, synced_at=now),
            history=transitions.record_deployment(
                state.history, baseline, DeploymentStatus.ROLLBACK, BASELINE_COMMIT_ID, now
            ),
        )
        return PhaseOutcome(
            new_state,
            (
                (_S, f"Successfully rolled back to {baseline}"),
                (_I, "System restored to stable state"),
            ),
        )

    return Pipeline(
        name=PipelineName.ROLLBACK,
        phases=(
            Phase(FLAG_ISSUE, 0.0, flag_issue),
            Phase(REVERT_COMMIT, 1.5, revert_commit),
            Phase(AGENT_DETECTS_REVERT, 1.0, agent_detects_revert),
            Phase(APPLY_ROLLBACK, 2.0, apply_rollback),
        ),
    )


def multi_env_promotion_pipeline(config: OrchestratorConfig) -> Pipeline:
    """Pull request -> CI -> staging -> approval gate -> production.

    Staging receives the next minor version; production is only ever
    promoted to the version staging runs. The approval gate is simulated by
    the ``approve-production`` delay; arming a failure there models a
    rejected approval.
    """

    def open_pull_request(state: SimulationState, now: datetime) -> PhaseOutcome:
        repo = transitions.open_pull_request(state.repository, PULL_REQUEST_TITLE)
        pr = _pull_request(repo)
        return PhaseOutcome(
            dataclasses.replace(state, repository=repo),
            ((_I, f"Opened pull request #{pr.id}: {pr.title}"),),
        )

    def run_ci(state: SimulationState, now: datetime) -> PhaseOutcome:
        ci = transitions.start_ci_run(state.ci, "CI", "test")
        return PhaseOutcome(
            dataclasses.replace(state, ci=ci),
            ((_I, f"GitHub Actions started CI run #{_run_id(ci)}: tests, linting and security scans"),),
        )

    def ci_passed(state: SimulationState, now: datetime) -> PhaseOutcome:
        ci = transitions.update_ci_run(state.ci, CIStatus.SUCCESS)
        return PhaseOutcome(
            dataclasses.replace(state, ci=ci),
            ((_S, f"CI run #{_run_id(ci)} passed"),),
        )

    def deploy_staging(state: SimulationState, now: datetime) -> PhaseOutcome:
        staging = transitions.get_environment(state.environments, EnvironmentName.STAGING)
        version = transitions.next_minor_version(staging.version)
        ci = transitions.start_ci_run(state.ci, "Deploy Staging", "deploy-staging")
        ci = transitions.update_ci_run(ci, CIStatus.SUCCESS)
        envs = transitions.deploy_environment(state.environments, EnvironmentName.STAGING, version, now)
        return PhaseOutcome(
            dataclasses.replace(state, environments=envs, ci=ci),
            (
                (_I, f"Deploying {version} to staging"),
                (_S, f"Staging is running {version}"),
            ),
        )

    def await_approval(state: SimulationState, now: datetime) -> PhaseOutcome:
        staging = transitions.get_environment(state.environments, EnvironmentName.STAGING)
        ci = transitions.start_ci_run(state.ci, "Deploy Production", None, status=CIStatus.WAITING_APPROVAL)
        return PhaseOutcome(
            dataclasses.replace(state, ci=ci),
            ((_W, f"Production deployment of {staging.version} requires manual approval"),),
        )

    def approve_production(state: SimulationState, now: datetime) -> PhaseOutcome:
        ci = transitions.update_ci_run(state.ci, CIStatus.RUNNING, "deploy-production")
        return PhaseOutcome(
            dataclasses.replace(state, ci=ci),
            ((_I, "Production deployment approved"),),
        )

    def deploy_production(state: SimulationState, now: datetime) -> PhaseOutcome:
        staging = transitions.get_environment(state.environments, EnvironmentName.STAGING)
        envs = transitions.deploy_environment(state.environments, EnvironmentName.PRODUCTION, staging.version, now)
        repo = transitions.merge_pull_request(state.repository)
        pr = _pull_request(repo)
        return PhaseOutcome(
            dataclasses.replace(
                state,
                environments=envs,
                ci=transitions.update_ci_run(state.ci, CIStatus.SUCCESS),
                repository=repo,
            ),
            (
                (_S, f"Promoted {staging.version} from staging to production"),
                (_I, f"Pull request #{pr.id} merged"),
            ),
        )

    return Pipeline(
        name=PipelineName.MULTI_ENV_DEPLOYMENT,
        phases=(
            Phase(OPEN_PULL_REQUEST, 1.0, open_pull_request),
            Phase(RUN_CI, 0.5, run_ci),
            Phase(CI_PASSED, 2.0, ci_passed),
            Phase(DEPLOY_STAGING, 2.5, deploy_staging),
            Phase(AWAIT_APPROVAL, 0.5, await_approval),
            Phase(APPROVE_PRODUCTION, 2.0, approve_production),
            Phase(DEPLOY_PRODUCTION, 2.0, deploy_production),
        ),
        opening_logs=((_I, "Starting multi-environment promotion simulation..."),),
    )


def _run_id(ci: CIRunner) -> int:
    if ci.last_run is None:
        raise InvariantViolation("CI runner has no current run")
    return ci.last_run.id


def _pull_request(repository: GitRepository) -> PullRequest:
    if repository.pull_request is None:
        raise InvariantViolation("repository has no pull request")
    return repository.pull_request
