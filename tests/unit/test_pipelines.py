"""Unit tests for the pipeline phase lists and their pure transitions."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from gitopsim.cluster.transitions import BASELINE_COMMIT_ID, baseline_state, get_environment
from gitopsim.models.activity import LogLevel
from gitopsim.models.cluster import AgentStatus, DeploymentStatus, SimulationState
from gitopsim.models.config import OrchestratorConfig
from gitopsim.models.pipeline import Pipeline, PipelineName
from gitopsim.models.promotion import CIStatus, EnvironmentName, PullRequestStatus
from gitopsim.orchestrator.pipelines import (
    FEATURE_COMMIT_MESSAGE,
    feature_deployment_pipeline,
    multi_env_promotion_pipeline,
    rollback_pipeline,
)

_NOW = datetime(2025, 3, 1, 12, 0, 0, tzinfo=UTC)
_CONFIG = OrchestratorConfig()


def _apply(pipeline: Pipeline, state: SimulationState) -> tuple[SimulationState, list[tuple[LogLevel, str]]]:
    logs: list[tuple[LogLevel, str]] = []
    for i, phase in enumerate(pipeline.phases):
        outcome = phase.transition(state, _NOW + timedelta(seconds=i))
        state = outcome.state
        logs.extend(outcome.logs)
    return state, logs


def _baseline() -> SimulationState:
    return baseline_state(_NOW, "v1.0.0", 2)


class TestFeatureDeploymentPipeline:
    def test_phase_order_and_delays(self) -> None:
        pipeline = feature_deployment_pipeline(_CONFIG)
        assert pipeline.name is PipelineName.FEATURE_DEPLOYMENT
        assert pipeline.phase_names == [
            "create-branch",
            "commit-change",
            "merge-to-main",
            "agent-detects-change",
            "apply-and-sync",
        ]
        assert sum(p.delay_seconds for p in pipeline.phases) == 7.0
        assert pipeline.opening_logs == ((LogLevel.INFO, "Starting feature deployment simulation..."),)

    def test_full_run_deploys_next_major(self) -> None:
        state, logs = _apply(feature_deployment_pipeline(_CONFIG), _baseline())
        assert state.cluster.current_version == "v2.0.0"
        assert all(p.version == "v2.0.0" for p in state.cluster.pods)
        assert state.agent.status is AgentStatus.SYNCED
        assert len(state.history) == 1
        record = state.history[0]
        assert record.status is DeploymentStatus.SUCCESS
        assert record.commit_id == state.repository.head.id
        assert state.repository.head.message == FEATURE_COMMIT_MESSAGE
        assert state.repository.current_branch == "main"
        assert "feature/new-ui" in state.repository.branches
        assert logs[-3] == (LogLevel.SUCCESS, "Successfully deployed version v2.0.0")

    def test_agent_detects_change_marks_syncing(self) -> None:
        pipeline = feature_deployment_pipeline(_CONFIG)
        state = _baseline()
        for phase in pipeline.phases[:4]:
            state = phase.transition(state, _NOW).state
        assert state.agent.status is AgentStatus.SYNCING
        assert state.cluster.current_version == "v1.0.0"
        assert state.history == ()

    def test_transitions_do_not_mutate_input(self) -> None:
        before = _baseline()
        _apply(feature_deployment_pipeline(_CONFIG), before)
        assert before == _baseline()

    def test_custom_feature_branch(self) -> None:
        config = OrchestratorConfig(feature_branch="feature/checkout")
        pipeline = feature_deployment_pipeline(config)
        outcome = pipeline.phases[0].transition(_baseline(), _NOW)
        assert outcome.state.repository.current_branch == "feature/checkout"
        assert outcome.logs == ((LogLevel.INFO, "Created feature branch: feature/checkout"),)


class TestRollbackPipeline:
    def test_phase_order(self) -> None:
        pipeline = rollback_pipeline(_CONFIG)
        assert pipeline.name is PipelineName.ROLLBACK
        assert pipeline.phase_names == ["flag-issue", "revert-commit", "agent-detects-revert", "apply-rollback"]
        assert pipeline.phases[0].delay_seconds == 0.0

    def test_rollback_restores_baseline_version(self) -> None:
        deployed, _ = _apply(feature_deployment_pipeline(_CONFIG), _baseline())
        state, logs = _apply(rollback_pipeline(_CONFIG), deployed)
        assert state.cluster.current_version == "v1.0.0"
        assert [r.status for r in state.history] == [DeploymentStatus.ROLLBACK, DeploymentStatus.SUCCESS]
        assert state.history[0].commit_id == BASELINE_COMMIT_ID
        assert state.repository.head.message == "Revert to abc123 (v1.0.0)"
        assert logs[0] == (LogLevel.ERROR, "Critical issue detected in production!")

    def test_revert_commit_marks_agent_syncing(self) -> None:
        pipeline = rollback_pipeline(_CONFIG)
        state = _baseline()
        for phase in pipeline.phases[:2]:
            state = phase.transition(state, _NOW).state
        assert state.agent.status is AgentStatus.SYNCING


class TestMultiEnvPromotionPipeline:
    def test_phase_order_and_delays(self) -> None:
        pipeline = multi_env_promotion_pipeline(_CONFIG)
        assert pipeline.name is PipelineName.MULTI_ENV_DEPLOYMENT
        assert pipeline.phase_names == [
            "open-pull-request",
            "run-ci",
            "ci-passed",
            "deploy-staging",
            "await-approval",
            "approve-production",
            "deploy-production",
        ]
        assert sum(p.delay_seconds for p in pipeline.phases) == 10.5

    def test_full_run_promotes_staging_version_to_production(self) -> None:
        state, logs = _apply(multi_env_promotion_pipeline(_CONFIG), _baseline())
        staging = get_environment(state.environments, EnvironmentName.STAGING)
        production = get_environment(state.environments, EnvironmentName.PRODUCTION)

        assert staging.version == "v1.1.0"
        assert production.version == "v1.1.0"
        assert production.last_deployed == _NOW + timedelta(seconds=6)
        assert production.requires_approval is True
        assert state.ci.status is CIStatus.SUCCESS
        assert state.ci.current_job is None
        assert state.ci.last_run is not None
        assert (state.ci.last_run.id, state.ci.last_run.workflow) == (1236, "Deploy Production")
        assert state.repository.pull_request is not None
        assert state.repository.pull_request.status is PullRequestStatus.MERGED
        assert logs[-2] == (LogLevel.SUCCESS, "Promoted v1.1.0 from staging to production")

    def test_cluster_and_history_untouched(self) -> None:
        state, _ = _apply(multi_env_promotion_pipeline(_CONFIG), _baseline())
        assert state.cluster == _baseline().cluster
        assert state.history == ()

    def test_production_waits_at_approval_gate(self) -> None:
        pipeline = multi_env_promotion_pipeline(_CONFIG)
        state = _baseline()
        for phase in pipeline.phases[:5]:
            state = phase.transition(state, _NOW).state

        assert state.ci.status is CIStatus.WAITING_APPROVAL
        assert get_environment(state.environments, EnvironmentName.STAGING).version == "v1.1.0"
        assert get_environment(state.environments, EnvironmentName.PRODUCTION).version == "v1.0.0"

        state = pipeline.phases[5].transition(state, _NOW).state
        assert state.ci.status is CIStatus.RUNNING
        assert state.ci.current_job == "deploy-production"

    def test_second_promotion_bumps_minor_again(self) -> None:
        pipeline = multi_env_promotion_pipeline(_CONFIG)
        state, _ = _apply(pipeline, _baseline())
        state, _ = _apply(pipeline, state)

        assert get_environment(state.environments, EnvironmentName.PRODUCTION).version == "v1.2.0"
        assert state.repository.pull_request is not None
        assert state.repository.pull_request.id == 43
        assert state.ci.last_run is not None
        assert state.ci.last_run.id == 1239
