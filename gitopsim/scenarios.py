"""Teaching scenarios and walkthrough progress.

The catalog is static; :class:`Walkthrough` holds the per-session progress
pointer and the learner's selected scenario.
"""

from __future__ import annotations

from dataclasses import dataclass

from gitopsim.models.pipeline import PipelineName


@dataclass(frozen=True)
class Scenario:
    id: str
    title: str
    description: str
    difficulty: str
    estimated_minutes: int
    steps: tuple[str, ...]
    pipeline: PipelineName | None = None  # None: described only, no runnable pipeline

    @property
    def runnable(self) -> bool:
        return self.pipeline is not None


@dataclass(frozen=True)
class WalkthroughStep:
    title: str
    description: str
    actions: tuple[str, ...]


SCENARIOS: tuple[Scenario, ...] = (
    Scenario(
        id="feature-deployment",
        title="Deploy New Feature",
        description="Deploy a new feature to production using GitOps",
        difficulty="Beginner",
        estimated_minutes=5,
        steps=(
            "Create feature branch",
            "Update application code",
            "Update Docker image tag",
            "Commit and push changes",
            "Watch automated deployment",
        ),
        pipeline=PipelineName.FEATURE_DEPLOYMENT,
    ),
    Scenario(
        id="rollback-scenario",
        title="Emergency Rollback",
        description="Practice rolling back a problematic deployment",
        difficulty="Intermediate",
        estimated_minutes=7,
        steps=(
            "Deploy problematic version",
            "Detect issues in monitoring",
            "Revert Git commit",
            "Watch automatic rollback",
            "Verify system recovery",
        ),
        pipeline=PipelineName.ROLLBACK,
    ),
    Scenario(
        id="multi-env-deployment",
        title="Multi-Environment Deployment",
        description="Deploy changes across dev, staging, and production",
        difficulty="Advanced",
        estimated_minutes=10,
        steps=(
            "Deploy to development",
            "Run automated tests",
            "Promote to staging",
            "Manual approval gate",
            "Deploy to production",
        ),
        pipeline=PipelineName.MULTI_ENV_DEPLOYMENT,
    ),
)

WALKTHROUGH_STEPS: tuple[WalkthroughStep, ...] = (
    WalkthroughStep(
        title="Initialize GitOps Environment",
        description="Set up your Git repository and connect it to the Kubernetes cluster",
        actions=(
            "Create Git repository with application manifests",
            "Install GitOps agent (ArgoCD/Flux) on cluster",
            "Configure agent to watch the repository",
            "Verify initial synchronization",
        ),
    ),
    WalkthroughStep(
        title="Make Code Changes",
        description="Simulate a developer making changes to the application",
        actions=(
            "Developer creates feature branch",
            "Implements new feature or bug fix",
            "Updates Docker image tag in manifests",
            "Commits changes to Git",
        ),
    ),
    WalkthroughStep(
        title="GitOps Deployment",
        description="Watch as GitOps automatically deploys your changes",
        actions=(
            "GitOps agent detects Git changes",
            "Validates Kubernetes manifests",
            "Applies changes to cluster",
            "Monitors rollout status",
        ),
    ),
    WalkthroughStep(
        title="Monitor & Verify",
        description="Ensure the deployment was successful and monitor the application",
        actions=(
            "Check pod health and readiness",
            "Verify service endpoints",
            "Monitor application metrics",
            "Confirm user traffic routing",
        ),
    ),
)


def get_scenario(scenario_id: str) -> Scenario:
    for s in SCENARIOS:
        if s.id == scenario_id:
            return s
    raise KeyError(f"unknown scenario: {scenario_id!r}")


class Walkthrough:
    """Progress pointer over WALKTHROUGH_STEPS.

    ``current_step`` equals ``len(WALKTHROUGH_STEPS)`` once a feature
    deployment has completed; the first step counts as done from the start.
    """

    def __init__(self) -> None:
        self.current_step = 0
        self.selected_scenario: Scenario | None = None

    @property
    def finished(self) -> bool:
        return self.current_step >= len(WALKTHROUGH_STEPS)

    def is_completed(self, index: int) -> bool:
        return index == 0 or index < self.current_step

    def select(self, scenario_id: str) -> Scenario:
        self.selected_scenario = get_scenario(scenario_id)
        return self.selected_scenario

    def complete(self) -> None:
        self.current_step = len(WALKTHROUGH_STEPS)

    def reset(self) -> None:
        self.current_step = 0
        self.selected_scenario = None
