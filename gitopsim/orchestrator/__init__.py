"""Deployment orchestrator for gitopsim.

Submodules:
    delay     -- Injectable, cancellable suspension (real-time and virtual).
    pipelines -- Phase lists for feature deployment, rollback and promotion.
    runner    -- Single-flight DeploymentOrchestrator.
    state     -- SimulationStore holding the committed SimulationState.
"""

from gitopsim.orchestrator.delay import AsyncioDelay, Delay, VirtualClock
from gitopsim.orchestrator.pipelines import (
    feature_deployment_pipeline,
    multi_env_promotion_pipeline,
    rollback_pipeline,
)
from gitopsim.orchestrator.runner import DeploymentOrchestrator
from gitopsim.orchestrator.state import SimulationStore

__all__ = [
    "AsyncioDelay",
    "Delay",
    "DeploymentOrchestrator",
    "SimulationStore",
    "VirtualClock",
    "feature_deployment_pipeline",
    "multi_env_promotion_pipeline",
    "rollback_pipeline",
]
