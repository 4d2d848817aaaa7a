"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"
    format: str = "json"


@dataclass
class LedgerConfig:
    """Commit ledger configuration."""

    # Local commits are refused once ahead + behind exceeds this.
    max_divergence: int = 20


@dataclass
class ActivityLogConfig:
    """Activity log configuration."""

    capacity: int = 20


@dataclass
class OrchestratorConfig:
    """Deployment orchestrator configuration."""

    phase_delay_scale: float = 1.0
    baseline_version: str = "v1.0.0"
    replicas: int = 2
    feature_branch: str = "feature/new-ui"


@dataclass
class SimulatorConfig:
    """Top-level gitopsim configuration."""

    log: LogConfig = field(default_factory=LogConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    activity: ActivityLogConfig = field(default_factory=ActivityLogConfig)
    orchestrator: OrchestratorConfig = field(default_factory=OrchestratorConfig)
