"""Configuration loading from environment variables."""

from __future__ import annotations

import os
import re

from gitopsim.models.config import (
    ActivityLogConfig,
    LedgerConfig,
    LogConfig,
    OrchestratorConfig,
    SimulatorConfig,
)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"GITOPSIM_{key}", default)


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_float(key: str, default: float, min_val: float | None = None) -> float:
    val = float(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    return val


def _validate_version(value: str) -> str:
    if not re.match(r"^v[0-9]+\.[0-9]+\.[0-9]+$", value):
        raise ValueError(f"Invalid version format: {value}. Expected vMAJOR.MINOR.PATCH")
    return value


def _validate_log_format(value: str) -> str:
    if value.lower() not in ("json", "console"):
        raise ValueError(f"Invalid log format: {value}. Must be json or console")
    return value.lower()


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_branch(value: str) -> str:
    if not value or value == "main" or " " in value:
        raise ValueError(f"Invalid feature branch name: {value!r}")
    return value


def load_config() -> SimulatorConfig:
    """Load configuration from GITOPSIM_* environment variables."""
    return SimulatorConfig(
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
            format=_validate_log_format(_env("LOG_FORMAT", "json")),
        ),
        ledger=LedgerConfig(
            max_divergence=_env_int("MAX_DIVERGENCE", 20, min_val=1, max_val=500),
        ),
        activity=ActivityLogConfig(
            capacity=_env_int("ACTIVITY_CAPACITY", 20, min_val=2, max_val=500),
        ),
        orchestrator=OrchestratorConfig(
            phase_delay_scale=_env_float("PHASE_DELAY_SCALE", 1.0, min_val=0.0),
            baseline_version=_validate_version(_env("BASELINE_VERSION", "v1.0.0")),
            replicas=_env_int("REPLICAS", 2, min_val=1, max_val=10),
            feature_branch=_validate_branch(_env("FEATURE_BRANCH", "feature/new-ui")),
        ),
    )
