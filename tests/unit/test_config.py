"""Unit tests for environment-based configuration loading."""

from __future__ import annotations

import pytest

from gitopsim.config import load_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "LOG_LEVEL",
        "LOG_FORMAT",
        "ACTIVITY_CAPACITY",
        "MAX_DIVERGENCE",
        "PHASE_DELAY_SCALE",
        "BASELINE_VERSION",
        "REPLICAS",
        "FEATURE_BRANCH",
    ):
        monkeypatch.delenv(f"GITOPSIM_{key}", raising=False)


class TestDefaults:
    def test_defaults(self) -> None:
        config = load_config()
        assert config.log.level == "info"
        assert config.log.format == "json"
        assert config.ledger.max_divergence == 20
        assert config.activity.capacity == 20
        assert config.orchestrator.phase_delay_scale == 1.0
        assert config.orchestrator.baseline_version == "v1.0.0"
        assert config.orchestrator.replicas == 2
        assert config.orchestrator.feature_branch == "feature/new-ui"


class TestOverrides:
    def test_values_are_read(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITOPSIM_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("GITOPSIM_LOG_FORMAT", "console")
        monkeypatch.setenv("GITOPSIM_BASELINE_VERSION", "v3.1.0")
        monkeypatch.setenv("GITOPSIM_FEATURE_BRANCH", "feature/search")
        config = load_config()
        assert config.log.level == "debug"
        assert config.log.format == "console"
        assert config.orchestrator.baseline_version == "v3.1.0"
        assert config.orchestrator.feature_branch == "feature/search"

    @pytest.mark.parametrize(("raw", "expected"), [("1", 2), ("50", 50), ("10000", 500)])
    def test_activity_capacity_is_clamped(self, monkeypatch: pytest.MonkeyPatch, raw: str, expected: int) -> None:
        monkeypatch.setenv("GITOPSIM_ACTIVITY_CAPACITY", raw)
        assert load_config().activity.capacity == expected

    def test_replicas_clamped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITOPSIM_REPLICAS", "0")
        assert load_config().orchestrator.replicas == 1

    def test_negative_delay_scale_clamped_to_zero(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITOPSIM_PHASE_DELAY_SCALE", "-2")
        assert load_config().orchestrator.phase_delay_scale == 0.0


class TestValidation:
    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("LOG_LEVEL", "verbose"),
            ("LOG_FORMAT", "xml"),
            ("BASELINE_VERSION", "1.0"),
            ("FEATURE_BRANCH", "main"),
            ("FEATURE_BRANCH", "feature new"),
            ("MAX_DIVERGENCE", "lots"),
        ],
    )
    def test_invalid_values_raise(self, monkeypatch: pytest.MonkeyPatch, key: str, value: str) -> None:
        monkeypatch.setenv(f"GITOPSIM_{key}", value)
        with pytest.raises(ValueError):
            load_config()
