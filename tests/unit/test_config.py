"""Tests for environment-based configuration loading."""

from __future__ import annotations

import pytest

from costgraph.config import load_config
from costgraph.models.config import PricingConfig


class TestLoadConfig:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for key in (
            "DGRAPH_ENDPOINT",
            "DGRAPH_TIMEOUT",
            "PRICING_CPU",
            "PRICING_MEMORY",
            "PRICING_STORAGE",
            "LOG_LEVEL",
        ):
            monkeypatch.delenv(f"COSTGRAPH_{key}", raising=False)
        config = load_config()
        assert config.dgraph.endpoint == "http://localhost:8080"
        assert config.dgraph.timeout_seconds == 30
        assert config.pricing == PricingConfig()
        assert config.log.level == "info"

    def test_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COSTGRAPH_DGRAPH_ENDPOINT", "https://dgraph.example:8080/")
        monkeypatch.setenv("COSTGRAPH_PRICING_CPU", "0.05")
        monkeypatch.setenv("COSTGRAPH_PRICING_STORAGE", "0")
        monkeypatch.setenv("COSTGRAPH_LOG_LEVEL", "DEBUG")
        config = load_config()
        assert config.dgraph.endpoint == "https://dgraph.example:8080"
        assert config.pricing.cpu_per_hour == 0.05
        assert config.pricing.storage_per_gb_hour == 0.0
        assert config.log.level == "debug"

    def test_timeout_is_clamped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COSTGRAPH_DGRAPH_TIMEOUT", "900")
        assert load_config().dgraph.timeout_seconds == 120

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("PRICING_MEMORY", "-1"),
            ("PRICING_CPU", "free"),
            ("DGRAPH_ENDPOINT", "dgraph:8080"),
            ("LOG_LEVEL", "verbose"),
        ],
    )
    def test_invalid_values_rejected(self, monkeypatch: pytest.MonkeyPatch, key: str, value: str) -> None:
        monkeypatch.setenv(f"COSTGRAPH_{key}", value)
        with pytest.raises(ValueError):
            load_config()

    def test_pricing_is_immutable(self) -> None:
        from dataclasses import FrozenInstanceError

        with pytest.raises(FrozenInstanceError):
            PricingConfig().cpu_per_hour = 1.0  # type: ignore[misc]
