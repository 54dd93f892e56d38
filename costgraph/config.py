"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from costgraph.models.config import (
    CostGraphConfig,
    DgraphConfig,
    LogConfig,
    PricingConfig,
)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"COSTGRAPH_{key}", default)


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_price(key: str, default: float) -> float:
    val = float(_env(key, repr(default)))
    if val < 0:
        raise ValueError(f"Invalid price for COSTGRAPH_{key}: {val}. Must be >= 0")
    return val


def _validate_endpoint(value: str) -> str:
    if not value.startswith(("http://", "https://")):
        raise ValueError(f"Invalid Dgraph endpoint: {value}. Must be an http(s) URL")
    return value.rstrip("/")


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def load_config() -> CostGraphConfig:
    """Load configuration from COSTGRAPH_* environment variables."""
    defaults = PricingConfig()
    return CostGraphConfig(
        dgraph=DgraphConfig(
            endpoint=_validate_endpoint(_env("DGRAPH_ENDPOINT", "http://localhost:8080")),
            timeout_seconds=_env_int("DGRAPH_TIMEOUT", 30, min_val=1, max_val=120),
        ),
        pricing=PricingConfig(
            cpu_per_hour=_env_price("PRICING_CPU", defaults.cpu_per_hour),
            memory_per_gb_hour=_env_price("PRICING_MEMORY", defaults.memory_per_gb_hour),
            storage_per_gb_hour=_env_price("PRICING_STORAGE", defaults.storage_per_gb_hour),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
