"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class DgraphConfig:
    """Graph store connection configuration."""

    endpoint: str = "http://localhost:8080"
    timeout_seconds: int = 30


@dataclass(frozen=True)
class PricingConfig:
    """Default unit prices applied when a node records no override.

    Loaded once at startup and passed explicitly to the pricing resolver
    and the query builder.
    """

    cpu_per_hour: float = 0.024
    memory_per_gb_hour: float = 0.01
    storage_per_gb_hour: float = 0.00013888888


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class CostGraphConfig:
    """Top-level costgraph configuration."""

    dgraph: DgraphConfig = field(default_factory=DgraphConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    log: LogConfig = field(default_factory=LogConfig)
