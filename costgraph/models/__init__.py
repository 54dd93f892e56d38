"""Core data structures for costgraph."""

from costgraph.models.config import CostGraphConfig, DgraphConfig, LogConfig, PricingConfig
from costgraph.models.pods import HierarchyNode, HierarchyResult, Pod, PodRef

__all__ = [
    "CostGraphConfig",
    "DgraphConfig",
    "HierarchyNode",
    "HierarchyResult",
    "LogConfig",
    "Pod",
    "PodRef",
    "PricingConfig",
]
