"""Per-pod unit price resolution with fallback to the configured defaults."""

from __future__ import annotations

from costgraph.errors import CostGraphError
from costgraph.models.config import PricingConfig
from costgraph.observability.logging import get_logger
from costgraph.query.builder import QueryBuilder
from costgraph.query.decoder import decode_pods
from costgraph.store.client import GraphStore

_logger = get_logger("pricing")


class PricingResolver:
    """Looks up a pod's override CPU and memory prices.

    Never raises: a failed lookup, an unknown pod, or a pod without an
    override price falls back to the default for that resource.
    """

    def __init__(self, store: GraphStore, defaults: PricingConfig, builder: QueryBuilder | None = None) -> None:
        self._store = store
        self._defaults = defaults
        self._builder = builder or QueryBuilder(storage_price=defaults.storage_per_gb_hour)

    def resolve(self, name: str) -> tuple[float, float]:
        """Return ``(cpu_price, memory_price)`` for the pod called *name*."""
        default = (self._defaults.cpu_per_hour, self._defaults.memory_per_gb_hour)
        try:
            pods = decode_pods(self._store.query(self._builder.pod_prices(name)), root="pod")
        except CostGraphError as exc:
            _logger.warning("price_lookup_failed", pod=name, error=str(exc))
            return default
        if not pods:
            _logger.debug("price_lookup_no_match", pod=name)
            return default
        pod = pods[0]
        cpu = pod.cpu_price if pod.cpu_price is not None else default[0]
        memory = pod.memory_price if pod.memory_price is not None else default[1]
        return cpu, memory
