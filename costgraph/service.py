"""Pod topology and cost queries against the graph store.

Usage::

    from costgraph.config import load_config
    from costgraph.service import PodQueryService

    with PodQueryService.from_config(load_config()) as service:
        result = service.cost_hierarchy("frontend-7b4f8c6d-x2kj")

Each operation issues a single request (the cost hierarchy also issues its
price lookup first) and holds no state between calls.

Error policy differs per operation. Views that are rendered as optional
supplementary information (interactions, hierarchy, cost hierarchy) log
failures and return an empty value. Operations whose result the caller
filters on (pod uids by label, live pods) re-raise after logging so that
"no matches" stays distinguishable from "lookup failed".
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime

from costgraph.errors import CostGraphError, UsageError
from costgraph.models.config import CostGraphConfig, PricingConfig
from costgraph.models.pods import HierarchyResult, Pod
from costgraph.observability.logging import get_logger, query_logger
from costgraph.pricing import PricingResolver
from costgraph.query.builder import ALL, QueryBuilder, require_single_target
from costgraph.query.decoder import decode_hierarchy, decode_pods
from costgraph.query.dedupe import unique_uids
from costgraph.query.proration import billing_window_seconds
from costgraph.store.client import DgraphClient, GraphStore

_logger = get_logger("service")


class PodQueryService:
    """Public pod query operations.

    Args:
        store:   Graph store used for every request.
        pricing: Default unit prices.
        clock:   Returns the current UTC time; the billing window is
                 measured up to this instant.
    """

    def __init__(
        self,
        store: GraphStore,
        pricing: PricingConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._pricing = pricing or PricingConfig()
        self._clock = clock or (lambda: datetime.now(tz=UTC))
        self._builder = QueryBuilder(storage_price=self._pricing.storage_per_gb_hour)
        self._resolver = PricingResolver(store, self._pricing, self._builder)

    @classmethod
    def from_config(cls, config: CostGraphConfig) -> PodQueryService:
        store = DgraphClient(config.dgraph.endpoint, timeout=float(config.dgraph.timeout_seconds))
        return cls(store, pricing=config.pricing)

    def close(self) -> None:
        """Close the underlying store."""
        self._store.close()

    def __enter__(self) -> PodQueryService:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def interactions(self, name: str = ALL, orphan: bool = False) -> bytes | None:
        """Raw interaction graph for one pod or for all pods; None on failure."""
        log = query_logger(_logger, "interactions", name=name, orphan=orphan)
        try:
            return self._store.query_raw(self._builder.interactions(name, orphan))
        except CostGraphError as exc:
            log.error("pod_interactions_failed", error=str(exc))
            return None

    def hierarchy(self, name: str) -> HierarchyResult:
        """A pod and its containers; empty on a wildcard target or failure."""
        log = query_logger(_logger, "hierarchy", name=name)
        try:
            request = self._builder.hierarchy(name)
        except UsageError as exc:
            log.error("hierarchy_wildcard_target", error=str(exc))
            return HierarchyResult()
        try:
            return decode_hierarchy(self._store.query(request))
        except CostGraphError as exc:
            log.error("pod_hierarchy_failed", error=str(exc))
            return HierarchyResult()

    def cost_hierarchy(self, name: str) -> HierarchyResult:
        """A pod and its containers with cost prorated over the current month."""
        log = query_logger(_logger, "cost_hierarchy", name=name)
        try:
            require_single_target(name, "cost hierarchy")
        except UsageError as exc:
            log.error("hierarchy_wildcard_target", error=str(exc))
            return HierarchyResult()
        window = billing_window_seconds(self._clock())
        cpu_price, memory_price = self._resolver.resolve(name)
        try:
            request = self._builder.cost_hierarchy(name, window, cpu_price, memory_price)
            return decode_hierarchy(self._store.query(request))
        except CostGraphError as exc:
            log.error("pod_metrics_failed", error=str(exc))
            return HierarchyResult()

    def pod_uids_by_labels(self, labels: Mapping[str, Iterable[str]]) -> list[str]:
        """Uids of pods carrying any of *labels* (OR semantics), deduplicated."""
        pairs = {key: list(values) for key, values in labels.items()}
        log = query_logger(_logger, "pod_uids_by_labels", labels=pairs)
        try:
            request = self._builder.pods_by_labels(pairs)
        except UsageError as exc:
            log.error("empty_label_filter", error=str(exc))
            raise
        try:
            pods = decode_pods(self._store.query(request))
        except CostGraphError as exc:
            log.error("pods_by_labels_failed", error=str(exc))
            raise
        return unique_uids(pods)

    def live_pods(self) -> list[Pod]:
        """Running pods with outbound edge counts and selecting services."""
        log = query_logger(_logger, "live_pods")
        try:
            return decode_pods(self._store.query(self._builder.live_pods()))
        except CostGraphError as exc:
            log.error("live_pods_failed", error=str(exc))
            raise
