"""Request shapes for pod topology, hierarchy and cost queries.

Each method returns one self-contained :class:`~costgraph.query.dql.Query`;
nothing here talks to the store. Root block names (``pods``, ``parent``,
``pod``) are part of the response contract read by the decoder.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from costgraph.errors import UsageError
from costgraph.query.dql import (
    And,
    Block,
    Count,
    Edge,
    Eq,
    Field,
    Has,
    Not,
    Or,
    Predicate,
    Query,
    Uid,
)
from costgraph.query.proration import UnitPrices, cost_fields

ALL = "all"

_NAME = (Field("name"),)
_NAME_TYPE = (Field("name"), Field("type"))

_OUTBOUND = Edge("pod", _NAME, alias="outbound")
_INBOUND = Edge("pod", _NAME, alias="inbound", reverse=True, filter=Has("isPod"))


def require_single_target(name: str, operation: str) -> None:
    """Raise :class:`UsageError` unless *name* names exactly one pod."""
    if not name or name == ALL:
        raise UsageError(f"{operation} needs a single pod name, got {name!r}")


def label_filter(labels: Mapping[str, Iterable[str]]) -> Predicate:
    """OR together one ``key == k AND value == v`` clause per label pair.

    Only OR semantics are supported: a label node matches if it equals any
    of the requested pairs.
    """
    clauses: list[Predicate] = [
        And((Eq("key", key), Eq("value", value)))
        for key, values in labels.items()
        for value in values
    ]
    if not clauses:
        raise UsageError("label filter needs at least one key/value pair")
    if len(clauses) == 1:
        return clauses[0]
    return Or(tuple(clauses))


class QueryBuilder:
    """Builds the pod query requests.

    Args:
        storage_price: default storage price per GB-hour. Storage has no
                       per-node override, so it is fixed at construction.
    """

    def __init__(self, storage_price: float) -> None:
        self._storage_price = storage_price

    def interactions(self, name: str, orphan: bool = False) -> Query:
        """Pods with one hop of outbound and inbound selection edges.

        For ``ALL`` the *orphan* flag picks between pods with no outbound
        selection edge and pods that do select others.
        """
        pod_filter: Predicate
        if name == ALL:
            pod_filter = Not(Has("pod")) if orphan else Has("pod")
        else:
            pod_filter = Eq("name", name)
        block = Block("pods", Has("isPod"), (Field("name"), _OUTBOUND, _INBOUND), filter=pod_filter)
        return Query((block,))

    def hierarchy(self, name: str) -> Query:
        """A pod and its containers."""
        require_single_target(name, "hierarchy")
        children = Edge("pod", _NAME_TYPE, alias="children", reverse=True, filter=Has("isContainer"))
        block = Block("parent", Has("isPod"), (*_NAME_TYPE, children), filter=Eq("name", name))
        return Query((block,))

    def cost_hierarchy(
        self,
        name: str,
        window_seconds: float,
        cpu_price: float,
        memory_price: float,
    ) -> Query:
        """A pod and its containers, each carrying prorated cost fields.

        Prices come from the pricing resolver and are inlined as literals;
        *window_seconds* is the length of the billing window so far.
        """
        require_single_target(name, "cost hierarchy")
        prices = UnitPrices(cpu=cpu_price, memory=memory_price, storage=self._storage_price)
        children = Edge(
            "pod",
            (*_NAME_TYPE, *cost_fields(window_seconds, prices, suffix="Child", include_storage=False)),
            alias="children",
            reverse=True,
            filter=Has("isContainer"),
        )
        selections = (*_NAME_TYPE, children, *cost_fields(window_seconds, prices))
        block = Block("parent", Has("isPod"), selections, filter=Eq("name", name))
        return Query((block,))

    def pods_by_labels(self, labels: Mapping[str, Iterable[str]]) -> Query:
        """Uids and names of pods carrying any of the given labels."""
        var_block = Block(
            "var",
            Has("isLabel"),
            (Edge("label", _NAME, var="podUIDs", reverse=True, filter=Has("isPod")),),
            filter=label_filter(labels),
        )
        pods = Block("pods", Uid("podUIDs"), (Field("uid"), Field("name")))
        return Query((var_block, pods))

    def live_pods(self) -> Query:
        """Running pods with their outbound edges and the services selecting them."""
        selections = (
            Field("name"),
            Edge("pod", _NAME),
            Count("pod", alias="outboundCount"),
            Edge("pod", _NAME, alias="cid", reverse=True, filter=Has("isService")),
        )
        return Query((Block("pods", Has("isPod"), selections, filter=Not(Has("endTime"))),))

    def pod_prices(self, name: str) -> Query:
        """Override prices recorded on a single pod."""
        block = Block("pod", Has("isPod"), (Field("cpuPrice"), Field("memoryPrice")), filter=Eq("name", name))
        return Query((block,))
