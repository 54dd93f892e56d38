"""Shared fixtures for costgraph integration tests.

Provides an in-memory graph store that executes structured requests
(root functions, filters, forward/reverse edges, value and uid variables,
math bindings) over a small pod/container/service/label graph, so the
service can be exercised end to end without a running Dgraph.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from costgraph.errors import StoreError
from costgraph.models.config import PricingConfig
from costgraph.query.dql import Edge, Query, Selection, Uid
from costgraph.query.proration import evaluate_fields
from costgraph.service import PodQueryService

# ---------------------------------------------------------------------------
# Timestamp helpers
# ---------------------------------------------------------------------------

NOW = datetime(2026, 2, 18, 12, 0, 0, tzinfo=UTC)
MONTH_START = datetime(2026, 2, 1, tzinfo=UTC)
WINDOW_SECONDS = (NOW - MONTH_START).total_seconds()

PRICING = PricingConfig(cpu_per_hour=0.02, memory_per_gb_hour=0.005, storage_per_gb_hour=0.0001)


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------


class InMemoryGraphStore:
    """Executes :class:`Query` objects against a dict of nodes keyed by uid.

    Edge predicates (``pod``, ``label``) hold lists of target uids; every
    other attribute is a scalar. Set ``fail`` to make every call raise.
    """

    def __init__(self, nodes: dict[str, dict[str, Any]], now: datetime = NOW) -> None:
        self.nodes = nodes
        self.now = now
        self.calls: list[Query] = []
        self.fail = False
        self.closed = False

    def close(self) -> None:
        self.closed = True

    def add(self, uid: str, **attrs: Any) -> str:
        self.nodes[uid] = attrs
        return uid

    def query(self, request: Query) -> dict[str, Any]:
        self.calls.append(request)
        if self.fail:
            raise StoreError("connection refused")
        request.render()  # every executed request must also be renderable
        uid_vars: dict[str, list[str]] = {}
        out: dict[str, Any] = {}
        for block in request.blocks:
            if isinstance(block.func, Uid):
                roots = list(dict.fromkeys(uid_vars.get(block.func.var, [])))
            else:
                roots = [uid for uid in self.nodes if block.func.matches(self._view(uid))]
            if block.filter is not None:
                roots = [uid for uid in roots if block.filter.matches(self._view(uid))]
            results = [self._select(uid, block.selections, uid_vars) for uid in roots]
            if block.name != "var" and results:
                out[block.name] = results
        return out

    def query_raw(self, request: Query) -> bytes:
        return json.dumps(self.query(request)).encode()

    def _view(self, uid: str) -> dict[str, Any]:
        return {**self.nodes[uid], "uid": uid}

    def _hop(self, uid: str, edge: Edge) -> list[str]:
        if edge.reverse:
            return [src for src, attrs in self.nodes.items() if uid in attrs.get(edge.attr, [])]
        return list(self.nodes[uid].get(edge.attr, []))

    def _select(
        self,
        uid: str,
        selections: tuple[Selection, ...],
        uid_vars: dict[str, list[str]],
    ) -> dict[str, Any]:
        scalars = [s for s in selections if not isinstance(s, Edge)]
        out = {k: _jsonable(v) for k, v in evaluate_fields(scalars, self._view(uid), self.now).items()}
        for edge in (s for s in selections if isinstance(s, Edge)):
            targets = self._hop(uid, edge)
            if edge.filter is not None:
                targets = [t for t in targets if edge.filter.matches(self._view(t))]
            if edge.var:
                uid_vars.setdefault(edge.var, []).extend(targets)
            children = [self._select(t, edge.selections, uid_vars) for t in targets]
            if children:
                out[edge.alias or ("~" if edge.reverse else "") + edge.attr] = children
        return out


def _jsonable(value: Any) -> Any:
    return value.isoformat() if isinstance(value, datetime) else value


# ---------------------------------------------------------------------------
# Graph factory
# ---------------------------------------------------------------------------


def build_cluster() -> InMemoryGraphStore:
    """A small cluster.

    - ``frontend`` pod (started before the window, still running, override
      prices) owning containers ``nginx`` and ``sidecar``, labelled
      tier=frontend and env=prod, selected by service ``web``, selecting
      pod ``backend``.
    - ``backend`` pod (started 10h ago, still running), labelled
      tier=backend and env=prod.
    - ``batch`` pod (ran for 2h, ended 1h ago), labelled tier=batch.
    - ``worker`` pod with no labels and no edges.
    """
    store = InMemoryGraphStore({})
    store.add("0x10", isLabel=True, key="tier", value="frontend", name="tier=frontend")
    store.add("0x11", isLabel=True, key="tier", value="backend", name="tier=backend")
    store.add("0x12", isLabel=True, key="env", value="prod", name="env=prod")
    store.add("0x13", isLabel=True, key="tier", value="batch", name="tier=batch")

    store.add(
        "0x1",
        isPod=True,
        name="frontend",
        type="pod",
        startTime=MONTH_START - timedelta(days=40),
        cpuRequest=2.0,
        memoryRequest=4.0,
        storageRequest=10.0,
        cpuPrice=0.05,
        memoryPrice=0.02,
        pod=["0x2"],
        label=["0x10", "0x12"],
    )
    store.add(
        "0x2",
        isPod=True,
        name="backend",
        type="pod",
        startTime=NOW - timedelta(hours=10),
        cpuRequest=1.0,
        memoryRequest=2.0,
        storageRequest=0.0,
        label=["0x11", "0x12"],
    )
    store.add(
        "0x3",
        isPod=True,
        name="batch",
        type="pod",
        startTime=NOW - timedelta(hours=3),
        endTime=NOW - timedelta(hours=1),
        cpuRequest=4.0,
        memoryRequest=8.0,
        label=["0x13"],
    )
    store.add("0x4", isPod=True, name="worker", type="pod", startTime=NOW - timedelta(hours=1))

    store.add(
        "0x20",
        isContainer=True,
        name="nginx",
        type="container",
        startTime=NOW - timedelta(hours=5),
        cpuRequest=1.5,
        memoryRequest=3.0,
        pod=["0x1"],
    )
    store.add(
        "0x21",
        isContainer=True,
        name="sidecar",
        type="container",
        startTime=NOW - timedelta(hours=5),
        endTime=NOW - timedelta(hours=2),
        cpuRequest=0.5,
        memoryRequest=1.0,
        pod=["0x1"],
    )
    store.add("0x30", isService=True, name="web", pod=["0x1"])
    return store


@pytest.fixture
def cluster() -> InMemoryGraphStore:
    return build_cluster()


@pytest.fixture
def service(cluster: InMemoryGraphStore) -> PodQueryService:
    return PodQueryService(cluster, pricing=PRICING, clock=lambda: NOW)
