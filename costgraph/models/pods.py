"""Typed records decoded from graph store responses."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field


@dataclass(frozen=True)
class PodRef:
    """Minimal reference to a node: store uid and name."""

    name: str
    uid: str = ""


@dataclass
class Pod:
    """A pod node as returned by enumeration and lookup requests.

    Price fields are None when the pod records no override price.
    """

    name: str = ""
    uid: str = ""
    cpu_price: float | None = None
    memory_price: float | None = None
    outbound: list[PodRef] = field(default_factory=list)  # pods this pod selects
    outbound_count: int = 0
    services: list[PodRef] = field(default_factory=list)  # services selecting this pod


@dataclass
class HierarchyNode:
    """A pod or container in a hierarchy view, optionally with prorated cost."""

    name: str
    type: str = ""
    cpu: float | None = None
    memory: float | None = None
    storage: float | None = None
    cpu_cost: float | None = None
    memory_cost: float | None = None
    storage_cost: float | None = None
    children: list[HierarchyNode] = field(default_factory=list)

    @property
    def total_cost(self) -> float:
        """Sum of this node's own cost fields (children are not included)."""
        return sum(c for c in (self.cpu_cost, self.memory_cost, self.storage_cost) if c is not None)


@dataclass
class HierarchyResult:
    """Wrapper returned by hierarchy operations.

    ``data`` is None when the target is invalid, the store call failed, or
    no pod matched; callers render that as an empty view.
    """

    data: HierarchyNode | None = None

    @property
    def is_empty(self) -> bool:
        return self.data is None

    def to_dict(self) -> dict[str, object]:
        """Serialise to plain dicts, dropping fields that were not requested."""
        if self.data is None:
            return {}
        return {"data": _prune(asdict(self.data))}


def _prune(value: object) -> object:
    if isinstance(value, dict):
        return {k: _prune(v) for k, v in value.items() if v is not None and v != []}
    if isinstance(value, list):
        return [_prune(v) for v in value]
    return value
