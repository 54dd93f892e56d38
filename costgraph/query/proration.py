"""Time-window proration of workload cost.

The billing window is the current calendar month. Its length so far is
computed once, when a request is assembled, and inlined as a literal; the
node's own ``startTime``/``endTime`` are only known to the store, so the
remaining arithmetic is emitted as value-variable bindings that the store
evaluates per node:

    secondsSinceStart = min(since(startTime), windowSeconds)
    isTerminated      = count(endTime)
    secondsSinceEnd   = 0 if not isTerminated else since(endTime)
    durationInHours   = max((secondsSinceStart - secondsSinceEnd) / 3600, 0)
    <resource>Cost    = quantity * durationInHours * unitPrice

The final ``max(..., 0)`` clamps nodes whose end precedes the window start
(or whose timestamps are inverted) to zero cost instead of a negative one.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from costgraph.query.dql import (
    Compare,
    Cond,
    Const,
    Count,
    Field,
    MathField,
    Max,
    Ref,
    Selection,
    Since,
)

SECONDS_PER_HOUR = 3600


def current_month_start(now: datetime | None = None) -> datetime:
    """Return midnight UTC on the first day of *now*'s month."""
    now = (now or datetime.now(tz=UTC)).astimezone(UTC)
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def seconds_since(moment: datetime, now: datetime | None = None) -> float:
    now = now or datetime.now(tz=UTC)
    return (now - moment).total_seconds()


def billing_window_seconds(now: datetime | None = None) -> float:
    """Seconds elapsed since the start of the current billing month."""
    now = now or datetime.now(tz=UTC)
    return seconds_since(current_month_start(now), now)


@dataclass(frozen=True)
class UnitPrices:
    """Per-hour unit prices inlined into a cost request."""

    cpu: float
    memory: float
    storage: float


def duration_fields(window_seconds: float, suffix: str = "") -> list[Selection]:
    """Bindings that leave the in-window running hours in ``durationInHours<suffix>``."""
    w = Const(float(window_seconds))
    st, st_seconds = f"st{suffix}", f"stSeconds{suffix}"
    since_start = f"secondsSinceStart{suffix}"
    et, terminated = f"et{suffix}", f"isTerminated{suffix}"
    since_end = f"secondsSinceEnd{suffix}"
    hours = f"durationInHours{suffix}"
    return [
        Field("startTime", var=st),
        MathField(Since(st), var=st_seconds),
        MathField(Cond(Compare(">", Ref(st_seconds), w), w, Ref(st_seconds)), var=since_start),
        Field("endTime", var=et),
        Count("endTime", var=terminated),
        MathField(Cond(Compare("==", Ref(terminated), Const(0)), Const(0.0), Since(et)), var=since_end),
        MathField(
            Max((Ref(since_start) - Ref(since_end)) / SECONDS_PER_HOUR, Const(0.0)),
            var=hours,
        ),
    ]


def cost_fields(
    window_seconds: float,
    prices: UnitPrices,
    suffix: str = "",
    include_storage: bool = True,
) -> list[Selection]:
    """Quantity and prorated cost fields for one node.

    Containers carry no storage request, so child levels pass
    ``include_storage=False``. Storage is always priced at the default rate.
    """
    hours = Ref(f"durationInHours{suffix}")
    cpu, memory, storage = f"cpu{suffix}", f"memory{suffix}", f"storage{suffix}"
    fields = duration_fields(window_seconds, suffix)
    fields += [
        Field("cpuRequest", alias="cpu", var=cpu),
        Field("memoryRequest", alias="memory", var=memory),
    ]
    if include_storage:
        fields.append(Field("storageRequest", alias="storage", var=storage))
    fields += [
        MathField(Ref(cpu) * hours * prices.cpu, alias="cpuCost"),
        MathField(Ref(memory) * hours * prices.memory, alias="memoryCost"),
    ]
    if include_storage:
        fields.append(MathField(Ref(storage) * hours * prices.storage, alias="storageCost"))
    return fields


def evaluate_fields(
    fields: list[Selection],
    node: Mapping[str, Any],
    now: datetime,
) -> dict[str, Any]:
    """Evaluate scalar bindings for one node the way the store does.

    Returns the aliased output values. A math binding whose inputs are
    missing on the node is skipped, like the store skips it.
    """
    env: dict[str, Any] = {}
    out: dict[str, Any] = {}
    for sel in fields:
        if isinstance(sel, Field):
            value = node.get(sel.attr)
            key = sel.alias or sel.attr
        elif isinstance(sel, Count):
            raw = node.get(sel.attr)
            value = len(raw) if isinstance(raw, list) else int(raw is not None)
            key = sel.alias or f"count({sel.attr})"
        elif isinstance(sel, MathField):
            try:
                value = sel.expr.evaluate(env, now)
            except (KeyError, ZeroDivisionError):
                continue
            key = sel.alias
        else:
            continue
        if sel.var:
            env[sel.var] = value
        if key and value is not None:
            out[key] = value
    return out
