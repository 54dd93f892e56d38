"""Collapse pods reached through more than one label edge."""

from __future__ import annotations

from collections.abc import Iterable

from costgraph.models.pods import Pod, PodRef


def unique_uids(pods: Iterable[Pod | PodRef]) -> list[str]:
    """Return distinct uids in first-seen order.

    Identity is the store uid, never the name: names are not unique across
    the graph.
    """
    seen: set[str] = set()
    uids: list[str] = []
    for pod in pods:
        if pod.uid not in seen:
            seen.add(pod.uid)
            uids.append(pod.uid)
    return uids
