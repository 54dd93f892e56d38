"""Graph store access.

Exports:
    GraphStore   -- Protocol the query service depends on.
    DgraphClient -- httpx-backed implementation for Dgraph's /query endpoint.
"""

from costgraph.store.client import DgraphClient, GraphStore

__all__ = ["DgraphClient", "GraphStore"]
