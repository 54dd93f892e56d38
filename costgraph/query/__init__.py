"""Query construction for the pod graph.

Submodules:
    dql        -- Structured request objects rendered to DQL text.
    proration  -- Billing window helpers and prorated cost bindings.
    builder    -- The request shapes issued by the query service.
    decoder    -- Store response -> typed records.
    dedupe     -- Uid deduplication for multi-path traversals.
"""

from costgraph.query.builder import ALL, QueryBuilder
from costgraph.query.dql import Query

__all__ = ["ALL", "Query", "QueryBuilder"]
