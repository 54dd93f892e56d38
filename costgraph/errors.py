"""Exception hierarchy for costgraph.

UsageError  -- invalid caller input, detected before any store request.
StoreError  -- the graph store request failed (transport, HTTP status, or
               errors reported by the store itself).
DecodeError -- the store answered, but the payload does not have the
               expected shape.
"""

from __future__ import annotations


class CostGraphError(Exception):
    """Base class for all costgraph errors."""


class UsageError(CostGraphError):
    """Raised when a caller supplies an invalid argument combination."""


class StoreError(CostGraphError):
    """Raised when the graph store request fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DecodeError(CostGraphError):
    """Raised when a store response cannot be mapped to typed records."""

    def __init__(self, message: str, root: str = "") -> None:
        super().__init__(f"{root}: {message}" if root else message)
        self.root = root
