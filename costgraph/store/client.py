"""Dgraph HTTP client.

Posts rendered DQL to ``<endpoint>/query`` and unwraps the ``data`` object
of the response. Every failure (transport error, timeout, non-2xx status,
unparseable body, or an ``errors`` array reported by Dgraph) surfaces as
:class:`~costgraph.errors.StoreError`; retries and cancellation are left to
the caller.
"""

from __future__ import annotations

import json
from typing import Any, Protocol

import httpx

from costgraph.errors import StoreError
from costgraph.observability.logging import get_logger
from costgraph.query.dql import Query

_log = get_logger("store.client")


class GraphStore(Protocol):
    """What the query service needs from a graph store."""

    def query(self, request: Query) -> dict[str, Any]:
        """Execute *request* and return the decoded ``data`` object."""
        ...

    def query_raw(self, request: Query) -> bytes:
        """Execute *request* and return the ``data`` object as JSON bytes."""
        ...

    def close(self) -> None:
        """Release connections held by the store."""
        ...


class DgraphClient:
    """Synchronous :class:`GraphStore` backed by Dgraph's HTTP endpoint.

    Args:
        endpoint: Base URL of the Dgraph alpha, e.g. ``http://dgraph:8080``.
        timeout:  HTTP request timeout in seconds. Defaults to 30.
        client:   Optional preconfigured ``httpx.Client`` (used by tests).
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        if not endpoint:
            raise ValueError("Dgraph endpoint must not be empty")
        self._url = endpoint.rstrip("/") + "/query"
        self._client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> DgraphClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def query(self, request: Query) -> dict[str, Any]:
        return self._execute(request.render())

    def query_raw(self, request: Query) -> bytes:
        return json.dumps(self._execute(request.render())).encode()

    def _execute(self, text: str) -> dict[str, Any]:
        try:
            response = self._client.post(
                self._url,
                content=text.encode(),
                headers={"Content-Type": "application/dql"},
            )
        except httpx.TimeoutException as exc:
            _log.warning("dgraph_request_timeout", url=self._url)
            raise StoreError(f"Dgraph request timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            _log.warning("dgraph_http_error", url=self._url, error=str(exc))
            raise StoreError(f"Dgraph request failed: {exc}") from exc

        if not response.is_success:
            _log.warning(
                "dgraph_non_2xx_response",
                status_code=response.status_code,
                body=response.text[:200],
            )
            raise StoreError(
                f"Dgraph returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise StoreError("Dgraph returned a non-JSON body", status_code=response.status_code) from exc

        errors = body.get("errors") if isinstance(body, dict) else None
        if errors:
            message = "; ".join(str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors)
            raise StoreError(f"Dgraph query error: {message}", status_code=response.status_code)

        data = body.get("data") if isinstance(body, dict) else None
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise StoreError("Dgraph response data is not an object", status_code=response.status_code)
        return data
