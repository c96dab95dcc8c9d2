"""Async HTTP client for the dialplan graph API.

Routes (relative to ``api_url``):

    GET    /dialplan/node-types
    GET    /dialplan/contexts/{ctx}/nodes
    POST   /dialplan/contexts/{ctx}/nodes
    PUT    /dialplan/nodes/{id}
    DELETE /dialplan/nodes/{id}          (fallback: POST /dialplan/nodes/delete)
    GET    /dialplan/contexts/{ctx}/connections
    POST   /dialplan/connections
    DELETE /dialplan/connections/{id}    (fallback: POST /dialplan/connections/delete)
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from dialflow.config import EditorSettings, get_settings
from dialflow.remote.exceptions import (
    RemoteFailureError,
    RemoteNotFoundError,
    RemoteNotImplementedError,
)
from dialflow.remote.schemas import (
    EdgeCreate,
    NodeCreate,
    NodeTypeRecord,
    NodeUpdate,
    PersistedEdge,
    PersistedNode,
)

log = logging.getLogger(__name__)

__all__ = ["HttpGraphStore"]

NODES = "/dialplan/nodes"
CONNECTIONS = "/dialplan/connections"

_NOT_IMPLEMENTED_STATUSES = frozenset({405, 501})


def _unwrap(body: Any) -> Any:
    """Strip a ``{"data": ...}`` envelope if the server sent one."""
    if isinstance(body, dict) and "data" in body and "id" not in body:
        return body["data"]
    return body


class HttpGraphStore:
    """``RemoteGraphStore`` backed by ``httpx.AsyncClient``."""

    def __init__(
        self,
        settings: EditorSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the underlying async client."""
        if self._client is None or self._client.is_closed:
            headers = {"Accept": "application/json"}
            if self.settings.api_token:
                headers["Authorization"] = f"Bearer {self.settings.api_token}"
            self._client = httpx.AsyncClient(
                base_url=self.settings.api_url,
                timeout=self.settings.request_timeout,
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpGraphStore:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(
        self, method: str, path: str, json_body: dict | None = None
    ) -> Any:
        """Send one request and map the status onto the store exceptions."""
        try:
            response = await self._get_client().request(method, path, json=json_body)
        except httpx.HTTPError as exc:
            raise RemoteFailureError(
                f"{method} {path} failed: {exc}", path=path
            ) from exc

        status = response.status_code
        if status == 404:
            raise RemoteNotFoundError(
                f"{method} {path} returned 404", status_code=status, path=path
            )
        if status in _NOT_IMPLEMENTED_STATUSES:
            raise RemoteNotImplementedError(
                f"{method} {path} is not implemented ({status})",
                status_code=status,
                path=path,
            )
        if response.is_error:
            raise RemoteFailureError(
                f"{method} {path} returned {status}: {response.text[:200]}",
                status_code=status,
                path=path,
            )
        if status == 204 or not response.content:
            return None
        try:
            return _unwrap(response.json())
        except ValueError as exc:
            raise RemoteFailureError(
                f"{method} {path} returned a non-JSON body",
                status_code=status,
                path=path,
            ) from exc

    async def _delete(self, collection: str, entity_id: int) -> None:
        try:
            await self._request("DELETE", f"{collection}/{entity_id}")
            return
        except RemoteNotFoundError:
            if not self.settings.delete_fallback:
                raise
        log.warning(
            "DELETE %s/%d returned 404, trying %s/delete", collection, entity_id, collection
        )
        try:
            await self._request("POST", f"{collection}/delete", {"id": entity_id})
        except RemoteNotFoundError as exc:
            raise RemoteNotImplementedError(
                f"no working delete route under {collection}",
                status_code=exc.status_code,
                path=exc.path,
            ) from exc

    # -- nodes -------------------------------------------------------------

    async def create_node(self, context_id: int, payload: NodeCreate) -> PersistedNode:
        body = await self._request(
            "POST", f"/dialplan/contexts/{context_id}/nodes", payload.to_wire()
        )
        return PersistedNode.model_validate(body)

    async def update_node(self, node_id: int, payload: NodeUpdate) -> PersistedNode:
        body = await self._request("PUT", f"{NODES}/{node_id}", payload.to_wire())
        return PersistedNode.model_validate(body)

    async def delete_node(self, node_id: int) -> None:
        await self._delete(NODES, node_id)

    async def list_nodes(self, context_id: int) -> list[PersistedNode]:
        body = await self._request("GET", f"/dialplan/contexts/{context_id}/nodes")
        return [PersistedNode.model_validate(n) for n in body or []]

    async def list_node_types(self) -> list[NodeTypeRecord]:
        body = await self._request("GET", "/dialplan/node-types")
        return [NodeTypeRecord.model_validate(t) for t in body or []]

    # -- edges -------------------------------------------------------------

    async def create_edge(self, payload: EdgeCreate) -> PersistedEdge:
        body = await self._request("POST", CONNECTIONS, payload.to_wire())
        return PersistedEdge.model_validate(body)

    async def delete_edge(self, edge_id: int) -> None:
        await self._delete(CONNECTIONS, edge_id)

    async def list_edges(self, context_id: int) -> list[PersistedEdge]:
        body = await self._request(
            "GET", f"/dialplan/contexts/{context_id}/connections"
        )
        return [PersistedEdge.model_validate(e) for e in body or []]
