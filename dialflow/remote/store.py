"""Protocol for the remote graph persistence API."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from dialflow.remote.schemas import (
    EdgeCreate,
    NodeCreate,
    NodeTypeRecord,
    NodeUpdate,
    PersistedEdge,
    PersistedNode,
)

__all__ = ["RemoteGraphStore"]


@runtime_checkable
class RemoteGraphStore(Protocol):
    """Backend that persists graph nodes and edges.

    Every method raises a ``RemoteStoreError`` subclass on failure:
    ``RemoteNotFoundError`` / ``RemoteNotImplementedError`` for degraded
    endpoints, ``RemoteFailureError`` for anything else.
    """

    async def create_node(self, context_id: int, payload: NodeCreate) -> PersistedNode:
        """Create a node inside ``context_id`` and return it with its server id."""
        ...

    async def update_node(self, node_id: int, payload: NodeUpdate) -> PersistedNode:
        ...

    async def delete_node(self, node_id: int) -> None:
        ...

    async def create_edge(self, payload: EdgeCreate) -> PersistedEdge:
        ...

    async def delete_edge(self, edge_id: int) -> None:
        ...

    async def list_nodes(self, context_id: int) -> list[PersistedNode]:
        ...

    async def list_edges(self, context_id: int) -> list[PersistedEdge]:
        ...

    async def list_node_types(self) -> list[NodeTypeRecord]:
        ...
