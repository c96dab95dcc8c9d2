"""In-memory graph model for one editing session.

``GraphModel`` holds nodes and edges keyed by id and enforces the two
structural invariants:

- every edge endpoint is a node in the model
- entry nodes take no incoming edge, exit nodes no outgoing edge

It knows nothing about the remote store or the change buffer; the
mutation recorder and the commit engine drive it.
"""

from __future__ import annotations

import logging
from typing import Iterator

from dialflow.editor.exceptions import (
    EdgeNotFoundError,
    InvalidConnectionError,
    NodeNotFoundError,
)
from dialflow.editor.models import (
    Edge,
    GraphSnapshot,
    Node,
    NodeRole,
)

log = logging.getLogger(__name__)

__all__ = ["GraphModel"]


class GraphModel:
    """Nodes and edges of the graph under edit."""

    def __init__(self) -> None:
        self._nodes: dict[int, Node] = {}
        self._edges: dict[int, Edge] = {}

    # -- queries -----------------------------------------------------------

    def node(self, node_id: int) -> Node:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise NodeNotFoundError(node_id) from None

    def edge(self, edge_id: int) -> Edge:
        try:
            return self._edges[edge_id]
        except KeyError:
            raise EdgeNotFoundError(edge_id) from None

    def has_node(self, node_id: int) -> bool:
        return node_id in self._nodes

    def has_edge(self, edge_id: int) -> bool:
        return edge_id in self._edges

    def nodes(self) -> Iterator[Node]:
        return iter(list(self._nodes.values()))

    def edges(self) -> Iterator[Edge]:
        return iter(list(self._edges.values()))

    def edges_touching(self, node_id: int) -> list[Edge]:
        return [e for e in self._edges.values() if e.touches(node_id)]

    def snapshot(self) -> GraphSnapshot:
        return GraphSnapshot(
            nodes=tuple(n.view() for n in self._nodes.values()),
            edges=tuple(e.view() for e in self._edges.values()),
        )

    def __len__(self) -> int:
        return len(self._nodes)

    # -- structural checks -------------------------------------------------

    def check_connection(self, source_id: int, target_id: int) -> None:
        """Raise ``InvalidConnectionError`` unless source -> target is legal."""
        source = self.node(source_id)
        target = self.node(target_id)
        if source_id == target_id:
            raise InvalidConnectionError(source_id, target_id, "self-loop")
        if source.role == NodeRole.EXIT:
            raise InvalidConnectionError(
                source_id, target_id, "exit node cannot have outgoing edges"
            )
        if target.role == NodeRole.ENTRY:
            raise InvalidConnectionError(
                source_id, target_id, "entry node cannot have incoming edges"
            )

    # -- mutation ----------------------------------------------------------

    def insert_node(self, node: Node) -> None:
        if node.id in self._nodes:
            raise ValueError(f"node {node.id} already in graph")
        self._nodes[node.id] = node

    def remove_node(self, node_id: int) -> Node:
        """Remove a node that no longer has attached edges."""
        node = self.node(node_id)
        if self.edges_touching(node_id):
            raise ValueError(f"node {node_id} still has attached edges")
        del self._nodes[node_id]
        return node

    def insert_edge(self, edge: Edge) -> None:
        if edge.id in self._edges:
            raise ValueError(f"edge {edge.id} already in graph")
        self.check_connection(edge.source_id, edge.target_id)
        self._edges[edge.id] = edge

    def remove_edge(self, edge_id: int) -> Edge:
        edge = self.edge(edge_id)
        del self._edges[edge_id]
        return edge

    def rekey_node(self, old_id: int, new_id: int) -> None:
        """Give a node its persistent id and rewrite attached edge endpoints."""
        node = self._nodes.pop(old_id)
        node.id = new_id
        self._nodes[new_id] = node
        for edge in self._edges.values():
            if edge.source_id == old_id:
                edge.source_id = new_id
            if edge.target_id == old_id:
                edge.target_id = new_id
        log.debug("Node %d is now %d", old_id, new_id)

    def rekey_edge(self, old_id: int, new_id: int) -> None:
        edge = self._edges.pop(old_id)
        edge.id = new_id
        self._edges[new_id] = edge
        log.debug("Edge %d is now %d", old_id, new_id)

    def clear(self) -> None:
        self._nodes.clear()
        self._edges.clear()
