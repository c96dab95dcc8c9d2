"""Mutation recorder: the operations the canvas calls on every user action.

Each operation updates the graph model and the change buffer together and
either completes fully or raises before touching either. Nothing here
awaits or talks to the remote store; cost is paid at commit time.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Mapping

from dialflow.editor.buffer import ChangeBuffer, EdgeDraft, NodeDraft
from dialflow.editor.catalog import NodeTypeCatalog
from dialflow.editor.graph import GraphModel
from dialflow.editor.identity import TempIdAllocator
from dialflow.editor.models import Edge, EdgeView, Node, NodeView, PendingState, Position

log = logging.getLogger(__name__)

__all__ = ["MutationRecorder"]

_UNSET: Any = object()


def _check_priority(priority: int) -> None:
    if priority < 1:
        raise ValueError("priority must be a positive integer")


def _draft_of(node: Node) -> NodeDraft:
    return NodeDraft(
        temp_id=node.id,
        type_id=node.type_id,
        name=node.name,
        label=node.label,
        position=node.position,
        properties=copy.deepcopy(node.properties),
    )


class MutationRecorder:
    """Funnel for every local edit to the graph."""

    def __init__(
        self,
        graph: GraphModel,
        buffer: ChangeBuffer,
        allocator: TempIdAllocator,
        catalog: NodeTypeCatalog,
    ) -> None:
        self.graph = graph
        self.buffer = buffer
        self.allocator = allocator
        self.catalog = catalog

    # -- nodes -------------------------------------------------------------

    def add_node(
        self,
        type_id: int,
        position: Position | Mapping[str, Any] | tuple = (0.0, 0.0),
        properties: Mapping[str, Any] | None = None,
        label: str | None = None,
    ) -> NodeView:
        """Place a new, not yet persisted node on the canvas.

        Returns a read-only view; the id in it stays the temporary id even
        after a commit assigns the persistent one.
        """
        position = Position.coerce(position)
        node_type = self.catalog.get(type_id)
        if properties is None and node_type is not None:
            properties = node_type.default_params
        name = node_type.name if node_type is not None else f"type-{type_id}"
        node = Node(
            id=self.allocator.next_temp_id(),
            type_id=type_id,
            role=self.catalog.role_of(type_id),
            label=label if label is not None else name,
            name=name,
            position=position,
            properties=copy.deepcopy(dict(properties or {})),
            pending=PendingState.TO_CREATE,
        )
        self.graph.insert_node(node)
        self.buffer.record_node_create(_draft_of(node))
        log.debug("add_node %d (type=%s, role=%s)", node.id, type_id, node.role.value)
        return node.view()

    def move_node(
        self, node_id: int, position: Position | Mapping[str, Any] | tuple
    ) -> None:
        position = Position.coerce(position)
        node = self.graph.node(node_id)
        self._record_change(node, position=position)
        node.position = position
        self._mark_changed(node)

    def set_node_properties(
        self, node_id: int, properties: Mapping[str, Any]
    ) -> None:
        """Replace a node's properties wholesale."""
        properties = copy.deepcopy(dict(properties))
        node = self.graph.node(node_id)
        self._record_change(node, properties=properties)
        node.properties = properties
        self._mark_changed(node)

    def set_node_label(self, node_id: int, label: str) -> None:
        node = self.graph.node(node_id)
        self._record_change(node, label=label)
        node.label = label
        self._mark_changed(node)

    def delete_node(self, node_id: int) -> list[int]:
        """Remove a node and every edge attached to it.

        Returns the ids of the edges removed by the cascade.
        """
        node = self.graph.node(node_id)
        cascaded = [e.id for e in self.graph.edges_touching(node_id)]
        for edge_id in cascaded:
            self.disconnect(edge_id)
        self.graph.remove_node(node_id)
        self.buffer.record_node_delete(node_id)
        node.pending = PendingState.TO_DELETE
        log.debug("delete_node %d (cascaded edges %s)", node_id, cascaded)
        return cascaded

    def _record_change(self, node: Node, **fields: Any) -> None:
        # A temporary node can lose its draft when a failed commit drops
        # the buffer; editing it queues the create again.
        if node.is_temporary and node.id not in self.buffer.nodes_to_create:
            log.info("Re-queueing create for unsaved node %d", node.id)
            self.buffer.record_node_create(_draft_of(node))
        self.buffer.record_node_change(node.id, **fields)

    def _mark_changed(self, node: Node) -> None:
        node.pending = (
            PendingState.TO_CREATE if node.is_temporary else PendingState.TO_UPDATE
        )

    # -- edges -------------------------------------------------------------

    def connect(
        self,
        source_id: int,
        target_id: int,
        condition: str | None = None,
        priority: int = 1,
    ) -> EdgeView:
        """Draw a new edge; raises ``InvalidConnectionError`` on role violations."""
        _check_priority(priority)
        self.graph.check_connection(source_id, target_id)
        edge = Edge(
            id=self.allocator.next_temp_id(),
            source_id=source_id,
            target_id=target_id,
            condition=condition,
            priority=priority,
            pending=PendingState.TO_CREATE,
        )
        self.graph.insert_edge(edge)
        self.buffer.record_edge_create(
            EdgeDraft(
                temp_id=edge.id,
                source_id=source_id,
                target_id=target_id,
                condition=condition,
                priority=priority,
            )
        )
        log.debug("connect %d: %d -> %d", edge.id, source_id, target_id)
        return edge.view()

    def disconnect(self, edge_id: int) -> None:
        edge = self.graph.remove_edge(edge_id)
        self.buffer.record_edge_delete(edge_id)
        edge.pending = PendingState.TO_DELETE
        log.debug("disconnect %d", edge_id)

    def reconnect(
        self,
        edge_id: int,
        condition: str | None = _UNSET,
        priority: int = _UNSET,
    ) -> EdgeView:
        """Change an edge's guard or priority by replacing the edge."""
        old = self.graph.edge(edge_id)
        if condition is _UNSET:
            condition = old.condition
        if priority is _UNSET:
            priority = old.priority
        _check_priority(priority)
        self.disconnect(edge_id)
        return self.connect(old.source_id, old.target_id, condition, priority)
