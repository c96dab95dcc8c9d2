"""Local change buffer: everything edited since the last commit.

Five disjoint collections:

- ``nodes_to_create``  temp id -> ``NodeDraft``
- ``nodes_to_update``  persistent id -> ``NodePatch`` (merged)
- ``nodes_to_delete``  persistent ids
- ``edges_to_create``  temp id -> ``EdgeDraft`` (endpoints may be temporary)
- ``edges_to_delete``  persistent ids
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from dialflow.editor.identity import is_temporary
from dialflow.editor.models import Position

__all__ = ["ChangeBuffer", "EdgeDraft", "NodeDraft", "NodePatch"]


@dataclass(slots=True)
class NodeDraft:
    """Full payload for a node that exists only on the client."""

    temp_id: int
    type_id: int
    name: str
    label: str
    position: Position
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class NodePatch:
    """Accumulated field changes for a persisted node.

    ``None`` means "unchanged"; later edits overwrite earlier ones.
    """

    node_id: int
    label: str | None = None
    position: Position | None = None
    properties: dict[str, Any] | None = None

    def merge(
        self,
        *,
        label: str | None = None,
        position: Position | None = None,
        properties: dict[str, Any] | None = None,
    ) -> None:
        if label is not None:
            self.label = label
        if position is not None:
            self.position = position
        if properties is not None:
            self.properties = copy.deepcopy(properties)


@dataclass(slots=True)
class EdgeDraft:
    """Payload for an edge that exists only on the client."""

    temp_id: int
    source_id: int
    target_id: int
    condition: str | None = None
    priority: int = 1


class ChangeBuffer:
    """Pending creates, updates and deletes for one editing session."""

    def __init__(self) -> None:
        self.nodes_to_create: dict[int, NodeDraft] = {}
        self.nodes_to_update: dict[int, NodePatch] = {}
        self.nodes_to_delete: set[int] = set()
        self.edges_to_create: dict[int, EdgeDraft] = {}
        self.edges_to_delete: set[int] = set()

    # -- nodes -------------------------------------------------------------

    def record_node_create(self, draft: NodeDraft) -> None:
        self.nodes_to_create[draft.temp_id] = draft

    def record_node_change(
        self,
        node_id: int,
        *,
        label: str | None = None,
        position: Position | None = None,
        properties: dict[str, Any] | None = None,
    ) -> None:
        """Fold a field change into the draft or the pending patch."""
        if is_temporary(node_id):
            draft = self.nodes_to_create[node_id]
            if label is not None:
                draft.label = label
            if position is not None:
                draft.position = position
            if properties is not None:
                draft.properties = copy.deepcopy(properties)
            return
        patch = self.nodes_to_update.get(node_id)
        if patch is None:
            patch = self.nodes_to_update[node_id] = NodePatch(node_id)
        patch.merge(label=label, position=position, properties=properties)

    def record_node_delete(self, node_id: int) -> None:
        if is_temporary(node_id):
            self.nodes_to_create.pop(node_id, None)
            return
        self.nodes_to_update.pop(node_id, None)
        self.nodes_to_delete.add(node_id)

    # -- edges -------------------------------------------------------------

    def record_edge_create(self, draft: EdgeDraft) -> None:
        self.edges_to_create[draft.temp_id] = draft

    def record_edge_delete(self, edge_id: int) -> None:
        if is_temporary(edge_id):
            self.edges_to_create.pop(edge_id, None)
            return
        self.edges_to_delete.add(edge_id)

    # -- bookkeeping -------------------------------------------------------

    def rewrite_endpoint(self, old_id: int, new_id: int) -> None:
        """Point retained edge drafts at a node's new persistent id."""
        for draft in self.edges_to_create.values():
            if draft.source_id == old_id:
                draft.source_id = new_id
            if draft.target_id == old_id:
                draft.target_id = new_id

    def is_empty(self) -> bool:
        return not (
            self.nodes_to_create
            or self.nodes_to_update
            or self.nodes_to_delete
            or self.edges_to_create
            or self.edges_to_delete
        )

    def pending_count(self) -> int:
        return (
            len(self.nodes_to_create)
            + len(self.nodes_to_update)
            + len(self.nodes_to_delete)
            + len(self.edges_to_create)
            + len(self.edges_to_delete)
        )

    def clear(self) -> None:
        self.nodes_to_create.clear()
        self.nodes_to_update.clear()
        self.nodes_to_delete.clear()
        self.edges_to_create.clear()
        self.edges_to_delete.clear()

    def __repr__(self) -> str:
        return (
            f"ChangeBuffer(create_nodes={len(self.nodes_to_create)}, "
            f"update_nodes={len(self.nodes_to_update)}, "
            f"delete_nodes={len(self.nodes_to_delete)}, "
            f"create_edges={len(self.edges_to_create)}, "
            f"delete_edges={len(self.edges_to_delete)})"
        )
