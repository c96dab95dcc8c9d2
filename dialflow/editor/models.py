"""Data models for the graph editor.

Nodes and edges are mutable dataclasses owned by ``GraphModel``; the UI
only ever sees the frozen ``NodeView`` / ``EdgeView`` copies inside a
``GraphSnapshot``.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from dialflow.editor.identity import is_temporary


class NodeRole(str, Enum):  # noqa: UP042
    """Where a node may sit in a call flow."""

    ENTRY = "entry"
    INTERIOR = "interior"
    EXIT = "exit"


class PendingState(str, Enum):  # noqa: UP042
    """Sync state of an entity relative to the remote store."""

    CLEAN = "clean"
    TO_CREATE = "to_create"
    TO_UPDATE = "to_update"
    TO_DELETE = "to_delete"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class Position:
    """Canvas coordinates."""

    x: float = 0.0
    y: float = 0.0

    @classmethod
    def coerce(cls, value: Position | Mapping[str, Any] | tuple) -> Position:
        if isinstance(value, Position):
            return value
        if isinstance(value, Mapping):
            return cls(float(value.get("x", 0.0)), float(value.get("y", 0.0)))
        x, y = value
        return cls(float(x), float(y))

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(slots=True)
class NodeType:
    """Entry in the read-only node-type catalog.

    Attributes
    ----------
    type_id : int
        Catalog identifier referenced by ``Node.type_id``.
    name : str
        Machine name, e.g. ``"Dial"`` or ``"Hangup"``.
    category : str
        One of ``extension``, ``application``, ``flowcontrol``, ``action``,
        ``terminal`` for dialplans, or a journey action type.
    role : NodeRole
        Resolved once when the catalog is loaded.
    """

    type_id: int
    name: str
    category: str = ""
    role: NodeRole = NodeRole.INTERIOR
    description: str = ""
    default_params: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class Node:
    """A dialplan or journey step on the canvas."""

    id: int
    type_id: int
    role: NodeRole
    label: str = ""
    name: str = ""
    position: Position = field(default_factory=Position)
    properties: dict[str, Any] = field(default_factory=dict)
    pending: PendingState = PendingState.CLEAN

    @property
    def is_temporary(self) -> bool:
        return is_temporary(self.id)

    def view(self) -> NodeView:
        return NodeView(
            id=self.id,
            type_id=self.type_id,
            role=self.role,
            label=self.label,
            name=self.name,
            position=self.position,
            properties=MappingProxyType(copy.deepcopy(self.properties)),
            pending=self.pending,
        )


@dataclass(slots=True)
class Edge:
    """A directed connection between two nodes."""

    id: int
    source_id: int
    target_id: int
    condition: str | None = None
    priority: int = 1
    pending: PendingState = PendingState.CLEAN

    def __post_init__(self) -> None:
        if self.priority < 1:
            raise ValueError("priority must be a positive integer")

    @property
    def is_temporary(self) -> bool:
        return is_temporary(self.id)

    def touches(self, node_id: int) -> bool:
        return self.source_id == node_id or self.target_id == node_id

    def view(self) -> EdgeView:
        return EdgeView(
            id=self.id,
            source_id=self.source_id,
            target_id=self.target_id,
            condition=self.condition,
            priority=self.priority,
            pending=self.pending,
        )


@dataclass(frozen=True, slots=True)
class NodeView:
    """Read-only copy of a node for rendering."""

    id: int
    type_id: int
    role: NodeRole
    label: str
    name: str
    position: Position
    properties: Mapping[str, Any]
    pending: PendingState


@dataclass(frozen=True, slots=True)
class EdgeView:
    """Read-only copy of an edge for rendering."""

    id: int
    source_id: int
    target_id: int
    condition: str | None
    priority: int
    pending: PendingState


@dataclass(frozen=True, slots=True)
class GraphSnapshot:
    """Point-in-time, immutable picture of the graph model."""

    nodes: tuple[NodeView, ...] = ()
    edges: tuple[EdgeView, ...] = ()

    def node(self, node_id: int) -> NodeView | None:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def edges_of(self, node_id: int) -> tuple[EdgeView, ...]:
        return tuple(
            e for e in self.edges
            if e.source_id == node_id or e.target_id == node_id
        )
