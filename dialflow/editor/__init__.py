"""Graph edit buffer and commit engine for the dialplan/journey editors.

Public API:
    - EditSession          - one open graph: recorder operations + commit()
    - MutationRecorder     - local edits, no network
    - CommitEngine         - phased flush to a RemoteGraphStore
    - CommitReport         - per-category counts and failed entities
    - GraphModel           - nodes/edges with role and cascade invariants
    - ChangeBuffer         - pending creates, updates, deletes
    - TempIdAllocator      - negative ids for unsaved entities
    - NodeTypeCatalog      - node types with resolved entry/exit roles
    - EditorError          - base exception for blanket catch
"""

from __future__ import annotations

from dialflow.editor.buffer import ChangeBuffer, EdgeDraft, NodeDraft, NodePatch
from dialflow.editor.catalog import NodeTypeCatalog, resolve_role
from dialflow.editor.commit import CommitEngine, CommitFailure, CommitPhase, CommitReport
from dialflow.editor.exceptions import (
    CommitInProgressError,
    EdgeNotFoundError,
    EditorError,
    InvalidConnectionError,
    NodeNotFoundError,
    UnresolvedReferenceError,
)
from dialflow.editor.graph import GraphModel
from dialflow.editor.identity import TempIdAllocator, is_temporary
from dialflow.editor.models import (
    Edge,
    EdgeView,
    GraphSnapshot,
    Node,
    NodeRole,
    NodeType,
    NodeView,
    PendingState,
    Position,
)
from dialflow.editor.recorder import MutationRecorder
from dialflow.editor.session import EditSession

__all__ = [
    "ChangeBuffer",
    "CommitEngine",
    "CommitFailure",
    "CommitInProgressError",
    "CommitPhase",
    "CommitReport",
    "Edge",
    "EdgeDraft",
    "EdgeNotFoundError",
    "EdgeView",
    "EditSession",
    "EditorError",
    "GraphModel",
    "GraphSnapshot",
    "InvalidConnectionError",
    "MutationRecorder",
    "Node",
    "NodeDraft",
    "NodeNotFoundError",
    "NodePatch",
    "NodeRole",
    "NodeType",
    "NodeTypeCatalog",
    "NodeView",
    "PendingState",
    "Position",
    "TempIdAllocator",
    "UnresolvedReferenceError",
    "is_temporary",
    "resolve_role",
]
