"""Editor-layer exception hierarchy.

Local errors (``InvalidConnectionError``, ``NodeNotFoundError``,
``EdgeNotFoundError``, ``CommitInProgressError``) are raised synchronously
by the mutation recorder and leave the session untouched.

``UnresolvedReferenceError`` is never raised out of a commit; the commit
engine records it against the edge that could not be sent.

All editor exceptions inherit from ``EditorError`` to enable blanket
``except EditorError`` handling at the UI boundary.
"""

from __future__ import annotations


class EditorError(Exception):
    """Base exception for all graph-editor failures."""

    error_code = "editor_error"


class InvalidConnectionError(EditorError):
    """Raised when a connection would break the entry/exit role rules.

    Attributes
    ----------
    source_id : int
        Requested source node.
    target_id : int
        Requested target node.
    reason : str
        Which rule was violated.
    """

    error_code = "invalid_connection"

    def __init__(self, source_id: int, target_id: int, reason: str) -> None:
        super().__init__(
            f"cannot connect {source_id} -> {target_id}: {reason}"
        )
        self.source_id = source_id
        self.target_id = target_id
        self.reason = reason


class NodeNotFoundError(EditorError, KeyError):
    """Raised when a node id is not present in the graph model."""

    error_code = "node_not_found"

    def __init__(self, node_id: int) -> None:
        super().__init__(f"node {node_id} not in graph")
        self.node_id = node_id

    def __str__(self) -> str:
        return str(self.args[0])


class EdgeNotFoundError(EditorError, KeyError):
    """Raised when an edge id is not present in the graph model."""

    error_code = "edge_not_found"

    def __init__(self, edge_id: int) -> None:
        super().__init__(f"edge {edge_id} not in graph")
        self.edge_id = edge_id

    def __str__(self) -> str:
        return str(self.args[0])


class UnresolvedReferenceError(EditorError):
    """An edge endpoint has no persistent id after the node-create phase."""

    error_code = "unresolved_reference"

    def __init__(self, edge_id: int, node_id: int) -> None:
        super().__init__(
            f"edge {edge_id} references node {node_id}, "
            "which was not persisted"
        )
        self.edge_id = edge_id
        self.node_id = node_id


class CommitInProgressError(EditorError):
    """Raised when the session is touched while a commit is in flight."""

    error_code = "commit_in_progress"

    def __init__(self, action: str = "commit") -> None:
        super().__init__(f"cannot {action} while a commit is in flight")
        self.action = action
