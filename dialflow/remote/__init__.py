"""Remote graph store: protocol, wire schemas and the HTTP implementation."""

from __future__ import annotations

from dialflow.remote.exceptions import (
    RemoteFailureError,
    RemoteNotFoundError,
    RemoteNotImplementedError,
    RemoteStoreError,
)
from dialflow.remote.http import HttpGraphStore
from dialflow.remote.schemas import (
    EdgeCreate,
    NodeCreate,
    NodeTypeRecord,
    NodeUpdate,
    PersistedEdge,
    PersistedNode,
    WirePosition,
)
from dialflow.remote.store import RemoteGraphStore

__all__ = [
    "EdgeCreate",
    "HttpGraphStore",
    "NodeCreate",
    "NodeTypeRecord",
    "NodeUpdate",
    "PersistedEdge",
    "PersistedNode",
    "RemoteFailureError",
    "RemoteGraphStore",
    "RemoteNotFoundError",
    "RemoteNotImplementedError",
    "RemoteStoreError",
    "WirePosition",
]
