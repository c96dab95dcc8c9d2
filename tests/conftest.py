"""Shared test fixtures for dialflow."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from dialflow.config import EditorSettings, get_settings
from dialflow.editor import (
    ChangeBuffer,
    EditSession,
    GraphModel,
    MutationRecorder,
    NodeTypeCatalog,
    TempIdAllocator,
)
from dialflow.remote import (
    EdgeCreate,
    NodeCreate,
    NodeTypeRecord,
    NodeUpdate,
    PersistedEdge,
    PersistedNode,
    RemoteNotFoundError,
)

ENTRY_TYPE = 1
DIAL_TYPE = 2
HANGUP_TYPE = 3
PLAYBACK_TYPE = 4

NODE_TYPE_RECORDS = [
    {"id": ENTRY_TYPE, "name": "Extension", "category": "extension"},
    {"id": DIAL_TYPE, "name": "Dial", "category": "application",
     "defaultParams": {"timeout": 30}},
    {"id": HANGUP_TYPE, "name": "Hangup", "category": "terminal"},
    {"id": PLAYBACK_TYPE, "name": "Playback", "category": "application"},
]


@pytest.fixture(autouse=True)
def set_test_env(monkeypatch):
    """Set test environment variables."""
    monkeypatch.setenv("DIALFLOW_API_URL", "http://dialer.test/api")
    monkeypatch.setenv("DIALFLOW_API_TOKEN", "test-token")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class FakeGraphStore:
    """In-memory ``RemoteGraphStore`` that records every call.

    ``failures`` maps ``(method, key)`` to the exception to raise, where the
    key is the node label for ``create_node``, the ``(source, target)`` pair
    for ``create_edge`` and the entity id otherwise.
    """

    def __init__(self, nodes=(), edges=(), next_id: int = 100, delay: float = 0.0):
        self.nodes: dict[int, PersistedNode] = {n.id: n for n in nodes}
        self.edges: dict[int, PersistedEdge] = {e.id: e for e in edges}
        self.calls: list[tuple[str, Any]] = []
        self.failures: dict[tuple[str, Any], Exception] = {}
        self._next_id = next_id
        self.delay = delay

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    async def _maybe_fail(self, method: str, key: Any) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        exc = self.failures.get((method, key))
        if exc is not None:
            raise exc

    def methods(self) -> list[str]:
        return [m for m, _ in self.calls]

    async def create_node(self, context_id: int, payload: NodeCreate) -> PersistedNode:
        self.calls.append(("create_node", payload))
        await self._maybe_fail("create_node", payload.label)
        node = PersistedNode(
            id=self._new_id(),
            context_id=context_id,
            node_type_id=payload.node_type_id,
            name=payload.name,
            label=payload.label,
            position=payload.position,
            properties=payload.properties,
        )
        self.nodes[node.id] = node
        return node

    async def update_node(self, node_id: int, payload: NodeUpdate) -> PersistedNode:
        self.calls.append(("update_node", (node_id, payload)))
        await self._maybe_fail("update_node", node_id)
        node = self.nodes[node_id]
        changes = payload.model_dump(exclude_none=True)
        updated = node.model_copy(update={k: getattr(payload, k) for k in changes})
        self.nodes[node_id] = updated
        return updated

    async def delete_node(self, node_id: int) -> None:
        self.calls.append(("delete_node", node_id))
        await self._maybe_fail("delete_node", node_id)
        if self.nodes.pop(node_id, None) is None:
            raise RemoteNotFoundError(f"node {node_id} not found", status_code=404)

    async def create_edge(self, payload: EdgeCreate) -> PersistedEdge:
        self.calls.append(("create_edge", payload))
        await self._maybe_fail(
            "create_edge", (payload.source_node_id, payload.target_node_id)
        )
        edge = PersistedEdge(
            id=self._new_id(),
            source_node_id=payload.source_node_id,
            target_node_id=payload.target_node_id,
            condition=payload.condition,
            priority=payload.priority,
        )
        self.edges[edge.id] = edge
        return edge

    async def delete_edge(self, edge_id: int) -> None:
        self.calls.append(("delete_edge", edge_id))
        await self._maybe_fail("delete_edge", edge_id)
        if self.edges.pop(edge_id, None) is None:
            raise RemoteNotFoundError(f"edge {edge_id} not found", status_code=404)

    async def list_nodes(self, context_id: int) -> list[PersistedNode]:
        return list(self.nodes.values())

    async def list_edges(self, context_id: int) -> list[PersistedEdge]:
        return list(self.edges.values())

    async def list_node_types(self) -> list[NodeTypeRecord]:
        return [NodeTypeRecord.model_validate(r) for r in NODE_TYPE_RECORDS]


def persisted_node(node_id: int, type_id: int, label: str = "") -> PersistedNode:
    return PersistedNode(
        id=node_id,
        context_id=7,
        node_type_id=type_id,
        name=label or f"n{node_id}",
        label=label or f"n{node_id}",
    )


def persisted_edge(edge_id: int, source: int, target: int) -> PersistedEdge:
    return PersistedEdge(id=edge_id, source_node_id=source, target_node_id=target)


@pytest.fixture
def settings() -> EditorSettings:
    """Editor settings with failed items retained."""
    return EditorSettings(api_url="http://dialer.test/api", retain_failed=True)


@pytest.fixture
def catalog() -> NodeTypeCatalog:
    return NodeTypeCatalog.from_records(NODE_TYPE_RECORDS)


@pytest.fixture
def recorder(catalog) -> MutationRecorder:
    """Recorder over an empty graph."""
    return MutationRecorder(GraphModel(), ChangeBuffer(), TempIdAllocator(), catalog)


@pytest.fixture
def store() -> FakeGraphStore:
    """Store holding A(1, entry) -> B(2, exit) via edge 10."""
    return FakeGraphStore(
        nodes=[persisted_node(1, ENTRY_TYPE, "A"), persisted_node(2, HANGUP_TYPE, "B")],
        edges=[persisted_edge(10, 1, 2)],
    )


@pytest.fixture
def session(store, catalog, settings) -> EditSession:
    """Session loaded from ``store``."""
    s = EditSession(store, 7, catalog, settings)
    s.load(list(store.nodes.values()), list(store.edges.values()))
    return s


@pytest.fixture
def types():
    """Node type ids of the test catalog."""

    class _Types:
        ENTRY = ENTRY_TYPE
        DIAL = DIAL_TYPE
        HANGUP = HANGUP_TYPE
        PLAYBACK = PLAYBACK_TYPE

    return _Types


@pytest.fixture
def make_store():
    """Factory for ``FakeGraphStore`` instances."""
    return FakeGraphStore


@pytest.fixture
def node_record():
    return persisted_node


@pytest.fixture
def edge_record():
    return persisted_edge
