"""Editing session: one open dialplan context or journey in the editor.

The session owns the graph model, the change buffer and the temp-id
allocator, and is the only object the canvas talks to. All edits go
through its recorder methods; ``commit()`` flushes them. While a commit
is in flight the session refuses both edits and a second commit.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping

from dialflow.config import EditorSettings, get_settings
from dialflow.editor.buffer import ChangeBuffer
from dialflow.editor.catalog import NodeTypeCatalog
from dialflow.editor.commit import CommitEngine, CommitReport
from dialflow.editor.exceptions import CommitInProgressError, InvalidConnectionError
from dialflow.editor.graph import GraphModel
from dialflow.editor.identity import TempIdAllocator
from dialflow.editor.models import (
    Edge,
    EdgeView,
    GraphSnapshot,
    Node,
    NodeView,
    PendingState,
    Position,
)
from dialflow.editor.recorder import MutationRecorder
from dialflow.remote.schemas import PersistedEdge, PersistedNode
from dialflow.remote.store import RemoteGraphStore

log = logging.getLogger(__name__)

__all__ = ["EditSession"]

PositionLike = Position | Mapping[str, Any] | tuple


class EditSession:
    """Graph editor state for a single context.

    Parameters
    ----------
    store : RemoteGraphStore
        Backend used by ``commit()`` (and by ``open()`` to load).
    context_id : int
        Context whose graph is being edited.
    catalog : NodeTypeCatalog
        Node types, with roles already resolved.
    settings : EditorSettings | None
        Commit tuning; defaults to ``get_settings()``.
    """

    def __init__(
        self,
        store: RemoteGraphStore,
        context_id: int,
        catalog: NodeTypeCatalog,
        settings: EditorSettings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.context_id = context_id
        self.catalog = catalog
        self.graph = GraphModel()
        self.buffer = ChangeBuffer()
        self.allocator = TempIdAllocator()
        self.recorder = MutationRecorder(self.graph, self.buffer, self.allocator, catalog)
        self.engine = CommitEngine(
            self.graph,
            self.buffer,
            store,
            context_id,
            max_concurrent_requests=settings.max_concurrent_requests,
            retain_failed=settings.retain_failed,
        )
        self._committing = False

    @classmethod
    async def open(
        cls,
        store: RemoteGraphStore,
        context_id: int,
        *,
        catalog: NodeTypeCatalog | None = None,
        settings: EditorSettings | None = None,
    ) -> EditSession:
        """Load the node-type catalog and the persisted graph, then start editing."""
        if catalog is None:
            records = await store.list_node_types()
            catalog = NodeTypeCatalog.from_records(r.to_wire() for r in records)
        nodes, edges = await asyncio.gather(
            store.list_nodes(context_id), store.list_edges(context_id)
        )
        session = cls(store, context_id, catalog, settings)
        session.load(nodes, edges)
        return session

    def load(self, nodes: list[PersistedNode], edges: list[PersistedEdge]) -> None:
        """Replace the graph with persisted state and drop pending changes.

        Edges that point at unknown nodes or break the entry/exit rules are
        skipped so the model starts out valid.
        """
        self._guard("load")
        self.graph.clear()
        self.buffer.clear()
        for rec in nodes:
            self.graph.insert_node(
                Node(
                    id=rec.id,
                    type_id=rec.node_type_id,
                    role=self.catalog.role_of(rec.node_type_id),
                    label=rec.label,
                    name=rec.name,
                    position=Position(rec.position.x, rec.position.y),
                    properties=dict(rec.properties),
                    pending=PendingState.CLEAN,
                )
            )
        skipped = 0
        for rec in edges:
            if not (
                self.graph.has_node(rec.source_node_id)
                and self.graph.has_node(rec.target_node_id)
            ):
                log.warning(
                    "Skipping edge %d: endpoint %d or %d not in context %s",
                    rec.id, rec.source_node_id, rec.target_node_id, self.context_id,
                )
                skipped += 1
                continue
            try:
                self.graph.insert_edge(
                    Edge(
                        id=rec.id,
                        source_id=rec.source_node_id,
                        target_id=rec.target_node_id,
                        condition=rec.condition,
                        priority=max(rec.priority, 1),
                    )
                )
            except InvalidConnectionError as exc:
                log.warning("Skipping edge %d: %s", rec.id, exc)
                skipped += 1
        log.info(
            "Loaded context %s: %d nodes, %d edges (%d skipped)",
            self.context_id, len(self.graph), len(edges) - skipped, skipped,
        )

    # -- read side ---------------------------------------------------------

    def snapshot(self) -> GraphSnapshot:
        return self.graph.snapshot()

    @property
    def has_changes(self) -> bool:
        return not self.buffer.is_empty()

    @property
    def committing(self) -> bool:
        return self._committing

    # -- mutations ---------------------------------------------------------

    def _guard(self, action: str) -> None:
        if self._committing:
            raise CommitInProgressError(action)

    def add_node(
        self,
        type_id: int,
        position: PositionLike = (0.0, 0.0),
        properties: Mapping[str, Any] | None = None,
        label: str | None = None,
    ) -> NodeView:
        self._guard("add a node")
        return self.recorder.add_node(type_id, position, properties, label)

    def move_node(self, node_id: int, position: PositionLike) -> None:
        self._guard("move a node")
        self.recorder.move_node(node_id, position)

    def set_node_properties(self, node_id: int, properties: Mapping[str, Any]) -> None:
        self._guard("edit node properties")
        self.recorder.set_node_properties(node_id, properties)

    def set_node_label(self, node_id: int, label: str) -> None:
        self._guard("rename a node")
        self.recorder.set_node_label(node_id, label)

    def delete_node(self, node_id: int) -> list[int]:
        self._guard("delete a node")
        return self.recorder.delete_node(node_id)

    def connect(
        self,
        source_id: int,
        target_id: int,
        condition: str | None = None,
        priority: int = 1,
    ) -> EdgeView:
        self._guard("connect nodes")
        return self.recorder.connect(source_id, target_id, condition, priority)

    def disconnect(self, edge_id: int) -> None:
        self._guard("disconnect nodes")
        self.recorder.disconnect(edge_id)

    def reconnect(self, edge_id: int, **changes: Any) -> EdgeView:
        self._guard("change a connection")
        return self.recorder.reconnect(edge_id, **changes)

    # -- commit ------------------------------------------------------------

    async def commit(self) -> CommitReport:
        """Flush pending changes; see ``CommitEngine.commit``."""
        self._guard("commit")
        self._committing = True
        try:
            return await self.engine.commit()
        finally:
            self._committing = False
