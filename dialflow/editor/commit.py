"""Commit engine: flush the change buffer to the remote graph store.

A commit runs five phases strictly in sequence:

1. create nodes   (builds the temp id -> persistent id map)
2. update nodes
3. create edges   (endpoints resolved through the map from phase 1)
4. delete nodes
5. delete edges

Inside a phase every request is issued concurrently and fails on its own;
phase N+1 starts only after every request of phase N has settled. Delete
requests answered with not-found / not-implemented count as applied.

After the last phase the graph model is reconciled: temporary ids are
rewritten to persistent ids and succeeded entities become clean. Failed
items either stay pending in the buffer (``retain_failed=True``) or are
dropped with the rest of the buffer.

``commit()`` does not raise for per-entity failures; callers inspect the
returned ``CommitReport``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar

from dialflow.editor.buffer import ChangeBuffer, EdgeDraft, NodeDraft, NodePatch
from dialflow.editor.exceptions import UnresolvedReferenceError
from dialflow.editor.graph import GraphModel
from dialflow.editor.identity import is_temporary
from dialflow.editor.models import PendingState
from dialflow.remote.exceptions import RemoteStoreError
from dialflow.remote.schemas import EdgeCreate, NodeCreate, NodeUpdate, WirePosition
from dialflow.remote.store import RemoteGraphStore

log = logging.getLogger(__name__)

__all__ = [
    "CommitEngine",
    "CommitFailure",
    "CommitPhase",
    "CommitReport",
]

T = TypeVar("T")


class CommitPhase(str, Enum):  # noqa: UP042
    """Phases of a commit, in execution order."""

    CREATE_NODES = "create_nodes"
    UPDATE_NODES = "update_nodes"
    CREATE_EDGES = "create_edges"
    DELETE_NODES = "delete_nodes"
    DELETE_EDGES = "delete_edges"


@dataclass(frozen=True, slots=True)
class CommitFailure:
    """One entity that could not be synchronised.

    Attributes
    ----------
    kind : str
        ``"node"`` or ``"edge"``.
    entity_id : int
        Id the entity had when the commit started.
    phase : CommitPhase
        Phase in which it failed.
    error_code : str
        ``error_code`` of the captured exception, or its class name.
    message : str
        Human-readable reason.
    """

    kind: str
    entity_id: int
    phase: CommitPhase
    error_code: str
    message: str


@dataclass(slots=True)
class CommitReport:
    """Outcome of one commit, for operator-facing messaging."""

    created_nodes: int = 0
    created_edges: int = 0
    updated_nodes: int = 0
    deleted_nodes: int = 0
    deleted_edges: int = 0
    failed_node_ids: set[int] = field(default_factory=set)
    failed_edge_ids: set[int] = field(default_factory=set)
    degraded_endpoints: bool = False
    id_map: dict[int, int] = field(default_factory=dict)
    failures: list[CommitFailure] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return (
            self.created_nodes
            + self.created_edges
            + self.updated_nodes
            + self.deleted_nodes
            + self.deleted_edges
        )

    @property
    def failed(self) -> int:
        return len(self.failed_node_ids) + len(self.failed_edge_ids)

    @property
    def ok(self) -> bool:
        return not self.failed_node_ids and not self.failed_edge_ids

    def summary(self) -> str:
        counts = (
            f"{self.created_nodes} nodes and {self.created_edges} connections created, "
            f"{self.updated_nodes} nodes updated, "
            f"{self.deleted_nodes} nodes and {self.deleted_edges} connections deleted"
        )
        if not self.ok:
            text = (
                f"Saved with some errors: {counts}. Failed: "
                f"{len(self.failed_node_ids)} nodes, "
                f"{len(self.failed_edge_ids)} connections."
            )
        else:
            text = f"Saved: {counts}."
        if self.degraded_endpoints:
            text += " Some API endpoints may not be fully implemented yet."
        return text


def _error_code(exc: BaseException) -> str:
    return getattr(exc, "error_code", type(exc).__name__)


class CommitEngine:
    """Drains a ``ChangeBuffer`` into a ``RemoteGraphStore``.

    Parameters
    ----------
    graph : GraphModel
        Model reconciled after the phases finish.
    buffer : ChangeBuffer
        Pending changes; drained by ``commit()``.
    store : RemoteGraphStore
        Backend receiving the requests.
    context_id : int
        Dialplan context (or journey) the new nodes belong to.
    max_concurrent_requests : int
        Upper bound on in-flight requests within one phase.
    retain_failed : bool
        Keep failed items in the buffer for the next commit.
    """

    def __init__(
        self,
        graph: GraphModel,
        buffer: ChangeBuffer,
        store: RemoteGraphStore,
        context_id: int,
        *,
        max_concurrent_requests: int = 10,
        retain_failed: bool = True,
    ) -> None:
        if max_concurrent_requests < 1:
            raise ValueError("max_concurrent_requests must be positive")
        self.graph = graph
        self.buffer = buffer
        self.store = store
        self.context_id = context_id
        self.max_concurrent_requests = max_concurrent_requests
        self.retain_failed = retain_failed

    async def commit(self) -> CommitReport:
        """Run the five phases and reconcile the graph model."""
        report = CommitReport()
        if self.buffer.is_empty():
            log.debug("Nothing to commit for context %s", self.context_id)
            return report

        log.info("Committing context %s: %r", self.context_id, self.buffer)
        semaphore = asyncio.Semaphore(self.max_concurrent_requests)

        node_drafts = list(self.buffer.nodes_to_create.values())
        patches = list(self.buffer.nodes_to_update.values())
        edge_drafts = list(self.buffer.edges_to_create.values())
        node_deletes = sorted(self.buffer.nodes_to_delete)
        edge_deletes = sorted(self.buffer.edges_to_delete)

        await self._create_nodes(node_drafts, semaphore, report)
        updated = await self._update_nodes(patches, semaphore, report)
        created_edges = await self._create_edges(edge_drafts, semaphore, report)
        deleted_nodes = await self._delete(
            CommitPhase.DELETE_NODES, "node", node_deletes,
            self.store.delete_node, semaphore, report,
        )
        deleted_edges = await self._delete(
            CommitPhase.DELETE_EDGES, "edge", edge_deletes,
            self.store.delete_edge, semaphore, report,
        )

        self._reconcile(report, updated, created_edges, deleted_nodes, deleted_edges)

        if report.ok:
            log.info("Commit for context %s done: %s", self.context_id, report.summary())
        else:
            log.warning(
                "Commit for context %s partially failed: %s",
                self.context_id,
                report.summary(),
            )
        return report

    # -- phase runner ------------------------------------------------------

    @staticmethod
    async def _run_phase(
        phase: CommitPhase,
        calls: list[tuple[int, Callable[[], Awaitable[T]]]],
        semaphore: asyncio.Semaphore,
    ) -> list[tuple[int, T | Exception]]:
        """Issue every call concurrently; collect results or exceptions per key."""

        async def run(key: int, call: Callable[[], Awaitable[T]]) -> tuple[int, T | Exception]:
            async with semaphore:
                try:
                    return key, await call()
                except Exception as exc:
                    return key, exc

        if not calls:
            return []
        log.debug("Phase %s: %d requests", phase.value, len(calls))
        return list(await asyncio.gather(*(run(k, c) for k, c in calls)))

    def _fail(
        self,
        report: CommitReport,
        kind: str,
        entity_id: int,
        phase: CommitPhase,
        exc: BaseException,
    ) -> None:
        if kind == "node":
            report.failed_node_ids.add(entity_id)
        else:
            report.failed_edge_ids.add(entity_id)
        if isinstance(exc, RemoteStoreError) and exc.degraded:
            report.degraded_endpoints = True
        report.failures.append(
            CommitFailure(kind, entity_id, phase, _error_code(exc), str(exc))
        )
        log.warning("%s %s %d failed: %s", phase.value, kind, entity_id, exc)

    # -- phases ------------------------------------------------------------

    async def _create_nodes(
        self,
        drafts: list[NodeDraft],
        semaphore: asyncio.Semaphore,
        report: CommitReport,
    ) -> None:
        def call(draft: NodeDraft) -> Callable[[], Awaitable[Any]]:
            payload = NodeCreate(
                node_type_id=draft.type_id,
                name=draft.name,
                label=draft.label,
                position=WirePosition(x=draft.position.x, y=draft.position.y),
                properties=draft.properties,
            )
            return lambda: self.store.create_node(self.context_id, payload)

        results = await self._run_phase(
            CommitPhase.CREATE_NODES, [(d.temp_id, call(d)) for d in drafts], semaphore
        )
        for temp_id, result in results:
            if isinstance(result, Exception):
                self._fail(report, "node", temp_id, CommitPhase.CREATE_NODES, result)
                continue
            report.id_map[temp_id] = result.id
            report.created_nodes += 1

    async def _update_nodes(
        self,
        patches: list[NodePatch],
        semaphore: asyncio.Semaphore,
        report: CommitReport,
    ) -> list[int]:
        def call(patch: NodePatch) -> Callable[[], Awaitable[Any]]:
            payload = NodeUpdate(
                label=patch.label,
                position=(
                    WirePosition(x=patch.position.x, y=patch.position.y)
                    if patch.position is not None
                    else None
                ),
                properties=patch.properties,
            )
            return lambda: self.store.update_node(patch.node_id, payload)

        results = await self._run_phase(
            CommitPhase.UPDATE_NODES, [(p.node_id, call(p)) for p in patches], semaphore
        )
        updated = []
        for node_id, result in results:
            if isinstance(result, Exception):
                self._fail(report, "node", node_id, CommitPhase.UPDATE_NODES, result)
                continue
            updated.append(node_id)
            report.updated_nodes += 1
        return updated

    async def _create_edges(
        self,
        drafts: list[EdgeDraft],
        semaphore: asyncio.Semaphore,
        report: CommitReport,
    ) -> dict[int, int]:
        def resolve(node_id: int) -> int | None:
            if not is_temporary(node_id):
                return node_id
            return report.id_map.get(node_id)

        calls = []
        for draft in drafts:
            source = resolve(draft.source_id)
            target = resolve(draft.target_id)
            if source is None or target is None:
                missing = draft.source_id if source is None else draft.target_id
                self._fail(
                    report,
                    "edge",
                    draft.temp_id,
                    CommitPhase.CREATE_EDGES,
                    UnresolvedReferenceError(draft.temp_id, missing),
                )
                continue
            payload = EdgeCreate(
                source_node_id=source,
                target_node_id=target,
                condition=draft.condition,
                priority=draft.priority,
            )
            calls.append((draft.temp_id, self._bind(self.store.create_edge, payload)))

        results = await self._run_phase(CommitPhase.CREATE_EDGES, calls, semaphore)
        created: dict[int, int] = {}
        for temp_id, result in results:
            if isinstance(result, Exception):
                self._fail(report, "edge", temp_id, CommitPhase.CREATE_EDGES, result)
                continue
            created[temp_id] = result.id
            report.created_edges += 1
        return created

    async def _delete(
        self,
        phase: CommitPhase,
        kind: str,
        ids: list[int],
        delete: Callable[[int], Awaitable[None]],
        semaphore: asyncio.Semaphore,
        report: CommitReport,
    ) -> list[int]:
        results = await self._run_phase(
            phase, [(i, self._bind(delete, i)) for i in ids], semaphore
        )
        deleted = []
        for entity_id, result in results:
            if isinstance(result, RemoteStoreError) and result.degraded:
                # Soft success: the entity is gone either way.
                report.degraded_endpoints = True
                log.warning(
                    "%s %s %d: %s; treating as deleted",
                    phase.value, kind, entity_id, result,
                )
            elif isinstance(result, Exception):
                self._fail(report, kind, entity_id, phase, result)
                continue
            deleted.append(entity_id)
            if kind == "node":
                report.deleted_nodes += 1
            else:
                report.deleted_edges += 1
        return deleted

    @staticmethod
    def _bind(fn: Callable[..., Awaitable[T]], *args: Any) -> Callable[[], Awaitable[T]]:
        return lambda: fn(*args)

    # -- reconciliation ----------------------------------------------------

    def _reconcile(
        self,
        report: CommitReport,
        updated: list[int],
        created_edges: dict[int, int],
        deleted_nodes: list[int],
        deleted_edges: list[int],
    ) -> None:
        graph, buffer = self.graph, self.buffer

        for temp_id, node_id in report.id_map.items():
            buffer.nodes_to_create.pop(temp_id, None)
            buffer.rewrite_endpoint(temp_id, node_id)
            if graph.has_node(temp_id):
                graph.rekey_node(temp_id, node_id)
                graph.node(node_id).pending = PendingState.CLEAN

        for temp_id, edge_id in created_edges.items():
            buffer.edges_to_create.pop(temp_id, None)
            if graph.has_edge(temp_id):
                graph.rekey_edge(temp_id, edge_id)
                graph.edge(edge_id).pending = PendingState.CLEAN

        for node_id in updated:
            buffer.nodes_to_update.pop(node_id, None)
            if graph.has_node(node_id):
                graph.node(node_id).pending = PendingState.CLEAN

        buffer.nodes_to_delete.difference_update(deleted_nodes)
        buffer.edges_to_delete.difference_update(deleted_edges)

        leftover = PendingState.FAILED if self.retain_failed else PendingState.CLEAN
        for node_id in report.failed_node_ids:
            if graph.has_node(node_id):
                graph.node(node_id).pending = leftover
        for edge_id in report.failed_edge_ids:
            if graph.has_edge(edge_id):
                graph.edge(edge_id).pending = leftover

        if not self.retain_failed:
            buffer.clear()
        elif not buffer.is_empty():
            log.info(
                "%d failed changes kept for the next commit: %r",
                buffer.pending_count(),
                buffer,
            )
