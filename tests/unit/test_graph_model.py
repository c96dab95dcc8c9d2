"""Unit tests for the graph model."""

from __future__ import annotations

import pytest

from dialflow.editor.exceptions import (
    EdgeNotFoundError,
    InvalidConnectionError,
    NodeNotFoundError,
)
from dialflow.editor.graph import GraphModel
from dialflow.editor.models import Edge, Node, NodeRole, Position


@pytest.fixture
def graph() -> GraphModel:
    g = GraphModel()
    g.insert_node(Node(id=1, type_id=1, role=NodeRole.ENTRY, label="start"))
    g.insert_node(Node(id=2, type_id=2, role=NodeRole.INTERIOR, label="dial"))
    g.insert_node(Node(id=3, type_id=3, role=NodeRole.EXIT, label="hangup"))
    g.insert_edge(Edge(id=10, source_id=1, target_id=2))
    return g


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def test_missing_node_raises(graph):
    with pytest.raises(NodeNotFoundError):
        graph.node(42)


def test_missing_edge_raises(graph):
    with pytest.raises(EdgeNotFoundError):
        graph.edge(42)


def test_not_found_errors_are_key_errors(graph):
    """Callers catching KeyError still see unknown ids."""
    with pytest.raises(KeyError):
        graph.node(42)


def test_edges_touching(graph):
    graph.insert_edge(Edge(id=11, source_id=2, target_id=3))
    assert {e.id for e in graph.edges_touching(2)} == {10, 11}
    assert {e.id for e in graph.edges_touching(3)} == {11}


# ---------------------------------------------------------------------------
# Role invariants
# ---------------------------------------------------------------------------


def test_entry_node_rejects_incoming(graph):
    with pytest.raises(InvalidConnectionError):
        graph.insert_edge(Edge(id=11, source_id=2, target_id=1))


def test_exit_node_rejects_outgoing(graph):
    with pytest.raises(InvalidConnectionError):
        graph.insert_edge(Edge(id=11, source_id=3, target_id=2))


def test_self_loop_rejected(graph):
    with pytest.raises(InvalidConnectionError) as exc_info:
        graph.check_connection(2, 2)
    assert exc_info.value.reason == "self-loop"


def test_edge_with_unknown_endpoint_rejected(graph):
    with pytest.raises(NodeNotFoundError):
        graph.insert_edge(Edge(id=11, source_id=2, target_id=99))


def test_edge_priority_must_be_positive():
    with pytest.raises(ValueError):
        Edge(id=1, source_id=1, target_id=2, priority=0)


# ---------------------------------------------------------------------------
# Mutation
# ---------------------------------------------------------------------------


def test_remove_node_with_edges_refused(graph):
    """The cascade belongs to the recorder; the model refuses dangling edges."""
    with pytest.raises(ValueError):
        graph.remove_node(1)
    assert graph.has_node(1)


def test_rekey_node_rewrites_edges(graph):
    graph.insert_node(Node(id=-1, type_id=2, role=NodeRole.INTERIOR))
    graph.insert_edge(Edge(id=-2, source_id=-1, target_id=3))
    graph.rekey_node(-1, 50)
    assert graph.has_node(50)
    assert not graph.has_node(-1)
    assert graph.node(50).id == 50
    assert graph.edge(-2).source_id == 50


def test_rekey_edge(graph):
    graph.rekey_edge(10, 77)
    assert graph.edge(77).source_id == 1
    assert not graph.has_edge(10)


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


def test_snapshot_is_a_copy(graph):
    graph.node(2).properties["timeout"] = 30
    snap = graph.snapshot()
    graph.node(2).properties["timeout"] = 60
    graph.node(2).position = Position(5, 5)
    view = snap.node(2)
    assert view.properties["timeout"] == 30
    assert view.position == Position(0, 0)
    with pytest.raises(TypeError):
        view.properties["timeout"] = 1  # type: ignore[index]


def test_snapshot_edges_of(graph):
    snap = graph.snapshot()
    assert [e.id for e in snap.edges_of(2)] == [10]
    assert snap.node(99) is None
