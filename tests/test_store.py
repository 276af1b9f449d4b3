"""Tests for the graph store."""

import threading

import pytest

from pkggraph.errors import GraphFrozenError
from pkggraph.graph.store import GraphStore
from pkggraph.models.graph import NodeInfo


@pytest.fixture
def store() -> GraphStore:
    s = GraphStore()
    for node_id in range(3):
        s.add_node(node_id, NodeInfo(id=node_id, name=f"p{node_id}", version="1.0.0"))
    return s


class TestNodes:
    """Node insertion and lookup."""

    def test_add_node_is_idempotent(self, store: GraphStore) -> None:
        """Adding an existing id leaves the count unchanged and keeps its info."""
        store.add_node(0, NodeInfo(id=0, name="other", version="9.9.9"))

        assert store.number_of_nodes() == 3
        assert store.node(0).name == "p0"

    def test_lookup(self, store: GraphStore) -> None:
        """has_node / node / membership."""
        assert store.has_node(1)
        assert 2 in store
        assert not store.has_node(7)
        assert store.node(7) is None
        assert store.node(1).label == "p1@1.0.0"

    def test_node_without_info(self) -> None:
        """Nodes may be added without a payload."""
        s = GraphStore()
        s.add_node(4)

        assert s.has_node(4)
        assert s.node(4) is None
        assert list(s.infos()) == []


class TestEdges:
    """Edge insertion and lookup."""

    def test_edge_is_directed(self, store: GraphStore) -> None:
        """u -> v does not imply v -> u."""
        store.add_edge(0, 1)

        assert store.has_edge(0, 1)
        assert not store.has_edge(1, 0)

    def test_add_edge_is_idempotent(self, store: GraphStore) -> None:
        """Adding the same edge twice keeps one edge."""
        store.add_edge(0, 1)
        store.add_edge(0, 1)

        assert store.number_of_edges() == 1

    def test_add_edges_reports_new_edges_only(self, store: GraphStore) -> None:
        """Batch insert returns how many edges were new."""
        store.add_edge(0, 1)

        added = store.add_edges([(0, 1), (0, 2), (1, 2), (0, 2)])

        assert added == 2
        assert store.number_of_edges() == 3

    def test_edge_to_unknown_node_rejected(self, store: GraphStore) -> None:
        """Both endpoints must already exist."""
        with pytest.raises(KeyError):
            store.add_edge(0, 42)
        with pytest.raises(KeyError):
            store.add_edges([(42, 0)])
        assert store.number_of_nodes() == 3

    def test_successors_and_predecessors(self, store: GraphStore) -> None:
        """Neighbor lookups work for any node, not only a root."""
        store.add_edges([(0, 1), (0, 2), (1, 2)])

        assert sorted(store.successors(0)) == [1, 2]
        assert store.successors(1) == [2]
        assert sorted(store.predecessors(2)) == [0, 1]
        assert store.successors(99) == []
        assert store.predecessors(99) == []

    def test_self_loop_allowed(self, store: GraphStore) -> None:
        """Self-loops are not forbidden."""
        store.add_edge(1, 1)

        assert store.has_edge(1, 1)


class TestFreeze:
    """Freezing makes the store read-only."""

    def test_writes_after_freeze_fail(self, store: GraphStore) -> None:
        store.add_edge(0, 1)
        store.freeze()

        assert store.is_frozen
        with pytest.raises(GraphFrozenError):
            store.add_node(10)
        with pytest.raises(GraphFrozenError):
            store.add_edge(1, 2)
        with pytest.raises(GraphFrozenError):
            store.add_edges([(1, 2)])
        assert store.has_edge(0, 1)


class TestConcurrentWrites:
    """Writes from several threads are serialized."""

    def test_parallel_edge_insertion(self) -> None:
        s = GraphStore()
        for node_id in range(200):
            s.add_node(node_id)

        def writer(offset: int) -> None:
            for source in range(offset, 200, 4):
                for target in range(0, 200, 10):
                    s.add_edge(source, target)

        threads = [threading.Thread(target=writer, args=(i,)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert s.number_of_edges() == 200 * 20
