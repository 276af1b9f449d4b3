"""Graph store: the node arena and adjacency index for a dependency graph.

Nodes are NodeIds carrying their NodeInfo as the ``info`` attribute; a
directed edge ``u -> v`` means "package-version u depends on
package-version v". Backed by a NetworkX DiGraph, so node and edge
insertion and neighbor lookup are amortized O(1) for every node.
"""

import threading
from collections.abc import Iterator

import networkx as nx

from pkggraph.errors import GraphFrozenError
from pkggraph.models.graph import NodeId, NodeInfo


class GraphStore:
    """Directed graph keyed by NodeId.

    Writes are serialized with a lock. After ``freeze()`` the store is
    read-only and can be queried from any number of threads.
    """

    def __init__(self) -> None:
        self._graph = nx.DiGraph()
        self._lock = threading.Lock()
        self._frozen = False

    @classmethod
    def from_digraph(cls, graph: nx.DiGraph) -> "GraphStore":
        """Wrap an existing DiGraph whose nodes are NodeIds."""
        store = cls()
        store._graph = graph
        return store

    @property
    def digraph(self) -> nx.DiGraph:
        """Underlying NetworkX graph. Do not mutate it directly."""
        return self._graph

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "GraphStore":
        """Make the store read-only. Returns self."""
        with self._lock:
            self._frozen = True
        return self

    def _check_writable(self) -> None:
        if self._frozen:
            raise GraphFrozenError("graph store is frozen")

    def add_node(self, node_id: NodeId, info: NodeInfo | None = None) -> None:
        """Add a node. Adding an existing id again is a no-op (info is kept)."""
        with self._lock:
            self._check_writable()
            if node_id in self._graph:
                return
            self._graph.add_node(node_id, info=info)

    def add_edge(self, source: NodeId, target: NodeId) -> None:
        """Add a directed edge between two existing nodes. Idempotent.

        Raises:
            KeyError: If either endpoint has not been added.
        """
        with self._lock:
            self._check_writable()
            if source not in self._graph:
                raise KeyError(source)
            if target not in self._graph:
                raise KeyError(target)
            self._graph.add_edge(source, target)

    def add_edges(self, edges: list[tuple[NodeId, NodeId]]) -> int:
        """Add many edges under one lock acquisition.

        Returns:
            Number of edges that were not already present.
        """
        added = 0
        with self._lock:
            self._check_writable()
            graph = self._graph
            for source, target in edges:
                if source not in graph:
                    raise KeyError(source)
                if target not in graph:
                    raise KeyError(target)
                if not graph.has_edge(source, target):
                    graph.add_edge(source, target)
                    added += 1
        return added

    def has_node(self, node_id: NodeId) -> bool:
        return node_id in self._graph

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._graph

    def __len__(self) -> int:
        return self._graph.number_of_nodes()

    def has_edge(self, source: NodeId, target: NodeId) -> bool:
        """True if the directed edge ``source -> target`` exists."""
        return self._graph.has_edge(source, target)

    def node(self, node_id: NodeId) -> NodeInfo | None:
        """NodeInfo for a node, or None if the node is absent or has no info."""
        if node_id not in self._graph:
            return None
        return self._graph.nodes[node_id].get("info")

    def successors(self, node_id: NodeId) -> list[NodeId]:
        """Direct dependencies of a node (empty if the node is absent)."""
        if node_id not in self._graph:
            return []
        return list(self._graph.successors(node_id))

    def predecessors(self, node_id: NodeId) -> list[NodeId]:
        """Direct dependents of a node (empty if the node is absent)."""
        if node_id not in self._graph:
            return []
        return list(self._graph.predecessors(node_id))

    def nodes(self) -> Iterator[NodeId]:
        return iter(self._graph.nodes())

    def infos(self) -> Iterator[NodeInfo]:
        """Iterate NodeInfo payloads (nodes without info are skipped)."""
        for _, info in self._graph.nodes(data="info"):
            if info is not None:
                yield info

    def edges(self) -> Iterator[tuple[NodeId, NodeId]]:
        return iter(self._graph.edges())

    def number_of_nodes(self) -> int:
        return self._graph.number_of_nodes()

    def number_of_edges(self) -> int:
        return self._graph.number_of_edges()
