"""Implicit graph view: nodes that own their neighbor lists.

An ``ImplicitNode`` only knows its own outgoing neighbors. Queries about
any other node start at the node they are called on (the root) and follow
neighbor links until the target is found, so the graph never needs a
global adjacency table. Dependency data can be cyclic (A -> B -> A), so
every search keeps its own visited set and expands each node at most once;
a query is bounded by the number of reachable nodes and always terminates.

For random access on a fully built graph prefer ``GraphStore``, which
answers neighbor queries for any node in O(1). ``ImplicitNode.from_store``
turns a region of a store into this linked form.
"""

from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass

from pkggraph.graph.store import GraphStore
from pkggraph.models.graph import NodeId, NodeInfo


@dataclass(frozen=True)
class Edge:
    """Directed edge between two implicit nodes."""

    source: "ImplicitNode"
    target: "ImplicitNode"

    @property
    def ids(self) -> tuple[NodeId, NodeId]:
        return (self.source.id, self.target.id)


class ImplicitNode:
    """A graph node that owns an ordered list of outgoing neighbors.

    All lookup methods treat ``self`` as the root of the search.
    """

    __slots__ = ("_id", "info", "neighbors")

    def __init__(self, node_id: NodeId, info: NodeInfo | None = None) -> None:
        self._id = node_id
        self.info = info
        self.neighbors: list[ImplicitNode] = []

    @property
    def id(self) -> NodeId:
        return self._id

    def __repr__(self) -> str:
        label = self.info.label if self.info is not None else ""
        return f"ImplicitNode({self._id}{', ' + label if label else ''})"

    def add_neighbor(self, node: "ImplicitNode") -> None:
        """Add an outgoing link ``self -> node``."""
        self.neighbors.append(node)

    def walk(self) -> Iterator["ImplicitNode"]:
        """Yield the root, then every reachable node once, depth-first.

        Iterative, so deep dependency chains do not hit the recursion limit.
        """
        seen = {self._id}
        yield self
        stack = [iter(self.neighbors)]
        while stack:
            for neighbor in stack[-1]:
                if neighbor.id in seen:
                    continue
                seen.add(neighbor.id)
                yield neighbor
                stack.append(iter(neighbor.neighbors))
                break
            else:
                stack.pop()

    def node(self, node_id: NodeId) -> "ImplicitNode | None":
        """Find a node reachable from this root by id.

        Returns:
            The node, or None if it is not reachable.
        """
        if node_id == self._id:
            return self
        for candidate in self.walk():
            if candidate.id == node_id:
                return candidate
        return None

    def nodes(self) -> list["ImplicitNode"]:
        """The root followed by every reachable node, each exactly once."""
        return list(self.walk())

    def successors(self, node_id: NodeId) -> list["ImplicitNode"] | None:
        """Direct neighbors of any reachable node.

        Answered directly from the root's own list when ``node_id`` is the
        root; otherwise the node is located by search first.

        Returns:
            Copy of the node's neighbor list, or None if not reachable.
        """
        if node_id == self._id:
            return list(self.neighbors)
        found = self.node(node_id)
        if found is None:
            return None
        return list(found.neighbors)

    def edge(self, source: NodeId, target: NodeId) -> Edge | None:
        """The directed edge ``source -> target``, or None."""
        anchor = self.node(source)
        if anchor is None:
            return None
        for neighbor in anchor.neighbors:
            if neighbor.id == target:
                return Edge(anchor, neighbor)
        return None

    def has_edge_from(self, source: NodeId, target: NodeId) -> bool:
        """True if the directed edge ``source -> target`` exists."""
        return self.edge(source, target) is not None

    def edge_between(self, u: NodeId, v: NodeId) -> Edge | None:
        """An edge joining u and v in either direction, or None.

        Every reachable node whose id is u or v is checked for a link to
        the other one. The returned Edge keeps its real direction, so
        ``edge_between(b, a)`` may return ``Edge(a, b)``.
        """
        for anchor in self.walk():
            if anchor.id == u:
                other = v
            elif anchor.id == v:
                other = u
            else:
                continue
            for neighbor in anchor.neighbors:
                if neighbor.id == other:
                    return Edge(anchor, neighbor)
        return None

    def has_edge_between(self, u: NodeId, v: NodeId) -> bool:
        """True if u and v are joined by an edge in either direction."""
        return self.edge_between(u, v) is not None

    @classmethod
    def from_store(cls, store: GraphStore, root: NodeId) -> "ImplicitNode":
        """Build the linked view of everything reachable from ``root``.

        Each store node becomes exactly one ImplicitNode, so cycles in the
        store become reference cycles here.

        Raises:
            KeyError: If ``root`` is not in the store.
        """
        if not store.has_node(root):
            raise KeyError(root)

        built: dict[NodeId, ImplicitNode] = {root: cls(root, store.node(root))}
        queue = deque([root])
        while queue:
            current = built[queue.popleft()]
            for succ in store.successors(current.id):
                neighbor = built.get(succ)
                if neighbor is None:
                    neighbor = cls(succ, store.node(succ))
                    built[succ] = neighbor
                    queue.append(succ)
                current.add_neighbor(neighbor)
        return built[root]
