"""Graph algorithms over a built dependency graph.

- Transitive dependencies / dependents up to a depth
- Shortest dependency chain between two package versions
- Dependency cycles (strongly connected components)
- Graph summary counts
"""

from collections import Counter
from collections.abc import Callable, Iterable
from typing import Any

import networkx as nx

from pkggraph.graph.store import GraphStore
from pkggraph.models.graph import NodeId


def _depths(
    start: NodeId,
    max_depth: int,
    neighbors: Callable[[NodeId], Iterable[NodeId]],
) -> dict[NodeId, int]:
    """Breadth-first depth of every node within ``max_depth`` hops of start."""
    found: dict[NodeId, int] = {}
    frontier = [start]
    depth = 0
    while frontier and depth < max_depth:
        depth += 1
        next_frontier = []
        for current in frontier:
            for other in neighbors(current):
                if other != start and other not in found:
                    found[other] = depth
                    next_frontier.append(other)
        frontier = next_frontier
    return found


def descendants_at_depth(store: GraphStore, node: NodeId, max_depth: int) -> dict[NodeId, int]:
    """Everything ``node`` can depend on, transitively, up to ``max_depth``.

    Returns:
        Dependency node id -> depth (1 = direct dependency). Empty if the
        node is unknown.
    """
    if node not in store:
        return {}
    return _depths(node, max_depth, store.digraph.successors)


def ancestors_at_depth(store: GraphStore, node: NodeId, max_depth: int) -> dict[NodeId, int]:
    """Every package version that depends on ``node``, up to ``max_depth``.

    Returns:
        Dependent node id -> depth (1 = direct dependent).
    """
    if node not in store:
        return {}
    return _depths(node, max_depth, store.digraph.predecessors)


def shortest_path(
    store: GraphStore,
    source: NodeId,
    target: NodeId,
) -> list[NodeId] | None:
    """Find the shortest dependency chain from ``source`` to ``target``.

    Returns:
        List of node ids forming the path, or None if no path exists.
    """
    if source not in store or target not in store:
        return None

    try:
        return nx.shortest_path(store.digraph, source, target)
    except nx.NetworkXNoPath:
        return None


def strongly_connected(store: GraphStore) -> list[set[NodeId]]:
    """Find groups of package versions that depend on each other in a cycle.

    Returns:
        Components with 2+ nodes, largest first.
    """
    if not store.number_of_nodes():
        return []

    sccs = nx.strongly_connected_components(store.digraph)
    coupled = [scc for scc in sccs if len(scc) > 1]
    coupled.sort(key=len, reverse=True)
    return coupled


def graph_metadata(store: GraphStore) -> dict[str, Any]:
    """Summary counts for a dependency graph.

    Returns:
        Dict with node_count, edge_count, package_count and the ids of the
        most depended-upon versions.
    """
    G = store.digraph
    packages = Counter(info.name for info in store.infos())
    most_depended = sorted(G.in_degree(), key=lambda x: (-x[1], x[0]))[:10]

    return {
        "node_count": G.number_of_nodes(),
        "edge_count": G.number_of_edges(),
        "package_count": len(packages),
        "self_loops": nx.number_of_selfloops(G),
        "most_depended_upon": [
            {"id": node_id, "dependents": degree}
            for node_id, degree in most_depended
            if degree > 0
        ],
    }
