"""Dependency graph construction and traversal."""

from pkggraph.graph.algorithms import (
    ancestors_at_depth,
    descendants_at_depth,
    graph_metadata,
    shortest_path,
    strongly_connected,
)
from pkggraph.graph.implicit import Edge, ImplicitNode
from pkggraph.graph.index import IdentityIndex
from pkggraph.graph.matcher import matches, parse_range, parse_version
from pkggraph.graph.resolver import (
    BuildResult,
    ResolvedEdges,
    build_graph,
    resolve_edges,
    resolve_version_edges,
)
from pkggraph.graph.store import GraphStore

__all__ = [
    # Version matching
    "matches",
    "parse_range",
    "parse_version",
    # Identity index
    "IdentityIndex",
    # Graph store
    "GraphStore",
    # Edge resolution / build pipeline
    "BuildResult",
    "ResolvedEdges",
    "build_graph",
    "resolve_edges",
    "resolve_version_edges",
    # Implicit traversal
    "Edge",
    "ImplicitNode",
    # Algorithms
    "ancestors_at_depth",
    "descendants_at_depth",
    "graph_metadata",
    "shortest_path",
    "strongly_connected",
]
