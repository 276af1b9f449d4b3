"""Export a dependency graph to Graphviz DOT or JSON."""

import json
from pathlib import Path
from typing import Any

import networkx as nx

from pkggraph.errors import ExportError
from pkggraph.graph.store import GraphStore
from pkggraph.models.graph import NodeInfo


def _quote(text: str) -> str:
    """Quote a string as a DOT ID."""
    escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def to_dot(store: GraphStore, name: str = "dependencies") -> str:
    """Render the graph as a DOT digraph.

    Node identifiers are node ids; nodes with a NodeInfo get a
    ``name@version`` label.

    Example output:
        digraph "dependencies" {
          0 [label="a@1.0.0"];
          1 [label="b@1.0.0"];
          0 -> 1;
        }
    """
    lines = [f"digraph {_quote(name)} {{"]
    for node_id in sorted(store.nodes()):
        info = store.node(node_id)
        if info is not None:
            lines.append(f"  {node_id} [label={_quote(info.label)}];")
        else:
            lines.append(f"  {node_id};")
    for source, target in sorted(store.edges()):
        lines.append(f"  {source} -> {target};")
    lines.append("}")
    return "\n".join(lines) + "\n"


def write_dot(store: GraphStore, path: str | Path, name: str | None = None) -> Path:
    """Write the DOT rendering to ``path``.

    Args:
        store: Graph to export.
        path: Output file. A missing ``.dot`` suffix is appended.
        name: Graph name (defaults to the file stem).

    Returns:
        Path that was written.

    Raises:
        ExportError: If the file cannot be written.
    """
    path = Path(path)
    if path.suffix != ".dot":
        path = path.with_name(path.name + ".dot")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(to_dot(store, name or path.stem), encoding="utf-8")
    except OSError as e:
        raise ExportError(f"Failed to write {path}: {e}") from e
    return path


def graph_to_json(store: GraphStore) -> dict[str, Any]:
    """Serialize the graph to a JSON-compatible dict.

    Returns:
        Dict with nodes, edges (``from``/``to``) and metadata counts.
    """
    nodes = []
    for node_id in store.nodes():
        info = store.node(node_id)
        if info is not None:
            nodes.append(info.model_dump())
        else:
            nodes.append({"id": node_id})

    edges = [{"from": source, "to": target} for source, target in store.edges()]

    return {
        "nodes": nodes,
        "edges": edges,
        "metadata": {
            "node_count": store.number_of_nodes(),
            "edge_count": store.number_of_edges(),
        },
    }


def json_to_graph(data: dict[str, Any]) -> GraphStore:
    """Rebuild a frozen GraphStore from ``graph_to_json`` output."""
    G = nx.DiGraph()

    for node in data.get("nodes", []):
        info = NodeInfo.model_validate(node) if "name" in node else None
        G.add_node(node["id"], info=info)

    for edge in data.get("edges", []):
        source = edge.get("from", edge.get("source"))
        target = edge.get("to", edge.get("target"))
        if source is not None and target is not None:
            G.add_edge(source, target)

    return GraphStore.from_digraph(G).freeze()


def write_json(store: GraphStore, path: str | Path) -> Path:
    """Write ``graph_to_json`` output to ``path``.

    Raises:
        ExportError: If the file cannot be written.
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            json.dump(graph_to_json(store), f)
    except OSError as e:
        raise ExportError(f"Failed to write {path}: {e}") from e
    return path
