"""MessagePack cache for built dependency graphs.

Rebuilding a graph from a multi-gigabyte dump is the slow part of every
run, so the built graph is cached next to the dump (or in a chosen cache
directory). A cache entry is only used when the dump's size and mtime match
what was recorded at save time.
"""

from datetime import UTC, datetime
from pathlib import Path

import msgpack
import networkx as nx

from pkggraph.graph.index import IdentityIndex
from pkggraph.graph.store import GraphStore
from pkggraph.logging import logger
from pkggraph.models.graph import ConstraintWarning, NodeInfo

# Bump when the cache layout changes
GRAPH_CACHE_VERSION = "1.0"


def get_cache_path(dump_path: str | Path, cache_dir: str | Path | None = None) -> Path:
    """Location of the cache file for a dump.

    Examples:
        >>> get_cache_path("/data/npm.json")
        PosixPath('/data/.pkggraph/npm.msgpack')
    """
    dump = Path(dump_path).resolve()
    base = Path(cache_dir) if cache_dir is not None else dump.parent / ".pkggraph"
    return base / f"{dump.stem}.msgpack"


def _fingerprint(dump_path: Path) -> dict[str, int]:
    stat = dump_path.stat()
    return {"size": stat.st_size, "mtime_ns": stat.st_mtime_ns}


def save_graph_cache(
    dump_path: str | Path,
    store: GraphStore,
    warnings: list[ConstraintWarning] | None = None,
    cache_dir: str | Path | None = None,
) -> Path | None:
    """Save a built graph for ``dump_path``.

    Failures are logged and ignored; a missing cache only costs a rebuild.

    Returns:
        Path of the cache file, or None if it could not be written.
    """
    dump = Path(dump_path).resolve()
    cache_path = get_cache_path(dump, cache_dir)

    try:
        cache_path.parent.mkdir(parents=True, exist_ok=True)

        nodes = [
            [info.id, info.name, info.version, info.timestamp]
            for info in store.infos()
        ]
        edges = [[source, target] for source, target in store.edges()]

        data = {
            "version": GRAPH_CACHE_VERSION,
            "created_at": datetime.now(UTC).isoformat(),
            "dump": _fingerprint(dump),
            "nodes": nodes,
            "edges": edges,
            "warnings": [w.model_dump() for w in warnings or []],
        }

        with cache_path.open("wb") as f:
            msgpack.pack(data, f)

        logger.info("  Saved graph cache with %d nodes (msgpack)", len(nodes))
        return cache_path

    except OSError as e:
        logger.warning("  Failed to save graph cache: %s", e)
        return None


def load_graph_cache(
    dump_path: str | Path,
    cache_dir: str | Path | None = None,
) -> tuple[GraphStore, IdentityIndex, list[ConstraintWarning]] | None:
    """Load the cached graph for ``dump_path`` if it is still valid.

    Returns:
        Tuple of (frozen store, index, warnings), or None if the cache is
        missing, stale, from another cache version, or unreadable.
    """
    dump = Path(dump_path).resolve()
    cache_path = get_cache_path(dump, cache_dir)

    if not cache_path.exists():
        return None

    try:
        with cache_path.open("rb") as f:
            data = msgpack.unpack(f, raw=False)

        if data.get("version") != GRAPH_CACHE_VERSION:
            logger.info("  Graph cache version mismatch, ignoring cache")
            return None

        if data.get("dump") != _fingerprint(dump):
            logger.info("  Registry dump changed since caching, ignoring cache")
            return None

        infos = [
            NodeInfo(id=node_id, name=name, version=version, timestamp=timestamp)
            for node_id, name, version, timestamp in data["nodes"]
        ]
        G = nx.DiGraph()
        for info in infos:
            G.add_node(info.id, info=info)
        G.add_edges_from((source, target) for source, target in data["edges"])

        warnings = [ConstraintWarning.model_validate(w) for w in data.get("warnings", [])]

    except (OSError, msgpack.UnpackException, msgpack.ExtraData, KeyError, TypeError, ValueError) as e:
        logger.warning("  Failed to load graph cache: %s", e)
        return None

    store = GraphStore.from_digraph(G).freeze()
    logger.info("  Loaded cached graph with %d nodes (msgpack)", store.number_of_nodes())
    return store, IdentityIndex.from_nodes(infos), warnings
