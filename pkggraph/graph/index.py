"""Identity index: stable integer ids for (package, version) pairs.

The index is built in one pass and frozen. Ids are assigned in input order
(packages as they appear in the dump, versions in their mapping order), so
a given dump always produces the same ids.
"""

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from pkggraph.models.graph import NodeId, NodeInfo
from pkggraph.models.registry import PackageRecord


class IdentityIndex:
    """Read-only lookups between node ids, (name, version) pairs and names.

    Build with ``IdentityIndex.build(packages)``; the resulting object
    exposes only immutable views and is safe to share between threads.
    """

    __slots__ = ("_nodes", "_ids", "_versions")

    def __init__(
        self,
        nodes: dict[NodeId, NodeInfo],
        ids: dict[tuple[str, str], NodeId],
        versions: dict[str, tuple[str, ...]],
    ) -> None:
        self._nodes = MappingProxyType(nodes)
        self._ids = MappingProxyType(ids)
        self._versions = MappingProxyType(versions)

    @classmethod
    def build(cls, packages: Iterable[PackageRecord]) -> "IdentityIndex":
        """Assign ids to every (name, version) pair in ``packages``.

        Input is not validated. A pair seen twice (the same package name
        listed more than once) keeps its first id, while its NodeInfo is
        replaced by the last occurrence.

        Args:
            packages: Package records in dump order.

        Returns:
            Frozen IdentityIndex.
        """
        nodes: dict[NodeId, NodeInfo] = {}
        ids: dict[tuple[str, str], NodeId] = {}
        versions: dict[str, list[str]] = {}

        for package in packages:
            known = versions.setdefault(package.name, [])
            for version, record in package.versions.items():
                key = (package.name, version)
                node_id = ids.get(key)
                if node_id is None:
                    node_id = len(ids)
                    ids[key] = node_id
                    known.append(version)
                nodes[node_id] = NodeInfo(
                    id=node_id,
                    name=package.name,
                    version=version,
                    timestamp=record.timestamp,
                )

        return cls(nodes, ids, {name: tuple(v) for name, v in versions.items()})

    @classmethod
    def from_nodes(cls, infos: Iterable[NodeInfo]) -> "IdentityIndex":
        """Rebuild an index from existing NodeInfo payloads (e.g. a cache)."""
        nodes: dict[NodeId, NodeInfo] = {}
        ids: dict[tuple[str, str], NodeId] = {}
        versions: dict[str, list[str]] = {}
        for info in sorted(infos, key=lambda i: i.id):
            nodes[info.id] = info
            if info.key not in ids:
                ids[info.key] = info.id
                versions.setdefault(info.name, []).append(info.version)
        return cls(nodes, ids, {name: tuple(v) for name, v in versions.items()})

    @property
    def nodes(self) -> Mapping[NodeId, NodeInfo]:
        """NodeId -> NodeInfo (read-only)."""
        return self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, key: object) -> bool:
        return key in self._ids

    def __iter__(self) -> Iterator[NodeInfo]:
        return iter(self._nodes.values())

    def id_of(self, name: str, version: str) -> NodeId | None:
        """Node id for a (name, version) pair, or None if unknown."""
        return self._ids.get((name, version))

    def info(self, node_id: NodeId) -> NodeInfo:
        """NodeInfo for an id.

        Raises:
            KeyError: If the id was never assigned.
        """
        return self._nodes[node_id]

    def versions_of(self, name: str) -> tuple[str, ...]:
        """All known versions of a package, empty if the name is unknown."""
        return self._versions.get(name, ())

    def package_names(self) -> Iterator[str]:
        """Iterate over every package name in the index."""
        return iter(self._versions)
