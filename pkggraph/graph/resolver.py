"""Edge resolution and the graph build pipeline.

For every dependency constraint declared on every package version, all
published versions of the named dependency are matched against the range
and one edge is added per match:

    A@1.0.0 --"B: ^1.0.0"-->  B@1.0.0   (B@2.0.0 does not match)

Build order is fixed: the identity index is built and frozen first, then
all nodes are added, then edges are resolved. Resolution tasks only read
the index and return edge lists; the calling thread is the single writer
that inserts them into the store.

A range or candidate version that cannot be parsed is recorded as a
ConstraintWarning and skipped. It never aborts the build.
"""

import multiprocessing
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from pkggraph import __version__
from pkggraph.errors import InvalidRangeError, InvalidVersionError
from pkggraph.graph.index import IdentityIndex
from pkggraph.graph.matcher import parse_range, parse_version
from pkggraph.graph.store import GraphStore
from pkggraph.logging import ProgressBar, log_operation, logger, progress_bar
from pkggraph.models.graph import BuildReport, ConstraintWarning, GraphMetadata, NodeId
from pkggraph.models.registry import PackageRecord

# Below this many package versions, resolve sequentially
PARALLEL_THRESHOLD = 2000

# Individual warnings beyond this count are logged at DEBUG only
MAX_LOGGED_WARNINGS = 20


class ResolvedEdges(NamedTuple):
    """Result of resolving the constraints of one package version."""

    source: NodeId
    edges: list[tuple[NodeId, NodeId]]
    warnings: list[ConstraintWarning]
    constraint_count: int


@dataclass
class BuildResult:
    """Everything produced by one build pass."""

    store: GraphStore
    index: IdentityIndex
    warnings: list[ConstraintWarning] = field(default_factory=list)
    report: BuildReport | None = None


def resolve_version_edges(
    index: IdentityIndex,
    source: NodeId,
    dependencies: Mapping[str, Any],
) -> ResolvedEdges:
    """Resolve the dependency constraints of a single package version.

    Pure with respect to shared state: reads the frozen index and returns
    new lists, so it can run on any worker thread.

    Args:
        index: Frozen identity index.
        source: Node id of the declaring package version.
        dependencies: Dependency name -> range constraint (non-strings become warnings).

    Returns:
        ResolvedEdges with one (source, target) pair per matching version.
    """
    edges: list[tuple[NodeId, NodeId]] = []
    warnings: list[ConstraintWarning] = []

    for dep_name, constraint in dependencies.items():
        try:
            spec = parse_range(constraint)
        except InvalidRangeError as e:
            warnings.append(
                ConstraintWarning(
                    source=source,
                    dependency=dep_name,
                    range=str(constraint),
                    kind="invalid_range",
                    message=e.reason,
                )
            )
            continue

        # Unknown dependency names yield no candidates and no warning
        for candidate in index.versions_of(dep_name):
            try:
                parsed = parse_version(candidate)
            except InvalidVersionError as e:
                warnings.append(
                    ConstraintWarning(
                        source=source,
                        dependency=dep_name,
                        range=constraint,
                        version=candidate,
                        kind="invalid_version",
                        message=e.reason,
                    )
                )
                continue

            if spec.match(parsed):
                target = index.id_of(dep_name, candidate)
                if target is not None:
                    edges.append((source, target))

    return ResolvedEdges(source, edges, warnings, len(dependencies))


def _version_tasks(
    index: IdentityIndex,
    packages: Iterable[PackageRecord],
) -> list[tuple[NodeId, Mapping[str, Any]]]:
    """One (source id, dependencies) task per package version.

    A repeated (name, version) resolves only its last declaration, matching
    the payload the index keeps.
    """
    tasks: dict[NodeId, Mapping[str, Any]] = {}
    for package in packages:
        for version, record in package.versions.items():
            source = index.id_of(package.name, version)
            if source is not None:
                tasks[source] = record.dependencies
    return [(source, deps) for source, deps in tasks.items() if deps]


def _log_warnings(warnings: list[ConstraintWarning], index: IdentityIndex) -> None:
    for i, warning in enumerate(warnings):
        level_fn = logger.warning if i < MAX_LOGGED_WARNINGS else logger.debug
        source = index.nodes.get(warning.source)
        label = source.label if source is not None else str(warning.source)
        if warning.kind == "invalid_range":
            level_fn(
                "  Skipping constraint %s -> %s %r: %s",
                label, warning.dependency, warning.range, warning.message,
            )
        else:
            level_fn(
                "  Skipping candidate %s@%s for %s: %s",
                warning.dependency, warning.version, label, warning.message,
            )
    if len(warnings) > MAX_LOGGED_WARNINGS:
        logger.warning(
            "  %d more constraint warnings (enable DEBUG logging to see them)",
            len(warnings) - MAX_LOGGED_WARNINGS,
        )


def resolve_edges(
    index: IdentityIndex,
    packages: Iterable[PackageRecord],
    store: GraphStore,
    workers: int | None = None,
    parallel_threshold: int = PARALLEL_THRESHOLD,
) -> tuple[list[ConstraintWarning], int]:
    """Resolve every dependency constraint and insert the edges into ``store``.

    Args:
        index: Frozen identity index covering ``packages``.
        packages: The same package records the index was built from.
        store: Graph store that already holds every node.
        workers: Worker threads (None = CPU count, 1 = sequential).
        parallel_threshold: Minimum task count before using the pool.

    Returns:
        Tuple of (warnings, number of constraints examined).
    """
    tasks = _version_tasks(index, packages)
    warnings: list[ConstraintWarning] = []
    constraint_count = 0

    effective_workers = workers if workers is not None else multiprocessing.cpu_count()
    use_parallel = effective_workers > 1 and len(tasks) >= parallel_threshold

    if use_parallel:
        logger.info(
            "  Resolving %d package versions in parallel (%d workers)",
            len(tasks),
            effective_workers,
        )
        with ThreadPoolExecutor(max_workers=effective_workers) as executor:
            futures = [
                executor.submit(resolve_version_edges, index, source, deps)
                for source, deps in tasks
            ]
            with ProgressBar(total=len(tasks), desc="Resolving", unit="versions") as pbar:
                for future in as_completed(futures):
                    pbar.update()
                    result = future.result()
                    store.add_edges(result.edges)
                    warnings.extend(result.warnings)
                    constraint_count += result.constraint_count
    else:
        logger.info("  Resolving %d package versions sequentially", len(tasks))
        for source, deps in progress_bar(tasks, desc="Resolving", total=len(tasks), unit="versions"):
            result = resolve_version_edges(index, source, deps)
            store.add_edges(result.edges)
            warnings.extend(result.warnings)
            constraint_count += result.constraint_count

    # Worker completion order is arbitrary; report warnings in a stable order
    warnings.sort(key=lambda w: (w.source, w.dependency, w.version or ""))
    _log_warnings(warnings, index)
    return warnings, constraint_count


def build_graph(
    packages: Iterable[PackageRecord],
    workers: int | None = None,
    parallel_threshold: int = PARALLEL_THRESHOLD,
) -> BuildResult:
    """Build the full dependency graph from package records.

    Args:
        packages: Package records (any iterable; consumed once).
        workers: Worker threads for edge resolution.
        parallel_threshold: Minimum task count before using the pool.

    Returns:
        BuildResult with a frozen store, the index, warnings and a report.
    """
    records = list(packages)

    with log_operation("build_graph", {"packages": len(records)}) as timing:
        index = IdentityIndex.build(records)
        logger.info("  Indexed %d package versions", len(index))

        store = GraphStore()
        for info in index:
            store.add_node(info.id, info)

        warnings, constraint_count = resolve_edges(
            index,
            records,
            store,
            workers=workers,
            parallel_threshold=parallel_threshold,
        )
        store.freeze()
        logger.info(
            "  Graph: %d nodes, %d edges, %d warnings",
            store.number_of_nodes(),
            store.number_of_edges(),
            len(warnings),
        )

    report = BuildReport(
        metadata=GraphMetadata(
            version=__version__,
            node_count=store.number_of_nodes(),
            edge_count=store.number_of_edges(),
        ),
        package_count=len(records),
        constraint_count=constraint_count,
        warning_count=len(warnings),
        elapsed_ms=timing.elapsed_ms,
    )
    return BuildResult(store=store, index=index, warnings=warnings, report=report)
