"""CLI interface for pkggraph.

Builds version-level dependency graphs from registry dumps and exports or
queries them.
"""

import json
import sys
from pathlib import Path

import click

from pkggraph import __version__
from pkggraph.config import BuildConfig, ConfigError, load_config
from pkggraph.errors import ExportError, RegistryLoadError
from pkggraph.logging import set_log_level
from pkggraph.models.graph import BuildReport, GraphMetadata


def _load_graph(dump: Path, config: BuildConfig):
    """Return (store, index, warnings, report_dict), using the cache when allowed."""
    from pkggraph.graph.resolver import build_graph
    from pkggraph.utils.cache import load_graph_cache, save_graph_cache
    from pkggraph.utils.loader import iter_packages

    if config.use_cache:
        cached = load_graph_cache(dump, config.cache_dir)
        if cached is not None:
            store, index, warnings = cached
            report = BuildReport(
                metadata=GraphMetadata(
                    version=__version__,
                    node_count=store.number_of_nodes(),
                    edge_count=store.number_of_edges(),
                ),
                warning_count=len(warnings),
                cached=True,
            )
            return store, index, warnings, report.model_dump(mode="json")

    result = build_graph(
        iter_packages(dump),
        workers=config.workers,
        parallel_threshold=config.parallel_threshold,
    )
    if config.use_cache:
        save_graph_cache(dump, result.store, result.warnings, config.cache_dir)

    report = result.report.model_dump(mode="json")
    return result.store, result.index, result.warnings, report


def _config_or_exit(**overrides) -> BuildConfig:
    try:
        config = load_config(**overrides)
    except ConfigError as e:
        click.echo(f"Invalid configuration: {e}", err=True)
        sys.exit(2)
    set_log_level(config.log_level)
    return config


@click.group()
@click.version_option(version=__version__, prog_name="pkggraph")
def cli() -> None:
    """pkggraph - dependency graphs from package-registry dumps."""
    pass


@cli.command()
@click.argument("dump", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--dot", "dot_path", type=click.Path(path_type=Path), help="Write a Graphviz DOT file")
@click.option("--json", "json_path", type=click.Path(path_type=Path), help="Write the graph as JSON")
@click.option("--workers", type=int, default=None, help="Worker threads for edge resolution")
@click.option("--no-cache", is_flag=True, help="Ignore and do not write the graph cache")
@click.option("--show-warnings", is_flag=True, help="Include every skipped constraint in the report")
def build(
    dump: Path,
    dot_path: Path | None,
    json_path: Path | None,
    workers: int | None,
    no_cache: bool,
    show_warnings: bool,
) -> None:
    """Build the dependency graph for a registry dump.

    DUMP: Path to the registry dump (JSON array of packages).
    """
    from pkggraph.utils.export import write_dot, write_json

    config = _config_or_exit(workers=workers, use_cache=False if no_cache else None)

    try:
        store, _, warnings, report = _load_graph(dump, config)
    except RegistryLoadError as e:
        click.echo(f"Failed to load registry dump: {e}", err=True)
        sys.exit(1)

    try:
        if dot_path is not None:
            report["dot"] = str(write_dot(store, dot_path))
        if json_path is not None:
            report["json"] = str(write_json(store, json_path))
    except ExportError as e:
        click.echo(f"Export failed: {e}", err=True)
        sys.exit(1)

    if show_warnings:
        report["warnings"] = [w.model_dump() for w in warnings]

    click.echo(json.dumps(report, indent=2))


@cli.command()
@click.argument("dump", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("name")
@click.argument("version")
@click.option("--depth", type=int, default=1, help="Traversal depth (default: 1)")
@click.option("--reverse", is_flag=True, help="List dependents instead of dependencies")
@click.option("--no-cache", is_flag=True, help="Ignore and do not write the graph cache")
def deps(dump: Path, name: str, version: str, depth: int, reverse: bool, no_cache: bool) -> None:
    """List the versions NAME@VERSION can depend on (or that depend on it).

    DUMP: Path to the registry dump.
    """
    from pkggraph.graph.algorithms import ancestors_at_depth, descendants_at_depth

    config = _config_or_exit(use_cache=False if no_cache else None)

    try:
        store, index, _, _ = _load_graph(dump, config)
    except RegistryLoadError as e:
        click.echo(f"Failed to load registry dump: {e}", err=True)
        sys.exit(1)

    node_id = index.id_of(name, version)
    if node_id is None:
        click.echo(f"Unknown package version: {name}@{version}", err=True)
        sys.exit(1)

    walk = ancestors_at_depth if reverse else descendants_at_depth
    found = walk(store, node_id, depth)
    results = [
        {"id": other, "label": index.info(other).label, "depth": d}
        for other, d in sorted(found.items(), key=lambda x: (x[1], x[0]))
    ]
    click.echo(json.dumps({"target": f"{name}@{version}", "results": results}, indent=2))


@cli.command()
@click.argument("dump", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--max-items", type=int, default=20, help="Maximum cycles to print (default: 20)")
@click.option("--no-cache", is_flag=True, help="Ignore and do not write the graph cache")
def cycles(dump: Path, max_items: int, no_cache: bool) -> None:
    """Report groups of package versions that depend on each other.

    DUMP: Path to the registry dump.
    """
    from pkggraph.graph.algorithms import strongly_connected

    config = _config_or_exit(use_cache=False if no_cache else None)

    try:
        store, index, _, _ = _load_graph(dump, config)
    except RegistryLoadError as e:
        click.echo(f"Failed to load registry dump: {e}", err=True)
        sys.exit(1)

    groups = strongly_connected(store)
    formatted = [
        sorted(index.info(node_id).label for node_id in group)
        for group in groups[:max_items]
    ]
    click.echo(json.dumps({"cycle_count": len(groups), "cycles": formatted}, indent=2))


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
