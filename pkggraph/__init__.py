"""pkggraph - version-level dependency graphs from package-registry dumps."""

from pathlib import Path
from typing import IO, TYPE_CHECKING

if TYPE_CHECKING:
    from pkggraph.graph.resolver import BuildResult

# Keep in sync with pyproject.toml [project] version.
__version__ = "0.1.0"


def build_from_dump(path: str | Path | IO[str], workers: int | None = None) -> "BuildResult":
    """Load a registry dump and build its dependency graph.

    Convenience entry point combining the streaming loader and the
    graph build pipeline.
    """
    from pkggraph.graph.resolver import build_graph
    from pkggraph.utils.loader import iter_packages

    return build_graph(iter_packages(path), workers=workers)
