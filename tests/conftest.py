"""Pytest configuration and shared fixtures."""

import json
import tempfile
from pathlib import Path

import pytest

from pkggraph.graph.implicit import ImplicitNode
from pkggraph.models.registry import PackageRecord
from tests.helpers import make_package


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def caret_packages() -> list[PackageRecord]:
    """A@1.0.0 depends on B ^1.0.0; B has 1.0.0 and 2.0.0."""
    return [
        make_package("A", {"1.0.0": {"B": "^1.0.0"}}),
        make_package("B", {"1.0.0": None, "2.0.0": None}),
    ]


@pytest.fixture
def sample_dump() -> list[dict]:
    """Raw registry dump entries as they appear on disk."""
    return [
        {
            "name": "app",
            "versions": {
                "1.0.0": {
                    "timestamp": "2024-03-01T10:00:00Z",
                    "dependencies": {"lib": "^1.0.0", "util": "~2.1.0"},
                },
            },
        },
        {
            "name": "lib",
            "versions": {
                "1.0.0": {"timestamp": "2023-01-01T00:00:00Z", "dependencies": {"util": ">=2.0.0"}},
                "1.2.0": {"timestamp": "2023-06-01T00:00:00Z", "dependencies": {"util": ">=2.0.0"}},
                "2.0.0": {"timestamp": "2024-01-01T00:00:00Z"},
            },
        },
        {
            "name": "util",
            "versions": {
                "2.1.0": {"timestamp": "2022-01-01T00:00:00Z", "dependencies": None},
                "2.2.0": {"timestamp": "2022-05-01T00:00:00Z", "dependencies": {}},
            },
        },
    ]


@pytest.fixture
def sample_dump_file(temp_dir: Path, sample_dump: list[dict]) -> Path:
    """Write sample_dump to a JSON file."""
    path = temp_dir / "registry.json"
    path.write_text(json.dumps(sample_dump, indent=2))
    return path


@pytest.fixture
def three_cycle() -> tuple[ImplicitNode, ImplicitNode, ImplicitNode]:
    """Implicit nodes 0 -> 1 -> 2 -> 0."""
    a, b, c = ImplicitNode(0), ImplicitNode(1), ImplicitNode(2)
    a.add_neighbor(b)
    b.add_neighbor(c)
    c.add_neighbor(a)
    return a, b, c
