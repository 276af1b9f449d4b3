"""Builders shared by the test modules."""

from pkggraph.models.registry import PackageRecord


def make_package(name: str, versions: dict[str, dict[str, str] | None]) -> PackageRecord:
    """Build a PackageRecord from {version: {dep: range}}."""
    return PackageRecord.model_validate(
        {
            "name": name,
            "versions": {
                version: {"timestamp": f"2024-01-01T00:00:00Z#{version}", "dependencies": deps}
                for version, deps in versions.items()
            },
        }
    )
