"""Graph data models for version-level dependency graphs.

Includes Pydantic models for node payloads, build reports and
per-constraint warnings.
"""

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field

NodeId = int


class NodeInfo(BaseModel):
    """Payload carried by a (package, version) node. Immutable once created."""

    id: NodeId = Field(description="Unique node id, assigned at build time")
    name: str = Field(description="Package name")
    version: str = Field(description="Version string")
    timestamp: str = Field(default="", description="Publication timestamp")

    model_config = {"frozen": True}

    @property
    def key(self) -> tuple[str, str]:
        """(name, version) identity of this node."""
        return (self.name, self.version)

    @property
    def label(self) -> str:
        """Human-readable label, e.g. ``left-pad@1.3.0``."""
        return f"{self.name}@{self.version}"


class ConstraintWarning(BaseModel):
    """A dependency constraint (or candidate version) that was skipped."""

    source: NodeId = Field(description="Node id of the declaring package version")
    dependency: str = Field(description="Dependency package name")
    range: str = Field(description="Declared range constraint")
    version: str | None = Field(
        default=None, description="Candidate version that failed to parse, if any"
    )
    kind: Literal["invalid_range", "invalid_version"] = Field(
        description="What could not be evaluated"
    )
    message: str = Field(description="Parser error message")


class GraphMetadata(BaseModel):
    """Metadata about a generated graph."""

    generator: str = Field(default="pkggraph", description="Tool that built the graph")
    version: str = Field(description="Tool version")
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="When the graph was built"
    )
    node_count: int = Field(default=0, description="Number of (package, version) nodes")
    edge_count: int = Field(default=0, description="Number of dependency edges")


class BuildReport(BaseModel):
    """Summary of one build pass."""

    metadata: GraphMetadata = Field(description="Graph metadata")
    package_count: int = Field(default=0, description="Package records read")
    constraint_count: int = Field(default=0, description="Dependency constraints examined")
    warning_count: int = Field(default=0, description="Constraints or candidates skipped")
    elapsed_ms: float = Field(default=0.0, description="Wall-clock build time")
    cached: bool = Field(default=False, description="Whether the graph came from the cache")
