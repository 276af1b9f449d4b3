"""Records decoded from a package-registry dump."""

from typing import Any

from pydantic import BaseModel, Field, field_validator


class VersionRecord(BaseModel):
    """One published version of a package."""

    timestamp: str = Field(default="", description="Publication time as found in the dump")
    # Ranges are not type-checked here; the resolver reports non-string ones
    # as invalid_range warnings
    dependencies: dict[str, Any] = Field(
        default_factory=dict,
        description="Dependency name -> semver range constraint (normally a string)",
    )

    @field_validator("timestamp", mode="before")
    @classmethod
    def _null_timestamp(cls, value):
        return "" if value is None else value

    @field_validator("dependencies", mode="before")
    @classmethod
    def _null_dependencies(cls, value):
        # Registry dumps write null or omit the key for dependency-free versions
        return {} if value is None else value


class PackageRecord(BaseModel):
    """A package and all of its published versions."""

    name: str = Field(description="Package name (not validated; may be empty)")
    versions: dict[str, VersionRecord] = Field(
        default_factory=dict,
        description="Version string -> version record",
    )

    @field_validator("versions", mode="before")
    @classmethod
    def _null_versions(cls, value):
        return {} if value is None else value
