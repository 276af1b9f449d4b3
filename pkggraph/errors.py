"""Exception hierarchy for pkggraph.

Two families:

- Recoverable, per-constraint errors (``VersionMatchError`` and subclasses).
  The edge resolver turns these into ``ConstraintWarning`` records and keeps
  going.
- Fatal errors (``RegistryLoadError``, ``ExportError``) raised by the loader
  and exporter. These abort the run.
"""


class PkgGraphError(Exception):
    """Base class for all pkggraph errors."""

    pass


class VersionMatchError(PkgGraphError, ValueError):
    """A range or version string could not be evaluated."""

    def __init__(self, value: str, reason: str) -> None:
        self.value = value
        self.reason = reason
        super().__init__(f"{value!r}: {reason}")


class InvalidRangeError(VersionMatchError):
    """A dependency range constraint is not valid semver range syntax."""

    pass


class InvalidVersionError(VersionMatchError):
    """A published version string is not a valid semantic version."""

    pass


class GraphFrozenError(PkgGraphError):
    """Write attempted on a graph store that has been frozen."""

    pass


class RegistryLoadError(PkgGraphError):
    """The registry dump could not be read or decoded."""

    pass


class ExportError(PkgGraphError):
    """The graph could not be written to its export target."""

    pass
