"""Semantic-version range matching.

Ranges use npm syntax (comparators, ``||``, hyphen ranges, ``x``/``*``
wildcards, caret and tilde) as implemented by ``semantic_version.NpmSpec``.
Unparseable input raises instead of returning False, so callers can tell
"does not match" apart from "cannot be evaluated".
"""

import semantic_version

from pkggraph.errors import InvalidRangeError, InvalidVersionError


def parse_range(constraint: str) -> semantic_version.NpmSpec:
    """Parse an npm-style range constraint.

    A blank constraint means "any version", as in package.json.

    Raises:
        InvalidRangeError: If the constraint is not valid range syntax.
    """
    if not isinstance(constraint, str):
        raise InvalidRangeError(repr(constraint), "range must be a string")
    try:
        return semantic_version.NpmSpec(constraint.strip() or "*")
    except ValueError as e:
        raise InvalidRangeError(constraint, str(e)) from e


def parse_version(version: str) -> semantic_version.Version:
    """Parse a published version string (strict semver, optional leading ``v``).

    Raises:
        InvalidVersionError: If the string is not a semantic version.
    """
    if not isinstance(version, str):
        raise InvalidVersionError(repr(version), "version must be a string")
    text = version.strip()
    if text[:1] in ("v", "V"):
        text = text[1:]
    try:
        return semantic_version.Version(text)
    except ValueError as e:
        raise InvalidVersionError(version, str(e)) from e


def matches(constraint: str, version: str) -> bool:
    """Return True if ``version`` satisfies the range ``constraint``.

    Examples:
        >>> matches("^1.0.0", "1.4.2")
        True
        >>> matches("^1.0.0", "2.0.0")
        False

    Raises:
        InvalidRangeError: If the range cannot be parsed.
        InvalidVersionError: If the version cannot be parsed.
    """
    spec = parse_range(constraint)
    return bool(spec.match(parse_version(version)))
