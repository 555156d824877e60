"""Version string parsing and requirement building."""

from typing import Optional

import semantic_version

from errors import VersionParseError


def parse_version(text: str) -> semantic_version.Version:
    """Parse a strict semantic version such as ``1.2.3`` or ``1.0.0-beta.1``.

    Surrounding whitespace is ignored; partial versions like ``1.2`` are rejected.

    Raises:
        VersionParseError: If ``text`` is not a valid semantic version.
    """
    candidate = (text or "").strip()
    try:
        return semantic_version.Version(candidate)
    except ValueError as exc:
        raise VersionParseError(text, str(exc)) from exc


def build_requirement(version: Optional[str]) -> Optional[semantic_version.NpmSpec]:
    """Build the version requirement used to query a source.

    A concrete version becomes a caret requirement (``1.2.3`` matches
    ``>=1.2.3, <2.0.0``), as a bare version does in a Cargo.toml dependency.
    No version gives no requirement: every version, pre-releases included,
    is a candidate.
    """
    if version is None:
        return None
    parsed = parse_version(version)
    return semantic_version.NpmSpec(f"^{parsed}")


def try_parse_version(text: str) -> Optional[semantic_version.Version]:
    """Parse ``text`` or return None for versions that are not strict semver."""
    try:
        return semantic_version.Version(text.strip())
    except (ValueError, AttributeError):
        return None
