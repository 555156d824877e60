"""Data models for package queries and resolution."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import semantic_version


@dataclass(frozen=True)
class PackageQuery:
    """Resolution input: an optional crate name and version.

    Without a name the first package discoverable at the source is used.
    """
    name: Optional[str] = None
    version: Optional[str] = None


@dataclass(frozen=True)
class PackageSummary:
    """Lightweight candidate produced by a source query, before download."""
    name: str
    version: semantic_version.Version
    checksum: Optional[str] = None
    yanked: bool = False


@dataclass(frozen=True)
class ResolvedPackage:
    """A concrete package whose sources are available on the local filesystem."""
    name: str
    version: str
    root: Path


@dataclass(frozen=True)
class ReverseDependencyEntry:
    """One entry of the registry reverse-dependency listing.

    ``num`` is the dependent's version; only ``crate`` is used when cloning.
    """
    crate: str
    num: str


@dataclass
class CloneReport:
    """Outcome of cloning every reverse dependency of a crate."""
    crate: str
    total: int = 0
    cloned: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed
