"""Base classes for package sources."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

import semantic_version

from errors import PackageNotFoundError, UnsupportedQueryError
from versioning.models import PackageSummary, ResolvedPackage
from versioning.parser import try_parse_version

from .models import SourceLocation

logger = logging.getLogger(__name__)


class Source(ABC):
    """Abstract source of packages.

    A source is refreshed once with ``update()``, then queried for summaries,
    and finally asked to make one of them available locally.
    """

    @property
    @abstractmethod
    def location(self) -> SourceLocation:
        """Return where this source reads packages from."""

    @abstractmethod
    def update(self) -> None:
        """Refresh the source metadata (network or filesystem sync)."""

    @abstractmethod
    def query(
        self, name: str, requirement: Optional[semantic_version.NpmSpec]
    ) -> List[PackageSummary]:
        """Return summaries of every package named ``name`` matching ``requirement``.

        A None requirement matches every version.
        """

    @abstractmethod
    def download(self, summary: PackageSummary) -> ResolvedPackage:
        """Make the package described by ``summary`` available on disk."""

    def enumerate_all(self) -> List[ResolvedPackage]:
        """List every package this source can discover.

        Raises:
            UnsupportedQueryError: For sources that cannot be enumerated.
        """
        raise UnsupportedQueryError(f"cannot list all packages of {self.location}")


class LocalPackagesSource(Source):
    """Source backed by packages already unpacked on the local filesystem.

    Subclasses fill ``self._packages`` from ``update()``.
    """

    def __init__(self, location: SourceLocation):
        self._location = location
        self._packages: Optional[List[ResolvedPackage]] = None

    @property
    def location(self) -> SourceLocation:
        return self._location

    def _loaded(self) -> List[ResolvedPackage]:
        if self._packages is None:
            self.update()
        return self._packages or []

    def query(
        self, name: str, requirement: Optional[semantic_version.NpmSpec]
    ) -> List[PackageSummary]:
        summaries = []
        for pkg in self._loaded():
            if pkg.name != name:
                continue
            version = try_parse_version(pkg.version)
            if version is None:
                logger.warning("Skipping %s: invalid version %r", pkg.root, pkg.version)
                continue
            if requirement is None or requirement.match(version):
                summaries.append(PackageSummary(name=pkg.name, version=version))
        return summaries

    def download(self, summary: PackageSummary) -> ResolvedPackage:
        for pkg in self._loaded():
            if pkg.name == summary.name and try_parse_version(pkg.version) == summary.version:
                return pkg
        raise PackageNotFoundError(
            f"package '{summary.name}' v{summary.version} not found in {self.location}"
        )

    def enumerate_all(self) -> List[ResolvedPackage]:
        return list(self._loaded())
