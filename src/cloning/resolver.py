"""Resolve a package query against a source and make the package available locally."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from constants import SourceKinds, default_home
from common.cache_lock import PackageCacheLock
from common.logging_utils import extra_context, is_debug_enabled, Timer
from errors import PackageNotFoundError, UnsupportedQueryError
from sources import GitSource, PathSource, Source, SourceConfigMap, SourceLocation
from versioning import PackageQuery, ResolvedPackage, build_requirement, select_max

logger = logging.getLogger(__name__)

NO_CRATE_MESSAGE = (
    "must specify a crate to clone from crates.io, or use --path or --git to "
    "specify alternate source"
)


def _home(home: Optional[Path]) -> Path:
    return Path(home) if home is not None else Path(default_home())


def open_source(location: SourceLocation, home: Path,
                source_map: Optional[SourceConfigMap] = None) -> Source:
    """Build the source handle for ``location``."""
    if location.kind == SourceKinds.PATH:
        return PathSource(location)
    if location.kind == SourceKinds.GIT:
        return GitSource(location, home)
    config = source_map if source_map is not None else SourceConfigMap.from_constants()
    return config.load(location, home)


def select_package(source: Source, query: PackageQuery) -> ResolvedPackage:
    """Pick one package from ``source`` and download it.

    With a name, the highest version matching ``query.version`` is chosen;
    without one, the first package the source lists.

    Raises:
        VersionParseError: Before the source is refreshed, for an invalid version.
        PackageNotFoundError: If nothing matches.
        UnsupportedQueryError: If the source cannot list its packages.
    """
    if query.name is None:
        source.update()
        packages = source.enumerate_all()
        if not packages:
            raise PackageNotFoundError(f"no packages found in {source.location}")
        return packages[0]

    requirement = build_requirement(query.version)
    source.update()
    summaries = source.query(query.name, requirement)
    best = select_max(summaries)
    if best is None:
        raise PackageNotFoundError(f"package '{query.name}' not found")
    if is_debug_enabled(logger):
        logger.debug(
            "Selected version",
            extra=extra_context(
                event="resolve",
                component="resolver",
                action="select",
                outcome="selected",
                target=query.name,
                candidates=len(summaries),
                version=str(best.version)
            )
        )
    return source.download(best)


def resolve(source: SourceLocation, query: PackageQuery, *, home: Optional[Path] = None,
            source_map: Optional[SourceConfigMap] = None) -> ResolvedPackage:
    """Resolve ``query`` at ``source`` while holding the package cache lock.

    Raises:
        CloneError: A subclass describing why resolution failed.
    """
    home_dir = _home(home)
    with PackageCacheLock(home_dir), Timer() as t:
        if source.is_registry and query.name is None:
            raise UnsupportedQueryError(NO_CRATE_MESSAGE)
        handle = open_source(source, home_dir, source_map)
        pkg = select_package(handle, query)
    if is_debug_enabled(logger):
        logger.debug(
            "Resolved package",
            extra=extra_context(
                event="resolve",
                component="resolver",
                action="resolve",
                outcome="resolved",
                target=f"{pkg.name}@{pkg.version}",
                duration_ms=t.duration_ms()
            )
        )
    return pkg

