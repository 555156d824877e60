"""Clone every crate that depends on a given crate."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

from constants import Constants
from errors import CloneError
from registry.crates import fetch_reverse_dependencies
from sources import SourceConfigMap, SourceLocation
from versioning import CloneReport, PackageQuery

from . import orchestrator

logger = logging.getLogger(__name__)


def find_reverse_deps(crate: str, *, api_url: Optional[str] = None) -> List[str]:
    """Return the names of every crate depending on ``crate``, in listing order.

    Raises:
        RegistryError: If any page cannot be fetched or decoded.
    """
    entries = fetch_reverse_dependencies(crate, api_url or Constants.CRATES_IO_API)
    return [entry.crate for entry in entries]


def clone_reverse_deps(crate: str, source: SourceLocation,
                       prefix: Optional[Union[str, Path]] = None,
                       version: Optional[str] = None, *, home: Optional[Path] = None,
                       source_map: Optional[SourceConfigMap] = None,
                       api_url: Optional[str] = None) -> CloneReport:
    """Clone each reverse dependency of ``crate`` into ``<prefix>/<name>``.

    A dependent that fails to clone is logged and recorded in the report; the
    remaining ones are still attempted. Every dependent is cloned with the same
    ``version`` requirement.

    Raises:
        RegistryError: If the reverse dependency listing cannot be fetched.
    """
    names = find_reverse_deps(crate, api_url=api_url)
    logger.info("crate %s has %d reverse dependencies. Cloning them all.", crate, len(names))

    report = CloneReport(crate=crate, total=len(names))
    for name in names:
        dest = Path(prefix) / name if prefix is not None else None
        try:
            orchestrator.clone(
                PackageQuery(name=name, version=version),
                source,
                dest,
                home=home,
                source_map=source_map,
            )
        except (CloneError, OSError) as exc:
            logger.error("cloning %s: %s", name, exc)
            report.failed[name] = str(exc)
            continue
        report.cloned.append(name)
    if report.failed:
        logger.warning(
            "%d of %d reverse dependencies of %s failed to clone",
            len(report.failed), report.total, crate,
        )
    return report
