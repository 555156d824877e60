"""Clone one package into a destination directory."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

from errors import DestinationConflictError
from sources import SourceConfigMap, SourceLocation
from versioning import PackageQuery, ResolvedPackage

from . import copier, resolver

logger = logging.getLogger(__name__)


def prepare_destination(dest: Path) -> None:
    """Create ``dest`` or make sure it is an empty directory.

    Raises:
        DestinationConflictError: If ``dest`` exists and has any entry.
        NotADirectoryError: If ``dest`` exists and is a file.
    """
    if not dest.exists():
        dest.mkdir(parents=True)
        return
    if not dest.is_dir():
        raise NotADirectoryError(f"not a directory: {dest}")
    with os.scandir(dest) as entries:
        if any(True for _ in entries):
            raise DestinationConflictError(dest)


def clone(query: PackageQuery, source: SourceLocation,
          prefix: Optional[Union[str, Path]] = None, *, home: Optional[Path] = None,
          source_map: Optional[SourceConfigMap] = None) -> ResolvedPackage:
    """Resolve ``query`` at ``source`` and copy the package into a directory.

    The destination is ``prefix`` when given, otherwise ``<cwd>/<package name>``.
    A failure while copying leaves the files written so far in place.
    """
    pkg = resolver.resolve(source, query, home=home, source_map=source_map)
    dest = Path(prefix) if prefix is not None else Path.cwd() / pkg.name
    prepare_destination(dest)
    copier.copy_tree(pkg.root, dest)
    logger.info("Cloned %s v%s into %s", pkg.name, pkg.version, dest)
    return pkg
