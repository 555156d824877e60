"""Sources reading packages from a local directory."""
from __future__ import annotations

import logging
from pathlib import Path

from errors import SourceError
from constants import Constants

from .base import LocalPackagesSource
from .manifest import read_manifest, read_packages
from .models import SourceLocation

logger = logging.getLogger(__name__)


class PathSource(LocalPackagesSource):
    """Every package found by walking a local directory tree."""

    def __init__(self, location: SourceLocation):
        if location.path is None:
            raise SourceError("path source requires a filesystem path")
        super().__init__(location)
        self.root = Path(location.path)

    def update(self) -> None:
        if not self.root.exists():
            raise SourceError(f"source path `{self.root}` does not exist")
        self._packages = read_packages(self.root)
        logger.debug("Found %d package(s) under %s", len(self._packages), self.root)


class DirectorySource(LocalPackagesSource):
    """A vendored directory: one unpacked package per immediate subdirectory."""

    def __init__(self, location: SourceLocation):
        if location.path is None:
            raise SourceError("directory source requires a filesystem path")
        super().__init__(location)
        self.root = Path(location.path)

    def update(self) -> None:
        if not self.root.is_dir():
            raise SourceError(f"failed to read directory source `{self.root}`")
        packages = []
        for child in sorted(self.root.iterdir()):
            manifest = child / Constants.MANIFEST_FILE
            if child.name.startswith(".") or not manifest.is_file():
                continue
            pkg = read_manifest(manifest, stop_at=child)
            if pkg is not None:
                packages.append(pkg)
        self._packages = packages
