"""Registry source backed by a sparse HTTP index."""
from __future__ import annotations

import hashlib
import logging
import shutil
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlsplit

import semantic_version

from constants import Constants
from errors import SourceError
from registry.crates import IndexClient, normalize_index_url, unpack_crate
import registry.crates as crates_pkg
from versioning.models import PackageSummary, ResolvedPackage
from versioning.parser import try_parse_version

from .base import Source
from .models import SourceLocation

logger = logging.getLogger(__name__)


def registry_ident(index_url: str) -> str:
    """Cache directory name for an index: ``<host>-<short hash>``."""
    base = normalize_index_url(index_url)
    host = urlsplit(base).hostname or "registry"
    digest = hashlib.sha256(base.encode("utf-8")).hexdigest()[:16]
    return f"{host}-{digest}"


class RegistrySource(Source):
    """Crates published to a registry with a sparse index."""

    def __init__(self, location: SourceLocation, home: Path, index_url: Optional[str] = None):
        index = index_url or location.url or Constants.CRATES_IO_INDEX
        self._location = location
        self.client = IndexClient(index)
        ident = registry_ident(index)
        self.cache_dir = Path(home) / "registry" / "cache" / ident
        self.src_dir = Path(home) / "registry" / "src" / ident

    @property
    def location(self) -> SourceLocation:
        return self._location

    def update(self) -> None:
        logger.info("Updating %s index", self._location)
        self.client.config()

    def query(
        self, name: str, requirement: Optional[semantic_version.NpmSpec]
    ) -> List[PackageSummary]:
        summaries = []
        for record in self.client.entries(name):
            version = try_parse_version(str(record.get("vers", "")))
            if version is None:
                logger.debug("Skipping unparsable version %r of %s", record.get("vers"), name)
                continue
            if record.get("yanked") or (requirement is not None and not requirement.match(version)):
                continue
            summary = PackageSummary(
                name=str(record.get("name") or name),
                version=version,
                checksum=record.get("cksum"),
                yanked=bool(record.get("yanked")),
            )
            summaries.append(summary)
        return summaries

    def download(self, summary: PackageSummary) -> ResolvedPackage:
        """Return the unpacked package, downloading and extracting it when needed.

        Raises:
            RegistryError: On network or HTTP failures.
            SourceError: On checksum mismatch or an invalid archive.
        """
        version = str(summary.version)
        dirname = f"{summary.name}-{version}"
        root = self.src_dir / dirname
        sentinel = root / Constants.SENTINEL_FILE
        if sentinel.is_file():
            logger.debug("Using cached %s", root)
            return ResolvedPackage(name=summary.name, version=version, root=root)

        archive = self.cache_dir / f"{dirname}.crate"
        url = self.client.crate_url(summary.name, version, summary.checksum)
        logger.info("Downloading %s v%s", summary.name, version)
        digest = crates_pkg.download_file(url, archive, context="download")
        if summary.checksum and digest != summary.checksum:
            archive.unlink()
            raise SourceError(
                f"failed to verify the checksum of `{summary.name} v{version}`: "
                f"expected {summary.checksum}, got {digest}"
            )

        if root.exists():
            shutil.rmtree(root)
        unpacked = unpack_crate(archive, self.src_dir, dirname)
        if not unpacked.is_dir():
            raise SourceError(
                f"package '{summary.name}' v{version} archive did not contain `{dirname}/`"
            )
        sentinel.write_text(Constants.SENTINEL_CONTENT, encoding="utf-8")
        return ResolvedPackage(name=summary.name, version=version, root=unpacked)
