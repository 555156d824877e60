"""Sparse registry index client: index files, config.json and crate archives."""
from __future__ import annotations

import json
import logging
import tarfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from errors import RegistryError, SourceError
from common.logging_utils import extra_context, is_debug_enabled, safe_url

import registry.crates as crates_pkg

logger = logging.getLogger(__name__)

SPARSE_PREFIX = "sparse+"
DL_MARKERS = ("{crate}", "{version}", "{prefix}", "{lowerprefix}", "{sha256-checksum}")


def normalize_index_url(url: str) -> str:
    """Return the HTTP base URL of a sparse index, always ending with '/'.

    Raises:
        SourceError: For git-protocol or otherwise unsupported index URLs.
    """
    raw = url.strip()
    if raw.startswith(SPARSE_PREFIX):
        raw = raw[len(SPARSE_PREFIX):]
    if raw.startswith("git+") or raw.endswith(".git") or not raw.startswith(("http://", "https://")):
        raise SourceError(
            f"unsupported registry index `{url}`: only sparse (HTTP) indexes are supported"
        )
    return raw if raw.endswith("/") else raw + "/"


def index_prefix(name: str) -> str:
    """Directory prefix of a crate's index file (``1``, ``2``, ``3/a``, ``ab/cd``)."""
    lower = name.lower()
    if len(lower) == 1:
        return "1"
    if len(lower) == 2:
        return "2"
    if len(lower) == 3:
        return f"3/{lower[0]}"
    return f"{lower[0:2]}/{lower[2:4]}"


def download_url(dl: str, name: str, version: str, checksum: Optional[str] = None) -> str:
    """Expand the ``dl`` template from the index config.json."""
    if not any(marker in dl for marker in DL_MARKERS):
        return f"{dl.rstrip('/')}/{name}/{version}/download"
    prefix = index_prefix(name)
    return (
        dl.replace("{crate}", name)
        .replace("{version}", version)
        .replace("{prefix}", prefix)
        .replace("{lowerprefix}", prefix.lower())
        .replace("{sha256-checksum}", checksum or "")
    )


class IndexClient:
    """HTTP client for one sparse registry index."""

    def __init__(self, index_url: str):
        self.base_url = normalize_index_url(index_url)
        self._config: Optional[Dict[str, Any]] = None

    def config(self) -> Dict[str, Any]:
        """Fetch (once) and return the index ``config.json``."""
        if self._config is None:
            data = crates_pkg.get_json(self.base_url + "config.json", context="index")
            if not isinstance(data, dict) or not data.get("dl"):
                raise RegistryError(f"index config at {safe_url(self.base_url)} has no `dl` key")
            self._config = data
        return self._config

    def entries(self, name: str) -> List[Dict[str, Any]]:
        """Return every version record of ``name``; empty when the crate is unknown."""
        url = f"{self.base_url}{index_prefix(name)}/{name.lower()}"
        res = crates_pkg.safe_get(url, context="index")
        if res.status_code in (404, 410, 451):
            if is_debug_enabled(logger):
                logger.debug(
                    "Crate not in index",
                    extra=extra_context(
                        event="http_response",
                        outcome="not_found",
                        status_code=res.status_code,
                        target=safe_url(url)
                    )
                )
            return []
        if res.status_code != 200:
            raise RegistryError(
                f"index request for `{name}` failed with status {res.status_code}",
                status_code=res.status_code,
            )
        records = []
        for lineno, line in enumerate(res.text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError:
                logger.warning("Skipping malformed index line %d for `%s`", lineno, name)
                continue
            if isinstance(record, dict):
                records.append(record)
        return records

    def crate_url(self, name: str, version: str, checksum: Optional[str] = None) -> str:
        return download_url(str(self.config()["dl"]), name, version, checksum)


def _is_safe_member(member: tarfile.TarInfo, extract_dir: Path) -> bool:
    """Reject absolute paths, ``..`` components and links."""
    if member.name.startswith(("/", "\\")):
        return False
    if ".." in member.name.replace("\\", "/").split("/"):
        return False
    if member.issym() or member.islnk():
        return False
    resolved = (extract_dir / member.name).resolve()
    try:
        resolved.relative_to(extract_dir.resolve())
    except ValueError:
        return False
    return member.isfile() or member.isdir()


def unpack_crate(archive: Path, extract_dir: Path, expected_root: str) -> Path:
    """Extract a ``.crate`` archive and return the package directory.

    Members outside ``<expected_root>/`` are rejected.

    Raises:
        SourceError: If the archive is corrupt or contains unexpected members.
    """
    extract_dir.mkdir(parents=True, exist_ok=True)
    extract_kwargs = {"filter": "data"} if hasattr(tarfile, "data_filter") else {}
    try:
        with tarfile.open(archive, "r:gz") as tar:
            for member in tar.getmembers():
                top = member.name.replace("\\", "/").split("/", 1)[0]
                if top != expected_root:
                    raise SourceError(
                        f"invalid crate archive {archive.name}: member `{member.name}` "
                        f"is outside `{expected_root}/`"
                    )
                if not _is_safe_member(member, extract_dir):
                    logger.warning("Skipping unsafe archive member: %s", member.name)
                    continue
                tar.extract(member, path=str(extract_dir), set_attrs=False, **extract_kwargs)
    except (tarfile.TarError, EOFError, OSError) as exc:
        raise SourceError(f"failed to unpack {archive.name}: {exc}") from exc
    return extract_dir / expected_root
