"""crates.io web API client: reverse dependency listing."""
from __future__ import annotations

import logging
import urllib.parse
from typing import Any, List, Optional

from constants import Constants
from errors import RegistryError
from versioning.models import ReverseDependencyEntry

import registry.crates as crates_pkg

logger = logging.getLogger(__name__)


def _parse_page(payload: Any, crate: str, page: int) -> List[ReverseDependencyEntry]:
    if not isinstance(payload, dict) or not isinstance(payload.get("versions"), list):
        raise RegistryError(f"unexpected reverse dependency payload for `{crate}` (page {page})")
    entries = []
    for item in payload["versions"]:
        try:
            entries.append(ReverseDependencyEntry(crate=str(item["crate"]), num=str(item["num"])))
        except (KeyError, TypeError) as exc:
            raise RegistryError(
                f"malformed reverse dependency entry for `{crate}` (page {page}): {item!r}"
            ) from exc
    return entries


def fetch_reverse_dependencies(crate: str, api_url: Optional[str] = None) -> List[ReverseDependencyEntry]:
    """Walk every page of the reverse dependency listing of ``crate``.

    Pages of ``Constants.REVERSE_DEPS_PER_PAGE`` entries are requested from
    page 1 until one comes back empty.

    Raises:
        RegistryError: On the first network, status or payload error; no
            partial result is returned.
    """
    base = (api_url or Constants.CRATES_IO_API).rstrip("/")
    url = f"{base}/crates/{urllib.parse.quote(crate, safe='')}/reverse_dependencies"
    entries: List[ReverseDependencyEntry] = []
    page = 1
    while True:
        payload = crates_pkg.get_json(
            url,
            context="api",
            params={"per_page": Constants.REVERSE_DEPS_PER_PAGE, "page": page},
        )
        batch = _parse_page(payload, crate, page)
        if not batch:
            break
        entries.extend(batch)
        logger.debug("Reverse dependencies of %s: page %d, %d so far", crate, page, len(entries))
        page += 1
    return entries
