"""Shared HTTP helpers used by the registry index and API clients.

Encapsulates common request/timeout error handling so modules avoid
duplicating try/except blocks. Every failure surfaces as ``RegistryError`` so
a caller can decide whether it is fatal (a single clone) or isolated (one
dependent in a batch).
"""
from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

import requests

from constants import Constants
from errors import RegistryError
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


def _default_headers(headers: Optional[Dict[str, str]]) -> Dict[str, str]:
    merged = {"User-Agent": Constants.USER_AGENT}
    if headers:
        merged.update(headers)
    return merged


def safe_get(url: str, *, context: str, headers: Optional[Dict[str, str]] = None,
             **kwargs: Any) -> requests.Response:
    """Perform a GET request with consistent error handling and DEBUG traces.

    Args:
        url: Target URL.
        context: Human-readable source tag for logs (e.g., "index", "api").
        headers: Extra request headers; the user agent is always set.
        **kwargs: Passed through to requests.get.

    Returns:
        requests.Response: The HTTP response object.

    Raises:
        RegistryError: On timeouts and connection errors.
    """
    safe_target = safe_url(url)
    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action="GET",
                    target=safe_target,
                    context=context
                )
            )
        try:
            res = requests.get(
                url,
                timeout=Constants.REQUEST_TIMEOUT,
                headers=_default_headers(headers),
                **kwargs
            )
        except requests.Timeout as exc:
            raise RegistryError(
                f"{context} request to {safe_target} timed out after "
                f"{Constants.REQUEST_TIMEOUT} seconds"
            ) from exc
        except requests.RequestException as exc:  # includes ConnectionError
            raise RegistryError(f"{context} connection error: {exc}") from exc
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    status_code=res.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                    context=context
                )
            )
        return res


def get_json(url: str, *, context: str, params: Optional[Dict[str, Any]] = None,
             headers: Optional[Dict[str, str]] = None) -> Any:
    """GET a URL and decode its JSON body.

    Raises:
        RegistryError: On connection errors, non-200 statuses or bodies that
            are not valid JSON.
    """
    merged = {"Accept": "application/json"}
    if headers:
        merged.update(headers)
    res = safe_get(url, context=context, params=params, headers=merged)
    if res.status_code != 200:
        raise RegistryError(
            f"{context} request to {safe_url(url)} failed with status {res.status_code}",
            status_code=res.status_code,
        )
    try:
        return json.loads(res.text)
    except json.JSONDecodeError as exc:
        if is_debug_enabled(logger):
            logger.debug(
                "JSON decode error",
                extra=extra_context(
                    event="parse",
                    component="http_client",
                    action="get_json",
                    outcome="json_decode_error",
                    target=safe_url(url)
                )
            )
        raise RegistryError(f"{context} returned invalid JSON from {safe_url(url)}: {exc}") from exc


def download_file(url: str, target: Path, *, context: str) -> str:
    """Stream ``url`` into ``target`` and return the SHA-256 hex digest.

    The body is written to a temporary file next to ``target`` and renamed
    into place once complete, so ``target`` never holds a partial download.
    """
    target.parent.mkdir(parents=True, exist_ok=True)
    res = safe_get(url, context=context, stream=True)
    if res.status_code != 200:
        raise RegistryError(
            f"{context} download of {safe_url(url)} failed with status {res.status_code}",
            status_code=res.status_code,
        )

    digest = hashlib.sha256()
    fd, tmp_name = tempfile.mkstemp(dir=str(target.parent), prefix=".download-", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as fh:
            try:
                for chunk in res.iter_content(chunk_size=Constants.DOWNLOAD_CHUNK_SIZE):
                    if chunk:
                        digest.update(chunk)
                        fh.write(chunk)
            except requests.RequestException as exc:
                raise RegistryError(f"{context} download of {safe_url(url)} interrupted: {exc}") from exc
        os.replace(tmp_name, target)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    finally:
        res.close()
    return digest.hexdigest()
