"""crates.io style registry package.

This package provides registry support:
- index.py: sparse index lookups, config.json and crate archive unpacking
- api.py: web API client for the reverse dependency listing

Public API is preserved at registry.crates without shims.
"""

# Patch points exposed for tests (e.g., monkeypatch in tests)
from common.http_client import safe_get, get_json, download_file  # noqa: F401

# Public API re-exports
from .index import (  # noqa: F401
    IndexClient,
    download_url,
    index_prefix,
    normalize_index_url,
    unpack_crate,
)
from .api import fetch_reverse_dependencies  # noqa: F401

__all__ = [
    # Index
    "IndexClient",
    "download_url",
    "index_prefix",
    "normalize_index_url",
    "unpack_crate",
    # API
    "fetch_reverse_dependencies",
    # Patch points for tests
    "safe_get",
    "get_json",
    "download_file",
]
