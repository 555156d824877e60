"""Cargo.toml discovery and parsing for on-disk sources."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

try:
    import tomllib as toml  # type: ignore
except ImportError:  # Python < 3.11
    import tomli as toml  # type: ignore

from constants import Constants
from errors import ManifestError
from versioning.models import ResolvedPackage

logger = logging.getLogger(__name__)

DEFAULT_PACKAGE_VERSION = "0.0.0"
SKIPPED_DIRS = {"target"}


def _load_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as fh:
            return toml.load(fh)
    except (OSError, toml.TOMLDecodeError) as exc:
        raise ManifestError(f"failed to parse manifest at `{path}`: {exc}") from exc


def _workspace_version(manifest_dir: Path, stop_at: Optional[Path]) -> Optional[str]:
    """Find ``[workspace.package] version`` in the nearest ancestor workspace root."""
    current = manifest_dir.parent
    while True:
        candidate = current / Constants.MANIFEST_FILE
        if candidate.is_file():
            data = _load_toml(candidate)
            workspace = data.get("workspace")
            if isinstance(workspace, dict):
                package = workspace.get("package") or {}
                version = package.get("version") if isinstance(package, dict) else None
                return str(version) if version else None
        if stop_at is not None and current == stop_at:
            return None
        if current.parent == current:
            return None
        current = current.parent


def read_manifest(path: Path, *, stop_at: Optional[Path] = None) -> Optional[ResolvedPackage]:
    """Read one Cargo.toml.

    Args:
        path: Path of the manifest file.
        stop_at: Highest directory searched for a workspace root when the
            version is inherited with ``version.workspace = true``.

    Returns:
        The package, or None for a virtual (workspace-only) manifest.

    Raises:
        ManifestError: If the file is unreadable or the package table is invalid.
    """
    path = Path(path)
    data = _load_toml(path)
    package = data.get("package")
    if package is None:
        return None
    if not isinstance(package, dict) or not isinstance(package.get("name"), str):
        raise ManifestError(f"manifest at `{path}` has no valid package name")

    version = package.get("version", DEFAULT_PACKAGE_VERSION)
    if isinstance(version, dict):
        if not version.get("workspace"):
            raise ManifestError(f"manifest at `{path}` has an invalid version table")
        inherited = _workspace_version(path.parent, stop_at)
        if inherited is None:
            raise ManifestError(
                f"manifest at `{path}` inherits its version but no workspace root defines one"
            )
        version = inherited
    return ResolvedPackage(name=package["name"], version=str(version), root=path.parent)


def _is_nested_repo(directory: Path, root: Path) -> bool:
    return directory != root and (directory / ".git").exists()


def read_packages(root: Path) -> List[ResolvedPackage]:
    """Discover every package below ``root``, root package first.

    Hidden directories, ``target`` directories and nested git repositories are
    not searched. When two packages share a name the first found is kept.

    Raises:
        ManifestError: If the manifest at ``root`` itself cannot be parsed.
    """
    root = Path(root)
    if not root.is_dir():
        raise ManifestError(f"source path `{root}` is not a directory")

    packages: List[ResolvedPackage] = []
    seen: Dict[str, ResolvedPackage] = {}
    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        dirnames[:] = sorted(
            d for d in dirnames
            if not d.startswith(".")
            and d not in SKIPPED_DIRS
            and not _is_nested_repo(current / d, root)
        )
        if Constants.MANIFEST_FILE not in filenames:
            continue
        manifest = current / Constants.MANIFEST_FILE
        try:
            pkg = read_manifest(manifest, stop_at=root)
        except ManifestError as exc:
            if current == root:
                raise
            logger.warning("Skipping unreadable manifest: %s", exc)
            continue
        if pkg is None:
            continue
        if pkg.name in seen:
            logger.warning(
                "skipping duplicate package `%s` found at `%s` (already found at `%s`)",
                pkg.name, pkg.root, seen[pkg.name].root,
            )
            continue
        seen[pkg.name] = pkg
        packages.append(pkg)
    return packages
