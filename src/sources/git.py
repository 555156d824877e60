"""Git repository source.

Checks the repository out under ``<home>/git/checkouts`` with the ``git``
executable and then treats the checkout like a path source.
"""
from __future__ import annotations

import hashlib
import logging
import re
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from constants import Constants
from errors import SourceError

from .base import LocalPackagesSource
from .manifest import read_packages
from .models import SourceLocation

logger = logging.getLogger(__name__)

_UNSAFE_CHARS_RE = re.compile(r"[^a-zA-Z0-9_.\-]")
_STDERR_EXCERPT = 300


def run_git(args: List[str], cwd: Optional[Path] = None) -> str:
    """Run a git command and return its stdout.

    Raises:
        SourceError: If git is missing or exits non-zero.
    """
    cmd = ["git", *args]
    logger.debug("Running %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            errors="replace",
            check=False,
        )
    except OSError as exc:
        raise SourceError(f"failed to run git: {exc}") from exc
    if result.returncode != 0:
        raise SourceError(
            f"git {args[0]} failed (rc={result.returncode}): {result.stderr.strip()[:_STDERR_EXCERPT]}"
        )
    return result.stdout


def repository_ident(url: str) -> str:
    """Stable directory name for a repository URL: ``<last segment>-<short hash>``."""
    tail = url.rstrip("/").rsplit("/", 1)[-1]
    if tail.endswith(".git"):
        tail = tail[:-4]
    tail = _UNSAFE_CHARS_RE.sub("_", tail) or "_empty"
    digest = hashlib.sha256(url.encode("utf-8")).hexdigest()[:16]
    return f"{tail}-{digest}"


class GitSource(LocalPackagesSource):
    """Packages found in a git repository at a branch, tag or revision."""

    def __init__(self, location: SourceLocation, home: Path):
        if not location.url:
            raise SourceError("git source requires a repository URL")
        super().__init__(location)
        self.url = location.url
        self.reference = location.reference
        ref_dir = _UNSAFE_CHARS_RE.sub("_", self.reference.value) if self.reference else "HEAD"
        self.checkout_dir = Path(home) / "git" / "checkouts" / repository_ident(self.url) / ref_dir

    @property
    def _sentinel(self) -> Path:
        return self.checkout_dir / Constants.SENTINEL_FILE

    def update(self) -> None:
        self._sync()
        self._packages = read_packages(self.checkout_dir)

    def _sync(self) -> None:
        if self._sentinel.exists():
            self._sentinel.unlink()
        if (self.checkout_dir / ".git").is_dir():
            logger.info("Updating git repository `%s`", self.url)
            self._fetch()
        else:
            logger.info("Cloning git repository `%s`", self.url)
            if self.checkout_dir.exists():
                shutil.rmtree(self.checkout_dir)
            self.checkout_dir.parent.mkdir(parents=True, exist_ok=True)
            self._clone()
        self._sentinel.write_text(Constants.SENTINEL_CONTENT, encoding="utf-8")

    def _clone(self) -> None:
        target = str(self.checkout_dir)
        ref = self.reference
        if ref is None:
            run_git(["clone", "--depth", "1", self.url, target])
        elif ref.kind in ("branch", "tag"):
            run_git(["clone", "--depth", "1", "--branch", ref.value, self.url, target])
        else:
            run_git(["clone", self.url, target])
            run_git(["checkout", "--force", ref.value], cwd=self.checkout_dir)

    def _fetch(self) -> None:
        ref = self.reference
        if ref is not None and ref.kind == "rev":
            run_git(["fetch", "origin"], cwd=self.checkout_dir)
            run_git(["checkout", "--force", ref.value], cwd=self.checkout_dir)
            return
        target = ref.value if ref is not None else "HEAD"
        run_git(["fetch", "--depth", "1", "origin", target], cwd=self.checkout_dir)
        run_git(["checkout", "--force", "FETCH_HEAD"], cwd=self.checkout_dir)
