"""Cross-process lock over the shared package cache."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from filelock import FileLock, Timeout

from constants import Constants

logger = logging.getLogger(__name__)


class PackageCacheLock:
    """Exclusive lock on ``<home>/.package-cache``.

    Used as a context manager around one resolve-and-download operation.
    A contended lock is reported once, then waited on without a timeout.
    """

    def __init__(self, home: Path):
        self.path = Path(home) / Constants.PACKAGE_CACHE_LOCK
        self._lock: Optional[FileLock] = None

    @property
    def is_locked(self) -> bool:
        return self._lock is not None and self._lock.is_locked

    def acquire(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        lock = FileLock(str(self.path))
        try:
            lock.acquire(timeout=0)
        except Timeout:
            logger.info("Blocking waiting for file lock on package cache")
            lock.acquire()
        self._lock = lock

    def release(self) -> None:
        if self._lock is not None:
            self._lock.release()
            self._lock = None

    def __enter__(self) -> "PackageCacheLock":
        self.acquire()
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()
