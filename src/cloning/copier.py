"""Copy an unpacked package tree into a clone destination."""
from __future__ import annotations

import logging
import os
import shutil
import stat
from pathlib import Path

from constants import Constants

logger = logging.getLogger(__name__)


def copy_tree(src: Path, dst: Path) -> None:
    """Copy every regular file and directory under ``src`` into ``dst``.

    ``dst`` must already exist. Files named ``.cargo-ok`` are skipped at any
    depth; symbolic links and special files are not copied.

    Raises:
        NotADirectoryError: If ``dst`` is not a directory.
        OSError: On the first filesystem error; files already copied stay.
    """
    src = Path(src)
    dst = Path(dst)
    if not dst.is_dir():
        raise NotADirectoryError(f"not a directory: {dst}")

    for dirpath, dirnames, filenames in os.walk(src):
        current = Path(dirpath)
        dirnames.sort()
        for name in list(dirnames):
            entry = current / name
            if entry.is_symlink():
                logger.debug("Skipping symlink %s", entry)
                dirnames.remove(name)
                continue
            (dst / entry.relative_to(src)).mkdir()
        for name in sorted(filenames):
            if name == Constants.SENTINEL_FILE:
                continue
            entry = current / name
            mode = entry.lstat().st_mode
            if not stat.S_ISREG(mode):
                logger.debug("Skipping non-regular file %s", entry)
                continue
            shutil.copy(entry, dst / entry.relative_to(src))
