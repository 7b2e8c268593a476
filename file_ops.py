"""
Overwriting file copies into the game folder.

Copies are not transactional: the first failure raises ``CopyFailure`` and
whatever was already copied stays in place.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Iterable
from pathlib import Path

from errors import CopyFailure

_log = logging.getLogger(__name__)


def copy_file(src: Path, dst: Path):
    try:
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dst)
    except OSError as exc:
        raise CopyFailure(src, dst, exc) from exc
    _log.debug("Copied %s -> %s", src, dst)


def copy_tree(src_dir: str | Path, dst_dir: str | Path) -> int:
    """Recursively copy ``src_dir`` into ``dst_dir``, overwriting existing files.

    Returns the number of files copied.
    """
    src_dir = Path(src_dir)
    dst_dir = Path(dst_dir)
    if not src_dir.is_dir():
        raise CopyFailure(
            src_dir, dst_dir, FileNotFoundError(f"Source folder {src_dir} does not exist")
        )

    copied = 0
    for dirpath, dirnames, filenames in os.walk(src_dir):
        dirnames.sort()
        rel = Path(dirpath).relative_to(src_dir)
        for name in sorted(filenames):
            copy_file(Path(dirpath) / name, dst_dir / rel / name)
            copied += 1
    return copied


def copy_files(src_dir: Path, dst_dir: Path, relative_paths: Iterable[str]) -> int:
    copied = 0
    for rel in relative_paths:
        copy_file(src_dir / rel, dst_dir / rel)
        copied += 1
    return copied
