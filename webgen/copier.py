"""
copier.py

Responsibility: Mirror a content tree into the output directory byte-for-byte.

Rules:
- Walk the source in deterministic order (directory before children, siblings by name).
- Directories are created at the destination; their metadata is not copied.
- Regular files are created (or truncated) and their bytes copied verbatim.
- Anything else (symlinks, devices, fifos) is skipped silently.

Any I/O error aborts the copy. Files already written stay on disk.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator

from webgen.errors import FilesystemError
from webgen.paths import map_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CopyResult:
    dirs: int
    files: int
    skipped: int


def walk_sorted(top: Path) -> Iterator[Path]:
    """
    Yield `top` and every entry below it depth-first, each directory before
    its children, siblings in name order. Symlinked directories are not
    followed.
    """
    yield top
    if not top.is_dir() or top.is_symlink():
        return
    for child in sorted(top.iterdir(), key=lambda p: p.name):
        yield from walk_sorted(child)


def copy_tree(
    src: str | Path,
    dst: str | Path,
    *,
    root: str | Path | None = None,
    display: Callable[[Path], str] = str,
) -> CopyResult:
    """
    Copy every entry under `src` to the destination obtained by replacing the
    `root` prefix (default: `src` itself) with `dst`.
    """
    src_dir = Path(src)
    dst_dir = Path(dst)
    base = Path(root) if root is not None else src_dir

    if not src_dir.is_dir():
        raise FilesystemError(f"Content directory not found: {src_dir}")

    dirs = files = skipped = 0
    try:
        for path in walk_sorted(src_dir):
            mode = os.lstat(path).st_mode
            target = map_path(path, base, dst_dir)

            if stat.S_ISDIR(mode):
                logger.info("cp -r %s %s", display(path), display(target))
                target.mkdir(parents=True, exist_ok=True)
                dirs += 1
                continue

            if not stat.S_ISREG(mode):
                logger.debug("skip %s (not a regular file)", display(path))
                skipped += 1
                continue

            target.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "rb") as fsrc, open(target, "wb") as fdst:
                shutil.copyfileobj(fsrc, fdst)
            files += 1
    except OSError as e:
        raise FilesystemError(f"Copy failed: {e}") from e

    return CopyResult(dirs=dirs, files=files, skipped=skipped)
