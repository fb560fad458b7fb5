"""
cleaner.py

Responsibility: Empty an output directory while keeping version-control metadata.

Any entry whose path (relative to the target) has a component containing
`.git` survives, as does the target directory itself. Everything else goes.
A failed removal is fatal: a half-cleaned tree would publish stale pages.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from webgen.errors import FilesystemError

logger = logging.getLogger(__name__)

VCS_MARKER = ".git"


def is_protected(rel: Path) -> bool:
    """True when any component of the relative path contains the VCS marker."""
    return any(VCS_MARKER in part for part in rel.parts)


def _has_protected_descendant(path: Path, target: Path) -> bool:
    for dirpath, dirnames, filenames in os.walk(path):
        for name in dirnames + filenames:
            if is_protected((Path(dirpath) / name).relative_to(target)):
                return True
    return False


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def clean_tree(target: str | Path) -> int:
    """
    Remove every unprotected entry below `target`; returns the number removed.

    A missing target is not an error. Directories that hold protected entries
    further down are descended into instead of removed wholesale.
    """
    root = Path(target)
    if not root.exists():
        logger.debug("nothing to clean at %s", root)
        return 0

    removed = 0
    pending = [root]
    while pending:
        current = pending.pop()
        try:
            children = sorted(current.iterdir(), key=lambda p: p.name)
        except OSError as e:
            raise FilesystemError(f"Cannot list {current}: {e}") from e

        for child in children:
            rel = child.relative_to(root)
            if is_protected(rel):
                continue
            is_dir = child.is_dir() and not child.is_symlink()
            if is_dir and _has_protected_descendant(child, root):
                pending.append(child)
                continue
            try:
                _remove(child)
            except OSError as e:
                raise FilesystemError(f"Cannot remove {child}: {e}") from e
            removed += 1
    return removed
