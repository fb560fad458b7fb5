"""
paths.py

Responsibility: Pure path transformations shared by the copy and page stages.

Nothing here touches the filesystem; every function can be exercised with
made-up paths.
"""

from __future__ import annotations

import os
import posixpath
from dataclasses import dataclass
from pathlib import Path, PurePath

TEMPLATE_EXT = ".tmpl"
OUTPUT_EXT = ".html"
PAGES_SEGMENT = "pages"


def map_path(path: str | PurePath, root: str | PurePath, target: str | PurePath) -> Path:
    """
    Replace the `root` prefix of `path` with `target`.

    Raises ValueError when `path` is not under `root`.
    """
    rel = PurePath(path).relative_to(root)
    return Path(target) / rel


def replace_ext(path: str, new_ext: str) -> str:
    """Replace the extension of `path` (if any) with `new_ext`."""
    base, _old = os.path.splitext(path)
    return base + new_ext


@dataclass(frozen=True)
class RenderTask:
    """One page template to render: where it lives and what it is called."""

    source: PurePath
    rel_dir: str
    name: str

    @property
    def key(self) -> str:
        # Jinja2 template names always use forward slashes.
        return posixpath.join(self.rel_dir, self.name) if self.rel_dir else self.name

    def output_path(self, out_dir: str | PurePath) -> Path:
        parts = self.rel_dir.split("/") if self.rel_dir else []
        return Path(out_dir).joinpath(*parts, self.name + OUTPUT_EXT)


def page_task(path: str | PurePath, root: str | PurePath) -> RenderTask:
    """
    Derive the `RenderTask` for a page template at `path` under `root`.

    The relative directory loses a leading `pages` segment and the logical
    name loses the template extension, so `<root>/pages/blog/post1.tmpl`
    becomes key `blog/post1`.
    """
    p = path if isinstance(path, PurePath) else Path(path)
    rel = p.relative_to(root)
    parts = list(rel.parent.parts)
    if parts and parts[0] == PAGES_SEGMENT:
        parts = parts[1:]

    name = rel.name
    if name.endswith(TEMPLATE_EXT):
        name = name[: -len(TEMPLATE_EXT)]
    return RenderTask(source=p, rel_dir="/".join(parts), name=name)


@dataclass(frozen=True)
class PathDisplay:
    """Shortens paths for log output: `$WORK/...` and `$OUT/...`."""

    work: Path
    out: Path

    def __call__(self, path: str | PurePath) -> str:
        p = PurePath(path)
        for prefix, label in ((self.out, "$OUT"), (self.work, "$WORK")):
            try:
                rel = p.relative_to(prefix)
            except ValueError:
                continue
            return label if not rel.parts else f"{label}/{rel.as_posix()}"
        return str(p)
