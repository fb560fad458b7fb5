"""
pages.py

Responsibility: Render every page template under `pages/` into one HTML file.

Per entry found by the walk:
1) skip anything without the template extension
2) skip anything that is not a regular file (e.g. a directory named `x.tmpl`)
3) read and register the template under its logical name (fatal on parse error)
4) ensure the output directory exists
5) execute the template with an empty context and write the result

Pages are visited depth-first in name order, so the log reads the same on
every run. Each page is registered just before it is rendered: it may use
shared fragments and pages seen earlier, never another page's output.
"""

from __future__ import annotations

import logging
import stat
from pathlib import Path
from typing import Callable, Iterator

from webgen.config import Config
from webgen.copier import walk_sorted
from webgen.errors import FilesystemError, TemplateError
from webgen.paths import TEMPLATE_EXT, RenderTask, page_task
from webgen.templates import TemplateRegistry

logger = logging.getLogger(__name__)


def iter_tasks(pages_dir: Path, root: Path) -> Iterator[RenderTask]:
    """Yield a `RenderTask` for each regular `*.tmpl` file below `pages_dir`."""
    if not pages_dir.is_dir():
        raise FilesystemError(f"Pages directory not found: {pages_dir}")

    for path in walk_sorted(pages_dir):
        if path.suffix != TEMPLATE_EXT:
            continue
        try:
            mode = path.stat().st_mode
        except OSError as e:
            raise FilesystemError(f"Cannot stat page {path}: {e}") from e
        if not stat.S_ISREG(mode):
            continue
        yield page_task(path, root)


def render_page(
    task: RenderTask,
    registry: TemplateRegistry,
    out_dir: Path,
    *,
    display: Callable[[Path], str] = str,
) -> Path:
    try:
        source = task.source.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise TemplateError(f"Page template is not UTF-8: {task.source}") from e
    except OSError as e:
        raise FilesystemError(f"Cannot read page {task.source}: {e}") from e

    registry.register(task.key, source, str(task.source))

    html_out = task.output_path(out_dir)
    try:
        html_out.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error("mkdir %s", display(html_out.parent))
        raise FilesystemError(f"Cannot create {html_out.parent}: {e}") from e

    logger.info("execute %s > %s", task.key, display(html_out))
    rendered = registry.render(task.key)
    try:
        html_out.write_text(rendered, encoding="utf-8", newline="\n")
    except OSError as e:
        raise FilesystemError(f"Cannot write {html_out}: {e}") from e
    return html_out


def render_pages(
    cfg: Config,
    registry: TemplateRegistry,
    *,
    display: Callable[[Path], str] = str,
) -> list[Path]:
    """Render all pages of `cfg.pages_dir`; returns the written files in render order."""
    written: list[Path] = []
    for task in iter_tasks(cfg.pages_dir, cfg.root):
        written.append(render_page(task, registry, cfg.out_dir, display=display))
    return written
