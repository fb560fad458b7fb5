"""
mdgen.py

Responsibility: Render Markdown documents into HTML pages through a named template.

Rules:
- Glob patterns are evaluated relative to the working root, in the order given;
  matches of one pattern are sorted and a file matched twice is rendered once.
- Optional YAML front-matter (between `---` lines) supplies page metadata.
- The output lands at the mirrored path under the output root with `.html`.
- Markdown syntax is handled entirely by the `markdown` package.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Sequence

import markdown
import yaml
from markupsafe import Markup

from webgen.config import Config
from webgen.errors import ExternalError, FilesystemError, TemplateError
from webgen.paths import OUTPUT_EXT, map_path, replace_ext
from webgen.templates import TemplateRegistry

logger = logging.getLogger(__name__)

ARTICLE_PATTERNS = ("*.md", "news/*.md", "news/*/*.md")
ARTICLE_TEMPLATE = "article"
DOC_PATTERNS = ("doc/*.md", "doc/*/*.md")
DOC_TEMPLATE = "doc"

MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "toc"]

_HEADING = re.compile(r"^#\s+(.+?)\s*#*\s*$")


@dataclass(frozen=True)
class Document:
    source: Path
    meta: dict[str, Any] = field(default_factory=dict)
    body: str = ""


def split_frontmatter(text: str) -> tuple[dict[str, Any] | None, str]:
    """
    If the text begins with YAML front-matter delimited by '---', parse it.
    Returns (frontmatter_dict_or_none, remaining_markdown_text).
    """
    text = text.replace("\r\n", "\n")
    if not text.startswith("---\n"):
        return None, text

    end = text.find("\n---\n", 3)
    if end == -1:
        if text.endswith("\n---"):
            end = len(text) - len("\n---")
        else:
            raise ValueError("front-matter starts with '---' but no closing '---' was found")

    data = yaml.safe_load(text[4:end]) or {}
    if not isinstance(data, dict):
        raise ValueError("front-matter must be a mapping at the top level")
    return data, text[end + len("\n---\n") :]


def first_heading(body: str) -> str | None:
    for line in body.splitlines():
        m = _HEADING.match(line.strip())
        if m:
            return m.group(1)
    return None


def page_title(meta: dict[str, Any], body: str, *, site_title: str, auto_title: bool) -> str:
    title = str(meta.get("title") or "").strip()
    if not title and auto_title:
        title = first_heading(body) or ""
    if not title:
        return site_title
    return f"{title} - {site_title}"


def load_document(path: Path) -> Document:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise FilesystemError(f"Cannot read {path}: {e}") from e
    try:
        meta, body = split_frontmatter(text)
    except (ValueError, yaml.YAMLError) as e:
        raise ExternalError(f"Bad front-matter in {path}: {e}") from e
    return Document(source=path, meta=meta or {}, body=body)


def match_documents(root: Path, patterns: Sequence[str]) -> list[Path]:
    seen: set[Path] = set()
    matches: list[Path] = []
    for pattern in patterns:
        for path in sorted(root.glob(pattern)):
            if not path.is_file() or path in seen:
                continue
            seen.add(path)
            matches.append(path)
    return matches


def generate_markdown(
    cfg: Config,
    registry: TemplateRegistry,
    patterns: Sequence[str],
    template: str,
    auto_title: bool,
    *,
    display: Callable[[Path], str] = str,
) -> list[Path]:
    """Render every document matched by `patterns` through `template`; returns written files."""
    paths = match_documents(cfg.root, patterns)
    if paths and template not in registry:
        raise TemplateError(f"Markdown template {template!r} is not registered")

    written: list[Path] = []
    for path in paths:
        doc = load_document(path)
        md = markdown.Markdown(extensions=MARKDOWN_EXTENSIONS)
        try:
            content = md.convert(doc.body)
        except Exception as e:  # noqa: BLE001 - surface as ExternalError
            raise ExternalError(f"Failed converting {path}: {e}") from e

        out = Path(replace_ext(str(map_path(path, cfg.root, cfg.out_dir)), OUTPUT_EXT))
        context = {
            "title": page_title(doc.meta, doc.body, site_title=cfg.site_title, auto_title=auto_title),
            "content": Markup(content),
            "toc": Markup(getattr(md, "toc", "")),
            "meta": doc.meta,
            "path": "/" + out.relative_to(cfg.out_dir).as_posix(),
        }

        logger.info("markdown %s > %s", display(path), display(out))
        rendered = registry.render(template, context)
        try:
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text(rendered, encoding="utf-8", newline="\n")
        except OSError as e:
            raise FilesystemError(f"Cannot write {out}: {e}") from e
        written.append(out)
    return written
