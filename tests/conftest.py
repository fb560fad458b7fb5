from __future__ import annotations

from pathlib import Path

import pytest

from webgen.config import Config


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """A minimal working root with content, one fragment set and a couple of pages."""
    root = tmp_path / "work"
    write(root / "content" / "css" / "site.css", "body { margin: 0 }\n")
    (root / "content" / "img").mkdir(parents=True)
    (root / "content" / "img" / "logo.bin").write_bytes(bytes(range(256)) + b"\r\n\x00")
    write(root / "templates" / "header.tmpl", "<header>{{ section('Top') }}</header>\n")
    write(root / "templates" / "article.tmpl", "<h1>{{ title }}</h1>\n{{ content }}")
    write(root / "templates" / "doc.tmpl", "<title>{{ title }}</title>\n{{ content }}")
    write(root / "pages" / "index.tmpl", '{% include "header" %}<p>home</p>\n')
    write(root / "pages" / "blog" / "post1.tmpl", 'Hello {{ "world" }}\n')
    write(root / "pages" / "blog" / "notes.txt", "not a page\n")
    return root


@pytest.fixture
def make_config(tmp_path: Path):
    def _make(root: Path, **kw) -> Config:
        values = {
            "root": root,
            "out_dir": tmp_path / "out",
            "docs": False,
            "auth": False,
            "push": False,
        }
        values.update(kw)
        return Config(**values)

    return _make
