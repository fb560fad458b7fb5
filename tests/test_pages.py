from __future__ import annotations

import logging
from pathlib import Path

import pytest

from webgen.errors import FilesystemError, TemplateError
from webgen.pages import iter_tasks, render_page, render_pages
from webgen.templates import TemplateRegistry
from tests.conftest import write


def _registry(root: Path) -> TemplateRegistry:
    reg = TemplateRegistry()
    reg.load_fragments(root / "templates")
    return reg


def test_renders_post_and_skips_other_files(site: Path, make_config) -> None:
    cfg = make_config(site)
    written = render_pages(cfg, _registry(site))

    assert (cfg.out_dir / "blog" / "post1.html").read_text() == "Hello world\n"
    assert not (cfg.out_dir / "blog" / "notes.html").exists()
    assert not (cfg.out_dir / "blog" / "notes.txt").exists()
    assert written == [cfg.out_dir / "blog" / "post1.html", cfg.out_dir / "index.html"]


def test_page_can_include_shared_fragment(site: Path, make_config) -> None:
    cfg = make_config(site)
    render_pages(cfg, _registry(site))
    assert (cfg.out_dir / "index.html").read_text() == (
        '<header><h2 id="top"><a href="#top">Top</a></h2></header>\n<p>home</p>\n'
    )


def test_directory_with_template_extension_is_skipped(site: Path, make_config) -> None:
    (site / "pages" / "odd.tmpl").mkdir()
    write(site / "pages" / "odd.tmpl" / "inner.tmpl", "inner")
    cfg = make_config(site)
    render_pages(cfg, _registry(site))
    assert not (cfg.out_dir / "odd.html").exists()
    assert (cfg.out_dir / "odd.tmpl" / "inner.html").read_text() == "inner"


def test_discovery_order_is_depth_first_by_name(site: Path) -> None:
    write(site / "pages" / "a.tmpl", "a")
    write(site / "pages" / "blog" / "2014" / "old.tmpl", "old")
    keys = [t.key for t in iter_tasks(site / "pages", site)]
    assert keys == ["a", "blog/2014/old", "blog/post1", "index"]


def test_page_may_use_previously_parsed_page(site: Path, make_config) -> None:
    write(site / "pages" / "zz.tmpl", '{% include "blog/post1" %}!')
    cfg = make_config(site)
    render_pages(cfg, _registry(site))
    assert (cfg.out_dir / "zz.html").read_text() == "Hello world\n!"


def test_render_order_does_not_change_output(site: Path, make_config, tmp_path: Path) -> None:
    cfg = make_config(site, out_dir=tmp_path / "first")
    render_pages(cfg, _registry(site))

    reg = _registry(site)
    tasks = list(iter_tasks(site / "pages", site))
    second = tmp_path / "second"
    for task in reversed(tasks):
        render_page(task, reg, second)

    for task in tasks:
        assert task.output_path(second).read_text() == task.output_path(cfg.out_dir).read_text()


def test_execution_failure_is_fatal(site: Path, make_config) -> None:
    write(site / "pages" / "broken.tmpl", "{{ undefined_value }}")
    cfg = make_config(site)
    with pytest.raises(TemplateError):
        render_pages(cfg, _registry(site))


def test_parse_failure_is_fatal(site: Path, make_config) -> None:
    write(site / "pages" / "a.tmpl", "{% block %}")
    cfg = make_config(site)
    with pytest.raises(TemplateError):
        render_pages(cfg, _registry(site))
    assert not (cfg.out_dir / "blog" / "post1.html").exists()


def test_page_name_colliding_with_fragment_is_an_error(site: Path, make_config) -> None:
    write(site / "pages" / "header.tmpl", "page")
    with pytest.raises(TemplateError, match="already registered"):
        render_pages(make_config(site), _registry(site))


def test_missing_pages_directory_is_fatal(site: Path, make_config, tmp_path: Path) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()
    with pytest.raises(FilesystemError):
        render_pages(make_config(empty), _registry(site))


def test_execute_lines_are_logged(site: Path, make_config, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="webgen")
    render_pages(make_config(site), _registry(site))
    assert any(r.getMessage().startswith("execute blog/post1 > ") for r in caplog.records)
