from __future__ import annotations

import os
from pathlib import Path

import pytest

from webgen.cleaner import clean_tree
from webgen.copier import copy_tree, walk_sorted
from webgen.errors import FilesystemError
from tests.conftest import write


def _snapshot(root: Path) -> dict[str, bytes | None]:
    return {
        p.relative_to(root).as_posix(): (p.read_bytes() if p.is_file() else None)
        for p in root.rglob("*")
        if ".git" not in p.parts
    }


def test_copy_is_byte_identical(site: Path, tmp_path: Path) -> None:
    out = tmp_path / "out"
    result = copy_tree(site / "content", out)

    for src in (site / "content").rglob("*"):
        dst = out / src.relative_to(site / "content")
        if src.is_file():
            assert dst.read_bytes() == src.read_bytes()
        else:
            assert dst.is_dir()
    assert result.files == 2
    assert result.dirs == 3


def test_copy_maps_relative_to_given_root(site: Path, tmp_path: Path) -> None:
    out = tmp_path / "out"
    copy_tree(site / "content", out, root=site)
    assert (out / "content" / "css" / "site.css").read_text() == "body { margin: 0 }\n"


def test_copy_truncates_existing_files(site: Path, tmp_path: Path) -> None:
    out = tmp_path / "out"
    write(out / "css" / "site.css", "x" * 1000)
    copy_tree(site / "content", out)
    assert (out / "css" / "site.css").read_text() == "body { margin: 0 }\n"


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
def test_copy_skips_symlinks(site: Path, tmp_path: Path) -> None:
    link = site / "content" / "link.css"
    try:
        link.symlink_to(site / "content" / "css" / "site.css")
    except OSError:
        pytest.skip("cannot create symlinks here")

    out = tmp_path / "out"
    result = copy_tree(site / "content", out)
    assert not (out / "link.css").exists()
    assert result.skipped == 1


def test_clean_then_copy_matches_fresh_copy(site: Path, tmp_path: Path) -> None:
    used = tmp_path / "used"
    write(used / ".git" / "HEAD", "ref")
    write(used / "stale.html", "old")
    write(used / "css" / "old.css", "old")
    copy_tree(site / "content", used)

    clean_tree(used)
    copy_tree(site / "content", used)

    fresh = tmp_path / "fresh"
    copy_tree(site / "content", fresh)

    assert _snapshot(used) == _snapshot(fresh)


def test_copy_missing_source_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(FilesystemError):
        copy_tree(tmp_path / "nope", tmp_path / "out")


def test_copy_io_error_is_fatal(site: Path, tmp_path: Path) -> None:
    out = tmp_path / "out"
    # A file where a directory is needed.
    write(out / "css", "not a dir")
    with pytest.raises(FilesystemError):
        copy_tree(site / "content", out)


def test_walk_sorted_order(tmp_path: Path) -> None:
    write(tmp_path / "b" / "z.txt", "")
    write(tmp_path / "b" / "a.txt", "")
    write(tmp_path / "a.txt", "")
    got = [p.relative_to(tmp_path).as_posix() for p in walk_sorted(tmp_path)]
    assert got == [".", "a.txt", "b", "b/a.txt", "b/z.txt"]
