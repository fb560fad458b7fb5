"""
cli.py

Responsibility: CLI entrypoint for webgen.

High-level flow (single command):
1) Parse flags, read `webgen.yaml` and the environment -> `Config`
2) Run the pipeline stages (clean, copy, templates, pages, docs, Markdown)
3) (Optional) git add/commit/push the output tree
4) (Optional) serve the output tree over HTTP

Any fatal error is logged and turned into exit status 1.
"""

from __future__ import annotations

import argparse
import logging

from webgen import __version__
from webgen.config import load_config
from webgen.errors import WebgenError
from webgen.pipeline import run_pipeline

logger = logging.getLogger("webgen")


def _add_toggle(p: argparse.ArgumentParser, name: str, help_on: str, help_off: str) -> None:
    p.add_argument(f"--{name}", dest=name, action="store_true", default=None, help=help_on)
    p.add_argument(f"--no-{name}", dest=name, action="store_false", default=None, help=help_off)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="webgen", description="webgen - static website generator")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--root", default=None, help="Working root with content/, pages/ and templates/ (default: .)")
    p.add_argument("--out", dest="out_dir", default=None, help="Output directory to place generated files")
    p.add_argument("--config", default=None, help="YAML configuration file (default: <root>/webgen.yaml)")
    p.add_argument("--http", dest="http_addr", default=None, help="Serve files over HTTP after generation, e.g. :8080")
    p.add_argument("--org", dest="github_org", default=None, help="GitHub organisation to document packages of")
    p.add_argument("--remote", default=None, help="git remote to push to (default: the branch upstream)")
    p.add_argument("-v", "--verbose", action="store_true", help="Log every step, including skipped files")

    _add_toggle(p, "clean", "Clean the output directory first (default)", "Keep existing output files")
    _add_toggle(p, "update", "Refresh package data from GitHub (default)", "Reuse the cached package listing")
    _add_toggle(p, "docs", "Generate package documentation (default)", "Skip package documentation")
    _add_toggle(p, "auth", "Authenticate with GitHub using $GITHUB_API_TOKEN (default)", "Use the GitHub API anonymously")
    _add_toggle(p, "push", "git add, commit and push the output directory (default)", "Do not publish the output")
    return p


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format="%(message)s")


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _setup_logging(bool(args.verbose))

    overrides = {
        "root": args.root,
        "out_dir": args.out_dir,
        "http_addr": args.http_addr,
        "github_org": args.github_org,
        "remote": args.remote,
        "clean": args.clean,
        "update": args.update,
        "docs": args.docs,
        "auth": args.auth,
        "push": args.push,
    }
    try:
        cfg = load_config(overrides, config_file=args.config)
        run_pipeline(cfg)
    except WebgenError as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
