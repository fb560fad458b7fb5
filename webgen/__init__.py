"""
webgen package

This package implements the webgen static-site generator as a CLI-first utility.

Key responsibilities are split across modules:
- `config.py`: resolve flags, YAML file and environment into one immutable `Config`
- `paths.py`: pure source -> destination path mapping and template naming
- `cleaner.py` / `copier.py`: output directory lifecycle and content mirroring
- `templates.py` / `pages.py`: shared template namespace and page rendering
- `mdgen.py` / `docs.py`: Markdown articles and package documentation
- `github_client.py`: isolated GitHub REST API interactions
- `publish.py` / `serve.py`: git add/commit/push and the static file server
- `pipeline.py` / `cli.py`: stage orchestration and the CLI entrypoint
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
