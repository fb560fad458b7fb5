"""
docs.py

Responsibility: Generate package documentation pages from a GitHub organisation.

High-level flow:
1) List the organisation's public repositories (or reuse the cached listing
   when updates are disabled)
2) Fetch every README through a bounded pool of GitHub clients
3) Render `pkgdoc` once per package into `<out>/<name>/index.html`
4) Render `pkgindex` into `<out>/packages.html`

The pool is internal to this stage; callers see one blocking call.
"""

from __future__ import annotations

import json
import logging
import queue
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Callable, Iterator, Sequence, TypeVar

import markdown
from markupsafe import Markup

from webgen.config import Config
from webgen.errors import ExternalError, FilesystemError, TemplateError
from webgen.github_client import GitHubClient, RepoInfo
from webgen.templates import TemplateRegistry

logger = logging.getLogger(__name__)

PKGDOC_TEMPLATE = "pkgdoc"
PKGINDEX_TEMPLATE = "pkgindex"
PKGINDEX_OUT = "packages.html"
CACHE_FILE = "packages.json"

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class Package:
    name: str
    import_path: str
    description: str = ""
    html_url: str = ""
    default_branch: str = "main"
    topics: tuple[str, ...] = field(default_factory=tuple)
    readme: str = ""

    @property
    def readme_html(self) -> Markup:
        if not self.readme:
            return Markup("")
        return Markup(markdown.markdown(self.readme, extensions=["fenced_code", "tables"]))

    @classmethod
    def from_dict(cls, data: dict) -> Package:
        return cls(
            name=data["name"],
            import_path=data["import_path"],
            description=data.get("description", ""),
            html_url=data.get("html_url", ""),
            default_branch=data.get("default_branch", "main"),
            topics=tuple(data.get("topics", ())),
            readme=data.get("readme", ""),
        )


class ClientPool:
    """A fixed number of GitHub clients shared by a thread pool of the same size."""

    def __init__(self, token: str, size: int, factory: Callable[[str], GitHubClient] = GitHubClient) -> None:
        if size < 1:
            raise ValueError("client pool size must be at least 1")
        self.size = size
        self._clients: queue.Queue[GitHubClient] = queue.Queue()
        self._all = [factory(token) for _ in range(size)]
        for client in self._all:
            self._clients.put(client)

    @contextmanager
    def client(self) -> Iterator[GitHubClient]:
        c = self._clients.get()
        try:
            yield c
        finally:
            self._clients.put(c)

    def map(self, fn: Callable[[GitHubClient, T], R], items: Sequence[T]) -> list[R]:
        """Apply `fn(client, item)` to every item; results keep the input order."""

        def call(item: T) -> R:
            with self.client() as c:
                return fn(c, item)

        with ThreadPoolExecutor(max_workers=self.size) as executor:
            return list(executor.map(call, items))

    def close(self) -> None:
        for client in self._all:
            client.close()


def import_path(domain: str, org: str, name: str) -> str:
    if domain:
        return f"{domain.rstrip('/')}/{name}"
    return f"github.com/{org}/{name}"


def fetch_packages(cfg: Config, pool: ClientPool) -> list[Package]:
    org = cfg.github_org or ""
    with pool.client() as c:
        repos = c.list_org_repos(org)
    logger.info("found %d repositories in %s", len(repos), org)

    def with_readme(client: GitHubClient, repo: RepoInfo) -> Package:
        logger.debug("readme %s/%s", repo.owner, repo.name)
        return Package(
            name=repo.name,
            import_path=import_path(cfg.import_domain, org, repo.name),
            description=repo.description,
            html_url=repo.html_url,
            default_branch=repo.default_branch,
            topics=repo.topics,
            readme=client.get_readme(repo.owner, repo.name) or "",
        )

    return pool.map(with_readme, repos)


def load_cache(path: Path) -> list[Package] | None:
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return [Package.from_dict(item) for item in data["packages"]]
    except (OSError, ValueError, KeyError, TypeError) as e:
        raise ExternalError(f"Package cache {path} is unreadable: {e}") from e


def save_cache(path: Path, packages: Sequence[Package]) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"packages": [asdict(p) for p in packages]}
        path.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    except OSError as e:
        raise FilesystemError(f"Cannot write package cache {path}: {e}") from e


def _write(path: Path, text: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8", newline="\n")
    except OSError as e:
        raise FilesystemError(f"Cannot write {path}: {e}") from e


def generate_docs(
    cfg: Config,
    registry: TemplateRegistry,
    *,
    client_factory: Callable[[str], GitHubClient] = GitHubClient,
    display: Callable[[Path], str] = str,
) -> list[Path]:
    """Render package documentation; returns the written files (index last)."""
    for name in (PKGDOC_TEMPLATE, PKGINDEX_TEMPLATE):
        if name not in registry:
            raise TemplateError(f"Package documentation template {name!r} is not registered")

    cache_path = cfg.cache_dir / CACHE_FILE
    packages = None if cfg.update else load_cache(cache_path)
    if packages is None:
        pool = ClientPool(cfg.github_token if cfg.auth else "", cfg.client_pool_size, client_factory)
        try:
            packages = fetch_packages(cfg, pool)
        finally:
            pool.close()
        save_cache(cache_path, packages)
    else:
        logger.info("using cached package listing %s", display(cache_path))

    written: list[Path] = []
    for pkg in packages:
        out = cfg.out_dir / pkg.name / "index.html"
        logger.info("pkgdoc %s > %s", pkg.import_path, display(out))
        _write(out, registry.render(PKGDOC_TEMPLATE, {"pkg": pkg, "title": pkg.import_path}))
        written.append(out)

    index = cfg.out_dir / PKGINDEX_OUT
    logger.info("pkgindex > %s", display(index))
    _write(index, registry.render(PKGINDEX_TEMPLATE, {"packages": packages, "title": "Packages"}))
    written.append(index)
    return written
