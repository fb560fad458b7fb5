"""
pipeline.py

Responsibility: Run the generation stages in order and decide what is fatal.

Stage order:
clean -> copy -> templates -> pages -> docs -> articles -> doc pages -> publish -> serve

Mandatory stages stop the run on the first error, which propagates to the
caller as a `StageError`. Best-effort stages (publish) log their error and
the run continues. Disabled stages are not built at all.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from webgen.cleaner import clean_tree
from webgen.config import Config
from webgen.copier import copy_tree
from webgen.docs import generate_docs
from webgen.errors import FilesystemError, PublishError, WebgenError
from webgen.github_client import GitHubClient
from webgen.mdgen import ARTICLE_PATTERNS, ARTICLE_TEMPLATE, DOC_PATTERNS, DOC_TEMPLATE, generate_markdown
from webgen.pages import render_pages
from webgen.paths import PathDisplay
from webgen.publish import publish
from webgen.serve import serve
from webgen.templates import TemplateRegistry

logger = logging.getLogger(__name__)


class StageError(WebgenError):
    def __init__(self, stage: str, cause: Exception) -> None:
        super().__init__(f"{stage}: {cause}")
        self.stage = stage
        self.cause = cause


@dataclass
class RunContext:
    """State shared between the stages of one run."""

    cfg: Config
    display: PathDisplay
    client_factory: Callable[[str], GitHubClient] = GitHubClient
    registry: TemplateRegistry | None = None

    def require_registry(self) -> TemplateRegistry:
        if self.registry is None:
            raise WebgenError("templates have not been loaded")
        return self.registry


@dataclass(frozen=True)
class Stage:
    name: str
    run: Callable[[RunContext], object]
    best_effort: bool = False


@dataclass
class StageOutcome:
    name: str
    ok: bool
    error: Exception | None = None


@dataclass
class RunReport:
    outcomes: list[StageOutcome] = field(default_factory=list)

    @property
    def failed(self) -> list[str]:
        return [o.name for o in self.outcomes if not o.ok]


def _clean(ctx: RunContext) -> None:
    logger.info("rm -rf %s", ctx.display(ctx.cfg.out_dir))
    clean_tree(ctx.cfg.out_dir)


def _copy(ctx: RunContext) -> None:
    copy_tree(ctx.cfg.content_dir, ctx.cfg.out_dir, root=ctx.cfg.root, display=ctx.display)


def _templates(ctx: RunContext) -> None:
    registry = TemplateRegistry()
    registry.load_fragments(ctx.cfg.templates_dir)
    ctx.registry = registry


def _pages(ctx: RunContext) -> None:
    render_pages(ctx.cfg, ctx.require_registry(), display=ctx.display)


def _docs(ctx: RunContext) -> None:
    generate_docs(ctx.cfg, ctx.require_registry(), client_factory=ctx.client_factory, display=ctx.display)


def _articles(ctx: RunContext) -> None:
    generate_markdown(ctx.cfg, ctx.require_registry(), ARTICLE_PATTERNS, ARTICLE_TEMPLATE, False, display=ctx.display)


def _doc_pages(ctx: RunContext) -> None:
    generate_markdown(ctx.cfg, ctx.require_registry(), DOC_PATTERNS, DOC_TEMPLATE, False, display=ctx.display)


def _publish(ctx: RunContext) -> None:
    failed = publish(ctx.cfg.out_dir, ctx.cfg.commit_message, ctx.cfg.remote)
    if failed:
        raise PublishError(f"git {', '.join(failed)} failed")


def _serve(ctx: RunContext) -> None:
    serve(ctx.cfg.out_dir, ctx.cfg.http_addr)


def build_stages(cfg: Config) -> list[Stage]:
    stages: list[Stage] = []
    if cfg.clean:
        stages.append(Stage("clean", _clean))
    stages.append(Stage("copy", _copy))
    stages.append(Stage("templates", _templates))
    stages.append(Stage("pages", _pages))
    if cfg.docs:
        stages.append(Stage("docs", _docs))
    stages.append(Stage("articles", _articles))
    stages.append(Stage("doc pages", _doc_pages))
    if cfg.push:
        stages.append(Stage("publish", _publish, best_effort=True))
    if cfg.http_addr:
        stages.append(Stage("serve", _serve))
    return stages


def run_stages(stages: list[Stage], ctx: RunContext) -> RunReport:
    report = RunReport()
    for stage in stages:
        logger.debug("stage %s", stage.name)
        try:
            stage.run(ctx)
        except (WebgenError, OSError) as e:
            if not stage.best_effort:
                cause = FilesystemError(str(e)) if isinstance(e, OSError) else e
                raise StageError(stage.name, cause) from e
            # The stage has already logged its own failure details.
            logger.warning("%s failed (continuing)", stage.name)
            report.outcomes.append(StageOutcome(stage.name, ok=False, error=e))
            continue
        report.outcomes.append(StageOutcome(stage.name, ok=True))
    return report


def run_pipeline(cfg: Config, *, client_factory: Callable[[str], GitHubClient] = GitHubClient) -> RunReport:
    """Run every enabled stage for `cfg`; raises `StageError` on the first fatal failure."""
    display = PathDisplay(work=cfg.root, out=cfg.out_dir)
    logger.info("WORK = %s", cfg.root)
    logger.info("OUT = %s", cfg.out_dir)
    ctx = RunContext(cfg=cfg, display=display, client_factory=client_factory)
    return run_stages(build_stages(cfg), ctx)
