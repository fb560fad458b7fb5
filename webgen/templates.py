"""
templates.py

Responsibility: The shared template namespace every page and generator renders through.

Rules:
- One Jinja2 environment per run; templates reference each other by logical
  name (`{% include "header" %}`, `{% extends "base" %}`).
- Templates are parsed when registered, so a malformed fragment fails the run
  before anything is rendered.
- Logical names are unique unless the registry was built with
  `CollisionPolicy.REPLACE`, in which case the later registration wins.
- Helper functions live in a `HelperRegistry` and are validated when they are
  added, not when a template calls them.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterator

from jinja2 import BaseLoader, Environment, StrictUndefined, TemplateNotFound, TemplateSyntaxError
from markupsafe import Markup

from webgen.errors import FilesystemError, TemplateError
from webgen.paths import TEMPLATE_EXT

logger = logging.getLogger(__name__)

Helper = Callable[..., Any]

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class CollisionPolicy(str, Enum):
    ERROR = "error"
    REPLACE = "replace"


class HelperRegistry:
    """Name -> callable mapping exposed to every template as globals."""

    def __init__(self) -> None:
        self._helpers: dict[str, Helper] = {}

    def register(self, name: str, func: Helper) -> None:
        if not _IDENTIFIER.match(name):
            raise TemplateError(f"Helper name is not a valid identifier: {name!r}")
        if not callable(func):
            raise TemplateError(f"Helper {name!r} is not callable: {func!r}")
        if name in self._helpers:
            raise TemplateError(f"Helper {name!r} is already registered")
        self._helpers[name] = func

    def __contains__(self, name: object) -> bool:
        return name in self._helpers

    def __getitem__(self, name: str) -> Helper:
        return self._helpers[name]

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._helpers))

    def __len__(self) -> int:
        return len(self._helpers)


@dataclass(frozen=True)
class Section:
    """A titled page section with a linkable anchor."""

    title: str
    anchor: str

    def __html__(self) -> str:
        return Markup('<h2 id="{0}"><a href="#{0}">{1}</a></h2>').format(self.anchor, self.title)

    def __str__(self) -> str:
        return str(self.__html__())


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "section"


def make_section(title: str, anchor: str | None = None) -> Section:
    return Section(title=title, anchor=anchor or slugify(title))


def default_helpers() -> HelperRegistry:
    helpers = HelperRegistry()
    helpers.register("section", make_section)
    helpers.register("filepath_join", os.path.join)
    return helpers


class _NamespaceLoader(BaseLoader):
    def __init__(self, sources: dict[str, tuple[str, str | None]]) -> None:
        self._sources = sources

    def get_source(self, environment: Environment, template: str) -> tuple[str, str | None, Callable[[], bool]]:
        try:
            source, origin = self._sources[template]
        except KeyError:
            raise TemplateNotFound(template) from None
        return source, origin, lambda: self._sources.get(template, (None, None))[0] == source

    def list_templates(self) -> list[str]:
        return sorted(self._sources)


class TemplateRegistry:
    def __init__(
        self,
        helpers: HelperRegistry | None = None,
        *,
        policy: CollisionPolicy = CollisionPolicy.ERROR,
    ) -> None:
        self.policy = policy
        self._sources: dict[str, tuple[str, str | None]] = {}
        self.env = Environment(
            loader=_NamespaceLoader(self._sources),
            autoescape=True,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )
        helpers = helpers if helpers is not None else default_helpers()
        for name in helpers:
            self.env.globals[name] = helpers[name]

    def __contains__(self, name: object) -> bool:
        return name in self._sources

    def __len__(self) -> int:
        return len(self._sources)

    @property
    def names(self) -> list[str]:
        return sorted(self._sources)

    def register(self, name: str, source: str, origin: str | None = None) -> None:
        """Parse `source` and add it to the namespace under `name`."""
        if name in self._sources:
            if self.policy is CollisionPolicy.ERROR:
                previous = self._sources[name][1] or "<string>"
                raise TemplateError(f"Template {name!r} is already registered (from {previous})")
            logger.debug("replacing template %s", name)

        try:
            self.env.parse(source, name, origin)
        except TemplateSyntaxError as e:
            raise TemplateError(f"Failed parsing template {name!r} ({origin or '<string>'}): {e}") from e
        self._sources[name] = (source, origin)

    def load_fragments(self, directory: str | Path) -> list[str]:
        """
        Register every `*.tmpl` file directly inside `directory` under its
        stem, in name order. Returns the registered names.
        """
        frag_dir = Path(directory)
        if not frag_dir.is_dir():
            raise FilesystemError(f"Templates directory not found: {frag_dir}")

        paths = sorted(p for p in frag_dir.glob("*" + TEMPLATE_EXT) if p.is_file())
        if not paths:
            raise TemplateError(f"No template fragments found in {frag_dir}")

        names: list[str] = []
        for path in paths:
            try:
                source = path.read_text(encoding="utf-8")
            except UnicodeDecodeError as e:
                raise TemplateError(f"Template fragment is not UTF-8: {path}") from e
            except OSError as e:
                raise FilesystemError(f"Cannot read template fragment {path}: {e}") from e
            name = path.name[: -len(TEMPLATE_EXT)]
            self.register(name, source, str(path))
            names.append(name)
        return names

    def render(self, name: str, context: dict[str, Any] | None = None) -> str:
        try:
            template = self.env.get_template(name)
            return template.render(context or {})
        except TemplateNotFound as e:
            raise TemplateError(f"Template not found: {e.name}") from e
        except Exception as e:  # noqa: BLE001 - surface as TemplateError
            raise TemplateError(f"Failed executing template {name!r}: {e}") from e
