"""
errors.py

Responsibility: the exception taxonomy shared by every pipeline stage.

Stages raise the subclass matching the failure; the run loop in `pipeline.py`
decides what is fatal.
"""

from __future__ import annotations


class WebgenError(RuntimeError):
    pass


class ConfigError(WebgenError, ValueError):
    """Missing or invalid configuration, raised before any filesystem mutation."""


class FilesystemError(WebgenError):
    """Reading sources, cleaning, copying or writing output failed."""


class TemplateError(WebgenError):
    """A shared fragment or page failed to register, parse or execute."""


class ExternalError(WebgenError):
    """The documentation or Markdown generators failed."""


class PublishError(WebgenError):
    """A git add/commit/push step failed."""


class ServeError(WebgenError):
    """The static file server could not bind or stopped with an error."""
