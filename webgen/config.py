"""
config.py

Responsibility: Resolve every run-time setting into one immutable `Config`.

Sources, lowest precedence first:
- built-in defaults
- an optional YAML mapping (`webgen.yaml` in the working root, or `--config`)
- command-line overrides
- `GITHUB_API_TOKEN` from the environment for the token

The resulting `Config` is constructed once at startup and handed to every
stage explicitly; nothing downstream reads flags or the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from webgen.errors import ConfigError
from webgen.serve import parse_addr

CONTENT_DIR_NAME = "content"
PAGES_DIR_NAME = "pages"
TEMPLATES_DIR_NAME = "templates"
CACHE_DIR_NAME = ".webgen-cache"
CONFIG_FILE_NAME = "webgen.yaml"
TOKEN_ENV_VAR = "GITHUB_API_TOKEN"

DEFAULT_COMMIT_MESSAGE = "Automatic commit by webgen command line tool."


@dataclass(frozen=True)
class Config:
    """Settings for a single pipeline run."""

    root: Path
    out_dir: Path
    clean: bool = True
    update: bool = True
    docs: bool = True
    auth: bool = True
    push: bool = True
    http_addr: str = ""
    github_org: str | None = None
    github_token: str = ""
    import_domain: str = ""
    site_title: str = "webgen"
    commit_message: str = DEFAULT_COMMIT_MESSAGE
    client_pool_size: int = 16
    remote: str | None = None

    @property
    def content_dir(self) -> Path:
        return self.root / CONTENT_DIR_NAME

    @property
    def pages_dir(self) -> Path:
        return self.root / PAGES_DIR_NAME

    @property
    def templates_dir(self) -> Path:
        return self.root / TEMPLATES_DIR_NAME

    @property
    def cache_dir(self) -> Path:
        return self.root / CACHE_DIR_NAME


_FIELD_NAMES = {f.name for f in fields(Config)}
_BOOL_FIELDS = {"clean", "update", "docs", "auth", "push"}
_OPTIONAL_STR_FIELDS = {"github_org", "remote"}
_PATH_FIELDS = {"root", "out_dir"}
_STR_FIELDS = {"http_addr", "github_token", "import_domain", "site_title", "commit_message"}


def _load_yaml_file(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file {path} is not valid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must be a mapping at the top level.")

    unknown = sorted(str(k) for k in data if k not in _FIELD_NAMES)
    if unknown:
        raise ConfigError(f"Unknown keys in {path}: {', '.join(unknown)}")
    return data


def _coerce(values: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in values.items():
        if key in _BOOL_FIELDS:
            if not isinstance(value, bool):
                raise ConfigError(f"`{key}` must be a boolean, got {value!r}")
            out[key] = value
        elif key in _OPTIONAL_STR_FIELDS:
            out[key] = (str(value).strip() or None) if value is not None else None
        elif key in _STR_FIELDS:
            out[key] = "" if value is None else str(value)
        elif key in _PATH_FIELDS:
            if not isinstance(value, (str, os.PathLike)):
                raise ConfigError(f"`{key}` must be a path, got {value!r}")
            out[key] = value
        elif key == "client_pool_size":
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"`client_pool_size` must be an integer, got {value!r}")
            out[key] = value
        else:
            out[key] = value
    return out


def load_config(
    overrides: Mapping[str, Any] | None = None,
    *,
    config_file: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> Config:
    """
    Build and validate a `Config`.

    `overrides` holds command-line values; `None` entries mean "not given" and
    leave lower-precedence values in place. Relative `out_dir` values are
    resolved against the working root.
    """
    overrides = {k: v for k, v in (overrides or {}).items() if v is not None}
    env = os.environ if env is None else env

    unknown = sorted(k for k in overrides if k not in _FIELD_NAMES)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    root_raw = overrides.get("root") or "."
    if not isinstance(root_raw, (str, os.PathLike)):
        raise ConfigError(f"`root` must be a path, got {root_raw!r}")
    root = Path(root_raw).resolve()
    if not root.is_dir():
        raise ConfigError(f"Working root is not a directory: {root}")

    file_values: dict[str, Any] = {}
    if config_file is not None:
        file_values = _load_yaml_file(Path(config_file))
    elif (root / CONFIG_FILE_NAME).is_file():
        file_values = _load_yaml_file(root / CONFIG_FILE_NAME)
    file_values.pop("root", None)

    values: dict[str, Any] = {}
    values.update(_coerce(file_values))
    values.update(_coerce(overrides))

    token = env.get(TOKEN_ENV_VAR, "")
    if token:
        values["github_token"] = token

    out_raw = values.get("out_dir")
    if out_raw is not None and not str(out_raw).strip():
        raise ConfigError("Output directory must not be empty.")
    out_dir = Path(out_raw) if out_raw is not None else Path("_site")
    if not out_dir.is_absolute():
        out_dir = root / out_dir
    values["out_dir"] = out_dir.resolve()
    values["root"] = root

    cfg = Config(**values)
    _validate(cfg)
    return cfg


def _validate(cfg: Config) -> None:
    if cfg.http_addr:
        parse_addr(cfg.http_addr)
    if cfg.out_dir == cfg.root:
        raise ConfigError("Output directory must differ from the working root.")
    if cfg.client_pool_size < 1:
        raise ConfigError("`client_pool_size` must be at least 1.")
    if cfg.auth and not cfg.github_token:
        raise ConfigError(
            f"${TOKEN_ENV_VAR} not set to a GitHub API token! "
            "Continue without authentication using --no-auth"
        )
    if cfg.docs and not cfg.github_org:
        raise ConfigError("Package documentation needs a GitHub organisation (use --org or --no-docs).")
