"""Runtime settings: cache location and HTTP options.

Values come from an optional YAML file first, then from the environment
(a ``.env`` file in the working directory is loaded via python-dotenv).
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

import yaml
from dotenv import find_dotenv, load_dotenv

from .errors import ConfigError

CACHE_TEMP_HOME = "CACHE_TEMP_HOME"
HTTP_TIMEOUT_ENV = "QSHARE_HTTP_TIMEOUT"

DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "qshare/0.1"
HISTORY_SUBDIR = Path("stock_data") / "source"


@dataclass(frozen=True)
class Settings:
    cache_dir: Path
    history_dir: Path
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT


def _read_yaml(path: Path) -> dict:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file {path} is not valid YAML: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level.")
    return data


def _section(cfg: Mapping, key: str) -> Mapping:
    value = cfg.get(key)
    return value if isinstance(value, Mapping) else {}


def _resolve_path(value: object) -> Path:
    return Path(str(value)).expanduser()


def _resolve_timeout(value: object) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid HTTP timeout: {value!r}") from exc
    if timeout <= 0:
        raise ConfigError(f"HTTP timeout must be positive, got {timeout}.")
    return timeout


def load_settings(
    config_path: Optional[str | Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    if environ is None:
        load_dotenv(find_dotenv(usecwd=True))
        environ = os.environ
    cfg = _read_yaml(Path(config_path)) if config_path else {}
    cache_cfg = _section(cfg, "cache")
    http_cfg = _section(cfg, "http")

    cache_value = cache_cfg.get("dir") or environ.get(CACHE_TEMP_HOME)
    if not cache_value or not str(cache_value).strip():
        raise ConfigError(
            f"Cache directory is not configured (set {CACHE_TEMP_HOME} or cache.dir in the config file)."
        )
    cache_dir = _resolve_path(str(cache_value).strip())

    history_value = cache_cfg.get("history_dir")
    history_dir = _resolve_path(history_value) if history_value else cache_dir / HISTORY_SUBDIR

    timeout_value = environ.get(HTTP_TIMEOUT_ENV) or http_cfg.get("timeout") or DEFAULT_TIMEOUT
    user_agent = str(http_cfg.get("user_agent") or DEFAULT_USER_AGENT)

    return Settings(
        cache_dir=cache_dir,
        history_dir=history_dir,
        timeout=_resolve_timeout(timeout_value),
        user_agent=user_agent,
    )
