"""Cached spot-quote snapshots from Chinese market data providers."""
from __future__ import annotations

from .cache import CacheStore
from .config import Settings, load_settings
from .errors import (
    CacheReadError,
    CacheWriteError,
    ConfigError,
    ParseError,
    QshareError,
    TransportError,
)
from .pipeline import DataResult, fetch
from .sources import (
    DataSource,
    EastmoneySpotEmDataSource,
    SinaIndexSpotDataSource,
    apply_field_mapping,
    resolve_source,
)
from .transport import RequestSpec, UrllibTransport

__version__ = "0.1.0"

__all__ = [
    "CacheReadError",
    "CacheStore",
    "CacheWriteError",
    "ConfigError",
    "DataResult",
    "DataSource",
    "EastmoneySpotEmDataSource",
    "ParseError",
    "QshareError",
    "RequestSpec",
    "Settings",
    "SinaIndexSpotDataSource",
    "TransportError",
    "UrllibTransport",
    "apply_field_mapping",
    "fetch",
    "load_settings",
    "resolve_source",
]
