"""Available quote sources, keyed by their short CLI name."""
from __future__ import annotations

from .base import IDENTITY_COLUMN, DataSource, apply_field_mapping, fingerprint
from .eastmoney import EastmoneySpotEmDataSource
from .sina import SinaIndexSpotDataSource

SOURCES = {
    EastmoneySpotEmDataSource.name: EastmoneySpotEmDataSource,
    SinaIndexSpotDataSource.name: SinaIndexSpotDataSource,
}


def resolve_source(name: str) -> DataSource:
    key = str(name or "").strip().lower()
    try:
        return SOURCES[key]()
    except KeyError:
        raise ValueError(f"Unsupported data source '{name}' (choose from {sorted(SOURCES)}).") from None


__all__ = [
    "IDENTITY_COLUMN",
    "DataSource",
    "EastmoneySpotEmDataSource",
    "SinaIndexSpotDataSource",
    "SOURCES",
    "apply_field_mapping",
    "fingerprint",
    "resolve_source",
]
