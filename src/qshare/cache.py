"""Same-day CSV cache for normalized snapshots.

Files live at ``{root}/{fingerprint}-{YYYY-MM-DD}.csv``; there is one file per
fingerprint per calendar day and nothing is ever evicted automatically.
"""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from .config import Settings
from .errors import CacheReadError, CacheWriteError
from .table import Schema, read_csv_frame, write_csv_frame

logger = logging.getLogger("qshare.cache")


def today_ymd() -> str:
    return datetime.now().strftime("%Y-%m-%d")


class CacheStore:
    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    @classmethod
    def from_settings(cls, settings: Settings) -> "CacheStore":
        return cls(settings.cache_dir)

    def _ensure_root(self) -> None:
        if self.root.is_dir():
            return
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.warning("Failed to create cache directory %s: %s", self.root, exc)

    def path_for(self, fingerprint: str, day: str) -> Path:
        self._ensure_root()
        return self.root / f"{fingerprint}-{day}.csv"

    def exists(self, fingerprint: str, day: str) -> bool:
        return self.path_for(fingerprint, day).is_file()

    def load(self, fingerprint: str, day: str, schema: Optional[Schema] = None) -> pd.DataFrame:
        path = self.path_for(fingerprint, day)
        logger.debug("load cache file: %s", path)
        if schema is None:
            logger.warning(
                "Loading %s without a schema; every column is read as text and may be wrong.",
                path,
            )
        try:
            return read_csv_frame(path, schema)
        except (OSError, ValueError, pd.errors.ParserError) as exc:
            raise CacheReadError(f"Failed to load cache file {path}: {exc}") from exc

    def store(self, fingerprint: str, day: str, table: pd.DataFrame) -> Path:
        path = self.path_for(fingerprint, day)
        try:
            write_csv_frame(table, path)
        except OSError as exc:
            raise CacheWriteError(f"Failed to write cache file {path}: {exc}") from exc
        logger.info("Cached %d rows to %s", len(table), path)
        return path
