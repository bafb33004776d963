"""Cache-aside fetch/format pipeline for quote snapshots.

Availability wins over consistency on the read side: a broken cache file or a
failed request yields an empty table rather than an exception. A response that
arrives but cannot be parsed is different; it means the provider changed its
format, so ``ParseError`` propagates to the caller.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

import pandas as pd

from .cache import CacheStore, today_ymd
from .errors import CacheReadError, CacheWriteError, TransportError
from .sources.base import DataSource, apply_field_mapping
from .transport import Transport, UrllibTransport

logger = logging.getLogger("qshare")


@dataclass
class DataResult:
    data_id: Optional[str] = None
    data: pd.DataFrame = field(default_factory=pd.DataFrame)

    @classmethod
    def empty(cls, data_id: Optional[str] = None) -> "DataResult":
        return cls(data_id=data_id, data=pd.DataFrame())

    @property
    def is_empty(self) -> bool:
        return self.data.empty


def format_frame(source: DataSource, raw_body: str) -> pd.DataFrame:
    provisional = source.parse(raw_body)
    return apply_field_mapping(provisional, source.field_mapping())


def fetch(
    source: DataSource,
    store: CacheStore,
    transport: Optional[Transport] = None,
    *,
    today: Optional[str] = None,
) -> DataResult:
    """Return today's snapshot for ``source``, fetching it at most once per day."""
    day = today or today_ymd()
    data_id = source.identity()

    if store.exists(data_id, day):
        logger.info("%s: cache hit %s-%s", source.name, data_id, day)
        try:
            df = store.load(data_id, day, source.output_schema())
        except CacheReadError as exc:
            logger.warning("%s: %s; returning an empty result.", source.name, exc)
            return DataResult.empty()
        return DataResult(data_id, df)

    logger.info("%s: cache miss %s-%s, requesting", source.name, data_id, day)
    transport = transport or UrllibTransport()
    request = source.build_request()
    try:
        body = transport.execute(request)
    except TransportError as exc:
        logger.warning("%s: %s", source.name, exc)
        return DataResult.empty(data_id)

    df = format_frame(source, body)

    try:
        store.store(data_id, day, df)
    except CacheWriteError as exc:
        logger.warning("%s: %s", source.name, exc)
    return DataResult(data_id, df)
