"""Contract shared by every quote data source."""
from __future__ import annotations

import hashlib
import json
import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence, Tuple

import pandas as pd

from ..errors import ParseError
from ..table import Schema, coerce_frame, frame_from_records
from ..transport import RequestSpec

logger = logging.getLogger("qshare.sources")

IDENTITY_COLUMN = "symbol"

FieldMapping = Sequence[Tuple[str, str]]


def fingerprint(request: RequestSpec) -> str:
    return hashlib.md5(request.canonical_url.encode("utf-8")).hexdigest()


def apply_field_mapping(df: pd.DataFrame, mapping: FieldMapping) -> pd.DataFrame:
    """Rename payload fields to their target names and drop everything else.

    A source field may feed several targets (``f12`` becomes both ``代码`` and
    ``symbol``). The result holds exactly the target columns, in mapping order.
    """
    missing = sorted({src for src, _ in mapping if src not in df.columns})
    if missing and not df.empty:
        raise ParseError(f"Response is missing expected fields: {missing}")
    columns: dict[str, pd.Series] = {}
    for src, target in mapping:
        if src in df.columns:
            columns[target] = df[src]
        else:
            columns[target] = pd.Series(index=df.index, dtype=object)
    return pd.DataFrame(columns, index=df.index).reset_index(drop=True)


def decode_records(text: str) -> pd.DataFrame:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Response is not valid JSON: {exc}") from exc
    try:
        return frame_from_records(payload)
    except ValueError as exc:
        raise ParseError(str(exc)) from exc


class DataSource(ABC):
    """One provider endpoint.

    Subclasses are stateless: everything that shapes the request or the output
    is static, so ``build_request`` and ``identity`` return the same value on
    every call and an instance can be shared freely.
    """

    name: str = ""

    @abstractmethod
    def build_request(self) -> RequestSpec:
        ...

    @abstractmethod
    def parse_frame(self, raw_body: str) -> pd.DataFrame:
        """Decode ``raw_body`` into a provisional, not yet renamed table."""

    @abstractmethod
    def field_mapping(self) -> FieldMapping:
        ...

    def output_schema(self) -> Optional[Schema]:
        return None

    def raw_schema(self) -> Optional[Schema]:
        return None

    def identity(self) -> str:
        request = self.build_request()
        digest = fingerprint(request)
        logger.debug("digest: %s, url: %s", digest, request.canonical_url)
        return digest

    def parse(self, raw_body: str) -> pd.DataFrame:
        df = self.parse_frame(raw_body)
        schema = self.raw_schema()
        if schema:
            try:
                df = coerce_frame(df, schema)
            except ValueError as exc:
                raise ParseError(str(exc)) from exc
        logger.debug("%s parsed %d rows, columns: %s", self.name, len(df), list(df.columns))
        return df

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
