"""Glue between qshare and the pandas table engine.

A schema is an ordered ``{column: type_tag}`` mapping. Three tags are
understood: ``text`` (kept as Python strings), ``float64`` and ``date``.
"""
from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Mapping, Optional

import pandas as pd

TEXT = "text"
FLOAT64 = "float64"
DATE = "date"

TYPE_TAGS = (TEXT, FLOAT64, DATE)

Schema = Mapping[str, str]


def _is_missing(value: object) -> bool:
    return value is None or value is pd.NA or (isinstance(value, float) and math.isnan(value))


def _as_text(series: pd.Series) -> pd.Series:
    return series.map(lambda v: v if _is_missing(v) else str(v)).astype(object)


def _blank_to_na(series: pd.Series) -> pd.Series:
    if series.empty or not pd.api.types.is_string_dtype(series.dtype):
        return series
    values = series.astype(object)
    blank = values.map(lambda v: isinstance(v, str) and not v.strip()).astype(bool)
    return values.mask(blank)


def _as_float(series: pd.Series) -> pd.Series:
    values = _blank_to_na(series)
    return pd.to_numeric(values, errors="raise").astype("float64")


def _as_date(series: pd.Series) -> pd.Series:
    return pd.to_datetime(_blank_to_na(series), errors="raise")


_CONVERTERS = {
    TEXT: _as_text,
    FLOAT64: _as_float,
    DATE: _as_date,
}


def coerce_frame(df: pd.DataFrame, schema: Schema, *, strict: bool = False) -> pd.DataFrame:
    """Coerce the columns named in ``schema`` to their declared types.

    With ``strict`` every declared column must be present. Raises ``ValueError``
    naming the offending column when a value cannot be converted.
    """
    missing = [col for col in schema if col not in df.columns]
    if strict and missing:
        raise ValueError(f"Columns missing from table: {missing}")
    out = df.copy()
    for col, tag in schema.items():
        if col not in out.columns:
            continue
        converter = _CONVERTERS.get(tag)
        if converter is None:
            raise ValueError(f"Unknown type tag '{tag}' for column '{col}'.")
        try:
            out[col] = converter(out[col])
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Column '{col}' cannot be coerced to {tag}: {exc}") from exc
    return out


def frame_from_records(payload: object) -> pd.DataFrame:
    """Build a table from a decoded JSON array of flat objects."""
    if not isinstance(payload, list):
        raise ValueError(f"Expected a JSON array, got {type(payload).__name__}.")
    for idx, item in enumerate(payload):
        if not isinstance(item, dict):
            raise ValueError(f"Array element {idx} is {type(item).__name__}, not an object.")
    return pd.DataFrame.from_records(payload)


def read_csv_frame(path: Path, schema: Optional[Schema] = None) -> pd.DataFrame:
    # Read everything as text first so codes like "000001" keep their zeros.
    df = pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8")
    if schema is None:
        return df
    # Missing values were written as empty cells.
    df = df.mask(df == "")
    return coerce_frame(df, schema, strict=True)


def write_csv_frame(df: pd.DataFrame, path: Path) -> None:
    df.to_csv(path, index=False, encoding="utf-8")


def frame_to_json(df: pd.DataFrame) -> str:
    records = json.loads(df.to_json(orient="records", force_ascii=False, date_format="iso"))
    return json.dumps(records, ensure_ascii=False, indent=2)
