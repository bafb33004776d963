"""Append today's spot quote to each per-symbol history CSV.

History files are named after the prefixed symbol (``sh000903.csv``) and carry
a header that includes ``date``. Files that already have a row for today are
left alone.
"""
from __future__ import annotations

import argparse
import csv
import logging
from pathlib import Path
from typing import Mapping, Optional

import pandas as pd

from ..cache import CacheStore, today_ymd
from ..config import load_settings
from ..errors import ConfigError, QshareError
from ..pipeline import fetch
from ..sources import resolve_source
from ..transport import UrllibTransport

logger = logging.getLogger("qshare.history")

DATE_HEADER = "date"

# Snapshot column holding the bare six-digit code, per source.
CODE_COLUMNS = {
    "eastmoney": "symbol",
    "sina": "code",
}

# History header -> snapshot column.
SNAPSHOT_COLUMNS = {
    "close": "最新价",
    "open": "今开",
    "volume": "成交量",
    "low": "最低",
    "high": "最高",
    "adjclose": "昨收",
}


def load_csv(path: Path) -> list[list[str]]:
    """Return the header followed by every record."""
    with path.open("r", encoding="utf-8", newline="") as handle:
        return [row for row in csv.reader(handle)]


def _format_value(value: object) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value)


def row_to_csv(symbol: str, row: Mapping[str, object], headers: list[str], today: str) -> str:
    values = {header: _format_value(row.get(column)) for header, column in SNAPSHOT_COLUMNS.items()}
    values["dividends"] = "0"
    values["splits"] = "0"
    values["symbol"] = symbol
    values[DATE_HEADER] = today
    return ",".join(values.get(header, "") for header in headers) + "\r\n"


def append_to_csv(path: Path, line: str) -> None:
    with path.open("rb") as handle:
        handle.seek(0, 2)
        needs_newline = False
        if handle.tell() > 0:
            handle.seek(-1, 2)
            needs_newline = handle.read(1) not in (b"\n", b"\r")
    with path.open("a", encoding="utf-8", newline="") as handle:
        if needs_newline:
            handle.write("\r\n")
        handle.write(line)


def update_today_data(
    snapshot: pd.DataFrame,
    history_dir: Path,
    *,
    code_column: str = "symbol",
    today: Optional[str] = None,
) -> int:
    """Append the snapshot row for each history file; return how many were updated."""
    history_dir = Path(history_dir)
    if not history_dir.is_dir():
        raise ConfigError(f"History directory not found: {history_dir}")
    if snapshot is None or snapshot.empty:
        logger.info("Empty snapshot; nothing to append.")
        return 0
    if code_column not in snapshot.columns:
        raise ValueError(f"Snapshot is missing column '{code_column}'.")
    today = today or today_ymd()

    by_code = (
        snapshot.assign(_code=snapshot[code_column].astype(str))
        .drop_duplicates(subset=["_code"], keep="first")
        .set_index("_code")
    )
    files = sorted(p for p in history_dir.iterdir() if p.is_file() and p.suffix == ".csv")
    updated = 0
    for idx, path in enumerate(files, start=1):
        symbol = path.name[:8]
        code = path.name[2:8]
        try:
            records = load_csv(path)
        except (OSError, UnicodeDecodeError, csv.Error) as exc:
            logger.warning("Failed to load %s: %s", path, exc)
            continue
        if not records or DATE_HEADER not in records[0]:
            logger.warning("%s has no '%s' header; skip.", path, DATE_HEADER)
            continue
        headers = records[0]
        date_idx = headers.index(DATE_HEADER)
        if any(len(rec) > date_idx and rec[date_idx] == today for rec in records[1:]):
            continue
        if code not in by_code.index:
            continue
        line = row_to_csv(symbol, by_code.loc[code].to_dict(), headers, today)
        logger.debug("append %s to %s", line.strip(), path)
        append_to_csv(path, line)
        updated += 1
        if idx % 500 == 0:
            logger.info("Processed %d/%d history files", idx, len(files))
    logger.info("Appended %s rows across %d history files", updated, len(files))
    return updated


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Append today's spot quotes to history CSV files.")
    parser.add_argument("--source", default="eastmoney", choices=sorted(CODE_COLUMNS))
    parser.add_argument("--config", help="Optional YAML config path.")
    parser.add_argument("--history-dir", help="Directory of per-symbol CSV files.")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO).")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        settings = load_settings(args.config)
        source = resolve_source(args.source)
        result = fetch(source, CacheStore.from_settings(settings), UrllibTransport.from_settings(settings))
        history_dir = Path(args.history_dir) if args.history_dir else settings.history_dir
        update_today_data(result.data, history_dir, code_column=CODE_COLUMNS[source.name])
    except QshareError as exc:
        raise SystemExit(str(exc)) from exc
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
