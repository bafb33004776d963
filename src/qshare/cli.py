from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .cache import CacheStore, today_ymd
from .config import load_settings
from .errors import QshareError
from .sources import SOURCES, resolve_source
from .table import frame_to_json
from .transport import UrllibTransport

LOG_LEVELS = ["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


def _setup_logging(level: str | None) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level or "INFO").upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _handle_spot(args) -> int:
    from .pipeline import fetch

    _setup_logging(args.log_level)
    try:
        settings = load_settings(args.config)
        source = resolve_source(args.source)
        result = fetch(source, CacheStore.from_settings(settings), UrllibTransport.from_settings(settings))
    except QshareError as exc:
        raise SystemExit(str(exc)) from exc

    df = result.data
    if args.format == "csv":
        payload = df.to_csv(index=False)
    elif args.format == "json":
        payload = frame_to_json(df) + "\n"
    else:
        payload = (df.to_string(index=False) if not df.empty else "(empty)") + "\n"

    if args.out:
        out_path = Path(args.out).expanduser()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(payload, encoding="utf-8")
        print(f"Wrote {len(df)} rows to {out_path}")
    else:
        sys.stdout.write(payload)
    return 0


def _handle_fingerprint(args) -> int:
    source = resolve_source(args.source)
    data_id = source.identity()
    print(data_id)
    if args.config or args.show_path:
        try:
            settings = load_settings(args.config)
        except QshareError as exc:
            raise SystemExit(str(exc)) from exc
        print(CacheStore.from_settings(settings).path_for(data_id, today_ymd()))
    return 0


def _handle_update_history(args) -> int:
    from .project_tools import update_history

    argv: list[str] = ["--source", args.source]
    if getattr(args, "config", None):
        argv += ["--config", args.config]
    if getattr(args, "history_dir", None):
        argv += ["--history-dir", args.history_dir]
    if getattr(args, "log_level", None):
        argv += ["--log-level", args.log_level]
    return int(update_history.main(argv) or 0)


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--source",
        default="eastmoney",
        choices=sorted(SOURCES),
        help="Quote source (default: eastmoney).",
    )
    parser.add_argument("--config", help="Optional YAML config path (cache.dir, http.timeout).")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="qshare", description="Cached spot-quote snapshots")
    subparsers = parser.add_subparsers(dest="command", required=True)

    spot = subparsers.add_parser("spot", help="Fetch (or load today's cached) spot snapshot")
    _add_common(spot)
    spot.add_argument(
        "--format",
        default="text",
        choices=["text", "csv", "json"],
        help="Output format (text/csv/json). Default: text.",
    )
    spot.add_argument("--out", help="Optional output path (default: stdout).")
    spot.add_argument("--log-level", default="INFO", choices=LOG_LEVELS, help="Logging level")
    spot.set_defaults(func=_handle_spot)

    history = subparsers.add_parser(
        "update-history", help="Append today's quotes to per-symbol history CSV files"
    )
    _add_common(history)
    history.add_argument(
        "--history-dir",
        help="Directory of history files (default: $CACHE_TEMP_HOME/stock_data/source).",
    )
    history.add_argument("--log-level", default="INFO", choices=LOG_LEVELS, help="Logging level")
    history.set_defaults(func=_handle_update_history)

    fp = subparsers.add_parser("fingerprint", help="Print a source's cache fingerprint")
    _add_common(fp)
    fp.add_argument(
        "--show-path",
        action="store_true",
        help="Also print today's cache file path (needs the cache directory configured).",
    )
    fp.set_defaults(func=_handle_fingerprint)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return 1
    return int(func(args) or 0)


if __name__ == "__main__":
    raise SystemExit(main())
