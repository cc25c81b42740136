"""Command-line interface for downloading symbol history."""

from __future__ import annotations

import argparse
import logging
import re
import sys
from collections.abc import Mapping, Sequence
from datetime import date, timedelta
from pathlib import Path

from yahoo_history.config import Settings, parse_symbols
from yahoo_history.data.frames import ticks_to_frame
from yahoo_history.domain.models import Frequency, Tick, TickKind
from yahoo_history.errors import (
    ConfigError,
    DataProviderError,
    FetchCancelledError,
    InputError,
)
from yahoo_history.history import YahooHistory
from yahoo_history.logging_utils import setup_logger

DEFAULT_TIME_ZONE = "America/New_York"


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""
    parser = argparse.ArgumentParser(
        description="Download Yahoo Finance price, dividend and split history"
    )
    parser.add_argument("symbols", nargs="+", help="Symbols, space or comma separated")
    parser.add_argument(
        "--events",
        choices=[kind.value for kind in TickKind],
        default=TickKind.HISTORY.value,
        help="Series to download",
    )
    parser.add_argument(
        "--frequency",
        choices=[frequency.value for frequency in Frequency],
        default=Frequency.DAILY.value,
        help="Bar interval for price history",
    )
    parser.add_argument("--start", type=date.fromisoformat, help="First date (YYYY-MM-DD)")
    parser.add_argument("--end", type=date.fromisoformat, help="Last date (YYYY-MM-DD)")
    parser.add_argument(
        "--tz", default=DEFAULT_TIME_ZONE, help="Time zone used to interpret --start/--end"
    )
    parser.add_argument("--days", type=int, help="Trailing window in days, ending now")
    parser.add_argument("--output-dir", type=str, help="Write one CSV per symbol here")
    parser.add_argument("--log-level", type=str, help="Logging level")
    parser.add_argument(
        "--ignore-empty-rows",
        action="store_true",
        help="Drop rows the service reports without values",
    )
    parser.add_argument("--timeout", type=int, help="HTTP timeout in seconds")
    parser.add_argument("--max-workers", type=int, help="Concurrent symbol downloads")
    return parser


def apply_cli_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Apply CLI values onto environment-derived settings."""
    if args.days is not None and args.start is not None:
        raise ValueError("Use only one of --days or --start")
    if args.days is not None and args.days <= 0:
        raise ValueError("--days must be positive")
    if args.end is not None and args.start is None:
        raise ValueError("--end requires --start")

    overrides: dict[str, object] = {}
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.ignore_empty_rows:
        overrides["ignore_empty_rows"] = True
    if args.timeout is not None:
        overrides["timeout"] = args.timeout
    if args.max_workers is not None:
        overrides["max_workers"] = args.max_workers
    return settings.with_overrides(**overrides)


def collect_symbols(raw_symbols: Sequence[str]) -> list[str]:
    """Flatten positional arguments that may themselves be comma-separated."""
    return [symbol for raw in raw_symbols for symbol in parse_symbols(raw)]


def csv_file_name(symbol: str) -> str:
    """Map a symbol to a file name that stays inside the output directory."""
    sanitized = re.sub(r"[^\w.\-^=]", "_", symbol.strip().upper())
    sanitized = sanitized.lstrip(".")
    return f"{sanitized or '_'}.csv"


def configure_period(history: YahooHistory, args: argparse.Namespace) -> None:
    if args.days is not None:
        history.period_since(timedelta(days=args.days))
    elif args.start is not None:
        history.period_between(args.tz, args.start, args.end)


def write_results(
    results: Mapping[str, list[Tick] | None],
    output_dir: str | None,
    logger: logging.Logger,
) -> None:
    for symbol, ticks in results.items():
        if ticks is None:
            logger.warning("%s | not found", symbol)
            continue
        frame = ticks_to_frame(ticks)
        if output_dir:
            path = Path(output_dir) / csv_file_name(symbol)
            path.parent.mkdir(parents=True, exist_ok=True)
            frame.to_csv(path)
            logger.info("%s | %s rows | %s", symbol, len(frame), path)
        else:
            print(f"# {symbol}")
            print(frame.to_string())


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = apply_cli_overrides(Settings.from_env(), args)
    except (ConfigError, ValueError) as exc:
        print(f"Configuration error: {exc}")
        return 2
    logger = setup_logger(settings.log_level, settings.log_file)

    with YahooHistory(settings) as history:
        try:
            configure_period(history, args)
            results = history.get_ticks(collect_symbols(args.symbols), args.events, args.frequency)
        except InputError as exc:
            logger.error("input error | %s", exc)
            return 2
        except (DataProviderError, FetchCancelledError) as exc:
            logger.error("error | %s", exc)
            return 1
        except KeyboardInterrupt:
            history.cancel_token.cancel()
            logger.error("error | interrupted")
            return 130

    write_results(results, args.output_dir, logger)
    return 0


if __name__ == "__main__":
    sys.exit(main())
