"""
TrendPulse — Command-line Screener

Runs one screening pass and prints the ranked table.

Usage:
    trendpulse-scan
    trendpulse-scan --symbols BTCUSDT ETHUSDT --min-confidence 60
    trendpulse-scan --json
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Optional, Sequence

import pandas as pd
import structlog

from trendpulse.config import get_settings
from trendpulse.engines.screener_engine import ScreenerEngine
from trendpulse.main import configure_logging
from trendpulse.utils.formatters import format_pct, format_price

log = structlog.get_logger("trendpulse.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trendpulse-scan",
        description="Screen instruments for multi-timeframe pullback setups.",
    )
    parser.add_argument(
        "--symbols", nargs="+", default=None,
        help="Symbols to screen (default: configured watchlist)",
    )
    parser.add_argument(
        "--min-confidence", type=int, default=None,
        help="Minimum confidence score 0-100 (default: MIN_CONFIDENCE setting)",
    )
    parser.add_argument("--json", action="store_true", help="Print the full report as JSON")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    if args.min_confidence is not None and not 0 <= args.min_confidence <= 100:
        log.error("cli.invalid_min_confidence", value=args.min_confidence)
        return 2

    screener = ScreenerEngine(settings=settings)
    report = asyncio.run(screener.scan(args.symbols, min_confidence=args.min_confidence))

    if args.json:
        print(report.model_dump_json(indent=2))
    else:
        frame = screener.to_frame(report)
        if frame.empty:
            print(f"No setups at or above the threshold ({report.analyzed_count} analyzed).")
        else:
            with pd.option_context("display.width", 160, "display.max_columns", None):
                print(frame.to_string(
                    index=False,
                    formatters={"price": format_price, "change_24h": format_pct},
                ))
        if report.failed:
            print(f"Skipped: {', '.join(report.failed)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
