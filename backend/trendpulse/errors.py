"""
TrendPulse — Exceptions

Every failure the analysis core or the market-data client raises derives from
TrendPulseError, so a screening pass can skip one symbol without aborting the batch.
"""

from __future__ import annotations

from typing import Optional


class TrendPulseError(Exception):
    """Base class for TrendPulse errors."""


class InsufficientDataError(TrendPulseError):
    """Raised when a candle series is shorter than an indicator's minimum window."""

    def __init__(
        self,
        symbol: str,
        indicator: str,
        required: int,
        available: int,
        timeframe: Optional[str] = None,
    ):
        self.symbol = symbol
        self.indicator = indicator
        self.required = required
        self.available = available
        self.timeframe = timeframe
        where = f" on {timeframe}" if timeframe else ""
        super().__init__(
            f"Insufficient data for {symbol}: {indicator}{where} needs "
            f"{required} candles, got {available}"
        )


class MarketDataError(TrendPulseError):
    """Raised when candle or ticker data cannot be fetched or parsed."""

    def __init__(self, symbol: str, detail: str, interval: Optional[str] = None):
        self.symbol = symbol
        self.interval = interval
        self.detail = detail
        where = f" [{interval}]" if interval else ""
        super().__init__(f"Market data unavailable for {symbol}{where}: {detail}")
