"""
TrendPulse — Input Validators

Reusable validation helpers for instrument symbols, intervals and candle series.
Raise ValueError on invalid input so callers can map to 400 responses.
"""

from __future__ import annotations

import re
from typing import Sequence

from trendpulse.models import Candle, TimeFrame

# Exchange pair symbols: base + quote asset, uppercase letters and digits
_SYMBOL_RE = re.compile(r"^[A-Z0-9]{5,20}$")


def validate_symbol(raw: str) -> str:
    """Clean and validate a trading-pair symbol.

    Returns the normalized symbol or raises ValueError.

    >>> validate_symbol(' btcusdt ')
    'BTCUSDT'
    """
    symbol = raw.strip().upper()
    if not symbol:
        raise ValueError("Symbol cannot be empty")
    if not _SYMBOL_RE.match(symbol):
        raise ValueError(
            f"Invalid symbol '{symbol}'. Expected 5-20 letters or digits "
            f"(e.g. BTCUSDT)"
        )
    return symbol


def validate_interval(raw: str) -> TimeFrame:
    """Map an interval string ('15m', '1h', '4h') onto a TimeFrame."""
    try:
        return TimeFrame(raw.strip().lower())
    except ValueError:
        allowed = ", ".join(t.value for t in TimeFrame)
        raise ValueError(f"Unsupported interval '{raw}'. Expected one of: {allowed}") from None


def validate_candle_series(candles: Sequence[Candle], label: str = "series") -> None:
    """Ensure candle times are strictly increasing (oldest → newest)."""
    for prev, cur in zip(candles, candles[1:]):
        if cur.time <= prev.time:
            raise ValueError(
                f"Candle {label} is not strictly increasing in time "
                f"({prev.time} then {cur.time})"
            )
