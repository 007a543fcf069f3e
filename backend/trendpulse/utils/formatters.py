"""
TrendPulse — Shared Formatters

Human-readable formatting for prices, percentages and signal lists.
Used by the CLI report and the screener summary frame.
"""

from __future__ import annotations

from typing import Iterable

from trendpulse.models import PriceActionSignal


def format_price(value: float, decimals: int = 4) -> str:
    """Format a price with fixed decimals and thousands separators.

    >>> format_price(64250.5)
    '64,250.5000'
    """
    return f"{value:,.{decimals}f}"


def format_pct(value: float, decimals: int = 2, signed: bool = True) -> str:
    """Percent string for 24h changes and level distances; gains get a '+' when `signed`.

    >>> format_pct(12.346)
    '+12.35%'
    """
    sign = "+" if signed and value > 0 else ""
    return f"{sign}{value:.{decimals}f}%"


def format_signals(signals: Iterable[PriceActionSignal]) -> str:
    """Compact comma-separated pattern list, '-' when empty."""
    labels = [s.label for s in signals]
    return ", ".join(labels) if labels else "-"
