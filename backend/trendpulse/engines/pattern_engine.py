"""
TrendPulse — Pattern Detection Engine

Rule-based detection of the bullish candlestick setups the strategy trades:

  Double:  Bullish Engulfing
  Triple:  Morning Star
  Single:  Hammer (confirmed by close above EMA50)
  Trend:   Breakout above EMA50 (0.5% margin)

Each rule reads only the most recent candles of one timeframe and runs independently,
so several patterns may fire on the same bar.
"""

from __future__ import annotations

from typing import Optional, Sequence

from trendpulse.models import (
    Candle,
    IndicatorSnapshot,
    PriceActionKind,
    PriceActionSignal,
    TimeFrame,
)

BREAKOUT_MARGIN = 1.005


class PatternEngine:
    """Candlestick pattern detector.

    Usage:
        engine = PatternEngine()
        signals = engine.detect_signals(c15, c1h, ind15, ind1h)
    """

    # ──────────────────────────────────────────
    # Public API
    # ──────────────────────────────────────────

    def detect_signals(
        self,
        candles_15m: Sequence[Candle],
        candles_1h: Sequence[Candle],
        indicators_15m: IndicatorSnapshot,
        indicators_1h: IndicatorSnapshot,
    ) -> list[PriceActionSignal]:
        """Run every pattern check on the 15m and 1h series."""
        frames = (
            (TimeFrame.M15, candles_15m, indicators_15m),
            (TimeFrame.H1, candles_1h, indicators_1h),
        )
        checks = (
            (PriceActionKind.BULLISH_ENGULFING, lambda c, ind: self.is_bullish_engulfing(c[-2:])),
            (PriceActionKind.MORNING_STAR, lambda c, ind: self.is_morning_star(c[-3:])),
            (PriceActionKind.HAMMER, lambda c, ind: bool(c) and self.is_hammer(c[-1], ind.ema50)),
            (PriceActionKind.BREAKOUT_ABOVE_EMA50, lambda c, ind: self.is_breakout_above_ema50(c, ind.ema50)),
        )

        signals: list[PriceActionSignal] = []
        for kind, check in checks:
            for timeframe, candles, indicators in frames:
                if check(candles, indicators):
                    signals.append(PriceActionSignal(kind=kind, timeframe=timeframe))
        return signals

    # ──────────────────────────────────────────
    # Pattern rules
    # ──────────────────────────────────────────

    @staticmethod
    def is_bullish_engulfing(candles: Sequence[Candle]) -> bool:
        """Bearish candle followed by a bullish one that opens below its close
        and closes above its open."""
        if len(candles) < 2:
            return False
        prev, cur = candles[-2], candles[-1]
        return (
            prev.is_bearish
            and cur.open < prev.close
            and cur.close > prev.open
            and cur.is_bullish
        )

    @staticmethod
    def is_morning_star(candles: Sequence[Candle]) -> bool:
        """Bearish, then a gap-down bearish candle, then a gap-up bullish candle
        closing above the first candle's close."""
        if len(candles) < 3:
            return False
        first, second, third = candles[-3], candles[-2], candles[-1]
        return (
            first.is_bearish
            and second.open < first.close
            and second.is_bearish
            and third.open > second.close
            and third.is_bullish
            and third.close > first.close
        )

    @staticmethod
    def is_hammer(candle: Candle, ema50: Optional[float]) -> bool:
        """Long lower shadow (>= 2x body), short upper shadow (<= 0.5x body),
        confirmed only when the close is above EMA50."""
        if ema50 is None:
            return False
        body = abs(candle.open - candle.close)
        lower_shadow = min(candle.open, candle.close) - candle.low
        upper_shadow = candle.high - max(candle.open, candle.close)
        return (
            lower_shadow >= 2 * body
            and upper_shadow <= body * 0.5
            and candle.close > ema50
        )

    @staticmethod
    def is_breakout_above_ema50(candles: Sequence[Candle], ema50: Optional[float]) -> bool:
        """Three candles capped below EMA50, then a close above it with the high
        clearing EMA50 by the breakout margin."""
        if ema50 is None or len(candles) < 4:
            return False
        previous_below = all(c.high < ema50 for c in candles[-4:-1])
        current = candles[-1]
        return (
            previous_below
            and current.close > ema50
            and current.high > ema50 * BREAKOUT_MARGIN
        )
