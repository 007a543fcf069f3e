"""
TrendPulse — Indicator Engine

Pure numeric functions for EMA, SMA, RSI, MACD, ATR and Fibonacci pullback levels.
No I/O, no logging, no shared state.

Series functions return numpy arrays holding only the computable points (an empty
array when the input is shorter than the period), never a partial result. Callers
that need the "last" value must check the length first; `compute_snapshot` does
this and leaves unavailable indicators as None.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from trendpulse.models import Candle, IndicatorSnapshot, MACDData, PullbackLevels


def _last(series: np.ndarray) -> Optional[float]:
    return float(series[-1]) if len(series) else None


class IndicatorEngine:
    """Technical indicators over candle closes.

    Usage:
        engine = IndicatorEngine()
        snapshot = engine.compute_snapshot(candles)
    """

    def compute_snapshot(self, candles: Sequence[Candle]) -> IndicatorSnapshot:
        """Compute the full indicator snapshot for one timeframe."""
        closes = np.array([c.close for c in candles], dtype=np.float64)

        return IndicatorSnapshot(
            ema20=_last(self.ema(closes, 20)),
            ema50=_last(self.ema(closes, 50)),
            ema100=_last(self.ema(closes, 100)),
            ema200=_last(self.ema(closes, 200)),
            rsi=_last(self.rsi(closes, 14)),
            macd=self.macd(closes),
            sma50=_last(self.sma(closes, 50)),
            atr=_last(self.atr(candles, 14)),
        )

    # ──────────────────────────────────────────
    # Moving averages
    # ──────────────────────────────────────────

    @staticmethod
    def ema(values: Sequence[float], period: int) -> np.ndarray:
        """Exponential Moving Average seeded with the SMA of the first `period` values.

        Returns len(values) - period + 1 points (one per input index from
        period - 1 onward), or an empty array when there are fewer values than
        the period.
        """
        values = np.asarray(values, dtype=np.float64)
        n = len(values)
        if period <= 0 or n < period:
            return np.empty(0, dtype=np.float64)

        result = np.empty(n - period + 1, dtype=np.float64)
        result[0] = values[:period].mean()

        multiplier = 2.0 / (period + 1)
        for j, i in enumerate(range(period, n), start=1):
            prev = result[j - 1]
            result[j] = (values[i] - prev) * multiplier + prev
        return result

    @staticmethod
    def sma(values: Sequence[float], period: int) -> np.ndarray:
        """Simple Moving Average over full windows only (stride 1)."""
        values = np.asarray(values, dtype=np.float64)
        if period <= 0 or len(values) < period:
            return np.empty(0, dtype=np.float64)
        return sliding_window_view(values, period).mean(axis=1)

    # ──────────────────────────────────────────
    # Momentum
    # ──────────────────────────────────────────

    @staticmethod
    def rsi(values: Sequence[float], period: int = 14) -> np.ndarray:
        """Wilder RSI. Needs more than `period` values; first point is at index `period`.

        A zero average loss resolves to 100 rather than dividing.
        """
        values = np.asarray(values, dtype=np.float64)
        n = len(values)
        if period <= 0 or n <= period:
            return np.empty(0, dtype=np.float64)

        deltas = np.diff(values)
        gains = np.maximum(deltas, 0.0)
        losses = np.maximum(-deltas, 0.0)

        result = np.empty(n - period, dtype=np.float64)
        avg_gain = gains[:period].mean()
        avg_loss = losses[:period].mean()
        result[0] = _rsi_value(avg_gain, avg_loss)

        for j, i in enumerate(range(period, len(deltas)), start=1):
            avg_gain = (avg_gain * (period - 1) + gains[i]) / period
            avg_loss = (avg_loss * (period - 1) + losses[i]) / period
            result[j] = _rsi_value(avg_gain, avg_loss)
        return result

    def macd(self, values: Sequence[float]) -> MACDData:
        """MACD(12, 26, 9) at the latest sample.

        Returns the all-zero sentinel when EMA26 has fewer than 26 points or the
        MACD line is too short for the 9-period signal line.
        """
        values = np.asarray(values, dtype=np.float64)
        ema12 = self.ema(values, 12)
        ema26 = self.ema(values, 26)
        if len(ema26) < 26:
            return MACDData.empty()

        # Aligned by input index, not by list position;
        # ema12 starts at index 11, ema26 at index 25: drop the first 14 ema12 points
        macd_line = ema12[len(ema12) - len(ema26):] - ema26
        signal = self.ema(macd_line, 9)
        if len(signal) == 0:
            return MACDData.empty()

        histogram = macd_line[len(macd_line) - len(signal):] - signal
        return MACDData(
            macd_line=float(macd_line[-1]),
            signal_line=float(signal[-1]),
            histogram=float(histogram[-1]),
            previous_histogram=float(histogram[-2]) if len(histogram) >= 2 else None,
        )

    # ──────────────────────────────────────────
    # Volatility
    # ──────────────────────────────────────────

    @staticmethod
    def true_ranges(candles: Sequence[Candle]) -> np.ndarray:
        """True range for every candle after the first."""
        n = len(candles)
        if n < 2:
            return np.empty(0, dtype=np.float64)
        tr = np.empty(n - 1, dtype=np.float64)
        for i in range(1, n):
            cur, prev_close = candles[i], candles[i - 1].close
            tr[i - 1] = max(
                cur.high - cur.low,
                abs(cur.high - prev_close),
                abs(cur.low - prev_close),
            )
        return tr

    def atr(self, candles: Sequence[Candle], period: int = 14) -> np.ndarray:
        """Average True Range with Wilder smoothing. Needs period + 1 candles."""
        if period <= 0 or len(candles) < period + 1:
            return np.empty(0, dtype=np.float64)

        tr = self.true_ranges(candles)
        result = np.empty(len(tr) - period + 1, dtype=np.float64)
        result[0] = tr[:period].mean()
        for j, i in enumerate(range(period, len(tr)), start=1):
            result[j] = (result[j - 1] * (period - 1) + tr[i]) / period
        return result

    # ──────────────────────────────────────────
    # Levels
    # ──────────────────────────────────────────

    @staticmethod
    def pullback_levels(candles: Sequence[Candle]) -> Optional[PullbackLevels]:
        """Fibonacci retracements between the window's highest high and lowest low.

        A flat window (high == low) yields the flat price for every level.
        Returns None for an empty window.
        """
        if not candles:
            return None

        high = max(c.high for c in candles)
        low = min(c.low for c in candles)
        rng = high - low
        if rng <= 0:
            return PullbackLevels(**{name: high for name in PullbackLevels.model_fields})

        return PullbackLevels(
            level0=high,
            level0236=high - rng * 0.236,
            level0382=high - rng * 0.382,
            level05=high - rng * 0.5,
            level0618=high - rng * 0.618,
            level0786=high - rng * 0.786,
            level1=low,
        )

    @staticmethod
    def golden_cross(ema_short: Optional[float], ema_long: Optional[float]) -> bool:
        """Short EMA above long EMA; False when either is unavailable."""
        if ema_short is None or ema_long is None:
            return False
        return ema_short > ema_long


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return float(100.0 - 100.0 / (1.0 + rs))
