"""
TrendPulse — Strategy Engine

Multi-timeframe pullback strategy. Combines indicators from the 15m, 1h and 4h
series into trend, pullback, momentum and volume sub-analyses, adds candlestick
signals and exit levels, and scores the setup 0-100.

Confidence weights:

| Contribution                          | Points          |
|---------------------------------------|-----------------|
| EMA alignment across timeframes       | 25              |
| Price in pullback zone                | 20              |
| Momentum (RSI + MACD) confirmation    | 25              |
| Volume confirmation                   | 15              |
| Each distinct price-action signal     | 5 (max 3 → 15)  |

A sub-analysis whose inputs are too short simply contributes nothing; only a
series too short for the base indicators (RSI14, ATR14, EMA20) fails the call.
"""

from __future__ import annotations

import time
from typing import Optional, Sequence

import structlog

from trendpulse.engines.indicator_engine import IndicatorEngine
from trendpulse.engines.pattern_engine import PatternEngine
from trendpulse.engines.risk_engine import RiskEngine
from trendpulse.errors import InsufficientDataError
from trendpulse.models import (
    AnalysisResult,
    Candle,
    EmaAlignment,
    EmaProximity,
    FibRetracement,
    IndicatorSnapshot,
    MacdConditions,
    MomentumAnalysis,
    PriceActionSignal,
    PullbackAnalysis,
    PullbackLevels,
    RsiConditions,
    TimeFrame,
    TrendAnalysis,
    TrendDirection,
    VolumeAnalysis,
    VolumeData,
)
from trendpulse.utils.validators import validate_candle_series

log = structlog.get_logger(__name__)

# Base indicator windows every timeframe must cover, checked in this order
MIN_WINDOWS: tuple[tuple[str, int], ...] = (
    ("rsi14", 15),
    ("atr14", 15),
    ("ema20", 20),
)

WEIGHT_ALIGNMENT = 25
WEIGHT_PULLBACK = 20
WEIGHT_MOMENTUM = 25
WEIGHT_VOLUME = 15
WEIGHT_PER_SIGNAL = 5
MAX_COUNTED_SIGNALS = 3

EMA_ZONE_PCT = 2.0
FIB_ZONE_PCT = 1.0
VOLUME_SPIKE_FACTOR = 1.5


class StrategyEngine:
    """Signal aggregator: owns the indicator, pattern and risk engines.

    Usage:
        engine = StrategyEngine()
        result = engine.analyze("BTCUSDT", c15, c1h, c4h, volume)
    """

    def __init__(
        self,
        indicator_engine: Optional[IndicatorEngine] = None,
        pattern_engine: Optional[PatternEngine] = None,
        risk_engine: Optional[RiskEngine] = None,
        pullback_window: int = 100,
    ):
        self.indicators = indicator_engine or IndicatorEngine()
        self.patterns = pattern_engine or PatternEngine()
        self.risk = risk_engine or RiskEngine()
        self.pullback_window = pullback_window

    # ──────────────────────────────────────────
    # Public API
    # ──────────────────────────────────────────

    def analyze(
        self,
        symbol: str,
        candles_15m: Sequence[Candle],
        candles_1h: Sequence[Candle],
        candles_4h: Sequence[Candle],
        volume_data: VolumeData,
    ) -> AnalysisResult:
        """Analyze one instrument and return its complete verdict.

        Raises:
            InsufficientDataError: a timeframe is too short for the base indicators.
            ValueError: a series is not ordered by strictly increasing time.
        """
        series = {
            TimeFrame.M15: tuple(candles_15m),
            TimeFrame.H1: tuple(candles_1h),
            TimeFrame.H4: tuple(candles_4h),
        }
        for timeframe, candles in series.items():
            validate_candle_series(candles, label=f"{symbol} {timeframe.value}")
            self._require_base_window(symbol, timeframe, candles)

        c15, c1h, c4h = series[TimeFrame.M15], series[TimeFrame.H1], series[TimeFrame.H4]
        ind15 = self.indicators.compute_snapshot(c15)
        ind1h = self.indicators.compute_snapshot(c1h)
        ind4h = self.indicators.compute_snapshot(c4h)

        price = c15[-1].close
        trend = self.analyze_trend(price, ind15, ind1h, ind4h)
        pullback = self.analyze_pullback(price, ind15, ind1h, c1h)
        momentum = self.analyze_momentum(ind15, ind1h)
        volume = self.analyze_volume(volume_data, c1h)
        signals = self.patterns.detect_signals(c15, c1h, ind15, ind1h)
        risk = self.risk.evaluate_risk(c15, c1h, c4h, ind15, ind1h, ind4h)

        score = self.confidence_score(trend, pullback, momentum, volume, signals)

        excluded = _excluded_inputs(ind15, ind1h, ind4h, volume)
        if excluded:
            log.warning("strategy.subanalysis_excluded", symbol=symbol, inputs=excluded)

        log.debug(
            "strategy.analyzed",
            symbol=symbol,
            confidence=score,
            trend=trend.trend_direction.value,
            signals=[s.label for s in signals],
        )

        return AnalysisResult(
            symbol=symbol,
            trend_analysis=trend,
            pullback_analysis=pullback,
            momentum_analysis=momentum,
            volume_analysis=volume,
            price_action_signals=tuple(signals),
            risk_assessment=risk,
            confidence_score=score,
            timestamp=int(time.time() * 1000),
        )

    # ──────────────────────────────────────────
    # Trend
    # ──────────────────────────────────────────

    def analyze_trend(
        self,
        price: float,
        ind15: IndicatorSnapshot,
        ind1h: IndicatorSnapshot,
        ind4h: IndicatorSnapshot,
    ) -> TrendAnalysis:
        """EMA stacking across timeframes plus golden-cross flags."""
        ema20_above_50 = _above(ind15.ema20, ind15.ema50)
        ema50_above_100 = _above(ind1h.ema50, ind1h.ema100)
        ema100_above_200 = _above(ind1h.ema100, ind4h.ema200)
        price_above_4h_200 = _above(price, ind4h.ema200)

        alignment = EmaAlignment(
            ema20_above_50=ema20_above_50,
            ema50_above_100=ema50_above_100,
            ema100_above_200=ema100_above_200,
            all_aligned=(
                ema20_above_50 and ema50_above_100 and ema100_above_200 and price_above_4h_200
            ),
        )

        return TrendAnalysis(
            ema_alignment=alignment,
            golden_cross_15m=self.indicators.golden_cross(ind15.ema20, ind15.ema50),
            golden_cross_1h=self.indicators.golden_cross(ind1h.ema20, ind1h.ema50),
            trend_direction=self.trend_direction(price, ind15, ind1h, ind4h),
        )

    @staticmethod
    def trend_direction(
        price: float,
        ind15: IndicatorSnapshot,
        ind1h: IndicatorSnapshot,
        ind4h: IndicatorSnapshot,
    ) -> TrendDirection:
        """Majority vote of 15m EMA20/50, 1h EMA20/50 and price vs 4h EMA200.

        The 1h vote must side with the majority; anything else is sideways.
        """
        vote_1h = _vote(ind1h.ema20, ind1h.ema50)
        votes = [_vote(ind15.ema20, ind15.ema50), vote_1h, _vote(price, ind4h.ema200)]

        if votes.count(1) >= 2 and vote_1h == 1:
            return TrendDirection.UPTREND
        if votes.count(-1) >= 2 and vote_1h == -1:
            return TrendDirection.DOWNTREND
        return TrendDirection.SIDEWAYS

    # ──────────────────────────────────────────
    # Pullback
    # ──────────────────────────────────────────

    def analyze_pullback(
        self,
        price: float,
        ind15: IndicatorSnapshot,
        ind1h: IndicatorSnapshot,
        candles_1h: Sequence[Candle],
    ) -> PullbackAnalysis:
        """Distance to the key EMAs (2% zone) and 1h Fibonacci levels (1% zone)."""
        to_ema20 = _distance_pct(price, ind15.ema20)
        to_ema50 = _distance_pct(price, ind15.ema50)
        to_ema100 = _distance_pct(price, ind1h.ema100)
        ema_proximity = EmaProximity(
            to_ema20=to_ema20,
            to_ema50=to_ema50,
            to_ema100=to_ema100,
            in_zone=_any_within([to_ema20, to_ema50, to_ema100], EMA_ZONE_PCT),
        )

        levels = self.indicators.pullback_levels(candles_1h[-self.pullback_window:])
        fib_retracement = self.fib_retracement(price, levels)

        return PullbackAnalysis(
            ema_proximity=ema_proximity,
            fib_retracement=fib_retracement,
            pullback_levels=levels,
            in_pullback_zone=ema_proximity.in_zone or fib_retracement.in_zone,
        )

    @staticmethod
    def fib_retracement(price: float, levels: Optional[PullbackLevels]) -> FibRetracement:
        if levels is None:
            return FibRetracement()
        to_0382 = _distance_pct(price, levels.level0382)
        to_05 = _distance_pct(price, levels.level05)
        to_0618 = _distance_pct(price, levels.level0618)
        return FibRetracement(
            to_0382=to_0382,
            to_05=to_05,
            to_0618=to_0618,
            in_zone=_any_within([to_0382, to_05, to_0618], FIB_ZONE_PCT),
        )

    # ──────────────────────────────────────────
    # Momentum
    # ──────────────────────────────────────────

    @staticmethod
    def analyze_momentum(ind15: IndicatorSnapshot, ind1h: IndicatorSnapshot) -> MomentumAnalysis:
        """RSI: 15m above 50 and 1h in 40-60. MACD: 15m line over signal with a
        rising histogram."""
        rsi_15m_above_50 = ind15.rsi is not None and ind15.rsi > 50
        rsi_1h_mid = ind1h.rsi is not None and 40 <= ind1h.rsi <= 60
        rsi = RsiConditions(
            rsi_15m=ind15.rsi,
            rsi_1h=ind1h.rsi,
            rsi_15m_above_50=rsi_15m_above_50,
            rsi_1h_between_40_and_60=rsi_1h_mid,
            confirmed=rsi_15m_above_50 and rsi_1h_mid,
        )

        m = ind15.macd
        above = m.available and m.macd_line > m.signal_line
        increasing = (
            m.available
            and m.previous_histogram is not None
            and m.histogram > m.previous_histogram
        )
        macd = MacdConditions(
            macd_line=m.macd_line,
            signal_line=m.signal_line,
            histogram=m.histogram,
            macd_above_signal=above,
            histogram_increasing=increasing,
            confirmed=above and increasing,
        )

        return MomentumAnalysis(
            rsi_conditions=rsi,
            macd_conditions=macd,
            momentum_confirmation=rsi.confirmed and macd.confirmed,
        )

    # ──────────────────────────────────────────
    # Volume
    # ──────────────────────────────────────────

    def analyze_volume(self, volume_data: VolumeData, candles_1h: Sequence[Candle]) -> VolumeAnalysis:
        """Spike over 1.5x SMA20, or rising 1h price on above-average volume."""
        values = volume_data.values
        if not values:
            return VolumeAnalysis()

        current = values[-1]
        sma = self.indicators.sma(values, 20)
        volume_ma = float(sma[-1]) if len(sma) else None
        spike = volume_ma is not None and current > volume_ma * VOLUME_SPIKE_FACTOR

        trend_confirmation = False
        if len(candles_1h) >= 2 and candles_1h[-1].close > candles_1h[-2].close:
            recent = values[-3:]
            trend_confirmation = current > sum(recent) / len(recent)

        return VolumeAnalysis(
            current_volume=current,
            volume_ma=volume_ma,
            volume_spike=spike,
            volume_trend_confirmation=trend_confirmation,
            volume_confirmation=spike or trend_confirmation,
        )

    # ──────────────────────────────────────────
    # Scoring
    # ──────────────────────────────────────────

    @staticmethod
    def confidence_score(
        trend: TrendAnalysis,
        pullback: PullbackAnalysis,
        momentum: MomentumAnalysis,
        volume: VolumeAnalysis,
        signals: Sequence[PriceActionSignal],
    ) -> int:
        """Weighted sum of satisfied conditions, clamped to 0-100."""
        score = 0
        if trend.ema_alignment.all_aligned:
            score += WEIGHT_ALIGNMENT
        if pullback.in_pullback_zone:
            score += WEIGHT_PULLBACK
        if momentum.momentum_confirmation:
            score += WEIGHT_MOMENTUM
        if volume.volume_confirmation:
            score += WEIGHT_VOLUME
        score += WEIGHT_PER_SIGNAL * min(len(set(signals)), MAX_COUNTED_SIGNALS)
        return max(0, min(100, score))

    # ──────────────────────────────────────────
    # Helpers
    # ──────────────────────────────────────────

    @staticmethod
    def _require_base_window(symbol: str, timeframe: TimeFrame, candles: Sequence[Candle]) -> None:
        for indicator, required in MIN_WINDOWS:
            if len(candles) < required:
                raise InsufficientDataError(
                    symbol=symbol,
                    indicator=indicator,
                    required=required,
                    available=len(candles),
                    timeframe=timeframe.value,
                )


def _above(a: Optional[float], b: Optional[float]) -> bool:
    return a is not None and b is not None and a > b


def _vote(a: Optional[float], b: Optional[float]) -> int:
    if a is None or b is None or a == b:
        return 0
    return 1 if a > b else -1


def _distance_pct(price: float, level: Optional[float]) -> Optional[float]:
    if level is None or price == 0:
        return None
    return abs(price - level) / price * 100


def _any_within(distances: list[Optional[float]], limit: float) -> bool:
    return any(d is not None and d <= limit for d in distances)


def _excluded_inputs(
    ind15: IndicatorSnapshot,
    ind1h: IndicatorSnapshot,
    ind4h: IndicatorSnapshot,
    volume: VolumeAnalysis,
) -> list[str]:
    checks = {
        "ema50_15m": ind15.ema50 is None,
        "ema100_1h": ind1h.ema100 is None,
        "ema200_4h": ind4h.ema200 is None,
        "macd_15m": not ind15.macd.available,
        "volume_ma": volume.volume_ma is None,
    }
    return [name for name, missing in checks.items() if missing]
