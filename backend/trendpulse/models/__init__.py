"""
TrendPulse — Pydantic Models

All I/O schemas for the application. Engines and the market-data client return
these, the screener and API routes serialize these. Every model is frozen:
a value is built once per analysis pass and never mutated afterwards.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ──────────────────────────────────────────────
# Enums
# ──────────────────────────────────────────────

class TimeFrame(str, Enum):
    """Candle bucket durations the strategy reads."""
    M15 = "15m"
    H1 = "1h"
    H4 = "4h"


class TrendDirection(str, Enum):
    """Overall trend verdict across timeframes."""
    UPTREND = "UPTREND"
    DOWNTREND = "DOWNTREND"
    SIDEWAYS = "SIDEWAYS"


class PriceActionKind(str, Enum):
    """Candlestick setups the pattern engine recognises."""
    BULLISH_ENGULFING = "bullish_engulfing"
    MORNING_STAR = "morning_star"
    HAMMER = "hammer"
    BREAKOUT_ABOVE_EMA50 = "breakout_above_ema50"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ──────────────────────────────────────────────
# Market Data Models
# ──────────────────────────────────────────────

class Candle(_Frozen):
    """Single OHLCV sample; `time` is the bucket open in epoch milliseconds."""
    open: float
    high: float
    low: float
    close: float
    volume: float = Field(ge=0)
    time: int

    @model_validator(mode="after")
    def _check_range(self) -> "Candle":
        body_low = min(self.open, self.close)
        body_high = max(self.open, self.close)
        if not (self.low <= body_low and body_high <= self.high):
            raise ValueError(
                f"Candle at {self.time} violates low <= open/close <= high "
                f"(o={self.open}, h={self.high}, l={self.low}, c={self.close})"
            )
        return self

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        return self.close < self.open


class VolumeData(_Frozen):
    """Volume series as parallel arrays, oldest → newest."""
    symbol: str
    values: tuple[float, ...] = ()
    times: tuple[int, ...] = ()

    @model_validator(mode="after")
    def _check_lengths(self) -> "VolumeData":
        if len(self.values) != len(self.times):
            raise ValueError(
                f"Volume series for {self.symbol} has {len(self.values)} values "
                f"but {len(self.times)} timestamps"
            )
        return self


class Coin(_Frozen):
    """24h ticker summary for an instrument."""
    symbol: str
    name: str = ""
    price: float
    change_24h: float = 0.0
    volume_24h: float = 0.0

    @property
    def price_formatted(self) -> str:
        return "%.4f" % self.price

    @property
    def change_24h_formatted(self) -> str:
        return "%.2f%%" % self.change_24h


# ──────────────────────────────────────────────
# Indicator Models
# ──────────────────────────────────────────────

class MACDData(_Frozen):
    """Latest MACD sample. All zeros means MACD could not be computed."""
    macd_line: float = 0.0
    signal_line: float = 0.0
    histogram: float = 0.0
    previous_histogram: Optional[float] = None

    @classmethod
    def empty(cls) -> "MACDData":
        return cls()

    @property
    def available(self) -> bool:
        return not (
            self.macd_line == 0.0
            and self.signal_line == 0.0
            and self.histogram == 0.0
            and self.previous_histogram is None
        )


class IndicatorSnapshot(_Frozen):
    """Per-timeframe indicator values. None = series too short for that indicator."""
    ema20: Optional[float] = None
    ema50: Optional[float] = None
    ema100: Optional[float] = None
    ema200: Optional[float] = None
    rsi: Optional[float] = None
    macd: MACDData = Field(default_factory=MACDData.empty)
    sma50: Optional[float] = None
    atr: Optional[float] = None


class PullbackLevels(_Frozen):
    """Fibonacci retracement prices from recent high (level0) to recent low (level1)."""
    level0: float
    level0236: float
    level0382: float
    level05: float
    level0618: float
    level0786: float
    level1: float

    def as_list(self) -> list[float]:
        return [
            self.level0, self.level0236, self.level0382, self.level05,
            self.level0618, self.level0786, self.level1,
        ]


# ──────────────────────────────────────────────
# Price Action
# ──────────────────────────────────────────────

class PriceActionSignal(_Frozen):
    """Tagged pattern variant observed on one timeframe."""
    kind: PriceActionKind
    timeframe: TimeFrame

    @property
    def label(self) -> str:
        return f"{self.kind.value}@{self.timeframe.value}"


# ──────────────────────────────────────────────
# Risk
# ──────────────────────────────────────────────

class StopLossLevels(_Frozen):
    primary: float
    secondary: float
    aggressive: float
    conservative: float


class TakeProfitLevels(_Frozen):
    primary: float
    secondary: float
    aggressive: float
    conservative: float


class RiskAssessment(_Frozen):
    stop_loss: StopLossLevels
    take_profit: TakeProfitLevels
    risk_reward_ratio: float
    atr: float
    volatility: float


# ──────────────────────────────────────────────
# Sub-analyses
# ──────────────────────────────────────────────

class EmaAlignment(_Frozen):
    ema20_above_50: bool
    ema50_above_100: bool
    ema100_above_200: bool
    all_aligned: bool


class TrendAnalysis(_Frozen):
    ema_alignment: EmaAlignment
    golden_cross_15m: bool
    golden_cross_1h: bool
    trend_direction: TrendDirection


class EmaProximity(_Frozen):
    """Percent distance from price to each EMA; in_zone when any is within 2%."""
    to_ema20: Optional[float] = None
    to_ema50: Optional[float] = None
    to_ema100: Optional[float] = None
    in_zone: bool = False


class FibRetracement(_Frozen):
    """Percent distance from price to the key retracements; in_zone within 1%."""
    to_0382: Optional[float] = None
    to_05: Optional[float] = None
    to_0618: Optional[float] = None
    in_zone: bool = False


class PullbackAnalysis(_Frozen):
    ema_proximity: EmaProximity
    fib_retracement: FibRetracement
    pullback_levels: Optional[PullbackLevels] = None
    in_pullback_zone: bool


class RsiConditions(_Frozen):
    rsi_15m: Optional[float] = None
    rsi_1h: Optional[float] = None
    rsi_15m_above_50: bool
    rsi_1h_between_40_and_60: bool
    confirmed: bool


class MacdConditions(_Frozen):
    macd_line: float
    signal_line: float
    histogram: float
    macd_above_signal: bool
    histogram_increasing: bool
    confirmed: bool


class MomentumAnalysis(_Frozen):
    rsi_conditions: RsiConditions
    macd_conditions: MacdConditions
    momentum_confirmation: bool


class VolumeAnalysis(_Frozen):
    current_volume: Optional[float] = None
    volume_ma: Optional[float] = None
    volume_spike: bool = False
    volume_trend_confirmation: bool = False
    volume_confirmation: bool = False


# ──────────────────────────────────────────────
# Results
# ──────────────────────────────────────────────

class AnalysisResult(_Frozen):
    """Terminal verdict for one symbol and one analysis call."""
    symbol: str
    trend_analysis: TrendAnalysis
    pullback_analysis: PullbackAnalysis
    momentum_analysis: MomentumAnalysis
    volume_analysis: VolumeAnalysis
    price_action_signals: tuple[PriceActionSignal, ...] = ()
    risk_assessment: RiskAssessment
    confidence_score: int = Field(ge=0, le=100)
    timestamp: int


class CoinSignal(_Frozen):
    coin: Coin
    result: AnalysisResult


class ScreenerReport(_Frozen):
    """Outcome of one screening pass, highest confidence first."""
    signals: tuple[CoinSignal, ...] = ()
    analyzed_count: int = 0
    signal_count: int = 0
    failed: tuple[str, ...] = ()
    last_updated: int = 0
