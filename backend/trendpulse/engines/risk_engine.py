"""
TrendPulse — Risk Engine

Stop-loss and take-profit tiers, risk/reward and realised volatility for a long
setup. Levels combine recent swing extremes, EMA50 references and ATR multiples.
Pure domain logic, no I/O.
"""

from __future__ import annotations

from typing import Optional, Sequence

from trendpulse.models import (
    Candle,
    IndicatorSnapshot,
    RiskAssessment,
    StopLossLevels,
    TakeProfitLevels,
)


class RiskEngine:
    """Exit levels and risk metrics from multi-timeframe candles."""

    def evaluate_risk(
        self,
        candles_15m: Sequence[Candle],
        candles_1h: Sequence[Candle],
        candles_4h: Sequence[Candle],
        indicators_15m: IndicatorSnapshot,
        indicators_1h: IndicatorSnapshot,
        indicators_4h: IndicatorSnapshot,
    ) -> RiskAssessment:
        """Build the full risk assessment around the latest 15m close.

        The 15m ATR drives every ATR multiple. The 4h inputs are accepted for
        symmetry with the other engines; no 4h level feeds the exits today.
        """
        price = candles_15m[-1].close
        atr = indicators_15m.atr or 0.0

        stop_loss = self.stop_loss_levels(
            price=price,
            candles_15m=candles_15m,
            candles_1h=candles_1h,
            ema50_15m=indicators_15m.ema50,
            ema50_1h=indicators_1h.ema50,
            atr=atr,
        )
        take_profit = self.take_profit_levels(price=price, candles_1h=candles_1h, atr=atr)

        return RiskAssessment(
            stop_loss=stop_loss,
            take_profit=take_profit,
            risk_reward_ratio=self.risk_reward(price, stop_loss.primary, take_profit.primary),
            atr=atr,
            volatility=self.volatility(candles_15m),
        )

    @staticmethod
    def stop_loss_levels(
        price: float,
        candles_15m: Sequence[Candle],
        candles_1h: Sequence[Candle],
        ema50_15m: Optional[float],
        ema50_1h: Optional[float],
        atr: float,
    ) -> StopLossLevels:
        """Primary: below the 15m swing low / EMA50 / 1.5 ATR.
        Secondary: below the 1h swing low / EMA50 / 2 ATR."""
        primary = [price - atr * 1.5]
        recent_low_15m = _recent_low(candles_15m, 10)
        if recent_low_15m is not None:
            primary.append(recent_low_15m * 0.995)
        if ema50_15m is not None:
            primary.append(ema50_15m * 0.99)

        secondary = [price - atr * 2]
        recent_low_1h = _recent_low(candles_1h, 5)
        if recent_low_1h is not None:
            secondary.append(recent_low_1h * 0.99)
        if ema50_1h is not None:
            secondary.append(ema50_1h * 0.985)

        return StopLossLevels(
            primary=min(primary),
            secondary=min(secondary),
            aggressive=price - atr * 1,
            conservative=price - atr * 2,
        )

    @staticmethod
    def take_profit_levels(
        price: float,
        candles_1h: Sequence[Candle],
        atr: float,
    ) -> TakeProfitLevels:
        """Primary: 3 ATR / +2% / just under the 1h swing high.
        Secondary: 5 ATR / +5% / 2% over the 1h swing high."""
        primary = [price + atr * 3, price * 1.02]
        secondary = [price + atr * 5, price * 1.05]
        recent_high_1h = _recent_high(candles_1h, 20)
        if recent_high_1h is not None:
            primary.append(recent_high_1h * 0.995)
            secondary.append(recent_high_1h * 1.02)

        return TakeProfitLevels(
            primary=max(primary),
            secondary=max(secondary),
            aggressive=price + atr * 4,
            conservative=price + atr * 2,
        )

    @staticmethod
    def risk_reward(price: float, stop: float, target: float) -> float:
        """Reward over risk; 0 when the stop is non-positive or not below price."""
        risk = price - stop
        if stop <= 0 or risk <= 0:
            return 0.0
        return (target - price) / risk

    @staticmethod
    def volatility(candles: Sequence[Candle], window: int = 20) -> float:
        """Mean absolute close-to-close change over the trailing window.

        Needs at least `window` candles, otherwise 0.
        """
        if len(candles) < window:
            return 0.0

        tail = candles[-(window + 1):]
        changes = []
        for prev, cur in zip(tail, tail[1:]):
            if prev.close == 0:
                continue
            changes.append(abs(cur.close - prev.close) / prev.close)
        if not changes:
            return 0.0
        return sum(changes) / len(changes)


def _recent_low(candles: Sequence[Candle], count: int) -> Optional[float]:
    window = candles[-count:]
    return min(c.low for c in window) if window else None


def _recent_high(candles: Sequence[Candle], count: int) -> Optional[float]:
    window = candles[-count:]
    return max(c.high for c in window) if window else None
