"""
TrendPulse — Screener Engine

Runs the strategy over a watchlist: fetches the three candle timeframes and the
volume series per symbol, analyzes each symbol in a worker thread, skips symbols
that fail, and ranks the rest by confidence.
"""

from __future__ import annotations

import asyncio
import time
from typing import Optional, Sequence

import pandas as pd
import structlog

from trendpulse.config import Settings, get_settings
from trendpulse.data.binance_client import BinanceClient
from trendpulse.engines.strategy_engine import StrategyEngine
from trendpulse.errors import TrendPulseError
from trendpulse.models import CoinSignal, ScreenerReport, TimeFrame
from trendpulse.utils.formatters import format_signals
from trendpulse.utils.validators import validate_symbol

log = structlog.get_logger(__name__)


class ScreenerEngine:
    """Watchlist screener.

    Usage:
        screener = ScreenerEngine()
        report = asyncio.run(screener.scan(["BTCUSDT", "ETHUSDT"]))
    """

    def __init__(
        self,
        client: Optional[BinanceClient] = None,
        strategy: Optional[StrategyEngine] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.client = client or BinanceClient(self.settings)
        self.strategy = strategy or StrategyEngine(pullback_window=self.settings.pullback_window)

    async def analyze_symbol(self, symbol: str) -> CoinSignal:
        """Fetch all inputs for one symbol and run the strategy on them.

        Raises:
            MarketDataError: a fetch failed.
            InsufficientDataError: the exchange returned too little history.
        """
        limit = self.settings.candle_limit
        c15, c1h, c4h, volume, coin = await asyncio.gather(
            self.client.get_candles(symbol, TimeFrame.M15.value, limit),
            self.client.get_candles(symbol, TimeFrame.H1.value, limit),
            self.client.get_candles(symbol, TimeFrame.H4.value, limit),
            self.client.get_volume_series(
                symbol, self.settings.volume_interval, self.settings.volume_limit
            ),
            self.client.get_coin(symbol),
        )
        result = await asyncio.to_thread(self.strategy.analyze, symbol, c15, c1h, c4h, volume)
        return CoinSignal(coin=coin, result=result)

    async def scan(
        self,
        symbols: Optional[Sequence[str]] = None,
        min_confidence: Optional[int] = None,
    ) -> ScreenerReport:
        """Analyze every symbol, keep those at or above `min_confidence`,
        highest confidence first."""
        symbols = list(symbols) if symbols is not None else self.settings.watchlist_symbols
        threshold = self.settings.min_confidence if min_confidence is None else min_confidence
        semaphore = asyncio.Semaphore(max(1, self.settings.max_concurrency))
        started = time.perf_counter()

        async def run(raw: str) -> tuple[str, Optional[CoinSignal]]:
            async with semaphore:
                try:
                    symbol = validate_symbol(raw)
                    return symbol, await self.analyze_symbol(symbol)
                except (TrendPulseError, ValueError) as e:
                    log.warning("screener.symbol_failed", symbol=raw, error=str(e))
                    return raw, None
                except Exception as e:
                    log.exception("screener.symbol_failed", symbol=raw, error=str(e))
                    return raw, None

        outcomes = await asyncio.gather(*(run(s) for s in symbols))

        failed = tuple(sym for sym, signal in outcomes if signal is None)
        kept = [
            signal for _, signal in outcomes
            if signal is not None and signal.result.confidence_score >= threshold
        ]
        kept.sort(key=lambda s: s.result.confidence_score, reverse=True)

        log.info(
            "screener.scan_complete",
            analyzed=len(symbols),
            signals=len(kept),
            failed=len(failed),
            min_confidence=threshold,
            elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
        )

        return ScreenerReport(
            signals=tuple(kept),
            analyzed_count=len(symbols),
            signal_count=len(kept),
            failed=failed,
            last_updated=int(time.time() * 1000),
        )

    @staticmethod
    def to_frame(report: ScreenerReport) -> pd.DataFrame:
        """Tabular summary of a report, one row per kept symbol."""
        columns = [
            "symbol", "price", "change_24h", "confidence", "trend",
            "risk_reward", "stop_loss", "take_profit", "signals",
        ]
        rows = []
        for s in report.signals:
            risk = s.result.risk_assessment
            rows.append({
                "symbol": s.coin.symbol,
                "price": s.coin.price,
                "change_24h": s.coin.change_24h,
                "confidence": s.result.confidence_score,
                "trend": s.result.trend_analysis.trend_direction.value,
                "risk_reward": round(risk.risk_reward_ratio, 2),
                "stop_loss": risk.stop_loss.primary,
                "take_profit": risk.take_profit.primary,
                "signals": format_signals(s.result.price_action_signals),
            })
        return pd.DataFrame(rows, columns=columns)
