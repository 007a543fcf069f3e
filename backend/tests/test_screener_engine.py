"""
TrendPulse — Screener Engine Tests

Batch scanning over an in-memory market client: threshold filtering, ranking,
per-symbol failure isolation and the tabular summary.
"""

import asyncio

import pytest

from trendpulse.config import Settings
from trendpulse.engines.screener_engine import ScreenerEngine
from trendpulse.errors import InsufficientDataError, MarketDataError
from trendpulse.models import TrendDirection


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        watchlist="BTCUSDT,ETHUSDT",
        min_confidence=70,
        max_concurrency=2,
    )


@pytest.fixture
def screener(fake_client, settings):
    return ScreenerEngine(client=fake_client, settings=settings)


# ═══════════════════════════════════════════════
#  SINGLE SYMBOL
# ═══════════════════════════════════════════════

class TestAnalyzeSymbol:

    def test_fetches_every_timeframe(self, screener, fake_client):
        signal = asyncio.run(screener.analyze_symbol("BTCUSDT"))
        assert signal.coin.symbol == "BTCUSDT"
        assert signal.result.symbol == "BTCUSDT"
        assert signal.result.trend_analysis.trend_direction == TrendDirection.UPTREND
        assert sorted(c[1] for c in fake_client.calls) == ["15m", "1h", "4h"]
        assert all(c[2] == 250 for c in fake_client.calls)

    def test_market_error_propagates(self, screener):
        with pytest.raises(MarketDataError):
            asyncio.run(screener.analyze_symbol("BADUSDT"))

    def test_short_history_propagates(self, screener):
        with pytest.raises(InsufficientDataError) as exc:
            asyncio.run(screener.analyze_symbol("SHORTUSDT"))
        assert exc.value.timeframe == "15m"


# ═══════════════════════════════════════════════
#  SCAN
# ═══════════════════════════════════════════════

class TestScan:

    def test_threshold_and_failures(self, screener):
        report = asyncio.run(
            screener.scan(["BTCUSDT", "ETHUSDT", "BADUSDT"], min_confidence=65)
        )
        assert [s.coin.symbol for s in report.signals] == ["BTCUSDT"]
        assert report.signal_count == 1
        assert report.analyzed_count == 3
        assert report.failed == ("BADUSDT",)
        assert report.last_updated > 0

    def test_zero_threshold_ranks_descending(self, screener):
        report = asyncio.run(screener.scan(["ETHUSDT", "BTCUSDT"], min_confidence=0))
        assert [s.coin.symbol for s in report.signals] == ["BTCUSDT", "ETHUSDT"]
        scores = [s.result.confidence_score for s in report.signals]
        assert scores == sorted(scores, reverse=True)
        assert report.failed == ()

    def test_defaults_to_watchlist_and_setting(self, screener):
        report = asyncio.run(screener.scan())
        assert report.analyzed_count == 2
        assert all(s.result.confidence_score >= 70 for s in report.signals)

    def test_invalid_and_short_symbols_skipped(self, screener):
        report = asyncio.run(screener.scan(["btcusdt", "ab", "SHORTUSDT"], min_confidence=0))
        assert [s.coin.symbol for s in report.signals] == ["BTCUSDT"]
        assert set(report.failed) == {"ab", "SHORTUSDT"}

    def test_empty_list(self, screener):
        report = asyncio.run(screener.scan([], min_confidence=0))
        assert report.signals == ()
        assert report.analyzed_count == 0

    def test_unexpected_error_skips_only_that_symbol(self, screener, fake_client, monkeypatch):
        get_candles = fake_client.get_candles

        async def broken_for_eth(symbol, interval, limit=100):
            if symbol == "ETHUSDT":
                raise KeyError(0)
            return await get_candles(symbol, interval, limit)

        monkeypatch.setattr(fake_client, "get_candles", broken_for_eth)
        report = asyncio.run(screener.scan(["BTCUSDT", "ETHUSDT"], min_confidence=0))
        assert [s.coin.symbol for s in report.signals] == ["BTCUSDT"]
        assert report.failed == ("ETHUSDT",)
        assert report.analyzed_count == 2


# ═══════════════════════════════════════════════
#  SUMMARY FRAME
# ═══════════════════════════════════════════════

class TestToFrame:

    def test_columns_and_rows(self, screener):
        report = asyncio.run(screener.scan(["BTCUSDT", "ETHUSDT"], min_confidence=0))
        frame = screener.to_frame(report)
        assert list(frame.columns) == [
            "symbol", "price", "change_24h", "confidence", "trend",
            "risk_reward", "stop_loss", "take_profit", "signals",
        ]
        assert list(frame["symbol"]) == ["BTCUSDT", "ETHUSDT"]
        assert frame.iloc[0]["trend"] == "UPTREND"
        assert frame.iloc[0]["signals"] == "-"

    def test_empty_report(self, screener):
        report = asyncio.run(screener.scan(["BADUSDT"]))
        frame = screener.to_frame(report)
        assert frame.empty
        assert "confidence" in frame.columns
