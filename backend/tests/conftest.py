"""
Shared fixtures: candle factories and an in-memory market-data client.

The trending series have strictly rising (or falling) highs and lows while the
closes zigzag around the trend line, so RSI settles in the mid-50s and the MACD
histogram alternates sign, ending on a rising bar.
"""

from __future__ import annotations

import pytest

from trendpulse.errors import MarketDataError
from trendpulse.models import Candle, Coin, VolumeData

BASE_TIME = 1_700_000_000_000
INTERVAL_MS = {"15m": 900_000, "1h": 3_600_000, "4h": 14_400_000}


def _candle(o, h, l, c, time, volume=1_000.0) -> Candle:
    return Candle(open=o, high=h, low=l, close=c, volume=volume, time=time)


def _trend_series(
    n: int = 250,
    base: float = 100.0,
    slope: float = 0.1,
    swing: float = 0.5,
    pad: float = 0.8,
    interval_ms: int = 900_000,
) -> list[Candle]:
    """Zigzag closes around base + slope*i; the last close sits above the line."""
    candles = []
    for i in range(n):
        trend = base + slope * i
        sign = 1 if (n - 1 - i) % 2 == 0 else -1
        close = trend + swing * sign
        open_ = candles[-1].close if candles else trend - slope - swing * sign
        candles.append(_candle(
            open_, trend + pad, trend - pad, close,
            time=BASE_TIME + i * interval_ms,
            volume=1_000.0 + 10 * i,
        ))
    return candles


def _flat_series(n: int = 250, price: float = 100.0, interval_ms: int = 900_000) -> list[Candle]:
    return [
        _candle(price, price + 0.5, price - 0.5, price, time=BASE_TIME + i * interval_ms)
        for i in range(n)
    ]


def _volume(symbol: str = "BTCUSDT", values=None) -> VolumeData:
    values = tuple(values) if values is not None else tuple(1_000.0 + 10 * i for i in range(20))
    times = tuple(BASE_TIME + i * INTERVAL_MS["1h"] for i in range(len(values)))
    return VolumeData(symbol=symbol, values=values, times=times)


@pytest.fixture
def make_candle():
    return _candle


@pytest.fixture
def trend_series():
    return _trend_series


@pytest.fixture
def flat_series():
    return _flat_series


@pytest.fixture
def volume_data():
    return _volume


@pytest.fixture
def uptrend_inputs():
    """(15m, 1h, 4h, volume) for a clean multi-timeframe uptrend."""
    return (
        _trend_series(interval_ms=INTERVAL_MS["15m"]),
        _trend_series(interval_ms=INTERVAL_MS["1h"]),
        _trend_series(interval_ms=INTERVAL_MS["4h"]),
        _volume(),
    )


@pytest.fixture
def downtrend_inputs():
    """(15m, 1h, 4h, volume) for a clean multi-timeframe downtrend."""
    return (
        _trend_series(base=150.0, slope=-0.1, interval_ms=INTERVAL_MS["15m"]),
        _trend_series(base=150.0, slope=-0.1, interval_ms=INTERVAL_MS["1h"]),
        _trend_series(base=150.0, slope=-0.1, interval_ms=INTERVAL_MS["4h"]),
        _volume(),
    )


class FakeMarketClient:
    """In-memory stand-in for BinanceClient.

    BTCUSDT trends up, ETHUSDT trends down, SHORTUSDT has too little history,
    anything else fails with MarketDataError.
    """

    def __init__(self):
        self.calls: list[tuple[str, str, int]] = []

    def _series(self, symbol: str, interval: str) -> list[Candle]:
        step = INTERVAL_MS.get(interval, 900_000)
        if symbol == "BTCUSDT":
            return _trend_series(interval_ms=step)
        if symbol == "ETHUSDT":
            return _trend_series(base=150.0, slope=-0.1, interval_ms=step)
        if symbol == "SHORTUSDT":
            return _trend_series(n=10, interval_ms=step)
        raise MarketDataError(symbol, "HTTP 400", interval=interval)

    async def get_candles(self, symbol: str, interval: str, limit: int = 100) -> list[Candle]:
        self.calls.append((symbol, interval, limit))
        return self._series(symbol, interval)[-limit:]

    async def get_volume_series(self, symbol: str, interval: str, limit: int = 20) -> VolumeData:
        self._series(symbol, interval)
        return _volume(symbol)

    async def get_coin(self, symbol: str) -> Coin:
        price = self._series(symbol, "15m")[-1].close
        return Coin(symbol=symbol, name=symbol, price=price, change_24h=1.5, volume_24h=1e6)


@pytest.fixture
def fake_client():
    return FakeMarketClient()
