"""
TrendPulse — Binance Market Data Client

Candle history, volume series and 24h ticker summaries from the public Binance
REST API. No API key is needed for market data.

Kline row layout (all prices/volumes as strings):
    [open_time, open, high, low, close, volume, close_time, ...]
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
import structlog

from trendpulse.config import Settings, get_settings
from trendpulse.errors import MarketDataError
from trendpulse.models import Candle, Coin, VolumeData
from trendpulse.utils.validators import validate_interval

log = structlog.get_logger(__name__)

_MAX_KLINES = 1000


class BinanceClient:
    """Async wrapper around the Binance spot market-data endpoints."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = settings or get_settings()
        self._base_url = settings.binance_base_url.rstrip("/")
        self._timeout = settings.binance_timeout
        self._transport = transport

    async def get_candles(self, symbol: str, interval: str, limit: int = 100) -> list[Candle]:
        """Fetch candles oldest → newest, at most `limit` of them."""
        rows = await self._get_klines(symbol, interval, limit)
        try:
            return [
                Candle(
                    time=int(row[0]),
                    open=float(row[1]),
                    high=float(row[2]),
                    low=float(row[3]),
                    close=float(row[4]),
                    volume=float(row[5]),
                )
                for row in rows
            ]
        except (IndexError, TypeError, ValueError) as e:
            raise MarketDataError(symbol, f"malformed kline: {e}", interval=interval) from e

    async def get_volume_series(self, symbol: str, interval: str, limit: int = 20) -> VolumeData:
        """Fetch the volume series as parallel value/time arrays."""
        rows = await self._get_klines(symbol, interval, limit)
        try:
            return VolumeData(
                symbol=symbol,
                values=tuple(float(row[5]) for row in rows),
                times=tuple(int(row[0]) for row in rows),
            )
        except (IndexError, TypeError, ValueError) as e:
            raise MarketDataError(symbol, f"malformed kline: {e}", interval=interval) from e

    async def get_coin(self, symbol: str) -> Coin:
        """Fetch the 24h ticker summary for a symbol."""
        data = await self._get_json(symbol, "/api/v3/ticker/24hr", {"symbol": symbol})
        try:
            return Coin(
                symbol=data["symbol"],
                name=data["symbol"],
                price=float(data["lastPrice"]),
                change_24h=float(data.get("priceChangePercent", 0.0)),
                volume_24h=float(data.get("quoteVolume", 0.0)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise MarketDataError(symbol, f"malformed ticker: {e}") from e

    # ── Internals ──

    async def _get_klines(self, symbol: str, interval: str, limit: int) -> list[list[Any]]:
        interval = validate_interval(interval).value
        params = {"symbol": symbol, "interval": interval, "limit": max(1, min(limit, _MAX_KLINES))}
        rows = await self._get_json(symbol, "/api/v3/klines", params, interval=interval)
        if not isinstance(rows, list):
            raise MarketDataError(symbol, "unexpected klines payload", interval=interval)
        if any(not isinstance(row, list) for row in rows):
            raise MarketDataError(symbol, "malformed kline: row is not an array", interval=interval)
        return rows

    async def _get_json(
        self,
        symbol: str,
        path: str,
        params: dict,
        interval: Optional[str] = None,
    ) -> Any:
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                resp = await client.get(path, params=params)
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPStatusError as e:
            log.warning(
                "binance.http_error",
                symbol=symbol,
                path=path,
                status=e.response.status_code,
            )
            raise MarketDataError(
                symbol, f"HTTP {e.response.status_code}", interval=interval
            ) from e
        except httpx.HTTPError as e:
            log.warning("binance.transport_error", symbol=symbol, path=path, error=str(e))
            raise MarketDataError(symbol, str(e) or type(e).__name__, interval=interval) from e
        except ValueError as e:
            raise MarketDataError(symbol, f"invalid JSON: {e}", interval=interval) from e
