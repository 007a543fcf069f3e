"""
TrendPulse — Global Exception Handlers

Maps domain errors onto consistent JSON error responses so every failure
follows the same schema.
"""

from __future__ import annotations

import traceback

import structlog
from fastapi import FastAPI, Request
from starlette.responses import JSONResponse

from trendpulse.errors import InsufficientDataError, MarketDataError

log = structlog.get_logger(__name__)


def _error(status_code: int, detail: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": True, "status_code": status_code, "detail": detail, **extra},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach the domain-error → HTTP status mapping to `app`."""

    @app.exception_handler(InsufficientDataError)
    async def insufficient_data_handler(request: Request, exc: InsufficientDataError):
        log.info("insufficient_data", symbol=exc.symbol, indicator=exc.indicator)
        return _error(
            422, str(exc),
            symbol=exc.symbol, indicator=exc.indicator, timeframe=exc.timeframe,
        )

    @app.exception_handler(MarketDataError)
    async def market_data_handler(request: Request, exc: MarketDataError):
        log.warning("market_data_error", symbol=exc.symbol, detail=exc.detail)
        return _error(502, str(exc), symbol=exc.symbol)

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return _error(400, str(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        """Anything unmapped becomes a generic 500; the traceback goes to the log only."""
        log.error(
            "unhandled_exception",
            path=str(request.url.path),
            method=request.method,
            error=str(exc),
            traceback=traceback.format_exc(),
        )
        return _error(500, "Internal server error")
