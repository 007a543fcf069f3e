"""
TrendPulse — FastAPI Application Entry Point

Serves the screener over HTTP. Run with:
    uvicorn trendpulse.main:app --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from trendpulse import __version__
from trendpulse.config import get_settings
from trendpulse.routes import health_router, screener_router

log = structlog.get_logger("trendpulse.startup")

API_V1 = "/v1"


def configure_logging(level: str = "INFO") -> None:
    """Install a structlog logger filtered at `level`."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(numeric))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and announce the watchlist on startup."""
    settings = get_settings()
    configure_logging(settings.log_level)
    log.info(
        "startup",
        env=settings.app_env,
        watchlist=settings.watchlist_symbols,
        min_confidence=settings.min_confidence,
    )
    yield
    log.info("shutdown")


def create_app() -> FastAPI:
    app = FastAPI(
        title="TrendPulse",
        version=__version__,
        description="Multi-timeframe pullback screener: trend, pullback, momentum, "
                    "volume and candlestick confluence scored 0-100.",
        lifespan=lifespan,
    )

    from trendpulse.error_handlers import register_error_handlers
    register_error_handlers(app)

    app.include_router(health_router, tags=["Health"])
    app.include_router(screener_router, prefix=API_V1, tags=["Screener"])
    return app


app = create_app()
