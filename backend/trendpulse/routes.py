"""
TrendPulse — API Routes

Thin HTTP layer over the screener. Market-data and insufficient-data failures
are mapped to JSON errors by error_handlers.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, Query

from trendpulse import __version__
from trendpulse.config import get_settings
from trendpulse.engines.screener_engine import ScreenerEngine
from trendpulse.models import AnalysisResult, ScreenerReport
from trendpulse.utils.validators import validate_symbol


@lru_cache
def get_screener() -> ScreenerEngine:
    """Shared screener instance; engines are stateless so one is enough."""
    return ScreenerEngine(settings=get_settings())


# ──────────────────────────────────────────────
# Health
# ──────────────────────────────────────────────

health_router = APIRouter()


@health_router.get("/health")
async def health_check():
    settings = get_settings()
    return {"status": "ok", "version": __version__, "env": settings.app_env}


# ──────────────────────────────────────────────
# Screener
# ──────────────────────────────────────────────

screener_router = APIRouter(prefix="/screener")


@screener_router.get("/analyze/{symbol}", response_model=AnalysisResult)
async def analyze_symbol(symbol: str, screener: ScreenerEngine = Depends(get_screener)):
    """Full multi-timeframe analysis for one symbol."""
    signal = await screener.analyze_symbol(validate_symbol(symbol))
    return signal.result


@screener_router.get("/scan", response_model=ScreenerReport)
async def scan(
    symbols: Optional[str] = Query(None, description="Comma-separated symbols; defaults to the watchlist"),
    min_confidence: Optional[int] = Query(None, ge=0, le=100),
    screener: ScreenerEngine = Depends(get_screener),
):
    """Screen a list of symbols and rank those above the confidence threshold."""
    symbol_list = None
    if symbols:
        symbol_list = [s for s in (p.strip() for p in symbols.split(",")) if s]
    return await screener.scan(symbol_list, min_confidence=min_confidence)
