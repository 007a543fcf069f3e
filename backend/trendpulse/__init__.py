"""TrendPulse — multi-timeframe pullback screener."""

__version__ = "1.0.0"
