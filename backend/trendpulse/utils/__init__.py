# Shared utilities — formatters, validators
from trendpulse.utils.formatters import format_pct, format_price, format_signals
from trendpulse.utils.validators import validate_candle_series, validate_interval, validate_symbol

__all__ = [
    "format_pct",
    "format_price",
    "format_signals",
    "validate_candle_series",
    "validate_interval",
    "validate_symbol",
]
