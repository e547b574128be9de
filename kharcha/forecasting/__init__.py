"""Spending forecasts and monthly trends."""

from kharcha.forecasting.engine import (
    INSUFFICIENT_HISTORY_MESSAGE,
    IRREGULAR_CATEGORIES,
    ForecastingEngine,
    calculate_trend,
    is_recurring,
)
from kharcha.forecasting.trends import TrendAnalyzer

__all__ = [
    "INSUFFICIENT_HISTORY_MESSAGE",
    "IRREGULAR_CATEGORIES",
    "ForecastingEngine",
    "TrendAnalyzer",
    "calculate_trend",
    "is_recurring",
]
