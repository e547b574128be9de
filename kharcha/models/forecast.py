"""
Forecast Models

The prediction bundle is recomputed from history on every request.
It is never cached and never persisted.
"""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field


class ConfidenceLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class RegularPrediction(BaseModel):
    """Forecast for a category that recurs roughly monthly."""

    predicted: int
    average: int
    trend: TrendDirection
    trend_rate: float = Field(
        ...,
        description="(second-half mean - first-half mean) / first-half mean"
    )
    confidence: ConfidenceLevel = ConfidenceLevel.HIGH


class IrregularPrediction(BaseModel):
    """Forecast for a category that shows up now and then."""

    probability: float = Field(..., ge=0.0, le=1.0)
    predicted_amount: int
    frequency: float = Field(
        ...,
        ge=0.0,
        description="Share of the history window's months with an expense"
    )
    frequency_label: Literal["frequent", "occasional"]
    confidence: ConfidenceLevel


class AmountRange(BaseModel):
    min: int
    max: int


class CategoryPrediction(BaseModel):
    """Short-window average for one category."""

    predicted: int
    range: AmountRange
    count: int = Field(ge=0)


class Insight(BaseModel):
    type: Literal["warning", "info"]
    message: str


class PredictionBundle(BaseModel):
    """
    Next month's spending forecast.

    With too little history the maps are empty, confidence is low
    and message explains why.
    """

    regular: dict[str, RegularPrediction] = Field(default_factory=dict)
    irregular: dict[str, IrregularPrediction] = Field(default_factory=dict)
    by_category: dict[str, CategoryPrediction] = Field(default_factory=dict)
    total: int = 0
    confidence: ConfidenceLevel = ConfidenceLevel.LOW
    insights: list[Insight] = Field(default_factory=list)
    message: Optional[str] = None
    record_count: int = Field(default=0, ge=0)
    generated_at: datetime = Field(default_factory=datetime.now)


class MonthlyTrend(BaseModel):
    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    total: int = 0
    count: int = 0
    by_category: dict[str, int] = Field(default_factory=dict)


class TrendReport(BaseModel):
    months: list[MonthlyTrend] = Field(default_factory=list)
    growth_rate: float = Field(
        default=0.0,
        description="Percent change of the latest month over the one before"
    )
