"""
Spending Forecasting Engine

DESIGN DECISION: Forecasts are HEURISTIC and RECOMPUTED.
Nothing is cached or persisted; every call reads the history window
again and applies the same fixed rules:

- REGULAR: categories with a roughly monthly cadence, projected from
  their average and trend
- IRREGULAR: a watch-list of categories that appear now and then,
  projected as a probability and an expected amount
- BY CATEGORY: plain averages over the last couple of months

With too little history the engine degrades to an empty, low-confidence
bundle instead of failing.
"""

import math
from collections import defaultdict
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

import structlog

from kharcha.config import get_settings
from kharcha.models.expense import Category, ExpenseRecord, Period, Which
from kharcha.models.forecast import (
    AmountRange,
    CategoryPrediction,
    ConfidenceLevel,
    Insight,
    IrregularPrediction,
    PredictionBundle,
    RegularPrediction,
    TrendDirection,
)
from kharcha.queries import QueryExecutionError
from kharcha.responses.formatting import format_amount
from kharcha.services.storage import ExpenseStoreInterface, StorageError
from kharcha.temporal import months_back, resolve


logger = structlog.get_logger()

IRREGULAR_CATEGORIES = (
    Category.EMERGENCY,
    Category.CELEBRATION,
    Category.HEALTHCARE,
    Category.TRAVEL,
)

INSUFFICIENT_HISTORY_MESSAGE = "Need more historical data for accurate predictions"

# Recurring cadence, in days
MAX_INTERVAL_DEVIATION = 7
MIN_MEAN_INTERVAL = 20
MAX_MEAN_INTERVAL = 40


def round_amount(value) -> int:
    """Round half up to a whole rupee."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _mean(values: list[Decimal]) -> Decimal:
    return sum(values, Decimal("0")) / len(values)


def group_by_category(records: list[ExpenseRecord]) -> dict[str, list[ExpenseRecord]]:
    groups: dict[str, list[ExpenseRecord]] = defaultdict(list)
    for record in records:
        groups[record.category.value].append(record)
    return dict(groups)


def is_recurring(records: list[ExpenseRecord]) -> bool:
    """
    True when a category's records arrive roughly once a month.

    Needs at least three records. Every gap between consecutive dates
    must sit strictly within a week of the mean gap, and the mean gap
    must be strictly between 20 and 40 days.
    """
    if len(records) < 3:
        return False

    dates = sorted(record.date for record in records)
    intervals = [
        (later - earlier).total_seconds() / 86400
        for earlier, later in zip(dates, dates[1:])
    ]
    mean_interval = sum(intervals) / len(intervals)

    steady = all(abs(interval - mean_interval) < MAX_INTERVAL_DEVIATION for interval in intervals)
    return steady and MIN_MEAN_INTERVAL < mean_interval < MAX_MEAN_INTERVAL


def calculate_trend(amounts: list[Decimal]) -> Decimal:
    """
    Relative change between the earlier and later halves of a series.

    Both halves hold ceil(n/2) amounts, so with an odd count the middle
    amount belongs to both.
    """
    if len(amounts) < 2:
        return Decimal("0")

    half = math.ceil(len(amounts) / 2)
    first = _mean(amounts[:half])
    second = _mean(amounts[-half:])
    if first == 0:
        return Decimal("0")
    return (second - first) / first


def confidence_for(record_count: int) -> ConfidenceLevel:
    if record_count < 20:
        return ConfidenceLevel.LOW
    if record_count < 50:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.HIGH


class ForecastingEngine:
    """
    Predicts next month's spending from a user's recent history.

    Usage:
        engine = ForecastingEngine(store)
        bundle = await engine.forecast(user_id)
    """

    def __init__(self, store: ExpenseStoreInterface):
        self._store = store
        self._settings = get_settings().engine

    async def forecast(
        self,
        user_id: str,
        now: Optional[datetime] = None,
    ) -> PredictionBundle:
        """
        Build the prediction bundle for a user.

        Raises:
            QueryExecutionError: If the history cannot be read
        """
        now = now or datetime.now()
        since = months_back(now, self._settings.forecast_history_months)

        try:
            records = await self._store.find(
                user_id, date_from=since, sort_by="date", descending=False
            )
        except StorageError as e:
            raise QueryExecutionError(f"Failed to read expense history: {e}") from e

        if len(records) < self._settings.forecast_min_records:
            logger.info(
                "forecast_degraded",
                user_id=user_id,
                record_count=len(records),
            )
            return PredictionBundle(
                confidence=ConfidenceLevel.LOW,
                message=INSUFFICIENT_HISTORY_MESSAGE,
                record_count=len(records),
                generated_at=now,
            )

        regular = self.predict_regular(records)
        irregular = self.predict_irregular(records, now)
        total = self.total_prediction(regular, irregular)

        return PredictionBundle(
            regular=regular,
            irregular=irregular,
            by_category=self.predict_by_category(records, now),
            total=total,
            confidence=confidence_for(len(records)),
            insights=self.generate_insights(records, regular, irregular, total, now),
            record_count=len(records),
            generated_at=now,
        )

    # =========================================================================
    # PREDICTORS
    # =========================================================================

    def predict_regular(self, records: list[ExpenseRecord]) -> dict[str, RegularPrediction]:
        predictions = {}
        for category, group in group_by_category(records).items():
            if not is_recurring(group):
                continue

            amounts = [record.amount for record in sorted(group, key=lambda r: r.date)]
            average = _mean(amounts)
            trend = calculate_trend(amounts)

            if trend > 0:
                direction = TrendDirection.INCREASING
            elif trend < 0:
                direction = TrendDirection.DECREASING
            else:
                direction = TrendDirection.STABLE

            predictions[category] = RegularPrediction(
                predicted=round_amount(average * (1 + trend)),
                average=round_amount(average),
                trend=direction,
                trend_rate=float(trend),
            )
        return predictions

    def _seasonal_factor(self, group: list[ExpenseRecord], now: datetime) -> Decimal:
        """Festival uplift, applied only when the category has festival history."""
        festival_months = self._settings.festival_months_set
        if now.month in festival_months and any(r.date.month in festival_months for r in group):
            return Decimal(str(self._settings.seasonal_factor))
        return Decimal("1")

    def predict_irregular(
        self,
        records: list[ExpenseRecord],
        now: datetime,
    ) -> dict[str, IrregularPrediction]:
        groups = group_by_category(records)
        window = self._settings.forecast_history_months
        cap = Decimal(str(self._settings.max_irregular_probability))

        predictions = {}
        for category in IRREGULAR_CATEGORIES:
            group = groups.get(category.value)
            if not group:
                continue

            active_months = {(r.date.year, r.date.month) for r in group}
            frequency = Decimal(len(active_months)) / window
            seasonal = self._seasonal_factor(group, now)

            predictions[category.value] = IrregularPrediction(
                probability=float(min(frequency * seasonal, cap)),
                predicted_amount=round_amount(_mean([r.amount for r in group]) * seasonal),
                frequency=float(frequency),
                frequency_label="frequent" if frequency > Decimal("0.5") else "occasional",
                confidence=ConfidenceLevel.MEDIUM if len(group) > 3 else ConfidenceLevel.LOW,
            )
        return predictions

    def predict_by_category(
        self,
        records: list[ExpenseRecord],
        now: datetime,
    ) -> dict[str, CategoryPrediction]:
        since = months_back(now, self._settings.forecast_recent_months)
        recent = [record for record in records if record.date >= since]

        predictions = {}
        for category, group in group_by_category(recent).items():
            amounts = [record.amount for record in group]
            predictions[category] = CategoryPrediction(
                predicted=round_amount(_mean(amounts)),
                range=AmountRange(min=round_amount(min(amounts)), max=round_amount(max(amounts))),
                count=len(amounts),
            )
        return predictions

    @staticmethod
    def total_prediction(
        regular: dict[str, RegularPrediction],
        irregular: dict[str, IrregularPrediction],
    ) -> int:
        regular_total = sum(Decimal(p.predicted) for p in regular.values())
        irregular_total = sum(
            Decimal(p.predicted_amount) * Decimal(str(p.probability))
            for p in irregular.values()
        )
        return round_amount(regular_total + irregular_total)

    def generate_insights(
        self,
        records: list[ExpenseRecord],
        regular: dict[str, RegularPrediction],
        irregular: dict[str, IrregularPrediction],
        total: int,
        now: datetime,
    ) -> list[Insight]:
        insights = []

        for category, prediction in regular.items():
            if prediction.trend is TrendDirection.INCREASING:
                insights.append(Insight(
                    type="warning",
                    message=f"Your {category} expenses are trending upward. Consider reviewing this category.",
                ))

        for category, prediction in irregular.items():
            if prediction.probability > 0.6:
                insights.append(Insight(
                    type="info",
                    message=(
                        f"High probability of {category} expenses next month. "
                        f"Consider setting aside ₹{format_amount(prediction.predicted_amount)}."
                    ),
                ))

        last_month = resolve(Period.MONTH, Which.LAST, now)
        last_month_total = sum(
            (r.amount for r in records if last_month.contains(r.date)),
            Decimal("0"),
        )
        if total > last_month_total * Decimal("1.1"):
            insights.append(Insight(
                type="warning",
                message="Predicted expenses are 10% higher than last month. Plan accordingly.",
            ))

        return insights
