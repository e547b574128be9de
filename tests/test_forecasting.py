"""Tests for the forecasting engine and monthly trends."""

from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from kharcha.forecasting import (
    INSUFFICIENT_HISTORY_MESSAGE,
    ForecastingEngine,
    TrendAnalyzer,
    calculate_trend,
    is_recurring,
)
from kharcha.forecasting.engine import confidence_for
from kharcha.models.expense import Category, ExpenseRecord
from kharcha.models.forecast import ConfidenceLevel, TrendDirection
from kharcha.queries import QueryExecutionError
from kharcha.services.storage import StorageError

from conftest import NOW, USER


def _records(*dates, category=Category.RENT, amount=100):
    return [
        ExpenseRecord(user_id=USER, amount=Decimal(amount), category=category, date=d)
        for d in dates
    ]


def _seed_food(store, days, month=6, year=2024):
    for day in days:
        store.add(USER, 100, Category.FOOD, datetime(year, month, day))


MONTHLY_RENT_DATES = [datetime(2024, month, 1) for month in range(1, 7)]


class TestRecurringDetection:
    """Tests for the roughly-monthly cadence check."""

    def test_monthly_is_recurring(self):
        """Test first-of-month records are recurring."""
        assert is_recurring(_records(*MONTHLY_RENT_DATES))

    def test_needs_three_records(self):
        """Test two records are never enough."""
        assert not is_recurring(_records(datetime(2024, 1, 1), datetime(2024, 2, 1)))

    def test_one_irregular_gap_breaks_it(self):
        """Test a single interval more than a week off the mean disqualifies."""
        dates = [
            datetime(2024, 1, 1), datetime(2024, 2, 1), datetime(2024, 3, 1),
            datetime(2024, 3, 20), datetime(2024, 5, 1), datetime(2024, 6, 1),
        ]
        assert not is_recurring(_records(*dates))

    def test_weekly_is_not_recurring(self):
        """Test a steady weekly cadence is outside the monthly band."""
        dates = [datetime(2024, 6, day) for day in (1, 8, 15, 22)]
        assert not is_recurring(_records(*dates))

    def test_order_does_not_matter(self):
        """Test dates are sorted before measuring gaps."""
        assert is_recurring(_records(*reversed(MONTHLY_RENT_DATES)))


class TestTrend:
    """Tests for calculate_trend."""

    def test_even_series(self):
        """Test halves of an even-length series."""
        assert calculate_trend([Decimal(100), Decimal(200)]) == 1

    def test_odd_series_shares_middle(self):
        """Test the middle amount belongs to both halves."""
        trend = calculate_trend([Decimal(100), Decimal(150), Decimal(200)])
        assert trend == Decimal("0.4")

    def test_single_amount(self):
        """Test one amount has no trend."""
        assert calculate_trend([Decimal(500)]) == 0

    def test_confidence_tiers(self):
        """Test confidence by record count."""
        assert confidence_for(19) == ConfidenceLevel.LOW
        assert confidence_for(20) == ConfidenceLevel.MEDIUM
        assert confidence_for(49) == ConfidenceLevel.MEDIUM
        assert confidence_for(50) == ConfidenceLevel.HIGH


class TestForecastingEngine:
    """Tests for the prediction bundle."""

    @pytest.mark.asyncio
    async def test_insufficient_history(self, store):
        """Test fewer than ten records gives an empty low-confidence bundle."""
        _seed_food(store, range(1, 10))

        bundle = await ForecastingEngine(store).forecast(USER, now=NOW)

        assert bundle.confidence == ConfidenceLevel.LOW
        assert bundle.regular == {}
        assert bundle.irregular == {}
        assert bundle.by_category == {}
        assert bundle.total == 0
        assert bundle.message == INSUFFICIENT_HISTORY_MESSAGE
        assert bundle.record_count == 9

    @pytest.mark.asyncio
    async def test_history_outside_window_is_ignored(self, store):
        """Test records older than six months don't count."""
        _seed_food(store, range(1, 20), month=11, year=2023)

        bundle = await ForecastingEngine(store).forecast(USER, now=NOW)

        assert bundle.message == INSUFFICIENT_HISTORY_MESSAGE

    @pytest.mark.asyncio
    async def test_regular_category(self, store):
        """Test a monthly rent becomes a regular prediction."""
        for date in MONTHLY_RENT_DATES:
            store.add(USER, 10000, Category.RENT, date)
        _seed_food(store, [2, 3, 4, 5])

        bundle = await ForecastingEngine(store).forecast(USER, now=NOW)

        assert bundle.message is None
        assert set(bundle.regular) == {"rent"}
        rent = bundle.regular["rent"]
        assert rent.predicted == 10000
        assert rent.average == 10000
        assert rent.trend == TrendDirection.STABLE
        assert rent.confidence == ConfidenceLevel.HIGH
        assert bundle.irregular == {}
        assert bundle.total == 10000
        assert bundle.confidence == ConfidenceLevel.LOW
        assert bundle.insights == []

    @pytest.mark.asyncio
    async def test_by_category_uses_last_two_months(self, store):
        """Test the short window starts two months back."""
        for date in MONTHLY_RENT_DATES:
            store.add(USER, 10000, Category.RENT, date)
        _seed_food(store, [2, 3, 4])
        store.add(USER, 400, Category.FOOD, datetime(2024, 6, 5))

        bundle = await ForecastingEngine(store).forecast(USER, now=NOW)

        rent = bundle.by_category["rent"]
        assert rent.count == 3  # April, May, June
        food = bundle.by_category["food"]
        assert food.predicted == 175
        assert (food.range.min, food.range.max) == (100, 400)
        assert food.count == 4

    @pytest.mark.asyncio
    async def test_increasing_trend(self, store):
        """Test a rising recurring amount is projected upwards and flagged."""
        for date, amount in zip(MONTHLY_RENT_DATES, [10000] * 3 + [12000] * 3):
            store.add(USER, amount, Category.RENT, date)
        _seed_food(store, [2, 3, 4, 5])

        bundle = await ForecastingEngine(store).forecast(USER, now=NOW)

        rent = bundle.regular["rent"]
        assert rent.average == 11000
        assert rent.predicted == 13200
        assert rent.trend == TrendDirection.INCREASING
        assert rent.trend_rate == pytest.approx(0.2)
        messages = [insight.message for insight in bundle.insights]
        assert messages == [
            "Your rent expenses are trending upward. Consider reviewing this category."
        ]

    @pytest.mark.asyncio
    async def test_breaking_cadence_removes_regular(self, store):
        """Test one off-cadence record drops the category from regular."""
        dates = list(MONTHLY_RENT_DATES)
        dates[3] = datetime(2024, 3, 20)
        for date in dates:
            store.add(USER, 10000, Category.RENT, date)
        _seed_food(store, [2, 3, 4, 5])

        bundle = await ForecastingEngine(store).forecast(USER, now=NOW)

        assert bundle.regular == {}

    @pytest.mark.asyncio
    async def test_irregular_in_festival_month(self, store):
        """Test the seasonal uplift in a festival month."""
        now = datetime(2024, 10, 15)
        store.add(USER, 5000, Category.TRAVEL, datetime(2024, 4, 10))
        store.add(USER, 3000, Category.TRAVEL, datetime(2024, 6, 10))
        store.add(USER, 4000, Category.TRAVEL, datetime(2024, 8, 10))
        _seed_food(store, range(1, 8), month=10)

        bundle = await ForecastingEngine(store).forecast(USER, now=now)

        travel = bundle.irregular["travel"]
        assert travel.frequency == pytest.approx(0.5)
        assert travel.frequency_label == "occasional"
        assert travel.probability == pytest.approx(0.75)
        assert travel.predicted_amount == 6000
        assert travel.confidence == ConfidenceLevel.LOW
        assert bundle.total == 4500
        assert [(i.type, i.message) for i in bundle.insights] == [
            ("info", "High probability of travel expenses next month. "
                     "Consider setting aside ₹6,000."),
            ("warning", "Predicted expenses are 10% higher than last month. Plan accordingly."),
        ]

    @pytest.mark.asyncio
    async def test_irregular_outside_festival_months(self, store):
        """Test no uplift when the current month isn't a festival month."""
        for date in [datetime(2024, 1, 10), datetime(2024, 2, 10),
                     datetime(2024, 5, 10), datetime(2024, 5, 20)]:
            store.add(USER, 2000, Category.TRAVEL, date)
        _seed_food(store, range(1, 7))

        bundle = await ForecastingEngine(store).forecast(USER, now=NOW)

        travel = bundle.irregular["travel"]
        assert travel.probability == pytest.approx(0.5)
        assert travel.predicted_amount == 2000
        assert travel.confidence == ConfidenceLevel.MEDIUM
        assert "travel" not in bundle.regular
        assert bundle.total == 1000

    @pytest.mark.asyncio
    async def test_probability_is_capped(self, store):
        """Test probability never exceeds the cap."""
        for month in range(1, 7):
            store.add(USER, 1000, Category.EMERGENCY, datetime(2024, month, 5))
        _seed_food(store, [7, 8, 9, 10])

        bundle = await ForecastingEngine(store).forecast(USER, now=NOW)

        emergency = bundle.irregular["emergency"]
        assert emergency.frequency == pytest.approx(1.0)
        assert emergency.frequency_label == "frequent"
        assert emergency.probability == pytest.approx(0.9)

    @pytest.mark.asyncio
    async def test_only_watch_list_is_irregular(self, store):
        """Test categories outside the watch-list are never irregular."""
        _seed_food(store, range(1, 12))
        bundle = await ForecastingEngine(store).forecast(USER, now=NOW)
        assert bundle.irregular == {}

    @pytest.mark.asyncio
    async def test_storage_failure(self):
        """Test a failed history read is an error, not a degraded bundle."""
        failing = AsyncMock()
        failing.find.side_effect = StorageError("sheet unavailable")

        with pytest.raises(QueryExecutionError):
            await ForecastingEngine(failing).forecast(USER, now=NOW)


class TestTrendAnalyzer:
    """Tests for month-by-month totals."""

    @pytest.mark.asyncio
    async def test_monthly_trends(self, store):
        """Test totals per month and the growth rate."""
        store.add(USER, 600, Category.FOOD, datetime(2024, 5, 3))
        store.add(USER, 400, Category.TRAVEL, datetime(2024, 5, 9))
        store.add(USER, 1500, Category.FOOD, datetime(2024, 6, 2))

        report = await TrendAnalyzer(store).monthly_trends(USER, now=NOW)

        assert [m.month for m in report.months] == ["2024-05", "2024-06"]
        assert report.months[0].total == 1000
        assert report.months[0].count == 2
        assert report.months[0].by_category == {"food": 600, "travel": 400}
        assert report.growth_rate == 50.0

    @pytest.mark.asyncio
    async def test_no_history(self, store):
        """Test an empty history has no growth."""
        report = await TrendAnalyzer(store).monthly_trends(USER, now=NOW)
        assert report.months == []
        assert report.growth_rate == 0.0
