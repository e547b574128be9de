"""
Tests for the query executor.

Records are seeded straight into the in-memory store; the reference
instant is NOW from conftest (Saturday 15 June 2024).
"""

from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from kharcha.models.expense import (
    AveragePeriod,
    Category,
    Intent,
    IntentAction,
    NewExpense,
    Period,
    Which,
)
from kharcha.queries import QueryExecutionError, QueryExecutor
from kharcha.services.storage import StorageError
from kharcha.validation import InvalidCommandError

from conftest import NOW, USER


class TestAddExpense:
    """Tests for creating expenses."""

    @pytest.mark.asyncio
    async def test_add_expense_classifies_description(self, executor, store):
        """Test the description decides the category."""
        record = await executor.add_expense(USER, 200, "food", now=NOW)
        assert record.category == Category.FOOD
        assert record.amount == Decimal("200")
        assert record.date == NOW
        assert record.user_id == USER
        assert store.count(USER) == 1

    @pytest.mark.asyncio
    async def test_add_expense_suggests_tags(self, executor):
        """Test tags come from the description."""
        record = await executor.add_expense(USER, 350, "pizza with friends", now=NOW)
        assert record.tags == ["pizza", "friends"]

    @pytest.mark.asyncio
    async def test_add_expense_uses_amount_heuristics(self, executor):
        """Test an unclassifiable large amount leans towards rent."""
        record = await executor.add_expense(USER, 12000, "xyz", now=NOW)
        assert record.category == Category.RENT

    @pytest.mark.asyncio
    async def test_create_expense_categorises_other(self, executor):
        """Test an uncategorised expense is classified from its text."""
        record = await executor.create_expense(
            USER,
            NewExpense(amount=Decimal("800"), vendor="Apollo Pharmacy", date=NOW),
        )
        assert record.category == Category.HEALTHCARE

    @pytest.mark.asyncio
    async def test_create_expense_keeps_given_category(self, executor):
        """Test an explicit category is never overridden."""
        record = await executor.create_expense(
            USER,
            NewExpense(amount=Decimal("800"), category=Category.PERSONAL, description="pizza"),
        )
        assert record.category == Category.PERSONAL
        assert record.tags == ["pizza"]

    @pytest.mark.asyncio
    async def test_create_expense_rejects_absurd_amount(self, executor, store):
        """Test an expense above the ceiling is never stored."""
        with pytest.raises(InvalidCommandError):
            await executor.create_expense(
                USER,
                NewExpense(amount=Decimal("20000000"), description="car", date=NOW),
            )
        assert store.count(USER) == 0


class TestQuerySpending:
    """Tests for spending totals."""

    @pytest.mark.asyncio
    async def test_all_categories(self, executor, store):
        """Test 'all' sums every record in the range."""
        store.add(USER, 100, Category.FOOD, datetime(2024, 6, 15, 9))
        store.add(USER, 50, Category.TRAVEL, datetime(2024, 6, 15, 10))
        store.add(USER, 999, Category.FOOD, datetime(2024, 6, 14, 10))  # yesterday

        result = await executor.query_spending(USER, "all", Period.TODAY, Which.THIS, now=NOW)

        assert result.category == "all"
        assert result.total == Decimal("150")
        assert result.count == 2
        assert result.expenses[0].amount == Decimal("50")  # newest first

    @pytest.mark.asyncio
    async def test_literal_category(self, executor, store):
        """Test a category name filters directly."""
        store.add(USER, 100, Category.FOOD, datetime(2024, 6, 3))
        store.add(USER, 70, Category.TRAVEL, datetime(2024, 6, 4))

        result = await executor.query_spending(USER, "food", now=NOW)

        assert result.category == "food"
        assert result.total == Decimal("100")

    @pytest.mark.asyncio
    async def test_spoken_category_is_classified(self, executor, store):
        """Test a Hinglish word maps to its category."""
        store.add(USER, 100, Category.FOOD, datetime(2024, 6, 3))
        store.add(USER, 70, Category.TRAVEL, datetime(2024, 6, 4))

        result = await executor.query_spending(USER, "khane", now=NOW)

        assert result.category == "food"
        assert result.total == Decimal("100")

    @pytest.mark.asyncio
    async def test_unmapped_category_means_all(self, executor, store):
        """Test an unrecognisable category applies no filter."""
        store.add(USER, 100, Category.FOOD, datetime(2024, 6, 3))
        store.add(USER, 70, Category.TRAVEL, datetime(2024, 6, 4))

        result = await executor.query_spending(USER, "xyz", now=NOW)

        assert result.category == "xyz"
        assert result.total == Decimal("170")

    @pytest.mark.asyncio
    async def test_result_keeps_five_most_recent(self, executor, store):
        """Test only the newest five records are attached."""
        for day in range(1, 9):
            store.add(USER, day, Category.FOOD, datetime(2024, 6, day))

        result = await executor.query_spending(USER, "all", now=NOW)

        assert result.count == 8
        assert [e.amount for e in result.expenses] == [8, 7, 6, 5, 4]

    @pytest.mark.asyncio
    async def test_other_users_are_invisible(self, executor, store):
        """Test records are scoped to their owner."""
        store.add("someone-else", 500, Category.FOOD, datetime(2024, 6, 3))
        result = await executor.query_spending(USER, "all", now=NOW)
        assert result.count == 0
        assert result.total == 0


class TestAggregates:
    """Tests for summary, biggest, top and last."""

    @pytest.mark.asyncio
    async def test_summary(self, executor, store):
        """Test totals and the top category."""
        store.add(USER, 100, Category.FOOD, datetime(2024, 6, 2))
        store.add(USER, 50, Category.FOOD, datetime(2024, 6, 3))
        store.add(USER, 80, Category.TRAVEL, datetime(2024, 6, 4))

        summary = await executor.get_summary(USER, Period.MONTH, Which.THIS, now=NOW)

        assert summary.total == Decimal("230")
        assert summary.count == 3
        assert summary.top_category.name == "food"
        assert summary.top_category.amount == Decimal("150")
        assert summary.by_category == {"food": Decimal("150"), "travel": Decimal("80")}

    @pytest.mark.asyncio
    async def test_summary_empty(self, executor):
        """Test an empty period has no top category."""
        summary = await executor.get_summary(USER, now=NOW)
        assert summary.count == 0
        assert summary.top_category is None

    @pytest.mark.asyncio
    async def test_biggest_expense(self, executor, store):
        """Test the single largest record in the range wins."""
        store.add(USER, 100, Category.FOOD, datetime(2024, 6, 2))
        store.add(USER, 900, Category.SHOPPING, datetime(2024, 6, 3), description="shoes")
        store.add(USER, 5000, Category.RENT, datetime(2024, 5, 1))  # last month

        biggest = await executor.biggest_expense(USER, Period.MONTH, Which.THIS, now=NOW)

        assert biggest.amount == Decimal("900")
        assert biggest.description == "shoes"

    @pytest.mark.asyncio
    async def test_biggest_expense_none(self, executor):
        """Test an empty range returns None."""
        assert await executor.biggest_expense(USER, now=NOW) is None

    @pytest.mark.asyncio
    async def test_top_categories(self, executor, store):
        """Test categories ranked by total."""
        store.add(USER, 100, Category.FOOD, datetime(2024, 6, 2))
        store.add(USER, 50, Category.FOOD, datetime(2024, 6, 3))
        store.add(USER, 80, Category.TRAVEL, datetime(2024, 6, 4))

        top = await executor.top_categories(USER, limit=2, now=NOW)

        assert top == [("food", Decimal("150")), ("travel", Decimal("80"))]

    @pytest.mark.asyncio
    async def test_top_categories_default_limit(self, executor, store):
        """Test three categories are returned by default."""
        for amount, category in [(10, "food"), (20, "travel"), (30, "rent"), (40, "personal")]:
            store.add(USER, amount, category, datetime(2024, 6, 2))

        top = await executor.top_categories(USER, now=NOW)

        assert [name for name, _ in top] == ["personal", "rent", "travel"]

    @pytest.mark.asyncio
    async def test_last_expenses(self, executor, store):
        """Test the newest records across all time."""
        store.add(USER, 1, Category.FOOD, datetime(2023, 1, 1))
        store.add(USER, 2, Category.FOOD, datetime(2024, 6, 1))
        store.add(USER, 3, Category.FOOD, datetime(2024, 6, 10))

        latest = await executor.last_expenses(USER, limit=2)

        assert [e.amount for e in latest] == [3, 2]


class TestSavings:
    """Tests for prorated savings."""

    @pytest.mark.asyncio
    async def test_week_savings(self, executor, store, budgets):
        """Test a week gets seven thirtieths of a June income."""
        budgets.set_baseline(USER, monthly_income=30000)
        store.add(USER, 2000, Category.FOOD, datetime(2024, 6, 11))
        store.add(USER, 1500, Category.TRAVEL, datetime(2024, 6, 14))

        savings = await executor.savings(USER, Period.WEEK, Which.THIS, now=NOW)

        assert savings.baseline_type == "income"
        assert savings.effective_income == Decimal("7000")
        assert savings.total_expenses == Decimal("3500")
        assert savings.savings == Decimal("3500")
        assert savings.saved

    @pytest.mark.asyncio
    async def test_budget_fallback(self, executor, budgets):
        """Test the budget is used when no income is set."""
        budgets.set_baseline(USER, monthly_budget=20000)
        savings = await executor.savings(USER, Period.MONTH, Which.THIS, now=NOW)
        assert savings.baseline_type == "budget"
        assert savings.effective_income == Decimal("20000")

    @pytest.mark.asyncio
    async def test_year_multiplies_by_twelve(self, executor, budgets):
        """Test a year is twelve monthly baselines."""
        budgets.set_baseline(USER, monthly_income=10000)
        savings = await executor.savings(USER, Period.YEAR, Which.THIS, now=NOW)
        assert savings.effective_income == Decimal("120000")

    @pytest.mark.asyncio
    async def test_overspending(self, executor, store, budgets):
        """Test negative savings when spending beats the baseline."""
        budgets.set_baseline(USER, monthly_income=30000)
        store.add(USER, 1500, Category.FOOD, datetime(2024, 6, 15, 9))

        savings = await executor.savings(USER, Period.TODAY, Which.THIS, now=NOW)

        assert savings.effective_income == Decimal("1000")
        assert savings.savings == Decimal("-500")
        assert not savings.saved

    @pytest.mark.asyncio
    async def test_no_baseline(self, executor):
        """Test savings without any income or budget is None."""
        assert await executor.savings(USER, now=NOW) is None

    @pytest.mark.asyncio
    async def test_no_budget_store(self, store):
        """Test an executor without a budget store reports no baseline."""
        executor = QueryExecutor(store)
        assert await executor.savings(USER, now=NOW) is None


class TestCompareAndAverage:
    """Tests for period comparison and averages."""

    @pytest.mark.asyncio
    async def test_compare_periods(self, executor, store):
        """Test diff and percentage against the comparison period."""
        store.add(USER, 1000, Category.FOOD, datetime(2024, 6, 5))
        store.add(USER, 800, Category.FOOD, datetime(2024, 5, 5))

        result = await executor.compare_periods(
            USER,
            {"period": Period.MONTH, "which": Which.THIS},
            {"period": Period.MONTH, "which": Which.LAST},
            now=NOW,
        )

        assert result.base.total == Decimal("1000")
        assert result.vs.total == Decimal("800")
        assert result.diff == Decimal("200")
        assert result.pct == Decimal("25")

    @pytest.mark.asyncio
    async def test_compare_with_empty_period(self, executor, store):
        """Test pct is None when the comparison period is empty."""
        store.add(USER, 1000, Category.FOOD, datetime(2024, 6, 5))

        result = await executor.compare_periods(USER, ("month", "this"), ("month", "last"), now=NOW)

        assert result.diff == Decimal("1000")
        assert result.pct is None

    @pytest.mark.asyncio
    async def test_average_day(self, executor, store):
        """Test daily average divides by days elapsed."""
        store.add(USER, 1500, Category.FOOD, datetime(2024, 6, 2))
        result = await executor.avg_spending(USER, AveragePeriod.DAY, now=NOW)
        assert result.average == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_average_week(self, executor, store):
        """Test weekly average over the trailing eight weeks."""
        store.add(USER, 800, Category.FOOD, datetime(2024, 5, 1))
        store.add(USER, 9999, Category.FOOD, datetime(2024, 4, 1))  # outside the window
        result = await executor.avg_spending(USER, "week", now=NOW)
        assert result.average == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_average_year(self, executor, store):
        """Test yearly average divides by months elapsed."""
        store.add(USER, 1200, Category.FOOD, datetime(2024, 2, 1))
        store.add(USER, 500, Category.FOOD, datetime(2023, 12, 1))  # last year
        result = await executor.avg_spending(USER, "year", now=NOW)
        assert result.average == Decimal("200.00")

    @pytest.mark.asyncio
    async def test_average_month_is_month_to_date_total(self, executor, store):
        """Test the month figure is the undivided month-to-date total."""
        store.add(USER, 1200, Category.FOOD, datetime(2024, 6, 2))
        result = await executor.avg_spending(USER, "month", now=NOW)
        assert result.average == Decimal("1200.00")


class TestExecute:
    """Tests for intent dispatch and error propagation."""

    @pytest.mark.asyncio
    async def test_execute_routes_by_action(self, executor, store):
        """Test execute runs the handler for the intent."""
        store.add(USER, 100, Category.FOOD, datetime(2024, 6, 15, 9))
        intent = Intent(
            action=IntentAction.QUERY_SPENDING,
            slots={"category": "all", "period": Period.TODAY, "which": Which.THIS},
        )
        result = await executor.execute(USER, intent, now=NOW)
        assert result.total == Decimal("100")

    @pytest.mark.asyncio
    async def test_execute_unknown_returns_none(self, executor):
        """Test unknown intents don't touch storage."""
        assert await executor.execute(USER, Intent(action=IntentAction.UNKNOWN), now=NOW) is None

    @pytest.mark.asyncio
    async def test_storage_failure_propagates(self, classifier):
        """Test store errors surface as QueryExecutionError, unretried."""
        failing = AsyncMock()
        failing.find.side_effect = StorageError("sheet unavailable")
        executor = QueryExecutor(failing, classifier)

        with pytest.raises(QueryExecutionError, match="sheet unavailable") as exc_info:
            await executor.get_summary(USER, now=NOW)

        assert isinstance(exc_info.value.__cause__, StorageError)
        assert failing.find.await_count == 1

    @pytest.mark.asyncio
    async def test_create_failure_propagates(self, classifier):
        """Test a failed write is not reported as success."""
        failing = AsyncMock()
        failing.create.side_effect = StorageError("quota exceeded")
        executor = QueryExecutor(failing, classifier)

        with pytest.raises(QueryExecutionError):
            await executor.add_expense(USER, 200, "food", now=NOW)
