"""
Query Execution Engine

DESIGN DECISION: Query execution is DETERMINISTIC.
The intent parser turns words into an Intent. This engine runs that
intent against the records actually stored. The response generator then
phrases whatever this engine returned, and nothing else.

GUARANTEES:
- Only returns real data from storage
- Every date bound comes from the temporal resolver
- Read-only, except add_expense / create_expense (one create each)
- A storage failure propagates as QueryExecutionError; nothing is retried
  and no partial result is returned
"""

import asyncio
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Union

from kharcha.classification import ExpenseClassifier
from kharcha.config import get_settings
from kharcha.models.expense import (
    AveragePeriod,
    Category,
    ExpenseRecord,
    Intent,
    IntentAction,
    NewExpense,
    Period,
    PeriodRange,
    Which,
)
from kharcha.models.results import (
    AverageResult,
    CategoryTotal,
    ComparisonResult,
    PeriodTotal,
    SavingsResult,
    SpendingResult,
    SummaryResult,
)
from kharcha.services.storage import (
    BudgetStoreInterface,
    ExpenseStoreInterface,
    StorageError,
)
from kharcha.temporal import (
    days_in_month,
    month_to_date,
    range_length_days,
    resolve,
    trailing_days,
    year_to_date,
)
from kharcha.validation import CommandValidator, InvalidCommandError


CENTS = Decimal("0.01")

PeriodSpec = Union[dict, tuple]


class QueryExecutionError(Exception):
    """Error during query execution."""
    pass


def _total(records: list[ExpenseRecord]) -> Decimal:
    return sum((record.amount for record in records), Decimal("0"))


def _by_category(records: list[ExpenseRecord]) -> dict[str, Decimal]:
    """Category -> summed amount, in order of first appearance."""
    totals: dict[str, Decimal] = {}
    for record in records:
        key = record.category.value
        totals[key] = totals.get(key, Decimal("0")) + record.amount
    return totals


def _quantize(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def _period_pair(spec: PeriodSpec) -> tuple[Period, Which]:
    if isinstance(spec, dict):
        return Period(spec.get("period", Period.MONTH)), Which(spec.get("which", Which.THIS))
    period, which = spec
    return Period(period), Which(which)


class QueryExecutor:
    """
    Executes intents against expense storage.

    One handler per intent. Each handler takes the user, its slots and
    a reference instant `now`; nothing reads the clock on its own.
    """

    def __init__(
        self,
        expense_store: ExpenseStoreInterface,
        classifier: Optional[ExpenseClassifier] = None,
        budget_store: Optional[BudgetStoreInterface] = None,
    ):
        self._store = expense_store
        self._classifier = classifier or ExpenseClassifier()
        self._budgets = budget_store
        self._validator = CommandValidator()
        self._settings = get_settings().engine

    # =========================================================================
    # DISPATCH
    # =========================================================================

    async def execute(
        self,
        user_id: str,
        intent: Intent,
        now: Optional[datetime] = None,
    ) -> Any:
        """
        Run the handler for an intent.

        Returns the handler's result. Unknown intents return None
        without touching storage.

        Raises:
            QueryExecutionError: If storage fails
        """
        now = now or datetime.now()
        slots = intent.slots
        action = intent.action

        if action is IntentAction.ADD_EXPENSE:
            return await self.add_expense(
                user_id, slots["amount"], slots["description"], now=now
            )
        elif action is IntentAction.QUERY_SPENDING:
            return await self.query_spending(
                user_id,
                category=slots.get("category", "all"),
                period=slots.get("period", Period.MONTH),
                which=slots.get("which", Which.THIS),
                now=now,
            )
        elif action is IntentAction.GET_SUMMARY:
            return await self.get_summary(
                user_id,
                period=slots.get("period", Period.MONTH),
                which=slots.get("which", Which.THIS),
                now=now,
            )
        elif action is IntentAction.BIGGEST_EXPENSE:
            return await self.biggest_expense(
                user_id,
                period=slots.get("period", Period.MONTH),
                which=slots.get("which", Which.THIS),
                now=now,
            )
        elif action is IntentAction.TOP_CATEGORIES:
            return await self.top_categories(
                user_id,
                limit=slots.get("limit"),
                period=slots.get("period", Period.MONTH),
                which=slots.get("which", Which.THIS),
                now=now,
            )
        elif action is IntentAction.SAVINGS:
            return await self.savings(
                user_id,
                period=slots.get("period", Period.MONTH),
                which=slots.get("which", Which.THIS),
                now=now,
            )
        elif action is IntentAction.LAST_EXPENSES:
            return await self.last_expenses(user_id, limit=slots.get("limit"))
        elif action is IntentAction.COMPARE_PERIODS:
            return await self.compare_periods(
                user_id, slots["base"], slots["vs"], now=now
            )
        elif action is IntentAction.AVG_SPENDING:
            return await self.avg_spending(
                user_id, period=slots.get("period", AveragePeriod.MONTH), now=now
            )
        return None

    # =========================================================================
    # STORAGE ACCESS
    # =========================================================================

    async def _find(self, user_id: str, **filters) -> list[ExpenseRecord]:
        try:
            return await self._store.find(user_id, **filters)
        except StorageError as e:
            raise QueryExecutionError(f"Failed to read expenses: {e}") from e

    async def _find_in(
        self,
        user_id: str,
        period_range: PeriodRange,
        **filters,
    ) -> list[ExpenseRecord]:
        return await self._find(
            user_id,
            date_from=period_range.start,
            date_to=period_range.end,
            **filters,
        )

    # =========================================================================
    # WRITE HANDLERS
    # =========================================================================

    async def create_expense(self, user_id: str, expense: NewExpense) -> ExpenseRecord:
        """
        Store an expense, categorising it first if it has no category.

        An expense arriving as "other" with a description or vendor is
        run through the classifier; tags are suggested when none are given.

        Raises:
            InvalidCommandError: If the expense fails validation
            QueryExecutionError: If storage fails
        """
        validation = self._validator.validate_expense(expense)
        if not validation.is_valid:
            raise InvalidCommandError(validation.errors[0].message, validation.errors)

        updates = {}
        text = " ".join(filter(None, [expense.description, expense.vendor]))

        if expense.category is Category.OTHER and text:
            updates["category"] = self._classifier.classify(text, expense.amount)
        if not expense.tags and expense.description:
            updates["tags"] = self._classifier.suggest_tags(expense.description)
        if updates:
            expense = expense.model_copy(update=updates)

        try:
            return await self._store.create(user_id, expense)
        except StorageError as e:
            raise QueryExecutionError(f"Failed to save expense: {e}") from e

    async def add_expense(
        self,
        user_id: str,
        amount: Union[int, Decimal],
        description: str,
        now: Optional[datetime] = None,
    ) -> ExpenseRecord:
        """Create an expense from a spoken amount and description."""
        amount = Decimal(amount)
        expense = NewExpense(
            amount=amount,
            category=self._classifier.classify(description, amount),
            description=description,
            tags=self._classifier.suggest_tags(description),
            date=now or datetime.now(),
        )
        try:
            return await self._store.create(user_id, expense)
        except StorageError as e:
            raise QueryExecutionError(f"Failed to save expense: {e}") from e

    # =========================================================================
    # READ HANDLERS
    # =========================================================================

    def _category_filter(self, category: Optional[str]) -> tuple[Optional[Category], str]:
        """
        Decide which category a spoken category phrase means.

        Returns (filter, reported_name). A literal category name is used
        as-is; anything else goes through the classifier, and "other"
        from the classifier means "don't filter".
        """
        raw = (category or "").strip().lower()
        if not raw or raw == "all":
            return None, "all"

        mapped = Category.parse(raw)
        if mapped is None:
            mapped = self._classifier.classify(raw)
            if mapped is Category.OTHER:
                return None, raw
        return mapped, mapped.value

    async def query_spending(
        self,
        user_id: str,
        category: Optional[str] = "all",
        period: Union[Period, str] = Period.MONTH,
        which: Union[Which, str] = Which.THIS,
        now: Optional[datetime] = None,
    ) -> SpendingResult:
        period_range = resolve(period, which, now or datetime.now())
        category_filter, reported = self._category_filter(category)

        records = await self._find_in(
            user_id,
            period_range,
            category=category_filter,
            sort_by="date",
            descending=True,
        )

        return SpendingResult(
            category=reported,
            period=period_range.period,
            which=period_range.which,
            total=_total(records),
            count=len(records),
            expenses=records[: self._settings.recent_expenses_in_result],
        )

    async def get_summary(
        self,
        user_id: str,
        period: Union[Period, str] = Period.MONTH,
        which: Union[Which, str] = Which.THIS,
        now: Optional[datetime] = None,
    ) -> SummaryResult:
        period_range = resolve(period, which, now or datetime.now())
        records = await self._find_in(user_id, period_range)

        by_category = _by_category(records)
        top = None
        if by_category:
            name = max(by_category, key=by_category.get)
            top = CategoryTotal(name=name, amount=by_category[name])

        return SummaryResult(
            period=period_range.period,
            which=period_range.which,
            total=_total(records),
            count=len(records),
            top_category=top,
            by_category=by_category,
        )

    async def biggest_expense(
        self,
        user_id: str,
        period: Union[Period, str] = Period.MONTH,
        which: Union[Which, str] = Which.THIS,
        now: Optional[datetime] = None,
    ) -> Optional[ExpenseRecord]:
        period_range = resolve(period, which, now or datetime.now())
        records = await self._find_in(
            user_id, period_range, sort_by="amount", descending=True, limit=1
        )
        return records[0] if records else None

    async def top_categories(
        self,
        user_id: str,
        limit: Optional[int] = None,
        period: Union[Period, str] = Period.MONTH,
        which: Union[Which, str] = Which.THIS,
        now: Optional[datetime] = None,
    ) -> list[tuple[str, Decimal]]:
        """Categories by summed amount, largest first, at most `limit`."""
        limit = limit or self._settings.default_top_categories
        period_range = resolve(period, which, now or datetime.now())
        records = await self._find_in(user_id, period_range)

        ranked = sorted(_by_category(records).items(), key=lambda item: item[1], reverse=True)
        return ranked[:limit]

    async def savings(
        self,
        user_id: str,
        period: Union[Period, str] = Period.MONTH,
        which: Union[Which, str] = Which.THIS,
        now: Optional[datetime] = None,
    ) -> Optional[SavingsResult]:
        """
        Prorated baseline minus spending for a period.

        Returns None (not an error) when the user has no income or
        budget configured.
        """
        now = now or datetime.now()

        baseline = None
        if self._budgets is not None:
            try:
                baseline = await self._budgets.get_baseline(user_id)
            except StorageError as e:
                raise QueryExecutionError(f"Failed to read budget: {e}") from e
        if baseline is None or not baseline.is_configured:
            return None

        if baseline.monthly_income:
            amount, baseline_type = baseline.monthly_income, "income"
        else:
            amount, baseline_type = baseline.monthly_budget, "budget"

        period_range = resolve(period, which, now)
        records = await self._find_in(user_id, period_range)
        total = _total(records)

        if period_range.period in (Period.TODAY, Period.YESTERDAY, Period.WEEK):
            effective = amount * range_length_days(period_range) / days_in_month(now)
        elif period_range.period is Period.YEAR:
            effective = amount * 12
        else:
            effective = amount
        effective = _quantize(effective)

        return SavingsResult(
            period=period_range.period,
            which=period_range.which,
            baseline_type=baseline_type,
            effective_income=effective,
            total_expenses=total,
            savings=effective - total,
        )

    async def last_expenses(
        self,
        user_id: str,
        limit: Optional[int] = None,
    ) -> list[ExpenseRecord]:
        """Newest records across all time."""
        limit = limit or self._settings.default_last_expenses
        return await self._find(user_id, sort_by="date", descending=True, limit=limit)

    async def _period_total(
        self,
        user_id: str,
        period: Period,
        which: Which,
        now: datetime,
    ) -> PeriodTotal:
        records = await self._find_in(user_id, resolve(period, which, now))
        return PeriodTotal(period=period, which=which, total=_total(records), count=len(records))

    async def compare_periods(
        self,
        user_id: str,
        base: PeriodSpec,
        vs: PeriodSpec,
        now: Optional[datetime] = None,
    ) -> ComparisonResult:
        """
        Compare two period totals.

        The two reads are independent and run concurrently.
        pct is None when the comparison period has no spending.
        """
        now = now or datetime.now()
        base_total, vs_total = await asyncio.gather(
            self._period_total(user_id, *_period_pair(base), now),
            self._period_total(user_id, *_period_pair(vs), now),
        )

        diff = base_total.total - vs_total.total
        pct = None
        if vs_total.total != 0:
            pct = _quantize(diff / vs_total.total * 100)

        return ComparisonResult(base=base_total, vs=vs_total, diff=diff, pct=pct)

    async def avg_spending(
        self,
        user_id: str,
        period: Union[AveragePeriod, str] = AveragePeriod.MONTH,
        now: Optional[datetime] = None,
    ) -> AverageResult:
        """
        Average spending per day, week, month or year.

        day: month-to-date total / days elapsed this month
        week: total over the trailing window of weeks / window size
        year: year-to-date total / months elapsed this year
        month: month-to-date total, not divided
        """
        period = AveragePeriod(period)
        now = now or datetime.now()

        if period is AveragePeriod.DAY:
            start, end = month_to_date(now)
            divisor = now.day
        elif period is AveragePeriod.WEEK:
            weeks = self._settings.average_week_window
            start, end = trailing_days(now, weeks * 7)
            divisor = weeks
        elif period is AveragePeriod.YEAR:
            start, end = year_to_date(now)
            divisor = now.month
        else:
            start, end = month_to_date(now)
            divisor = 1

        records = await self._find(user_id, date_from=start, date_to=end)
        return AverageResult(period=period, average=_quantize(_total(records) / divisor))
