"""Month-by-month spending history for dashboards."""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from kharcha.forecasting.engine import round_amount
from kharcha.models.forecast import MonthlyTrend, TrendReport
from kharcha.queries import QueryExecutionError
from kharcha.services.storage import ExpenseStoreInterface, StorageError
from kharcha.temporal import months_back


class TrendAnalyzer:
    """Groups recent history by calendar month."""

    def __init__(self, store: ExpenseStoreInterface):
        self._store = store

    async def monthly_trends(
        self,
        user_id: str,
        months: int = 6,
        now: Optional[datetime] = None,
    ) -> TrendReport:
        """
        Totals per month since the first day of the month `months` back.

        growth_rate is the percent change of the latest month with
        spending over the one before it, rounded to two decimals; it is
        0 with fewer than two months or an empty earlier month.
        """
        now = now or datetime.now()
        try:
            records = await self._store.find(
                user_id,
                date_from=months_back(now, months),
                sort_by="date",
                descending=False,
            )
        except StorageError as e:
            raise QueryExecutionError(f"Failed to read expense history: {e}") from e

        totals: dict[str, Decimal] = {}
        counts: dict[str, int] = {}
        categories: dict[str, dict[str, Decimal]] = {}
        for record in records:
            key = record.date.strftime("%Y-%m")
            totals[key] = totals.get(key, Decimal("0")) + record.amount
            counts[key] = counts.get(key, 0) + 1
            by_category = categories.setdefault(key, {})
            name = record.category.value
            by_category[name] = by_category.get(name, Decimal("0")) + record.amount

        keys = sorted(totals)
        growth_rate = Decimal("0")
        if len(keys) >= 2:
            latest, previous = totals[keys[-1]], totals[keys[-2]]
            if previous > 0:
                growth_rate = (latest - previous) / previous * 100

        return TrendReport(
            months=[
                MonthlyTrend(
                    month=key,
                    total=round_amount(totals[key]),
                    count=counts[key],
                    by_category={
                        name: round_amount(amount) for name, amount in categories[key].items()
                    },
                )
                for key in keys
            ],
            growth_rate=float(growth_rate.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)),
        )
