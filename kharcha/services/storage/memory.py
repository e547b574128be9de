"""
In-Memory Storage Implementation

Process-local stores for tests and for embedding the engine without a
backend. Records live in plain dicts keyed by user and vanish with the
process.
"""

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Union
from uuid import UUID

from kharcha.models.audit import AuditEvent
from kharcha.models.expense import (
    BudgetBaseline,
    Category,
    ExpenseRecord,
    NewExpense,
)
from kharcha.services.storage.interface import (
    AuditStorageInterface,
    BudgetStoreInterface,
    ExpenseStoreInterface,
    SortField,
    select_expenses,
)


class InMemoryExpenseStore(ExpenseStoreInterface):
    """Expense store backed by a dict of lists."""

    def __init__(self, records: Optional[Iterable[ExpenseRecord]] = None):
        self._records: dict[str, list[ExpenseRecord]] = defaultdict(list)
        for record in records or ():
            self._records[record.user_id].append(record)

    async def create(self, user_id: str, expense: NewExpense) -> ExpenseRecord:
        record = ExpenseRecord(user_id=user_id, **expense.model_dump())
        self._records[user_id].append(record)
        return record

    async def find(
        self,
        user_id: str,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        category: Optional[Category] = None,
        sort_by: SortField = "date",
        descending: bool = True,
        limit: Optional[int] = None,
    ) -> list[ExpenseRecord]:
        return select_expenses(
            self._records.get(user_id, ()),
            date_from=date_from,
            date_to=date_to,
            category=category,
            sort_by=sort_by,
            descending=descending,
            limit=limit,
        )

    def add(
        self,
        user_id: str,
        amount: Union[int, str, Decimal],
        category: Union[Category, str] = Category.OTHER,
        date: Optional[datetime] = None,
        description: Optional[str] = None,
        vendor: Optional[str] = None,
    ) -> ExpenseRecord:
        """Seed a record synchronously (fixtures and imports)."""
        record = ExpenseRecord(
            user_id=user_id,
            amount=Decimal(str(amount)),
            category=Category(category),
            date=date or datetime.now(),
            description=description,
            vendor=vendor,
        )
        self._records[user_id].append(record)
        return record

    def count(self, user_id: str) -> int:
        return len(self._records.get(user_id, ()))


class InMemoryBudgetStore(BudgetStoreInterface):
    """Budget baselines keyed by user."""

    def __init__(self, baselines: Optional[dict[str, BudgetBaseline]] = None):
        self._baselines = dict(baselines or {})

    async def get_baseline(self, user_id: str) -> Optional[BudgetBaseline]:
        return self._baselines.get(user_id)

    def set_baseline(
        self,
        user_id: str,
        monthly_income: Optional[Union[int, Decimal]] = None,
        monthly_budget: Optional[Union[int, Decimal]] = None,
    ) -> BudgetBaseline:
        baseline = BudgetBaseline(
            monthly_income=monthly_income,
            monthly_budget=monthly_budget,
        )
        self._baselines[user_id] = baseline
        return baseline


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self._events, key=lambda e: e.timestamp, reverse=True)[:limit]
