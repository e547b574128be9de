"""
Abstract Storage Interface

DESIGN DECISION: The engine never talks to a database directly. It
consumes three small contracts:
1. ExpenseStoreInterface - create and find expense records
2. BudgetStoreInterface - read a user's monthly income/budget
3. AuditStorageInterface - append-only audit trail

This allows us to:
1. Use Google Sheets today and a real database later
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The engine only reads and creates. It never updates or deletes records,
so the contract doesn't offer those operations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, Literal, Optional
from uuid import UUID

from kharcha.models.audit import AuditEvent
from kharcha.models.expense import (
    BudgetBaseline,
    Category,
    ExpenseRecord,
    NewExpense,
)


SortField = Literal["date", "amount"]


class ExpenseStoreInterface(ABC):
    """
    Abstract interface for expense storage.

    Every operation is scoped to one user.
    """

    @abstractmethod
    async def create(self, user_id: str, expense: NewExpense) -> ExpenseRecord:
        """
        Persist a new expense.

        Args:
            user_id: Owner of the expense
            expense: The expense to store

        Returns:
            The stored record, with its id assigned

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
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
        """
        Find a user's expenses.

        Args:
            user_id: Owner of the expenses
            date_from: Only records on or after this instant
            date_to: Only records on or before this instant
            category: Only records in this category
            sort_by: "date" or "amount"
            descending: Largest/newest first when True
            limit: Maximum number of records

        Returns:
            Matching records in the requested order

        Raises:
            StorageError: If the read fails
        """
        pass


class BudgetStoreInterface(ABC):
    """
    Abstract interface for the income/budget collaborator.

    A missing baseline is a normal state, not an error.
    """

    @abstractmethod
    async def get_baseline(self, user_id: str) -> Optional[BudgetBaseline]:
        """
        Get a user's monthly income and budget.

        Returns:
            The baseline, or None if the user never configured one

        Raises:
            StorageError: If the read fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events of one command, in chronological order.
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events, newest first.
        """
        pass


def select_expenses(
    records: Iterable[ExpenseRecord],
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    category: Optional[Category] = None,
    sort_by: SortField = "date",
    descending: bool = True,
    limit: Optional[int] = None,
) -> list[ExpenseRecord]:
    """
    Filter, sort and truncate records in Python.

    Shared by backends that can't query server-side.
    """
    selected = [
        record for record in records
        if (date_from is None or record.date >= date_from)
        and (date_to is None or record.date <= date_to)
        and (category is None or record.category == category)
    ]

    if sort_by == "amount":
        selected.sort(key=lambda r: (r.amount, r.date), reverse=descending)
    elif sort_by == "date":
        selected.sort(key=lambda r: (r.date, r.created_at), reverse=descending)
    else:
        raise ValueError(f"Cannot sort expenses by '{sort_by}'")

    if limit is not None:
        selected = selected[:max(limit, 0)]
    return selected


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
