"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the persistent backend; the in-memory stores serve tests
and embedded use.
"""

from kharcha.services.storage.interface import (
    AuditStorageInterface,
    BudgetStoreInterface,
    ConnectionError,
    ExpenseStoreInterface,
    StorageError,
    select_expenses,
)
from kharcha.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryBudgetStore,
    InMemoryExpenseStore,
)
from kharcha.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsBudgetStore,
    GoogleSheetsClient,
    GoogleSheetsExpenseStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "BudgetStoreInterface",
    "ExpenseStoreInterface",
    "select_expenses",
    # Exceptions
    "ConnectionError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryBudgetStore",
    "InMemoryExpenseStore",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsBudgetStore",
    "GoogleSheetsClient",
    "GoogleSheetsExpenseStore",
]
