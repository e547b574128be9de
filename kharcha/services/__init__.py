"""Services package."""

from kharcha.services.storage import (
    AuditStorageInterface,
    BudgetStoreInterface,
    ConnectionError,
    ExpenseStoreInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsBudgetStore,
    GoogleSheetsClient,
    GoogleSheetsExpenseStore,
    InMemoryAuditStorage,
    InMemoryBudgetStore,
    InMemoryExpenseStore,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "BudgetStoreInterface",
    "ConnectionError",
    "ExpenseStoreInterface",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsBudgetStore",
    "GoogleSheetsClient",
    "GoogleSheetsExpenseStore",
    "InMemoryAuditStorage",
    "InMemoryBudgetStore",
    "InMemoryExpenseStore",
    "StorageError",
]
