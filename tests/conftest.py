"""
Shared fixtures.

All tests run against the in-memory stores; nothing here talks to
Google Sheets. The reference instant is Saturday 15 June 2024, noon:
June has 30 days and that week runs Monday 10th to Sunday 16th.
"""

from datetime import datetime

import pytest

from kharcha.audit import AuditLogger
from kharcha.classification import ExpenseClassifier
from kharcha.queries import QueryExecutor
from kharcha.services.storage import (
    InMemoryAuditStorage,
    InMemoryBudgetStore,
    InMemoryExpenseStore,
)


NOW = datetime(2024, 6, 15, 12, 0)
USER = "user-1"


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def store():
    return InMemoryExpenseStore()


@pytest.fixture
def budgets():
    return InMemoryBudgetStore()


@pytest.fixture
def classifier():
    return ExpenseClassifier()


@pytest.fixture
def executor(store, classifier, budgets):
    return QueryExecutor(store, classifier, budgets)


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)
