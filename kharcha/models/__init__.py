"""
Data Models Package

This package contains all Pydantic models used by the Kharcha engine.
All data flowing through the engine must conform to these schemas.
"""

from kharcha.models.expense import (
    LEGACY_CATEGORIES,
    AveragePeriod,
    BudgetBaseline,
    Category,
    CommandResponse,
    ExpenseRecord,
    Intent,
    IntentAction,
    Language,
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
from kharcha.models.forecast import (
    AmountRange,
    CategoryPrediction,
    ConfidenceLevel,
    Insight,
    IrregularPrediction,
    MonthlyTrend,
    PredictionBundle,
    RegularPrediction,
    TrendDirection,
    TrendReport,
)
from kharcha.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense and command models
    "LEGACY_CATEGORIES",
    "AveragePeriod",
    "BudgetBaseline",
    "Category",
    "CommandResponse",
    "ExpenseRecord",
    "Intent",
    "IntentAction",
    "Language",
    "NewExpense",
    "Period",
    "PeriodRange",
    "Which",
    # Query results
    "AverageResult",
    "CategoryTotal",
    "ComparisonResult",
    "PeriodTotal",
    "SavingsResult",
    "SpendingResult",
    "SummaryResult",
    # Forecast models
    "AmountRange",
    "CategoryPrediction",
    "ConfidenceLevel",
    "Insight",
    "IrregularPrediction",
    "MonthlyTrend",
    "PredictionBundle",
    "RegularPrediction",
    "TrendDirection",
    "TrendReport",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
