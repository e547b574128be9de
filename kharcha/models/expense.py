"""
Core Data Models for Kharcha

These models define the strict schemas for all data flowing through the engine.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging
4. Support the audit trail

DESIGN DECISION: Money is always Decimal. Floats never touch an amount
until a forecast rounds it for display.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Category(str, Enum):
    """
    Expense categories.

    The first thirteen are the classifier's output set, in declared order.
    GASOLINE and GROCERIES are legacy values that stored records may carry
    but the classifier never produces.
    """
    FOOD = "food"
    TRANSPORT = "transport"
    UTILITIES = "utilities"
    RENT = "rent"
    ENTERTAINMENT = "entertainment"
    HEALTHCARE = "healthcare"
    SHOPPING = "shopping"
    EDUCATION = "education"
    TRAVEL = "travel"
    PERSONAL = "personal"
    CELEBRATION = "celebration"
    EMERGENCY = "emergency"
    OTHER = "other"

    # Legacy aliases
    GASOLINE = "gasoline"
    GROCERIES = "groceries"

    @classmethod
    def primary(cls) -> list["Category"]:
        """Categories the classifier may return, in declared order."""
        return [c for c in cls if c not in LEGACY_CATEGORIES]

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Category"]:
        """Return the category named by value, or None if it isn't one."""
        if not value:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


LEGACY_CATEGORIES = frozenset({Category.GASOLINE, Category.GROCERIES})


class Period(str, Enum):
    """Time bucket a query refers to."""
    TODAY = "today"
    YESTERDAY = "yesterday"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class Which(str, Enum):
    """Relative qualifier for a period."""
    THIS = "this"
    LAST = "last"


class AveragePeriod(str, Enum):
    """Unit for average-spending questions."""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class Language(str, Enum):
    """Reply language. Hinglish counts as Hindi."""
    HINDI = "hi"
    ENGLISH = "en"


class IntentAction(str, Enum):
    """Everything the command engine knows how to do."""
    ADD_EXPENSE = "add_expense"
    QUERY_SPENDING = "query_spending"
    GET_SUMMARY = "get_summary"
    BIGGEST_EXPENSE = "biggest_expense"
    TOP_CATEGORIES = "top_categories"
    SAVINGS = "savings"
    LAST_EXPENSES = "last_expenses"
    COMPARE_PERIODS = "compare_periods"
    AVG_SPENDING = "avg_spending"
    UNKNOWN = "unknown"


# =============================================================================
# EXPENSE MODELS
# =============================================================================

class NewExpense(BaseModel):
    """
    Payload for creating an expense in the store.

    The engine only ever creates records; it never edits them.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount in INR"
    )
    category: Category = Field(
        default=Category.OTHER,
        description="Expense category"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=500,
        description="Free-text description as the user said it"
    )
    vendor: Optional[str] = Field(
        default=None,
        max_length=200,
        description="Shop, merchant or payee"
    )
    date: datetime = Field(
        default_factory=datetime.now,
        description="When the money was spent"
    )
    tags: list[str] = Field(default_factory=list)

    @field_validator('tags')
    @classmethod
    def dedupe_tags(cls, v: list[str]) -> list[str]:
        """Tags behave like a set but keep their first-seen order."""
        seen = []
        for tag in v:
            tag = tag.strip()
            if tag and tag not in seen:
                seen.append(tag)
        return seen


class ExpenseRecord(NewExpense):
    """
    An expense as persisted by the store.

    Owned by the store. The engine reads these and never mutates them.
    """

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique expense ID"
    )
    user_id: str = Field(
        ...,
        min_length=1,
        description="Owner of the record"
    )
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the record was stored"
    )


class BudgetBaseline(BaseModel):
    """
    A user's monthly income and/or budget.

    Either field may be missing. Both missing means "not configured",
    which is a valid state, not an error.
    """

    monthly_income: Optional[Decimal] = Field(default=None, gt=0)
    monthly_budget: Optional[Decimal] = Field(default=None, gt=0)

    @property
    def is_configured(self) -> bool:
        return bool(self.monthly_income or self.monthly_budget)


# =============================================================================
# TIME MODELS
# =============================================================================

class PeriodRange(BaseModel):
    """
    A concrete, calendar-aligned date range.

    Only the temporal resolver creates these. start and end are both
    inclusive; end sits at 23:59:59.999 of the last day.
    """
    model_config = ConfigDict(frozen=True)

    period: Period
    which: Which
    start: datetime
    end: datetime

    @model_validator(mode='after')
    def validate_bounds(self) -> 'PeriodRange':
        if self.end < self.start:
            raise ValueError("Range end cannot be before start")
        return self

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


# =============================================================================
# COMMAND MODELS
# =============================================================================

class Intent(BaseModel):
    """
    What the user asked for, as recognised by the intent parser.

    A passive container: it does not execute anything.
    Never persisted.
    """

    action: IntentAction
    slots: dict[str, Any] = Field(default_factory=dict)
    language: Language = Language.ENGLISH
    rule: Optional[str] = Field(
        default=None,
        description="Name of the rule that matched, for audit and debugging"
    )

    @property
    def is_unknown(self) -> bool:
        return self.action is IntentAction.UNKNOWN


class CommandResponse(BaseModel):
    """
    What the command endpoint hands back to its caller.

    success=False with a response means "I didn't understand",
    not a transport failure.
    """

    success: bool
    action: Optional[IntentAction] = None
    data: Any = None
    response: str
    lang: Language
