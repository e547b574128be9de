"""
Query Result Models

One result shape per intent. The response generator only ever
formats what these contain; it computes nothing itself.
"""

from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field

from kharcha.models.expense import AveragePeriod, ExpenseRecord, Period, Which


class SpendingResult(BaseModel):
    """Total spent (optionally on one category) in a period."""

    category: str = Field(
        ...,
        description="'all', a category name, or the raw text the user said"
    )
    period: Period
    which: Which
    total: Decimal = Decimal("0")
    count: int = Field(default=0, ge=0)
    expenses: list[ExpenseRecord] = Field(
        default_factory=list,
        description="Most recent records in the range"
    )


class CategoryTotal(BaseModel):
    name: str
    amount: Decimal


class SummaryResult(BaseModel):
    """Everything spent in a period, broken down by category."""

    period: Period
    which: Which
    total: Decimal = Decimal("0")
    count: int = Field(default=0, ge=0)
    top_category: Optional[CategoryTotal] = None
    by_category: dict[str, Decimal] = Field(default_factory=dict)


class SavingsResult(BaseModel):
    """Baseline prorated to the period, minus what was spent."""

    period: Period
    which: Which
    baseline_type: Literal["income", "budget"]
    effective_income: Decimal
    total_expenses: Decimal
    savings: Decimal

    @property
    def saved(self) -> bool:
        return self.savings >= 0


class PeriodTotal(BaseModel):
    period: Period
    which: Which
    total: Decimal = Decimal("0")
    count: int = Field(default=0, ge=0)


class ComparisonResult(BaseModel):
    """Two period totals side by side."""

    base: PeriodTotal
    vs: PeriodTotal
    diff: Decimal
    pct: Optional[Decimal] = Field(
        default=None,
        description="diff as a percentage of vs; None when vs is zero"
    )


class AverageResult(BaseModel):
    period: AveragePeriod
    average: Decimal = Decimal("0")
