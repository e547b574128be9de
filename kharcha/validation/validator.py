"""
Command and Expense Validation

DESIGN DECISION: Validation happens at two points:

STAGE 1 - TRANSCRIPT VALIDATION (before parsing):
- Empty or whitespace-only input
- Absurdly long input
A transcript failing here is "invalid input", which is a different
thing from "could not understand" (an unknown intent).

STAGE 2 - SEMANTIC VALIDATION (after parsing, before any write):
- Amounts above the configured sanity ceiling
- Expense dates far in the future
- Expenses with nothing to describe them

IMPORTANT: Validation NEVER silently fixes issues.
It reports them; the caller decides whether to proceed.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from kharcha.config import get_settings
from kharcha.models.expense import Intent, IntentAction, NewExpense


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(..., description="Field with the issue")
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'too_long', 'suspicious_value')"
    )
    message: str
    severity: str = Field(..., pattern="^(error|warning|info)$")
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """Outcome of a validation pass."""

    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == "error"]

    @property
    def warnings(self) -> list[str]:
        return [i.message for i in self.issues if i.severity == "warning"]


class InvalidCommandError(ValueError):
    """The command was rejected before it could be executed."""

    def __init__(self, message: str, issues: Optional[list[ValidationIssue]] = None):
        super().__init__(message)
        self.issues = issues or []


def _result(issues: list[ValidationIssue]) -> ValidationResult:
    return ValidationResult(
        is_valid=not any(issue.severity == "error" for issue in issues),
        issues=issues,
    )


class CommandValidator:
    """Validates transcripts, parsed intents and new expenses."""

    def __init__(self):
        self._settings = get_settings().engine

    def validate_transcript(self, transcript: Optional[str]) -> str:
        """
        Check a raw transcript.

        Returns:
            The transcript with surrounding whitespace removed

        Raises:
            InvalidCommandError: If the transcript is empty or too long
        """
        if not isinstance(transcript, str) or not transcript.strip():
            raise InvalidCommandError(
                "No transcript provided",
                [ValidationIssue(
                    field="transcript",
                    issue_type="missing",
                    message="Transcript is empty",
                    severity="error",
                )],
            )

        cleaned = transcript.strip()
        max_length = self._settings.max_transcript_length
        if len(cleaned) > max_length:
            raise InvalidCommandError(
                f"Transcript longer than {max_length} characters",
                [ValidationIssue(
                    field="transcript",
                    issue_type="too_long",
                    message=f"Transcript has {len(cleaned)} characters (max {max_length})",
                    severity="error",
                    suggested_fix="Say one command at a time",
                )],
            )
        return cleaned

    def validate_intent(self, intent: Intent) -> ValidationResult:
        """Semantic checks on a parsed intent."""
        issues = []

        if intent.action is IntentAction.ADD_EXPENSE:
            amount = intent.slots.get("amount")
            if amount is not None and amount > self._settings.max_expense_amount:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="suspicious_value",
                    message=f"Amount (₹{amount:,}) is above the allowed maximum",
                    severity="error",
                    suggested_fix="Check the amount and say it again",
                ))

        limit = intent.slots.get("limit")
        if limit is not None and limit > 100:
            issues.append(ValidationIssue(
                field="limit",
                issue_type="suspicious_value",
                message=f"Asked for {limit} items; only the first 100 are useful",
                severity="warning",
            ))

        return _result(issues)

    def validate_expense(
        self,
        expense: NewExpense,
        now: Optional[datetime] = None,
    ) -> ValidationResult:
        """Semantic checks on an expense about to be created."""
        issues = []
        now = now or datetime.now()

        max_amount = Decimal(self._settings.max_expense_amount)
        if expense.amount > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount (₹{expense.amount:,.2f}) seems unusually high",
                severity="error",
                suggested_fix="Please verify this amount is correct",
            ))

        comparable = (expense.date.tzinfo is None) == (now.tzinfo is None)
        if comparable and expense.date > now + timedelta(days=1):
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Expense date ({expense.date.date()}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        if not expense.description and not expense.vendor:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Expense has neither a description nor a vendor",
                severity="warning",
                suggested_fix="Add a short description so it can be categorised",
            ))

        return _result(issues)
