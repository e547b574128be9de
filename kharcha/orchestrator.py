"""
Main Orchestrator for Kharcha

This module ties together all the components and defines the
end-to-end flows for:
1. Command (transcript → validate → parse → execute → respond)
2. Forecast (history → predictions → insights)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No reply without a data lookup (the generator only phrases results)
- No write except an explicit add-expense command
- Every step is audited under one correlation id per command

Failures are audited here and then re-raised; the caller decides how
to surface them.
"""

from datetime import datetime
from typing import Iterable, Optional, Union

import structlog

from kharcha.audit import AuditLogger, configure_logging, create_correlation_id
from kharcha.classification import ExpenseClassifier
from kharcha.config import get_settings
from kharcha.forecasting import ForecastingEngine, TrendAnalyzer
from kharcha.intents import IntentParser
from kharcha.models.expense import Category, CommandResponse, IntentAction
from kharcha.models.forecast import PredictionBundle, TrendReport
from kharcha.queries import QueryExecutionError, QueryExecutor
from kharcha.responses import ResponseGenerator, help_text
from kharcha.services.storage import (
    BudgetStoreInterface,
    ExpenseStoreInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsBudgetStore,
    GoogleSheetsClient,
    GoogleSheetsExpenseStore,
    InMemoryBudgetStore,
    InMemoryExpenseStore,
)
from kharcha.validation import CommandValidator, InvalidCommandError


logger = structlog.get_logger()


class CommandFlow:
    """
    Orchestrates one spoken or typed command.

    Flow:
    1. Validate → reject empty or oversized transcripts
    2. Parse → detect language, match the first rule
    3. Check → semantic checks on the parsed intent
    4. Execute → run the intent against storage
    5. Respond → phrase the result in the detected language

    An unrecognised command is not an error: it returns success=False
    with help text in the user's language.
    """

    def __init__(
        self,
        executor: QueryExecutor,
        parser: Optional[IntentParser] = None,
        generator: Optional[ResponseGenerator] = None,
        validator: Optional[CommandValidator] = None,
        classifier: Optional[ExpenseClassifier] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._executor = executor
        self._parser = parser or IntentParser()
        self._generator = generator or ResponseGenerator()
        self._validator = validator or CommandValidator()
        self._classifier = classifier
        self._audit_logger = audit_logger

    async def handle(
        self,
        user_id: str,
        transcript: str,
        now: Optional[datetime] = None,
    ) -> CommandResponse:
        """
        Handle a command end to end.

        Args:
            user_id: Whose records to read or write
            transcript: The raw utterance
            now: Reference instant for relative periods (defaults to now)

        Returns:
            CommandResponse with the result and the reply text

        Raises:
            InvalidCommandError: If the transcript or intent is rejected
            QueryExecutionError: If storage fails
        """
        correlation_id = create_correlation_id()
        now = now or datetime.now()

        # Step 1: Validate the raw transcript
        try:
            transcript = self._validator.validate_transcript(transcript)
        except InvalidCommandError as e:
            if self._audit_logger:
                await self._audit_logger.log_command_rejected(
                    user_id=user_id,
                    reason=str(e),
                    correlation_id=correlation_id,
                )
            raise

        # Step 2: Parse
        intent = self._parser.parse(transcript)

        if self._audit_logger:
            await self._audit_logger.log_command_received(
                user_id=user_id,
                transcript=transcript,
                language=intent.language.value,
                correlation_id=correlation_id,
            )
            await self._audit_logger.log_intent_parsed(
                user_id=user_id,
                action=intent.action.value,
                slots=intent.slots,
                correlation_id=correlation_id,
            )

        if intent.is_unknown:
            return CommandResponse(
                success=False,
                response=help_text(intent.language),
                lang=intent.language,
            )

        # Step 3: Semantic checks before anything touches storage
        validation = self._validator.validate_intent(intent)
        if not validation.is_valid:
            error = InvalidCommandError(validation.errors[0].message, validation.errors)
            if self._audit_logger:
                await self._audit_logger.log_command_rejected(
                    user_id=user_id,
                    reason=str(error),
                    correlation_id=correlation_id,
                )
            raise error

        # Step 4: Execute against real data
        try:
            result = await self._executor.execute(user_id, intent, now=now)
        except QueryExecutionError as e:
            if self._audit_logger:
                await self._audit_logger.log_query_failed(
                    user_id=user_id,
                    action=intent.action.value,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            if intent.action is IntentAction.ADD_EXPENSE:
                await self._audit_logger.log_expense_added(
                    user_id=user_id,
                    expense_id=result.id,
                    amount=str(result.amount),
                    category=result.category.value,
                    correlation_id=correlation_id,
                )
            else:
                await self._audit_logger.log_query_executed(
                    user_id=user_id,
                    action=intent.action.value,
                    correlation_id=correlation_id,
                )

        # Step 5: Phrase the result
        return CommandResponse(
            success=True,
            action=intent.action,
            data=result,
            response=self._generator.render(intent, result, intent.language),
            lang=intent.language,
        )

    async def correct_category(
        self,
        text: str,
        category: Union[Category, str],
        keywords: Iterable[str] = (),
    ) -> list[str]:
        """
        Teach the classifier that `text` belongs to `category`.

        Returns the keywords that were added.
        """
        if self._classifier is None:
            return []

        added = self._classifier.learn_from_correction(text, category, keywords)
        if added and self._audit_logger:
            await self._audit_logger.log_lexicon_updated(
                category=Category.parse(str(getattr(category, "value", category))).value,
                keywords=added,
            )
        return added


class ForecastFlow:
    """
    Orchestrates forecasts and trend reports.

    Runs independently of the command flow; it only reads history.
    """

    def __init__(
        self,
        engine: ForecastingEngine,
        trends: Optional[TrendAnalyzer] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._engine = engine
        self._trends = trends
        self._audit_logger = audit_logger

    async def forecast(
        self,
        user_id: str,
        now: Optional[datetime] = None,
    ) -> PredictionBundle:
        correlation_id = create_correlation_id()

        try:
            bundle = await self._engine.forecast(user_id, now=now)
        except QueryExecutionError as e:
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type=type(e).__name__,
                    error_message=str(e),
                    details={"user_id": user_id, "operation": "forecast"},
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_forecast(
                user_id=user_id,
                record_count=bundle.record_count,
                confidence=bundle.confidence.value,
                total=bundle.total,
                degraded=bundle.message is not None,
                correlation_id=correlation_id,
            )
        return bundle

    async def monthly_trends(
        self,
        user_id: str,
        months: int = 6,
        now: Optional[datetime] = None,
    ) -> TrendReport:
        if self._trends is None:
            raise RuntimeError("Trend analysis is not configured")
        return await self._trends.monthly_trends(user_id, months=months, now=now)


def create_app_components(
    use_google_sheets: bool = True,
    expense_store: Optional[ExpenseStoreInterface] = None,
    budget_store: Optional[BudgetStoreInterface] = None,
) -> tuple[CommandFlow, ForecastFlow, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_google_sheets: Whether to initialize Google Sheets storage.
                    Set to False for testing without storage.
        expense_store: Use this store instead of building one
        budget_store: Use this store instead of building one

    Returns:
        (command_flow, forecast_flow, sheets_client)
    """
    settings = get_settings()
    configure_logging(settings.app.log_level)

    sheets_client = None
    audit_logger = AuditLogger()  # Local-only logging

    if use_google_sheets and expense_store is None:
        try:
            sheets_client = GoogleSheetsClient()
            expense_store = GoogleSheetsExpenseStore(sheets_client)
            budget_store = budget_store or GoogleSheetsBudgetStore(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            expense_store = None

    expense_store = expense_store or InMemoryExpenseStore()
    budget_store = budget_store or InMemoryBudgetStore()
    classifier = ExpenseClassifier()

    command_flow = CommandFlow(
        executor=QueryExecutor(expense_store, classifier, budget_store),
        classifier=classifier,
        audit_logger=audit_logger,
    )

    forecast_flow = ForecastFlow(
        engine=ForecastingEngine(expense_store),
        trends=TrendAnalyzer(expense_store),
        audit_logger=audit_logger,
    )

    return command_flow, forecast_flow, sheets_client
