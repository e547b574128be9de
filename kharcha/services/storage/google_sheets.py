"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the default persistent backend because:
1. Users can look at their own expenses directly in Sheets
2. No database setup required
3. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (fine for personal use)
- No transactions (the engine only appends, so we don't need them)
- Limited query capabilities (we filter in Python)

No retries happen here. A failed API call surfaces as StorageError and
the caller decides what to do.
"""

import json
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials

from kharcha.config import get_settings
from kharcha.models.audit import AuditEvent, AuditEventType, AuditSeverity
from kharcha.models.expense import (
    BudgetBaseline,
    Category,
    ExpenseRecord,
    NewExpense,
)
from kharcha.services.storage.interface import (
    AuditStorageInterface,
    BudgetStoreInterface,
    ConnectionError,
    ExpenseStoreInterface,
    SortField,
    StorageError,
    select_expenses,
)


EXPENSE_COLUMNS = [
    "id",
    "user_id",
    "created_at",
    "date",
    "amount",
    "category",
    "description",
    "vendor",
    "tags_json",
]

BUDGET_COLUMNS = [
    "user_id",
    "monthly_income",
    "monthly_budget",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "user_id",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


def _safe_getter(row: list):
    """Index into a row, treating missing and blank cells alike."""
    def safe_get(index: int, default: str = "") -> str:
        try:
            return row[index] if row[index] else default
        except IndexError:
            return default
    return safe_get


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and lazily creates worksheets with headers.
    """

    SCOPES = [
        "https://www.googleapis.com/auth/spreadsheets",
        "https://www.googleapis.com/auth/drive",
    ]

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=self.SCOPES,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError as e:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                ) from e
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}") from e

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(self._settings.spreadsheet_id)
            except gspread.SpreadsheetNotFound as e:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                ) from e
        return self._spreadsheet

    def get_worksheet(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        """Get a worksheet, creating it with a header row if missing."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(title=title, rows=rows, cols=len(columns))
            sheet.append_row(columns)
        return sheet

    def get_expenses_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.expenses_sheet_name, EXPENSE_COLUMNS)

    def get_budgets_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.budgets_sheet_name, BUDGET_COLUMNS, rows=100)

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000)


class GoogleSheetsExpenseStore(ExpenseStoreInterface):
    """
    Google Sheets implementation of expense storage.

    One expense per row. Tags are JSON-serialized into a single cell.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _expense_to_row(self, record: ExpenseRecord) -> list:
        return [
            str(record.id),
            record.user_id,
            record.created_at.isoformat(),
            record.date.isoformat(),
            str(record.amount),
            record.category.value,
            record.description or "",
            record.vendor or "",
            json.dumps(record.tags) if record.tags else "",
        ]

    def _row_to_expense(self, row: list) -> ExpenseRecord:
        safe_get = _safe_getter(row)
        tags_json = safe_get(8)
        return ExpenseRecord(
            id=UUID(safe_get(0)),
            user_id=safe_get(1),
            created_at=datetime.fromisoformat(safe_get(2)),
            date=datetime.fromisoformat(safe_get(3)),
            amount=Decimal(safe_get(4)),
            category=Category(safe_get(5, Category.OTHER.value)),
            description=safe_get(6) or None,
            vendor=safe_get(7) or None,
            tags=json.loads(tags_json) if tags_json else [],
        )

    async def create(self, user_id: str, expense: NewExpense) -> ExpenseRecord:
        record = ExpenseRecord(user_id=user_id, **expense.model_dump())
        try:
            sheet = self._client.get_expenses_sheet()
            sheet.append_row(self._expense_to_row(record), value_input_option="RAW")
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save expense: {e}") from e
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
        try:
            sheet = self._client.get_expenses_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read expenses: {e}") from e

        records = []
        for row in all_rows:
            if not row or len(row) < 2 or row[1] != user_id:
                continue
            try:
                records.append(self._row_to_expense(row))
            except (ValueError, InvalidOperation):
                continue  # Skip malformed rows

        return select_expenses(
            records,
            date_from=date_from,
            date_to=date_to,
            category=category,
            sort_by=sort_by,
            descending=descending,
            limit=limit,
        )


class GoogleSheetsBudgetStore(BudgetStoreInterface):
    """
    Monthly income/budget per user, one row per user.

    Blank cells mean "not set".
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    async def get_baseline(self, user_id: str) -> Optional[BudgetBaseline]:
        try:
            sheet = self._client.get_budgets_sheet()
            all_rows = sheet.get_all_values()[1:]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read budgets: {e}") from e

        for row in all_rows:
            if row and row[0] == user_id:
                safe_get = _safe_getter(row)
                try:
                    return BudgetBaseline(
                        monthly_income=Decimal(safe_get(1)) if safe_get(1) else None,
                        monthly_budget=Decimal(safe_get(2)) if safe_get(2) else None,
                    )
                except (ValueError, InvalidOperation) as e:
                    raise StorageError(f"Malformed budget row for {user_id}: {e}") from e
        return None


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        safe_get = _safe_getter(row)
        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            user_id=safe_get(4) or None,
            entity_type=safe_get(5) or None,
            entity_id=UUID(safe_get(6)) if safe_get(6) else None,
            correlation_id=UUID(safe_get(7)) if safe_get(7) else None,
            description=safe_get(8),
            details=json.loads(safe_get(9)) if safe_get(9) else {},
            error_message=safe_get(10) or None,
            is_user_action=safe_get(11).lower() == "true",
        )

    async def append_event(self, event: AuditEvent) -> bool:
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}") from e

    def _read_events(self) -> list[AuditEvent]:
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}") from e

        events = []
        for row in all_rows:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except ValueError:
                continue
        return events

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._read_events() if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = self._read_events()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
