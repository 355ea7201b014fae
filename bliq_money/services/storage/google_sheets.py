"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a storage backend because:
1. Users can look at their ledger directly in a spreadsheet
2. No database setup required
3. Built-in backup (Google's infrastructure)

A snapshot is spread over three worksheets (transactions, month settings,
categories), one row per item, every row tagged with the owner's user id.
Saving replaces all rows of that user in each worksheet.

TRADEOFFS:
- Every save rewrites the whole worksheet table (fine at personal-ledger volume)
- Sheets has no transactions across worksheets. A save reads everything
  first and puts back the worksheets it already wrote if a later write fails
"""

import json
from datetime import datetime
from typing import Optional
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from pydantic import ValidationError as PydanticValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from bliq_money.config import get_settings
from bliq_money.models.audit import AuditEvent, AuditEventType, AuditSeverity
from bliq_money.models.ledger import MONTHS, FinanceState
from bliq_money.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    LedgerStorageInterface,
    StorageError,
)


# Column mappings for the Transactions sheet
TRANSACTION_COLUMNS = [
    "user_id",
    "month",
    "position",
    "id",
    "description",
    "amount",
    "date",
    "category",
    "type",
    "status",
]

# Column mappings for the Months sheet
MONTH_COLUMNS = [
    "user_id",
    "month",
    "carry_over_balance",
]

# Column mappings for the Categories sheet
CATEGORY_COLUMNS = [
    "user_id",
    "position",
    "id",
    "name",
    "icon",
    "color",
]

# Column mappings for the Audit sheet
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


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_sheet(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        """Get a worksheet, creating it with a header row if missing."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.transactions_sheet_name, TRANSACTION_COLUMNS, rows=5000)

    def get_months_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.months_sheet_name, MONTH_COLUMNS)

    def get_categories_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.categories_sheet_name, CATEGORY_COLUMNS)

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000)


def _user_rows(sheet: gspread.Worksheet, user_id: str) -> list[list[str]]:
    """All data rows of a sheet that belong to a user (header skipped)."""
    return [row for row in sheet.get_all_values()[1:] if row and row[0] == user_id]


def _merge_user_rows(
    current: list[list[str]],
    user_id: str,
    columns: list[str],
    new_rows: list[list],
) -> list[list]:
    """Full sheet table with other users' rows kept and this user's replaced."""
    others = [row for row in current[1:] if row and row[0] != user_id]
    return [columns] + others + new_rows


def _write_table(sheet: gspread.Worksheet, table: list[list], previous_length: int) -> None:
    """
    Overwrite a sheet from A1 with a complete table.

    CRITICAL: The sheet is never cleared before the new table is written.
    A failed write leaves the previous contents in place for every user.
    Only the rows past the end of the new table are blanked afterwards.
    """
    if len(table) > sheet.row_count:
        sheet.add_rows(len(table) - sheet.row_count)
    sheet.update(range_name="A1", values=table, value_input_option="RAW")
    if previous_length > len(table):
        sheet.batch_clear([f"{len(table) + 1}:{previous_length}"])


class GoogleSheetsLedgerStorage(LedgerStorageInterface):
    """
    Google Sheets implementation of snapshot storage.

    Transactions keep their list position in a `position` column, since the
    ledger order is the user's list order and not the date order.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _state_to_rows(self, user_id: str, state: FinanceState) -> tuple[list, list, list]:
        """Convert a FinanceState into rows for the three worksheets."""
        transaction_rows = []
        month_rows = []
        for month, data in state.months.items():
            month_rows.append([user_id, month.value, str(data.settings.carry_over_balance)])
            for position, tx in enumerate(data.transactions):
                transaction_rows.append([
                    user_id,
                    month.value,
                    str(position),
                    tx.id,
                    tx.description,
                    str(tx.amount),
                    tx.date.isoformat(),
                    tx.category,
                    tx.type.value,
                    tx.status.value,
                ])
        category_rows = [
            [user_id, str(position), c.id, c.name, c.icon, c.color]
            for position, c in enumerate(state.categories)
        ]
        return transaction_rows, month_rows, category_rows

    def _rows_to_state(
        self,
        transaction_rows: list[list[str]],
        month_rows: list[list[str]],
        category_rows: list[list[str]],
    ) -> FinanceState:
        """Rebuild a FinanceState from the user's rows of the three worksheets."""
        months: dict[str, dict] = {
            month.value: {"transactions": [], "settings": {"carryOverBalance": False}}
            for month in MONTHS
        }
        for row in month_rows:
            if row[1] in months:
                months[row[1]]["settings"]["carryOverBalance"] = row[2].lower() == "true"

        for row in sorted(transaction_rows, key=lambda r: (r[1], int(r[2] or 0))):
            if row[1] not in months:
                raise StorageError(f"Unknown month in transactions sheet: {row[1]}")
            months[row[1]]["transactions"].append({
                "id": row[3],
                "description": row[4],
                "amount": row[5],
                "date": row[6],
                "category": row[7],
                "type": row[8],
                "status": row[9],
            })

        categories = [
            {"id": row[2], "name": row[3], "icon": row[4], "color": row[5]}
            for row in sorted(category_rows, key=lambda r: int(r[1] or 0))
        ]
        return FinanceState.model_validate({"months": months, "categories": categories})

    async def load(self, user_id: str) -> Optional[FinanceState]:
        """Load a user's ledger from the three worksheets."""
        try:
            transaction_rows = _user_rows(self._client.get_transactions_sheet(), user_id)
            month_rows = _user_rows(self._client.get_months_sheet(), user_id)
            category_rows = _user_rows(self._client.get_categories_sheet(), user_id)
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to load ledger: {e}")

        # A saved ledger always has its twelve month rows
        if not month_rows:
            return None

        try:
            return self._rows_to_state(transaction_rows, month_rows, category_rows)
        except (PydanticValidationError, IndexError, ValueError) as e:
            raise StorageError(f"Ledger rows for {user_id} are corrupt: {e}")

    def _sheets(self) -> list[tuple[gspread.Worksheet, list[str]]]:
        return [
            (self._client.get_transactions_sheet(), TRANSACTION_COLUMNS),
            (self._client.get_months_sheet(), MONTH_COLUMNS),
            (self._client.get_categories_sheet(), CATEGORY_COLUMNS),
        ]

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save(self, user_id: str, state: FinanceState) -> bool:
        """
        Replace the user's rows in all three worksheets.

        All three sheets are read and all three new tables are built before
        anything is written. If a write fails, the sheets already touched are
        put back to the tables read at the start, so the stored ledger is
        either entirely the old one or entirely the new one.
        """
        new_rows = self._state_to_rows(user_id, state)
        try:
            sheets = self._sheets()
            previous = [sheet.get_all_values() for sheet, _ in sheets]
        except Exception as e:
            raise StorageError(f"Failed to save ledger: {e}")

        tables = [
            _merge_user_rows(current, user_id, columns, rows)
            for (_, columns), current, rows in zip(sheets, previous, new_rows)
        ]

        touched: list[tuple[gspread.Worksheet, list[list[str]], int]] = []
        try:
            for (sheet, _), current, table in zip(sheets, previous, tables):
                touched.append((sheet, current, len(table)))
                _write_table(sheet, table, len(current))
        except Exception as e:
            rollback_errors = self._restore(touched)
            message = f"Failed to save ledger: {e}"
            if rollback_errors:
                message += f" (rollback incomplete: {'; '.join(rollback_errors)})"
            raise StorageError(message)
        return True

    @staticmethod
    def _restore(touched: list[tuple[gspread.Worksheet, list[list[str]], int]]) -> list[str]:
        """Write back the tables read before a failed save. Returns the errors."""
        errors = []
        for sheet, original, written_length in touched:
            try:
                _write_table(sheet, original, written_length)
            except Exception as e:
                errors.append(str(e))
        return errors

    async def delete(self, user_id: str) -> bool:
        try:
            deleted = False
            for sheet, columns in self._sheets():
                current = sheet.get_all_values()
                if any(row and row[0] == user_id for row in current[1:]):
                    table = _merge_user_rows(current, user_id, columns, [])
                    _write_table(sheet, table, len(current))
                    deleted = True
            return deleted
        except Exception as e:
            raise StorageError(f"Failed to delete ledger: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            user_id=safe_get(4) or None,
            entity_type=safe_get(5) or None,
            entity_id=safe_get(6) or None,
            correlation_id=UUID(safe_get(7)) if safe_get(7) else None,
            description=safe_get(8),
            details=json.loads(safe_get(9)) if safe_get(9) else {},
            error_message=safe_get(10) or None,
            is_user_action=safe_get(11).lower() == "true",
        )

    def _all_events(self) -> list[AuditEvent]:
        events = []
        for row in self._client.get_audit_sheet().get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except (ValueError, json.JSONDecodeError):
                continue  # Skip malformed rows
        return events

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        sheet = self._client.get_audit_sheet()
        sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        try:
            events = [e for e in self._all_events() if e.correlation_id == correlation_id]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_user(
        self,
        user_id: str,
        limit: int = 100,
    ) -> list[AuditEvent]:
        try:
            events = [e for e in self._all_events() if e.user_id == user_id]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        try:
            events = self._all_events()
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
