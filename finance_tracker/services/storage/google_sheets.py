"""
Google Sheets Storage Implementation

One worksheet per record kind (Accounts, Categories, Transactions,
AuditLog), one record per row. Users can open the spreadsheet and see
their data directly.

TRADEOFFS:
- Not suitable for high-volume data (fine for personal finance)
- No multi-row transactions (the engines compensate failed legs)
- Limited query capabilities (account/category/date filtering happens in Python)
"""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from finance_tracker.config import get_settings
from finance_tracker.exceptions import ConnectionError, NotFoundError, StorageError
from finance_tracker.models.account import Account, AccountType
from finance_tracker.models.audit import AuditEvent, AuditEventType, AuditSeverity
from finance_tracker.models.category import Category
from finance_tracker.models.common import Currency
from finance_tracker.models.transaction import Transaction, TransferType
from finance_tracker.services.storage.interface import (
    AccountStorageInterface,
    AuditStorageInterface,
    CategoryStorageInterface,
    TransactionStorageInterface,
    check_batch_size,
)


ACCOUNT_COLUMNS = [
    "account_id",
    "account_name",
    "account_number",
    "bank_name",
    "account_type",
    "currency",
    "balance",
    "is_active",
    "created_at",
    "updated_at",
]

CATEGORY_COLUMNS = [
    "category_id",
    "name",
    "description",
    "color",
    "icon",
    "is_active",
    "created_at",
    "updated_at",
]

TRANSACTION_COLUMNS = [
    "account",
    "transaction_id",
    "date",
    "description",
    "currency",
    "amount",
    "fee",
    "category",
    "transfer_id",
    "transfer_type",
    "related_account",
    "updated_at",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
]

_write_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


def _cell(row: list, index: int, default: str = "") -> str:
    """Read a cell, tolerating short rows."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


def _last_column(columns: list[str]) -> str:
    return chr(ord("A") + len(columns) - 1)


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

    def get_worksheet(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        """Get or create a worksheet with the given header row."""
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

    def get_accounts_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.accounts_sheet_name, ACCOUNT_COLUMNS)

    def get_categories_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.categories_sheet_name, CATEGORY_COLUMNS)

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(
            self._settings.transactions_sheet_name,
            TRANSACTION_COLUMNS,
            rows=5000,
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000)


class _SheetTable:
    """Row-level helpers shared by the per-entity storages."""

    columns: list[str] = []

    def _find_row(self, sheet: gspread.Worksheet, matches: Callable[[list], bool]) -> Optional[int]:
        """1-based sheet row number of the first data row that matches."""
        for idx, row in enumerate(sheet.get_all_values()[1:], start=2):
            if row and matches(row):
                return idx
        return None

    def _write_row(self, sheet: gspread.Worksheet, idx: int, row: list) -> None:
        sheet.update(
            range_name=f"A{idx}:{_last_column(self.columns)}{idx}",
            values=[row],
            value_input_option="RAW",
        )


class GoogleSheetsAccountStorage(_SheetTable, AccountStorageInterface):
    """Google Sheets implementation of account storage."""

    columns = ACCOUNT_COLUMNS

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _account_to_row(self, account: Account) -> list:
        return [
            account.account_id,
            account.account_name,
            account.account_number,
            account.bank_name,
            account.account_type.value,
            account.currency.value,
            str(account.balance) if account.balance is not None else "",
            str(account.is_active),
            account.created_at.isoformat(),
            account.updated_at.isoformat(),
        ]

    def _row_to_account(self, row: list) -> Account:
        return Account(
            account_id=_cell(row, 0),
            account_name=_cell(row, 1),
            account_number=_cell(row, 2),
            bank_name=_cell(row, 3),
            account_type=AccountType(_cell(row, 4)),
            currency=Currency(_cell(row, 5)),
            balance=Decimal(_cell(row, 6)) if _cell(row, 6) else None,
            is_active=_cell(row, 7).lower() == "true",
            created_at=datetime.fromisoformat(_cell(row, 8)),
            updated_at=datetime.fromisoformat(_cell(row, 9)),
        )

    @_write_retry
    async def save_account(self, account: Account) -> Account:
        try:
            sheet = self._client.get_accounts_sheet()
            row = self._account_to_row(account)
            idx = self._find_row(sheet, lambda r: r[0] == account.account_id)
            if idx is None:
                sheet.append_row(row, value_input_option="RAW")
            else:
                self._write_row(sheet, idx, row)
            return account
        except Exception as e:
            raise StorageError(f"Failed to save account: {e}")

    async def get_account(self, account_id: str) -> Optional[Account]:
        try:
            sheet = self._client.get_accounts_sheet()
            for row in sheet.get_all_values()[1:]:
                if row and row[0] == account_id:
                    return self._row_to_account(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get account: {e}")

    async def list_accounts(self, is_active: Optional[bool] = None) -> list[Account]:
        try:
            sheet = self._client.get_accounts_sheet()
            accounts = [
                self._row_to_account(row)
                for row in sheet.get_all_values()[1:]
                if row and row[0]
            ]
        except Exception as e:
            raise StorageError(f"Failed to list accounts: {e}")
        if is_active is not None:
            accounts = [a for a in accounts if a.is_active == is_active]
        return accounts

    async def delete_account(self, account_id: str) -> bool:
        try:
            sheet = self._client.get_accounts_sheet()
            idx = self._find_row(sheet, lambda r: r[0] == account_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete account: {e}")


class GoogleSheetsCategoryStorage(_SheetTable, CategoryStorageInterface):
    """Google Sheets implementation of category storage."""

    columns = CATEGORY_COLUMNS

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _category_to_row(self, category: Category) -> list:
        return [
            category.category_id,
            category.name,
            category.description or "",
            category.color or "",
            category.icon or "",
            str(category.is_active),
            category.created_at.isoformat(),
            category.updated_at.isoformat(),
        ]

    def _row_to_category(self, row: list) -> Category:
        return Category(
            category_id=_cell(row, 0),
            name=_cell(row, 1),
            description=_cell(row, 2) or None,
            color=_cell(row, 3) or None,
            icon=_cell(row, 4) or None,
            is_active=_cell(row, 5).lower() == "true",
            created_at=datetime.fromisoformat(_cell(row, 6)),
            updated_at=datetime.fromisoformat(_cell(row, 7)),
        )

    @_write_retry
    async def save_category(self, category: Category) -> Category:
        try:
            sheet = self._client.get_categories_sheet()
            row = self._category_to_row(category)
            idx = self._find_row(sheet, lambda r: r[0] == category.category_id)
            if idx is None:
                sheet.append_row(row, value_input_option="RAW")
            else:
                self._write_row(sheet, idx, row)
            return category
        except Exception as e:
            raise StorageError(f"Failed to save category: {e}")

    async def get_category(self, category_id: str) -> Optional[Category]:
        try:
            sheet = self._client.get_categories_sheet()
            for row in sheet.get_all_values()[1:]:
                if row and row[0] == category_id:
                    return self._row_to_category(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get category: {e}")

    async def list_categories(self, is_active: Optional[bool] = None) -> list[Category]:
        try:
            sheet = self._client.get_categories_sheet()
            categories = [
                self._row_to_category(row)
                for row in sheet.get_all_values()[1:]
                if row and row[0]
            ]
        except Exception as e:
            raise StorageError(f"Failed to list categories: {e}")
        if is_active is not None:
            categories = [c for c in categories if c.is_active == is_active]
        return categories

    async def delete_category(self, category_id: str) -> bool:
        try:
            sheet = self._client.get_categories_sheet()
            idx = self._find_row(sheet, lambda r: r[0] == category_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete category: {e}")


class GoogleSheetsTransactionStorage(_SheetTable, TransactionStorageInterface):
    """
    Google Sheets implementation of transaction storage.

    The first two columns (account, transaction_id) form the key.
    """

    columns = TRANSACTION_COLUMNS

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _transaction_to_row(self, transaction: Transaction) -> list:
        return [
            transaction.account,
            transaction.transaction_id,
            transaction.transaction_date.isoformat(),
            transaction.description,
            transaction.currency.value,
            str(transaction.amount),
            str(transaction.fee),
            transaction.category,
            transaction.transfer_id or "",
            transaction.transfer_type.value if transaction.transfer_type else "",
            transaction.related_account or "",
            transaction.updated_at.isoformat() if transaction.updated_at else "",
        ]

    def _row_to_transaction(self, row: list) -> Transaction:
        return Transaction(
            account=_cell(row, 0),
            transaction_id=_cell(row, 1),
            transaction_date=date.fromisoformat(_cell(row, 2)),
            description=_cell(row, 3),
            currency=Currency(_cell(row, 4)),
            amount=Decimal(_cell(row, 5, "0")),
            fee=Decimal(_cell(row, 6, "0")),
            category=_cell(row, 7),
            transfer_id=_cell(row, 8) or None,
            transfer_type=TransferType(_cell(row, 9)) if _cell(row, 9) else None,
            related_account=_cell(row, 10) or None,
            updated_at=datetime.fromisoformat(_cell(row, 11)) if _cell(row, 11) else None,
        )

    @staticmethod
    def _key_matcher(account: str, transaction_id: str) -> Callable[[list], bool]:
        return lambda r: len(r) > 1 and r[0] == account and r[1] == transaction_id

    @_write_retry
    async def put_transaction(self, transaction: Transaction) -> Transaction:
        try:
            sheet = self._client.get_transactions_sheet()
            row = self._transaction_to_row(transaction)
            idx = self._find_row(sheet, self._key_matcher(*transaction.key))
            if idx is None:
                sheet.append_row(row, value_input_option="RAW")
            else:
                self._write_row(sheet, idx, row)
            return transaction
        except Exception as e:
            raise StorageError(f"Failed to save transaction: {e}")

    async def update_transaction(self, transaction: Transaction) -> Transaction:
        try:
            sheet = self._client.get_transactions_sheet()
            idx = self._find_row(sheet, self._key_matcher(*transaction.key))
            if idx is None:
                raise NotFoundError(
                    f"Transaction not found: {transaction.account}/{transaction.transaction_id}"
                )
            self._write_row(sheet, idx, self._transaction_to_row(transaction))
            return transaction
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update transaction: {e}")

    async def get_transaction(
        self,
        account: str,
        transaction_id: str,
    ) -> Optional[Transaction]:
        try:
            sheet = self._client.get_transactions_sheet()
            matches = self._key_matcher(account, transaction_id)
            for row in sheet.get_all_values()[1:]:
                if row and matches(row):
                    return self._row_to_transaction(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get transaction: {e}")

    async def delete_transaction(self, account: str, transaction_id: str) -> bool:
        try:
            sheet = self._client.get_transactions_sheet()
            idx = self._find_row(sheet, self._key_matcher(account, transaction_id))
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete transaction: {e}")

    async def query_by_account(self, account: str) -> list[Transaction]:
        try:
            sheet = self._client.get_transactions_sheet()
            return [
                self._row_to_transaction(row)
                for row in sheet.get_all_values()[1:]
                if row and row[0] == account
            ]
        except Exception as e:
            raise StorageError(f"Failed to query transactions: {e}")

    async def query_by_account_and_category(
        self,
        account: str,
        category: str,
    ) -> list[Transaction]:
        transactions = await self.query_by_account(account)
        return [t for t in transactions if t.category == category]

    async def query_by_account_and_date(
        self,
        account: str,
        on_date: date,
    ) -> list[Transaction]:
        transactions = await self.query_by_account(account)
        return [t for t in transactions if t.transaction_date == on_date]

    @_write_retry
    async def batch_put_transactions(self, transactions: list[Transaction]) -> int:
        check_batch_size(transactions)
        try:
            sheet = self._client.get_transactions_sheet()
            row_numbers = {
                (row[0], row[1]): idx
                for idx, row in enumerate(sheet.get_all_values()[1:], start=2)
                if len(row) > 1
            }

            updates = []
            appends = []
            for transaction in transactions:
                row = self._transaction_to_row(transaction)
                idx = row_numbers.get(transaction.key)
                if idx is None:
                    appends.append(row)
                else:
                    updates.append({
                        "range": f"A{idx}:{_last_column(self.columns)}{idx}",
                        "values": [row],
                    })

            if updates:
                sheet.batch_update(updates, value_input_option="RAW")
            if appends:
                sheet.append_rows(appends, value_input_option="RAW")
            return len(transactions)
        except Exception as e:
            raise StorageError(f"Failed to batch save transactions: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        return AuditEvent(
            event_id=UUID(_cell(row, 0)),
            timestamp=datetime.fromisoformat(_cell(row, 1)),
            event_type=AuditEventType(_cell(row, 2)),
            severity=AuditSeverity(_cell(row, 3)),
            entity_type=_cell(row, 4) or None,
            entity_id=_cell(row, 5) or None,
            correlation_id=UUID(_cell(row, 6)) if _cell(row, 6) else None,
            description=_cell(row, 7),
            details=json.loads(_cell(row, 8)) if _cell(row, 8) else {},
            error_message=_cell(row, 9) or None,
        )

    @_write_retry
    async def append_event(self, event: AuditEvent) -> bool:
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}")

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        try:
            sheet = self._client.get_audit_sheet()
            events = [
                self._row_to_event(row)
                for row in sheet.get_all_values()[1:]
                if len(row) > 6 and row[6] == str(correlation_id)
            ]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        try:
            sheet = self._client.get_audit_sheet()
            events = [
                self._row_to_event(row)
                for row in sheet.get_all_values()[1:]
                if row and row[0]
            ]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
