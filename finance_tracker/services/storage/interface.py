"""
Abstract Storage Interface

The record store holds three record kinds (accounts, categories,
transactions) plus the append-only audit log. Business logic only talks to
these interfaces, so the backend can be the in-memory store (tests, local
development) or Google Sheets without changing any engine.

Transactions are addressed by the composite key (account, transaction_id)
and can be queried by account, by account+category and by account+date,
mirroring the secondary indexes of a document store.

Implementations raise StorageError (or a subclass) when the backend fails.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from finance_tracker.exceptions import (
    ConnectionError,
    NotFoundError,
    StorageError,
)
from finance_tracker.models.account import Account
from finance_tracker.models.audit import AuditEvent
from finance_tracker.models.category import Category
from finance_tracker.models.transaction import Transaction


# Largest number of items a single batch_put_transactions call accepts
MAX_BATCH_SIZE = 25


class AccountStorageInterface(ABC):
    """Abstract interface for bank account storage."""

    @abstractmethod
    async def save_account(self, account: Account) -> Account:
        """
        Insert or replace an account.

        Returns:
            The stored account
        """
        pass

    @abstractmethod
    async def get_account(self, account_id: str) -> Optional[Account]:
        """
        Retrieve an account by its ID.

        Returns:
            The account if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_accounts(self, is_active: Optional[bool] = None) -> list[Account]:
        """
        List accounts, optionally filtered by active flag.
        """
        pass

    @abstractmethod
    async def delete_account(self, account_id: str) -> bool:
        """
        Delete an account by ID.

        Returns:
            True if a record was removed
        """
        pass


class CategoryStorageInterface(ABC):
    """Abstract interface for category storage."""

    @abstractmethod
    async def save_category(self, category: Category) -> Category:
        """Insert or replace a category."""
        pass

    @abstractmethod
    async def get_category(self, category_id: str) -> Optional[Category]:
        """Retrieve a category by its ID, or None."""
        pass

    @abstractmethod
    async def list_categories(self, is_active: Optional[bool] = None) -> list[Category]:
        """List categories, optionally filtered by active flag."""
        pass

    @abstractmethod
    async def delete_category(self, category_id: str) -> bool:
        """Delete a category by ID. Returns True if a record was removed."""
        pass


class TransactionStorageInterface(ABC):
    """
    Abstract interface for transaction storage.

    There is no multi-item atomic write: every call touches one record,
    except batch_put_transactions which writes up to MAX_BATCH_SIZE
    records without an all-or-nothing guarantee.
    """

    @abstractmethod
    async def put_transaction(self, transaction: Transaction) -> Transaction:
        """
        Insert or replace a transaction.

        Args:
            transaction: The full record to store

        Returns:
            The stored transaction

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def update_transaction(self, transaction: Transaction) -> Transaction:
        """
        Replace an existing transaction.

        Raises:
            NotFoundError: If no record exists under the transaction's key
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get_transaction(
        self,
        account: str,
        transaction_id: str,
    ) -> Optional[Transaction]:
        """
        Point lookup by composite key.

        Returns:
            The transaction if found, None otherwise
        """
        pass

    @abstractmethod
    async def delete_transaction(self, account: str, transaction_id: str) -> bool:
        """
        Delete a transaction by composite key.

        Returns:
            True if a record was removed
        """
        pass

    @abstractmethod
    async def query_by_account(self, account: str) -> list[Transaction]:
        """All transactions of one account."""
        pass

    @abstractmethod
    async def query_by_account_and_category(
        self,
        account: str,
        category: str,
    ) -> list[Transaction]:
        """Transactions of one account in one category."""
        pass

    @abstractmethod
    async def query_by_account_and_date(
        self,
        account: str,
        on_date: date,
    ) -> list[Transaction]:
        """Transactions of one account on one calendar date."""
        pass

    @abstractmethod
    async def batch_put_transactions(self, transactions: list[Transaction]) -> int:
        """
        Insert or replace up to MAX_BATCH_SIZE transactions in one call.

        Returns:
            Number of records written

        Raises:
            ValueError: If more than MAX_BATCH_SIZE records are passed
            StorageError: If the write fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one request).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


def check_batch_size(transactions: list[Transaction]) -> None:
    """Reject batches larger than the store accepts in one call."""
    if len(transactions) > MAX_BATCH_SIZE:
        raise ValueError(
            f"Batch of {len(transactions)} exceeds the limit of {MAX_BATCH_SIZE} items"
        )


__all__ = [
    "MAX_BATCH_SIZE",
    "AccountStorageInterface",
    "AuditStorageInterface",
    "CategoryStorageInterface",
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    "TransactionStorageInterface",
    "check_batch_size",
]
