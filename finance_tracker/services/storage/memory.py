"""
In-Memory Storage Implementation

Dictionary-backed implementation of every storage interface. Used by the
test suite and for local development (`STORAGE_BACKEND=memory`).

Records are copied on the way in and on the way out, so a caller mutating
a returned model never changes what is stored.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from finance_tracker.exceptions import NotFoundError
from finance_tracker.models.account import Account
from finance_tracker.models.audit import AuditEvent
from finance_tracker.models.category import Category
from finance_tracker.models.transaction import Transaction
from finance_tracker.services.storage.interface import (
    AccountStorageInterface,
    AuditStorageInterface,
    CategoryStorageInterface,
    TransactionStorageInterface,
    check_batch_size,
)


class InMemoryAccountStorage(AccountStorageInterface):
    """Accounts keyed by account_id."""

    def __init__(self):
        self._accounts: dict[str, Account] = {}

    async def save_account(self, account: Account) -> Account:
        self._accounts[account.account_id] = account.model_copy(deep=True)
        return account

    async def get_account(self, account_id: str) -> Optional[Account]:
        account = self._accounts.get(account_id)
        return account.model_copy(deep=True) if account else None

    async def list_accounts(self, is_active: Optional[bool] = None) -> list[Account]:
        return [
            account.model_copy(deep=True)
            for account in self._accounts.values()
            if is_active is None or account.is_active == is_active
        ]

    async def delete_account(self, account_id: str) -> bool:
        return self._accounts.pop(account_id, None) is not None


class InMemoryCategoryStorage(CategoryStorageInterface):
    """Categories keyed by category_id."""

    def __init__(self):
        self._categories: dict[str, Category] = {}

    async def save_category(self, category: Category) -> Category:
        self._categories[category.category_id] = category.model_copy(deep=True)
        return category

    async def get_category(self, category_id: str) -> Optional[Category]:
        category = self._categories.get(category_id)
        return category.model_copy(deep=True) if category else None

    async def list_categories(self, is_active: Optional[bool] = None) -> list[Category]:
        return [
            category.model_copy(deep=True)
            for category in self._categories.values()
            if is_active is None or category.is_active == is_active
        ]

    async def delete_category(self, category_id: str) -> bool:
        return self._categories.pop(category_id, None) is not None


class InMemoryTransactionStorage(TransactionStorageInterface):
    """Transactions keyed by (account, transaction_id)."""

    def __init__(self):
        self._transactions: dict[tuple[str, str], Transaction] = {}

    async def put_transaction(self, transaction: Transaction) -> Transaction:
        self._transactions[transaction.key] = transaction.model_copy(deep=True)
        return transaction

    async def update_transaction(self, transaction: Transaction) -> Transaction:
        if transaction.key not in self._transactions:
            raise NotFoundError(
                f"Transaction not found: {transaction.account}/{transaction.transaction_id}"
            )
        self._transactions[transaction.key] = transaction.model_copy(deep=True)
        return transaction

    async def get_transaction(
        self,
        account: str,
        transaction_id: str,
    ) -> Optional[Transaction]:
        transaction = self._transactions.get((account, transaction_id))
        return transaction.model_copy(deep=True) if transaction else None

    async def delete_transaction(self, account: str, transaction_id: str) -> bool:
        return self._transactions.pop((account, transaction_id), None) is not None

    async def query_by_account(self, account: str) -> list[Transaction]:
        return [
            transaction.model_copy(deep=True)
            for (owner, _), transaction in self._transactions.items()
            if owner == account
        ]

    async def query_by_account_and_category(
        self,
        account: str,
        category: str,
    ) -> list[Transaction]:
        return [t for t in await self.query_by_account(account) if t.category == category]

    async def query_by_account_and_date(
        self,
        account: str,
        on_date: date,
    ) -> list[Transaction]:
        return [
            t for t in await self.query_by_account(account) if t.transaction_date == on_date
        ]

    async def batch_put_transactions(self, transactions: list[Transaction]) -> int:
        check_batch_size(transactions)
        for transaction in transactions:
            await self.put_transaction(transaction)
        return len(transactions)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
