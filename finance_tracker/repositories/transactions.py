"""
Transaction Repository

Thin data-access layer between the engines and the record store. It maps
domain reads onto the store's three access paths (by account, by
account+category, by account+date) and turns "missing" into NotFoundError
where the caller needs a record to exist.
"""

from datetime import date
from typing import Optional

from finance_tracker.exceptions import NotFoundError
from finance_tracker.models.transaction import Transaction
from finance_tracker.services.storage import TransactionStorageInterface


class TransactionRepository:
    """Domain-level access to stored transactions."""

    def __init__(self, storage: TransactionStorageInterface):
        self._storage = storage

    async def list_for_account(
        self,
        account: str,
        category: Optional[str] = None,
        on_date: Optional[date] = None,
    ) -> list[Transaction]:
        """
        Transactions of one account.

        A category filter takes precedence over a date filter, matching the
        store's secondary indexes (only one index is used per query).
        """
        if category:
            return await self._storage.query_by_account_and_category(account, category)
        if on_date:
            return await self._storage.query_by_account_and_date(account, on_date)
        return await self._storage.query_by_account(account)

    async def get(self, account: str, transaction_id: str) -> Optional[Transaction]:
        return await self._storage.get_transaction(account, transaction_id)

    async def require(self, account: str, transaction_id: str) -> Transaction:
        """Like get(), but raises NotFoundError when the record is absent."""
        transaction = await self._storage.get_transaction(account, transaction_id)
        if transaction is None:
            raise NotFoundError("Transaction not found")
        return transaction

    async def save(self, transaction: Transaction) -> Transaction:
        """Insert or replace a full record."""
        return await self._storage.put_transaction(transaction)

    async def replace(self, transaction: Transaction) -> Transaction:
        """Replace a record that must already exist."""
        return await self._storage.update_transaction(transaction)

    async def delete(self, account: str, transaction_id: str) -> bool:
        return await self._storage.delete_transaction(account, transaction_id)

    async def save_batch(self, transactions: list[Transaction]) -> int:
        return await self._storage.batch_put_transactions(transactions)

    async def find_transfer_legs(self, account: str) -> list[Transaction]:
        """Transactions of an account that belong to a transfer."""
        transactions = await self._storage.query_by_account(account)
        return [t for t in transactions if t.transfer_id]
