"""
Shared fixtures.

Everything runs against the in-memory stores; async code is driven with
asyncio.run so no event-loop plugin is needed.
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from finance_tracker.audit import AuditLogger
from finance_tracker.exceptions import StorageError
from finance_tracker.models.transaction import Transaction
from finance_tracker.repositories import TransactionRepository
from finance_tracker.services.storage import (
    InMemoryAuditStorage,
    InMemoryTransactionStorage,
)


def run(coro):
    """Run a coroutine to completion."""
    return asyncio.run(coro)


def make_transaction(**overrides) -> Transaction:
    fields = {
        "account": "acc1",
        "transaction_id": "t1",
        "transaction_date": date(2024, 3, 15),
        "description": "Grocery Store",
        "currency": "GBP",
        "amount": Decimal("-45.20"),
        "fee": Decimal("0"),
        "category": "groceries",
    }
    fields.update(overrides)
    return Transaction(**fields)


class FlakyTransactionStorage(InMemoryTransactionStorage):
    """In-memory store whose writes can be made to fail on demand."""

    def __init__(self):
        super().__init__()
        self.fail_put_accounts: set[str] = set()
        self.fail_update = False
        self.fail_delete = False
        self.fail_batch_number = None
        self.batch_calls = 0

    async def put_transaction(self, transaction):
        if transaction.account in self.fail_put_accounts:
            raise StorageError(f"write to {transaction.account} failed")
        return await super().put_transaction(transaction)

    async def update_transaction(self, transaction):
        if self.fail_update:
            raise StorageError("update failed")
        return await super().update_transaction(transaction)

    async def delete_transaction(self, account, transaction_id):
        if self.fail_delete:
            raise StorageError("delete failed")
        return await super().delete_transaction(account, transaction_id)

    async def batch_put_transactions(self, transactions):
        self.batch_calls += 1
        if self.batch_calls == self.fail_batch_number:
            raise StorageError("batch write failed")
        return await super().batch_put_transactions(transactions)


@pytest.fixture
def store():
    return FlakyTransactionStorage()


@pytest.fixture
def repository(store):
    return TransactionRepository(store)


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)
