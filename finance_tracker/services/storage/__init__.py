"""
Storage Services Package

Provides abstract interfaces and concrete implementations for the record
store: an in-memory backend and a Google Sheets backend.
"""

from finance_tracker.services.storage.interface import (
    MAX_BATCH_SIZE,
    AccountStorageInterface,
    AuditStorageInterface,
    CategoryStorageInterface,
    ConnectionError,
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
)
from finance_tracker.services.storage.memory import (
    InMemoryAccountStorage,
    InMemoryAuditStorage,
    InMemoryCategoryStorage,
    InMemoryTransactionStorage,
)

__all__ = [
    "MAX_BATCH_SIZE",
    # Interfaces
    "AccountStorageInterface",
    "AuditStorageInterface",
    "CategoryStorageInterface",
    "TransactionStorageInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAccountStorage",
    "InMemoryAuditStorage",
    "InMemoryCategoryStorage",
    "InMemoryTransactionStorage",
]
