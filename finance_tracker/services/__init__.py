"""Services package."""

from finance_tracker.services.storage import (
    AccountStorageInterface,
    AuditStorageInterface,
    CategoryStorageInterface,
    ConnectionError,
    InMemoryAccountStorage,
    InMemoryAuditStorage,
    InMemoryCategoryStorage,
    InMemoryTransactionStorage,
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
)

__all__ = [
    # Storage services
    "AccountStorageInterface",
    "AuditStorageInterface",
    "CategoryStorageInterface",
    "ConnectionError",
    "InMemoryAccountStorage",
    "InMemoryAuditStorage",
    "InMemoryCategoryStorage",
    "InMemoryTransactionStorage",
    "NotFoundError",
    "StorageError",
    "TransactionStorageInterface",
]
