"""
Application Wiring

Builds the object graph behind the HTTP boundary: record stores, the
transaction repository, the engines and the record services, all sharing
one AuditLogger.

The engines hold no per-request state, so a single AppComponents bundle
serves every request for the life of the process.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from finance_tracker.analytics import AnalyticsService
from finance_tracker.audit import AuditLogger
from finance_tracker.config import AppSettings, get_settings
from finance_tracker.recategorization import BulkRecategorizationEngine
from finance_tracker.repositories import TransactionRepository
from finance_tracker.services.records import (
    AccountService,
    CategoryService,
    TransactionService,
)
from finance_tracker.services.storage import (
    AccountStorageInterface,
    AuditStorageInterface,
    CategoryStorageInterface,
    InMemoryAccountStorage,
    InMemoryAuditStorage,
    InMemoryCategoryStorage,
    InMemoryTransactionStorage,
    TransactionStorageInterface,
)
from finance_tracker.transfers import TransferEngine


logger = structlog.get_logger(__name__)


@dataclass
class StorageBundle:
    """One store per entity kind."""
    accounts: AccountStorageInterface
    categories: CategoryStorageInterface
    transactions: TransactionStorageInterface
    audit: Optional[AuditStorageInterface] = None


@dataclass
class AppComponents:
    """Everything a request handler needs."""
    storage: StorageBundle
    audit_logger: AuditLogger
    repository: TransactionRepository
    transfer_engine: TransferEngine
    bulk_engine: BulkRecategorizationEngine
    analytics: AnalyticsService
    accounts: AccountService
    categories: CategoryService
    transactions: TransactionService


def create_memory_storage() -> StorageBundle:
    """Fresh, empty in-process stores."""
    return StorageBundle(
        accounts=InMemoryAccountStorage(),
        categories=InMemoryCategoryStorage(),
        transactions=InMemoryTransactionStorage(),
        audit=InMemoryAuditStorage(),
    )


def create_google_sheets_storage() -> StorageBundle:
    """Stores backed by one worksheet per entity kind in a shared spreadsheet."""
    # gspread and google-auth are only needed for this backend
    from finance_tracker.services.storage.google_sheets import (
        GoogleSheetsAccountStorage,
        GoogleSheetsAuditStorage,
        GoogleSheetsCategoryStorage,
        GoogleSheetsClient,
        GoogleSheetsTransactionStorage,
    )

    client = GoogleSheetsClient()
    return StorageBundle(
        accounts=GoogleSheetsAccountStorage(client),
        categories=GoogleSheetsCategoryStorage(client),
        transactions=GoogleSheetsTransactionStorage(client),
        audit=GoogleSheetsAuditStorage(client),
    )


def create_storage(backend: str) -> StorageBundle:
    if backend == "memory":
        return create_memory_storage()
    if backend == "google_sheets":
        return create_google_sheets_storage()
    raise ValueError(f"Unknown storage backend: {backend}")


def create_app_components(
    storage: Optional[StorageBundle] = None,
    app_settings: Optional[AppSettings] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        storage: Stores to use. When omitted, the backend named by
                 the STORAGE_BACKEND setting is created.
        app_settings: Settings override, mainly for tests.

    Returns:
        AppComponents sharing one repository and one audit logger.
    """
    app_settings = app_settings or get_settings().app
    if storage is None:
        storage = create_storage(app_settings.storage_backend)
        logger.info("storage_initialized", backend=app_settings.storage_backend)

    audit_logger = AuditLogger(storage.audit)
    repository = TransactionRepository(storage.transactions)

    return AppComponents(
        storage=storage,
        audit_logger=audit_logger,
        repository=repository,
        transfer_engine=TransferEngine(repository, audit_logger=audit_logger),
        bulk_engine=BulkRecategorizationEngine(
            repository,
            batch_size=app_settings.bulk_update_batch_size,
            batch_delay_seconds=app_settings.bulk_update_batch_delay_seconds,
            audit_logger=audit_logger,
        ),
        analytics=AnalyticsService(repository, category_storage=storage.categories),
        accounts=AccountService(storage.accounts, audit_logger=audit_logger),
        categories=CategoryService(storage.categories, audit_logger=audit_logger),
        transactions=TransactionService(repository, audit_logger=audit_logger),
    )
