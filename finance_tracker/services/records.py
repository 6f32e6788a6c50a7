"""
Record Services

Plain create/read/update/delete for accounts, categories and transactions.

Nothing here enforces referential integrity: deleting an account or
category leaves transactions pointing at it, and deleting one leg of a
transfer leaves the other in place (see TransferEngine.find_orphaned_legs).
Deletes are idempotent.
"""

from datetime import date
from typing import Optional
from uuid import UUID

import structlog

from finance_tracker.audit import AuditLogger
from finance_tracker.exceptions import NotFoundError
from finance_tracker.models.account import Account, AccountUpdate
from finance_tracker.models.audit import AuditEventType
from finance_tracker.models.category import Category, CategoryUpdate
from finance_tracker.models.common import utcnow
from finance_tracker.models.transaction import (
    Transaction,
    TransactionCreate,
    TransactionUpdate,
)
from finance_tracker.repositories import TransactionRepository
from finance_tracker.services.storage import (
    AccountStorageInterface,
    CategoryStorageInterface,
)
from finance_tracker.validation import changes_from


logger = structlog.get_logger(__name__)


class AccountService:
    """Bank account records."""

    def __init__(
        self,
        storage: AccountStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger

    async def list_accounts(self, is_active: Optional[bool] = None) -> list[Account]:
        return await self._storage.list_accounts(is_active=is_active)

    async def get(self, account_id: str) -> Account:
        account = await self._storage.get_account(account_id)
        if account is None:
            raise NotFoundError("Account not found")
        return account

    async def create(self, account: Account, correlation_id: Optional[UUID] = None) -> Account:
        saved = await self._storage.save_account(account)
        logger.info("account_created", account_id=saved.account_id)
        await self._audit(AuditEventType.ACCOUNT_CREATED, saved.account_id, correlation_id)
        return saved

    async def update(
        self,
        account_id: str,
        update: AccountUpdate,
        correlation_id: Optional[UUID] = None,
    ) -> Account:
        """Apply the supplied fields and stamp updatedAt; accountId and createdAt never change."""
        changes = changes_from(update)
        existing = await self.get(account_id)
        updated = existing.model_copy(update={**changes, "updated_at": utcnow()})
        saved = await self._storage.save_account(updated)
        logger.info("account_updated", account_id=account_id, fields=sorted(changes))
        await self._audit(AuditEventType.ACCOUNT_UPDATED, account_id, correlation_id)
        return saved

    async def delete(self, account_id: str, correlation_id: Optional[UUID] = None) -> None:
        if await self._storage.delete_account(account_id):
            logger.info("account_deleted", account_id=account_id)
            await self._audit(AuditEventType.ACCOUNT_DELETED, account_id, correlation_id)

    async def _audit(self, event_type, account_id, correlation_id):
        if self._audit_logger:
            await self._audit_logger.log_record_changed(
                event_type=event_type,
                entity_type="account",
                entity_id=account_id,
                correlation_id=correlation_id,
            )


class CategoryService:
    """User-defined categories."""

    def __init__(
        self,
        storage: CategoryStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger

    async def list_categories(self, is_active: Optional[bool] = None) -> list[Category]:
        return await self._storage.list_categories(is_active=is_active)

    async def get(self, category_id: str) -> Category:
        category = await self._storage.get_category(category_id)
        if category is None:
            raise NotFoundError("Category not found")
        return category

    async def create(self, category: Category, correlation_id: Optional[UUID] = None) -> Category:
        saved = await self._storage.save_category(category)
        logger.info("category_created", category_id=saved.category_id)
        await self._audit(AuditEventType.CATEGORY_CREATED, saved.category_id, correlation_id)
        return saved

    async def update(
        self,
        category_id: str,
        update: CategoryUpdate,
        correlation_id: Optional[UUID] = None,
    ) -> Category:
        changes = changes_from(update)
        existing = await self.get(category_id)
        updated = existing.model_copy(update={**changes, "updated_at": utcnow()})
        saved = await self._storage.save_category(updated)
        logger.info("category_updated", category_id=category_id, fields=sorted(changes))
        await self._audit(AuditEventType.CATEGORY_UPDATED, category_id, correlation_id)
        return saved

    async def delete(self, category_id: str, correlation_id: Optional[UUID] = None) -> None:
        # transactions keep the id; analytics shows them as "Unknown"
        if await self._storage.delete_category(category_id):
            logger.info("category_deleted", category_id=category_id)
            await self._audit(AuditEventType.CATEGORY_DELETED, category_id, correlation_id)

    async def _audit(self, event_type, category_id, correlation_id):
        if self._audit_logger:
            await self._audit_logger.log_record_changed(
                event_type=event_type,
                entity_type="category",
                entity_id=category_id,
                correlation_id=correlation_id,
            )


class TransactionService:
    """Plain (non-transfer) transaction operations."""

    def __init__(
        self,
        repository: TransactionRepository,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repository = repository
        self._audit_logger = audit_logger

    async def list_transactions(
        self,
        account: str,
        category: Optional[str] = None,
        on_date: Optional[date] = None,
    ) -> list[Transaction]:
        return await self._repository.list_for_account(account, category=category, on_date=on_date)

    async def get(self, account: str, transaction_id: str) -> Transaction:
        return await self._repository.require(account, transaction_id)

    async def create(
        self,
        request: TransactionCreate,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        transaction = Transaction(**request.model_dump())
        saved = await self._repository.save(transaction)
        logger.info(
            "transaction_created",
            account=saved.account,
            transaction_id=saved.transaction_id,
        )
        await self._audit(AuditEventType.TRANSACTION_CREATED, saved, correlation_id)
        return saved

    async def update(
        self,
        account: str,
        transaction_id: str,
        update: TransactionUpdate,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Apply the supplied fields to an existing transaction.

        Transfer linkage is left as is; editing one leg does not touch its
        partner.
        """
        changes = changes_from(update)
        existing = await self._repository.require(account, transaction_id)
        saved = await self._repository.replace(existing.model_copy(update=changes))
        logger.info(
            "transaction_updated",
            account=account,
            transaction_id=transaction_id,
            fields=sorted(changes),
        )
        await self._audit(AuditEventType.TRANSACTION_UPDATED, saved, correlation_id)
        return saved

    async def delete(
        self,
        account: str,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        existing = await self._repository.get(account, transaction_id)
        if existing is None:
            return
        await self._repository.delete(account, transaction_id)
        if existing.is_transfer:
            logger.warning(
                "transfer_leg_deleted",
                account=account,
                transaction_id=transaction_id,
                transfer_id=existing.transfer_id,
                related_account=existing.related_account,
            )
        else:
            logger.info("transaction_deleted", account=account, transaction_id=transaction_id)
        await self._audit(AuditEventType.TRANSACTION_DELETED, existing, correlation_id)

    async def _audit(self, event_type, transaction, correlation_id):
        if self._audit_logger:
            await self._audit_logger.log_record_changed(
                event_type=event_type,
                entity_type="transaction",
                entity_id=f"{transaction.account}/{transaction.transaction_id}",
                correlation_id=correlation_id,
            )
