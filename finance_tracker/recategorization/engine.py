"""
Bulk Recategorization Engine

Reassigns the category of every transaction in one account whose
description matches a given string exactly (case-sensitive, no trimming).

Matching records are re-persisted in full, in batches no larger than the
store's per-call limit. Batches run one after another with a configurable
pause between them; the records inside one batch are written in a single
batch call.
"""

import asyncio
from typing import Optional
from uuid import UUID

import structlog

from finance_tracker.audit import AuditLogger
from finance_tracker.exceptions import BulkUpdateError, ValidationError
from finance_tracker.models.common import utcnow
from finance_tracker.models.transaction import (
    BulkUpdateOutcome,
    BulkUpdateResult,
    Transaction,
)
from finance_tracker.repositories import TransactionRepository
from finance_tracker.services.storage import MAX_BATCH_SIZE


logger = structlog.get_logger(__name__)


class BulkRecategorizationEngine:
    """Rewrites the category of all same-description transactions in an account."""

    def __init__(
        self,
        repository: TransactionRepository,
        batch_size: int = MAX_BATCH_SIZE,
        batch_delay_seconds: float = 0.1,
        audit_logger: Optional[AuditLogger] = None,
    ):
        if not 1 <= batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {MAX_BATCH_SIZE}")
        if batch_delay_seconds < 0:
            raise ValueError("batch_delay_seconds must not be negative")
        self._repository = repository
        self._batch_size = batch_size
        self._batch_delay_seconds = batch_delay_seconds
        self._audit_logger = audit_logger

    async def bulk_update_by_description(
        self,
        account: str,
        description: str,
        new_category: str,
        correlation_id: Optional[UUID] = None,
    ) -> BulkUpdateResult:
        """
        Set `new_category` on every transaction of `account` whose
        description equals `description`.

        Returns:
            BulkUpdateResult; the two zero-count outcomes (no transactions in
            the account, no description matches) are reported separately.

        Raises:
            ValidationError: a parameter is missing or empty
            BulkUpdateError: a batch failed; carries the count already written
        """
        missing = [
            name
            for name, value in (
                ("account", account),
                ("description", description),
                ("newCategory", new_category),
            )
            if not value
        ]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        transactions = await self._repository.list_for_account(account)
        if not transactions:
            return BulkUpdateResult(
                updated_count=0,
                outcome=BulkUpdateOutcome.NO_TRANSACTIONS,
                message=f"No transactions found for account {account}",
            )

        matches = [t for t in transactions if t.description == description]
        if not matches:
            return BulkUpdateResult(
                updated_count=0,
                outcome=BulkUpdateOutcome.NO_MATCHES,
                message=f"No transactions matching description '{description}'",
            )

        stamped_at = utcnow()
        updated = [
            t.model_copy(update={"category": new_category, "updated_at": stamped_at})
            for t in matches
        ]

        updated_count = 0
        for index, batch in enumerate(self._batches(updated)):
            if index > 0 and self._batch_delay_seconds:
                await asyncio.sleep(self._batch_delay_seconds)
            try:
                updated_count += await self._repository.save_batch(batch)
            except Exception as e:
                logger.error(
                    "bulk_update_failed",
                    account=account,
                    batch=index,
                    updated_count=updated_count,
                    exc_info=True,
                )
                if self._audit_logger:
                    await self._audit_logger.log_bulk_recategorize_failed(
                        account=account,
                        updated_count=updated_count,
                        error_message=str(e),
                        correlation_id=correlation_id,
                    )
                raise BulkUpdateError(
                    "Failed to bulk update transactions",
                    updated_count=updated_count,
                    cause=e,
                ) from e
            logger.debug("bulk_update_batch_written", account=account, batch=index, size=len(batch))

        logger.info(
            "bulk_update_completed",
            account=account,
            new_category=new_category,
            updated_count=updated_count,
        )
        if self._audit_logger:
            await self._audit_logger.log_bulk_recategorized(
                account=account,
                description=description,
                new_category=new_category,
                updated_count=updated_count,
                correlation_id=correlation_id,
            )

        return BulkUpdateResult(
            updated_count=updated_count,
            outcome=BulkUpdateOutcome.UPDATED,
            message=f"Updated {updated_count} transactions to category {new_category}",
        )

    def _batches(self, transactions: list[Transaction]) -> list[list[Transaction]]:
        size = self._batch_size
        return [transactions[i:i + size] for i in range(0, len(transactions), size)]
