"""
Transfer Engine

Moves money between two accounts as two linked transaction records:

    from_account: amount = -|A|, fee = F, transferType = outgoing
    to_account:   amount = +|A|, fee = 0, transferType = incoming

Both legs share a transferId, use the "transfer" category and point at each
other through relatedAccount.

The store has no multi-item atomic write, so every two-step operation here
compensates on failure:
- create_transfer deletes whichever leg was written if the other failed
- convert_to_transfer restores the original record if the incoming leg
  could not be written

If the compensating write fails too, PartialTransferError names the orphaned
leg; find_orphaned_legs() locates such legs after the fact.
"""

import asyncio
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional, Union
from uuid import UUID

import structlog
from pydantic import ValidationError as PydanticValidationError

from finance_tracker.audit import AuditLogger
from finance_tracker.exceptions import (
    ConflictError,
    NotFoundError,
    PartialTransferError,
    TransferFailedError,
    ValidationError,
)
from finance_tracker.models.common import Currency, new_id
from finance_tracker.models.transaction import (
    TRANSFER_CATEGORY,
    Transaction,
    TransferResult,
    TransferType,
)
from finance_tracker.repositories import TransactionRepository
from finance_tracker.validation import describe_validation_error


logger = structlog.get_logger(__name__)


def _parse_currency(currency: Union[Currency, str, None]) -> Currency:
    try:
        return Currency(currency)
    except ValueError:
        supported = " or ".join(c.value for c in Currency)
        raise ValidationError(f"Currency must be {supported}")


def _parse_decimal(value: Union[Decimal, int, float, str], field: str) -> Decimal:
    try:
        parsed = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not parsed.is_finite():
        raise ValidationError(f"{field} must be a number")
    return parsed


def _build_leg(**fields) -> Transaction:
    try:
        return Transaction(**fields)
    except PydanticValidationError as e:
        raise ValidationError(describe_validation_error(e)) from e


class TransferEngine:
    """
    Creates transfers and promotes existing transactions into transfers.

    Stateless apart from its collaborators; one instance serves every request.
    """

    def __init__(
        self,
        repository: TransactionRepository,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repository = repository
        self._audit_logger = audit_logger

    async def create_transfer(
        self,
        from_account: str,
        to_account: str,
        amount: Union[Decimal, int, float, str],
        transaction_date: date,
        description: str,
        currency: Union[Currency, str],
        fee: Union[Decimal, int, float, str, None] = None,
        correlation_id: Optional[UUID] = None,
    ) -> TransferResult:
        """
        Create both legs of a new transfer.

        The amount's sign is ignored: the outgoing leg is always -|amount|
        and the incoming leg +|amount|. The fee lands on the outgoing leg only.

        Raises:
            ValidationError: missing field, same account, bad currency or amount
            TransferFailedError: a leg could not be written (rolled back)
            PartialTransferError: a leg could not be written nor rolled back
        """
        missing = [
            name
            for name, value in (
                ("fromAccount", from_account),
                ("toAccount", to_account),
                ("amount", amount),
                ("date", transaction_date),
                ("description", description),
            )
            if value is None or value == ""
        ]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        if from_account == to_account:
            raise ValidationError("Cannot transfer to the same account")

        currency = _parse_currency(currency)
        magnitude = abs(_parse_decimal(amount, "amount"))
        if magnitude == 0:
            raise ValidationError("amount must not be zero")
        fee_amount = _parse_decimal(fee, "fee") if fee not in (None, "") else Decimal("0")
        if fee_amount < 0:
            raise ValidationError("fee must not be negative")

        transfer_id = new_id()
        outgoing = _build_leg(
            account=from_account,
            transaction_date=transaction_date,
            description=description,
            currency=currency,
            amount=-magnitude,
            fee=fee_amount,
            category=TRANSFER_CATEGORY,
            transfer_id=transfer_id,
            transfer_type=TransferType.OUTGOING,
            related_account=to_account,
        )
        incoming = _build_leg(
            account=to_account,
            transaction_date=transaction_date,
            description=description,
            currency=currency,
            amount=magnitude,
            fee=Decimal("0"),
            category=TRANSFER_CATEGORY,
            transfer_id=transfer_id,
            transfer_type=TransferType.INCOMING,
            related_account=from_account,
        )

        results = await asyncio.gather(
            self._repository.save(outgoing),
            self._repository.save(incoming),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result

        failures = [r for r in results if isinstance(r, Exception)]
        if failures:
            written = [
                leg for leg, result in zip((outgoing, incoming), results)
                if not isinstance(result, Exception)
            ]
            await self._roll_back_legs(transfer_id, written, failures[0], correlation_id)

        logger.info(
            "transfer_created",
            transfer_id=transfer_id,
            from_account=from_account,
            to_account=to_account,
            amount=str(magnitude),
        )
        if self._audit_logger:
            await self._audit_logger.log_transfer_created(
                transfer_id=transfer_id,
                from_account=from_account,
                to_account=to_account,
                amount=str(magnitude),
                correlation_id=correlation_id,
            )

        return TransferResult(
            transfer_id=transfer_id,
            outgoing_transaction=outgoing,
            incoming_transaction=incoming,
        )

    async def convert_to_transfer(
        self,
        account: str,
        transaction_id: str,
        to_account: str,
        correlation_id: Optional[UUID] = None,
    ) -> TransferResult:
        """
        Promote an existing transaction to the outgoing leg of a transfer.

        The record keeps its identity, date, description and currency; its
        amount becomes -|amount| and its category "transfer". A matching
        incoming leg is created in to_account.

        Raises:
            ValidationError: missing field or to_account == account
            NotFoundError: no such transaction
            ConflictError: the transaction is already a transfer leg
            TransferFailedError: a write failed (original record restored)
            PartialTransferError: a write failed and could not be undone
        """
        if not account or not transaction_id:
            raise ValidationError("transactionId and account are required")
        if not to_account:
            raise ValidationError("toAccount is required")
        if account == to_account:
            raise ValidationError("Cannot transfer to the same account")

        original = await self._repository.require(account, transaction_id)
        if original.is_transfer:
            raise ConflictError("Transaction is already a transfer")

        transfer_id = new_id()
        magnitude = original.magnitude
        outgoing = original.model_copy(update={
            "transfer_id": transfer_id,
            "transfer_type": TransferType.OUTGOING,
            "related_account": to_account,
            "category": TRANSFER_CATEGORY,
            "amount": -magnitude,
        })
        incoming = _build_leg(
            account=to_account,
            transaction_date=original.transaction_date,
            description=original.description,
            currency=original.currency,
            amount=magnitude,
            fee=Decimal("0"),
            category=TRANSFER_CATEGORY,
            transfer_id=transfer_id,
            transfer_type=TransferType.INCOMING,
            related_account=account,
        )

        try:
            await self._repository.replace(outgoing)
        except NotFoundError:
            raise
        except Exception as e:
            logger.error(
                "convert_to_transfer_failed",
                account=account,
                transaction_id=transaction_id,
                step="promote",
                exc_info=True,
            )
            raise TransferFailedError("Failed to convert transaction to transfer") from e

        try:
            await self._repository.save(incoming)
        except Exception as e:
            await self._restore_original(transfer_id, original, outgoing, e, correlation_id)

        logger.info(
            "transaction_converted",
            transfer_id=transfer_id,
            account=account,
            transaction_id=transaction_id,
            to_account=to_account,
        )
        if self._audit_logger:
            await self._audit_logger.log_transaction_converted(
                transfer_id=transfer_id,
                account=account,
                transaction_id=transaction_id,
                to_account=to_account,
                correlation_id=correlation_id,
            )

        return TransferResult(
            transfer_id=transfer_id,
            outgoing_transaction=outgoing,
            incoming_transaction=incoming,
        )

    async def find_orphaned_legs(self, account: str) -> list[Transaction]:
        """
        Transfer legs in `account` whose partner leg is missing.

        A partner is a record in relatedAccount with the same transferId
        and the opposite transferType.
        """
        legs = await self._repository.find_transfer_legs(account)
        partners_by_account: dict[str, list[Transaction]] = {}
        orphans = []

        for leg in legs:
            counterpart = leg.related_account
            if not counterpart:
                orphans.append(leg)
                continue
            if counterpart not in partners_by_account:
                partners_by_account[counterpart] = await self._repository.find_transfer_legs(
                    counterpart
                )
            has_partner = any(
                other.transfer_id == leg.transfer_id
                and other.transfer_type != leg.transfer_type
                for other in partners_by_account[counterpart]
            )
            if not has_partner:
                orphans.append(leg)

        if orphans:
            logger.warning(
                "orphaned_transfer_legs",
                account=account,
                count=len(orphans),
                transfer_ids=[leg.transfer_id for leg in orphans],
            )
        return orphans

    async def _roll_back_legs(
        self,
        transfer_id: str,
        written: list[Transaction],
        cause: Exception,
        correlation_id: Optional[UUID],
    ) -> None:
        """Delete legs that were written for a transfer that failed, then raise."""
        logger.error(
            "create_transfer_failed",
            transfer_id=transfer_id,
            written_legs=len(written),
            error=str(cause),
            exc_info=cause,
        )

        for leg in written:
            try:
                await self._repository.delete(leg.account, leg.transaction_id)
            except Exception as e:
                logger.critical(
                    "transfer_rollback_failed",
                    transfer_id=transfer_id,
                    orphan_account=leg.account,
                    orphan_transaction_id=leg.transaction_id,
                    exc_info=True,
                )
                if self._audit_logger:
                    await self._audit_logger.log_transfer_failed(
                        transfer_id=transfer_id,
                        operation="create_transfer",
                        error_message=str(e),
                        compensated=False,
                        correlation_id=correlation_id,
                    )
                raise PartialTransferError(
                    "Failed to create transfer",
                    transfer_id=transfer_id,
                    orphan_account=leg.account,
                    orphan_transaction_id=leg.transaction_id,
                ) from cause

        if self._audit_logger:
            await self._audit_logger.log_transfer_failed(
                transfer_id=transfer_id,
                operation="create_transfer",
                error_message=str(cause),
                compensated=True,
                correlation_id=correlation_id,
            )
        raise TransferFailedError("Failed to create transfer") from cause

    async def _restore_original(
        self,
        transfer_id: str,
        original: Transaction,
        promoted: Transaction,
        cause: Exception,
        correlation_id: Optional[UUID],
    ) -> None:
        """Put back the pre-conversion record after the incoming leg failed, then raise."""
        logger.error(
            "convert_to_transfer_failed",
            transfer_id=transfer_id,
            account=original.account,
            transaction_id=original.transaction_id,
            step="incoming_leg",
            error=str(cause),
            exc_info=cause,
        )

        try:
            await self._repository.save(original)
        except Exception as e:
            logger.critical(
                "transfer_rollback_failed",
                transfer_id=transfer_id,
                orphan_account=promoted.account,
                orphan_transaction_id=promoted.transaction_id,
                exc_info=True,
            )
            if self._audit_logger:
                await self._audit_logger.log_transfer_failed(
                    transfer_id=transfer_id,
                    operation="convert_to_transfer",
                    error_message=str(e),
                    compensated=False,
                    correlation_id=correlation_id,
                )
            raise PartialTransferError(
                "Failed to convert transaction to transfer",
                transfer_id=transfer_id,
                orphan_account=promoted.account,
                orphan_transaction_id=promoted.transaction_id,
            ) from cause

        if self._audit_logger:
            await self._audit_logger.log_transfer_failed(
                transfer_id=transfer_id,
                operation="convert_to_transfer",
                error_message=str(cause),
                compensated=True,
                correlation_id=correlation_id,
            )
        raise TransferFailedError("Failed to convert transaction to transfer") from cause
