"""
Exception hierarchy for Finance Tracker.

Every error the domain core can raise derives from FinanceTrackerError.
The HTTP boundary maps each family to one status code:

- ValidationError, RequestParseError -> 400
- NotFoundError -> 404
- ConflictError -> 409
- StorageError and subclasses -> 500 (generic message, detail logged)
"""

from typing import Optional


class FinanceTrackerError(Exception):
    """Base exception for all Finance Tracker errors."""


class ValidationError(FinanceTrackerError):
    """Missing or malformed required field, bad enum value, same-account transfer."""


class RequestParseError(FinanceTrackerError):
    """Request body could not be parsed as JSON."""


class NotFoundError(FinanceTrackerError):
    """Referenced entity does not exist."""


class ConflictError(FinanceTrackerError):
    """Entity is in a state that forbids the operation."""


class StorageError(FinanceTrackerError):
    """Base exception for storage operations."""


class ConnectionError(StorageError):
    """Could not connect to storage backend."""


class TransferFailedError(StorageError):
    """A transfer or conversion could not be persisted."""


class PartialTransferError(TransferFailedError):
    """
    One leg of a transfer persisted and could not be compensated.

    The orphaned leg is identified so a reconciliation pass can find it.
    """

    def __init__(
        self,
        message: str,
        transfer_id: str,
        orphan_account: str,
        orphan_transaction_id: str,
    ):
        self.transfer_id = transfer_id
        self.orphan_account = orphan_account
        self.orphan_transaction_id = orphan_transaction_id
        super().__init__(message)


class BulkUpdateError(StorageError):
    """A bulk recategorization failed part-way through."""

    def __init__(self, message: str, updated_count: int = 0, cause: Optional[Exception] = None):
        self.updated_count = updated_count
        self.cause = cause
        super().__init__(message)
