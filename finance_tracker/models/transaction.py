"""
Transaction Models

A transaction is addressed by the pair (account, transactionId). The
account is the partition; transactionId alone does not locate a record.

A transfer is two transactions, one per account, that share a transferId:
- the outgoing leg has a negative amount and carries any fee
- the incoming leg has the same positive magnitude and a zero fee
- each leg's relatedAccount names the other leg's account

Plain transactions leave the three linkage fields empty. Once a record
carries a transferType it can never be converted into a transfer again.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from finance_tracker.models.common import CamelModel, Currency, Money, new_id


TRANSFER_CATEGORY = "transfer"


class TransferType(str, Enum):
    """Which side of a transfer a transaction is."""
    OUTGOING = "outgoing"
    INCOMING = "incoming"


class Transaction(CamelModel):
    """A single money movement within one account."""

    # Identity
    account: str = Field(
        ...,
        min_length=1,
        description="Account (partition) this transaction belongs to"
    )
    transaction_id: str = Field(
        default_factory=new_id,
        description="Discriminator within the account"
    )

    transaction_date: date = Field(
        ...,
        alias="date",
        description="Calendar date of the transaction"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Free-text description as shown on the statement"
    )
    currency: Currency
    amount: Money = Field(
        ...,
        description="Signed amount: positive is income, negative is expense"
    )
    fee: Money = Field(
        default=Decimal("0"),
        ge=0,
        description="Fee charged on this transaction"
    )
    category: str = Field(
        ...,
        min_length=1,
        description="Category id, or the literal 'transfer'"
    )

    # Transfer linkage
    transfer_id: Optional[str] = None
    transfer_type: Optional[TransferType] = None
    related_account: Optional[str] = None

    updated_at: Optional[datetime] = None

    @property
    def is_transfer(self) -> bool:
        """True once the record is one leg of a transfer."""
        return self.transfer_type is not None

    @property
    def magnitude(self) -> Decimal:
        """Absolute value of the amount."""
        return abs(self.amount)

    @property
    def key(self) -> tuple[str, str]:
        """Composite (account, transaction_id) identity."""
        return self.account, self.transaction_id


# =============================================================================
# REQUEST PAYLOADS
# =============================================================================

class TransactionCreate(CamelModel):
    """Body of POST /transactions."""

    account: str = Field(..., min_length=1)
    transaction_date: date = Field(..., alias="date")
    description: str = Field(..., min_length=1, max_length=500)
    currency: Currency
    amount: Money
    fee: Money = Field(..., ge=0)
    category: str = Field(..., min_length=1)


class TransactionUpdate(CamelModel):
    """
    Body of PUT /transactions/{id}.

    The key attributes (account, transactionId) and the transfer linkage
    are not updatable here.
    """

    transaction_date: Optional[date] = Field(default=None, alias="date")
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    currency: Optional[Currency] = None
    amount: Optional[Money] = None
    fee: Optional[Money] = Field(default=None, ge=0)
    category: Optional[str] = Field(default=None, min_length=1)


class TransferRequest(CamelModel):
    """Body of POST /transactions/transfer."""

    from_account: str = Field(..., min_length=1)
    to_account: str = Field(..., min_length=1)
    amount: Money
    transaction_date: date = Field(..., alias="date")
    description: str = Field(..., min_length=1, max_length=500)
    currency: Currency
    fee: Optional[Money] = Field(default=None, ge=0)

    @field_validator("fee", mode="before")
    @classmethod
    def fee_defaults_to_zero(cls, v):
        """An absent or null fee means no fee."""
        return Decimal("0") if v is None else v

    @field_validator("amount")
    @classmethod
    def amount_not_zero(cls, v: Decimal) -> Decimal:
        """A zero transfer moves nothing."""
        if v == 0:
            raise ValueError("amount must not be zero")
        return v


class ConvertToTransferRequest(CamelModel):
    """Body of PUT /transactions/{id}/convert-to-transfer."""

    to_account: str = Field(..., min_length=1)


class BulkUpdateRequest(CamelModel):
    """Body of POST /transactions/bulkUpdate."""

    account: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    new_category: str = Field(..., min_length=1)


# =============================================================================
# RESULTS
# =============================================================================

class TransferResult(CamelModel):
    """Both legs of a transfer and the id that links them."""

    transfer_id: str
    outgoing_transaction: Transaction
    incoming_transaction: Transaction


class BulkUpdateOutcome(str, Enum):
    """How a bulk recategorization ended."""
    NO_TRANSACTIONS = "no_transactions"
    NO_MATCHES = "no_matches"
    UPDATED = "updated"


class BulkUpdateResult(CamelModel):
    """Result of a bulk recategorization."""

    updated_count: int = Field(..., ge=0)
    outcome: BulkUpdateOutcome
    message: str
