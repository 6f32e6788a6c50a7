"""
Bank account models.

Accounts are plain records: the Transfer Engine never adjusts a balance,
so `balance` is whatever the user last entered.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import ConfigDict, Field

from finance_tracker.models.common import CamelModel, Currency, Money, new_id, utcnow


class AccountType(str, Enum):
    """Kinds of bank account."""
    CHECKING = "CHECKING"
    SAVINGS = "SAVINGS"
    CREDIT = "CREDIT"
    INVESTMENT = "INVESTMENT"


class Account(CamelModel):
    """A bank account owned by the user."""
    model_config = ConfigDict(str_strip_whitespace=True)

    account_id: str = Field(
        default_factory=new_id,
        description="Unique account identifier"
    )
    account_name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display name"
    )
    account_number: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Account number as printed by the bank"
    )
    bank_name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Name of the bank holding the account"
    )
    account_type: AccountType
    currency: Currency
    balance: Optional[Money] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class AccountUpdate(CamelModel):
    """Fields a client may change on an existing account."""

    account_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    account_number: Optional[str] = Field(default=None, min_length=1, max_length=50)
    bank_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    account_type: Optional[AccountType] = None
    currency: Optional[Currency] = None
    balance: Optional[Money] = None
    is_active: Optional[bool] = None
