"""
Request Payload Validation

Turns raw JSON request bodies into the typed request models.

Validation happens in two steps:

STEP 1 - PRESENCE:
- required wire fields must be present and non-empty
- reported together as "Missing required fields: a, b"

STEP 2 - SCHEMA:
- pydantic validation of types, enums and bounds
- enum failures get the fixed messages clients already display
  ("Currency must be GBP or EUR", ...)

Validation never fixes input. Unknown fields are ignored, which is also
how key attributes (accountId, transactionId, createdAt) are kept out of
updates.
"""

import json
from typing import Any, Iterable, Optional, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from finance_tracker.exceptions import RequestParseError, ValidationError
from finance_tracker.models.account import Account, AccountType, AccountUpdate
from finance_tracker.models.category import Category, CategoryUpdate
from finance_tracker.models.common import Currency
from finance_tracker.models.transaction import (
    BulkUpdateRequest,
    ConvertToTransferRequest,
    TransactionCreate,
    TransactionUpdate,
    TransferRequest,
)


ModelT = TypeVar("ModelT", bound=BaseModel)

CURRENCY_MESSAGE = "Currency must be {}".format(" or ".join(c.value for c in Currency))
ACCOUNT_TYPE_MESSAGE = "Account type must be {}, or {}".format(
    ", ".join(t.value for t in list(AccountType)[:-1]),
    list(AccountType)[-1].value,
)

# Wire field name -> fixed message for any error on that field
_FIELD_MESSAGES = {
    "currency": CURRENCY_MESSAGE,
    "accountType": ACCOUNT_TYPE_MESSAGE,
}

ACCOUNT_REQUIRED_FIELDS = ("accountName", "accountNumber", "bankName", "accountType", "currency")
TRANSACTION_REQUIRED_FIELDS = ("account", "date", "description", "currency", "amount", "fee", "category")
TRANSFER_REQUIRED_FIELDS = ("fromAccount", "toAccount", "amount", "date", "description")
BULK_UPDATE_REQUIRED_FIELDS = ("account", "description", "newCategory")


def parse_json_body(raw: Union[bytes, str, None]) -> dict:
    """
    Decode a request body into a JSON object.

    Raises:
        ValidationError: the body is empty
        RequestParseError: the body is not valid JSON, or not an object
    """
    if raw is None or not raw.strip():
        raise ValidationError("Request body is required")
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise RequestParseError("Invalid JSON in request body")
    if not isinstance(payload, dict):
        raise RequestParseError("Request body must be a JSON object")
    return payload


def require_fields(payload: dict, fields: Iterable[str], message: Optional[str] = None) -> None:
    """Raise ValidationError naming every field that is absent, null or empty."""
    missing = [name for name in fields if _is_blank(payload.get(name))]
    if missing:
        raise ValidationError(message or f"Missing required fields: {', '.join(missing)}")


def parse_model(model: type[ModelT], payload: dict) -> ModelT:
    """Validate a payload against a model, raising our ValidationError on failure."""
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(describe_validation_error(e)) from e


def changes_from(update: BaseModel) -> dict[str, Any]:
    """
    Explicitly supplied, non-null fields of an update model.

    Raises:
        ValidationError: nothing updatable was supplied
    """
    changes = update.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise ValidationError("No valid fields to update")
    return changes


# =============================================================================
# PER-RESOURCE PARSERS
# =============================================================================

def parse_account_create(payload: dict) -> Account:
    require_fields(payload, ACCOUNT_REQUIRED_FIELDS)
    # server-assigned fields
    payload = {k: v for k, v in payload.items() if k not in ("accountId", "createdAt", "updatedAt")}
    return parse_model(Account, payload)


def parse_account_update(payload: dict) -> AccountUpdate:
    return parse_model(AccountUpdate, payload)


def parse_category_create(payload: dict) -> Category:
    require_fields(payload, ("name",), message="Missing required field: name")
    payload = {k: v for k, v in payload.items() if k not in ("categoryId", "createdAt", "updatedAt")}
    return parse_model(Category, payload)


def parse_category_update(payload: dict) -> CategoryUpdate:
    return parse_model(CategoryUpdate, payload)


def parse_transaction_create(payload: dict) -> TransactionCreate:
    require_fields(payload, TRANSACTION_REQUIRED_FIELDS)
    return parse_model(TransactionCreate, payload)


def parse_transaction_update(payload: dict) -> TransactionUpdate:
    return parse_model(TransactionUpdate, payload)


def parse_transfer_request(payload: dict) -> TransferRequest:
    require_fields(payload, TRANSFER_REQUIRED_FIELDS)
    if payload["fromAccount"] == payload["toAccount"]:
        raise ValidationError("Cannot transfer to the same account")
    return parse_model(TransferRequest, payload)


def parse_convert_request(payload: dict) -> ConvertToTransferRequest:
    require_fields(payload, ("toAccount",), message="toAccount is required")
    return parse_model(ConvertToTransferRequest, payload)


def parse_bulk_update_request(payload: dict) -> BulkUpdateRequest:
    require_fields(payload, BULK_UPDATE_REQUIRED_FIELDS)
    return parse_model(BulkUpdateRequest, payload)


# =============================================================================
# HELPERS
# =============================================================================

def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def describe_validation_error(error: PydanticValidationError) -> str:
    """Render the first pydantic error as a single client-facing sentence."""
    first = error.errors()[0]
    loc = first.get("loc") or ()
    field = str(loc[0]) if loc else ""

    if field in _FIELD_MESSAGES:
        return _FIELD_MESSAGES[field]

    message = first.get("msg", "Invalid value")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
        # custom validators already name their field
        return message
    return f"{field}: {message}" if field else message
