"""Request payload validation."""

from finance_tracker.validation.validator import (
    ACCOUNT_TYPE_MESSAGE,
    CURRENCY_MESSAGE,
    changes_from,
    describe_validation_error,
    parse_account_create,
    parse_account_update,
    parse_bulk_update_request,
    parse_category_create,
    parse_category_update,
    parse_convert_request,
    parse_json_body,
    parse_model,
    parse_transaction_create,
    parse_transaction_update,
    parse_transfer_request,
    require_fields,
)

__all__ = [
    "ACCOUNT_TYPE_MESSAGE",
    "CURRENCY_MESSAGE",
    "changes_from",
    "describe_validation_error",
    "parse_account_create",
    "parse_account_update",
    "parse_bulk_update_request",
    "parse_category_create",
    "parse_category_update",
    "parse_convert_request",
    "parse_json_body",
    "parse_model",
    "parse_transaction_create",
    "parse_transaction_update",
    "parse_transfer_request",
    "require_fields",
]
