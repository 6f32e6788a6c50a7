"""Request-level helpers shared by the route handlers."""

from datetime import date
from typing import Optional

from fastapi import Request

from finance_tracker.exceptions import ValidationError
from finance_tracker.orchestrator import AppComponents
from finance_tracker.validation import parse_json_body


def get_components(request: Request) -> AppComponents:
    return request.app.state.components


async def read_json(request: Request) -> dict:
    """Request body as a JSON object, with our own error messages."""
    return parse_json_body(await request.body())


def require_account(account: Optional[str]) -> str:
    if not account:
        raise ValidationError("account parameter is required")
    return account


def parse_date_param(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError("date must be an ISO date (YYYY-MM-DD)")


def parse_is_active(value: Optional[str]) -> Optional[bool]:
    """?isActive=true filters to active records; any other value to inactive ones."""
    if value is None:
        return None
    return value == "true"
