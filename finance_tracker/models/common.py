"""
Shared building blocks for the Finance Tracker models.

All wire-facing models use camelCase aliases (accountId, transferType, ...)
while Python code uses snake_case attribute names. Monetary values are held
as Decimal and rendered as JSON numbers.
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Annotated
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel


CENT = Decimal("0.01")


class Currency(str, Enum):
    """Currencies an account or transaction may be held in."""
    GBP = "GBP"
    EUR = "EUR"


Money = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase field names."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json_dict(self) -> dict:
        """Dump to a JSON-compatible dict using the wire field names."""
        return self.model_dump(mode="json", by_alias=True)


def new_id() -> str:
    """Generate an opaque unique identifier."""
    return str(uuid4())


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def round_money(value: Decimal) -> Decimal:
    """Round a monetary amount to cent precision, halves away from zero."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)
