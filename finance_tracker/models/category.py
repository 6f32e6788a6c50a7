"""
Category models.

Transactions reference categories by id only. Nothing stops a category
from being deleted while transactions still point at it; readers resolve
such dangling ids to UNKNOWN_CATEGORY_NAME.
"""

from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field

from finance_tracker.models.common import CamelModel, new_id, utcnow


UNKNOWN_CATEGORY_NAME = "Unknown"


class Category(CamelModel):
    """A user-defined spending/income category."""
    model_config = ConfigDict(str_strip_whitespace=True)

    category_id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    color: Optional[str] = Field(default=None, max_length=20)
    icon: Optional[str] = Field(default=None, max_length=50)
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class CategoryUpdate(CamelModel):
    """Fields a client may change on an existing category."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    color: Optional[str] = Field(default=None, max_length=20)
    icon: Optional[str] = Field(default=None, max_length=50)
    is_active: Optional[bool] = None
