"""Bulk recategorization of transactions."""

from finance_tracker.recategorization.engine import BulkRecategorizationEngine

__all__ = ["BulkRecategorizationEngine"]
