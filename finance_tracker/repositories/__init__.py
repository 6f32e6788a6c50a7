"""Data-access layer."""

from finance_tracker.repositories.transactions import TransactionRepository

__all__ = ["TransactionRepository"]
