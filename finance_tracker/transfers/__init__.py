"""Transfers between accounts."""

from finance_tracker.transfers.engine import TransferEngine

__all__ = ["TransferEngine"]
