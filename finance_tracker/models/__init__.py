"""
Data Models Package

This package contains all Pydantic models used in the Finance Tracker system.
All data flowing through the system must conform to these schemas.
"""

from finance_tracker.models.account import (
    Account,
    AccountType,
    AccountUpdate,
)
from finance_tracker.models.analytics import (
    AnalyticsReport,
    AnalyticsSummary,
    CategoryBreakdown,
    MonthlyTrend,
)
from finance_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from finance_tracker.models.category import (
    UNKNOWN_CATEGORY_NAME,
    Category,
    CategoryUpdate,
)
from finance_tracker.models.common import Currency, round_money
from finance_tracker.models.transaction import (
    TRANSFER_CATEGORY,
    BulkUpdateOutcome,
    BulkUpdateRequest,
    BulkUpdateResult,
    ConvertToTransferRequest,
    Transaction,
    TransactionCreate,
    TransactionUpdate,
    TransferRequest,
    TransferResult,
    TransferType,
)

__all__ = [
    # Accounts
    "Account",
    "AccountType",
    "AccountUpdate",
    # Analytics
    "AnalyticsReport",
    "AnalyticsSummary",
    "CategoryBreakdown",
    "MonthlyTrend",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Categories
    "UNKNOWN_CATEGORY_NAME",
    "Category",
    "CategoryUpdate",
    # Shared
    "Currency",
    "round_money",
    # Transactions
    "TRANSFER_CATEGORY",
    "BulkUpdateOutcome",
    "BulkUpdateRequest",
    "BulkUpdateResult",
    "ConvertToTransferRequest",
    "Transaction",
    "TransactionCreate",
    "TransactionUpdate",
    "TransferRequest",
    "TransferResult",
    "TransferType",
]
