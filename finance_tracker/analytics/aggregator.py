"""
Analytics Aggregator

Pure reduction of one account's transactions into dashboard figures:
trailing twelve-month income/expense trends, an expense breakdown by
category, and whole-history totals.

A transaction with amount > 0 is income; anything else (including zero)
counts toward expenses. Expense totals are reported as positive numbers.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from finance_tracker.models.analytics import (
    AnalyticsReport,
    AnalyticsSummary,
    CategoryBreakdown,
    MonthlyTrend,
)
from finance_tracker.models.category import UNKNOWN_CATEGORY_NAME
from finance_tracker.models.common import round_money
from finance_tracker.models.transaction import TRANSFER_CATEGORY, Transaction


TREND_MONTHS = 12

# Fixed English labels; strftime("%b") follows the process locale.
_MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


def month_label(year: int, month: int) -> str:
    """Short month + year label, e.g. 'Mar 2024'."""
    return f"{_MONTH_ABBREVIATIONS[month - 1]} {year}"


def trailing_months(today: date, count: int = TREND_MONTHS) -> list[tuple[int, int]]:
    """(year, month) pairs for the `count` months ending at today's month, oldest first."""
    months = []
    year, month = today.year, today.month
    for _ in range(count):
        months.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    months.reverse()
    return months


def monthly_trends(
    transactions: Iterable[Transaction],
    today: date,
) -> list[MonthlyTrend]:
    """Income and expenses per month for the trailing twelve months."""
    buckets = {key: [_ZERO, _ZERO] for key in trailing_months(today)}

    for transaction in transactions:
        key = (transaction.transaction_date.year, transaction.transaction_date.month)
        bucket = buckets.get(key)
        if bucket is None:
            continue
        if transaction.amount > 0:
            bucket[0] += transaction.magnitude
        else:
            bucket[1] += transaction.magnitude

    return [
        MonthlyTrend(
            month=month_label(year, month),
            income=round_money(income),
            expenses=round_money(expenses),
        )
        for (year, month), (income, expenses) in buckets.items()
    ]


def category_breakdown(
    transactions: Iterable[Transaction],
    category_names: Optional[Mapping[str, str]] = None,
) -> list[CategoryBreakdown]:
    """
    Expense totals per category, largest first.

    Only transactions with amount < 0 contribute. `category_names` maps
    category ids to display names; when given, ids missing from it resolve
    to "Unknown". Without it the id itself is used as the name.
    """
    totals: dict[str, Decimal] = defaultdict(lambda: _ZERO)
    total_expenses = _ZERO

    for transaction in transactions:
        if transaction.amount < 0:
            totals[transaction.category] += transaction.magnitude
            total_expenses += transaction.magnitude

    breakdown = [
        CategoryBreakdown(
            category=category,
            category_name=_resolve_name(category, category_names),
            amount=round_money(amount),
            percentage=(
                round_money(amount / total_expenses * _HUNDRED)
                if total_expenses > 0 else _ZERO
            ),
        )
        for category, amount in totals.items()
    ]
    # sorted() is stable: equal amounts keep first-seen order
    return sorted(breakdown, key=lambda item: item.amount, reverse=True)


def summarize(transactions: list[Transaction]) -> AnalyticsSummary:
    """Whole-history totals, not limited to the trend window."""
    total_income = _ZERO
    total_expenses = _ZERO
    for transaction in transactions:
        if transaction.amount > 0:
            total_income += transaction.magnitude
        else:
            total_expenses += transaction.magnitude

    return AnalyticsSummary(
        total_income=round_money(total_income),
        total_expenses=round_money(total_expenses),
        balance=round_money(total_income - total_expenses),
        transaction_count=len(transactions),
    )


def build_analytics(
    transactions: Iterable[Transaction],
    today: Optional[date] = None,
    category_names: Optional[Mapping[str, str]] = None,
) -> AnalyticsReport:
    """
    Build the full analytics report for a list of transactions.

    Args:
        transactions: all transactions of one account
        today: reference date for the trend window; defaults to date.today()
        category_names: optional id -> name mapping for the breakdown

    Returns:
        AnalyticsReport with monthly trends, category breakdown and summary
    """
    transactions = list(transactions)
    today = today or date.today()
    return AnalyticsReport(
        monthly_trends=monthly_trends(transactions, today),
        category_breakdown=category_breakdown(transactions, category_names),
        summary=summarize(transactions),
    )


def _resolve_name(category: str, category_names: Optional[Mapping[str, str]]) -> str:
    if category == TRANSFER_CATEGORY:
        return "Transfer"
    if category_names is None:
        return category
    return category_names.get(category, UNKNOWN_CATEGORY_NAME)
