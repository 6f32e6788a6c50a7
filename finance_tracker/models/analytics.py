"""Analytics report models returned by GET /analytics."""

from pydantic import Field

from finance_tracker.models.common import CamelModel, Money


class MonthlyTrend(CamelModel):
    """Income and expense totals for one calendar month."""

    month: str = Field(..., description="Short label, e.g. 'Mar 2024'")
    income: Money
    expenses: Money


class CategoryBreakdown(CamelModel):
    """Expense total for one category and its share of all expenses."""

    category: str
    category_name: str
    amount: Money
    percentage: Money


class AnalyticsSummary(CamelModel):
    """Whole-history totals for one account."""

    total_income: Money
    total_expenses: Money
    balance: Money
    transaction_count: int = Field(..., ge=0)


class AnalyticsReport(CamelModel):
    """Everything the dashboard needs for one account."""

    monthly_trends: list[MonthlyTrend]
    category_breakdown: list[CategoryBreakdown]
    summary: AnalyticsSummary
