"""Tests for the Analytics Aggregator and service."""

import pytest
from datetime import date
from decimal import Decimal

from conftest import make_transaction, run
from finance_tracker.analytics import AnalyticsService, build_analytics
from finance_tracker.analytics.aggregator import trailing_months
from finance_tracker.exceptions import ValidationError
from finance_tracker.models.category import Category
from finance_tracker.services.storage import InMemoryCategoryStorage


TODAY = date(2024, 3, 20)


def _txn(i, amount, on=date(2024, 3, 1), category="groceries"):
    return make_transaction(
        transaction_id=f"t{i}",
        amount=Decimal(amount),
        transaction_date=on,
        category=category,
    )


class TestMonthlyTrends:
    """Trailing twelve-month income/expense buckets."""

    def test_empty_input(self):
        """No transactions: zero summary and twelve empty months."""
        report = build_analytics([], today=TODAY)

        assert len(report.monthly_trends) == 12
        assert all(m.income == 0 and m.expenses == 0 for m in report.monthly_trends)
        summary = report.summary
        assert (summary.total_income, summary.total_expenses, summary.balance,
                summary.transaction_count) == (0, 0, 0, 0)

    def test_window_ends_at_current_month(self):
        labels = [m.month for m in build_analytics([], today=TODAY).monthly_trends]
        assert labels[0] == "Apr 2023"
        assert labels[-1] == "Mar 2024"

    def test_window_crosses_year_boundary(self):
        assert trailing_months(date(2024, 1, 31), count=3) == [(2023, 11), (2023, 12), (2024, 1)]

    def test_income_and_expenses_bucketed(self):
        transactions = [
            _txn(1, "1200.00", on=date(2024, 3, 1)),
            _txn(2, "-45.20", on=date(2024, 3, 2)),
            _txn(3, "-4.80", on=date(2024, 3, 3)),
            _txn(4, "-10.00", on=date(2024, 2, 10)),
        ]
        trends = {m.month: m for m in build_analytics(transactions, today=TODAY).monthly_trends}

        assert trends["Mar 2024"].income == Decimal("1200.00")
        assert trends["Mar 2024"].expenses == Decimal("50.00")
        assert trends["Feb 2024"].expenses == Decimal("10.00")

    def test_old_transactions_excluded_from_trends_only(self):
        transactions = [_txn(1, "-99.00", on=date(2022, 1, 1))]
        report = build_analytics(transactions, today=TODAY)

        assert all(m.expenses == 0 for m in report.monthly_trends)
        assert report.summary.total_expenses == Decimal("99.00")

    def test_zero_amount_counts_as_expense_bucket(self):
        report = build_analytics([_txn(1, "0")], today=TODAY)
        assert report.summary.transaction_count == 1
        assert report.summary.total_expenses == 0


class TestCategoryBreakdown:
    """Expense totals per category."""

    def test_percentages_sum_to_100(self):
        transactions = [
            _txn(1, "-10.00", category="a"),
            _txn(2, "-20.00", category="b"),
            _txn(3, "-3.33", category="c"),
            _txn(4, "500.00", category="salary"),
        ]
        breakdown = build_analytics(transactions, today=TODAY).category_breakdown

        assert {b.category for b in breakdown} == {"a", "b", "c"}
        assert abs(sum(b.percentage for b in breakdown) - 100) <= Decimal("0.05")

    def test_sorted_descending(self):
        transactions = [
            _txn(1, "-5.00", category="small"),
            _txn(2, "-50.00", category="big"),
            _txn(3, "-20.00", category="medium"),
        ]
        breakdown = build_analytics(transactions, today=TODAY).category_breakdown
        assert [b.category for b in breakdown] == ["big", "medium", "small"]

    def test_no_expenses_gives_empty_breakdown(self):
        breakdown = build_analytics([_txn(1, "100.00")], today=TODAY).category_breakdown
        assert breakdown == []

    def test_zero_amount_is_not_an_expense_category(self):
        """Only amount < 0 contributes, so a zero amount never yields a 0% row."""
        breakdown = build_analytics([_txn(1, "-0.00")], today=TODAY).category_breakdown
        assert breakdown == []

    def test_category_names_resolved(self):
        transactions = [
            _txn(1, "-10.00", category="cat-food"),
            _txn(2, "-10.00", category="deleted-cat"),
            _txn(3, "-10.00", category="transfer"),
        ]
        breakdown = build_analytics(
            transactions,
            today=TODAY,
            category_names={"cat-food": "Food"},
        ).category_breakdown

        names = {b.category: b.category_name for b in breakdown}
        assert names == {"cat-food": "Food", "deleted-cat": "Unknown", "transfer": "Transfer"}


class TestSummary:
    """Whole-history totals."""

    def test_totals_and_balance(self):
        transactions = [
            _txn(1, "1000.005"),
            _txn(2, "-250.50"),
            _txn(3, "-49.50"),
        ]
        summary = build_analytics(transactions, today=TODAY).summary

        assert summary.total_income == Decimal("1000.01")
        assert summary.total_expenses == Decimal("300.00")
        assert summary.balance == Decimal("700.01")
        assert summary.transaction_count == 3

    def test_json_uses_camel_case_numbers(self):
        payload = build_analytics([_txn(1, "-12.50")], today=TODAY).to_json_dict()

        assert set(payload) == {"monthlyTrends", "categoryBreakdown", "summary"}
        assert payload["summary"]["totalExpenses"] == 12.5
        assert payload["categoryBreakdown"][0]["categoryName"] == "groceries"


class TestAnalyticsService:
    """Loading transactions and category names from storage."""

    def test_report_uses_category_store(self, repository, store):
        categories = InMemoryCategoryStorage()
        run(categories.save_category(Category(category_id="groceries", name="Groceries")))
        run(store.put_transaction(_txn(1, "-30.00", on=TODAY)))
        run(store.put_transaction(make_transaction(account="acc2", transaction_id="other")))

        service = AnalyticsService(repository, category_storage=categories, clock=lambda: TODAY)
        report = run(service.report_for_account("acc1"))

        assert report.summary.transaction_count == 1
        assert report.category_breakdown[0].category_name == "Groceries"
        assert report.monthly_trends[-1].expenses == Decimal("30.00")

    def test_account_required(self, repository):
        with pytest.raises(ValidationError, match="account parameter is required"):
            run(AnalyticsService(repository).report_for_account(""))
