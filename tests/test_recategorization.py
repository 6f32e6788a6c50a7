"""Tests for the Bulk Recategorization Engine."""

import pytest
from decimal import Decimal

from conftest import make_transaction, run
from finance_tracker.exceptions import BulkUpdateError, ValidationError
from finance_tracker.models.audit import AuditEventType
from finance_tracker.models.transaction import BulkUpdateOutcome
from finance_tracker.recategorization import BulkRecategorizationEngine


@pytest.fixture
def engine(repository, audit_logger):
    return BulkRecategorizationEngine(
        repository,
        batch_size=25,
        batch_delay_seconds=0,
        audit_logger=audit_logger,
    )


def _seed(store, count, account="acc1", description="TESCO STORES", category="groceries"):
    for i in range(count):
        run(store.put_transaction(make_transaction(
            account=account,
            transaction_id=f"{account}-{description}-{i}",
            description=description,
            category=category,
        )))


class TestBulkUpdateByDescription:
    """Tests for exact-description recategorization."""

    def test_updates_exact_matches_only(self, engine, store):
        """Only same-account, same-description records change."""
        _seed(store, 3, description="TESCO STORES")
        _seed(store, 2, description="tesco stores")
        _seed(store, 2, description="TESCO STORES ")
        _seed(store, 2, account="acc2", description="TESCO STORES")

        result = run(engine.bulk_update_by_description("acc1", "TESCO STORES", "food"))

        assert result.updated_count == 3
        assert result.outcome == BulkUpdateOutcome.UPDATED
        by_description = {}
        for t in run(store.query_by_account("acc1")):
            by_description.setdefault(t.description, set()).add(t.category)
        assert by_description == {
            "TESCO STORES": {"food"},
            "tesco stores": {"groceries"},
            "TESCO STORES ": {"groceries"},
        }
        assert {t.category for t in run(store.query_by_account("acc2"))} == {"groceries"}

    def test_updated_records_are_stamped(self, engine, store):
        _seed(store, 1)
        run(engine.bulk_update_by_description("acc1", "TESCO STORES", "food"))
        [updated] = run(store.query_by_account("acc1"))
        assert updated.updated_at is not None
        assert updated.amount == Decimal("-45.20")

    def test_empty_account_distinct_from_no_matches(self, engine, store):
        """Zero transactions and zero matches are reported differently."""
        empty = run(engine.bulk_update_by_description("acc1", "TESCO STORES", "food"))

        _seed(store, 2, description="AMAZON")
        no_match = run(engine.bulk_update_by_description("acc1", "TESCO STORES", "food"))

        assert empty.updated_count == no_match.updated_count == 0
        assert empty.outcome == BulkUpdateOutcome.NO_TRANSACTIONS
        assert no_match.outcome == BulkUpdateOutcome.NO_MATCHES
        assert empty.message != no_match.message

    @pytest.mark.parametrize("count, expected_batches", [(25, 1), (26, 2), (60, 3)])
    def test_writes_in_batches_of_25(self, engine, store, count, expected_batches):
        _seed(store, count)
        result = run(engine.bulk_update_by_description("acc1", "TESCO STORES", "food"))
        assert result.updated_count == count
        assert store.batch_calls == expected_batches

    def test_configured_batch_size(self, repository, store):
        engine = BulkRecategorizationEngine(repository, batch_size=10, batch_delay_seconds=0)
        _seed(store, 21)
        run(engine.bulk_update_by_description("acc1", "TESCO STORES", "food"))
        assert store.batch_calls == 3

    def test_mid_batch_failure_reports_partial_count(self, engine, store, audit_storage):
        _seed(store, 60)
        store.fail_batch_number = 2

        with pytest.raises(BulkUpdateError) as exc_info:
            run(engine.bulk_update_by_description("acc1", "TESCO STORES", "food"))

        assert exc_info.value.updated_count == 25
        categories = [t.category for t in run(store.query_by_account("acc1"))]
        assert categories.count("food") == 25
        events = run(audit_storage.get_recent_events())
        assert events[0].event_type == AuditEventType.BULK_RECATEGORIZE_FAILED

    @pytest.mark.parametrize("account, description, new_category", [
        ("", "TESCO STORES", "food"),
        ("acc1", "", "food"),
        ("acc1", "TESCO STORES", ""),
    ])
    def test_missing_parameters_rejected(self, engine, account, description, new_category):
        with pytest.raises(ValidationError, match="Missing required fields"):
            run(engine.bulk_update_by_description(account, description, new_category))

    def test_success_is_audited(self, engine, store, audit_storage):
        _seed(store, 2)
        run(engine.bulk_update_by_description("acc1", "TESCO STORES", "food"))
        [event] = run(audit_storage.get_recent_events())
        assert event.event_type == AuditEventType.BULK_RECATEGORIZED
        assert event.details["updated_count"] == 2

    @pytest.mark.parametrize("batch_size", [0, 26])
    def test_batch_size_bounds(self, repository, batch_size):
        with pytest.raises(ValueError):
            BulkRecategorizationEngine(repository, batch_size=batch_size)
