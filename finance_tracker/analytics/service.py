"""Loads an account's data from storage and runs the aggregator over it."""

from datetime import date
from typing import Callable, Optional

import structlog

from finance_tracker.analytics.aggregator import build_analytics
from finance_tracker.exceptions import ValidationError
from finance_tracker.models.analytics import AnalyticsReport
from finance_tracker.repositories import TransactionRepository
from finance_tracker.services.storage import CategoryStorageInterface


logger = structlog.get_logger(__name__)


class AnalyticsService:
    """Per-account analytics with category names resolved from the category store."""

    def __init__(
        self,
        repository: TransactionRepository,
        category_storage: Optional[CategoryStorageInterface] = None,
        clock: Callable[[], date] = date.today,
    ):
        self._repository = repository
        self._category_storage = category_storage
        self._clock = clock

    async def report_for_account(self, account: str) -> AnalyticsReport:
        if not account:
            raise ValidationError("account parameter is required")

        transactions = await self._repository.list_for_account(account)

        category_names = None
        if self._category_storage is not None:
            # inactive categories still name historical transactions
            categories = await self._category_storage.list_categories()
            category_names = {c.category_id: c.name for c in categories}

        report = build_analytics(transactions, today=self._clock(), category_names=category_names)
        logger.debug(
            "analytics_built",
            account=account,
            transaction_count=report.summary.transaction_count,
        )
        return report
