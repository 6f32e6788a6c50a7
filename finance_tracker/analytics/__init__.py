"""Dashboard analytics over an account's transactions."""

from finance_tracker.analytics.aggregator import build_analytics
from finance_tracker.analytics.service import AnalyticsService

__all__ = ["AnalyticsService", "build_analytics"]
