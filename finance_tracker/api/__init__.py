"""HTTP boundary."""

from finance_tracker.api.app import cors_headers, create_app

__all__ = ["cors_headers", "create_app"]
