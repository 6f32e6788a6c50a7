"""
HTTP entry point for Finance Tracker.

Run with:
    uvicorn app.main:app --reload

Configuration comes from the environment / .env file
(see finance_tracker.config.settings). STORAGE_BACKEND=google_sheets
switches from the in-memory store to the spreadsheet.
"""

import structlog
import uvicorn

from finance_tracker.api import create_app
from finance_tracker.audit import configure_logging
from finance_tracker.config import get_settings, validate_all_settings


settings = get_settings()
configure_logging(settings.app.log_level)

logger = structlog.get_logger(__name__)

config_status = validate_all_settings()
if not all(v for k, v in config_status.items() if not k.endswith("_error")):
    logger.error("configuration_invalid", **config_status)
    raise SystemExit("Configuration error: check your .env file")

app = create_app(app_settings=settings.app)


if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000)
