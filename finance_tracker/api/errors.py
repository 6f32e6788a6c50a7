"""
Exception -> HTTP response mapping.

Error bodies are always {"error": message, "code": kind}. Storage failures
never expose their detail to the client; the detail goes to the log.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from finance_tracker.exceptions import (
    BulkUpdateError,
    ConflictError,
    FinanceTrackerError,
    NotFoundError,
    PartialTransferError,
    RequestParseError,
    TransferFailedError,
    ValidationError,
)


logger = structlog.get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"

# Most specific first
_STATUS_BY_ERROR = (
    (ValidationError, 400, "validation_error"),
    (RequestParseError, 400, "parse_error"),
    (NotFoundError, 404, "not_found"),
    (ConflictError, 409, "conflict"),
)


def error_response(status_code: int, message: str, code: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "code": code, **extra},
    )


def internal_error_response() -> JSONResponse:
    return error_response(500, INTERNAL_ERROR_MESSAGE, "internal_error")


async def handle_finance_tracker_error(request: Request, exc: FinanceTrackerError) -> JSONResponse:
    for error_type, status_code, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            logger.info(
                "request_rejected",
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                error=str(exc),
            )
            return error_response(status_code, str(exc), code)

    logger.error(
        "request_failed",
        method=request.method,
        path=request.url.path,
        error_type=type(exc).__name__,
        exc_info=exc,
    )

    # The engines' own messages name the failed operation and nothing else
    if isinstance(exc, PartialTransferError):
        return error_response(500, str(exc), "internal_error", transferId=exc.transfer_id)
    if isinstance(exc, TransferFailedError):
        return error_response(500, str(exc), "internal_error")
    if isinstance(exc, BulkUpdateError):
        return error_response(500, str(exc), "internal_error", updatedCount=exc.updated_count)

    # transfer and bulk failures are audited by their engines
    await request.app.state.components.audit_logger.log_storage_error(
        operation=f"{request.method} {request.url.path}",
        error_message=str(exc),
    )
    return internal_error_response()


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown paths and methods use the same error shape as domain errors."""
    if exc.status_code == 404:
        return error_response(404, "Not found", "not_found")
    if exc.status_code == 405:
        return error_response(405, "Method not allowed", "method_not_allowed")
    return error_response(exc.status_code, str(exc.detail), "http_error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FinanceTrackerError, handle_finance_tracker_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
