"""
FastAPI application factory.

CORS is permissive and handled here rather than by a CORS middleware:
every response carries the three Access-Control headers, and every OPTIONS
request is answered 200 with an empty body regardless of path.
"""

from typing import Optional

import structlog
from fastapi import FastAPI, Request, Response

from finance_tracker import __version__
from finance_tracker.api.errors import internal_error_response, register_exception_handlers
from finance_tracker.api.routes import router
from finance_tracker.config import AppSettings, get_settings
from finance_tracker.orchestrator import AppComponents, create_app_components


logger = structlog.get_logger(__name__)

ALLOWED_HEADERS = "Content-Type"
ALLOWED_METHODS = "GET,POST,PUT,DELETE,OPTIONS"


def cors_headers(allow_origin: str = "*") -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
        "Access-Control-Allow-Methods": ALLOWED_METHODS,
    }


def create_app(
    components: Optional[AppComponents] = None,
    app_settings: Optional[AppSettings] = None,
) -> FastAPI:
    """
    Build the HTTP application.

    Args:
        components: Pre-built engines and stores; created from settings
                    when omitted.
        app_settings: Settings override, mainly for tests.
    """
    app_settings = app_settings or get_settings().app
    components = components or create_app_components(app_settings=app_settings)
    headers = cors_headers(app_settings.cors_allow_origin)

    app = FastAPI(
        title="Finance Tracker",
        version=__version__,
        debug=app_settings.debug_mode,
    )
    app.state.components = components

    @app.middleware("http")
    async def permissive_cors(request: Request, call_next):
        if request.method == "OPTIONS":
            response = Response(status_code=200)
        else:
            try:
                response = await call_next(request)
            except Exception:
                logger.error(
                    "unhandled_request_error",
                    method=request.method,
                    path=request.url.path,
                    exc_info=True,
                )
                response = internal_error_response()
        response.headers.update(headers)
        return response

    register_exception_handlers(app)
    app.include_router(router)

    logger.info(
        "app_created",
        environment=app_settings.app_environment,
        storage_backend=app_settings.storage_backend,
    )
    return app
