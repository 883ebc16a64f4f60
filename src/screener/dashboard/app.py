"""FastAPI application factory for the screener JSON API."""

from __future__ import annotations

import time
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from screener.config import ScreenerSettings
from screener.dashboard.routes import api
from screener.exceptions import InvalidQueryError, ScreenerError
from screener.logging import bind_request_context, clear_request_context, get_logger

logger = get_logger(__name__)


async def _invalid_query_handler(request: Request, exc: InvalidQueryError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


async def _screener_error_handler(request: Request, exc: ScreenerError) -> JSONResponse:
    logger.error("api_request_failed", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"error": str(exc) or "Unknown error"})


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Same error body as ScreenerError for anything else (e.g. connection errors)."""
    logger.error(
        "api_request_failed",
        path=request.url.path,
        error=str(exc) or type(exc).__name__,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500, content={"error": str(exc) or type(exc).__name__}
    )


async def _request_context(request: Request, call_next: Any) -> Any:
    """Bind the route to the log context and log each request's duration."""
    bind_request_context(method=request.method, path=request.url.path)
    start = time.monotonic()
    try:
        response = await call_next(request)
        logger.debug(
            "api_request",
            status=response.status_code,
            duration_ms=round((time.monotonic() - start) * 1000, 1),
        )
        return response
    finally:
        clear_request_context()


def create_dashboard_app(lifespan: Any = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        lifespan: Optional async context manager for application lifespan events.
                  Used by main.py to connect and close the row source client.

    Route handlers read ``app.state.row_source`` (a CachedRowSource) and
    ``app.state.screener_settings``; both are wired by main.py or by tests.
    Every error response body is ``{"error": message}``.
    """
    app = FastAPI(
        title="Funding Rate Screener",
        lifespan=lifespan,
    )

    app.state.row_source = None
    app.state.screener_settings = ScreenerSettings()

    app.add_exception_handler(InvalidQueryError, _invalid_query_handler)
    app.add_exception_handler(ScreenerError, _screener_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
    app.middleware("http")(_request_context)

    app.include_router(api.router, prefix="/api")

    return app
