"""Entry point for the funding rate screener API.

Wires settings, logging, the row source client, the fetch pipeline and the
query cache together, then serves the FastAPI app with uvicorn. The
lifespan context connects and closes the row source client.

Component wiring order (in _build_components):
1. SupabaseClient (PostgREST row source)
2. RowFetcher (paginated reads with timeout and retry)
3. QueryCache (keyed snapshots with generation tokens)
4. CachedRowSource (what route handlers use)
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from screener.config import AppSettings
from screener.data.cache import QueryCache
from screener.data.fetcher import RowFetcher
from screener.data.source import CachedRowSource
from screener.data.supabase_client import SupabaseClient
from screener.logging import get_logger, setup_logging


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build the row source stack from settings. Does not connect the client."""
    client = SupabaseClient(settings.data_source)
    fetcher = RowFetcher(client, settings.data_source)
    cache = QueryCache(max_age_seconds=settings.screener.cache_max_age_seconds)
    row_source = CachedRowSource(fetcher, cache)

    return {
        "client": client,
        "fetcher": fetcher,
        "cache": cache,
        "row_source": row_source,
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect the row source client on startup and close it on shutdown."""
    logger = get_logger("screener.main")
    components = app.state.components

    app.state.row_source = components["row_source"]
    app.state.screener_settings = app.state.settings.screener

    await components["client"].connect()
    logger.info("lifespan_started")

    try:
        yield
    finally:
        await components["client"].close()
        logger.info("funding_screener_stopped")


async def run() -> None:
    """Run the screener API server."""
    settings = AppSettings()

    setup_logging(settings.log_level)
    logger = get_logger("screener.main")

    if not settings.api.enabled:
        logger.warning("api_disabled", note="Set API_ENABLED=true to serve the screener")
        return

    from screener.dashboard.app import create_dashboard_app

    app = create_dashboard_app(lifespan=lifespan)
    app.state.settings = settings
    app.state.components = _build_components(settings)

    logger.info(
        "starting_api",
        host=settings.api.host,
        port=settings.api.port,
        data_source=settings.data_source.url,
    )

    config = uvicorn.Config(
        app,
        host=settings.api.host,
        port=settings.api.port,
        log_level="warning",  # structlog handles our own logging
    )
    server = uvicorn.Server(config)
    await server.serve()


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
