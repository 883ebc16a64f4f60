"""Paginated row fetch pipeline with per-request timeout and bounded retry.

Reads whole snapshots of the materialized views in PostgREST-sized batches
and parses them into screener models. Every request is guarded by
asyncio.wait_for; timeouts and connection errors are retried with
exponential backoff up to ``max_attempts``. Backend errors (DataSourceError)
are not retried.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import aiohttp

from screener.config import DataSourceSettings
from screener.data.client import OrderBy, RowSourceClient
from screener.data.parsers import (
    parse_arb_opportunities,
    parse_chart_points,
    parse_exchange_columns,
    parse_funding_rows,
    parse_token_rows,
)
from screener.exceptions import FetchTimeoutError
from screener.logging import get_logger
from screener.models import ArbOpportunity, ChartPoint, ExchangeColumn, FundingRow, TokenRow

logger = get_logger(__name__)

T = TypeVar("T")

FUNDING_DASHBOARD_MV = "funding_dashboard_mv"
ARB_OPPORTUNITIES_ENRICHED = "arb_opportunities_enriched"
ARB_OPPORTUNITIES_MV = "arb_opportunities_mv"
TOKEN_FUNDING_MATRIX_MV = "token_funding_matrix_mv"
EXCHANGE_COLUMNS = "exchange_columns"

RPC_FUNDING_CHART = "get_funding_chart"

_RETRYABLE = (TimeoutError, aiohttp.ClientConnectionError)


class RowFetcher:
    """Fetches and parses row snapshots from the row source.

    Usage:
        fetcher = RowFetcher(client, settings.data_source)
        columns, rows = await fetcher.fetch_screener_data()
    """

    def __init__(self, client: RowSourceClient, settings: DataSourceSettings) -> None:
        self._client = client
        self._settings = settings

    # ──────────────────────────────────────────────
    # Public methods
    # ──────────────────────────────────────────────

    async def fetch_funding_rows(self) -> list[FundingRow]:
        """Per-market funding rates, highest 24h volume first."""
        raw = await self.fetch_all(FUNDING_DASHBOARD_MV, OrderBy("volume_24h"))
        return parse_funding_rows(raw)

    async def fetch_arbitrage_rows(self) -> list[ArbOpportunity]:
        """Enriched arbitrage opportunities, most stable first."""
        raw = await self.fetch_all(ARB_OPPORTUNITIES_ENRICHED, OrderBy("stability"))
        return parse_arb_opportunities(raw)

    async def fetch_arb_opportunities(self, window_days: int) -> list[ArbOpportunity]:
        """Opportunities for one averaging window, highest APR first."""
        raw = await self.fetch_all(
            ARB_OPPORTUNITIES_MV,
            OrderBy("opportunity_apr"),
            filters={"window_days": window_days},
        )
        return parse_arb_opportunities(raw)

    async def fetch_screener_data(self) -> tuple[list[ExchangeColumn], list[TokenRow]]:
        """Exchange columns and the token funding matrix, fetched concurrently."""
        raw_columns, raw_rows = await asyncio.gather(
            self.fetch_all(EXCHANGE_COLUMNS, OrderBy("column_key", ascending=True)),
            self.fetch_all(TOKEN_FUNDING_MATRIX_MV),
        )
        return parse_exchange_columns(raw_columns), parse_token_rows(raw_rows)

    async def fetch_funding_chart(self, market_id: int, days: int = 30) -> list[ChartPoint]:
        """Funding APR history of one market via the get_funding_chart RPC."""
        raw = await self._with_retry(
            self._client.rpc,
            RPC_FUNDING_CHART,
            {"p_market_id": market_id, "p_days": days},
        )
        return parse_chart_points(raw or [])

    async def fetch_all(
        self,
        table: str,
        order: OrderBy | None = None,
        filters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Read every row of ``table`` in batches of ``page_size``.

        Stops on an empty or short batch.
        """
        page_size = self._settings.page_size
        start_time = time.monotonic()
        rows: list[dict[str, Any]] = []
        offset = 0

        while True:
            batch = await self._with_retry(
                self._client.select,
                table,
                order=order,
                filters=filters,
                offset=offset,
                limit=page_size,
            )
            if not batch:
                break
            rows.extend(batch)
            if len(batch) < page_size:
                break
            offset += page_size

        logger.info(
            "rows_fetched",
            table=table,
            rows=len(rows),
            duration_seconds=round(time.monotonic() - start_time, 3),
        )
        return rows

    # ──────────────────────────────────────────────
    # Retry wrapper
    # ──────────────────────────────────────────────

    async def _with_retry(
        self, fetch_fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any
    ) -> T:
        """Run one request under a timeout, retrying timeouts and connection errors.

        Delays grow as retry_base_delay * 2**attempt. Raises FetchTimeoutError
        when the final attempt times out; other final errors are re-raised.
        """
        max_attempts = max(1, self._settings.max_attempts)
        timeout = self._settings.request_timeout

        for attempt in range(max_attempts):
            try:
                return await asyncio.wait_for(fetch_fn(*args, **kwargs), timeout)
            except _RETRYABLE as e:
                if attempt == max_attempts - 1:
                    logger.error(
                        "fetch_failed_permanently",
                        error=str(e) or type(e).__name__,
                        attempts=max_attempts,
                    )
                    if isinstance(e, TimeoutError):
                        raise FetchTimeoutError(
                            f"Request timed out after {max_attempts} attempts"
                        ) from e
                    raise

                delay = self._settings.retry_base_delay * (2**attempt)
                logger.warning(
                    "fetch_retry",
                    attempt=attempt + 1,
                    max_attempts=max_attempts,
                    delay=delay,
                    error=str(e) or type(e).__name__,
                )
                await asyncio.sleep(delay)

        raise AssertionError("unreachable")  # pragma: no cover
