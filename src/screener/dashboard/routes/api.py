"""JSON API endpoints: raw dashboard snapshots, screener, arbitrage, funding and charts."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from screener.charts import build_chart_series
from screener.config import ScreenerSettings
from screener.data.source import CachedRowSource
from screener.exceptions import InvalidQueryError
from screener.formatters import format_apr, format_compact_usd, format_exchange, format_usd
from screener.models import (
    ARB_WINDOW_DAYS,
    SCREENER_TIME_LABELS,
    SCREENER_TIME_WINDOWS,
    ArbOpportunity,
    FundingRow,
)
from screener.tables.arbitrage import exchanges_from_opportunities, filter_opportunities
from screener.tables.funding import exchanges_from_funding_rows, filter_funding_rows
from screener.tables.funding_matrix import ScreenerQuery, ScreenerRow, build_screener_rows
from screener.tables.pagination import SHOW_ALL, paginate

log = structlog.get_logger(__name__)

router = APIRouter()

DASHBOARD_CACHE_CONTROL = "public, max-age=0, s-maxage=300, stale-while-revalidate=60"


def _decimal_to_str(obj: Any) -> Any:
    """Recursively convert Decimal values to strings for JSON serialization."""
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, dict):
        return {k: _decimal_to_str(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_decimal_to_str(item) for item in obj]
    return obj


def _rows_payload(rows: list) -> list[dict]:
    return [_decimal_to_str(asdict(r)) for r in rows]


def _exchange_labels(exchanges: list[str]) -> dict[str, str]:
    return {e: format_exchange(e) for e in exchanges}


def _screener_row_payload(row: ScreenerRow) -> dict[str, Any]:
    """Screener row with display strings for the APR cells and pair legs."""
    payload = row.to_dict()
    display: dict[str, Any] = {
        "max_arb": format_apr(row.max_arb),
        "rates": {k: format_apr(v) for k, v in row.rates.items()},
    }
    if row.pair is not None:
        display["long_exchange"] = format_exchange(row.pair.long_market.exchange)
        display["short_exchange"] = format_exchange(row.pair.short_market.exchange)
    payload["display"] = display
    return payload


def _arbitrage_row_payload(row: ArbOpportunity) -> dict[str, Any]:
    payload = _decimal_to_str(asdict(row))
    payload["display"] = {
        "opportunity_apr": format_apr(row.opportunity_apr),
        "open_interest": format_usd(row.open_interest),
        "volume_24h": format_usd(row.volume_24h),
        "long_exchange": format_exchange(row.long_exchange),
        "short_exchange": format_exchange(row.short_exchange),
    }
    return payload


def _funding_row_payload(row: FundingRow) -> dict[str, Any]:
    payload = _decimal_to_str(asdict(row))
    payload["display"] = {
        "exchange": format_exchange(row.exchange),
        "rates": {w: format_apr(v) for w, v in row.rates.items()},
        "open_interest": format_compact_usd(row.open_interest),
        "volume_24h": format_compact_usd(row.volume_24h),
    }
    return payload


def _generated_at() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_source(request: Request) -> CachedRowSource:
    source = request.app.state.row_source
    if source is None:
        raise RuntimeError("Row source not configured on app.state")
    return source


def _settings(request: Request) -> ScreenerSettings:
    return request.app.state.screener_settings


def _parse_exchanges(value: str | None) -> list[str]:
    """Split a comma-separated exchange list, dropping blanks."""
    if not value:
        return []
    return [e.strip() for e in value.split(",") if e.strip()]


def _parse_min_apr(value: str | None) -> Decimal | None:
    if value is None or value.strip() == "":
        return None
    try:
        result = Decimal(value)
    except InvalidOperation as e:
        raise InvalidQueryError(f"Invalid min_apr: {value!r}") from e
    if not result.is_finite():
        raise InvalidQueryError(f"Invalid min_apr: {value!r}")
    return result


def _check_limit(limit: int) -> int:
    if limit != SHOW_ALL and limit <= 0:
        raise InvalidQueryError(f"Invalid limit: {limit}")
    return limit


# ---------------------------------------------------------------------------
# Raw snapshots
# ---------------------------------------------------------------------------


@router.get("/dashboard")
async def get_dashboard(
    request: Request, type_: str = Query("funding", alias="type")
) -> JSONResponse:
    """Whole-table snapshot for ``type`` = funding, arbitrage or screener."""
    source = _row_source(request)
    payload: dict[str, Any] = {"generatedAt": _generated_at()}

    try:
        if type_ == "funding":
            payload["rows"] = _rows_payload(await source.funding_rows())
        elif type_ == "arbitrage":
            payload["rows"] = _rows_payload(await source.arbitrage_rows())
        elif type_ == "screener":
            columns, rows = await source.screener_data()
            payload["columns"] = _rows_payload(columns)
            payload["rows"] = _rows_payload(rows)
        else:
            return JSONResponse(status_code=400, content={"error": "Invalid type"})
    except Exception as e:
        log.error("dashboard_fetch_failed", type=type_, exc_info=True)
        return JSONResponse(status_code=500, content={"error": str(e) or "Unknown error"})

    return JSONResponse(
        content=payload,
        headers={"Cache-Control": DASHBOARD_CACHE_CONTROL},
    )


# ---------------------------------------------------------------------------
# Computed tables
# ---------------------------------------------------------------------------


@router.get("/screener")
async def get_screener(
    request: Request,
    window: str | None = None,
    search: str = "",
    exchanges: str | None = None,
    min_apr: str | None = None,
    sort_key: str = "max_arb",
    sort_dir: str = "desc",
    pinned: str | None = None,
    page: int = 0,
    limit: int | None = None,
) -> JSONResponse:
    """Funding matrix screener page with max arb, best pair and backtester link per token."""
    settings = _settings(request)
    window = window or settings.default_window
    if window not in SCREENER_TIME_WINDOWS:
        raise InvalidQueryError(f"Invalid window: {window!r}")
    if sort_key not in ("token", "max_arb"):
        raise InvalidQueryError(f"Invalid sort_key: {sort_key!r}")
    if sort_dir not in ("asc", "desc"):
        raise InvalidQueryError(f"Invalid sort_dir: {sort_dir!r}")

    query = ScreenerQuery(
        window=window,
        search=search,
        selected_exchanges=_parse_exchanges(exchanges),
        min_apr=_parse_min_apr(min_apr),
        sort_key=sort_key,  # type: ignore[arg-type]
        sort_dir=sort_dir,  # type: ignore[arg-type]
        pinned_key=pinned or None,
        page=page,
        limit=_check_limit(limit if limit is not None else settings.default_page_limit),
    )

    columns, rows = await _row_source(request).screener_data()
    result = build_screener_rows(
        rows,
        columns,
        query,
        backtester_url=settings.backtester_url,
        multipliers=settings.search_multipliers,
    )

    return JSONResponse(content={
        "window": window,
        "windows": [{"value": w, "label": SCREENER_TIME_LABELS[w]} for w in SCREENER_TIME_WINDOWS],
        "exchanges": result.exchanges,
        "exchange_labels": _exchange_labels(result.exchanges),
        "columns": [
            {
                **asdict(c),
                "label": format_exchange(c.exchange),
                "show_quote": c.exchange in result.multi_quote_exchanges,
            }
            for c in result.columns
        ],
        "rows": [_screener_row_payload(r) for r in result.page.items],
        "page": result.page.page,
        "total_pages": result.page.total_pages,
        "total": result.page.total,
        "limit": result.page.limit,
    })


@router.get("/arbitrage")
async def get_arbitrage(
    request: Request,
    window_days: int = 0,
    search: str = "",
    exchanges: str | None = None,
    page: int = 0,
    limit: int | None = None,
) -> JSONResponse:
    """Precomputed arbitrage opportunities for one averaging window."""
    settings = _settings(request)
    if window_days not in ARB_WINDOW_DAYS:
        raise InvalidQueryError(f"Invalid window_days: {window_days}")

    rows = await _row_source(request).arb_opportunities(window_days)
    filtered = filter_opportunities(
        rows,
        search=search,
        selected_exchanges=_parse_exchanges(exchanges),
        multipliers=settings.search_multipliers,
    )
    result = paginate(
        filtered, page, _check_limit(limit if limit is not None else settings.default_page_limit)
    )

    all_exchanges = exchanges_from_opportunities(rows)
    return JSONResponse(content={
        "window_days": window_days,
        "exchanges": all_exchanges,
        "exchange_labels": _exchange_labels(all_exchanges),
        "rows": [_arbitrage_row_payload(r) for r in result.items],
        "page": result.page,
        "total_pages": result.total_pages,
        "total": result.total,
        "limit": result.limit,
    })


@router.get("/funding")
async def get_funding(
    request: Request,
    search: str = "",
    exchanges: str | None = None,
    limit: int = 50,
) -> JSONResponse:
    """Per-market funding rates, filtered and truncated to ``limit`` rows."""
    rows = await _row_source(request).funding_rows()
    filtered = filter_funding_rows(rows, search, _parse_exchanges(exchanges))
    visible = paginate(filtered, 0, _check_limit(limit))

    all_exchanges = exchanges_from_funding_rows(rows)
    return JSONResponse(content={
        "exchanges": all_exchanges,
        "exchange_labels": _exchange_labels(all_exchanges),
        "rows": [_funding_row_payload(r) for r in visible.items],
        "total": visible.total,
    })


@router.get("/charts/funding/{market_id}")
async def get_funding_chart(request: Request, market_id: int, days: int = 30) -> JSONResponse:
    """Funding APR time series for one market."""
    if days <= 0:
        raise InvalidQueryError(f"Invalid days: {days}")
    points = await _row_source(request).fetcher.fetch_funding_chart(market_id, days)
    return JSONResponse(content={"market_id": market_id, **build_chart_series(points).to_dict()})


@router.get("/health")
async def get_health() -> JSONResponse:
    return JSONResponse(content={"status": "ok", "generatedAt": _generated_at()})
