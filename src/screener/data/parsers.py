"""Conversion of raw PostgREST JSON rows into screener models.

Numbers arrive as JSON numbers or numeric strings and are converted with
Decimal(str(value)). Anything unparseable, NaN or infinite becomes None, so
models only ever hold finite Decimals or None.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from screener.logging import get_logger
from screener.models import (
    ALL_TIME_WINDOWS,
    FUNDING_TIME_WINDOWS,
    ArbOpportunity,
    ChartPoint,
    ExchangeColumn,
    FundingRow,
    Market,
    TokenRow,
)

logger = get_logger(__name__)


def parse_decimal(value: Any) -> Decimal | None:
    """Parse a JSON scalar to a finite Decimal, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return result if result.is_finite() else None


def _parse_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_market(raw: dict[str, Any]) -> Market | None:
    """Parse one entry of a token_funding_matrix_mv ``markets`` object."""
    exchange = _parse_str(raw.get("exchange"))
    if exchange is None:
        return None
    return Market(
        exchange=exchange,
        quote=_parse_str(raw.get("quote")),
        rates={w: parse_decimal(raw.get(w)) for w in ALL_TIME_WINDOWS if w in raw},
        ref_url=_parse_str(raw.get("ref_url")),
        open_interest=parse_decimal(raw.get("open_interest")),
        volume_24h=parse_decimal(raw.get("volume_24h")),
        market_id=_parse_int(raw.get("market_id")),
    )


def parse_token_rows(raw_rows: list[dict[str, Any]]) -> list[TokenRow]:
    """Parse token_funding_matrix_mv rows; rows without a token are skipped."""
    rows: list[TokenRow] = []
    skipped = 0
    for raw in raw_rows:
        token = _parse_str(raw.get("token"))
        if token is None:
            skipped += 1
            continue

        markets: dict[str, Market] = {}
        for key, raw_market in (raw.get("markets") or {}).items():
            if not isinstance(raw_market, dict):
                continue
            market = parse_market(raw_market)
            if market is not None:
                markets[key] = market
        rows.append(TokenRow(token=token, markets=markets))

    if skipped:
        logger.warning("token_rows_skipped", skipped=skipped, reason="missing_token")
    return rows


def parse_exchange_columns(raw_rows: list[dict[str, Any]]) -> list[ExchangeColumn]:
    """Parse exchange_columns rows."""
    columns: list[ExchangeColumn] = []
    for raw in raw_rows:
        column_key = _parse_str(raw.get("column_key"))
        exchange = _parse_str(raw.get("exchange"))
        if column_key is None or exchange is None:
            logger.warning("invalid_exchange_column", raw=raw)
            continue
        columns.append(
            ExchangeColumn(
                column_key=column_key,
                exchange=exchange,
                quote=_parse_str(raw.get("quote")),
            )
        )
    return columns


def parse_arb_opportunities(raw_rows: list[dict[str, Any]]) -> list[ArbOpportunity]:
    """Parse arb_opportunities_mv / arb_opportunities_enriched rows."""
    rows: list[ArbOpportunity] = []
    skipped = 0
    for raw in raw_rows:
        base_asset = _parse_str(raw.get("base_asset"))
        long_exchange = _parse_str(raw.get("long_exchange"))
        short_exchange = _parse_str(raw.get("short_exchange"))
        if base_asset is None or long_exchange is None or short_exchange is None:
            skipped += 1
            continue

        rows.append(
            ArbOpportunity(
                base_asset=base_asset,
                window_days=_parse_int(raw.get("window_days")) or 0,
                opportunity_apr=parse_decimal(raw.get("opportunity_apr")),
                long_exchange=long_exchange,
                short_exchange=short_exchange,
                long_quote=_parse_str(raw.get("long_quote")),
                short_quote=_parse_str(raw.get("short_quote")),
                long_open_interest=parse_decimal(raw.get("long_open_interest")),
                short_open_interest=parse_decimal(raw.get("short_open_interest")),
                long_volume_24h=parse_decimal(raw.get("long_volume_24h")),
                short_volume_24h=parse_decimal(raw.get("short_volume_24h")),
                long_url=_parse_str(raw.get("long_url")),
                short_url=_parse_str(raw.get("short_url")),
                open_interest=parse_decimal(raw.get("open_interest")),
                volume_24h=parse_decimal(raw.get("volume_24h")),
            )
        )

    if skipped:
        logger.warning("arb_rows_skipped", skipped=skipped)
    return rows


def parse_funding_rows(raw_rows: list[dict[str, Any]]) -> list[FundingRow]:
    """Parse funding_dashboard_mv rows."""
    rows: list[FundingRow] = []
    skipped = 0
    for raw in raw_rows:
        exchange = _parse_str(raw.get("exchange"))
        market = _parse_str(raw.get("market"))
        if exchange is None or market is None:
            skipped += 1
            continue
        rows.append(
            FundingRow(
                exchange=exchange,
                market=market,
                rates={w: parse_decimal(raw.get(w)) for w in FUNDING_TIME_WINDOWS},
                updated=_parse_str(raw.get("updated")),
                volume_24h=parse_decimal(raw.get("volume_24h")),
                open_interest=parse_decimal(raw.get("open_interest")),
                market_id=_parse_int(raw.get("market_id")),
                ref_url=_parse_str(raw.get("ref_url")),
            )
        )

    if skipped:
        logger.warning("funding_rows_skipped", skipped=skipped)
    return rows


def parse_chart_points(raw_rows: list[dict[str, Any]]) -> list[ChartPoint]:
    """Parse get_funding_chart RPC results."""
    return [
        ChartPoint(funding_time=str(raw.get("funding_time", "")), apr=parse_decimal(raw.get("apr")))
        for raw in raw_rows
    ]
