"""Per-market funding rates table (funding_dashboard_mv)."""

from screener.models import FundingRow


def exchanges_from_funding_rows(rows: list[FundingRow]) -> list[str]:
    return sorted({r.exchange for r in rows})


def filter_funding_rows(
    rows: list[FundingRow],
    search: str = "",
    selected_exchanges: list[str] | None = None,
) -> list[FundingRow]:
    """Case-insensitive prefix match on the market symbol, then exchange filter."""
    result = rows
    term = search.strip().lower()
    if term:
        result = [r for r in result if r.market.lower().startswith(term)]

    if selected_exchanges:
        selected = set(selected_exchanges)
        result = [r for r in result if r.exchange in selected]

    return list(result)
