"""Precomputed arbitrage opportunities table (arb_opportunities_mv)."""

from screener.formatters import matches_search
from screener.models import ArbOpportunity


def exchanges_from_opportunities(rows: list[ArbOpportunity]) -> list[str]:
    """Sorted unique exchanges appearing on either leg."""
    exchanges: set[str] = set()
    for row in rows:
        exchanges.add(row.long_exchange)
        exchanges.add(row.short_exchange)
    return sorted(exchanges)


def filter_opportunities(
    rows: list[ArbOpportunity],
    search: str = "",
    selected_exchanges: list[str] | None = None,
    multipliers: tuple[str, ...] | list[str] = (),
) -> list[ArbOpportunity]:
    """Prefix-search on base asset; with an exchange selection both legs must match."""
    result = [r for r in rows if matches_search(r.base_asset, search, multipliers)]

    if selected_exchanges:
        selected = set(selected_exchanges)
        result = [
            r for r in result
            if r.long_exchange in selected and r.short_exchange in selected
        ]

    return result
