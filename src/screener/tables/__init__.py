"""Table logic -- filtering, sorting and pagination of fetched rows."""

from screener.tables.arbitrage import exchanges_from_opportunities, filter_opportunities
from screener.tables.funding import exchanges_from_funding_rows, filter_funding_rows
from screener.tables.funding_matrix import ScreenerQuery, ScreenerResult, build_screener_rows
from screener.tables.pagination import Page, paginate

__all__ = [
    "Page",
    "ScreenerQuery",
    "ScreenerResult",
    "build_screener_rows",
    "exchanges_from_funding_rows",
    "exchanges_from_opportunities",
    "filter_funding_rows",
    "filter_opportunities",
    "paginate",
]
