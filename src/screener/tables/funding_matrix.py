"""Funding rate screener: token rows x exchange columns with max arb spread.

Applies the screener controls to a snapshot of token_funding_matrix_mv:
exchange filter, prefix token search, minimum APR, pinned exchange, sort and
pagination. Everything here is pure; fetching is done by the data layer.
"""

from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Literal

from screener.formatters import matches_search
from screener.funding import find_best_pair_pinned, get_rate, max_spread
from screener.links import DEFAULT_BACKTESTER_URL, build_backtester_url
from screener.models import ArbPair, ExchangeColumn, TokenRow
from screener.tables.pagination import Page, paginate

SortKey = Literal["token", "max_arb"]
SortDir = Literal["asc", "desc"]


@dataclass
class ScreenerQuery:
    """User-selected screener controls."""

    window: str = "now"
    search: str = ""
    selected_exchanges: list[str] = field(default_factory=list)
    min_apr: Decimal | None = None
    sort_key: SortKey = "max_arb"
    sort_dir: SortDir = "desc"
    pinned_key: str | None = None
    page: int = 0
    limit: int = 20


@dataclass
class ScreenerRow:
    """One computed screener row."""

    token: str
    max_arb: Decimal | None
    pair: ArbPair | None
    backtester_url: str | None
    rates: dict[str, Decimal | None]

    def to_dict(self) -> dict:
        """Serialize to a JSON-safe dict with Decimal values as strings."""
        pair = None
        if self.pair is not None:
            pair = {
                "long_key": self.pair.long_key,
                "long_exchange": self.pair.long_market.exchange,
                "long_quote": self.pair.long_market.quote,
                "long_rate": str(self.pair.long_rate),
                "short_key": self.pair.short_key,
                "short_exchange": self.pair.short_market.exchange,
                "short_quote": self.pair.short_market.quote,
                "short_rate": str(self.pair.short_rate),
                "spread": str(self.pair.spread),
            }
        return {
            "token": self.token,
            "max_arb": str(self.max_arb) if self.max_arb is not None else None,
            "pair": pair,
            "backtester_url": self.backtester_url,
            "rates": {k: str(v) if v is not None else None for k, v in self.rates.items()},
        }


@dataclass
class ScreenerResult:
    """A page of screener rows plus the column layout to display them with."""

    page: Page[ScreenerRow]
    columns: list[ExchangeColumn]
    exchanges: list[str]
    multi_quote_exchanges: set[str]


def exchanges_from_columns(columns: list[ExchangeColumn]) -> list[str]:
    """Sorted unique exchange ids across all columns."""
    return sorted({c.exchange for c in columns})


def filter_columns(
    columns: list[ExchangeColumn], selected_exchanges: list[str]
) -> list[ExchangeColumn]:
    """Columns belonging to the selected exchanges; no selection keeps all."""
    if not selected_exchanges:
        return list(columns)
    selected = set(selected_exchanges)
    return [c for c in columns if c.exchange in selected]


def allowed_column_keys(
    columns: list[ExchangeColumn], selected_exchanges: list[str]
) -> set[str] | None:
    """Column keys the spread calculation may use, or None for no restriction."""
    if not selected_exchanges:
        return None
    return {c.column_key for c in filter_columns(columns, selected_exchanges)}


def exchanges_with_multiple_quotes(columns: list[ExchangeColumn]) -> set[str]:
    """Exchanges listed with more than one quote asset (their cells show the quote)."""
    counts = Counter(c.exchange for c in columns)
    return {exchange for exchange, count in counts.items() if count > 1}


def _sort_rows(rows: list[ScreenerRow], sort_key: SortKey, sort_dir: SortDir) -> None:
    reverse = sort_dir == "desc"
    if sort_key == "token":
        rows.sort(key=lambda r: r.token.casefold(), reverse=reverse)
    else:
        # Rows without a spread rank as -infinity
        rows.sort(
            key=lambda r: (0, Decimal(0)) if r.max_arb is None else (1, r.max_arb),
            reverse=reverse,
        )


def build_screener_rows(
    rows: list[TokenRow],
    columns: list[ExchangeColumn],
    query: ScreenerQuery,
    backtester_url: str = DEFAULT_BACKTESTER_URL,
    multipliers: tuple[str, ...] | list[str] = (),
) -> ScreenerResult:
    """Filter, score, sort and paginate screener rows.

    ``max_arb`` honours the exchange filter. When a pinned exchange is set
    the displayed spread is that of the pinned pair, so sorting and the
    minimum APR filter follow what the user sees.
    """
    visible_columns = filter_columns(columns, query.selected_exchanges)
    allowed = allowed_column_keys(columns, query.selected_exchanges)

    computed: list[ScreenerRow] = []
    for row in rows:
        if not matches_search(row.token, query.search, multipliers):
            continue

        pair = find_best_pair_pinned(row.markets, query.window, allowed, query.pinned_key)
        if query.pinned_key is None:
            spread = max_spread(row.markets, query.window, allowed)
        else:
            spread = pair.spread if pair is not None else None

        if query.min_apr is not None and query.min_apr > 0:
            if spread is None or spread < query.min_apr:
                continue

        computed.append(
            ScreenerRow(
                token=row.token,
                max_arb=spread,
                pair=pair,
                backtester_url=build_backtester_url(row.token, pair, backtester_url),
                rates={
                    c.column_key: get_rate(row.markets.get(c.column_key), query.window)
                    for c in visible_columns
                },
            )
        )

    _sort_rows(computed, query.sort_key, query.sort_dir)

    return ScreenerResult(
        page=paginate(computed, query.page, query.limit),
        columns=visible_columns,
        exchanges=exchanges_from_columns(columns),
        multi_quote_exchanges=exchanges_with_multiple_quotes(columns),
    )
