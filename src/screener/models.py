"""Shared data models for the funding screener.

All rates are annualized percentages held as Decimal. Open interest and
volume are USD Decimals. An absent value is None and is never the same as
Decimal("0").
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Literal

TimeWindow = Literal["now", "1d", "3d", "7d", "15d", "30d", "60d"]

# Windows carried by token_funding_matrix_mv markets
SCREENER_TIME_WINDOWS: tuple[str, ...] = ("now", "1d", "3d", "7d", "15d", "30d")

SCREENER_TIME_LABELS: dict[str, str] = {
    "now": "Now",
    "1d": "1 day",
    "3d": "3 days",
    "7d": "7 days",
    "15d": "15 days",
    "30d": "30 days",
}

# Windows carried by funding_dashboard_mv rows
FUNDING_TIME_WINDOWS: tuple[str, ...] = ("1d", "3d", "7d", "15d", "30d", "60d")

ALL_TIME_WINDOWS: tuple[str, ...] = ("now", *FUNDING_TIME_WINDOWS)

# window_days values of arb_opportunities_mv; 0 is the live ("Now") window
ARB_WINDOW_DAYS: tuple[int, ...] = (0, 1, 3, 7, 15, 30)


@dataclass
class Market:
    """One exchange + quote-asset listing of a token."""

    exchange: str
    quote: str | None = None
    rates: dict[str, Decimal | None] = field(default_factory=dict)
    ref_url: str | None = None
    open_interest: Decimal | None = None
    volume_24h: Decimal | None = None
    market_id: int | None = None


@dataclass
class TokenRow:
    """A token and its markets keyed by exchange column key."""

    token: str
    markets: dict[str, Market] = field(default_factory=dict)


@dataclass
class ExchangeColumn:
    """A screener column: one exchange (and quote, for multi-quote exchanges)."""

    column_key: str
    exchange: str
    quote: str | None = None


@dataclass(frozen=True)
class ArbPair:
    """Long/short leg pair maximizing the funding spread for one token.

    Long is the lower-rate leg (pays less funding), short is the higher-rate
    leg (receives more). Derived on demand, never stored.
    """

    long_key: str
    long_market: Market
    long_rate: Decimal
    short_key: str
    short_market: Market
    short_rate: Decimal
    spread: Decimal


@dataclass
class ArbOpportunity:
    """A precomputed cross-exchange opportunity from arb_opportunities_mv."""

    base_asset: str
    window_days: int
    opportunity_apr: Decimal | None
    long_exchange: str
    short_exchange: str
    long_quote: str | None = None
    short_quote: str | None = None
    long_open_interest: Decimal | None = None
    short_open_interest: Decimal | None = None
    long_volume_24h: Decimal | None = None
    short_volume_24h: Decimal | None = None
    long_url: str | None = None
    short_url: str | None = None
    open_interest: Decimal | None = None
    volume_24h: Decimal | None = None


@dataclass
class FundingRow:
    """A single exchange market row from funding_dashboard_mv."""

    exchange: str
    market: str
    rates: dict[str, Decimal | None] = field(default_factory=dict)
    updated: str | None = None
    volume_24h: Decimal | None = None
    open_interest: Decimal | None = None
    market_id: int | None = None
    ref_url: str | None = None


@dataclass
class ChartPoint:
    """One funding rate observation returned by the get_funding_chart RPC."""

    funding_time: str  # ISO 8601
    apr: Decimal | None
