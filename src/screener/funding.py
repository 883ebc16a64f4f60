"""Funding rate spread and arbitrage pair computation.

All functions are pure and total: insufficient or malformed input yields
None, never an exception. Min/max scans are first-match-wins, so results are
deterministic for a given market iteration order.

Conventions:
  long leg  = lowest rate  (you pay the least funding)
  short leg = highest rate (you receive the most funding)
  spread    = short_rate - long_rate
"""

import math
from collections.abc import Collection, Mapping
from decimal import Decimal
from typing import NamedTuple

from screener.models import ArbPair, Market


class _RateEntry(NamedTuple):
    key: str
    market: Market
    rate: Decimal


def get_rate(market: Market | None, window: str) -> Decimal | None:
    """Return the market's rate for ``window`` as a Decimal, or None if unknown.

    Non-finite values (NaN, infinity) count as unknown so they can never
    leak into a min/max reduction. Plain int/float rates are converted with
    Decimal(str(x)); bools and other types count as unknown.
    """
    if market is None:
        return None
    rate = market.rates.get(window)
    if rate is None or isinstance(rate, bool):
        return None
    if isinstance(rate, Decimal):
        return rate if rate.is_finite() else None
    if isinstance(rate, int):
        return Decimal(rate)
    if isinstance(rate, float) and math.isfinite(rate):
        return Decimal(str(rate))
    return None


def _collect_entries(
    markets: Mapping[str, Market | None] | None,
    window: str,
    allowed_keys: Collection[str] | None,
    exclude_key: str | None = None,
) -> list[_RateEntry]:
    """Gather (key, market, rate) for markets that have a rate in ``window``."""
    if not markets:
        return []

    entries: list[_RateEntry] = []
    for key, market in markets.items():
        if market is None or key == exclude_key:
            continue
        if allowed_keys is not None and key not in allowed_keys:
            continue
        rate = get_rate(market, window)
        if rate is not None:
            entries.append(_RateEntry(key, market, rate))
    return entries


def _extremes(entries: list[_RateEntry]) -> tuple[_RateEntry, _RateEntry]:
    """Return (min_entry, max_entry). Strict comparisons keep the first seen on ties."""
    min_entry = entries[0]
    max_entry = entries[0]
    for entry in entries:
        if entry.rate < min_entry.rate:
            min_entry = entry
        if entry.rate > max_entry.rate:
            max_entry = entry
    return min_entry, max_entry


def _make_pair(long: _RateEntry, short: _RateEntry) -> ArbPair:
    return ArbPair(
        long_key=long.key,
        long_market=long.market,
        long_rate=long.rate,
        short_key=short.key,
        short_market=short.market,
        short_rate=short.rate,
        spread=short.rate - long.rate,
    )


def max_spread(
    markets: Mapping[str, Market | None] | None,
    window: str,
    allowed_keys: Collection[str] | None = None,
) -> Decimal | None:
    """Max rate minus min rate across a token's markets.

    Args:
        markets: Column key -> Market for one token.
        window: Time window label, e.g. "now" or "7d".
        allowed_keys: Optional subset of column keys to consider
            (the exchange filter).

    Returns:
        Non-negative spread, or None when fewer than two markets have a rate.
    """
    rates = [e.rate for e in _collect_entries(markets, window, allowed_keys)]
    if len(rates) < 2:
        return None
    return max(rates) - min(rates)


def find_best_pair(
    markets: Mapping[str, Market | None] | None,
    window: str,
    allowed_keys: Collection[str] | None = None,
) -> ArbPair | None:
    """Find the long/short pair with the largest funding spread.

    Returns None when fewer than two markets have a rate, or when every rate
    is equal (a pair needs two distinct markets). Any returned pair has
    ``spread > 0``.
    """
    entries = _collect_entries(markets, window, allowed_keys)
    if len(entries) < 2:
        return None

    min_entry, max_entry = _extremes(entries)
    if min_entry is max_entry:
        return None

    return _make_pair(min_entry, max_entry)


def find_best_pair_pinned(
    markets: Mapping[str, Market | None] | None,
    window: str,
    allowed_keys: Collection[str] | None,
    pinned_key: str | None,
) -> ArbPair | None:
    """Find the best pair with ``pinned_key`` locked as one of the legs.

    The pin is ignored (falls back to find_best_pair) when it is None, is
    excluded by ``allowed_keys``, or has no rate for the window. Otherwise
    both fixed-leg cases are evaluated against the other markets:

      pinned long:  max_other.rate - pinned_rate
      pinned short: pinned_rate - min_other.rate

    The larger wins (ties go to pinned long). A winning spread <= 0 means the
    pin cannot form a profitable pair and None is returned.
    """
    if pinned_key is None:
        return find_best_pair(markets, window, allowed_keys)
    if allowed_keys is not None and pinned_key not in allowed_keys:
        return find_best_pair(markets, window, allowed_keys)

    pinned_market = markets.get(pinned_key) if markets else None
    pinned_rate = get_rate(pinned_market, window)
    if pinned_market is None or pinned_rate is None:
        return find_best_pair(markets, window, allowed_keys)

    others = _collect_entries(markets, window, allowed_keys, exclude_key=pinned_key)
    if not others:
        return None

    min_other, max_other = _extremes(others)
    pinned = _RateEntry(pinned_key, pinned_market, pinned_rate)

    spread_if_long = max_other.rate - pinned_rate
    spread_if_short = pinned_rate - min_other.rate

    if spread_if_long >= spread_if_short:
        if spread_if_long <= 0:
            return None
        return _make_pair(pinned, max_other)

    if spread_if_short <= 0:
        return None
    return _make_pair(min_other, pinned)
