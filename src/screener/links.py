"""Deep links from an arbitrage pair to the external backtesting tool.

The backtester expects three query parameters: ``token``, ``exchange1`` (long
leg) and ``exchange2`` (short leg), each exchange written as exchange id plus
quote asset, lowercase (e.g. "binanceusdt").
"""

from urllib.parse import urlencode

from screener.models import ArbPair, Market

DEFAULT_BACKTESTER_URL = "/backtester"


def exchange_identifier(market: Market) -> str | None:
    """Composite exchange id for the backtester, or None if incomplete."""
    if not market.exchange or not market.quote:
        return None
    return f"{market.exchange}{market.quote}".lower()


def build_backtester_url(
    token: str,
    pair: ArbPair | None,
    base_url: str = DEFAULT_BACKTESTER_URL,
) -> str | None:
    """Build the backtester URL for a resolved pair.

    Returns None when there is no pair or either leg is missing its exchange
    or quote asset. No network access and no check that the target exists.
    """
    if pair is None:
        return None

    long_id = exchange_identifier(pair.long_market)
    short_id = exchange_identifier(pair.short_market)
    if long_id is None or short_id is None:
        return None

    query = urlencode({"token": token, "exchange1": long_id, "exchange2": short_id})
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{query}"
