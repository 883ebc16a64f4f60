"""Display formatters for USD amounts, percentages, exchanges and tokens.

Formatters return plain strings. Missing values (None or NaN) render as the
placeholder dash so the display layer never has to special-case them.
"""

import math
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

PLACEHOLDER = "–"

EXCHANGE_LABEL: dict[str, str] = {
    "bybit": "Bybit",
    "mexc": "MEXC",
    "bingx": "BingX",
    "paradex": "Paradex",
    "binance": "Binance",
    "hyperliquid": "Hyperliquid",
    "gate": "Gate.io",
    "okx": "OKX",
}

# Multiplier prefixes/suffixes used by rebased tickers (1000PEPE, PEPE1000).
# Not applied by default: the materialized views already strip them.
LEGACY_MULTIPLIERS: tuple[str, ...] = ("1000000", "100000", "10000", "1000", "100", "10")

_COMPACT_UNITS: tuple[tuple[Decimal, str], ...] = (
    (Decimal("1"), ""),
    (Decimal("1e3"), "K"),
    (Decimal("1e6"), "M"),
    (Decimal("1e9"), "B"),
    (Decimal("1e12"), "T"),
)


def _to_decimal(value: Decimal | float | int | None) -> Decimal | None:
    """Coerce to Decimal; None for missing, NaN or infinite input."""
    if value is None:
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return result if result.is_finite() else None


def _strip_zeros(value: Decimal) -> str:
    text = f"{value:f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


# ================= NUMBER FORMATTERS =================


def format_compact_usd(value: Decimal | float | int | None) -> str:
    """Compact USD with at most one fractional digit: $1.5M, $2.3K, $150."""
    v = _to_decimal(value)
    if v is None:
        return PLACEHOLDER

    magnitude = abs(v)
    idx = 0
    for i, (threshold, _) in enumerate(_COMPACT_UNITS):
        if magnitude >= threshold:
            idx = i

    scaled = (magnitude / _COMPACT_UNITS[idx][0]).quantize(
        Decimal("0.1"), rounding=ROUND_HALF_UP
    )
    # 999_960 rounds to 1000.0K; promote it to 1M
    if scaled >= 1000 and idx < len(_COMPACT_UNITS) - 1:
        idx += 1
        scaled = (magnitude / _COMPACT_UNITS[idx][0]).quantize(
            Decimal("0.1"), rounding=ROUND_HALF_UP
        )

    sign = "-" if v < 0 and scaled != 0 else ""
    return f"${sign}{_strip_zeros(scaled)}{_COMPACT_UNITS[idx][1]}"


def format_usd(value: Decimal | float | int | None) -> str:
    """Full USD rounded to whole dollars with thousands separators."""
    v = _to_decimal(value)
    if v is None:
        return PLACEHOLDER
    rounded = v.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"${rounded:,}"


def format_percent(value: Decimal | float | int | None, decimals: int = 2) -> str:
    """Percentage with a fixed number of decimals, e.g. 5.26%."""
    v = _to_decimal(value)
    if v is None:
        return PLACEHOLDER
    rounded = v.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)
    return f"{rounded:f}%"


def format_apr(value: Decimal | float | int | None) -> str:
    """APR with two decimals, e.g. 10.10%."""
    return format_percent(value, 2)


# ================= TEXT FORMATTERS =================


def format_exchange(exchange: str) -> str:
    """Display label for an exchange id, falling back to the id itself."""
    return EXCHANGE_LABEL.get(exchange, exchange)


def normalize_token(symbol: str | None, multipliers: Iterable[str] = ()) -> str:
    """Canonical token form used for search matching.

    Upper-cases, trims, and strips any configured multiplier prefixes and
    suffixes until nothing changes, so the result is idempotent:
    normalize_token(normalize_token(x)) == normalize_token(x).
    """
    multipliers = [m.upper() for m in multipliers if m]
    x = (symbol or "").upper().strip()

    while True:
        before = x
        for m in multipliers:
            while x.startswith(m):
                x = x[len(m):]
        for m in multipliers:
            while x.endswith(m):
                x = x[: -len(m)]
        x = x.strip()
        if x == before:
            return x


def normalize_symbol(symbol: str | None, multipliers: Iterable[str] = ()) -> str:
    """Alias of normalize_token kept for symbol-keyed call sites."""
    return normalize_token(symbol, multipliers)


def matches_search(symbol: str | None, query: str | None, multipliers: Iterable[str] = ()) -> bool:
    """Prefix match of a token against a search query; empty query matches all."""
    multipliers = tuple(multipliers)
    term = normalize_token(query, multipliers)
    if not term:
        return True
    return normalize_token(symbol, multipliers).startswith(term)
