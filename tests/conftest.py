"""Shared test fixtures for the funding screener."""

from decimal import Decimal

import pytest

from screener.config import DataSourceSettings, ScreenerSettings
from screener.models import ExchangeColumn, Market, TokenRow


def make_market(
    exchange: str,
    quote: str | None = "USDT",
    **rates: Decimal | None,
) -> Market:
    """Build a Market; keyword args map window labels to rates ("now" included)."""
    return Market(exchange=exchange, quote=quote, rates=dict(rates))


@pytest.fixture
def data_source_settings() -> DataSourceSettings:
    """Fast settings for fetch tests: tiny pages, no backoff delay."""
    return DataSourceSettings(
        url="https://example.supabase.co",
        anon_key="test-anon-key",  # type: ignore[arg-type]
        page_size=2,
        request_timeout=0.05,
        max_attempts=2,
        retry_base_delay=0.0,
    )


@pytest.fixture
def screener_settings() -> ScreenerSettings:
    return ScreenerSettings(backtester_url="https://bt.example.com/backtester")


@pytest.fixture
def columns() -> list[ExchangeColumn]:
    """Four columns: bybit listed twice (USDT and USDC)."""
    return [
        ExchangeColumn(column_key="binance", exchange="binance", quote="USDT"),
        ExchangeColumn(column_key="bybit", exchange="bybit", quote="USDT"),
        ExchangeColumn(column_key="bybit:USDC", exchange="bybit", quote="USDC"),
        ExchangeColumn(column_key="hyperliquid", exchange="hyperliquid", quote="USDC"),
    ]


@pytest.fixture
def token_rows() -> list[TokenRow]:
    """Three tokens with "now" rates (annualized %)."""
    return [
        TokenRow(
            token="BTC",
            markets={
                "binance": make_market("binance", now=Decimal("10")),
                "bybit": make_market("bybit", now=Decimal("12")),
                "hyperliquid": make_market("hyperliquid", "USDC", now=Decimal("4")),
            },
        ),
        TokenRow(
            token="PEPE",
            markets={
                "binance": make_market("binance", now=Decimal("-20")),
                "bybit:USDC": make_market("bybit", "USDC", now=Decimal("15")),
            },
        ),
        TokenRow(
            token="ETH",
            markets={
                "binance": make_market("binance", now=Decimal("8")),
            },
        ),
    ]
