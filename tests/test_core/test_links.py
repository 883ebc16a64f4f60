"""Tests for backtester deep links."""

from decimal import Decimal
from urllib.parse import parse_qs, urlsplit

from conftest import make_market

from screener.links import DEFAULT_BACKTESTER_URL, build_backtester_url, exchange_identifier
from screener.models import ArbPair, Market


def _pair(long_market: Market, short_market: Market) -> ArbPair:
    return ArbPair(
        long_key=long_market.exchange,
        long_market=long_market,
        long_rate=Decimal("1"),
        short_key=short_market.exchange,
        short_market=short_market,
        short_rate=Decimal("5"),
        spread=Decimal("4"),
    )


class TestExchangeIdentifier:
    def test_lowercases_exchange_and_quote(self) -> None:
        assert exchange_identifier(make_market("Binance", "USDT")) == "binanceusdt"

    def test_missing_quote(self) -> None:
        assert exchange_identifier(make_market("binance", None)) is None

    def test_missing_exchange(self) -> None:
        assert exchange_identifier(make_market("", "USDT")) is None


class TestBuildBacktesterUrl:
    def test_long_and_short_legs(self) -> None:
        pair = _pair(make_market("binance", "USDT"), make_market("bybit", "USDT"))
        url = build_backtester_url("ETH", pair)
        assert url == "/backtester?token=ETH&exchange1=binanceusdt&exchange2=bybitusdt"

    def test_default_base_url(self) -> None:
        pair = _pair(make_market("okx", "USDT"), make_market("gate", "USDT"))
        url = build_backtester_url("BTC", pair)
        assert url is not None
        assert url.startswith(DEFAULT_BACKTESTER_URL + "?")

    def test_absolute_base_url(self) -> None:
        pair = _pair(make_market("hyperliquid", "USDC"), make_market("mexc", "USDT"))
        url = build_backtester_url("SOL", pair, "https://bt.example.com/backtester")
        assert url is not None
        parts = urlsplit(url)
        assert parts.netloc == "bt.example.com"
        assert parse_qs(parts.query) == {
            "token": ["SOL"],
            "exchange1": ["hyperliquidusdc"],
            "exchange2": ["mexcusdt"],
        }

    def test_base_url_with_existing_query(self) -> None:
        pair = _pair(make_market("binance", "USDT"), make_market("bybit", "USDT"))
        url = build_backtester_url("ETH", pair, "/backtester?mode=funding")
        assert url == (
            "/backtester?mode=funding&token=ETH&exchange1=binanceusdt&exchange2=bybitusdt"
        )

    def test_token_is_url_encoded(self) -> None:
        pair = _pair(make_market("binance", "USDT"), make_market("bybit", "USDT"))
        url = build_backtester_url("A&B", pair)
        assert url is not None
        assert "token=A%26B" in url

    def test_no_pair(self) -> None:
        assert build_backtester_url("ETH", None) is None

    def test_leg_without_quote(self) -> None:
        pair = _pair(make_market("binance", None), make_market("bybit", "USDT"))
        assert build_backtester_url("ETH", pair) is None
        pair = _pair(make_market("binance", "USDT"), make_market("bybit", None))
        assert build_backtester_url("ETH", pair) is None
