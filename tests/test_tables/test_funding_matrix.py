"""Tests for the funding matrix screener table.

Fixture layout (rates on "now"):
    BTC:  binance 10, bybit 12, hyperliquid 4      -> max arb 8
    PEPE: binance -20, bybit:USDC 15                -> max arb 35
    ETH:  binance 8                                 -> no spread
"""

from decimal import Decimal

from conftest import make_market

from screener.models import ExchangeColumn, TokenRow
from screener.tables.funding_matrix import (
    ScreenerQuery,
    allowed_column_keys,
    build_screener_rows,
    exchanges_from_columns,
    exchanges_with_multiple_quotes,
    filter_columns,
)
from screener.tables.pagination import SHOW_ALL


def _tokens(result) -> list[str]:
    return [r.token for r in result.page.items]


def _by_token(result) -> dict:
    return {r.token: r for r in result.page.items}


class TestColumns:
    def test_exchanges_sorted_unique(self, columns: list[ExchangeColumn]) -> None:
        assert exchanges_from_columns(columns) == ["binance", "bybit", "hyperliquid"]

    def test_multi_quote_exchanges(self, columns: list[ExchangeColumn]) -> None:
        assert exchanges_with_multiple_quotes(columns) == {"bybit"}

    def test_filter_columns(self, columns: list[ExchangeColumn]) -> None:
        keys = [c.column_key for c in filter_columns(columns, ["bybit"])]
        assert keys == ["bybit", "bybit:USDC"]

    def test_no_selection_keeps_all(self, columns: list[ExchangeColumn]) -> None:
        assert filter_columns(columns, []) == columns
        assert allowed_column_keys(columns, []) is None

    def test_allowed_keys(self, columns: list[ExchangeColumn]) -> None:
        assert allowed_column_keys(columns, ["binance", "hyperliquid"]) == {
            "binance",
            "hyperliquid",
        }


class TestBuildScreenerRows:
    def test_default_sort_max_arb_desc(
        self, token_rows: list[TokenRow], columns: list[ExchangeColumn]
    ) -> None:
        result = build_screener_rows(token_rows, columns, ScreenerQuery())
        assert _tokens(result) == ["PEPE", "BTC", "ETH"]
        rows = _by_token(result)
        assert rows["PEPE"].max_arb == Decimal("35")
        assert rows["BTC"].max_arb == Decimal("8")
        assert rows["ETH"].max_arb is None

    def test_missing_spread_sorts_last_ascending_first(
        self, token_rows: list[TokenRow], columns: list[ExchangeColumn]
    ) -> None:
        result = build_screener_rows(token_rows, columns, ScreenerQuery(sort_dir="asc"))
        assert _tokens(result) == ["ETH", "BTC", "PEPE"]

    def test_sort_by_token(self, token_rows: list[TokenRow], columns: list[ExchangeColumn]) -> None:
        result = build_screener_rows(
            token_rows, columns, ScreenerQuery(sort_key="token", sort_dir="asc")
        )
        assert _tokens(result) == ["BTC", "ETH", "PEPE"]

    def test_best_pair_and_link(
        self,
        token_rows: list[TokenRow],
        columns: list[ExchangeColumn],
    ) -> None:
        result = build_screener_rows(
            token_rows, columns, ScreenerQuery(), backtester_url="/backtester"
        )
        pepe = _by_token(result)["PEPE"]
        assert pepe.pair is not None
        assert (pepe.pair.long_key, pepe.pair.short_key) == ("binance", "bybit:USDC")
        assert pepe.backtester_url == (
            "/backtester?token=PEPE&exchange1=binanceusdt&exchange2=bybitusdc"
        )
        eth = _by_token(result)["ETH"]
        assert eth.pair is None
        assert eth.backtester_url is None

    def test_rates_per_visible_column(
        self, token_rows: list[TokenRow], columns: list[ExchangeColumn]
    ) -> None:
        result = build_screener_rows(token_rows, columns, ScreenerQuery())
        assert _by_token(result)["BTC"].rates == {
            "binance": Decimal("10"),
            "bybit": Decimal("12"),
            "bybit:USDC": None,
            "hyperliquid": Decimal("4"),
        }

    def test_exchange_filter_restricts_spread(
        self, token_rows: list[TokenRow], columns: list[ExchangeColumn]
    ) -> None:
        query = ScreenerQuery(selected_exchanges=["binance", "hyperliquid"])
        result = build_screener_rows(token_rows, columns, query)
        rows = _by_token(result)
        assert rows["BTC"].max_arb == Decimal("6")
        assert rows["PEPE"].max_arb is None
        assert [c.column_key for c in result.columns] == ["binance", "hyperliquid"]
        assert set(rows["BTC"].rates) == {"binance", "hyperliquid"}
        # The exchange list stays complete so the filter can be widened again
        assert result.exchanges == ["binance", "bybit", "hyperliquid"]

    def test_search_is_prefix(self, token_rows: list[TokenRow], columns: list[ExchangeColumn]) -> None:
        assert _tokens(build_screener_rows(token_rows, columns, ScreenerQuery(search="pe"))) == [
            "PEPE"
        ]
        assert _tokens(build_screener_rows(token_rows, columns, ScreenerQuery(search="TH"))) == []

    def test_search_with_multipliers(self, columns: list[ExchangeColumn]) -> None:
        rows = [TokenRow(token="1000PEPE")]
        result = build_screener_rows(
            rows, columns, ScreenerQuery(search="PEPE"), multipliers=["1000"]
        )
        assert _tokens(result) == ["1000PEPE"]

    def test_min_apr_filter(self, token_rows: list[TokenRow], columns: list[ExchangeColumn]) -> None:
        result = build_screener_rows(
            token_rows, columns, ScreenerQuery(min_apr=Decimal("10"))
        )
        assert _tokens(result) == ["PEPE"]

    def test_min_apr_inclusive(self, token_rows: list[TokenRow], columns: list[ExchangeColumn]) -> None:
        result = build_screener_rows(token_rows, columns, ScreenerQuery(min_apr=Decimal("8")))
        assert _tokens(result) == ["PEPE", "BTC"]

    def test_zero_min_apr_is_no_filter(
        self, token_rows: list[TokenRow], columns: list[ExchangeColumn]
    ) -> None:
        result = build_screener_rows(token_rows, columns, ScreenerQuery(min_apr=Decimal("0")))
        assert len(result.page.items) == 3

    def test_pinned_exchange(self, token_rows: list[TokenRow], columns: list[ExchangeColumn]) -> None:
        result = build_screener_rows(token_rows, columns, ScreenerQuery(pinned_key="binance"))
        rows = _by_token(result)

        btc = rows["BTC"]
        assert btc.pair is not None
        assert (btc.pair.long_key, btc.pair.short_key) == ("hyperliquid", "binance")
        assert btc.max_arb == Decimal("6")

        pepe = rows["PEPE"]
        assert pepe.pair is not None
        assert (pepe.pair.long_key, pepe.pair.short_key) == ("binance", "bybit:USDC")
        assert pepe.max_arb == Decimal("35")

        assert rows["ETH"].pair is None
        assert rows["ETH"].max_arb is None

    def test_pin_missing_from_row_falls_back(
        self, token_rows: list[TokenRow], columns: list[ExchangeColumn]
    ) -> None:
        result = build_screener_rows(
            token_rows, columns, ScreenerQuery(pinned_key="hyperliquid")
        )
        rows = _by_token(result)
        assert rows["PEPE"].max_arb == Decimal("35")
        assert rows["BTC"].pair is not None
        assert (rows["BTC"].pair.long_key, rows["BTC"].pair.short_key) == ("hyperliquid", "bybit")

    def test_pagination(self, token_rows: list[TokenRow], columns: list[ExchangeColumn]) -> None:
        result = build_screener_rows(token_rows, columns, ScreenerQuery(limit=2, page=1))
        assert _tokens(result) == ["ETH"]
        assert result.page.total == 3
        assert result.page.total_pages == 2

    def test_show_all(self, token_rows: list[TokenRow], columns: list[ExchangeColumn]) -> None:
        result = build_screener_rows(token_rows, columns, ScreenerQuery(limit=SHOW_ALL))
        assert len(result.page.items) == 3

    def test_other_window(self, columns: list[ExchangeColumn]) -> None:
        rows = [
            TokenRow(
                token="SOL",
                markets={
                    "binance": make_market("binance", now=Decimal("1"), **{"7d": Decimal("2")}),
                    "bybit": make_market("bybit", now=Decimal("9"), **{"7d": Decimal("3")}),
                },
            )
        ]
        result = build_screener_rows(rows, columns, ScreenerQuery(window="7d"))
        assert result.page.items[0].max_arb == Decimal("1")

    def test_to_dict(self, token_rows: list[TokenRow], columns: list[ExchangeColumn]) -> None:
        result = build_screener_rows(token_rows, columns, ScreenerQuery())
        data = _by_token(result)["PEPE"].to_dict()
        assert data["token"] == "PEPE"
        assert data["max_arb"] == "35"
        assert data["pair"]["long_exchange"] == "binance"
        assert data["pair"]["short_quote"] == "USDC"
        assert data["pair"]["spread"] == "35"
        assert data["rates"]["binance"] == "-20"
        assert data["rates"]["bybit"] is None

        eth = _by_token(result)["ETH"].to_dict()
        assert eth["max_arb"] is None
        assert eth["pair"] is None
