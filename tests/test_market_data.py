"""Tests for chart acquisition and parsing."""

import asyncio

import pandas as pd
import pytest
from conftest import StubFetcher, chart_payload

from research_mcp.config import ResearchConfig
from research_mcp.data import market_data
from research_mcp.data.market_data import (
    CHART,
    YFINANCE,
    MarketDataClient,
    first_chart_result,
    parse_chart,
    yfinance_chart,
)
from research_mcp.errors import FetchError, NoMarketDataError
from research_mcp.utils.validators import ChartParams


class TestFirstChartResult:
    """Tests for first_chart_result."""

    def test_result_present(self, uptrend_payload: dict) -> None:
        """The first result entry is returned."""
        result = first_chart_result(uptrend_payload)
        assert result is not None
        assert result["meta"]["longName"] == "Apple Inc."

    @pytest.mark.parametrize(
        "payload",
        [
            None,
            [],
            {},
            {"chart": None},
            {"chart": {"result": None}},
            {"chart": {"result": []}},
            {"chart": {"result": ["oops"]}},
        ],
    )
    def test_no_result(self, payload) -> None:
        """Empty or malformed payloads hold no result."""
        assert first_chart_result(payload) is None


class TestParseChart:
    """Tests for parse_chart."""

    def test_quote_fields(self, uptrend_payload: dict) -> None:
        """Meta scalars map onto QuoteMeta."""
        quote, series = parse_chart(first_chart_result(uptrend_payload), "AAPL")

        assert quote.company_name == "Apple Inc."
        assert quote.current_price == 120.0
        assert quote.previous_close == 119.0
        assert quote.fifty_two_week_low == 80.0
        assert quote.volume == 15_000_000
        assert quote.exchange == "NasdaqGS"
        assert quote.timezone == "America/New_York"
        assert len(series) == 21

    def test_company_name_fallbacks(self) -> None:
        """longName, then shortName, then the symbol."""
        short_only = first_chart_result(chart_payload([1.0], shortName="Apple"))
        assert parse_chart(short_only, "AAPL")[0].company_name == "Apple"

        nameless = first_chart_result(chart_payload([1.0]))
        assert parse_chart(nameless, "AAPL")[0].company_name == "AAPL"

    def test_previous_close_fallback(self) -> None:
        """previousClose is used when chartPreviousClose is absent."""
        result = first_chart_result(chart_payload([1.0], previousClose=0.5))
        assert parse_chart(result, "X")[0].previous_close == 0.5

    def test_null_and_garbage_closes(self) -> None:
        """Nulls and non-numeric closes become gaps."""
        result = first_chart_result(chart_payload([1.0, None, "bad", float("nan"), 2.0]))
        _, series = parse_chart(result, "X")
        assert series.closes == (1.0, None, None, None, 2.0)
        assert list(series.valid_closes()) == [1.0, 2.0]

    def test_missing_meta(self) -> None:
        """A result without meta still parses with every quote field unavailable."""
        quote, series = parse_chart({"indicators": {"quote": [{"close": [3.0]}]}}, "X")
        assert quote.current_price is None
        assert quote.volume is None
        assert series.closes == (3.0,)


class TestMarketDataClient:
    """Tests for MarketDataClient.fetch."""

    def test_chart_endpoint(self, uptrend_payload: dict, chart_url: str) -> None:
        """A chart result is parsed and attributed to the chart source."""
        fetcher = StubFetcher(payloads={chart_url: uptrend_payload})
        client = MarketDataClient(fetcher, ResearchConfig(market_fallback="none"))

        quote, series, source = asyncio.run(client.fetch(ChartParams(symbol="aapl")))

        assert source == CHART
        assert quote.symbol == "AAPL"
        assert len(series.valid_closes()) == 21

    def test_empty_result_is_hard_failure(self, chart_url: str) -> None:
        """An empty result array raises NoMarketDataError, no partial data."""
        fetcher = StubFetcher(payloads={chart_url: {"chart": {"result": [], "error": None}}})
        client = MarketDataClient(fetcher, ResearchConfig(market_fallback="none"))

        with pytest.raises(NoMarketDataError, match="No data found for symbol AAPL"):
            asyncio.run(client.fetch(ChartParams(symbol="AAPL")))

    def test_fetch_error_is_hard_failure(self, chart_url: str) -> None:
        """A failed fetch without a fallback raises NoMarketDataError carrying the cause."""
        cause = FetchError("GET returned 500", status=500)
        fetcher = StubFetcher(payloads={chart_url: cause})
        client = MarketDataClient(fetcher, ResearchConfig(market_fallback="none"))

        with pytest.raises(NoMarketDataError) as excinfo:
            asyncio.run(client.fetch(ChartParams(symbol="AAPL")))
        assert excinfo.value.last_error is cause

    def test_yfinance_fallback(self, monkeypatch, uptrend_payload: dict) -> None:
        """With the fallback configured, yfinance fills in when the chart endpoint fails."""
        rebuilt = first_chart_result(uptrend_payload)
        monkeypatch.setattr(market_data, "yfinance_chart", lambda params: rebuilt)
        client = MarketDataClient(StubFetcher(), ResearchConfig(market_fallback="yfinance"))

        quote, _, source = asyncio.run(client.fetch(ChartParams(symbol="AAPL")))

        assert source == YFINANCE
        assert quote.current_price == 120.0

    def test_yfinance_fallback_without_data(self, monkeypatch) -> None:
        """Both sources empty is still a hard failure."""
        monkeypatch.setattr(market_data, "yfinance_chart", lambda params: None)
        client = MarketDataClient(StubFetcher(), ResearchConfig(market_fallback="yfinance"))

        with pytest.raises(NoMarketDataError):
            asyncio.run(client.fetch(ChartParams(symbol="ZZZZ")))

    def test_yfinance_errors_are_contained(self, monkeypatch) -> None:
        """yfinance exceptions end in NoMarketDataError rather than escaping."""

        def explode(params):
            raise KeyError("regularMarketPrice")

        monkeypatch.setattr(market_data, "yfinance_chart", explode)
        client = MarketDataClient(StubFetcher(), ResearchConfig(market_fallback="yfinance"))

        with pytest.raises(NoMarketDataError) as excinfo:
            asyncio.run(client.fetch(ChartParams(symbol="ZZZZ")))
        assert isinstance(excinfo.value.last_error, KeyError)


class _FakeTicker:
    def __init__(self, history: pd.DataFrame, metadata: dict):
        self._history = history
        self.history_metadata = metadata

    def history(self, **kwargs) -> pd.DataFrame:
        return self._history


class TestYFinanceChart:
    """Tests for rebuilding a chart payload from yfinance."""

    def test_rebuilds_chart_shape(self, monkeypatch) -> None:
        """History closes and metadata land where the chart parser expects them."""
        history = pd.DataFrame(
            {"Close": [10.0, float("nan"), 12.0], "Volume": [100, 200, 300]},
            index=pd.date_range("2024-01-01", periods=3, freq="D", tz="UTC"),
        )
        metadata = {"currency": "USD", "longName": "Test Corp", "chartPreviousClose": 9.5}
        monkeypatch.setattr(market_data.yf, "Ticker", lambda symbol: _FakeTicker(history, metadata))

        result = yfinance_chart(ChartParams(symbol="TST"))
        quote, series = parse_chart(result, "TST")

        assert series.closes == (10.0, None, 12.0)
        assert quote.current_price == 12.0
        assert quote.volume == 300.0
        assert quote.previous_close == 9.5
        assert quote.company_name == "Test Corp"

    def test_empty_history(self, monkeypatch) -> None:
        """No history means no chart."""
        monkeypatch.setattr(market_data.yf, "Ticker", lambda symbol: _FakeTicker(pd.DataFrame(), {}))
        assert yfinance_chart(ChartParams(symbol="TST")) is None
