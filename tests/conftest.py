"""Pytest configuration and fixtures."""

from collections.abc import Callable
from types import SimpleNamespace
from typing import Any

import pandas as pd
import pytest

from research_mcp.config import ResearchConfig
from research_mcp.context import ResearchContext
from research_mcp.errors import FetchError
from research_mcp.insights import InsightGenerator
from research_mcp.utils.validators import ChartParams


class StubFetcher:
    """
    In-memory stand-in for HttpFetcher.

    Pages and JSON payloads are looked up by URL. Unknown URLs answer 404;
    an Exception value is raised instead of returned.
    """

    def __init__(
        self,
        pages: dict[str, Any] | None = None,
        payloads: dict[str, Any] | None = None,
    ):
        self.pages = pages or {}
        self.payloads = payloads or {}
        self.requested: list[str] = []
        self.closed = False

    def _lookup(self, table: dict[str, Any], url: str) -> Any:
        self.requested.append(url)
        if url not in table:
            raise FetchError(f"GET {url} returned 404", url=url, status=404)
        value = table[url]
        if isinstance(value, Exception):
            raise value
        return value

    async def get_text(self, url: str) -> str:
        return self._lookup(self.pages, url)

    async def get_json(self, url: str) -> Any:
        return self._lookup(self.payloads, url)

    async def run_sync(self, operation_name: str, sync_func: Callable[[], Any]) -> Any:
        return sync_func()

    def close(self) -> None:
        self.closed = True


class StubMessages:
    def __init__(self, reply: Any):
        self.reply = reply
        self.calls: list[dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


class StubAnthropic:
    """Stand-in for AsyncAnthropic exposing messages.create and close."""

    def __init__(self, reply: Any):
        self.messages = StubMessages(reply)
        self.closed = False

    async def close(self) -> None:
        self.closed = True


def text_message(text: str) -> SimpleNamespace:
    """A messages API response holding one text block."""
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])


def chart_payload(closes: list[float | None], **meta: Any) -> dict[str, Any]:
    """Chart endpoint payload with one result."""
    timestamps = [1_704_067_200 + i * 86_400 for i in range(len(closes))]
    return {
        "chart": {
            "result": [
                {
                    "meta": meta,
                    "timestamp": timestamps,
                    "indicators": {"quote": [{"close": closes}]},
                }
            ],
            "error": None,
        }
    }


@pytest.fixture
def uptrend_closes() -> list[float]:
    """Closes rising one dollar a day from 100 to 120."""
    return [float(p) for p in range(100, 121)]


@pytest.fixture
def uptrend_series(uptrend_closes: list[float]) -> pd.Series:
    return pd.Series(uptrend_closes)


@pytest.fixture
def uptrend_payload(uptrend_closes: list[float]) -> dict[str, Any]:
    """Chart payload for the documented uptrend scenario."""
    return chart_payload(
        uptrend_closes,
        longName="Apple Inc.",
        shortName="Apple",
        regularMarketPrice=120.0,
        chartPreviousClose=119.0,
        regularMarketDayHigh=121.0,
        regularMarketDayLow=118.5,
        fiftyTwoWeekHigh=130.0,
        fiftyTwoWeekLow=80.0,
        regularMarketVolume=15_000_000,
        fullExchangeName="NasdaqGS",
        currency="USD",
        regularMarketTime=1_705_953_600,
        exchangeTimezoneName="America/New_York",
    )


@pytest.fixture
def chart_url() -> str:
    return ChartParams(symbol="AAPL").to_url()


@pytest.fixture
def offline_config() -> ResearchConfig:
    """Config with no generation credential and no market-data fallback."""
    return ResearchConfig(anthropic_api_key=None, market_fallback="none")


@pytest.fixture
def make_context(offline_config: ResearchConfig) -> Callable[..., ResearchContext]:
    """Build a ResearchContext around a stub fetcher and optional stub client."""

    def factory(
        fetcher: StubFetcher,
        client: Any | None = None,
        config: ResearchConfig | None = None,
    ) -> ResearchContext:
        return ResearchContext(
            config=config or offline_config,
            fetcher=fetcher,
            insights=InsightGenerator(client, timeout=1.0),
        )

    return factory
