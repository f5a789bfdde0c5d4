"""Market data: chart payload acquisition and parsing."""

import logging
import math
from typing import Any, Protocol

import pandas as pd
import yfinance as yf

from research_mcp.config import ResearchConfig
from research_mcp.errors import FetchError, NoMarketDataError
from research_mcp.models import PriceSeries, QuoteMeta
from research_mcp.utils.sanitize import sanitize_text
from research_mcp.utils.validators import ChartParams

logger = logging.getLogger(__name__)

CHART = "chart"
YFINANCE = "yfinance"

# Chart meta keys mirrored when rebuilding a payload from yfinance
_META_KEYS = (
    "currency",
    "exchangeName",
    "fullExchangeName",
    "exchangeTimezoneName",
    "longName",
    "shortName",
    "regularMarketPrice",
    "chartPreviousClose",
    "previousClose",
    "fiftyTwoWeekHigh",
    "fiftyTwoWeekLow",
    "regularMarketDayHigh",
    "regularMarketDayLow",
    "regularMarketVolume",
    "regularMarketTime",
)


class JsonFetcher(Protocol):
    async def get_json(self, url: str) -> Any: ...

    async def run_sync(self, operation_name: str, sync_func: Any) -> Any: ...


def _safe_float(value: Any) -> float | None:
    """Convert to a finite float or return None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (ValueError, TypeError):
        return None
    if not math.isfinite(result):
        return None
    return result


def _safe_int(value: Any) -> int | None:
    result = _safe_float(value)
    return int(result) if result is not None else None


def first_chart_result(payload: Any) -> dict[str, Any] | None:
    """The first entry of chart.result, or None when the payload holds none."""
    if not isinstance(payload, dict):
        return None
    chart = payload.get("chart")
    if not isinstance(chart, dict):
        return None
    result = chart.get("result")
    if not result or not isinstance(result, list) or not isinstance(result[0], dict):
        return None
    return result[0]


def parse_chart(result: dict[str, Any], symbol: str) -> tuple[QuoteMeta, PriceSeries]:
    """
    Split a chart result into quote fields and the close series.

    Args:
        result: One entry of chart.result
        symbol: Normalized symbol (used when the payload names no company)

    Returns:
        Tuple of (QuoteMeta, PriceSeries)
    """
    meta = result.get("meta") or {}
    quotes = (result.get("indicators") or {}).get("quote") or [{}]
    closes_raw = (quotes[0] or {}).get("close") or []
    timestamps_raw = result.get("timestamp") or []

    closes = tuple(_safe_float(c) for c in closes_raw)
    timestamps = tuple(
        _safe_int(timestamps_raw[i]) if i < len(timestamps_raw) else None
        for i in range(len(closes))
    )

    company_name = (
        sanitize_text(meta.get("longName"), max_length=200)
        or sanitize_text(meta.get("shortName"), max_length=200)
        or symbol
    )
    previous_close = _safe_float(meta.get("chartPreviousClose"))
    if previous_close is None:
        previous_close = _safe_float(meta.get("previousClose"))

    quote = QuoteMeta(
        symbol=symbol,
        company_name=company_name,
        current_price=_safe_float(meta.get("regularMarketPrice")),
        previous_close=previous_close,
        day_high=_safe_float(meta.get("regularMarketDayHigh")),
        day_low=_safe_float(meta.get("regularMarketDayLow")),
        fifty_two_week_high=_safe_float(meta.get("fiftyTwoWeekHigh")),
        fifty_two_week_low=_safe_float(meta.get("fiftyTwoWeekLow")),
        volume=_safe_float(meta.get("regularMarketVolume")),
        exchange=meta.get("fullExchangeName") or meta.get("exchangeName"),
        currency=meta.get("currency"),
        market_time=_safe_int(meta.get("regularMarketTime")),
        timezone=meta.get("exchangeTimezoneName"),
    )
    return quote, PriceSeries(timestamps=timestamps, closes=closes)


def yfinance_chart(params: ChartParams) -> dict[str, Any] | None:
    """
    Rebuild a chart result from yfinance history and metadata.

    Blocking; run through the fetcher's pool.

    Returns:
        Chart-shaped dict, or None when yfinance has no history for the symbol
    """
    ticker = yf.Ticker(params.symbol)
    history = ticker.history(**params.to_yf_kwargs())
    if history is None or history.empty or "Close" not in history.columns:
        return None

    metadata = ticker.history_metadata or {}
    meta = {key: metadata.get(key) for key in _META_KEYS if metadata.get(key) is not None}

    closes = [None if pd.isna(c) else float(c) for c in history["Close"]]
    index = pd.to_datetime(history.index)
    timestamps = [int(ts.timestamp()) for ts in index]

    if "regularMarketPrice" not in meta and closes and closes[-1] is not None:
        meta["regularMarketPrice"] = closes[-1]
    if "regularMarketVolume" not in meta and "Volume" in history.columns:
        meta["regularMarketVolume"] = _safe_float(history["Volume"].iloc[-1])

    return {
        "meta": meta,
        "timestamp": timestamps,
        "indicators": {"quote": [{"close": closes}]},
    }


class MarketDataClient:
    """
    Fetch one symbol's chart.

    The chart endpoint is the primary source. When it fails or returns no
    result, yfinance is tried if configured. No data from either is a hard
    failure.
    """

    def __init__(self, fetcher: JsonFetcher, config: ResearchConfig):
        self._fetcher = fetcher
        self._config = config

    async def fetch(self, params: ChartParams) -> tuple[QuoteMeta, PriceSeries, str]:
        """
        Fetch and parse the chart for params.symbol.

        Returns:
            Tuple of (QuoteMeta, PriceSeries, source name)

        Raises:
            NoMarketDataError: If no source returns chart data
        """
        last_error: Exception | None = None

        try:
            payload = await self._fetcher.get_json(params.to_url())
            result = first_chart_result(payload)
            if result is not None:
                quote, series = parse_chart(result, params.symbol)
                return quote, series, CHART
            logger.info(f"fetch_chart({params.symbol}): chart endpoint returned no result")
        except FetchError as e:
            last_error = e
            logger.info(f"fetch_chart({params.symbol}): chart endpoint unavailable ({e})")

        if self._config.market_fallback == YFINANCE:
            try:
                result = await self._fetcher.run_sync(
                    f"yfinance_chart({params.symbol})",
                    lambda: yfinance_chart(params),
                )
            except FetchError as e:
                last_error = e
                result = None
            except Exception as e:
                # yfinance raises a wide variety of errors for unknown or delisted symbols
                last_error = e
                logger.warning(f"fetch_chart({params.symbol}): yfinance fallback failed ({e})")
                result = None
            if result is not None:
                quote, series = parse_chart(result, params.symbol)
                return quote, series, YFINANCE

        raise NoMarketDataError(params.symbol, last_error=last_error)
