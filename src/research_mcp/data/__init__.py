"""Data layer for fetching market data and scraping research pages."""

from research_mcp.data.extractors import FieldSpec, extract_fields, first_non_empty
from research_mcp.data.http_client import HttpFetcher
from research_mcp.data.market_data import (
    CHART,
    YFINANCE,
    MarketDataClient,
    first_chart_result,
    parse_chart,
    yfinance_chart,
)
from research_mcp.data.resolver import Resolution, SourceAttempt, SourceFallbackResolver
from research_mcp.data.sources import SECTION_SOURCES, Source

__all__ = [
    # Extraction
    "FieldSpec",
    "extract_fields",
    "first_non_empty",
    # Transport
    "HttpFetcher",
    # Market data
    "CHART",
    "YFINANCE",
    "MarketDataClient",
    "first_chart_result",
    "parse_chart",
    "yfinance_chart",
    # Sources
    "Resolution",
    "SourceAttempt",
    "SourceFallbackResolver",
    "SECTION_SOURCES",
    "Source",
]
