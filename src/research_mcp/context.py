"""Request-scoped collaborators for the research engine."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

from research_mcp.config import ResearchConfig
from research_mcp.data.http_client import HttpFetcher
from research_mcp.data.market_data import MarketDataClient
from research_mcp.data.resolver import SourceFallbackResolver
from research_mcp.insights import InsightGenerator


@dataclass
class ResearchContext:
    """
    Everything one research request talks to.

    Created per request and closed afterwards; nothing here is shared
    between requests. Tests substitute the fetcher or the insight
    generator directly.
    """

    config: ResearchConfig
    fetcher: Any
    insights: InsightGenerator
    market: MarketDataClient = field(init=False)
    resolver: SourceFallbackResolver = field(init=False)

    def __post_init__(self) -> None:
        self.market = MarketDataClient(self.fetcher, self.config)
        self.resolver = SourceFallbackResolver(self.fetcher)

    @classmethod
    def from_config(cls, config: ResearchConfig | None = None) -> "ResearchContext":
        config = config or ResearchConfig.from_env()
        return cls(
            config=config,
            fetcher=HttpFetcher(config),
            insights=InsightGenerator.from_config(config),
        )

    async def aclose(self) -> None:
        close = getattr(self.fetcher, "close", None)
        if close is not None:
            close()
        await self.insights.close()

    async def __aenter__(self) -> "ResearchContext":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


@asynccontextmanager
async def open_context(context: ResearchContext | None = None) -> AsyncIterator[ResearchContext]:
    """Yield the caller's context, or a fresh one closed on exit."""
    if context is not None:
        yield context
        return
    async with ResearchContext.from_config() as fresh:
        yield fresh
