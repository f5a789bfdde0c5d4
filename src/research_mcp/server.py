"""Equity Research MCP Server using FastMCP."""

import json
import logging
import os

from fastmcp import FastMCP

from research_mcp import SCHEMA_VERSION, SERVER_VERSION
from research_mcp.tools import research_section, research_snapshot

# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(level=getattr(logging, log_level, logging.INFO))
logger = logging.getLogger(__name__)

# Create FastMCP server instance
mcp = FastMCP(
    name="equity-research",
)


# ============================================================================
# TOOLS
# ============================================================================


@mcp.tool
async def get_research_snapshot(symbol: str, sections: list[str] | None = None) -> str:
    """
    Get a rated research snapshot for a stock from its recent price history.

    Covers market position, financials (trading activity), technical trend,
    options (volatility) and market data status, each with a rating, a
    summary and details. Ratings are 1-5.

    Args:
        symbol: Stock ticker symbol (e.g., AAPL, MSFT)
        sections: Optional research sections to include, any of companyAnalysis,
            financialHealth, technicalAnalysis, optionsData, recentDevelopments

    Returns:
        JSON with the snapshot, overall rating, indicators and any requested sections
    """
    result = await research_snapshot(symbol=symbol, sections=sections)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def get_research_section(symbol: str, section: str) -> str:
    """
    Research one section of a stock from public research pages.

    Each section falls back from stockanalysis.com to Yahoo Finance per field,
    and its written analysis falls back to a template when no generation
    service is configured.

    Args:
        symbol: Stock ticker symbol (e.g., AAPL, MSFT)
        section: companyAnalysis, financialHealth, technicalAnalysis,
            optionsData or recentDevelopments

    Returns:
        JSON with rating (0-10), analysis, metrics and signals
    """
    result = await research_section(symbol=symbol, section=section)
    return json.dumps(result, indent=2, default=str)


# ============================================================================
# ENTRY POINT
# ============================================================================


def main() -> None:
    """Run the MCP server."""
    logger.info(f"Starting Equity Research MCP Server v{SERVER_VERSION} (schema v{SCHEMA_VERSION})")
    mcp.run()


if __name__ == "__main__":
    main()
