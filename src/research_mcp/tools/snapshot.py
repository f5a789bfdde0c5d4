"""Research snapshot tool: quantitative header plus optional sections."""

import asyncio
import logging
from collections.abc import Iterable
from datetime import datetime
from time import perf_counter
from typing import Any

import pytz

from research_mcp.context import ResearchContext, open_context
from research_mcp.data.resolver import Resolution
from research_mcp.errors import InvalidSymbolError, NoMarketDataError, UnsupportedSectionError
from research_mcp.models import (
    NOT_AVAILABLE,
    Indicators,
    QuoteMeta,
    ResearchSnapshot,
    SectionReport,
    SubReport,
)
from research_mcp.tools.ratings import options_rating, overall_rating, volatility_band
from research_mcp.tools.sections import build_section_report, section_provenance
from research_mcp.utils.indicators import compute_indicators
from research_mcp.utils.provenance import (
    DATA_UNAVAILABLE,
    INVALID_INPUT,
    NO_DATA,
    build_error_response,
    build_meta,
    build_provenance,
    utc_timestamp,
)
from research_mcp.utils.validators import ChartParams, normalize_symbol, validate_section

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "America/New_York"
DEFAULT_CURRENCY = "USD"
TIME_FORMAT = "%Y-%m-%d %H:%M %Z"


def _money(value: float | None) -> str:
    return f"${value:,.2f}" if value is not None else NOT_AVAILABLE


def _signed(value: float | None, template: str) -> str:
    if value is None:
        return NOT_AVAILABLE
    sign = "+" if value >= 0 else "-"
    return template.format(sign=sign, value=abs(value))


def format_change(change: float | None, change_pct: float | None) -> str:
    """Render a price move as '+$1.00 (+0.84%)', with N/A for missing parts."""
    return (
        f"{_signed(change, '{sign}${value:,.2f}')} "
        f"({_signed(change_pct, '{sign}{value:.2f}%')})"
    )


def local_market_time(timestamp: int | None, timezone: str | None) -> str:
    """
    Render a market timestamp in the exchange's own timezone.

    Unknown timezone names fall back to New York time.
    """
    if timestamp is None:
        return NOT_AVAILABLE
    try:
        tz = pytz.timezone(timezone or DEFAULT_TIMEZONE)
    except pytz.UnknownTimeZoneError:
        logger.debug(f"Unknown exchange timezone {timezone!r}, using {DEFAULT_TIMEZONE}")
        tz = pytz.timezone(DEFAULT_TIMEZONE)
    return datetime.fromtimestamp(timestamp, tz=pytz.utc).astimezone(tz).strftime(TIME_FORMAT)


# ============================================================================
# SUB-REPORTS
# ============================================================================


def _market_position(quote: QuoteMeta, rating: int) -> SubReport:
    strength = "strong" if rating >= 4 else "moderate" if rating >= 3 else "weak"
    return SubReport(
        rating=rating,
        summary=f"{quote.company_name} shows {strength} market positioning.",
        details=(
            f"Current Price: {_money(quote.current_price)}",
            f"Day Range: {_money(quote.day_low)} - {_money(quote.day_high)}",
            f"52-Week Range: {_money(quote.fifty_two_week_low)} - {_money(quote.fifty_two_week_high)}",
        ),
    )


def _financials(quote: QuoteMeta, indicators: Indicators, rating: int) -> SubReport:
    volume = quote.volume
    if volume is None:
        summary = "Trading volume is not available."
    else:
        interest = "high" if volume > 5_000_000 else "moderate" if volume > 1_000_000 else "low"
        summary = f"Trading activity indicates {interest} market interest."
    return SubReport(
        rating=rating,
        summary=summary,
        details=(
            f"Volume: {f'{volume:,.0f}' if volume is not None else NOT_AVAILABLE}",
            f"Previous Close: {_money(quote.previous_close)}",
            f"Change: {format_change(indicators.price_change, indicators.price_change_pct)}",
        ),
    )


def _technical(quote: QuoteMeta, indicators: Indicators, rating: int) -> SubReport:
    price = quote.current_price
    ma20 = indicators.ma20
    if price is None or ma20 is None or price == ma20:
        momentum = "neutral"
    else:
        momentum = "bullish" if price > ma20 else "bearish"

    if price is None or ma20 is None:
        versus = NOT_AVAILABLE
    else:
        versus = f"{'Above' if price > ma20 else 'Below'} 20-day average"

    return SubReport(
        rating=rating,
        summary=f"Technical indicators suggest {momentum} momentum.",
        details=(
            f"10-Day MA: {_money(indicators.ma10)}",
            f"20-Day MA: {_money(ma20)}",
            f"Price vs MA: {versus}",
        ),
    )


def _options(indicators: Indicators) -> SubReport:
    volatility = indicators.volatility_pct
    if volatility is None:
        return SubReport(
            rating=options_rating(None),
            summary="Historical volatility is not available.",
            details=(
                f"Historical Volatility: {NOT_AVAILABLE}",
                f"Volatility Assessment: {NOT_AVAILABLE}",
                f"Options Suitability: {NOT_AVAILABLE}",
            ),
        )

    premiums = "good" if volatility > 30 else "moderate"
    suitability = "Good for premium selling" if volatility > 20 else "Consider directional trades"
    return SubReport(
        rating=options_rating(volatility),
        summary=f"Historical volatility of {volatility:.1f}% suggests {premiums} options premiums.",
        details=(
            f"Historical Volatility: {volatility:.1f}%",
            f"Volatility Assessment: {volatility_band(volatility)}",
            f"Options Suitability: {suitability}",
        ),
    )


def _news(quote: QuoteMeta) -> SubReport:
    return SubReport(
        rating=3,
        summary="Market data retrieved successfully from Yahoo Finance.",
        details=(
            f"Exchange: {quote.exchange or NOT_AVAILABLE}",
            f"Currency: {quote.currency or DEFAULT_CURRENCY}",
            f"Last Updated: {local_market_time(quote.market_time, quote.timezone)}",
        ),
    )


def build_sub_reports(quote: QuoteMeta, indicators: Indicators, overall: int) -> dict[str, SubReport]:
    """The five quantitative sub-reports, keyed by snapshot field name."""
    return {
        "market_position": _market_position(quote, overall),
        "financials": _financials(quote, indicators, overall),
        "technical": _technical(quote, indicators, overall),
        "options": _options(indicators),
        "news": _news(quote),
    }


# ============================================================================
# ASSEMBLY
# ============================================================================


async def build_snapshot(
    symbol: str,
    context: ResearchContext,
    sections: Iterable[str] = (),
) -> tuple[ResearchSnapshot, dict[str, Resolution]]:
    """
    Assemble a snapshot for one symbol.

    The symbol and every requested section are validated before any fetch.
    Market data is fetched once; the requested sections then run
    concurrently, each with its own fallback chain.

    Args:
        symbol: Ticker symbol (any case)
        context: Request-scoped collaborators
        sections: Section names to research alongside the header

    Returns:
        Tuple of (ResearchSnapshot, resolutions keyed by section)

    Raises:
        InvalidSymbolError: If the symbol is malformed
        UnsupportedSectionError: If any section is not supported
        NoMarketDataError: If no chart data exists for the symbol
    """
    symbol = normalize_symbol(symbol)
    requested = list(dict.fromkeys(validate_section(s) for s in sections))

    quote, series, market_source = await context.market.fetch(ChartParams(symbol=symbol))
    indicators = compute_indicators(series, quote)
    overall = overall_rating(quote, indicators).score
    reports = build_sub_reports(quote, indicators, overall)

    results: list[tuple[SectionReport, Resolution]] = await asyncio.gather(
        *(build_section_report(symbol, name, context, indicators) for name in requested)
    )

    snapshot = ResearchSnapshot(
        symbol=symbol,
        company_name=quote.company_name,
        current_price=quote.current_price,
        indicators=indicators,
        overall_rating=overall,
        market_source=market_source,
        sections={report.section: report for report, _ in results},
        **reports,
    )
    resolutions = {report.section: resolution for report, resolution in results}
    return snapshot, resolutions


def _indicators_dict(indicators: Indicators) -> dict[str, float | None]:
    def _round(value: float | None, ndigits: int) -> float | None:
        return round(value, ndigits) if value is not None else None

    return {
        "ma10": _round(indicators.ma10, 2),
        "ma20": _round(indicators.ma20, 2),
        "price_change": _round(indicators.price_change, 2),
        "price_change_pct": _round(indicators.price_change_pct, 2),
        "volatility_pct": _round(indicators.volatility_pct, 1),
    }


async def research_snapshot(
    symbol: str,
    sections: list[str] | None = None,
    context: ResearchContext | None = None,
) -> dict[str, Any]:
    """
    Research snapshot for a stock.

    Args:
        symbol: Stock ticker symbol
        sections: Optional section names to include (default: header only)
        context: Collaborators to use (a fresh request context when omitted)

    Returns:
        Dict with the five sub-reports, overall rating, indicators and any
        requested sections, or an error response
    """
    start_time = perf_counter()
    requested = sections or []

    try:
        normalized_symbol = normalize_symbol(symbol)
        for section in requested:
            validate_section(section)
    except (InvalidSymbolError, UnsupportedSectionError) as e:
        return build_error_response(error_type=INVALID_INPUT, message=str(e), symbol=symbol)

    try:
        async with open_context(context) as ctx:
            snapshot, resolutions = await build_snapshot(normalized_symbol, ctx, requested)
    except NoMarketDataError as e:
        return build_error_response(error_type=NO_DATA, message=str(e), symbol=normalized_symbol)
    except Exception as e:
        logger.exception(f"research_snapshot({normalized_symbol}) failed")
        return build_error_response(
            error_type=DATA_UNAVAILABLE,
            message=f"Failed to research {normalized_symbol}: {e}",
            symbol=normalized_symbol,
        )

    duration_ms = (perf_counter() - start_time) * 1000

    provenance: dict[str, Any] = {
        "market": build_provenance(
            source=snapshot.market_source,
            as_of=utc_timestamp(),
        ),
    }
    for name, report in snapshot.sections.items():
        provenance[name] = section_provenance(report, resolutions[name])

    return {
        "meta": build_meta("research_snapshot", duration_ms),
        "data_provenance": provenance,
        **snapshot.to_dict(),
        "overallRating": snapshot.overall_rating,
        "indicators": _indicators_dict(snapshot.indicators),
    }
