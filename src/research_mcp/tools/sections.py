"""Single-section research tool."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any

from research_mcp.context import ResearchContext, open_context
from research_mcp.data.resolver import Resolution
from research_mcp.data.sources import SECTION_SOURCES
from research_mcp.errors import InvalidSymbolError, UnsupportedSectionError
from research_mcp.insights import AI
from research_mcp.models import (
    INFO,
    POSITIVE,
    WARNING,
    Indicators,
    Metric,
    SectionFields,
    SectionReport,
    Signal,
)
from research_mcp.prompts.templates import fmt_price
from research_mcp.tools.breakdowns import (
    company_breakdown,
    company_signals,
    developments_breakdown,
    developments_findings,
)
from research_mcp.tools.ratings import (
    news_sentiment,
    rate_company,
    rate_financial,
    rate_news,
    rate_options,
    rate_technical,
    volatility_band,
)
from research_mcp.utils.provenance import (
    DATA_UNAVAILABLE,
    INVALID_INPUT,
    build_error_response,
    build_meta,
    build_section_provenance,
)
from research_mcp.utils.scoring import ScoreResult
from research_mcp.utils.validators import normalize_symbol, validate_section

logger = logging.getLogger(__name__)

# Shown when a section found nothing to report
PLACEHOLDER_METRICS: dict[str, tuple[Metric, ...]] = {
    "financialHealth": (
        Metric("Revenue Growth", "Analyze YoY trends"),
        Metric("Profit Margins", "Compare to industry average"),
        Metric("Debt Levels", "Evaluate leverage ratio"),
    ),
    "technicalAnalysis": (
        Metric("Price Trend", "Monitor chart patterns"),
        Metric("Moving Averages", "Compare 50 & 200 day"),
        Metric("Volume Analysis", "Check accumulation/distribution"),
    ),
    "optionsData": (
        Metric("Implied Volatility", "Check IV percentile for timing"),
        Metric("Put/Call Ratio", "Gauge market sentiment"),
        Metric("Open Interest", "Identify liquid strikes"),
    ),
    "recentDevelopments": (
        Metric("Earnings Date", "Check upcoming earnings calendar"),
        Metric("Company Events", "Monitor for catalysts"),
        Metric("Market Trends", "Follow sector developments"),
    ),
}

# Shown when a section produced no signal of its own
DEFAULT_SIGNALS = {
    "companyAnalysis": "Company analysis completed",
    "recentDevelopments": "Stay updated on company news to identify options trading opportunities",
}


@dataclass
class Assessment:
    """Rating, metrics and signals for a section, plus the fields its insight sees."""

    score: ScoreResult
    metrics: list[Metric]
    signals: list[Signal]
    prompt_fields: SectionFields = field(default_factory=dict)


def _metrics_or_placeholder(section: str, metrics: list[Metric]) -> list[Metric]:
    return metrics if metrics else list(PLACEHOLDER_METRICS.get(section, ()))


def _rows_to_metrics(rows: list[dict[str, str]]) -> list[Metric]:
    return [Metric(row["label"], row["value"]) for row in rows]


def _assess_company(symbol: str, fields: SectionFields, indicators: Indicators | None) -> Assessment:
    score = rate_company(fields)
    pe_ratio = fields.get("peRatio")
    candidates = [
        ("Company", fields.get("companyName") or symbol),
        ("Sector", fields.get("sector")),
        ("Industry", fields.get("industry")),
        ("Market Cap", fields.get("marketCap")),
        ("P/E Ratio", f"{pe_ratio:.2f}" if pe_ratio is not None else None),
        ("Employees", fields.get("employees")),
        ("Revenue", fields.get("revenue")),
        ("Net Income", fields.get("netIncome")),
    ]
    metrics = [Metric(label, value) for label, value in candidates if value]

    signals = []
    if score.score >= 7:
        signals.append(Signal(POSITIVE, "Strong overall company fundamentals"))
    elif score.score <= 4:
        signals.append(Signal(WARNING, "Weak company fundamentals - exercise caution"))

    return Assessment(score, metrics, signals, dict(fields))


def _assess_financial(symbol: str, fields: SectionFields, indicators: Indicators | None) -> Assessment:
    metrics = _rows_to_metrics(fields.get("lineItems") or [])
    return Assessment(
        score=rate_financial(fields),
        metrics=metrics,
        signals=[Signal(INFO, "Review key financial ratios and trends for comprehensive analysis")],
        prompt_fields=dict(fields),
    )


def _assess_technical(symbol: str, fields: SectionFields, indicators: Indicators | None) -> Assessment:
    price = fields.get("currentPrice")
    target = fields.get("targetPrice")
    metrics: list[Metric] = []
    signals: list[Signal] = []

    if price is not None:
        metrics.append(Metric("Current Price", fmt_price(price)))
    if target is not None:
        metrics.append(Metric("Target Price", fmt_price(target)))
    if price and target is not None:
        upside = (target - price) / price * 100
        metrics.append(Metric("Implied Upside", f"{upside:+.1f}%"))
        if upside > 0:
            signals.append(Signal(POSITIVE, f"Analyst target implies {upside:.1f}% upside"))
        elif upside < 0:
            signals.append(Signal(WARNING, f"Price is {-upside:.1f}% above the analyst target"))

    signals.append(Signal(INFO, "Use technical indicators to identify optimal entry and exit points"))

    prompt_fields = dict(fields)
    volatility = indicators.volatility_pct if indicators else None
    prompt_fields["volatilityBand"] = (
        f"{volatility:.1f}% ({volatility_band(volatility)})" if volatility is not None else None
    )
    return Assessment(
        score=rate_technical(fields),
        metrics=metrics,
        signals=signals,
        prompt_fields=prompt_fields,
    )


def _assess_options(symbol: str, fields: SectionFields, indicators: Indicators | None) -> Assessment:
    metrics = _rows_to_metrics(fields.get("optionMetrics") or [])
    return Assessment(
        score=rate_options(fields),
        metrics=metrics,
        signals=[
            Signal(INFO, "Higher IV offers better premiums for sellers but indicates uncertainty")
        ],
        prompt_fields=dict(fields),
    )


def _assess_news(symbol: str, fields: SectionFields, indicators: Indicators | None) -> Assessment:
    headlines = fields.get("headlines") or []
    sentiment = news_sentiment([item["title"] for item in headlines])

    metrics: list[Metric] = []
    if headlines:
        metrics.append(Metric("Recent News Items", str(len(headlines))))
        metrics.append(
            Metric("Keyword Sentiment", f"{sentiment.positive} positive / {sentiment.negative} negative")
        )

    sentiment_signal = sentiment.to_signal()
    signals = [sentiment_signal] if sentiment_signal else []

    prompt_fields = dict(fields)
    prompt_fields.update(
        positiveCount=sentiment.positive,
        negativeCount=sentiment.negative,
        sentimentTone=sentiment.tone,
    )
    return Assessment(
        score=rate_news(fields, sentiment),
        metrics=metrics,
        signals=signals,
        prompt_fields=prompt_fields,
    )


_ASSESSORS: dict[str, Callable[[str, SectionFields, Indicators | None], Assessment]] = {
    "companyAnalysis": _assess_company,
    "financialHealth": _assess_financial,
    "technicalAnalysis": _assess_technical,
    "optionsData": _assess_options,
    "recentDevelopments": _assess_news,
}


async def build_section_report(
    symbol: str,
    section: str,
    context: ResearchContext,
    indicators: Indicators | None = None,
) -> tuple[SectionReport, Resolution]:
    """
    Run one section pipeline: resolve sources, extract, rate, then write the insight.

    Args:
        symbol: Ticker symbol (any case)
        section: One of SECTIONS
        context: Request-scoped collaborators
        indicators: Price-history indicators, when the caller already has them

    Returns:
        Tuple of (SectionReport, Resolution)

    Raises:
        InvalidSymbolError: If the symbol is malformed
        UnsupportedSectionError: If the section is not supported
    """
    symbol = normalize_symbol(symbol)
    section = validate_section(section)

    resolution = await context.resolver.resolve(symbol, SECTION_SOURCES[section])
    assessment = _ASSESSORS[section](symbol, resolution.fields, indicators)
    insight = await context.insights.generate(symbol, section, assessment.prompt_fields)

    metrics = list(assessment.metrics)
    signals = list(assessment.signals)
    breakdown = None
    if insight.detail is not None:
        if section == "companyAnalysis":
            breakdown = company_breakdown(insight.detail)
            signals.extend(company_signals(breakdown))
        elif section == "recentDevelopments":
            breakdown = developments_breakdown(insight.detail)
            if insight.source == AI:
                found_metrics, found_signals = developments_findings(breakdown)
                metrics.extend(found_metrics)
                signals.extend(found_signals)

    if not signals and section in DEFAULT_SIGNALS:
        signals.append(Signal(INFO, DEFAULT_SIGNALS[section]))

    report = SectionReport(
        section=section,
        rating=assessment.score.score,
        analysis=insight.text,
        metrics=_metrics_or_placeholder(section, metrics),
        signals=signals,
        sources=resolution.sources_used,
        insight_source=insight.source,
        breakdown=breakdown,
    )
    return report, resolution


def section_provenance(report: SectionReport, resolution: Resolution) -> dict[str, Any]:
    return build_section_provenance(
        sources_used=report.sources,
        attempts=[a.to_dict() for a in resolution.attempts],
        missing=resolution.missing,
        insight_source=report.insight_source,
    )


async def research_section(
    symbol: str,
    section: str,
    context: ResearchContext | None = None,
) -> dict[str, Any]:
    """
    Research one analytical section of a stock.

    Args:
        symbol: Stock ticker symbol
        section: companyAnalysis, financialHealth, technicalAnalysis, optionsData or recentDevelopments
        context: Collaborators to use (a fresh request context when omitted)

    Returns:
        Dict with rating, analysis, metrics and signals, or an error response
    """
    start_time = perf_counter()

    try:
        normalized_symbol = normalize_symbol(symbol)
        validate_section(section)
    except (InvalidSymbolError, UnsupportedSectionError) as e:
        return build_error_response(error_type=INVALID_INPUT, message=str(e), symbol=symbol)

    try:
        async with open_context(context) as ctx:
            report, resolution = await build_section_report(normalized_symbol, section, ctx)
    except Exception as e:
        logger.exception(f"research_section({normalized_symbol}, {section}) failed")
        return build_error_response(
            error_type=DATA_UNAVAILABLE,
            message=f"Failed to research {section}: {e}",
            symbol=normalized_symbol,
        )

    duration_ms = (perf_counter() - start_time) * 1000

    return {
        "meta": build_meta("research_section", duration_ms),
        "data_provenance": {section: section_provenance(report, resolution)},
        "symbol": normalized_symbol,
        "section": section,
        **report.to_dict(),
    }

