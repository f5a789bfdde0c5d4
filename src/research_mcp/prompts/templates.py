"""Prompt and fallback templates for section insights."""

import json
from typing import Any

from research_mcp.models import SectionFields

# Rendered wherever a field could not be obtained
PLACEHOLDER = "Not available"

DEFAULT_MAX_TOKENS = 300
# Sections whose analysis needs more room
MAX_TOKENS = {
    "companyAnalysis": 2500,
    "technicalAnalysis": 1000,
    "recentDevelopments": 1000,
}


# Sections whose reply is a JSON breakdown rather than plain text
STRUCTURED_SECTIONS = ("companyAnalysis", "recentDevelopments")


def max_tokens_for(section: str) -> int:
    return MAX_TOKENS.get(section, DEFAULT_MAX_TOKENS)


def fmt(value: Any, placeholder: str = PLACEHOLDER) -> str:
    """Render a field for text; missing or empty values become the placeholder."""
    if value is None:
        return placeholder
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, float):
        return f"{value:,.2f}"
    if isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, (list, tuple, dict)) and not value:
        return placeholder
    text = str(value).strip()
    return text or placeholder


def fmt_price(value: Any, placeholder: str = PLACEHOLDER) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"${value:,.2f}"
    return fmt(value, placeholder)


def _metrics_json(items: list[dict[str, str]] | None) -> str:
    return json.dumps(items or [], indent=2)


# ============================================================================
# PROMPTS
# ============================================================================


def build_prompt(symbol: str, section: str, fields: SectionFields) -> str:
    """
    Build the generation prompt for one section.

    Every field the section knows about appears in the prompt, with missing
    values rendered as "Not available" so the model can tell absence from
    omission.
    """
    if section == "companyAnalysis":
        return f"""You are a senior equity research analyst. Provide a comprehensive analysis of {symbol} ({fmt(fields.get("companyName"), symbol)}).

Available Data:
- Company Description: {fmt(fields.get("description"))}
- Sector: {fmt(fields.get("sector"))}
- Industry: {fmt(fields.get("industry"))}
- Market Cap: {fmt(fields.get("marketCap"))}
- Employees: {fmt(fields.get("employees"))}
- Revenue: {fmt(fields.get("revenue"))}
- Net Income: {fmt(fields.get("netIncome"))}
- PE Ratio: {fmt(fields.get("peRatio"))}

Provide a detailed analysis in the following JSON format. For each category, provide substantive analysis (3-5 sentences) and a rating from 0-10:

{{
  "marketPosition": {{"analysis": "Position in the market, competitive advantages, industry dynamics and market share", "rating": 0}},
  "businessModel": {{"analysis": "How the company generates revenue, key revenue streams and business model sustainability", "rating": 0}},
  "industryTrends": {{"analysis": "Industry trends, regulation, technological disruption and macroeconomic influences", "rating": 0}},
  "customerBase": {{"analysis": "Customer composition, concentration risk, retention and geographic diversification", "rating": 0}},
  "growthStrategy": {{"analysis": "Growth plans, product pipeline, expansion strategy and M&A activity", "rating": 0}},
  "economicMoat": {{"analysis": "Brand loyalty, barriers to entry, switching costs, network effects, scale and IP", "rating": 0}},
  "summary": "2-3 sentence executive summary of the investment thesis"
}}

Be specific, factual, and thorough. Return ONLY valid JSON."""

    if section == "financialHealth":
        return f"""Analyze this financial data for {symbol} for options trading purposes:

{_metrics_json(fields.get("lineItems"))}

Provide a 2-3 sentence analysis focused on:
1. Financial strength and stability for supporting options strategies
2. Revenue/profit trends that suggest bullish or bearish positioning
3. Specific recommendation on whether the financial health supports selling puts or covered calls

Be concise and actionable for options traders."""

    if section == "technicalAnalysis":
        return f"""You are a technical analyst. Provide a technical analysis for {symbol}.

Current Price: {fmt_price(fields.get("currentPrice"))}
Target Price: {fmt_price(fields.get("targetPrice"))}
Historical Volatility: {fmt(fields.get("volatilityBand"))}

Cover the current technical setup and momentum, likely support and resistance levels, the 30-60 day outlook, what the analyst target implies, and whether the setup favors selling puts or covered calls. Keep it to one short paragraph."""

    if section == "optionsData":
        return f"""Analyze this options market data for {symbol}:

{_metrics_json(fields.get("optionMetrics"))}

Provide a 2-3 sentence analysis focused on:
1. Implied volatility environment
2. Liquidity and open interest insights
3. Specific recommendation on optimal options strategy given current market conditions

Be actionable for options income traders."""

    # recentDevelopments
    headlines = fields.get("headlines") or []
    rendered = "\n".join(f"- {h['title']} ({h.get('time', 'Recent')})" for h in headlines) or f"- {PLACEHOLDER}"
    return f"""You are a financial analyst tracking {symbol}. Provide analysis of recent developments and upcoming events.

Recent Headlines:
{rendered}

Sentiment Keyword Counts: positive={fmt(fields.get("positiveCount"), "0")}, negative={fmt(fields.get("negativeCount"), "0")}

Provide your analysis in the following JSON format:

{{
  "summary": "2-3 sentence overview of current news sentiment and key developments",
  "nextEarningsCall": {{"date": "Expected date of the next earnings call", "expectation": "What to expect from the report"}},
  "majorEvents": [{{"event": "Upcoming event or recent major news", "expectedImpact": "How it could move the stock", "date": "When"}}],
  "catalysts": "Key upcoming catalysts options traders should watch",
  "optionsImplication": "Whether the news environment favors selling premium or staying on the sidelines"
}}

Return ONLY valid JSON."""


# ============================================================================
# FALLBACK TEMPLATES
# ============================================================================


def fallback_insight(symbol: str, section: str, fields: SectionFields) -> str:
    """
    Deterministic insight from extracted fields alone.

    Only string interpolation over optional fields, each with a fixed
    placeholder; never raises for missing data.
    """
    if section == "companyAnalysis":
        sector = fields.get("sector")
        industry = fields.get("industry")
        description = fields.get("description") or (
            "This analysis examines the company's business model, competitive "
            "positioning, and strategic direction."
        )
        where = f" in the {sector} sector" if sector else ""
        within = f" ({industry})" if industry else ""
        return f"{symbol} is a publicly traded company{where}{within}. {description}"

    if section == "financialHealth":
        items = fields.get("lineItems") or []
        found = (
            f"{len(items)} financial line items were found, including {items[0]['label']} "
            f"of {items[0]['value']}."
            if items
            else "Detailed financial statements were not available from any source."
        )
        return (
            f"Financial analysis for {symbol} evaluates the company's profitability, liquidity, "
            f"and solvency. {found} Strong financials typically show consistent revenue growth, "
            "healthy profit margins, and manageable debt levels."
        )

    if section == "technicalAnalysis":
        price = fields.get("currentPrice")
        trading = f" Currently trading at {fmt_price(price)}." if price is not None else ""
        target = fields.get("targetPrice")
        target_text = (
            f" The analyst price target is {fmt_price(target)}." if target is not None else ""
        )
        return (
            f"Technical analysis of {symbol} examines price trends, trading volume, and market "
            f"momentum.{trading}{target_text} Key indicators include support and resistance "
            "levels and moving averages."
        )

    if section == "optionsData":
        metrics = fields.get("optionMetrics") or []
        count = f" {len(metrics)} options metrics were retrieved." if metrics else ""
        return (
            f"Options market analysis for {symbol} provides insights into market expectations "
            f"for volatility and directional bias.{count} Implied volatility levels and open "
            "interest patterns can reveal institutional sentiment."
        )

    # recentDevelopments
    headlines = fields.get("headlines") or []
    tone = fields.get("sentimentTone")
    news = (
        f" {len(headlines)} recent headlines were reviewed with {tone} keyword sentiment."
        if headlines and tone
        else f" {len(headlines)} recent headlines were reviewed with mixed keyword sentiment."
        if headlines
        else ""
    )
    return (
        f"Recent news and events significantly impact {symbol}'s options pricing and trading "
        f"opportunities.{news} Staying informed about company catalysts is crucial for timing "
        "options trades effectively."
    )


def fallback_detail(symbol: str, section: str, fields: SectionFields) -> dict[str, Any] | None:
    """
    Template breakdown for sections that carry one, in the same shape as a
    generated reply. Every category rates a neutral 5.
    """
    if section == "companyAnalysis":
        sector = fields.get("sector") or "broader"
        industry = fields.get("industry") or "industry"
        texts = {
            "marketPosition": (
                f"{symbol} operates in the {sector} sector within the {industry}. Further research "
                "is needed to assess the company's competitive position, market share, and industry "
                "dynamics. Consider analyzing peer comparisons and market trends."
            ),
            "businessModel": (
                f"{symbol}'s business model and revenue generation strategy requires deeper analysis. "
                "Key factors to evaluate include revenue diversification, recurring revenue streams, "
                "and business sustainability. Review annual reports for detailed segment breakdowns."
            ),
            "industryTrends": (
                f"The {industry} sector is subject to various external factors including regulatory "
                "changes, technological disruption, and macroeconomic conditions. Monitor industry "
                "reports and analyst coverage for trend analysis."
            ),
            "customerBase": (
                f"Customer concentration and diversification analysis for {symbol} requires review of "
                "revenue breakdown by customer segment. Key risks include dependency on major "
                "customers and geographic concentration. Check 10-K filings for customer details."
            ),
            "growthStrategy": (
                f"{symbol}'s growth strategy and expansion plans should be evaluated through "
                "management guidance, investor presentations, and strategic initiatives. Consider "
                "product pipeline, market expansion, and M&A activity."
            ),
            "economicMoat": (
                f"Economic moat analysis for {symbol} should consider brand strength, barriers to "
                "entry, switching costs, network effects, and scale advantages. Competitive "
                "advantages vary by business segment and require detailed evaluation."
            ),
        }
        return {key: {"analysis": text, "rating": 5} for key, text in texts.items()}

    if section == "recentDevelopments":
        return {
            "nextEarningsCall": {
                "date": "Date not available",
                "expectation": "Check the upcoming earnings calendar",
            },
            "majorEvents": [],
            "catalysts": "No major catalysts identified",
            "optionsImplication": "Monitor company news before committing to a premium-selling position",
        }

    return None
