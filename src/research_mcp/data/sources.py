"""Scrape sources for each research section, in fallback order."""

from dataclasses import dataclass

from research_mcp.data.extractors import (
    LIST,
    NUMBER,
    FieldSpec,
    css_attr,
    css_text,
    div_rows,
    labelled_value,
    news_items,
    regex_near,
    regex_text,
    table_rows,
)

STOCKANALYSIS = "https://stockanalysis.com/stocks/{symbol_lower}"
YAHOO = "https://finance.yahoo.com/quote/{symbol}"

FINANCIAL_KEYWORDS = ("revenue", "income", "profit", "margin")
PRICE_PATTERN = r"^\$\d[\d,]*\.\d{2}$"


@dataclass(frozen=True)
class Source:
    """One page that can supply some of a section's fields."""

    name: str
    url_template: str
    fields: tuple[FieldSpec, ...]

    def url(self, symbol: str) -> str:
        return self.url_template.format(symbol=symbol.upper(), symbol_lower=symbol.lower())

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self.fields)


# ============================================================================
# COMPANY ANALYSIS
# ============================================================================

COMPANY_SOURCES: tuple[Source, ...] = (
    Source(
        "stockanalysis",
        STOCKANALYSIS + "/",
        (
            FieldSpec("description", (css_attr('meta[name="description"]', "content"),)),
            FieldSpec("companyName", (css_text("h1"),)),
            FieldSpec("sector", (css_text('[data-test="sector"]'), labelled_value("Sector"))),
            FieldSpec("industry", (css_text('[data-test="industry"]'), labelled_value("Industry"))),
            FieldSpec(
                "marketCap", (css_text('[data-test="market-cap"]'), labelled_value("Market Cap"))
            ),
            FieldSpec(
                "peRatio",
                (css_text('[data-test="pe-ratio"]'), labelled_value("PE Ratio")),
                kind=NUMBER,
            ),
            FieldSpec(
                "employees", (css_text('[data-test="employees"]'), labelled_value("Employees"))
            ),
        ),
    ),
    Source(
        "yahoo",
        YAHOO + "/profile",
        (
            FieldSpec(
                "description",
                (
                    css_text('p[class*="description"]'),
                    css_text('section[data-test="description"]'),
                    css_text('section[data-testid="description"] p'),
                ),
            ),
            FieldSpec("sector", (labelled_value("Sector"),)),
            FieldSpec("industry", (labelled_value("Industry"),)),
            FieldSpec("employees", (labelled_value("Full Time Employees"),)),
        ),
    ),
    Source(
        "stockanalysis-financials",
        STOCKANALYSIS + "/financials/",
        (
            FieldSpec("revenue", (labelled_value("Revenue", tags="td", contains=True),)),
            FieldSpec("netIncome", (labelled_value("Net Income", tags="td", contains=True),)),
        ),
    ),
)

# ============================================================================
# FINANCIAL HEALTH
# ============================================================================

FINANCIAL_SOURCES: tuple[Source, ...] = (
    Source(
        "stockanalysis",
        STOCKANALYSIS + "/financials/",
        (FieldSpec("lineItems", (table_rows(FINANCIAL_KEYWORDS),), kind=LIST),),
    ),
    Source(
        "yahoo",
        YAHOO + "/financials",
        (
            FieldSpec(
                "lineItems",
                (
                    div_rows("div.row", ".rowTitle", ".column:not(.sticky)", FINANCIAL_KEYWORDS),
                    table_rows(FINANCIAL_KEYWORDS),
                ),
                kind=LIST,
            ),
        ),
    ),
)

# ============================================================================
# TECHNICAL ANALYSIS
# ============================================================================

TECHNICAL_SOURCES: tuple[Source, ...] = (
    Source(
        "stockanalysis",
        STOCKANALYSIS + "/",
        (
            FieldSpec(
                "currentPrice",
                (
                    css_text('[data-test="stock-price"]'),
                    css_text(".text-3xl, .text-4xl"),
                    regex_text(PRICE_PATTERN),
                ),
                kind=NUMBER,
            ),
        ),
    ),
    Source(
        "stockanalysis-forecast",
        STOCKANALYSIS + "/forecast/",
        (
            FieldSpec(
                "targetPrice",
                (
                    css_text('[data-test="target-price"]'),
                    labelled_value("Price Target", tags="td"),
                    regex_near(("Price Target", "Analyst Target"), r"\$[\d,.]+"),
                ),
                kind=NUMBER,
            ),
        ),
    ),
    Source(
        "yahoo",
        YAHOO + "/",
        (
            FieldSpec(
                "currentPrice",
                (
                    css_text('[data-testid="qsp-price"]'),
                    css_attr('fin-streamer[data-field="regularMarketPrice"]', "data-value"),
                    css_text('fin-streamer[data-field="regularMarketPrice"]'),
                ),
                kind=NUMBER,
            ),
            FieldSpec("targetPrice", (labelled_value("1y Target Est"),), kind=NUMBER),
        ),
    ),
)

# ============================================================================
# OPTIONS DATA
# ============================================================================

OPTIONS_SOURCES: tuple[Source, ...] = (
    Source(
        "stockanalysis",
        STOCKANALYSIS + "/options/",
        (FieldSpec("optionMetrics", (table_rows(limit=5),), kind=LIST),),
    ),
    Source(
        "yahoo",
        YAHOO + "/options",
        (FieldSpec("optionMetrics", (table_rows(limit=5),), kind=LIST),),
    ),
)

# ============================================================================
# RECENT DEVELOPMENTS
# ============================================================================

NEWS_SOURCES: tuple[Source, ...] = (
    Source(
        "stockanalysis",
        STOCKANALYSIS + "/news/",
        (
            FieldSpec(
                "headlines",
                (news_items(".news-item, article", "h2, h3, .title", "time, .date"),),
                kind=LIST,
            ),
        ),
    ),
    Source(
        "yahoo",
        YAHOO + "/news",
        (
            FieldSpec(
                "headlines",
                (
                    news_items('section[data-testid="storyitem"]', "h3", "time, .publishing"),
                    news_items("li.stream-item", "h3", "time, .publishing"),
                ),
                kind=LIST,
            ),
        ),
    ),
)

SECTION_SOURCES: dict[str, tuple[Source, ...]] = {
    "companyAnalysis": COMPANY_SOURCES,
    "financialHealth": FINANCIAL_SOURCES,
    "technicalAnalysis": TECHNICAL_SOURCES,
    "optionsData": OPTIONS_SOURCES,
    "recentDevelopments": NEWS_SOURCES,
}
