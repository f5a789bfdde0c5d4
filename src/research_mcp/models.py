"""Data model for research snapshots."""

from dataclasses import dataclass, field
from typing import Any

import pandas as pd

# Signal tags
POSITIVE = "positive"
WARNING = "warning"
INFO = "info"
SIGNAL_TYPES = {POSITIVE, WARNING, INFO}

# Rendered in place of any value that could not be obtained or computed
NOT_AVAILABLE = "N/A"

# Extracted values for one section, keyed by field name. Every field the
# section knows about is present; missing values are None (or [] for lists).
SectionFields = dict[str, Any]

# Response key for the structured breakdown a section carries
BREAKDOWN_KEYS = {
    "companyAnalysis": "detailedAnalysis",
    "recentDevelopments": "detailedDevelopments",
}


@dataclass(frozen=True)
class PriceSeries:
    """Ordered (timestamp, close) pairs, most recent last. May contain gaps."""

    timestamps: tuple[int | None, ...]
    closes: tuple[float | None, ...]

    def valid_closes(self) -> pd.Series:
        """Closes with gaps removed, as a float series in original order."""
        series = pd.Series(self.closes, dtype="float64")
        return series.dropna().reset_index(drop=True)

    def __len__(self) -> int:
        return len(self.closes)


@dataclass(frozen=True)
class QuoteMeta:
    """Point-in-time quote fields for one symbol."""

    symbol: str
    company_name: str
    current_price: float | None = None
    previous_close: float | None = None
    day_high: float | None = None
    day_low: float | None = None
    fifty_two_week_high: float | None = None
    fifty_two_week_low: float | None = None
    volume: float | None = None
    exchange: str | None = None
    currency: str | None = None
    market_time: int | None = None
    timezone: str | None = None


@dataclass(frozen=True)
class Indicators:
    """Derived indicators. None means unavailable, never zero."""

    ma10: float | None = None
    ma20: float | None = None
    price_change: float | None = None
    price_change_pct: float | None = None
    volatility_pct: float | None = None


@dataclass(frozen=True)
class Signal:
    type: str
    message: str

    def __post_init__(self) -> None:
        if self.type not in SIGNAL_TYPES:
            raise ValueError(f"Invalid signal type '{self.type}'. Must be one of: {SIGNAL_TYPES}")

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type, "message": self.message}


@dataclass(frozen=True)
class Metric:
    label: str
    value: str

    def to_dict(self) -> dict[str, str]:
        return {"label": self.label, "value": self.value}


@dataclass
class SectionReport:
    """Result of one section pipeline (fetch, extract, rate, insight)."""

    section: str
    rating: int
    analysis: str
    metrics: list[Metric] = field(default_factory=list)
    signals: list[Signal] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)
    insight_source: str = "template"
    breakdown: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "rating": self.rating,
            "analysis": self.analysis,
            "metrics": [m.to_dict() for m in self.metrics],
            "signals": [s.to_dict() for s in self.signals],
        }
        if self.breakdown is not None:
            result[BREAKDOWN_KEYS[self.section]] = self.breakdown
        return result


@dataclass(frozen=True)
class SubReport:
    """One analytical dimension of the quantitative snapshot."""

    rating: int
    summary: str
    details: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"rating": self.rating, "summary": self.summary, "details": list(self.details)}


@dataclass
class ResearchSnapshot:
    """Assembled research output for one symbol. Request-scoped."""

    symbol: str
    company_name: str
    current_price: float | None
    market_position: SubReport
    financials: SubReport
    technical: SubReport
    options: SubReport
    news: SubReport
    indicators: Indicators = field(default_factory=Indicators)
    overall_rating: int = 3
    market_source: str = "chart"
    sections: dict[str, SectionReport] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "symbol": self.symbol,
            "companyName": self.company_name,
            "currentPrice": self.current_price,
            "marketPosition": self.market_position.to_dict(),
            "financials": self.financials.to_dict(),
            "technical": self.technical.to_dict(),
            "options": self.options.to_dict(),
            "news": self.news.to_dict(),
        }
        if self.sections:
            result["sections"] = {name: report.to_dict() for name, report in self.sections.items()}
        return result
