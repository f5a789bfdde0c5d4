"""Overall and per-section ratings."""

from dataclasses import dataclass

from research_mcp.models import POSITIVE, WARNING, Indicators, QuoteMeta, SectionFields, Signal
from research_mcp.utils.scoring import (
    Factor,
    ScoreResult,
    above,
    additive_score,
    average_score,
    below,
    between,
    proportional,
)
from research_mcp.utils.sanitize import parse_number
from research_mcp.utils.validators import check_rule_expr

OVERALL_BOUNDS = (1, 5)
SECTION_BOUNDS = (0, 10)
NEUTRAL_RATING = 3

POSITIVE_KEYWORDS = ("growth", "profit", "beat", "upgrade", "bullish", "gain")
NEGATIVE_KEYWORDS = ("loss", "decline", "downgrade", "bearish", "concern", "warning")

# Section base scores before any bonus
COMPANY_BASE = 5
SECTION_BASE = 6


def range_position(
    price: float | None,
    low: float | None,
    high: float | None,
) -> float | None:
    """
    Where price sits in [low, high], 0 at the low and 1 at the high.

    None when any input is missing or the range is empty (high <= low).
    """
    if price is None or low is None or high is None or high <= low:
        return None
    return (price - low) / (high - low)


def _moving_average_score(price: float | None, indicators: Indicators) -> float | None:
    """0.5 for each available MA the price is above; None when neither MA exists."""
    if indicators.ma10 is None and indicators.ma20 is None:
        return None
    return sum(
        0.5
        for ma in (indicators.ma10, indicators.ma20)
        if check_rule_expr(price, ma)
    )


def overall_rating(quote: QuoteMeta, indicators: Indicators) -> ScoreResult:
    """
    Overall 1-5 rating from range position, trend, daily move, volume and volatility.

    Daily change and volume always count toward the average; the other
    factors count only when their inputs exist. No applicable factor at all
    yields the neutral rating 3.
    """
    price = quote.current_price
    factors = [
        Factor(
            "range_position",
            range_position(price, quote.fifty_two_week_low, quote.fifty_two_week_high),
            (above(0.7, 1.0), above(0.4, 0.5)),
        ),
        Factor("moving_averages", _moving_average_score(price, indicators), (proportional(),)),
        Factor(
            "daily_change",
            indicators.price_change_pct,
            (above(1, 1.0), above(0, 0.5), below(-1, -0.5)),
            always_applicable=True,
        ),
        Factor(
            "volume",
            quote.volume,
            (above(10_000_000, 1.0), above(1_000_000, 0.5)),
            always_applicable=True,
        ),
        Factor(
            "volatility",
            # Zero volatility means no usable moves, not a calm stock
            indicators.volatility_pct or None,
            (between(20, 50, 1.0), between(15, 60, 0.5)),
        ),
    ]
    lower, upper = OVERALL_BOUNDS
    return average_score(factors, scale=5, lower=lower, upper=upper, default=NEUTRAL_RATING)


def options_rating(volatility_pct: float | None) -> int:
    """Snapshot options rating: 4 in the 20-50% volatility band, else neutral."""
    if volatility_pct is not None and 20 < volatility_pct < 50:
        return 4
    return NEUTRAL_RATING


def volatility_band(volatility_pct: float) -> str:
    if volatility_pct > 40:
        return "High"
    if volatility_pct > 25:
        return "Moderate"
    return "Low"


def _section_score(factors: list[Factor], base: float) -> ScoreResult:
    lower, upper = SECTION_BOUNDS
    return additive_score(factors, base=base, lower=lower, upper=upper)


def rate_company(fields: SectionFields) -> ScoreResult:
    profile_found = 1.0 if fields.get("sector") and fields.get("industry") else 0.0
    return _section_score(
        [
            Factor("profile", profile_found, (above(0, 1.0),)),
            Factor("profitable", parse_number(fields.get("peRatio")), (above(0, 1.0),)),
        ],
        base=COMPANY_BASE,
    )


def rate_financial(fields: SectionFields) -> ScoreResult:
    line_items = fields.get("lineItems") or []
    return _section_score(
        [Factor("line_items", float(len(line_items)), (above(3, 2.0),))],
        base=SECTION_BASE,
    )


def rate_technical(fields: SectionFields) -> ScoreResult:
    price = parse_number(fields.get("currentPrice"))
    target = parse_number(fields.get("targetPrice"))
    upside = target - price if price is not None and target is not None else None
    return _section_score(
        [
            Factor("price_found", 1.0 if price is not None else 0.0, (above(0, 1.0),)),
            Factor("target_upside", upside, (above(0, 1.0), below(0, -1.0))),
        ],
        base=SECTION_BASE,
    )


def rate_options(fields: SectionFields) -> ScoreResult:
    option_metrics = fields.get("optionMetrics") or []
    return _section_score(
        [Factor("option_metrics", float(len(option_metrics)), (above(0, 2.0),))],
        base=SECTION_BASE,
    )


@dataclass(frozen=True)
class SentimentTally:
    """Keyword match counts across headlines."""

    positive: int = 0
    negative: int = 0

    @property
    def tone(self) -> str | None:
        """'positive', 'negative', or None on a tie."""
        if self.positive > self.negative:
            return "positive"
        if self.negative > self.positive:
            return "negative"
        return None

    def to_signal(self) -> Signal | None:
        if self.tone == "positive":
            return Signal(POSITIVE, "Recent news shows positive sentiment")
        if self.tone == "negative":
            return Signal(WARNING, "Recent news shows negative sentiment")
        return None


def news_sentiment(headlines: list[str]) -> SentimentTally:
    """
    Tally headlines mentioning positive and negative keywords.

    A headline counts once per class it matches, so one headline holding
    both a positive and a negative keyword increments both counts.
    """
    positive = 0
    negative = 0
    for headline in headlines:
        text = headline.lower()
        if any(word in text for word in POSITIVE_KEYWORDS):
            positive += 1
        if any(word in text for word in NEGATIVE_KEYWORDS):
            negative += 1
    return SentimentTally(positive=positive, negative=negative)


def rate_news(fields: SectionFields, sentiment: SentimentTally) -> ScoreResult:
    headlines = fields.get("headlines") or []
    return _section_score(
        [
            Factor("headlines", float(len(headlines)), (above(0, 2.0),)),
            Factor("sentiment", float(sentiment.positive - sentiment.negative), (above(0, 1.0),)),
        ],
        base=SECTION_BASE,
    )
