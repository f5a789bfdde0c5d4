"""Structured breakdowns for the company and recent developments sections."""

from typing import Any

from research_mcp.models import INFO, POSITIVE, WARNING, Metric, Signal
from research_mcp.utils.sanitize import parse_number, sanitize_text
from research_mcp.utils.scoring import clamp, round_half_up

NOT_ANALYZED = "Analysis not available"
DEFAULT_CATEGORY_RATING = 5
MAX_EVENTS = 10

COMPANY_CATEGORIES: tuple[tuple[str, str], ...] = (
    ("marketPosition", "Market Position & Competitive Advantage"),
    ("businessModel", "Business Model & Revenue Generation"),
    ("industryTrends", "Industry Trends & External Factors"),
    ("customerBase", "Customer Base & Concentration Risk"),
    ("growthStrategy", "Growth Strategy & Future Outlook"),
    ("economicMoat", "Economic Moat Analysis"),
)


def _text(value: Any, default: str, max_length: int = 2000) -> str:
    if not isinstance(value, str):
        return default
    return sanitize_text(value, max_length=max_length) or default


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def category_rating(value: Any) -> int:
    """0-10 category rating from a reply value; unusable values rate 5."""
    number = parse_number(value)
    if number is None:
        return DEFAULT_CATEGORY_RATING
    return round_half_up(clamp(number, 0, 10))


# ============================================================================
# COMPANY ANALYSIS
# ============================================================================


def company_breakdown(detail: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Six titled categories, each with content and a 0-10 rating."""
    breakdown = {}
    for key, title in COMPANY_CATEGORIES:
        category = _mapping(detail.get(key))
        breakdown[key] = {
            "title": title,
            "content": _text(category.get("analysis"), NOT_ANALYZED),
            "rating": category_rating(category.get("rating")),
        }
    return breakdown


def company_signals(breakdown: dict[str, dict[str, Any]]) -> list[Signal]:
    signals = []
    if breakdown["economicMoat"]["rating"] >= 7:
        signals.append(Signal(POSITIVE, "Strong economic moat identified"))
    if breakdown["growthStrategy"]["rating"] >= 7:
        signals.append(Signal(POSITIVE, "Solid growth strategy in place"))
    if breakdown["customerBase"]["rating"] <= 4:
        signals.append(Signal(WARNING, "Customer concentration risk detected"))
    return signals


# ============================================================================
# RECENT DEVELOPMENTS
# ============================================================================


def _event(item: Any) -> dict[str, str] | None:
    if isinstance(item, str):
        item = {"event": item}
    item = _mapping(item)
    event = _text(item.get("event"), "", max_length=500)
    if not event:
        return None
    return {
        "event": event,
        "expectedImpact": _text(item.get("expectedImpact"), NOT_ANALYZED, max_length=500),
        "date": _text(item.get("date"), "Date not available", max_length=100),
    }


def developments_breakdown(detail: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Next earnings call, major events, catalysts and the options implication."""
    earnings = _mapping(detail.get("nextEarningsCall"))
    raw_events = detail.get("majorEvents")
    events = [_event(item) for item in raw_events] if isinstance(raw_events, list) else []
    return {
        "nextEarningsCall": {
            "title": "Next Earnings Call",
            "date": _text(earnings.get("date"), "Date not available", max_length=100),
            "expectation": _text(earnings.get("expectation"), NOT_ANALYZED),
        },
        "majorEvents": {
            "title": "Major Events & News",
            "events": [event for event in events if event][:MAX_EVENTS],
        },
        "catalysts": {
            "title": "Upcoming Catalysts",
            "content": _text(detail.get("catalysts"), "No major catalysts identified"),
        },
        "optionsImplication": {
            "title": "Options Trading Implication",
            "content": _text(detail.get("optionsImplication"), NOT_ANALYZED),
        },
    }


def developments_findings(breakdown: dict[str, dict[str, Any]]) -> tuple[list[Metric], list[Signal]]:
    """Metrics and signals a generated developments breakdown adds to the section."""
    metrics = [Metric("Next Earnings", breakdown["nextEarningsCall"]["date"])]
    events = breakdown["majorEvents"]["events"]
    if events:
        metrics.append(Metric("Upcoming Events", str(len(events))))

    implication = breakdown["optionsImplication"]["content"]
    signals = [Signal(INFO, implication)] if implication != NOT_ANALYZED else []
    return metrics, signals
