"""Text sanitization and numeric token parsing."""

import math
import re

_CURRENCY_RE = re.compile(r"[$€£¥₹]|\b(?:USD|EUR|GBP|JPY)\b", re.IGNORECASE)
_NUMBER_RE = re.compile(r"^([+-]?\d+(?:\.\d+)?)\s*([KMBT])?$", re.IGNORECASE)
_SUFFIXES = {"K": 1e3, "M": 1e6, "B": 1e9, "T": 1e12}
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f-\x9f]")


def sanitize_text(text: str | None, max_length: int = 500) -> str | None:
    """
    Clean a scraped or upstream free-text value before it reaches a report.

    Control characters are dropped and anything past `max_length` is cut
    and marked with an ellipsis. None passes through.
    """
    if text is None:
        return None
    cleaned = _CONTROL_RE.sub("", text)
    if len(cleaned) > max_length:
        cleaned = f"{cleaned[:max_length]}..."
    return cleaned.strip()


def parse_number(token: str | float | int | None) -> float | None:
    """
    Parse a scraped numeric token.

    Strips currency symbols, thousands separators, percent signs and
    surrounding parentheses (accounting negatives), and expands K/M/B/T
    suffixes. Unparseable tokens return None, never 0.

    Examples:
        "$1,234.50" -> 1234.5
        "2.81T" -> 2.81e12
        "(12.5)" -> -12.5
        "n/a" -> None
    """
    if token is None or isinstance(token, bool):
        return None
    if isinstance(token, (int, float)):
        value = float(token)
        return value if math.isfinite(value) else None

    text = _CURRENCY_RE.sub("", str(token)).replace(",", "").replace("%", "").replace("\u2212", "-").strip()
    negative = text.startswith("(") and text.endswith(")")
    if negative:
        text = text[1:-1].strip()

    match = _NUMBER_RE.match(text)
    if not match:
        return None

    value = float(match.group(1))
    suffix = match.group(2)
    if suffix:
        value *= _SUFFIXES[suffix.upper()]
    if not math.isfinite(value):
        return None
    return -value if negative else value
