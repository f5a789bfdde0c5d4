"""Validation utilities and parameter classes."""

import operator
import re
from collections.abc import Callable
from dataclasses import dataclass

from research_mcp.errors import InvalidSymbolError, UnsupportedSectionError

# Allowlists for the chart endpoint
VALID_RANGES = {"1d", "5d", "1mo", "3mo", "6mo", "1y", "2y", "5y", "10y", "ytd", "max"}
VALID_INTERVALS = {"1m", "2m", "5m", "15m", "30m", "60m", "90m", "1h", "1d", "5d", "1wk", "1mo", "3mo"}

# Closed set of analytical sections a caller may request
SECTIONS: tuple[str, ...] = (
    "companyAnalysis",
    "financialHealth",
    "technicalAnalysis",
    "optionsData",
    "recentDevelopments",
)

# Letters, digits and the punctuation used by class shares, indices and FX pairs
_SYMBOL_RE = re.compile(r"^\^?[A-Z0-9][A-Z0-9.\-=]{0,14}$")


def normalize_symbol(symbol: str | None) -> str:
    """
    Normalize a ticker symbol for lookup and display.

    Args:
        symbol: Raw symbol from the caller (case-insensitive)

    Returns:
        Uppercase, stripped symbol

    Raises:
        InvalidSymbolError: If the symbol is missing or malformed
    """
    if symbol is None or not str(symbol).strip():
        raise InvalidSymbolError("Symbol is required")
    normalized = str(symbol).upper().strip()
    if not _SYMBOL_RE.match(normalized):
        raise InvalidSymbolError(f"Invalid symbol '{symbol}'")
    return normalized


def validate_section(section: str | None) -> str:
    """Return the section name if supported, else raise UnsupportedSectionError."""
    if section is None or not str(section).strip():
        raise UnsupportedSectionError("Section is required")
    if section not in SECTIONS:
        raise UnsupportedSectionError(
            f"Invalid section '{section}'. Must be one of: {', '.join(SECTIONS)}"
        )
    return section


@dataclass(frozen=True)
class ChartParams:
    """Immutable chart request parameters."""

    symbol: str
    range: str = "1mo"
    interval: str = "1d"

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbol", normalize_symbol(self.symbol))

        range_ = self.range.lower().strip()
        interval = self.interval.lower().strip()

        if range_ not in VALID_RANGES:
            raise ValueError(f"Invalid range '{self.range}'. Must be one of: {VALID_RANGES}")
        if interval not in VALID_INTERVALS:
            raise ValueError(
                f"Invalid interval '{self.interval}'. Must be one of: {VALID_INTERVALS}"
            )

        object.__setattr__(self, "range", range_)
        object.__setattr__(self, "interval", interval)

    def to_url(self) -> str:
        """Yahoo chart endpoint URL."""
        return (
            f"https://query1.finance.yahoo.com/v8/finance/chart/{self.symbol}"
            f"?interval={self.interval}&range={self.range}"
        )

    def to_yf_kwargs(self) -> dict[str, str]:
        """Kwargs for yf.Ticker.history()."""
        return {"period": self.range, "interval": self.interval}


def check_rule(
    value: float | None,
    threshold: float,
    comparator: Callable[[float, float], bool] = operator.gt,
) -> bool | None:
    """Compare a value against a fixed threshold; a missing value gives None, not False."""
    return None if value is None else comparator(value, threshold)


def check_rule_expr(
    left: float | None,
    right: float | None,
    comparator: Callable[[float, float], bool] = operator.gt,
) -> bool | None:
    """
    Compare two observed values, e.g. price against a moving average.

    None when either side is missing, so an absent input never reads as a failed check.
    """
    if left is None or right is None:
        return None
    return comparator(left, right)
