"""Utility modules."""

from research_mcp.utils.indicators import (
    calculate_returns,
    calculate_sma,
    calculate_volatility,
    compute_indicators,
    moving_average,
    price_change,
)
from research_mcp.utils.provenance import build_meta, build_provenance
from research_mcp.utils.sanitize import parse_number, sanitize_text
from research_mcp.utils.scoring import Factor, additive_score, average_score
from research_mcp.utils.validators import ChartParams, check_rule, normalize_symbol, validate_section

__all__ = [
    "calculate_returns",
    "calculate_sma",
    "calculate_volatility",
    "compute_indicators",
    "moving_average",
    "price_change",
    "build_meta",
    "build_provenance",
    "parse_number",
    "sanitize_text",
    "Factor",
    "additive_score",
    "average_score",
    "ChartParams",
    "check_rule",
    "normalize_symbol",
    "validate_section",
]
