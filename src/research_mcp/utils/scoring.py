"""Weighted multi-factor scoring.

Every rating in the engine is built the same way: a list of factors, each
of which either applies (its input is present) or does not. Only
applicable factors contribute and only they are counted, so missing data
never drags a score toward zero. The accumulated score is then
normalized and clamped into the rating's bound.
"""

import math
import operator
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from research_mcp.utils.validators import check_rule

Contribution = float | Callable[[float], float]


@dataclass(frozen=True)
class Rule:
    """A tier of a factor: when `predicate(value)` holds, add `contribution`."""

    predicate: Callable[[float], bool | None]
    contribution: Contribution

    def apply(self, value: float) -> float:
        if callable(self.contribution):
            return float(self.contribution(value))
        return float(self.contribution)


def above(threshold: float, contribution: Contribution) -> Rule:
    return Rule(lambda v: check_rule(v, threshold, operator.gt), contribution)


def below(threshold: float, contribution: Contribution) -> Rule:
    return Rule(lambda v: check_rule(v, threshold, operator.lt), contribution)


def between(low: float, high: float, contribution: Contribution) -> Rule:
    """Strictly between low and high."""
    return Rule(lambda v: low < v < high, contribution)


def proportional() -> Rule:
    """Contribute the factor's value itself."""
    return Rule(lambda v: True, lambda v: v)


@dataclass(frozen=True)
class Factor:
    """
    One rating input.

    Applicable when `value` is present. Factors marked `always_applicable`
    are counted even without a value; they then contribute 0. Rules are
    tried in order and the first match wins; no match contributes 0.
    """

    name: str
    value: float | None
    rules: tuple[Rule, ...] = ()
    always_applicable: bool = False

    @property
    def applicable(self) -> bool:
        return self.value is not None or self.always_applicable

    def contribution(self) -> float | None:
        if not self.applicable:
            return None
        if self.value is None:
            return 0.0
        for rule in self.rules:
            if rule.predicate(self.value):
                return rule.apply(self.value)
        return 0.0


@dataclass(frozen=True)
class ScoreResult:
    """Clamped integer score plus the inputs that produced it."""

    score: int
    raw: float | None
    applicable_count: int
    contributions: dict[str, float | None] = field(default_factory=dict)


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def round_half_up(value: float) -> int:
    """Round to nearest integer with .5 going up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def _contributions(factors: Iterable[Factor]) -> dict[str, float | None]:
    return {factor.name: factor.contribution() for factor in factors}


def average_score(
    factors: Iterable[Factor],
    *,
    scale: float,
    lower: int,
    upper: int,
    default: int,
) -> ScoreResult:
    """
    Mean contribution of applicable factors, scaled and clamped.

    Args:
        factors: Rating inputs
        scale: Multiplier applied to the mean (5 maps a 0..1 mean onto a 1..5 rating)
        lower: Lowest allowed rating
        upper: Highest allowed rating
        default: Rating when no factor is applicable

    Returns:
        ScoreResult with score in [lower, upper]
    """
    contributions = _contributions(factors)
    applied = [c for c in contributions.values() if c is not None]

    if not applied:
        return ScoreResult(
            score=default,
            raw=None,
            applicable_count=0,
            contributions=contributions,
        )

    # Multiply before dividing to keep exact halves exact
    raw = sum(applied) * scale / len(applied)
    return ScoreResult(
        score=round_half_up(clamp(raw, lower, upper)),
        raw=raw,
        applicable_count=len(applied),
        contributions=contributions,
    )


def additive_score(
    factors: Iterable[Factor],
    *,
    base: float,
    lower: int,
    upper: int,
) -> ScoreResult:
    """
    Base score plus contributions of applicable factors, clamped.

    Args:
        factors: Rating inputs
        base: Starting score before any bonus
        lower: Lowest allowed rating
        upper: Highest allowed rating

    Returns:
        ScoreResult with score in [lower, upper]
    """
    contributions = _contributions(factors)
    applied = [c for c in contributions.values() if c is not None]

    raw = base + sum(applied)
    return ScoreResult(
        score=round_half_up(clamp(raw, lower, upper)),
        raw=raw,
        applicable_count=len(applied),
        contributions=contributions,
    )
