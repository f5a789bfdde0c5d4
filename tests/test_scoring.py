"""Tests for the weighted scoring utility."""

import pytest

from research_mcp.utils.scoring import (
    Factor,
    above,
    additive_score,
    average_score,
    below,
    between,
    clamp,
    proportional,
    round_half_up,
)


class TestRounding:
    """Tests for clamp and round_half_up."""

    @pytest.mark.parametrize(
        "value,expected",
        [(2.5, 3), (3.5, 4), (2.49, 2), (1.0, 1), (0.5, 1)],
    )
    def test_round_half_up(self, value: float, expected: int) -> None:
        """Halves round up rather than to even."""
        assert round_half_up(value) == expected

    def test_clamp(self) -> None:
        """Values are pinned to the bounds."""
        assert clamp(-3, 1, 5) == 1
        assert clamp(9, 1, 5) == 5
        assert clamp(2.2, 1, 5) == 2.2


class TestFactor:
    """Tests for factor applicability and contribution."""

    def test_missing_value_not_applicable(self) -> None:
        """A factor without a value does not count."""
        factor = Factor("x", None, (above(0, 1.0),))
        assert not factor.applicable
        assert factor.contribution() is None

    def test_always_applicable_without_value(self) -> None:
        """An always-applicable factor with no value counts and contributes 0."""
        factor = Factor("x", None, (above(0, 1.0),), always_applicable=True)
        assert factor.applicable
        assert factor.contribution() == 0.0

    def test_first_matching_rule_wins(self) -> None:
        """Tiers are tried in order."""
        factor = Factor("x", 0.8, (above(0.7, 1.0), above(0.4, 0.5)))
        assert factor.contribution() == 1.0

        factor = Factor("x", 0.5, (above(0.7, 1.0), above(0.4, 0.5)))
        assert factor.contribution() == 0.5

    def test_no_rule_matches(self) -> None:
        """A present value matching no tier contributes 0 but still counts."""
        factor = Factor("x", 0.1, (above(0.7, 1.0),))
        assert factor.applicable
        assert factor.contribution() == 0.0

    def test_below_and_between(self) -> None:
        """below is strict and between excludes its endpoints."""
        assert Factor("x", -2.0, (below(-1, -0.5),)).contribution() == -0.5
        assert Factor("x", -1.0, (below(-1, -0.5),)).contribution() == 0.0
        assert Factor("x", 20.0, (between(20, 50, 1.0),)).contribution() == 0.0
        assert Factor("x", 21.0, (between(20, 50, 1.0),)).contribution() == 1.0

    def test_proportional(self) -> None:
        """proportional contributes the value itself."""
        assert Factor("x", 0.5, (proportional(),)).contribution() == 0.5


class TestAverageScore:
    """Tests for average_score."""

    def test_no_applicable_factors_uses_default(self) -> None:
        """Zero applicable factors yields the default, not a division error."""
        result = average_score([Factor("x", None)], scale=5, lower=1, upper=5, default=3)
        assert result.score == 3
        assert result.applicable_count == 0
        assert result.raw is None

    def test_average_over_applicable_only(self) -> None:
        """Missing factors are excluded from the denominator."""
        factors = [
            Factor("a", 1.0, (above(0, 1.0),)),
            Factor("b", None, (above(0, 1.0),)),
        ]
        result = average_score(factors, scale=5, lower=1, upper=5, default=3)
        assert result.applicable_count == 1
        assert result.score == 5

    def test_clamped_to_lower_bound(self) -> None:
        """A negative mean still yields the minimum rating."""
        factors = [Factor("a", -5.0, (below(0, -1.0),))]
        result = average_score(factors, scale=5, lower=1, upper=5, default=3)
        assert result.score == 1
        assert result.raw == pytest.approx(-5.0)

    def test_contributions_recorded(self) -> None:
        """Per-factor contributions are reported, None for inapplicable ones."""
        factors = [Factor("a", 1.0, (above(0, 1.0),)), Factor("b", None)]
        result = average_score(factors, scale=5, lower=1, upper=5, default=3)
        assert result.contributions == {"a": 1.0, "b": None}


class TestAdditiveScore:
    """Tests for additive_score."""

    def test_base_only(self) -> None:
        """No bonus leaves the base score."""
        result = additive_score([Factor("a", 0.0, (above(0, 2.0),))], base=6, lower=0, upper=10)
        assert result.score == 6

    def test_bonuses_add(self) -> None:
        """Matching factors add their contributions."""
        factors = [Factor("a", 4.0, (above(3, 2.0),)), Factor("b", 1.0, (above(0, 1.0),))]
        result = additive_score(factors, base=6, lower=0, upper=10)
        assert result.score == 9

    def test_clamped_to_upper_bound(self) -> None:
        """Scores never exceed the upper bound."""
        factors = [Factor("a", 1.0, (above(0, 20.0),))]
        result = additive_score(factors, base=6, lower=0, upper=10)
        assert result.score == 10
