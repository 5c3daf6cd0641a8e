"""
Tests for the ranking classifier policies.
"""

import pytest

from weeklyreport.services.ranking import (
    LOOSE_RANKING,
    STRICT_RANKING,
    Ranking,
    classify,
)


class TestStrictRanking:
    """Strict thresholds: 100 / 95 / 90 / 85, floor FAIL."""

    @pytest.mark.parametrize(
        "rate, expected",
        [
            (100, Ranking.EXCELLENT),
            (99.9, Ranking.GOOD),
            (95, Ranking.GOOD),
            (94, Ranking.AVERAGE),
            (90, Ranking.AVERAGE),
            (85, Ranking.POOR),
            (84.99, Ranking.FAIL),
            (0, Ranking.FAIL),
        ],
    )
    def test_boundaries(self, rate, expected):
        """Each cut is inclusive and the first match wins."""
        assert classify(rate) is expected

    def test_default_policy_is_strict(self):
        """classify() without a policy uses the strict thresholds."""
        assert classify(90) is STRICT_RANKING.classify(90)

    def test_buckets_include_fail(self):
        """The strict policy exposes all five buckets in order."""
        assert STRICT_RANKING.buckets == (
            Ranking.EXCELLENT,
            Ranking.GOOD,
            Ranking.AVERAGE,
            Ranking.POOR,
            Ranking.FAIL,
        )


class TestLooseRanking:
    """Loose thresholds: >90 / 80 / 70, floor POOR."""

    @pytest.mark.parametrize(
        "rate, expected",
        [
            (100, Ranking.EXCELLENT),
            (90.5, Ranking.EXCELLENT),
            (90, Ranking.GOOD),
            (80, Ranking.GOOD),
            (79, Ranking.AVERAGE),
            (70, Ranking.AVERAGE),
            (69, Ranking.POOR),
            (0, Ranking.POOR),
        ],
    )
    def test_boundaries(self, rate, expected):
        """Excellent is strictly above 90; the others are inclusive."""
        assert classify(rate, LOOSE_RANKING) is expected

    def test_never_returns_fail(self):
        """The loose policy has no FAIL bucket."""
        assert Ranking.FAIL not in LOOSE_RANKING.buckets


class TestLabels:
    """Display labels are fixed Vietnamese strings."""

    def test_labels(self):
        """Every bucket has its label."""
        assert Ranking.EXCELLENT.label == "Xuất sắc"
        assert Ranking.GOOD.label == "Tốt"
        assert Ranking.AVERAGE.label == "Trung bình"
        assert Ranking.POOR.label == "Yếu"
        assert Ranking.FAIL.label == "Kém"
