"""
Tests for the descriptive statistics used by the pattern reports.
"""

import math

import pytest

from tradementor.analytics import stats


class TestBasics:

    def test_mean_of_empty_is_zero(self):
        assert stats.mean([]) == 0.0

    def test_sample_std_uses_n_minus_one(self):
        assert stats.sample_std([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.138, abs=1e-3)

    def test_population_std(self):
        assert stats.population_std([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)

    def test_sample_std_needs_two_values(self):
        assert stats.sample_std([3.0]) == 0.0


class TestCorrelation:

    def test_perfect_positive(self):
        assert stats.pearson([1, 2, 3, 4], [2, 4, 6, 8]) == pytest.approx(1.0)

    def test_perfect_negative(self):
        assert stats.pearson([1, 2, 3, 4], [8, 6, 4, 2]) == pytest.approx(-1.0)

    def test_zero_variance_gives_zero(self):
        assert stats.pearson([5, 5, 5, 5], [1, 2, 3, 4]) == 0.0
        assert stats.pearson([1, 2, 3, 4], [0, 0, 0, 0]) == 0.0

    def test_length_mismatch_raises(self):
        with pytest.raises(ValueError):
            stats.pearson([1, 2, 3], [1, 2])

    def test_result_is_bounded(self):
        r = stats.pearson([1, 3, 2, 5, 4, 7, 6], [0.1, 0.9, 0.4, 2.2, 1.1, 3.0, 2.5])
        assert -1.0 <= r <= 1.0

    def test_p_value_edge_cases(self):
        assert stats.correlation_p_value(0.9, 2) == 1.0
        assert stats.correlation_p_value(1.0, 50) == 0.0
        assert stats.correlation_p_value(0.0, 50) == pytest.approx(1.0)

    def test_p_value_matches_normal_approximation(self):
        r, n = 0.4, 30
        t = r * math.sqrt((n - 2) / (1 - r * r))
        expected = math.erfc(abs(t) / math.sqrt(2))
        assert stats.correlation_p_value(r, n) == pytest.approx(expected, rel=1e-9)

    def test_p_value_shrinks_with_sample_size(self):
        assert stats.correlation_p_value(0.3, 100) < stats.correlation_p_value(0.3, 20)

    @pytest.mark.parametrize("r,label", [
        (0.85, "Strong"), (-0.7, "Strong"), (0.55, "Moderate"),
        (-0.3, "Weak"), (0.1, "Very Weak"),
    ])
    def test_strength_labels(self, r, label):
        assert stats.correlation_strength(r) == label


class TestTradeMetrics:

    def test_sharpe_zero_when_flat(self):
        assert stats.sharpe_ratio([1.0, 1.0, 1.0]) == 0.0

    def test_sharpe_sign_follows_mean(self):
        assert stats.sharpe_ratio([1.0, 2.0, -0.5]) > 0
        assert stats.sharpe_ratio([-1.0, -2.0, 0.5]) < 0

    def test_max_drawdown_from_zero_peak(self):
        # Equity: -2, -1, -4 -> worst fall from the starting 0 is 4
        assert stats.max_drawdown([-2, 1, -3]) == pytest.approx(4.0)

    def test_max_drawdown_after_run_up(self):
        # Equity: 5, 8, 2, 4 -> peak 8, trough 2
        assert stats.max_drawdown([5, 3, -6, 2]) == pytest.approx(6.0)

    def test_max_drawdown_never_negative(self):
        assert stats.max_drawdown([1, 2, 3]) == 0.0
        assert stats.max_drawdown([]) == 0.0

    def test_profit_factor(self):
        assert stats.profit_factor([3, 1, -2]) == pytest.approx(2.0)

    def test_profit_factor_without_losses_is_zero(self):
        assert stats.profit_factor([1, 2, 3]) == 0.0

    def test_win_rate_confidence_interval(self):
        assert stats.win_rate_confidence_interval(5, 10) == pytest.approx(
            1.96 * math.sqrt(0.25 / 10) * 100)
        assert stats.win_rate_confidence_interval(0, 0) == 0.0


class TestTrend:

    def test_insufficient_data(self):
        assert stats.linear_trend([5, 6])["direction"] == "insufficient_data"

    def test_improving(self):
        trend = stats.linear_trend([2, 3, 4, 5, 6, 7])
        assert trend["direction"] == "improving"
        assert trend["slope"] == pytest.approx(1.0)

    def test_declining(self):
        assert stats.linear_trend([9, 8, 7, 6, 5])["direction"] == "declining"

    def test_stable(self):
        assert stats.linear_trend([5, 5, 5, 5])["direction"] == "stable"

    def test_confidence_scales_with_sample_size(self):
        short = stats.linear_trend([1, 2, 3, 4, 5])
        long = stats.linear_trend(list(range(1, 21)))
        assert short["confidence"] == pytest.approx(25.0)
        assert long["confidence"] == pytest.approx(100.0)


class TestInsightHelpers:

    @pytest.mark.parametrize("n,expected", [(2, 30), (4, 50), (9, 70), (19, 85), (20, 95)])
    def test_insight_confidence(self, n, expected):
        assert stats.insight_confidence(n) == expected

    @pytest.mark.parametrize("level,band", [
        (1, "Low (1-3)"), (3, "Low (1-3)"), (4, "Medium (4-6)"),
        (6, "Medium (4-6)"), (7, "High (7-10)"), (10, "High (7-10)"),
    ])
    def test_emotion_band(self, level, band):
        assert stats.emotion_band(level) == band
