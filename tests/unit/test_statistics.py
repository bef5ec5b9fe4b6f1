"""
Unit tests for the statistics primitives.

Tests descriptive statistics, returns, volatility, drawdown, Sharpe ratio
and correlation.
"""

import math
from datetime import datetime, timedelta

import pytest
from pricelens.analysis import statistics
from pricelens.data.models import PricePoint, Statistics, TimeSeries


class TestDescribe:
    """Test suite for describe()."""

    def test_even_length(self) -> None:
        """Test statistics of an even-length sequence."""
        stats = statistics.describe([4.0, 1.0, 3.0, 2.0])

        assert stats.count == 4
        assert stats.mean == pytest.approx(2.5)
        assert stats.median == pytest.approx(2.5)
        assert stats.min == 1.0
        assert stats.max == 4.0
        assert stats.variance == pytest.approx(1.25)
        assert stats.stddev == pytest.approx(math.sqrt(1.25))
        assert stats.skewness == pytest.approx(0.0, abs=1e-12)
        assert stats.kurtosis == pytest.approx(-1.36)

    def test_odd_length_median(self) -> None:
        """Test that the median of an odd-length sequence is the middle element."""
        assert statistics.describe([3.0, 1.0, 2.0]).median == 2.0

    def test_empty_is_zeroed(self) -> None:
        """Test that an empty sequence yields zeroed statistics."""
        stats = statistics.describe([])

        assert stats == Statistics.empty()
        assert stats.count == 0

    def test_constant_values(self) -> None:
        """Test that zero dispersion gives zero skewness and kurtosis."""
        stats = statistics.describe([5.0, 5.0, 5.0])

        assert stats.stddev == 0.0
        assert stats.skewness == 0.0
        assert stats.kurtosis == 0.0

    def test_right_skewed(self) -> None:
        """Test that a long right tail gives positive skewness."""
        assert statistics.describe([1.0, 1.0, 1.0, 10.0]).skewness > 0

    @pytest.mark.parametrize(
        "values",
        [
            [1.0],
            [-3.0, 7.5, 0.25],
            [100.0, 102.0, 101.0, 105.0, 103.0],
            [0.001 * i * i for i in range(50)],
        ],
    )
    def test_mean_within_bounds(self, values: list[float]) -> None:
        """Test min <= mean <= max and a non-negative standard deviation."""
        stats = statistics.describe(values)

        assert stats.min <= stats.mean <= stats.max
        assert stats.stddev >= 0


class TestReturns:
    """Test suite for returns()."""

    def test_simple_and_log_returns(self, make_series) -> None:
        """Test returns for a known price path."""
        simple, log = statistics.returns(make_series([100, 102, 101, 105, 103]))

        assert simple == pytest.approx([0.02, -0.0098039, 0.0396040, -0.0190476], abs=1e-6)
        assert len(log) == 4
        assert log[0] == pytest.approx(math.log(102 / 100))
        assert log[0] == pytest.approx(0.0198, abs=1e-4)

    def test_sorts_before_computing(self, make_series) -> None:
        """Test that an out-of-order series is sorted first."""
        series = make_series([100, 102, 101])
        series.points.reverse()

        simple, _ = statistics.returns(series)

        assert simple == pytest.approx([0.02, -1 / 102])

    def test_too_short(self, make_series) -> None:
        """Test that fewer than two points give empty returns."""
        assert statistics.returns(make_series([100])) == ([], [])
        assert statistics.returns(TimeSeries(symbol="BTC")) == ([], [])

    def test_non_positive_previous_price(self) -> None:
        """Test that a return after a non-positive price is left at zero."""
        start = datetime(2024, 1, 1)
        series = TimeSeries(
            symbol="BTC",
            points=[
                PricePoint(start + timedelta(days=i), c, c, c, c, 1.0)
                for i, c in enumerate([100.0, 0.0, 50.0])
            ],
        )

        simple, log = statistics.returns(series)

        assert simple == [-1.0, 0.0]
        assert log == [0.0, 0.0]


class TestVolatilityAndSharpe:
    """Test suite for volatility and Sharpe ratio."""

    def test_annualized_volatility(self) -> None:
        """Test that volatility scales the stddev by sqrt(periods)."""
        vol = statistics.annualized_volatility([0.01, -0.01], 365)
        assert vol == pytest.approx(0.01 * math.sqrt(365))

    def test_volatility_empty(self) -> None:
        """Test that empty returns give zero volatility."""
        assert statistics.annualized_volatility([], 365) == 0.0

    def test_sharpe_ratio(self) -> None:
        """Test the Sharpe ratio for a simple return sequence."""
        assert statistics.sharpe_ratio([0.01, 0.03], 0.0, 1) == pytest.approx(2.0)

    def test_sharpe_with_risk_free_rate(self) -> None:
        """Test that the risk-free rate is subtracted from the annual return."""
        ratio = statistics.sharpe_ratio([0.01, 0.03], 0.01, 1)
        assert ratio == pytest.approx((0.02 - 0.01) / 0.01)

    def test_sharpe_zero_dispersion(self) -> None:
        """Test that constant returns give a Sharpe ratio of zero."""
        assert statistics.sharpe_ratio([0.01, 0.01, 0.01], 0.0, 365) == 0.0
        assert statistics.sharpe_ratio([], 0.0, 365) == 0.0


class TestMaxDrawdown:
    """Test suite for max_drawdown()."""

    def test_largest_decline(self, make_series) -> None:
        """Test that the largest peak-to-trough decline is reported."""
        assert statistics.max_drawdown(make_series([100, 120, 90, 130, 117])) == pytest.approx(0.25)

    def test_monotonic_series(self, make_series) -> None:
        """Test that a non-decreasing series has no drawdown."""
        assert statistics.max_drawdown(make_series([100, 100, 101, 105, 110])) == 0.0

    def test_empty_series(self) -> None:
        """Test that an empty series has no drawdown."""
        assert statistics.max_drawdown(TimeSeries(symbol="BTC")) == 0.0

    def test_never_negative(self, make_series) -> None:
        """Test that drawdown is never negative."""
        assert statistics.max_drawdown(make_series([50, 40, 60, 30, 90])) >= 0


class TestCorrelation:
    """Test suite for correlation()."""

    def test_perfect_positive(self) -> None:
        assert statistics.correlation([1, 2, 3], [2, 4, 6]) == pytest.approx(1.0)

    def test_perfect_negative(self) -> None:
        assert statistics.correlation([1, 2, 3], [3, 2, 1]) == pytest.approx(-1.0)

    def test_degenerate_inputs(self) -> None:
        """Test the zero fallbacks for unusable inputs."""
        assert statistics.correlation([1, 2], [1, 2, 3]) == 0.0
        assert statistics.correlation([], []) == 0.0
        assert statistics.correlation([1, 1, 1], [1, 2, 3]) == 0.0
