"""
Unit tests for the IndicatorCalculator class.

Tests RSI, EMA, SMA, MACD, Bollinger Bands, the Stochastic Oscillator and the
latest-value snapshot.
"""

import math

import pytest
from pricelens.analysis.indicators import IndicatorCalculator
from pricelens.data.models import TimeSeries
from pricelens.exceptions import InvalidParameterError


class TestIndicatorCalculator:
    """Test suite for IndicatorCalculator."""

    @pytest.fixture
    def calculator(self) -> IndicatorCalculator:
        """Create an IndicatorCalculator instance for testing."""
        return IndicatorCalculator()

    # RSI

    def test_rsi_flat_market(self, calculator: IndicatorCalculator, make_series) -> None:
        """Test that 15 identical closes give a single RSI of 100."""
        rsi = calculator.rsi(make_series([250.0] * 15), period=14)

        assert rsi == [100.0]

    def test_rsi_balanced_moves(self, calculator: IndicatorCalculator, make_series) -> None:
        """Test that equal gains and losses give an RSI of 50."""
        closes = [100.0, 101.0] * 7 + [100.0]

        assert calculator.rsi(make_series(closes), period=14) == pytest.approx([50.0])

    def test_rsi_length(self, calculator: IndicatorCalculator, make_series) -> None:
        """Test that RSI has one value for the seed plus one per later change."""
        rsi = calculator.rsi(make_series([100.0 + i for i in range(20)]), period=14)

        assert len(rsi) == 6
        assert all(value == 100.0 for value in rsi)

    def test_rsi_insufficient_data(self, calculator: IndicatorCalculator, make_series) -> None:
        """Test that fewer than period + 1 points give an empty RSI."""
        assert calculator.rsi(make_series([100.0] * 14), period=14) == []

    def test_rsi_bounded(
        self, calculator: IndicatorCalculator, trending_series: TimeSeries
    ) -> None:
        """Test that RSI values stay within [0, 100]."""
        rsi = calculator.rsi(trending_series, period=14)

        assert len(rsi) == len(trending_series) - 14
        assert all(0.0 <= value <= 100.0 for value in rsi)

    def test_rsi_wilder_smoothing(self, calculator: IndicatorCalculator, make_series) -> None:
        """Test RSI against hand-smoothed averages for period 3."""
        rsi = calculator.rsi(make_series([10.0, 11.0, 10.5, 12.0, 11.0, 13.0]), period=3)

        assert rsi == pytest.approx([500 / 6, 500 / 9, 700 / 9])

    def test_rsi_falling_market(self, calculator: IndicatorCalculator, make_series) -> None:
        """Test that a steadily falling market drives RSI to 0."""
        rsi = calculator.rsi(make_series([200.0 - i for i in range(20)]), period=14)

        assert all(value == pytest.approx(0.0) for value in rsi)

    # EMA

    def test_ema_known_values(self, calculator: IndicatorCalculator) -> None:
        """Test EMA against hand-computed values."""
        assert calculator.ema([1.0, 2.0, 3.0, 4.0, 5.0], 3) == pytest.approx([2.0, 3.0, 4.0])

    def test_ema_seed_is_simple_mean(self, calculator: IndicatorCalculator) -> None:
        """Test that the first EMA value is the mean of the first period values."""
        values = [10.0, 11.5, 9.0, 12.0, 13.0, 8.5, 10.0]
        ema = calculator.ema(values, 4)

        assert ema[0] == pytest.approx(sum(values[:4]) / 4)
        assert len(ema) == len(values) - 4 + 1

    def test_ema_insufficient_data(self, calculator: IndicatorCalculator) -> None:
        assert calculator.ema([1.0, 2.0], 3) == []

    def test_invalid_period(self, calculator: IndicatorCalculator, make_series) -> None:
        """Test that non-positive periods are rejected."""
        with pytest.raises(InvalidParameterError):
            calculator.ema([1.0, 2.0], 0)
        with pytest.raises(ValueError):
            calculator.rsi(make_series([1.0, 2.0]), period=-1)

    # MACD

    def test_macd_lengths_and_alignment(
        self, calculator: IndicatorCalculator, make_series
    ) -> None:
        """Test MACD line, signal and histogram lengths and tail alignment."""
        closes = [100.0 + 5 * math.sin(i / 3) + i * 0.2 for i in range(40)]
        macd = calculator.macd(make_series(closes), 12, 26, 9)

        assert len(macd.macd_line) == 40 - 26 + 1
        assert len(macd.signal_line) == len(macd.macd_line) - 9 + 1
        assert len(macd.histogram) == min(len(macd.signal_line), len(macd.macd_line))

        offset = len(macd.macd_line) - len(macd.signal_line)
        for i, value in enumerate(macd.histogram):
            assert value == pytest.approx(macd.macd_line[offset + i] - macd.signal_line[i])

    def test_macd_matches_ema_difference(
        self, calculator: IndicatorCalculator, make_series
    ) -> None:
        """Test that the MACD line is the aligned fast EMA minus the slow EMA."""
        closes = [100.0 + (i % 7) * 1.5 for i in range(30)]
        macd = calculator.macd(make_series(closes), 12, 26, 9)

        fast = calculator.ema(closes, 12)[26 - 12 :]
        slow = calculator.ema(closes, 26)
        assert macd.macd_line == pytest.approx([f - s for f, s in zip(fast, slow)])

    def test_macd_without_signal(self, calculator: IndicatorCalculator, make_series) -> None:
        """Test that a short MACD line leaves the signal and histogram empty."""
        macd = calculator.macd(make_series([100.0 + i for i in range(30)]))

        assert len(macd.macd_line) == 5
        assert macd.signal_line == []
        assert macd.histogram == []

    def test_macd_insufficient_data(self, calculator: IndicatorCalculator, make_series) -> None:
        macd = calculator.macd(make_series([100.0] * 25))

        assert macd.is_empty
        assert macd.histogram == []

    def test_macd_flat_market(self, calculator: IndicatorCalculator, make_series) -> None:
        """Test that a flat market gives a zero MACD line."""
        macd = calculator.macd(make_series([100.0] * 40))

        assert all(value == pytest.approx(0.0, abs=1e-9) for value in macd.macd_line)

    def test_macd_fast_exceeds_slow(self, calculator: IndicatorCalculator, make_series) -> None:
        with pytest.raises(InvalidParameterError):
            calculator.macd(make_series([100.0] * 40), fast_period=30, slow_period=26)

    # Bollinger Bands and SMA

    def test_bollinger_known_window(self, calculator: IndicatorCalculator, make_series) -> None:
        """Test bands over a single window of 1..20."""
        bands = calculator.bollinger_bands(make_series([float(i) for i in range(1, 21)]), 20, 2.0)

        std = math.sqrt(33.25)
        assert bands.middle == pytest.approx([10.5])
        assert bands.upper == pytest.approx([10.5 + 2 * std])
        assert bands.lower == pytest.approx([10.5 - 2 * std])

    def test_bollinger_flat_market(self, calculator: IndicatorCalculator, make_series) -> None:
        """Test that a flat market collapses the bands onto the middle."""
        bands = calculator.bollinger_bands(make_series([50.0] * 25), 20, 2.0)

        assert len(bands.middle) == 6
        assert len(bands.upper) == len(bands.lower) == len(bands.middle)
        assert bands.upper == pytest.approx(bands.middle)
        assert bands.lower == pytest.approx(bands.middle)

    def test_bollinger_insufficient_data(
        self, calculator: IndicatorCalculator, make_series
    ) -> None:
        assert calculator.bollinger_bands(make_series([50.0] * 19), 20).is_empty

    def test_moving_average(self, calculator: IndicatorCalculator, make_series) -> None:
        """Test the rolling SMA."""
        sma = calculator.moving_average(make_series([1.0, 2.0, 3.0, 4.0, 5.0]), 3)

        assert sma == pytest.approx([2.0, 3.0, 4.0])
        assert calculator.moving_average(make_series([1.0, 2.0]), 3) == []

    def test_bollinger_middle_is_sma(
        self, calculator: IndicatorCalculator, trending_series: TimeSeries
    ) -> None:
        bands = calculator.bollinger_bands(trending_series, 20)
        sma = calculator.moving_average(trending_series, 20)

        assert bands.middle == pytest.approx(sma)

    # Stochastic Oscillator

    def test_stochastic_known_window(self, calculator: IndicatorCalculator, make_bars) -> None:
        """Test %K against a hand-computed window."""
        series = make_bars([(9.0, 10.0, 8.0, 9.0), (10.0, 12.0, 9.0, 11.0), (11.0, 11.0, 7.0, 10.0)])

        assert calculator.stochastic_oscillator(series, 3) == pytest.approx([60.0])

    def test_stochastic_flat_window(self, calculator: IndicatorCalculator, make_bars) -> None:
        """Test that a window with no range gives 50."""
        series = make_bars([(100.0, 100.0, 100.0, 100.0)] * 5)

        assert calculator.stochastic_oscillator(series, 3) == [50.0, 50.0, 50.0]

    def test_stochastic_insufficient_data(
        self, calculator: IndicatorCalculator, make_bars
    ) -> None:
        series = make_bars([(100.0, 101.0, 99.0, 100.0)] * 2)

        assert calculator.stochastic_oscillator(series, 3) == []

    # Snapshot

    def test_calculate_all_indicators(
        self, calculator: IndicatorCalculator, trending_series: TimeSeries
    ) -> None:
        """Test calculating all indicators with sufficient data."""
        indicators = calculator.calculate(trending_series)

        assert indicators.symbol == "BTC"
        assert indicators.timestamp == trending_series.points[-1].timestamp
        assert indicators.sma_20 is not None
        assert indicators.sma_50 is not None
        assert indicators.ema_12 is not None
        assert indicators.rsi_14 is not None
        assert indicators.macd_signal is not None
        assert indicators.bollinger_lower < indicators.bollinger_middle < indicators.bollinger_upper
        assert indicators.volume_avg_20 == pytest.approx(sum(trending_series.volumes()[-20:]) / 20)
        assert indicators.is_bullish_trend()

    def test_calculate_limited_data(self, calculator: IndicatorCalculator, make_series) -> None:
        """Test that indicators needing more data are None."""
        indicators = calculator.calculate(make_series([100.0 + i for i in range(20)]))

        assert indicators.sma_20 is not None
        assert indicators.sma_50 is None
        assert indicators.rsi_14 == 100.0
        assert indicators.macd is None
        assert indicators.is_overbought()
        assert not indicators.is_oversold()

    def test_calculate_empty_series(self, calculator: IndicatorCalculator) -> None:
        """Test that an empty series raises ValueError."""
        with pytest.raises(ValueError, match="series is empty"):
            calculator.calculate(TimeSeries(symbol="BTC"))
