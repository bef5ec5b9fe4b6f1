"""
Technical indicator calculations.

This module provides the IndicatorCalculator class for computing RSI, EMA,
SMA, MACD, Bollinger Bands and the Stochastic Oscillator from a price series.
All indicators are computed with pandas. The recursive smoothers (RSI, EMA)
run `ewm(adjust=False)` over a series seeded with the simple mean of the
first window, so the first output equals that mean.
"""

from collections.abc import Sequence

import pandas as pd

from pricelens.data.models import BollingerBands, MACDResult, TechnicalIndicators, TimeSeries
from pricelens.exceptions import InvalidParameterError
from pricelens.utils.logging import get_logger

logger = get_logger(__name__, component="IndicatorCalculator")


def _require_positive(name: str, value: int | float) -> None:
    if value <= 0:
        raise InvalidParameterError(name, value)


def _latest(values: Sequence[float]) -> float | None:
    return float(values[-1]) if len(values) > 0 else None


def _seeded(values: pd.Series, period: int) -> pd.Series:
    """Replace the first window with its mean at index ``period - 1``, NaN before it."""
    seeded = values.astype(float).copy()
    seeded.iloc[period - 1] = values.iloc[:period].mean()
    seeded.iloc[: period - 1] = float("nan")
    return seeded


class IndicatorCalculator:
    """
    Calculate technical indicators from a price series.

    Every method returns an empty result when the series is too short for the
    requested period and raises InvalidParameterError for non-positive periods.

    Example:
        >>> calculator = IndicatorCalculator()
        >>> rsi = calculator.rsi(series, period=14)
        >>> macd = calculator.macd(series)
        >>> print(rsi[-1], macd.histogram[-1])
    """

    def __init__(self) -> None:
        """Initialize the IndicatorCalculator."""
        self._logger = logger

    def rsi(self, series: TimeSeries, period: int = 14) -> list[float]:
        """
        Calculate Wilder's Relative Strength Index of the close price.

        The average gain and loss are seeded with the simple mean over the
        first ``period`` price changes, which gives the first RSI value.
        Each later change updates them as ``(avg * (period - 1) + x) / period``.

        Args:
            series: Price series
            period: RSI period

        Returns:
            ``len(series) - period`` values in [0, 100], or an empty list if
            the series has fewer than ``period + 1`` points. RSI is 100
            whenever the average loss is 0.
        """
        _require_positive("period", period)

        if len(series) < period + 1:
            self._logger.debug("insufficient_data_for_rsi", available=len(series), period=period)
            return []

        close = series.sort().to_dataframe()["close"].reset_index(drop=True)
        changes = close.diff().iloc[1:].reset_index(drop=True)

        gains = _seeded(changes.clip(lower=0), period)
        losses = _seeded((-changes).clip(lower=0), period)
        avg_gain = gains.ewm(alpha=1.0 / period, adjust=False).mean().iloc[period - 1 :]
        avg_loss = losses.ewm(alpha=1.0 / period, adjust=False).mean().iloc[period - 1 :]

        rsi = 100.0 - 100.0 / (1.0 + avg_gain / avg_loss)
        return rsi.where(avg_loss != 0, 100.0).tolist()

    def ema(self, values: Sequence[float], period: int) -> list[float]:
        """
        Calculate the Exponential Moving Average of a sequence.

        The first value is the simple average of ``values[:period]``; after
        that ``ema = value * k + prev * (1 - k)`` with ``k = 2 / (period + 1)``.

        Args:
            values: Input sequence
            period: EMA period

        Returns:
            ``len(values) - period + 1`` values, or an empty list if the input
            is shorter than ``period``
        """
        _require_positive("period", period)

        if len(values) < period:
            return []

        seeded = _seeded(pd.Series(list(values), dtype=float), period)
        return seeded.ewm(span=period, adjust=False).mean().iloc[period - 1 :].tolist()

    def macd(
        self,
        series: TimeSeries,
        fast_period: int = 12,
        slow_period: int = 26,
        signal_period: int = 9,
    ) -> MACDResult:
        """
        Calculate Moving Average Convergence Divergence of the close price.

        The fast EMA is aligned to the slow EMA by dropping its first
        ``slow_period - fast_period`` values. The signal line is the EMA of
        the MACD line and the histogram is the MACD line's tail minus the
        signal line.

        Args:
            series: Price series
            fast_period: Fast EMA period
            slow_period: Slow EMA period
            signal_period: Signal line EMA period

        Returns:
            MACDResult; empty when the series is shorter than ``slow_period``.
            The signal line and histogram stay empty until the MACD line has
            ``signal_period`` values.
        """
        _require_positive("fast_period", fast_period)
        _require_positive("slow_period", slow_period)
        _require_positive("signal_period", signal_period)
        if fast_period > slow_period:
            raise InvalidParameterError(
                "fast_period", fast_period, reason=f"must not exceed slow_period={slow_period}"
            )

        if len(series) < slow_period:
            self._logger.debug(
                "insufficient_data_for_macd", available=len(series), slow_period=slow_period
            )
            return MACDResult()

        prices = series.sort().closes()
        fast_ema = self.ema(prices, fast_period)
        slow_ema = self.ema(prices, slow_period)

        aligned_fast = fast_ema[slow_period - fast_period :]
        macd_line = [fast - slow for fast, slow in zip(aligned_fast, slow_ema)]

        signal_line = self.ema(macd_line, signal_period)
        offset = len(macd_line) - len(signal_line)
        histogram = [macd_line[offset + i] - signal for i, signal in enumerate(signal_line)]

        return MACDResult(macd_line=macd_line, signal_line=signal_line, histogram=histogram)

    def bollinger_bands(
        self, series: TimeSeries, period: int = 20, std_dev_factor: float = 2.0
    ) -> BollingerBands:
        """
        Calculate Bollinger Bands of the close price.

        Args:
            series: Price series
            period: Rolling window length
            std_dev_factor: Band width in population standard deviations

        Returns:
            BollingerBands with one point per full window, aligned to the input
            from offset ``period - 1``; empty when the series is too short
        """
        _require_positive("period", period)

        if len(series) < period:
            self._logger.debug(
                "insufficient_data_for_bollinger", available=len(series), period=period
            )
            return BollingerBands()

        close = series.sort().to_dataframe()["close"].reset_index(drop=True)
        window = close.rolling(window=period)
        middle = window.mean().iloc[period - 1 :]
        width = window.std(ddof=0).iloc[period - 1 :] * std_dev_factor

        return BollingerBands(
            upper=(middle + width).tolist(),
            middle=middle.tolist(),
            lower=(middle - width).tolist(),
        )

    def moving_average(self, series: TimeSeries, period: int) -> list[float]:
        """Simple moving average of the close price, one value per full window."""
        _require_positive("period", period)

        if len(series) < period:
            return []

        close = series.sort().to_dataframe()["close"]
        return close.rolling(window=period).mean().iloc[period - 1 :].tolist()

    def stochastic_oscillator(self, series: TimeSeries, k_period: int = 14) -> list[float]:
        """
        Calculate the Stochastic Oscillator %K.

        %K is ``(close - lowest low) / (highest high - lowest low) * 100`` over
        the trailing ``k_period`` bars, and 50 when the window has no range.

        Returns:
            One value per full window, or an empty list if the series is too short
        """
        _require_positive("k_period", k_period)

        if len(series) < k_period:
            return []

        df = series.sort().to_dataframe()
        highest = df["high"].rolling(window=k_period).max().iloc[k_period - 1 :]
        lowest = df["low"].rolling(window=k_period).min().iloc[k_period - 1 :]
        close = df["close"].iloc[k_period - 1 :]

        values = []
        for c, hi, lo in zip(close, highest, lowest):
            spread = hi - lo
            values.append((c - lo) / spread * 100 if spread != 0 else 50.0)

        return values

    def calculate(self, series: TimeSeries) -> TechnicalIndicators:
        """
        Calculate the latest value of each standard indicator.

        Args:
            series: Price series

        Returns:
            TechnicalIndicators with the latest values. A value is None when
            the series is too short for that indicator.

        Raises:
            ValueError: If the series is empty

        Note:
            Minimum data requirements:
            - SMA-20 / Bollinger-20 / volume avg-20: 20 data points
            - SMA-50: 50 data points
            - RSI-14: 15 data points
            - MACD(12, 26, 9): 26 data points, 34 for the signal line
        """
        if not series.points:
            self._logger.warning("empty_series", symbol=series.symbol)
            raise ValueError(f"Cannot calculate indicators for {series.symbol}: series is empty")

        series.sort()
        closes = series.closes()
        volumes = series.volumes()
        timestamp = series.points[-1].timestamp

        macd = self.macd(series)
        bands = self.bollinger_bands(series)
        volume_avg = sum(volumes[-20:]) / 20 if len(volumes) >= 20 else None

        indicators = TechnicalIndicators(
            symbol=series.symbol,
            timestamp=timestamp,
            sma_20=_latest(self.moving_average(series, 20)),
            sma_50=_latest(self.moving_average(series, 50)),
            ema_12=_latest(self.ema(closes, 12)),
            ema_26=_latest(self.ema(closes, 26)),
            rsi_14=_latest(self.rsi(series, 14)),
            macd=_latest(macd.macd_line),
            macd_signal=_latest(macd.signal_line),
            macd_histogram=_latest(macd.histogram),
            bollinger_upper=_latest(bands.upper),
            bollinger_middle=_latest(bands.middle),
            bollinger_lower=_latest(bands.lower),
            stochastic_k=_latest(self.stochastic_oscillator(series, 14)),
            volume_avg_20=volume_avg,
        )

        self._logger.debug(
            "indicators_calculated",
            symbol=series.symbol,
            sma_20=indicators.sma_20,
            rsi_14=indicators.rsi_14,
            macd=indicators.macd,
        )

        return indicators
