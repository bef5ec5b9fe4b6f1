"""
Chart structure and pattern detection.

This module provides the PatternDetector class for extracting support and
resistance levels, classifying the trend, recognizing candlestick and volume
patterns, and computing pivot points and Fibonacci retracements.
"""

from collections.abc import Sequence

from pricelens.data.models import (
    CandlestickPatterns,
    FibonacciLevels,
    PivotPoints,
    PricePoint,
    SupportResistance,
    TimeSeries,
    Trend,
    VolumePatterns,
)
from pricelens.exceptions import InvalidParameterError
from pricelens.utils.logging import get_logger

logger = get_logger(__name__, component="PatternDetector")

TREND_THRESHOLD = 0.05

FIBONACCI_RATIOS = (
    ("high", 0.0),
    ("fib_76_4", 0.236),
    ("fib_61_8", 0.382),
    ("fib_50", 0.5),
    ("fib_38_2", 0.618),
    ("fib_23_6", 0.786),
    ("low", 1.0),
)


def cluster_levels(levels: Sequence[float], tolerance: float) -> list[float]:
    """
    Merge nearby price levels.

    Levels are sorted ascending and grouped greedily: a level joins the
    current group while its relative gap to the previous level is at most
    ``tolerance``. Each group is replaced by its mean.

    Args:
        levels: Candidate price levels in any order
        tolerance: Maximum relative gap between neighbours in one group

    Returns:
        Clustered levels, ascending
    """
    if not levels:
        return []

    ordered = sorted(levels)
    clustered: list[float] = []
    group = [ordered[0]]

    for prev, level in zip(ordered, ordered[1:]):
        if level == prev or (prev > 0 and abs(level - prev) / prev <= tolerance):
            group.append(level)
        else:
            clustered.append(sum(group) / len(group))
            group = [level]

    clustered.append(sum(group) / len(group))
    return clustered


class PatternDetector:
    """
    Detect price structure and chart patterns.

    Example:
        >>> detector = PatternDetector()
        >>> levels = detector.support_resistance(series)
        >>> trend = detector.detect_trend(series, period=30)
        >>> pivots = detector.pivot_points(series)
    """

    def __init__(
        self,
        default_lookback: int = 5,
        default_tolerance: float = 0.02,
    ) -> None:
        """
        Initialize the PatternDetector.

        Args:
            default_lookback: Default window radius for local extrema
            default_tolerance: Default relative tolerance for level clustering
        """
        self._default_lookback = default_lookback
        self._default_tolerance = default_tolerance
        self._logger = logger

    def support_resistance(
        self,
        series: TimeSeries,
        lookback: int | None = None,
        tolerance: float | None = None,
    ) -> SupportResistance:
        """
        Find clustered support and resistance levels.

        A bar is a support candidate when no other bar within ``lookback``
        bars on either side has a lower low, and a resistance candidate when
        none has a higher high. Candidates are merged with ``cluster_levels``.

        Args:
            series: Price series
            lookback: Window radius (defaults to instance default_lookback)
            tolerance: Clustering tolerance (defaults to instance default_tolerance)

        Returns:
            SupportResistance; empty when the series has fewer than
            ``2 * lookback`` points
        """
        lookback = lookback if lookback is not None else self._default_lookback
        tolerance = tolerance if tolerance is not None else self._default_tolerance
        if lookback <= 0:
            raise InvalidParameterError("lookback", lookback)
        if tolerance < 0:
            raise InvalidParameterError("tolerance", tolerance, reason="must not be negative")

        if len(series) < lookback * 2:
            self._logger.debug(
                "insufficient_data_for_support_resistance",
                available=len(series),
                required=lookback * 2,
            )
            return SupportResistance()

        bars = series.sort().points
        support: list[float] = []
        resistance: list[float] = []

        for i in range(lookback, len(bars) - lookback):
            window = bars[i - lookback : i + lookback + 1]
            current = bars[i]
            if all(bar.low >= current.low for bar in window):
                support.append(current.low)
            if all(bar.high <= current.high for bar in window):
                resistance.append(current.high)

        result = SupportResistance(
            support=cluster_levels(support, tolerance),
            resistance=cluster_levels(resistance, tolerance),
        )

        self._logger.debug(
            "support_resistance_found",
            support_candidates=len(support),
            resistance_candidates=len(resistance),
            support_levels=len(result.support),
            resistance_levels=len(result.resistance),
        )

        return result

    def detect_trend(self, series: TimeSeries, period: int = 30) -> Trend:
        """
        Classify the trend over the last ``period`` closes.

        Compares the latest close with the close ``period - 1`` bars earlier:
        a change above +5% is an uptrend, below -5% a downtrend, anything in
        between sideways.

        Returns:
            Trend, INSUFFICIENT_DATA when the series has fewer than ``period`` points
        """
        if period <= 0:
            raise InvalidParameterError("period", period)

        if len(series) < period:
            return Trend.INSUFFICIENT_DATA

        prices = series.sort().closes()
        start_price = prices[-period]
        end_price = prices[-1]
        if start_price <= 0:
            return Trend.SIDEWAYS

        change = (end_price - start_price) / start_price
        if change > TREND_THRESHOLD:
            return Trend.UPTREND
        if change < -TREND_THRESHOLD:
            return Trend.DOWNTREND
        return Trend.SIDEWAYS

    def candlestick_patterns(self, series: TimeSeries) -> CandlestickPatterns:
        """
        Recognize candlestick patterns.

        Single- and two-bar patterns are checked for bars ``1 .. n-2``;
        three-bar patterns (morning/evening star) from bar 2 on. The final
        bar is treated as still forming and is not classified.

        Returns:
            CandlestickPatterns with the bar indices of each pattern; empty for
            fewer than 3 bars
        """
        found: dict[str, list[int]] = {
            "doji": [],
            "hammer": [],
            "shooting_star": [],
            "bullish_engulfing": [],
            "bearish_engulfing": [],
            "morning_star": [],
            "evening_star": [],
        }

        if len(series) < 3:
            return CandlestickPatterns()

        bars = series.sort().points

        for i in range(1, len(bars) - 1):
            prev = bars[i - 1]
            curr = bars[i]

            if _is_doji(curr):
                found["doji"].append(i)
            if _is_hammer(curr):
                found["hammer"].append(i)
            if _is_shooting_star(curr):
                found["shooting_star"].append(i)
            if _is_bullish_engulfing(prev, curr):
                found["bullish_engulfing"].append(i)
            if _is_bearish_engulfing(prev, curr):
                found["bearish_engulfing"].append(i)

            if i > 1:
                first = bars[i - 2]
                if _is_morning_star(first, prev, curr):
                    found["morning_star"].append(i)
                if _is_evening_star(first, prev, curr):
                    found["evening_star"].append(i)

        self._logger.debug(
            "candlestick_patterns_detected",
            counts={name: len(indices) for name, indices in found.items() if indices},
        )

        return CandlestickPatterns(**found)

    def volume_patterns(self, series: TimeSeries) -> VolumePatterns:
        """
        Flag unusual volume relative to the series' mean volume.

        - volume_breakout: volume above 2x mean with close up more than 2%
        - volume_selloff: volume above 2x mean with close down more than 2%
        - low_volume: volume below half the mean

        Returns:
            VolumePatterns with bar indices; empty for fewer than 20 bars
        """
        if len(series) < 20:
            return VolumePatterns()

        bars = series.sort().points
        avg_volume = sum(bar.volume for bar in bars) / len(bars)

        breakout: list[int] = []
        selloff: list[int] = []
        low_volume: list[int] = []

        for i in range(1, len(bars)):
            curr = bars[i]
            prev = bars[i - 1]

            if curr.volume > avg_volume * 2 and curr.close > prev.close * 1.02:
                breakout.append(i)
            if curr.volume > avg_volume * 2 and curr.close < prev.close * 0.98:
                selloff.append(i)
            if curr.volume < avg_volume * 0.5:
                low_volume.append(i)

        self._logger.debug(
            "volume_patterns_detected",
            avg_volume=avg_volume,
            breakouts=len(breakout),
            selloffs=len(selloff),
            low_volume=len(low_volume),
        )

        return VolumePatterns(
            volume_breakout=breakout,
            volume_selloff=selloff,
            low_volume=low_volume,
        )

    def pivot_points(self, series: TimeSeries) -> PivotPoints | None:
        """
        Calculate classic floor-trader pivots from the latest bar.

        Returns:
            PivotPoints, or None for an empty series
        """
        latest = series.latest()
        if latest is None:
            return None

        high, low, close = latest.high, latest.low, latest.close
        pivot = (high + low + close) / 3

        return PivotPoints(
            pivot=pivot,
            r1=2 * pivot - low,
            s1=2 * pivot - high,
            r2=pivot + (high - low),
            s2=pivot - (high - low),
            r3=high + 2 * (pivot - low),
            s3=low - 2 * (high - pivot),
        )

    def fibonacci_retracements(self, series: TimeSeries, period: int = 30) -> FibonacciLevels | None:
        """
        Calculate Fibonacci retracement levels over the trailing ``period`` bars.

        Each level is ``high - (high - low) * ratio``, from "high" (0.0) down
        to "low" (1.0).

        Returns:
            FibonacciLevels, or None when the series has fewer than ``period`` points
        """
        if period <= 0:
            raise InvalidParameterError("period", period)

        if len(series) < period:
            return None

        recent = series.sort().points[-period:]
        high = max(bar.high for bar in recent)
        low = min(bar.low for bar in recent)
        price_range = high - low

        return FibonacciLevels(
            **{name: high - price_range * ratio for name, ratio in FIBONACCI_RATIOS}
        )


def _is_doji(bar: PricePoint) -> bool:
    return bar.price_range > 0 and bar.body_size / bar.price_range < 0.1


def _is_hammer(bar: PricePoint) -> bool:
    body = bar.body_size
    return bar.price_range > 0 and bar.lower_shadow > 2 * body and bar.upper_shadow < body * 0.5


def _is_shooting_star(bar: PricePoint) -> bool:
    body = bar.body_size
    return bar.price_range > 0 and bar.upper_shadow > 2 * body and bar.lower_shadow < body * 0.5


def _is_bullish_engulfing(prev: PricePoint, curr: PricePoint) -> bool:
    return (
        prev.is_bearish
        and curr.is_bullish
        and curr.open < prev.close
        and curr.close > prev.open
    )


def _is_bearish_engulfing(prev: PricePoint, curr: PricePoint) -> bool:
    return (
        prev.is_bullish
        and curr.is_bearish
        and curr.open > prev.close
        and curr.close < prev.open
    )


def _is_morning_star(first: PricePoint, second: PricePoint, third: PricePoint) -> bool:
    return (
        first.is_bearish
        and second.body_size < first.body_size * 0.3
        and third.is_bullish
        and second.high < first.low
        and third.close > (first.open + first.close) / 2
    )


def _is_evening_star(first: PricePoint, second: PricePoint, third: PricePoint) -> bool:
    return (
        first.is_bullish
        and second.body_size < first.body_size * 0.3
        and third.is_bearish
        and second.low > first.high
        and third.close < (first.open + first.close) / 2
    )
