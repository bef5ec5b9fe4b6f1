"""
Descriptive statistics and return/risk primitives.

All functions are pure and degrade to zeroed or empty results on
insufficient input instead of raising.
"""

import math
from collections.abc import Sequence

from pricelens.data.models import Statistics, TimeSeries
from pricelens.utils.logging import get_logger

logger = get_logger(__name__, component="Statistics")


def describe(values: Sequence[float]) -> Statistics:
    """
    Compute descriptive statistics for a numeric sequence.

    Variance and standard deviation use the population formula. Skewness
    and excess kurtosis are 0 when the standard deviation is 0.

    Args:
        values: Numeric sequence

    Returns:
        Statistics, zeroed when ``values`` is empty
    """
    n = len(values)
    if n == 0:
        return Statistics.empty()

    ordered = sorted(values)
    mean = sum(values) / n

    if n % 2 == 0:
        median = (ordered[n // 2 - 1] + ordered[n // 2]) / 2
    else:
        median = ordered[n // 2]

    sum_sq = 0.0
    sum_cube = 0.0
    sum_quad = 0.0
    for v in values:
        d = v - mean
        sum_sq += d * d
        sum_cube += d * d * d
        sum_quad += d * d * d * d

    variance = sum_sq / n
    stddev = math.sqrt(variance)

    skewness = 0.0
    kurtosis = 0.0
    if stddev > 0:
        skewness = (sum_cube / n) / stddev**3
        kurtosis = (sum_quad / n) / stddev**4 - 3

    return Statistics(
        count=n,
        mean=mean,
        median=median,
        stddev=stddev,
        min=ordered[0],
        max=ordered[-1],
        variance=variance,
        skewness=skewness,
        kurtosis=kurtosis,
    )


def returns(series: TimeSeries) -> tuple[list[float], list[float]]:
    """
    Calculate close-to-close simple and natural-log returns.

    Args:
        series: Price series (sorted in place if needed)

    Returns:
        (simple, log) lists of ``len(series) - 1`` values each, or two empty
        lists for fewer than 2 points. A return whose previous close is not
        positive is left at 0.0.
    """
    if len(series) < 2:
        return [], []

    prices = series.sort().closes()
    simple = [0.0] * (len(prices) - 1)
    log = [0.0] * (len(prices) - 1)

    for i in range(1, len(prices)):
        prev_price = prices[i - 1]
        curr_price = prices[i]
        if prev_price > 0:
            simple[i - 1] = (curr_price - prev_price) / prev_price
            if curr_price > 0:
                log[i - 1] = math.log(curr_price / prev_price)
        else:
            logger.debug("non_positive_price_skipped", symbol=series.symbol, index=i - 1)

    return simple, log


def annualized_volatility(values: Sequence[float], periods_per_year: int) -> float:
    """Standard deviation of returns scaled by ``sqrt(periods_per_year)``; 0 when empty."""
    if not values:
        return 0.0
    return describe(values).stddev * math.sqrt(periods_per_year)


def max_drawdown(series: TimeSeries) -> float:
    """
    Largest peak-to-trough decline of the close price, as a fraction of the peak.

    Returns:
        Maximum drawdown in [0, 1]; 0 for an empty or never-declining series
    """
    prices = series.sort().closes()
    if not prices:
        return 0.0

    worst = 0.0
    peak = prices[0]
    for price in prices:
        if price > peak:
            peak = price
        if peak > 0:
            drawdown = (peak - price) / peak
            if drawdown > worst:
                worst = drawdown

    return worst


def sharpe_ratio(values: Sequence[float], risk_free_rate: float, periods_per_year: int) -> float:
    """
    Annualized Sharpe ratio of a return sequence.

    Args:
        values: Per-period returns
        risk_free_rate: Annual risk-free rate
        periods_per_year: Number of return periods in a year

    Returns:
        Sharpe ratio, 0 when empty or when returns have no dispersion
    """
    if not values:
        return 0.0

    stats = describe(values)
    if stats.stddev == 0:
        return 0.0

    annual_return = stats.mean * periods_per_year
    annual_volatility = stats.stddev * math.sqrt(periods_per_year)
    return (annual_return - risk_free_rate) / annual_volatility


def correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson correlation; 0 when lengths differ, inputs are empty or either side is constant."""
    if len(x) != len(y) or not x:
        return 0.0

    n = len(x)
    sum_x = sum_y = sum_xy = sum_x2 = sum_y2 = 0.0
    for a, b in zip(x, y):
        sum_x += a
        sum_y += b
        sum_xy += a * b
        sum_x2 += a * a
        sum_y2 += b * b

    numerator = n * sum_xy - sum_x * sum_y
    spread = (n * sum_x2 - sum_x * sum_x) * (n * sum_y2 - sum_y * sum_y)
    if spread <= 0:
        return 0.0

    return numerator / math.sqrt(spread)
