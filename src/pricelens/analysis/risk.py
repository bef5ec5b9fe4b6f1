"""
Risk metrics and buy-and-hold backtesting.

The RiskEngine composes the statistics primitives into volatility, Sharpe
and Sortino ratios, drawdown, VaR/CVaR and a simple backtest.
"""

import math

from pricelens.analysis import statistics
from pricelens.data.models import (
    BacktestResult,
    PortfolioMetrics,
    RiskMetrics,
    TimeSeries,
    as_aware,
)
from pricelens.exceptions import InvalidParameterError
from pricelens.utils.logging import get_logger

logger = get_logger(__name__, component="RiskEngine")

# One-sided 95% z-score for parametric VaR
VAR_95_Z = 1.645
SECONDS_PER_DAY = 86400.0


class RiskEngine:
    """
    Calculate risk metrics and backtests for a price series.

    Example:
        >>> engine = RiskEngine()
        >>> metrics = engine.risk_metrics(series)
        >>> result = engine.backtest(series, start_amount=10_000)
    """

    def __init__(
        self,
        periods_per_year: int = 365,
        risk_free_rate: float = 0.0,
        min_points: int = 30,
        market_volatility: float = 0.16,
    ) -> None:
        """
        Initialize the RiskEngine.

        Args:
            periods_per_year: Return periods per year used for annualizing
            risk_free_rate: Annual risk-free rate for the Sharpe ratio
            min_points: Minimum series length for risk metrics
            market_volatility: Assumed market volatility for the beta estimate
        """
        if periods_per_year <= 0:
            raise InvalidParameterError("periods_per_year", periods_per_year)
        if market_volatility <= 0:
            raise InvalidParameterError("market_volatility", market_volatility)

        self.periods_per_year = periods_per_year
        self.risk_free_rate = risk_free_rate
        self.min_points = min_points
        self.market_volatility = market_volatility
        self._logger = logger

    def risk_metrics(self, series: TimeSeries) -> RiskMetrics | None:
        """
        Calculate risk metrics from daily close-to-close returns.

        Args:
            series: Price series

        Returns:
            RiskMetrics, or None when the series has fewer than ``min_points``
            points. ``sortino_ratio`` is None when no return is negative (or
            the negative returns have no dispersion); ``cvar_95`` is the mean
            of the worst 5% of returns, including the 5th-percentile element.
        """
        if len(series) < self.min_points:
            self._logger.debug(
                "insufficient_data_for_risk_metrics",
                available=len(series),
                required=self.min_points,
            )
            return None

        simple_returns, _ = statistics.returns(series)
        if not simple_returns:
            return None

        periods = self.periods_per_year
        annual_factor = math.sqrt(periods)

        volatility = statistics.annualized_volatility(simple_returns, periods)
        return_stats = statistics.describe(simple_returns)
        var_95 = return_stats.mean - VAR_95_Z * return_stats.stddev

        ordered = sorted(simple_returns)
        tail_index = int(0.05 * len(ordered))
        tail = ordered[: tail_index + 1]
        cvar_95 = sum(tail) / len(tail)

        sortino: float | None = None
        downside = [r for r in simple_returns if r < 0]
        if downside:
            downside_deviation = statistics.describe(downside).stddev * annual_factor
            if downside_deviation > 0:
                sortino = (return_stats.mean * periods) / downside_deviation

        metrics = RiskMetrics(
            volatility_annual=volatility,
            max_drawdown=statistics.max_drawdown(series),
            sharpe_ratio=statistics.sharpe_ratio(simple_returns, self.risk_free_rate, periods),
            var_95=var_95,
            var_95_annual=var_95 * annual_factor,
            beta_estimate=volatility / self.market_volatility,
            cvar_95=cvar_95,
            sortino_ratio=sortino,
        )

        self._logger.debug(
            "risk_metrics_calculated",
            symbol=series.symbol,
            volatility=metrics.volatility_annual,
            sharpe_ratio=metrics.sharpe_ratio,
            max_drawdown=metrics.max_drawdown,
        )

        return metrics

    def backtest(self, series: TimeSeries, start_amount: float) -> BacktestResult | None:
        """
        Simulate buying at the first close and holding until the last close.

        The annualized return compounds the total return over the actual
        elapsed time: ``(1 + total_return) ** (365 / days) - 1``.

        Args:
            series: Price series
            start_amount: Amount invested at the first close

        Returns:
            BacktestResult, or None for fewer than 2 points or a non-positive
            first close. ``annualized_return`` is None when no time elapsed or
            the position ends at or below zero.

        Raises:
            InvalidParameterError: If start_amount is not positive
        """
        if start_amount <= 0:
            raise InvalidParameterError("start_amount", start_amount)

        if len(series) < 2:
            return None

        bars = series.sort().points
        first, last = bars[0], bars[-1]
        start_price = first.close
        end_price = last.close

        if start_price <= 0:
            self._logger.warning("non_positive_start_price", symbol=series.symbol, price=start_price)
            return None

        units = start_amount / start_price
        end_value = units * end_price
        total_return = (end_value - start_amount) / start_amount

        start, end = first.timestamp, last.timestamp
        if (start.tzinfo is None) != (end.tzinfo is None):
            start, end = as_aware(start), as_aware(end)
        elapsed = end - start
        days = elapsed.total_seconds() / SECONDS_PER_DAY
        annualized: float | None = None
        if days > 0 and 1 + total_return <= 0:
            self._logger.warning(
                "non_positive_end_value", symbol=series.symbol, end_price=end_price
            )
        elif days > 0:
            try:
                annualized = (1 + total_return) ** (365 / days) - 1
            except OverflowError:
                self._logger.warning("annualized_return_overflow", symbol=series.symbol, days=days)

        result = BacktestResult(
            start_amount=start_amount,
            end_value=end_value,
            total_return=total_return,
            btc_purchased=units,
            days_held=days,
            start_price=start_price,
            end_price=end_price,
            annualized_return=annualized,
        )

        self._logger.debug(
            "backtest_complete",
            symbol=series.symbol,
            total_return=total_return,
            days_held=days,
        )

        return result

    def portfolio_metrics(
        self, series: TimeSeries, initial_investment: float
    ) -> PortfolioMetrics | None:
        """
        Combine the backtest with risk metrics and an information ratio.

        The information ratio is the annualized return divided by the
        annualized volatility, when both exist and volatility is positive.

        Returns:
            PortfolioMetrics, or None when the backtest cannot run
        """
        backtest = self.backtest(series, initial_investment)
        if backtest is None:
            return None

        risk = self.risk_metrics(series)

        information_ratio: float | None = None
        if (
            risk is not None
            and risk.volatility_annual > 0
            and backtest.annualized_return is not None
        ):
            information_ratio = backtest.annualized_return / risk.volatility_annual

        return PortfolioMetrics(backtest=backtest, risk=risk, information_ratio=information_ratio)
