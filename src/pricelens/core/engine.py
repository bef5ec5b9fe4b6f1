"""Analytics engine orchestrating a full analysis run.

This module provides the AnalyticsEngine class, the single entry point that
sequences statistics, indicators, pattern detection and risk computations
over a price series and derives trading signals from the result.
"""

from datetime import datetime
from pathlib import Path

from pricelens.analysis import statistics
from pricelens.analysis.indicators import IndicatorCalculator
from pricelens.analysis.patterns import PatternDetector
from pricelens.analysis.risk import RiskEngine
from pricelens.config import Settings, load_settings
from pricelens.data.models import (
    AnalysisReport,
    Analytics,
    PortfolioMetrics,
    TimeSeries,
    TradingSignals,
    Trend,
)
from pricelens.data.validation import validate_series
from pricelens.utils.logging import get_logger, setup_logging

logger = get_logger(__name__, component="AnalyticsEngine")


class AnalyticsEngine:
    """
    Run the analytics pipeline over a price series.

    Each computation only runs once the series reaches its length threshold;
    anything below a threshold is left empty in the result instead of raising.

    Example:
        >>> engine = AnalyticsEngine()
        >>> analytics = engine.analyze(series)
        >>> signals = engine.trading_signals(series, analytics)
        >>> print(signals.as_dict())
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """
        Initialize the AnalyticsEngine.

        Args:
            settings: Engine settings (defaults to environment-derived Settings)
        """
        self.settings = settings if settings is not None else Settings()

        risk = self.settings.risk
        self.indicator_calc = IndicatorCalculator()
        self.pattern_detector = PatternDetector(
            default_lookback=self.settings.patterns.support_resistance_lookback,
            default_tolerance=self.settings.patterns.support_resistance_tolerance,
        )
        self.risk_engine = RiskEngine(
            periods_per_year=risk.periods_per_year,
            risk_free_rate=risk.risk_free_rate,
            min_points=risk.min_points,
            market_volatility=risk.market_volatility,
        )
        self._logger = logger

    @classmethod
    def from_config(cls, path: str | Path | None = None) -> "AnalyticsEngine":
        """
        Build an engine from settings and configure logging to match.

        Args:
            path: Optional YAML settings file layered over the environment

        Returns:
            AnalyticsEngine using the loaded settings

        Raises:
            ConfigError: If the settings file cannot be loaded
        """
        settings = load_settings(path)
        setup_logging(level=settings.log_level, json_output=settings.log_json)
        logger.info("engine_configured", settings_file=str(path) if path else None)
        return cls(settings)

    def analyze(self, series: TimeSeries) -> Analytics:
        """
        Compute the aggregate analytics for a series.

        Args:
            series: Price series, sorted in place by timestamp

        Returns:
            Analytics; fully empty for fewer than ``thresholds.basic`` points
        """
        thresholds = self.settings.thresholds
        periods = self.settings.risk.periods_per_year

        count = len(series)
        if count < thresholds.basic:
            self._logger.info("insufficient_data_for_analysis", symbol=series.symbol, count=count)
            return Analytics()

        series.sort()
        price_stats = statistics.describe(series.closes())
        volume_stats = statistics.describe(series.volumes())
        simple_returns, log_returns = statistics.returns(series)

        volatility = sharpe = drawdown = None
        if simple_returns:
            volatility = statistics.annualized_volatility(simple_returns, periods)
            sharpe = statistics.sharpe_ratio(
                simple_returns, self.settings.risk.risk_free_rate, periods
            )
            drawdown = statistics.max_drawdown(series)

        analytics = Analytics(
            price_stats=price_stats,
            volume_stats=volume_stats,
            volatility=volatility,
            sharpe_ratio=sharpe,
            max_drawdown=drawdown,
            returns=simple_returns,
            log_returns=log_returns,
            **self._technical(series),
        )

        self._logger.info(
            "analysis_complete",
            symbol=series.symbol,
            data_points=count,
            rsi_values=len(analytics.rsi),
            macd_values=len(analytics.macd.macd_line),
            support_levels=len(analytics.support_resistance.support),
            resistance_levels=len(analytics.support_resistance.resistance),
        )

        return analytics

    def _technical(self, series: TimeSeries) -> dict:
        """Indicators and levels whose length threshold the series meets."""
        thresholds = self.settings.thresholds
        ind = self.settings.indicators
        count = len(series)
        results: dict = {}

        if count >= thresholds.rsi:
            results["rsi"] = self.indicator_calc.rsi(series, ind.rsi_period)
        if count >= thresholds.macd:
            results["macd"] = self.indicator_calc.macd(
                series, ind.macd_fast, ind.macd_slow, ind.macd_signal
            )
        if count >= thresholds.bollinger:
            results["bollinger_bands"] = self.indicator_calc.bollinger_bands(
                series, ind.bollinger_period, ind.bollinger_std
            )
        if count >= thresholds.support_resistance:
            results["support_resistance"] = self.pattern_detector.support_resistance(series)

        return results

    def trading_signals(self, series: TimeSeries, analytics: Analytics) -> TradingSignals:
        """
        Derive human-readable trading signals.

        Args:
            series: The analysed price series (its latest close is used)
            analytics: Result of ``analyze`` for the same series

        Returns:
            TradingSignals; a signal is None when its inputs are absent
        """
        cfg = self.settings.signals
        latest = series.latest()
        latest_close = latest.close if latest is not None else None

        rsi_signal = None
        if analytics.rsi:
            latest_rsi = analytics.rsi[-1]
            if latest_rsi > cfg.rsi_overbought:
                rsi_signal = "SELL - Overbought"
            elif latest_rsi < cfg.rsi_oversold:
                rsi_signal = "BUY - Oversold"
            else:
                rsi_signal = "HOLD - Neutral"

        macd_signal = None
        macd = analytics.macd
        if len(macd.macd_line) > 1 and len(macd.signal_line) > 1:
            prev_macd, latest_macd = macd.macd_line[-2], macd.macd_line[-1]
            prev_signal, latest_signal = macd.signal_line[-2], macd.signal_line[-1]

            if prev_macd <= prev_signal and latest_macd > latest_signal:
                macd_signal = "BUY - Bullish crossover"
            elif prev_macd >= prev_signal and latest_macd < latest_signal:
                macd_signal = "SELL - Bearish crossover"
            elif latest_macd > latest_signal:
                macd_signal = "HOLD - Bullish"
            else:
                macd_signal = "HOLD - Bearish"

        bollinger_signal = None
        bands = analytics.bollinger_bands
        if bands.upper and latest_close is not None:
            if latest_close > bands.upper[-1]:
                bollinger_signal = "SELL - Price above upper band"
            elif latest_close < bands.lower[-1]:
                bollinger_signal = "BUY - Price below lower band"
            else:
                bollinger_signal = "HOLD - Price in normal range"

        trend = self.pattern_detector.detect_trend(series, self.settings.patterns.trend_period)
        if trend is Trend.UPTREND:
            trend_signal = "BUY - Uptrend detected"
        elif trend is Trend.DOWNTREND:
            trend_signal = "SELL - Downtrend detected"
        else:
            trend_signal = "HOLD - Sideways movement"

        support_signal = resistance_signal = None
        levels = analytics.support_resistance
        if latest_close is not None:
            if self._near_any(latest_close, levels.support, cfg.level_proximity):
                support_signal = "BUY - Near support level"
            if self._near_any(latest_close, levels.resistance, cfg.level_proximity):
                resistance_signal = "SELL - Near resistance level"

        return TradingSignals(
            rsi=rsi_signal,
            macd=macd_signal,
            bollinger=bollinger_signal,
            trend=trend_signal,
            support=support_signal,
            resistance=resistance_signal,
        )

    @staticmethod
    def _near_any(price: float, levels: list[float], proximity: float) -> bool:
        return any(level > 0 and abs(price - level) / level < proximity for level in levels)

    def portfolio_metrics(
        self, series: TimeSeries, initial_investment: float | None = None
    ) -> PortfolioMetrics | None:
        """Backtest plus risk metrics; see ``RiskEngine.portfolio_metrics``."""
        amount = (
            initial_investment
            if initial_investment is not None
            else self.settings.risk.initial_investment
        )
        return self.risk_engine.portfolio_metrics(series, amount)

    def run(self, series: TimeSeries) -> AnalysisReport:
        """
        Run every analysis over the series and collect the results.

        Data-quality issues are logged as warnings and included in the report;
        they never stop the run.

        Args:
            series: Price series

        Returns:
            AnalysisReport for reporting collaborators
        """
        issues = validate_series(series)
        for issue in issues:
            self._logger.warning("data_quality_issue", symbol=series.symbol, issue=issue)

        series.sort()
        analytics = self.analyze(series)
        signals = self.trading_signals(series, analytics)
        patterns = self.settings.patterns

        report = AnalysisReport(
            symbol=series.symbol,
            data_points=len(series),
            generated_at=datetime.now(),
            analytics=analytics,
            signals=signals,
            indicators=self.indicator_calc.calculate(series) if len(series) > 0 else None,
            trend=self.pattern_detector.detect_trend(series, patterns.trend_period),
            candlestick_patterns=self.pattern_detector.candlestick_patterns(series),
            volume_patterns=self.pattern_detector.volume_patterns(series),
            stochastic=self.indicator_calc.stochastic_oscillator(
                series, self.settings.indicators.stochastic_period
            ),
            pivot_points=self.pattern_detector.pivot_points(series),
            fibonacci=self.pattern_detector.fibonacci_retracements(
                series, patterns.fibonacci_period
            ),
            risk_metrics=self.risk_engine.risk_metrics(series),
            backtest=self.risk_engine.backtest(series, self.settings.risk.initial_investment),
            price_volume_correlation=statistics.correlation(series.closes(), series.volumes()),
            time_range=series.time_range(),
            issues=issues,
        )

        self._logger.info(
            "run_complete",
            symbol=series.symbol,
            data_points=report.data_points,
            trend=report.trend.value,
            signals=len(signals.as_dict()),
            issues=len(issues),
        )

        return report
