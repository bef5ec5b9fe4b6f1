"""Data models for price series and analytics results."""

from dataclasses import dataclass, field, fields
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, ClassVar

import pandas as pd


def _present(record: Any, skip: tuple[str, ...] = ()) -> dict[str, Any]:
    """Collect a record's fields into a dict, leaving out absent values."""
    result = {}
    for f in fields(record):
        if f.name in skip:
            continue
        value = getattr(record, f.name)
        if value is None or (isinstance(value, list) and not value):
            continue
        result[f.name] = value
    return result


@dataclass(frozen=True)
class PricePoint:
    """OHLCV (candlestick) data point."""

    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float

    @property
    def price_range(self) -> float:
        """Calculate price range for the period."""
        return self.high - self.low

    @property
    def body_size(self) -> float:
        """Calculate candle body size."""
        return abs(self.close - self.open)

    @property
    def upper_shadow(self) -> float:
        """Distance from the top of the body to the high."""
        return self.high - max(self.open, self.close)

    @property
    def lower_shadow(self) -> float:
        """Distance from the bottom of the body to the low."""
        return min(self.open, self.close) - self.low

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        return self.close < self.open


@dataclass
class TimeSeries:
    """
    Price history for a single symbol.

    Points may arrive in any order. Order-dependent computations call
    ``sort()`` first, which is stable and idempotent.
    """

    symbol: str
    points: list[PricePoint] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.points)

    def add(self, point: PricePoint) -> None:
        """Append a price point to the series."""
        self.points.append(point)

    def sort(self) -> "TimeSeries":
        """
        Sort points ascending by timestamp in place and return the series.

        When naive and timezone-aware points are mixed, naive timestamps are
        read as local time.
        """
        zones = {p.timestamp.tzinfo is None for p in self.points}
        if len(zones) > 1:
            self.points.sort(key=lambda p: as_aware(p.timestamp))
        else:
            self.points.sort(key=lambda p: p.timestamp)
        return self

    def closes(self) -> list[float]:
        return [p.close for p in self.points]

    def highs(self) -> list[float]:
        return [p.high for p in self.points]

    def lows(self) -> list[float]:
        return [p.low for p in self.points]

    def volumes(self) -> list[float]:
        return [p.volume for p in self.points]

    def time_range(self) -> tuple[datetime, datetime] | None:
        """Return the first and last timestamps, or None for an empty series."""
        if not self.points:
            return None
        self.sort()
        return self.points[0].timestamp, self.points[-1].timestamp

    def latest(self) -> PricePoint | None:
        """Return the most recent price point, or None for an empty series."""
        if not self.points:
            return None
        self.sort()
        return self.points[-1]

    def filter_by_date_range(self, start: datetime, end: datetime) -> "TimeSeries":
        """
        Select the points whose timestamp lies within [start, end].

        Args:
            start: Inclusive lower bound
            end: Inclusive upper bound

        Returns:
            A new TimeSeries named ``<symbol>_filtered``
        """
        selected = [p for p in self.points if start <= p.timestamp <= end]
        return TimeSeries(symbol=f"{self.symbol}_filtered", points=selected)

    def resample_daily(self) -> "TimeSeries":
        """
        Aggregate the points into one bar per calendar day.

        Each daily bar takes the first open, highest high, lowest low, last
        close and summed volume of its day, stamped at midnight.

        Returns:
            A new TimeSeries named ``<symbol>_daily``
        """
        daily = TimeSeries(symbol=f"{self.symbol}_daily")
        if not self.points:
            return daily

        self.sort()
        day_bars: list[PricePoint] = []
        current_day = _truncate_to_day(self.points[0].timestamp)

        for point in self.points:
            point_day = _truncate_to_day(point.timestamp)
            if point_day == current_day:
                day_bars.append(point)
                continue
            daily.add(_aggregate_bars(day_bars, current_day))
            current_day = point_day
            day_bars = [point]

        if day_bars:
            daily.add(_aggregate_bars(day_bars, current_day))

        return daily

    def to_dataframe(self) -> pd.DataFrame:
        """
        Convert the series to a pandas DataFrame.

        Returns:
            DataFrame indexed by timestamp with columns: open, high, low, close, volume
        """
        data = {
            "timestamp": [p.timestamp for p in self.points],
            "open": [float(p.open) for p in self.points],
            "high": [float(p.high) for p in self.points],
            "low": [float(p.low) for p in self.points],
            "close": [float(p.close) for p in self.points],
            "volume": [float(p.volume) for p in self.points],
        }
        df = pd.DataFrame(data)
        df.set_index("timestamp", inplace=True)
        return df


def as_aware(ts: datetime) -> datetime:
    """Attach the local timezone to naive timestamps."""
    return ts if ts.tzinfo is not None else ts.astimezone()


def _truncate_to_day(ts: datetime) -> datetime:
    return ts.replace(hour=0, minute=0, second=0, microsecond=0)


def _aggregate_bars(bars: list[PricePoint], day: datetime) -> PricePoint:
    return PricePoint(
        timestamp=day,
        open=bars[0].open,
        high=max(b.high for b in bars),
        low=min(b.low for b in bars),
        close=bars[-1].close,
        volume=sum(b.volume for b in bars),
    )


@dataclass(frozen=True)
class Statistics:
    """Descriptive statistics of a numeric sequence (population variance)."""

    count: int
    mean: float
    median: float
    stddev: float
    min: float
    max: float
    variance: float
    skewness: float
    kurtosis: float

    @classmethod
    def empty(cls) -> "Statistics":
        """Zeroed statistics for an empty sequence."""
        return cls(
            count=0,
            mean=0.0,
            median=0.0,
            stddev=0.0,
            min=0.0,
            max=0.0,
            variance=0.0,
            skewness=0.0,
            kurtosis=0.0,
        )

    def as_dict(self) -> dict[str, Any]:
        return _present(self)


@dataclass(frozen=True)
class MACDResult:
    """
    MACD line, signal line and histogram.

    The signal line and histogram are shorter than the MACD line by
    ``signal_period - 1`` and align with its tail.
    """

    macd_line: list[float] = field(default_factory=list)
    signal_line: list[float] = field(default_factory=list)
    histogram: list[float] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.macd_line

    def as_dict(self) -> dict[str, Any]:
        return {"macd": self.macd_line, "signal": self.signal_line, "histogram": self.histogram}


@dataclass(frozen=True)
class BollingerBands:
    """Bollinger bands aligned to the input from offset ``period - 1``."""

    upper: list[float] = field(default_factory=list)
    middle: list[float] = field(default_factory=list)
    lower: list[float] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.middle

    def as_dict(self) -> dict[str, Any]:
        return {"upper": self.upper, "middle": self.middle, "lower": self.lower}


@dataclass(frozen=True)
class SupportResistance:
    """Clustered support and resistance price levels, ascending."""

    support: list[float] = field(default_factory=list)
    resistance: list[float] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.support and not self.resistance

    def as_dict(self) -> dict[str, Any]:
        return {"support_levels": self.support, "resistance_levels": self.resistance}


class Trend(str, Enum):
    """Direction classification returned by trend detection."""

    UPTREND = "uptrend"
    DOWNTREND = "downtrend"
    SIDEWAYS = "sideways"
    INSUFFICIENT_DATA = "insufficient_data"


@dataclass(frozen=True)
class CandlestickPatterns:
    """Bar indices at which each candlestick pattern was found."""

    doji: list[int] = field(default_factory=list)
    hammer: list[int] = field(default_factory=list)
    shooting_star: list[int] = field(default_factory=list)
    bullish_engulfing: list[int] = field(default_factory=list)
    bearish_engulfing: list[int] = field(default_factory=list)
    morning_star: list[int] = field(default_factory=list)
    evening_star: list[int] = field(default_factory=list)

    def as_dict(self) -> dict[str, list[int]]:
        """Patterns with at least one occurrence, keyed by pattern name."""
        return _present(self)


@dataclass(frozen=True)
class VolumePatterns:
    """Bar indices at which each volume pattern was found."""

    volume_breakout: list[int] = field(default_factory=list)
    volume_selloff: list[int] = field(default_factory=list)
    low_volume: list[int] = field(default_factory=list)

    def as_dict(self) -> dict[str, list[int]]:
        return _present(self)


@dataclass(frozen=True)
class PivotPoints:
    """Classic floor-trader pivot levels."""

    pivot: float
    r1: float
    s1: float
    r2: float
    s2: float
    r3: float
    s3: float

    def as_dict(self) -> dict[str, float]:
        return _present(self)


@dataclass(frozen=True)
class FibonacciLevels:
    """Fibonacci retracement levels, from the period high down to the low."""

    high: float
    fib_76_4: float
    fib_61_8: float
    fib_50: float
    fib_38_2: float
    fib_23_6: float
    low: float

    def as_dict(self) -> dict[str, float]:
        return _present(self)


@dataclass(frozen=True)
class RiskMetrics:
    """Risk measures over daily returns.

    ``cvar_95`` and ``sortino_ratio`` are None when they cannot be computed,
    which is distinct from a computed value of zero.
    """

    volatility_annual: float
    max_drawdown: float
    sharpe_ratio: float
    var_95: float
    var_95_annual: float
    beta_estimate: float
    cvar_95: float | None = None
    sortino_ratio: float | None = None

    def as_dict(self) -> dict[str, float]:
        return _present(self)


@dataclass(frozen=True)
class BacktestResult:
    """Outcome of a buy-and-hold simulation."""

    start_amount: float
    end_value: float
    total_return: float
    btc_purchased: float
    days_held: float
    start_price: float
    end_price: float
    annualized_return: float | None = None

    def as_dict(self) -> dict[str, float]:
        return _present(self)


@dataclass(frozen=True)
class PortfolioMetrics:
    """Backtest, risk metrics and derived performance ratios."""

    backtest: BacktestResult
    risk: RiskMetrics | None = None
    information_ratio: float | None = None

    def as_dict(self) -> dict[str, float]:
        merged = self.backtest.as_dict()
        if self.risk is not None:
            merged.update(self.risk.as_dict())
        if self.information_ratio is not None:
            merged["information_ratio"] = self.information_ratio
        return merged


@dataclass(frozen=True)
class TradingSignals:
    """Human-readable signals derived from an analytics run.

    Each value is a label starting with BUY, SELL or HOLD, or None when the
    signal could not be derived.
    """

    rsi: str | None = None
    macd: str | None = None
    bollinger: str | None = None
    trend: str | None = None
    support: str | None = None
    resistance: str | None = None

    _KEYS: ClassVar[dict[str, str]] = {
        "rsi": "RSI",
        "macd": "MACD",
        "bollinger": "Bollinger",
        "trend": "Trend",
        "support": "Support",
        "resistance": "Resistance",
    }

    def as_dict(self) -> dict[str, str]:
        """Signals keyed by their display names."""
        return {self._KEYS[name]: value for name, value in _present(self).items()}


@dataclass
class TechnicalIndicators:
    """Latest technical indicator values for a symbol."""

    symbol: str
    timestamp: datetime
    sma_20: float | None = None
    sma_50: float | None = None
    ema_12: float | None = None
    ema_26: float | None = None
    rsi_14: float | None = None
    macd: float | None = None
    macd_signal: float | None = None
    macd_histogram: float | None = None
    bollinger_upper: float | None = None
    bollinger_middle: float | None = None
    bollinger_lower: float | None = None
    stochastic_k: float | None = None
    volume_avg_20: float | None = None

    def is_oversold(self, threshold: float = 30.0) -> bool:
        """Check if RSI indicates oversold condition."""
        return self.rsi_14 is not None and self.rsi_14 < threshold

    def is_overbought(self, threshold: float = 70.0) -> bool:
        """Check if RSI indicates overbought condition."""
        return self.rsi_14 is not None and self.rsi_14 > threshold

    def is_bullish_trend(self) -> bool:
        """Check if showing bullish trend (20 SMA > 50 SMA)."""
        return self.sma_20 is not None and self.sma_50 is not None and self.sma_20 > self.sma_50


@dataclass(frozen=True)
class Analytics:
    """
    Aggregate analytics for one series.

    Every field is independently optional: None or an empty record means the
    series was too short for that computation.
    """

    price_stats: Statistics | None = None
    volume_stats: Statistics | None = None
    volatility: float | None = None
    sharpe_ratio: float | None = None
    max_drawdown: float | None = None
    returns: list[float] = field(default_factory=list)
    log_returns: list[float] = field(default_factory=list)
    rsi: list[float] = field(default_factory=list)
    macd: MACDResult = field(default_factory=MACDResult)
    bollinger_bands: BollingerBands = field(default_factory=BollingerBands)
    support_resistance: SupportResistance = field(default_factory=SupportResistance)

    def as_dict(self) -> dict[str, Any]:
        result = _present(
            self, skip=("price_stats", "volume_stats", "macd", "bollinger_bands", "support_resistance")
        )
        if self.price_stats is not None:
            result["price_stats"] = self.price_stats.as_dict()
        if self.volume_stats is not None:
            result["volume_stats"] = self.volume_stats.as_dict()
        if not self.macd.is_empty:
            result["macd"] = self.macd.as_dict()
        if not self.bollinger_bands.is_empty:
            result["bollinger_bands"] = self.bollinger_bands.as_dict()
        if not self.support_resistance.is_empty:
            result["support_resistance"] = self.support_resistance.as_dict()
        return result


@dataclass(frozen=True)
class AnalysisReport:
    """Everything a reporting collaborator needs from one analysis run."""

    symbol: str
    data_points: int
    generated_at: datetime
    analytics: Analytics
    signals: TradingSignals
    indicators: TechnicalIndicators | None
    trend: Trend
    candlestick_patterns: CandlestickPatterns
    volume_patterns: VolumePatterns
    stochastic: list[float] = field(default_factory=list)
    pivot_points: PivotPoints | None = None
    fibonacci: FibonacciLevels | None = None
    risk_metrics: RiskMetrics | None = None
    backtest: BacktestResult | None = None
    price_volume_correlation: float = 0.0
    time_range: tuple[datetime, datetime] | None = None
    issues: list[str] = field(default_factory=list)

    @property
    def duration(self) -> timedelta | None:
        """Time covered by the series."""
        if self.time_range is None:
            return None
        return self.time_range[1] - self.time_range[0]
