"""PriceLens: technical and statistical analytics for OHLCV price series."""

from pricelens.config import Settings, load_settings
from pricelens.core.engine import AnalyticsEngine
from pricelens.data.models import Analytics, AnalysisReport, PricePoint, TimeSeries, TradingSignals
from pricelens.exceptions import ConfigError, InvalidParameterError, PriceLensError

__version__ = "0.1.0"

__all__ = [
    "AnalysisReport",
    "Analytics",
    "AnalyticsEngine",
    "ConfigError",
    "InvalidParameterError",
    "PriceLensError",
    "PricePoint",
    "Settings",
    "TimeSeries",
    "TradingSignals",
    "load_settings",
]
