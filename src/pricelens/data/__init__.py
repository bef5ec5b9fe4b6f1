"""Data layer: price series and analytics result models."""

from .models import (
    Analytics,
    AnalysisReport,
    BacktestResult,
    BollingerBands,
    CandlestickPatterns,
    FibonacciLevels,
    MACDResult,
    PivotPoints,
    PortfolioMetrics,
    PricePoint,
    RiskMetrics,
    Statistics,
    SupportResistance,
    TechnicalIndicators,
    TimeSeries,
    TradingSignals,
    Trend,
    VolumePatterns,
)
from .validation import validate_series

__all__ = [
    "Analytics",
    "AnalysisReport",
    "BacktestResult",
    "BollingerBands",
    "CandlestickPatterns",
    "FibonacciLevels",
    "MACDResult",
    "PivotPoints",
    "PortfolioMetrics",
    "PricePoint",
    "RiskMetrics",
    "Statistics",
    "SupportResistance",
    "TechnicalIndicators",
    "TimeSeries",
    "TradingSignals",
    "Trend",
    "VolumePatterns",
    "validate_series",
]
