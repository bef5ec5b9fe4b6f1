"""
Technical analysis module for PriceLens.

This module provides descriptive statistics, technical indicators, chart
pattern detection and risk metrics over OHLCV price series.
"""

from pricelens.analysis import statistics
from pricelens.analysis.indicators import IndicatorCalculator
from pricelens.analysis.patterns import PatternDetector, cluster_levels
from pricelens.analysis.risk import RiskEngine

__all__ = ["IndicatorCalculator", "PatternDetector", "RiskEngine", "cluster_levels", "statistics"]
