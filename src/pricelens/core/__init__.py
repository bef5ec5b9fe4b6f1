"""Analytics orchestration for PriceLens."""

from pricelens.core.engine import AnalyticsEngine

__all__ = ["AnalyticsEngine"]
