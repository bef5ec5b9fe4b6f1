"""Shared utilities for PriceLens."""

from pricelens.utils.logging import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
