"""Shared fixtures for PriceLens tests."""

import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta

import pytest
import structlog
from pricelens.data.models import PricePoint, TimeSeries

SeriesFactory = Callable[..., TimeSeries]


@pytest.fixture
def base_time() -> datetime:
    """Base time for test data generation."""
    return datetime(2024, 1, 1)


@pytest.fixture
def make_series(base_time: datetime) -> SeriesFactory:
    """Build a daily series from close prices.

    Each bar opens at the previous close and spans ``spread`` above and
    below its body.
    """

    def _make(
        closes: Sequence[float],
        volumes: Sequence[float] | None = None,
        symbol: str = "BTC",
        spread: float = 1.0,
    ) -> TimeSeries:
        points = []
        for i, close in enumerate(closes):
            open_price = closes[i - 1] if i > 0 else close
            points.append(
                PricePoint(
                    timestamp=base_time + timedelta(days=i),
                    open=open_price,
                    high=max(open_price, close) + spread,
                    low=min(open_price, close) - spread,
                    close=close,
                    volume=volumes[i] if volumes is not None else 1000.0,
                )
            )
        return TimeSeries(symbol=symbol, points=points)

    return _make


@pytest.fixture
def make_bars(base_time: datetime) -> Callable[[Sequence[tuple[float, float, float, float]]], TimeSeries]:
    """Build a daily series from explicit (open, high, low, close) tuples."""

    def _make(bars: Sequence[tuple[float, float, float, float]]) -> TimeSeries:
        return TimeSeries(
            symbol="BTC",
            points=[
                PricePoint(
                    timestamp=base_time + timedelta(days=i),
                    open=o,
                    high=h,
                    low=lo,
                    close=c,
                    volume=1000.0,
                )
                for i, (o, h, lo, c) in enumerate(bars)
            ],
        )

    return _make


@pytest.fixture
def trending_series(make_series: SeriesFactory) -> TimeSeries:
    """60 daily bars with an oscillating upward drift."""
    closes = [100.0 + i * 0.8 + (3.0 if i % 4 == 0 else -2.0 if i % 4 == 2 else 0.0) for i in range(60)]
    volumes = [1000.0 + (i % 5) * 100.0 for i in range(60)]
    return make_series(closes, volumes=volumes)


@pytest.fixture
def restore_logging():
    """Yield the root logger and undo any logging configuration afterwards."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level

    yield root

    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()
