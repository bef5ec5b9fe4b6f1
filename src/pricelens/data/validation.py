"""Data-quality checks for price series.

Validation reports problems for the caller to display; it never blocks
computation.
"""

from datetime import datetime, timezone

from pricelens.data.models import TimeSeries, as_aware
from pricelens.utils.logging import get_logger

logger = get_logger(__name__, component="SeriesValidator")


def validate_series(series: TimeSeries, now: datetime | None = None) -> list[str]:
    """
    Check a series for data-quality issues.

    Checks, per point in the given order: non-positive prices, inverted or
    inconsistent OHLC values, negative volume and future timestamps. Then
    flags every point whose timestamp (to the second) was already seen.

    Args:
        series: Series to check
        now: Reference time for the future-date check (defaults to the current time)

    Returns:
        Descriptive issue strings, empty when the series is clean
    """
    if not series.points:
        return ["No data points found"]

    issues: list[str] = []

    for i, point in enumerate(series.points):
        if point.open <= 0 or point.high <= 0 or point.low <= 0 or point.close <= 0:
            issues.append(f"Invalid price data at index {i}")

        if point.high < point.low:
            issues.append(f"High < Low at index {i}")
        if point.high < point.open or point.high < point.close:
            issues.append(f"High is not highest at index {i}")
        if point.low > point.open or point.low > point.close:
            issues.append(f"Low is not lowest at index {i}")

        if point.volume < 0:
            issues.append(f"Negative volume at index {i}")

        if point.timestamp > _reference_time(point.timestamp, now):
            issues.append(f"Future date at index {i}")

    seen: set[int] = set()
    for i, point in enumerate(series.points):
        key = int(as_aware(point.timestamp).timestamp())
        if key in seen:
            issues.append(f"Duplicate timestamp at index {i}")
        seen.add(key)

    if issues:
        logger.debug("validation_issues_found", symbol=series.symbol, count=len(issues))

    return issues


def _reference_time(ts: datetime, now: datetime | None) -> datetime:
    """Current time in the same naive/aware form as ``ts`` so the two compare."""
    if now is None:
        now = datetime.now(timezone.utc)
    if ts.tzinfo is None:
        return now if now.tzinfo is None else now.astimezone().replace(tzinfo=None)
    return as_aware(now)