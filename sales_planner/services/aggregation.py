"""
Activity aggregation service for the Sales Planner backend.

Every downstream component (rate resolution, funnel sizing, remaining-month
distribution, diagnostics) reads its history through the helpers in this
module: a set of window filters over the daily activity log and a single
aggregator that collapses any selection of rows into one summed record.

Key Functions:
- aggregate_records: Sum count fields, average wellbeing scores
- filter_month: Rows belonging to a YYYY-MM month (string prefix match)
- filter_since: Rows on or after a cutoff date
- filter_last_days: Rows inside a trailing window of N days ending today
- filter_by_period: Dashboard period selection (today, week, month, custom, all)
- month_key / parse_month_key: YYYY-MM helpers

Aggregation Rules:
- Count fields are summed, so aggregation is additive over disjoint partitions
- energy/focus/confidence are arithmetic means rounded half-up
- calls_total is never summed; it is recomputed from the aggregated outcomes
- Empty input yields an all-zero record labelled "N/A"
"""

import math
from datetime import date, timedelta
from typing import Iterable, List, Optional, Tuple

from sales_planner.models.enums import Period
from sales_planner.models.schemas import (
    COUNT_FIELDS,
    WELLBEING_FIELDS,
    DailyActivityRecord,
)


EMPTY_AGGREGATE_LABEL = "N/A"
AGGREGATE_LABEL = "AGGREGATE"


# =============================================================================
# Month Keys
# =============================================================================


def month_key(d: date) -> str:
    """Return the YYYY-MM key for a date."""
    return f"{d.year:04d}-{d.month:02d}"


def parse_month_key(key: str) -> Tuple[int, int]:
    """
    Parse a YYYY-MM month key.

    Args:
        key: Month key string.

    Returns:
        (year, month) tuple.

    Raises:
        ValueError: If the key is not a valid YYYY-MM string.
    """
    parts = key.split('-')
    if len(parts) != 2 or len(parts[0]) != 4 or len(parts[1]) != 2:
        raise ValueError(f"Invalid month key: {key!r}")
    year, month = int(parts[0]), int(parts[1])
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month in key: {key!r}")
    return year, month


# =============================================================================
# Aggregation
# =============================================================================


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def aggregate_records(records: Iterable[DailyActivityRecord]) -> DailyActivityRecord:
    """
    Collapse a selection of daily records into a single summed record.

    Args:
        records: Any iterable of daily records (not mutated).

    Returns:
        DailyActivityRecord whose count fields are sums and whose wellbeing
        fields are half-up rounded means. An empty selection returns an
        all-zero record dated "N/A".
    """
    rows = list(records)
    if not rows:
        return DailyActivityRecord(date=EMPTY_AGGREGATE_LABEL)

    totals = {name: 0 for name in COUNT_FIELDS}
    for row in rows:
        for name in COUNT_FIELDS:
            totals[name] += getattr(row, name)

    for name in WELLBEING_FIELDS:
        mean = sum(getattr(row, name) for row in rows) / len(rows)
        totals[name] = _round_half_up(mean)

    return DailyActivityRecord(date=AGGREGATE_LABEL, **totals)


# =============================================================================
# Window Filters
# =============================================================================


def filter_month(records: Iterable[DailyActivityRecord], key: str) -> List[DailyActivityRecord]:
    """Rows whose date string starts with the given YYYY-MM key."""
    prefix = f"{key}-"
    return [r for r in records if r.date.startswith(prefix)]


def filter_since(records: Iterable[DailyActivityRecord], cutoff: date) -> List[DailyActivityRecord]:
    """Rows dated on or after cutoff (ISO dates compare lexicographically)."""
    cutoff_str = cutoff.isoformat()
    return [r for r in records if r.date >= cutoff_str]


def filter_last_days(
    records: Iterable[DailyActivityRecord],
    today: date,
    days: int
) -> List[DailyActivityRecord]:
    """Rows inside the N-day window ending today; the row dated today-N is outside."""
    return filter_since(records, today - timedelta(days=days - 1))


def filter_between(
    records: Iterable[DailyActivityRecord],
    start: date,
    end: date
) -> List[DailyActivityRecord]:
    """Rows dated within [start, end], both inclusive."""
    start_str, end_str = start.isoformat(), end.isoformat()
    return [r for r in records if start_str <= r.date <= end_str]


def filter_by_period(
    records: Iterable[DailyActivityRecord],
    period: Period,
    today: date,
    start: Optional[date] = None,
    end: Optional[date] = None
) -> List[DailyActivityRecord]:
    """
    Select the rows shown for a dashboard period.

    Args:
        records: Full activity history.
        period: today, week (Monday to today), month (calendar month to date),
            custom (start..end inclusive) or all.
        today: Civil date the period is anchored to.
        start: Custom period start.
        end: Custom period end.

    Returns:
        Filtered list of rows. A custom period missing either bound returns
        every row.
    """
    period = Period(period)
    if period == Period.TODAY:
        today_str = today.isoformat()
        return [r for r in records if r.date == today_str]
    if period == Period.WEEK:
        monday = today - timedelta(days=today.weekday())
        return filter_between(records, monday, today)
    if period == Period.MONTH:
        return filter_month(records, month_key(today))
    if period == Period.CUSTOM and start is not None and end is not None:
        return filter_between(records, start, end)
    return list(records)
