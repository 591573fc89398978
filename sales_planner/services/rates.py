"""
Multi-horizon rate resolution service for the Sales Planner backend.

Resolves the conversion rates used to size a monthly plan. Each rate is read
from the most specific historical window that holds enough evidence, falling
back through progressively wider windows and finally to a fixed default. The
window that produced each value is returned alongside it.

Key Functions:
- resolve_planning_context: Resolve every product's win/show rate and the
  global attempts-per-win from the full activity history
- resolve_show_rate / resolve_win_rate: Per-product resolution
- resolve_attempts_per_win: Global outreach attempts needed per won contract

Window Priority (most specific first):
- MTD: rows in today's calendar month
- 60d: rows dated on or after today - 60 days
- 90d: rows dated on or after today - 90 days
- All Time: the full history
- Standard: configured default

Qualification Thresholds:
- show_rate: MTD/60d/90d need booked > 0 and done > 0; All Time needs booked > 0
- win_rate: MTD won >= 1; 60d won >= 2 or done >= 5; 90d won >= 2 or done >= 8;
  All Time done >= 5
- attempts_per_win: MTD won >= 1; 60d won >= 3; 90d won >= 5; All Time won >= 5

Sanity Clamps:
- win_rate <= 1.0
- show_rate <= 1.5 (same-period bookings may lag completed appointments)
"""

import logging
from datetime import date
from typing import Callable, Dict, List, Tuple

from sales_planner.core.config import get_settings
from sales_planner.models.enums import Product, RateSource
from sales_planner.models.schemas import (
    DailyActivityRecord,
    PlanningContext,
    ProductRates,
    RateDetail,
)
from sales_planner.services.aggregation import (
    aggregate_records,
    filter_last_days,
    filter_month,
    month_key,
)

logger = logging.getLogger(__name__)


MAX_WIN_RATE: float = 1.0
MAX_SHOW_RATE: float = 1.5

# Window lengths in days for the rolling horizons
ROLLING_60_DAYS: int = 60
ROLLING_90_DAYS: int = 90

# (source, aggregate) pairs in priority order
WindowList = List[Tuple[RateSource, DailyActivityRecord]]


def safe_div(numerator: float, denominator: float, fallback: float = 0.0) -> float:
    """Divide, returning fallback when the denominator is zero."""
    if denominator == 0:
        return fallback
    return numerator / denominator


def default_win_rate(product: Product) -> float:
    """Configured fallback win rate for a product line."""
    settings = get_settings()
    return {
        Product.LA: settings.default_win_rate_la,
        Product.FV: settings.default_win_rate_fv,
        Product.CAD: settings.default_win_rate_cad,
    }[Product(product)]


# =============================================================================
# Window Construction
# =============================================================================


def build_windows(records: List[DailyActivityRecord], today: date) -> WindowList:
    """
    Aggregate the four historical windows anchored at today.

    Args:
        records: Full activity history.
        today: Civil date the windows end at.

    Returns:
        List of (source, aggregate) in priority order MTD, 60d, 90d, All Time.
    """
    mtd = filter_month(records, month_key(today))
    last_60 = filter_last_days(records, today, ROLLING_60_DAYS)
    last_90 = filter_last_days(records, today, ROLLING_90_DAYS)

    return [
        (RateSource.MTD, aggregate_records(mtd)),
        (RateSource.DAYS_60, aggregate_records(last_60)),
        (RateSource.DAYS_90, aggregate_records(last_90)),
        (RateSource.ALL_TIME, aggregate_records(records)),
    ]


def _first_qualifying(
    windows: WindowList,
    qualifies: Dict[RateSource, Callable[[DailyActivityRecord], bool]],
    value: Callable[[DailyActivityRecord], float],
    default: float
) -> RateDetail:
    for source, agg in windows:
        if qualifies[source](agg):
            return RateDetail(value=value(agg), source=source)
    return RateDetail(value=default, source=RateSource.STANDARD)


# =============================================================================
# Rate Resolution
# =============================================================================


def resolve_show_rate(windows: WindowList, product: Product) -> RateDetail:
    """
    Resolve done/booked for one product line.

    The narrow windows need both bookings and completions; All Time accepts
    bookings alone, so a history of no-shows resolves to 0.0 there.
    """
    default = get_settings().default_show_rate

    def has_both(agg: DailyActivityRecord) -> bool:
        return agg.booked(product) > 0 and agg.done(product) > 0

    detail = _first_qualifying(
        windows,
        {
            RateSource.MTD: has_both,
            RateSource.DAYS_60: has_both,
            RateSource.DAYS_90: has_both,
            RateSource.ALL_TIME: lambda agg: agg.booked(product) > 0,
        },
        lambda agg: safe_div(agg.done(product), agg.booked(product), default),
        default,
    )
    return RateDetail(value=min(MAX_SHOW_RATE, detail.value), source=detail.source)


def resolve_win_rate(windows: WindowList, product: Product) -> RateDetail:
    """Resolve won/done for one product line."""
    default = default_win_rate(product)

    detail = _first_qualifying(
        windows,
        {
            RateSource.MTD: lambda agg: agg.won(product) >= 1,
            RateSource.DAYS_60: lambda agg: agg.won(product) >= 2 or agg.done(product) >= 5,
            RateSource.DAYS_90: lambda agg: agg.won(product) >= 2 or agg.done(product) >= 8,
            RateSource.ALL_TIME: lambda agg: agg.done(product) >= 5,
        },
        # A qualifying MTD window can hold won >= 1 with done == 0
        lambda agg: safe_div(agg.won(product), agg.done(product), default),
        default,
    )
    return RateDetail(value=min(MAX_WIN_RATE, detail.value), source=detail.source)


def resolve_attempts_per_win(windows: WindowList) -> RateDetail:
    """Resolve attempts / won over all product lines."""
    default = get_settings().default_attempts_per_win

    return _first_qualifying(
        windows,
        {
            RateSource.MTD: lambda agg: agg.won_total >= 1,
            RateSource.DAYS_60: lambda agg: agg.won_total >= 3,
            RateSource.DAYS_90: lambda agg: agg.won_total >= 5,
            RateSource.ALL_TIME: lambda agg: agg.won_total >= 5,
        },
        lambda agg: safe_div(agg.attempts, agg.won_total, default),
        default,
    )


def resolve_planning_context(
    records: List[DailyActivityRecord],
    today: date
) -> PlanningContext:
    """
    Resolve every planning rate from the full activity history.

    Args:
        records: Full activity history for one user (not mutated).
        today: Civil date anchoring the MTD and rolling windows.

    Returns:
        PlanningContext with per-product win/show rates, the global
        attempts-per-win, and the four window aggregates under `windows`.
    """
    windows = build_windows(records, today)

    per_product = {
        product.value: ProductRates(
            win_rate=resolve_win_rate(windows, product),
            show_rate=resolve_show_rate(windows, product),
        )
        for product in Product
    }
    attempts_per_win = resolve_attempts_per_win(windows)

    logger.debug(
        f"Resolved planning context for {len(records)} rows as of {today}: "
        f"attempts_per_win={attempts_per_win.value:.1f} ({attempts_per_win.source.value})"
    )

    return PlanningContext(
        attempts_per_win=attempts_per_win,
        windows={source.value: agg for source, agg in windows},
        **per_product,
    )
