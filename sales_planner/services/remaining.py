"""
Remaining-month distribution service for the Sales Planner backend.

Turns a monthly funnel requirement into "do this many today" quotas: the
month-to-date actuals are subtracted from the requirement and the remainder
is spread evenly over the calendar-exact working days left in the month.

Key Functions:
- count_remaining_workdays: Working days from today (or day 1) to month end
- distribute_remaining: Remaining requirement and per-day quotas for a month
- build_daily_plan: Today's plan bundle for the dashboard card, starting
  from a stored MonthlyPlan (or its absence)

Rules:
- remaining[x] = max(0, required[x] - actual[x]); overachievement yields 0
- daily_average[x] = remaining[x] / max(1, workdays)
- daily_plan[x] = ceil(daily_average[x]) when workdays > 0, else 0
- Rows outside the month are dropped before aggregation and reported in the
  debug payload; they never raise
"""

import calendar
import logging
import math
from datetime import date
from typing import List, Optional, Tuple

from sales_planner.models.schemas import (
    DailyActivityRecord,
    DailyPlan,
    DebugSample,
    FunnelRequirement,
    LeadStageCounts,
    MonthlyPlan,
    RemainingPlan,
    RemainingPlanDebug,
    StageAverages,
    StageCounts,
)
from sales_planner.services.aggregation import (
    aggregate_records,
    filter_month,
    month_key,
    parse_month_key,
)
from sales_planner.services.funnel import plan_to_targets, size_funnel
from sales_planner.services.rates import resolve_planning_context

logger = logging.getLogger(__name__)


NO_TARGET_MESSAGE = "Set your monthly targets first"

DEBUG_SAMPLE_SIZE: int = 3

# Weekday numbers (Monday = 0) that count as working days per workweek length
WORKWEEK_DAYS = {
    5: frozenset(range(0, 5)),
    6: frozenset(range(0, 6)),
    7: frozenset(range(0, 7)),
}


# =============================================================================
# Workday Calendar
# =============================================================================


def count_remaining_workdays(workdays_per_week: int, target_month: str, today: date) -> int:
    """
    Count the working days left in a month.

    Args:
        workdays_per_week: 5 (Mon-Fri), 6 (Mon-Sat) or 7 (every day). Any
            other value is treated as 5.
        target_month: YYYY-MM key of the month to plan.
        today: Civil date the count starts from.

    Returns:
        0 for a past month; otherwise the working days from today (current
        month) or day 1 (future month) through month end, inclusive.
    """
    current_key = month_key(today)
    if target_month < current_key:
        return 0

    year, month = parse_month_key(target_month)
    days_in_month = calendar.monthrange(year, month)[1]
    start_day = today.day if target_month == current_key else 1
    working_weekdays = WORKWEEK_DAYS.get(workdays_per_week, WORKWEEK_DAYS[5])

    return sum(
        1
        for day in range(start_day, days_in_month + 1)
        if date(year, month, day).weekday() in working_weekdays
    )


def _month_bounds(target_month: str) -> Tuple[str, str]:
    year, month = parse_month_key(target_month)
    next_year, next_month = (year + 1, 1) if month == 12 else (year, month + 1)
    return f"{year:04d}-{month:02d}-01", f"{next_year:04d}-{next_month:02d}-01"


# =============================================================================
# Distribution
# =============================================================================


def _build_debug(
    target_month: str,
    kept: List[DailyActivityRecord],
    received: List[DailyActivityRecord]
) -> RemainingPlanDebug:
    expected_start, expected_end_exclusive = _month_bounds(target_month)
    ordered = sorted(kept, key=lambda r: r.date)

    min_date = ordered[0].date if ordered else None
    max_date = ordered[-1].date if ordered else None
    is_out_of_range = (
        (min_date is not None and min_date < expected_start)
        or (max_date is not None and max_date >= expected_end_exclusive)
    )

    dropped = len(received) - len(kept)
    if dropped:
        logger.warning(
            f"Dropped {dropped} activity rows outside {target_month} "
            f"before computing the remaining plan"
        )

    return RemainingPlanDebug(
        month_key=target_month,
        logs_count=len(kept),
        expected_start=expected_start,
        expected_end_exclusive=expected_end_exclusive,
        actual_min_date=min_date,
        actual_max_date=max_date,
        is_out_of_range=is_out_of_range,
        samples=[
            DebugSample(date=r.date, attempts=r.attempts)
            for r in ordered[:DEBUG_SAMPLE_SIZE]
        ],
    )


def distribute_remaining(
    requirement: FunnelRequirement,
    records: List[DailyActivityRecord],
    target_month: str,
    workdays_per_week: int,
    today: date
) -> RemainingPlan:
    """
    Spread the unmet part of a monthly requirement over the remaining workdays.

    Args:
        requirement: Monthly funnel requirement from size_funnel.
        records: Activity rows for the month. Rows from other months are
            tolerated and dropped.
        target_month: YYYY-MM key of the planned month.
        workdays_per_week: Workweek length of the plan.
        today: Civil date the remaining days are counted from.

    Returns:
        RemainingPlan with the month requirement, actuals, remainder, exact
        daily averages, rounded-up daily quotas and a date-range debug payload.
    """
    received = list(records)
    month_rows = filter_month(received, target_month)
    workdays = count_remaining_workdays(workdays_per_week, target_month, today)
    actual = aggregate_records(month_rows)

    required_month = StageCounts(
        attempts=requirement.attempts,
        booked=requirement.booked_total,
        done=requirement.done_total,
        won=requirement.won_total,
    )
    actual_mtd = StageCounts(
        attempts=actual.attempts,
        booked=actual.booked_total,
        done=actual.done_total,
        won=actual.won_total,
    )

    stages = ('attempts', 'booked', 'done', 'won')
    remaining = StageCounts(**{
        stage: max(0, getattr(required_month, stage) - getattr(actual_mtd, stage))
        for stage in stages
    })
    divisor = max(1, workdays)
    daily_average = StageAverages(**{
        stage: getattr(remaining, stage) / divisor
        for stage in stages
    })
    daily_plan = StageCounts(**{
        stage: math.ceil(getattr(daily_average, stage)) if workdays > 0 else 0
        for stage in stages
    })

    return RemainingPlan(
        remaining_workdays=workdays,
        required_month=required_month,
        actual_mtd=actual_mtd,
        remaining=remaining,
        daily_average=daily_average,
        daily_plan=daily_plan,
        debug=_build_debug(target_month, month_rows, received),
    )


# =============================================================================
# Dashboard Bundle
# =============================================================================


def build_daily_plan(
    records: List[DailyActivityRecord],
    plan: Optional[MonthlyPlan],
    today: date
) -> DailyPlan:
    """
    Build today's quotas for the dashboard card.

    Args:
        records: Full activity history for one user.
        plan: The stored plan for the month, or None when no plan exists.
        today: Civil date of the request.

    Returns:
        DailyPlan. Without a plan every quota is 0, is_target_set is False and
        the message asks the user to set targets.
    """
    if plan is None:
        return DailyPlan(
            is_target_set=False,
            message=NO_TARGET_MESSAGE,
            month_key=month_key(today),
        )

    context = resolve_planning_context(records, today)
    requirement = size_funnel(plan_to_targets(plan), context, records, today)

    month_rows = filter_month(records, plan.month)
    result = distribute_remaining(requirement, month_rows, plan.month, plan.workdays_per_week, today)
    new_leads_mtd = aggregate_records(month_rows).new_leads

    remaining_leads = max(0, plan.target_new_leads_month - new_leads_mtd)
    workdays = result.remaining_workdays
    daily_leads = math.ceil(remaining_leads / max(1, workdays)) if workdays > 0 else 0

    capacity = plan.daily_call_capacity
    capacity_exceeded = bool(capacity) and result.daily_plan.attempts > capacity

    is_target_set = plan.total_target_won > 0
    return DailyPlan(
        is_target_set=is_target_set,
        message=None if is_target_set else NO_TARGET_MESSAGE,
        month_key=plan.month,
        remaining_workdays=workdays,
        capacity_exceeded=capacity_exceeded,
        daily_attempts=result.daily_plan.attempts,
        daily_booked=result.daily_plan.booked,
        daily_done=result.daily_plan.done,
        daily_won=result.daily_plan.won,
        daily_leads=daily_leads,
        month_total=LeadStageCounts(
            **result.required_month.model_dump(),
            leads=plan.target_new_leads_month,
        ),
        mtd_actual=LeadStageCounts(
            **result.actual_mtd.model_dump(),
            leads=new_leads_mtd,
        ),
    )
