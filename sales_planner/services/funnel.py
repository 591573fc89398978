"""
Reverse-funnel sizing service for the Sales Planner backend.

Works backwards from a monthly won-contract target per product line to the
number of completed appointments, booked appointments and outreach attempts
the month requires, using the rates resolved by the rate service. Optional
percentage modifiers let the planning view explore "what if my win rate
improved by N%" scenarios.

Key Functions:
- size_funnel: Size every funnel stage for a set of monthly targets
- plan_to_targets: Convert a stored MonthlyPlan into FunnelTargets
- apply_modifier: Scale a rate by a percentage uplift, capped at 0.99
- reality_check: Compare the total target with the trailing 90-day average

Sizing Formulas:
- required_done[p] = ceil(target[p] / win[p])
- required_booked[p] = ceil(required_done[p] / show[p])
- required_attempts = ceil(total_target * attempts_per_win / (1 + win_pct/100))
- Any division by a zero rate yields 0 rather than raising

Reality Check:
- avg_monthly_won = won over the last 90 days / 3 (floored at 1 when computing growth)
- growth > 1.8 is aggressive, growth > 1.2 is ambitious, else realistic
"""

import math
from datetime import date
from typing import Dict, List, Optional

from sales_planner.core.config import get_settings
from sales_planner.models.enums import Product, RealityStatus
from sales_planner.models.schemas import (
    DailyActivityRecord,
    FlatDailyEstimate,
    FunnelRequirement,
    FunnelTargets,
    MonthlyPlan,
    PlanningContext,
    RealityCheck,
    SimulationModifiers,
)
from sales_planner.services.aggregation import aggregate_records, filter_last_days
from sales_planner.services.rates import safe_div


MAX_MODIFIED_RATE: float = 0.99

AGGRESSIVE_GROWTH: float = 1.8
AMBITIOUS_GROWTH: float = 1.2

# The 90-day trailing window is treated as three months
TRAILING_DAYS: int = 90
TRAILING_MONTHS: int = 3


def plan_to_targets(plan: MonthlyPlan) -> FunnelTargets:
    """Extract the per-product targets and workweek from a stored plan."""
    return FunnelTargets(
        la=plan.target_won_la_month,
        fv=plan.target_won_fv_month,
        cad=plan.target_won_cad_month,
        workdays_per_week=plan.workdays_per_week,
    )


def apply_modifier(rate: float, pct: float) -> float:
    """Scale rate by (1 + pct/100), capped at 0.99."""
    return min(MAX_MODIFIED_RATE, rate * (1 + pct / 100))


def _ceil_div(count: int, rate: float) -> int:
    if count == 0:
        return 0
    return math.ceil(safe_div(count, rate))


def reality_check(
    total_target: int,
    records: List[DailyActivityRecord],
    today: date
) -> RealityCheck:
    """
    Classify how far the target stretches beyond recent performance.

    Args:
        total_target: Sum of the won targets over all product lines.
        records: Full activity history.
        today: Civil date the trailing window ends at.

    Returns:
        RealityCheck with growth factor, status and a human-readable message.
    """
    trailing = aggregate_records(filter_last_days(records, today, TRAILING_DAYS))
    avg_monthly_won = trailing.won_total / TRAILING_MONTHS
    effective_avg = max(1.0, avg_monthly_won)
    growth_factor = total_target / effective_avg

    delta_pct = round((growth_factor - 1) * 100)
    if growth_factor > AGGRESSIVE_GROWTH:
        status = RealityStatus.AGGRESSIVE
        message = f"Very high target (+{delta_pct}% vs average). Requires an extraordinary effort."
    elif growth_factor > AMBITIOUS_GROWTH:
        status = RealityStatus.AMBITIOUS
        message = f"Ambitious growth (+{delta_pct}% vs average). Great for pushing."
    else:
        status = RealityStatus.REALISTIC
        message = "Target in line with your history."

    return RealityCheck(
        growth_factor=growth_factor,
        status=status,
        avg_monthly_won=avg_monthly_won,
        message=message,
    )


def size_funnel(
    targets: FunnelTargets,
    context: PlanningContext,
    records: List[DailyActivityRecord],
    today: date,
    modifiers: Optional[SimulationModifiers] = None
) -> FunnelRequirement:
    """
    Compute the monthly funnel requirement for a set of won targets.

    Args:
        targets: Won contracts per product line plus the workweek length.
        context: Resolved rates (not mutated).
        records: Full activity history, used only by the reality check.
        today: Civil date anchoring the reality check window.
        modifiers: Optional win/show rate uplifts in percent.

    Returns:
        FunnelRequirement with per-stage counts, the effective rates used,
        the flat per-day estimate and the reality check.
    """
    if modifiers is None:
        modifiers = SimulationModifiers()
    settings = get_settings()

    win_rates: Dict[Product, float] = {}
    show_rates: Dict[Product, float] = {}
    required_done: Dict[Product, int] = {}
    required_booked: Dict[Product, int] = {}

    for product in Product:
        rates = context.for_product(product)
        win_rates[product] = apply_modifier(rates.win_rate.value, modifiers.win_rate_pct)
        show_rates[product] = apply_modifier(rates.show_rate.value, modifiers.show_rate_pct)

        required_done[product] = _ceil_div(targets.for_product(product), win_rates[product])
        required_booked[product] = _ceil_div(required_done[product], show_rates[product])

    done_total = sum(required_done.values())
    booked_total = sum(required_booked.values())

    total_target = targets.total
    adjusted_attempts_per_win = context.attempts_per_win.value / (1 + modifiers.win_rate_pct / 100)
    attempts = math.ceil(total_target * adjusted_attempts_per_win)

    days = settings.standard_days_per_month
    flat_daily = FlatDailyEstimate(
        attempts=math.ceil(attempts / days),
        booked=round(booked_total / days, 1),
        done=round(done_total / days, 1),
        won=round(total_target / days, 1),
    )

    return FunnelRequirement(
        inputs=targets,
        required_done=required_done,
        required_booked=required_booked,
        done_total=done_total,
        booked_total=booked_total,
        done_cde=0,
        attempts=attempts,
        effective_win_rates=win_rates,
        effective_show_rates=show_rates,
        rates_used=context,
        flat_daily=flat_daily,
        reality_check=reality_check(total_target, records, today),
    )
