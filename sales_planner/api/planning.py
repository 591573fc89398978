"""
FastAPI router for the planning engine.

Key Endpoints:
- GET /planning/{user_id}/context - Resolved rates with provenance
- GET /planning/{user_id}/simulate - Monthly funnel requirement (what-if modifiers)
- GET /planning/{user_id}/remaining - Remaining requirement and daily quotas
- GET /planning/{user_id}/today - Today's plan bundle plus intraday pacing

Each request reads the civil clock exactly once and passes that instant to
every engine call, so all parts of one response agree on "today".
"""

import logging
from datetime import date
from typing import List, Optional

import asyncpg
from fastapi import APIRouter, HTTPException, Query

from sales_planner.core.clock import civil_now
from sales_planner.core.dependencies import RepositoryDep, SettingsDep
from sales_planner.models.schemas import (
    DailyActivityRecord,
    FunnelRequirement,
    FunnelTargets,
    MonthlyPlan,
    PlanningContext,
    RemainingPlan,
    SimulationModifiers,
    TodayPlanResponse,
)
from sales_planner.api.plans import require_month_key
from sales_planner.services.aggregation import filter_month, month_key
from sales_planner.services.funnel import plan_to_targets, size_funnel
from sales_planner.services.pacing import project_pace
from sales_planner.services.rates import resolve_planning_context
from sales_planner.services.repository import ActivityRepository
from sales_planner.services.remaining import (
    NO_TARGET_MESSAGE,
    build_daily_plan,
    distribute_remaining,
)


logger = logging.getLogger(__name__)

router = APIRouter()


async def _load_history(repo: ActivityRepository, user_id: str) -> List[DailyActivityRecord]:
    try:
        return await repo.fetch_daily_logs(user_id)
    except asyncpg.PostgresError as e:
        logger.error(f"Error fetching history for {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch activity history")


async def _load_plan(repo: ActivityRepository, user_id: str, month: str) -> Optional[MonthlyPlan]:
    try:
        return await repo.fetch_monthly_plan(user_id, month)
    except asyncpg.PostgresError as e:
        logger.error(f"Error fetching plan {month} for {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch monthly plan")


@router.get("/{user_id}/context", response_model=PlanningContext)
async def get_planning_context(user_id: str, repo: RepositoryDep) -> PlanningContext:
    """Resolve every planning rate from the user's full history."""
    today = civil_now().date()
    records = await _load_history(repo, user_id)
    return resolve_planning_context(records, today)


@router.get("/{user_id}/simulate", response_model=FunnelRequirement)
async def simulate_plan(
    user_id: str,
    repo: RepositoryDep,
    month: Optional[str] = Query(None, description="YYYY-MM, defaults to the current month"),
    la: Optional[int] = Query(None, ge=0, description="Won target for Luce Amica"),
    fv: Optional[int] = Query(None, ge=0, description="Won target for Fotovoltaico"),
    cad: Optional[int] = Query(None, ge=0, description="Won target for Adesione"),
    workdays_per_week: int = Query(5, ge=5, le=7),
    win_rate_pct: float = Query(0.0, ge=0.0, le=100.0, description="Win rate uplift in percent"),
    show_rate_pct: float = Query(0.0, ge=0.0, le=100.0, description="Show rate uplift in percent"),
) -> FunnelRequirement:
    """
    Size the monthly funnel for explicit targets or the stored plan.

    Targets passed as query parameters take precedence; when none are given
    the stored plan for the month is used.

    Raises:
        HTTPException 400: If month is not YYYY-MM.
        HTTPException 404: If no targets were given and no plan is set.
    """
    today = civil_now().date()
    month = require_month_key(month) if month else month_key(today)

    if la is None and fv is None and cad is None:
        plan = await _load_plan(repo, user_id, month)
        if plan is None:
            raise HTTPException(status_code=404, detail=NO_TARGET_MESSAGE)
        targets = plan_to_targets(plan)
    else:
        targets = FunnelTargets(
            la=la or 0,
            fv=fv or 0,
            cad=cad or 0,
            workdays_per_week=workdays_per_week,
        )

    records = await _load_history(repo, user_id)
    context = resolve_planning_context(records, today)
    modifiers = SimulationModifiers(win_rate_pct=win_rate_pct, show_rate_pct=show_rate_pct)
    return size_funnel(targets, context, records, today, modifiers)


@router.get("/{user_id}/remaining", response_model=RemainingPlan)
async def get_remaining_plan(
    user_id: str,
    repo: RepositoryDep,
    month: Optional[str] = Query(None, description="YYYY-MM, defaults to the current month"),
) -> RemainingPlan:
    """
    Spread the unmet part of the month's requirement over the remaining workdays.

    Raises:
        HTTPException 400: If month is not YYYY-MM.
        HTTPException 404: If no plan is set for the month.
    """
    today = civil_now().date()
    month = require_month_key(month) if month else month_key(today)

    plan = await _load_plan(repo, user_id, month)
    if plan is None:
        raise HTTPException(status_code=404, detail=NO_TARGET_MESSAGE)

    records = await _load_history(repo, user_id)
    context = resolve_planning_context(records, today)
    requirement = size_funnel(plan_to_targets(plan), context, records, today)
    return distribute_remaining(
        requirement,
        filter_month(records, month),
        month,
        plan.workdays_per_week,
        today,
    )


@router.get("/{user_id}/today", response_model=TodayPlanResponse)
async def get_today_plan(
    user_id: str,
    repo: RepositoryDep,
    settings: SettingsDep,
    daily_call_capacity: Optional[int] = Query(None, ge=0, description="Attempts-per-day ceiling"),
) -> TodayPlanResponse:
    """
    Today's quotas for the dashboard card plus the intraday pace.

    Pacing is only computed when a target is set. Without a plan the bundle
    reports is_target_set=false instead of failing.
    """
    now = civil_now(settings.timezone)
    today: date = now.date()

    plan = await _load_plan(repo, user_id, month_key(today))
    if plan is not None and daily_call_capacity is not None:
        plan = plan.model_copy(update={'daily_call_capacity': daily_call_capacity})

    records = await _load_history(repo, user_id)
    daily_plan = build_daily_plan(records, plan, today)

    pacing = None
    if daily_plan.is_target_set:
        today_str = today.isoformat()
        won_today = sum(r.won_total for r in records if r.date == today_str)
        pacing = project_pace(
            won_today,
            daily_plan.daily_won,
            now,
            start_hour=settings.workday_start_hour,
            end_hour=settings.workday_end_hour,
        )

    return TodayPlanResponse(plan=daily_plan, pacing=pacing, today=today.isoformat())
