"""
FastAPI router for funnel diagnostics.

Key Endpoints:
- GET /diagnostics/{user_id} - Period metrics, bottleneck diagnosis,
  strategic insights and the KPI scorecard in one bundle

The period is selected with the same rules as the dashboard (today, week,
month, custom, all). The trend and the 30-day baseline always read the full
history.
"""

import logging
from datetime import date
from typing import Optional

import asyncpg
from fastapi import APIRouter, HTTPException, Query

from sales_planner.core.clock import civil_today
from sales_planner.core.dependencies import RepositoryDep
from sales_planner.models.enums import Period, UserRole
from sales_planner.models.schemas import DiagnosticsResponse
from sales_planner.services.aggregation import aggregate_records, filter_by_period
from sales_planner.services.diagnostics import diagnose, generate_strategic_insights
from sales_planner.services.metrics import build_funnel_metrics, calculate_kpis


logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{user_id}", response_model=DiagnosticsResponse)
async def get_diagnostics(
    user_id: str,
    repo: RepositoryDep,
    period: Period = Query(Period.MONTH, description="Reporting period"),
    start: Optional[date] = Query(None, description="Custom period start (inclusive)"),
    end: Optional[date] = Query(None, description="Custom period end (inclusive)"),
    role: UserRole = Query(UserRole.MEMBER, description="Role of the reader"),
    team_members_count: Optional[int] = Query(None, ge=0),
) -> DiagnosticsResponse:
    """
    Diagnose the weakest funnel stage for a reporting period.

    Raises:
        HTTPException 400: If a custom period ends before it starts.
        HTTPException 500: If the database query fails.
    """
    if start is not None and end is not None and end < start:
        raise HTTPException(status_code=400, detail="end must not be before start")

    today = civil_today()
    try:
        records = await repo.fetch_daily_logs(user_id)
    except asyncpg.PostgresError as e:
        logger.error(f"Error fetching history for {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch activity history")

    period_records = filter_by_period(records, period, today, start, end)
    metrics = build_funnel_metrics(period_records, records, today)

    logger.info(
        f"Diagnostics for {user_id}: period={period.value} rows={len(period_records)}"
    )

    return DiagnosticsResponse(
        period=period,
        metrics=metrics,
        diagnosis=diagnose(metrics, role, team_members_count),
        insights=generate_strategic_insights(period_records, records, today),
        kpis=calculate_kpis(aggregate_records(period_records)),
    )
