"""
FastAPI router for monthly plans.

Key Endpoints:
- GET /plans/{user_id} - List every stored plan, newest month first
- GET /plans/{user_id}/{month} - Get the plan for one month
- PUT /plans/{user_id} - Insert or replace the plan for plan.month

At most one plan exists per user per month. Concurrent writers are not
reconciled: the last write wins.
"""

import logging
from typing import List

import asyncpg
from fastapi import APIRouter, HTTPException

from sales_planner.core.dependencies import RepositoryDep
from sales_planner.models.schemas import MonthlyPlan
from sales_planner.services.aggregation import parse_month_key


logger = logging.getLogger(__name__)

router = APIRouter()


def require_month_key(month: str) -> str:
    """
    Validate a YYYY-MM path or query value.

    Raises:
        HTTPException 400: If the key is malformed.
    """
    try:
        parse_month_key(month)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return month


@router.get("/{user_id}", response_model=List[MonthlyPlan])
async def list_plans(user_id: str, repo: RepositoryDep) -> List[MonthlyPlan]:
    try:
        return await repo.fetch_monthly_plans(user_id)
    except asyncpg.PostgresError as e:
        logger.error(f"Error fetching plans for {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch monthly plans")


@router.get("/{user_id}/{month}", response_model=MonthlyPlan)
async def get_plan(user_id: str, month: str, repo: RepositoryDep) -> MonthlyPlan:
    """
    Get the plan for one month.

    Raises:
        HTTPException 400: If month is not YYYY-MM.
        HTTPException 404: If no plan is set for that month.
        HTTPException 500: If the database query fails.
    """
    require_month_key(month)
    try:
        plan = await repo.fetch_monthly_plan(user_id, month)
    except asyncpg.PostgresError as e:
        logger.error(f"Error fetching plan {month} for {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch monthly plan")

    if plan is None:
        raise HTTPException(status_code=404, detail=f"No plan set for {month}")
    return plan


@router.put("/{user_id}", response_model=MonthlyPlan)
async def upsert_plan(user_id: str, plan: MonthlyPlan, repo: RepositoryDep) -> MonthlyPlan:
    """
    Insert or replace the plan for plan.month.

    Raises:
        HTTPException 400: If plan.month is not a valid month.
        HTTPException 500: If the database write fails.
    """
    require_month_key(plan.month)
    try:
        return await repo.upsert_monthly_plan(plan, user_id)
    except asyncpg.PostgresError as e:
        logger.error(f"Error saving plan {plan.month} for {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save monthly plan")
