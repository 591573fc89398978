"""
Sales Planner API package initialization.

This package contains FastAPI router modules:
- activity: Daily activity log CRUD and CSV import/export
- plans: Monthly plan storage
- planning: Rate context, funnel simulation, remaining plan and today's plan
- diagnostics: Period metrics, bottleneck diagnosis, insights and KPIs
"""

from fastapi import APIRouter

from sales_planner.api.activity import router as activity_router
from sales_planner.api.plans import router as plans_router
from sales_planner.api.planning import router as planning_router
from sales_planner.api.diagnostics import router as diagnostics_router

# Create main API router
api_router = APIRouter()

api_router.include_router(activity_router, prefix="/activity", tags=["activity"])
api_router.include_router(plans_router, prefix="/plans", tags=["plans"])
api_router.include_router(planning_router, prefix="/planning", tags=["planning"])
api_router.include_router(diagnostics_router, prefix="/diagnostics", tags=["diagnostics"])

__all__ = [
    "api_router",
    "activity_router",
    "plans_router",
    "planning_router",
    "diagnostics_router",
]
