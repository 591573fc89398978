"""
Sales Planner Services Module

Business logic for the planning and diagnostics engine. Every engine service
is a set of pure functions over plain models: no I/O, no shared state, and
"today"/"now" always passed in by the caller.

Services:
- aggregation: Window filters and the record aggregator
- rates: Multi-horizon rate resolution with provenance
- funnel: Reverse-funnel sizing and reality check
- remaining: Remaining-workday distribution and today's plan bundle
- pacing: Intraday won projection
- metrics: Period funnel metrics and KPI scorecard
- diagnostics: Rule-based bottleneck diagnosis and strategic insights
- ingestion: CSV import/export of the activity log
- repository: asyncpg data-access collaborator (the only service doing I/O)

All services are consumed by the API layer (sales_planner/api/).
"""

# =============================================================================
# Aggregation
# =============================================================================

from sales_planner.services.aggregation import (
    aggregate_records,
    filter_between,
    filter_by_period,
    filter_last_days,
    filter_month,
    filter_since,
    month_key,
    parse_month_key,
)

# =============================================================================
# Planning Engine
# =============================================================================

from sales_planner.services.rates import resolve_planning_context, safe_div
from sales_planner.services.funnel import plan_to_targets, reality_check, size_funnel
from sales_planner.services.remaining import (
    build_daily_plan,
    count_remaining_workdays,
    distribute_remaining,
)
from sales_planner.services.pacing import project_pace

# =============================================================================
# Diagnostics
# =============================================================================

from sales_planner.services.metrics import (
    build_funnel_metrics,
    calculate_kpis,
    product_breakdown,
)
from sales_planner.services.diagnostics import (
    classify_bottleneck,
    diagnose,
    generate_strategic_insights,
)

# =============================================================================
# Import / Persistence
# =============================================================================

from sales_planner.services.ingestion import export_csv, ingest_csv
from sales_planner.services.repository import ActivityRepository

__all__ = [
    "aggregate_records",
    "filter_between",
    "filter_by_period",
    "filter_month",
    "filter_last_days",
    "filter_since",
    "month_key",
    "parse_month_key",
    "resolve_planning_context",
    "safe_div",
    "plan_to_targets",
    "reality_check",
    "size_funnel",
    "build_daily_plan",
    "count_remaining_workdays",
    "distribute_remaining",
    "project_pace",
    "build_funnel_metrics",
    "calculate_kpis",
    "product_breakdown",
    "classify_bottleneck",
    "diagnose",
    "generate_strategic_insights",
    "export_csv",
    "ingest_csv",
    "ActivityRepository",
]
