"""
SQL Query Module for the Sales Planner Backend.

Provides parameterized PostgreSQL queries for the daily activity log and the
monthly plans. Keeps SQL text out of the repository so business logic and
data access stay separate.

Example usage:
    from sales_planner.sql import get_daily_logs_query, UPSERT_MONTHLY_PLAN_QUERY

    rows = await conn.fetch(get_daily_logs_query(with_start=True), user_id, start)
"""

from sales_planner.sql.activity_queries import (
    DAILY_LOG_COLUMNS,
    DELETE_DAILY_LOG_QUERY,
    GET_MONTHLY_PLAN_QUERY,
    LIST_MONTHLY_PLANS_QUERY,
    MONTHLY_PLAN_COLUMNS,
    UPSERT_DAILY_LOG_QUERY,
    UPSERT_MONTHLY_PLAN_QUERY,
    get_daily_logs_query,
)

__all__ = [
    "DAILY_LOG_COLUMNS",
    "MONTHLY_PLAN_COLUMNS",
    "get_daily_logs_query",
    "UPSERT_DAILY_LOG_QUERY",
    "DELETE_DAILY_LOG_QUERY",
    "GET_MONTHLY_PLAN_QUERY",
    "LIST_MONTHLY_PLANS_QUERY",
    "UPSERT_MONTHLY_PLAN_QUERY",
]
