"""
Data-access collaborator for the daily activity log and monthly plans.

ActivityRepository wraps a single asyncpg connection. It is constructed per
request by the API layer (see core.dependencies.get_repository) and hands the
engine plain pydantic models, so no engine function depends on a database
handle or a global client.

Key Methods:
- fetch_daily_logs: A user's rows, optionally bounded by [start, end)
- upsert_daily_log: Insert or replace the row for (user_id, date)
- delete_daily_log: Remove the row for (user_id, date)
- fetch_monthly_plan / fetch_monthly_plans: Read stored plans
- upsert_monthly_plan: Insert or replace the plan for (user_id, month)
"""

import logging
from datetime import date
from typing import Any, List, Mapping, Optional

from asyncpg import Connection

from sales_planner.models.schemas import DailyActivityRecord, MonthlyPlan
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

logger = logging.getLogger(__name__)


def record_from_row(row: Mapping[str, Any]) -> DailyActivityRecord:
    """
    Convert a daily_logs row into a DailyActivityRecord.

    NULL counters and scores become 0, NULL notes become ''. Any stored
    calls_total is dropped.
    """
    data = {key: value for key, value in dict(row).items() if value is not None}
    data.pop('calls_total', None)
    row_date = data.get('date')
    if isinstance(row_date, date):
        data['date'] = row_date.isoformat()
    return DailyActivityRecord(**data)


def plan_from_row(row: Mapping[str, Any]) -> MonthlyPlan:
    data = {key: value for key, value in dict(row).items() if value is not None}
    return MonthlyPlan(**data)


class ActivityRepository:
    """Reads and writes activity rows and monthly plans on one connection."""

    def __init__(self, conn: Connection):
        self.conn = conn

    # =========================================================================
    # Daily Logs
    # =========================================================================

    async def fetch_daily_logs(
        self,
        user_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None
    ) -> List[DailyActivityRecord]:
        """
        Fetch a user's daily logs ordered by date.

        Args:
            user_id: Owner of the rows.
            start: Inclusive lower bound, if any.
            end: Exclusive upper bound, if any.

        Returns:
            List of DailyActivityRecord, oldest first.
        """
        query = get_daily_logs_query(with_start=start is not None, with_end=end is not None)
        params = [p for p in (start, end) if p is not None]
        rows = await self.conn.fetch(query, user_id, *params)
        logger.debug(f"Fetched {len(rows)} daily logs for user {user_id}")
        return [record_from_row(row) for row in rows]

    async def upsert_daily_log(self, record: DailyActivityRecord, user_id: str) -> None:
        """
        Insert or replace the row for (user_id, record.date).

        calls_total is written from the outcome counters.
        """
        values = [getattr(record, col) for col in DAILY_LOG_COLUMNS]
        values[0] = date.fromisoformat(record.date)
        await self.conn.execute(UPSERT_DAILY_LOG_QUERY, user_id, *values, record.calls_total)
        logger.info(f"Upserted daily log {record.date} for user {user_id}")

    async def upsert_daily_logs(self, records: List[DailyActivityRecord], user_id: str) -> int:
        """
        Upsert many rows in one transaction.

        Returns:
            Number of rows written.
        """
        if not records:
            return 0

        batch = []
        for record in records:
            values = [getattr(record, col) for col in DAILY_LOG_COLUMNS]
            values[0] = date.fromisoformat(record.date)
            batch.append((user_id, *values, record.calls_total))

        async with self.conn.transaction():
            await self.conn.executemany(UPSERT_DAILY_LOG_QUERY, batch)

        logger.info(f"Upserted {len(batch)} daily logs for user {user_id}")
        return len(batch)

    async def delete_daily_log(self, user_id: str, log_date: date) -> bool:
        """
        Delete the row for (user_id, log_date).

        Returns:
            True if a row was deleted.
        """
        status = await self.conn.execute(DELETE_DAILY_LOG_QUERY, user_id, log_date)
        # asyncpg status string, e.g. 'DELETE 1'
        deleted = status.endswith(" 1")
        logger.info(f"Delete daily log {log_date} for user {user_id}: {status}")
        return deleted

    # =========================================================================
    # Monthly Plans
    # =========================================================================

    async def fetch_monthly_plan(self, user_id: str, month: str) -> Optional[MonthlyPlan]:
        """Return the user's plan for a month, or None when no plan exists."""
        row = await self.conn.fetchrow(GET_MONTHLY_PLAN_QUERY, user_id, month)
        if row is None:
            return None
        return plan_from_row(row)

    async def fetch_monthly_plans(self, user_id: str) -> List[MonthlyPlan]:
        """Return every stored plan for the user, newest month first."""
        rows = await self.conn.fetch(LIST_MONTHLY_PLANS_QUERY, user_id)
        return [plan_from_row(row) for row in rows]

    async def upsert_monthly_plan(self, plan: MonthlyPlan, user_id: str) -> MonthlyPlan:
        """
        Insert or replace the plan for (user_id, plan.month). Last write wins.

        daily_call_capacity is not persisted.
        """
        values = [getattr(plan, col) for col in MONTHLY_PLAN_COLUMNS]
        await self.conn.execute(UPSERT_MONTHLY_PLAN_QUERY, user_id, *values)
        logger.info(f"Upserted monthly plan {plan.month} for user {user_id}")
        return plan.model_copy(update={'user_id': user_id})
