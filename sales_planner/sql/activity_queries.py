"""
Activity Queries Module for the Sales Planner Backend.

Provides parameterized PostgreSQL queries for the two persisted tables:

- daily_logs: one row per (user_id, date) with the activity counters,
  target snapshot and wellbeing scores
- monthly_plans: one row per (user_id, month) with the monthly won targets

Every query uses asyncpg positional placeholders ($1, $2, ...). Column lists
are generated from the model field groups so a new counter only has to be
added in one place.

calls_total is stored for reporting convenience but always written from the
three call outcome counters and never read back into a record.
"""

from typing import List

from sales_planner.models.schemas import COUNT_FIELDS, WELLBEING_FIELDS


# =============================================================================
# CONSTANTS
# =============================================================================

DAILY_LOG_COLUMNS: List[str] = ['date'] + COUNT_FIELDS + WELLBEING_FIELDS + ['mood_note']

MONTHLY_PLAN_COLUMNS: List[str] = [
    'month',
    'workdays_per_week',
    'target_won_la_month',
    'target_won_fv_month',
    'target_won_cad_month',
    'target_new_leads_month',
]


def _placeholders(count: int, start: int = 1) -> str:
    return ", ".join(f"${i}" for i in range(start, start + count))


def _excluded_updates(columns: List[str]) -> str:
    return ",\n        ".join(f"{col} = EXCLUDED.{col}" for col in columns)


# =============================================================================
# DAILY LOG QUERIES
# =============================================================================

def get_daily_logs_query(with_start: bool = False, with_end: bool = False) -> str:
    """
    Generate the query that lists a user's daily logs, oldest first.

    Args:
        with_start: Add an inclusive lower date bound as the next parameter.
        with_end: Add an exclusive upper date bound as the next parameter.

    Returns:
        Parameterized query; $1 is always the user_id.
    """
    conditions = ["user_id = $1"]
    position = 2
    if with_start:
        conditions.append(f"date >= ${position}")
        position += 1
    if with_end:
        conditions.append(f"date < ${position}")

    return f"""
    SELECT
        user_id,
        {", ".join(DAILY_LOG_COLUMNS)}
    FROM daily_logs
    WHERE {" AND ".join(conditions)}
    ORDER BY date ASC
    """


# Parameters: $1 user_id, $2 date, then DAILY_LOG_COLUMNS[1:], then calls_total
UPSERT_DAILY_LOG_QUERY: str = f"""
    INSERT INTO daily_logs (
        user_id,
        {", ".join(DAILY_LOG_COLUMNS)},
        calls_total,
        updated_at
    ) VALUES (
        $1, {_placeholders(len(DAILY_LOG_COLUMNS) + 1, start=2)}, NOW()
    )
    ON CONFLICT (user_id, date)
    DO UPDATE SET
        {_excluded_updates(DAILY_LOG_COLUMNS[1:] + ['calls_total'])},
        updated_at = NOW()
"""

DELETE_DAILY_LOG_QUERY: str = """
    DELETE FROM daily_logs
    WHERE user_id = $1 AND date = $2
"""


# =============================================================================
# MONTHLY PLAN QUERIES
# =============================================================================

GET_MONTHLY_PLAN_QUERY: str = f"""
    SELECT
        user_id,
        {", ".join(MONTHLY_PLAN_COLUMNS)}
    FROM monthly_plans
    WHERE user_id = $1 AND month = $2
"""

LIST_MONTHLY_PLANS_QUERY: str = f"""
    SELECT
        user_id,
        {", ".join(MONTHLY_PLAN_COLUMNS)}
    FROM monthly_plans
    WHERE user_id = $1
    ORDER BY month DESC
"""

# Last write wins; no optimistic concurrency
UPSERT_MONTHLY_PLAN_QUERY: str = f"""
    INSERT INTO monthly_plans (
        user_id,
        {", ".join(MONTHLY_PLAN_COLUMNS)},
        updated_at
    ) VALUES (
        $1, {_placeholders(len(MONTHLY_PLAN_COLUMNS), start=2)}, NOW()
    )
    ON CONFLICT (user_id, month)
    DO UPDATE SET
        {_excluded_updates(MONTHLY_PLAN_COLUMNS[1:])},
        updated_at = NOW()
"""
