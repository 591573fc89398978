"""
Intraday pacing projector for the Sales Planner backend.

Linearly extrapolates today's won contracts to the end of the selling day
and classifies the pace against the daily won quota.

Classification (first match wins):
1. Target Reached: actual >= quota and quota > 0
2. Day Not Started: less than half an hour into the workday
3. Ahead: projection above quota
4. On Track: projection equals quota with at least one win
5. Behind: everything else; urgent when the projection is 0
"""

import logging
import math
from datetime import datetime
from typing import Optional

from sales_planner.core.config import get_settings
from sales_planner.models.enums import PaceStatus
from sales_planner.models.schemas import PacingResult

logger = logging.getLogger(__name__)


MIN_DAY_PROGRESS: float = 0.05
NOT_STARTED_HOURS: float = 0.5


def hours_into_workday(now: datetime, start_hour: int, end_hour: int) -> float:
    """Hours elapsed since start_hour, clamped to the workday window."""
    total_hours = end_hour - start_hour
    elapsed = now.hour + now.minute / 60 - start_hour
    return max(0.0, min(float(total_hours), elapsed))


def project_pace(
    actual_won: int,
    daily_won_quota: int,
    now: datetime,
    start_hour: Optional[int] = None,
    end_hour: Optional[int] = None
) -> PacingResult:
    """
    Project today's won contracts and classify the pace.

    Args:
        actual_won: Contracts won so far today.
        daily_won_quota: Today's won quota from the daily plan.
        now: Current civil time.
        start_hour: Workday start (defaults to settings.workday_start_hour).
        end_hour: Workday end (defaults to settings.workday_end_hour).

    Returns:
        PacingResult with progress, projection, status and a message.
    """
    settings = get_settings()
    if start_hour is None:
        start_hour = settings.workday_start_hour
    if end_hour is None:
        end_hour = settings.workday_end_hour

    total_hours = end_hour - start_hour
    hours_passed = hours_into_workday(now, start_hour, end_hour)
    day_progress = max(MIN_DAY_PROGRESS, min(1.0, hours_passed / total_hours)) if total_hours > 0 else 1.0
    projected_won = math.floor(actual_won / day_progress)

    urgent = False
    if actual_won >= daily_won_quota and daily_won_quota > 0:
        status = PaceStatus.TARGET_REACHED
        message = "Day completed! Everything you do now is pure gain."
    elif hours_passed < NOT_STARTED_HOURS:
        status = PaceStatus.NOT_STARTED
        message = "The day has just started. Give it your best!"
    elif projected_won > daily_won_quota:
        status = PaceStatus.AHEAD
        message = (
            f"Great pace! At this speed you'll close {projected_won} contracts "
            f"(Target: {daily_won_quota})."
        )
    elif projected_won == daily_won_quota and actual_won > 0:
        status = PaceStatus.ON_TRACK
        message = "You're in line to hit the exact target. Don't slow down."
    else:
        status = PaceStatus.BEHIND
        if projected_won == 0 and daily_won_quota > 0:
            urgent = True
            message = (
                f"Slow pace. You still need {daily_won_quota - actual_won} contracts "
                f"to save the day."
            )
        else:
            message = (
                f"Warning: you're projecting {projected_won} contracts. Unless you "
                f"accelerate you will miss {daily_won_quota - projected_won}."
            )

    logger.debug(f"Pace at {now.isoformat()}: {status.value} ({actual_won}/{daily_won_quota})")

    return PacingResult(
        hours_passed=hours_passed,
        day_progress=day_progress,
        actual_won=actual_won,
        daily_quota=daily_won_quota,
        projected_won=projected_won,
        status=status,
        message=message,
        urgent=urgent,
    )
