"""
FastAPI router for the daily activity log.

Key Endpoints:
- GET /activity/{user_id} - List a user's daily logs (optionally by period)
- PUT /activity/{user_id} - Insert or replace the log for one date
- DELETE /activity/{user_id}/{log_date} - Delete the log for one date
- POST /activity/{user_id}/import - Bulk import from CSV
- GET /activity/{user_id}/export - Download the log as CSV

calls_total is always recomputed from the call outcome counters; a value sent
by the client is ignored.
"""

import logging
from datetime import date
from typing import List, Optional

import asyncpg
from fastapi import APIRouter, File, HTTPException, Query, UploadFile
from fastapi.responses import Response

from sales_planner.core.clock import civil_today
from sales_planner.core.dependencies import RepositoryDep
from sales_planner.models.enums import Period
from sales_planner.models.schemas import DailyActivityRecord, ImportResult
from sales_planner.services.aggregation import filter_by_period
from sales_planner.services.ingestion import export_csv, ingest_csv


logger = logging.getLogger(__name__)

router = APIRouter()


def _parse_log_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid date '{value}', expected YYYY-MM-DD")


@router.get("/{user_id}", response_model=List[DailyActivityRecord])
async def list_daily_logs(
    user_id: str,
    repo: RepositoryDep,
    period: Period = Query(Period.ALL, description="Reporting period"),
    start: Optional[date] = Query(None, description="Custom period start (inclusive)"),
    end: Optional[date] = Query(None, description="Custom period end (inclusive)"),
) -> List[DailyActivityRecord]:
    """
    List a user's daily logs, oldest first.

    Raises:
        HTTPException 500: If the database query fails.
    """
    try:
        records = await repo.fetch_daily_logs(user_id)
    except asyncpg.PostgresError as e:
        logger.error(f"Error fetching daily logs for {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch daily logs")

    return filter_by_period(records, period, civil_today(), start, end)


@router.put("/{user_id}", response_model=DailyActivityRecord)
async def upsert_daily_log(
    user_id: str,
    record: DailyActivityRecord,
    repo: RepositoryDep,
) -> DailyActivityRecord:
    """
    Insert or replace the log for (user_id, record.date).

    Raises:
        HTTPException 400: If the date is not YYYY-MM-DD.
        HTTPException 500: If the database write fails.
    """
    _parse_log_date(record.date)
    try:
        await repo.upsert_daily_log(record, user_id)
    except asyncpg.PostgresError as e:
        logger.error(f"Error saving daily log {record.date} for {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save daily log")

    return record.model_copy(update={'user_id': user_id})


@router.delete("/{user_id}/{log_date}")
async def delete_daily_log(user_id: str, log_date: str, repo: RepositoryDep) -> dict:
    """
    Delete the log for one date.

    Raises:
        HTTPException 400: If the date is not YYYY-MM-DD.
        HTTPException 404: If no log exists for that date.
        HTTPException 500: If the database write fails.
    """
    parsed = _parse_log_date(log_date)
    try:
        deleted = await repo.delete_daily_log(user_id, parsed)
    except asyncpg.PostgresError as e:
        logger.error(f"Error deleting daily log {log_date} for {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete daily log")

    if not deleted:
        raise HTTPException(status_code=404, detail=f"No daily log for {log_date}")
    return {"success": True, "date": log_date}


@router.post("/{user_id}/import", response_model=ImportResult)
async def import_daily_logs(
    user_id: str,
    repo: RepositoryDep,
    file: UploadFile = File(..., description="CSV with one row per date"),
) -> ImportResult:
    """
    Bulk import daily logs from a CSV upload.

    Existing rows for the same dates are replaced.

    Raises:
        HTTPException 400: With the validation errors if the CSV is rejected.
        HTTPException 500: If the database write fails.
    """
    records, errors = ingest_csv(file.file)
    if records is None:
        result = ImportResult(success=False, errors=errors)
        raise HTTPException(status_code=400, detail=result.model_dump(mode='json'))

    try:
        rows_affected = await repo.upsert_daily_logs(records, user_id)
    except asyncpg.PostgresError as e:
        logger.error(f"Error importing daily logs for {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to import daily logs")

    logger.info(f"Imported {rows_affected} daily logs for {user_id} from {file.filename}")
    return ImportResult(success=True, rows_processed=len(records), rows_affected=rows_affected)


@router.get("/{user_id}/export")
async def export_daily_logs(user_id: str, repo: RepositoryDep) -> Response:
    """Download the user's full log as CSV, newest first."""
    try:
        records = await repo.fetch_daily_logs(user_id)
    except asyncpg.PostgresError as e:
        logger.error(f"Error exporting daily logs for {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to export daily logs")

    return Response(
        content=export_csv(records),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="activity_{user_id}.csv"'},
    )
