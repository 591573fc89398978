"""
FastAPI dependency injection module for the Sales Planner backend.

Key Dependencies Provided:
- get_db_session: Async generator yielding database connections from the pool
- get_repository: ActivityRepository bound to the request's connection
- get_settings_dependency: Returns the cached Settings singleton
- SettingsDep / DBSessionDep / RepositoryDep: Annotated type aliases

The repository is the only data-access collaborator handlers use. It is
constructed per request around an injected connection, so tests can override
get_repository with a stub and never open a pool.

Usage:
    @router.get("/{user_id}/context")
    async def get_context(user_id: str, repo: RepositoryDep) -> PlanningContext:
        records = await repo.fetch_daily_logs(user_id)
        return resolve_planning_context(records, civil_today())
"""

from typing import Annotated, AsyncGenerator

from asyncpg import Connection
from fastapi import Depends

from sales_planner.core.config import Settings, get_settings
from sales_planner.core.database import get_db_pool
from sales_planner.services.repository import ActivityRepository


# =============================================================================
# Database Session Dependency
# =============================================================================

async def get_db_session() -> AsyncGenerator[Connection, None]:
    """
    Yield an async database connection from the pool.

    The connection is released back to the pool when the request completes,
    whether or not the handler raised.

    Yields:
        asyncpg.Connection: An active database connection from the pool.

    Raises:
        asyncpg.PostgresError: If connection acquisition fails.
    """
    pool = await get_db_pool()
    async with pool.acquire() as connection:
        yield connection


DBSessionDep = Annotated[Connection, Depends(get_db_session)]


async def get_repository(db: DBSessionDep) -> ActivityRepository:
    """Wrap the request's connection in an ActivityRepository."""
    return ActivityRepository(db)


RepositoryDep = Annotated[ActivityRepository, Depends(get_repository)]


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so tests can use
    app.dependency_overrides[get_settings_dependency].
    """
    return get_settings()


SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]
