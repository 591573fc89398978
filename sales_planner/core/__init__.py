"""
Core infrastructure package for the Sales Planner backend.

Provides:
- Configuration management via pydantic-settings
- The civil clock every "today"-dependent calculation is anchored to
- Async PostgreSQL connectivity via asyncpg

Dependency injection helpers live in sales_planner.core.dependencies and are
imported from there directly, since they depend on the services package.

Usage Examples:
    from sales_planner.core import get_settings, civil_now

    settings = get_settings()
    now = civil_now()
"""

from sales_planner.core.clock import civil_now, civil_today
from sales_planner.core.config import Settings, get_settings
from sales_planner.core.database import close_db, get_db_pool, init_db

__all__ = [
    "Settings",
    "get_settings",
    "civil_now",
    "civil_today",
    "init_db",
    "close_db",
    "get_db_pool",
]
