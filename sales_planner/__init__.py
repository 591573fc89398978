"""
Sales Planner Backend Package.

FastAPI service for a sales team's daily activity log: it turns monthly
contract targets into funnel requirements, daily quotas and intraday pace,
and diagnoses the weakest funnel stage.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database, clock and dependencies
    - models: Pydantic schemas and enums
    - services: Planning engine, diagnostics, CSV ingestion and storage
    - sql: Parameterized SQL queries
"""

__version__ = "1.0.0"
