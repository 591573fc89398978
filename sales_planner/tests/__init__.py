"""
Sales Planner Backend Test Suite.

This package contains pytest tests for the planning and diagnostics engine,
the CSV import/export service, the repository and the FastAPI routers.

Test Modules:
- test_aggregation: Aggregator additivity, wellbeing rounding, window filters
- test_rates: Multi-horizon rate resolution, qualification thresholds, clamps
- test_funnel: Reverse-funnel sizing, what-if modifiers, reality check
- test_remaining: Workday calendar, remaining-month distribution, daily plan
- test_pacing: Intraday projection and pace classification
- test_metrics: Period funnel metrics, 7-day trend, KPI scorecard
- test_diagnostics: Bottleneck rule table, templates, strategic insights
- test_ingestion: CSV validation and export
- test_repository: asyncpg-backed repository against a mocked connection
- test_api: Router behaviour with the repository dependency overridden

Test Configuration:
- pytest-asyncio for the async repository tests
- Fixtures in conftest.py (fixed civil date, record factory, mock connection)

Running Tests:
    # Run all tests
    pytest sales_planner/tests/

    # Run only the engine tests
    pytest sales_planner/tests/ -m "not api"
"""
