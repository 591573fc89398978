"""
API Test Module

Exercises the FastAPI routers through TestClient with the repository
dependency replaced by an in-memory stand-in, and the civil clock pinned to
2026-03-12 14:00 Europe/Rome.

Test Coverage:
- Health and root endpoints
- Activity log CRUD, CSV import and export
- Monthly plan storage and month key validation
- Planning context, simulation, remaining plan and today's bundle
- Diagnostics bundle
- Database failures surface as 500
"""

from datetime import date, datetime
from typing import Dict, List, Optional
from unittest.mock import patch
from zoneinfo import ZoneInfo

import asyncpg
import pytest
from fastapi.testclient import TestClient

from sales_planner.core.dependencies import get_repository
from sales_planner.main import app
from sales_planner.models.schemas import DailyActivityRecord, MonthlyPlan
from sales_planner.services.remaining import NO_TARGET_MESSAGE


pytestmark = pytest.mark.api

NOW = datetime(2026, 3, 12, 14, 0, tzinfo=ZoneInfo('Europe/Rome'))
TODAY = NOW.date()


class InMemoryRepository:
    """Stand-in for ActivityRepository holding a single user's data."""

    def __init__(self):
        self.records: Dict[str, DailyActivityRecord] = {}
        self.plans: Dict[str, MonthlyPlan] = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise asyncpg.PostgresError("connection lost")

    async def fetch_daily_logs(self, user_id: str, start=None, end=None) -> List[DailyActivityRecord]:
        self._check()
        return [self.records[key] for key in sorted(self.records)]

    async def upsert_daily_log(self, record: DailyActivityRecord, user_id: str) -> None:
        self._check()
        self.records[record.date] = record

    async def upsert_daily_logs(self, records: List[DailyActivityRecord], user_id: str) -> int:
        self._check()
        for record in records:
            self.records[record.date] = record
        return len(records)

    async def delete_daily_log(self, user_id: str, log_date: date) -> bool:
        self._check()
        return self.records.pop(log_date.isoformat(), None) is not None

    async def fetch_monthly_plan(self, user_id: str, month: str) -> Optional[MonthlyPlan]:
        self._check()
        return self.plans.get(month)

    async def fetch_monthly_plans(self, user_id: str) -> List[MonthlyPlan]:
        self._check()
        return [self.plans[key] for key in sorted(self.plans, reverse=True)]

    async def upsert_monthly_plan(self, plan: MonthlyPlan, user_id: str) -> MonthlyPlan:
        self._check()
        self.plans[plan.month] = plan
        return plan.model_copy(update={'user_id': user_id})


@pytest.fixture
def repo() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def client(repo: InMemoryRepository):
    app.dependency_overrides[get_repository] = lambda: repo
    with patch('sales_planner.api.planning.civil_now', return_value=NOW), \
            patch('sales_planner.api.diagnostics.civil_today', return_value=TODAY), \
            patch('sales_planner.api.activity.civil_today', return_value=TODAY):
        yield TestClient(app)
    app.dependency_overrides.clear()


class TestAppEndpoints:
    """Tests for the root and health endpoints."""

    def test_health(self, client: TestClient):
        response = client.get('/health')

        assert response.status_code == 200
        assert response.json() == {'status': 'healthy'}

    def test_root(self, client: TestClient):
        assert client.get('/').json()['name'] == 'Sales Planner API'


class TestActivityRouter:
    """Tests for /activity."""

    def test_put_recomputes_calls_total(self, client: TestClient, repo: InMemoryRepository):
        payload = {'date': '2026-03-12', 'calls_refused': 2, 'calls_answered': 3, 'calls_total': 50}

        response = client.put('/activity/u1', json=payload)

        assert response.status_code == 200
        body = response.json()
        assert body['calls_total'] == 5
        assert body['user_id'] == 'u1'
        assert '2026-03-12' in repo.records

    def test_put_rejects_negative_counter(self, client: TestClient):
        response = client.put('/activity/u1', json={'date': '2026-03-12', 'calls_answered': -1})

        assert response.status_code == 422

    def test_put_rejects_bad_date(self, client: TestClient):
        response = client.put('/activity/u1', json={'date': 'yesterday'})

        assert response.status_code == 400

    def test_list_by_period(self, client: TestClient, repo: InMemoryRepository):
        repo.records['2026-02-27'] = DailyActivityRecord(date='2026-02-27')
        repo.records['2026-03-10'] = DailyActivityRecord(date='2026-03-10')

        response = client.get('/activity/u1', params={'period': 'month'})

        assert [r['date'] for r in response.json()] == ['2026-03-10']

    def test_delete(self, client: TestClient, repo: InMemoryRepository):
        repo.records['2026-03-10'] = DailyActivityRecord(date='2026-03-10')

        assert client.delete('/activity/u1/2026-03-10').status_code == 200
        assert client.delete('/activity/u1/2026-03-10').status_code == 404

    def test_delete_bad_date(self, client: TestClient):
        assert client.delete('/activity/u1/not-a-date').status_code == 400

    def test_import(self, client: TestClient, repo: InMemoryRepository):
        text = (
            "date,calls_refused,calls_no_answer,calls_answered,messages_sent\n"
            "2026-03-02,1,2,3,4\n"
            "2026-03-03,0,0,5,0\n"
        )

        response = client.post(
            '/activity/u1/import',
            files={'file': ('history.csv', text.encode('utf-8'), 'text/csv')},
        )

        assert response.status_code == 200
        assert response.json()['rows_affected'] == 2
        assert repo.records['2026-03-02'].calls_total == 6

    def test_import_rejected(self, client: TestClient, repo: InMemoryRepository):
        response = client.post(
            '/activity/u1/import',
            files={'file': ('bad.csv', b"date,calls_refused\n2026-03-02,1\n", 'text/csv')},
        )

        assert response.status_code == 400
        assert response.json()['detail']['success'] is False
        assert repo.records == {}

    def test_export(self, client: TestClient, repo: InMemoryRepository):
        repo.records['2026-03-10'] = DailyActivityRecord(date='2026-03-10', calls_answered=3)

        response = client.get('/activity/u1/export')

        assert response.status_code == 200
        assert response.headers['content-type'].startswith('text/csv')
        assert '2026-03-10,3,' in response.text

    def test_database_failure(self, client: TestClient, repo: InMemoryRepository):
        repo.fail = True

        assert client.get('/activity/u1').status_code == 500


class TestPlansRouter:
    """Tests for /plans."""

    def test_put_and_get(self, client: TestClient):
        payload = {'month': '2026-03', 'target_won_la_month': 6}

        assert client.put('/plans/u1', json=payload).json()['user_id'] == 'u1'
        assert client.get('/plans/u1/2026-03').json()['target_won_la_month'] == 6

    def test_missing_plan(self, client: TestClient):
        assert client.get('/plans/u1/2026-04').status_code == 404

    def test_bad_month(self, client: TestClient):
        assert client.get('/plans/u1/2026-13').status_code == 400

    def test_workweek_validated(self, client: TestClient):
        response = client.put('/plans/u1', json={'month': '2026-03', 'workdays_per_week': 4})

        assert response.status_code == 422

    def test_list(self, client: TestClient, repo: InMemoryRepository):
        repo.plans['2026-03'] = MonthlyPlan(month='2026-03')
        repo.plans['2026-04'] = MonthlyPlan(month='2026-04')

        months = [p['month'] for p in client.get('/plans/u1').json()]

        assert months == ['2026-04', '2026-03']


class TestPlanningRouter:
    """Tests for /planning."""

    def test_context_without_history(self, client: TestClient):
        body = client.get('/planning/u1/context').json()

        assert body['la']['win_rate']['source'] == 'Standard'
        assert body['attempts_per_win']['value'] == 80.0

    def test_simulate_with_query_targets(self, client: TestClient):
        response = client.get('/planning/u1/simulate', params={'la': 3})

        assert response.status_code == 200
        body = response.json()
        assert body['inputs']['la'] == 3
        assert body['attempts'] == 240

    def test_simulate_without_targets(self, client: TestClient):
        response = client.get('/planning/u1/simulate')

        assert response.status_code == 404
        assert response.json()['detail'] == NO_TARGET_MESSAGE

    def test_simulate_uses_stored_plan(self, client: TestClient, repo: InMemoryRepository):
        repo.plans['2026-03'] = MonthlyPlan(month='2026-03', target_won_fv_month=2)

        body = client.get('/planning/u1/simulate').json()

        assert body['inputs']['fv'] == 2
        assert body['attempts'] == 160

    def test_remaining_without_plan(self, client: TestClient):
        assert client.get('/planning/u1/remaining').status_code == 404

    def test_remaining_bad_month(self, client: TestClient):
        assert client.get('/planning/u1/remaining', params={'month': '2026-3'}).status_code == 400

    def test_remaining(self, client: TestClient, repo: InMemoryRepository):
        repo.plans['2026-03'] = MonthlyPlan(month='2026-03', target_won_la_month=6)

        body = client.get('/planning/u1/remaining').json()

        assert body['remaining_workdays'] == 14
        assert body['required_month']['won'] == 6
        assert body['debug']['month_key'] == '2026-03'

    def test_today_without_plan(self, client: TestClient):
        body = client.get('/planning/u1/today').json()

        assert body['today'] == '2026-03-12'
        assert body['plan']['is_target_set'] is False
        assert body['plan']['message'] == NO_TARGET_MESSAGE
        assert body['pacing'] is None

    def test_today_with_plan(self, client: TestClient, repo: InMemoryRepository):
        repo.plans['2026-03'] = MonthlyPlan(month='2026-03', target_won_la_month=6)

        body = client.get('/planning/u1/today').json()

        assert body['plan']['is_target_set'] is True
        assert body['plan']['daily_won'] == 1
        assert body['pacing']['status'] == 'Behind'
        assert body['pacing']['urgent'] is True

    def test_today_capacity_override(self, client: TestClient, repo: InMemoryRepository):
        repo.plans['2026-03'] = MonthlyPlan(month='2026-03', target_won_la_month=6)

        body = client.get('/planning/u1/today', params={'daily_call_capacity': 10}).json()

        assert body['plan']['capacity_exceeded'] is True


class TestDiagnosticsRouter:
    """Tests for /diagnostics."""

    def test_bundle(self, client: TestClient, repo: InMemoryRepository):
        repo.records['2026-03-10'] = DailyActivityRecord(date='2026-03-10', calls_answered=5)

        response = client.get('/diagnostics/u1')

        assert response.status_code == 200
        body = response.json()
        assert body['period'] == 'month'
        assert body['metrics']['calls'] == 5
        assert body['diagnosis']['bottleneck'] == 'volume'
        assert body['diagnosis']['team_reading'] is None
        assert body['insights']['bottleneck'] == 'volume'
        assert 'score' in body['kpis']

    def test_team_role(self, client: TestClient):
        body = client.get('/diagnostics/u1', params={'role': 'coach'}).json()

        assert body['diagnosis']['team_reading'] is not None

    def test_inverted_custom_period(self, client: TestClient):
        params = {'period': 'custom', 'start': '2026-03-10', 'end': '2026-03-01'}

        assert client.get('/diagnostics/u1', params=params).status_code == 400
