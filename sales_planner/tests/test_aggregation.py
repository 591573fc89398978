"""
Aggregation Test Module

Tests for sales_planner/services/aggregation.py.

Test Coverage:
- Count fields summed, calls_total recomputed from the outcomes
- Wellbeing means rounded half-up
- Additivity over disjoint partitions
- Empty selection yields the "N/A" zero record
- Month, since, between and dashboard period filters
- Month key formatting and parsing
"""

from datetime import date

import pytest

from sales_planner.models.enums import Period
from sales_planner.models.schemas import COUNT_FIELDS, DailyActivityRecord
from sales_planner.services.aggregation import (
    aggregate_records,
    filter_between,
    filter_by_period,
    filter_last_days,
    filter_month,
    filter_since,
    month_key,
    parse_month_key,
)


class TestAggregateRecords:
    """Tests for aggregate_records."""

    def test_empty_selection_is_zero_record(self):
        agg = aggregate_records([])

        assert agg.date == "N/A"
        assert agg.calls_total == 0
        assert agg.won_total == 0
        assert agg.energy_level == 0

    def test_counts_are_summed(self, make_record):
        rows = [
            make_record('2026-03-02', calls_refused=5, calls_answered=10, booked_la=2, won_fv=1),
            make_record('2026-03-03', calls_no_answer=7, calls_answered=3, booked_la=1, won_fv=2),
        ]

        agg = aggregate_records(rows)

        assert agg.date == "AGGREGATE"
        assert agg.calls_refused == 5
        assert agg.calls_no_answer == 7
        assert agg.calls_answered == 13
        assert agg.booked_la == 3
        assert agg.won_fv == 3

    def test_calls_total_is_recomputed(self, make_record):
        rows = [
            make_record('2026-03-02', calls_refused=1, calls_no_answer=2, calls_answered=3),
            make_record('2026-03-03', calls_refused=4, calls_no_answer=5, calls_answered=6),
        ]

        assert aggregate_records(rows).calls_total == 21

    def test_stored_calls_total_is_ignored(self):
        record = DailyActivityRecord(date='2026-03-02', calls_total=999, calls_answered=4)

        assert record.calls_total == 4

    def test_wellbeing_mean_rounds_half_up(self, make_record):
        rows = [
            make_record('2026-03-02', energy_level=7, focus_level=6, confidence_level=5),
            make_record('2026-03-03', energy_level=8, focus_level=7, confidence_level=5),
        ]

        agg = aggregate_records(rows)

        assert agg.energy_level == 8
        assert agg.focus_level == 7
        assert agg.confidence_level == 5

    def test_additive_over_partitions(self, make_record):
        part_a = [
            make_record('2026-03-02', calls_answered=10, booked_fv=2, done_fv=1, target_calls=50),
            make_record('2026-03-03', messages_sent=4, won_la=1),
        ]
        part_b = [
            make_record('2026-03-04', calls_refused=3, booked_cad=1, done_cde=2, new_leads=5),
        ]

        whole = aggregate_records(part_a + part_b)
        agg_a = aggregate_records(part_a)
        agg_b = aggregate_records(part_b)

        for name in COUNT_FIELDS:
            assert getattr(whole, name) == getattr(agg_a, name) + getattr(agg_b, name)

    def test_input_is_not_mutated(self, make_record):
        rows = [make_record('2026-03-02', won_la=1), make_record('2026-03-03', won_la=2)]

        aggregate_records(rows)

        assert [r.won_la for r in rows] == [1, 2]
        assert [r.date for r in rows] == ['2026-03-02', '2026-03-03']


class TestRecordDerivedCounts:
    """Tests for the derived totals on DailyActivityRecord."""

    def test_done_total_excludes_cde(self, make_record):
        record = make_record('2026-03-02', done_la=1, done_fv=2, done_cad=3, done_cde=10)

        assert record.done_total == 6

    def test_attempts_and_contacts(self, make_record):
        record = make_record(
            '2026-03-02',
            calls_refused=5,
            calls_no_answer=10,
            calls_answered=20,
            messages_sent=8,
        )

        assert record.attempts == 43
        assert record.contacts == 28

    def test_negative_counter_rejected(self, make_record):
        with pytest.raises(ValueError):
            make_record('2026-03-02', calls_answered=-1)


class TestWindowFilters:
    """Tests for the date window filters."""

    def test_filter_month_prefix(self, make_record):
        rows = [
            make_record('2026-02-28'),
            make_record('2026-03-01'),
            make_record('2026-03-31'),
            make_record('2026-04-01'),
        ]

        assert [r.date for r in filter_month(rows, '2026-03')] == ['2026-03-01', '2026-03-31']

    def test_filter_since_is_inclusive(self, make_record):
        rows = [make_record('2026-01-10'), make_record('2026-01-11'), make_record('2026-01-12')]

        result = filter_since(rows, date(2026, 1, 11))

        assert [r.date for r in result] == ['2026-01-11', '2026-01-12']

    def test_filter_last_days_excludes_day_n(self, make_record):
        rows = [make_record('2026-01-11'), make_record('2026-01-12'), make_record('2026-03-12')]

        result = filter_last_days(rows, date(2026, 3, 12), 60)

        # 2026-01-11 is exactly 60 days back; 2026-01-12 is the first day in
        assert [r.date for r in result] == ['2026-01-12', '2026-03-12']

    def test_filter_between_is_inclusive(self, make_record):
        rows = [make_record(f'2026-03-0{d}') for d in range(1, 8)]

        result = filter_between(rows, date(2026, 3, 2), date(2026, 3, 4))

        assert [r.date for r in result] == ['2026-03-02', '2026-03-03', '2026-03-04']


class TestFilterByPeriod:
    """Tests for the dashboard period selection."""

    @pytest.fixture
    def rows(self, make_record):
        return [
            make_record('2026-02-27'),
            make_record('2026-03-08'),
            make_record('2026-03-09'),
            make_record('2026-03-12'),
        ]

    def test_today(self, rows, today):
        result = filter_by_period(rows, Period.TODAY, today)
        assert [r.date for r in result] == ['2026-03-12']

    def test_week_starts_monday(self, rows, today):
        # 2026-03-09 is the Monday of the week containing 2026-03-12
        result = filter_by_period(rows, Period.WEEK, today)
        assert [r.date for r in result] == ['2026-03-09', '2026-03-12']

    def test_month(self, rows, today):
        result = filter_by_period(rows, Period.MONTH, today)
        assert len(result) == 3

    def test_custom(self, rows, today):
        result = filter_by_period(rows, Period.CUSTOM, today, date(2026, 2, 1), date(2026, 3, 8))
        assert [r.date for r in result] == ['2026-02-27', '2026-03-08']

    def test_custom_without_bounds_returns_all(self, rows, today):
        assert len(filter_by_period(rows, Period.CUSTOM, today, start=date(2026, 3, 1))) == 4

    def test_all(self, rows, today):
        assert len(filter_by_period(rows, 'all', today)) == 4


class TestMonthKeys:
    """Tests for month key helpers."""

    def test_month_key_zero_pads(self):
        assert month_key(date(2026, 3, 1)) == '2026-03'

    def test_parse_month_key(self):
        assert parse_month_key('2026-12') == (2026, 12)

    @pytest.mark.parametrize('key', ['2026-13', '2026-3', 'march', '2026-00', '2026/03'])
    def test_parse_month_key_rejects_malformed(self, key):
        with pytest.raises(ValueError):
            parse_month_key(key)
