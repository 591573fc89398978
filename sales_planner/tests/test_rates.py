"""
Rate Resolution Test Module

Tests for sales_planner/services/rates.py.

Test Coverage:
- Window priority MTD > 60d > 90d > All Time > Standard
- 60d and 90d windows span exactly 60 and 90 days
- Per-window qualification thresholds for win rate, show rate and
  attempts-per-win
- Sanity clamps (win <= 1.0, show <= 1.5)
- Provenance tag on every resolved value
- Window aggregates exposed on the planning context
"""

from datetime import date

import pytest

from sales_planner.models.enums import Product, RateSource
from sales_planner.services.rates import (
    MAX_SHOW_RATE,
    MAX_WIN_RATE,
    build_windows,
    resolve_attempts_per_win,
    resolve_planning_context,
    resolve_show_rate,
    resolve_win_rate,
    safe_div,
)


class TestSafeDiv:
    """Tests for safe_div."""

    def test_regular_division(self):
        assert safe_div(3, 4) == 0.75

    def test_zero_denominator_returns_fallback(self):
        assert safe_div(3, 0) == 0.0
        assert safe_div(3, 0, fallback=0.7) == 0.7


class TestBuildWindows:
    """Tests for build_windows."""

    def test_window_order_and_membership(self, make_record, today):
        rows = [
            make_record('2025-06-01', won_la=1),   # All Time only
            make_record('2025-12-20', won_la=1),   # 90d
            make_record('2026-02-01', won_la=1),   # 60d
            make_record('2026-03-05', won_la=1),   # MTD
        ]

        windows = build_windows(rows, today)

        assert [source for source, _ in windows] == [
            RateSource.MTD,
            RateSource.DAYS_60,
            RateSource.DAYS_90,
            RateSource.ALL_TIME,
        ]
        assert [agg.won_la for _, agg in windows] == [1, 2, 3, 4]


class TestResolveWinRate:
    """Tests for resolve_win_rate."""

    def test_no_history_uses_standard(self, today):
        windows = build_windows([], today)

        detail = resolve_win_rate(windows, Product.LA)

        assert detail.source == RateSource.STANDARD
        assert detail.value == pytest.approx(0.30)

    def test_mtd_wins_when_one_contract_won(self, make_record, today):
        windows = build_windows([make_record('2026-03-05', done_la=4, won_la=2)], today)

        detail = resolve_win_rate(windows, Product.LA)

        assert detail.source == RateSource.MTD
        assert detail.value == 0.5

    def test_mtd_won_without_done_falls_back_to_default_value(self, make_record, today):
        windows = build_windows([make_record('2026-03-05', won_cad=1)], today)

        detail = resolve_win_rate(windows, Product.CAD)

        assert detail.source == RateSource.MTD
        assert detail.value == pytest.approx(0.35)

    def test_falls_through_to_60_days(self, make_record, today):
        windows = build_windows([make_record('2026-02-01', done_fv=5, won_fv=1)], today)

        detail = resolve_win_rate(windows, Product.FV)

        assert detail.source == RateSource.DAYS_60
        assert detail.value == pytest.approx(0.2)

    def test_falls_through_to_90_days(self, make_record, today):
        # 82 days before today: outside 60d, inside 90d; done >= 8 qualifies
        windows = build_windows([make_record('2025-12-20', done_cad=8, won_cad=1)], today)

        detail = resolve_win_rate(windows, Product.CAD)

        assert detail.source == RateSource.DAYS_90
        assert detail.value == 0.125

    def test_row_exactly_60_days_back_is_outside_60d(self, make_record, today):
        # 2026-01-11 is today - 60
        windows = build_windows([make_record('2026-01-11', done_la=4, won_la=2)], today)

        assert resolve_win_rate(windows, Product.LA).source == RateSource.DAYS_90

    def test_row_exactly_90_days_back_is_outside_90d(self, make_record, today):
        # 2025-12-12 is today - 90; done 4 is too thin for All Time
        windows = build_windows([make_record('2025-12-12', done_la=4, won_la=2)], today)

        assert resolve_win_rate(windows, Product.LA).source == RateSource.STANDARD

    def test_60_day_window_needs_enough_evidence(self, make_record, today):
        # done 4 and won 1 in the 60-day window is not enough anywhere
        windows = build_windows([make_record('2026-02-01', done_la=4, won_la=1)], today)

        assert resolve_win_rate(windows, Product.LA).source == RateSource.STANDARD

    def test_falls_through_to_all_time(self, make_record, today):
        windows = build_windows([make_record('2025-06-01', done_la=5, won_la=1)], today)

        detail = resolve_win_rate(windows, Product.LA)

        assert detail.source == RateSource.ALL_TIME
        assert detail.value == pytest.approx(0.2)

    def test_clamped_to_one(self, make_record, today):
        windows = build_windows([make_record('2026-03-05', done_la=2, won_la=3)], today)

        assert resolve_win_rate(windows, Product.LA).value == MAX_WIN_RATE

    def test_products_resolve_independently(self, make_record, today):
        windows = build_windows([make_record('2026-03-05', done_la=4, won_la=2)], today)

        assert resolve_win_rate(windows, Product.LA).source == RateSource.MTD
        assert resolve_win_rate(windows, Product.FV).source == RateSource.STANDARD


class TestResolveShowRate:
    """Tests for resolve_show_rate."""

    def test_mtd_needs_bookings_and_completions(self, make_record, today):
        windows = build_windows([make_record('2026-03-05', booked_la=5, done_la=4)], today)

        detail = resolve_show_rate(windows, Product.LA)

        assert detail.source == RateSource.MTD
        assert detail.value == pytest.approx(0.8)

    def test_all_time_accepts_bookings_alone(self, make_record, today):
        windows = build_windows([make_record('2025-06-01', booked_fv=3)], today)

        detail = resolve_show_rate(windows, Product.FV)

        assert detail.source == RateSource.ALL_TIME
        assert detail.value == 0.0

    def test_clamped_to_one_and_a_half(self, make_record, today):
        windows = build_windows([make_record('2026-03-05', booked_fv=2, done_fv=4)], today)

        assert resolve_show_rate(windows, Product.FV).value == MAX_SHOW_RATE

    def test_no_history_uses_standard(self, today):
        detail = resolve_show_rate(build_windows([], today), Product.CAD)

        assert detail.source == RateSource.STANDARD
        assert detail.value == pytest.approx(0.70)


class TestResolveAttemptsPerWin:
    """Tests for resolve_attempts_per_win."""

    def test_mtd(self, make_record, today):
        row = make_record(
            '2026-03-02',
            calls_refused=20,
            calls_no_answer=30,
            calls_answered=40,
            messages_sent=10,
            won_la=1,
            won_fv=1,
        )

        detail = resolve_attempts_per_win(build_windows([row], today))

        assert detail.source == RateSource.MTD
        assert detail.value == 50.0

    def test_thin_history_uses_standard(self, make_record, today):
        row = make_record('2026-02-10', calls_answered=120, won_la=2)

        detail = resolve_attempts_per_win(build_windows([row], today))

        assert detail.source == RateSource.STANDARD
        assert detail.value == 80.0

    def test_60_days_needs_three_wins(self, make_record, today):
        row = make_record('2026-02-10', calls_answered=150, won_la=2, won_cad=1)

        detail = resolve_attempts_per_win(build_windows([row], today))

        assert detail.source == RateSource.DAYS_60
        assert detail.value == 50.0


class TestResolvePlanningContext:
    """Tests for resolve_planning_context."""

    def test_every_product_resolved(self, make_record, today):
        context = resolve_planning_context(
            [make_record('2026-03-05', booked_la=5, done_la=4, won_la=2)],
            today,
        )

        assert context.la.win_rate.source == RateSource.MTD
        assert context.la.show_rate.source == RateSource.MTD
        assert context.fv.win_rate.source == RateSource.STANDARD
        assert context.cad.show_rate.source == RateSource.STANDARD
        assert context.for_product(Product.LA) == context.la

    def test_windows_exposed(self, make_record, today):
        context = resolve_planning_context([make_record('2026-03-05', won_la=1)], today)

        assert set(context.windows) == {'MTD', '60d', '90d', 'All Time'}
        assert context.windows['MTD'].won_la == 1

    def test_history_is_not_mutated(self, make_record, today):
        rows = [make_record('2026-03-05', won_la=1)]

        resolve_planning_context(rows, today)

        assert rows[0].date == '2026-03-05'
        assert len(rows) == 1

    def test_defaults_follow_settings(self, monkeypatch, today):
        monkeypatch.setenv('DEFAULT_WIN_RATE_LA', '0.5')

        context = resolve_planning_context([], today)

        assert context.la.win_rate.value == 0.5
        assert context.la.win_rate.source == RateSource.STANDARD
