"""
Dashboard metrics and KPI service for the Sales Planner backend.

Computes the realized funnel for a reporting period. The FunnelMetrics model
built here is the input of the diagnostics rule table; the KPIReport is the
scorecard shown next to it.

Key Functions:
- product_breakdown: Per-product booked/done/won and conversion rates
- build_funnel_metrics: Period funnel plus the 7-day won trend
- calculate_kpis: Call outcome rates, target completion, wellbeing and score

Conversion Rates:
- contact_rate = contacts / calls_total
- booking_rate = booked / contacts
- show_rate = done / booked
- win_rate = won / done
All ratios are 0 when their denominator is 0.

Score:
- min(calls_completion, 1) * 40 + booking_rate * 30 + win_rate * 30
- >= 80 Excellent, >= 60 Good, else Below Standard
"""

from datetime import date, timedelta
from typing import Dict, List, Tuple

from sales_planner.models.enums import Product, TrendDirection
from sales_planner.models.schemas import (
    DailyActivityRecord,
    FunnelMetrics,
    KPIRates,
    KPIReport,
    KPIScore,
    KPITargets,
    KPIWellbeing,
    ProductKPIs,
)
from sales_planner.services.aggregation import aggregate_records, filter_between
from sales_planner.services.rates import safe_div


TREND_THRESHOLD_PCT: float = 10.0

SCORE_EXCELLENT: float = 80.0
SCORE_GOOD: float = 60.0


# =============================================================================
# Product Breakdown
# =============================================================================


def product_breakdown(agg: DailyActivityRecord) -> Dict[Product, ProductKPIs]:
    """
    Per-product funnel counts and rates for an aggregated record.

    calls_per_won divides all calls by the product's wins, an approximation
    since calls are not attributed to a product.
    """
    return {
        product: ProductKPIs(
            booked=agg.booked(product),
            done=agg.done(product),
            won=agg.won(product),
            show_rate=safe_div(agg.done(product), agg.booked(product)),
            win_rate=safe_div(agg.won(product), agg.done(product)),
            calls_per_won=safe_div(agg.calls_total, agg.won(product)),
        )
        for product in Product
    }


def product_score(kpis: ProductKPIs) -> float:
    """Composite ranking score used to name the best and worst product."""
    return kpis.win_rate * 100 + kpis.show_rate * 50


# =============================================================================
# Funnel Metrics
# =============================================================================


def won_trend(
    all_records: List[DailyActivityRecord],
    today: date
) -> Tuple[int, int, TrendDirection, float]:
    """
    Compare won contracts in the last 7 days with the 7 days before.

    Returns:
        (won_last7, won_prev7, direction, pct_change). With no previous wins
        the change is 100% if anything was won, else 0%.
    """
    last7 = aggregate_records(filter_between(all_records, today - timedelta(days=6), today))
    prev7 = aggregate_records(
        filter_between(all_records, today - timedelta(days=13), today - timedelta(days=7))
    )
    won_last7, won_prev7 = last7.won_total, prev7.won_total

    if won_prev7 == 0:
        pct_change = 100.0 if won_last7 > 0 else 0.0
    else:
        pct_change = (won_last7 - won_prev7) / won_prev7 * 100

    direction = TrendDirection.STABLE
    if pct_change > TREND_THRESHOLD_PCT:
        direction = TrendDirection.UP
    elif pct_change < -TREND_THRESHOLD_PCT:
        direction = TrendDirection.DOWN

    return won_last7, won_prev7, direction, pct_change


def build_funnel_metrics(
    period_records: List[DailyActivityRecord],
    all_records: List[DailyActivityRecord],
    today: date
) -> FunnelMetrics:
    """
    Aggregate a reporting period into the metrics the diagnostics engine reads.

    Args:
        period_records: Rows of the selected period.
        all_records: Full history, used for the 7-day trend.
        today: Civil date anchoring the trend windows.

    Returns:
        FunnelMetrics. useful_contacts carries the period's total calls.
    """
    agg = aggregate_records(period_records)
    calls = agg.calls_total
    contacts = agg.contacts
    booked, done, won = agg.booked_total, agg.done_total, agg.won_total
    won_last7, won_prev7, direction, pct_change = won_trend(all_records, today)

    return FunnelMetrics(
        calls=calls,
        contacts=contacts,
        booked=booked,
        done=done,
        won=won,
        new_leads=agg.new_leads,
        useful_contacts=calls,
        contact_rate=safe_div(contacts, calls),
        booking_rate=safe_div(booked, contacts),
        show_rate=safe_div(done, booked),
        win_rate=safe_div(won, done),
        calls_per_won=safe_div(calls, won),
        calls_per_booked=safe_div(calls, booked),
        response_rate=safe_div(agg.calls_answered, calls),
        products=product_breakdown(agg),
        won_last7=won_last7,
        won_prev7=won_prev7,
        trend_direction=direction,
        trend_pct=pct_change,
    )


# =============================================================================
# KPI Scorecard
# =============================================================================


def score_label(total_score: float) -> str:
    if total_score >= SCORE_EXCELLENT:
        return "Excellent"
    if total_score >= SCORE_GOOD:
        return "Good"
    return "Below Standard"


def calculate_kpis(agg: DailyActivityRecord) -> KPIReport:
    """
    Build the KPI scorecard for an aggregated record.

    Target completion compares actuals with the summed target snapshots
    stored on each row.
    """
    calls = agg.calls_total
    booked, done, won = agg.booked_total, agg.done_total, agg.won_total

    booking_rate = safe_div(booked, agg.contacts)
    win_rate = safe_div(won, done)
    calls_completion = safe_div(calls, agg.target_calls)

    volume_score = min(calls_completion, 1) * 40
    booking_score = booking_rate * 30
    win_score = win_rate * 30
    total_score = volume_score + booking_score + win_score

    return KPIReport(
        totals=agg,
        rates=KPIRates(
            answer_rate=safe_div(agg.calls_answered, calls),
            refused_rate=safe_div(agg.calls_refused, calls),
            no_answer_rate=safe_div(agg.calls_no_answer, calls),
            contact_efficiency=safe_div(agg.contacts, calls),
            messages_per_call=safe_div(agg.messages_sent, calls),
            booking_rate=booking_rate,
            show_rate=safe_div(done, booked),
            win_rate=win_rate,
            win_rate_la=safe_div(agg.won_la, agg.done_la),
            win_rate_fv=safe_div(agg.won_fv, agg.done_fv),
            win_rate_cad=safe_div(agg.won_cad, agg.done_cad),
        ),
        targets=KPITargets(
            calls_completion=calls_completion,
            booked_completion=safe_div(booked, agg.target_booked),
            won_completion=safe_div(won, agg.target_won),
        ),
        wellbeing=KPIWellbeing(
            avg_energy=agg.energy_level,
            avg_focus=agg.focus_level,
            avg_confidence=agg.confidence_level,
        ),
        score=KPIScore(
            volume_score=volume_score,
            booking_score=booking_score,
            win_score=win_score,
            total_score=total_score,
            label=score_label(total_score),
        ),
    )
