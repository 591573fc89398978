"""
Rule-based funnel diagnostics for the Sales Planner backend.

Identifies the single weakest stage of the realized funnel by walking an
ordered threshold table and returns a fixed coaching template for it. There
is no learning or external call involved: the "coach" is this rule table.

Key Functions:
- classify_bottleneck: First matching rule of the ordered threshold table
- rank_products: Order product lines by win_rate*100 + show_rate*50
- diagnose: Diagnosis, critical area, actions and priority for a period
- generate_strategic_insights: Dashboard bottleneck label, product ranking,
  alerts versus the trailing 30 days and the general status

Rule Table (first match wins, thresholds from Settings):
1. useful_contacts < 15 -> volume
2. booking_rate < 0.15 -> booking
3. show_rate < 0.60 -> show
4. win_rate < 0.20 -> closing
5. otherwise -> none (scaling phase)

Strategic insights use the coarser dashboard thresholds:
contacts < 20 (with data), booking < 0.10, show < 0.50, win < 0.20.
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Tuple

from sales_planner.core.config import get_settings
from sales_planner.models.enums import (
    AlertType,
    Bottleneck,
    Level,
    PerformanceTrend,
    Product,
    UserRole,
)
from sales_planner.models.schemas import (
    DailyActivityRecord,
    Diagnosis,
    FunnelMetrics,
    GeneralStatus,
    ProductKPIs,
    StrategicAlert,
    StrategicInsights,
)
from sales_planner.services.aggregation import aggregate_records, filter_last_days
from sales_planner.services.metrics import product_breakdown, product_score
from sales_planner.services.rates import safe_div

logger = logging.getLogger(__name__)


# Roles that receive the team-level narrative
TEAM_ROLES = frozenset({UserRole.ADMIN, UserRole.COACH, UserRole.LEADER})

# Dashboard-level thresholds for the strategic insights card
INSIGHT_MIN_CONTACTS: int = 20
INSIGHT_MIN_BOOKING_RATE: float = 0.10
INSIGHT_MIN_SHOW_RATE: float = 0.50
INSIGHT_MIN_WIN_RATE: float = 0.20

BASELINE_DAYS: int = 30
MAX_ALERTS: int = 3

BOTTLENECK_LABELS: Dict[Bottleneck, str] = {
    Bottleneck.VOLUME: "Low attempt volume",
    Bottleneck.BOOKING: "Script quality / booking",
    Bottleneck.SHOW: "No-show / confirmations",
    Bottleneck.CLOSING: "Closing / negotiation",
    Bottleneck.NONE: "Scaling (increase volume)",
}


def _pct(rate: float) -> str:
    return f"{rate * 100:.0f}"


# =============================================================================
# Classification
# =============================================================================


def classify_bottleneck(metrics: FunnelMetrics) -> Bottleneck:
    """Walk the ordered rule table and return the first matching stage."""
    settings = get_settings()
    if metrics.useful_contacts < settings.min_useful_contacts:
        return Bottleneck.VOLUME
    if metrics.booking_rate < settings.min_booking_rate:
        return Bottleneck.BOOKING
    if metrics.show_rate < settings.min_show_rate:
        return Bottleneck.SHOW
    if metrics.win_rate < settings.min_win_rate:
        return Bottleneck.CLOSING
    return Bottleneck.NONE


def rank_products(products: Dict[Product, ProductKPIs]) -> List[Tuple[Product, ProductKPIs]]:
    """
    Order product lines best first.

    Ties keep the declaration order (LA, FV, CAD).
    """
    ordered = [(p, products[p]) for p in Product]
    return sorted(ordered, key=lambda item: product_score(item[1]), reverse=True)


# =============================================================================
# Templates
# =============================================================================


def _template(
    bottleneck: Bottleneck,
    metrics: FunnelMetrics,
    worst: Product
) -> Tuple[str, str, List[str], str]:
    if bottleneck == Bottleneck.VOLUME:
        return (
            "The engine is off. You are not talking to enough people.",
            f"You made only {metrics.useful_contacts} useful contacts. "
            f"Below 15 a day the numbers don't work for you.",
            [
                "Block two 90-minute slots a day in your calendar (deep work).",
                "Pull the list of old leads and customers and run a call round.",
                "Stop studying, start calling.",
            ],
            "Goal: +50% attempt volume tomorrow.",
        )
    if bottleneck == Bottleneck.BOOKING:
        return (
            f"You are burning contacts. The booking rate ({_pct(metrics.booking_rate)}%) is insufficient.",
            "People answer but don't book. The problem is the script or your tone.",
            [
                "Record your calls and listen back to 3 critical ones.",
                "Roleplay the opening script with your sponsor.",
                "Stop 'explaining' on the phone. Sell only the appointment.",
            ],
            "Focus: improve the opening script and objection handling.",
        )
    if bottleneck == Bottleneck.SHOW:
        return (
            f"Too many no-shows. {_pct(1 - metrics.show_rate)}% of people stand you up.",
            "You are not selling the value of the meeting. "
            "The appointment is perceived as optional.",
            [
                "Send a video or material before the meeting to raise commitment.",
                "Use the 'double yes' technique to confirm the time.",
                "Call 2 hours before to reconfirm (or send a voice message).",
            ],
            "Priority: raise the show rate above 60% right away.",
        )
    if bottleneck == Bottleneck.CLOSING:
        return (
            f"You get to the point but don't close. Low win rate ({_pct(metrics.win_rate)}%).",
            f"You take people to the end but they hesitate. "
            f"A closing or pre-qualification problem on {worst.display_name}.",
            [
                "Ask direct closing questions ('Is there any reason not to start?').",
                "Check budget and decision maker BEFORE presenting the offer.",
                "Practice handling the 'I need to think about it' objection.",
            ],
            f"Focus: close at least 1 {worst.display_name} contract within 48h.",
        )
    return (
        "Well-oiled machine. You are in the SCALING phase.",
        "No serious issues. Be careful not to lower quality while increasing volume.",
        [
            "Increase volume by 20% to test the breaking point.",
            "Start training a new team member on your method.",
            "Raise the average ticket (cross-sell).",
        ],
        "Goal: keep these numbers steady for 7 days.",
    )


def _team_reading(
    bottleneck: Bottleneck,
    user_role: UserRole,
    team_members_count: Optional[int]
) -> Optional[str]:
    if UserRole(user_role) not in TEAM_ROLES:
        return None
    if bottleneck == Bottleneck.NONE:
        return (
            "You're flying. Now duplicate yourself: take your top performer "
            "and teach them EXACTLY what you do."
        )
    if team_members_count:
        return "The team needs direction. Check who has a red traffic light."
    return "Team under construction. Focus on leading by example."


def diagnose(
    metrics: FunnelMetrics,
    user_role: UserRole,
    team_members_count: Optional[int] = None
) -> Diagnosis:
    """
    Produce the coaching diagnosis for a reporting period.

    Args:
        metrics: Aggregated period metrics.
        user_role: Role of the reader; team roles get a team narrative.
        team_members_count: Size of the reader's team, if known.

    Returns:
        Diagnosis with bottleneck, template texts and best/worst product.
    """
    bottleneck = classify_bottleneck(metrics)
    ranked = rank_products(metrics.products)
    best, best_kpis = ranked[0]
    worst, _ = ranked[-1]

    diagnosis, critical_area, actions, priority = _template(bottleneck, metrics, worst)

    if best_kpis.done > 0:
        whats_working = (
            f"{best.display_name} is your driver: WR {_pct(best_kpis.win_rate)}% "
            f"and show rate {_pct(best_kpis.show_rate)}%."
        )
    else:
        whats_working = "Still too little data to name a 'star' product. Keep pushing."

    logger.debug(f"Diagnosed bottleneck={bottleneck.value} best={best.value} worst={worst.value}")

    return Diagnosis(
        bottleneck=bottleneck,
        diagnosis=diagnosis,
        whats_working=whats_working,
        critical_area=critical_area,
        actions=actions,
        priority=priority,
        best_product=best,
        worst_product=worst,
        team_reading=_team_reading(bottleneck, user_role, team_members_count),
    )


# =============================================================================
# Strategic Insights
# =============================================================================


def _insight_bottleneck(agg: DailyActivityRecord, has_rows: bool) -> Bottleneck:
    booking_rate = safe_div(agg.booked_total, agg.contacts)
    show_rate = safe_div(agg.done_total, agg.booked_total)
    win_rate = safe_div(agg.won_total, agg.done_total)

    if agg.contacts < INSIGHT_MIN_CONTACTS and has_rows:
        return Bottleneck.VOLUME
    if booking_rate < INSIGHT_MIN_BOOKING_RATE:
        return Bottleneck.BOOKING
    if show_rate < INSIGHT_MIN_SHOW_RATE:
        return Bottleneck.SHOW
    if win_rate < INSIGHT_MIN_WIN_RATE:
        return Bottleneck.CLOSING
    return Bottleneck.NONE


def _build_alerts(
    agg: DailyActivityRecord,
    baseline: DailyActivityRecord,
    products: Dict[Product, ProductKPIs]
) -> List[StrategicAlert]:
    booking_rate = safe_div(agg.booked_total, agg.contacts)
    win_rate = safe_div(agg.won_total, agg.done_total)
    baseline_booking_rate = safe_div(baseline.booked_total, baseline.contacts)
    baseline_win_rate = safe_div(baseline.won_total, baseline.done_total)

    alerts: List[StrategicAlert] = []
    if booking_rate < baseline_booking_rate * 0.8 and agg.booked_total > 0:
        alerts.append(StrategicAlert(
            type=AlertType.DANGER,
            message="Booking rate dropping sharply",
            metric=f"{_pct(booking_rate)}%",
        ))
    if win_rate > baseline_win_rate * 1.1 and agg.won_total > 0:
        alerts.append(StrategicAlert(
            type=AlertType.SUCCESS,
            message="Win rate above average",
            metric=f"+{_pct(win_rate - baseline_win_rate)}%",
        ))

    fv, la = products[Product.FV], products[Product.LA]
    if fv.show_rate < 0.5 and fv.booked > 2:
        alerts.append(StrategicAlert(
            type=AlertType.WARNING,
            message="FV: critical show rate",
            metric=f"{_pct(fv.show_rate)}%",
        ))
    if la.win_rate < 0.2 and la.done > 2:
        alerts.append(StrategicAlert(
            type=AlertType.WARNING,
            message="LA: weak closing",
            metric=f"{_pct(la.win_rate)}%",
        ))

    if not alerts:
        alerts.append(StrategicAlert(type=AlertType.SUCCESS, message="Stable performance", metric="OK"))
    return alerts[:MAX_ALERTS]


def generate_strategic_insights(
    period_records: List[DailyActivityRecord],
    all_records: List[DailyActivityRecord],
    today: date
) -> StrategicInsights:
    """
    Build the dashboard's strategic insights card.

    Args:
        period_records: Rows of the selected period.
        all_records: Full history; the last 30 days form the baseline.
        today: Civil date anchoring the baseline window.

    Returns:
        StrategicInsights with bottleneck label, best/worst product ("N/A"
        when the score is 0), up to three alerts and the general status.
    """
    agg = aggregate_records(period_records)
    products = product_breakdown(agg)
    baseline_rows = filter_last_days(all_records, today, BASELINE_DAYS)
    baseline = aggregate_records(baseline_rows)

    bottleneck = _insight_bottleneck(agg, bool(period_records))

    ranked = rank_products(products)
    best, best_kpis = ranked[0]
    worst, worst_kpis = ranked[-1]

    won_per_day = safe_div(agg.won_total, len(period_records) or 1)
    baseline_won_per_day = safe_div(baseline.won_total, len(baseline_rows) or 1)
    performance = PerformanceTrend.STABLE
    if won_per_day > baseline_won_per_day * 1.1:
        performance = PerformanceTrend.GROWTH
    elif won_per_day < baseline_won_per_day * 0.9:
        performance = PerformanceTrend.DECLINE

    calls_per_day = safe_div(agg.calls_total, len(period_records) or 1)
    intensity = Level.MEDIUM
    if calls_per_day > 60:
        intensity = Level.HIGH
    elif calls_per_day < 30:
        intensity = Level.LOW

    win_rate = safe_div(agg.won_total, agg.done_total)

    return StrategicInsights(
        bottleneck=bottleneck,
        bottleneck_label=BOTTLENECK_LABELS[bottleneck],
        best_product=best.display_name if product_score(best_kpis) > 0 else "N/A",
        worst_product=worst.display_name if product_score(worst_kpis) > 0 else "N/A",
        alerts=_build_alerts(agg, baseline, products),
        general_status=GeneralStatus(
            performance=performance,
            intensity=intensity,
            effectiveness=Level.HIGH if win_rate > 0.25 else Level.LOW,
        ),
    )
