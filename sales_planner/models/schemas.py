"""
Pydantic models for the Sales Planner backend.

This module provides type-safe data validation and serialization for the
activity log, the monthly plan, and every output of the planning and
diagnostics engine:

- DailyActivityRecord / MonthlyPlan: user-entered inputs
- RateDetail / ProductRates / PlanningContext: resolved conversion rates with provenance
- FunnelRequirement: reverse-funnel sizing of a monthly target
- RemainingPlan / DailyPlan: remaining-month redistribution into daily quotas
- PacingResult: intraday projection of the won quota
- FunnelMetrics / KPIReport / Diagnosis / StrategicInsights: diagnostics outputs
- ValidationError / ImportResult: CSV import reporting

All models use Pydantic v2 syntax. Engine outputs are plain data with no
persistence format of their own.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from sales_planner.models.enums import (
    AlertType,
    Bottleneck,
    Level,
    PaceStatus,
    PerformanceTrend,
    Period,
    Product,
    RateSource,
    RealityStatus,
    TrendDirection,
)


# =============================================================================
# Field Groups
# =============================================================================

# Summed by the aggregator. calls_total is derived and never listed here.
COUNT_FIELDS: List[str] = [
    'calls_refused',
    'calls_no_answer',
    'calls_answered',
    'messages_sent',
    'booked_la',
    'booked_fv',
    'booked_cad',
    'new_leads',
    'done_la',
    'done_fv',
    'done_cad',
    'done_cde',
    'won_la',
    'won_fv',
    'won_cad',
    'target_calls',
    'target_booked',
    'target_won',
]

# Averaged (half-up rounded) by the aggregator.
WELLBEING_FIELDS: List[str] = [
    'energy_level',
    'focus_level',
    'confidence_level',
]


# =============================================================================
# Input Models
# =============================================================================


class DailyActivityRecord(BaseModel):
    """
    One row of activity per (user, calendar date).

    calls_total is a computed field: it is recomputed from the three call
    outcome counters on every read and serialization, and any stored value is
    ignored on input.
    """
    model_config = ConfigDict(
        extra='ignore',
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "date": "2026-03-12",
                "calls_refused": 12,
                "calls_no_answer": 20,
                "calls_answered": 18,
                "messages_sent": 6,
                "booked_la": 2,
                "booked_fv": 1,
                "booked_cad": 0,
                "new_leads": 3,
                "done_la": 1,
                "done_fv": 1,
                "done_cad": 0,
                "done_cde": 0,
                "won_la": 1,
                "won_fv": 0,
                "won_cad": 0,
                "energy_level": 8,
                "focus_level": 7,
                "confidence_level": 7,
                "mood_note": "Good rhythm after lunch"
            }
        }
    )

    date: str = Field(..., description="Calendar date, YYYY-MM-DD")
    user_id: Optional[str] = Field(default=None, description="Owner of the row")

    # Outreach
    calls_refused: int = Field(default=0, ge=0)
    calls_no_answer: int = Field(default=0, ge=0)
    calls_answered: int = Field(default=0, ge=0)
    messages_sent: int = Field(default=0, ge=0)

    # Booked appointments
    booked_la: int = Field(default=0, ge=0)
    booked_fv: int = Field(default=0, ge=0)
    booked_cad: int = Field(default=0, ge=0)

    new_leads: int = Field(default=0, ge=0)

    # Completed appointments (cde is the non-product category)
    done_la: int = Field(default=0, ge=0)
    done_fv: int = Field(default=0, ge=0)
    done_cad: int = Field(default=0, ge=0)
    done_cde: int = Field(default=0, ge=0)

    # Won contracts
    won_la: int = Field(default=0, ge=0)
    won_fv: int = Field(default=0, ge=0)
    won_cad: int = Field(default=0, ge=0)

    # Targets in effect when the row was written
    target_calls: int = Field(default=0, ge=0)
    target_booked: int = Field(default=0, ge=0)
    target_won: int = Field(default=0, ge=0)

    # Wellbeing (1-10 when entered; aggregate of nothing is 0)
    energy_level: int = Field(default=0, ge=0, le=10)
    focus_level: int = Field(default=0, ge=0, le=10)
    confidence_level: int = Field(default=0, ge=0, le=10)
    mood_note: str = Field(default='', description="Free-text note")

    @computed_field
    @property
    def calls_total(self) -> int:
        return self.calls_refused + self.calls_no_answer + self.calls_answered

    @property
    def attempts(self) -> int:
        """Outreach attempts: calls plus messages."""
        return self.calls_total + self.messages_sent

    @property
    def contacts(self) -> int:
        """Attempts that reached a live person."""
        return self.calls_answered + self.messages_sent

    def booked(self, product: Product) -> int:
        return getattr(self, f"booked_{Product(product).value}")

    def done(self, product: Product) -> int:
        return getattr(self, f"done_{Product(product).value}")

    def won(self, product: Product) -> int:
        return getattr(self, f"won_{Product(product).value}")

    @property
    def booked_total(self) -> int:
        return sum(self.booked(p) for p in Product)

    @property
    def done_total(self) -> int:
        # Product lines only: done_cde never counts toward the sales funnel
        return sum(self.done(p) for p in Product)

    @property
    def won_total(self) -> int:
        return sum(self.won(p) for p in Product)


class MonthlyPlan(BaseModel):
    """
    Monthly won-contract targets for one user.

    At most one plan exists per user per month; absence means "no target set".
    """
    model_config = ConfigDict(
        extra='ignore',
        json_schema_extra={
            "example": {
                "month": "2026-03",
                "workdays_per_week": 5,
                "target_won_la_month": 6,
                "target_won_fv_month": 3,
                "target_won_cad_month": 2,
                "target_new_leads_month": 20
            }
        }
    )

    month: str = Field(..., pattern=r'^\d{4}-\d{2}$', description="Month key, YYYY-MM")
    user_id: Optional[str] = Field(default=None)
    workdays_per_week: int = Field(default=5, ge=5, le=7)
    target_won_la_month: int = Field(default=0, ge=0)
    target_won_fv_month: int = Field(default=0, ge=0)
    target_won_cad_month: int = Field(default=0, ge=0)
    target_new_leads_month: int = Field(default=0, ge=0)
    daily_call_capacity: Optional[int] = Field(
        default=None,
        ge=0,
        description="Optional attempts-per-day ceiling, not persisted"
    )

    def target_won(self, product: Product) -> int:
        return getattr(self, f"target_won_{Product(product).value}_month")

    @property
    def total_target_won(self) -> int:
        return sum(self.target_won(p) for p in Product)


# =============================================================================
# Rate Resolution
# =============================================================================


class RateDetail(BaseModel):
    """A resolved rate tagged with the historical window that produced it."""
    value: float = Field(..., ge=0.0)
    source: RateSource


class ProductRates(BaseModel):
    win_rate: RateDetail
    show_rate: RateDetail


class PlanningContext(BaseModel):
    """
    Resolved rates for every product line plus the global attempts-per-win.

    windows holds the four window aggregates the rates were read from.
    """
    la: ProductRates
    fv: ProductRates
    cad: ProductRates
    attempts_per_win: RateDetail
    windows: Dict[str, DailyActivityRecord] = Field(default_factory=dict)

    def for_product(self, product: Product) -> ProductRates:
        return getattr(self, Product(product).value)


# =============================================================================
# Funnel Sizing
# =============================================================================


class FunnelTargets(BaseModel):
    la: int = Field(default=0, ge=0)
    fv: int = Field(default=0, ge=0)
    cad: int = Field(default=0, ge=0)
    workdays_per_week: int = Field(default=5, ge=5, le=7)

    def for_product(self, product: Product) -> int:
        return getattr(self, Product(product).value)

    @property
    def total(self) -> int:
        return self.la + self.fv + self.cad


class SimulationModifiers(BaseModel):
    """Percentage uplifts for what-if exploration (0 = no change)."""
    win_rate_pct: float = Field(default=0.0, ge=0.0, le=100.0)
    show_rate_pct: float = Field(default=0.0, ge=0.0, le=100.0)


class FlatDailyEstimate(BaseModel):
    """Month requirement divided by the fixed assumed days per month."""
    attempts: int
    booked: float
    done: float
    won: float


class RealityCheck(BaseModel):
    growth_factor: float
    status: RealityStatus
    avg_monthly_won: float
    message: str


class FunnelRequirement(BaseModel):
    """Required counts at every funnel stage for the monthly target."""
    inputs: FunnelTargets
    required_done: Dict[Product, int]
    required_booked: Dict[Product, int]
    done_total: int
    booked_total: int
    done_cde: int = 0
    attempts: int
    effective_win_rates: Dict[Product, float]
    effective_show_rates: Dict[Product, float]
    rates_used: PlanningContext
    flat_daily: FlatDailyEstimate
    reality_check: RealityCheck

    @property
    def won_total(self) -> int:
        return self.inputs.total


# =============================================================================
# Remaining-Month Distribution
# =============================================================================


class StageCounts(BaseModel):
    attempts: int = 0
    booked: int = 0
    done: int = 0
    won: int = 0


class StageAverages(BaseModel):
    attempts: float = 0.0
    booked: float = 0.0
    done: float = 0.0
    won: float = 0.0


class LeadStageCounts(StageCounts):
    leads: int = 0


class DebugSample(BaseModel):
    date: str
    attempts: int


class RemainingPlanDebug(BaseModel):
    """Date-range diagnostics for spotting upstream query bugs."""
    month_key: str
    logs_count: int
    expected_start: str
    expected_end_exclusive: str
    actual_min_date: Optional[str] = None
    actual_max_date: Optional[str] = None
    is_out_of_range: bool = False
    samples: List[DebugSample] = Field(default_factory=list)


class RemainingPlan(BaseModel):
    remaining_workdays: int
    required_month: StageCounts
    actual_mtd: StageCounts
    remaining: StageCounts
    daily_average: StageAverages
    daily_plan: StageCounts
    debug: RemainingPlanDebug


class DailyPlan(BaseModel):
    """Today's quotas for the dashboard card."""
    is_target_set: bool
    message: Optional[str] = None
    month_key: str
    remaining_workdays: int = 0
    capacity_exceeded: bool = False
    daily_attempts: int = 0
    daily_booked: int = 0
    daily_done: int = 0
    daily_won: int = 0
    daily_leads: int = 0
    month_total: LeadStageCounts = Field(default_factory=LeadStageCounts)
    mtd_actual: LeadStageCounts = Field(default_factory=LeadStageCounts)


# =============================================================================
# Pacing
# =============================================================================


class PacingResult(BaseModel):
    hours_passed: float
    day_progress: float
    actual_won: int
    daily_quota: int
    projected_won: int
    status: PaceStatus
    message: str
    urgent: bool = False


# =============================================================================
# Diagnostics
# =============================================================================


class ProductKPIs(BaseModel):
    booked: int
    done: int
    won: int
    show_rate: float
    win_rate: float
    calls_per_won: float


class FunnelMetrics(BaseModel):
    """Aggregated period metrics fed to the diagnostics rule table."""
    calls: int
    contacts: int
    booked: int
    done: int
    won: int
    new_leads: int
    useful_contacts: int
    contact_rate: float
    booking_rate: float
    show_rate: float
    win_rate: float
    calls_per_won: float
    calls_per_booked: float
    response_rate: float
    products: Dict[Product, ProductKPIs]
    won_last7: int = 0
    won_prev7: int = 0
    trend_direction: TrendDirection = TrendDirection.STABLE
    trend_pct: float = 0.0


class Diagnosis(BaseModel):
    bottleneck: Bottleneck
    diagnosis: str
    whats_working: str
    critical_area: str
    actions: List[str]
    priority: str
    best_product: Product
    worst_product: Product
    team_reading: Optional[str] = None


class StrategicAlert(BaseModel):
    type: AlertType
    message: str
    metric: str


class GeneralStatus(BaseModel):
    performance: PerformanceTrend
    intensity: Level
    effectiveness: Level


class StrategicInsights(BaseModel):
    bottleneck: Bottleneck
    bottleneck_label: str
    best_product: Optional[str] = None
    worst_product: Optional[str] = None
    alerts: List[StrategicAlert]
    general_status: GeneralStatus


class KPIRates(BaseModel):
    answer_rate: float
    refused_rate: float
    no_answer_rate: float
    contact_efficiency: float
    messages_per_call: float
    booking_rate: float
    show_rate: float
    win_rate: float
    win_rate_la: float
    win_rate_fv: float
    win_rate_cad: float


class KPITargets(BaseModel):
    calls_completion: float
    booked_completion: float
    won_completion: float


class KPIWellbeing(BaseModel):
    avg_energy: int
    avg_focus: int
    avg_confidence: int


class KPIScore(BaseModel):
    volume_score: float
    booking_score: float
    win_score: float
    total_score: float
    label: str


class KPIReport(BaseModel):
    totals: DailyActivityRecord
    rates: KPIRates
    targets: KPITargets
    wellbeing: KPIWellbeing
    score: KPIScore


# =============================================================================
# API Bundles
# =============================================================================


class TodayPlanResponse(BaseModel):
    plan: DailyPlan
    pacing: Optional[PacingResult] = None
    today: str


class DiagnosticsResponse(BaseModel):
    period: Period
    metrics: FunnelMetrics
    diagnosis: Diagnosis
    insights: StrategicInsights
    kpis: KPIReport


# =============================================================================
# CSV Import
# =============================================================================


class ValidationError(BaseModel):
    """A single validation problem found while importing activity rows."""
    field: str = Field(..., description="Column or field that failed validation")
    message: str = Field(..., description="Human-readable description of the problem")
    row_number: Optional[int] = Field(
        default=None,
        description="1-based data row number, if the problem is row-specific"
    )


class ImportResult(BaseModel):
    success: bool
    rows_processed: int = 0
    rows_affected: int = 0
    errors: List[ValidationError] = Field(default_factory=list)
