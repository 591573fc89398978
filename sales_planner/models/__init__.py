"""
Package initialization file for Sales Planner models.

Exports all Pydantic schemas and enumerations from schemas.py and enums.py so
other modules can import them from sales_planner.models directly.

Usage:
    from sales_planner.models import (
        Product,
        RateSource,
        DailyActivityRecord,
        MonthlyPlan,
        PlanningContext,
        # ... etc
    )
"""

# =============================================================================
# Enums
# =============================================================================

from sales_planner.models.enums import (
    PRODUCT_DISPLAY_NAMES,
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
    UserRole,
)

# =============================================================================
# Schemas
# =============================================================================

from sales_planner.models.schemas import (
    # Field groups
    COUNT_FIELDS,
    WELLBEING_FIELDS,
    # Inputs
    DailyActivityRecord,
    MonthlyPlan,
    # Rate resolution
    RateDetail,
    ProductRates,
    PlanningContext,
    # Funnel sizing
    FunnelTargets,
    SimulationModifiers,
    FlatDailyEstimate,
    RealityCheck,
    FunnelRequirement,
    # Remaining-month distribution
    StageCounts,
    StageAverages,
    LeadStageCounts,
    DebugSample,
    RemainingPlanDebug,
    RemainingPlan,
    DailyPlan,
    # Pacing
    PacingResult,
    # Diagnostics
    ProductKPIs,
    FunnelMetrics,
    Diagnosis,
    StrategicAlert,
    GeneralStatus,
    StrategicInsights,
    KPIRates,
    KPITargets,
    KPIWellbeing,
    KPIScore,
    KPIReport,
    # API bundles
    TodayPlanResponse,
    DiagnosticsResponse,
    # CSV import
    ValidationError,
    ImportResult,
)

__all__ = [
    "PRODUCT_DISPLAY_NAMES",
    "AlertType",
    "Bottleneck",
    "Level",
    "PaceStatus",
    "PerformanceTrend",
    "Period",
    "Product",
    "RateSource",
    "RealityStatus",
    "TrendDirection",
    "UserRole",
    "COUNT_FIELDS",
    "WELLBEING_FIELDS",
    "DailyActivityRecord",
    "MonthlyPlan",
    "RateDetail",
    "ProductRates",
    "PlanningContext",
    "FunnelTargets",
    "SimulationModifiers",
    "FlatDailyEstimate",
    "RealityCheck",
    "FunnelRequirement",
    "StageCounts",
    "StageAverages",
    "LeadStageCounts",
    "DebugSample",
    "RemainingPlanDebug",
    "RemainingPlan",
    "DailyPlan",
    "PacingResult",
    "ProductKPIs",
    "FunnelMetrics",
    "Diagnosis",
    "StrategicAlert",
    "GeneralStatus",
    "StrategicInsights",
    "KPIRates",
    "KPITargets",
    "KPIWellbeing",
    "KPIScore",
    "KPIReport",
    "TodayPlanResponse",
    "DiagnosticsResponse",
    "ValidationError",
    "ImportResult",
]
