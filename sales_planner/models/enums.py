"""
Enumeration definitions for the Sales Planner backend.

All enums inherit from both `str` and `Enum` to ensure JSON serialization
compatibility with Pydantic models, enabling automatic serialization and
deserialization in API responses.
"""

from enum import Enum


class Product(str, Enum):
    """
    Product lines tracked independently through the funnel.

    Each line has its own booked/done/won counters on a daily record and its
    own resolved win and show rates.
    """
    LA = "la"
    FV = "fv"
    CAD = "cad"

    @property
    def display_name(self) -> str:
        return PRODUCT_DISPLAY_NAMES[self]


PRODUCT_DISPLAY_NAMES = {
    Product.LA: "Luce Amica",
    Product.FV: "Fotovoltaico",
    Product.CAD: "Adesione",
}


class RateSource(str, Enum):
    """
    Provenance of a resolved conversion rate.

    Ordered from the most specific window to the fixed fallback:
    - MTD: current calendar month to date
    - 60d / 90d: trailing windows ending today
    - All Time: full history
    - Standard: hardcoded default, no window qualified
    """
    MTD = "MTD"
    DAYS_60 = "60d"
    DAYS_90 = "90d"
    ALL_TIME = "All Time"
    STANDARD = "Standard"


class RealityStatus(str, Enum):
    """Growth classification of a monthly target against the trailing average."""
    REALISTIC = "realistic"
    AMBITIOUS = "ambitious"
    AGGRESSIVE = "aggressive"


class PaceStatus(str, Enum):
    """
    Pacing classification of the current day, in evaluation priority order.
    """
    TARGET_REACHED = "Target Reached"
    NOT_STARTED = "Day Not Started"
    AHEAD = "Ahead"
    ON_TRACK = "On Track"
    BEHIND = "Behind"


class Bottleneck(str, Enum):
    """
    Weakest funnel stage identified by the diagnostics rule table.

    - volume: not enough raw outreach
    - booking: contacts are not converting into appointments
    - show: booked appointments are not taking place
    - closing: completed appointments are not converting into contracts
    - none: healthy funnel, scaling phase
    """
    VOLUME = "volume"
    BOOKING = "booking"
    SHOW = "show"
    CLOSING = "closing"
    NONE = "none"


class UserRole(str, Enum):
    """Roles of the person the diagnosis is produced for."""
    ADMIN = "admin"
    COACH = "coach"
    LEADER = "leader"
    MEMBER = "member"


class Period(str, Enum):
    """Reporting periods for dashboard metrics."""
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    CUSTOM = "custom"
    ALL = "all"


class TrendDirection(str, Enum):
    """Direction of won contracts, last 7 days vs the previous 7."""
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class AlertType(str, Enum):
    """Tone of a strategic insight alert."""
    DANGER = "danger"
    WARNING = "warning"
    SUCCESS = "success"


class PerformanceTrend(str, Enum):
    GROWTH = "growth"
    STABLE = "stable"
    DECLINE = "decline"


class Level(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
