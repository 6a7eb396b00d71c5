"""
Enumeration definitions for the account intelligence core.

All enums inherit from both `str` and `Enum` so pydantic models serialize them
as plain strings in API responses and snapshot metadata.

Risk enums carry an explicit INSUFFICIENT_DATA member: not having enough
history is a valid classification, never an error.
"""

from enum import Enum


class PaceRiskLevel(str, Enum):
    """
    Ordering-cadence classification for an account.

    - on-track: days since last order below ARPDD x warning multiplier
    - warning: days since last order >= ARPDD x warning multiplier
    - critical: days since last order >= ARPDD x critical multiplier
    - insufficient-data: fewer delivered orders than minimumOrdersRequired
    """
    ON_TRACK = "on-track"
    WARNING = "warning"
    CRITICAL = "critical"
    INSUFFICIENT_DATA = "insufficient-data"


class HealthRiskLevel(str, Enum):
    """
    Revenue-health classification for an account.

    - healthy: current month above the warning threshold
    - warning: percentage change <= warningThresholdPercent
    - critical: percentage change <= criticalThresholdPercent
    - insufficient-data: fewer distinct months than minimumMonthsRequired
    """
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    INSUFFICIENT_DATA = "insufficient-data"


# Sort keys for tenant-wide lists: most urgent first
PACE_RISK_ORDER = {
    PaceRiskLevel.CRITICAL: 0,
    PaceRiskLevel.WARNING: 1,
    PaceRiskLevel.ON_TRACK: 2,
    PaceRiskLevel.INSUFFICIENT_DATA: 3,
}

HEALTH_RISK_ORDER = {
    HealthRiskLevel.CRITICAL: 0,
    HealthRiskLevel.WARNING: 1,
    HealthRiskLevel.HEALTHY: 2,
    HealthRiskLevel.INSUFFICIENT_DATA: 3,
}


class RankingMetric(str, Enum):
    """
    Tenant-wide demand signal used to rank opportunities.

    - revenue: total line revenue across all customers in the window
    - volume: total units across all customers in the window
    - penetration: % of active customers who bought the product
    """
    REVENUE = "revenue"
    VOLUME = "volume"
    PENETRATION = "penetration"


class RevenueHealthStatus(str, Enum):
    """Health status as stored on account_health_snapshots."""
    HEALTHY = "healthy"
    AT_RISK = "at_risk"
    CRITICAL = "critical"
    INSUFFICIENT_DATA = "insufficient_data"


class PaceStatus(str, Enum):
    """Pace status as stored on account_health_snapshots."""
    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    OVERDUE = "overdue"
    INSUFFICIENT_DATA = "insufficient_data"


class CustomerInterest(str, Enum):
    """Customer interest captured with tasting feedback."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


class AlertType(str, Enum):
    """Alert categories derived by the metrics orchestrator."""
    PACE_CRITICAL = "pace_critical"
    HEALTH_CRITICAL = "health_critical"
    PACE_WARNING = "pace_warning"
    HEALTH_WARNING = "health_warning"
    SAMPLE_ALLOWANCE = "sample_allowance"


class ActionItemType(str, Enum):
    """Follow-up tasks suggested alongside alerts."""
    PACE_FOLLOW_UP = "pace_follow_up"
    HEALTH_REVIEW = "health_review"
    SAMPLE_FEEDBACK = "sample_feedback"


# Priority 1 = act today; higher numbers sort later
ALERT_PRIORITY = {
    AlertType.PACE_CRITICAL: 1,
    AlertType.HEALTH_CRITICAL: 1,
    AlertType.PACE_WARNING: 2,
    AlertType.HEALTH_WARNING: 2,
    AlertType.SAMPLE_ALLOWANCE: 3,
}
