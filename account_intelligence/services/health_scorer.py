"""
Revenue-health scoring service.

Compares an account's current-month delivered revenue against its own
average over the preceding months:

    percentageChange = (current - baseline) / baseline * 100

- critical: percentageChange <= criticalThresholdPercent (default -15)
- warning: percentageChange <= warningThresholdPercent (default -10)
- healthy: otherwise
- insufficient-data: fewer distinct months with revenue than minimumMonthsRequired

A zero baseline yields percentageChange 0. That guards the division; it is
not evidence the account is stable, and the months-observed gate is what
keeps new accounts out of the healthy bucket.

Also writes append-only health snapshots to account_health_snapshots.
"""

import logging
import uuid
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from account_intelligence.core.exceptions import AccountNotFoundError
from account_intelligence.core.repository import IntelligenceRepository
from account_intelligence.core.timeutils import as_utc, resolve_as_of, subtract_months
from account_intelligence.models.enums import (
    HealthRiskLevel,
    PaceRiskLevel,
    PaceStatus,
    RevenueHealthStatus,
)
from account_intelligence.models.schemas import (
    Account,
    DeliveredOrder,
    HealthConfig,
    HealthScore,
    HealthSnapshot,
    MonthlyRevenue,
    PaceMetric,
)

logger = logging.getLogger(__name__)

MonthKey = Tuple[int, int]


# =============================================================================
# Pure Calculations
# =============================================================================


def group_monthly_revenue(orders: Iterable[DeliveredOrder]) -> Dict[MonthKey, MonthlyRevenue]:
    """
    Sum delivered revenue per calendar month (UTC).

    Returns:
        Dict keyed by (year, month), iterated in chronological order.
    """
    months: Dict[MonthKey, MonthlyRevenue] = {}

    for order in orders:
        delivered_at = as_utc(order.deliveredAt)
        key = (delivered_at.year, delivered_at.month)
        bucket = months.get(key)
        if bucket is None:
            bucket = MonthlyRevenue(year=key[0], month=key[1])
            months[key] = bucket
        bucket.revenue += order.revenue
        bucket.orderCount += 1

    return dict(sorted(months.items()))


def calculate_percentage_change(current: float, baseline: float) -> float:
    if baseline <= 0:
        return 0.0
    return (current - baseline) / baseline * 100


def classify_health(
    months_observed: int,
    percentage_change: float,
    config: HealthConfig,
) -> HealthRiskLevel:
    if months_observed < config.minimumMonthsRequired:
        return HealthRiskLevel.INSUFFICIENT_DATA

    if percentage_change <= config.criticalThresholdPercent:
        return HealthRiskLevel.CRITICAL
    if percentage_change <= config.warningThresholdPercent:
        return HealthRiskLevel.WARNING
    return HealthRiskLevel.HEALTHY


def compute_health_score(
    account: Account,
    orders: List[DeliveredOrder],
    config: HealthConfig,
    as_of: datetime,
) -> HealthScore:
    """
    Score one account's revenue health from its delivered orders.

    The current month is the calendar month containing ``as_of``. With
    excludeCurrentMonth (the default) the partial current month is left out
    of the baseline average.
    """
    as_of = as_utc(as_of)
    monthly = group_monthly_revenue(orders)
    current_key = (as_of.year, as_of.month)

    current = monthly.get(current_key)
    current_month_revenue = current.revenue if current else 0.0

    baseline_months = [
        bucket for key, bucket in monthly.items()
        if not (config.excludeCurrentMonth and key == current_key)
    ]
    baseline_average = (
        float(np.mean([bucket.revenue for bucket in baseline_months]))
        if baseline_months
        else 0.0
    )

    percentage_change = calculate_percentage_change(current_month_revenue, baseline_average)
    risk_level = classify_health(len(monthly), percentage_change, config)

    return HealthScore(
        accountId=account.id,
        accountName=account.name,
        currentMonthRevenue=current_month_revenue,
        baselineAverage=baseline_average,
        percentageChange=percentage_change,
        isAtRisk=risk_level in (HealthRiskLevel.WARNING, HealthRiskLevel.CRITICAL),
        riskLevel=risk_level,
        monthlyRevenues=list(monthly.values()),
        calculatedAt=as_of,
    )


# =============================================================================
# Repository-backed Entry Points
# =============================================================================


async def compute_account_health(
    repo: IntelligenceRepository,
    account: Account,
    config: HealthConfig,
    as_of: datetime,
) -> HealthScore:
    since = subtract_months(as_of, config.lookbackMonths)
    orders = await repo.list_delivered_orders(account.id, account.tenantId, since)
    return compute_health_score(account, orders, config, as_of)


async def calculate_account_health(
    repo: IntelligenceRepository,
    account_id: str,
    tenant_id: str,
    config: Optional[HealthConfig] = None,
    as_of: Optional[datetime] = None,
) -> HealthScore:
    """
    Calculate the health score for a single account.

    Raises:
        AccountNotFoundError: If the account does not exist in the tenant.
        RepositoryError: If the store fails.
    """
    config = config or HealthConfig()
    as_of = resolve_as_of(as_of)

    account = await repo.get_account(account_id, tenant_id)
    if account is None:
        raise AccountNotFoundError(account_id, tenant_id)

    return await compute_account_health(repo, account, config, as_of)


# =============================================================================
# Snapshots
# =============================================================================

_HEALTH_STATUS = {
    HealthRiskLevel.CRITICAL: RevenueHealthStatus.CRITICAL,
    HealthRiskLevel.WARNING: RevenueHealthStatus.AT_RISK,
    HealthRiskLevel.HEALTHY: RevenueHealthStatus.HEALTHY,
    HealthRiskLevel.INSUFFICIENT_DATA: RevenueHealthStatus.INSUFFICIENT_DATA,
}

_PACE_STATUS = {
    PaceRiskLevel.CRITICAL: PaceStatus.OVERDUE,
    PaceRiskLevel.WARNING: PaceStatus.AT_RISK,
    PaceRiskLevel.ON_TRACK: PaceStatus.ON_TRACK,
    PaceRiskLevel.INSUFFICIENT_DATA: PaceStatus.INSUFFICIENT_DATA,
}


def build_health_snapshot(
    tenant_id: str,
    health: HealthScore,
    pace: Optional[PaceMetric] = None,
) -> HealthSnapshot:
    """
    Build the snapshot row for a health score.

    revenueDropPercent is stored unsigned. Without a pace metric the pace
    columns record insufficient_data rather than guessing.
    """
    return HealthSnapshot(
        id=str(uuid.uuid4()),
        tenantId=tenant_id,
        accountId=health.accountId,
        snapshotDate=health.calculatedAt,
        revenueHealthStatus=_HEALTH_STATUS[health.riskLevel],
        currentMonthRevenue=health.currentMonthRevenue,
        averageMonthRevenue=health.baselineAverage,
        revenueDropPercent=abs(health.percentageChange),
        paceStatus=_PACE_STATUS[pace.riskLevel] if pace else PaceStatus.INSUFFICIENT_DATA,
        establishedPaceDays=pace.arpdd if pace else None,
        daysSinceLastOrder=pace.daysSinceLastOrder if pace else None,
        monthlyRevenues=health.monthlyRevenues,
    )


async def save_health_snapshot(
    repo: IntelligenceRepository,
    tenant_id: str,
    health: HealthScore,
    pace: Optional[PaceMetric] = None,
) -> HealthSnapshot:
    """Append one snapshot row. Existing snapshots are never updated."""
    snapshot = build_health_snapshot(tenant_id, health, pace)
    await repo.insert_health_snapshot(snapshot)
    return snapshot
