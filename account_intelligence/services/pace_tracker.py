"""
Ordering-cadence (ARPDD) tracking service.

ARPDD, Average Recent Purchase Day Distance, is the mean number of whole days
between consecutive delivered orders of an account. An account is flagged
when the time since its last delivery stretches past a multiple of its own
ARPDD:

- critical: daysSinceLastOrder >= ARPDD x criticalThresholdMultiplier
- warning: daysSinceLastOrder >= ARPDD x warningThresholdMultiplier
- on-track: otherwise
- insufficient-data: fewer delivered orders than minimumOrdersRequired

Key Functions:
- calculate_interval_days: Whole-day gaps between consecutive deliveries
- calculate_arpdd: Mean of those gaps
- classify_pace: Risk level from order count, ARPDD and days since last order
- compute_pace_metric: Pure computation over an account's order history
- calculate_account_pace: Repository-backed entry point for one account

The pure functions take an explicit ``as_of`` so tests are reproducible.
Tenant-wide batches live in services.metrics_service.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

import numpy as np

from account_intelligence.core.exceptions import AccountNotFoundError
from account_intelligence.core.repository import IntelligenceRepository
from account_intelligence.core.timeutils import as_utc, resolve_as_of, whole_days_between
from account_intelligence.models.enums import PaceRiskLevel
from account_intelligence.models.schemas import (
    Account,
    DeliveredOrder,
    PaceConfig,
    PaceMetric,
)

logger = logging.getLogger(__name__)

# daysSinceLastOrder when the account has no delivered order in the window
NO_ORDERS_SENTINEL = -1


# =============================================================================
# Pure Calculations
# =============================================================================


def calculate_interval_days(delivery_dates: Iterable[datetime]) -> List[int]:
    """
    Whole days between consecutive delivery dates.

    Dates are sorted ascending first; callers never need to pre-sort.

    Example:
        >>> calculate_interval_days([datetime(2026, 1, 31), datetime(2026, 1, 1)])
        [30]
    """
    ordered = sorted(as_utc(d) for d in delivery_dates)
    return [
        whole_days_between(previous, current)
        for previous, current in zip(ordered, ordered[1:])
    ]


def calculate_arpdd(intervals: List[int]) -> Optional[float]:
    """Arithmetic mean of the intervals, or None when there are none."""
    if not intervals:
        return None
    return float(np.mean(intervals))


def classify_pace(
    order_count: int,
    arpdd: Optional[float],
    days_since_last_order: int,
    config: PaceConfig,
) -> PaceRiskLevel:
    if order_count < config.minimumOrdersRequired or arpdd is None:
        return PaceRiskLevel.INSUFFICIENT_DATA

    if days_since_last_order >= arpdd * config.criticalThresholdMultiplier:
        return PaceRiskLevel.CRITICAL
    if days_since_last_order >= arpdd * config.warningThresholdMultiplier:
        return PaceRiskLevel.WARNING
    return PaceRiskLevel.ON_TRACK


def compute_pace_metric(
    account: Account,
    orders: List[DeliveredOrder],
    config: PaceConfig,
    as_of: datetime,
) -> PaceMetric:
    """
    Compute the pace metric for one account from its delivered orders.

    Args:
        account: The account the orders belong to.
        orders: Delivered orders inside the lookback window, in any order.
        config: Pace thresholds for the tenant.
        as_of: The instant "days since last order" is measured against.

    Returns:
        PaceMetric: isPastDue is True exactly when the risk level is
            warning or critical.
    """
    as_of = as_utc(as_of)
    delivery_dates = sorted(as_utc(order.deliveredAt) for order in orders)
    order_count = len(delivery_dates)

    last_order_date = delivery_dates[-1] if delivery_dates else None
    days_since_last_order = (
        whole_days_between(last_order_date, as_of)
        if last_order_date is not None
        else NO_ORDERS_SENTINEL
    )

    arpdd = calculate_arpdd(calculate_interval_days(delivery_dates))
    risk_level = classify_pace(order_count, arpdd, days_since_last_order, config)

    next_expected_order_date = None
    if risk_level != PaceRiskLevel.INSUFFICIENT_DATA:
        next_expected_order_date = last_order_date + timedelta(days=arpdd)

    return PaceMetric(
        accountId=account.id,
        accountName=account.name,
        arpdd=arpdd,
        daysSinceLastOrder=days_since_last_order,
        lastOrderDate=last_order_date,
        orderCount=order_count,
        isPastDue=risk_level in (PaceRiskLevel.WARNING, PaceRiskLevel.CRITICAL),
        riskLevel=risk_level,
        nextExpectedOrderDate=next_expected_order_date,
        calculatedAt=as_of,
    )


# =============================================================================
# Repository-backed Entry Points
# =============================================================================


async def compute_account_pace(
    repo: IntelligenceRepository,
    account: Account,
    config: PaceConfig,
    as_of: datetime,
) -> PaceMetric:
    """Fetch the lookback window for an already-resolved account and compute its pace."""
    since = as_of - timedelta(days=config.lookbackDays)
    orders = await repo.list_delivered_orders(account.id, account.tenantId, since)
    return compute_pace_metric(account, orders, config, as_of)


async def calculate_account_pace(
    repo: IntelligenceRepository,
    account_id: str,
    tenant_id: str,
    config: Optional[PaceConfig] = None,
    as_of: Optional[datetime] = None,
) -> PaceMetric:
    """
    Calculate the pace metric for a single account.

    Raises:
        AccountNotFoundError: If the account does not exist in the tenant.
        RepositoryError: If the store fails.
    """
    config = config or PaceConfig()
    as_of = resolve_as_of(as_of)

    account = await repo.get_account(account_id, tenant_id)
    if account is None:
        raise AccountNotFoundError(account_id, tenant_id)

    return await compute_account_pace(repo, account, config, as_of)
