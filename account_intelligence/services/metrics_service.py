"""
Metrics orchestration for tenant dashboards, account insights and alerts.

Composes the pace, health, opportunity and sample services into:
- calculate_tenant_pace / calculate_tenant_health: per-account batches
- calculate_dashboard_metrics: tenant-wide DashboardMetrics
- calculate_account_insights: single-account AccountInsights
- build_actionable_alerts / get_actionable_alerts: prioritized alerts

Tenant configuration is loaded once per call and passed down explicitly.
Per-account work fans out through gather_bounded so a tenant with tens of
thousands of accounts never holds more than max_concurrent_account_tasks
pool connections at once.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from account_intelligence.core.concurrency import gather_bounded
from account_intelligence.core.config import get_settings
from account_intelligence.core.exceptions import AccountNotFoundError
from account_intelligence.core.repository import IntelligenceRepository
from account_intelligence.core.timeutils import month_bounds, resolve_as_of
from account_intelligence.models.enums import (
    ALERT_PRIORITY,
    HEALTH_RISK_ORDER,
    PACE_RISK_ORDER,
    ActionItemType,
    AlertType,
    HealthRiskLevel,
    PaceRiskLevel,
    RankingMetric,
)
from account_intelligence.models.schemas import (
    Account,
    AccountInsights,
    ActionableAlerts,
    ActionItem,
    Alert,
    DashboardMetrics,
    HealthConfig,
    HealthScore,
    HealthSection,
    Opportunity,
    OpportunitySection,
    PaceConfig,
    PaceMetric,
    PaceSection,
    SampleSection,
    TenantIntelligenceConfig,
)
from account_intelligence.services.health_scorer import compute_account_health
from account_intelligence.services.opportunity_detector import (
    detect_tenant_opportunities,
    load_tenant_demand,
    rank_opportunities,
    summarize_opportunities,
)
from account_intelligence.services.pace_tracker import compute_account_pace
from account_intelligence.services.sample_manager import (
    compute_sample_allowance,
    get_pending_feedback,
)
from account_intelligence.services.tenant_config import get_tenant_intelligence_config

logger = logging.getLogger(__name__)


# =============================================================================
# Tenant Batches
# =============================================================================


def sort_pace_metrics(metrics: List[PaceMetric]) -> List[PaceMetric]:
    """Most urgent first, then longest since last order, then accountId."""
    return sorted(
        metrics,
        key=lambda m: (PACE_RISK_ORDER[m.riskLevel], -m.daysSinceLastOrder, m.accountId),
    )


def sort_health_scores(scores: List[HealthScore]) -> List[HealthScore]:
    """Most urgent first, then steepest drop, then accountId."""
    return sorted(
        scores,
        key=lambda s: (HEALTH_RISK_ORDER[s.riskLevel], s.percentageChange, s.accountId),
    )


async def calculate_tenant_pace(
    repo: IntelligenceRepository,
    tenant_id: str,
    config: Optional[PaceConfig] = None,
    accounts: Optional[List[Account]] = None,
    only_at_risk: bool = False,
    min_order_count: Optional[int] = None,
    as_of: Optional[datetime] = None,
    limit: Optional[int] = None,
    chunk_size: Optional[int] = None,
) -> List[PaceMetric]:
    """
    Calculate pace for every active account in a tenant.

    Args:
        only_at_risk: Keep only past-due (warning or critical) accounts.
        min_order_count: Keep only accounts with at least this many orders.
        limit: Max per-account computations in flight.
        chunk_size: Accounts scheduled per fan-out chunk.

    Raises:
        RepositoryError: If any per-account read fails.
    """
    config = config or PaceConfig()
    as_of = resolve_as_of(as_of)
    if accounts is None:
        accounts = await repo.list_active_accounts(tenant_id)

    logger.info(f"Calculating pace for {len(accounts)} accounts in tenant {tenant_id}")
    results = await gather_bounded(
        accounts, lambda account: compute_account_pace(repo, account, config, as_of),
        limit=limit,
        chunk_size=chunk_size,
    )

    if only_at_risk:
        results = [m for m in results if m.isPastDue]
    if min_order_count is not None:
        results = [m for m in results if m.orderCount >= min_order_count]

    return sort_pace_metrics(results)


async def calculate_tenant_health(
    repo: IntelligenceRepository,
    tenant_id: str,
    config: Optional[HealthConfig] = None,
    accounts: Optional[List[Account]] = None,
    only_at_risk: bool = False,
    min_month_count: Optional[int] = None,
    as_of: Optional[datetime] = None,
    limit: Optional[int] = None,
    chunk_size: Optional[int] = None,
) -> List[HealthScore]:
    """
    Calculate health scores for every active account in a tenant.

    Args:
        only_at_risk: Keep only warning or critical accounts.
        min_month_count: Keep only accounts with at least this many months of revenue.
        limit: Max per-account computations in flight.
        chunk_size: Accounts scheduled per fan-out chunk.
    """
    config = config or HealthConfig()
    as_of = resolve_as_of(as_of)
    if accounts is None:
        accounts = await repo.list_active_accounts(tenant_id)

    logger.info(f"Calculating health for {len(accounts)} accounts in tenant {tenant_id}")
    results = await gather_bounded(
        accounts, lambda account: compute_account_health(repo, account, config, as_of),
        limit=limit,
        chunk_size=chunk_size,
    )

    if only_at_risk:
        results = [s for s in results if s.isAtRisk]
    if min_month_count is not None:
        results = [s for s in results if len(s.monthlyRevenues) >= min_month_count]

    return sort_health_scores(results)


# =============================================================================
# Dashboard
# =============================================================================


def _pace_section(metrics: List[PaceMetric], include_all_accounts: bool) -> PaceSection:
    return PaceSection(
        atRiskCount=sum(1 for m in metrics if m.isPastDue),
        criticalCount=sum(1 for m in metrics if m.riskLevel == PaceRiskLevel.CRITICAL),
        warningCount=sum(1 for m in metrics if m.riskLevel == PaceRiskLevel.WARNING),
        accounts=metrics if include_all_accounts else [m for m in metrics if m.isPastDue],
    )


def _health_section(scores: List[HealthScore], include_all_accounts: bool) -> HealthSection:
    return HealthSection(
        atRiskCount=sum(1 for s in scores if s.isAtRisk),
        criticalCount=sum(1 for s in scores if s.riskLevel == HealthRiskLevel.CRITICAL),
        warningCount=sum(1 for s in scores if s.riskLevel == HealthRiskLevel.WARNING),
        accounts=scores if include_all_accounts else [s for s in scores if s.isAtRisk],
    )


def select_top_opportunities(
    opportunity_map: Dict[str, List[Opportunity]],
    limit: int,
) -> List[Opportunity]:
    """
    Merge per-account lists into one tenant-wide list.

    A product recommended to many accounts appears once. The list is sorted
    by totalRevenue descending (productId breaks ties) and re-ranked 1..N.
    """
    by_product: Dict[str, Opportunity] = {}
    for opportunities in opportunity_map.values():
        for opportunity in opportunities:
            by_product.setdefault(opportunity.productId, opportunity)

    ordered = sorted(by_product.values(), key=lambda o: (-o.totalRevenue, o.productId))
    return [
        opportunity.model_copy(update={"rank": index + 1})
        for index, opportunity in enumerate(ordered[:limit])
    ]


async def _sample_section(
    repo: IntelligenceRepository,
    tenant_id: str,
    config: TenantIntelligenceConfig,
    sales_rep_id: Optional[str],
    as_of: datetime,
) -> SampleSection:
    reps = await repo.list_sales_reps(tenant_id, sales_rep_id)

    start, end = month_bounds(as_of.year, as_of.month)
    transfers = await repo.list_sample_transfers(tenant_id, start, end, sales_rep_id)
    allowances = [
        compute_sample_allowance(tenant_id, rep, as_of.year, as_of.month, transfers, config.sample)
        for rep in reps
    ]

    pending = await get_pending_feedback(repo, tenant_id, sales_rep_id, config.sample, as_of)

    return SampleSection(
        totalPullsThisMonth=sum(a.pullsThisMonth for a in allowances),
        repsOverAllowance=sum(1 for a in allowances if a.isOverAllowance),
        pendingFeedbackCount=len(pending),
        allowances=allowances,
    )


async def calculate_dashboard_metrics(
    repo: IntelligenceRepository,
    tenant_id: str,
    include_all_accounts: bool = False,
    sales_rep_id: Optional[str] = None,
    as_of: Optional[datetime] = None,
) -> DashboardMetrics:
    """
    Build the tenant dashboard.

    Counts always cover every active account. The account lists hold only
    at-risk accounts unless include_all_accounts is set. sales_rep_id
    narrows the sample section to one rep.

    Raises:
        RepositoryError: If any read fails. No partial dashboard is returned.
    """
    settings = get_settings()
    as_of = resolve_as_of(as_of)
    config = await get_tenant_intelligence_config(repo, tenant_id)
    accounts = await repo.list_active_accounts(tenant_id)

    fanout = {
        "limit": settings.max_concurrent_account_tasks,
        "chunk_size": settings.fanout_chunk_size,
    }

    pace = await calculate_tenant_pace(
        repo, tenant_id, config.pace, accounts, as_of=as_of, **fanout
    )
    health = await calculate_tenant_health(
        repo, tenant_id, config.health, accounts, as_of=as_of, **fanout
    )
    samples = await _sample_section(repo, tenant_id, config, sales_rep_id, as_of)

    per_account_config = config.opportunity.model_copy(
        update={"topN": settings.dashboard_opportunities_per_account}
    )
    opportunity_map = await detect_tenant_opportunities(
        repo, tenant_id, RankingMetric.REVENUE, per_account_config, as_of, accounts
    )
    total_opportunities = sum(len(opps) for opps in opportunity_map.values())
    average = total_opportunities / len(opportunity_map) if opportunity_map else 0.0

    logger.info(
        f"Dashboard for tenant {tenant_id}: {len(accounts)} accounts, "
        f"{sum(1 for m in pace if m.isPastDue)} past due, "
        f"{sum(1 for s in health if s.isAtRisk)} at risk"
    )

    return DashboardMetrics(
        tenantId=tenant_id,
        pace=_pace_section(pace, include_all_accounts),
        health=_health_section(health, include_all_accounts),
        samples=samples,
        opportunities=OpportunitySection(
            totalCustomersAnalyzed=len(opportunity_map),
            averageOpportunitiesPerCustomer=round(average, 1),
            topOpportunities=select_top_opportunities(
                opportunity_map, settings.dashboard_top_opportunities
            ),
        ),
        calculatedAt=as_of,
    )


# =============================================================================
# Account Insights
# =============================================================================


async def calculate_account_insights(
    repo: IntelligenceRepository,
    account_id: str,
    tenant_id: str,
    as_of: Optional[datetime] = None,
) -> AccountInsights:
    """
    Pace, health and opportunities for one account.

    The ranked list uses the tenant's topN; the summary covers up to
    summary_opportunity_limit products from the same demand index.

    Raises:
        AccountNotFoundError: If the account does not exist in the tenant.
    """
    settings = get_settings()
    as_of = resolve_as_of(as_of)

    account = await repo.get_account(account_id, tenant_id)
    if account is None:
        raise AccountNotFoundError(account_id, tenant_id)

    config = await get_tenant_intelligence_config(repo, tenant_id)

    pace = await compute_account_pace(repo, account, config.pace, as_of)
    health = await compute_account_health(repo, account, config.health, as_of)

    context = await load_tenant_demand(repo, tenant_id, config.opportunity, as_of)
    purchased = context.purchased(account.id)
    opportunities = rank_opportunities(
        purchased, context.catalog, context.demand, RankingMetric.REVENUE, config.opportunity
    )
    summary_config = config.opportunity.model_copy(
        update={"topN": settings.summary_opportunity_limit}
    )
    summary = summarize_opportunities(rank_opportunities(
        purchased, context.catalog, context.demand, RankingMetric.REVENUE, summary_config
    ))

    return AccountInsights(
        accountId=account.id,
        accountName=account.name,
        pace=pace,
        health=health,
        opportunities=opportunities,
        opportunitySummary=summary,
        calculatedAt=as_of,
    )


# =============================================================================
# Alerts
# =============================================================================


def _format_days(value: Optional[float]) -> str:
    if value is None:
        return "n/a"
    return f"{value:.0f}" if float(value).is_integer() else f"{value:.1f}"


def _alert(alert_type: AlertType, message: str, **kwargs) -> Alert:
    return Alert(type=alert_type, message=message, priority=ALERT_PRIORITY[alert_type], **kwargs)


def build_actionable_alerts(metrics: DashboardMetrics) -> ActionableAlerts:
    """
    Derive prioritized alerts and follow-up items from dashboard metrics.

    Priority 1 (critical pace and health) always precedes priority 2
    (warnings), which precedes priority 3 (sample allowance). Messages use
    only the numbers of the metric they describe.
    """
    alerts: List[Alert] = []
    action_items: List[ActionItem] = []

    for pace in metrics.pace.accounts:
        arpdd = _format_days(pace.arpdd)
        if pace.riskLevel == PaceRiskLevel.CRITICAL:
            alerts.append(_alert(
                AlertType.PACE_CRITICAL,
                f"{pace.accountName} is {pace.daysSinceLastOrder} days past their expected order "
                f"(ARPDD: {arpdd} days)",
                accountId=pace.accountId,
            ))
            action_items.append(ActionItem(
                type=ActionItemType.PACE_FOLLOW_UP,
                message=f"Schedule visit with {pace.accountName} - {pace.daysSinceLastOrder} days late",
                accountId=pace.accountId,
                dueDate=metrics.calculatedAt,
            ))
        elif pace.riskLevel == PaceRiskLevel.WARNING:
            alerts.append(_alert(
                AlertType.PACE_WARNING,
                f"{pace.accountName} approaching order cycle ({pace.daysSinceLastOrder}/{arpdd} days)",
                accountId=pace.accountId,
            ))

    for health in metrics.health.accounts:
        drop = (
            f"{health.accountName} revenue down {abs(health.percentageChange):.1f}% "
            f"({health.currentMonthRevenue:.0f} vs avg {health.baselineAverage:.0f})"
        )
        if health.riskLevel == HealthRiskLevel.CRITICAL:
            alerts.append(_alert(AlertType.HEALTH_CRITICAL, drop, accountId=health.accountId))
            action_items.append(ActionItem(
                type=ActionItemType.HEALTH_REVIEW,
                message=f"Review account health for {health.accountName} - investigate revenue drop",
                accountId=health.accountId,
            ))
        elif health.riskLevel == HealthRiskLevel.WARNING:
            alerts.append(_alert(AlertType.HEALTH_WARNING, drop, accountId=health.accountId))

    for allowance in metrics.samples.allowances:
        if allowance.isOverAllowance:
            alerts.append(_alert(
                AlertType.SAMPLE_ALLOWANCE,
                f"{allowance.salesRepName} has exceeded sample allowance "
                f"({allowance.pullsThisMonth}/{allowance.allowance})",
                salesRepId=allowance.salesRepId,
            ))

    if metrics.samples.pendingFeedbackCount > 0:
        action_items.append(ActionItem(
            type=ActionItemType.SAMPLE_FEEDBACK,
            message=f"{metrics.samples.pendingFeedbackCount} sample tastings need follow-up feedback",
        ))

    alerts.sort(key=lambda a: (a.priority, a.accountId or ""))

    return ActionableAlerts(
        alerts=alerts,
        criticalAlerts=[a for a in alerts if a.priority == 1],
        warningAlerts=[a for a in alerts if a.priority > 1],
        actionItems=action_items,
        calculatedAt=metrics.calculatedAt,
    )


async def get_actionable_alerts(
    repo: IntelligenceRepository,
    tenant_id: str,
    sales_rep_id: Optional[str] = None,
    as_of: Optional[datetime] = None,
) -> ActionableAlerts:
    metrics = await calculate_dashboard_metrics(
        repo, tenant_id, sales_rep_id=sales_rep_id, as_of=as_of
    )
    return build_actionable_alerts(metrics)
