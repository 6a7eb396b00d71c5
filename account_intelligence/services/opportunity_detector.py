"""
Unpurchased-product opportunity detection.

For an account, candidates are catalog products it has not bought inside the
lookback window. Candidates are ranked by tenant-wide demand over the same
window, using one of three metrics:

- revenue: total line revenue across all customers
- volume: total units across all customers
- penetration: % of active customers who bought the product

Products bought by fewer than minimumCustomerThreshold customers are
dropped, ties are broken by productId ascending, and the list is cut at topN.

Demand is aggregated once per tenant with pandas (build_demand_index) and
shared by every account in a batch. Per-account work is then a set
difference over an already-sorted candidate list, with no extra queries.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Set, Union

import pandas as pd

from account_intelligence.core.exceptions import AccountNotFoundError
from account_intelligence.core.repository import IntelligenceRepository
from account_intelligence.core.timeutils import resolve_as_of
from account_intelligence.models.enums import RankingMetric
from account_intelligence.models.schemas import (
    Account,
    DeliveredOrder,
    Opportunity,
    OpportunityConfig,
    OpportunitySummary,
    Product,
    ProductDemand,
    TenantOrderLine,
)

logger = logging.getLogger(__name__)

DEMAND_COLUMNS = ["accountId", "productId", "quantity", "revenue"]


# =============================================================================
# Demand Aggregation
# =============================================================================


def build_demand_index(
    lines: Sequence[TenantOrderLine],
    active_customer_count: int,
) -> Dict[str, ProductDemand]:
    """
    Aggregate tenant-wide demand per product.

    Args:
        lines: Delivered, non-sample order lines inside the lookback window.
        active_customer_count: Denominator for penetrationPercent.

    Returns:
        Dict mapping productId to its ProductDemand. Products nobody bought
        are absent.
    """
    if not lines:
        return {}

    df = pd.DataFrame(
        [{column: getattr(line, column) for column in DEMAND_COLUMNS} for line in lines],
        columns=DEMAND_COLUMNS,
    )

    grouped = df.groupby("productId").agg(
        totalRevenue=("revenue", "sum"),
        totalUnits=("quantity", "sum"),
        customersPurchased=("accountId", "nunique"),
    )

    demand: Dict[str, ProductDemand] = {}
    for product_id, row in grouped.iterrows():
        customers = int(row["customersPurchased"])
        penetration = (
            customers / active_customer_count * 100
            if active_customer_count > 0
            else 0.0
        )
        demand[str(product_id)] = ProductDemand(
            productId=str(product_id),
            totalRevenue=float(row["totalRevenue"]),
            totalUnits=int(row["totalUnits"]),
            customersPurchased=customers,
            penetrationPercent=penetration,
        )
    return demand


def purchased_product_ids(
    lines_or_orders: Iterable[Union[TenantOrderLine, DeliveredOrder]],
) -> Set[str]:
    """Products bought in the given lines or orders. Sample lines are not purchases."""
    purchased: Set[str] = set()
    for item in lines_or_orders:
        if isinstance(item, DeliveredOrder):
            purchased.update(line.productId for line in item.lines if not line.isSample)
        else:
            purchased.add(item.productId)
    return purchased


# =============================================================================
# Ranking
# =============================================================================


def _metric_value(demand: ProductDemand, rank_by: RankingMetric) -> float:
    if rank_by == RankingMetric.VOLUME:
        return float(demand.totalUnits)
    if rank_by == RankingMetric.PENETRATION:
        return demand.penetrationPercent
    return demand.totalRevenue


def _eligible_candidates(
    catalog: Iterable[Product],
    demand: Dict[str, ProductDemand],
    rank_by: RankingMetric,
    config: OpportunityConfig,
) -> List[Opportunity]:
    """Every catalog product that passes the filters, sorted best first, unranked."""
    candidates = []
    for product in catalog:
        if config.excludeDiscontinued and not product.isActive:
            continue

        product_demand = demand.get(product.id) or ProductDemand(productId=product.id)
        if product_demand.customersPurchased < config.minimumCustomerThreshold:
            continue

        candidates.append(Opportunity(
            productId=product.id,
            productName=product.name,
            productCategory=product.category,
            supplierName=product.supplierName,
            rankingMetric=rank_by,
            metricValue=_metric_value(product_demand, rank_by),
            rank=1,
            totalRevenue=product_demand.totalRevenue,
            totalUnits=product_demand.totalUnits,
            customersPurchased=product_demand.customersPurchased,
            penetrationPercent=product_demand.penetrationPercent,
        ))

    candidates.sort(key=lambda opp: (-opp.metricValue, opp.productId))
    return candidates


def _take_top(candidates: List[Opportunity], purchased: Set[str], top_n: int) -> List[Opportunity]:
    selected: List[Opportunity] = []
    for candidate in candidates:
        if candidate.productId in purchased:
            continue
        selected.append(candidate.model_copy(update={"rank": len(selected) + 1}))
        if len(selected) >= top_n:
            break
    return selected


def rank_opportunities(
    purchased: Set[str],
    catalog: Iterable[Product],
    demand: Dict[str, ProductDemand],
    rank_by: RankingMetric,
    config: OpportunityConfig,
) -> List[Opportunity]:
    """
    Rank the catalog products an account has not purchased.

    Ordering is deterministic: metric value descending, then productId
    ascending. Ranks run 1..N without gaps.
    """
    candidates = _eligible_candidates(catalog, demand, RankingMetric(rank_by), config)
    return _take_top(candidates, purchased, config.topN)


# =============================================================================
# Tenant Demand Context
# =============================================================================


@dataclass
class TenantDemand:
    """
    Everything needed to rank opportunities for any account in a tenant.

    Loaded with three queries regardless of how many accounts are ranked.
    """
    catalog: List[Product]
    demand: Dict[str, ProductDemand]
    purchased_by_account: Dict[str, Set[str]] = field(default_factory=dict)

    def purchased(self, account_id: str) -> Set[str]:
        return self.purchased_by_account.get(account_id, set())


async def load_tenant_demand(
    repo: IntelligenceRepository,
    tenant_id: str,
    config: OpportunityConfig,
    as_of: datetime,
    active_customer_count: Optional[int] = None,
) -> TenantDemand:
    since = as_of - timedelta(days=config.lookbackDays)
    lines = await repo.list_tenant_order_lines(tenant_id, since)

    if active_customer_count is None:
        active_customer_count = len(await repo.list_active_accounts(tenant_id))

    catalog = await repo.list_catalog_products(tenant_id, config.excludeDiscontinued)

    purchased_by_account: Dict[str, Set[str]] = {}
    for line in lines:
        purchased_by_account.setdefault(line.accountId, set()).add(line.productId)

    logger.debug(
        f"Loaded demand for tenant {tenant_id}: {len(lines)} lines, "
        f"{len(catalog)} catalog products, {active_customer_count} active customers"
    )
    return TenantDemand(
        catalog=catalog,
        demand=build_demand_index(lines, active_customer_count),
        purchased_by_account=purchased_by_account,
    )


# =============================================================================
# Repository-backed Entry Points
# =============================================================================


async def detect_customer_opportunities(
    repo: IntelligenceRepository,
    account_id: str,
    tenant_id: str,
    rank_by: Union[RankingMetric, str] = RankingMetric.REVENUE,
    config: Optional[OpportunityConfig] = None,
    as_of: Optional[datetime] = None,
) -> List[Opportunity]:
    """
    Rank unpurchased products for a single account.

    Raises:
        AccountNotFoundError: If the account does not exist in the tenant.
        ValueError: If rank_by is not a known ranking metric.
    """
    config = config or OpportunityConfig()
    rank_by = RankingMetric(rank_by)
    as_of = resolve_as_of(as_of)

    account = await repo.get_account(account_id, tenant_id)
    if account is None:
        raise AccountNotFoundError(account_id, tenant_id)

    context = await load_tenant_demand(repo, tenant_id, config, as_of)
    return rank_opportunities(
        context.purchased(account_id), context.catalog, context.demand, rank_by, config
    )


async def detect_tenant_opportunities(
    repo: IntelligenceRepository,
    tenant_id: str,
    rank_by: Union[RankingMetric, str] = RankingMetric.REVENUE,
    config: Optional[OpportunityConfig] = None,
    as_of: Optional[datetime] = None,
    accounts: Optional[List[Account]] = None,
) -> Dict[str, List[Opportunity]]:
    """
    Rank opportunities for every active account of a tenant.

    The demand index and the sorted candidate list are built once and
    reused for every account.

    Returns:
        Dict mapping accountId to its ranked opportunities.
    """
    config = config or OpportunityConfig()
    rank_by = RankingMetric(rank_by)
    as_of = resolve_as_of(as_of)

    if accounts is None:
        accounts = await repo.list_active_accounts(tenant_id)

    context = await load_tenant_demand(
        repo, tenant_id, config, as_of, active_customer_count=len(accounts)
    )
    candidates = _eligible_candidates(context.catalog, context.demand, rank_by, config)

    results = {
        account.id: _take_top(candidates, context.purchased(account.id), config.topN)
        for account in accounts
    }

    logger.info(
        f"Detected opportunities for {len(results)} accounts in tenant {tenant_id} "
        f"({len(candidates)} eligible products, ranked by {rank_by.value})"
    )
    return results


def summarize_opportunities(opportunities: List[Opportunity]) -> OpportunitySummary:
    """Count opportunities per category and per supplier; unlabelled products are skipped."""
    by_category = Counter(opp.productCategory for opp in opportunities if opp.productCategory)
    by_supplier = Counter(opp.supplierName for opp in opportunities if opp.supplierName)

    return OpportunitySummary(
        totalOpportunities=len(opportunities),
        byCategory=dict(by_category),
        bySupplier=dict(by_supplier),
        topOpportunity=opportunities[0] if opportunities else None,
    )


async def get_opportunity_summary(
    repo: IntelligenceRepository,
    account_id: str,
    tenant_id: str,
    config: Optional[OpportunityConfig] = None,
    as_of: Optional[datetime] = None,
    limit: int = 100,
) -> OpportunitySummary:
    """Summarize up to ``limit`` revenue-ranked opportunities for an account."""
    config = (config or OpportunityConfig()).model_copy(update={"topN": limit})
    opportunities = await detect_customer_opportunities(
        repo, account_id, tenant_id, RankingMetric.REVENUE, config, as_of
    )
    return summarize_opportunities(opportunities)
