"""
FastAPI router for account intelligence endpoints.

Endpoints:
- GET  /tenants/{tenant_id}/dashboard: tenant-wide DashboardMetrics
- GET  /tenants/{tenant_id}/alerts: prioritized ActionableAlerts
- GET  /tenants/{tenant_id}/accounts/{account_id}/insights: AccountInsights
- GET  /tenants/{tenant_id}/accounts/{account_id}/opportunities: ranked opportunities
- GET  /tenants/{tenant_id}/reps/{rep_id}/sample-allowance: SampleAllowance
- POST /tenants/{tenant_id}/samples/transfers: append a sample pull
- POST /tenants/{tenant_id}/samples/feedback: capture tasting feedback
- GET/PUT /tenants/{tenant_id}/config: threshold overrides

Error mapping:
- NotFoundError -> 404
- ManagerApprovalRequiredError -> 409
- Other SampleLedgerError -> 422
- RepositoryError -> 503 (store unavailable; a retry may succeed)
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, HTTPException, Query
from pydantic import ValidationError

from account_intelligence.core.dependencies import RepositoryDep
from account_intelligence.core.exceptions import (
    IntelligenceError,
    ManagerApprovalRequiredError,
    NotFoundError,
    RepositoryError,
    SampleLedgerError,
)
from account_intelligence.core.timeutils import utc_now
from account_intelligence.models import (
    AccountInsights,
    ActionableAlerts,
    DashboardMetrics,
    Opportunity,
    RankingMetric,
    SampleAllowance,
    SampleTransfer,
    SampleTransferCreate,
    TastingFeedback,
    TastingFeedbackCreate,
    TenantIntelligenceConfig,
)
from account_intelligence.services.metrics_service import (
    calculate_account_insights,
    calculate_dashboard_metrics,
    get_actionable_alerts,
)
from account_intelligence.services.opportunity_detector import detect_customer_opportunities
from account_intelligence.services.sample_manager import (
    get_rep_sample_allowance,
    record_sample_transfer,
    record_tasting_feedback,
)
from account_intelligence.services.tenant_config import (
    get_tenant_intelligence_config,
    update_tenant_intelligence_config,
)

router = APIRouter(prefix="/tenants/{tenant_id}", tags=["intelligence"])

logger = logging.getLogger(__name__)


def _to_http_exception(exc: IntelligenceError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ManagerApprovalRequiredError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, SampleLedgerError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, RepositoryError):
        logger.error(f"Data store unavailable: {exc}", exc_info=True)
        return HTTPException(status_code=503, detail="Data store unavailable, retry later")

    logger.error(f"Unhandled intelligence error: {exc}", exc_info=True)
    return HTTPException(status_code=500, detail=str(exc))


# =============================================================================
# Tenant-wide
# =============================================================================


@router.get("/dashboard", response_model=DashboardMetrics)
async def get_dashboard(
    tenant_id: str,
    repo: RepositoryDep,
    include_all_accounts: bool = Query(False, alias="includeAllAccounts"),
    sales_rep_id: Optional[str] = Query(None, alias="salesRepId"),
) -> DashboardMetrics:
    try:
        return await calculate_dashboard_metrics(
            repo, tenant_id, include_all_accounts=include_all_accounts, sales_rep_id=sales_rep_id
        )
    except IntelligenceError as e:
        raise _to_http_exception(e) from e


@router.get("/alerts", response_model=ActionableAlerts)
async def get_alerts(
    tenant_id: str,
    repo: RepositoryDep,
    sales_rep_id: Optional[str] = Query(None, alias="salesRepId"),
) -> ActionableAlerts:
    try:
        return await get_actionable_alerts(repo, tenant_id, sales_rep_id=sales_rep_id)
    except IntelligenceError as e:
        raise _to_http_exception(e) from e


# =============================================================================
# Single account
# =============================================================================


@router.get("/accounts/{account_id}/insights", response_model=AccountInsights)
async def get_account_insights(
    tenant_id: str,
    account_id: str,
    repo: RepositoryDep,
) -> AccountInsights:
    try:
        return await calculate_account_insights(repo, account_id, tenant_id)
    except IntelligenceError as e:
        raise _to_http_exception(e) from e


@router.get("/accounts/{account_id}/opportunities", response_model=List[Opportunity])
async def get_account_opportunities(
    tenant_id: str,
    account_id: str,
    repo: RepositoryDep,
    rank_by: RankingMetric = Query(RankingMetric.REVENUE, alias="rankBy"),
) -> List[Opportunity]:
    try:
        config = await get_tenant_intelligence_config(repo, tenant_id)
        return await detect_customer_opportunities(
            repo, account_id, tenant_id, rank_by, config.opportunity
        )
    except IntelligenceError as e:
        raise _to_http_exception(e) from e


# =============================================================================
# Samples
# =============================================================================


@router.get("/reps/{rep_id}/sample-allowance", response_model=SampleAllowance)
async def get_sample_allowance(
    tenant_id: str,
    rep_id: str,
    repo: RepositoryDep,
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
) -> SampleAllowance:
    """Allowance usage for a rep; defaults to the current month."""
    now = utc_now()
    try:
        config = await get_tenant_intelligence_config(repo, tenant_id)
        return await get_rep_sample_allowance(
            repo, tenant_id, rep_id, year or now.year, month or now.month, config.sample
        )
    except IntelligenceError as e:
        raise _to_http_exception(e) from e


@router.post("/samples/transfers", response_model=SampleTransfer, status_code=201)
async def create_sample_transfer(
    tenant_id: str,
    transfer: SampleTransferCreate,
    repo: RepositoryDep,
) -> SampleTransfer:
    if transfer.tenantId != tenant_id:
        raise HTTPException(status_code=400, detail="tenantId in body does not match path")

    try:
        config = await get_tenant_intelligence_config(repo, tenant_id)
        return await record_sample_transfer(repo, transfer, config.sample)
    except IntelligenceError as e:
        raise _to_http_exception(e) from e


@router.post("/samples/feedback", response_model=TastingFeedback, status_code=201)
async def create_tasting_feedback(
    tenant_id: str,
    feedback: TastingFeedbackCreate,
    repo: RepositoryDep,
) -> TastingFeedback:
    try:
        config = await get_tenant_intelligence_config(repo, tenant_id)
        return await record_tasting_feedback(repo, tenant_id, feedback, config.sample)
    except IntelligenceError as e:
        raise _to_http_exception(e) from e


# =============================================================================
# Tenant configuration
# =============================================================================


@router.get("/config", response_model=TenantIntelligenceConfig)
async def get_config(tenant_id: str, repo: RepositoryDep) -> TenantIntelligenceConfig:
    try:
        return await get_tenant_intelligence_config(repo, tenant_id)
    except IntelligenceError as e:
        raise _to_http_exception(e) from e


@router.put("/config", response_model=TenantIntelligenceConfig)
async def put_config(
    tenant_id: str,
    repo: RepositoryDep,
    overrides: Dict[str, Any] = Body(...),
) -> TenantIntelligenceConfig:
    """Merge partial overrides, e.g. {"pace": {"warningThresholdMultiplier": 1.3}}."""
    try:
        return await update_tenant_intelligence_config(repo, tenant_id, overrides)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except IntelligenceError as e:
        raise _to_http_exception(e) from e
