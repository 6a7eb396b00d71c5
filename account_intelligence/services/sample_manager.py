"""
Sample ledger and monthly allowance tracking.

Every physical sample pull is one append-only row in sample_transfers. A
rep's usage for a month is derived from those rows, never from a mutable
counter:

- pullsThisMonth: ledger rows for the rep dated inside the calendar month
- remainingAllowance: max(0, allowance - pullsThisMonth)
- isOverAllowance: pullsThisMonth > allowance

Once a rep's pulls for the month reach requireManagerApprovalOver, further
pulls need an approvedByManagerId. The repository counts and inserts in one
atomic step per rep, so concurrent pulls cannot both slip under the
threshold. Tasting feedback is keyed to the
transfer it follows up on; transfers older than minimumFeedbackDays without
feedback are reported as pending.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import List, Optional

from account_intelligence.core.exceptions import (
    AccountNotFoundError,
    ManagerApprovalRequiredError,
    SalesRepNotFoundError,
    SampleLedgerError,
    SampleTransferNotFoundError,
)
from account_intelligence.core.repository import IntelligenceRepository
from account_intelligence.core.timeutils import (
    as_utc,
    month_bounds,
    resolve_as_of,
    whole_days_between,
)
from account_intelligence.models.schemas import (
    SalesRep,
    SampleAllowance,
    SampleConfig,
    SampleTransfer,
    SampleTransferCreate,
    TastingFeedback,
    TastingFeedbackCreate,
)

logger = logging.getLogger(__name__)

# How far back pending-feedback checks look for transfers
FEEDBACK_WINDOW_DAYS = 90


# =============================================================================
# Allowance
# =============================================================================


def compute_sample_allowance(
    tenant_id: str,
    rep: SalesRep,
    year: int,
    month: int,
    transfers: List[SampleTransfer],
    config: SampleConfig,
) -> SampleAllowance:
    """
    Derive a rep's allowance usage for one month from ledger rows.

    Rows belonging to other reps or dated outside the month are ignored,
    so callers may pass a tenant-wide slice of the ledger.
    """
    start, end = month_bounds(year, month)
    rep_transfers = [
        transfer for transfer in transfers
        if transfer.salesRepId == rep.id and start <= as_utc(transfer.transferDate) < end
    ]

    allowance = config.defaultMonthlyAllowance
    pulls = len(rep_transfers)

    return SampleAllowance(
        tenantId=tenant_id,
        salesRepId=rep.id,
        salesRepName=rep.name,
        year=year,
        month=month,
        allowance=allowance,
        pullsThisMonth=pulls,
        remainingAllowance=max(0, allowance - pulls),
        isOverAllowance=pulls > allowance,
        transfersThisMonth=rep_transfers,
    )


async def get_rep_sample_allowance(
    repo: IntelligenceRepository,
    tenant_id: str,
    sales_rep_id: str,
    year: int,
    month: int,
    config: Optional[SampleConfig] = None,
) -> SampleAllowance:
    """
    Raises:
        SalesRepNotFoundError: If the rep does not exist in the tenant.
    """
    config = config or SampleConfig()

    rep = await repo.get_sales_rep(sales_rep_id, tenant_id)
    if rep is None:
        raise SalesRepNotFoundError(sales_rep_id, tenant_id)

    start, end = month_bounds(year, month)
    transfers = await repo.list_sample_transfers(tenant_id, start, end, sales_rep_id)
    return compute_sample_allowance(tenant_id, rep, year, month, transfers, config)


# =============================================================================
# Ledger Writes
# =============================================================================


async def record_sample_transfer(
    repo: IntelligenceRepository,
    transfer: SampleTransferCreate,
    config: Optional[SampleConfig] = None,
    as_of: Optional[datetime] = None,
) -> SampleTransfer:
    """
    Append one sample pull to the ledger.

    Args:
        transfer: The pull to record. transferDate defaults to ``as_of``.

    Raises:
        SalesRepNotFoundError: If the rep does not exist in the tenant.
        AccountNotFoundError: If the account does not exist in the tenant.
        ManagerApprovalRequiredError: If the rep already reached the
            approval threshold this month and no approver is given.
            Nothing is written in that case.
    """
    config = config or SampleConfig()
    transfer_date = as_utc(transfer.transferDate) if transfer.transferDate else resolve_as_of(as_of)

    rep = await repo.get_sales_rep(transfer.salesRepId, transfer.tenantId)
    if rep is None:
        raise SalesRepNotFoundError(transfer.salesRepId, transfer.tenantId)

    account = await repo.get_account(transfer.accountId, transfer.tenantId)
    if account is None:
        raise AccountNotFoundError(transfer.accountId, transfer.tenantId)

    record = SampleTransfer(
        id=str(uuid.uuid4()),
        tenantId=transfer.tenantId,
        salesRepId=transfer.salesRepId,
        accountId=transfer.accountId,
        productId=transfer.productId,
        quantity=transfer.quantity,
        transferDate=transfer_date,
        purposeNotes=transfer.purposeNotes,
        approvedByManagerId=transfer.approvedByManagerId,
        followUpActivityId=transfer.followUpActivityId,
    )

    month_start, month_end = month_bounds(transfer_date.year, transfer_date.month)
    threshold = None if transfer.approvedByManagerId else config.requireManagerApprovalOver
    inserted, pulls = await repo.append_sample_transfer(record, month_start, month_end, threshold)
    if not inserted:
        logger.warning(
            f"Refused sample pull for rep {rep.id} in tenant {transfer.tenantId}: "
            f"{pulls} pulls this month, approval required"
        )
        raise ManagerApprovalRequiredError(rep.id, pulls, config.requireManagerApprovalOver)

    logger.info(
        f"Recorded sample transfer {record.id} for rep {rep.id} "
        f"({pulls + 1}/{config.defaultMonthlyAllowance} this month)"
    )
    return record


async def record_tasting_feedback(
    repo: IntelligenceRepository,
    tenant_id: str,
    feedback: TastingFeedbackCreate,
    config: Optional[SampleConfig] = None,
    as_of: Optional[datetime] = None,
) -> TastingFeedback:
    """
    Capture tasting feedback for an existing sample transfer.

    Raises:
        SampleLedgerError: If feedback tracking is disabled for the tenant,
            or the account/product do not match the transfer.
        SampleTransferNotFoundError: If the transfer does not exist.
    """
    config = config or SampleConfig()
    if not config.trackTastingFeedback:
        raise SampleLedgerError(f"Tasting feedback tracking is disabled for tenant '{tenant_id}'")

    transfer = await repo.get_sample_transfer(feedback.sampleTransferId, tenant_id)
    if transfer is None:
        raise SampleTransferNotFoundError(feedback.sampleTransferId, tenant_id)

    if transfer.accountId != feedback.accountId or transfer.productId != feedback.productId:
        raise SampleLedgerError(
            f"Feedback for transfer '{transfer.id}' must reference account "
            f"'{transfer.accountId}' and product '{transfer.productId}'"
        )

    record = TastingFeedback(
        id=str(uuid.uuid4()),
        tenantId=tenant_id,
        sampleTransferId=transfer.id,
        accountId=feedback.accountId,
        productId=feedback.productId,
        feedbackDate=as_utc(feedback.feedbackDate) if feedback.feedbackDate else resolve_as_of(as_of),
        rating=feedback.rating,
        customerInterest=feedback.customerInterest,
        orderPlaced=feedback.orderPlaced,
        orderAmount=feedback.orderAmount,
        notes=feedback.notes,
        followUpRequired=feedback.followUpRequired,
    )
    await repo.insert_tasting_feedback(record)
    return record


async def get_pending_feedback(
    repo: IntelligenceRepository,
    tenant_id: str,
    sales_rep_id: Optional[str] = None,
    config: Optional[SampleConfig] = None,
    as_of: Optional[datetime] = None,
) -> List[SampleTransfer]:
    """
    Transfers from the last FEEDBACK_WINDOW_DAYS that are at least
    minimumFeedbackDays old and still have no tasting feedback.
    """
    config = config or SampleConfig()
    if not config.trackTastingFeedback:
        return []

    as_of = resolve_as_of(as_of)
    transfers = await repo.list_sample_transfers(
        tenant_id,
        as_of - timedelta(days=FEEDBACK_WINDOW_DAYS),
        as_of,
        sales_rep_id,
        without_feedback=True,
    )

    return [
        transfer for transfer in transfers
        if whole_days_between(transfer.transferDate, as_of) >= config.minimumFeedbackDays
    ]
