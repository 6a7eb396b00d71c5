"""
Data access layer for the account intelligence core.

IntelligenceRepository is the only seam through which services read order
history, accounts, catalog, reps and tenant configuration, and through which
the append-only ledgers are written. Services receive a repository instance
explicitly, so tests substitute an in-memory implementation and production
uses PostgresIntelligenceRepository over the shared asyncpg pool.

Store failures (query errors, dropped connections, timeouts) surface as
RepositoryError. They are never mapped to an "insufficient-data"
classification.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

import asyncpg

from account_intelligence.core import database
from account_intelligence.core.exceptions import RepositoryError
from account_intelligence.core.timeutils import as_utc
from account_intelligence.models.schemas import (
    Account,
    DeliveredOrder,
    HealthSnapshot,
    OrderLine,
    Product,
    SalesRep,
    SampleTransfer,
    TastingFeedback,
    TenantOrderLine,
)
from account_intelligence.sql import (
    SAMPLE_ROLES,
    get_account_query,
    get_active_accounts_query,
    get_catalog_products_query,
    get_delivered_orders_query,
    get_health_snapshot_insert_query,
    get_sales_rep_query,
    get_sales_reps_query,
    get_sample_pull_count_query,
    get_sample_pull_lock_query,
    get_sample_transfer_insert_query,
    get_sample_transfer_query,
    get_sample_transfers_query,
    get_tasting_feedback_insert_query,
    get_tenant_config_query,
    get_tenant_config_upsert_query,
    get_tenant_order_lines_query,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors that mean the store could not answer, as opposed to a bug in the caller
STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


class IntelligenceRepository(ABC):
    """Tenant-scoped reads and append-only writes used by the intelligence services."""

    # ---- Reads -----------------------------------------------------------

    @abstractmethod
    async def list_delivered_orders(
        self, account_id: str, tenant_id: str, since: datetime
    ) -> List[DeliveredOrder]:
        """Delivered orders with lines for one account, delivered at or after ``since``."""

    @abstractmethod
    async def list_active_accounts(self, tenant_id: str) -> List[Account]:
        ...

    @abstractmethod
    async def get_account(self, account_id: str, tenant_id: str) -> Optional[Account]:
        ...

    @abstractmethod
    async def list_catalog_products(
        self, tenant_id: str, exclude_discontinued: bool
    ) -> List[Product]:
        ...

    @abstractmethod
    async def list_tenant_order_lines(
        self, tenant_id: str, since: datetime
    ) -> List[TenantOrderLine]:
        """Every delivered, non-sample order line in the tenant since ``since``."""

    @abstractmethod
    async def get_tenant_config(self, tenant_id: str) -> Optional[Dict[str, Any]]:
        """Stored threshold overrides, or None when the tenant has none."""

    @abstractmethod
    async def save_tenant_config(self, tenant_id: str, overrides: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def list_sales_reps(
        self, tenant_id: str, sales_rep_id: Optional[str] = None
    ) -> List[SalesRep]:
        ...

    @abstractmethod
    async def get_sales_rep(self, sales_rep_id: str, tenant_id: str) -> Optional[SalesRep]:
        ...

    @abstractmethod
    async def list_sample_transfers(
        self,
        tenant_id: str,
        since: datetime,
        until: datetime,
        sales_rep_id: Optional[str] = None,
        without_feedback: bool = False,
    ) -> List[SampleTransfer]:
        """
        Ledger rows with since <= transferDate < until.

        With without_feedback, rows that already have tasting feedback are
        left out.
        """

    @abstractmethod
    async def get_sample_transfer(
        self, transfer_id: str, tenant_id: str
    ) -> Optional[SampleTransfer]:
        ...

    # ---- Append-only writes ------------------------------------------------

    @abstractmethod
    async def append_sample_transfer(
        self,
        transfer: SampleTransfer,
        month_start: datetime,
        month_end: datetime,
        approval_threshold: Optional[int],
    ) -> Tuple[bool, int]:
        """
        Count the rep's pulls in [month_start, month_end) and insert the
        transfer unless that count has reached approval_threshold.

        The count and the insert are atomic with respect to other pulls by
        the same rep. A threshold of None always inserts.

        Returns:
            (inserted, pulls counted before this transfer)
        """

    @abstractmethod
    async def insert_tasting_feedback(self, feedback: TastingFeedback) -> None:
        ...

    @abstractmethod
    async def insert_health_snapshot(self, snapshot: HealthSnapshot) -> None:
        ...


# =============================================================================
# Row Mapping
# =============================================================================


def _account_from_record(row: Any) -> Account:
    return Account(
        id=row["id"],
        tenantId=row["tenant_id"],
        name=row["name"],
        isActive=row["is_active"],
    )


def _sales_rep_from_record(row: Any) -> SalesRep:
    return SalesRep(id=row["id"], tenantId=row["tenant_id"], name=row["name"])


def _sample_transfer_from_record(row: Any) -> SampleTransfer:
    return SampleTransfer(
        id=row["id"],
        tenantId=row["tenant_id"],
        salesRepId=row["sales_rep_id"],
        accountId=row["account_id"],
        productId=row["product_id"],
        quantity=row["quantity"],
        transferDate=as_utc(row["transfer_date"]),
        purposeNotes=row["purpose_notes"],
        approvedByManagerId=row["approved_by_manager_id"],
        followUpActivityId=row["follow_up_activity_id"],
    )


def group_order_rows(rows: List[Any]) -> List[DeliveredOrder]:
    """
    Fold one-row-per-line results into DeliveredOrder objects.

    Rows for the same order must be contiguous. An order with no lines
    arrives as a single row with a NULL product_id and becomes an order
    with an empty ``lines`` list.
    """
    orders: List[DeliveredOrder] = []
    current: Optional[DeliveredOrder] = None

    for row in rows:
        if current is None or current.id != row["order_id"]:
            current = DeliveredOrder(
                id=row["order_id"],
                accountId=row["account_id"],
                deliveredAt=as_utc(row["delivered_at"]),
            )
            orders.append(current)

        if row["product_id"] is not None:
            current.lines.append(OrderLine(
                productId=row["product_id"],
                quantity=row["quantity"] or 0,
                revenue=float(row["revenue"] or 0),
                isSample=bool(row["is_sample"]),
            ))

    return orders


# =============================================================================
# PostgreSQL Implementation
# =============================================================================


class PostgresIntelligenceRepository(IntelligenceRepository):
    """IntelligenceRepository backed by the shared asyncpg pool."""

    async def _run(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        try:
            return await call()
        except STORE_ERRORS as e:
            logger.error(f"Repository operation {operation} failed: {e}")
            raise RepositoryError(operation, e) from e

    async def list_delivered_orders(
        self, account_id: str, tenant_id: str, since: datetime
    ) -> List[DeliveredOrder]:
        rows = await self._run(
            "list_delivered_orders",
            lambda: database.execute_query(
                get_delivered_orders_query(), tenant_id, account_id, since
            ),
        )
        return group_order_rows(rows)

    async def list_active_accounts(self, tenant_id: str) -> List[Account]:
        rows = await self._run(
            "list_active_accounts",
            lambda: database.execute_query(get_active_accounts_query(), tenant_id),
        )
        return [_account_from_record(row) for row in rows]

    async def get_account(self, account_id: str, tenant_id: str) -> Optional[Account]:
        row = await self._run(
            "get_account",
            lambda: database.execute_query_one(get_account_query(), account_id, tenant_id),
        )
        return _account_from_record(row) if row else None

    async def list_catalog_products(
        self, tenant_id: str, exclude_discontinued: bool
    ) -> List[Product]:
        rows = await self._run(
            "list_catalog_products",
            lambda: database.execute_query(
                get_catalog_products_query(), tenant_id, exclude_discontinued
            ),
        )
        return [
            Product(
                id=row["id"],
                name=row["name"],
                category=row["category"],
                supplierName=row["supplier_name"],
                isActive=row["is_active"],
            )
            for row in rows
        ]

    async def list_tenant_order_lines(
        self, tenant_id: str, since: datetime
    ) -> List[TenantOrderLine]:
        rows = await self._run(
            "list_tenant_order_lines",
            lambda: database.execute_query(get_tenant_order_lines_query(), tenant_id, since),
        )
        return [
            TenantOrderLine(
                accountId=row["account_id"],
                productId=row["product_id"],
                quantity=row["quantity"] or 0,
                revenue=float(row["revenue"] or 0),
                deliveredAt=as_utc(row["delivered_at"]),
            )
            for row in rows
        ]

    async def get_tenant_config(self, tenant_id: str) -> Optional[Dict[str, Any]]:
        row = await self._run(
            "get_tenant_config",
            lambda: database.execute_query_one(get_tenant_config_query(), tenant_id),
        )
        if not row or row["overrides"] is None:
            return None

        overrides = row["overrides"]
        # asyncpg returns jsonb as text unless a codec is registered
        if isinstance(overrides, str):
            overrides = json.loads(overrides)
        return overrides

    async def save_tenant_config(self, tenant_id: str, overrides: Dict[str, Any]) -> None:
        await self._run(
            "save_tenant_config",
            lambda: database.execute_command(
                get_tenant_config_upsert_query(), tenant_id, json.dumps(overrides)
            ),
        )

    async def list_sales_reps(
        self, tenant_id: str, sales_rep_id: Optional[str] = None
    ) -> List[SalesRep]:
        args: List[Any] = [tenant_id, list(SAMPLE_ROLES)]
        if sales_rep_id is not None:
            args.append(sales_rep_id)

        rows = await self._run(
            "list_sales_reps",
            lambda: database.execute_query(
                get_sales_reps_query(filter_by_rep=sales_rep_id is not None), *args
            ),
        )
        return [_sales_rep_from_record(row) for row in rows]

    async def get_sales_rep(self, sales_rep_id: str, tenant_id: str) -> Optional[SalesRep]:
        row = await self._run(
            "get_sales_rep",
            lambda: database.execute_query_one(get_sales_rep_query(), sales_rep_id, tenant_id),
        )
        return _sales_rep_from_record(row) if row else None

    async def list_sample_transfers(
        self,
        tenant_id: str,
        since: datetime,
        until: datetime,
        sales_rep_id: Optional[str] = None,
        without_feedback: bool = False,
    ) -> List[SampleTransfer]:
        args: List[Any] = [tenant_id, since, until]
        if sales_rep_id is not None:
            args.append(sales_rep_id)

        rows = await self._run(
            "list_sample_transfers",
            lambda: database.execute_query(
                get_sample_transfers_query(
                    filter_by_rep=sales_rep_id is not None,
                    without_feedback=without_feedback,
                ),
                *args,
            ),
        )
        return [_sample_transfer_from_record(row) for row in rows]

    async def get_sample_transfer(
        self, transfer_id: str, tenant_id: str
    ) -> Optional[SampleTransfer]:
        row = await self._run(
            "get_sample_transfer",
            lambda: database.execute_query_one(get_sample_transfer_query(), transfer_id, tenant_id),
        )
        return _sample_transfer_from_record(row) if row else None

    async def append_sample_transfer(
        self,
        transfer: SampleTransfer,
        month_start: datetime,
        month_end: datetime,
        approval_threshold: Optional[int],
    ) -> Tuple[bool, int]:
        async def _append() -> Tuple[bool, int]:
            async with database.transaction() as conn:
                await conn.execute(
                    get_sample_pull_lock_query(), f"{transfer.tenantId}:{transfer.salesRepId}"
                )
                pulls = await conn.fetchval(
                    get_sample_pull_count_query(),
                    transfer.tenantId,
                    transfer.salesRepId,
                    month_start,
                    month_end,
                )
                if approval_threshold is not None and pulls >= approval_threshold:
                    return False, pulls

                await conn.execute(
                    get_sample_transfer_insert_query(),
                    transfer.id,
                    transfer.tenantId,
                    transfer.salesRepId,
                    transfer.accountId,
                    transfer.productId,
                    transfer.quantity,
                    transfer.transferDate,
                    transfer.purposeNotes,
                    transfer.approvedByManagerId,
                    transfer.followUpActivityId,
                )
                return True, pulls

        return await self._run("append_sample_transfer", _append)

    async def insert_tasting_feedback(self, feedback: TastingFeedback) -> None:
        await self._run(
            "insert_tasting_feedback",
            lambda: database.execute_command(
                get_tasting_feedback_insert_query(),
                feedback.id,
                feedback.tenantId,
                feedback.sampleTransferId,
                feedback.accountId,
                feedback.productId,
                feedback.feedbackDate,
                feedback.rating,
                feedback.customerInterest.value,
                feedback.orderPlaced,
                feedback.orderAmount,
                feedback.notes,
                feedback.followUpRequired,
            ),
        )

    async def insert_health_snapshot(self, snapshot: HealthSnapshot) -> None:
        metadata = {
            "monthlyRevenues": [m.model_dump() for m in snapshot.monthlyRevenues],
        }
        await self._run(
            "insert_health_snapshot",
            lambda: database.execute_command(
                get_health_snapshot_insert_query(),
                snapshot.id,
                snapshot.tenantId,
                snapshot.accountId,
                snapshot.snapshotDate,
                snapshot.currentMonthRevenue,
                snapshot.averageMonthRevenue,
                snapshot.revenueDropPercent,
                snapshot.revenueHealthStatus.value,
                snapshot.establishedPaceDays,
                snapshot.daysSinceLastOrder,
                snapshot.paceStatus.value,
                json.dumps(metadata),
            ),
        )
