"""
Parameterized SQL for append-only records.

Three tables are written by the intelligence core, all insert-only with no
update or delete path:
- sample_transfers: one row per physical sample pull
- tasting_feedback: feedback keyed to a sample transfer
- account_health_snapshots: point-in-time health records

Sample pulls are inserted under a per-rep advisory lock, so the monthly
count and the insert behind the approval gate see the same ledger.
"""


def get_sample_transfer_insert_query() -> str:
    """
    Parameters:
        $1 id, $2 tenant id, $3 sales rep id, $4 account id, $5 product id,
        $6 quantity, $7 transfer date, $8 purpose notes,
        $9 approved by manager id, $10 follow-up activity id
    """
    return """
    INSERT INTO "sample_transfers" (
        "id", "tenantId", "salesRepId", "customerId", "productId",
        "quantity", "transferDate", "purposeNotes",
        "approvedByManagerId", "followUpActivityId"
    )
    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
    """


def get_sample_pull_lock_query() -> str:
    """
    Transaction-scoped advisory lock serializing pulls for one rep.

    Parameters:
        $1: lock key, "<tenant id>:<sales rep id>"
    """
    return "SELECT pg_advisory_xact_lock(hashtext($1))"


def get_sample_pull_count_query() -> str:
    """
    Count a rep's ledger rows inside a half-open date range.

    Parameters:
        $1: tenant id
        $2: sales rep id
        $3: start (inclusive)
        $4: end (exclusive)
    """
    return """
    SELECT COUNT(*)
    FROM "sample_transfers" st
    WHERE st."tenantId" = $1
      AND st."salesRepId" = $2
      AND st."transferDate" >= $3
      AND st."transferDate" < $4
    """


_SAMPLE_TRANSFER_COLUMNS = """
        st."id", st."tenantId" AS tenant_id, st."salesRepId" AS sales_rep_id,
        st."customerId" AS account_id, st."productId" AS product_id,
        st."quantity", st."transferDate" AS transfer_date,
        st."purposeNotes" AS purpose_notes,
        st."approvedByManagerId" AS approved_by_manager_id,
        st."followUpActivityId" AS follow_up_activity_id
"""


def get_sample_transfers_query(filter_by_rep: bool = False, without_feedback: bool = False) -> str:
    """
    Generate SQL listing ledger rows inside a half-open date range.

    With without_feedback, rows that already have tasting feedback are
    excluded in the database, so only the date window is ever loaded.

    Parameters:
        $1: tenant id
        $2: start (inclusive)
        $3: end (exclusive)
        $4: sales rep id (only when filter_by_rep is True)
    """
    rep_filter = 'AND st."salesRepId" = $4' if filter_by_rep else ""
    feedback_filter = """AND NOT EXISTS (
        SELECT 1 FROM "tasting_feedback" tf
        WHERE tf."tenantId" = st."tenantId"
          AND tf."sampleTransferId" = st."id"
      )""" if without_feedback else ""
    return f"""
    SELECT {_SAMPLE_TRANSFER_COLUMNS}
    FROM "sample_transfers" st
    WHERE st."tenantId" = $1
      AND st."transferDate" >= $2
      AND st."transferDate" < $3
      {rep_filter}
      {feedback_filter}
    ORDER BY st."transferDate" ASC, st."id" ASC
    """


def get_sample_transfer_query() -> str:
    """
    Parameters:
        $1: transfer id
        $2: tenant id
    """
    return f"""
    SELECT {_SAMPLE_TRANSFER_COLUMNS}
    FROM "sample_transfers" st
    WHERE st."id" = $1
      AND st."tenantId" = $2
    """


def get_tasting_feedback_insert_query() -> str:
    """
    Parameters:
        $1 id, $2 tenant id, $3 sample transfer id, $4 account id,
        $5 product id, $6 feedback date, $7 rating, $8 customer interest,
        $9 order placed, $10 order amount, $11 notes, $12 follow-up required
    """
    return """
    INSERT INTO "tasting_feedback" (
        "id", "tenantId", "sampleTransferId", "customerId", "productId",
        "feedbackDate", "rating", "customerInterest", "orderPlaced",
        "orderAmount", "notes", "followUpRequired"
    )
    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12)
    """


def get_health_snapshot_insert_query() -> str:
    """
    Parameters:
        $1 id, $2 tenant id, $3 account id, $4 snapshot date,
        $5 current month revenue, $6 average month revenue,
        $7 revenue drop percent, $8 revenue health status,
        $9 established pace days, $10 days since last order,
        $11 pace status, $12 metadata (jsonb text)
    """
    return """
    INSERT INTO "account_health_snapshots" (
        "id", "tenantId", "customerId", "snapshotDate",
        "currentMonthRevenue", "averageMonthRevenue", "revenueDropPercent",
        "revenueHealthStatus", "establishedPaceDays", "daysSinceLastOrder",
        "paceStatus", "metadata"
    )
    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12::jsonb)
    """
