"""
SQL Query Module for the account intelligence core.

Provides parameterized SQL queries for:
- Delivered order history (order_queries)
- Accounts, catalog, sales reps and tenant configuration (account_queries)
- Append-only ledgers: sample transfers, tasting feedback, health snapshots
  (ledger_queries)

Follows the Repository Pattern: only
account_intelligence.core.repository executes these strings.

Example usage:
    from account_intelligence.sql import get_delivered_orders_query

    rows = await execute_query(get_delivered_orders_query(), tenant_id, account_id, since)
"""

# =============================================================================
# ORDER QUERIES
# =============================================================================

from account_intelligence.sql.order_queries import (
    get_delivered_orders_query,
    get_tenant_order_lines_query,
    DELIVERED_STATUS,
)

# =============================================================================
# ACCOUNT / CATALOG / CONFIG QUERIES
# =============================================================================

from account_intelligence.sql.account_queries import (
    get_active_accounts_query,
    get_account_query,
    get_catalog_products_query,
    get_sales_reps_query,
    get_sales_rep_query,
    get_tenant_config_query,
    get_tenant_config_upsert_query,
    SAMPLE_ROLES,
)

# =============================================================================
# LEDGER QUERIES
# =============================================================================

from account_intelligence.sql.ledger_queries import (
    get_sample_transfer_insert_query,
    get_sample_transfers_query,
    get_sample_transfer_query,
    get_tasting_feedback_insert_query,
    get_sample_pull_lock_query,
    get_sample_pull_count_query,
    get_health_snapshot_insert_query,
)

__all__ = [
    'get_delivered_orders_query',
    'get_tenant_order_lines_query',
    'DELIVERED_STATUS',
    'get_active_accounts_query',
    'get_account_query',
    'get_catalog_products_query',
    'get_sales_reps_query',
    'get_sales_rep_query',
    'get_tenant_config_query',
    'get_tenant_config_upsert_query',
    'SAMPLE_ROLES',
    'get_sample_transfer_insert_query',
    'get_sample_transfers_query',
    'get_sample_transfer_query',
    'get_tasting_feedback_insert_query',
    'get_sample_pull_lock_query',
    'get_sample_pull_count_query',
    'get_health_snapshot_insert_query',
]
