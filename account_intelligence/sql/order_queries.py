"""
Parameterized SQL for delivered order history.

Only orders in DELIVERED status with a confirmed "actualDeliveryDate" are
returned. Queries target the portal schema (camelCase quoted columns) and
use asyncpg's $n placeholders.
"""

# Order status counted by every intelligence calculation
DELIVERED_STATUS: str = "DELIVERED"


def get_delivered_orders_query() -> str:
    """
    Generate SQL returning one row per order line for an account's delivered orders.

    Parameters:
        $1: tenant id
        $2: account (customer) id
        $3: lower bound on delivery date (inclusive)

    Rows are ordered by delivery date, then order id, so lines of the same
    order are contiguous. Orders without lines appear once with NULL line
    columns (LEFT JOIN) so they still count toward pace.

    Returns:
        str: PostgreSQL query string.
    """
    return f"""
    SELECT
        o."id" AS order_id,
        o."customerId" AS account_id,
        o."actualDeliveryDate" AS delivered_at,
        ol."productId" AS product_id,
        ol."quantity" AS quantity,
        COALESCE(ol."subtotal", 0) AS revenue,
        COALESCE(ol."isSample", false) AS is_sample
    FROM "orders" o
    LEFT JOIN "order_lines" ol ON ol."orderId" = o."id"
    WHERE o."tenantId" = $1
      AND o."customerId" = $2
      AND o."status" = '{DELIVERED_STATUS}'
      AND o."actualDeliveryDate" IS NOT NULL
      AND o."actualDeliveryDate" >= $3
    ORDER BY o."actualDeliveryDate" ASC, o."id" ASC, ol."lineNumber" ASC
    """


def get_tenant_order_lines_query() -> str:
    """
    Generate SQL returning every delivered order line in a tenant since a date.

    Parameters:
        $1: tenant id
        $2: lower bound on delivery date (inclusive)

    Sample lines are excluded: free samples are not purchase demand.

    Returns:
        str: PostgreSQL query string.
    """
    return f"""
    SELECT
        o."customerId" AS account_id,
        ol."productId" AS product_id,
        ol."quantity" AS quantity,
        COALESCE(ol."subtotal", 0) AS revenue,
        o."actualDeliveryDate" AS delivered_at
    FROM "order_lines" ol
    JOIN "orders" o ON o."id" = ol."orderId"
    WHERE o."tenantId" = $1
      AND o."status" = '{DELIVERED_STATUS}'
      AND o."actualDeliveryDate" IS NOT NULL
      AND o."actualDeliveryDate" >= $2
      AND COALESCE(ol."isSample", false) = false
    """
