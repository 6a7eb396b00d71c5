"""
Parameterized SQL for accounts, catalog products, sales reps and tenant configuration.
"""

from typing import Tuple

# Roles whose users pull samples and carry a monthly allowance
SAMPLE_ROLES: Tuple[str, ...] = ("sales_rep", "sales_manager")


def get_active_accounts_query() -> str:
    """
    Parameters:
        $1: tenant id

    Ordered by id so batch results are reproducible.
    """
    return """
    SELECT c."id", c."tenantId" AS tenant_id, c."companyName" AS name,
           (c."status" = 'ACTIVE') AS is_active
    FROM "customers" c
    WHERE c."tenantId" = $1
      AND c."status" = 'ACTIVE'
    ORDER BY c."id" ASC
    """


def get_account_query() -> str:
    """
    Parameters:
        $1: account id
        $2: tenant id
    """
    return """
    SELECT c."id", c."tenantId" AS tenant_id, c."companyName" AS name,
           (c."status" = 'ACTIVE') AS is_active
    FROM "customers" c
    WHERE c."id" = $1
      AND c."tenantId" = $2
    """


def get_catalog_products_query() -> str:
    """
    Parameters:
        $1: tenant id
        $2: exclude discontinued (boolean); when true only ACTIVE products return

    Sample-only SKUs are never recommended.
    """
    return """
    SELECT p."id", p."name", p."category", s."name" AS supplier_name,
           (p."status" = 'ACTIVE') AS is_active
    FROM "products" p
    LEFT JOIN "suppliers" s ON s."id" = p."supplierId"
    WHERE p."tenantId" = $1
      AND p."isSample" = false
      AND ($2::boolean IS FALSE OR p."status" = 'ACTIVE')
    ORDER BY p."id" ASC
    """


def get_sales_reps_query(filter_by_rep: bool = False) -> str:
    """
    Generate SQL listing users holding a sample-pulling role.

    Parameters:
        $1: tenant id
        $2: role names (text[])
        $3: sales rep id (only when filter_by_rep is True)
    """
    rep_filter = 'AND u."id" = $3' if filter_by_rep else ""
    return f"""
    SELECT DISTINCT u."id", u."tenantId" AS tenant_id,
           COALESCE(u."fullName", u."email") AS name
    FROM "users" u
    JOIN "user_roles" ur ON ur."userId" = u."id"
    JOIN "roles" r ON r."id" = ur."roleId"
    WHERE u."tenantId" = $1
      AND r."name" = ANY($2::text[])
      {rep_filter}
    ORDER BY u."id" ASC
    """


def get_sales_rep_query() -> str:
    """
    Parameters:
        $1: user id
        $2: tenant id
    """
    return """
    SELECT u."id", u."tenantId" AS tenant_id,
           COALESCE(u."fullName", u."email") AS name
    FROM "users" u
    WHERE u."id" = $1
      AND u."tenantId" = $2
    """


def get_tenant_config_query() -> str:
    """
    Parameters:
        $1: tenant id

    Returns the JSONB overrides document, or no row when the tenant never
    customized its thresholds.
    """
    return """
    SELECT "overrides"
    FROM "tenant_intelligence_config"
    WHERE "tenantId" = $1
    """


def get_tenant_config_upsert_query() -> str:
    """
    Parameters:
        $1: tenant id
        $2: overrides (jsonb text)
    """
    return """
    INSERT INTO "tenant_intelligence_config" ("tenantId", "overrides", "updatedAt")
    VALUES ($1, $2::jsonb, NOW())
    ON CONFLICT ("tenantId") DO UPDATE
        SET "overrides" = EXCLUDED."overrides",
            "updatedAt" = NOW()
    """
