"""
Scheduled account health snapshot job.

Computes health and pace for every active account of a tenant and appends
one row per account to account_health_snapshots. Snapshots are never
updated, so running the job twice on the same day records two points in
the history.

Usage:
    from account_intelligence.core import PostgresIntelligenceRepository
    from account_intelligence.jobs import schedule_health_snapshots

    written = await schedule_health_snapshots(PostgresIntelligenceRepository(), "tenant-1")
"""

import logging
from datetime import datetime
from typing import Optional

from account_intelligence.core.concurrency import gather_bounded
from account_intelligence.core.config import get_settings
from account_intelligence.core.repository import IntelligenceRepository
from account_intelligence.core.timeutils import resolve_as_of
from account_intelligence.services.health_scorer import save_health_snapshot
from account_intelligence.services.metrics_service import (
    calculate_tenant_health,
    calculate_tenant_pace,
)
from account_intelligence.services.tenant_config import get_tenant_intelligence_config

logger = logging.getLogger(__name__)


async def schedule_health_snapshots(
    repo: IntelligenceRepository,
    tenant_id: str,
    as_of: Optional[datetime] = None,
) -> int:
    """
    Append a health snapshot for every active account in the tenant.

    Returns:
        int: Number of snapshots written.

    Raises:
        RepositoryError: If a read or insert fails. Snapshots already
            inserted before the failure are kept.
    """
    settings = get_settings()
    fanout = {
        "limit": settings.max_concurrent_account_tasks,
        "chunk_size": settings.fanout_chunk_size,
    }
    as_of = resolve_as_of(as_of)
    config = await get_tenant_intelligence_config(repo, tenant_id)
    accounts = await repo.list_active_accounts(tenant_id)

    logger.info(f"Starting health snapshots for tenant {tenant_id} ({len(accounts)} accounts)")

    health_scores = await calculate_tenant_health(
        repo, tenant_id, config.health, accounts, as_of=as_of, **fanout
    )
    pace_by_account = {
        metric.accountId: metric
        for metric in await calculate_tenant_pace(
            repo, tenant_id, config.pace, accounts, as_of=as_of, **fanout
        )
    }

    snapshots = await gather_bounded(
        health_scores,
        lambda health: save_health_snapshot(
            repo, tenant_id, health, pace_by_account.get(health.accountId)
        ),
        **fanout,
    )

    logger.info(f"Wrote {len(snapshots)} health snapshots for tenant {tenant_id}")
    return len(snapshots)
