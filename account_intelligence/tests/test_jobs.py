"""
Tests for the scheduled health snapshot job.

Test Classes:
- TestHealthSnapshotJob: one appended snapshot per active account, linked
  to that account's pace metric
"""

import pytest

from account_intelligence.core.exceptions import RepositoryError
from account_intelligence.jobs import schedule_health_snapshots
from account_intelligence.models import PaceStatus, RevenueHealthStatus
from account_intelligence.tests.conftest import (
    AS_OF,
    TENANT_ID,
    InMemoryRepository,
    days_before,
    make_account,
    make_order,
)

pytestmark = pytest.mark.asyncio


@pytest.fixture
def job_repo(repo):
    repo.add_account(
        make_account("a-late", "Late Larder"),
        [make_order("a-late", days_before(d)) for d in (150, 120, 90, 60)],
    )
    repo.add_account(make_account("a-quiet", "Quiet Cafe"))
    repo.add_account(make_account("a-other", tenant_id="tenant-2"))
    return repo


class TestHealthSnapshotJob:

    async def test_writes_one_snapshot_per_active_account(self, job_repo):
        written = await schedule_health_snapshots(job_repo, TENANT_ID, as_of=AS_OF)

        assert written == 2
        assert sorted(s.accountId for s in job_repo.snapshots) == ["a-late", "a-quiet"]
        assert all(s.tenantId == TENANT_ID for s in job_repo.snapshots)
        assert all(s.snapshotDate == AS_OF for s in job_repo.snapshots)

    async def test_snapshot_carries_pace_of_same_account(self, job_repo):
        await schedule_health_snapshots(job_repo, TENANT_ID, as_of=AS_OF)

        by_account = {s.accountId: s for s in job_repo.snapshots}
        late = by_account["a-late"]
        assert late.paceStatus == PaceStatus.OVERDUE
        assert late.establishedPaceDays == 30.0
        assert late.daysSinceLastOrder == 60
        assert late.revenueHealthStatus == RevenueHealthStatus.CRITICAL
        assert late.revenueDropPercent == pytest.approx(100.0)

        quiet = by_account["a-quiet"]
        assert quiet.paceStatus == PaceStatus.INSUFFICIENT_DATA
        assert quiet.revenueHealthStatus == RevenueHealthStatus.INSUFFICIENT_DATA

    async def test_rerun_appends_instead_of_replacing(self, job_repo):
        await schedule_health_snapshots(job_repo, TENANT_ID, as_of=AS_OF)
        await schedule_health_snapshots(job_repo, TENANT_ID, as_of=AS_OF)

        assert len(job_repo.snapshots) == 4
        assert len({s.id for s in job_repo.snapshots}) == 4

    async def test_tenant_without_accounts_writes_nothing(self, repo):
        assert await schedule_health_snapshots(repo, TENANT_ID, as_of=AS_OF) == 0
        assert repo.snapshots == []

    async def test_insert_failure_propagates(self, job_repo):
        class ReadOnlyRepository(InMemoryRepository):
            async def insert_health_snapshot(self, snapshot):
                raise RepositoryError("insert_health_snapshot", OSError("disk full"))

        failing = ReadOnlyRepository()
        failing.accounts = job_repo.accounts
        failing.orders = job_repo.orders

        with pytest.raises(RepositoryError):
            await schedule_health_snapshots(failing, TENANT_ID, as_of=AS_OF)
