"""
Tests for the sample ledger, monthly allowance and tasting feedback.

Test Classes:
- TestComputeSampleAllowance: allowance derived from ledger rows
- TestRecordSampleTransfer: appends and the manager-approval gate
- TestTastingFeedback: feedback keyed to transfers and pending feedback
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from account_intelligence.core.exceptions import (
    AccountNotFoundError,
    ManagerApprovalRequiredError,
    SalesRepNotFoundError,
    SampleLedgerError,
    SampleTransferNotFoundError,
)
from account_intelligence.models import (
    CustomerInterest,
    SampleConfig,
    SampleTransferCreate,
    TastingFeedbackCreate,
)
from account_intelligence.services.sample_manager import (
    compute_sample_allowance,
    get_pending_feedback,
    get_rep_sample_allowance,
    record_sample_transfer,
    record_tasting_feedback,
)
from account_intelligence.tests.conftest import (
    AS_OF,
    TENANT_ID,
    make_account,
    make_rep,
    make_transfer,
)

JUNE = datetime(2026, 6, 1, tzinfo=timezone.utc)


def june_transfers(rep_id, count, start=0):
    return [
        make_transfer(f"t-{rep_id}-{i}", rep_id, JUNE + timedelta(hours=i))
        for i in range(start, start + count)
    ]


@pytest.fixture
def ledger_repo(repo):
    repo.add_rep(make_rep("rep-1", "Dana Cole"))
    repo.add_account(make_account("acct-1"))
    return repo


def transfer_request(**overrides):
    data = dict(
        tenantId=TENANT_ID, salesRepId="rep-1", accountId="acct-1",
        productId="prod-1", transferDate=AS_OF,
    )
    data.update(overrides)
    return SampleTransferCreate(**data)


class TestComputeSampleAllowance:
    """Allowance math never goes negative and counts only the rep's month."""

    rep = make_rep("rep-1", "Dana Cole")

    def test_under_allowance(self):
        allowance = compute_sample_allowance(
            TENANT_ID, self.rep, 2026, 6, june_transfers("rep-1", 12), SampleConfig()
        )

        assert allowance.allowance == 60
        assert allowance.pullsThisMonth == 12
        assert allowance.remainingAllowance == 48
        assert allowance.isOverAllowance is False
        assert allowance.salesRepName == "Dana Cole"

    def test_exactly_at_allowance_is_not_over(self):
        config = SampleConfig(defaultMonthlyAllowance=5)

        allowance = compute_sample_allowance(
            TENANT_ID, self.rep, 2026, 6, june_transfers("rep-1", 5), config
        )

        assert allowance.remainingAllowance == 0
        assert allowance.isOverAllowance is False

    def test_over_allowance_clamps_remaining(self):
        config = SampleConfig(defaultMonthlyAllowance=5)

        allowance = compute_sample_allowance(
            TENANT_ID, self.rep, 2026, 6, june_transfers("rep-1", 8), config
        )

        assert allowance.remainingAllowance == 0
        assert allowance.isOverAllowance is True

    async def test_concurrent_pulls_cannot_both_pass_the_gate(self, ledger_repo):
        config = SampleConfig(defaultMonthlyAllowance=10, requireManagerApprovalOver=3)
        ledger_repo.transfers.extend(june_transfers("rep-1", 2))

        results = await asyncio.gather(
            record_sample_transfer(ledger_repo, transfer_request(), config),
            record_sample_transfer(ledger_repo, transfer_request(), config),
            return_exceptions=True,
        )

        refused = [r for r in results if isinstance(r, ManagerApprovalRequiredError)]
        assert len(refused) == 1
        assert refused[0].pulls_this_month == 3
        assert len(ledger_repo.transfers) == 3

    def test_other_reps_and_months_are_ignored(self):
        transfers = june_transfers("rep-1", 3) + june_transfers("rep-2", 4)
        transfers.append(make_transfer("t-may", "rep-1", JUNE - timedelta(seconds=1)))
        transfers.append(make_transfer("t-jul", "rep-1", datetime(2026, 7, 1, tzinfo=timezone.utc)))

        allowance = compute_sample_allowance(TENANT_ID, self.rep, 2026, 6, transfers, SampleConfig())

        assert allowance.pullsThisMonth == 3
        assert [t.id for t in allowance.transfersThisMonth] == ["t-rep-1-0", "t-rep-1-1", "t-rep-1-2"]

    async def test_repository_backed_allowance(self, ledger_repo):
        ledger_repo.transfers.extend(june_transfers("rep-1", 2))

        allowance = await get_rep_sample_allowance(ledger_repo, TENANT_ID, "rep-1", 2026, 6)

        assert allowance.pullsThisMonth == 2

    async def test_unknown_rep_raises(self, ledger_repo):
        with pytest.raises(SalesRepNotFoundError):
            await get_rep_sample_allowance(ledger_repo, TENANT_ID, "ghost", 2026, 6)


class TestRecordSampleTransfer:

    async def test_appends_one_row_per_pull(self, ledger_repo):
        first = await record_sample_transfer(ledger_repo, transfer_request())
        second = await record_sample_transfer(ledger_repo, transfer_request())

        assert len(ledger_repo.transfers) == 2
        assert first.id != second.id
        assert first.transferDate == AS_OF

        allowance = await get_rep_sample_allowance(ledger_repo, TENANT_ID, "rep-1", 2026, 6)
        assert allowance.pullsThisMonth == 2

    async def test_transfer_date_defaults_to_as_of(self, ledger_repo):
        record = await record_sample_transfer(
            ledger_repo, transfer_request(transferDate=None), as_of=AS_OF
        )

        assert record.transferDate == AS_OF

    async def test_requires_approval_at_threshold(self, ledger_repo):
        config = SampleConfig(defaultMonthlyAllowance=3, requireManagerApprovalOver=3)
        ledger_repo.transfers.extend(june_transfers("rep-1", 3))

        with pytest.raises(ManagerApprovalRequiredError) as exc_info:
            await record_sample_transfer(ledger_repo, transfer_request(), config)

        assert exc_info.value.pulls_this_month == 3
        assert len(ledger_repo.transfers) == 3

    async def test_approved_pull_past_threshold_is_recorded(self, ledger_repo):
        config = SampleConfig(defaultMonthlyAllowance=3, requireManagerApprovalOver=3)
        ledger_repo.transfers.extend(june_transfers("rep-1", 3))

        record = await record_sample_transfer(
            ledger_repo, transfer_request(approvedByManagerId="mgr-1"), config
        )

        assert record.approvedByManagerId == "mgr-1"
        allowance = await get_rep_sample_allowance(ledger_repo, TENANT_ID, "rep-1", 2026, 6, config)
        assert allowance.isOverAllowance is True

    async def test_unknown_rep_or_account_raises(self, ledger_repo):
        with pytest.raises(SalesRepNotFoundError):
            await record_sample_transfer(ledger_repo, transfer_request(salesRepId="ghost"))

        with pytest.raises(AccountNotFoundError):
            await record_sample_transfer(ledger_repo, transfer_request(accountId="ghost"))

        assert ledger_repo.transfers == []


class TestTastingFeedback:

    def feedback_request(self, transfer_id, **overrides):
        data = dict(
            sampleTransferId=transfer_id, accountId="acct-1", productId="prod-1",
            customerInterest=CustomerInterest.HIGH, rating=4,
        )
        data.update(overrides)
        return TastingFeedbackCreate(**data)

    async def test_feedback_is_keyed_to_transfer(self, ledger_repo):
        ledger_repo.transfers.append(make_transfer("t-1", "rep-1", AS_OF))

        feedback = await record_tasting_feedback(
            ledger_repo, TENANT_ID, self.feedback_request("t-1"), as_of=AS_OF
        )

        assert feedback.sampleTransferId == "t-1"
        assert feedback.feedbackDate == AS_OF
        assert ledger_repo.feedback == [feedback]

    async def test_unknown_transfer_raises(self, ledger_repo):
        with pytest.raises(SampleTransferNotFoundError):
            await record_tasting_feedback(ledger_repo, TENANT_ID, self.feedback_request("nope"))

    async def test_mismatched_product_raises(self, ledger_repo):
        ledger_repo.transfers.append(make_transfer("t-1", "rep-1", AS_OF))

        with pytest.raises(SampleLedgerError):
            await record_tasting_feedback(
                ledger_repo, TENANT_ID, self.feedback_request("t-1", productId="prod-2")
            )

    async def test_disabled_tracking_raises(self, ledger_repo):
        ledger_repo.transfers.append(make_transfer("t-1", "rep-1", AS_OF))

        with pytest.raises(SampleLedgerError):
            await record_tasting_feedback(
                ledger_repo, TENANT_ID, self.feedback_request("t-1"),
                SampleConfig(trackTastingFeedback=False),
            )

    async def test_pending_feedback_respects_minimum_age(self, ledger_repo):
        ledger_repo.transfers.extend([
            make_transfer("old-no-feedback", "rep-1", AS_OF - timedelta(days=20)),
            make_transfer("old-with-feedback", "rep-1", AS_OF - timedelta(days=30)),
            make_transfer("too-recent", "rep-1", AS_OF - timedelta(days=3)),
            make_transfer("other-rep", "rep-2", AS_OF - timedelta(days=20)),
        ])
        await record_tasting_feedback(
            ledger_repo, TENANT_ID, self.feedback_request("old-with-feedback"), as_of=AS_OF
        )

        pending_all = await get_pending_feedback(ledger_repo, TENANT_ID, as_of=AS_OF)
        pending_rep = await get_pending_feedback(ledger_repo, TENANT_ID, "rep-1", as_of=AS_OF)

        assert [t.id for t in pending_all] == ["old-no-feedback", "other-rep"]
        assert [t.id for t in pending_rep] == ["old-no-feedback"]

    async def test_pending_feedback_ignores_transfers_outside_window(self, ledger_repo):
        ledger_repo.transfers.extend([
            make_transfer("in-window", "rep-1", AS_OF - timedelta(days=89)),
            make_transfer("too-old", "rep-1", AS_OF - timedelta(days=91)),
        ])

        pending = await get_pending_feedback(ledger_repo, TENANT_ID, as_of=AS_OF)

        assert [t.id for t in pending] == ["in-window"]
