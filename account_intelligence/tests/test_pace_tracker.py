"""
Tests for ARPDD ordering-cadence tracking.

Test Classes:
- TestIntervalsAndArpdd: day gaps and their mean
- TestClassifyPace: threshold boundaries
- TestComputePaceMetric: full metric from an order history
- TestCalculateAccountPace: repository-backed entry point
"""

from datetime import datetime, timedelta, timezone

import pytest

from account_intelligence.core.exceptions import AccountNotFoundError
from account_intelligence.models import PaceConfig, PaceRiskLevel
from account_intelligence.services.pace_tracker import (
    NO_ORDERS_SENTINEL,
    calculate_account_pace,
    calculate_arpdd,
    calculate_interval_days,
    classify_pace,
    compute_pace_metric,
)
from account_intelligence.tests.conftest import TENANT_ID, make_account, make_order

BASE = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)


def at_day(day: float) -> datetime:
    return BASE + timedelta(days=day)


class TestIntervalsAndArpdd:
    """Day gaps are floored and computed over sorted dates."""

    def test_intervals_sorted_before_diffing(self):
        dates = [at_day(60), at_day(0), at_day(30)]

        assert calculate_interval_days(dates) == [30, 30]

    def test_partial_days_are_floored(self):
        assert calculate_interval_days([at_day(0), at_day(10.9)]) == [10]

    def test_single_date_has_no_intervals(self):
        assert calculate_interval_days([at_day(0)]) == []
        assert calculate_arpdd([]) is None

    @pytest.mark.parametrize("spacing,count", [(7, 2), (14, 5), (30, 10)])
    def test_exact_spacing_gives_exact_arpdd(self, spacing, count):
        """k orders exactly N days apart yield ARPDD == N."""
        dates = [at_day(i * spacing) for i in range(count)]

        assert calculate_arpdd(calculate_interval_days(dates)) == float(spacing)

    def test_arpdd_is_unrounded_mean(self):
        assert calculate_arpdd([10, 11]) == 10.5


class TestClassifyPace:
    """Thresholds are inclusive multiples of ARPDD."""

    config = PaceConfig()

    def test_below_minimum_orders_is_insufficient(self):
        assert classify_pace(2, 30.0, 500, self.config) == PaceRiskLevel.INSUFFICIENT_DATA

    def test_warning_boundary_is_inclusive(self):
        # 30 x 1.2 = 36
        assert classify_pace(4, 30.0, 35, self.config) == PaceRiskLevel.ON_TRACK
        assert classify_pace(4, 30.0, 36, self.config) == PaceRiskLevel.WARNING

    def test_critical_boundary_is_inclusive(self):
        # 30 x 1.5 = 45
        assert classify_pace(4, 30.0, 44, self.config) == PaceRiskLevel.WARNING
        assert classify_pace(4, 30.0, 45, self.config) == PaceRiskLevel.CRITICAL

    def test_custom_multipliers(self):
        config = PaceConfig(warningThresholdMultiplier=2.0, criticalThresholdMultiplier=3.0)

        assert classify_pace(3, 10.0, 19, config) == PaceRiskLevel.ON_TRACK
        assert classify_pace(3, 10.0, 20, config) == PaceRiskLevel.WARNING
        assert classify_pace(3, 10.0, 30, config) == PaceRiskLevel.CRITICAL


class TestComputePaceMetric:
    """compute_pace_metric over in-memory order histories."""

    account = make_account("acct-1", "Harbor Bistro")

    def test_thirty_day_cadence_forty_days_out_is_warning(self):
        """
        Deliveries on days 0, 30, 60, 90 and now = day 130.

        ARPDD 30, 40 days since last order: 40 >= 36 and 40 < 45.
        """
        orders = [make_order("acct-1", at_day(d)) for d in (0, 30, 60, 90)]

        metric = compute_pace_metric(self.account, orders, PaceConfig(), at_day(130))

        assert metric.arpdd == 30.0
        assert metric.daysSinceLastOrder == 40
        assert metric.orderCount == 4
        assert metric.riskLevel == PaceRiskLevel.WARNING
        assert metric.isPastDue is True
        assert metric.lastOrderDate == at_day(90)
        assert metric.nextExpectedOrderDate == at_day(120)
        assert metric.accountName == "Harbor Bistro"

    def test_unsorted_input_gives_same_result(self):
        orders = [make_order("acct-1", at_day(d)) for d in (90, 0, 60, 30)]

        metric = compute_pace_metric(self.account, orders, PaceConfig(), at_day(130))

        assert metric.arpdd == 30.0
        assert metric.lastOrderDate == at_day(90)

    def test_on_track_is_not_past_due(self):
        orders = [make_order("acct-1", at_day(d)) for d in (0, 30, 60, 90)]

        metric = compute_pace_metric(self.account, orders, PaceConfig(), at_day(100))

        assert metric.riskLevel == PaceRiskLevel.ON_TRACK
        assert metric.isPastDue is False

    def test_too_few_orders_is_insufficient_with_arpdd_still_reported(self):
        orders = [make_order("acct-1", at_day(d)) for d in (0, 30)]

        metric = compute_pace_metric(self.account, orders, PaceConfig(), at_day(400))

        assert metric.riskLevel == PaceRiskLevel.INSUFFICIENT_DATA
        assert metric.isPastDue is False
        assert metric.arpdd == 30.0
        assert metric.nextExpectedOrderDate is None

    def test_single_order_has_no_arpdd(self):
        metric = compute_pace_metric(
            self.account, [make_order("acct-1", at_day(0))], PaceConfig(), at_day(10)
        )

        assert metric.arpdd is None
        assert metric.daysSinceLastOrder == 10
        assert metric.riskLevel == PaceRiskLevel.INSUFFICIENT_DATA

    def test_no_orders_uses_sentinel(self):
        metric = compute_pace_metric(self.account, [], PaceConfig(), at_day(10))

        assert metric.daysSinceLastOrder == NO_ORDERS_SENTINEL
        assert metric.lastOrderDate is None
        assert metric.orderCount == 0
        assert metric.riskLevel == PaceRiskLevel.INSUFFICIENT_DATA

    def test_minimum_orders_is_configurable(self):
        orders = [make_order("acct-1", at_day(d)) for d in (0, 30)]
        config = PaceConfig(minimumOrdersRequired=2)

        metric = compute_pace_metric(self.account, orders, config, at_day(80))

        assert metric.riskLevel == PaceRiskLevel.CRITICAL


class TestCalculateAccountPace:
    """Repository-backed single-account pace."""

    async def test_only_orders_inside_lookback_are_used(self, repo):
        as_of = at_day(400)
        old = [make_order("acct-1", at_day(d)) for d in (0, 5, 10)]
        recent = [make_order("acct-1", as_of - timedelta(days=d)) for d in (100, 80, 60, 40)]
        repo.add_account(make_account("acct-1"), old + recent)

        metric = await calculate_account_pace(repo, "acct-1", TENANT_ID, as_of=as_of)

        assert metric.orderCount == 4
        assert metric.arpdd == 20.0
        assert metric.daysSinceLastOrder == 40
        assert metric.riskLevel == PaceRiskLevel.CRITICAL

    async def test_unknown_account_raises(self, repo):
        with pytest.raises(AccountNotFoundError):
            await calculate_account_pace(repo, "missing", TENANT_ID, as_of=at_day(0))

    async def test_account_from_other_tenant_is_not_found(self, repo):
        repo.add_account(make_account("acct-9", tenant_id="tenant-2"))

        with pytest.raises(AccountNotFoundError):
            await calculate_account_pace(repo, "acct-9", TENANT_ID, as_of=at_day(0))
