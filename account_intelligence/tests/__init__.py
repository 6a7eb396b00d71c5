'''
Account Intelligence Test Suite

Test Modules:
-------------
- test_pace_tracker.py: ARPDD and ordering-cadence classification
  - Interval flooring, unrounded mean, inclusive thresholds
  - Insufficient-data and no-order sentinel cases

- test_health_scorer.py: Revenue health scoring
  - Calendar-month grouping, zero-baseline guard
  - Append-only health snapshots

- test_opportunity_detector.py: Unpurchased-product ranking
  - pandas demand index, tie-breaking, discontinued exclusion
  - Tenant batch without per-account order queries

- test_sample_manager.py: Sample ledger and allowance
  - Allowance derived from ledger rows, manager-approval gate
  - Tasting feedback and pending feedback

- test_metrics_service.py: Dashboard, account insights and alerts
- test_tenant_config.py: Tenant threshold overrides
- test_concurrency.py: Bounded fan-out
- test_repository.py: asyncpg repository over a mocked pool
- test_jobs.py: Health snapshot job
- test_api.py: FastAPI routes and error mapping

Running Tests:
--------------
    pip install -e ".[test]"
    pytest account_intelligence/tests/ -v

Configuration:
--------------
See conftest.py for shared fixtures and the in-memory repository.
'''

__all__ = []
