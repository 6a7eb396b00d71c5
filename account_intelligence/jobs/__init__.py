"""
Scheduled jobs for the account intelligence core.

- health_snapshots.py: append-only account health snapshots per tenant

The job is safe to re-run: it only inserts, so each run adds one dated
snapshot per active account.
"""

from account_intelligence.jobs.health_snapshots import schedule_health_snapshots

__all__ = [
    'schedule_health_snapshots',
]
