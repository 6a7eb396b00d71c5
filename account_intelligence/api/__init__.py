"""
API package initialization.

- insights: tenant dashboards, account insights, alerts, sample ledger and
  tenant threshold configuration
"""

from account_intelligence.api.insights import router as insights_router

__all__ = [
    "insights_router",
]
