"""
Account Intelligence Package.

Business intelligence core for a multi-tenant B2B ordering portal: ordering
cadence (ARPDD) tracking, revenue health scoring, unpurchased-product
opportunity ranking and sample allowance tracking.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database, repository and dependencies
    - models: Pydantic schemas and enums
    - services: Business logic services
    - jobs: Scheduled snapshot job
    - sql: Parameterized SQL queries
"""

__version__ = "1.0.0"
