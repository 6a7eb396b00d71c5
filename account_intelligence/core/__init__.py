"""
Core infrastructure package for the account intelligence core.

Provides:
- Configuration management via pydantic-settings
- Async PostgreSQL connectivity via asyncpg
- The IntelligenceRepository data access seam
- Exception hierarchy, date helpers and bounded fan-out
- FastAPI dependency injection utilities

Re-exports key components so other modules can write:

    from account_intelligence.core import get_settings, IntelligenceRepository
"""

# =============================================================================
# Re-exports from account_intelligence.core.config
# =============================================================================
from account_intelligence.core.config import Settings, get_settings

# =============================================================================
# Re-exports from account_intelligence.core.database
# =============================================================================
from account_intelligence.core.database import init_db, close_db, get_db_pool

# =============================================================================
# Re-exports from account_intelligence.core.exceptions
# =============================================================================
from account_intelligence.core.exceptions import (
    IntelligenceError,
    RepositoryError,
    NotFoundError,
    AccountNotFoundError,
    SalesRepNotFoundError,
    SampleTransferNotFoundError,
    SampleLedgerError,
    ManagerApprovalRequiredError,
)

# =============================================================================
# Re-exports from account_intelligence.core.repository
# =============================================================================
from account_intelligence.core.repository import (
    IntelligenceRepository,
    PostgresIntelligenceRepository,
)

# =============================================================================
# Re-exports from account_intelligence.core.concurrency
# =============================================================================
from account_intelligence.core.concurrency import gather_bounded

# =============================================================================
# Re-exports from account_intelligence.core.dependencies
# =============================================================================
from account_intelligence.core.dependencies import get_repository, RepositoryDep

__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Database pool lifecycle (from database.py)
    'init_db',
    'close_db',
    'get_db_pool',
    # Exceptions (from exceptions.py)
    'IntelligenceError',
    'RepositoryError',
    'NotFoundError',
    'AccountNotFoundError',
    'SalesRepNotFoundError',
    'SampleTransferNotFoundError',
    'SampleLedgerError',
    'ManagerApprovalRequiredError',
    # Data access (from repository.py)
    'IntelligenceRepository',
    'PostgresIntelligenceRepository',
    # Fan-out (from concurrency.py)
    'gather_bounded',
    # FastAPI dependency injection (from dependencies.py)
    'get_repository',
    'RepositoryDep',
]
