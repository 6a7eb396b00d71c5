"""
FastAPI dependency injection for the account intelligence API.

Key Dependencies Provided:
- get_repository: Returns the IntelligenceRepository used by endpoint handlers
- RepositoryDep: Annotated alias for endpoint signatures

Tests swap the data store with:

    app.dependency_overrides[get_repository] = lambda: InMemoryRepository(...)
"""

from typing import Annotated

from fastapi import Depends

from account_intelligence.core.repository import (
    IntelligenceRepository,
    PostgresIntelligenceRepository,
)


def get_repository() -> IntelligenceRepository:
    """
    Return the repository for the current request.

    PostgresIntelligenceRepository holds no state of its own; it borrows
    connections from the shared pool per call.
    """
    return PostgresIntelligenceRepository()


# Usage: async def endpoint(repo: RepositoryDep)
RepositoryDep = Annotated[IntelligenceRepository, Depends(get_repository)]
