"""
FastAPI application entry point for the Account Intelligence API.

Configures logging, manages the asyncpg pool lifecycle and registers the
intelligence router.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from account_intelligence import __version__
from account_intelligence.api.insights import router as insights_router
from account_intelligence.core.database import close_db, init_db

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    On startup, initialize the database connection pool.
    On shutdown, close it.
    """
    logger.info("Account Intelligence API starting")
    try:
        await init_db()
        logger.info("Database connection pool initialized")
    except Exception as e:
        # Requests that need the store will answer 503 until it is reachable
        logger.error(f"Failed to initialize database: {e}")

    yield

    logger.info("Account Intelligence API shutting down")
    await close_db()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="Account Intelligence API",
    version=__version__,
    description=(
        "Ordering-cadence tracking, revenue health scoring, product opportunity "
        "ranking and sample allowance tracking for B2B accounts."
    ),
    lifespan=lifespan,
)

app.include_router(insights_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring and load balancer probes."""
    return {"status": "healthy"}


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "account_intelligence.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
