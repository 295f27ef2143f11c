"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures exception handlers, logging, and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool

from walkbook.adapters.repository import MemoryDatabase, run_migrations
from walkbook.api.errors import register_error_handlers
from walkbook.api.v1 import router as v1_router
from walkbook.cache import query_cache
from walkbook.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "walk-requests",
        "description": "Walk request lifecycle - create, accept, reject, complete, cancel",
    },
    {
        "name": "reviews",
        "description": "One review per completed walk and per-walker rating statistics",
    },
]


def create_pool(settings: Settings) -> ConnectionPool:
    """
    Create connection pool with explicit sizing and timeouts.

    pool_timeout_seconds bounds the wait for a free connection;
    statement_timeout_ms bounds every statement run on a pooled connection.
    """
    return ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        timeout=settings.pool_timeout_seconds,
        kwargs={"options": f"-c statement_timeout={settings.statement_timeout_ms}"},
        open=True,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates database connection pool (or in-memory store) on startup
    - Runs migrations on startup
    - Closes connection pool and clears the query cache on shutdown
    """
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    logger.info("Starting application...")

    if settings.storage_backend == "memory":
        logger.info("Using in-memory storage backend")
        app.state.memory_db = MemoryDatabase()
        yield
        logger.info("Shutting down application...")
        query_cache.clear()
        return

    logger.info("Connecting to database...")
    pool = create_pool(settings)

    # Run migrations
    logger.info("Running database migrations...")
    run_migrations(pool)

    # Store pool in app state for dependency injection
    app.state.pool = pool

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    query_cache.clear()
    pool.close()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="walkbook",
    description="Walk request lifecycle and review integrity API for pet owners and walkers",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

register_error_handlers(app)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    Raises exception if database connection fails.
    """
    pool = getattr(request.app.state, "pool", None)
    if pool is not None:
        with pool.connection() as conn:
            conn.execute("SELECT 1")

    return {"status": "healthy"}
