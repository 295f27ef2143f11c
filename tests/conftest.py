"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- In-memory adapters and the domain services wired over them
- A seeded set of owners, walkers and pets
- A factory that drives walk requests to a given status
- A PostgreSQL pool that skips the requesting test when the database
  is unreachable
"""

from collections.abc import Generator

import pytest
from psycopg_pool import ConnectionPool, PoolTimeout

from tests.factories import TEST_BCRYPT_COST, WalkFactory, World, make_walk_factory, seed_world
from walkbook.adapters.directory import InMemoryUserDirectory
from walkbook.adapters.repository import (
    InMemoryReviewRepository,
    InMemoryWalkRequestRepository,
    MemoryDatabase,
    reset_tables,
    run_migrations,
)
from walkbook.cache import query_cache
from walkbook.config.settings import get_settings
from walkbook.domain.lifecycle import LifecycleController
from walkbook.domain.reviews import ReviewService


@pytest.fixture(autouse=True)
def clear_query_cache() -> Generator[None, None, None]:
    """Start every test with an empty process-wide cache."""
    query_cache.clear()
    yield
    query_cache.clear()


@pytest.fixture
def db() -> MemoryDatabase:
    return MemoryDatabase()


@pytest.fixture
def directory(db: MemoryDatabase) -> InMemoryUserDirectory:
    return InMemoryUserDirectory(db, bcrypt_cost=TEST_BCRYPT_COST)


@pytest.fixture
def request_repository(db: MemoryDatabase) -> InMemoryWalkRequestRepository:
    return InMemoryWalkRequestRepository(db)


@pytest.fixture
def review_repository(db: MemoryDatabase) -> InMemoryReviewRepository:
    return InMemoryReviewRepository(db)


@pytest.fixture
def controller(
    request_repository: InMemoryWalkRequestRepository, directory: InMemoryUserDirectory
) -> LifecycleController:
    return LifecycleController(requests=request_repository, directory=directory)


@pytest.fixture
def review_service(
    review_repository: InMemoryReviewRepository,
    request_repository: InMemoryWalkRequestRepository,
    directory: InMemoryUserDirectory,
) -> ReviewService:
    return ReviewService(
        reviews=review_repository, requests=request_repository, directory=directory
    )


@pytest.fixture
def world(directory: InMemoryUserDirectory) -> World:
    return seed_world(directory)


@pytest.fixture
def make_walk(controller: LifecycleController, world: World) -> WalkFactory:
    return make_walk_factory(controller, world)


@pytest.fixture(scope="session")
def pg_pool() -> Generator[ConnectionPool, None, None]:
    """
    Connection pool against the configured PostgreSQL database.

    Skips the requesting test if the database cannot be reached.
    """
    settings = get_settings()
    pool = ConnectionPool(conninfo=settings.database_url, min_size=1, max_size=10, open=False)
    try:
        pool.open(wait=True, timeout=3.0)
    except PoolTimeout:
        pool.close()
        pytest.skip("PostgreSQL is not reachable")
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def clean_pg(pg_pool: ConnectionPool) -> ConnectionPool:
    """PostgreSQL pool with every table emptied before the test."""
    reset_tables(pg_pool)
    return pg_pool
