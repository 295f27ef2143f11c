"""
Shared fixtures for adversarial tests.

Every race test runs twice: once over the in-memory adapters and once over
PostgreSQL (skipped when the database is unreachable).
"""

import pytest

from tests.factories import TEST_BCRYPT_COST, Backend, seed_world
from walkbook.adapters.directory import InMemoryUserDirectory, PostgresUserDirectory
from walkbook.adapters.repository import (
    InMemoryReviewRepository,
    InMemoryWalkRequestRepository,
    MemoryDatabase,
    PostgresReviewRepository,
    PostgresWalkRequestRepository,
    reset_tables,
)
from walkbook.domain.lifecycle import LifecycleController
from walkbook.domain.reviews import ReviewService

# Module-level marker for all adversarial tests
pytestmark = pytest.mark.adversarial


@pytest.fixture(params=["memory", "postgres"])
def backend(request: pytest.FixtureRequest) -> Backend:
    if request.param == "memory":
        db = MemoryDatabase()
        directory = InMemoryUserDirectory(db, bcrypt_cost=TEST_BCRYPT_COST)
        requests = InMemoryWalkRequestRepository(db)
        reviews = InMemoryReviewRepository(db)
    else:
        pool = request.getfixturevalue("pg_pool")
        reset_tables(pool)
        directory = PostgresUserDirectory(pool, bcrypt_cost=TEST_BCRYPT_COST)
        requests = PostgresWalkRequestRepository(pool)
        reviews = PostgresReviewRepository(pool)

    return Backend(
        name=request.param,
        controller=LifecycleController(requests=requests, directory=directory),
        service=ReviewService(reviews=reviews, requests=requests, directory=directory),
        world=seed_world(directory),
    )
