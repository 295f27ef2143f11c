"""Repository adapters - Database implementations."""

from .memory import InMemoryReviewRepository, InMemoryWalkRequestRepository, MemoryDatabase
from .postgres import (
    PostgresReviewRepository,
    PostgresWalkRequestRepository,
    reset_tables,
    run_migrations,
)

__all__ = [
    "InMemoryReviewRepository",
    "InMemoryWalkRequestRepository",
    "MemoryDatabase",
    "PostgresReviewRepository",
    "PostgresWalkRequestRepository",
    "reset_tables",
    "run_migrations",
]
