"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.

Storage is chosen by what the lifespan put on app.state: a psycopg
ConnectionPool (postgres backend) or a MemoryDatabase (memory backend).
"""

from datetime import timedelta

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from psycopg_pool import ConnectionPool

from walkbook.adapters.directory import InMemoryUserDirectory, PostgresUserDirectory
from walkbook.adapters.repository import (
    InMemoryReviewRepository,
    InMemoryWalkRequestRepository,
    MemoryDatabase,
    PostgresReviewRepository,
    PostgresWalkRequestRepository,
)
from walkbook.cache import QueryCache, query_cache
from walkbook.config.settings import get_settings
from walkbook.domain.lifecycle import LifecycleController
from walkbook.domain.ports import ReviewRepository, UserDirectory, WalkRequestRepository
from walkbook.domain.records import Actor
from walkbook.domain.reviews import ReviewService


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_memory_db(request: Request) -> MemoryDatabase | None:
    """Get the in-memory database from app state, if the memory backend is active."""
    return getattr(request.app.state, "memory_db", None)


def get_walk_request_repository(request: Request) -> WalkRequestRepository:
    db = get_memory_db(request)
    if db is not None:
        return InMemoryWalkRequestRepository(db)
    return PostgresWalkRequestRepository(get_pool(request))


def get_review_repository(request: Request) -> ReviewRepository:
    db = get_memory_db(request)
    if db is not None:
        return InMemoryReviewRepository(db)
    return PostgresReviewRepository(get_pool(request))


def get_user_directory(request: Request) -> UserDirectory:
    bcrypt_cost = get_settings().bcrypt_cost
    db = get_memory_db(request)
    if db is not None:
        return InMemoryUserDirectory(db, bcrypt_cost=bcrypt_cost)
    return PostgresUserDirectory(get_pool(request), bcrypt_cost=bcrypt_cost)


def get_lifecycle_controller(request: Request) -> LifecycleController:
    """
    Create lifecycle controller with injected dependencies.

    Wires together the walk request repository and user directory.
    """
    settings = get_settings()
    return LifecycleController(
        requests=get_walk_request_repository(request),
        directory=get_user_directory(request),
        schedule_grace=timedelta(seconds=settings.schedule_grace_seconds),
        max_notes_length=settings.max_notes_length,
        max_page_size=settings.max_page_size,
    )


def get_review_service(request: Request) -> ReviewService:
    """
    Create review service with injected dependencies.

    Wires together the review and walk request repositories and the
    user directory.
    """
    settings = get_settings()
    return ReviewService(
        reviews=get_review_repository(request),
        requests=get_walk_request_repository(request),
        directory=get_user_directory(request),
        max_comment_length=settings.max_comment_length,
        max_page_size=settings.max_page_size,
    )


def get_query_cache() -> QueryCache:
    """Get the process-wide query cache (singleton)."""
    return query_cache


# HTTP BASIC AUTH security scheme for OpenAPI documentation
http_basic = HTTPBasic()


def get_current_actor(
    credentials: HTTPBasicCredentials = Depends(http_basic),
    directory: UserDirectory = Depends(get_user_directory),
) -> Actor:
    """
    Authenticate the caller from the HTTP BASIC AUTH header.

    FastAPI's HTTPBasic automatically returns 401 for a missing or
    malformed Authorization header. Unknown users, wrong passwords and
    inactive users all get the same generic 401.

    Returns:
        Actor carrying the caller's user id and role
    """
    actor = directory.authenticate(credentials.username, credentials.password)
    if actor is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return actor
