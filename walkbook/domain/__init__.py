"""
Domain layer - Pure business logic with zero framework imports.

This package contains the walk request lifecycle and the review integrity
rules. It defines its own port interfaces for infrastructure abstraction,
so adapters (Postgres, in-memory) plug in without the domain knowing.
"""

from .authorization import AuthorizationGate, Operation
from .exceptions import (
    Conflict,
    Forbidden,
    InvalidState,
    NotFound,
    ValidationError,
    WalkbookError,
)
from .lifecycle import LifecycleController
from .ports import ReviewRepository, UserDirectory, WalkRequestRepository
from .records import Actor, Role, WalkStatus
from .reviews import ReviewService

__all__ = [
    "Actor",
    "AuthorizationGate",
    "Conflict",
    "Forbidden",
    "InvalidState",
    "LifecycleController",
    "NotFound",
    "Operation",
    "ReviewRepository",
    "ReviewService",
    "Role",
    "UserDirectory",
    "ValidationError",
    "WalkRequestRepository",
    "WalkStatus",
    "WalkbookError",
]
