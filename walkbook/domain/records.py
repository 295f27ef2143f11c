"""
Domain records - Immutable data shapes shared by services and adapters.

Core entities (WalkRequest, Review) stay normalized. Read-side joins such
as walker names or pet details are carried by separate projection types
(WalkSummary, ReviewView, PendingReview) that the repositories build at
query time.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")

RATING_VALUES = (1, 2, 3, 4, 5)


class WalkStatus(str, Enum):
    """
    Walk request lifecycle states.

    State Transitions (forward-only):
    - PENDING -> ACCEPTED (walker accepts)
    - PENDING -> REJECTED (walker rejects)
    - ACCEPTED -> COMPLETED (walker completes)
    - ACCEPTED -> CANCELLED (owner or walker cancels)

    Terminal States: REJECTED, COMPLETED, CANCELLED
    """

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Role(str, Enum):
    """Closed set of actor roles."""

    OWNER = "OWNER"
    WALKER = "WALKER"


@dataclass(frozen=True)
class Actor:
    """Authenticated caller as supplied by the authentication layer."""

    id: str
    role: Role


@dataclass(frozen=True)
class NewWalkRequest:
    owner_id: str
    walker_id: str
    pet_id: str
    scheduled_at: datetime
    duration_min: int
    notes: str | None = None


@dataclass(frozen=True)
class WalkRequest:
    """A scheduled walk linking an owner, a walker and a pet."""

    id: str
    owner_id: str
    walker_id: str
    pet_id: str
    status: WalkStatus
    scheduled_at: datetime
    duration_min: int
    notes: str | None
    walker_notes: str | None
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class NewReview:
    walk_request_id: str
    owner_id: str
    walker_id: str
    rating: int
    comment: str | None = None


@dataclass(frozen=True)
class Review:
    """Owner-authored rating tied to exactly one completed walk."""

    id: str
    walk_request_id: str
    owner_id: str
    walker_id: str
    rating: int
    comment: str | None
    created_at: datetime


@dataclass(frozen=True)
class PartySummary:
    id: str
    name: str


@dataclass(frozen=True)
class PetSummary:
    id: str
    name: str
    breed: str | None = None


@dataclass(frozen=True)
class WalkSummary:
    """Walk request joined with owner, walker and pet summaries."""

    request: WalkRequest
    owner: PartySummary
    walker: PartySummary
    pet: PetSummary


@dataclass(frozen=True)
class ReviewView:
    """Review joined with the parties and the reviewed walk."""

    review: Review
    owner: PartySummary
    walker: PartySummary
    pet: PetSummary
    scheduled_at: datetime
    duration_min: int


@dataclass(frozen=True)
class PendingReview:
    """Completed walk the owner has not reviewed yet."""

    walk_request_id: str
    scheduled_at: datetime
    duration_min: int
    completed_at: datetime | None
    walker: PartySummary
    pet: PetSummary
    walker_notes: str | None


@dataclass(frozen=True)
class WalkerStats:
    walker_id: str
    average_rating: float
    total_reviews: int
    rating_distribution: dict[int, int] = field(default_factory=dict)


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        """Compute page count as ceil(total / limit)."""
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    pagination: Pagination
