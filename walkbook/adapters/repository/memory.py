"""
In-memory repository adapters - Implement the ports without a database.

Used for local runs (storage_backend = "memory") and for tests that need
real concurrency semantics without PostgreSQL.

All tables live in one MemoryDatabase guarded by one lock. The lock is
held for a single read or a single conditional write, mirroring what one
SQL statement does in the Postgres adapter; no caller holds it across a
multi-step operation.
"""

import itertools
import logging
import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from walkbook.domain.records import (
    NewReview,
    NewWalkRequest,
    PartySummary,
    PetSummary,
    Review,
    ReviewView,
    Role,
    WalkRequest,
    WalkStatus,
    WalkSummary,
)

logger = logging.getLogger(__name__)


@dataclass
class UserRow:
    id: str
    email: str
    password_hash: bytes
    name: str
    role: Role
    is_active: bool = True


@dataclass
class PetRow:
    id: str
    owner_id: str
    name: str
    breed: str | None = None


@dataclass
class MemoryDatabase:
    """Process-local tables plus the lock that serializes statements."""

    users: dict[str, UserRow] = field(default_factory=dict)
    pets: dict[str, PetRow] = field(default_factory=dict)
    walk_requests: dict[str, WalkRequest] = field(default_factory=dict)
    reviews: dict[str, Review] = field(default_factory=dict)
    # UNIQUE (walk_request_id) index
    reviews_by_walk: dict[str, str] = field(default_factory=dict)
    # Insertion order, tie-breaker for equal timestamps
    sequence: dict[str, int] = field(default_factory=dict)
    lock: threading.Lock = field(default_factory=threading.Lock)
    _counter: itertools.count = field(default_factory=itertools.count)

    def new_id(self) -> str:
        record_id = str(uuid.uuid4())
        self.sequence[record_id] = next(self._counter)
        return record_id

    def party(self, user_id: str) -> PartySummary:
        user = self.users.get(user_id)
        return PartySummary(id=user_id, name=user.name if user else "")

    def pet(self, pet_id: str) -> PetSummary:
        pet = self.pets.get(pet_id)
        if pet is None:
            return PetSummary(id=pet_id, name="")
        return PetSummary(id=pet.id, name=pet.name, breed=pet.breed)

    def clear(self) -> None:
        with self.lock:
            self.users.clear()
            self.pets.clear()
            self.walk_requests.clear()
            self.reviews.clear()
            self.reviews_by_walk.clear()
            self.sequence.clear()


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryWalkRequestRepository:
    """Implements WalkRequestRepository protocol over a MemoryDatabase."""

    def __init__(self, db: MemoryDatabase) -> None:
        self._db = db

    def add(self, draft: NewWalkRequest) -> WalkRequest:
        now = _now()
        with self._db.lock:
            request = WalkRequest(
                id=self._db.new_id(),
                owner_id=draft.owner_id,
                walker_id=draft.walker_id,
                pet_id=draft.pet_id,
                status=WalkStatus.PENDING,
                scheduled_at=draft.scheduled_at,
                duration_min=draft.duration_min,
                notes=draft.notes,
                walker_notes=None,
                completed_at=None,
                created_at=now,
                updated_at=now,
            )
            self._db.walk_requests[request.id] = request
        return request

    def get(self, request_id: str) -> WalkRequest | None:
        with self._db.lock:
            return self._db.walk_requests.get(request_id)

    def transition(
        self,
        request_id: str,
        expected: WalkStatus,
        target: WalkStatus,
        walker_notes: str | None = None,
    ) -> WalkRequest | None:
        now = _now()
        with self._db.lock:
            current = self._db.walk_requests.get(request_id)
            if current is None or current.status is not expected:
                logger.info(
                    "Transition %s -> %s matched no row for walk request %s",
                    expected.value,
                    target.value,
                    request_id,
                )
                return None
            updated = replace(
                current,
                status=target,
                walker_notes=walker_notes if walker_notes is not None else current.walker_notes,
                completed_at=now if target is WalkStatus.COMPLETED else current.completed_at,
                updated_at=now,
            )
            self._db.walk_requests[request_id] = updated
        return updated

    def list_for_party(
        self,
        *,
        owner_id: str | None = None,
        walker_id: str | None = None,
        status: WalkStatus | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[WalkSummary], int]:
        with self._db.lock:
            matches = [
                request
                for request in self._db.walk_requests.values()
                if (owner_id is None or request.owner_id == owner_id)
                and (walker_id is None or request.walker_id == walker_id)
                and (status is None or request.status is status)
            ]
            matches.sort(key=lambda r: (r.scheduled_at, self._db.sequence[r.id]), reverse=True)
            page = [self._summary(request) for request in matches[offset : offset + limit]]
        return page, len(matches)

    def list_completed_for_owner(self, owner_id: str) -> list[WalkSummary]:
        with self._db.lock:
            completed = [
                request
                for request in self._db.walk_requests.values()
                if request.owner_id == owner_id and request.status is WalkStatus.COMPLETED
            ]
            completed.sort(key=lambda r: (r.completed_at, self._db.sequence[r.id]), reverse=True)
            return [self._summary(request) for request in completed]

    def _summary(self, request: WalkRequest) -> WalkSummary:
        return WalkSummary(
            request=request,
            owner=self._db.party(request.owner_id),
            walker=self._db.party(request.walker_id),
            pet=self._db.pet(request.pet_id),
        )


class InMemoryReviewRepository:
    """Implements ReviewRepository protocol over a MemoryDatabase."""

    def __init__(self, db: MemoryDatabase) -> None:
        self._db = db

    def add(self, draft: NewReview) -> Review | None:
        with self._db.lock:
            if draft.walk_request_id in self._db.reviews_by_walk:
                logger.info(
                    "Duplicate review rejected for walk request %s", draft.walk_request_id
                )
                return None
            review = Review(
                id=self._db.new_id(),
                walk_request_id=draft.walk_request_id,
                owner_id=draft.owner_id,
                walker_id=draft.walker_id,
                rating=draft.rating,
                comment=draft.comment,
                created_at=_now(),
            )
            self._db.reviews[review.id] = review
            self._db.reviews_by_walk[review.walk_request_id] = review.id
        return review

    def get(self, review_id: str) -> ReviewView | None:
        with self._db.lock:
            review = self._db.reviews.get(review_id)
            return self._view(review) if review is not None else None

    def list_for_party(
        self,
        *,
        owner_id: str | None = None,
        walker_id: str | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[ReviewView], int]:
        with self._db.lock:
            matches = [
                review
                for review in self._db.reviews.values()
                if (owner_id is None or review.owner_id == owner_id)
                and (walker_id is None or review.walker_id == walker_id)
            ]
            matches.sort(key=lambda r: (r.created_at, self._db.sequence[r.id]), reverse=True)
            page = [self._view(review) for review in matches[offset : offset + limit]]
        return page, len(matches)

    def rating_histogram(self, walker_id: str) -> dict[int, int]:
        histogram: dict[int, int] = {}
        with self._db.lock:
            for review in self._db.reviews.values():
                if review.walker_id == walker_id:
                    histogram[review.rating] = histogram.get(review.rating, 0) + 1
        return histogram

    def reviewed_walk_ids(self, owner_id: str) -> set[str]:
        with self._db.lock:
            return {
                review.walk_request_id
                for review in self._db.reviews.values()
                if review.owner_id == owner_id
            }

    def _view(self, review: Review) -> ReviewView:
        walk = self._db.walk_requests[review.walk_request_id]
        return ReviewView(
            review=review,
            owner=self._db.party(review.owner_id),
            walker=self._db.party(review.walker_id),
            pet=self._db.pet(walk.pet_id),
            scheduled_at=walk.scheduled_at,
            duration_min=walk.duration_min,
        )
