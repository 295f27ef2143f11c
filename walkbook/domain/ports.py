"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.

Every mutating method is a single atomic write with a precondition.
Services never read a record, decide in application code, and then write
on the strength of that read.
"""

from typing import Protocol

from .records import (
    Actor,
    NewReview,
    NewWalkRequest,
    Review,
    ReviewView,
    Role,
    WalkRequest,
    WalkStatus,
    WalkSummary,
)


class WalkRequestRepository(Protocol):
    """Port interface for walk request persistence."""

    def add(self, draft: NewWalkRequest) -> WalkRequest:
        """Insert a new walk request in PENDING state."""
        ...

    def get(self, request_id: str) -> WalkRequest | None:
        """Fetch a walk request by id, or None if it does not exist."""
        ...

    def transition(
        self,
        request_id: str,
        expected: WalkStatus,
        target: WalkStatus,
        walker_notes: str | None = None,
    ) -> WalkRequest | None:
        """
        Atomically move a walk request from one status to another.

        Equivalent to "UPDATE ... SET status = target WHERE id = request_id
        AND status = expected". completed_at is set when target is COMPLETED.
        walker_notes overwrites the stored notes when not None.

        Args:
            request_id: Walk request id
            expected: Status the record must currently hold
            target: Status to move to
            walker_notes: Optional walker-authored notes

        Returns:
            The updated record, or None if no record matched both the id
            and the expected status (lost race or invalid source state)
        """
        ...

    def list_for_party(
        self,
        *,
        owner_id: str | None = None,
        walker_id: str | None = None,
        status: WalkStatus | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[WalkSummary], int]:
        """
        List walk requests for an owner or a walker, newest schedule first.

        Returns:
            Tuple of (page of summaries, total matching count)
        """
        ...

    def list_completed_for_owner(self, owner_id: str) -> list[WalkSummary]:
        """List every COMPLETED walk request of an owner, newest first."""
        ...


class ReviewRepository(Protocol):
    """Port interface for review persistence and rating aggregates."""

    def add(self, draft: NewReview) -> Review | None:
        """
        Insert a review, enforcing one review per walk request.

        Uniqueness on walk_request_id is evaluated by storage at insert
        time, never by a prior read.

        Returns:
            The stored review, or None if a review already exists for
            draft.walk_request_id
        """
        ...

    def get(self, review_id: str) -> ReviewView | None:
        """Fetch a review projection by id, or None if it does not exist."""
        ...

    def list_for_party(
        self,
        *,
        owner_id: str | None = None,
        walker_id: str | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[ReviewView], int]:
        """
        List reviews written by an owner or about a walker, newest first.

        Returns:
            Tuple of (page of review projections, total matching count)
        """
        ...

    def rating_histogram(self, walker_id: str) -> dict[int, int]:
        """
        Count reviews per rating value for a walker.

        Ratings with no reviews may be absent from the result.
        """
        ...

    def reviewed_walk_ids(self, owner_id: str) -> set[str]:
        """Return the walk request ids an owner has already reviewed."""
        ...


class UserDirectory(Protocol):
    """Port interface for the user and pet records the core consults."""

    def authenticate(self, email: str, password: str) -> Actor | None:
        """
        Resolve credentials to an actor.

        Returns:
            Actor for an active user with matching credentials, else None
        """
        ...

    def is_active_walker(self, walker_id: str) -> bool:
        """Return True if walker_id names an active user with the WALKER role."""
        ...

    def owns_pet(self, owner_id: str, pet_id: str) -> bool:
        """Return True if pet_id exists and belongs to owner_id."""
        ...

    def add_user(self, email: str, password: str, name: str, role: Role) -> str:
        """Create a user record and return its id."""
        ...

    def add_pet(self, owner_id: str, name: str, breed: str | None = None) -> str:
        """Create a pet record and return its id."""
        ...

    def deactivate_user(self, user_id: str) -> None:
        """Mark a user inactive; inactive users cannot authenticate or be booked."""
        ...
