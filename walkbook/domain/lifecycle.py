"""
Walk request lifecycle controller - Walk request state machine.

This module owns the walk request lifecycle: creation by an owner and the
walker/owner driven transitions that follow it.

Walk Request State Machine (Forward-Only Transitions)
=====================================================

States:
- PENDING: Initial state after the owner creates the request
- ACCEPTED: Walker agreed to do the walk
- REJECTED: Terminal, walker declined
- COMPLETED: Terminal, walk done (completed_at set)
- CANCELLED: Terminal, accepted walk called off by either party

Valid Transitions:
    PENDING  -> ACCEPTED   (request walker)
    PENDING  -> REJECTED   (request walker)
    ACCEPTED -> COMPLETED  (request walker)
    ACCEPTED -> CANCELLED  (request owner or request walker)

Every transition runs the same sequence: load the record (NotFound),
authorize the actor against it (Forbidden), then apply one conditional
write keyed on the expected source status. A write that matches nothing
means another caller moved the record first, or it was never in the
source state; both surface as InvalidState.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from .authorization import AuthorizationGate, Operation
from .exceptions import InvalidState, NotFound, ValidationError
from .paging import page_offset
from .ports import UserDirectory, WalkRequestRepository
from .records import (
    Actor,
    NewWalkRequest,
    Page,
    Pagination,
    Role,
    WalkRequest,
    WalkStatus,
    WalkSummary,
)

# Operation -> (expected source status, target status)
TRANSITIONS: dict[Operation, tuple[WalkStatus, WalkStatus]] = {
    Operation.ACCEPT_REQUEST: (WalkStatus.PENDING, WalkStatus.ACCEPTED),
    Operation.REJECT_REQUEST: (WalkStatus.PENDING, WalkStatus.REJECTED),
    Operation.COMPLETE_REQUEST: (WalkStatus.ACCEPTED, WalkStatus.COMPLETED),
    Operation.CANCEL_REQUEST: (WalkStatus.ACCEPTED, WalkStatus.CANCELLED),
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class LifecycleController:
    """
    Domain service for the walk request lifecycle.

    Holds no state of its own; safe to share between concurrent callers.
    """

    requests: WalkRequestRepository
    directory: UserDirectory
    gate: AuthorizationGate = field(default_factory=AuthorizationGate)
    clock: Callable[[], datetime] = utcnow
    schedule_grace: timedelta = timedelta(seconds=60)
    max_notes_length: int = 500
    max_page_size: int = 100

    def create(
        self,
        actor: Actor,
        walker_id: str,
        pet_id: str,
        scheduled_at: datetime,
        duration_min: int,
        notes: str | None = None,
    ) -> WalkRequest:
        """
        Create a walk request in PENDING state on behalf of an owner.

        Args:
            actor: Owner creating the request
            walker_id: Walker being asked
            pet_id: Owner's pet to be walked
            scheduled_at: Timezone-aware start time, present or future
            duration_min: Walk length in minutes (> 0)
            notes: Optional owner notes

        Returns:
            The stored walk request

        Raises:
            ValidationError: Bad duration, schedule, notes, walker or pet
            Forbidden: Actor is not an owner
        """
        self._validate_duration(duration_min)
        self._validate_schedule(scheduled_at)
        self._validate_notes(notes)
        self.gate.require(actor, Operation.CREATE_REQUEST)

        if not self.directory.is_active_walker(walker_id):
            raise ValidationError("walker is not available")
        if not self.directory.owns_pet(actor.id, pet_id):
            raise ValidationError("pet does not belong to the owner")

        return self.requests.add(
            NewWalkRequest(
                owner_id=actor.id,
                walker_id=walker_id,
                pet_id=pet_id,
                scheduled_at=scheduled_at,
                duration_min=duration_min,
                notes=notes,
            )
        )

    def accept(self, request_id: str, actor: Actor, notes: str | None = None) -> WalkRequest:
        """PENDING -> ACCEPTED, walker only."""
        return self._transition(request_id, actor, Operation.ACCEPT_REQUEST, notes)

    def reject(self, request_id: str, actor: Actor, notes: str | None = None) -> WalkRequest:
        """PENDING -> REJECTED, walker only."""
        return self._transition(request_id, actor, Operation.REJECT_REQUEST, notes)

    def complete(self, request_id: str, actor: Actor, notes: str | None = None) -> WalkRequest:
        """ACCEPTED -> COMPLETED, walker only. Sets completed_at."""
        return self._transition(request_id, actor, Operation.COMPLETE_REQUEST, notes)

    def cancel(self, request_id: str, actor: Actor) -> WalkRequest:
        """ACCEPTED -> CANCELLED, owner or walker of the request."""
        return self._transition(request_id, actor, Operation.CANCEL_REQUEST, None)

    def get(self, request_id: str, actor: Actor) -> WalkRequest:
        """
        Fetch a walk request visible to one of its parties.

        Raises:
            NotFound: No such walk request
            Forbidden: Actor is neither its owner nor its walker
        """
        request = self._load(request_id)
        self.gate.require(actor, Operation.VIEW_REQUEST, request)
        return request

    def list_mine(
        self,
        actor: Actor,
        status: WalkStatus | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[WalkSummary]:
        """List the actor's walk requests (as owner or as walker)."""
        offset = page_offset(page, limit, self.max_page_size)
        if actor.role is Role.OWNER:
            items, total = self.requests.list_for_party(
                owner_id=actor.id, status=status, offset=offset, limit=limit
            )
        else:
            items, total = self.requests.list_for_party(
                walker_id=actor.id, status=status, offset=offset, limit=limit
            )
        return Page(items=items, pagination=Pagination.build(page, limit, total))

    def _transition(
        self, request_id: str, actor: Actor, operation: Operation, notes: str | None
    ) -> WalkRequest:
        self._validate_notes(notes)
        request = self._load(request_id)
        self.gate.require(actor, operation, request)

        source, target = TRANSITIONS[operation]
        updated = self.requests.transition(request_id, source, target, notes)
        if updated is None:
            raise InvalidState(
                f"Walk request must be {source.value} to become {target.value}"
            )
        return updated

    def _load(self, request_id: str) -> WalkRequest:
        request = self.requests.get(request_id)
        if request is None:
            raise NotFound("Walk request not found")
        return request

    def _validate_duration(self, duration_min: int) -> None:
        if isinstance(duration_min, bool) or not isinstance(duration_min, int):
            raise ValidationError("duration_min must be an integer")
        if duration_min <= 0:
            raise ValidationError("duration_min must be positive")

    def _validate_schedule(self, scheduled_at: datetime) -> None:
        if not isinstance(scheduled_at, datetime) or scheduled_at.utcoffset() is None:
            raise ValidationError("scheduled_at must be a timezone-aware timestamp")
        if scheduled_at < self.clock() - self.schedule_grace:
            raise ValidationError("scheduled_at must not be in the past")

    def _validate_notes(self, notes: str | None) -> None:
        if notes is not None and len(notes) > self.max_notes_length:
            raise ValidationError(f"notes must be at most {self.max_notes_length} characters")
