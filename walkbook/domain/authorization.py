"""
Authorization gate - Capability checks for walk request and review operations.

Authorization is a role AND identity match, not a role hierarchy. Each
operation lists the roles allowed to perform it; for record-bound
operations the actor must additionally be the party that role refers to
on the record (an OWNER must be the record's owner_id, a WALKER must be
its walker_id).

Authorization Matrix
====================

    Operation             Roles            Identity field
    CREATE_REQUEST        OWNER            (actor becomes owner)
    VIEW_REQUEST          OWNER, WALKER    owner_id / walker_id
    ACCEPT_REQUEST        WALKER           walker_id
    REJECT_REQUEST        WALKER           walker_id
    COMPLETE_REQUEST      WALKER           walker_id
    CANCEL_REQUEST        OWNER, WALKER    owner_id / walker_id
    CREATE_REVIEW         OWNER            owner_id
    VIEW_REVIEW           OWNER, WALKER    owner_id / walker_id
    LIST_PENDING_REVIEWS  OWNER            (own records only)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from .exceptions import Forbidden
from .records import Actor, Role


class Operation(str, Enum):
    CREATE_REQUEST = "create_request"
    VIEW_REQUEST = "view_request"
    ACCEPT_REQUEST = "accept_request"
    REJECT_REQUEST = "reject_request"
    COMPLETE_REQUEST = "complete_request"
    CANCEL_REQUEST = "cancel_request"
    CREATE_REVIEW = "create_review"
    VIEW_REVIEW = "view_review"
    LIST_PENDING_REVIEWS = "list_pending_reviews"


class PartyRecord(Protocol):
    """Any record naming an owner and a walker (WalkRequest, Review)."""

    owner_id: str
    walker_id: str


AUTHORIZATION_MATRIX: dict[Operation, frozenset[Role]] = {
    Operation.CREATE_REQUEST: frozenset({Role.OWNER}),
    Operation.VIEW_REQUEST: frozenset({Role.OWNER, Role.WALKER}),
    Operation.ACCEPT_REQUEST: frozenset({Role.WALKER}),
    Operation.REJECT_REQUEST: frozenset({Role.WALKER}),
    Operation.COMPLETE_REQUEST: frozenset({Role.WALKER}),
    Operation.CANCEL_REQUEST: frozenset({Role.OWNER, Role.WALKER}),
    Operation.CREATE_REVIEW: frozenset({Role.OWNER}),
    Operation.VIEW_REVIEW: frozenset({Role.OWNER, Role.WALKER}),
    Operation.LIST_PENDING_REVIEWS: frozenset({Role.OWNER}),
}


def _party_id(record: PartyRecord, role: Role) -> str:
    if role is Role.OWNER:
        return record.owner_id
    return record.walker_id


@dataclass(frozen=True)
class AuthorizationGate:
    """Evaluates the authorization matrix for an actor and a target record."""

    matrix: dict[Operation, frozenset[Role]] = field(
        default_factory=lambda: dict(AUTHORIZATION_MATRIX)
    )

    def allows(
        self, actor: Actor, operation: Operation, target: PartyRecord | None = None
    ) -> bool:
        """
        Check whether actor may perform operation on target.

        Args:
            actor: Authenticated caller
            operation: Operation being attempted
            target: Record the operation applies to, or None for
                operations that are not bound to an existing record

        Returns:
            True if the actor's role is allowed and, for record-bound
            operations, the actor is the matching party on the record
        """
        roles = self.matrix.get(operation, frozenset())
        if actor.role not in roles:
            return False
        if target is None:
            return True
        return _party_id(target, actor.role) == actor.id

    def require(
        self, actor: Actor, operation: Operation, target: PartyRecord | None = None
    ) -> None:
        """Raise Forbidden unless allows() holds."""
        if not self.allows(actor, operation, target):
            raise Forbidden(f"Not allowed to {operation.value.replace('_', ' ')}")
