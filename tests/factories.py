"""
Test data builders.

Seeds owners, walkers and pets through any UserDirectory, and drives walk
requests through the lifecycle to a requested status.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from walkbook.domain.lifecycle import LifecycleController
from walkbook.domain.ports import UserDirectory
from walkbook.domain.records import Actor, Role, WalkRequest, WalkStatus
from walkbook.domain.reviews import ReviewService

# bcrypt minimum work factor keeps seeded users fast to create
TEST_BCRYPT_COST = 4
PASSWORD = "walkies123"


@dataclass
class World:
    """Seeded actors and pets shared by a test."""

    owner: Actor
    walker: Actor
    other_owner: Actor
    other_walker: Actor
    pet_id: str
    other_pet_id: str


def seed_world(directory: UserDirectory) -> World:
    owner_id = directory.add_user("owner@example.com", PASSWORD, "Olivia Owner", Role.OWNER)
    walker_id = directory.add_user("walker@example.com", PASSWORD, "Walt Walker", Role.WALKER)
    other_owner_id = directory.add_user("other.owner@example.com", PASSWORD, "Oscar", Role.OWNER)
    other_walker_id = directory.add_user("other.walker@example.com", PASSWORD, "Wendy", Role.WALKER)
    return World(
        owner=Actor(id=owner_id, role=Role.OWNER),
        walker=Actor(id=walker_id, role=Role.WALKER),
        other_owner=Actor(id=other_owner_id, role=Role.OWNER),
        other_walker=Actor(id=other_walker_id, role=Role.WALKER),
        pet_id=directory.add_pet(owner_id, "Rex", "Beagle"),
        other_pet_id=directory.add_pet(other_owner_id, "Luna", None),
    )


def tomorrow() -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=1)


WalkFactory = Callable[..., WalkRequest]


def make_walk_factory(controller: LifecycleController, world: World) -> WalkFactory:
    """Return a callable that creates a walk and drives it to `status`."""

    def make_walk(
        status: WalkStatus = WalkStatus.PENDING,
        *,
        owner: Actor | None = None,
        walker: Actor | None = None,
        pet_id: str | None = None,
    ) -> WalkRequest:
        owner = owner or world.owner
        walker = walker or world.walker
        pet_id = pet_id or world.pet_id
        walk = controller.create(owner, walker.id, pet_id, tomorrow(), 30, "Leash pulls left")
        if status is WalkStatus.PENDING:
            return walk
        if status is WalkStatus.REJECTED:
            return controller.reject(walk.id, walker, "Busy that day")
        walk = controller.accept(walk.id, walker, "See you there")
        if status is WalkStatus.ACCEPTED:
            return walk
        if status is WalkStatus.CANCELLED:
            return controller.cancel(walk.id, owner)
        return controller.complete(walk.id, walker, "Good boy")

    return make_walk


@dataclass
class Backend:
    """Services wired over one storage backend, plus seeded actors."""

    name: str
    controller: LifecycleController
    service: ReviewService
    world: World
