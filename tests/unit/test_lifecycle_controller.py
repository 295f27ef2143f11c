"""
Unit tests for LifecycleController domain logic.

Tests the walk request state machine over the in-memory adapters:
- Creation validation
- Allowed and disallowed transitions
- Authorization (role AND identity)
- completed_at / walker_notes handling
- Conditional write semantics (lost races surface as InvalidState)
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from tests.factories import World, tomorrow
from walkbook.domain.exceptions import Forbidden, InvalidState, NotFound, ValidationError
from walkbook.domain.lifecycle import LifecycleController
from walkbook.domain.records import WalkStatus


class TestCreate:
    """Tests for create()."""

    def test_create_returns_pending_request(
        self, controller: LifecycleController, world: World
    ) -> None:
        """New walk requests start in PENDING with no completion data."""
        scheduled = tomorrow()
        walk = controller.create(world.owner, world.walker.id, world.pet_id, scheduled, 45, "Hi")

        assert walk.status is WalkStatus.PENDING
        assert walk.owner_id == world.owner.id
        assert walk.walker_id == world.walker.id
        assert walk.pet_id == world.pet_id
        assert walk.scheduled_at == scheduled
        assert walk.duration_min == 45
        assert walk.notes == "Hi"
        assert walk.walker_notes is None
        assert walk.completed_at is None

    @pytest.mark.parametrize("duration", [0, -15])
    def test_non_positive_duration_rejected(
        self, controller: LifecycleController, world: World, duration: int
    ) -> None:
        with pytest.raises(ValidationError):
            controller.create(world.owner, world.walker.id, world.pet_id, tomorrow(), duration)

    def test_boolean_duration_rejected(self, controller: LifecycleController, world: World) -> None:
        with pytest.raises(ValidationError):
            controller.create(world.owner, world.walker.id, world.pet_id, tomorrow(), True)

    def test_past_schedule_rejected(self, controller: LifecycleController, world: World) -> None:
        yesterday = datetime.now(timezone.utc) - timedelta(days=1)
        with pytest.raises(ValidationError):
            controller.create(world.owner, world.walker.id, world.pet_id, yesterday, 30)

    def test_naive_schedule_rejected(self, controller: LifecycleController, world: World) -> None:
        naive = datetime.now() + timedelta(days=1)
        with pytest.raises(ValidationError):
            controller.create(world.owner, world.walker.id, world.pet_id, naive, 30)

    def test_present_schedule_accepted(self, controller: LifecycleController, world: World) -> None:
        """A schedule of "now" is valid even after a little clock drift."""
        now = datetime.now(timezone.utc) - timedelta(seconds=5)
        walk = controller.create(world.owner, world.walker.id, world.pet_id, now, 30)
        assert walk.status is WalkStatus.PENDING

    def test_fixed_clock_is_used(self, request_repository, directory, world: World) -> None:
        """Schedule validation uses the injected clock."""
        fixed_now = datetime(2030, 1, 1, 12, tzinfo=timezone.utc)
        controller = LifecycleController(
            requests=request_repository, directory=directory, clock=lambda: fixed_now
        )
        with pytest.raises(ValidationError):
            controller.create(
                world.owner, world.walker.id, world.pet_id, fixed_now - timedelta(hours=1), 30
            )
        walk = controller.create(
            world.owner, world.walker.id, world.pet_id, fixed_now + timedelta(hours=1), 30
        )
        assert walk.scheduled_at == fixed_now + timedelta(hours=1)

    def test_overlong_notes_rejected(self, controller: LifecycleController, world: World) -> None:
        with pytest.raises(ValidationError):
            controller.create(world.owner, world.walker.id, world.pet_id, tomorrow(), 30, "x" * 501)

    def test_walker_cannot_create(self, controller: LifecycleController, world: World) -> None:
        with pytest.raises(Forbidden):
            controller.create(world.walker, world.other_walker.id, world.pet_id, tomorrow(), 30)

    def test_unknown_walker_rejected(self, controller: LifecycleController, world: World) -> None:
        with pytest.raises(ValidationError):
            controller.create(world.owner, "no-such-walker", world.pet_id, tomorrow(), 30)

    def test_owner_as_walker_rejected(self, controller: LifecycleController, world: World) -> None:
        """The walker id must name a WALKER, not another owner."""
        with pytest.raises(ValidationError):
            controller.create(world.owner, world.other_owner.id, world.pet_id, tomorrow(), 30)

    def test_inactive_walker_rejected(
        self, controller: LifecycleController, directory, world: World
    ) -> None:
        directory.deactivate_user(world.walker.id)
        with pytest.raises(ValidationError):
            controller.create(world.owner, world.walker.id, world.pet_id, tomorrow(), 30)

    def test_someone_elses_pet_rejected(self, controller: LifecycleController, world: World) -> None:
        with pytest.raises(ValidationError):
            controller.create(world.owner, world.walker.id, world.other_pet_id, tomorrow(), 30)

    def test_validation_precedes_any_read(self, world: World) -> None:
        """Malformed input fails before the directory or repository is touched."""
        requests = Mock()
        directory = Mock()
        controller = LifecycleController(requests=requests, directory=directory)

        with pytest.raises(ValidationError):
            controller.create(world.owner, world.walker.id, world.pet_id, tomorrow(), 0)

        directory.is_active_walker.assert_not_called()
        requests.add.assert_not_called()


class TestTransitions:
    """Tests for accept/reject/complete/cancel."""

    def test_accept_moves_pending_to_accepted(
        self, controller: LifecycleController, world: World, make_walk
    ) -> None:
        walk = make_walk()
        accepted = controller.accept(walk.id, world.walker, "On my way")

        assert accepted.status is WalkStatus.ACCEPTED
        assert accepted.walker_notes == "On my way"
        assert accepted.completed_at is None

    def test_reject_moves_pending_to_rejected(
        self, controller: LifecycleController, world: World, make_walk
    ) -> None:
        walk = make_walk()
        rejected = controller.reject(walk.id, world.walker, "Fully booked")

        assert rejected.status is WalkStatus.REJECTED
        assert rejected.walker_notes == "Fully booked"
        assert rejected.completed_at is None

    def test_complete_sets_completed_at(
        self, controller: LifecycleController, world: World, make_walk
    ) -> None:
        walk = make_walk(WalkStatus.ACCEPTED)
        before = datetime.now(timezone.utc)
        completed = controller.complete(walk.id, world.walker, "Went to the park")

        assert completed.status is WalkStatus.COMPLETED
        assert completed.completed_at is not None
        assert completed.completed_at >= before
        assert completed.walker_notes == "Went to the park"

    def test_complete_without_notes_keeps_previous_notes(
        self, controller: LifecycleController, world: World, make_walk
    ) -> None:
        walk = make_walk(WalkStatus.ACCEPTED)
        completed = controller.complete(walk.id, world.walker)
        assert completed.walker_notes == "See you there"

    @pytest.mark.parametrize("canceller", ["owner", "walker"])
    def test_either_party_can_cancel_accepted(
        self, controller: LifecycleController, world: World, make_walk, canceller: str
    ) -> None:
        walk = make_walk(WalkStatus.ACCEPTED)
        actor = world.owner if canceller == "owner" else world.walker

        cancelled = controller.cancel(walk.id, actor)

        assert cancelled.status is WalkStatus.CANCELLED
        assert cancelled.completed_at is None

    def test_accept_already_accepted_is_invalid_state(
        self, controller: LifecycleController, world: World, make_walk
    ) -> None:
        walk = make_walk(WalkStatus.ACCEPTED)
        with pytest.raises(InvalidState):
            controller.accept(walk.id, world.walker)

    def test_complete_pending_is_invalid_state(
        self, controller: LifecycleController, world: World, make_walk
    ) -> None:
        walk = make_walk()
        with pytest.raises(InvalidState):
            controller.complete(walk.id, world.walker)

    def test_cancel_pending_is_invalid_state(
        self, controller: LifecycleController, world: World, make_walk
    ) -> None:
        walk = make_walk()
        with pytest.raises(InvalidState):
            controller.cancel(walk.id, world.owner)

    @pytest.mark.parametrize(
        "status", [WalkStatus.REJECTED, WalkStatus.COMPLETED, WalkStatus.CANCELLED]
    )
    def test_terminal_states_accept_no_transition(
        self, controller: LifecycleController, world: World, make_walk, status: WalkStatus
    ) -> None:
        """No operation leaves a terminal state."""
        walk = make_walk(status)
        for attempt in (
            lambda: controller.accept(walk.id, world.walker),
            lambda: controller.reject(walk.id, world.walker),
            lambda: controller.complete(walk.id, world.walker),
            lambda: controller.cancel(walk.id, world.walker),
        ):
            with pytest.raises(InvalidState):
                attempt()
        assert controller.get(walk.id, world.owner).status is status

    def test_unknown_request_is_not_found(
        self, controller: LifecycleController, world: World
    ) -> None:
        with pytest.raises(NotFound):
            controller.accept("missing", world.walker)

    def test_overlong_walker_notes_rejected(
        self, controller: LifecycleController, world: World, make_walk
    ) -> None:
        walk = make_walk()
        with pytest.raises(ValidationError):
            controller.accept(walk.id, world.walker, "x" * 501)


class TestTransitionAuthorization:
    """Authorization is role AND identity, checked before status."""

    @pytest.mark.parametrize(
        "status", [WalkStatus.PENDING, WalkStatus.ACCEPTED, WalkStatus.COMPLETED]
    )
    def test_other_walker_accept_forbidden_regardless_of_status(
        self, controller: LifecycleController, world: World, make_walk, status: WalkStatus
    ) -> None:
        walk = make_walk(status)
        with pytest.raises(Forbidden):
            controller.accept(walk.id, world.other_walker)

    def test_owner_cannot_accept_own_request(
        self, controller: LifecycleController, world: World, make_walk
    ) -> None:
        walk = make_walk()
        with pytest.raises(Forbidden):
            controller.accept(walk.id, world.owner)

    def test_owner_cannot_complete(
        self, controller: LifecycleController, world: World, make_walk
    ) -> None:
        walk = make_walk(WalkStatus.ACCEPTED)
        with pytest.raises(Forbidden):
            controller.complete(walk.id, world.owner)

    def test_stranger_cannot_cancel(
        self, controller: LifecycleController, world: World, make_walk
    ) -> None:
        walk = make_walk(WalkStatus.ACCEPTED)
        with pytest.raises(Forbidden):
            controller.cancel(walk.id, world.other_owner)
        with pytest.raises(Forbidden):
            controller.cancel(walk.id, world.other_walker)

    def test_forbidden_leaves_record_untouched(
        self, controller: LifecycleController, world: World, make_walk
    ) -> None:
        walk = make_walk()
        with pytest.raises(Forbidden):
            controller.reject(walk.id, world.other_walker)
        assert controller.get(walk.id, world.walker).status is WalkStatus.PENDING


class TestConditionalWrite:
    """The transition is a single conditional write, never read-decide-write."""

    def test_lost_race_reports_invalid_state(self, world: World, make_walk) -> None:
        """When the conditional update matches nothing, the caller sees InvalidState."""
        walk = make_walk()
        requests = Mock()
        requests.get.return_value = walk  # the read still says PENDING
        requests.transition.return_value = None  # but another caller won
        controller = LifecycleController(requests=requests, directory=Mock())

        with pytest.raises(InvalidState):
            controller.accept(walk.id, world.walker)

    def test_transition_passes_expected_source_status(self, world: World, make_walk) -> None:
        walk = make_walk()
        requests = Mock()
        requests.get.return_value = walk
        controller = LifecycleController(requests=requests, directory=Mock())

        controller.complete(walk.id, world.walker, "done")

        requests.transition.assert_called_once_with(
            walk.id, WalkStatus.ACCEPTED, WalkStatus.COMPLETED, "done"
        )


class TestQueries:
    """Tests for get() and list_mine()."""

    def test_get_visible_to_both_parties(
        self, controller: LifecycleController, world: World, make_walk
    ) -> None:
        walk = make_walk()
        assert controller.get(walk.id, world.owner).id == walk.id
        assert controller.get(walk.id, world.walker).id == walk.id

    def test_get_hidden_from_strangers(
        self, controller: LifecycleController, world: World, make_walk
    ) -> None:
        walk = make_walk()
        with pytest.raises(Forbidden):
            controller.get(walk.id, world.other_owner)

    def test_get_missing_is_not_found(self, controller: LifecycleController, world: World) -> None:
        with pytest.raises(NotFound):
            controller.get("missing", world.owner)

    def test_list_mine_filters_by_party(
        self, controller: LifecycleController, world: World, make_walk
    ) -> None:
        make_walk()
        make_walk(WalkStatus.ACCEPTED)
        make_walk(owner=world.other_owner, pet_id=world.other_pet_id)

        owner_page = controller.list_mine(world.owner)
        walker_page = controller.list_mine(world.walker)
        other_walker_page = controller.list_mine(world.other_walker)

        assert owner_page.pagination.total == 2
        assert walker_page.pagination.total == 3
        assert other_walker_page.pagination.total == 0
        assert all(item.request.owner_id == world.owner.id for item in owner_page.items)

    def test_list_mine_status_filter_and_projection(
        self, controller: LifecycleController, world: World, make_walk
    ) -> None:
        make_walk()
        accepted = make_walk(WalkStatus.ACCEPTED)

        page = controller.list_mine(world.walker, status=WalkStatus.ACCEPTED)

        assert [item.request.id for item in page.items] == [accepted.id]
        summary = page.items[0]
        assert summary.owner.name == "Olivia Owner"
        assert summary.walker.name == "Walt Walker"
        assert summary.pet.name == "Rex"
        assert summary.pet.breed == "Beagle"

    def test_list_mine_rejects_bad_page(self, controller: LifecycleController, world: World) -> None:
        with pytest.raises(ValidationError):
            controller.list_mine(world.owner, page=0)
        with pytest.raises(ValidationError):
            controller.list_mine(world.owner, limit=101)
