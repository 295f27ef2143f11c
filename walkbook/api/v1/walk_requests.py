"""
API v1 walk request routes.

Owners create walk requests; walkers accept, reject and complete them;
either party may cancel an accepted walk. Domain errors are translated by
the handlers in walkbook.api.errors.
"""

from fastapi import APIRouter, Depends, Query, status

from walkbook.api.dependencies import get_current_actor, get_lifecycle_controller
from walkbook.api.models import (
    CreateWalkRequestRequest,
    ErrorResponse,
    PaginationResponse,
    TransitionRequest,
    WalkRequestListResponse,
    WalkRequestResponse,
    WalkSummaryResponse,
)
from walkbook.config.settings import get_settings
from walkbook.domain.lifecycle import LifecycleController
from walkbook.domain.records import Actor, WalkStatus

router = APIRouter(prefix="/walk-requests", tags=["walk-requests"])

_TRANSITION_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Walk request is in the wrong status"},
    401: {"model": ErrorResponse, "description": "Missing or invalid credentials"},
    403: {"model": ErrorResponse, "description": "Actor is not a party allowed to do this"},
    404: {"model": ErrorResponse, "description": "Walk request not found"},
}


@router.post(
    "",
    response_model=WalkRequestResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        401: {"model": ErrorResponse, "description": "Missing or invalid credentials"},
        403: {"model": ErrorResponse, "description": "Only owners create walk requests"},
        422: {"model": ErrorResponse, "description": "Validation error"},
    },
    summary="Create a walk request",
)
def create_walk_request(
    payload: CreateWalkRequestRequest,
    actor: Actor = Depends(get_current_actor),
    controller: LifecycleController = Depends(get_lifecycle_controller),
) -> WalkRequestResponse:
    """
    Ask a walker to walk one of the owner's pets.

    The new request starts in PENDING.
    """
    request = controller.create(
        actor,
        walker_id=payload.walker_id,
        pet_id=payload.pet_id,
        scheduled_at=payload.scheduled_at,
        duration_min=payload.duration_min,
        notes=payload.notes,
    )
    return WalkRequestResponse.from_record(request)


@router.get(
    "",
    response_model=WalkRequestListResponse,
    summary="List my walk requests",
)
def list_walk_requests(
    status_filter: WalkStatus | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    actor: Actor = Depends(get_current_actor),
    controller: LifecycleController = Depends(get_lifecycle_controller),
) -> WalkRequestListResponse:
    """Owners see requests they made; walkers see requests addressed to them."""
    limit = limit or get_settings().default_page_size
    result = controller.list_mine(actor, status=status_filter, page=page, limit=limit)
    return WalkRequestListResponse(
        walk_requests=[WalkSummaryResponse.from_summary(item) for item in result.items],
        pagination=PaginationResponse.from_pagination(result.pagination),
    )


@router.get(
    "/{request_id}",
    response_model=WalkRequestResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Not a party of this walk request"},
        404: {"model": ErrorResponse, "description": "Walk request not found"},
    },
    summary="Get a walk request",
)
def get_walk_request(
    request_id: str,
    actor: Actor = Depends(get_current_actor),
    controller: LifecycleController = Depends(get_lifecycle_controller),
) -> WalkRequestResponse:
    return WalkRequestResponse.from_record(controller.get(request_id, actor))


@router.post(
    "/{request_id}/accept",
    response_model=WalkRequestResponse,
    responses=_TRANSITION_RESPONSES,
    summary="Accept a pending walk request",
)
def accept_walk_request(
    request_id: str,
    payload: TransitionRequest | None = None,
    actor: Actor = Depends(get_current_actor),
    controller: LifecycleController = Depends(get_lifecycle_controller),
) -> WalkRequestResponse:
    notes = payload.notes if payload else None
    return WalkRequestResponse.from_record(controller.accept(request_id, actor, notes))


@router.post(
    "/{request_id}/reject",
    response_model=WalkRequestResponse,
    responses=_TRANSITION_RESPONSES,
    summary="Reject a pending walk request",
)
def reject_walk_request(
    request_id: str,
    payload: TransitionRequest | None = None,
    actor: Actor = Depends(get_current_actor),
    controller: LifecycleController = Depends(get_lifecycle_controller),
) -> WalkRequestResponse:
    notes = payload.notes if payload else None
    return WalkRequestResponse.from_record(controller.reject(request_id, actor, notes))


@router.post(
    "/{request_id}/complete",
    response_model=WalkRequestResponse,
    responses=_TRANSITION_RESPONSES,
    summary="Complete an accepted walk",
)
def complete_walk_request(
    request_id: str,
    payload: TransitionRequest | None = None,
    actor: Actor = Depends(get_current_actor),
    controller: LifecycleController = Depends(get_lifecycle_controller),
) -> WalkRequestResponse:
    """Marks the walk COMPLETED and stamps completedAt."""
    notes = payload.notes if payload else None
    return WalkRequestResponse.from_record(controller.complete(request_id, actor, notes))


@router.post(
    "/{request_id}/cancel",
    response_model=WalkRequestResponse,
    responses=_TRANSITION_RESPONSES,
    summary="Cancel an accepted walk",
)
def cancel_walk_request(
    request_id: str,
    actor: Actor = Depends(get_current_actor),
    controller: LifecycleController = Depends(get_lifecycle_controller),
) -> WalkRequestResponse:
    return WalkRequestResponse.from_record(controller.cancel(request_id, actor))
