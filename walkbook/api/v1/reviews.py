"""
API v1 review routes.

Owners review completed walks once; anyone can read a walker's rating
aggregate. Walker stats are served from the process-wide query cache,
which this module invalidates after every successful review.
"""

from fastapi import APIRouter, Depends, Query, status

from walkbook.api.dependencies import (
    get_current_actor,
    get_query_cache,
    get_review_service,
)
from walkbook.api.models import (
    CreateReviewRequest,
    ErrorResponse,
    PaginationResponse,
    PendingReviewListResponse,
    PendingReviewResponse,
    ReviewListResponse,
    ReviewResponse,
    ReviewViewResponse,
    WalkerStatsResponse,
)
from walkbook.cache import QueryCache
from walkbook.config.settings import get_settings
from walkbook.domain.records import Actor
from walkbook.domain.reviews import ReviewService

router = APIRouter(prefix="/reviews", tags=["reviews"])


def walker_stats_key(walker_id: str) -> tuple[str, str]:
    return ("walker-stats", walker_id)


@router.post(
    "",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Walk is not completed"},
        401: {"model": ErrorResponse, "description": "Missing or invalid credentials"},
        403: {"model": ErrorResponse, "description": "Only the walk's owner may review it"},
        404: {"model": ErrorResponse, "description": "Walk request not found"},
        409: {"model": ErrorResponse, "description": "A review already exists for this walk"},
        422: {"model": ErrorResponse, "description": "Validation error"},
    },
    summary="Review a completed walk",
)
def create_review(
    payload: CreateReviewRequest,
    actor: Actor = Depends(get_current_actor),
    service: ReviewService = Depends(get_review_service),
    cache: QueryCache = Depends(get_query_cache),
) -> ReviewResponse:
    """
    Submit the one review allowed for a completed walk.

    - **walkRequestId**: Completed walk owned by the caller
    - **rating**: Integer 1 to 5
    - **comment**: Optional text
    """
    review = service.create_review(
        actor,
        walk_request_id=payload.walk_request_id,
        rating=payload.rating,
        comment=payload.comment,
    )
    cache.invalidate(walker_stats_key(review.walker_id))
    return ReviewResponse.from_record(review)


@router.get(
    "/mine",
    response_model=ReviewListResponse,
    summary="List my reviews",
)
def list_my_reviews(
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    actor: Actor = Depends(get_current_actor),
    service: ReviewService = Depends(get_review_service),
) -> ReviewListResponse:
    """Owners get reviews they wrote; walkers get reviews about them. Newest first."""
    limit = limit or get_settings().default_page_size
    result = service.list_reviews(actor, page=page, limit=limit)
    return ReviewListResponse(
        reviews=[ReviewViewResponse.from_view(view) for view in result.items],
        pagination=PaginationResponse.from_pagination(result.pagination),
    )


@router.get(
    "/pending",
    response_model=PendingReviewListResponse,
    responses={403: {"model": ErrorResponse, "description": "Only owners have pending reviews"}},
    summary="List completed walks awaiting my review",
)
def list_pending_reviews(
    actor: Actor = Depends(get_current_actor),
    service: ReviewService = Depends(get_review_service),
) -> PendingReviewListResponse:
    pending = service.list_pending_reviews(actor)
    return PendingReviewListResponse(
        pending_reviews=[PendingReviewResponse.from_pending(item) for item in pending]
    )


@router.get(
    "/walker/{walker_id}/stats",
    response_model=WalkerStatsResponse,
    responses={404: {"model": ErrorResponse, "description": "Walker not found"}},
    summary="Get a walker's rating statistics",
)
def get_walker_stats(
    walker_id: str,
    service: ReviewService = Depends(get_review_service),
    cache: QueryCache = Depends(get_query_cache),
) -> WalkerStatsResponse:
    """Average rating, review count and a 1-5 rating histogram. No authentication."""
    if get_settings().stats_cache_enabled:
        stats = cache.get_or_load(
            walker_stats_key(walker_id), lambda: service.get_walker_stats(walker_id)
        )
    else:
        stats = service.get_walker_stats(walker_id)
    return WalkerStatsResponse.from_stats(stats)


@router.get(
    "/{review_id}",
    response_model=ReviewViewResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Not a party of this review"},
        404: {"model": ErrorResponse, "description": "Review not found"},
    },
    summary="Get a review",
)
def get_review(
    review_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ReviewService = Depends(get_review_service),
) -> ReviewViewResponse:
    return ReviewViewResponse.from_view(service.get_review(review_id, actor))
