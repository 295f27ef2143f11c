"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Field names are exposed in camelCase on the wire. Bounds that come from
settings (notes and comment length, page size) are enforced by the domain
services, not here, so raising a setting takes effect everywhere.
"""

from datetime import datetime

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from walkbook.domain.records import (
    Pagination,
    PartySummary,
    PendingReview,
    PetSummary,
    Review,
    ReviewView,
    WalkerStats,
    WalkRequest,
    WalkStatus,
    WalkSummary,
)


class ApiModel(BaseModel):
    """Base model: camelCase aliases, snake_case accepted on input too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateWalkRequestRequest(ApiModel):
    """Request model for creating a walk request."""

    walker_id: str = Field(..., min_length=1)
    pet_id: str = Field(..., min_length=1)
    scheduled_at: AwareDatetime
    duration_min: int = Field(..., gt=0, description="Walk length in minutes")
    notes: str | None = None


class TransitionRequest(ApiModel):
    """Optional walker notes sent with accept/reject/complete."""

    notes: str | None = None


class CreateReviewRequest(ApiModel):
    """Request model for reviewing a completed walk."""

    walk_request_id: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5")
    comment: str | None = None


class PartyResponse(ApiModel):
    id: str
    name: str

    @classmethod
    def from_summary(cls, party: PartySummary) -> "PartyResponse":
        return cls(id=party.id, name=party.name)


class PetResponse(ApiModel):
    id: str
    name: str
    breed: str | None = None

    @classmethod
    def from_summary(cls, pet: PetSummary) -> "PetResponse":
        return cls(id=pet.id, name=pet.name, breed=pet.breed)


class PaginationResponse(ApiModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def from_pagination(cls, pagination: Pagination) -> "PaginationResponse":
        return cls(
            page=pagination.page,
            limit=pagination.limit,
            total=pagination.total,
            pages=pagination.pages,
        )


class WalkRequestResponse(ApiModel):
    """Response model for a walk request record."""

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

    @classmethod
    def from_record(cls, request: WalkRequest) -> "WalkRequestResponse":
        return cls(
            id=request.id,
            owner_id=request.owner_id,
            walker_id=request.walker_id,
            pet_id=request.pet_id,
            status=request.status,
            scheduled_at=request.scheduled_at,
            duration_min=request.duration_min,
            notes=request.notes,
            walker_notes=request.walker_notes,
            completed_at=request.completed_at,
            created_at=request.created_at,
            updated_at=request.updated_at,
        )


class WalkSummaryResponse(WalkRequestResponse):
    """Walk request with owner, walker and pet summaries."""

    owner: PartyResponse
    walker: PartyResponse
    pet: PetResponse

    @classmethod
    def from_summary(cls, summary: WalkSummary) -> "WalkSummaryResponse":
        base = WalkRequestResponse.from_record(summary.request)
        return cls(
            **base.model_dump(),
            owner=PartyResponse.from_summary(summary.owner),
            walker=PartyResponse.from_summary(summary.walker),
            pet=PetResponse.from_summary(summary.pet),
        )


class WalkRequestListResponse(ApiModel):
    walk_requests: list[WalkSummaryResponse]
    pagination: PaginationResponse


class ReviewResponse(ApiModel):
    """Response model for a review record."""

    id: str
    walk_request_id: str
    owner_id: str
    walker_id: str
    rating: int
    comment: str | None
    created_at: datetime

    @classmethod
    def from_record(cls, review: Review) -> "ReviewResponse":
        return cls(
            id=review.id,
            walk_request_id=review.walk_request_id,
            owner_id=review.owner_id,
            walker_id=review.walker_id,
            rating=review.rating,
            comment=review.comment,
            created_at=review.created_at,
        )


class ReviewViewResponse(ReviewResponse):
    """Review with parties and the reviewed walk's pet and schedule."""

    owner: PartyResponse
    walker: PartyResponse
    pet: PetResponse
    scheduled_at: datetime
    duration_min: int

    @classmethod
    def from_view(cls, view: ReviewView) -> "ReviewViewResponse":
        base = ReviewResponse.from_record(view.review)
        return cls(
            **base.model_dump(),
            owner=PartyResponse.from_summary(view.owner),
            walker=PartyResponse.from_summary(view.walker),
            pet=PetResponse.from_summary(view.pet),
            scheduled_at=view.scheduled_at,
            duration_min=view.duration_min,
        )


class ReviewListResponse(ApiModel):
    reviews: list[ReviewViewResponse]
    pagination: PaginationResponse


class PendingReviewResponse(ApiModel):
    walk_request_id: str
    scheduled_at: datetime
    duration_min: int
    completed_at: datetime | None
    walker: PartyResponse
    pet: PetResponse
    walker_notes: str | None

    @classmethod
    def from_pending(cls, pending: PendingReview) -> "PendingReviewResponse":
        return cls(
            walk_request_id=pending.walk_request_id,
            scheduled_at=pending.scheduled_at,
            duration_min=pending.duration_min,
            completed_at=pending.completed_at,
            walker=PartyResponse.from_summary(pending.walker),
            pet=PetResponse.from_summary(pending.pet),
            walker_notes=pending.walker_notes,
        )


class PendingReviewListResponse(ApiModel):
    pending_reviews: list[PendingReviewResponse]


class WalkerStatsResponse(ApiModel):
    """Rating aggregate; ratingDistribution always has keys 1 through 5."""

    walker_id: str
    average_rating: float
    total_reviews: int
    rating_distribution: dict[int, int]

    @classmethod
    def from_stats(cls, stats: WalkerStats) -> "WalkerStatsResponse":
        return cls(
            walker_id=stats.walker_id,
            average_rating=stats.average_rating,
            total_reviews=stats.total_reviews,
            rating_distribution=dict(stats.rating_distribution),
        )


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
