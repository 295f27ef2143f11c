"""
Review domain service - Review creation and walker rating aggregates.

Review integrity rests on two rules:

1. Eligibility: a review may only be created by the owner of a walk
   request whose status is COMPLETED at creation time. owner_id and
   walker_id are copied from the walk request and never change afterwards.

2. Uniqueness: at most one review per walk request. The repository insert
   is the enforcement point (UNIQUE constraint on walk_request_id). There
   is deliberately no "does a review exist?" read before the insert; two
   concurrent calls both pass eligibility and exactly one insert wins.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from .authorization import AuthorizationGate, Operation
from .exceptions import Conflict, InvalidState, NotFound, ValidationError
from .paging import page_offset
from .ports import ReviewRepository, UserDirectory, WalkRequestRepository
from .records import (
    RATING_VALUES,
    Actor,
    NewReview,
    Page,
    Pagination,
    PendingReview,
    Review,
    ReviewView,
    Role,
    WalkerStats,
    WalkStatus,
)


def average_rating(histogram: dict[int, int]) -> float:
    """
    Mean rating from a histogram, rounded half-up to one decimal place.

    Returns 0.0 for an empty histogram.
    """
    total = sum(histogram.values())
    if total == 0:
        return 0.0
    weighted = sum(rating * count for rating, count in histogram.items())
    mean = Decimal(weighted) / Decimal(total)
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


@dataclass
class ReviewService:
    """
    Domain service for reviews.

    Holds no state of its own; safe to share between concurrent callers.
    """

    reviews: ReviewRepository
    requests: WalkRequestRepository
    directory: UserDirectory
    gate: AuthorizationGate = field(default_factory=AuthorizationGate)
    max_comment_length: int = 500
    max_page_size: int = 100

    def create_review(
        self,
        actor: Actor,
        walk_request_id: str,
        rating: int,
        comment: str | None = None,
    ) -> Review:
        """
        Create the single review for a completed walk.

        Args:
            actor: Owner submitting the review
            walk_request_id: Reviewed walk
            rating: Integer 1..5
            comment: Optional text, bounded length

        Returns:
            The stored review

        Raises:
            ValidationError: Rating or comment out of bounds
            NotFound: Walk request does not exist
            InvalidState: Walk request is not COMPLETED
            Forbidden: Actor is not the walk's owner
            Conflict: A review already exists for this walk
        """
        self._validate_rating(rating)
        if comment is not None and len(comment) > self.max_comment_length:
            raise ValidationError(
                f"comment must be at most {self.max_comment_length} characters"
            )

        walk = self.requests.get(walk_request_id)
        if walk is None:
            raise NotFound("Walk request not found")
        if walk.status is not WalkStatus.COMPLETED:
            raise InvalidState("Only completed walks may be reviewed")
        self.gate.require(actor, Operation.CREATE_REVIEW, walk)

        review = self.reviews.add(
            NewReview(
                walk_request_id=walk.id,
                owner_id=walk.owner_id,
                walker_id=walk.walker_id,
                rating=rating,
                comment=comment,
            )
        )
        if review is None:
            raise Conflict("A review already exists for this walk")
        return review

    def get_walker_stats(self, walker_id: str) -> WalkerStats:
        """
        Rating aggregate for a walker.

        The distribution always carries every rating value 1..5, zero when
        no review has that rating.

        Raises:
            NotFound: Unknown or inactive walker
        """
        if not self.directory.is_active_walker(walker_id):
            raise NotFound("Walker not found")

        histogram = self.reviews.rating_histogram(walker_id)
        distribution = {rating: 0 for rating in RATING_VALUES}
        for rating, count in histogram.items():
            distribution[rating] = count

        return WalkerStats(
            walker_id=walker_id,
            average_rating=average_rating(distribution),
            total_reviews=sum(distribution.values()),
            rating_distribution=distribution,
        )

    def list_reviews(self, actor: Actor, page: int = 1, limit: int = 10) -> Page[ReviewView]:
        """Reviews written by an owner, or about a walker, newest first."""
        offset = page_offset(page, limit, self.max_page_size)
        if actor.role is Role.OWNER:
            items, total = self.reviews.list_for_party(
                owner_id=actor.id, offset=offset, limit=limit
            )
        else:
            items, total = self.reviews.list_for_party(
                walker_id=actor.id, offset=offset, limit=limit
            )
        return Page(items=items, pagination=Pagination.build(page, limit, total))

    def list_pending_reviews(self, actor: Actor) -> list[PendingReview]:
        """
        Completed walks of an owner that have no review yet.

        Computed as the set difference between the owner's COMPLETED walks
        and the walk ids already present in the owner's reviews.
        """
        self.gate.require(actor, Operation.LIST_PENDING_REVIEWS)
        completed = self.requests.list_completed_for_owner(actor.id)
        reviewed = self.reviews.reviewed_walk_ids(actor.id)
        return [
            PendingReview(
                walk_request_id=summary.request.id,
                scheduled_at=summary.request.scheduled_at,
                duration_min=summary.request.duration_min,
                completed_at=summary.request.completed_at,
                walker=summary.walker,
                pet=summary.pet,
                walker_notes=summary.request.walker_notes,
            )
            for summary in completed
            if summary.request.id not in reviewed
        ]

    def get_review(self, review_id: str, actor: Actor) -> ReviewView:
        """
        Fetch a review visible to its owner or its walker.

        Raises:
            NotFound: No such review
            Forbidden: Actor is neither party of the review
        """
        view = self.reviews.get(review_id)
        if view is None:
            raise NotFound("Review not found")
        self.gate.require(actor, Operation.VIEW_REVIEW, view.review)
        return view

    def _validate_rating(self, rating: int) -> None:
        if isinstance(rating, bool) or not isinstance(rating, int):
            raise ValidationError("rating must be an integer")
        if rating not in RATING_VALUES:
            raise ValidationError("rating must be between 1 and 5")
