"""Review workflows and rating aggregation."""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction  # type: ignore
from django.db.models import Avg, Count  # type: ignore

from apps.catalog.models import Bookable
from shared.domain.exceptions import DomainError

from .models import Review

logger = logging.getLogger(__name__)

ONE_DECIMAL = Decimal("0.1")


class DuplicateReview(DomainError):
    code = "duplicate_review"


def reviews_for(resource: Bookable):
    return Review.objects.filter(kind=resource.reservation_kind, target_id=resource.pk).select_related("user")


def recompute_rating(resource: Bookable) -> None:
    """Store the mean rating (one decimal, 0 without reviews) and the review count."""
    summary = reviews_for(resource).aggregate(avg=Avg("rating"), count=Count("id"))
    average = summary["avg"]
    resource.rating = (
        Decimal(str(average)).quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP) if average is not None else Decimal("0.0")
    )
    resource.review_count = summary["count"]
    resource.save(update_fields=["rating", "review_count", "updated_at"])


@transaction.atomic
def add_review(user, resource: Bookable, rating: int, comment: str = "") -> Review:
    if reviews_for(resource).filter(user=user).exists():
        raise DuplicateReview(f"You have already reviewed this {resource.reservation_kind}.")
    review = Review.objects.create(
        user=user,
        kind=resource.reservation_kind,
        target_id=resource.pk,
        rating=rating,
        comment=comment,
    )
    recompute_rating(resource)
    logger.info(f"Review {review.pk} added by {user.email} for {review.kind} #{resource.pk}")
    return review


@transaction.atomic
def delete_review(review: Review) -> None:
    target = review.target
    review.delete()
    if target is not None:
        recompute_rating(target)
