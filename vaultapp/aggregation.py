"""
Rating aggregation.

A resource's average_rating/total_ratings are a cache of its live review set.
They are only ever written by recompute(), which rebuilds both from the
reviews table; nothing patches them incrementally.
"""

import logging
from dataclasses import dataclass

from django.db import transaction

from .exceptions import NotFound
from .models import Resource, Review

logger = logging.getLogger(__name__)

RATING_PRECISION = 2


@dataclass(frozen=True)
class RatingSummary:
    average_rating: float
    total_ratings: int


EMPTY_SUMMARY = RatingSummary(0.0, 0)


def summarize(ratings):
    ratings = list(ratings)
    if not ratings:
        return EMPTY_SUMMARY
    return RatingSummary(
        average_rating=round(sum(ratings) / len(ratings), RATING_PRECISION),
        total_ratings=len(ratings),
    )


class RatingAggregator:

    def recompute(self, resource_id):
        """
        Rebuild and persist the rating summary for ``resource_id``.

        Takes a row lock on the resource, so callers already inside a
        transaction that locked it (the review services) keep their lock,
        and standalone callers are serialised against concurrent mutations.
        """
        with transaction.atomic():
            locked = Resource.objects.select_for_update().filter(pk=resource_id).values_list("pk", flat=True)
            if not locked:
                raise NotFound(f"Resource {resource_id} not found.")

            ratings = Review.objects.filter(resource_id=resource_id).values_list("rating", flat=True)
            summary = summarize(ratings)
            Resource.objects.filter(pk=resource_id).update(
                average_rating=summary.average_rating,
                total_ratings=summary.total_ratings,
            )

        logger.debug(
            "Recomputed rating summary resource=%s average=%.2f total=%d",
            resource_id,
            summary.average_rating,
            summary.total_ratings,
        )
        return summary


rating_aggregator = RatingAggregator()
