"""
Vault services - the call surface used by the API views.

Resource management:
- create_resource, update_resource, delete_resource
- share_resource, unshare_resource
- record_download
- list_resources (browse and "my uploads", filtered through the policy)

Access:
- evaluate_access, require_access

Reviews (each mutation recomputes the rating summary in the same
transaction, under a row lock on the resource):
- submit_review, edit_review, delete_review, list_reviews

Requests board:
- create_request, list_open_requests, support_request, fulfill_request
"""

import logging

from django.db import IntegrityError, transaction
from django.db.models import F

from .aggregation import rating_aggregator
from .exceptions import Conflict, Forbidden, NotFound, Unauthorized, ValidationError
from .identity import identity_provider
from .models import Resource, ResourceRequest, ResourceShare, Review
from .policy import AccessPolicyEvaluator
from .validators import normalize_email, validate_comment, validate_rating

logger = logging.getLogger(__name__)

policy = AccessPolicyEvaluator()

UPDATABLE_RESOURCE_FIELDS = (
    "title",
    "subject",
    "department",
    "semester",
    "resource_type",
    "file_url",
    "visibility",
)

LISTING_SORTS = {
    "latest": ("-created_at",),
    "highest_rated": ("-average_rating", "-total_ratings", "-created_at"),
    "most_popular": ("-downloads", "-created_at"),
}


# ---------------------------
# Lookups
# ---------------------------

def get_resource(resource_id):
    try:
        return Resource.objects.select_related("owner").get(pk=resource_id)
    except Resource.DoesNotExist:
        raise NotFound(f"Resource {resource_id} not found.")


def _lock_resource(resource_id):
    try:
        return Resource.objects.select_for_update().get(pk=resource_id)
    except Resource.DoesNotExist:
        raise NotFound(f"Resource {resource_id} not found.")


def _get_review(review_id):
    try:
        return Review.objects.get(pk=review_id)
    except Review.DoesNotExist:
        raise NotFound(f"Review {review_id} not found.")


# ---------------------------
# Access
# ---------------------------

def evaluate_access(resource, user):
    """Return the AccessDecision for ``user`` (an auth user or None) on ``resource``."""
    return policy.evaluate(resource, identity_provider.resolve(user))


def require_access(resource, user):
    """Raise Unauthorized or Forbidden unless ``user`` may access ``resource``."""
    requester = identity_provider.resolve(user)
    decision = policy.evaluate(resource, requester)
    if decision.allowed:
        return requester
    if requester is None or not requester.is_eligible:
        raise Unauthorized(decision.reason)
    raise Forbidden(decision.reason)


def _require_owner(resource, user, action):
    requester = identity_provider.require(user)
    if requester.id != resource.owner_id:
        raise Forbidden(f"Only the resource owner can {action}.")
    return requester


# ---------------------------
# Resources
# ---------------------------

def create_resource(owner, restrict_to_institution=False, **fields):
    requester = identity_provider.require_eligible(owner)
    resource = Resource.objects.create(
        owner=owner,
        owner_institution=requester.home_institution,
        restricted_to_institution=requester.home_institution if restrict_to_institution else "",
        **fields,
    )
    logger.info("Resource created id=%s owner=%s visibility=%s", resource.pk, owner.pk, resource.visibility)
    return resource


def update_resource(resource, user, restrict_to_institution=None, **fields):
    _require_owner(resource, user, "edit this resource")

    unknown = set(fields) - set(UPDATABLE_RESOURCE_FIELDS)
    if unknown:
        raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}.")

    for name, value in fields.items():
        setattr(resource, name, value)
    update_fields = list(fields)
    if restrict_to_institution is not None:
        resource.restricted_to_institution = resource.owner_institution if restrict_to_institution else ""
        update_fields.append("restricted_to_institution")

    # rating fields stay out of update_fields; only the aggregator writes them
    if update_fields:
        resource.save(update_fields=update_fields)
    return resource


def delete_resource(resource, user):
    _require_owner(resource, user, "delete this resource")
    resource_id = resource.pk
    resource.delete()
    logger.info("Resource deleted id=%s", resource_id)


def share_resource(resource, user, email):
    _require_owner(resource, user, "share this resource")
    email = normalize_email(email)
    _, created = ResourceShare.objects.get_or_create(resource=resource, email=email)
    if created:
        logger.info("Resource shared id=%s email=%s", resource.pk, email)
    return email


def unshare_resource(resource, user, email):
    _require_owner(resource, user, "unshare this resource")
    email = normalize_email(email)
    ResourceShare.objects.filter(resource=resource, email=email).delete()
    return email


def record_download(resource, user):
    require_access(resource, user)
    Resource.objects.filter(pk=resource.pk).update(downloads=F("downloads") + 1)
    resource.refresh_from_db(fields=["downloads"])
    return resource.file_url


def list_resources(user, subject=None, department=None, semester=None, resource_type=None,
                   visibility=None, sort="latest", mine=False):
    """
    Browse resources, narrowest first: column filters in SQL, then every
    remaining row through the access policy. Only resources the caller may
    open are returned; ``mine`` narrows to the caller's own uploads.
    """
    requester = identity_provider.require(user)
    if sort not in LISTING_SORTS:
        raise ValidationError(
            f"sort must be one of: {', '.join(LISTING_SORTS)}.", field="sort"
        )

    queryset = Resource.objects.select_related("owner").prefetch_related("shares")
    if mine:
        queryset = queryset.filter(owner_id=requester.id)
    if subject:
        queryset = queryset.filter(subject__iexact=subject.strip())
    if department:
        queryset = queryset.filter(department__iexact=department.strip())
    if semester is not None:
        queryset = queryset.filter(semester=semester)
    if resource_type:
        queryset = queryset.filter(resource_type=resource_type)
    if visibility:
        queryset = queryset.filter(visibility=visibility)
    queryset = queryset.order_by(*LISTING_SORTS[sort])

    return [resource for resource in queryset if policy.evaluate(resource, requester).allowed]


# ---------------------------
# Reviews
# ---------------------------

def list_reviews(resource, user):
    require_access(resource, user)
    return resource.reviews.select_related("author").order_by("-created_at")


def submit_review(resource_id, author, rating, comment):
    requester = identity_provider.require_eligible(author)

    with transaction.atomic():
        resource = _lock_resource(resource_id)
        require_access(resource, author)

        rating = validate_rating(rating)
        comment = validate_comment(comment)

        if Review.objects.filter(resource=resource, author_id=requester.id).exists():
            raise Conflict()
        try:
            with transaction.atomic():
                review = Review.objects.create(
                    resource=resource, author=author, rating=rating, comment=comment
                )
        except IntegrityError:
            raise Conflict()

        summary = rating_aggregator.recompute(resource.pk)

    logger.info(
        "Review submitted id=%s resource=%s author=%s average=%.2f total=%d",
        review.pk, resource.pk, requester.id, summary.average_rating, summary.total_ratings,
    )
    return review


def edit_review(review_id, user, rating=None, comment=None):
    requester = identity_provider.require(user)

    resource_id = Review.objects.filter(pk=review_id).values_list("resource_id", flat=True).first()
    if resource_id is None:
        raise NotFound(f"Review {review_id} not found.")

    with transaction.atomic():
        _lock_resource(resource_id)
        review = _get_review(review_id)
        if review.author_id != requester.id:
            raise Forbidden("Only the author can edit this review.")

        update_fields = []
        if rating is not None:
            review.rating = validate_rating(rating)
            update_fields.append("rating")
        if comment is not None:
            review.comment = validate_comment(comment)
            update_fields.append("comment")
        if update_fields:
            review.save(update_fields=update_fields + ["updated_at"])

        rating_aggregator.recompute(resource_id)

    logger.info("Review edited id=%s resource=%s", review.pk, resource_id)
    return review


def delete_review(review_id, user):
    requester = identity_provider.require(user)

    resource_id = Review.objects.filter(pk=review_id).values_list("resource_id", flat=True).first()
    if resource_id is None:
        raise NotFound(f"Review {review_id} not found.")

    with transaction.atomic():
        _lock_resource(resource_id)
        review = _get_review(review_id)
        if review.author_id != requester.id:
            raise Forbidden("Only the author can delete this review.")
        # recomputed below; the post_delete receiver need not repeat it
        review._summary_handled = True
        review.delete()
        summary = rating_aggregator.recompute(resource_id)

    logger.info("Review deleted id=%s resource=%s", review_id, resource_id)
    return summary


# ---------------------------
# Requests board
# ---------------------------

def _get_request(request_id):
    try:
        return ResourceRequest.objects.select_related("requested_by").get(pk=request_id)
    except ResourceRequest.DoesNotExist:
        raise NotFound(f"Request {request_id} not found.")


def create_request(user, title, subject="", semester=None, description=""):
    requester = identity_provider.require_eligible(user)
    title = (title or "").strip()
    if not title:
        raise ValidationError("Title cannot be empty.", field="title")

    resource_request = ResourceRequest.objects.create(
        title=title,
        subject=(subject or "").strip(),
        semester=semester,
        description=(description or "").strip(),
        requested_by=user,
        requested_by_institution=requester.home_institution,
    )
    logger.info("Resource requested id=%s by=%s", resource_request.pk, requester.id)
    return resource_request


def list_open_requests(user):
    """Open requests, most wanted first, newest first among equals."""
    identity_provider.require(user)
    return (
        ResourceRequest.objects.filter(status=ResourceRequest.STATUS_OPEN)
        .select_related("requested_by")
        .order_by("-request_count", "-created_at")
    )


def support_request(request_id, user):
    """Add one to an open request's count; the increment happens in the database."""
    identity_provider.require_eligible(user)

    updated = ResourceRequest.objects.filter(
        pk=request_id, status=ResourceRequest.STATUS_OPEN
    ).update(request_count=F("request_count") + 1)
    if not updated:
        if ResourceRequest.objects.filter(pk=request_id).exists():
            raise Conflict("This request has already been fulfilled.")
        raise NotFound(f"Request {request_id} not found.")

    return _get_request(request_id)


def fulfill_request(request_id, user):
    requester = identity_provider.require(user)
    resource_request = _get_request(request_id)
    if resource_request.requested_by_id != requester.id:
        raise Forbidden("Only the requester can mark this request fulfilled.")

    if resource_request.status != ResourceRequest.STATUS_FULFILLED:
        resource_request.status = ResourceRequest.STATUS_FULFILLED
        resource_request.save(update_fields=["status"])
        logger.info("Resource request fulfilled id=%s", resource_request.pk)
    return resource_request
