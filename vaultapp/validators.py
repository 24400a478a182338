"""Input checks shared by the services and the serializers."""

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email

from .exceptions import ValidationError

MIN_RATING = 1
MAX_RATING = 5


def validate_rating(value):
    # bool is an int subclass; a checkbox must not pass as a rating
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("Rating must be a whole number.", field="rating")
    if not MIN_RATING <= value <= MAX_RATING:
        raise ValidationError(
            f"Rating must be between {MIN_RATING} and {MAX_RATING}.", field="rating"
        )
    return value


def validate_comment(value, required=True):
    comment = (value or "").strip()
    if required and not comment:
        raise ValidationError("Comment cannot be empty.", field="comment")
    max_length = getattr(settings, "REVIEW_COMMENT_MAX_LENGTH", 2000)
    if len(comment) > max_length:
        raise ValidationError(
            f"Comment cannot be longer than {max_length} characters.", field="comment"
        )
    return comment


def normalize_email(value):
    email = (value or "").strip().lower()
    try:
        validate_email(email)
    except DjangoValidationError:
        raise ValidationError("Enter a valid email address.", field="email")
    return email


def normalize_institution(value):
    """Strip surrounding whitespace; an empty result means "no institution"."""
    return (value or "").strip()
