"""
Vault error taxonomy and the DRF exception handler that renders it.

Services raise these; views let them propagate so every error leaves the API
in the same envelope.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("security.audit")


class VaultError(exceptions.APIException):
    """Base class for errors raised by vault services."""


class Unauthorized(VaultError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "sign-in required"
    default_code = "unauthorized"


class Forbidden(VaultError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have permission to perform this action."
    default_code = "forbidden"


class NotFound(VaultError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"


class Conflict(VaultError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "You have already reviewed this resource."
    default_code = "duplicate_review"


class ValidationError(VaultError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input."
    default_code = "validation_error"

    def __init__(self, detail=None, field=None):
        super().__init__(detail)
        self.field = field


def vault_exception_handler(exc, context):
    """
    Render every error as {"success": false, "error": {code, message, details}}.
    """
    if isinstance(exc, DjangoValidationError):
        exc = ValidationError("; ".join(exc.messages))
    elif isinstance(exc, Http404):
        exc = NotFound(str(exc) or None)

    response = exception_handler(exc, context)

    if response is None:
        logger.exception("Unexpected error: %s", exc)
        return Response(
            {
                "success": False,
                "error": {
                    "code": status.HTTP_500_INTERNAL_SERVER_ERROR,
                    "message": "Internal Server Error",
                    "details": {"detail": "An unexpected error occurred."},
                },
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    _log_security_event(exc, context, response.status_code)
    details = response.data if isinstance(response.data, dict) else {"detail": response.data}
    if isinstance(exc, ValidationError) and exc.field:
        details = {exc.field: [str(exc.detail)]}
    response.data = {
        "success": False,
        "error": {
            "code": response.status_code,
            "message": get_error_message(response.data),
            "details": details,
        },
    }
    return response


def _log_security_event(exc, context, status_code):
    if status_code not in (401, 403):
        return

    request = context.get("request")
    if request is None:
        return

    user = getattr(request, "user", None)
    user_id = user.id if user is not None and user.is_authenticated else None
    event_type = "auth_failed" if status_code == 401 else "permission_denied"

    security_logger.warning(
        "api_security_event type=%s status=%s method=%s path=%s user_id=%s error=%s",
        event_type,
        status_code,
        request.method,
        request.path,
        user_id,
        exc.__class__.__name__,
    )


def get_error_message(data):
    """Extract a user-facing message from DRF response data"""
    if isinstance(data, dict):
        if "detail" in data:
            return str(data["detail"])
        if "non_field_errors" in data:
            return str(data["non_field_errors"][0])
        for key, value in data.items():
            if isinstance(value, list) and value:
                return f"{key}: {value[0]}"
            elif isinstance(value, str):
                return f"{key}: {value}"
    elif isinstance(data, list) and data:
        return str(data[0])
    return str(data)
