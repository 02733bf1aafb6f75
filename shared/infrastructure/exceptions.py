"""Project-wide DRF exception handling."""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError as DjangoValidationError  # type: ignore
from django.db import IntegrityError  # type: ignore
from rest_framework import status  # type: ignore
from rest_framework.exceptions import APIException, ValidationError  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler  # type: ignore

from shared.domain.exceptions import DomainError

logger = logging.getLogger(__name__)


class ConflictError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The request conflicts with the current state of the resource."
    default_code = "conflict"


def _request_context(context) -> str:
    request = context.get("request")
    if request is None:
        return "unknown request"
    user_id = getattr(getattr(request, "user", None), "pk", None)
    return f"{request.method} {request.get_full_path()} (user={user_id})"


def api_exception_handler(exc, context):
    """DRF default handling plus domain, validation and integrity errors."""

    if isinstance(exc, DomainError):
        return Response(
            {"detail": str(exc), "code": exc.code},
            status=exc.status_code,
        )

    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, "error_dict") else exc.messages
        exc = ValidationError(detail=detail)
    elif isinstance(exc, IntegrityError):
        logger.warning(f"Integrity error on {_request_context(context)}: {exc}")
        exc = ConflictError("A record with these values already exists.")

    response = exception_handler(exc, context)

    if response is None:
        logger.error(f"Unhandled error on {_request_context(context)}: {exc}", exc_info=exc)
    elif response.status_code >= 500:
        logger.error(f"Server error on {_request_context(context)}: {exc}")
    return response
