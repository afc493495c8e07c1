# ch_core/common/api/exceptions.py
from __future__ import annotations

import uuid
from typing import Any

from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    AuthenticationFailed,
    NotAuthenticated,
    PermissionDenied,
    ValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from ch_core.common.logging import get_logger

log = get_logger(__name__)


def ensure_request_id(request) -> str:
    """
    Ensures request has a stable request_id attribute and returns it.
    Honors an inbound X-Request-Id header when the caller sends one.
    """
    rid = getattr(request, "request_id", None) if request is not None else None
    if not rid and request is not None:
        rid = request.META.get("HTTP_X_REQUEST_ID")
    if not rid:
        rid = uuid.uuid4().hex
    if request is not None:
        setattr(request, "request_id", rid)
    return rid


def build_error_envelope(*, request=None, code: str, message: str, details: Any = None) -> dict[str, Any]:
    """
    Canonical error envelope. Reused by the scope middleware (JsonResponse),
    the DRF exception handler and the PDF bridge.
    """
    rid = ensure_request_id(request)
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "request_id": rid,
        }
    }


class ConflictError(APIException):
    """
    409 Conflict that still flows through the global exception handler.
    Raised when a lifecycle rule blocks an action (e.g. completing a completed audit).
    """
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."
    default_code = "conflict"

    def __init__(self, detail=None, code=None):
        super().__init__(detail=detail or self.default_detail, code=code or self.default_code)


def to_drf_validation_error(exc: DjangoValidationError) -> ValidationError:
    if hasattr(exc, "message_dict"):
        return ValidationError(exc.message_dict)
    return ValidationError({"detail": exc.messages})


def _code_for(exc: Exception, http_status: int) -> str:
    if isinstance(exc, ValidationError):
        return "validation_error"
    if isinstance(exc, (NotAuthenticated, AuthenticationFailed)):
        return "not_authenticated"
    if isinstance(exc, PermissionDenied):
        return "permission_denied"
    if isinstance(exc, Http404):
        return "not_found"
    if isinstance(exc, APIException):
        return getattr(exc, "default_code", "api_error") or "api_error"
    if http_status >= 500:
        return "server_error"
    return "error"


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    request = context.get("request")

    # Services raise Django's ValidationError; surface it as a 400.
    if isinstance(exc, DjangoValidationError):
        exc = to_drf_validation_error(exc)

    response = drf_exception_handler(exc, context)

    if response is None:
        log.exception("Unhandled API error: {}", exc)
        return Response(
            build_error_envelope(
                request=request,
                code="server_error",
                message="Unexpected server error.",
                details=None,
            ),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    http_status = response.status_code
    code = _code_for(exc, http_status)
    data = response.data

    # {"detail": "..."} -> message=detail; extra keys go to details.
    # Anything else (field errors) -> generic message, details=data.
    message = "Request failed."
    details = data

    if isinstance(data, dict) and "detail" in data:
        detail = data.get("detail")
        message = str(detail[0]) if isinstance(detail, list) and detail else str(detail)
        rest = {k: v for k, v in data.items() if k != "detail"}
        details = rest or None
    elif isinstance(data, list) and len(data) == 1 and isinstance(data[0], str):
        # ValidationError("...") with a bare message.
        message = str(data[0])
        details = None

    return Response(
        build_error_envelope(
            request=request,
            code=code,
            message=message,
            details=details,
        ),
        status=http_status,
        headers=response.headers,
    )
