"""
API error types and the DRF exception handler that renders them.

Every error response carries a short ``error`` message. Validation errors add a
``details`` list of ``{field, message}`` issues, rate limit errors add a numeric
``retryAfter`` in seconds.
"""
import logging
from typing import Any, Dict, List, Optional

from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response
from rest_framework.settings import api_settings
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ValidationFailed(drf_exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input"
    default_code = "validation_error"

    def __init__(self, issues: List[Dict[str, str]], message: Optional[str] = None):
        super().__init__(detail=message or self.default_detail)
        self.issues = issues

    @classmethod
    def from_serializer_errors(cls, errors, message: Optional[str] = None) -> "ValidationFailed":
        return cls(flatten_errors(errors), message=message)


class RateLimited(drf_exceptions.APIException):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_detail = "Too many requests. Please try again later."
    default_code = "rate_limited"

    def __init__(self, retry_after: int, headers: Optional[Dict[str, str]] = None):
        super().__init__()
        self.retry_after = max(0, int(retry_after))
        self.headers = headers or {}


class UpstreamFailure(drf_exceptions.APIException):
    """The generative model or the storage backend failed or returned garbage."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "The AI service failed to respond. Please try again."
    default_code = "upstream_error"


class Conflict(drf_exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict"
    default_code = "conflict"


def flatten_errors(errors: Any, prefix: str = "") -> List[Dict[str, str]]:
    """Turn nested serializer errors into a flat ``[{field, message}]`` list."""
    issues: List[Dict[str, str]] = []
    if isinstance(errors, dict):
        for field, value in errors.items():
            name = "" if field == api_settings.NON_FIELD_ERRORS_KEY else str(field)
            path = f"{prefix}.{name}" if prefix and name else (name or prefix)
            issues.extend(flatten_errors(value, path))
    elif isinstance(errors, (list, tuple)):
        for idx, value in enumerate(errors):
            if isinstance(value, (dict, list, tuple)):
                issues.extend(flatten_errors(value, f"{prefix}.{idx}" if prefix else str(idx)))
            else:
                issues.append({"field": prefix, "message": str(value)})
    elif errors:
        issues.append({"field": prefix, "message": str(errors)})
    return issues


def _message(detail: Any, fallback: str) -> str:
    if isinstance(detail, str):
        return detail
    if isinstance(detail, dict) and "detail" in detail:
        return str(detail["detail"])
    return fallback


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)

    if response is None:
        view = context.get("view") if isinstance(context, dict) else None
        logger.error("Unhandled exception in %s: %s", view.__class__.__name__ if view else "?", exc, exc_info=True)
        return Response({"error": "Internal server error"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, (drf_exceptions.NotAuthenticated, drf_exceptions.AuthenticationFailed)):
        response.status_code = status.HTTP_401_UNAUTHORIZED
        response.data = {"error": "Unauthorized"}
        return response

    if isinstance(exc, ValidationFailed):
        response.data = {"error": str(exc.detail), "details": exc.issues}
        return response

    if isinstance(exc, drf_exceptions.ValidationError):
        response.data = {"error": "Invalid input", "details": flatten_errors(exc.detail)}
        return response

    if isinstance(exc, RateLimited):
        response.data = {"error": str(exc.detail), "retryAfter": exc.retry_after}
        for name, value in exc.headers.items():
            response[name] = value
        response["Retry-After"] = str(exc.retry_after)
        return response

    response.data = {"error": _message(response.data, "Request failed")}
    return response
