"""
API exception handlers.

Every error leaves the API as {"error": {"code": ..., "message": ...}}.
Domain exceptions are mapped to HTTP statuses; anything unexpected becomes a
500 so that the payment provider redelivers the event.
"""

import logging
from typing import Any, Dict, Optional

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.domain.exceptions import (
    AlreadyLicensedError,
    CheckoutNotAllowedError,
    DomainException,
    ExternalPaymentIdConflictError,
    LicenseNotFoundError,
    NoActiveLicenseError,
    NoExternalPaymentIdError,
    PaymentProviderError,
    WebhookPayloadError,
    WebhookTrustError,
)
from core.metrics import errors_total

logger = logging.getLogger(__name__)

# Checked in order; the first matching base class wins
DOMAIN_STATUS_CODES = (
    (WebhookTrustError, status.HTTP_400_BAD_REQUEST),
    (WebhookPayloadError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    ((LicenseNotFoundError, NoActiveLicenseError), status.HTTP_404_NOT_FOUND),
    ((AlreadyLicensedError, ExternalPaymentIdConflictError), status.HTTP_409_CONFLICT),
    ((NoExternalPaymentIdError, CheckoutNotAllowedError), status.HTTP_422_UNPROCESSABLE_ENTITY),
    (PaymentProviderError, status.HTTP_502_BAD_GATEWAY),
)


def custom_exception_handler(exc: Exception, context: Dict[str, Any]) -> Response:
    """Custom exception handler for REST API."""
    trace_id = _get_trace_id(context)
    endpoint = _get_endpoint(context)

    if isinstance(exc, DomainException):
        status_code = domain_status_code(exc)
        errors_total.labels(error_type=exc.code, endpoint=endpoint).inc()
        log = logger.error if status_code >= 500 else logger.warning
        log(
            "Domain exception: %s - %s",
            exc.code,
            exc.message,
            extra={"trace_id": trace_id, "endpoint": endpoint},
        )
        return _error_response(exc.code, exc.message, status_code, trace_id)

    if isinstance(exc, APIException):
        response = exception_handler(exc, context)
        if response is not None:
            code = exc.default_code.upper().replace("-", "_")
            message = response.data
            if isinstance(message, dict):
                message = message.get("detail", exc.default_detail)
            return _error_response(code, message, response.status_code, trace_id, response)

    if isinstance(exc, Http404):
        return _error_response(
            "NOT_FOUND", "Resource not found", status.HTTP_404_NOT_FOUND, trace_id
        )

    errors_total.labels(error_type=type(exc).__name__, endpoint=endpoint).inc()
    logger.error(
        "Unexpected error: %s",
        exc,
        extra={"trace_id": trace_id, "endpoint": endpoint},
        exc_info=True,
    )
    return _error_response(
        "INTERNAL_ERROR",
        "An internal error occurred",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        trace_id,
    )


def domain_status_code(exc: DomainException) -> int:
    """HTTP status for a domain exception."""
    for exc_types, status_code in DOMAIN_STATUS_CODES:
        if isinstance(exc, exc_types):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def _error_response(
    code: str,
    message: Any,
    status_code: int,
    trace_id: Optional[str],
    response: Optional[Response] = None,
) -> Response:
    body = {"error": {"code": code, "message": message}}
    if response is None:
        response = Response(body, status=status_code)
    else:
        # Keep headers DRF set, e.g. Allow or WWW-Authenticate
        response.data = body
    if trace_id:
        response["X-Trace-ID"] = trace_id
    return response


def _get_trace_id(context: Dict[str, Any]) -> Optional[str]:
    """Extract trace ID from request context."""
    request = context.get("request")
    if not request:
        return None
    return getattr(request, "trace_id", getattr(request, "correlation_id", None))


def _get_endpoint(context: Dict[str, Any]) -> str:
    view = context.get("view")
    return type(view).__name__ if view is not None else "unknown"
