"""
Unit tests for the API exception handler.
"""
import pytest
from django.http import Http404
from rest_framework.exceptions import MethodNotAllowed, ValidationError

from api.exceptions import custom_exception_handler, domain_status_code
from core.domain.exceptions import (
    AlreadyLicensedError,
    CheckoutNotAllowedError,
    ExternalPaymentIdConflictError,
    InvalidSignatureError,
    InvalidSubscriptionError,
    MissingProductIdError,
    MissingSubscriptionIdError,
    NoActiveLicenseError,
    NoExternalPaymentIdError,
    PaymentProviderError,
    StaleEventError,
)


class TestDomainStatusCode:
    """Tests for mapping domain exceptions to HTTP statuses."""

    @pytest.mark.parametrize(
        "exc,expected",
        [
            (InvalidSignatureError(), 400),
            (StaleEventError(), 400),
            (MissingProductIdError(), 422),
            (InvalidSubscriptionError(), 422),
            (MissingSubscriptionIdError(), 422),
            (NoActiveLicenseError(), 404),
            (AlreadyLicensedError(), 409),
            (ExternalPaymentIdConflictError(), 409),
            (NoExternalPaymentIdError(), 422),
            (CheckoutNotAllowedError(), 422),
            (PaymentProviderError(), 502),
        ],
    )
    def test_mapping(self, exc, expected):
        """Test each exception group maps to its status."""
        assert domain_status_code(exc) == expected


class TestCustomExceptionHandler:
    """Tests for custom_exception_handler."""

    def test_domain_exception(self):
        """Test domain exceptions use their code and message."""
        response = custom_exception_handler(AlreadyLicensedError(), {})

        assert response.status_code == 409
        assert response.data == {
            "error": {"code": "ALREADY_LICENSED", "message": "User already has a license"}
        }

    def test_drf_exception_keeps_headers(self):
        """Test DRF exceptions are wrapped without losing their headers."""
        response = custom_exception_handler(MethodNotAllowed("PUT"), {})

        assert response.status_code == 405
        assert response.data["error"]["code"] == "METHOD_NOT_ALLOWED"

    def test_validation_error_list(self):
        """Test DRF errors whose data is not a dict."""
        response = custom_exception_handler(ValidationError(["bad"]), {})

        assert response.status_code == 400
        assert response.data["error"]["code"] == "INVALID"

    def test_not_found(self):
        """Test Django's Http404."""
        response = custom_exception_handler(Http404(), {})

        assert response.status_code == 404
        assert response.data["error"]["code"] == "NOT_FOUND"

    def test_unexpected_exception(self):
        """Test unknown errors become a 500 without leaking details."""
        response = custom_exception_handler(RuntimeError("db down"), {})

        assert response.status_code == 500
        assert response.data["error"] == {
            "code": "INTERNAL_ERROR",
            "message": "An internal error occurred",
        }
