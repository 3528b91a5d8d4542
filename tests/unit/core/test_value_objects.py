"""
Unit tests for core value objects.
"""
from datetime import datetime, timedelta, timezone

import pytest

from core.domain.exceptions import (
    AlreadyLicensedError,
    DomainException,
    InvalidSignatureError,
    MissingUserIdError,
    WebhookPayloadError,
    WebhookTrustError,
)
from core.domain.value_objects import (
    BillingType,
    Entitlement,
    LicenseState,
    LicenseStatus,
    LicenseType,
)

PURCHASED_AT = datetime(2025, 1, 1, tzinfo=timezone.utc)


class TestEnums:
    """Tests for license enums."""

    def test_status_values(self):
        """Test trial is not a status."""
        assert {status.value for status in LicenseStatus} == {"active", "expired"}

    def test_type_values(self):
        """Test license type values."""
        assert str(LicenseType.FREE_TRIAL) == "free_trial"
        assert LicenseType("subscription") == LicenseType.SUBSCRIPTION

    def test_billing_type_values(self):
        """Test billing type values."""
        assert BillingType("one_time") == BillingType.ONE_TIME

    def test_license_states(self):
        """Test the derived states."""
        assert [str(state) for state in LicenseState] == [
            "no_license",
            "trial_active",
            "subscription_active",
            "perpetual_active",
            "expired",
        ]


class TestEntitlement:
    """Tests for Entitlement value object."""

    def test_equality_by_value(self):
        """Test entitlements compare by value."""
        first = Entitlement(LicenseStatus.ACTIVE, PURCHASED_AT, PURCHASED_AT + timedelta(days=1))
        second = Entitlement(LicenseStatus.ACTIVE, PURCHASED_AT, PURCHASED_AT + timedelta(days=1))

        assert first == second
        assert hash(first) == hash(second)

    def test_open_ended(self):
        """Test an entitlement without expiration."""
        entitlement = Entitlement(LicenseStatus.ACTIVE, PURCHASED_AT, None)
        assert entitlement.expiration_date is None

    def test_naive_purchase_date(self):
        """Test naive datetimes are rejected."""
        with pytest.raises(ValueError, match="timezone-aware"):
            Entitlement(LicenseStatus.ACTIVE, datetime(2025, 1, 1), None)

    def test_naive_expiration_date(self):
        """Test naive expiration dates are rejected."""
        with pytest.raises(ValueError, match="timezone-aware"):
            Entitlement(LicenseStatus.ACTIVE, PURCHASED_AT, datetime(2026, 1, 1))

    def test_immutable(self):
        """Test entitlements cannot be modified."""
        entitlement = Entitlement(LicenseStatus.ACTIVE, PURCHASED_AT, None)
        with pytest.raises(AttributeError):
            entitlement.status = LicenseStatus.EXPIRED


class TestDomainExceptions:
    """Tests for domain exception codes."""

    def test_trust_errors(self):
        """Test signature failures are trust errors."""
        error = InvalidSignatureError()
        assert isinstance(error, WebhookTrustError)
        assert error.code == "INVALID_SIGNATURE"

    def test_payload_errors(self):
        """Test payload anomalies keep their code with a custom message."""
        error = MissingUserIdError("Subscription sub_1 has no user")
        assert isinstance(error, WebhookPayloadError)
        assert error.code == "MISSING_USER_ID"
        assert error.message == "Subscription sub_1 has no user"

    def test_default_code(self):
        """Test the class name is the default code."""
        assert DomainException("boom").code == "DomainException"

    def test_already_licensed(self):
        """Test the already licensed message."""
        assert AlreadyLicensedError().message == "User already has a license"
