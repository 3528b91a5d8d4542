"""
Unit tests for WebhookVerifier.
"""
import hashlib
import hmac
import json

import pytest

from billing.domain.webhook_event import EventKind
from billing.infrastructure.webhook_verifier import WebhookVerifier
from core.domain.exceptions import (
    InvalidSignatureError,
    MalformedEventError,
    StaleEventError,
)

SECRET = "whsec_unit"
NOW = 1_760_000_000


def signature_header(payload: bytes, timestamp: int = NOW, secret: str = SECRET) -> str:
    signed = f"{timestamp}.".encode() + payload
    signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


@pytest.fixture
def verifier():
    """Fixture for a WebhookVerifier with a 300s tolerance."""
    return WebhookVerifier(SECRET, tolerance_seconds=300)


@pytest.fixture
def payload():
    """Fixture for a raw checkout event body."""
    return json.dumps(
        {
            "id": "evt_1",
            "type": "checkout.session.completed",
            "created": NOW,
            "data": {"object": {"id": "cs_1", "mode": "subscription"}},
        }
    ).encode()


class TestWebhookVerifier:
    """Tests for WebhookVerifier."""

    def test_valid_event(self, verifier, payload):
        """Test an authentic, fresh event is decoded."""
        event = verifier.verify_header(payload, signature_header(payload), now=NOW)

        assert event.id == "evt_1"
        assert event.type == "checkout.session.completed"
        assert event.kind == EventKind.CHECKOUT_COMPLETED
        assert event.data == {"id": "cs_1", "mode": "subscription"}

    def test_any_presented_signature_may_match(self, verifier, payload):
        """Test a header carrying a rotated-out signature next to the valid one."""
        header = signature_header(payload).replace("v1=", "v1=deadbeef,v1=", 1)

        assert verifier.verify_header(payload, header, now=NOW).id == "evt_1"

    def test_tampered_body(self, verifier, payload):
        """Test a modified body fails verification."""
        header = signature_header(payload)

        with pytest.raises(InvalidSignatureError):
            verifier.verify_header(payload.replace(b"evt_1", b"evt_2"), header, now=NOW)

    def test_wrong_secret(self, verifier, payload):
        """Test a signature made with another secret fails verification."""
        header = signature_header(payload, secret="whsec_other")

        with pytest.raises(InvalidSignatureError):
            verifier.verify_header(payload, header, now=NOW)

    @pytest.mark.parametrize(
        "header", [None, "", "t=1760000000", "v1=abc", "garbage", "t=soon,v1=abc"]
    )
    def test_incomplete_header(self, verifier, payload, header):
        """Test headers without a usable timestamp or v1 signature are rejected."""
        with pytest.raises(InvalidSignatureError):
            verifier.verify_header(payload, header, now=NOW)

    @pytest.mark.parametrize("offset", [301, -301, 3600])
    def test_stale_timestamp(self, verifier, payload, offset):
        """Test a correctly signed event outside the window is rejected."""
        header = signature_header(payload, timestamp=NOW - offset)

        with pytest.raises(StaleEventError):
            verifier.verify_header(payload, header, now=NOW)

    def test_timestamp_at_tolerance_edge(self, verifier, payload):
        """Test an event exactly at the tolerance limit is accepted."""
        header = signature_header(payload, timestamp=NOW - 300)

        assert verifier.verify_header(payload, header, now=NOW).id == "evt_1"

    def test_signature_checked_before_freshness(self, verifier, payload):
        """Test a forged stale event reports the signature failure."""
        header = signature_header(payload, timestamp=NOW - 3600, secret="whsec_other")

        with pytest.raises(InvalidSignatureError):
            verifier.verify_header(payload, header, now=NOW)

    def test_unsigned_garbage_reports_signature(self, verifier):
        """Test an unauthenticated body is never decoded."""
        header = signature_header(b"{}", secret="whsec_other")

        with pytest.raises(InvalidSignatureError):
            verifier.verify_header(b"not json", header, now=NOW)

    @pytest.mark.parametrize("body", [b"not json", b"[1, 2]", b'{"id": "evt_1"}'])
    def test_malformed_body(self, verifier, body):
        """Test authentic bodies that are not provider events."""
        with pytest.raises(MalformedEventError):
            verifier.verify_header(body, signature_header(body), now=NOW)

    def test_non_utf8_body(self, verifier):
        """Test a body that is not UTF-8."""
        body = b"\xff\xfe"

        with pytest.raises(MalformedEventError):
            verifier.verify_header(body, signature_header(body), now=NOW)

    def test_from_settings(self, settings):
        """Test the verifier reads its secret and tolerance from settings."""
        settings.STRIPE_WEBHOOK_SECRET = "whsec_from_settings"
        settings.PAYMENT_WEBHOOK_TOLERANCE_SECONDS = 60

        verifier = WebhookVerifier.from_settings()

        assert verifier.secret == "whsec_from_settings"
        assert verifier.tolerance_seconds == 60
