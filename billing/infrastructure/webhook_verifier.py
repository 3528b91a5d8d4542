"""
Webhook signature verification.

The Stripe SDK checks the v1 signature of the raw body. Freshness is checked
here, in both directions, so that a stale event is reported apart from a
forged one. The body is decoded only after it is authenticated.
"""
import json
import logging
import time
from typing import Optional

import stripe
from django.conf import settings

from billing.domain.webhook_event import WebhookEvent
from core.domain.exceptions import (
    InvalidSignatureError,
    MalformedEventError,
    StaleEventError,
)

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE_SECONDS = 300


def _signed_at(header: str) -> int:
    """Timestamp (t=) of a header the SDK already accepted."""
    for item in header.split(","):
        key, _, value = item.strip().partition("=")
        if key == "t":
            return int(value)
    raise InvalidSignatureError("Missing timestamp in signature header")


class WebhookVerifier:
    """Authenticates raw provider events before anything reads them."""

    def __init__(self, secret: str, tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS):
        """
        Initialize verifier.

        Args:
            secret: Webhook endpoint signing secret
            tolerance_seconds: Maximum allowed clock distance of the timestamp
        """
        self.secret = secret
        self.tolerance_seconds = tolerance_seconds

    @classmethod
    def from_settings(cls) -> "WebhookVerifier":
        return cls(
            secret=settings.STRIPE_WEBHOOK_SECRET,
            tolerance_seconds=getattr(
                settings, "PAYMENT_WEBHOOK_TOLERANCE_SECONDS", DEFAULT_TOLERANCE_SECONDS
            ),
        )

    def verify_header(
        self, payload: bytes, header: Optional[str], now: Optional[float] = None
    ) -> WebhookEvent:
        """
        Authenticate a raw event from its Stripe-Signature header and decode it.

        Args:
            payload: Raw request body
            header: Stripe-Signature header value
            now: Current unix time (defaults to time.time())

        Returns:
            The decoded WebhookEvent

        Raises:
            InvalidSignatureError: If the header is missing or no signature matches
            StaleEventError: If the timestamp is outside the tolerance window
            MalformedEventError: If the authentic body is not a provider event
        """
        if not header:
            raise InvalidSignatureError("Missing signature header")

        try:
            body = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedEventError("Webhook payload is not UTF-8") from e

        try:
            # Freshness is checked below, so the SDK only checks the signature
            stripe.WebhookSignature.verify_header(body, header, self.secret, tolerance=None)
        except stripe.SignatureVerificationError as e:
            logger.debug("Stripe signature verification failed: %s", e)
            raise InvalidSignatureError() from e

        signed_at = _signed_at(header)
        current_time = time.time() if now is None else now
        if abs(current_time - signed_at) > self.tolerance_seconds:
            raise StaleEventError(
                f"Webhook timestamp {signed_at} is more than "
                f"{self.tolerance_seconds}s away from now"
            )

        try:
            event = WebhookEvent.from_payload(json.loads(body))
        except ValueError as e:
            raise MalformedEventError() from e

        if not event.type:
            raise MalformedEventError("Webhook payload has no event type")
        return event
