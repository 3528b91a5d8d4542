"""
Pytest configuration and shared fixtures.
"""

import asyncio
import hashlib
import hmac
import json
import time
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest
from django.conf import settings
from django.core.cache import cache

from billing.domain.catalog import CatalogProduct, ProductCatalog
from billing.ports.payment_gateway import (
    CheckoutSession,
    PaymentGateway,
    SubscriptionCancellation,
)
from core.domain.exceptions import ExternalPaymentIdConflictError
from core.domain.value_objects import LicenseType
from licenses.domain.license import License, utcnow
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository
from licenses.ports.license_repository import LicenseRepository


class InMemoryLicenseRepository(LicenseRepository):
    """LicenseRepository keeping records in a dict, with one asyncio.Lock per user."""

    def __init__(self):
        self.records: Dict[uuid.UUID, License] = {}
        self.writes = 0
        self._locks: Dict[str, asyncio.Lock] = {}

    async def upsert_license(self, license: License) -> License:
        self.writes += 1
        if license.external_payment_id:
            for existing in self.records.values():
                if (
                    existing.external_payment_id == license.external_payment_id
                    and existing.id != license.id
                ):
                    raise ExternalPaymentIdConflictError()
        if license.id in self.records:
            license = replace(license, created_at=self.records[license.id].created_at)
        self.records[license.id] = license
        return license

    async def update_license(self, license_id, **fields) -> Optional[License]:
        current = self.records.get(license_id)
        if current is None:
            return None
        self.writes += 1
        updated = replace(current, updated_at=utcnow(), **fields)
        self.records[license_id] = updated
        return updated

    async def find_by_id(self, license_id) -> Optional[License]:
        return self.records.get(license_id)

    async def find_by_user(self, user_id: str) -> List[License]:
        licenses = [r for r in self.records.values() if r.user_id == user_id]
        return sorted(licenses, key=lambda r: r.created_at, reverse=True)

    async def find_active_license_by_user(self, user_id: str) -> Optional[License]:
        now = utcnow()
        active = [r for r in await self.find_by_user(user_id) if r.is_active(now)]
        if not active:
            return None
        return max(
            active,
            key=lambda r: (
                r.expiration_date is None,
                r.expiration_date or r.created_at,
                r.created_at,
            ),
        )

    async def _latest_of_type(self, user_id: str, license_type: LicenseType) -> Optional[License]:
        for record in await self.find_by_user(user_id):
            if record.license_type == license_type:
                return record
        return None

    async def find_trial_license_by_user(self, user_id: str) -> Optional[License]:
        return await self._latest_of_type(user_id, LicenseType.FREE_TRIAL)

    async def find_subscription_license_by_user(self, user_id: str) -> Optional[License]:
        return await self._latest_of_type(user_id, LicenseType.SUBSCRIPTION)

    async def find_license_by_external_payment_id(
        self, external_payment_id: str
    ) -> Optional[License]:
        for record in self.records.values():
            if record.external_payment_id == external_payment_id:
                return record
        return None

    async def run_serialized(self, user_id: str, work):
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        async with lock:
            return await work()

    def for_user(self, user_id: str) -> List[License]:
        return [r for r in self.records.values() if r.user_id == user_id]


class FakePaymentGateway(PaymentGateway):
    """PaymentGateway recording calls instead of reaching the provider."""

    def __init__(self, customers: Optional[Dict[str, Optional[str]]] = None, error=None):
        self.customers = customers or {}
        self.error = error
        self.customer_lookups: List[str] = []
        self.canceled: List[str] = []
        self.checkouts: List[tuple] = []

    async def get_customer_user_id(self, customer_id: str) -> Optional[str]:
        self.customer_lookups.append(customer_id)
        if self.error:
            raise self.error
        return self.customers.get(customer_id)

    async def cancel_subscription_at_period_end(
        self, subscription_id: str
    ) -> SubscriptionCancellation:
        if self.error:
            raise self.error
        self.canceled.append(subscription_id)
        return SubscriptionCancellation(
            subscription_id=subscription_id,
            cancel_at_period_end=True,
            canceled_at=None,
            current_period_end=datetime(2030, 1, 1, tzinfo=timezone.utc),
        )

    async def create_checkout_session(
        self, user_id: str, product: CatalogProduct, customer_email: Optional[str] = None
    ) -> CheckoutSession:
        if self.error:
            raise self.error
        self.checkouts.append((user_id, product.product_id, customer_email))
        session_id = f"cs_test_{len(self.checkouts)}"
        return CheckoutSession(
            session_id=session_id, url=f"https://checkout.stripe.com/c/pay/{session_id}"
        )


def sign_payload(payload: bytes, secret: str, timestamp: Optional[int] = None) -> str:
    """Build a Stripe-Signature header: v1 is HMAC-SHA256 of "{t}.{body}"."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.".encode() + payload
    signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def provider_event(event_type: str, obj: dict, event_id: Optional[str] = None) -> dict:
    """Build a provider event envelope around a data object."""
    return {
        "id": event_id or f"evt_{uuid.uuid4().hex[:24]}",
        "object": "event",
        "type": event_type,
        "created": int(time.time()),
        "data": {"object": obj},
    }


@pytest.fixture
def memory_license_repository():
    """Fixture for the in-memory LicenseRepository."""
    return InMemoryLicenseRepository()


@pytest.fixture
def payment_gateway():
    """Fixture for a fake PaymentGateway."""
    return FakePaymentGateway()


@pytest.fixture
def product_catalog():
    """Fixture for the configured product catalog."""
    return ProductCatalog.from_config(settings.PAYMENT_PRODUCTS)


@pytest.fixture
def license_repository():
    """Fixture for LicenseRepository."""
    return DjangoLicenseRepository()


@pytest.fixture
def webhook_secret():
    """Fixture for the webhook signing secret used by the test settings."""
    return settings.STRIPE_WEBHOOK_SECRET


@pytest.fixture
def signed_event(webhook_secret):
    """Fixture returning a function that serializes and signs a provider event."""

    def _signed(event: dict, timestamp: Optional[int] = None):
        payload = json.dumps(event).encode()
        return payload, sign_payload(payload, webhook_secret, timestamp)

    return _signed


@pytest.fixture
def api_client():
    """Fixture for DRF API client."""
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def make_event():
    """Fixture returning the provider event envelope builder."""
    return provider_event


@pytest.fixture
def api_payment_gateway(monkeypatch):
    """Fixture replacing the API's payment gateway with a fake."""
    from api.v1 import dependencies

    gateway = FakePaymentGateway()
    monkeypatch.setattr(dependencies, "payment_gateway", gateway)
    return gateway


@pytest.fixture(autouse=True)
def clear_cache():
    """Clear the license cache between tests."""
    cache.clear()
    yield
    cache.clear()
