"""
Unit tests for the in-memory event bus and event handlers.
"""
import uuid
from datetime import datetime, timezone

import pytest

from core.domain.events import EventHandler
from core.infrastructure.event_handlers import (
    AuditLogEventHandler,
    LicenseCacheInvalidationHandler,
)
from core.infrastructure.events import InMemoryEventBus
from licenses.application.dto.license_dto import LicenseDTO
from licenses.application.services.license_cache_service import LicenseCacheService
from licenses.domain.events import LicenseExpired, LicenseGranted, PaymentFailed, TrialStarted
from licenses.domain.license import License


class RecordingHandler(EventHandler):
    def __init__(self):
        self.events = []

    async def handle(self, event):
        self.events.append(event)


class FailingHandler(EventHandler):
    async def handle(self, event):
        raise RuntimeError("handler failed")


class TestDomainEvents:
    """Tests for license domain events."""

    def test_defaults(self):
        """Test id, timestamp and type are filled in."""
        license_id = uuid.uuid4()
        event = LicenseGranted(license_id, "u1", "subscription")

        assert event.event_id is not None
        assert event.occurred_at.tzinfo is not None
        assert event.event_type == "LicenseGranted"
        assert event.aggregate_id == str(license_id)

    def test_to_dict(self):
        """Test serialization includes the license and user."""
        license_id = uuid.uuid4()
        data = LicenseExpired(license_id, "u1").to_dict()

        assert data["license_id"] == str(license_id)
        assert data["user_id"] == "u1"
        assert data["event_type"] == "LicenseExpired"

    def test_payload_serializes_event_attributes(self):
        """Test event-specific attributes are part of the payload."""
        expires_at = datetime(2025, 7, 1, tzinfo=timezone.utc)
        event = TrialStarted(uuid.uuid4(), "u1", expires_at)

        payload = event.payload()

        assert payload["expires_at"] == "2025-07-01T00:00:00+00:00"
        assert payload["user_id"] == "u1"
        assert "event_id" not in payload

    def test_payment_failed(self):
        """Test payment failures are keyed by invoice."""
        event = PaymentFailed("in_1", "cus_1", "sub_1")

        assert event.aggregate_id == "in_1"
        assert event.subscription_id == "sub_1"


@pytest.mark.asyncio
class TestInMemoryEventBus:
    """Tests for InMemoryEventBus."""

    async def test_publish_to_subscribers(self):
        """Test events reach handlers subscribed to their type only."""
        bus = InMemoryEventBus()
        handler = RecordingHandler()
        bus.subscribe(LicenseGranted, handler)

        granted = LicenseGranted(uuid.uuid4(), "u1", "perpetual")
        await bus.publish(granted)
        await bus.publish(LicenseExpired(uuid.uuid4(), "u1"))

        assert handler.events == [granted]

    async def test_subscribe_is_idempotent(self):
        """Test subscribing the same handler type twice delivers once."""
        bus = InMemoryEventBus()
        handler = RecordingHandler()
        bus.subscribe(LicenseExpired, handler)
        bus.subscribe(LicenseExpired, RecordingHandler())

        await bus.publish(LicenseExpired(uuid.uuid4(), "u1"))

        assert len(handler.events) == 1

    async def test_failing_handler_does_not_reach_publisher(self):
        """Test a handler failure neither propagates nor blocks other handlers."""
        bus = InMemoryEventBus()
        handler = RecordingHandler()
        bus.subscribe(LicenseExpired, FailingHandler())
        bus.subscribe(LicenseExpired, handler)

        await bus.publish(LicenseExpired(uuid.uuid4(), "u1"))

        assert len(handler.events) == 1

    async def test_no_subscribers(self):
        """Test publishing without subscribers is a no-op."""
        await InMemoryEventBus().publish(LicenseExpired(uuid.uuid4(), "u1"))

    async def test_clear(self):
        """Test clear removes every subscription."""
        bus = InMemoryEventBus()
        handler = RecordingHandler()
        bus.subscribe(LicenseExpired, handler)
        bus.clear()

        await bus.publish(LicenseExpired(uuid.uuid4(), "u1"))

        assert handler.events == []


@pytest.mark.asyncio
class TestEventHandlers:
    """Tests for audit and cache invalidation handlers."""

    async def test_audit_log(self, caplog):
        """Test the audit handler logs the serialized event."""
        event = LicenseExpired(uuid.uuid4(), "u1")

        with caplog.at_level("INFO", logger="core.infrastructure.event_handlers"):
            await AuditLogEventHandler().handle(event)

        record = caplog.records[-1]
        assert record.audit["event_type"] == "LicenseExpired"
        assert record.audit["user_id"] == "u1"

    async def test_cache_invalidation(self):
        """Test a license event drops the user's cached active license."""
        license = License.start_trial("u-cache", trial_days=14)
        await LicenseCacheService.set_active_license("u-cache", LicenseDTO.from_entity(license))
        assert await LicenseCacheService.get_active_license("u-cache") is not None

        await LicenseCacheInvalidationHandler().handle(LicenseExpired(license.id, "u-cache"))

        assert await LicenseCacheService.get_active_license("u-cache") is None
