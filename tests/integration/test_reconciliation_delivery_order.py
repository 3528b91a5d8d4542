"""
Integration tests for reconciliation over the Django repository.

Each test delivers the events of one purchase in a given order and checks
the rows left in the database.
"""

import time

import pytest
from asgiref.sync import async_to_sync

from billing.application.handlers.reconciliation_handlers import ReconciliationEngine
from billing.domain.webhook_event import WebhookEvent
from licenses.domain.license import License
from licenses.infrastructure.models import License as LicenseModel

MONTHLY_PRODUCT = "prod_SuYkFqTzEpW78s"

NOW = int(time.time())
PERIOD_END = NOW + 30 * 24 * 3600


def checkout_completed(make_event, user_id="user-1"):
    session = {
        "id": "cs_test_1",
        "object": "checkout.session",
        "mode": "subscription",
        "client_reference_id": user_id,
        "customer": "cus_1",
        "subscription": "sub_1",
        "created": NOW,
        "metadata": {"product_id": MONTHLY_PRODUCT},
    }
    return WebhookEvent.from_payload(make_event("checkout.session.completed", session))


def subscription_event(make_event, status="active", event_type="customer.subscription.created"):
    subscription = {
        "id": "sub_1",
        "object": "subscription",
        "customer": "cus_1",
        "status": status,
        "start_date": NOW - 60,
        "current_period_end": PERIOD_END,
        "metadata": {"user_id": "user-1"},
    }
    return WebhookEvent.from_payload(make_event(event_type, subscription))


def rows(user_id="user-1"):
    return sorted(
        LicenseModel.objects.filter(user_id=user_id).values_list(
            "license_type", "status", "external_payment_id"
        )
    )


@pytest.fixture
def engine(license_repository, payment_gateway, product_catalog):
    """Fixture for a ReconciliationEngine writing through the Django repository."""
    return ReconciliationEngine(
        license_repository=license_repository,
        payment_gateway=payment_gateway,
        catalog=product_catalog,
    )


@pytest.fixture
def trial(license_repository):
    """Fixture for an active free trial stored for user-1."""
    return async_to_sync(license_repository.upsert_license)(
        License.start_trial("user-1", trial_days=14)
    )


@pytest.mark.django_db
@pytest.mark.integration
class TestDeliveryOrderWithDjangoRepository:
    """Both delivery orders converge to one record per purchase."""

    def test_checkout_then_subscription_created(self, engine, make_event):
        """Test checkout first, then subscription.created."""
        async_to_sync(engine.checkout_completed)(checkout_completed(make_event))
        async_to_sync(engine.subscription_created_or_updated)(subscription_event(make_event))

        assert rows() == [("subscription", "active", "sub_1")]
        record = LicenseModel.objects.get(external_payment_id="sub_1")
        assert record.expiration_date is not None

    def test_subscription_created_then_checkout(self, engine, make_event):
        """Test subscription.created first, then checkout."""
        async_to_sync(engine.subscription_created_or_updated)(subscription_event(make_event))
        async_to_sync(engine.checkout_completed)(checkout_completed(make_event))

        assert rows() == [("subscription", "active", "sub_1")]
        # The provider's period end survives the later checkout
        record = LicenseModel.objects.get(external_payment_id="sub_1")
        assert record.expiration_date is not None

    def test_trial_user_checkout_then_subscription_created(self, engine, make_event, trial):
        """Test a trial user's purchase, checkout first."""
        async_to_sync(engine.checkout_completed)(checkout_completed(make_event))
        async_to_sync(engine.subscription_created_or_updated)(subscription_event(make_event))

        assert rows() == [("subscription", "active", "sub_1")]
        assert LicenseModel.objects.get(user_id="user-1").id == trial.id

    def test_trial_user_subscription_created_then_checkout(self, engine, make_event, trial):
        """Test a trial user's purchase, subscription.created first."""
        async_to_sync(engine.subscription_created_or_updated)(subscription_event(make_event))
        async_to_sync(engine.checkout_completed)(checkout_completed(make_event))

        assert rows() == [("subscription", "active", "sub_1")]
        assert LicenseModel.objects.get(user_id="user-1").id == trial.id

    def test_trial_user_incomplete_subscription_then_checkout(self, engine, make_event, trial):
        """Test an incomplete snapshot before checkout leaves no second active record."""
        async_to_sync(engine.subscription_created_or_updated)(
            subscription_event(make_event, status="incomplete")
        )
        assert rows() == [("subscription", "expired", "sub_1")]

        async_to_sync(engine.checkout_completed)(checkout_completed(make_event))
        async_to_sync(engine.subscription_created_or_updated)(
            subscription_event(make_event, event_type="customer.subscription.updated")
        )

        assert rows() == [("subscription", "active", "sub_1")]
        assert LicenseModel.objects.get(user_id="user-1").id == trial.id

    def test_redelivered_checkout_is_noop(self, engine, make_event, trial):
        """Test a redelivered checkout leaves the record as the first delivery wrote it."""
        async_to_sync(engine.checkout_completed)(checkout_completed(make_event))
        before = LicenseModel.objects.get(user_id="user-1").updated_at

        async_to_sync(engine.checkout_completed)(checkout_completed(make_event))

        assert rows() == [("subscription", "active", "sub_1")]
        assert LicenseModel.objects.get(user_id="user-1").updated_at == before
