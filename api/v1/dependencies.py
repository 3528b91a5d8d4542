"""
Composition of the API's collaborators.

Built once when the URL conf is loaded; views read them at request time.
"""
from django.conf import settings

from billing.application.handlers.reconciliation_handlers import ReconciliationEngine
from billing.application.router import EventRouter
from billing.domain.catalog import ProductCatalog
from billing.infrastructure.stripe_gateway import StripePaymentGateway, build_stripe_client
from billing.infrastructure.webhook_verifier import WebhookVerifier
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository

# Initialize adapters (in production, use DI container)
license_repository = DjangoLicenseRepository()
payment_gateway = StripePaymentGateway(
    build_stripe_client(settings.STRIPE_SECRET_KEY, settings.STRIPE_API_VERSION),
    success_url=settings.CHECKOUT_SUCCESS_URL,
    cancel_url=settings.CHECKOUT_CANCEL_URL,
)
product_catalog = ProductCatalog.from_config(settings.PAYMENT_PRODUCTS)


def get_webhook_verifier() -> WebhookVerifier:
    return WebhookVerifier.from_settings()


def get_reconciliation_engine() -> ReconciliationEngine:
    return ReconciliationEngine(
        license_repository=license_repository,
        payment_gateway=payment_gateway,
        catalog=product_catalog,
        perpetual_days=settings.PERPETUAL_LICENSE_DAYS,
    )


def get_event_router() -> EventRouter:
    return EventRouter.for_engine(get_reconciliation_engine())
