"""
Stripe implementation of PaymentGateway port.

Wraps a single stripe.StripeClient built at startup. Blocking SDK calls run
in a worker thread so that they never hold the request's database thread.
"""
import logging
from typing import Any, Optional

import stripe
from asgiref.sync import sync_to_async

from billing.domain.catalog import CatalogProduct
from billing.domain.entitlement_resolver import from_timestamp
from billing.ports.payment_gateway import (
    CheckoutSession,
    PaymentGateway,
    SubscriptionCancellation,
)
from core.domain.exceptions import PaymentProviderError

logger = logging.getLogger(__name__)


def build_stripe_client(api_key: str, api_version: Optional[str] = None) -> stripe.StripeClient:
    """
    Build the process-wide Stripe client.

    Args:
        api_key: Stripe secret key
        api_version: Pinned Stripe API version

    Returns:
        stripe.StripeClient instance
    """
    if api_version:
        return stripe.StripeClient(api_key, stripe_version=api_version)
    return stripe.StripeClient(api_key)


def _metadata_value(obj: Any, key: str) -> Optional[str]:
    metadata = getattr(obj, "metadata", None)
    if not metadata:
        return None
    try:
        return metadata[key] or None
    except KeyError:
        return None


def _subscription_period_end(subscription: Any) -> Optional[int]:
    """Period end, read from the first item on API versions that moved it there."""
    period_end = getattr(subscription, "current_period_end", None)
    if period_end is not None:
        return period_end
    try:
        return subscription["items"]["data"][0]["current_period_end"]
    except (KeyError, IndexError, TypeError):
        return None


class StripePaymentGateway(PaymentGateway):
    """Stripe adapter for the payment gateway port."""

    def __init__(
        self,
        client: stripe.StripeClient,
        success_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
    ):
        """
        Initialize gateway.

        Args:
            client: Shared Stripe client
            success_url: Where checkout returns after payment
            cancel_url: Where checkout returns when abandoned
        """
        self._client = client
        self.success_url = success_url
        self.cancel_url = cancel_url

    def _retrieve_customer(self, customer_id: str):
        return self._client.customers.retrieve(customer_id)

    def _cancel_at_period_end(self, subscription_id: str):
        return self._client.subscriptions.update(
            subscription_id, params={"cancel_at_period_end": True}
        )

    async def get_customer_user_id(self, customer_id: str) -> Optional[str]:
        """
        Read the user id stored on a Stripe customer.

        Args:
            customer_id: Stripe customer id

        Returns:
            metadata.user_id of the customer, or None
        """
        try:
            customer = await sync_to_async(self._retrieve_customer, thread_sensitive=False)(
                customer_id
            )
        except stripe.StripeError as e:
            logger.error("Stripe customer lookup failed for %s: %s", customer_id, e)
            raise PaymentProviderError(f"Could not retrieve customer {customer_id}") from e

        if getattr(customer, "deleted", False):
            logger.warning("Stripe customer %s is deleted", customer_id)
            return None

        return _metadata_value(customer, "user_id")

    async def cancel_subscription_at_period_end(
        self, subscription_id: str
    ) -> SubscriptionCancellation:
        """
        Set cancel_at_period_end on a Stripe subscription.

        Args:
            subscription_id: Stripe subscription id

        Returns:
            SubscriptionCancellation
        """
        try:
            subscription = await sync_to_async(
                self._cancel_at_period_end, thread_sensitive=False
            )(subscription_id)
        except stripe.StripeError as e:
            logger.error("Stripe cancellation failed for %s: %s", subscription_id, e)
            raise PaymentProviderError(
                f"Could not cancel subscription {subscription_id}"
            ) from e

        logger.info("Stripe subscription %s set to cancel at period end", subscription_id)
        return SubscriptionCancellation(
            subscription_id=subscription_id,
            cancel_at_period_end=bool(getattr(subscription, "cancel_at_period_end", True)),
            canceled_at=from_timestamp(getattr(subscription, "canceled_at", None)),
            current_period_end=from_timestamp(_subscription_period_end(subscription)),
        )

    def _default_price_id(self, product_id: str) -> str:
        product = self._client.products.retrieve(product_id, params={"expand": ["default_price"]})
        price = getattr(product, "default_price", None)
        if not price:
            raise PaymentProviderError(f"Product {product_id} has no default price")
        return price if isinstance(price, str) else price.id

    def _create_checkout_session(
        self, user_id: str, product: CatalogProduct, customer_email: Optional[str]
    ):
        price_id = product.price_id or self._default_price_id(product.product_id)
        params = {
            "mode": product.checkout_mode,
            "line_items": [{"price": price_id, "quantity": 1}],
            "client_reference_id": user_id,
            "metadata": {"user_id": user_id, "product_id": product.product_id},
            "allow_promotion_codes": True,
        }
        if self.success_url:
            params["success_url"] = self.success_url
        if self.cancel_url:
            params["cancel_url"] = self.cancel_url
        if customer_email:
            params["customer_email"] = customer_email
        if product.checkout_mode == "subscription":
            # Later subscription events resolve the user without a customer lookup
            params["subscription_data"] = {"metadata": {"user_id": user_id}}
        else:
            params["customer_creation"] = "always"
        return self._client.checkout.sessions.create(params=params)

    async def create_checkout_session(
        self, user_id: str, product: CatalogProduct, customer_email: Optional[str] = None
    ) -> CheckoutSession:
        """
        Create a Stripe Checkout session for a catalog product.

        Args:
            user_id: Application user id, sent as client_reference_id
            product: Catalog product, its id sent as metadata.product_id
            customer_email: Email to prefill

        Returns:
            CheckoutSession
        """
        try:
            session = await sync_to_async(
                self._create_checkout_session, thread_sensitive=False
            )(user_id, product, customer_email)
        except stripe.StripeError as e:
            logger.error(
                "Stripe checkout creation failed for user %s, product %s: %s",
                user_id,
                product.product_id,
                e,
            )
            raise PaymentProviderError(
                f"Could not create checkout session for {product.product_id}"
            ) from e

        if not getattr(session, "url", None):
            raise PaymentProviderError(f"Checkout session {session.id} has no url")

        logger.info(
            "Stripe checkout session %s created for user %s",
            session.id,
            user_id,
            extra={"user_id": user_id, "product_id": product.product_id},
        )
        return CheckoutSession(session_id=session.id, url=session.url)
