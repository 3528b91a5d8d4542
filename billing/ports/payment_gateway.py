"""
Payment gateway port (interface).

This defines the payment provider operations the service depends upon.
Implementations are in the infrastructure layer.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from billing.domain.catalog import CatalogProduct


@dataclass(frozen=True)
class SubscriptionCancellation:
    """Provider acknowledgment of a cancel-at-period-end request."""

    subscription_id: str
    cancel_at_period_end: bool
    canceled_at: Optional[datetime]
    current_period_end: Optional[datetime]


@dataclass(frozen=True)
class CheckoutSession:
    """A hosted checkout page opened for one user and product."""

    session_id: str
    url: str


class PaymentGateway(ABC):
    """
    Abstract payment provider gateway.

    This is a port in hexagonal architecture. One instance is built at
    startup and injected into every component that calls the provider.
    """

    @abstractmethod
    async def get_customer_user_id(self, customer_id: str) -> Optional[str]:
        """
        Read the user id stored on a provider customer.

        Args:
            customer_id: Provider customer id

        Returns:
            The user id, or None when the customer is deleted or has none

        Raises:
            PaymentProviderError: If the provider call fails
        """
        pass

    @abstractmethod
    async def cancel_subscription_at_period_end(
        self, subscription_id: str
    ) -> SubscriptionCancellation:
        """
        Ask the provider to end a subscription when its current period ends.

        Args:
            subscription_id: Provider subscription id

        Returns:
            SubscriptionCancellation

        Raises:
            PaymentProviderError: If the provider call fails
        """
        pass

    @abstractmethod
    async def create_checkout_session(
        self, user_id: str, product: CatalogProduct, customer_email: Optional[str] = None
    ) -> CheckoutSession:
        """
        Open a hosted checkout page for a catalog product.

        The session carries the user id as its client reference and the
        product id in its metadata, which is what the completed checkout
        event is reconciled from.

        Args:
            user_id: Application user id
            product: Catalog product being bought
            customer_email: Email to prefill on the checkout page

        Returns:
            CheckoutSession

        Raises:
            PaymentProviderError: If the provider call fails
        """
        pass
