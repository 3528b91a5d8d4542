"""
CreateCheckoutHandler.

Handler for CreateCheckoutCommand. Opening a checkout writes nothing locally;
the license is granted when the provider reports the checkout completed.
"""
import logging

from billing.application.commands.create_checkout import CreateCheckoutCommand
from billing.application.dto.checkout_dto import CheckoutSessionDTO
from billing.domain.catalog import ProductCatalog
from billing.ports.payment_gateway import PaymentGateway
from core.domain.exceptions import CheckoutNotAllowedError, UnknownProductError
from core.metrics import checkout_sessions_total
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)


class CreateCheckoutHandler:
    """Handler for CreateCheckoutCommand."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        payment_gateway: PaymentGateway,
        catalog: ProductCatalog,
    ):
        """Initialize handler with repository, payment gateway and catalog."""
        self.license_repository = license_repository
        self.payment_gateway = payment_gateway
        self.catalog = catalog

    async def handle(self, command: CreateCheckoutCommand) -> CheckoutSessionDTO:
        """
        Handle create checkout command.

        A user on a free trial may buy; anyone holding an active paid license
        may not.

        Args:
            command: CreateCheckoutCommand

        Returns:
            CheckoutSessionDTO

        Raises:
            UnknownProductError: If the product is not in the catalog
            CheckoutNotAllowedError: If the user already holds an active paid license
            PaymentProviderError: If the provider rejects the request
        """
        product = self.catalog.get(command.product_id)
        if product is None:
            raise UnknownProductError(f"Unknown product {command.product_id}")

        license = await self.license_repository.find_active_license_by_user(command.user_id)
        if license is not None and not license.is_trial:
            raise CheckoutNotAllowedError(
                f"User already has an active {license.license_type} license"
            )

        session = await self.payment_gateway.create_checkout_session(
            command.user_id, product, customer_email=command.customer_email
        )
        checkout_sessions_total.labels(license_type=product.license_type.value).inc()
        logger.info(
            "Checkout %s opened for user %s",
            session.session_id,
            command.user_id,
            extra={
                "user_id": command.user_id,
                "product_id": product.product_id,
                "session_id": session.session_id,
            },
        )

        return CheckoutSessionDTO(
            user_id=command.user_id,
            product_id=product.product_id,
            license_type=product.license_type,
            session_id=session.session_id,
            url=session.url,
        )
