"""
CancelLicenseHandler.

Handler for CancelLicenseCommand. Cancellation only asks the payment
provider to stop renewing; the license stays active until the provider's
subscription.deleted event expires it.
"""
import logging

from billing.ports.payment_gateway import PaymentGateway
from core.domain.exceptions import NoActiveLicenseError, NoExternalPaymentIdError
from core.infrastructure.events import event_bus
from licenses.application.commands.cancel_license import CancelLicenseCommand
from licenses.application.dto.license_dto import CancellationDTO
from licenses.domain.events import CancellationRequested
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)


class CancelLicenseHandler:
    """Handler for CancelLicenseCommand."""

    def __init__(self, license_repository: LicenseRepository, payment_gateway: PaymentGateway):
        """Initialize handler with repository and payment gateway."""
        self.license_repository = license_repository
        self.payment_gateway = payment_gateway

    async def handle(self, command: CancelLicenseCommand) -> CancellationDTO:
        """
        Handle cancel license command.

        Args:
            command: CancelLicenseCommand

        Returns:
            CancellationDTO

        Raises:
            NoActiveLicenseError: If the user holds no active license
            NoExternalPaymentIdError: If the license is not backed by a subscription
            PaymentProviderError: If the provider rejects the request
        """
        license = await self.license_repository.find_active_license_by_user(command.user_id)
        if license is None:
            raise NoActiveLicenseError()

        if not license.external_payment_id:
            raise NoExternalPaymentIdError()
        if not license.is_subscription:
            raise NoExternalPaymentIdError(
                f"License {license.id} is a {license.license_type} license, not a subscription"
            )

        cancellation = await self.payment_gateway.cancel_subscription_at_period_end(
            license.external_payment_id
        )
        logger.info(
            "Cancellation requested for license %s",
            license.id,
            extra={
                "license_id": str(license.id),
                "user_id": license.user_id,
                "subscription_id": license.external_payment_id,
                "reason": command.reason,
            },
        )

        await event_bus.publish(
            CancellationRequested(
                license_id=license.id,
                user_id=license.user_id,
                subscription_id=license.external_payment_id,
            )
        )

        return CancellationDTO(
            license_id=license.id,
            subscription_id=cancellation.subscription_id,
            cancel_at_period_end=cancellation.cancel_at_period_end,
            canceled_at=cancellation.canceled_at,
            current_period_end=cancellation.current_period_end,
        )
