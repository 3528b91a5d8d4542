"""
License domain events.

Domain events represent something that happened in the license domain.
"""

import uuid
from datetime import datetime
from typing import Optional

from core.domain.events import DomainEvent


class LicenseEvent(DomainEvent):
    """Base class for events about one license record of one user."""

    def __init__(
        self,
        license_id: uuid.UUID,
        user_id: str,
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize a license event.

        Args:
            license_id: License UUID
            user_id: Owner of the license
            occurred_at: When the event occurred
        """
        super().__init__(
            event_id=None,
            occurred_at=occurred_at,
            aggregate_id=str(license_id),
            event_type=type(self).__name__,
        )
        self.license_id = license_id
        self.user_id = user_id


class LicenseGranted(LicenseEvent):
    """Event raised when a new paid license record is created."""

    def __init__(
        self,
        license_id: uuid.UUID,
        user_id: str,
        license_type: str,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(license_id, user_id, occurred_at)
        self.license_type = license_type


class TrialStarted(LicenseEvent):
    """Event raised when a user starts a free trial."""

    def __init__(
        self,
        license_id: uuid.UUID,
        user_id: str,
        expires_at: datetime,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(license_id, user_id, occurred_at)
        self.expires_at = expires_at


class LicenseUpgraded(LicenseEvent):
    """Event raised when a trial record becomes a paid license in place."""

    def __init__(
        self,
        license_id: uuid.UUID,
        user_id: str,
        license_type: str,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(license_id, user_id, occurred_at)
        self.license_type = license_type


class LicenseReactivated(LicenseEvent):
    """Event raised when an existing subscription record is reused."""


class LicenseUpdated(LicenseEvent):
    """Event raised when a record is overwritten from a provider snapshot."""

    def __init__(
        self,
        license_id: uuid.UUID,
        user_id: str,
        status: str,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(license_id, user_id, occurred_at)
        self.status = status


class LicenseExpired(LicenseEvent):
    """Event raised when a license is marked expired."""


class CancellationRequested(LicenseEvent):
    """Event raised when the provider accepted a cancel-at-period-end request."""

    def __init__(
        self,
        license_id: uuid.UUID,
        user_id: str,
        subscription_id: str,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(license_id, user_id, occurred_at)
        self.subscription_id = subscription_id


class PaymentFailed(DomainEvent):
    """Event raised when the provider reports a failed invoice payment."""

    def __init__(
        self,
        invoice_id: str,
        customer_id: Optional[str],
        subscription_id: Optional[str],
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize PaymentFailed event.

        Args:
            invoice_id: Provider invoice id
            customer_id: Provider customer id
            subscription_id: Provider subscription id
            occurred_at: When the event occurred
        """
        super().__init__(
            event_id=None,
            occurred_at=occurred_at,
            aggregate_id=invoice_id,
            event_type="PaymentFailed",
        )
        self.invoice_id = invoice_id
        self.customer_id = customer_id
        self.subscription_id = subscription_id


LICENSE_EVENTS = (
    LicenseGranted,
    TrialStarted,
    LicenseUpgraded,
    LicenseReactivated,
    LicenseUpdated,
    LicenseExpired,
    CancellationRequested,
)
