"""
License domain entity.

This is the core domain entity representing a user's entitlement.
It contains business logic and is independent of infrastructure.
"""
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Optional

from core.domain.value_objects import Entitlement, LicenseStatus, LicenseType


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class License:
    """
    License domain entity.

    A license records what a user paid for (or is trialing), which provider
    object last wrote it, and until when it is valid. Records are never
    deleted; every transition returns a new instance with the same id.
    """

    id: uuid.UUID
    user_id: str
    license_type: LicenseType
    status: LicenseStatus
    purchase_date: datetime
    expiration_date: Optional[datetime]
    external_customer_id: Optional[str]
    external_payment_id: Optional[str]
    created_at: datetime
    updated_at: datetime

    def __post_init__(self):
        """Validate license entity."""
        if not self.user_id:
            raise ValueError("User ID is required")
        if not isinstance(self.license_type, LicenseType):
            raise ValueError(f"Invalid license type: {self.license_type}")
        if not isinstance(self.status, LicenseStatus):
            raise ValueError(f"Invalid license status: {self.status}")

    @classmethod
    def create(
        cls,
        user_id: str,
        license_type: LicenseType,
        entitlement: Entitlement,
        external_customer_id: Optional[str] = None,
        external_payment_id: Optional[str] = None,
        license_id: Optional[uuid.UUID] = None,
    ) -> "License":
        """
        Create a new License entity.

        Args:
            user_id: Opaque user identifier
            license_type: Kind of license granted
            entitlement: Status and covered period
            external_customer_id: Provider customer id
            external_payment_id: Provider subscription or payment id
            license_id: Optional UUID (generated if not provided)

        Returns:
            License entity instance
        """
        now = utcnow()
        return cls(
            id=license_id or uuid.uuid4(),
            user_id=user_id,
            license_type=license_type,
            status=entitlement.status,
            purchase_date=entitlement.purchase_date,
            expiration_date=entitlement.expiration_date,
            external_customer_id=external_customer_id,
            external_payment_id=external_payment_id,
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def start_trial(
        cls, user_id: str, trial_days: int, current_time: Optional[datetime] = None
    ) -> "License":
        """
        Create an active free trial running for trial_days.

        Args:
            user_id: Opaque user identifier
            trial_days: Length of the trial in days
            current_time: Trial start (defaults to now)

        Returns:
            License entity instance
        """
        started_at = current_time or utcnow()
        return cls.create(
            user_id=user_id,
            license_type=LicenseType.FREE_TRIAL,
            entitlement=Entitlement(
                status=LicenseStatus.ACTIVE,
                purchase_date=started_at,
                expiration_date=started_at + timedelta(days=trial_days),
            ),
        )

    @property
    def is_trial(self) -> bool:
        return self.license_type == LicenseType.FREE_TRIAL

    @property
    def is_subscription(self) -> bool:
        return self.license_type == LicenseType.SUBSCRIPTION

    @property
    def is_perpetual(self) -> bool:
        return self.license_type == LicenseType.PERPETUAL

    def is_active(self, current_time: Optional[datetime] = None) -> bool:
        """
        Check if license currently grants access.

        Args:
            current_time: Current time (defaults to now)

        Returns:
            True if license is active and not past its expiration date
        """
        if self.status != LicenseStatus.ACTIVE:
            return False
        if self.expiration_date:
            check_time = current_time or utcnow()
            if self.expiration_date <= check_time:
                return False
        return True

    def upgrade_to_subscription(
        self, subscription_id: str, external_customer_id: Optional[str] = None
    ) -> "License":
        """
        Turn a free trial into a paid subscription, keeping the same record.

        The provider drives the expiration of a subscription, so the trial's
        end date is cleared.

        Args:
            subscription_id: Provider subscription id
            external_customer_id: Provider customer id, if known

        Returns:
            New License instance of type subscription
        """
        if not self.is_trial:
            raise ValueError("Only a free trial can be upgraded")

        return self._transition(
            license_type=LicenseType.SUBSCRIPTION,
            status=LicenseStatus.ACTIVE,
            expiration_date=None,
            external_payment_id=subscription_id,
            external_customer_id=external_customer_id or self.external_customer_id,
        )

    def reactivate_subscription(
        self, subscription_id: str, external_customer_id: Optional[str] = None
    ) -> "License":
        """
        Point an existing subscription record at a new provider subscription.

        Args:
            subscription_id: Provider subscription id
            external_customer_id: Provider customer id, if known

        Returns:
            New active License instance
        """
        if not self.is_subscription:
            raise ValueError("Only a subscription license can be reactivated")

        return self._transition(
            status=LicenseStatus.ACTIVE,
            expiration_date=None,
            external_payment_id=subscription_id,
            external_customer_id=external_customer_id or self.external_customer_id,
        )

    def apply_entitlement(
        self,
        entitlement: Entitlement,
        license_type: Optional[LicenseType] = None,
        external_payment_id: Optional[str] = None,
        external_customer_id: Optional[str] = None,
    ) -> "License":
        """
        Overwrite status and dates with what the provider reports.

        Args:
            entitlement: Resolved status and covered period
            license_type: New license type (unchanged if None)
            external_payment_id: Provider object id (unchanged if None)
            external_customer_id: Provider customer id (unchanged if None)

        Returns:
            New License instance
        """
        return self._transition(
            license_type=license_type or self.license_type,
            status=entitlement.status,
            purchase_date=entitlement.purchase_date,
            expiration_date=entitlement.expiration_date,
            external_payment_id=external_payment_id or self.external_payment_id,
            external_customer_id=external_customer_id or self.external_customer_id,
        )

    def mark_expired(self) -> "License":
        """
        Create a new License instance with expired status.

        Returns:
            New License instance with expired status
        """
        return self._transition(status=LicenseStatus.EXPIRED)

    def _transition(self, **changes) -> "License":
        return replace(self, updated_at=utcnow(), **changes)
