"""
Value objects for the domain.

Value objects are immutable objects that are defined by their attributes
rather than their identity. They have no identity and are compared by value.
"""
from abc import ABC
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects.

    Value objects are immutable and compared by value.
    """

    def __eq__(self, other):
        """Compare value objects by their attributes."""
        if not isinstance(other, self.__class__):
            return False
        return self.__dict__ == other.__dict__

    def __hash__(self):
        """Make value objects hashable."""
        return hash(tuple(sorted(self.__dict__.items(), key=lambda item: item[0])))


class LicenseStatus(Enum):
    """License status value object."""

    ACTIVE = "active"
    EXPIRED = "expired"

    def __str__(self) -> str:
        """Return status as string."""
        return self.value


class LicenseType(Enum):
    """License type value object."""

    PERPETUAL = "perpetual"
    SUBSCRIPTION = "subscription"
    FREE_TRIAL = "free_trial"

    def __str__(self) -> str:
        """Return license type as string."""
        return self.value


class BillingType(Enum):
    """How a catalog product is paid for."""

    ONE_TIME = "one_time"
    RECURRING = "recurring"

    def __str__(self) -> str:
        return self.value


class LicenseState(Enum):
    """
    Derived view of a user's entitlement.

    Computed from the user's records; never stored.
    """

    NO_LICENSE = "no_license"
    TRIAL_ACTIVE = "trial_active"
    SUBSCRIPTION_ACTIVE = "subscription_active"
    PERPETUAL_ACTIVE = "perpetual_active"
    EXPIRED = "expired"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, eq=False)
class Entitlement(ValueObject):
    """
    What a payment grants: a status and the period it covers.

    expiration_date of None means the entitlement runs until canceled.
    """

    status: LicenseStatus
    purchase_date: datetime
    expiration_date: Optional[datetime]

    def __post_init__(self):
        """Validate the covered period."""
        if self.purchase_date is None:
            raise ValueError("Purchase date is required")
        if self.purchase_date.tzinfo is None:
            raise ValueError("Purchase date must be timezone-aware")
        if self.expiration_date is not None and self.expiration_date.tzinfo is None:
            raise ValueError("Expiration date must be timezone-aware")
