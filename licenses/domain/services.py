"""
License domain services.

Domain services contain business logic that doesn't naturally
fit within a single entity.
"""
from datetime import datetime
from typing import Iterable, Optional

from core.domain.value_objects import LicenseState, LicenseType
from licenses.domain.license import License, utcnow

_ACTIVE_STATES = {
    LicenseType.FREE_TRIAL: LicenseState.TRIAL_ACTIVE,
    LicenseType.SUBSCRIPTION: LicenseState.SUBSCRIPTION_ACTIVE,
    LicenseType.PERPETUAL: LicenseState.PERPETUAL_ACTIVE,
}


class ActiveLicenseSelector:
    """Domain service picking the license that currently grants access."""

    @staticmethod
    def select(
        licenses: Iterable[License], current_time: Optional[datetime] = None
    ) -> Optional[License]:
        """
        Pick the active license among a user's records.

        Indefinite licenses win over dated ones, later expirations over
        earlier ones, and newer records break remaining ties.

        Args:
            licenses: All records of one user
            current_time: Current time (defaults to now)

        Returns:
            The active License or None
        """
        now = current_time or utcnow()
        active = [license for license in licenses if license.is_active(now)]
        if not active:
            return None

        def sort_key(license: License):
            no_expiration = license.expiration_date is None
            expiration = license.expiration_date or license.created_at
            return (no_expiration, expiration, license.created_at)

        return max(active, key=sort_key)


class LicenseStateResolver:
    """Domain service deriving a user's entitlement state."""

    @staticmethod
    def resolve(
        licenses: Iterable[License], current_time: Optional[datetime] = None
    ) -> LicenseState:
        """
        Derive the entitlement state from a user's records.

        Args:
            licenses: All records of one user
            current_time: Current time (defaults to now)

        Returns:
            LicenseState of the user
        """
        licenses = list(licenses)
        if not licenses:
            return LicenseState.NO_LICENSE

        active = ActiveLicenseSelector.select(licenses, current_time)
        if active is None:
            return LicenseState.EXPIRED
        return _ACTIVE_STATES[active.license_type]
