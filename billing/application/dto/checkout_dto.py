"""
Checkout DTOs.
"""
from dataclasses import dataclass

from core.domain.value_objects import LicenseType


@dataclass(frozen=True)
class CheckoutSessionDTO:
    """Hosted checkout page returned to the client."""

    user_id: str
    product_id: str
    license_type: LicenseType
    session_id: str
    url: str
