"""
License DTOs for API responses.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from licenses.domain.license import License


@dataclass
class LicenseDTO:
    """DTO for license information."""

    id: uuid.UUID
    user_id: str
    license_type: str
    status: str
    purchase_date: datetime
    expiration_date: Optional[datetime]
    external_customer_id: Optional[str]
    external_payment_id: Optional[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, license: License) -> "LicenseDTO":
        return cls(
            id=license.id,
            user_id=license.user_id,
            license_type=license.license_type.value,
            status=license.status.value,
            purchase_date=license.purchase_date,
            expiration_date=license.expiration_date,
            external_customer_id=license.external_customer_id,
            external_payment_id=license.external_payment_id,
            created_at=license.created_at,
            updated_at=license.updated_at,
        )

    def to_cache(self) -> Dict[str, Any]:
        """Serialize to a cache-safe dict."""
        return {
            "id": str(self.id),
            "user_id": self.user_id,
            "license_type": self.license_type,
            "status": self.status,
            "purchase_date": self.purchase_date.isoformat(),
            "expiration_date": (
                self.expiration_date.isoformat() if self.expiration_date else None
            ),
            "external_customer_id": self.external_customer_id,
            "external_payment_id": self.external_payment_id,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_cache(cls, data: Dict[str, Any]) -> "LicenseDTO":
        """Deserialize from to_cache() output."""
        expiration = data.get("expiration_date")
        return cls(
            id=uuid.UUID(data["id"]),
            user_id=data["user_id"],
            license_type=data["license_type"],
            status=data["status"],
            purchase_date=datetime.fromisoformat(data["purchase_date"]),
            expiration_date=datetime.fromisoformat(expiration) if expiration else None,
            external_customer_id=data.get("external_customer_id"),
            external_payment_id=data.get("external_payment_id"),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )


@dataclass
class CancellationDTO:
    """DTO for a cancellation request acknowledged by the provider."""

    license_id: uuid.UUID
    subscription_id: str
    cancel_at_period_end: bool
    canceled_at: Optional[datetime]
    current_period_end: Optional[datetime]


@dataclass
class LicenseStatusDTO:
    """DTO for the derived entitlement state of a user."""

    user_id: str
    state: str
    active_license: Optional[LicenseDTO]
    license_count: int
