"""
Webhook event domain model.

A verified provider event, reduced to what reconciliation needs.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class EventKind(Enum):
    """Closed set of provider event kinds the service acts upon."""

    CHECKOUT_COMPLETED = "checkout_completed"
    SUBSCRIPTION_CREATED_OR_UPDATED = "subscription_created_or_updated"
    SUBSCRIPTION_DELETED = "subscription_deleted"
    PAYMENT_FAILED = "payment_failed"

    def __str__(self) -> str:
        return self.value


# Provider event type -> kind; everything else is ignored
PROVIDER_EVENT_KINDS = {
    "checkout.session.completed": EventKind.CHECKOUT_COMPLETED,
    "customer.subscription.created": EventKind.SUBSCRIPTION_CREATED_OR_UPDATED,
    "customer.subscription.updated": EventKind.SUBSCRIPTION_CREATED_OR_UPDATED,
    "customer.subscription.deleted": EventKind.SUBSCRIPTION_DELETED,
    "invoice.payment_failed": EventKind.PAYMENT_FAILED,
}


@dataclass(frozen=True)
class WebhookEvent:
    """
    Verified provider event.

    Attributes:
        id: Provider event id
        type: Provider event type, e.g. "checkout.session.completed"
        created: Unix timestamp of event creation
        data: The event's data.object payload
    """

    id: str
    type: str
    created: Optional[int] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "WebhookEvent":
        """
        Build an event from a decoded provider envelope.

        Args:
            payload: Decoded JSON body

        Returns:
            WebhookEvent instance
        """
        if not isinstance(payload, dict):
            raise ValueError("Event payload must be a JSON object")
        data = payload.get("data") or {}
        obj = data.get("object") if isinstance(data, dict) else None
        return cls(
            id=str(payload.get("id") or ""),
            type=str(payload.get("type") or ""),
            created=payload.get("created"),
            data=obj if isinstance(obj, dict) else {},
        )

    @property
    def kind(self) -> Optional[EventKind]:
        """Event kind, or None for types the service does not act upon."""
        return PROVIDER_EVENT_KINDS.get(self.type)
