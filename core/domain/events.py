"""
Domain events base classes and infrastructure.

Domain events record a change to license state after it is stored. They
decouple the reconciliation and license handlers from side effects such as
audit logging and cache invalidation.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict
from uuid import UUID, uuid4


def _serialize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


@dataclass(frozen=True)
class DomainEvent(ABC):
    """
    Base class for all domain events.

    Subclasses add their own attributes in __init__; those attributes make
    up the event payload.
    """

    event_id: UUID
    occurred_at: datetime
    aggregate_id: str
    event_type: str

    def __init_subclass__(cls, **kwargs):
        """Automatically set event_type for subclasses."""
        super().__init_subclass__(**kwargs)
        cls.event_type = cls.__name__

    def __post_init__(self):
        if self.event_id is None:
            object.__setattr__(self, "event_id", uuid4())
        if self.occurred_at is None:
            object.__setattr__(self, "occurred_at", datetime.now(timezone.utc))

    def payload(self) -> Dict[str, Any]:
        """Attributes added by the concrete event, serialized."""
        envelope = {field.name for field in fields(self)}
        return {
            name: _serialize(value)
            for name, value in vars(self).items()
            if name not in envelope
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        return {
            "event_id": str(self.event_id),
            "occurred_at": self.occurred_at.isoformat(),
            "aggregate_id": self.aggregate_id,
            "event_type": self.event_type,
            **self.payload(),
        }


class EventHandler(ABC):
    """Base class for event handlers."""

    @abstractmethod
    async def handle(self, event: DomainEvent) -> None:
        """
        Handle a domain event.

        Args:
            event: The domain event to handle
        """


class EventBus(ABC):
    """Publishes domain events to the handlers subscribed to their type."""

    @abstractmethod
    async def publish(self, event: DomainEvent) -> None:
        """
        Publish a domain event.

        Args:
            event: The domain event to publish
        """

    @abstractmethod
    def subscribe(self, event_type: type, handler: EventHandler) -> None:
        """
        Subscribe a handler to a domain event type.

        Subscribing the same handler class twice to one type is a no-op.
        """

    @abstractmethod
    def clear(self) -> None:
        """Remove every subscription."""
