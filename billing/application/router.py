"""
Event router.

Maps a verified event's kind to its handler. Unknown kinds are
acknowledged and ignored so the endpoint stays forward-compatible with
new provider event types.
"""
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping

from billing.domain.webhook_event import EventKind, WebhookEvent

logger = logging.getLogger(__name__)

EventCallback = Callable[[WebhookEvent], Awaitable[Any]]


class RouteOutcome(Enum):
    """Whether an event reached a handler."""

    HANDLED = "handled"
    IGNORED = "ignored"

    def __str__(self) -> str:
        return self.value


class EventRouter:
    """Dispatch table from EventKind to handler coroutine."""

    def __init__(self, handlers: Mapping[EventKind, EventCallback]):
        """
        Initialize router.

        Args:
            handlers: Handler per event kind
        """
        self._handlers = dict(handlers)

    @classmethod
    def for_engine(cls, engine) -> "EventRouter":
        """
        Build the router for a reconciliation engine.

        Args:
            engine: ReconciliationEngine instance

        Returns:
            EventRouter covering every EventKind
        """
        return cls(
            {
                EventKind.CHECKOUT_COMPLETED: engine.checkout_completed,
                EventKind.SUBSCRIPTION_CREATED_OR_UPDATED: engine.subscription_created_or_updated,
                EventKind.SUBSCRIPTION_DELETED: engine.subscription_deleted,
                EventKind.PAYMENT_FAILED: engine.payment_failed,
            }
        )

    async def route(self, event: WebhookEvent) -> RouteOutcome:
        """
        Dispatch an event to its handler.

        Args:
            event: Verified webhook event

        Returns:
            RouteOutcome.HANDLED, or IGNORED for kinds without a handler
        """
        handler = self._handlers.get(event.kind) if event.kind else None
        if handler is None:
            logger.info(
                "Ignoring webhook event %s of type %s",
                event.id,
                event.type,
                extra={"event_id": event.id, "event_type": event.type},
            )
            return RouteOutcome.IGNORED

        await handler(event)
        return RouteOutcome.HANDLED
