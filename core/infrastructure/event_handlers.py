"""
Event handlers for domain events.

These handlers process domain events for side effects
like audit logging and cache invalidation.
"""

import logging

from core.domain.events import DomainEvent, EventHandler
from licenses.domain.events import LICENSE_EVENTS, PaymentFailed

logger = logging.getLogger(__name__)


class AuditLogEventHandler(EventHandler):
    """
    Event handler for audit logging.

    Writes every domain event to the structured log.
    """

    async def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event for audit logging.

        Args:
            event: Domain event to log
        """
        logger.info(
            "Audit log: %s - %s",
            event.event_type,
            event.aggregate_id,
            extra={"audit": event.to_dict()},
        )


class LicenseCacheInvalidationHandler(EventHandler):
    """
    Event handler for cache invalidation.

    Drops the cached active license of the user a license event concerns.
    """

    async def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event for cache invalidation.

        Args:
            event: Domain event
        """
        from licenses.application.services.license_cache_service import LicenseCacheService

        user_id = getattr(event, "user_id", None)
        if not user_id:
            logger.warning(
                "Could not find user for cache invalidation (event: %s, aggregate_id: %s)",
                event.event_type,
                event.aggregate_id,
            )
            return

        await LicenseCacheService.invalidate_active_license(user_id)
        logger.info("Cache invalidated for user %s (event: %s)", user_id, event.event_type)


def register_event_handlers():
    """Register all event handlers with the event bus."""
    from core.infrastructure.events import event_bus

    audit_handler = AuditLogEventHandler()
    cache_handler = LicenseCacheInvalidationHandler()

    for event_type in LICENSE_EVENTS:
        event_bus.subscribe(event_type, audit_handler)
        event_bus.subscribe(event_type, cache_handler)

    event_bus.subscribe(PaymentFailed, audit_handler)

    logger.info("Event handlers registered")
