"""
App configuration for Entitlement Service.
"""

import logging
import os
import sys

from django.apps import AppConfig
from django.conf import settings

logger = logging.getLogger(__name__)

# Management commands that never serve traffic
_SKIP_OBSERVABILITY_COMMANDS = [
    "migrate",
    "makemigrations",
    "collectstatic",
    "shell",
    "check",
    "createsuperuser",
]


class EntitlementServiceConfig(AppConfig):
    """App configuration for EntitlementService."""

    name = "EntitlementService"
    verbose_name = "Entitlement Service"

    def ready(self):
        """Called when Django starts."""
        # Event handlers are wired in every process, including tests
        self.register_event_handlers()

        if len(sys.argv) > 1 and sys.argv[1] in _SKIP_OBSERVABILITY_COMMANDS:
            return

        # Django's reloader runs the module twice; only the child sets RUN_MAIN
        if os.environ.get("RUN_MAIN") == "false":
            return

        if not getattr(settings, "OTEL_ENABLED", False):
            return

        if not getattr(self, "_observability_ready", False):
            try:
                logger.info("Setting up observability...")
                self.setup_observability()
                self._observability_ready = True
                logger.info("Observability setup complete")
            except Exception as e:  # pylint: disable=broad-exception-caught
                logger.error("Error in AppConfig.ready(): %s", e, exc_info=True)

    def setup_observability(self):
        """Setup OpenTelemetry tracing and the Prometheus exporter."""
        from core.instrumentation import setup_opentelemetry

        setup_opentelemetry()

    def register_event_handlers(self):
        """Register domain event handlers on the event bus."""
        from core.infrastructure.event_handlers import register_event_handlers

        register_event_handlers()
