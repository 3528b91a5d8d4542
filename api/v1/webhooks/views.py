"""
Webhook API views.

The payment provider posts signed events here. Authentic events are routed
to the reconciliation engine and acknowledged; events whose payload can never
be reconciled are acknowledged as rejected so that the provider stops
redelivering them.
"""

import logging

from asgiref.sync import async_to_sync
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from api.v1 import dependencies
from api.v1.webhooks.serializers import WebhookAckSerializer
from core.domain.exceptions import WebhookPayloadError, WebhookTrustError
from core.instrumentation import Status, StatusCode, get_tracer
from core.metrics import webhook_events_total, webhook_processing_duration_seconds

logger = logging.getLogger(__name__)

tracer = get_tracer(__name__)

SIGNATURE_HEADER = "Stripe-Signature"


class StripeWebhookView(APIView):
    """View receiving Stripe events."""

    authentication_classes = []
    permission_classes = []

    @extend_schema(
        operation_id="stripe_webhook",
        summary="Receive Stripe Event",
        description=(
            "Verify, route and reconcile a Stripe event. Unknown event types are "
            "acknowledged and ignored."
        ),
        tags=["Webhooks"],
        parameters=[
            OpenApiParameter(
                name=SIGNATURE_HEADER,
                type=str,
                location=OpenApiParameter.HEADER,
                required=True,
                description="Stripe signature header (t=<timestamp>,v1=<signature>)",
            ),
        ],
        request={"application/json": {"type": "object"}},
        responses={
            200: WebhookAckSerializer,
            400: {"description": "Invalid signature, stale timestamp or malformed body"},
            502: {"description": "Payment provider request failed"},
        },
    )
    def post(self, request: Request) -> Response:
        """Receive a Stripe event."""
        payload = request.body
        signature_header = request.headers.get(SIGNATURE_HEADER)
        return async_to_sync(self._handle_webhook)(payload, signature_header)

    async def _handle_webhook(self, payload: bytes, signature_header) -> Response:
        """Async handler for a Stripe event."""
        with tracer.start_as_current_span("stripe_webhook") as span:
            span.set_attribute("operation", "stripe_webhook")

            try:
                event = dependencies.get_webhook_verifier().verify_header(
                    payload, signature_header
                )
            except WebhookTrustError as e:
                webhook_events_total.labels(event_type="unverified", outcome="untrusted").inc()
                span.set_attribute("error", e.code)
                span.set_status(Status(StatusCode.ERROR, e.message))
                logger.warning("Rejected webhook: %s", e.message, extra={"code": e.code})
                raise

            span.set_attribute("event.id", event.id)
            span.set_attribute("event.type", event.type)
            log_extra = {"event_id": event.id, "event_type": event.type}

            router = dependencies.get_event_router()
            try:
                with webhook_processing_duration_seconds.labels(
                    event_kind=str(event.kind) if event.kind else "ignored"
                ).time():
                    outcome = await router.route(event)
            except WebhookPayloadError as e:
                webhook_events_total.labels(event_type=event.type, outcome="rejected").inc()
                span.set_attribute("error", e.code)
                span.set_status(Status(StatusCode.ERROR, e.message))
                logger.error(
                    "Webhook payload rejected: %s - %s",
                    e.code,
                    e.message,
                    extra={**log_extra, "code": e.code},
                )
                ack = {
                    "received": True,
                    "outcome": "rejected",
                    "error": {"code": e.code, "message": e.message},
                }
                return Response(WebhookAckSerializer(ack).data, status=status.HTTP_200_OK)

            webhook_events_total.labels(event_type=event.type, outcome=outcome.value).inc()
            span.set_attribute("outcome", outcome.value)
            span.set_status(Status(StatusCode.OK))
            logger.info("Webhook %s", outcome.value, extra=log_extra)

            ack = {"received": True, "outcome": outcome.value}
            return Response(WebhookAckSerializer(ack).data, status=status.HTTP_200_OK)
