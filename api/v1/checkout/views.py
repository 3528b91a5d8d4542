"""
Checkout API views.

The product calls this endpoint to send a user to the payment provider's
hosted checkout page. The license itself is granted later, when the
provider's checkout.session.completed event arrives.
"""

from asgiref.sync import async_to_sync
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from api.v1 import dependencies
from api.v1.checkout.serializers import (
    CheckoutSessionResponseSerializer,
    CreateCheckoutRequestSerializer,
)
from billing.application.commands.create_checkout import CreateCheckoutCommand
from billing.application.handlers.create_checkout_handler import CreateCheckoutHandler
from core.instrumentation import Status, StatusCode, get_tracer

tracer = get_tracer(__name__)


class CreateCheckoutView(APIView):
    """View for opening a checkout session."""

    authentication_classes = []
    permission_classes = []

    @extend_schema(
        operation_id="create_checkout",
        summary="Create Checkout Session",
        description=(
            "Open a hosted checkout page for a catalog product. Users on a free "
            "trial may buy; users holding an active paid license may not."
        ),
        tags=["Checkout API"],
        request=CreateCheckoutRequestSerializer,
        responses={
            201: CheckoutSessionResponseSerializer,
            400: {"description": "Bad Request"},
            422: {"description": "Unknown product or active paid license"},
            502: {"description": "Payment provider request failed"},
        },
    )
    def post(self, request: Request) -> Response:
        """Create a checkout session for a user."""
        return async_to_sync(self._handle_create_checkout)(request)

    async def _handle_create_checkout(self, request: Request) -> Response:
        """Async handler for create checkout."""
        with tracer.start_as_current_span("create_checkout") as span:
            span.set_attribute("operation", "create_checkout")

            serializer = CreateCheckoutRequestSerializer(data=request.data)
            if not serializer.is_valid():
                span.set_attribute("error", "validation_failed")
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return Response({"error": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

            data = serializer.validated_data
            span.set_attribute("user_id", data["user_id"])
            span.set_attribute("product_id", data["product_id"])

            handler = CreateCheckoutHandler(
                license_repository=dependencies.license_repository,
                payment_gateway=dependencies.payment_gateway,
                catalog=dependencies.product_catalog,
            )
            command = CreateCheckoutCommand(
                user_id=data["user_id"],
                product_id=data["product_id"],
                customer_email=data.get("customer_email"),
            )
            result = await handler.handle(command)

            span.set_attribute("checkout.session_id", result.session_id)
            span.set_status(Status(StatusCode.OK))
            return Response(
                CheckoutSessionResponseSerializer(result).data, status=status.HTTP_201_CREATED
            )
