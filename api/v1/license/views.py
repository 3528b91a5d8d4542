"""
License API views.

These endpoints are used by the product to:
- Look up a user's active license and entitlement state
- Start a free trial
- Request cancellation of a subscription
"""

from asgiref.sync import async_to_sync
from django.conf import settings
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from api.v1 import dependencies
from api.v1.license.serializers import (
    CancellationResponseSerializer,
    CancelLicenseRequestSerializer,
    LicenseResponseSerializer,
    LicenseStatusResponseSerializer,
    StartTrialRequestSerializer,
)
from core.instrumentation import Status, StatusCode, get_tracer
from licenses.application.commands.cancel_license import CancelLicenseCommand
from licenses.application.commands.start_trial import StartTrialCommand
from licenses.application.handlers.cancel_license_handler import CancelLicenseHandler
from licenses.application.handlers.get_active_license_handler import GetActiveLicenseHandler
from licenses.application.handlers.get_license_status_handler import GetLicenseStatusHandler
from licenses.application.handlers.start_trial_handler import StartTrialHandler
from licenses.application.queries.get_active_license import GetActiveLicenseQuery
from licenses.application.queries.get_license_status import GetLicenseStatusQuery

tracer = get_tracer(__name__)


class ActiveLicenseView(APIView):
    """View for the user's active license."""

    authentication_classes = []
    permission_classes = []

    @extend_schema(
        operation_id="get_active_license",
        summary="Get Active License",
        description=(
            "Return the license currently granting access to the user. "
            "When several are active, the one with the latest expiration wins; "
            "a license without expiration outranks all others."
        ),
        tags=["License API"],
        parameters=[
            OpenApiParameter(
                name="user_id",
                type=str,
                location=OpenApiParameter.QUERY,
                required=True,
                description="Application user id",
            ),
        ],
        responses={
            200: LicenseResponseSerializer,
            400: {"description": "Bad Request"},
            404: {"description": "User has no active license"},
        },
    )
    def get(self, request: Request) -> Response:
        """Get the active license of a user."""
        return async_to_sync(self._handle_get_active_license)(request)

    async def _handle_get_active_license(self, request: Request) -> Response:
        """Async handler for get active license."""
        with tracer.start_as_current_span("get_active_license") as span:
            span.set_attribute("operation", "get_active_license")

            user_id = request.query_params.get("user_id")
            if not user_id:
                span.set_attribute("error", "missing_user_id")
                span.set_status(Status(StatusCode.ERROR, "Missing user_id"))
                return Response(
                    {"error": {"user_id": ["This query parameter is required."]}},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            span.set_attribute("user_id", user_id)

            handler = GetActiveLicenseHandler(license_repository=dependencies.license_repository)
            result = await handler.handle(GetActiveLicenseQuery(user_id=user_id))

            span.set_attribute("license.id", str(result.id))
            span.set_status(Status(StatusCode.OK))
            return Response(LicenseResponseSerializer(result).data, status=status.HTTP_200_OK)


class StartTrialView(APIView):
    """View for starting a free trial."""

    authentication_classes = []
    permission_classes = []

    @extend_schema(
        operation_id="start_trial",
        summary="Start Free Trial",
        description=(
            "Grant a time-limited trial license. Users who hold no active "
            "license of any kind are eligible."
        ),
        tags=["License API"],
        request=StartTrialRequestSerializer,
        responses={
            201: LicenseResponseSerializer,
            400: {"description": "Bad Request"},
            409: {"description": "User already has a license"},
        },
    )
    def post(self, request: Request) -> Response:
        """Start a free trial for a user."""
        return async_to_sync(self._handle_start_trial)(request)

    async def _handle_start_trial(self, request: Request) -> Response:
        """Async handler for start trial."""
        with tracer.start_as_current_span("start_trial") as span:
            span.set_attribute("operation", "start_trial")

            serializer = StartTrialRequestSerializer(data=request.data)
            if not serializer.is_valid():
                span.set_attribute("error", "validation_failed")
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return Response({"error": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

            user_id = serializer.validated_data["user_id"]
            span.set_attribute("user_id", user_id)

            handler = StartTrialHandler(
                license_repository=dependencies.license_repository,
                trial_days=settings.FREE_TRIAL_DAYS,
            )
            result = await handler.handle(StartTrialCommand(user_id=user_id))

            span.set_attribute("license.id", str(result.id))
            span.set_status(Status(StatusCode.OK))
            return Response(LicenseResponseSerializer(result).data, status=status.HTTP_201_CREATED)


class CancelLicenseView(APIView):
    """View for requesting cancellation of a subscription."""

    authentication_classes = []
    permission_classes = []

    @extend_schema(
        operation_id="cancel_license",
        summary="Cancel Subscription",
        description=(
            "Ask the payment provider to stop renewing the user's subscription. "
            "Access continues until the end of the paid period, when the provider "
            "reports the subscription deleted."
        ),
        tags=["License API"],
        request=CancelLicenseRequestSerializer,
        responses={
            202: CancellationResponseSerializer,
            400: {"description": "Bad Request"},
            404: {"description": "User has no active license"},
            422: {"description": "Active license is not backed by a subscription"},
            502: {"description": "Payment provider request failed"},
        },
    )
    def post(self, request: Request) -> Response:
        """Request cancellation of a user's subscription."""
        return async_to_sync(self._handle_cancel_license)(request)

    async def _handle_cancel_license(self, request: Request) -> Response:
        """Async handler for cancel license."""
        with tracer.start_as_current_span("cancel_license") as span:
            span.set_attribute("operation", "cancel_license")

            serializer = CancelLicenseRequestSerializer(data=request.data)
            if not serializer.is_valid():
                span.set_attribute("error", "validation_failed")
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return Response({"error": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

            user_id = serializer.validated_data["user_id"]
            span.set_attribute("user_id", user_id)

            handler = CancelLicenseHandler(
                license_repository=dependencies.license_repository,
                payment_gateway=dependencies.payment_gateway,
            )
            command = CancelLicenseCommand(
                user_id=user_id,
                reason=serializer.validated_data.get("reason"),
            )
            result = await handler.handle(command)

            span.set_attribute("license.id", str(result.license_id))
            span.set_attribute("subscription_id", result.subscription_id)
            span.set_status(Status(StatusCode.OK))
            return Response(
                CancellationResponseSerializer(result).data, status=status.HTTP_202_ACCEPTED
            )


class LicenseStatusView(APIView):
    """View for the user's derived entitlement state."""

    authentication_classes = []
    permission_classes = []

    @extend_schema(
        operation_id="get_license_status",
        summary="Get Entitlement State",
        description=(
            "Derive the user's entitlement state (no_license, trial_active, "
            "subscription_active, perpetual_active or expired) from all of "
            "the user's license records."
        ),
        tags=["License API"],
        parameters=[
            OpenApiParameter(
                name="user_id",
                type=str,
                location=OpenApiParameter.QUERY,
                required=True,
                description="Application user id",
            ),
        ],
        responses={
            200: LicenseStatusResponseSerializer,
            400: {"description": "Bad Request"},
        },
    )
    def get(self, request: Request) -> Response:
        """Get the entitlement state of a user."""
        return async_to_sync(self._handle_get_license_status)(request)

    async def _handle_get_license_status(self, request: Request) -> Response:
        """Async handler for get license status."""
        with tracer.start_as_current_span("get_license_status") as span:
            span.set_attribute("operation", "get_license_status")

            user_id = request.query_params.get("user_id")
            if not user_id:
                span.set_attribute("error", "missing_user_id")
                span.set_status(Status(StatusCode.ERROR, "Missing user_id"))
                return Response(
                    {"error": {"user_id": ["This query parameter is required."]}},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            span.set_attribute("user_id", user_id)

            handler = GetLicenseStatusHandler(license_repository=dependencies.license_repository)
            result = await handler.handle(GetLicenseStatusQuery(user_id=user_id))

            span.set_attribute("license.state", result.state)
            span.set_status(Status(StatusCode.OK))
            return Response(
                LicenseStatusResponseSerializer(result).data, status=status.HTTP_200_OK
            )
