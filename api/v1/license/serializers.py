"""
Serializers for License API endpoints.
"""

from rest_framework import serializers


class StartTrialRequestSerializer(serializers.Serializer):
    """Serializer for start trial request."""

    user_id = serializers.CharField(required=True, max_length=255)


class CancelLicenseRequestSerializer(serializers.Serializer):
    """Serializer for cancel license request."""

    user_id = serializers.CharField(required=True, max_length=255)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=500)


class LicenseResponseSerializer(serializers.Serializer):
    """Serializer for LicenseDTO."""

    id = serializers.UUIDField()
    user_id = serializers.CharField()
    license_type = serializers.CharField()
    status = serializers.CharField()
    purchase_date = serializers.DateTimeField()
    expiration_date = serializers.DateTimeField(allow_null=True)
    external_customer_id = serializers.CharField(allow_null=True)
    external_payment_id = serializers.CharField(allow_null=True)
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()


class CancellationResponseSerializer(serializers.Serializer):
    """Serializer for CancellationDTO."""

    license_id = serializers.UUIDField()
    subscription_id = serializers.CharField()
    cancel_at_period_end = serializers.BooleanField()
    canceled_at = serializers.DateTimeField(allow_null=True)
    current_period_end = serializers.DateTimeField(allow_null=True)


class LicenseStatusResponseSerializer(serializers.Serializer):
    """Serializer for LicenseStatusDTO."""

    user_id = serializers.CharField()
    state = serializers.ChoiceField(
        choices=[
            "no_license",
            "trial_active",
            "subscription_active",
            "perpetual_active",
            "expired",
        ]
    )
    active_license = LicenseResponseSerializer(allow_null=True)
    license_count = serializers.IntegerField()
