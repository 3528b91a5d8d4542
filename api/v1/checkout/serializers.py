"""
Serializers for Checkout API endpoints.
"""

from rest_framework import serializers


class CreateCheckoutRequestSerializer(serializers.Serializer):
    """Serializer for create checkout request."""

    user_id = serializers.CharField(required=True, max_length=255)
    product_id = serializers.CharField(required=True, max_length=255)
    customer_email = serializers.EmailField(required=False)


class CheckoutSessionResponseSerializer(serializers.Serializer):
    """Serializer for CheckoutSessionDTO."""

    user_id = serializers.CharField()
    product_id = serializers.CharField()
    license_type = serializers.CharField()
    session_id = serializers.CharField()
    url = serializers.URLField()
