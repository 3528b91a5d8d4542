"""
Serializers for webhook endpoints.
"""

from rest_framework import serializers


class ErrorDetailSerializer(serializers.Serializer):
    """Serializer for a structured error."""

    code = serializers.CharField()
    message = serializers.CharField()


class WebhookAckSerializer(serializers.Serializer):
    """Serializer for the acknowledgment returned to the provider."""

    received = serializers.BooleanField()
    outcome = serializers.ChoiceField(choices=["handled", "ignored", "rejected"])
    error = ErrorDetailSerializer(required=False)
