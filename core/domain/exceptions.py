"""
Domain exceptions.

Domain exceptions represent business rule violations
and domain-specific error conditions.
"""


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    def __init__(self, message: str, code: str = None):
        """
        Initialize domain exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class WebhookTrustError(DomainException):
    """Base exception for events that cannot be trusted."""

    pass


class InvalidSignatureError(WebhookTrustError):
    """Raised when an event signature does not match the endpoint secret."""

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(message, code="INVALID_SIGNATURE")


class StaleEventError(WebhookTrustError):
    """Raised when an event timestamp is outside the tolerance window."""

    def __init__(self, message: str = "Webhook timestamp outside tolerance"):
        super().__init__(message, code="STALE_EVENT")


class MalformedEventError(WebhookTrustError):
    """Raised when a verified event body cannot be decoded."""

    def __init__(self, message: str = "Malformed webhook payload"):
        super().__init__(message, code="MALFORMED_EVENT")


class WebhookPayloadError(DomainException):
    """
    Base exception for authentic events whose business payload is unusable.

    These are acknowledged to the provider so that it stops redelivering,
    and logged as operational anomalies.
    """

    pass


class MissingUserIdError(WebhookPayloadError):
    """Raised when no user can be resolved for an event."""

    def __init__(self, message: str = "User ID not found in event"):
        super().__init__(message, code="MISSING_USER_ID")


class MissingProductIdError(WebhookPayloadError):
    """Raised when a checkout session carries no product id."""

    def __init__(self, message: str = "Product ID not found in session metadata"):
        super().__init__(message, code="MISSING_PRODUCT_ID")


class UnknownProductError(WebhookPayloadError):
    """Raised when a product id is not in the product catalog."""

    def __init__(self, message: str = "Unknown product"):
        super().__init__(message, code="UNKNOWN_PRODUCT")


class MissingSubscriptionIdError(WebhookPayloadError):
    """Raised when a subscription checkout carries no subscription id."""

    def __init__(self, message: str = "Subscription ID not found in checkout session"):
        super().__init__(message, code="MISSING_SUBSCRIPTION_ID")


class InvalidSubscriptionError(WebhookPayloadError):
    """Raised when a subscription object lacks the dates an entitlement needs."""

    def __init__(self, message: str = "Subscription has no usable start date"):
        super().__init__(message, code="INVALID_SUBSCRIPTION")


class LicenseException(DomainException):
    """Base exception for license-related errors."""

    pass


class LicenseNotFoundError(LicenseException):
    """Raised when a license is not found."""

    def __init__(self, message: str = "License not found"):
        super().__init__(message, code="LICENSE_NOT_FOUND")


class AlreadyLicensedError(LicenseException):
    """Raised when a user already holds an active license."""

    def __init__(self, message: str = "User already has a license"):
        super().__init__(message, code="ALREADY_LICENSED")


class NoActiveLicenseError(LicenseException):
    """Raised when an action requires an active license and none exists."""

    def __init__(self, message: str = "No active license found"):
        super().__init__(message, code="NO_ACTIVE_LICENSE")


class CheckoutNotAllowedError(LicenseException):
    """Raised when a user who already holds a paid license starts a checkout."""

    def __init__(self, message: str = "User already has an active license"):
        super().__init__(message, code="ACTIVE_LICENSE_EXISTS")


class NoExternalPaymentIdError(LicenseException):
    """Raised when a license has no provider subscription to act upon."""

    def __init__(self, message: str = "License has no associated subscription"):
        super().__init__(message, code="NO_EXTERNAL_PAYMENT_ID")


class ExternalPaymentIdConflictError(LicenseException):
    """Raised when a write would give a provider id to a second record."""

    def __init__(self, message: str = "Provider payment id already belongs to another license"):
        super().__init__(message, code="EXTERNAL_PAYMENT_ID_CONFLICT")


class PaymentProviderError(DomainException):
    """Raised when a call to the payment provider fails."""

    def __init__(self, message: str = "Payment provider request failed"):
        super().__init__(message, code="PAYMENT_PROVIDER_ERROR")
