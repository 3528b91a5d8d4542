"""
Entitlement status resolver.

Pure functions computing (status, purchase_date, expiration_date) from
payment provider payloads. No I/O, no clock reads beyond the arguments.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

from core.domain.exceptions import InvalidSubscriptionError
from core.domain.value_objects import Entitlement, LicenseStatus

# Provider subscription statuses that grant access
ENTITLED_SUBSCRIPTION_STATUSES = frozenset({"active", "trialing"})

DEFAULT_PERPETUAL_DAYS = 365


def from_timestamp(value: Optional[int]) -> Optional[datetime]:
    """
    Convert a provider unix timestamp to an aware UTC datetime.

    Args:
        value: Seconds since the epoch, or None

    Returns:
        datetime in UTC, or None
    """
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _current_period_end(subscription: Mapping[str, Any]) -> Optional[int]:
    """Period end of a subscription, read from its first item when absent at the top."""
    period_end = subscription.get("current_period_end")
    if period_end is not None:
        return period_end

    items = (subscription.get("items") or {}).get("data") or []
    if items:
        return items[0].get("current_period_end")
    return None


def resolve_subscription_entitlement(subscription: Mapping[str, Any]) -> Entitlement:
    """
    Compute the entitlement a provider subscription grants.

    Args:
        subscription: Provider subscription object

    Returns:
        Entitlement: active while the subscription is active or trialing,
        starting at start_date and ending at the current period end

    Raises:
        InvalidSubscriptionError: If the start date is missing or a date is unreadable
    """
    status = (
        LicenseStatus.ACTIVE
        if subscription.get("status") in ENTITLED_SUBSCRIPTION_STATUSES
        else LicenseStatus.EXPIRED
    )
    try:
        purchase_date = from_timestamp(
            subscription.get("start_date") or subscription.get("created")
        )
        expiration_date = from_timestamp(_current_period_end(subscription))
    except (TypeError, ValueError, OverflowError) as e:
        raise InvalidSubscriptionError(
            f"Subscription {subscription.get('id')} has an unreadable date"
        ) from e
    if purchase_date is None:
        raise InvalidSubscriptionError(
            f"Subscription {subscription.get('id')} has no start date"
        )

    return Entitlement(
        status=status,
        purchase_date=purchase_date,
        expiration_date=expiration_date,
    )


def resolve_one_time_entitlement(
    purchased_at: datetime, validity_days: int = DEFAULT_PERPETUAL_DAYS
) -> Entitlement:
    """
    Compute the entitlement a one-time purchase grants.

    Args:
        purchased_at: Purchase instant (timezone-aware)
        validity_days: Days the purchase stays valid

    Returns:
        Active Entitlement ending validity_days after purchase
    """
    return Entitlement(
        status=LicenseStatus.ACTIVE,
        purchase_date=purchased_at,
        expiration_date=purchased_at + timedelta(days=validity_days),
    )
