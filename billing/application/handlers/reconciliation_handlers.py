"""
Reconciliation engine.

Turns verified payment provider events into license record transitions.
Every decision for a user runs under that user's serialization point and
ends in exactly one full-record write, so redeliveries and out-of-order
events converge to the same stored state.
"""
import logging
from typing import Any, Mapping, Optional

from billing.application.dto.reconciliation_dto import (
    ReconciliationAction,
    ReconciliationResult,
)
from billing.domain.catalog import CatalogProduct, ProductCatalog
from billing.domain.entitlement_resolver import (
    DEFAULT_PERPETUAL_DAYS,
    from_timestamp,
    resolve_one_time_entitlement,
    resolve_subscription_entitlement,
)
from billing.domain.webhook_event import WebhookEvent
from billing.ports.payment_gateway import PaymentGateway
from core.domain.exceptions import (
    ExternalPaymentIdConflictError,
    MissingProductIdError,
    MissingSubscriptionIdError,
    MissingUserIdError,
    UnknownProductError,
)
from core.domain.value_objects import Entitlement, LicenseStatus, LicenseType
from core.infrastructure.events import event_bus
from core.metrics import license_transitions_total, payment_failures_total
from licenses.domain.events import (
    LicenseExpired,
    LicenseGranted,
    LicenseReactivated,
    LicenseUpdated,
    LicenseUpgraded,
    PaymentFailed,
)
from licenses.domain.license import License, utcnow
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)

CHECKOUT_MODE_PAYMENT = "payment"
CHECKOUT_MODE_SUBSCRIPTION = "subscription"


def _metadata(obj: Mapping[str, Any]) -> Mapping[str, Any]:
    return obj.get("metadata") or {}


class ReconciliationEngine:
    """
    State machine deciding create / upgrade / reactivate / update / no-op
    for each provider event.
    """

    def __init__(
        self,
        license_repository: LicenseRepository,
        payment_gateway: PaymentGateway,
        catalog: ProductCatalog,
        perpetual_days: int = DEFAULT_PERPETUAL_DAYS,
    ):
        """Initialize engine with its collaborators."""
        self.license_repository = license_repository
        self.payment_gateway = payment_gateway
        self.catalog = catalog
        self.perpetual_days = perpetual_days

    # checkout.session.completed

    async def checkout_completed(self, event: WebhookEvent) -> ReconciliationResult:
        """
        Grant the license a completed checkout paid for.

        Args:
            event: Event carrying a checkout session

        Returns:
            ReconciliationResult

        Raises:
            MissingUserIdError: If the session names no user
            MissingProductIdError: If the session metadata has no product id
            UnknownProductError: If the product is not in the catalog
            MissingSubscriptionIdError: If a subscription checkout has no subscription id
            ExternalPaymentIdConflictError: If the subscription belongs to another user
        """
        session = event.data
        user_id = session.get("client_reference_id") or _metadata(session).get("user_id")
        if not user_id:
            raise MissingUserIdError(f"Checkout session {session.get('id')} has no user id")

        product_id = _metadata(session).get("product_id")
        if not product_id:
            raise MissingProductIdError(
                f"Checkout session {session.get('id')} has no product id"
            )

        product = self.catalog.get(product_id)
        if product is None:
            raise UnknownProductError(f"Unknown product {product_id}")

        mode = session.get("mode")
        if mode == CHECKOUT_MODE_PAYMENT:
            return await self._complete_one_time_checkout(session, user_id, product)
        if mode == CHECKOUT_MODE_SUBSCRIPTION:
            return await self._complete_subscription_checkout(session, user_id, product)

        logger.info(
            "Checkout session %s has unsupported mode %s, nothing to do",
            session.get("id"),
            mode,
            extra={"event_id": event.id, "user_id": user_id},
        )
        return ReconciliationResult.noop()

    async def _complete_one_time_checkout(
        self, session: Mapping[str, Any], user_id: str, product: CatalogProduct
    ) -> ReconciliationResult:
        purchased_at = from_timestamp(session.get("created")) or utcnow()
        entitlement = resolve_one_time_entitlement(purchased_at, self.perpetual_days)
        payment_id = session.get("payment_intent") or session.get("id")
        customer_id = session.get("customer")

        async def work() -> ReconciliationResult:
            existing = await self.license_repository.find_license_by_external_payment_id(
                payment_id
            )
            if existing is not None:
                updated = existing.apply_entitlement(
                    entitlement, license_type=product.license_type, external_customer_id=customer_id
                )
                return await self._store(ReconciliationAction.UPDATED, updated)

            trial = await self.license_repository.find_trial_license_by_user(user_id)
            if trial is not None:
                converted = trial.apply_entitlement(
                    entitlement,
                    license_type=product.license_type,
                    external_payment_id=payment_id,
                    external_customer_id=customer_id,
                )
                return await self._store(ReconciliationAction.UPGRADED, converted)

            created = License.create(
                user_id=user_id,
                license_type=product.license_type,
                entitlement=entitlement,
                external_customer_id=customer_id,
                external_payment_id=payment_id,
            )
            return await self._store(ReconciliationAction.CREATED, created)

        return await self._run_for_user(user_id, work)

    async def _complete_subscription_checkout(
        self, session: Mapping[str, Any], user_id: str, product: CatalogProduct
    ) -> ReconciliationResult:
        subscription_id = session.get("subscription")
        customer_id = session.get("customer")
        if not subscription_id:
            raise MissingSubscriptionIdError(
                f"Subscription checkout {session.get('id')} carries no subscription id"
            )

        async def work() -> ReconciliationResult:
            # The subscription event for this checkout may have been applied first
            current = await self.license_repository.find_license_by_external_payment_id(
                subscription_id
            )
            if current is not None:
                if current.user_id != user_id:
                    raise ExternalPaymentIdConflictError(
                        f"Subscription {subscription_id} belongs to another user"
                    )
                if current.is_active():
                    return ReconciliationResult(ReconciliationAction.NOOP, current)
                reactivated = current.reactivate_subscription(subscription_id, customer_id)
                return await self._store(ReconciliationAction.REACTIVATED, reactivated)

            trial = await self.license_repository.find_trial_license_by_user(user_id)
            if trial is not None:
                upgraded = trial.upgrade_to_subscription(subscription_id, customer_id)
                return await self._store(ReconciliationAction.UPGRADED, upgraded)

            subscription = await self.license_repository.find_subscription_license_by_user(
                user_id
            )
            if subscription is not None:
                reactivated = subscription.reactivate_subscription(subscription_id, customer_id)
                return await self._store(ReconciliationAction.REACTIVATED, reactivated)

            created = License.create(
                user_id=user_id,
                license_type=product.license_type,
                entitlement=Entitlement(
                    status=LicenseStatus.ACTIVE,
                    purchase_date=from_timestamp(session.get("created")) or utcnow(),
                    expiration_date=None,
                ),
                external_customer_id=customer_id,
                external_payment_id=subscription_id,
            )
            return await self._store(ReconciliationAction.CREATED, created)

        return await self._run_for_user(user_id, work)

    # customer.subscription.created / customer.subscription.updated

    async def subscription_created_or_updated(self, event: WebhookEvent) -> ReconciliationResult:
        """
        Overwrite the license with the provider's subscription snapshot.

        Replaying the same snapshot any number of times yields the same record.

        Args:
            event: Event carrying a subscription

        Returns:
            ReconciliationResult

        Raises:
            MissingUserIdError: If no user can be resolved for the subscription
        """
        subscription = event.data
        subscription_id = subscription.get("id")
        customer_id = subscription.get("customer")

        user_id = await self._resolve_subscription_user(subscription)
        if not user_id:
            raise MissingUserIdError(f"Subscription {subscription_id} has no resolvable user id")

        entitlement = resolve_subscription_entitlement(subscription)

        async def work() -> ReconciliationResult:
            existing = await self.license_repository.find_license_by_external_payment_id(
                subscription_id
            )
            if existing is not None:
                updated = existing.apply_entitlement(entitlement, external_customer_id=customer_id)
                return await self._store(ReconciliationAction.UPDATED, updated)

            # A trial becomes this subscription's record whatever its status,
            # so a later checkout finds it by subscription id
            trial = await self.license_repository.find_trial_license_by_user(user_id)
            if trial is not None:
                upgraded = trial.apply_entitlement(
                    entitlement,
                    license_type=LicenseType.SUBSCRIPTION,
                    external_payment_id=subscription_id,
                    external_customer_id=customer_id,
                )
                return await self._store(ReconciliationAction.UPGRADED, upgraded)

            previous = await self.license_repository.find_subscription_license_by_user(user_id)
            # An inactive snapshot never takes over a subscription still granting access
            if previous is not None and (
                entitlement.status == LicenseStatus.ACTIVE or not previous.is_active()
            ):
                reactivated = previous.apply_entitlement(
                    entitlement,
                    external_payment_id=subscription_id,
                    external_customer_id=customer_id,
                )
                return await self._store(ReconciliationAction.REACTIVATED, reactivated)

            created = License.create(
                user_id=user_id,
                license_type=LicenseType.SUBSCRIPTION,
                entitlement=entitlement,
                external_customer_id=customer_id,
                external_payment_id=subscription_id,
            )
            return await self._store(ReconciliationAction.CREATED, created)

        return await self._run_for_user(user_id, work)

    async def _resolve_subscription_user(self, subscription: Mapping[str, Any]) -> Optional[str]:
        user_id = _metadata(subscription).get("user_id")
        if user_id:
            return user_id

        customer_id = subscription.get("customer")
        if not customer_id:
            return None

        logger.info(
            "Subscription %s has no user id in metadata, reading customer %s",
            subscription.get("id"),
            customer_id,
        )
        return await self.payment_gateway.get_customer_user_id(customer_id)

    # customer.subscription.deleted

    async def subscription_deleted(self, event: WebhookEvent) -> ReconciliationResult:
        """
        Expire the license written by a deleted subscription.

        A subscription the service never recorded is acknowledged and skipped.

        Args:
            event: Event carrying a subscription

        Returns:
            ReconciliationResult
        """
        subscription_id = event.data.get("id")
        existing = await self.license_repository.find_license_by_external_payment_id(
            subscription_id
        )
        if existing is None:
            logger.warning(
                "No license found for deleted subscription %s",
                subscription_id,
                extra={"event_id": event.id},
            )
            return ReconciliationResult.noop()

        async def work() -> ReconciliationResult:
            current = await self.license_repository.find_license_by_external_payment_id(
                subscription_id
            )
            if current is None:
                return ReconciliationResult.noop()
            expired = await self.license_repository.update_license(
                current.id, status=LicenseStatus.EXPIRED
            )
            self._count(ReconciliationAction.EXPIRED, expired)
            return ReconciliationResult(ReconciliationAction.EXPIRED, expired)

        return await self._run_for_user(existing.user_id, work)

    # invoice.payment_failed

    async def payment_failed(self, event: WebhookEvent) -> ReconciliationResult:
        """
        Record a failed invoice payment. The license is left untouched;
        the provider's subscription events drive any status change.

        Args:
            event: Event carrying an invoice

        Returns:
            ReconciliationResult with no action
        """
        invoice = event.data
        logger.warning(
            "Payment failed for invoice %s",
            invoice.get("id"),
            extra={
                "event_id": event.id,
                "customer_id": invoice.get("customer"),
                "subscription_id": invoice.get("subscription"),
            },
        )
        payment_failures_total.inc()
        await event_bus.publish(
            PaymentFailed(
                invoice_id=invoice.get("id") or event.id,
                customer_id=invoice.get("customer"),
                subscription_id=invoice.get("subscription"),
            )
        )
        return ReconciliationResult.noop()

    # helpers

    async def _run_for_user(self, user_id: str, work) -> ReconciliationResult:
        result = await self.license_repository.run_serialized(user_id, work)
        await self._publish(result)
        return result

    async def _store(self, action: ReconciliationAction, license: License) -> ReconciliationResult:
        stored = await self.license_repository.upsert_license(license)
        self._count(action, stored)
        logger.info(
            "License %s %s for user %s",
            stored.id,
            action,
            stored.user_id,
            extra={
                "license_id": str(stored.id),
                "user_id": stored.user_id,
                "action": action.value,
                "license_type": stored.license_type.value,
                "status": stored.status.value,
            },
        )
        return ReconciliationResult(action, stored)

    def _count(self, action: ReconciliationAction, license: Optional[License]) -> None:
        license_type = license.license_type.value if license else "unknown"
        license_transitions_total.labels(transition=action.value, license_type=license_type).inc()

    async def _publish(self, result: ReconciliationResult) -> None:
        """Publish the domain event for a committed transition."""
        license = result.license
        if license is None or result.action == ReconciliationAction.NOOP:
            return

        if result.action == ReconciliationAction.CREATED:
            event = LicenseGranted(license.id, license.user_id, license.license_type.value)
        elif result.action == ReconciliationAction.UPGRADED:
            event = LicenseUpgraded(license.id, license.user_id, license.license_type.value)
        elif result.action == ReconciliationAction.REACTIVATED:
            event = LicenseReactivated(license.id, license.user_id)
        elif result.action == ReconciliationAction.EXPIRED:
            event = LicenseExpired(license.id, license.user_id)
        else:
            event = LicenseUpdated(license.id, license.user_id, license.status.value)

        await event_bus.publish(event)
