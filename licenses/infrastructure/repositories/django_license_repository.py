"""
Django implementation of LicenseRepository port.

This adapter converts between domain entities and Django ORM models.
"""
import logging
import uuid
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from asgiref.sync import async_to_sync, sync_to_async
from django.db import IntegrityError, transaction
from django.db.models import F, Q
from django.utils import timezone

from core.domain.exceptions import ExternalPaymentIdConflictError
from core.domain.value_objects import LicenseStatus, LicenseType
from licenses.domain.license import License
from licenses.infrastructure.models import License as LicenseModel
from licenses.infrastructure.models import UserLicenseLock
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DjangoLicenseRepository(LicenseRepository):
    """
    Django ORM implementation of LicenseRepository.

    This adapter:
    1. Converts Django models to domain entities
    2. Writes full records in a single statement
    3. Serializes per-user work with a row lock on UserLicenseLock
    """

    def _to_domain(self, model: LicenseModel) -> License:
        """
        Convert Django model to domain entity.

        Args:
            model: Django License model

        Returns:
            License domain entity
        """
        return License(
            id=model.id,
            user_id=model.user_id,
            license_type=LicenseType(model.license_type),
            status=LicenseStatus(model.status),
            purchase_date=model.purchase_date,
            expiration_date=model.expiration_date,
            external_customer_id=model.external_customer_id,
            external_payment_id=model.external_payment_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_fields(self, license: License) -> Dict[str, Any]:
        """Column values for a domain entity, excluding bookkeeping fields."""
        return {
            "user_id": license.user_id,
            "license_type": license.license_type.value,
            "status": license.status.value,
            "purchase_date": license.purchase_date,
            "expiration_date": license.expiration_date,
            "external_customer_id": license.external_customer_id,
            "external_payment_id": license.external_payment_id,
        }

    @sync_to_async
    def upsert_license(self, license: License) -> License:
        """
        Create or replace a license record by id.

        Args:
            license: License entity to store

        Returns:
            Stored license entity

        Raises:
            ExternalPaymentIdConflictError: If another record holds the same
                external_payment_id
        """
        fields = self._to_fields(license)

        with transaction.atomic():
            if license.external_payment_id:
                conflicting = (
                    LicenseModel.objects.select_for_update()
                    .filter(external_payment_id=license.external_payment_id)
                    .exclude(id=license.id)
                    .first()
                )
                if conflicting is not None:
                    raise self._conflict(license, conflicting.id)

            try:
                with transaction.atomic():
                    model, _ = LicenseModel.objects.update_or_create(
                        id=license.id, defaults=fields
                    )
            except IntegrityError as e:
                if not license.external_payment_id:
                    raise
                # A concurrent writer inserted the same provider object first
                raise self._conflict(license, None) from e

        return self._to_domain(model)

    def _conflict(
        self, license: License, holder_id: Optional[uuid.UUID]
    ) -> ExternalPaymentIdConflictError:
        logger.error(
            "License %s for user %s conflicts on external_payment_id %s",
            license.id,
            license.user_id,
            license.external_payment_id,
            extra={"license_id": str(license.id), "holder_id": str(holder_id)},
        )
        return ExternalPaymentIdConflictError(
            f"External payment id {license.external_payment_id} already belongs "
            f"to another license"
        )

    @sync_to_async
    def update_license(self, license_id: uuid.UUID, **fields: Any) -> Optional[License]:
        """
        Update selected fields of one record in a single UPDATE.

        Args:
            license_id: License UUID
            **fields: Field values to write

        Returns:
            Updated license entity or None if not found
        """
        values = {
            name: value.value if isinstance(value, Enum) else value
            for name, value in fields.items()
        }
        values["updated_at"] = timezone.now()

        updated = LicenseModel.objects.filter(id=license_id).update(**values)
        if not updated:
            return None
        return self._to_domain(LicenseModel.objects.get(id=license_id))

    @sync_to_async
    def find_by_id(self, license_id: uuid.UUID) -> Optional[License]:
        """
        Find a license by ID.

        Args:
            license_id: License UUID

        Returns:
            License entity or None if not found
        """
        try:
            model = LicenseModel.objects.get(id=license_id)
            return self._to_domain(model)
        except LicenseModel.DoesNotExist:
            return None

    @sync_to_async
    def find_by_user(self, user_id: str) -> List[License]:
        models = LicenseModel.objects.filter(user_id=user_id).order_by("-created_at")
        return [self._to_domain(model) for model in models]

    @sync_to_async
    def find_active_license_by_user(self, user_id: str) -> Optional[License]:
        """
        Find the license currently granting access to a user.

        Args:
            user_id: User identifier

        Returns:
            License entity or None
        """
        model = (
            LicenseModel.objects.filter(user_id=user_id, status=LicenseStatus.ACTIVE.value)
            .filter(Q(expiration_date__isnull=True) | Q(expiration_date__gt=timezone.now()))
            .order_by(F("expiration_date").desc(nulls_first=True), "-created_at")
            .first()
        )
        return self._to_domain(model) if model else None

    @sync_to_async
    def find_trial_license_by_user(self, user_id: str) -> Optional[License]:
        model = (
            LicenseModel.objects.filter(
                user_id=user_id, license_type=LicenseType.FREE_TRIAL.value
            )
            .order_by("-created_at")
            .first()
        )
        return self._to_domain(model) if model else None

    @sync_to_async
    def find_subscription_license_by_user(self, user_id: str) -> Optional[License]:
        model = (
            LicenseModel.objects.filter(
                user_id=user_id, license_type=LicenseType.SUBSCRIPTION.value
            )
            .order_by("-created_at")
            .first()
        )
        return self._to_domain(model) if model else None

    @sync_to_async
    def find_license_by_external_payment_id(
        self, external_payment_id: str
    ) -> Optional[License]:
        """
        Find the record last written by a provider object.

        Args:
            external_payment_id: Provider subscription or payment id

        Returns:
            License entity or None
        """
        try:
            model = LicenseModel.objects.get(external_payment_id=external_payment_id)
            return self._to_domain(model)
        except LicenseModel.DoesNotExist:
            return None

    async def run_serialized(self, user_id: str, work: Callable[[], Awaitable[T]]) -> T:
        """
        Run work inside a transaction holding the user's lock row.

        The repository's own sync_to_async calls made by work run on the
        thread that holds the transaction, so they share its connection.

        Args:
            user_id: User whose records the work reads and writes
            work: Coroutine function performing the sequence

        Returns:
            Whatever work returns
        """

        def locked() -> T:
            with transaction.atomic():
                UserLicenseLock.objects.get_or_create(user_id=user_id)
                UserLicenseLock.objects.select_for_update().get(user_id=user_id)
                return async_to_sync(work)()

        return await sync_to_async(locked)()
