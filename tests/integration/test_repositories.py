"""
Integration tests for repository implementations.
"""

import uuid
from datetime import timedelta

import pytest
from asgiref.sync import async_to_sync

from core.domain.exceptions import ExternalPaymentIdConflictError
from core.domain.value_objects import Entitlement, LicenseStatus, LicenseType
from licenses.domain.license import License, utcnow
from licenses.infrastructure.models import License as LicenseModel
from licenses.infrastructure.models import UserLicenseLock


def make_license(
    user_id="user-1",
    license_type=LicenseType.SUBSCRIPTION,
    status=LicenseStatus.ACTIVE,
    expires_in=timedelta(days=30),
    payment_id=None,
):
    now = utcnow()
    return License.create(
        user_id=user_id,
        license_type=license_type,
        entitlement=Entitlement(status, now, now + expires_in if expires_in else None),
        external_customer_id="cus_1" if payment_id else None,
        external_payment_id=payment_id,
    )


@pytest.mark.django_db
@pytest.mark.integration
class TestDjangoLicenseRepositoryWrites:
    """Integration tests for LicenseRepository writes."""

    def test_upsert_creates_record(self, license_repository):
        """Test upserting a new license."""
        license = make_license(payment_id="sub_1")

        saved = async_to_sync(license_repository.upsert_license)(license)

        assert saved.id == license.id
        model = LicenseModel.objects.get(id=license.id)
        assert model.license_type == "subscription"
        assert model.external_payment_id == "sub_1"

    def test_upsert_replaces_record(self, license_repository):
        """Test upserting an existing id overwrites every field."""
        license = async_to_sync(license_repository.upsert_license)(make_license())
        expired = license.mark_expired()

        saved = async_to_sync(license_repository.upsert_license)(expired)

        assert saved.status == LicenseStatus.EXPIRED
        assert LicenseModel.objects.count() == 1

    def test_upsert_rejects_payment_id_held_by_another_record(self, license_repository):
        """Test a second record for the same provider object is refused, not redirected."""
        first = async_to_sync(license_repository.upsert_license)(
            make_license(payment_id="sub_1")
        )
        duplicate = make_license(
            user_id="user-2", payment_id="sub_1", expires_in=timedelta(days=60)
        )

        with pytest.raises(ExternalPaymentIdConflictError):
            async_to_sync(license_repository.upsert_license)(duplicate)

        assert LicenseModel.objects.count() == 1
        stored = LicenseModel.objects.get(id=first.id)
        assert stored.user_id == "user-1"
        assert stored.expiration_date == first.expiration_date

    def test_update_license(self, license_repository):
        """Test updating selected fields."""
        license = async_to_sync(license_repository.upsert_license)(make_license())

        updated = async_to_sync(license_repository.update_license)(
            license.id, status=LicenseStatus.EXPIRED
        )

        assert updated.status == LicenseStatus.EXPIRED
        assert updated.expiration_date == license.expiration_date
        assert updated.updated_at >= license.updated_at

    def test_update_missing_license(self, license_repository):
        """Test updating a license that does not exist."""
        updated = async_to_sync(license_repository.update_license)(
            uuid.uuid4(), status=LicenseStatus.EXPIRED
        )

        assert updated is None


@pytest.mark.django_db
@pytest.mark.integration
class TestDjangoLicenseRepositoryReads:
    """Integration tests for LicenseRepository lookups."""

    def save(self, repository, license):
        return async_to_sync(repository.upsert_license)(license)

    def test_find_active_prefers_latest_expiration(self, license_repository):
        """Test the active license with the furthest expiration wins."""
        self.save(license_repository, make_license(license_type=LicenseType.FREE_TRIAL))
        longer = self.save(
            license_repository,
            make_license(license_type=LicenseType.PERPETUAL, expires_in=timedelta(days=365)),
        )

        found = async_to_sync(license_repository.find_active_license_by_user)("user-1")

        assert found.id == longer.id

    def test_find_active_prefers_open_ended(self, license_repository):
        """Test a license without expiration outranks dated ones."""
        self.save(license_repository, make_license(expires_in=timedelta(days=365)))
        open_ended = self.save(license_repository, make_license(expires_in=None))

        found = async_to_sync(license_repository.find_active_license_by_user)("user-1")

        assert found.id == open_ended.id

    def test_find_active_skips_lapsed_and_expired(self, license_repository):
        """Test records that no longer grant access are ignored."""
        self.save(license_repository, make_license(status=LicenseStatus.EXPIRED))
        self.save(license_repository, make_license(expires_in=-timedelta(days=1)))

        found = async_to_sync(license_repository.find_active_license_by_user)("user-1")

        assert found is None

    def test_find_by_type(self, license_repository):
        """Test trial and subscription lookups."""
        trial = self.save(license_repository, make_license(license_type=LicenseType.FREE_TRIAL))
        subscription = self.save(license_repository, make_license(payment_id="sub_1"))

        assert async_to_sync(license_repository.find_trial_license_by_user)("user-1").id == trial.id
        assert (
            async_to_sync(license_repository.find_subscription_license_by_user)("user-1").id
            == subscription.id
        )
        assert async_to_sync(license_repository.find_trial_license_by_user)("user-2") is None

    def test_find_by_external_payment_id(self, license_repository):
        """Test looking up the record of a provider object."""
        license = self.save(license_repository, make_license(payment_id="sub_42"))

        found = async_to_sync(license_repository.find_license_by_external_payment_id)("sub_42")

        assert found.id == license.id
        assert async_to_sync(license_repository.find_license_by_external_payment_id)("sub_x") is None

    def test_find_by_user(self, license_repository):
        """Test listing a user's records."""
        self.save(license_repository, make_license())
        self.save(license_repository, make_license(user_id="user-2"))

        licenses = async_to_sync(license_repository.find_by_user)("user-1")

        assert [license.user_id for license in licenses] == ["user-1"]


@pytest.mark.django_db
@pytest.mark.integration
class TestRunSerialized:
    """Integration tests for per-user serialization."""

    def test_work_result_is_returned(self, license_repository):
        """Test work runs inside the lock and its writes persist."""

        async def work():
            existing = await license_repository.find_by_user("user-1")
            assert existing == []
            return await license_repository.upsert_license(make_license())

        saved = async_to_sync(license_repository.run_serialized)("user-1", work)

        assert LicenseModel.objects.filter(id=saved.id).exists()
        assert UserLicenseLock.objects.filter(user_id="user-1").exists()

    def test_failed_work_rolls_back(self, license_repository):
        """Test an exception inside the work discards its writes."""

        async def work():
            await license_repository.upsert_license(make_license())
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            async_to_sync(license_repository.run_serialized)("user-1", work)

        assert LicenseModel.objects.count() == 0
