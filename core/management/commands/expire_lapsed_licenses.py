"""
Django management command to expire lapsed trial and perpetual licenses.

This command should be run periodically (e.g., via cron or scheduled task).
Subscription licenses are skipped: their status only changes through
payment provider events.
"""

import logging

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand
from django.utils import timezone

from core.domain.value_objects import LicenseStatus, LicenseType
from core.infrastructure.events import event_bus
from licenses.domain.events import LicenseExpired
from licenses.infrastructure.models import License as LicenseModel
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository

logger = logging.getLogger(__name__)

EXPIRING_LICENSE_TYPES = [LicenseType.FREE_TRIAL.value, LicenseType.PERPETUAL.value]


class Command(BaseCommand):
    """Command to mark lapsed licenses as expired."""

    help = "Mark active free trial and perpetual licenses past their expiration date as expired"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Dry run mode - don't actually update licenses",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        dry_run = options["dry_run"]
        repository = DjangoLicenseRepository()

        # pylint: disable=no-member
        lapsed = LicenseModel.objects.filter(
            status=LicenseStatus.ACTIVE.value,
            license_type__in=EXPIRING_LICENSE_TYPES,
            expiration_date__lt=timezone.now(),
        )
        lapsed_ids = list(lapsed.values_list("id", flat=True))
        self.stdout.write(f"Found {len(lapsed_ids)} lapsed license(s)")

        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN - No changes will be made"))
            for license in lapsed[:10]:
                self.stdout.write(
                    f"  - License {license.id} ({license.license_type}) "
                    f"expired at {license.expiration_date}"
                )
            return

        if not lapsed_ids:
            self.stdout.write(self.style.SUCCESS("No lapsed licenses to update"))
            return

        async def mark_expired() -> int:
            updated = 0
            for license_id in lapsed_ids:
                expired = await repository.update_license(license_id, status=LicenseStatus.EXPIRED)
                if expired is None:
                    continue
                updated += 1
                logger.info("Marked license %s as expired", license_id)
                await event_bus.publish(LicenseExpired(expired.id, expired.user_id))
            return updated

        updated = async_to_sync(mark_expired)()

        self.stdout.write(self.style.SUCCESS(f"Successfully marked {updated} license(s) as expired"))
