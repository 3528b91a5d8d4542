"""
License and UserLicenseLock models.
"""
import uuid

from django.db import models
from django.utils import timezone


class License(models.Model):
    """
    A user's entitlement, written by payment provider events
    and user-initiated actions.
    """

    STATUS_CHOICES = [
        ("active", "Active"),
        ("expired", "Expired"),
    ]

    LICENSE_TYPE_CHOICES = [
        ("perpetual", "Perpetual"),
        ("subscription", "Subscription"),
        ("free_trial", "Free Trial"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.CharField(max_length=255, db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="active")
    license_type = models.CharField(max_length=20, choices=LICENSE_TYPE_CHOICES)
    purchase_date = models.DateTimeField(default=timezone.now)
    expiration_date = models.DateTimeField(
        null=True, blank=True, help_text="Empty means valid until canceled"
    )
    external_customer_id = models.CharField(max_length=255, null=True, blank=True, db_index=True)
    external_payment_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        unique=True,
        help_text="Provider subscription or payment intent that last wrote this record",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "licenses"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user_id", "status"], name="licenses_user_status_idx"),
            models.Index(fields=["user_id", "license_type"], name="licenses_user_type_idx"),
        ]

    def __str__(self):
        return f"{self.user_id} - {self.license_type} ({self.status})"

    @property
    def is_active(self) -> bool:
        """
        Check if license currently grants access.

        Returns:
            True if license is active and not past its expiration date
        """
        if self.status != "active":
            return False
        if self.expiration_date and self.expiration_date <= timezone.now():
            return False
        return True


class UserLicenseLock(models.Model):
    """
    One row per user, locked with SELECT ... FOR UPDATE to serialize
    reconciliation of that user's licenses.
    """

    user_id = models.CharField(max_length=255, primary_key=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "user_license_locks"

    def __str__(self):
        return self.user_id
