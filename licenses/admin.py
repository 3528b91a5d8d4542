"""
Django admin configuration for licenses app.
"""
from django.contrib import admin
from django.utils.html import format_html

from licenses.infrastructure.models import License, UserLicenseLock


@admin.register(License)
class LicenseAdmin(admin.ModelAdmin):
    """Admin interface for License model."""

    list_display = [
        "user_id",
        "license_type",
        "status_display",
        "purchase_date",
        "expiration_date",
        "external_payment_id",
        "updated_at",
    ]
    list_filter = ["status", "license_type", "expiration_date", "created_at"]
    search_fields = ["user_id", "external_customer_id", "external_payment_id"]
    readonly_fields = [
        "id",
        "external_customer_id",
        "external_payment_id",
        "created_at",
        "updated_at",
    ]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "user_id", "license_type", "status"),
            },
        ),
        (
            "Entitlement",
            {
                "fields": ("purchase_date", "expiration_date"),
            },
        ),
        (
            "Payment Provider",
            {
                "fields": ("external_customer_id", "external_payment_id"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )

    def status_display(self, obj):
        """Display status with color coding."""
        if obj.status == "active" and not obj.is_active:
            # Flagged active but past its expiration date
            return format_html('<span style="color: orange; font-weight: bold;">LAPSED</span>')
        colors = {
            "active": "green",
            "expired": "gray",
        }
        color = colors.get(obj.status, "black")
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            color,
            obj.status.upper(),
        )

    status_display.short_description = "Status"


@admin.register(UserLicenseLock)
class UserLicenseLockAdmin(admin.ModelAdmin):
    """Admin interface for UserLicenseLock model."""

    list_display = ["user_id", "created_at"]
    search_fields = ["user_id"]
    readonly_fields = ["user_id", "created_at"]

    def has_add_permission(self, request):
        """Lock rows are created by the service."""
        return False

    def has_change_permission(self, request, obj=None):
        """Lock rows are created by the service."""
        return False
