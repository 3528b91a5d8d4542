import uuid

import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="License",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4, editable=False, primary_key=True, serialize=False
                    ),
                ),
                ("user_id", models.CharField(db_index=True, max_length=255)),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("expired", "Expired")],
                        default="active",
                        max_length=20,
                    ),
                ),
                (
                    "license_type",
                    models.CharField(
                        choices=[
                            ("perpetual", "Perpetual"),
                            ("subscription", "Subscription"),
                            ("free_trial", "Free Trial"),
                        ],
                        max_length=20,
                    ),
                ),
                ("purchase_date", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "expiration_date",
                    models.DateTimeField(
                        blank=True, help_text="Empty means valid until canceled", null=True
                    ),
                ),
                (
                    "external_customer_id",
                    models.CharField(blank=True, db_index=True, max_length=255, null=True),
                ),
                (
                    "external_payment_id",
                    models.CharField(
                        blank=True,
                        help_text=(
                            "Provider subscription or payment intent that last wrote this record"
                        ),
                        max_length=255,
                        null=True,
                        unique=True,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "licenses",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["user_id", "status"], name="licenses_user_status_idx"),
                    models.Index(
                        fields=["user_id", "license_type"], name="licenses_user_type_idx"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="UserLicenseLock",
            fields=[
                (
                    "user_id",
                    models.CharField(max_length=255, primary_key=True, serialize=False),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "db_table": "user_license_locks",
            },
        ),
    ]
