import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="OTPRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "contact",
                    models.CharField(
                        db_index=True,
                        help_text="Normalized email or phone number",
                        max_length=255,
                    ),
                ),
                (
                    "channel",
                    models.CharField(
                        choices=[("email", "Email"), ("phone", "Phone")],
                        max_length=10,
                    ),
                ),
                ("code", models.CharField(help_text="The OTP code", max_length=10)),
                ("ip_address", models.GenericIPAddressField(blank=True, null=True)),
                ("is_verified", models.BooleanField(default=False)),
                (
                    "attempt_count",
                    models.PositiveSmallIntegerField(
                        default=0,
                        help_text="Failed verification attempts since the last reset",
                    ),
                ),
                ("max_attempts", models.PositiveSmallIntegerField(default=3)),
                (
                    "attempts_started_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="Time of the first failed attempt; anchors the lockout window",
                        null=True,
                    ),
                ),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("expires_at", models.DateTimeField()),
                ("verified_at", models.DateTimeField(blank=True, null=True)),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        help_text="Owning user, null while the contact is not registered yet",
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="otp_records",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "otp_records",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["contact", "is_verified"], name="otp_records_contact_3b9d0a_idx"),
                    models.Index(fields=["expires_at"], name="otp_records_expires_8e27c4_idx"),
                ],
            },
        ),
    ]
