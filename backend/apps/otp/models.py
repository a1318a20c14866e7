"""
OTP store models.
"""

import math
from datetime import datetime, timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone

from apps.core.contacts import ContactChannel


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_time_until_reset(attempts_started_at: datetime | None, now: datetime | None = None) -> str:
    """
    Human-readable time left before a lockout lifts.

    Whole minutes are floored, so 90.5 minutes left reads "1 hour and 30 minutes".

    >>> format_time_until_reset(None)
    '24 hours'
    """
    lockout_hours = settings.OTP_LOCKOUT_HOURS
    if attempts_started_at is None:
        return _plural(lockout_hours, "hour")

    now = now or timezone.now()
    reset_at = attempts_started_at + timedelta(hours=lockout_hours)
    if now > reset_at:
        return "now"

    minutes = math.floor((reset_at - now).total_seconds() / 60)
    if minutes < 60:
        return _plural(minutes, "minute")

    hours, minutes = divmod(minutes, 60)
    if minutes == 0:
        return _plural(hours, "hour")
    return f"{_plural(hours, 'hour')} and {_plural(minutes, 'minute')}"


class OTPRecord(models.Model):
    """
    One-time code issued to an email address or phone number.

    At most one unverified record per contact survives a send; older ones
    are purged. Failed verifications are counted and lock the record once
    ``max_attempts`` is reached, until ``OTP_LOCKOUT_HOURS`` have passed
    since the first failure.
    """

    class Channel(models.TextChoices):
        """Where the code is delivered."""

        EMAIL = ContactChannel.EMAIL.value, "Email"
        PHONE = ContactChannel.PHONE.value, "Phone"

    # Who is verifying
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="otp_records",
        null=True,
        blank=True,
        help_text="Owning user, null while the contact is not registered yet",
    )
    contact = models.CharField(
        max_length=255,
        db_index=True,
        help_text="Normalized email or phone number",
    )
    channel = models.CharField(max_length=10, choices=Channel.choices)

    # OTP details
    code = models.CharField(max_length=10, help_text="The OTP code")
    ip_address = models.GenericIPAddressField(null=True, blank=True)

    # Status tracking
    is_verified = models.BooleanField(default=False)
    attempt_count = models.PositiveSmallIntegerField(
        default=0,
        help_text="Failed verification attempts since the last reset",
    )
    max_attempts = models.PositiveSmallIntegerField(default=3)
    attempts_started_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Time of the first failed attempt; anchors the lockout window",
    )

    # Timestamps
    created_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField()
    verified_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "otp_records"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["contact", "is_verified"], name="otp_records_contact_3b9d0a_idx"),
            models.Index(fields=["expires_at"], name="otp_records_expires_8e27c4_idx"),
        ]

    def __str__(self) -> str:
        return f"OTP for {self.contact[-4:]} ({self.channel})"

    def save(self, *args, **kwargs) -> None:  # type: ignore[no-untyped-def]
        """Set expiration time on creation."""
        if not self.expires_at:
            self.expires_at = self.created_at + timedelta(minutes=settings.OTP_EXPIRY_MINUTES)
        super().save(*args, **kwargs)

    @property
    def is_expired(self) -> bool:
        """Expired strictly after expires_at; the boundary instant still verifies."""
        return timezone.now() > self.expires_at

    @property
    def is_locked(self) -> bool:
        return self.attempt_count >= self.max_attempts

    @property
    def attempts_remaining(self) -> int:
        return max(self.max_attempts - self.attempt_count, 0)

    def should_reset_attempts(self) -> bool:
        """Check whether the lockout window since the first failure has elapsed."""
        if self.attempts_started_at is None:
            return False
        lockout = timedelta(hours=settings.OTP_LOCKOUT_HOURS)
        return timezone.now() - self.attempts_started_at >= lockout

    def reset_attempts(self) -> None:
        """Clear the failure counter and the lockout anchor."""
        self.attempt_count = 0
        self.attempts_started_at = None
        self.save(update_fields=["attempt_count", "attempts_started_at"])

    def increment_attempts(self) -> None:
        """Record a failed attempt; the first failure anchors the lockout window."""
        if self.attempt_count == 0 and self.attempts_started_at is None:
            self.attempts_started_at = timezone.now()
        self.attempt_count += 1
        self.save(update_fields=["attempt_count", "attempts_started_at"])

    def mark_verified(self) -> None:
        """Mark the OTP as successfully verified."""
        self.is_verified = True
        self.verified_at = timezone.now()
        self.save(update_fields=["is_verified", "verified_at"])

    def time_until_reset(self) -> str:
        return format_time_until_reset(self.attempts_started_at)
