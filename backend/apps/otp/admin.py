"""
Admin configuration for OTP app.
"""

from django.contrib import admin

from apps.core.contacts import mask_contact
from apps.otp.models import OTPRecord


@admin.register(OTPRecord)
class OTPRecordAdmin(admin.ModelAdmin):
    """Admin for OTP records. Codes are never displayed."""

    list_display = [
        "id",
        "contact_masked",
        "channel",
        "is_verified",
        "attempt_count",
        "is_locked_display",
        "is_expired_display",
        "created_at",
    ]
    list_filter = ["channel", "is_verified", "created_at"]
    search_fields = ["contact", "user__username"]
    exclude = ["code"]
    readonly_fields = [
        "attempts_started_at",
        "created_at",
        "expires_at",
        "verified_at",
    ]
    raw_id_fields = ["user"]

    def contact_masked(self, obj: OTPRecord) -> str:
        return mask_contact(obj.contact)

    contact_masked.short_description = "Contact"  # type: ignore[attr-defined]

    def is_locked_display(self, obj: OTPRecord) -> bool:
        return obj.is_locked

    is_locked_display.short_description = "Locked"  # type: ignore[attr-defined]
    is_locked_display.boolean = True  # type: ignore[attr-defined]

    def is_expired_display(self, obj: OTPRecord) -> bool:
        """Display expired status."""
        return obj.is_expired

    is_expired_display.short_description = "Expired"  # type: ignore[attr-defined]
    is_expired_display.boolean = True  # type: ignore[attr-defined]
