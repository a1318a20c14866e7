"""
Admin configuration for accounts app.
"""

from django.contrib import admin

from apps.accounts.models import LoginAttempt, User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "username",
        "full_name",
        "email",
        "phone_number",
        "is_active",
        "created_at",
    ]
    list_filter = ["is_active", "is_staff"]
    search_fields = ["username", "email", "phone_number", "full_name"]
    readonly_fields = ["email_verified_at", "phone_verified_at", "last_login", "created_at", "updated_at"]
    exclude = ["password"]


@admin.register(LoginAttempt)
class LoginAttemptAdmin(admin.ModelAdmin):
    """Read-only audit of sign-in attempts."""

    list_display = ["id", "identifier", "ip_address", "success", "failure_reason", "created_at"]
    list_filter = ["success", "failure_reason"]
    search_fields = ["identifier", "ip_address"]

    def has_add_permission(self, request) -> bool:  # type: ignore[no-untyped-def]
        return False

    def has_change_permission(self, request, obj=None) -> bool:  # type: ignore[no-untyped-def]
        return False
