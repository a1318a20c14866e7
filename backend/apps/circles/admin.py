"""
Admin configuration for circles app.
"""

from django.contrib import admin

from apps.circles.models import Circle, CircleInvitation, CircleMember


class CircleInvitationInline(admin.TabularInline):
    model = CircleInvitation
    extra = 0
    raw_id_fields = ["user"]
    readonly_fields = ["accepted_at", "declined_at", "created_at"]


class CircleMemberInline(admin.TabularInline):
    model = CircleMember
    extra = 0
    raw_id_fields = ["user"]


@admin.register(Circle)
class CircleAdmin(admin.ModelAdmin):
    """Admin for circles. Counters are maintained by the invitation flow."""

    list_display = [
        "id",
        "name",
        "status",
        "circle_type",
        "invitations_sent",
        "invitations_accepted",
        "invitations_declined",
        "created_at",
    ]
    list_filter = ["status", "circle_type", "created_at"]
    search_fields = ["name", "created_by__username"]
    readonly_fields = [
        "invitations_sent",
        "invitations_accepted",
        "invitations_declined",
        "created_at",
        "updated_at",
    ]
    raw_id_fields = ["created_by"]
    inlines = [CircleMemberInline, CircleInvitationInline]


@admin.register(CircleInvitation)
class CircleInvitationAdmin(admin.ModelAdmin):
    list_display = ["id", "circle", "user", "status", "created_at"]
    list_filter = ["status"]
    search_fields = ["circle__name", "user__username"]
    raw_id_fields = ["circle", "user"]
