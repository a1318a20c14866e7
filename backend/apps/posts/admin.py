"""
Admin configuration for posts app.
"""

from django.contrib import admin

from apps.posts.models import Post


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = ["id", "user", "media_type", "title", "views", "is_boosted", "expires_at"]
    list_filter = ["media_type", "is_boosted"]
    search_fields = ["title", "user__username"]
    raw_id_fields = ["user"]
    readonly_fields = ["views", "created_at", "updated_at"]
