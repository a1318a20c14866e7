"""Posts app configuration."""

from django.apps import AppConfig


class PostsConfig(AppConfig):
    """Configuration for posts app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.posts"
    verbose_name = "Posts"
