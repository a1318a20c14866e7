"""Circles app configuration."""

from django.apps import AppConfig


class CirclesConfig(AppConfig):
    """Configuration for circles app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.circles"
    verbose_name = "Circles"
