"""
Post models - short-lived image and video deals.
"""

from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone

from apps.core.models import TimestampedModel


class Post(TimestampedModel):
    """
    A media post by a user.

    Posts expire POST_LIFETIME_DAYS after creation. The media itself lives
    elsewhere; only its URL is stored. ``views`` is only ever changed with
    an F() expression.
    """

    class MediaType(models.TextChoices):
        IMAGE = "image", "Image"
        VIDEO = "video", "Video"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="posts",
    )
    media_type = models.CharField(max_length=10, choices=MediaType.choices)
    media_url = models.URLField(max_length=500)
    title = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)

    views = models.PositiveBigIntegerField(default=0)
    is_boosted = models.BooleanField(default=False)
    boost_expiry = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["user", "created_at"], name="posts_post_user_id_4b7f1a_idx"),
        ]

    def __str__(self) -> str:
        return f"Post {self.pk} by {self.user_id}"

    def save(self, *args, **kwargs) -> None:  # type: ignore[no-untyped-def]
        """Set expiration time on creation."""
        if not self.expires_at:
            self.expires_at = timezone.now() + timedelta(days=settings.POST_LIFETIME_DAYS)
        super().save(*args, **kwargs)

    @property
    def is_expired(self) -> bool:
        return self.expires_at is not None and timezone.now() > self.expires_at
