"""
Circle models - groups that need an invitation quorum before going live.
"""

from django.conf import settings
from django.db import models

from apps.core.models import TimestampedModel


class Circle(TimestampedModel):
    """
    A group created with a list of invited members.

    Starts ``pending`` and becomes ``active`` once enough invitations are
    accepted. Invitation counters are denormalized on this row and are only
    ever changed with F() expressions under a row lock.
    """

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        ACTIVE = "active", "Active"

    class Type(models.TextChoices):
        PUBLIC = "public", "Public"
        PRIVATE = "private", "Private"

    name = models.CharField(max_length=100, unique=True)
    description = models.TextField()
    categories = models.JSONField(default=list, blank=True)
    circle_type = models.CharField(max_length=10, choices=Type.choices, default=Type.PUBLIC)
    allow_join_request = models.BooleanField(default=False)
    only_admin_can_post = models.BooleanField(default=False)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="created_circles",
    )
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )

    invitations_sent = models.PositiveIntegerField(default=0)
    invitations_accepted = models.PositiveIntegerField(default=0)
    invitations_declined = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.name} ({self.status})"

    @property
    def is_active(self) -> bool:
        return self.status == self.Status.ACTIVE


class CircleInvitation(models.Model):
    """An invitation for one user to join one circle, resolved exactly once."""

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        ACCEPTED = "accepted", "Accepted"
        DECLINED = "declined", "Declined"

    circle = models.ForeignKey(Circle, on_delete=models.CASCADE, related_name="invitations")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="circle_invitations",
    )
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.PENDING,
    )
    accepted_at = models.DateTimeField(null=True, blank=True)
    declined_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        constraints = [
            models.UniqueConstraint(fields=["circle", "user"], name="unique_circle_invitation"),
        ]
        indexes = [
            models.Index(fields=["circle", "status"], name="circles_cir_circle__5a0e91_idx"),
        ]

    def __str__(self) -> str:
        return f"Invitation {self.user_id} -> circle {self.circle_id} ({self.status})"

    @property
    def is_pending(self) -> bool:
        return self.status == self.Status.PENDING


class CircleMember(models.Model):
    """Membership of a user in a circle."""

    class Role(models.TextChoices):
        ADMIN = "admin", "Admin"
        MEMBER = "member", "Member"

    circle = models.ForeignKey(Circle, on_delete=models.CASCADE, related_name="members")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="circle_memberships",
    )
    role = models.CharField(max_length=10, choices=Role.choices, default=Role.MEMBER)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["joined_at", "id"]
        constraints = [
            models.UniqueConstraint(fields=["circle", "user"], name="unique_circle_member"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} in circle {self.circle_id} ({self.role})"

    @property
    def is_admin(self) -> bool:
        return self.role == self.Role.ADMIN
