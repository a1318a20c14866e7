"""
Accounts models - users and login auditing.
"""

from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.core.validators import RegexValidator
from django.db import models

from apps.core.contacts import normalize_email, normalize_phone
from apps.core.models import TimestampedModel

username_validator = RegexValidator(
    regex=r"^[a-z0-9._]+$",
    message="Username may only contain lowercase letters, digits, dots and underscores.",
)


class UserManager(BaseUserManager):
    """Custom manager for User model."""

    def create_user(
        self,
        username: str,
        password: str | None = None,
        **extra_fields,
    ) -> "User":
        """Create and return a regular user with normalized contacts."""
        if not username:
            raise ValueError("Username is required")

        email = extra_fields.pop("email", None)
        phone_number = extra_fields.pop("phone_number", None)
        if not email and not phone_number:
            raise ValueError("Either email or phone number is required")

        user = self.model(
            username=username.lower(),
            email=normalize_email(email) if email else None,
            phone_number=normalize_phone(phone_number) if phone_number else None,
            **extra_fields,
        )
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_superuser(
        self,
        username: str,
        password: str | None = None,
        **extra_fields,
    ) -> "User":
        """Create and return a superuser (for Django admin access)."""
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self.create_user(username, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin, TimestampedModel):
    """
    Application user.

    Signs in with email, phone number or username plus a password.
    At least one contact is required; both are stored normalized so OTP
    records and account lookups agree on the key.
    """

    class ProfileVisibility(models.TextChoices):
        PUBLIC = "public", "Public"
        FRIENDS = "friends", "Friends"
        PRIVATE = "private", "Private"

    username = models.CharField(
        max_length=30,
        unique=True,
        validators=[username_validator],
    )
    full_name = models.CharField(max_length=255, blank=True)
    email = models.EmailField(unique=True, null=True, blank=True)
    phone_number = models.CharField(
        max_length=20,
        unique=True,
        null=True,
        blank=True,
        help_text="National digits, see apps.core.contacts.normalize_phone",
    )

    email_verified_at = models.DateTimeField(null=True, blank=True)
    phone_verified_at = models.DateTimeField(null=True, blank=True)

    # Profile
    bio = models.CharField(max_length=500, blank=True)
    location = models.CharField(max_length=255, blank=True)
    website = models.CharField(max_length=255, blank=True)
    occupation = models.CharField(max_length=255, blank=True)
    birthdate = models.DateField(null=True, blank=True)
    profile_visibility = models.CharField(
        max_length=10,
        choices=ProfileVisibility.choices,
        default=ProfileVisibility.PUBLIC,
    )

    # Django auth compatibility
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(
        default=False,
        help_text="Can access Django admin",
    )

    objects = UserManager()

    USERNAME_FIELD = "username"
    REQUIRED_FIELDS = ["email"]

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.username


class LoginAttempt(models.Model):
    """Audit row written for every login attempt, successful or not."""

    identifier = models.CharField(
        max_length=255,
        db_index=True,
        help_text="Email, phone or username as submitted",
    )
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    success = models.BooleanField(default=False)
    failure_reason = models.CharField(max_length=255, blank=True)
    user_agent = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["identifier", "created_at"], name="accounts_lo_identif_6c1f2e_idx"),
        ]

    def __str__(self) -> str:
        outcome = "ok" if self.success else "failed"
        return f"Login {outcome} for {self.identifier}"
