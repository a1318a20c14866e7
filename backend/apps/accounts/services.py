"""
Account services - registration, login, sessions, profiles and password reset.
"""

import secrets
from datetime import timedelta
from typing import Any

from django.conf import settings
from django.core.cache import BaseCache, caches
from django.db import IntegrityError, transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from apps.accounts.models import LoginAttempt, User
from apps.accounts.tokens import (
    REFRESH_TOKEN_TYPE,
    InvalidAccessTokenError,
    RevokedTokenStore,
    TokenClaims,
    TokenPair,
    decode_token,
    issue_token_pair,
)
from apps.core.contacts import (
    ContactChannel,
    detect_channel,
    is_valid_phone,
    mask_contact,
    normalize_contact,
    normalize_email,
    normalize_phone,
    phone_lookup_variants,
)
from apps.core.logging import get_logger

logger = get_logger(__name__)


class AccountError(Exception):
    """Base exception for account operations."""

    pass


class ContactTakenError(AccountError):
    """Email, phone number or username already belongs to another account."""

    def __init__(self, message: str, field: str) -> None:
        super().__init__(message)
        self.field = field


class InvalidCredentialsError(AccountError):
    """Identifier/password pair did not match an active account."""

    pass


class AccountNotFoundError(AccountError):
    """No account exists for the given contact."""

    pass


class InvalidResetTokenError(AccountError):
    """Password reset token missing, expired or wrong."""

    pass


class InvalidRefreshTokenError(AccountError):
    """Refresh token expired, revoked or not issued to an active account."""

    pass


def find_user_by_contact(contact: str, channel: ContactChannel | str | None = None) -> User | None:
    """
    Look up the account owning an email address or phone number.

    Phone numbers must reduce to a full national number and match the
    stored value exactly, either as typed or normalized.
    """
    if channel is None:
        channel = detect_channel(contact)

    if ContactChannel(channel) == ContactChannel.EMAIL:
        return User.objects.filter(email=normalize_email(contact)).first()

    if not is_valid_phone(contact):
        return None

    raw, normalized = phone_lookup_variants(contact)
    return User.objects.filter(Q(phone_number=raw) | Q(phone_number=normalized)).first()


def check_contact_available(
    phone_number: str | None = None,
    email: str | None = None,
) -> None:
    """
    Ensure neither contact is registered yet.

    Raises:
        ContactTakenError: Naming the first contact found taken
    """
    if phone_number and User.objects.filter(phone_number=normalize_phone(phone_number)).exists():
        raise ContactTakenError("This phone number is already registered", field="phone")
    if email and User.objects.filter(email=normalize_email(email)).exists():
        raise ContactTakenError("This email address is already registered", field="email")


def is_username_available(username: str) -> bool:
    return not User.objects.filter(username=username.lower()).exists()


def register_user(
    username: str,
    password: str,
    full_name: str = "",
    email: str | None = None,
    phone_number: str | None = None,
) -> User:
    """
    Create an account.

    Raises:
        ContactTakenError: If the username or a contact is already registered
    """
    if not is_username_available(username):
        raise ContactTakenError("This username is already taken", field="username")
    check_contact_available(phone_number=phone_number, email=email)

    try:
        with transaction.atomic():
            user = User.objects.create_user(
                username=username,
                password=password,
                full_name=full_name,
                email=email,
                phone_number=phone_number,
            )
    except IntegrityError:
        # Concurrent registration claimed the same username or contact
        raise ContactTakenError("Account details already registered", field="account") from None

    logger.info("user_registered", user_id=user.id)
    return user


def _find_login_user(identifier: str) -> User | None:
    identifier = identifier.strip()
    if "@" in identifier:
        return find_user_by_contact(identifier, ContactChannel.EMAIL)
    if any(ch.isalpha() for ch in identifier):
        return User.objects.filter(username=identifier.lower()).first()
    return find_user_by_contact(identifier, ContactChannel.PHONE)


def record_login_attempt(
    identifier: str,
    success: bool,
    ip_address: str | None = None,
    user_agent: str = "",
    failure_reason: str = "",
) -> LoginAttempt:
    return LoginAttempt.objects.create(
        identifier=identifier,
        success=success,
        ip_address=ip_address,
        user_agent=user_agent,
        failure_reason=failure_reason,
    )


def authenticate_user(
    identifier: str,
    password: str,
    ip_address: str | None = None,
    user_agent: str = "",
) -> User:
    """
    Check credentials for an email, phone number or username.

    Every attempt is recorded as a LoginAttempt.

    Raises:
        InvalidCredentialsError: If no active account matches
    """
    user = _find_login_user(identifier)

    failure_reason = ""
    if user is None:
        failure_reason = "user_not_found"
    elif not user.is_active:
        failure_reason = "account_inactive"
    elif not user.check_password(password):
        failure_reason = "invalid_password"

    record_login_attempt(
        identifier,
        success=not failure_reason,
        ip_address=ip_address,
        user_agent=user_agent,
        failure_reason=failure_reason,
    )

    if failure_reason or user is None:
        logger.info("login_failed", identifier=mask_contact(identifier), reason=failure_reason)
        raise InvalidCredentialsError("Invalid credentials")

    logger.info("login_succeeded", user_id=user.id)
    return user


class PasswordResetTokenStore:
    """
    Short-lived password reset tokens, one per contact.

    Backed by a Django cache passed in explicitly, so tests and callers
    choose the store instead of reaching for global state.
    """

    key_prefix = "password_reset"

    def __init__(self, cache: BaseCache | None = None, ttl: timedelta | None = None) -> None:
        self.cache = cache if cache is not None else caches["default"]
        self.ttl = ttl or timedelta(minutes=settings.PASSWORD_RESET_TOKEN_TTL_MINUTES)

    def _key(self, contact: str) -> str:
        return f"{self.key_prefix}:{normalize_contact(contact)}"

    def issue(self, contact: str) -> str:
        token = secrets.token_hex(32)
        self.cache.set(self._key(contact), token, timeout=int(self.ttl.total_seconds()))
        return token

    def check(self, contact: str, token: str) -> bool:
        stored = self.cache.get(self._key(contact))
        return stored is not None and secrets.compare_digest(stored, token)

    def consume(self, contact: str) -> None:
        self.cache.delete(self._key(contact))


def reset_password(
    contact: str,
    token: str,
    new_password: str,
    store: PasswordResetTokenStore | None = None,
) -> User:
    """
    Set a new password using a token issued after OTP verification.

    Raises:
        InvalidResetTokenError: If the token does not match
        AccountNotFoundError: If the contact has no account
    """
    store = store or PasswordResetTokenStore()

    if not store.check(contact, token):
        logger.warning("password_reset_token_rejected", contact=mask_contact(contact))
        raise InvalidResetTokenError("Invalid or expired reset token")

    user = find_user_by_contact(contact)
    if user is None:
        raise AccountNotFoundError("User not found")

    user.set_password(new_password)
    user.save(update_fields=["password", "updated_at"])
    store.consume(contact)

    logger.info("password_reset", user_id=user.id)
    return user


# --- Sessions ---


def refresh_session(refresh_token: str, revoked: RevokedTokenStore | None = None) -> tuple[User, TokenPair]:
    """
    Exchange a refresh token for a new token pair.

    The presented refresh token is revoked, so each one works once.

    Raises:
        InvalidRefreshTokenError: If the token is invalid, revoked or its user is gone
    """
    revoked = revoked or RevokedTokenStore()

    try:
        claims = decode_token(refresh_token, REFRESH_TOKEN_TYPE)
    except InvalidAccessTokenError as e:
        logger.info("refresh_token_rejected", reason=str(e))
        raise InvalidRefreshTokenError("Invalid or expired refresh token") from None

    if revoked.is_revoked(claims.jti):
        logger.warning("refresh_token_reused", user_id=claims.user_id)
        raise InvalidRefreshTokenError("Invalid or expired refresh token")

    user = User.objects.filter(id=claims.user_id, is_active=True).first()
    if user is None:
        raise InvalidRefreshTokenError("Invalid or expired refresh token")

    revoked.revoke(claims.jti, claims.expires_at)
    logger.info("session_refreshed", user_id=user.id)
    return user, issue_token_pair(user)


def logout_user(claims: TokenClaims, revoked: RevokedTokenStore | None = None) -> None:
    """Revoke the access token and the refresh token it was issued with."""
    revoked = revoked or RevokedTokenStore()

    revoked.revoke(claims.jti, claims.expires_at)
    if claims.refresh_jti:
        revoked.revoke(
            claims.refresh_jti,
            timezone.now() + timedelta(days=settings.REFRESH_TOKEN_TTL_DAYS),
        )

    logger.info("user_logged_out", user_id=claims.user_id)


# --- Profile ---


def list_users() -> QuerySet[User]:
    """Active accounts, for picking circle invitees."""
    return User.objects.filter(is_active=True).order_by("username")


def update_profile(user: User, **changes: Any) -> User:
    """
    Apply profile changes; None values are left untouched.

    Contacts are normalized. Changing an email or phone number clears its
    verification stamp.

    Raises:
        ContactTakenError: If the new username or contact belongs to someone else
    """
    changes = {field: value for field, value in changes.items() if value is not None}
    others = User.objects.exclude(id=user.id)

    if "username" in changes:
        changes["username"] = changes["username"].lower()
        if others.filter(username=changes["username"]).exists():
            raise ContactTakenError("This username is already taken", field="username")

    if "email" in changes:
        changes["email"] = normalize_email(changes["email"])
        if others.filter(email=changes["email"]).exists():
            raise ContactTakenError("This email address is already registered", field="email")
        if changes["email"] != user.email:
            changes["email_verified_at"] = None

    if "phone_number" in changes:
        changes["phone_number"] = normalize_phone(changes["phone_number"])
        if others.filter(phone_number=changes["phone_number"]).exists():
            raise ContactTakenError("This phone number is already registered", field="phone")
        if changes["phone_number"] != user.phone_number:
            changes["phone_verified_at"] = None

    for field, value in changes.items():
        setattr(user, field, value)

    try:
        with transaction.atomic():
            user.save(update_fields=[*changes, "updated_at"])
    except IntegrityError:
        raise ContactTakenError("Account details already registered", field="account") from None

    logger.info("profile_updated", user_id=user.id, fields=sorted(changes))
    return user
