"""
Access and refresh token issuance.

HS256 JWTs signed with SECRET_KEY. Tokens carry the user id and a unique
``jti``; BearerAuth re-loads the user on every request. An access token
issued alongside a refresh token also names it (``rid``), so logging out
with the access token revokes the pair.

Revocation is a deny-list of ``jti`` values kept in a Django cache until the
token would have expired anyway.
"""

import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import jwt
from django.conf import settings
from django.core.cache import BaseCache, caches
from django.utils import timezone

if TYPE_CHECKING:
    from apps.accounts.models import User

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class InvalidAccessTokenError(Exception):
    """Raised when a token is expired, malformed or of the wrong type."""

    pass


@dataclass
class IssuedToken:
    """A signed token and when it stops working."""

    token: str
    expires_at: datetime
    jti: str


@dataclass
class TokenPair:
    access: IssuedToken
    refresh: IssuedToken


@dataclass
class TokenClaims:
    """Verified contents of a token."""

    user_id: int
    jti: str
    expires_at: datetime
    refresh_jti: str | None = None


def _issue(user: "User", token_type: str, lifetime: timedelta, **extra: str) -> IssuedToken:
    now = timezone.now()
    expires_at = now + lifetime
    jti = secrets.token_hex(16)
    payload = {
        "sub": str(user.id),
        "typ": token_type,
        "jti": jti,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
        **extra,
    }
    token = jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    return IssuedToken(token=token, expires_at=expires_at, jti=jti)


def issue_access_token(user: "User", refresh_jti: str | None = None) -> IssuedToken:
    """Sign an access token for the given user."""
    extra = {"rid": refresh_jti} if refresh_jti else {}
    return _issue(
        user,
        ACCESS_TOKEN_TYPE,
        timedelta(minutes=settings.ACCESS_TOKEN_TTL_MINUTES),
        **extra,
    )


def issue_refresh_token(user: "User") -> IssuedToken:
    return _issue(user, REFRESH_TOKEN_TYPE, timedelta(days=settings.REFRESH_TOKEN_TTL_DAYS))


def issue_token_pair(user: "User") -> TokenPair:
    """Refresh token plus an access token bound to it."""
    refresh = issue_refresh_token(user)
    return TokenPair(access=issue_access_token(user, refresh_jti=refresh.jti), refresh=refresh)


def decode_token(token: str, token_type: str = ACCESS_TOKEN_TYPE) -> TokenClaims:
    """
    Validate a token of the given type and return its claims.

    Raises:
        InvalidAccessTokenError: If the token cannot be trusted.
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp", "sub", "jti"]},
        )
    except jwt.ExpiredSignatureError:
        raise InvalidAccessTokenError("Token has expired") from None
    except jwt.InvalidTokenError as e:
        raise InvalidAccessTokenError(f"Invalid token: {e}") from None

    if payload.get("typ") != token_type:
        raise InvalidAccessTokenError("Invalid token type")

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise InvalidAccessTokenError("Invalid token subject") from None

    return TokenClaims(
        user_id=user_id,
        jti=payload["jti"],
        expires_at=datetime.fromtimestamp(payload["exp"], tz=UTC),
        refresh_jti=payload.get("rid"),
    )


def decode_access_token(token: str) -> int:
    """Validate an access token and return the user id it was issued for."""
    return decode_token(token, ACCESS_TOKEN_TYPE).user_id


class RevokedTokenStore:
    """
    Deny-list of revoked token ids.

    Backed by a Django cache passed in explicitly; entries expire with the
    token they revoke.
    """

    key_prefix = "revoked_token"

    def __init__(self, cache: BaseCache | None = None) -> None:
        self.cache = cache if cache is not None else caches["default"]

    def _key(self, jti: str) -> str:
        return f"{self.key_prefix}:{jti}"

    def revoke(self, jti: str, expires_at: datetime) -> None:
        remaining = int((expires_at - timezone.now()).total_seconds())
        self.cache.set(self._key(jti), True, timeout=max(remaining, 1))

    def is_revoked(self, jti: str) -> bool:
        return self.cache.get(self._key(jti)) is not None
