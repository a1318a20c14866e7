"""
Core security - authentication classes for API.
"""

from django.http import HttpRequest
from ninja.security import HttpBearer

from apps.accounts.models import User
from apps.accounts.tokens import InvalidAccessTokenError, RevokedTokenStore, decode_token
from apps.core.logging import bind_contextvars, get_logger

logger = get_logger(__name__)


class BearerAuth(HttpBearer):
    """
    Bearer token authentication for API endpoints.

    Decodes the access token issued at login, rejects revoked tokens and
    loads the active user. django-ninja stores the returned User on
    ``request.auth``; returning None produces a 401. The verified claims are
    kept on ``request.access_claims`` for logout.
    """

    def __init__(self, revoked: RevokedTokenStore | None = None) -> None:
        super().__init__()
        self.revoked = revoked

    def authenticate(self, request: HttpRequest, token: str) -> User | None:
        if not token:
            return None

        try:
            claims = decode_token(token)
        except InvalidAccessTokenError as e:
            logger.info("access_token_rejected", reason=str(e))
            return None

        revoked = self.revoked or RevokedTokenStore()
        if revoked.is_revoked(claims.jti):
            logger.info("access_token_revoked", user_id=claims.user_id)
            return None

        user = User.objects.filter(id=claims.user_id, is_active=True).first()
        if user is None:
            logger.info("access_token_user_missing", user_id=claims.user_id)
            return None

        request.access_claims = claims  # type: ignore[attr-defined]
        bind_contextvars(**{"usr.id": str(user.id)})
        return user
