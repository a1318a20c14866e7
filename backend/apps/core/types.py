"""
Custom type definitions for the application.

These types help mypy understand attributes added by authentication.
"""

from typing import TYPE_CHECKING

from django.http import HttpRequest

if TYPE_CHECKING:
    from apps.accounts.models import User
    from apps.accounts.tokens import TokenClaims


class AuthenticatedHttpRequest(HttpRequest):
    """
    HttpRequest after BearerAuth has run.

    django-ninja stores the value returned by ``BearerAuth.authenticate``
    on ``request.auth``; for this API that is always the User. The verified
    token claims sit on ``access_claims``.
    """

    auth: "User"
    access_claims: "TokenClaims"
