"""
Tests for BearerAuth.
"""

import pytest
from django.test import RequestFactory

from django.core.cache.backends.locmem import LocMemCache

from apps.accounts.tokens import RevokedTokenStore, issue_access_token, issue_token_pair
from apps.core.logging import clear_contextvars
from apps.core.security import BearerAuth
from apps.core.utils import get_client_ip
from tests.accounts.factories import UserFactory


@pytest.mark.django_db
class TestBearerAuth:
    """Tests for BearerAuth.authenticate."""

    def teardown_method(self):
        clear_contextvars()

    def test_valid_token_returns_user(self, request_factory: RequestFactory) -> None:
        user = UserFactory.create()
        token = issue_access_token(user).token

        assert BearerAuth().authenticate(request_factory.get("/"), token) == user

    def test_empty_token(self, request_factory: RequestFactory) -> None:
        assert BearerAuth().authenticate(request_factory.get("/"), "") is None

    def test_invalid_token(self, request_factory: RequestFactory) -> None:
        assert BearerAuth().authenticate(request_factory.get("/"), "garbage") is None

    def test_deleted_user(self, request_factory: RequestFactory) -> None:
        user = UserFactory.create()
        token = issue_access_token(user).token
        user.delete()

        assert BearerAuth().authenticate(request_factory.get("/"), token) is None

    def test_attaches_claims(self, request_factory: RequestFactory) -> None:
        user = UserFactory.create()
        pair = issue_token_pair(user)
        request = request_factory.get("/")

        BearerAuth().authenticate(request, pair.access.token)

        assert request.access_claims.jti == pair.access.jti
        assert request.access_claims.refresh_jti == pair.refresh.jti

    def test_revoked_token(self, request_factory: RequestFactory) -> None:
        revoked = RevokedTokenStore(cache=LocMemCache("bearer-tests", {}))
        access = issue_access_token(UserFactory.create())
        revoked.revoke(access.jti, access.expires_at)

        assert BearerAuth(revoked=revoked).authenticate(request_factory.get("/"), access.token) is None

    def test_refresh_token_is_not_a_bearer_token(self, request_factory: RequestFactory) -> None:
        pair = issue_token_pair(UserFactory.create())
        assert BearerAuth().authenticate(request_factory.get("/"), pair.refresh.token) is None


class TestGetClientIP:
    """Tests for get_client_ip header precedence."""

    def test_forwarded_for_first_entry(self, request_factory: RequestFactory) -> None:
        request = request_factory.get("/", HTTP_X_FORWARDED_FOR="203.0.113.7, 10.0.0.1")
        assert get_client_ip(request) == "203.0.113.7"

    def test_real_ip_then_cloudflare(self, request_factory: RequestFactory) -> None:
        request = request_factory.get("/", HTTP_CF_CONNECTING_IP="198.51.100.2")
        assert get_client_ip(request) == "198.51.100.2"

        request = request_factory.get("/", HTTP_X_REAL_IP="198.51.100.1", HTTP_CF_CONNECTING_IP="198.51.100.2")
        assert get_client_ip(request) == "198.51.100.1"

    def test_remote_addr(self, request_factory: RequestFactory) -> None:
        assert get_client_ip(request_factory.get("/")) == "127.0.0.1"
