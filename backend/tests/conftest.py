"""
Shared pytest fixtures for all tests.

This module provides common fixtures used across multiple test modules.
Individual test modules can override these fixtures if needed.

Factories
---------
Import factories directly from their modules:

    from tests.accounts.factories import UserFactory
    from tests.circles.factories import CircleFactory, CircleInvitationFactory

Example usage:

    @pytest.mark.django_db
    def test_something():
        user = UserFactory.create(email="test@example.com")
        circle = CircleFactory.create(created_by=user)
"""

from typing import Any, cast

import pytest
from django.test import Client, RequestFactory
from django.test.client import WSGIRequest  # type: ignore[attr-defined]

from apps.core.types import AuthenticatedHttpRequest


class FakeGateway:
    """
    Delivery gateway that records codes instead of sending them.

    Set ``fail_with`` to an exception to simulate a provider outage.
    """

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []
        self.fail_with: Exception | None = None

    def _deliver(self, channel: str, contact: str, code: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append((channel, contact, code))

    def send_email(self, contact: str, code: str) -> None:
        self._deliver("email", contact, code)

    def send_sms(self, contact: str, code: str) -> None:
        self._deliver("phone", contact, code)

    @property
    def last_code(self) -> str:
        return self.sent[-1][2]


def make_request_with_auth(request: "WSGIRequest", user: Any) -> AuthenticatedHttpRequest:
    """
    Set auth on a request and return it typed as AuthenticatedHttpRequest.

    Use this helper to set request.auth while satisfying mypy.

    Example:
        request = request_factory.post("/api/v1/circles/create")
        request = make_request_with_auth(request, user)
    """
    request.auth = user  # type: ignore[attr-defined]
    return cast(AuthenticatedHttpRequest, request)


@pytest.fixture
def request_factory() -> RequestFactory:
    """
    Django request factory for unit testing views.

    Use this when you need to test view functions directly without going through
    the full HTTP stack. Useful for testing Django Ninja endpoints.
    """
    return RequestFactory()


@pytest.fixture
def api_client() -> Client:
    """
    Django test client for full HTTP request/response cycle tests.

    Use this when you need to test the complete HTTP flow including middleware,
    routing, and response handling.

    Example:
        def test_api_returns_200(api_client):
            response = api_client.get("/api/v1/health")
            assert response.status_code == 200
    """
    return Client()


@pytest.fixture
def fake_gateway() -> FakeGateway:
    """Recording delivery gateway for OTP service tests."""
    return FakeGateway()


@pytest.fixture
def default_gateway(fake_gateway: FakeGateway):
    """
    Route endpoint deliveries to the fake gateway.

    Endpoints call send_otp without a gateway, so the default one is swapped.
    """
    from unittest.mock import patch

    with patch("apps.otp.services.get_default_gateway", return_value=fake_gateway):
        yield fake_gateway


@pytest.fixture
def user(db):
    """A registered user with both contacts."""
    from tests.accounts.factories import UserFactory

    return UserFactory.create()


@pytest.fixture
def row_locks():
    """
    Models whose rows were locked with select_for_update.

    SQLite drops FOR UPDATE from the SQL, so tests record the queryset call
    instead. The real contention tests live in test_concurrency modules and
    run against PostgreSQL.
    """
    from unittest.mock import patch

    from django.db.models import QuerySet

    locked: list[type] = []
    original = QuerySet.select_for_update

    def select_for_update(self, *args, **kwargs):
        locked.append(self.model)
        return original(self, *args, **kwargs)

    with patch.object(QuerySet, "select_for_update", select_for_update):
        yield locked
