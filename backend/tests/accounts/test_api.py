"""
Tests for accounts API endpoints.

Covers registration, login, sessions, profiles, availability checks and the
password reset flow.
"""

import pytest
from django.test import Client, RequestFactory

from apps.accounts.api import (
    check_account_for_reset,
    check_contact,
    check_username,
    login,
    register,
    send_password_reset_otp,
)
from apps.accounts.schemas import (
    CheckContactRequest,
    CheckUsernameRequest,
    LoginRequest,
    RegisterRequest,
    ResetContactRequest,
)
from apps.accounts.tokens import decode_access_token
from apps.otp.models import OTPRecord
from tests.accounts.factories import DEFAULT_PASSWORD, UserFactory


@pytest.mark.django_db
class TestRegisterEndpoint:
    """Tests for POST /auth/register."""

    def test_creates_account(self, request_factory: RequestFactory) -> None:
        request = request_factory.post("/api/v1/auth/register")
        payload = RegisterRequest(
            username="fresh.user",
            full_name="Fresh User",
            email_id="fresh@example.com",
            password="hunter22",
        )

        status, body = register(request, payload)

        assert status == 201
        assert body.user.username == "fresh.user"
        assert body.user.email == "fresh@example.com"
        assert decode_access_token(body.access_token) == body.user.id

    def test_conflict_on_taken_email(self, request_factory: RequestFactory) -> None:
        UserFactory.create(email="taken@example.com")
        request = request_factory.post("/api/v1/auth/register")
        payload = RegisterRequest(username="other", email_id="taken@example.com", password="hunter22")

        status, body = register(request, payload)

        assert status == 409
        assert body.success is False
        assert body.message == "This email address is already registered"


@pytest.mark.django_db
class TestLoginEndpoint:
    """Tests for POST /auth/login."""

    def test_login_success(self, request_factory: RequestFactory) -> None:
        user = UserFactory.create()
        request = request_factory.post("/api/v1/auth/login", HTTP_USER_AGENT="pytest")

        status, body = login(request, LoginRequest(identifier=user.username, password=DEFAULT_PASSWORD))

        assert status == 200
        assert body.user.id == user.id

    def test_login_failure(self, request_factory: RequestFactory) -> None:
        user = UserFactory.create()
        request = request_factory.post("/api/v1/auth/login")

        status, body = login(request, LoginRequest(identifier=user.email, password="nope"))

        assert status == 401
        assert body.message == "Invalid credentials"


@pytest.mark.django_db
class TestAvailabilityEndpoints:
    """Tests for contact and username checks."""

    def test_contact_available(self, request_factory: RequestFactory) -> None:
        request = request_factory.post("/api/v1/auth/check-contact")

        status, body = check_contact(request, CheckContactRequest(email_id="free@example.com"))

        assert status == 200
        assert body.exists is False

    def test_contact_taken(self, request_factory: RequestFactory) -> None:
        UserFactory.create(phone_number="9876543210")
        request = request_factory.post("/api/v1/auth/check-contact")

        status, body = check_contact(request, CheckContactRequest(phone_number="+919876543210"))

        assert status == 409
        assert body.exists is True
        assert body.contact_type == "phone"

    def test_username(self, request_factory: RequestFactory) -> None:
        UserFactory.create(username="alice")
        request = request_factory.post("/api/v1/auth/check-username")

        taken = check_username(request, CheckUsernameRequest(username="alice"))
        free = check_username(request, CheckUsernameRequest(username="bob"))

        assert taken.exists is True
        assert free.exists is False


@pytest.mark.django_db
class TestMeEndpoint:
    """Tests for GET /auth/me through the bearer auth."""

    def test_requires_token(self, api_client: Client) -> None:
        response = api_client.get("/api/v1/auth/me")
        assert response.status_code == 401

    def test_returns_user(self, api_client: Client) -> None:
        user = UserFactory.create()
        response = api_client.post(
            "/api/v1/auth/login",
            data={"identifier": user.email, "password": DEFAULT_PASSWORD},
            content_type="application/json",
        )
        token = response.json()["access_token"]

        response = api_client.get("/api/v1/auth/me", HTTP_AUTHORIZATION=f"Bearer {token}")

        assert response.status_code == 200
        assert response.json()["user"]["username"] == user.username

    def test_rejects_inactive_user(self, api_client: Client) -> None:
        from apps.accounts.tokens import issue_access_token

        user = UserFactory.create(is_active=False)
        token = issue_access_token(user).token

        response = api_client.get("/api/v1/auth/me", HTTP_AUTHORIZATION=f"Bearer {token}")

        assert response.status_code == 401


@pytest.mark.django_db
class TestPasswordResetEndpoints:
    """Tests for the forgot-password flow."""

    def test_check_account(self, request_factory: RequestFactory) -> None:
        UserFactory.create(email="known@example.com")
        request = request_factory.post("/api/v1/auth/forgot-password/check-account")

        known = check_account_for_reset(request, ResetContactRequest(contact="known@example.com", type="email"))
        unknown = check_account_for_reset(request, ResetContactRequest(contact="who@example.com", type="email"))

        assert known.exists is True
        assert unknown.exists is False

    def test_send_otp_requires_account(self, request_factory: RequestFactory, default_gateway) -> None:
        request = request_factory.post("/api/v1/auth/forgot-password/send-otp")

        status, body = send_password_reset_otp(
            request, ResetContactRequest(contact="who@example.com", type="email")
        )

        assert status == 404
        assert default_gateway.sent == []
        assert not OTPRecord.objects.exists()

    def test_full_reset_flow(self, api_client: Client, default_gateway) -> None:
        """Send OTP, verify it for a reset token, set a new password, then log in."""
        user = UserFactory.create(phone_number="9876543210")

        response = api_client.post(
            "/api/v1/auth/forgot-password/send-otp",
            data={"contact": "+91 98765 43210", "type": "phone"},
            content_type="application/json",
        )
        assert response.status_code == 200
        assert OTPRecord.objects.get().user == user

        response = api_client.post(
            "/api/v1/auth/forgot-password/verify-otp",
            data={"contact": "9876543210", "otp_code": default_gateway.last_code},
            content_type="application/json",
        )
        assert response.status_code == 200
        reset_token = response.json()["reset_token"]

        response = api_client.post(
            "/api/v1/auth/forgot-password/reset",
            data={
                "contact": "9876543210",
                "reset_token": reset_token,
                "password": "brand-new-pass",
                "password_confirmation": "brand-new-pass",
            },
            content_type="application/json",
        )
        assert response.status_code == 200

        response = api_client.post(
            "/api/v1/auth/login",
            data={"identifier": "9876543210", "password": "brand-new-pass"},
            content_type="application/json",
        )
        assert response.status_code == 200

    @pytest.mark.parametrize("contact", ["+44 9876543210", "210"])
    def test_reset_otp_refuses_foreign_or_partial_number(
        self, api_client: Client, default_gateway, contact: str
    ) -> None:
        UserFactory.create(phone_number="9876543210")

        response = api_client.post(
            "/api/v1/auth/forgot-password/send-otp",
            data={"contact": contact, "type": "phone"},
            content_type="application/json",
        )

        assert response.status_code == 422
        assert default_gateway.sent == []
        assert not OTPRecord.objects.exists()

    def test_reset_with_forged_token(self, api_client: Client) -> None:
        UserFactory.create(email="victim@example.com")

        response = api_client.post(
            "/api/v1/auth/forgot-password/reset",
            data={
                "contact": "victim@example.com",
                "reset_token": "forged",
                "password": "brand-new-pass",
                "password_confirmation": "brand-new-pass",
            },
            content_type="application/json",
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Invalid or expired reset token"}

    def test_mismatched_confirmation_is_rejected(self, api_client: Client) -> None:
        response = api_client.post(
            "/api/v1/auth/forgot-password/reset",
            data={
                "contact": "victim@example.com",
                "reset_token": "anything",
                "password": "brand-new-pass",
                "password_confirmation": "different-pass",
            },
            content_type="application/json",
        )

        assert response.status_code == 422


def _login(api_client: Client, user) -> dict:  # type: ignore[no-untyped-def]
    response = api_client.post(
        "/api/v1/auth/login",
        data={"identifier": user.username, "password": DEFAULT_PASSWORD},
        content_type="application/json",
    )
    assert response.status_code == 200
    return response.json()


@pytest.mark.django_db
class TestSessionEndpoints:
    """Tests for /auth/refresh and /auth/logout over HTTP."""

    def test_login_returns_refresh_token(self, api_client: Client) -> None:
        body = _login(api_client, UserFactory.create())

        assert body["refresh_token"]
        assert body["refresh_token"] != body["access_token"]

    def test_refresh_rotates(self, api_client: Client) -> None:
        user = UserFactory.create()
        tokens = _login(api_client, user)

        response = api_client.post(
            "/api/v1/auth/refresh",
            data={"refresh_token": tokens["refresh_token"]},
            content_type="application/json",
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Token refreshed"
        assert decode_access_token(body["access_token"]) == user.id

        response = api_client.post(
            "/api/v1/auth/refresh",
            data={"refresh_token": tokens["refresh_token"]},
            content_type="application/json",
        )
        assert response.status_code == 401

    def test_refresh_rejects_access_token(self, api_client: Client) -> None:
        tokens = _login(api_client, UserFactory.create())

        response = api_client.post(
            "/api/v1/auth/refresh",
            data={"refresh_token": tokens["access_token"]},
            content_type="application/json",
        )

        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_logout_ends_session(self, api_client: Client) -> None:
        tokens = _login(api_client, UserFactory.create())
        auth = {"HTTP_AUTHORIZATION": f"Bearer {tokens['access_token']}"}

        response = api_client.post("/api/v1/auth/logout", **auth)
        assert response.status_code == 200
        assert response.json()["message"] == "Logged out successfully"

        assert api_client.get("/api/v1/auth/me", **auth).status_code == 401
        response = api_client.post(
            "/api/v1/auth/refresh",
            data={"refresh_token": tokens["refresh_token"]},
            content_type="application/json",
        )
        assert response.status_code == 401

    def test_logout_requires_token(self, api_client: Client) -> None:
        assert api_client.post("/api/v1/auth/logout").status_code == 401


@pytest.mark.django_db
class TestProfileEndpoints:
    """Tests for /auth/profile, /auth/profile/update and /auth/users."""

    def test_profile(self, api_client: Client) -> None:
        user = UserFactory.create(bio="Coupons and more")
        tokens = _login(api_client, user)

        response = api_client.get(
            "/api/v1/auth/profile", HTTP_AUTHORIZATION=f"Bearer {tokens['access_token']}"
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["username"] == user.username
        assert data["bio"] == "Coupons and more"
        assert data["profile_visibility"] == "public"

    def test_update(self, api_client: Client) -> None:
        user = UserFactory.create()
        tokens = _login(api_client, user)

        response = api_client.post(
            "/api/v1/auth/profile/update",
            data={"occupation": "Chef", "profile_visibility": "friends", "birthdate": "1990-04-01"},
            content_type="application/json",
            HTTP_AUTHORIZATION=f"Bearer {tokens['access_token']}",
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Profile updated successfully"
        user.refresh_from_db()
        assert user.occupation == "Chef"
        assert user.profile_visibility == "friends"
        assert user.birthdate.isoformat() == "1990-04-01"

    def test_update_conflict(self, api_client: Client) -> None:
        UserFactory.create(email="taken@example.com")
        tokens = _login(api_client, UserFactory.create())

        response = api_client.post(
            "/api/v1/auth/profile/update",
            data={"email_id": "taken@example.com"},
            content_type="application/json",
            HTTP_AUTHORIZATION=f"Bearer {tokens['access_token']}",
        )

        assert response.status_code == 409

    @pytest.mark.parametrize("phone", ["+44 9876543210", "12345", "abcdefghij"])
    def test_update_rejects_malformed_phone(self, api_client: Client, phone: str) -> None:
        user = UserFactory.create()
        tokens = _login(api_client, user)

        response = api_client.post(
            "/api/v1/auth/profile/update",
            data={"phone_number": phone},
            content_type="application/json",
            HTTP_AUTHORIZATION=f"Bearer {tokens['access_token']}",
        )

        assert response.status_code == 422
        phone_before = user.phone_number
        user.refresh_from_db()
        assert user.phone_number == phone_before

    def test_users(self, api_client: Client) -> None:
        user = UserFactory.create()
        UserFactory.create(is_active=False)
        tokens = _login(api_client, user)

        response = api_client.get(
            "/api/v1/auth/users", HTTP_AUTHORIZATION=f"Bearer {tokens['access_token']}"
        )

        assert response.status_code == 200
        assert [u["id"] for u in response.json()["data"]] == [user.id]
