"""
Tests for circle API endpoints.
"""

import pytest
from django.test import Client, RequestFactory
from ninja.errors import HttpError

from apps.accounts.tokens import issue_access_token
from apps.circles.api import (
    accept_invitation,
    approve_request,
    check_status,
    create_circle_endpoint,
    decline_invitation,
    list_requests,
    reject_request,
    show_circle,
)
from apps.circles.models import Circle
from apps.circles.schemas import CreateCircleRequest
from tests.accounts.factories import UserFactory
from tests.circles.factories import CircleFactory, CircleInvitationFactory
from tests.conftest import make_request_with_auth


def _payload(member_ids: list[int], name: str = "Deal Seekers") -> CreateCircleRequest:
    return CreateCircleRequest(
        circle_name=name,
        description="Local deals and offers",
        categories=["deals", "food"],
        members=member_ids,
    )


@pytest.mark.django_db
class TestCreateCircleEndpoint:
    """Tests for POST /circles/create."""

    def test_creates_circle(self, request_factory: RequestFactory) -> None:
        creator = UserFactory.create()
        ids = [u.id for u in UserFactory.create_batch(10)]
        request = make_request_with_auth(request_factory.post("/api/v1/circles/create"), creator)

        status, body = create_circle_endpoint(request, _payload(ids))

        assert status == 201
        assert body.data.status == "pending"
        assert body.data.invitations_sent == 10
        assert body.data.created_by.id == creator.id

    def test_too_few_invitees(self, request_factory: RequestFactory) -> None:
        creator = UserFactory.create()
        ids = [u.id for u in UserFactory.create_batch(3)]
        request = make_request_with_auth(request_factory.post("/api/v1/circles/create"), creator)

        status, body = create_circle_endpoint(request, _payload(ids))

        assert status == 422
        assert body.success is False

    def test_name_taken(self, request_factory: RequestFactory) -> None:
        CircleFactory.create(name="Deal Seekers")
        creator = UserFactory.create()
        ids = [u.id for u in UserFactory.create_batch(10)]
        request = make_request_with_auth(request_factory.post("/api/v1/circles/create"), creator)

        status, _ = create_circle_endpoint(request, _payload(ids))

        assert status == 409


@pytest.mark.django_db
class TestInvitationEndpoints:
    """Tests for accept/decline and approve/reject."""

    def test_accept(self, request_factory: RequestFactory) -> None:
        invitation = CircleInvitationFactory.create()
        request = make_request_with_auth(request_factory.post("/"), invitation.user)

        status, body = accept_invitation(request, invitation.circle_id)

        assert status == 200
        assert body.success is True
        assert body.circle_status == "pending"

    def test_decline_twice_conflicts(self, request_factory: RequestFactory) -> None:
        invitation = CircleInvitationFactory.create()
        request = make_request_with_auth(request_factory.post("/"), invitation.user)

        first_status, _ = decline_invitation(request, invitation.circle_id)
        second_status, body = decline_invitation(request, invitation.circle_id)

        assert first_status == 200
        assert second_status == 409
        assert body.success is False

    def test_accept_without_invitation(self, request_factory: RequestFactory) -> None:
        circle = CircleFactory.create()
        request = make_request_with_auth(request_factory.post("/"), UserFactory.create())

        status, _ = accept_invitation(request, circle.id)

        assert status == 404

    def test_approve_and_reject_by_creator(self, request_factory: RequestFactory) -> None:
        circle = CircleFactory.create()
        approved = CircleInvitationFactory.create(circle=circle)
        rejected = CircleInvitationFactory.create(circle=circle)
        request = make_request_with_auth(request_factory.post("/"), circle.created_by)

        approve_status, approve_body = approve_request(request, approved.id)
        reject_status, reject_body = reject_request(request, rejected.id)

        assert approve_status == 200
        assert approve_body.message == "Request approved"
        assert reject_status == 200
        assert reject_body.message == "Request rejected"

    def test_approve_by_stranger_is_forbidden(self, request_factory: RequestFactory) -> None:
        invitation = CircleInvitationFactory.create()
        request = make_request_with_auth(request_factory.post("/"), UserFactory.create())

        status, _ = approve_request(request, invitation.id)

        assert status == 403


@pytest.mark.django_db
class TestCircleQueries:
    """Tests for circle detail, status and pending requests."""

    def test_show_circle(self, request_factory: RequestFactory) -> None:
        invitation = CircleInvitationFactory.create()
        request = make_request_with_auth(request_factory.get("/"), invitation.user)

        body = show_circle(request, invitation.circle_id)

        assert body.data.id == invitation.circle_id
        assert [i.id for i in body.data.invitations] == [invitation.id]
        assert body.data.members == []

    def test_show_missing_circle(self, request_factory: RequestFactory) -> None:
        request = make_request_with_auth(request_factory.get("/"), UserFactory.create())

        with pytest.raises(HttpError) as exc_info:
            show_circle(request, 999_999)

        assert exc_info.value.status_code == 404

    def test_check_status(self, request_factory: RequestFactory) -> None:
        circle = CircleFactory.create(status=Circle.Status.ACTIVE, invitations_accepted=10)
        request = make_request_with_auth(request_factory.post("/"), circle.created_by)

        body = check_status(request, circle.id)

        assert body.status == "active"
        assert body.accepted == 10

    def test_list_requests(self, request_factory: RequestFactory) -> None:
        invitation = CircleInvitationFactory.create()
        request = make_request_with_auth(request_factory.get("/"), invitation.circle.created_by)

        body = list_requests(request)

        assert [i.id for i in body.data] == [invitation.id]


@pytest.mark.django_db
class TestCirclesOverHTTP:
    """Full request cycle including bearer auth and routing."""

    def test_requires_token(self, api_client: Client) -> None:
        response = api_client.get("/api/v1/circles/requests")
        assert response.status_code == 401

    def test_quorum_over_http(self, api_client: Client) -> None:
        creator = UserFactory.create()
        invitees = UserFactory.create_batch(10)
        auth = {"HTTP_AUTHORIZATION": f"Bearer {issue_access_token(creator).token}"}

        response = api_client.post(
            "/api/v1/circles/create",
            data={
                "circle_name": "Quorum Club",
                "description": "Ten accepts to go live",
                "categories": ["deals"],
                "members": [u.id for u in invitees],
            },
            content_type="application/json",
            **auth,
        )
        assert response.status_code == 201
        circle_id = response.json()["data"]["id"]

        for invitee in invitees:
            token = issue_access_token(invitee).token
            response = api_client.post(
                f"/api/v1/circles/{circle_id}/invitations/accept",
                HTTP_AUTHORIZATION=f"Bearer {token}",
            )
            assert response.status_code == 200

        assert response.json() == {
            "success": True,
            "message": "Invitation accepted successfully",
            "circle_status": "active",
        }

        response = api_client.post(f"/api/v1/circles/{circle_id}/check-status", **auth)
        assert response.json()["status"] == "active"

    def test_decline_response_omits_circle_status(self, api_client: Client) -> None:
        invitation = CircleInvitationFactory.create()
        token = issue_access_token(invitation.user).token

        response = api_client.post(
            f"/api/v1/circles/{invitation.circle_id}/invitations/decline",
            HTTP_AUTHORIZATION=f"Bearer {token}",
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Invitation declined"}
