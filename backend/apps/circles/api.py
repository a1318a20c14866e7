"""
Circle and invitation API endpoints.
"""

from ninja import Router
from ninja.errors import HttpError

from apps.circles.models import Circle, CircleInvitation, CircleMember
from apps.circles.schemas import (
    CircleDetailResponse,
    CircleDetailSchema,
    CircleResponse,
    CircleSchema,
    CircleStatusResponse,
    CreateCircleRequest,
    InvitationResponse,
    InvitationSchema,
    MemberSchema,
    PendingRequestsResponse,
    UserSummary,
)
from apps.circles.services import (
    ActingAs,
    CircleNameTakenError,
    InvalidInviteesError,
    InvitationDecision,
    InvitationOutcome,
    InvitationResult,
    create_circle,
    get_circle,
    get_circle_status,
    list_pending_requests,
    resolve_invitation,
)
from apps.core.schemas import ErrorResponse
from apps.core.security import BearerAuth
from apps.core.types import AuthenticatedHttpRequest

router = Router(tags=["circles"])
bearer_auth = BearerAuth()

INVITATION_HTTP_STATUS: dict[InvitationOutcome, int] = {
    InvitationOutcome.ACCEPTED: 200,
    InvitationOutcome.DECLINED: 200,
    InvitationOutcome.NOT_FOUND: 404,
    InvitationOutcome.CONFLICT: 409,
    InvitationOutcome.FORBIDDEN: 403,
}

INVITATION_RESPONSES = {code: InvitationResponse for code in set(INVITATION_HTTP_STATUS.values())}


def _user_summary(user) -> UserSummary:  # type: ignore[no-untyped-def]
    return UserSummary(id=user.id, username=user.username, full_name=user.full_name)


def _circle_schema(circle: Circle) -> CircleSchema:
    return CircleSchema(
        id=circle.id,
        name=circle.name,
        description=circle.description,
        categories=circle.categories,
        circle_type=circle.circle_type,
        allow_join_request=circle.allow_join_request,
        only_admin_can_post=circle.only_admin_can_post,
        status=circle.status,
        created_by=_user_summary(circle.created_by),
        invitations_sent=circle.invitations_sent,
        invitations_accepted=circle.invitations_accepted,
        invitations_declined=circle.invitations_declined,
        created_at=circle.created_at,
    )


def _invitation_schema(invitation: CircleInvitation) -> InvitationSchema:
    return InvitationSchema(
        id=invitation.id,
        circle_id=invitation.circle_id,
        user=_user_summary(invitation.user),
        status=invitation.status,
        accepted_at=invitation.accepted_at,
        declined_at=invitation.declined_at,
        created_at=invitation.created_at,
    )


def _member_schema(member: CircleMember) -> MemberSchema:
    return MemberSchema(user=_user_summary(member.user), role=member.role, joined_at=member.joined_at)


def _render(result: InvitationResult) -> tuple[int, InvitationResponse]:
    return INVITATION_HTTP_STATUS[result.outcome], InvitationResponse(**result.to_payload())


@router.post(
    "/create",
    response={201: CircleResponse, 409: ErrorResponse, 422: ErrorResponse},
    auth=bearer_auth,
    operation_id="createCircle",
    summary="Create a circle and invite members",
)
def create_circle_endpoint(
    request: AuthenticatedHttpRequest, payload: CreateCircleRequest
) -> tuple[int, CircleResponse | ErrorResponse]:
    """
    Create a pending circle.

    The circle becomes active once 10 of the invited members accept.
    """
    try:
        circle = create_circle(
            creator=request.auth,
            name=payload.circle_name,
            description=payload.description,
            member_ids=payload.members,
            categories=payload.categories,
            circle_type=payload.circle_type,
            allow_join_request=payload.allow_join_request,
            only_admin_can_post=payload.only_admin_can_post,
        )
    except CircleNameTakenError as e:
        return 409, ErrorResponse(message=str(e))
    except InvalidInviteesError as e:
        return 422, ErrorResponse(message=str(e))

    return 201, CircleResponse(
        message="Circle created successfully and invitations sent.",
        data=_circle_schema(circle),
    )


@router.get(
    "/requests",
    response=PendingRequestsResponse,
    auth=bearer_auth,
    operation_id="listCircleRequests",
    summary="List pending invitations for circles you created",
)
def list_requests(request: AuthenticatedHttpRequest) -> PendingRequestsResponse:
    invitations = list_pending_requests(request.auth)
    return PendingRequestsResponse(data=[_invitation_schema(inv) for inv in invitations])


@router.get(
    "/{circle_id}",
    response={200: CircleDetailResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="getCircle",
    summary="Get circle details",
)
def show_circle(request: AuthenticatedHttpRequest, circle_id: int) -> CircleDetailResponse:
    circle = get_circle(circle_id)
    if circle is None:
        raise HttpError(404, "Circle not found")

    base = _circle_schema(circle)
    return CircleDetailResponse(
        data=CircleDetailSchema(
            **base.model_dump(),
            members=[_member_schema(m) for m in circle.members.all()],
            invitations=[_invitation_schema(inv) for inv in circle.invitations.all()],
        )
    )


@router.post(
    "/{circle_id}/check-status",
    response={200: CircleStatusResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="checkCircleStatus",
    summary="Get a circle's activation status",
)
def check_status(request: AuthenticatedHttpRequest, circle_id: int) -> CircleStatusResponse:
    circle_status = get_circle_status(circle_id)
    if circle_status is None:
        raise HttpError(404, "Circle not found")
    status, accepted = circle_status
    return CircleStatusResponse(status=status, accepted=accepted)


@router.post(
    "/{circle_id}/invitations/accept",
    response=INVITATION_RESPONSES,
    exclude_none=True,
    auth=bearer_auth,
    operation_id="acceptCircleInvitation",
    summary="Accept your invitation to a circle",
)
def accept_invitation(
    request: AuthenticatedHttpRequest, circle_id: int
) -> tuple[int, InvitationResponse]:
    return _render(
        resolve_invitation(
            InvitationDecision.ACCEPT, ActingAs.SELF, user=request.auth, circle_id=circle_id
        )
    )


@router.post(
    "/{circle_id}/invitations/decline",
    response=INVITATION_RESPONSES,
    exclude_none=True,
    auth=bearer_auth,
    operation_id="declineCircleInvitation",
    summary="Decline your invitation to a circle",
)
def decline_invitation(
    request: AuthenticatedHttpRequest, circle_id: int
) -> tuple[int, InvitationResponse]:
    return _render(
        resolve_invitation(
            InvitationDecision.DECLINE, ActingAs.SELF, user=request.auth, circle_id=circle_id
        )
    )


@router.post(
    "/requests/{request_id}/approve",
    response=INVITATION_RESPONSES,
    exclude_none=True,
    auth=bearer_auth,
    operation_id="approveCircleRequest",
    summary="Approve a pending invitation as the circle creator",
)
def approve_request(
    request: AuthenticatedHttpRequest, request_id: int
) -> tuple[int, InvitationResponse]:
    return _render(
        resolve_invitation(
            InvitationDecision.ACCEPT, ActingAs.ADMIN, user=request.auth, invitation_id=request_id
        )
    )


@router.post(
    "/requests/{request_id}/reject",
    response=INVITATION_RESPONSES,
    exclude_none=True,
    auth=bearer_auth,
    operation_id="rejectCircleRequest",
    summary="Reject a pending invitation as the circle creator",
)
def reject_request(
    request: AuthenticatedHttpRequest, request_id: int
) -> tuple[int, InvitationResponse]:
    return _render(
        resolve_invitation(
            InvitationDecision.DECLINE, ActingAs.ADMIN, user=request.auth, invitation_id=request_id
        )
    )
