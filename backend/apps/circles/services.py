"""
Circle creation and invitation quorum services.

A circle is created ``pending`` with one invitation per invited user. Each
invitation is resolved exactly once, either by the invited user (accept /
decline) or by the circle's creator (approve / reject). Every resolution
bumps the matching counter on the circle, and the accept that brings
``invitations_accepted`` to CIRCLE_ACTIVATION_THRESHOLD flips the circle to
``active`` for good and guarantees the creator an admin membership.

All steps of a resolution run in one transaction with the invitation and
circle rows locked, so concurrent accepts cannot lose counter updates or
activate a circle twice.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F, QuerySet
from django.utils import timezone

from apps.circles.models import Circle, CircleInvitation, CircleMember
from apps.core.logging import get_logger

if TYPE_CHECKING:
    from apps.accounts.models import User

logger = get_logger(__name__)


class CircleError(Exception):
    """Base exception for circle creation."""

    pass


class CircleNameTakenError(CircleError):
    """Another circle already uses the name."""

    pass


class InvalidInviteesError(CircleError):
    """Invitee list is too short, names unknown users or includes the creator."""

    pass


class InvitationDecision(StrEnum):
    ACCEPT = "accept"
    DECLINE = "decline"


class ActingAs(StrEnum):
    """Who is resolving the invitation."""

    SELF = "self"
    ADMIN = "admin"


class InvitationOutcome(StrEnum):
    """Outcome kinds for resolve_invitation."""

    ACCEPTED = "accepted"
    DECLINED = "declined"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    FORBIDDEN = "forbidden"


@dataclass
class InvitationResult:
    """Result of resolving an invitation, rendered to JSON by ``to_payload``."""

    outcome: InvitationOutcome
    message: str
    invitation_status: str | None = None
    circle_status: str | None = None
    circle: Circle | None = field(default=None, repr=False, compare=False)

    @property
    def success(self) -> bool:
        return self.outcome in (InvitationOutcome.ACCEPTED, InvitationOutcome.DECLINED)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.circle_status is not None:
            payload["circle_status"] = self.circle_status
        return payload


def _dedupe(ids: list[int]) -> list[int]:
    return list(dict.fromkeys(ids))


def create_circle(
    creator: "User",
    name: str,
    description: str,
    member_ids: list[int],
    categories: list[str] | None = None,
    circle_type: str = Circle.Type.PUBLIC,
    allow_join_request: bool = False,
    only_admin_can_post: bool = False,
) -> Circle:
    """
    Create a pending circle and invite its members.

    Raises:
        CircleNameTakenError: If the name is in use
        InvalidInviteesError: If fewer than CIRCLE_MIN_INVITATIONS distinct
            existing users (other than the creator) are invited
    """
    from apps.accounts.models import User

    invitee_ids = _dedupe(member_ids)
    minimum = settings.CIRCLE_MIN_INVITATIONS

    if creator.id in invitee_ids:
        raise InvalidInviteesError("You cannot invite yourself to your own circle")
    if len(invitee_ids) < minimum:
        raise InvalidInviteesError(f"At least {minimum} members must be invited")

    known = set(User.objects.filter(id__in=invitee_ids, is_active=True).values_list("id", flat=True))
    unknown = [user_id for user_id in invitee_ids if user_id not in known]
    if unknown:
        raise InvalidInviteesError(f"Unknown users: {', '.join(str(u) for u in unknown)}")

    if Circle.objects.filter(name=name).exists():
        raise CircleNameTakenError("A circle with this name already exists")

    try:
        with transaction.atomic():
            circle = Circle.objects.create(
                name=name,
                description=description,
                categories=categories or [],
                circle_type=circle_type,
                allow_join_request=allow_join_request,
                only_admin_can_post=only_admin_can_post,
                created_by=creator,
                status=Circle.Status.PENDING,
                invitations_sent=len(invitee_ids),
            )
            CircleInvitation.objects.bulk_create(
                CircleInvitation(circle=circle, user_id=user_id) for user_id in invitee_ids
            )
    except IntegrityError:
        # Concurrent create claimed the name
        raise CircleNameTakenError("A circle with this name already exists") from None

    logger.info(
        "circle_created",
        circle_id=circle.id,
        creator_id=creator.id,
        invitations_sent=circle.invitations_sent,
    )
    return circle


def _activate_if_quorum(circle: Circle) -> bool:
    """Flip a pending circle to active once it has enough accepts. Returns True on activation."""
    threshold = settings.CIRCLE_ACTIVATION_THRESHOLD
    if circle.status != Circle.Status.PENDING or circle.invitations_accepted < threshold:
        return False

    Circle.objects.filter(id=circle.id, status=Circle.Status.PENDING).update(
        status=Circle.Status.ACTIVE,
        updated_at=timezone.now(),
    )

    membership, created = CircleMember.objects.get_or_create(
        circle=circle,
        user_id=circle.created_by_id,
        defaults={"role": CircleMember.Role.ADMIN},
    )
    if not created and membership.role != CircleMember.Role.ADMIN:
        membership.role = CircleMember.Role.ADMIN
        membership.save(update_fields=["role"])

    circle.refresh_from_db()
    logger.info(
        "circle_activated",
        circle_id=circle.id,
        invitations_accepted=circle.invitations_accepted,
    )
    return True


def resolve_invitation(
    decision: InvitationDecision | str,
    acting_as: ActingAs | str,
    *,
    user: "User",
    circle_id: int | None = None,
    invitation_id: int | None = None,
) -> InvitationResult:
    """
    Accept or decline a pending invitation.

    Self path: ``user`` is the invitee and the invitation is found by
    ``circle_id``. Admin path: ``user`` must be the circle's creator and the
    invitation is found by ``invitation_id``.

    Returns:
        InvitationResult with outcome ACCEPTED, DECLINED, NOT_FOUND,
        CONFLICT (already resolved, nothing changed) or FORBIDDEN
    """
    decision = InvitationDecision(decision)
    acting_as = ActingAs(acting_as)
    accept = decision == InvitationDecision.ACCEPT

    with transaction.atomic():
        invitations = CircleInvitation.objects.select_for_update()
        if acting_as == ActingAs.SELF:
            invitation = invitations.filter(circle_id=circle_id, user=user).first()
        else:
            invitation = invitations.filter(id=invitation_id).first()

        if invitation is None:
            logger.info(
                "invitation_not_found",
                circle_id=circle_id,
                invitation_id=invitation_id,
                user_id=user.id,
            )
            return InvitationResult(
                outcome=InvitationOutcome.NOT_FOUND,
                message="Invitation not found or already responded.",
            )

        circle = Circle.objects.select_for_update().get(id=invitation.circle_id)

        if acting_as == ActingAs.ADMIN and circle.created_by_id != user.id:
            logger.warning("invitation_admin_forbidden", invitation_id=invitation.id, user_id=user.id)
            return InvitationResult(
                outcome=InvitationOutcome.FORBIDDEN,
                message="Only the circle creator can approve or reject requests.",
            )

        if not invitation.is_pending:
            logger.info(
                "invitation_already_resolved",
                invitation_id=invitation.id,
                status=invitation.status,
            )
            return InvitationResult(
                outcome=InvitationOutcome.CONFLICT,
                message=f"Invitation already {invitation.status}.",
                invitation_status=invitation.status,
            )

        now = timezone.now()
        if accept:
            invitation.status = CircleInvitation.Status.ACCEPTED
            invitation.accepted_at = now
            invitation.save(update_fields=["status", "accepted_at"])
            counter = "invitations_accepted"
        else:
            invitation.status = CircleInvitation.Status.DECLINED
            invitation.declined_at = now
            invitation.save(update_fields=["status", "declined_at"])
            counter = "invitations_declined"

        Circle.objects.filter(id=circle.id).update(**{counter: F(counter) + 1, "updated_at": now})
        circle.refresh_from_db()

        if accept and acting_as == ActingAs.SELF:
            CircleMember.objects.get_or_create(
                circle=circle,
                user_id=invitation.user_id,
                defaults={"role": CircleMember.Role.MEMBER},
            )

        if accept:
            _activate_if_quorum(circle)

    logger.info(
        "invitation_resolved",
        invitation_id=invitation.id,
        circle_id=circle.id,
        decision=decision,
        acting_as=acting_as,
        circle_status=circle.status,
    )

    if accept:
        message = (
            "Invitation accepted successfully" if acting_as == ActingAs.SELF else "Request approved"
        )
        outcome = InvitationOutcome.ACCEPTED
    else:
        message = "Invitation declined" if acting_as == ActingAs.SELF else "Request rejected"
        outcome = InvitationOutcome.DECLINED

    return InvitationResult(
        outcome=outcome,
        message=message,
        invitation_status=invitation.status,
        circle_status=circle.status if accept and acting_as == ActingAs.SELF else None,
        circle=circle,
    )


def get_circle(circle_id: int) -> Circle | None:
    """Circle with creator, members and invitations loaded."""
    return (
        Circle.objects.select_related("created_by")
        .prefetch_related("members__user", "invitations__user")
        .filter(id=circle_id)
        .first()
    )


def get_circle_status(circle_id: int) -> tuple[str, int] | None:
    """Status and accepted count of a circle, or None when it does not exist."""
    return Circle.objects.filter(id=circle_id).values_list("status", "invitations_accepted").first()


def list_pending_requests(user: "User") -> QuerySet[CircleInvitation]:
    """Pending invitations across every circle the user created."""
    return (
        CircleInvitation.objects.filter(
            circle__created_by=user,
            status=CircleInvitation.Status.PENDING,
        )
        .select_related("user", "circle")
        .order_by("created_at", "id")
    )
