"""
OTP generation, delivery and verification services.

Both entry points return an ``OTPResult`` tagged with an ``OTPStatus``
instead of raising for expected outcomes (wrong code, lockout, expiry), so
callers branch on ``result.status``. Only unexpected persistence errors
escape as exceptions.

Lifecycle of a record::

    Unverified(count < max) --wrong code--> Unverified(count + 1)
    Unverified(count + 1 == max) ---------> Locked
    Locked --OTP_LOCKOUT_HOURS after first failure--> Unverified(0)
    Unverified --right code, not expired--> Verified (terminal)

Expiry is only consulted once the code matches, so a wrong code on an
expired record still counts as a failed attempt. A locked record rejects
every submission, including the correct code.
"""

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.db import transaction
from django.db.models import F, Q, QuerySet
from django.utils import timezone

from apps.core.contacts import ContactChannel, mask_contact, normalize_contact
from apps.core.logging import get_logger
from apps.otp.delivery import DeliveryError, DeliveryGateway, dispatch, get_default_gateway
from apps.otp.models import OTPRecord

if TYPE_CHECKING:
    from apps.accounts.models import User

logger = get_logger(__name__)


class OTPStatus(StrEnum):
    """Outcome kinds for send and verify."""

    SENT = "sent"
    VERIFIED = "verified"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    MAX_ATTEMPTS_EXCEEDED = "max_attempts_exceeded"
    INVALID_CODE = "invalid_code"
    EXPIRED = "expired"
    DELIVERY_FAILED = "delivery_failed"


SUCCESS_STATUSES = frozenset({OTPStatus.SENT, OTPStatus.VERIFIED})

# Provider errors stay in the logs
DELIVERY_FAILED_MESSAGE = "Failed to send OTP. Please try again later."


@dataclass
class OTPResult:
    """Result of an OTP operation, rendered to JSON by ``to_payload``."""

    status: OTPStatus
    message: str
    otp_id: int | None = None
    expires_at: datetime | None = None
    attempts_remaining: int | None = None
    time_until_reset: str | None = None
    debug_otp: str | None = None
    record: OTPRecord | None = field(default=None, repr=False, compare=False)

    @property
    def success(self) -> bool:
        return self.status in SUCCESS_STATUSES

    def to_payload(self) -> dict[str, Any]:
        """Response body; optional keys are omitted when unset."""
        payload: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.otp_id is not None:
            payload["otp_id"] = self.otp_id
        if self.expires_at is not None:
            payload["expires_at"] = self.expires_at.isoformat()
        if self.attempts_remaining is not None:
            payload["attempts_remaining"] = self.attempts_remaining
        if self.time_until_reset is not None:
            payload["time_until_reset"] = self.time_until_reset
        if self.debug_otp is not None:
            payload["debug_otp"] = self.debug_otp
        return payload


def generate_otp_code(length: int | None = None) -> str:
    """
    Generate a cryptographically secure, zero-padded numeric code.

    Every value in [0, 10**length) is equally likely, so "007421" is as
    valid as "987654".
    """
    if length is None:
        length = settings.OTP_LENGTH

    return f"{secrets.randbelow(10**length):0{length}d}"


def _latest_unverified(contact: str, *, for_update: bool = False) -> OTPRecord | None:
    queryset = OTPRecord.objects.filter(contact=contact, is_verified=False)
    if for_update:
        queryset = queryset.select_for_update()
    return queryset.order_by("-created_at", "-id").first()


def send_otp(
    contact: str,
    channel: ContactChannel | str,
    user: "User | None" = None,
    ip_address: str | None = None,
    is_resend: bool = False,
    gateway: DeliveryGateway | None = None,
) -> OTPResult:
    """
    Issue a fresh code for a contact and deliver it.

    A locked record blocks sending until its lockout window has passed.
    Otherwise every unverified record for the contact is purged and a new
    one is created. The record is committed before delivery, so a delivery
    failure leaves it in place for the next send to purge.

    Args:
        contact: Raw email or phone number
        channel: "email" or "phone"
        user: Owning user, if the contact is registered
        ip_address: Requesting client IP
        is_resend: Whether the client asked for a resend (logged only)
        gateway: Delivery gateway, defaults to the provider gateway

    Returns:
        OTPResult with status SENT, RATE_LIMITED or DELIVERY_FAILED
    """
    channel = ContactChannel(channel)
    contact = normalize_contact(contact, channel)
    masked = mask_contact(contact)

    logger.info(
        "otp_send_requested",
        contact=masked,
        channel=channel,
        user_id=user.id if user else None,
        is_resend=is_resend,
    )

    with transaction.atomic():
        existing = _latest_unverified(contact, for_update=True)

        if existing is not None and existing.is_locked:
            if not existing.should_reset_attempts():
                time_left = existing.time_until_reset()
                logger.warning(
                    "otp_send_locked",
                    contact=masked,
                    attempt_count=existing.attempt_count,
                    time_until_reset=time_left,
                )
                return OTPResult(
                    status=OTPStatus.RATE_LIMITED,
                    message=f"Maximum verification attempts exceeded. You can try again in {time_left}",
                    attempts_remaining=0,
                    time_until_reset=time_left,
                )

            logger.info("otp_lockout_expired", contact=masked, otp_id=existing.id)
            existing.reset_attempts()

        deleted, _ = OTPRecord.objects.filter(contact=contact, is_verified=False).delete()

        now = timezone.now()
        otp = OTPRecord.objects.create(
            user=user,
            contact=contact,
            channel=channel,
            code=generate_otp_code(),
            ip_address=ip_address,
            attempt_count=0,
            max_attempts=settings.OTP_MAX_ATTEMPTS,
            attempts_started_at=None,
            created_at=now,
            expires_at=now + timedelta(minutes=settings.OTP_EXPIRY_MINUTES),
        )
        otp.refresh_from_db()

    logger.info(
        "otp_created",
        contact=masked,
        otp_id=otp.id,
        purged=deleted,
        expires_at=otp.expires_at.isoformat(),
    )

    try:
        dispatch(gateway or get_default_gateway(), channel, contact, otp.code)
    except DeliveryError as e:
        logger.error("otp_delivery_failed", contact=masked, otp_id=otp.id, error=str(e))
        return OTPResult(
            status=OTPStatus.DELIVERY_FAILED,
            message=DELIVERY_FAILED_MESSAGE,
            otp_id=otp.id,
            record=otp,
        )

    return OTPResult(
        status=OTPStatus.SENT,
        message="OTP sent successfully",
        otp_id=otp.id,
        expires_at=otp.expires_at,
        debug_otp=otp.code if settings.OTP_DEBUG else None,
        record=otp,
    )


def verify_otp(contact: str, code: str) -> OTPResult:
    """
    Check a submitted code against the latest unverified record.

    The record is row-locked for the whole check so concurrent attempts
    cannot under-count failures or verify the same code twice.

    Returns:
        OTPResult with status VERIFIED, NOT_FOUND, INVALID_CODE,
        MAX_ATTEMPTS_EXCEEDED or EXPIRED
    """
    contact = normalize_contact(contact)
    masked = mask_contact(contact)
    lockout_hours = settings.OTP_LOCKOUT_HOURS

    with transaction.atomic():
        otp = _latest_unverified(contact, for_update=True)

        if otp is None:
            logger.warning("otp_not_found", contact=masked)
            return OTPResult(
                status=OTPStatus.NOT_FOUND,
                message="No OTP found. Please request a new one.",
            )

        if otp.should_reset_attempts():
            logger.info("otp_lockout_expired", contact=masked, otp_id=otp.id)
            otp.reset_attempts()

        # A locked record rejects every code, correct or not, until reset
        if otp.is_locked:
            logger.warning("otp_verify_locked", contact=masked, otp_id=otp.id)
            return OTPResult(
                status=OTPStatus.MAX_ATTEMPTS_EXCEEDED,
                message=f"Maximum verification attempts exceeded. Please try again after {lockout_hours} hours.",
                attempts_remaining=0,
                time_until_reset=otp.time_until_reset(),
            )

        if not secrets.compare_digest(otp.code.encode(), code.encode()):
            otp.increment_attempts()
            otp.refresh_from_db()
            remaining = otp.attempts_remaining

            logger.info(
                "otp_invalid_attempt",
                contact=masked,
                otp_id=otp.id,
                attempt_count=otp.attempt_count,
                attempts_remaining=remaining,
            )

            if remaining == 0:
                return OTPResult(
                    status=OTPStatus.MAX_ATTEMPTS_EXCEEDED,
                    message=f"Maximum verification attempts exceeded. You can try again after {lockout_hours} hours.",
                    attempts_remaining=0,
                    time_until_reset=otp.time_until_reset(),
                )

            return OTPResult(
                status=OTPStatus.INVALID_CODE,
                message="Invalid OTP code. Please check and try again.",
                attempts_remaining=remaining,
            )

        if otp.is_expired:
            logger.info("otp_expired", contact=masked, otp_id=otp.id)
            return OTPResult(
                status=OTPStatus.EXPIRED,
                message="OTP has expired. Please request a new one.",
            )

        otp.mark_verified()
        _mark_user_contact_verified(otp)

    logger.info("otp_verified", contact=masked, otp_id=otp.id)

    return OTPResult(
        status=OTPStatus.VERIFIED,
        message="OTP verified successfully",
        otp_id=otp.id,
        record=otp,
    )


def _mark_user_contact_verified(otp: OTPRecord) -> None:
    """Stamp the owning user's email/phone verification time."""
    if otp.user_id is None:
        return

    from apps.accounts.models import User

    verified_field = (
        "email_verified_at" if otp.channel == OTPRecord.Channel.EMAIL else "phone_verified_at"
    )
    User.objects.filter(id=otp.user_id).update(**{verified_field: otp.verified_at})


def stale_otps(older_than_hours: int = 24) -> QuerySet[OTPRecord]:
    """
    OTP records nobody can use any more.

    Matches verified records and long-expired unverified ones. An expired
    record that still anchors an active lockout is excluded, otherwise deleting
    it would lift the lockout early.
    """
    now = timezone.now()
    cutoff = now - timedelta(hours=older_than_hours)
    lockout_cutoff = now - timedelta(hours=settings.OTP_LOCKOUT_HOURS)

    verified = Q(is_verified=True, verified_at__lt=cutoff)
    stale_unverified = Q(is_verified=False, expires_at__lt=cutoff) & (
        Q(attempt_count__lt=F("max_attempts")) | Q(attempts_started_at__lt=lockout_cutoff)
    )

    return OTPRecord.objects.filter(verified | stale_unverified)


def cleanup_otps(older_than_hours: int = 24) -> int:
    """Delete stale OTP records. Returns the number deleted."""
    deleted, _ = stale_otps(older_than_hours).delete()

    if deleted:
        logger.info("otp_cleanup", deleted=deleted)

    return deleted
