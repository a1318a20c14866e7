"""
API endpoints for OTP send, resend and verification.
"""

from django.http import HttpRequest
from ninja import Router

from apps.accounts.services import find_user_by_contact
from apps.core.utils import get_client_ip
from apps.otp.schemas import OTPResponse, SendOTPRequest, VerifyOTPRequest
from apps.otp.services import OTPResult, OTPStatus, send_otp, verify_otp

router = Router(tags=["OTP"])

OTP_HTTP_STATUS: dict[OTPStatus, int] = {
    OTPStatus.SENT: 200,
    OTPStatus.VERIFIED: 200,
    OTPStatus.NOT_FOUND: 400,
    OTPStatus.INVALID_CODE: 400,
    OTPStatus.EXPIRED: 400,
    OTPStatus.MAX_ATTEMPTS_EXCEEDED: 400,
    OTPStatus.RATE_LIMITED: 429,
    OTPStatus.DELIVERY_FAILED: 502,
}

OTP_RESPONSES = {code: OTPResponse for code in set(OTP_HTTP_STATUS.values())}


def render_otp_result(result: OTPResult) -> tuple[int, OTPResponse]:
    """Map an engine result onto its HTTP status and body."""
    return OTP_HTTP_STATUS[result.status], OTPResponse(**result.to_payload())


def _send(request: HttpRequest, payload: SendOTPRequest, is_resend: bool) -> tuple[int, OTPResponse]:
    user = find_user_by_contact(payload.contact, payload.channel)
    result = send_otp(
        contact=payload.contact,
        channel=payload.channel,
        user=user,
        ip_address=get_client_ip(request),
        is_resend=is_resend,
    )
    return render_otp_result(result)


@router.post(
    "/send-otp",
    response=OTP_RESPONSES,
    exclude_none=True,
    operation_id="sendOTP",
    summary="Send an OTP to a phone number or email",
)
def send_otp_endpoint(request: HttpRequest, payload: SendOTPRequest) -> tuple[int, OTPResponse]:
    """
    Send a 6-digit code that expires after 5 minutes.

    Refused with 429 while the contact is locked out after too many failed
    verifications.
    """
    return _send(request, payload, is_resend=False)


@router.post(
    "/resend-otp",
    response=OTP_RESPONSES,
    exclude_none=True,
    operation_id="resendOTP",
    summary="Resend an OTP",
)
def resend_otp_endpoint(request: HttpRequest, payload: SendOTPRequest) -> tuple[int, OTPResponse]:
    """Replace any outstanding code for the contact with a fresh one."""
    return _send(request, payload, is_resend=True)


@router.post(
    "/verify-otp",
    response=OTP_RESPONSES,
    exclude_none=True,
    operation_id="verifyOTP",
    summary="Verify an OTP",
)
def verify_otp_endpoint(request: HttpRequest, payload: VerifyOTPRequest) -> tuple[int, OTPResponse]:
    """Check a code; wrong codes report attempts remaining, lockouts report time until reset."""
    return render_otp_result(verify_otp(payload.contact, payload.otp_code))
