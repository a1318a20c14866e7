"""
Auth API endpoints.

Handles:
- Registration, password login, token refresh and logout
- Contact and username availability checks
- Current user, profile and user directory
- Password reset (check account, send OTP, verify OTP, reset)
"""

from django.http import HttpRequest
from ninja import Router
from ninja.errors import HttpError

from apps.accounts.models import User
from apps.accounts.schemas import (
    AuthResponse,
    AvailabilityResponse,
    CheckContactRequest,
    CheckUsernameRequest,
    LoginRequest,
    MeResponse,
    ProfileInfo,
    ProfileResponse,
    RefreshRequest,
    RegisterRequest,
    ResetContactRequest,
    ResetPasswordRequest,
    ResetTokenResponse,
    ResetVerifyRequest,
    UpdateProfileRequest,
    UserInfo,
    UserListResponse,
    UserSummary,
)
from apps.accounts.services import (
    AccountNotFoundError,
    ContactTakenError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    InvalidResetTokenError,
    PasswordResetTokenStore,
    authenticate_user,
    check_contact_available,
    find_user_by_contact,
    is_username_available,
    list_users,
    logout_user,
    refresh_session,
    register_user,
    reset_password,
    update_profile,
)
from apps.accounts.tokens import TokenPair, issue_token_pair
from apps.core.schemas import ErrorResponse, MessageResponse
from apps.core.security import BearerAuth
from apps.core.types import AuthenticatedHttpRequest
from apps.core.utils import get_client_ip
from apps.otp.api import OTP_RESPONSES, render_otp_result
from apps.otp.schemas import OTPResponse
from apps.otp.services import OTPStatus, send_otp, verify_otp

router = Router(tags=["auth"])
bearer_auth = BearerAuth()


def _user_info(user: User) -> UserInfo:
    return UserInfo(
        id=user.id,
        username=user.username,
        full_name=user.full_name,
        email=user.email,
        phone_number=user.phone_number,
        email_verified_at=user.email_verified_at,
        phone_verified_at=user.phone_verified_at,
        created_at=user.created_at,
    )


def _profile_info(user: User) -> ProfileInfo:
    return ProfileInfo(
        **_user_info(user).model_dump(),
        bio=user.bio,
        location=user.location,
        website=user.website,
        occupation=user.occupation,
        birthdate=user.birthdate,
        profile_visibility=user.profile_visibility,
    )


def _auth_response(user: User, message: str, tokens: TokenPair | None = None) -> AuthResponse:
    tokens = tokens or issue_token_pair(user)
    return AuthResponse(
        message=message,
        access_token=tokens.access.token,
        expires_at=tokens.access.expires_at,
        refresh_token=tokens.refresh.token,
        user=_user_info(user),
    )


@router.post(
    "/register",
    response={201: AuthResponse, 409: ErrorResponse},
    operation_id="register",
    summary="Create an account",
)
def register(request: HttpRequest, payload: RegisterRequest) -> tuple[int, AuthResponse | ErrorResponse]:
    """Create an account and return an access token."""
    try:
        user = register_user(
            username=payload.username,
            password=payload.password,
            full_name=payload.full_name,
            email=str(payload.email_id) if payload.email_id else None,
            phone_number=payload.phone_number,
        )
    except ContactTakenError as e:
        return 409, ErrorResponse(message=str(e))

    return 201, _auth_response(user, "Registration successful")


@router.post(
    "/login",
    response={200: AuthResponse, 401: ErrorResponse},
    operation_id="login",
    summary="Sign in with a password",
)
def login(request: HttpRequest, payload: LoginRequest) -> tuple[int, AuthResponse | ErrorResponse]:
    """Sign in with email, phone number or username."""
    try:
        user = authenticate_user(
            identifier=payload.identifier,
            password=payload.password,
            ip_address=get_client_ip(request),
            user_agent=request.META.get("HTTP_USER_AGENT", ""),
        )
    except InvalidCredentialsError as e:
        return 401, ErrorResponse(message=str(e))

    return 200, _auth_response(user, "Login successful")


@router.post(
    "/check-contact",
    response={200: AvailabilityResponse, 409: AvailabilityResponse},
    exclude_none=True,
    operation_id="checkContact",
    summary="Check whether a phone number or email is registered",
)
def check_contact(
    request: HttpRequest, payload: CheckContactRequest
) -> tuple[int, AvailabilityResponse]:
    try:
        check_contact_available(
            phone_number=payload.phone_number,
            email=str(payload.email_id) if payload.email_id else None,
        )
    except ContactTakenError as e:
        return 409, AvailabilityResponse(
            success=False, exists=True, contact_type=e.field, message=str(e)
        )

    return 200, AvailabilityResponse(
        success=True, exists=False, message="Contact information is available"
    )


@router.post(
    "/check-username",
    response=AvailabilityResponse,
    exclude_none=True,
    operation_id="checkUsername",
    summary="Check whether a username is taken",
)
def check_username(request: HttpRequest, payload: CheckUsernameRequest) -> AvailabilityResponse:
    if is_username_available(payload.username):
        return AvailabilityResponse(success=True, exists=False, message="Username is available")
    return AvailabilityResponse(
        success=False, exists=True, message="This username is already taken"
    )


@router.get(
    "/me",
    response={200: MeResponse, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="getCurrentUser",
    summary="Get current user",
)
def me(request: AuthenticatedHttpRequest) -> MeResponse:
    if not isinstance(getattr(request, "auth", None), User):
        raise HttpError(401, "Not authenticated")
    return MeResponse(user=_user_info(request.auth))


@router.post(
    "/refresh",
    response={200: AuthResponse, 401: ErrorResponse},
    operation_id="refreshToken",
    summary="Exchange a refresh token for new tokens",
)
def refresh(request: HttpRequest, payload: RefreshRequest) -> tuple[int, AuthResponse | ErrorResponse]:
    """Each refresh token works once; the response carries its replacement."""
    try:
        user, tokens = refresh_session(payload.refresh_token)
    except InvalidRefreshTokenError as e:
        return 401, ErrorResponse(message=str(e))

    return 200, _auth_response(user, "Token refreshed", tokens)


@router.post(
    "/logout",
    response={200: MessageResponse, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="logout",
    summary="Revoke the current tokens",
)
def logout(request: AuthenticatedHttpRequest) -> MessageResponse:
    logout_user(request.access_claims)
    return MessageResponse(message="Logged out successfully")


@router.get(
    "/users",
    response={200: UserListResponse, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="listUsers",
    summary="List active users",
)
def users(request: AuthenticatedHttpRequest) -> UserListResponse:
    return UserListResponse(
        data=[
            UserSummary(id=user.id, username=user.username, full_name=user.full_name)
            for user in list_users()
        ]
    )


@router.get(
    "/profile",
    response={200: ProfileResponse, 401: ErrorResponse},
    auth=bearer_auth,
    exclude_none=True,
    operation_id="getProfile",
    summary="Get the full profile of the current user",
)
def profile(request: AuthenticatedHttpRequest) -> ProfileResponse:
    return ProfileResponse(data=_profile_info(request.auth))


@router.post(
    "/profile/update",
    response={200: ProfileResponse, 401: ErrorResponse, 409: ErrorResponse},
    auth=bearer_auth,
    exclude_none=True,
    operation_id="updateProfile",
    summary="Update the current user's profile",
)
def update_profile_endpoint(
    request: AuthenticatedHttpRequest, payload: UpdateProfileRequest
) -> tuple[int, ProfileResponse | ErrorResponse]:
    """Only the fields present in the body change."""
    changes = payload.model_dump(exclude_unset=True, exclude={"email_id"})
    if payload.email_id is not None:
        changes["email"] = str(payload.email_id)

    try:
        user = update_profile(request.auth, **changes)
    except ContactTakenError as e:
        return 409, ErrorResponse(message=str(e))

    return 200, ProfileResponse(message="Profile updated successfully", data=_profile_info(user))


# --- Password reset ---


@router.post(
    "/forgot-password/check-account",
    response=AvailabilityResponse,
    exclude_none=True,
    operation_id="checkAccountForReset",
    summary="Check an account exists before a password reset",
)
def check_account_for_reset(
    request: HttpRequest, payload: ResetContactRequest
) -> AvailabilityResponse:
    exists = find_user_by_contact(payload.contact, payload.type) is not None
    message = "Account found" if exists else "Account not found"
    return AvailabilityResponse(success=True, exists=exists, message=message)


@router.post(
    "/forgot-password/send-otp",
    response={**OTP_RESPONSES, 404: ErrorResponse},
    exclude_none=True,
    operation_id="sendPasswordResetOTP",
    summary="Send a password reset OTP",
)
def send_password_reset_otp(
    request: HttpRequest, payload: ResetContactRequest
) -> tuple[int, OTPResponse | ErrorResponse]:
    """Send a reset code to the contact of an existing account."""
    user = find_user_by_contact(payload.contact, payload.type)
    if user is None:
        return 404, ErrorResponse(message="Account not found")

    result = send_otp(
        contact=payload.contact,
        channel=payload.type,
        user=user,
        ip_address=get_client_ip(request),
    )
    return render_otp_result(result)


@router.post(
    "/forgot-password/verify-otp",
    response={**OTP_RESPONSES, 200: ResetTokenResponse},
    exclude_none=True,
    operation_id="verifyPasswordResetOTP",
    summary="Verify a password reset OTP",
)
def verify_password_reset_otp(
    request: HttpRequest, payload: ResetVerifyRequest
) -> tuple[int, ResetTokenResponse | OTPResponse]:
    """On success returns a reset token valid for 15 minutes."""
    result = verify_otp(payload.contact, payload.otp_code)
    if result.status != OTPStatus.VERIFIED:
        return render_otp_result(result)

    token = PasswordResetTokenStore().issue(payload.contact)
    return 200, ResetTokenResponse(
        message=result.message,
        otp_id=result.otp_id,
        reset_token=token,
    )


@router.post(
    "/forgot-password/reset",
    response={200: MessageResponse, 400: ErrorResponse, 404: ErrorResponse},
    operation_id="resetPassword",
    summary="Reset password with a reset token",
)
def reset_password_endpoint(
    request: HttpRequest, payload: ResetPasswordRequest
) -> tuple[int, MessageResponse | ErrorResponse]:
    try:
        reset_password(payload.contact, payload.reset_token, payload.password)
    except InvalidResetTokenError as e:
        return 400, ErrorResponse(message=str(e))
    except AccountNotFoundError as e:
        return 404, ErrorResponse(message=str(e))

    return 200, MessageResponse(
        message="Password reset successfully. Please login with your new password."
    )
