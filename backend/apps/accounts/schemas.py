"""
Auth API schemas - Pydantic models for request/response.
"""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from apps.core.contacts import ContactChannel, is_valid_contact, is_valid_phone
from apps.otp.schemas import INVALID_CONTACT_MESSAGE, INVALID_PHONE_MESSAGE

USERNAME_PATTERN = r"^[a-z0-9._]+$"

# --- Request Schemas ---


class RegisterRequest(BaseModel):
    """Request to create an account."""

    username: str = Field(..., min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    full_name: str = Field("", max_length=255)
    email_id: EmailStr | None = Field(None, max_length=255)
    phone_number: str | None = Field(None, min_length=10, max_length=15)
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("phone_number")
    @classmethod
    def validate_phone_number(cls, v: str | None) -> str | None:
        if v is not None and not is_valid_phone(v):
            raise ValueError(INVALID_PHONE_MESSAGE)
        return v

    @model_validator(mode="after")
    def require_contact(self) -> "RegisterRequest":
        if not self.phone_number and not self.email_id:
            raise ValueError("Either phone number or email is required")
        return self


class LoginRequest(BaseModel):
    """Request to sign in with email, phone number or username."""

    identifier: str = Field(
        ...,
        min_length=3,
        max_length=255,
        description="Email, phone number or username",
        examples=["user@example.com"],
    )
    password: str = Field(..., min_length=1, max_length=128)


class CheckContactRequest(BaseModel):
    """Request to check whether a phone number or email is free."""

    phone_number: str | None = Field(None, max_length=15)
    email_id: EmailStr | None = Field(None, max_length=255)

    @field_validator("phone_number")
    @classmethod
    def validate_phone_number(cls, v: str | None) -> str | None:
        if v and not is_valid_phone(v):
            raise ValueError(INVALID_PHONE_MESSAGE)
        return v

    @model_validator(mode="after")
    def require_contact(self) -> "CheckContactRequest":
        if not self.phone_number and not self.email_id:
            raise ValueError("Either phone number or email is required")
        return self


class CheckUsernameRequest(BaseModel):
    """Request to check whether a username is free."""

    username: str = Field(..., min_length=3, max_length=30, pattern=USERNAME_PATTERN)


class ResetContactRequest(BaseModel):
    """Identifies the account a password reset is for."""

    contact: str = Field(..., min_length=3, max_length=255)
    type: ContactChannel = Field(..., description="Channel of the contact: email or phone")

    @model_validator(mode="after")
    def validate_contact(self) -> "ResetContactRequest":
        """The contact must be well formed for its declared channel."""
        if not is_valid_contact(self.contact, self.type):
            raise ValueError(INVALID_CONTACT_MESSAGE)
        return self


class ResetVerifyRequest(BaseModel):
    """Request to verify a password reset OTP."""

    contact: str = Field(..., min_length=3, max_length=255)
    otp_code: str = Field(..., min_length=6, max_length=6)

    @field_validator("contact")
    @classmethod
    def validate_contact(cls, v: str) -> str:
        if not is_valid_contact(v):
            raise ValueError(INVALID_CONTACT_MESSAGE)
        return v


class ResetPasswordRequest(BaseModel):
    """Request to set a new password with a reset token."""

    contact: str = Field(..., min_length=3, max_length=255)
    reset_token: str = Field(..., min_length=1, max_length=128)
    password: str = Field(..., min_length=6, max_length=128)
    password_confirmation: str = Field(..., min_length=6, max_length=128)

    @field_validator("contact")
    @classmethod
    def validate_contact(cls, v: str) -> str:
        if not is_valid_contact(v):
            raise ValueError(INVALID_CONTACT_MESSAGE)
        return v

    @model_validator(mode="after")
    def passwords_match(self) -> "ResetPasswordRequest":
        if self.password != self.password_confirmation:
            raise ValueError("Password confirmation does not match")
        return self


class RefreshRequest(BaseModel):
    """Request to exchange a refresh token for a new token pair."""

    refresh_token: str = Field(..., min_length=1)


class UpdateProfileRequest(BaseModel):
    """Profile changes; omitted fields are left as they are."""

    full_name: str | None = Field(None, max_length=255)
    username: str | None = Field(None, min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    email_id: EmailStr | None = Field(None, max_length=255)
    phone_number: str | None = Field(None, max_length=15)
    bio: str | None = Field(None, max_length=500)
    location: str | None = Field(None, max_length=255)
    website: str | None = Field(None, max_length=255)
    occupation: str | None = Field(None, max_length=255)
    birthdate: date | None = None
    profile_visibility: Literal["public", "friends", "private"] | None = None

    @field_validator("phone_number")
    @classmethod
    def validate_phone_number(cls, v: str | None) -> str | None:
        if v is not None and not is_valid_phone(v):
            raise ValueError(INVALID_PHONE_MESSAGE)
        return v


# --- Response Schemas ---


class UserInfo(BaseModel):
    """Public view of a user."""

    id: int
    username: str
    full_name: str
    email: str | None
    phone_number: str | None
    email_verified_at: datetime | None
    phone_verified_at: datetime | None
    created_at: datetime


class AuthResponse(BaseModel):
    """Returned after register and login."""

    success: bool = True
    message: str
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    refresh_token: str
    user: UserInfo


class UserSummary(BaseModel):
    id: int
    username: str
    full_name: str


class UserListResponse(BaseModel):
    success: bool = True
    data: list[UserSummary]


class ProfileInfo(UserInfo):
    """Full profile of the signed-in user."""

    bio: str
    location: str
    website: str
    occupation: str
    birthdate: date | None
    profile_visibility: str


class ProfileResponse(BaseModel):
    success: bool = True
    message: str | None = None
    data: ProfileInfo


class MeResponse(BaseModel):
    success: bool = True
    user: UserInfo


class AvailabilityResponse(BaseModel):
    """Whether a contact or username is already taken."""

    success: bool
    exists: bool
    message: str
    contact_type: str | None = None


class ResetTokenResponse(BaseModel):
    """Successful reset OTP verification, with the token for the final step."""

    success: bool = True
    message: str
    otp_id: int | None = None
    reset_token: str
