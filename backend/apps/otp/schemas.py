"""
Schemas for OTP endpoints.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from apps.core.contacts import ContactChannel, is_valid_contact, is_valid_phone

INVALID_PHONE_MESSAGE = "Enter a valid 10-digit mobile number"
INVALID_CONTACT_MESSAGE = "Enter a valid email address or 10-digit mobile number"


class SendOTPRequest(BaseModel):
    """Request to send an OTP to a phone number or an email address."""

    phone_number: str | None = Field(
        None,
        min_length=10,
        max_length=15,
        description="Phone number, with or without country code",
        examples=["+919876543210"],
    )
    email_id: EmailStr | None = Field(
        None,
        max_length=255,
        description="Email address",
        examples=["user@example.com"],
    )

    @field_validator("phone_number")
    @classmethod
    def validate_phone_number(cls, v: str | None) -> str | None:
        """Ensure the number reduces to a full national number."""
        if v is not None and not is_valid_phone(v):
            raise ValueError(INVALID_PHONE_MESSAGE)
        return v

    @model_validator(mode="after")
    def require_contact(self) -> "SendOTPRequest":
        if not self.phone_number and not self.email_id:
            raise ValueError("Either phone number or email is required")
        return self

    @property
    def contact(self) -> str:
        """Phone wins when both are supplied."""
        return self.phone_number or str(self.email_id)

    @property
    def channel(self) -> ContactChannel:
        return ContactChannel.PHONE if self.phone_number else ContactChannel.EMAIL


class VerifyOTPRequest(BaseModel):
    """Request to verify an OTP code."""

    contact: str = Field(
        ...,
        min_length=3,
        max_length=255,
        description="The email or phone number the code was sent to",
        examples=["+919876543210"],
    )
    otp_code: str = Field(
        ...,
        min_length=6,
        max_length=6,
        description="The 6-digit code",
        examples=["007421"],
    )

    @field_validator("contact")
    @classmethod
    def validate_contact(cls, v: str) -> str:
        if not is_valid_contact(v):
            raise ValueError(INVALID_CONTACT_MESSAGE)
        return v


class OTPResponse(BaseModel):
    """Result of an OTP send or verify call."""

    success: bool
    message: str
    otp_id: int | None = None
    expires_at: datetime | None = None
    attempts_remaining: int | None = None
    time_until_reset: str | None = None
    debug_otp: str | None = Field(
        None,
        description="The raw code, only returned when OTP debug mode is enabled",
    )
