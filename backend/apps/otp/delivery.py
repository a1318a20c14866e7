"""
OTP delivery gateway.

Email goes through Django's mail framework; SMS goes through the AWS End
User Messaging (pinpoint-sms-voice-v2) API via boto3. Both calls are bounded
by DELIVERY_TIMEOUT_SECONDS and are never retried here: a failure is
reported to the caller as DeliveryError.
"""

import smtplib
from functools import lru_cache
from typing import Any, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings
from django.core.mail import send_mail

from apps.core.contacts import ContactChannel, mask_contact
from apps.core.logging import get_logger

logger = get_logger(__name__)

EMAIL_SUBJECT = "Your Dealzta Verification Code"


class DeliveryError(Exception):
    """Raised when a code could not be handed to the provider."""

    pass


class DeliveryGateway(Protocol):
    """Capability the OTP engine uses to reach a contact."""

    def send_email(self, contact: str, code: str) -> None: ...

    def send_sms(self, contact: str, code: str) -> None: ...


@lru_cache(maxsize=1)
def get_sms_client() -> Any:
    """
    Get AWS SMS client (pinpoint-sms-voice-v2).

    Cached so the connection pool is reused. Timeouts are bounded and
    botocore's own retries are disabled.
    """
    timeout = settings.DELIVERY_TIMEOUT_SECONDS
    return boto3.client(
        "pinpoint-sms-voice-v2",
        region_name=settings.AWS_SMS_REGION,
        config=Config(
            connect_timeout=timeout,
            read_timeout=timeout,
            retries={"total_max_attempts": 1, "mode": "standard"},
        ),
    )


def otp_message(code: str) -> str:
    return f"{code} is your {settings.AWS_SMS_SENDER_NAME.title()} verification code. It expires in {settings.OTP_EXPIRY_MINUTES} minutes."


class ProviderGateway:
    """Default gateway backed by SMTP (via Django) and AWS SMS."""

    def send_email(self, contact: str, code: str) -> None:
        try:
            send_mail(
                subject=EMAIL_SUBJECT,
                message=otp_message(code),
                from_email=settings.DEFAULT_FROM_EMAIL,
                recipient_list=[contact],
                fail_silently=False,
            )
        except (smtplib.SMTPException, OSError) as e:
            logger.error("otp_email_failed", contact=mask_contact(contact), error=str(e))
            raise DeliveryError(f"Failed to send email OTP: {e}") from e

        logger.info("otp_email_sent", contact=mask_contact(contact))

    def send_sms(self, contact: str, code: str) -> None:
        if not settings.AWS_SMS_ORIGINATION_IDENTITY:
            logger.error("otp_sms_not_configured")
            raise DeliveryError("SMS service not configured")

        client = get_sms_client()

        try:
            response = client.send_text_message(
                DestinationPhoneNumber=to_e164(contact),
                OriginationIdentity=settings.AWS_SMS_ORIGINATION_IDENTITY,
                MessageBody=otp_message(code),
                MessageType="TRANSACTIONAL",
            )
        except ClientError as e:
            error = e.response.get("Error", {})
            logger.error(
                "otp_sms_failed",
                contact=mask_contact(contact),
                error_code=error.get("Code", "Unknown"),
                error=error.get("Message", str(e)),
            )
            raise DeliveryError(f"Failed to send SMS OTP: {error.get('Message', str(e))}") from e
        except BotoCoreError as e:
            logger.error("otp_sms_failed", contact=mask_contact(contact), error=str(e))
            raise DeliveryError(f"SMS service error: {e}") from e

        logger.info(
            "otp_sms_sent",
            contact=mask_contact(contact),
            message_id=response.get("MessageId"),
        )


def to_e164(phone: str) -> str:
    """Turn a normalized national number back into E.164 for the provider."""
    if phone.startswith("+"):
        return phone
    if len(phone) == 10:
        return f"+91{phone}"
    return f"+{phone}"


def dispatch(gateway: DeliveryGateway, channel: ContactChannel | str, contact: str, code: str) -> None:
    """Route a code to the gateway method for its channel."""
    if ContactChannel(channel) == ContactChannel.EMAIL:
        gateway.send_email(contact, code)
    else:
        gateway.send_sms(contact, code)


@lru_cache(maxsize=1)
def get_default_gateway() -> ProviderGateway:
    return ProviderGateway()
