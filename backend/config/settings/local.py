"""
Local development settings.

Extends base settings with development-friendly defaults.
"""

from .base import *  # noqa: F403
from .base import settings

DEBUG = True
ALLOWED_HOSTS = ["localhost", "127.0.0.1"]

# Codes are echoed back in OTP responses unless explicitly disabled
OTP_DEBUG = True if settings.OTP_DEBUG is None else settings.OTP_DEBUG

# Print OTP emails to the console instead of relaying through SMTP
EMAIL_BACKEND = "django.core.mail.backends.console.EmailBackend"
