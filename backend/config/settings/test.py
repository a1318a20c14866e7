"""
Test settings.

SQLite and in-memory backends so the suite runs without external services.
"""

import os

from .base import *  # noqa: F403
from .base import _database_from_url

DEBUG = False
ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

# Row-lock contention tests only run against PostgreSQL
if os.environ.get("TEST_DATABASE_URL"):
    DATABASES = {"default": _database_from_url(os.environ["TEST_DATABASE_URL"])}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

OTP_DEBUG = False
AWS_SMS_ORIGINATION_IDENTITY = "test-origination"
