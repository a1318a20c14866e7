"""
Core utility functions.
"""

from typing import cast, overload

from django.http import HttpRequest

# Checked in order after X-Forwarded-For; each holds a single address
_SINGLE_IP_HEADERS = ("HTTP_X_REAL_IP", "HTTP_CF_CONNECTING_IP")


@overload
def get_client_ip(request: HttpRequest) -> str | None: ...


@overload
def get_client_ip(request: HttpRequest, default: str) -> str: ...


def get_client_ip(request: HttpRequest, default: str | None = None) -> str | None:
    """
    Extract the client IP from proxy headers or REMOTE_ADDR.

    X-Forwarded-For may carry a proxy chain, so its first entry (the original
    client) wins. X-Real-IP and CF-Connecting-IP are consulted next.

    Args:
        request: The Django HTTP request.
        default: Fallback value when no IP can be determined.

    Returns:
        The client IP address, or default if not available.
    """
    x_forwarded_for: str | None = request.META.get("HTTP_X_FORWARDED_FOR")
    if x_forwarded_for:
        return x_forwarded_for.split(",")[0].strip()

    for header in _SINGLE_IP_HEADERS:
        value = request.META.get(header)
        if value:
            return cast(str, value).strip()

    remote_addr = cast(str | None, request.META.get("REMOTE_ADDR"))
    if remote_addr is not None:
        return remote_addr
    return default
