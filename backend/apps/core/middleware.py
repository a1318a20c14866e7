"""
Core middleware.
"""

import time
import uuid
from collections.abc import Callable

from django.http import HttpRequest, HttpResponse

from apps.core.logging import bind_contextvars, clear_contextvars, get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware:
    """
    Binds a request id and the request line to the structlog context.

    Every log event emitted while handling the request carries
    ``request_id``, ``http.method`` and ``http.path``. The id is taken from
    an incoming X-Request-ID header when present and echoed on the response.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        request_id = request.META.get("HTTP_X_REQUEST_ID") or uuid.uuid4().hex
        clear_contextvars()
        bind_contextvars(
            request_id=request_id,
            **{"http.method": request.method, "http.path": request.path},
        )

        started = time.monotonic()
        try:
            response = self.get_response(request)
            logger.info(
                "request_finished",
                **{"http.status_code": response.status_code},
                duration_ms=(time.monotonic() - started) * 1000,
            )
            response[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            clear_contextvars()
