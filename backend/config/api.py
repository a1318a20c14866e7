"""
Django Ninja API configuration.
"""

from django.db import DatabaseError
from django.http import HttpRequest, HttpResponse
from ninja import NinjaAPI

from apps.accounts.api import router as auth_router
from apps.circles.api import router as circles_router
from apps.core.logging import get_logger
from apps.otp.api import router as otp_router
from apps.posts.api import router as posts_router

logger = get_logger(__name__)

api = NinjaAPI(
    title="Dealzta API",
    version="1.0.0",
    description="Dealzta API: accounts, OTP verification, circles and posts.",
    openapi_extra={
        "info": {
            "contact": {"name": "API Support"},
        },
        "tags": [
            {
                "name": "auth",
                "description": "Registration, login, sessions, profiles and password reset",
            },
            {
                "name": "OTP",
                "description": "One-time code delivery and verification for email and phone",
            },
            {
                "name": "circles",
                "description": "Circle creation and invitation handling",
            },
            {
                "name": "posts",
                "description": "Short-lived media posts",
            },
            {
                "name": "health",
                "description": "Service health and readiness checks",
            },
        ],
        "components": {
            "securitySchemes": {
                "bearerAuth": {
                    "type": "http",
                    "scheme": "bearer",
                    "bearerFormat": "JWT",
                    "description": "Access token returned by /auth/login or /auth/register. Include as: Authorization: Bearer <access_token>",
                }
            }
        },
    },
)

# Register routers
api.add_router("/auth", auth_router)
api.add_router("/auth", otp_router)
api.add_router("/circles", circles_router)
api.add_router("/posts", posts_router)


@api.exception_handler(DatabaseError)
def database_error(request: HttpRequest, exc: DatabaseError) -> HttpResponse:
    """Store failures surface as a generic 500; details stay in the logs."""
    logger.exception("database_error", path=request.path)
    return api.create_response(
        request,
        {"success": False, "message": "Something went wrong. Please try again."},
        status=500,
    )


@api.get("/health", tags=["health"], operation_id="healthCheck", summary="Health check")
def health_check(request: HttpRequest) -> dict:
    """Health check endpoint for load balancer."""
    return {"status": "ok"}
