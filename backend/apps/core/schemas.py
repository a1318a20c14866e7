"""
Core schemas - shared Pydantic models for API responses.
"""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    success: bool = False
    message: str = Field(..., description="Human-readable error message")

    model_config = {
        "json_schema_extra": {"example": {"success": False, "message": "Invalid or expired token."}}
    }


class MessageResponse(BaseModel):
    """Plain success acknowledgement."""

    success: bool = True
    message: str
