"""
Schemas for circle and invitation endpoints.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from apps.accounts.schemas import UserSummary


class CreateCircleRequest(BaseModel):
    """Request to create a circle and invite its founding members."""

    circle_name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=5)
    categories: list[str] = Field(..., min_length=1)
    members: list[int] = Field(
        ...,
        min_length=1,
        description="User ids to invite; at least 10 distinct users are required",
    )
    circle_type: Literal["public", "private"] = "public"
    allow_join_request: bool = False
    only_admin_can_post: bool = False


class MemberSchema(BaseModel):
    user: UserSummary
    role: str
    joined_at: datetime


class InvitationSchema(BaseModel):
    id: int
    circle_id: int
    user: UserSummary
    status: str
    accepted_at: datetime | None = None
    declined_at: datetime | None = None
    created_at: datetime


class CircleSchema(BaseModel):
    id: int
    name: str
    description: str
    categories: list[str]
    circle_type: str
    allow_join_request: bool
    only_admin_can_post: bool
    status: str
    created_by: UserSummary
    invitations_sent: int
    invitations_accepted: int
    invitations_declined: int
    created_at: datetime


class CircleDetailSchema(CircleSchema):
    members: list[MemberSchema]
    invitations: list[InvitationSchema]


class CircleResponse(BaseModel):
    success: bool = True
    message: str
    data: CircleSchema


class CircleDetailResponse(BaseModel):
    success: bool = True
    data: CircleDetailSchema


class CircleStatusResponse(BaseModel):
    success: bool = True
    status: str
    accepted: int


class PendingRequestsResponse(BaseModel):
    success: bool = True
    data: list[InvitationSchema]


class InvitationResponse(BaseModel):
    """Result of resolving an invitation."""

    success: bool
    message: str
    circle_status: str | None = None
