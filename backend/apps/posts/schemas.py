"""
Schemas for post endpoints.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class CreatePostRequest(BaseModel):
    media_type: Literal["image", "video"]
    media_url: str = Field(..., min_length=1, max_length=500, pattern=r"^https?://")
    title: str | None = Field(None, max_length=255)
    description: str | None = None


class UpdatePostRequest(BaseModel):
    """Fields the author may change. Omitted fields stay as they are."""

    title: str | None = Field(None, max_length=255)
    description: str | None = None
    is_boosted: bool | None = None
    boost_expiry: datetime | None = None


class PostSchema(BaseModel):
    id: int
    user_id: int
    media_type: str
    media_url: str
    title: str
    description: str
    views: int
    is_boosted: bool
    boost_expiry: datetime | None = None
    expires_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class PostResponse(BaseModel):
    success: bool = True
    message: str
    data: PostSchema


class PostListResponse(BaseModel):
    success: bool = True
    data: list[PostSchema]


class ViewsResponse(BaseModel):
    views: int
