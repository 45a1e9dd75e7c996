"""
Tutorial Request Schemas
"""

from typing import Optional
from pydantic import BaseModel, Field


class TopicRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    thumbnail_url: Optional[str] = None
    is_published: bool = False


class TopicUpdateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    is_published: Optional[bool] = None
    order: Optional[int] = Field(default=None, ge=0)


class LessonRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    youtube_url: str = Field(min_length=1, description="YouTube URL or 11-character video id")
    duration: Optional[str] = None


class LessonUpdateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    youtube_url: Optional[str] = None
    duration: Optional[str] = None
    order: Optional[int] = Field(default=None, ge=0)


class TutorialReviewRequest(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=1000)


class ReviewApprovalRequest(BaseModel):
    approved: bool
