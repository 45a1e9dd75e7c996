"""
Tutorial Models
Topics, YouTube lessons, per-user views and topic reviews.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class TopicModel(BaseModel):
    """Topic document at ``tutorial_topics/{id}``."""

    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    thumbnail_url: Optional[str] = None
    lessons_count: int = 0
    order: int = 0
    is_published: bool = False
    created_by: str

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class LessonModel(BaseModel):
    """Lesson document at ``tutorial_lessons/{id}``."""

    topic_id: str
    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    youtube_url: str
    youtube_id: str = Field(min_length=11, max_length=11)
    duration: Optional[str] = None
    order: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class TutorialViewModel(BaseModel):
    """View record at ``tutorial_views/{user_id}_{lesson_id}``."""

    lesson_id: str
    lesson_title: str
    topic_id: str
    topic_title: str
    user_id: str
    user_name: str = ""
    user_email: str = ""
    user_avatar: Optional[str] = None
    completed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class TutorialReviewModel(BaseModel):
    """Review at ``tutorial_reviews/{user_id}_{topic_id}``."""

    user_id: str
    user_name: str = ""
    user_avatar: Optional[str] = None
    topic_id: str
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=1000)
    is_approved: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()
