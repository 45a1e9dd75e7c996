"""
Community Models
Posts, comments, shared tools and notifications stored in Firestore.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

MODERATION_STATUSES = ("pending", "approved", "rejected")
TOOL_CATEGORIES = ("prompt", "code", "tool", "tutorial")
NOTIFICATION_TYPES = (
    "like",
    "comment",
    "message",
    "new_product",
    "post_approved",
    "post_rejected",
    "tool_approved",
    "tool_rejected",
    "ticket_reply",
)


class AuthorSnapshot(BaseModel):
    """Author fields copied onto content at write time."""

    author_id: str
    author_name: str
    author_avatar: Optional[str] = None
    author_rank: str = "bronze"
    author_level: int = 1

    @classmethod
    def from_profile(cls, profile: Dict[str, Any]) -> "AuthorSnapshot":
        return cls(
            author_id=profile["uid"],
            author_name=profile.get("display_name") or "",
            author_avatar=profile.get("photo_url"),
            author_rank=profile.get("rank", "bronze"),
            author_level=profile.get("level", 1),
        )


class PostModel(AuthorSnapshot):
    """Post document at ``posts/{id}``."""

    content: str = Field(min_length=1, max_length=5000)
    image_url: Optional[str] = None
    image_path: Optional[str] = None
    likes: List[str] = Field(default_factory=list, description="Uids that liked the post")
    comments_count: int = Field(default=0, ge=0)
    status: str = Field(default="pending")

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Content cannot be empty")
        return v

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class CommentModel(AuthorSnapshot):
    """Comment document at ``posts/{post_id}/comments/{id}``."""

    post_id: str
    content: str = Field(min_length=1, max_length=2000)

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Comment cannot be empty")
        return v

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class ToolModel(BaseModel):
    """Shared resource document at ``tools/{id}``."""

    user_id: str
    user_name: str
    user_avatar: Optional[str] = None
    user_level: int = 1
    user_rank: str = "bronze"
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=2000)
    content: str = Field(min_length=1)
    category: str
    tags: List[str] = Field(default_factory=list)
    likes: List[str] = Field(default_factory=list)
    saves: List[str] = Field(default_factory=list)
    views: int = 0
    status: str = "pending"

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        if v not in TOOL_CATEGORIES:
            raise ValueError(f"Category must be one of {', '.join(TOOL_CATEGORIES)}")
        return v

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: List[str]) -> List[str]:
        return [t.strip().lower() for t in v if t.strip()]

    @field_validator("title", "description", "content")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class NotificationModel(BaseModel):
    """Notification document at ``notifications/{id}``."""

    user_id: str
    type: str
    title: str = ""
    message: str = ""
    from_user_id: Optional[str] = None
    from_user_name: Optional[str] = None
    from_user_avatar: Optional[str] = None
    post_id: Optional[str] = None
    post_content: Optional[str] = None
    comment_content: Optional[str] = None
    product_id: Optional[str] = None
    product_price: Optional[int] = None
    read: bool = False

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        if v not in NOTIFICATION_TYPES:
            raise ValueError("Invalid notification type")
        return v

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()
