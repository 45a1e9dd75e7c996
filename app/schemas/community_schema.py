"""
Community Request Schemas
Posts, comments, tools, chat, moderation and support.
"""

from typing import List, Optional
from pydantic import BaseModel, Field


class CommentRequest(BaseModel):
    content: str = Field(min_length=1, max_length=2000)


class ModerationRequest(BaseModel):
    """Approve or reject a post or tool."""

    approve: bool = Field(description="True to approve, False to reject")
    reason: Optional[str] = Field(default=None, max_length=500, description="Required when rejecting a tool")


class EditContentRequest(BaseModel):
    content: str = Field(min_length=1, max_length=5000)


class ToolRequest(BaseModel):
    """Submit a tool for review."""

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=2000)
    content: str = Field(min_length=1)
    category: str = Field(description="prompt, code, tool or tutorial")
    tags: List[str] = Field(default_factory=list)


class ToolUpdateRequest(BaseModel):
    """Admin edit of a tool. Omitted fields are unchanged."""

    title: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None


class StartConversationRequest(BaseModel):
    user_id: str = Field(min_length=1, description="The other participant")


class MessageRequest(BaseModel):
    content: str = Field(min_length=1, max_length=2000)


class GlobalMessageRequest(BaseModel):
    """Text, a voice note URL, an image URL, or a mix."""

    content: str = Field(default="", max_length=2000)
    audio_url: Optional[str] = None
    image_url: Optional[str] = None


class TicketRequest(BaseModel):
    subject: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1, max_length=5000)
    category: str = "general"
    priority: str = "medium"


class TicketMessageRequest(BaseModel):
    message: str = Field(min_length=1, max_length=5000)


class TicketStatusRequest(BaseModel):
    status: str
