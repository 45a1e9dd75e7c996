"""
Chat Models
Direct messages between two members and the global room.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class DirectMessageModel(BaseModel):
    """Message at ``conversations/{id}/messages/{id}``."""

    conversation_id: str
    sender_id: str
    sender_name: str = ""
    sender_avatar: Optional[str] = None
    content: str = Field(min_length=1, max_length=2000)
    read: bool = False

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message cannot be empty")
        return v

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class GlobalMessageModel(BaseModel):
    """Message at ``globalChat/{id}``. Text, a voice note, an image, or a mix."""

    sender_id: str
    sender_name: str = ""
    sender_avatar: Optional[str] = None
    sender_rank: str = "bronze"
    sender_level: int = 1
    content: str = Field(default="", max_length=2000)
    audio_url: Optional[str] = None
    image_url: Optional[str] = None

    @model_validator(mode="after")
    def require_body(self) -> "GlobalMessageModel":
        if not self.content.strip() and not self.audio_url and not self.image_url:
            raise ValueError("Message needs text, audio or an image")
        return self

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump()
        data["content"] = data["content"].strip()
        return data
