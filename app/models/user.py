"""
User Model
Represents a community member's profile stored in Firestore.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

ROLES = ("user", "moderator", "admin")
DEFAULT_DISPLAY_NAME = "Novo Membro"


class UserModel(BaseModel):
    """Profile document at ``users/{uid}``."""

    uid: str = Field(description="Unique user ID (from Firebase Auth or a local account)")
    email: str = Field(default="", description="Account email")
    display_name: str = Field(default=DEFAULT_DISPLAY_NAME, max_length=60, description="Public display name")
    photo_url: Optional[str] = Field(default=None, description="Avatar image URL")
    points: int = Field(default=0, ge=0, description="Spendable store points")
    xp: int = Field(default=0, ge=0, description="Experience points")
    level: int = Field(default=1, ge=1, description="Level derived from XP")
    rank: str = Field(default="bronze", description="Rank derived from points")
    achievements: List[str] = Field(default_factory=lambda: ["welcome"], description="Unlocked achievement ids")
    streak_days: int = Field(default=0, ge=0, description="Consecutive active days")
    last_active_date: Optional[str] = Field(default=None, description="Last active day (YYYY-MM-DD)")
    completed_modules: int = Field(default=0, ge=0, description="Completed tutorial lessons")
    unlocked_avatars: List[str] = Field(default_factory=list, description="Bought avatar ids")
    unlocked_frames: List[str] = Field(default_factory=list, description="Bought frame ids")
    current_avatar_id: Optional[str] = Field(default=None, description="Equipped avatar id")
    current_frame_id: Optional[str] = Field(default=None, description="Equipped frame id")
    role: str = Field(default="user", description="user, moderator or admin")
    referral_code: str = Field(default="", description="Code other users sign up with")
    referral_count: int = Field(default=0, ge=0, description="Users referred")
    referred_by: Optional[str] = Field(default=None, description="Referrer uid")

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        if v not in ROLES:
            raise ValueError("Invalid role")
        return v

    @field_validator("display_name")
    @classmethod
    def default_blank_name(cls, v: str) -> str:
        return v.strip() or DEFAULT_DISPLAY_NAME

    def to_dict(self) -> Dict[str, Any]:
        """Convert user to dictionary for Firestore storage."""
        return self.model_dump()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserModel":
        """Create user from Firestore dictionary, ignoring server-managed fields."""
        return cls(**{k: v for k, v in data.items() if k in cls.model_fields})
