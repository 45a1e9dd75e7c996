"""
User Request Schemas
API schemas for authentication, profiles, cosmetics and referrals.
"""

from typing import Optional
from pydantic import BaseModel, Field, field_validator


class SignUpRequest(BaseModel):
    """Local account signup request."""

    email: str = Field(min_length=3, max_length=254, description="Account email")
    password: str = Field(min_length=6, max_length=72, description="Password (6 to 72 characters)")
    display_name: Optional[str] = Field(default=None, max_length=60, description="Public display name")
    referral_code: Optional[str] = Field(default=None, description="Referral code of the inviting member")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Require a plausible email address."""
        v = v.strip().lower()
        local, _, domain = v.partition("@")
        if not local or "." not in domain:
            raise ValueError("Invalid email address")
        return v

    @field_validator("password")
    @classmethod
    def validate_password_bytes(cls, v: str) -> str:
        """bcrypt hashes at most 72 bytes; multi-byte characters count in full."""
        if len(v.encode()) > 72:
            raise ValueError("Password must be at most 72 bytes")
        return v


class LoginRequest(BaseModel):
    """Local account login request."""

    email: str = Field(description="Account email")
    password: str = Field(description="Password")


class BootstrapProfileRequest(BaseModel):
    """First sign-in with a Firebase account."""

    display_name: Optional[str] = Field(default=None, max_length=60)
    referral_code: Optional[str] = None


class UpdateProfileRequest(BaseModel):
    """Profile update request."""

    display_name: Optional[str] = Field(default=None, max_length=60, description="New display name")


class CosmeticRequest(BaseModel):
    """Unlock or equip an avatar or frame."""

    kind: str = Field(description="avatar or frame")
    item_id: str = Field(min_length=1)

    @field_validator("kind")
    @classmethod
    def validate_kind(cls, v: str) -> str:
        if v not in ("avatar", "frame"):
            raise ValueError("Kind must be avatar or frame")
        return v


class ReferralRequest(BaseModel):
    """Apply a referral code to the current user."""

    code: str = Field(min_length=1)
