"""
Store and Admin Request Schemas
Products, purchases, access delivery, reviews, missions and user administration.
"""

from typing import Optional
from pydantic import BaseModel, Field


class ProductRequest(BaseModel):
    """Create a product."""

    name: str = Field(min_length=1, max_length=200)
    description: str = ""
    price: int = Field(ge=0, description="Price in points")
    image: str = ""
    category: str = "general"
    available: bool = True
    featured: bool = False
    required_rank: Optional[str] = None
    stock: Optional[int] = Field(default=None, ge=0)


class ProductUpdateRequest(BaseModel):
    """Partial product update. Omitted fields are unchanged."""

    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[int] = Field(default=None, ge=0)
    image: Optional[str] = None
    category: Optional[str] = None
    available: Optional[bool] = None
    featured: Optional[bool] = None
    required_rank: Optional[str] = None
    stock: Optional[int] = Field(default=None, ge=0)


class AccessRequest(BaseModel):
    message: str = Field(default="", max_length=1000)


class DeliverAccessRequest(BaseModel):
    """At least one field must be filled."""

    link: Optional[str] = None
    credentials: Optional[str] = None
    instructions: Optional[str] = None


class ReviewRequest(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=1000)


class PointsAdjustmentRequest(BaseModel):
    """Add (positive) or remove (negative) points and XP."""

    points: int = 0
    xp: int = 0


class RoleRequest(BaseModel):
    role: str = Field(description="user, moderator or admin")


class MissionDefinitionRequest(BaseModel):
    title: str = Field(min_length=1, max_length=120)
    description: str = ""
    xp_reward: int = Field(default=0, ge=0)
    points_reward: int = Field(default=0, ge=0)
    type: str = "daily"
    requirement: int = Field(default=1, ge=1)
    icon: str = "target"
    active: bool = True


class MissionDefinitionUpdateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    xp_reward: Optional[int] = Field(default=None, ge=0)
    points_reward: Optional[int] = Field(default=None, ge=0)
    type: Optional[str] = None
    requirement: Optional[int] = Field(default=None, ge=1)
    icon: Optional[str] = None
    active: Optional[bool] = None


class MissionProgressRequest(BaseModel):
    progress: int = Field(ge=0)


class AdminSetupRequest(BaseModel):
    """Promote a user to admin with the deployment's admin key."""

    user_id: str = Field(min_length=1)
