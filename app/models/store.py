"""
Store Models
Products bought with points, purchase records and product reviews.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from app.services.progression import RANK_ORDER


class ProductModel(BaseModel):
    """Product document at ``products/{id}``."""

    name: str = Field(min_length=1, max_length=200)
    description: str = ""
    price: int = Field(ge=0, description="Price in points")
    image: str = ""
    category: str = "general"
    available: bool = True
    featured: bool = False
    required_rank: Optional[str] = None
    stock: Optional[int] = Field(default=None, ge=0, description="Units left; None means unlimited")

    @field_validator("required_rank")
    @classmethod
    def validate_rank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in RANK_ORDER:
            raise ValueError("Invalid rank")
        return v

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class PurchaseModel(BaseModel):
    """Purchase record at ``purchases/{id}``."""

    user_id: str
    user_name: str = ""
    user_email: str = ""
    product_id: str
    product_name: str
    price: int
    access_requested: bool = False
    access_delivered: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class ProductReviewModel(BaseModel):
    """Review at ``product_reviews/{user_id}_{product_id}``."""

    product_id: str
    user_id: str
    user_name: str = ""
    user_avatar: Optional[str] = None
    rating: int = Field(ge=1, le=5)
    comment: str = Field(default="", max_length=1000)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()
