"""
Standard API Response Wrappers
Generic response schemas for API endpoints.
"""

from typing import TypeVar, Generic, List, Optional, Dict, Any
from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    success: bool = Field(default=True, description="Whether the operation was successful")
    data: Optional[T] = Field(default=None, description="Response data")
    message: str = Field(default="", description="Response message")

    @classmethod
    def ok(cls, data: Any = None, message: str = "Success") -> "ApiResponse":
        """Create a successful response."""
        return cls(success=True, data=data, message=message)


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated response wrapper."""

    items: List[T] = Field(description="Items in current page")
    total: int = Field(ge=0, description="Total items")
    page: int = Field(ge=1, description="Current page number")
    page_size: int = Field(ge=1, description="Items per page")
    has_more: bool = Field(description="Whether more pages exist")

    @property
    def total_pages(self) -> int:
        """Calculate total number of pages."""
        return (self.total + self.page_size - 1) // self.page_size


class ErrorBody(BaseModel):
    """Error payload inside the failure envelope."""

    code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Error message")
    details: Dict[str, Any] = Field(default_factory=dict, description="Additional error details")


class ErrorResponse(BaseModel):
    """Failure envelope returned by the exception handlers."""

    success: bool = False
    error: ErrorBody
