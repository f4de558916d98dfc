"""Common Pydantic v2 schemas shared across the API.

Provides pagination, error response, and other shared schemas.
"""

from pydantic import BaseModel, Field


class PaginationParams(BaseModel):
    """Query parameters for paginated endpoints."""

    page: int = Field(default=1, ge=1, description="Page number (1-based)")
    limit: int = Field(default=10, ge=1, le=100, description="Items per page")


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str = Field(description="Human-readable error message")


class MessageResponse(BaseModel):
    """Plain acknowledgement response."""

    message: str
