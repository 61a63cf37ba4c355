"""Shared API response models."""

import math

from pydantic import BaseModel, ConfigDict, Field

from parking.models.base import ParkingModel

__all__ = [
    "Pagination",
    "SuccessMessage",
]


class Pagination(ParkingModel):
    """Page position within a filtered listing."""

    current_page: int = Field(..., ge=1, examples=[1])
    total_pages: int = Field(..., ge=0, examples=[3])
    total_count: int = Field(..., ge=0, examples=[25])
    limit: int = Field(..., ge=1, examples=[10])
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total_count: int) -> "Pagination":
        """Derive page counts for a listing of total_count items."""
        total_pages = math.ceil(total_count / limit)
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_count=total_count,
            limit=limit,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


class SuccessMessage(BaseModel):
    """Generic success response for operations without data payload.

    Used for endpoints that just need to acknowledge success,
    like DELETE operations.
    """

    model_config = ConfigDict(strict=True)

    success: bool = True
    message: str = Field(
        default="Operation completed successfully",
        description="Human-readable success message",
    )
