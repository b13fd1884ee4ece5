from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from listing_optimizer.app.domain.models import OptimizationRecord, OptimizationResult


class OptimizeRequest(BaseModel):
    # Optional so a missing ASIN reaches the orchestrator and is reported as 400.
    asin: Optional[str] = None


class ListingOut(BaseModel):
    title: str = ""
    bullets: list[str] = Field(default_factory=list)
    description: str = ""


class OptimizedListingOut(ListingOut):
    keywords: list[str] = Field(default_factory=list)


class OptimizationResponse(BaseModel):
    id: str
    asin: str
    imageUrl: Optional[str] = None
    original: ListingOut
    optimized: OptimizedListingOut
    created_at: datetime

    @classmethod
    def from_result(cls, result: OptimizationResult) -> OptimizationResponse:
        return cls(
            id=result.id,
            asin=result.asin,
            imageUrl=result.image_ref,
            original=ListingOut(
                title=result.original.title,
                bullets=result.original.bullets,
                description=result.original.description,
            ),
            optimized=OptimizedListingOut(
                title=result.optimized.title,
                bullets=result.optimized.bullets,
                description=result.optimized.description,
                keywords=result.keywords,
            ),
            created_at=result.created_at,
        )


class OptimizationRecordResponse(BaseModel):
    """Stored record in the flat shape the history views read."""
    id: str
    asin: str
    imageUrl: Optional[str] = None
    original_title: str = ""
    original_bullets: list[str] = Field(default_factory=list)
    original_description: str = ""
    optimized_title: str = ""
    optimized_bullets: list[str] = Field(default_factory=list)
    optimized_description: str = ""
    keywords: list[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: OptimizationRecord) -> OptimizationRecordResponse:
        return cls(
            id=record.id,
            asin=record.asin,
            imageUrl=record.image_ref,
            original_title=record.original.title,
            original_bullets=record.original.bullets,
            original_description=record.original.description,
            optimized_title=record.optimized.title,
            optimized_bullets=record.optimized.bullets,
            optimized_description=record.optimized.description,
            keywords=record.keywords,
            created_at=record.created_at,
        )


class ErrorResponse(BaseModel):
    error: str
