# listing_optimizer/app/domain/models.py
"""
Domain models for the listing optimization pipeline.
These are pure data structures with no infrastructure dependencies.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


def _text(value: object) -> str:
    return value if isinstance(value, str) else ""


def _string_list(value: object) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, str)]


@dataclass
class ListingContent:
    """Textual product presentation: title, feature bullets, description."""
    title: str = ""
    bullets: list[str] = field(default_factory=list)
    description: str = ""
    image_ref: Optional[str] = None

    def normalized(self) -> ListingContent:
        """Copy with missing text as "" and missing bullets as []."""
        return ListingContent(
            title=_text(self.title),
            bullets=_string_list(self.bullets),
            description=_text(self.description),
            image_ref=self.image_ref or None,
        )

    def text_fields(self) -> ListingContent:
        """Copy carrying only title, bullets and description."""
        return ListingContent(
            title=self.title,
            bullets=list(self.bullets) if self.bullets is not None else [],
            description=self.description,
        )


@dataclass
class GeneratedListing:
    """Improved listing returned by the generative backend."""
    title: str = ""
    bullets: list[str] = field(default_factory=list)
    description: str = ""
    keywords: list[str] = field(default_factory=list)

    def to_listing(self) -> ListingContent:
        return ListingContent(
            title=_text(self.title),
            bullets=_string_list(self.bullets),
            description=_text(self.description),
        )

    def normalized_keywords(self) -> list[str]:
        return _string_list(self.keywords)


@dataclass
class OptimizationRecord:
    """
    One persisted optimization run.
    ``id`` and ``created_at`` are assigned by the store.
    """
    id: str
    asin: str
    original: ListingContent
    optimized: ListingContent
    keywords: list[str] = field(default_factory=list)
    created_at: Optional[datetime] = None

    @property
    def image_ref(self) -> Optional[str]:
        return self.original.image_ref


@dataclass
class OptimizationResult:
    """Unified payload returned by a successful optimization run."""
    id: str
    asin: str
    original: ListingContent
    optimized: ListingContent
    keywords: list[str]
    created_at: datetime
    image_ref: Optional[str] = None
