# listing_optimizer/app/infra/db/base.py
"""
Abstract base class for the optimization history store.
This interface allows easy swapping between different storage backends.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from listing_optimizer.app.domain.models import (
    GeneratedListing,
    ListingContent,
    OptimizationRecord,
)


class OptimizationStore(ABC):
    """
    Append-only record of every optimization run.

    Implementations:
    - SupabaseOptimizationStore: Postgres table behind Supabase
    - InMemoryOptimizationStore: process-local list, for development and tests
    """

    @abstractmethod
    def append(
        self,
        asin: str,
        original: ListingContent,
        optimized: GeneratedListing,
    ) -> OptimizationRecord:
        """
        Persist one optimization run.

        The write is atomic: either the full record becomes visible to
        subsequent queries or none of it does.

        Args:
            asin: Source product identifier
            original: Listing as fetched from the source
            optimized: Listing returned by the generator, with keywords

        Returns:
            The stored record, with its assigned id and created_at
        """
        pass

    @abstractmethod
    def query(
        self,
        asin: Optional[str] = None,
    ) -> list[OptimizationRecord]:
        """
        List stored records, ordered by created_at descending (newest first).

        Args:
            asin: If provided, only return records for this identifier

        Returns:
            List of records; empty when nothing matches
        """
        pass
