from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from listing_optimizer.app.domain.models import (
    GeneratedListing,
    ListingContent,
    OptimizationRecord,
)
from listing_optimizer.app.infra.db.base import OptimizationStore

logger = logging.getLogger(__name__)


class InMemoryOptimizationStore(OptimizationStore):
    def __init__(self) -> None:
        self._records: list[OptimizationRecord] = []
        self._lock = threading.Lock()

    def append(
        self,
        asin: str,
        original: ListingContent,
        optimized: GeneratedListing,
    ) -> OptimizationRecord:
        record = OptimizationRecord(
            id=str(uuid4()),
            asin=asin,
            original=original.normalized(),
            optimized=optimized.to_listing(),
            keywords=optimized.normalized_keywords(),
            created_at=datetime.now(timezone.utc),
        )

        with self._lock:
            self._records.append(record)

        logger.info("Stored optimization: id=%s, asin=%s", record.id, asin)
        return record

    def query(self, asin: Optional[str] = None) -> list[OptimizationRecord]:
        with self._lock:
            snapshot = list(self._records)

        if asin is not None:
            snapshot = [record for record in snapshot if record.asin == asin]

        # newest first
        return list(reversed(snapshot))

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
