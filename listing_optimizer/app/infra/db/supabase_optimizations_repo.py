from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

import httpx
from supabase import Client, PostgrestAPIError

from listing_optimizer.app.domain.errors import OptimizationStoreError
from listing_optimizer.app.domain.models import (
    GeneratedListing,
    ListingContent,
    OptimizationRecord,
)
from listing_optimizer.app.infra.db.base import OptimizationStore

logger = logging.getLogger(__name__)

DEFAULT_TABLE_NAME = "optimizations"

_STORE_ERRORS = (PostgrestAPIError, httpx.HTTPError, ConnectionError, TimeoutError)


def _parse_datetime(value: str | datetime | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None

    try:
        normalized = value.replace("Z", "+00:00") if value.endswith("Z") else value
        return datetime.fromisoformat(normalized)
    except ValueError:
        return None


def _safe_str(value: object) -> str:
    return str(value) if value else ""


def _safe_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


def _row_to_record(row: dict[str, Any]) -> OptimizationRecord:
    return OptimizationRecord(
        id=str(row["id"]),
        asin=str(row["asin"]),
        original=ListingContent(
            title=_safe_str(row.get("original_title")),
            bullets=_safe_list(row.get("original_bullets")),
            description=_safe_str(row.get("original_description")),
            image_ref=row.get("image_url") or None,
        ),
        optimized=ListingContent(
            title=_safe_str(row.get("optimized_title")),
            bullets=_safe_list(row.get("optimized_bullets")),
            description=_safe_str(row.get("optimized_description")),
        ),
        keywords=_safe_list(row.get("keywords")),
        created_at=_parse_datetime(row.get("created_at")),
    )


class SupabaseOptimizationStore(OptimizationStore):
    def __init__(self, client: Client, table_name: str = DEFAULT_TABLE_NAME):
        self._client = client
        self.table_name = table_name
        logger.info("SupabaseOptimizationStore initialized: table=%s", table_name)

    def append(
        self,
        asin: str,
        original: ListingContent,
        optimized: GeneratedListing,
    ) -> OptimizationRecord:
        row_data = self._build_row_data(asin, original, optimized)

        try:
            # A single INSERT is the atomic unit: the row is either fully visible or absent.
            result = self._client.table(self.table_name).insert(row_data).execute()
        except _STORE_ERRORS as error:
            logger.error("Error inserting optimization for asin=%s: %s", asin, error)
            raise OptimizationStoreError("append", str(error)) from error

        if not result.data:
            raise OptimizationStoreError("append", "insert returned no row")

        record = _row_to_record(result.data[0])
        logger.info("Stored optimization: id=%s, asin=%s", record.id, asin)
        return record

    def _build_row_data(
        self,
        asin: str,
        original: ListingContent,
        optimized: GeneratedListing,
    ) -> dict[str, Any]:
        original = original.normalized()
        listing = optimized.to_listing()
        return {
            "asin": asin,
            "original_title": original.title,
            "original_bullets": original.bullets,
            "original_description": original.description,
            "optimized_title": listing.title,
            "optimized_bullets": listing.bullets,
            "optimized_description": listing.description,
            "keywords": optimized.normalized_keywords(),
            "image_url": original.image_ref,
        }

    def query(self, asin: Optional[str] = None) -> list[OptimizationRecord]:
        try:
            request = self._client.table(self.table_name).select("*")
            if asin is not None:
                request = request.eq("asin", asin)
            result = request.order("created_at", desc=True).execute()
        except _STORE_ERRORS as error:
            logger.error("Error querying optimizations (asin=%s): %s", asin, error)
            raise OptimizationStoreError("query", str(error)) from error

        return [_row_to_record(row) for row in result.data or []]
