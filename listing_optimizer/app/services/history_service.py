from __future__ import annotations

import logging

from listing_optimizer.app.domain.errors import PersistenceError
from listing_optimizer.app.domain.models import OptimizationRecord
from listing_optimizer.app.infra.db.base import OptimizationStore
from listing_optimizer.app.services.optimization_service import validate_asin
from listing_optimizer.services.errors import InvalidAsinError
from listing_optimizer.services.ids import normalize_asin

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Failed to load optimization history"


class HistoryQuery:
    """Read-only access to stored optimizations, newest first."""

    def __init__(self, store: OptimizationStore):
        self._store = store

    def list_all(self) -> list[OptimizationRecord]:
        try:
            return self._store.query()
        except Exception as exc:
            logger.error("history.list_all_fail error=%s", exc)
            raise PersistenceError(exc, LOAD_FAILED_MESSAGE) from exc

    def list_by_asin(self, asin: str) -> list[OptimizationRecord]:
        """Records for one product; lower-case ASINs and product URLs are accepted."""
        asin = validate_asin(asin)
        try:
            asin = normalize_asin(asin)
        except InvalidAsinError:
            # records are only ever stored under canonical ASINs
            logger.info("history.list_by_asin_invalid asin=%s", asin)
            return []
        try:
            return self._store.query(asin=asin)
        except Exception as exc:
            logger.error("history.list_by_asin_fail asin=%s error=%s", asin, exc)
            raise PersistenceError(exc, LOAD_FAILED_MESSAGE) from exc
