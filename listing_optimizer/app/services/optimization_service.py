# listing_optimizer/app/services/optimization_service.py
"""
Optimization orchestration.
Runs fetch -> generate -> persist for one ASIN and classifies stage failures.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Generic, Optional, Protocol, TypeVar

from listing_optimizer.app.domain.errors import (
    GenerationError,
    OptimizationCancelledError,
    PersistenceError,
    SourceFetchError,
    ValidationError,
)
from listing_optimizer.app.domain.models import (
    GeneratedListing,
    ListingContent,
    OptimizationResult,
)
from listing_optimizer.app.infra.db.base import OptimizationStore
from listing_optimizer.services.errors import OperationCancelledError
from listing_optimizer.services.ids import normalize_asin

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancelSignal(Protocol):
    def is_set(self) -> bool: ...

    def wait(self, timeout: Optional[float] = None) -> bool: ...


class SourceFetcher(Protocol):
    def fetch(self, asin: str, cancel_event: Optional[CancelSignal] = None) -> ListingContent: ...


class ListingGenerator(Protocol):
    def generate(self, listing: ListingContent, cancel_event: Optional[CancelSignal] = None) -> GeneratedListing: ...


@dataclass
class StageResult(Generic[T]):
    """Outcome of one stage call: either a value or the exception it raised."""
    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _run_stage(fn: Callable[..., T], *args: Any) -> StageResult[T]:
    try:
        return StageResult(value=fn(*args))
    except Exception as exc:
        return StageResult(error=exc)


def validate_asin(asin: object) -> str:
    if not isinstance(asin, str) or not asin.strip():
        raise ValidationError("ASIN is required.")
    return asin.strip()


class OptimizationOrchestrator:
    """
    Runs one optimization: fetch the source listing, generate an improved
    one, persist both. Stops at the first failing stage.

    Failure classification:
    - ValidationError: blank ASIN, nothing called
    - SourceFetchError: unparseable ASIN or fetcher failed, nothing generated
      or stored
    - GenerationError: generator failed, nothing stored
    - PersistenceError: store failed after both upstream calls succeeded

    No retries happen here; retry policy belongs to the collaborators.
    """

    def __init__(
        self,
        fetcher: SourceFetcher,
        generator: ListingGenerator,
        store: OptimizationStore,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._fetcher = fetcher
        self._generator = generator
        self._store = store
        self._clock = clock

    def optimize(
        self,
        asin: Optional[str],
        cancel_event: Optional[CancelSignal] = None,
    ) -> OptimizationResult:
        """
        Run fetch -> generate -> persist for one ASIN.

        Args:
            asin: Source product identifier or product URL; it is reduced to
                the canonical ASIN before any stage runs and that value is
                what gets fetched, stored and returned
            cancel_event: Optional signal checked before each stage and handed
                to the fetcher and generator; once set, no further stage is
                started

        Returns:
            OptimizationResult built from the persisted record

        Raises:
            ValidationError, SourceFetchError, GenerationError,
            PersistenceError, OptimizationCancelledError
        """
        asin = validate_asin(asin)
        t0 = time.time()
        logger.info("optimize.start asin=%s", asin)

        # an unparseable identifier can never be fetched, so it fails the fetch stage
        canonical = _run_stage(normalize_asin, asin)
        if not canonical.ok:
            logger.warning("optimize.fetch_fail asin=%s error=%s", asin, canonical.error)
            raise SourceFetchError(canonical.error) from canonical.error
        asin = canonical.value

        self._check_cancelled(asin, "fetch", cancel_event)
        fetched = _run_stage(self._fetcher.fetch, asin, cancel_event)
        self._raise_if_cancelled(fetched, asin, "fetch")
        if fetched.ok and not isinstance(fetched.value, ListingContent):
            fetched = StageResult(
                error=TypeError(f"fetcher returned {type(fetched.value).__name__}, expected ListingContent")
            )
        if not fetched.ok:
            logger.warning("optimize.fetch_fail asin=%s error=%s", asin, fetched.error)
            raise SourceFetchError(fetched.error) from fetched.error
        original: ListingContent = fetched.value

        self._check_cancelled(asin, "generation", cancel_event)
        generated = _run_stage(self._generator.generate, original.text_fields(), cancel_event)
        self._raise_if_cancelled(generated, asin, "generation")
        if not generated.ok:
            logger.warning("optimize.generate_fail asin=%s error=%s", asin, generated.error)
            raise GenerationError(generated.error) from generated.error
        optimized: GeneratedListing = generated.value

        # a single append is atomic, so the signal is only honoured before it
        self._check_cancelled(asin, "persistence", cancel_event)
        stored = _run_stage(self._store.append, asin, original, optimized)
        if not stored.ok:
            logger.error("optimize.persist_fail asin=%s error=%s", asin, stored.error)
            raise PersistenceError(stored.error) from stored.error
        record = stored.value

        created_at = record.created_at
        if created_at is None:
            logger.warning("optimize.missing_created_at asin=%s id=%s", asin, record.id)
            created_at = self._clock()

        logger.info("optimize.ok asin=%s id=%s dt=%.2fs", asin, record.id, time.time() - t0)

        normalized_original = original.normalized()
        return OptimizationResult(
            id=record.id,
            asin=asin,
            image_ref=normalized_original.image_ref,
            original=normalized_original,
            optimized=optimized.to_listing(),
            keywords=optimized.normalized_keywords(),
            created_at=created_at,
        )

    def _check_cancelled(
        self,
        asin: str,
        next_stage: str,
        cancel_event: Optional[CancelSignal],
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.info("optimize.cancelled asin=%s before=%s", asin, next_stage)
            raise OptimizationCancelledError(asin, next_stage)

    def _raise_if_cancelled(self, result: StageResult[Any], asin: str, stage: str) -> None:
        if isinstance(result.error, OperationCancelledError):
            logger.info("optimize.cancelled asin=%s during=%s", asin, stage)
            raise OptimizationCancelledError(asin, stage, during=True) from result.error
