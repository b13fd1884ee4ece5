# listing_optimizer/app/deps.py (composition root: one shared instance per collaborator)

from __future__ import annotations

from pathlib import Path

from supabase import create_client

from listing_optimizer.app.config import settings
from listing_optimizer.app.infra.db.base import OptimizationStore
from listing_optimizer.app.infra.db.memory_repo import InMemoryOptimizationStore
from listing_optimizer.app.infra.db.supabase_optimizations_repo import SupabaseOptimizationStore
from listing_optimizer.app.services.history_service import HistoryQuery
from listing_optimizer.app.services.optimization_service import OptimizationOrchestrator
from listing_optimizer.services.fetcher import DEFAULT_USER_AGENT, AmazonProductFetcher
from listing_optimizer.services.gemini_client import SYSTEM_PROMPT, GeminiClient
from listing_optimizer.services.listing_generator import GeminiListingGenerator

_store: OptimizationStore | None = None
_fetcher: AmazonProductFetcher | None = None
_generator: GeminiListingGenerator | None = None


def get_store() -> OptimizationStore:
    global _store
    if _store is None:
        if settings.STORE_BACKEND == "memory":
            _store = InMemoryOptimizationStore()
        else:
            if settings.SUPABASE_URL is None or not settings.SUPABASE_SERVICE_ROLE_KEY:
                raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY required")
            client = create_client(str(settings.SUPABASE_URL), settings.SUPABASE_SERVICE_ROLE_KEY)
            _store = SupabaseOptimizationStore(client, table_name=settings.OPTIMIZATIONS_TABLE)
    return _store


def get_fetcher() -> AmazonProductFetcher:
    global _fetcher
    if _fetcher is None:
        _fetcher = AmazonProductFetcher(
            base_url=settings.AMAZON_BASE_URL,
            timeout=settings.FETCH_TIMEOUT_SECONDS,
            max_retries=settings.FETCH_MAX_RETRIES,
            retry_backoff_seconds=settings.FETCH_RETRY_BACKOFF_SECONDS,
            user_agent=settings.FETCH_USER_AGENT or DEFAULT_USER_AGENT,
        )
    return _fetcher


def get_generator() -> GeminiListingGenerator:
    global _generator
    if _generator is None:
        prompt_path = Path(settings.SYSTEM_PROMPT_PATH) if settings.SYSTEM_PROMPT_PATH else SYSTEM_PROMPT
        client = GeminiClient(
            api_key=settings.GEMINI_API_KEY,
            system_prompt_path=prompt_path,
            model_name=settings.GEMINI_MODEL,
        )
        _generator = GeminiListingGenerator(client)
    return _generator


def get_orchestrator() -> OptimizationOrchestrator:
    return OptimizationOrchestrator(
        fetcher=get_fetcher(),
        generator=get_generator(),
        store=get_store(),
    )


def get_history_query() -> HistoryQuery:
    return HistoryQuery(get_store())
