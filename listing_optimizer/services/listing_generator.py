from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional, Protocol

from google.api_core import exceptions as google_exceptions

from listing_optimizer.app.domain.models import GeneratedListing, ListingContent

from .errors import (
    GenerationFailedError,
    MalformedGenerationError,
    OperationCancelledError,
    RateLimitedError,
)

logger = logging.getLogger(__name__)

RESPONSE_KEYS = ("optimized_title", "optimized_bullets", "optimized_description", "keywords")
CODE_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class JsonGenerationClient(Protocol):
    def generate_json(self, listing_payload: dict[str, Any]) -> str: ...


def _build_generation_payload(listing: ListingContent) -> dict[str, Any]:
    return {
        "title": listing.title or "",
        "bullets": list(listing.bullets or []),
        "description": listing.description or "",
    }


def _strip_code_fence(text: str) -> str:
    stripped = text.strip()
    m = CODE_FENCE_PATTERN.match(stripped)
    return m.group(1) if m else stripped


def _clean_str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _clean_str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    out: list[str] = []
    for item in value:
        if isinstance(item, str):
            text = item.strip()
            if text:
                out.append(text)
    return out


def parse_generation_response(text: str | None) -> GeneratedListing:
    if not text or not text.strip():
        raise MalformedGenerationError("Model response did not include text content.")

    try:
        data = json.loads(_strip_code_fence(text))
    except json.JSONDecodeError as error:
        raise MalformedGenerationError(f"Model response is not valid JSON: {error}") from error

    if not isinstance(data, dict):
        raise MalformedGenerationError("Model response is not a JSON object.")
    if not any(key in data for key in RESPONSE_KEYS):
        raise MalformedGenerationError(
            f"Model response has none of the expected keys: {', '.join(RESPONSE_KEYS)}"
        )

    return GeneratedListing(
        title=_clean_str(data.get("optimized_title")),
        bullets=_clean_str_list(data.get("optimized_bullets")),
        description=_clean_str(data.get("optimized_description")),
        keywords=_clean_str_list(data.get("keywords")),
    )


class CancelSignal(Protocol):
    def is_set(self) -> bool: ...


class GeminiListingGenerator:
    def __init__(self, client: JsonGenerationClient) -> None:
        self._client = client

    def generate(
        self,
        listing: ListingContent,
        cancel_event: Optional[CancelSignal] = None,
    ) -> GeneratedListing:
        # a started Gemini call cannot be interrupted, so the signal is only
        # honoured before the request goes out
        if cancel_event is not None and cancel_event.is_set():
            raise OperationCancelledError("Generation cancelled before the Gemini request")

        payload = _build_generation_payload(listing)

        try:
            response_text = self._client.generate_json(payload)
        except google_exceptions.ResourceExhausted as err:
            raise RateLimitedError(
                "Gemini API rate limit reached. Try again in a few moments."
            ) from err
        except google_exceptions.GoogleAPIError as err:
            raise GenerationFailedError(f"Gemini request failed: {err}") from err

        generated = parse_generation_response(response_text)
        logger.info(
            "generation.ok bullets=%d keywords=%d",
            len(generated.bullets),
            len(generated.keywords),
        )
        return generated
