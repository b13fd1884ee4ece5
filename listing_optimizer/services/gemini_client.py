from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import google.generativeai as genai

from listing_optimizer.services.errors import GenerationFailedError, ServiceError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = Path(__file__).resolve().parent.parent / "prompts" / "SYSTEM_PROMPT.txt"
DEFAULT_MODEL = "gemini-2.5-flash"


class GeminiConfigurationError(ServiceError):
    pass


class GeminiPromptError(ServiceError):
    pass


class GeminiClient:
    """
    Thin wrapper around one Gemini model configured for listing rewrites.

    The copywriter instruction is read once at construction; every call sends
    the listing payload as JSON and expects a JSON reply.
    """

    def __init__(
        self,
        api_key: str,
        system_prompt_path: Path = SYSTEM_PROMPT,
        model_name: str = DEFAULT_MODEL,
    ) -> None:
        if not api_key:
            raise GeminiConfigurationError("Missing Gemini API key.")
        genai.configure(api_key=api_key)

        self.model_name = model_name
        self.system_prompt_path = system_prompt_path
        self.system_instruction = _read_prompt(system_prompt_path)
        self._model = genai.GenerativeModel(
            model_name=model_name,
            system_instruction=self.system_instruction,
            generation_config={"response_mime_type": "application/json"},
        )

    def generate_json(self, listing_payload: dict[str, Any]) -> str:
        response = self._model.generate_content(
            json.dumps(listing_payload, indent=2, ensure_ascii=False)
        )
        try:
            return response.text
        except ValueError as err:
            # raised by the SDK when the only candidate was blocked
            logger.warning("gemini.blocked model=%s error=%s", self.model_name, err)
            raise GenerationFailedError(f"Gemini returned no usable candidate: {err}") from err


def _read_prompt(file_path: Path) -> str:
    try:
        text = file_path.read_text(encoding="utf-8")
    except FileNotFoundError as not_found_error:
        raise GeminiPromptError(f"Prompt file not found: {file_path}") from not_found_error
    except OSError as io_error:
        raise GeminiPromptError(f"Unable to read prompt file: {io_error}") from io_error

    if not text.strip():
        raise GeminiPromptError(f"Prompt file is empty: {file_path}")
    return text
