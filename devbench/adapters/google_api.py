"""Google Gemini API adapter."""

from __future__ import annotations

import os
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from devbench.adapters.base import AdapterError, CompletionResponse, ModelAdapter
from devbench.core.rate_limit import make_rate_limit_error

RATE_LIMIT_STATUS = 429
# Gemini answers 503 when the model is overloaded; treated like a rate limit.
UNAVAILABLE_STATUS = 503

# Benchmark prompts include security and exploit review tasks
SAFETY_SETTINGS = [
    types.SafetySetting(category=category, threshold=types.HarmBlockThreshold.BLOCK_NONE)
    for category in (
        types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
        types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
        types.HarmCategory.HARM_CATEGORY_HARASSMENT,
        types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
    )
]


class GoogleAdapter(ModelAdapter):
    """Adapter for Gemini models via the google-genai SDK."""

    provider = "google"

    def __init__(
        self,
        model_id: str,
        display_name: str | None = None,
        api_key: str | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            model_id: Gemini model identifier.
            display_name: Human-readable name.
            api_key: API key; GOOGLE_API_KEY is used when None.
            client: Pre-built genai.Client (tests).

        """
        super().__init__(model_id, display_name)
        self.client = client or genai.Client(
            api_key=api_key or os.environ.get("GOOGLE_API_KEY")
        )

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> CompletionResponse:
        """Generate content for one user prompt."""
        config = types.GenerateContentConfig(
            system_instruction=system_prompt or None,
            max_output_tokens=max_tokens or self.DEFAULT_MAX_TOKENS,
            temperature=temperature if temperature is not None else 0.0,
            safety_settings=SAFETY_SETTINGS,
        )
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model_id, contents=user_prompt, config=config
            )
        except genai_errors.APIError as e:
            if e.code in (RATE_LIMIT_STATUS, UNAVAILABLE_STATUS):
                raise make_rate_limit_error(self.provider, str(e)) from e
            raise AdapterError(f"Gemini API error ({e.code}): {e}") from e
        except httpx.HTTPError as e:
            raise AdapterError(f"Gemini connection error: {e}") from e

        usage = response.usage_metadata
        return CompletionResponse(
            content=response.text or "",
            input_tokens=(usage.prompt_token_count or 0) if usage else 0,
            output_tokens=(usage.candidates_token_count or 0) if usage else 0,
            model=response.model_version or self.model_id,
        )
