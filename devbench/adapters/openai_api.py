"""OpenAI adapters.

OpenAIAdapter speaks Chat Completions and also serves OpenAI-compatible
servers (vLLM, ollama, gateways) when a ``base_url`` is configured.
OpenAIResponsesAdapter speaks the Responses API used by reasoning models.
"""

from __future__ import annotations

import os
from typing import Any

import openai

from devbench.adapters.base import AdapterError, CompletionResponse, ModelAdapter
from devbench.core.rate_limit import make_rate_limit_error, parse_retry_after


def translate_openai_error(provider: str, error: openai.OpenAIError) -> Exception:
    """Map an SDK exception to RateLimitError or AdapterError."""
    if isinstance(error, openai.RateLimitError):
        header = error.response.headers.get("retry-after") if error.response is not None else None
        retry_after = parse_retry_after(f"Retry-After: {header}") if header else None
        return make_rate_limit_error(provider, str(error), retry_after)
    if isinstance(error, openai.APIStatusError):
        return AdapterError(f"OpenAI API error ({error.status_code}): {error}")
    return AdapterError(f"OpenAI connection error: {error}")


class OpenAIAdapter(ModelAdapter):
    """Adapter for OpenAI chat models."""

    provider = "openai"

    def __init__(
        self,
        model_id: str,
        display_name: str | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            model_id: Model identifier.
            display_name: Human-readable name.
            api_key: API key; the SDK reads OPENAI_API_KEY when None.
            base_url: Endpoint of an OpenAI-compatible server.
            client: Pre-built AsyncOpenAI client (tests).

        """
        super().__init__(model_id, display_name)
        if base_url:
            self.provider = "openai-compatible"
        self.client = client or openai.AsyncOpenAI(
            api_key=api_key or os.environ.get("OPENAI_API_KEY"),
            base_url=base_url,
        )

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> CompletionResponse:
        """Send system + user messages and return the first choice."""
        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        try:
            response = await self.client.chat.completions.create(
                model=self.model_id,
                messages=messages,
                max_tokens=max_tokens or self.DEFAULT_MAX_TOKENS,
                temperature=temperature if temperature is not None else 0.0,
            )
        except (openai.APIStatusError, openai.APIConnectionError) as e:
            raise translate_openai_error(self.provider, e) from e

        content = ""
        if response.choices:
            content = response.choices[0].message.content or ""
        usage = response.usage
        return CompletionResponse(
            content=content,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            model=response.model,
        )


class OpenAIResponsesAdapter(OpenAIAdapter):
    """Adapter for OpenAI models served through the Responses API.

    Reasoning models reject ``temperature``, so it is never sent. Reasoning
    output items are skipped; only message text is returned.
    """

    provider = "openai-responses"

    def __init__(
        self,
        model_id: str,
        display_name: str | None = None,
        api_key: str | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            model_id: Model identifier.
            display_name: Human-readable name.
            api_key: API key; the SDK reads OPENAI_API_KEY when None.
            client: Pre-built AsyncOpenAI client (tests).

        """
        super().__init__(model_id, display_name, api_key=api_key, client=client)

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> CompletionResponse:
        """Send system + user input items and join the output text."""
        items: list[dict[str, str]] = []
        if system_prompt:
            items.append({"role": "system", "content": system_prompt})
        items.append({"role": "user", "content": user_prompt})

        try:
            response = await self.client.responses.create(
                model=self.model_id,
                input=items,
                max_output_tokens=max_tokens or self.DEFAULT_MAX_TOKENS,
                store=False,
            )
        except (openai.APIStatusError, openai.APIConnectionError) as e:
            raise translate_openai_error(self.provider, e) from e

        content = "".join(
            part.text
            for item in response.output
            if item.type == "message"
            for part in item.content
            if part.type == "output_text" and part.text
        )
        usage = response.usage
        return CompletionResponse(
            content=content,
            input_tokens=usage.input_tokens if usage else 0,
            output_tokens=usage.output_tokens if usage else 0,
            model=response.model,
        )
