"""Anthropic Messages API adapters, direct and through Vertex AI."""

from __future__ import annotations

import os
import re
from typing import Any

import anthropic

from devbench.adapters.base import AdapterError, CompletionResponse, ModelAdapter
from devbench.core.rate_limit import make_rate_limit_error, parse_retry_after

# Anthropic returns 529 when the API is overloaded; treated like a rate limit.
OVERLOADED_STATUS = 529


def _retry_after(error: anthropic.APIStatusError) -> float | None:
    header = error.response.headers.get("retry-after") if error.response is not None else None
    if header is None:
        return None
    return parse_retry_after(f"Retry-After: {header}")


class AnthropicAdapter(ModelAdapter):
    """Adapter for Claude models via the Anthropic SDK."""

    provider = "anthropic"

    def __init__(
        self,
        model_id: str,
        display_name: str | None = None,
        api_key: str | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            model_id: Anthropic model identifier.
            display_name: Human-readable name.
            api_key: API key; the SDK reads ANTHROPIC_API_KEY when None.
            client: Pre-built AsyncAnthropic client (tests).

        """
        super().__init__(model_id, display_name)
        self.client = client or anthropic.AsyncAnthropic(
            api_key=api_key or os.environ.get("ANTHROPIC_API_KEY")
        )

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> CompletionResponse:
        """Send one user message and return the concatenated text blocks."""
        kwargs: dict[str, Any] = {
            "model": self.model_id,
            "max_tokens": max_tokens or self.DEFAULT_MAX_TOKENS,
            "temperature": temperature if temperature is not None else 0.0,
            "messages": [{"role": "user", "content": user_prompt}],
        }
        if system_prompt:
            kwargs["system"] = system_prompt

        try:
            response = await self.client.messages.create(**kwargs)
        except anthropic.RateLimitError as e:
            raise make_rate_limit_error(self.provider, str(e), _retry_after(e)) from e
        except anthropic.APIStatusError as e:
            if e.status_code == OVERLOADED_STATUS:
                raise make_rate_limit_error(self.provider, f"API overloaded: {e}") from e
            raise AdapterError(f"Anthropic API error ({e.status_code}): {e}") from e
        except anthropic.APIConnectionError as e:
            raise AdapterError(f"Anthropic connection error: {e}") from e

        content = "".join(block.text for block in response.content if block.type == "text")
        return CompletionResponse(
            content=content,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            model=response.model,
        )


VERTEX_DATE_SUFFIX = re.compile(r"-(\d{8})$")


def to_vertex_model_id(model_id: str) -> str:
    """Vertex separates the version date with ``@`` instead of ``-``.

    Examples:
        >>> to_vertex_model_id("claude-haiku-4-5-20251001")
        'claude-haiku-4-5@20251001'

    """
    return VERTEX_DATE_SUFFIX.sub(r"@\1", model_id)


class AnthropicVertexAdapter(AnthropicAdapter):
    """Adapter for Claude models hosted on Google Vertex AI.

    Authenticates with Google application default credentials. Project and
    region fall back to ANTHROPIC_VERTEX_PROJECT_ID and CLOUD_ML_REGION.
    """

    provider = "anthropic-vertex"

    def __init__(
        self,
        model_id: str,
        display_name: str | None = None,
        project_id: str | None = None,
        region: str | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            model_id: Anthropic model identifier (dated ids are converted).
            display_name: Human-readable name.
            project_id: Google Cloud project.
            region: Vertex region; "global" when unset.
            client: Pre-built AsyncAnthropicVertex client (tests).

        """
        if client is None:
            client = anthropic.AsyncAnthropicVertex(
                project_id=project_id or os.environ.get("ANTHROPIC_VERTEX_PROJECT_ID"),
                region=region or os.environ.get("CLOUD_ML_REGION", "global"),
            )
        super().__init__(to_vertex_model_id(model_id), display_name or model_id, client=client)
