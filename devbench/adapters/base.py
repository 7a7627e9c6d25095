"""Base adapter class for hosted model providers.

This module provides the abstract base class that every provider adapter
inherits from, plus the adapter exception hierarchy shared with the CLI
agents and executors.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field


class CompletionResponse(BaseModel):
    """Result of a single provider completion."""

    content: str = Field(default="", description="Concatenated text output")
    input_tokens: int = Field(default=0, ge=0, description="Provider-reported input tokens")
    output_tokens: int = Field(default=0, ge=0, description="Provider-reported output tokens")
    model: str = Field(default="", description="Model that served the request")


class AdapterError(Exception):
    """Base exception for adapter errors."""

    pass


class AdapterTimeoutError(AdapterError):
    """Raised when adapter execution times out."""

    pass


class AdapterValidationError(AdapterError):
    """Raised when adapter configuration is invalid."""

    pass


class ModelAdapter(ABC):
    """Abstract base class for provider adapters.

    Adapters wrap one provider SDK and translate its rate-limit errors into
    ``devbench.core.rate_limit.RateLimitError`` so the orchestrator can
    classify them without inspecting message text.

    Example:
        >>> class MyAdapter(ModelAdapter):
        ...     provider = "my-provider"
        ...     async def complete(self, system_prompt, user_prompt, max_tokens=None,
        ...                        temperature=None):
        ...         return CompletionResponse(content="hi", model=self.model_id)

    """

    provider: str = ""
    DEFAULT_MAX_TOKENS = 4096

    def __init__(self, model_id: str, display_name: str | None = None) -> None:
        """Initialize the adapter.

        Args:
            model_id: Provider model identifier.
            display_name: Human-readable name (defaults to the model id).

        """
        if not model_id:
            raise AdapterValidationError("model_id cannot be empty")
        self.model_id = model_id
        self.display_name = display_name or model_id

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> CompletionResponse:
        """Send a single-turn completion request.

        Args:
            system_prompt: System instruction (may be empty).
            user_prompt: User message.
            max_tokens: Output token limit (provider default when None).
            temperature: Sampling temperature (0 when None).

        Returns:
            CompletionResponse with content and exact usage.

        Raises:
            RateLimitError: If the provider rate limited the request.
            AdapterError: For other provider failures.

        """
        ...

    def get_name(self) -> str:
        """Return adapter name for logging."""
        return f"{self.__class__.__name__}({self.model_id})"
