"""Centralized model pricing and cost calculation.

Executors carry their own PricingConfig from YAML; this table only backs
entries that omit pricing and the rubric judge.
"""

from __future__ import annotations

from devbench.config.models import PricingConfig

# Default pricing for unknown models (conservative estimate)
DEFAULT_PRICING = PricingConfig(input_per_million=3.0, output_per_million=15.0)

# All prices in USD per million tokens
MODEL_PRICING: dict[str, PricingConfig] = {
    "claude-sonnet-4-5-20250929": PricingConfig(input_per_million=3.0, output_per_million=15.0),
    "claude-opus-4-5-20251101": PricingConfig(input_per_million=5.0, output_per_million=25.0),
    "claude-haiku-4-5-20251001": PricingConfig(input_per_million=1.0, output_per_million=5.0),
    "gpt-4o": PricingConfig(input_per_million=2.5, output_per_million=10.0),
    "gpt-4.1": PricingConfig(input_per_million=2.0, output_per_million=8.0),
    "gpt-4.1-mini": PricingConfig(input_per_million=0.4, output_per_million=1.6),
    "o4-mini": PricingConfig(input_per_million=1.1, output_per_million=4.4),
    "gemini-2.5-pro": PricingConfig(input_per_million=1.25, output_per_million=10.0),
    "gemini-2.5-flash": PricingConfig(input_per_million=0.3, output_per_million=2.5),
}


def get_model_pricing(model_id: str | None) -> PricingConfig:
    """Get pricing for a specific model.

    Args:
        model_id: Model identifier. If None or not found, returns default pricing.

    Returns:
        PricingConfig for the specified model.

    """
    if model_id is None:
        return DEFAULT_PRICING
    return MODEL_PRICING.get(model_id, DEFAULT_PRICING)


def calculate_cost(
    input_tokens: int,
    output_tokens: int,
    pricing: PricingConfig | None = None,
    model: str | None = None,
) -> float:
    """Calculate cost for token usage.

    Args:
        input_tokens: Number of input tokens.
        output_tokens: Number of output tokens.
        pricing: Explicit pricing; looked up by ``model`` when omitted.
        model: Model identifier for table pricing.

    Returns:
        Total cost in USD.

    """
    if pricing is None:
        pricing = get_model_pricing(model)
    return (input_tokens / 1_000_000) * pricing.input_per_million + (
        output_tokens / 1_000_000
    ) * pricing.output_per_million


def format_cost_usd(cost_usd: float, estimated: bool = False) -> str:
    """Format a USD cost for log lines; estimated costs get a ``~`` prefix."""
    prefix = "~" if estimated else ""
    if cost_usd == 0:
        return f"{prefix}$0.0000"
    if cost_usd < 0.0001:
        return f"{prefix}${cost_usd:.2e}"
    return f"{prefix}${cost_usd:.4f}"
