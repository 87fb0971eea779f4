"""Model provider interface."""

from __future__ import annotations

from typing import Any, Optional, Protocol, Tuple

from pydantic import BaseModel

from ..errors import InvalidModelError

KNOWN_PROVIDERS = ("openai", "anthropic", "google", "xai", "local")


class ProviderResult(BaseModel):
    """Output and provider-reported token counts of one model call."""

    output: Any
    input_tokens: int = 0
    output_tokens: int = 0


def parse_model(model: str) -> Tuple[str, str]:
    """Split ``provider:model-id`` into its two parts."""
    parts = model.split(":")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise InvalidModelError(model)
    return parts[0], parts[1]


def is_valid_model_id(model: str) -> bool:
    try:
        provider, _ = parse_model(model)
    except InvalidModelError:
        return False
    return provider in KNOWN_PROVIDERS


class ModelProvider(Protocol):
    """Capability to invoke a model and report its token usage."""

    async def invoke(
        self,
        provider: str,
        model: str,
        prompt: str,
        system_prompt: Optional[str] = None,
        output_schema: Optional[dict] = None,
    ) -> ProviderResult:
        """Run ``prompt`` against ``provider:model``; raise ``ProviderError`` on failure."""
