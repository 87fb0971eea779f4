"""Model provider capability."""

from __future__ import annotations

from .agent import PydanticAIProvider
from .base import KNOWN_PROVIDERS, ModelProvider, ProviderResult, is_valid_model_id, parse_model

__all__ = [
    "KNOWN_PROVIDERS",
    "ModelProvider",
    "ProviderResult",
    "PydanticAIProvider",
    "is_valid_model_id",
    "parse_model",
]
