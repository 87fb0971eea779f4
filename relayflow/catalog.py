"""Catalog of known models with capabilities and pricing."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .budget import CostEstimator
from .credentials import CredentialStore


class ModelMetadata(BaseModel):
    name: str
    capabilities: List[str] = Field(default_factory=list)
    context_window: int


class ModelInfo(BaseModel):
    id: str
    provider: str
    name: str
    capabilities: List[str]
    context_window: int
    input_cost_per_1k_tokens: float
    output_cost_per_1k_tokens: float
    configured: bool


_CHAT_TOOLS = ["chat", "vision", "function-calling", "json-mode"]
_CLAUDE = ["chat", "vision", "function-calling", "computer-use"]

MODEL_METADATA: Dict[str, ModelMetadata] = {
    "openai:gpt-4o": ModelMetadata(name="GPT-4o", capabilities=_CHAT_TOOLS, context_window=128000),
    "openai:gpt-4o-mini": ModelMetadata(
        name="GPT-4o Mini", capabilities=_CHAT_TOOLS, context_window=128000
    ),
    "openai:gpt-4-turbo": ModelMetadata(
        name="GPT-4 Turbo", capabilities=_CHAT_TOOLS, context_window=128000
    ),
    "openai:o1": ModelMetadata(name="O1", capabilities=["chat", "reasoning"], context_window=200000),
    "openai:o1-mini": ModelMetadata(
        name="O1 Mini", capabilities=["chat", "reasoning"], context_window=128000
    ),
    "openai:gpt-3.5-turbo": ModelMetadata(
        name="GPT-3.5 Turbo",
        capabilities=["chat", "function-calling", "json-mode"],
        context_window=16385,
    ),
    "anthropic:claude-3-5-sonnet-20241022": ModelMetadata(
        name="Claude 3.5 Sonnet", capabilities=_CLAUDE, context_window=200000
    ),
    "anthropic:claude-3-5-haiku-20241022": ModelMetadata(
        name="Claude 3.5 Haiku",
        capabilities=["chat", "vision", "function-calling"],
        context_window=200000,
    ),
    "anthropic:claude-3-opus-20240229": ModelMetadata(
        name="Claude 3 Opus",
        capabilities=["chat", "vision", "function-calling"],
        context_window=200000,
    ),
    "google:gemini-2.0-flash": ModelMetadata(
        name="Gemini 2.0 Flash",
        capabilities=["chat", "vision", "function-calling"],
        context_window=1000000,
    ),
    "google:gemini-1.5-pro": ModelMetadata(
        name="Gemini 1.5 Pro",
        capabilities=["chat", "vision", "function-calling"],
        context_window=2000000,
    ),
    "google:gemini-1.5-flash": ModelMetadata(
        name="Gemini 1.5 Flash",
        capabilities=["chat", "vision", "function-calling"],
        context_window=1000000,
    ),
    "xai:grok-2": ModelMetadata(
        name="Grok 2", capabilities=["chat", "function-calling"], context_window=131072
    ),
}


def list_models(
    provider: Optional[str] = None,
    credentials: Optional[CredentialStore] = None,
    estimator: Optional[CostEstimator] = None,
) -> List[ModelInfo]:
    """Return catalog entries, optionally filtered by provider."""
    credentials = credentials or CredentialStore()
    estimator = estimator or CostEstimator()
    models = []
    for model_id, meta in MODEL_METADATA.items():
        model_provider = model_id.split(":", 1)[0]
        if provider not in (None, "all") and model_provider != provider:
            continue
        price = estimator.pricing(model_id)
        models.append(
            ModelInfo(
                id=model_id,
                provider=model_provider,
                name=meta.name,
                capabilities=list(meta.capabilities),
                context_window=meta.context_window,
                input_cost_per_1k_tokens=price.input,
                output_cost_per_1k_tokens=price.output,
                configured=credentials.is_configured(model_provider),
            )
        )
    return models
