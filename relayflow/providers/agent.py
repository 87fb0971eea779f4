"""Model provider backed by pydantic-ai agents."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from pydantic_ai import Agent, StructuredDict
from pydantic_ai.models import Model

from ..credentials import CredentialStore
from ..errors import ProviderError, ProviderNotConfiguredError
from .base import ProviderResult

logger = logging.getLogger(__name__)

XAI_BASE_URL = "https://api.x.ai/v1"

ModelFactory = Callable[[str, str], Model]


class PydanticAIProvider:
    """Invoke models through a one-shot :class:`pydantic_ai.Agent`.

    The pydantic-ai model for each call is built by ``model_factory`` from
    ``(provider, model_id)``; by default credentials come from the given
    :class:`CredentialStore`.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        model_factory: Optional[ModelFactory] = None,
    ) -> None:
        self._credentials = credentials
        self._model_factory = model_factory or self._build_model

    def _build_model(self, provider: str, model_id: str) -> Model:
        api_key = self._credentials.api_key(provider)
        if provider == "openai":
            from pydantic_ai.models.openai import OpenAIChatModel
            from pydantic_ai.providers.openai import OpenAIProvider

            return OpenAIChatModel(model_id, provider=OpenAIProvider(api_key=api_key))
        elif provider == "anthropic":
            from pydantic_ai.models.anthropic import AnthropicModel
            from pydantic_ai.providers.anthropic import AnthropicProvider

            return AnthropicModel(model_id, provider=AnthropicProvider(api_key=api_key))
        elif provider == "google":
            from pydantic_ai.models.google import GoogleModel
            from pydantic_ai.providers.google import GoogleProvider

            return GoogleModel(model_id, provider=GoogleProvider(api_key=api_key))
        elif provider in ("xai", "local"):
            from pydantic_ai.models.openai import OpenAIChatModel
            from pydantic_ai.providers.openai import OpenAIProvider

            base_url = (
                XAI_BASE_URL if provider == "xai" else self._credentials.base_url(provider)
            )
            return OpenAIChatModel(
                model_id,
                provider=OpenAIProvider(base_url=base_url, api_key=api_key or "local"),
            )
        raise ProviderError(f"Unsupported provider: {provider}")

    async def invoke(
        self,
        provider: str,
        model: str,
        prompt: str,
        system_prompt: Optional[str] = None,
        output_schema: Optional[dict] = None,
    ) -> ProviderResult:
        if not self._credentials.is_configured(provider):
            raise ProviderNotConfiguredError(provider)

        output_type: Any = str
        if output_schema:
            output_type = StructuredDict(output_schema, name="response")

        agent = Agent(
            self._model_factory(provider, model),
            output_type=output_type,
            system_prompt=system_prompt or (),
        )
        logger.debug(f"Invoking {provider}:{model}")
        try:
            result = await agent.run(prompt)
        except Exception as e:
            logger.error(f"{provider}:{model} call failed: {e}")
            raise ProviderError(f"{provider} API error: {e}") from e

        usage = result.usage()
        return ProviderResult(
            output=result.output,
            input_tokens=usage.input_tokens or 0,
            output_tokens=usage.output_tokens or 0,
        )
