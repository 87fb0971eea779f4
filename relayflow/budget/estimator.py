"""Provider cost estimation.

Prices are USD per 1k tokens. Models missing from the table are priced at a
conservative default so that budget checks err on the side of refusing.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, Optional

from pydantic import BaseModel

from ..contracts import WorkflowStep

logger = logging.getLogger(__name__)


class ModelPricing(BaseModel):
    input: float
    output: float


PRICING: Dict[str, ModelPricing] = {
    # OpenAI
    "openai:gpt-4o": ModelPricing(input=0.0025, output=0.01),
    "openai:gpt-4o-mini": ModelPricing(input=0.00015, output=0.0006),
    "openai:gpt-4-turbo": ModelPricing(input=0.01, output=0.03),
    "openai:gpt-4": ModelPricing(input=0.03, output=0.06),
    "openai:gpt-3.5-turbo": ModelPricing(input=0.0005, output=0.0015),
    "openai:o1": ModelPricing(input=0.015, output=0.06),
    "openai:o1-mini": ModelPricing(input=0.003, output=0.012),
    "openai:o1-preview": ModelPricing(input=0.015, output=0.06),
    # Anthropic
    "anthropic:claude-3-5-sonnet-20241022": ModelPricing(input=0.003, output=0.015),
    "anthropic:claude-3-5-sonnet-latest": ModelPricing(input=0.003, output=0.015),
    "anthropic:claude-3-5-haiku-20241022": ModelPricing(input=0.0008, output=0.004),
    "anthropic:claude-3-5-haiku-latest": ModelPricing(input=0.0008, output=0.004),
    "anthropic:claude-3-opus-20240229": ModelPricing(input=0.015, output=0.075),
    "anthropic:claude-3-sonnet-20240229": ModelPricing(input=0.003, output=0.015),
    "anthropic:claude-3-haiku-20240307": ModelPricing(input=0.00025, output=0.00125),
    # Google
    "google:gemini-2.0-flash": ModelPricing(input=0.0001, output=0.0004),
    "google:gemini-2.0-flash-exp": ModelPricing(input=0.0001, output=0.0004),
    "google:gemini-1.5-pro": ModelPricing(input=0.00125, output=0.005),
    "google:gemini-1.5-flash": ModelPricing(input=0.000075, output=0.0003),
    # xAI
    "xai:grok-2": ModelPricing(input=0.002, output=0.01),
    "xai:grok-beta": ModelPricing(input=0.005, output=0.015),
}

DEFAULT_PRICING = ModelPricing(input=0.01, output=0.03)


def estimate_tokens(text: str) -> int:
    """Rough token count: about four characters per token."""
    return math.ceil(len(text) / 4)


class CostEstimator:
    """Estimates provider cost before a call and computes it afterwards."""

    def __init__(
        self,
        pricing: Optional[Dict[str, ModelPricing]] = None,
        default_pricing: ModelPricing = DEFAULT_PRICING,
        expected_output_tokens: int = 500,
    ) -> None:
        self._pricing = dict(PRICING if pricing is None else pricing)
        self._default = default_pricing
        self.expected_output_tokens = expected_output_tokens

    def is_known(self, model: str) -> bool:
        return model in self._pricing

    def pricing(self, model: str) -> ModelPricing:
        price = self._pricing.get(model)
        if price is None:
            logger.warning(f"No pricing for {model}; using default rate")
            return self._default
        return price

    def _cost(self, model: str, input_tokens: int, output_tokens: int) -> float:
        price = self.pricing(model)
        return (input_tokens / 1000) * price.input + (output_tokens / 1000) * price.output

    def estimate(
        self,
        model: str,
        prompt: str,
        system_prompt: Optional[str] = None,
        expected_output_tokens: Optional[int] = None,
    ) -> float:
        """Pre-call estimate from prompt length and an assumed output size."""
        input_tokens = estimate_tokens((system_prompt or "") + prompt)
        output_tokens = (
            self.expected_output_tokens
            if expected_output_tokens is None
            else expected_output_tokens
        )
        return self._cost(model, input_tokens, output_tokens)

    def actual(self, model: str, input_tokens: int, output_tokens: int) -> float:
        """Cost computed from provider-reported token counts."""
        return self._cost(model, input_tokens, output_tokens)

    def estimate_workflow(self, steps: Iterable[WorkflowStep]) -> float:
        """Sum of estimates for every model step."""
        return sum(
            self.estimate(step.model, step.prompt, step.system_prompt)
            for step in steps
            if step.is_model_step
        )
