"""Budget tracking for provider calls."""

from __future__ import annotations

from .estimator import DEFAULT_PRICING, PRICING, CostEstimator, ModelPricing, estimate_tokens
from .governor import BudgetDecision, BudgetGovernor, BudgetState

__all__ = [
    "BudgetDecision",
    "BudgetGovernor",
    "BudgetState",
    "CostEstimator",
    "DEFAULT_PRICING",
    "ModelPricing",
    "PRICING",
    "estimate_tokens",
]
