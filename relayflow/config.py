from __future__ import annotations

import os
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field

PROVIDER_NAMES = ("openai", "anthropic", "google", "xai", "local")


class BudgetConfig(BaseModel):
    """Spending and velocity ceilings applied to provider calls.

    These track your own provider bills; they reset at midnight UTC (daily
    spend) and on a rolling hour (call count).
    """

    max_daily_cost_usd: float = 5.0
    max_single_call_cost_usd: float = 0.5
    max_calls_per_hour: int = 100


class ProviderConfig(BaseModel):
    """Credentials for one model provider."""

    api_key: Optional[str] = None
    base_url: Optional[str] = None


class ProvidersConfig(BaseModel):
    openai: ProviderConfig = Field(default_factory=ProviderConfig)
    anthropic: ProviderConfig = Field(default_factory=ProviderConfig)
    google: ProviderConfig = Field(default_factory=ProviderConfig)
    xai: ProviderConfig = Field(default_factory=ProviderConfig)
    local: ProviderConfig = Field(default_factory=ProviderConfig)

    def get(self, provider: str) -> Optional[ProviderConfig]:
        if provider not in PROVIDER_NAMES:
            return None
        return getattr(self, provider)


class EngineConfig(BaseModel):
    """Workflow execution settings."""

    strict_templates: bool = False
    expected_output_tokens: int = 500
    trace_url_base: str = "https://app.relayplane.com/runs"


class LedgerConfig(BaseModel):
    max_runs: int = 100


class RelayflowConfig(BaseModel):
    """Top-level configuration model."""

    budget: BudgetConfig = Field(default_factory=BudgetConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    log_level: str = "INFO"


_ENV_BUDGET: Dict[str, tuple] = {
    "RELAYFLOW_MAX_DAILY_COST": ("max_daily_cost_usd", float),
    "RELAYFLOW_MAX_SINGLE_CALL_COST": ("max_single_call_cost_usd", float),
    "RELAYFLOW_MAX_CALLS_PER_HOUR": ("max_calls_per_hour", int),
}


def load_config(path: Optional[str] = None) -> RelayflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to RELAYFLOW_CONFIG env
            variable or 'relayflow.yaml' in the current directory.

    Provider API keys are read from ``<PROVIDER>_API_KEY`` environment
    variables and override keys found in the file.
    """

    config_path = path or os.getenv("RELAYFLOW_CONFIG", "relayflow.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = RelayflowConfig(**data)
    else:
        config = RelayflowConfig()

    for provider in PROVIDER_NAMES:
        env_key = os.getenv(f"{provider.upper()}_API_KEY")
        if env_key:
            config.providers.get(provider).api_key = env_key

    local_url = os.getenv("LOCAL_LLM_BASE_URL")
    if local_url:
        config.providers.local.base_url = local_url

    for env_name, (field_name, cast) in _ENV_BUDGET.items():
        raw = os.getenv(env_name)
        if raw:
            setattr(config.budget, field_name, cast(raw))
    return config
