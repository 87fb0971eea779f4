"""Tests for configuration loading."""

from relayflow.config import load_config
from relayflow.credentials import CredentialStore


def _clear_provider_env(monkeypatch):
    for name in ("OPENAI", "ANTHROPIC", "GOOGLE", "XAI", "LOCAL"):
        monkeypatch.delenv(f"{name}_API_KEY", raising=False)
    monkeypatch.delenv("LOCAL_LLM_BASE_URL", raising=False)


def test_defaults_without_file(tmp_path, monkeypatch):
    _clear_provider_env(monkeypatch)
    monkeypatch.setenv("RELAYFLOW_CONFIG", str(tmp_path / "missing.yaml"))

    config = load_config()

    assert config.budget.max_daily_cost_usd == 5.0
    assert config.budget.max_single_call_cost_usd == 0.5
    assert config.budget.max_calls_per_hour == 100
    assert config.ledger.max_runs == 100
    assert config.engine.strict_templates is False


def test_load_config_from_env(tmp_path, monkeypatch):
    _clear_provider_env(monkeypatch)
    config_path = tmp_path / "relayflow.yaml"
    config_path.write_text(
        """
budget:
  max_daily_cost_usd: 2.5
  max_calls_per_hour: 10
providers:
  anthropic:
    api_key: from-file
engine:
  strict_templates: true
"""
    )
    monkeypatch.setenv("RELAYFLOW_CONFIG", str(config_path))

    config = load_config()

    assert config.budget.max_daily_cost_usd == 2.5
    assert config.budget.max_calls_per_hour == 10
    assert config.providers.anthropic.api_key == "from-file"
    assert config.engine.strict_templates is True


def test_environment_overrides(tmp_path, monkeypatch):
    _clear_provider_env(monkeypatch)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    monkeypatch.setenv("RELAYFLOW_MAX_SINGLE_CALL_COST", "0.05")
    monkeypatch.setenv("LOCAL_LLM_BASE_URL", "http://localhost:11434/v1")

    config = load_config(str(tmp_path / "missing.yaml"))

    assert config.providers.openai.api_key == "sk-env"
    assert config.budget.max_single_call_cost_usd == 0.05
    credentials = CredentialStore(config.providers)
    assert credentials.is_configured("openai")
    assert credentials.is_configured("local")
    assert not credentials.is_configured("anthropic")
    assert not credentials.is_configured("unknown")
