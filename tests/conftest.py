"""Shared test doubles for relayflow tests."""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, List, Optional

import pytest

from relayflow.budget import BudgetGovernor
from relayflow.config import (
    BudgetConfig,
    ProviderConfig,
    ProvidersConfig,
    RelayflowConfig,
)
from relayflow.engine import WorkflowEngine
from relayflow.errors import ProviderError
from relayflow.ledger import InMemoryRunLedger
from relayflow.providers import ProviderResult
from relayflow.tools import ToolRegistry


class FakeProvider:
    """Records calls and answers with a canned output and fixed token counts."""

    def __init__(
        self,
        respond: Optional[Callable[[str, str], Any]] = None,
        input_tokens: int = 100,
        output_tokens: int = 200,
        fail_on: Optional[str] = None,
    ) -> None:
        self.calls: List[dict] = []
        self._respond = respond or (lambda model, prompt: f"{model} says: {prompt}")
        self.input_tokens = input_tokens
        self.output_tokens = output_tokens
        self.fail_on = fail_on

    async def invoke(
        self, provider, model, prompt, system_prompt=None, output_schema=None
    ) -> ProviderResult:
        self.calls.append(
            {
                "provider": provider,
                "model": model,
                "prompt": prompt,
                "system_prompt": system_prompt,
                "output_schema": output_schema,
            }
        )
        if self.fail_on and self.fail_on in prompt:
            raise ProviderError(f"{provider} API error: 500 - upstream unavailable")
        return ProviderResult(
            output=self._respond(model, prompt),
            input_tokens=self.input_tokens,
            output_tokens=self.output_tokens,
        )


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def make_config(**budget) -> RelayflowConfig:
    return RelayflowConfig(
        budget=BudgetConfig(**budget),
        providers=ProvidersConfig(
            openai=ProviderConfig(api_key="sk-test"),
            anthropic=ProviderConfig(api_key="sk-ant-test"),
        ),
    )


@pytest.fixture
def fake_provider_cls():
    return FakeProvider


@pytest.fixture
def config_factory():
    return make_config


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 12, 10, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def ledger() -> InMemoryRunLedger:
    return InMemoryRunLedger()


@pytest.fixture
def tools() -> ToolRegistry:
    return ToolRegistry()


@pytest.fixture
def engine(provider, ledger, tools, clock) -> WorkflowEngine:
    config = make_config()
    return WorkflowEngine(
        config,
        governor=BudgetGovernor(config.budget, clock=clock),
        provider=provider,
        tools=tools,
        ledger=ledger,
    )
