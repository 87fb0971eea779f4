"""Run history for relayflow executions."""

from __future__ import annotations

from typing import Optional

from ..config import RelayflowConfig, load_config
from .inmemory import InMemoryRunLedger
from .models import RunRecord, generate_run_id
from .repository import RunLedger

_ledger_instance: RunLedger | None = None


def get_ledger(config: Optional[RelayflowConfig] = None) -> RunLedger:
    """Factory function to obtain the process-wide run ledger.

    The first call creates an in-memory ledger sized from ``config`` (or the
    loaded configuration). Later calls return the same instance so that CLI
    commands and engines share history, unless ``config`` asks for a different
    capacity, in which case a fresh ledger of that size replaces it.
    """

    global _ledger_instance
    if _ledger_instance is not None and (
        config is None
        or getattr(_ledger_instance, "max_runs", None) == config.ledger.max_runs
    ):
        return _ledger_instance

    config = config or load_config()
    _ledger_instance = InMemoryRunLedger(max_runs=config.ledger.max_runs)
    return _ledger_instance


__all__ = [
    "InMemoryRunLedger",
    "RunLedger",
    "RunRecord",
    "generate_run_id",
    "get_ledger",
]
