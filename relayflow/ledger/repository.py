"""Ledger abstraction for run history."""

from __future__ import annotations

from typing import Protocol

from .models import RunRecord


class RunLedger(Protocol):
    """Protocol for run history backends."""

    async def append(self, record: RunRecord) -> None:
        """Store a completed run."""

    async def recent(self, limit: int = 10) -> list[RunRecord]:
        """Return up to ``limit`` runs, most recent first."""

    async def by_id(self, run_id: str) -> RunRecord | None:
        """Retrieve a run by id."""

    async def get(self, run_id: str) -> RunRecord:
        """Retrieve a run by id or raise ``RunNotFoundError``."""
