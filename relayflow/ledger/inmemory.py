"""In-memory implementation of the run ledger."""

from __future__ import annotations

from collections import deque
from typing import Deque

from ..errors import RunNotFoundError
from .models import RunRecord
from .repository import RunLedger

MAX_RECENT = 50


class InMemoryRunLedger(RunLedger):
    """Keep the most recent runs in a bounded ring.

    Once ``max_runs`` records are held, appending evicts the oldest. Data is
    not persisted across process restarts.
    """

    def __init__(self, max_runs: int = 100) -> None:
        self._runs: Deque[RunRecord] = deque(maxlen=max_runs)

    @property
    def max_runs(self) -> int:
        return self._runs.maxlen

    def __len__(self) -> int:
        return len(self._runs)

    async def append(self, record: RunRecord) -> None:
        self._runs.appendleft(record)

    async def recent(self, limit: int = 10) -> list[RunRecord]:
        limit = max(0, min(limit, MAX_RECENT))
        return list(self._runs)[:limit]

    async def by_id(self, run_id: str) -> RunRecord | None:
        return next((r for r in self._runs if r.run_id == run_id), None)

    async def get(self, run_id: str) -> RunRecord:
        record = await self.by_id(run_id)
        if record is None:
            raise RunNotFoundError(run_id)
        return record

    async def clear(self) -> None:
        self._runs.clear()
