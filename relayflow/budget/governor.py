"""Budget governor gating provider calls on spend and call-rate ceilings."""

from __future__ import annotations

import logging
import threading
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Literal, Optional

from pydantic import BaseModel

from ..config import BudgetConfig
from ..errors import BudgetExceededError

logger = logging.getLogger(__name__)

HOUR = timedelta(hours=1)

DenialKind = Literal["hourly_rate", "daily_spend", "per_call"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BudgetState(BaseModel):
    """Snapshot of the governor's counters."""

    daily_spend_usd: float = 0.0
    hourly_call_count: int = 0
    day: date
    hour_window_start: datetime


class BudgetDecision(BaseModel):
    allowed: bool
    reason: Optional[str] = None
    kind: Optional[DenialKind] = None
    daily_spend_usd: float = 0.0
    hourly_call_count: int = 0

    def raise_for_denial(self) -> None:
        if not self.allowed:
            raise BudgetExceededError(self.kind, self.reason)


class BudgetGovernor:
    """Owns the spend and call counters shared by every invocation.

    Windows roll over lazily: each ``check_budget``/``record_cost`` call first
    compares the clock with the stored window markers. The daily window resets
    when the UTC date changes; the hourly window resets once an hour has
    passed since its last reset. All access goes through one lock.
    """

    def __init__(
        self,
        limits: Optional[BudgetConfig] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.limits = limits or BudgetConfig()
        self._clock = clock
        self._lock = threading.Lock()
        self._state = self._fresh_state()

    def _fresh_state(self) -> BudgetState:
        now = self._clock()
        return BudgetState(day=now.date(), hour_window_start=now)

    def _rollover(self) -> None:
        now = self._clock()
        state = self._state
        if now.date() != state.day:
            logger.debug(f"Daily budget window reset ({state.day} -> {now.date()})")
            state.daily_spend_usd = 0.0
            state.day = now.date()
        if now - state.hour_window_start >= HOUR:
            logger.debug("Hourly call window reset")
            state.hourly_call_count = 0
            state.hour_window_start = now

    def check_budget(self, estimated_cost: float) -> BudgetDecision:
        """Decide whether a call (or batch) costing ``estimated_cost`` may run."""
        with self._lock:
            self._rollover()
            spend = self._state.daily_spend_usd
            calls = self._state.hourly_call_count
            limits = self.limits

            kind: Optional[DenialKind] = None
            reason: Optional[str] = None
            if calls >= limits.max_calls_per_hour:
                kind = "hourly_rate"
                reason = (
                    f"Hourly call limit reached ({limits.max_calls_per_hour} calls). "
                    "Use workflow validation (free) for structure checks, or wait for reset."
                )
            elif spend + estimated_cost > limits.max_daily_cost_usd:
                kind = "daily_spend"
                reason = (
                    "Daily provider budget exceeded. "
                    f"Estimated spend: ${spend:.2f} / ${limits.max_daily_cost_usd}. "
                    "Resets at midnight UTC. Use workflow validation (free) for structure checks."
                )
            elif estimated_cost > limits.max_single_call_cost_usd:
                kind = "per_call"
                reason = (
                    f"Estimated provider cost (${estimated_cost:.2f}) exceeds single-call "
                    f"limit (${limits.max_single_call_cost_usd}). "
                    "Try a smaller model (openai:gpt-4o-mini) or a shorter prompt."
                )

            if kind is not None:
                logger.warning(f"Budget denied ({kind}): {reason}")
            return BudgetDecision(
                allowed=kind is None,
                reason=reason,
                kind=kind,
                daily_spend_usd=spend,
                hourly_call_count=calls,
            )

    def record_cost(self, actual_cost: float) -> None:
        """Account for one completed call. Never refuses."""
        with self._lock:
            self._rollover()
            self._state.daily_spend_usd += actual_cost
            self._state.hourly_call_count += 1

    def snapshot(self) -> BudgetState:
        with self._lock:
            self._rollover()
            return self._state.model_copy()

    def reset(self) -> None:
        with self._lock:
            self._state = self._fresh_state()
