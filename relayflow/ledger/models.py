"""Data models for recorded runs."""

from __future__ import annotations

import secrets
import string
import time
from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..contracts import RunUsage, StepResult

_ALPHABET = string.digits + string.ascii_lowercase


def _base36(value: int) -> str:
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_ALPHABET[rem])
    return "".join(reversed(digits)) or "0"


def generate_run_id() -> str:
    """Return an id like ``run_m5x2k1qz_a8f3kd``."""
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(6))
    return f"run_{_base36(time.time_ns() // 1_000_000)}_{suffix}"


class RunRecord(BaseModel):
    """Immutable record of one single-call or workflow execution."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    kind: Literal["single", "workflow"]
    name: Optional[str] = None
    model: Optional[str] = None
    success: bool
    started_at: datetime
    ended_at: datetime
    duration_ms: int
    usage: RunUsage = Field(default_factory=RunUsage)
    input: Any = None
    output: Any = None
    steps: Optional[Dict[str, StepResult]] = None
    error: Optional[str] = None
    failed_step: Optional[str] = None
    context_reduction: Optional[str] = None
    trace_url: Optional[str] = None
