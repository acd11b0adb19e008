"""Execution events."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any


@dataclass(frozen=True)
class QueryEvent:
    """Record of one procedure execution attempt, successful or not.

    Attributes:
        sp_name: The procedure that was invoked.
        duration: Wall time measured around command build and execution.
        row_count: Rows returned or affected; None when unknown (failures).
        parameters: The parameters as the caller passed them.
        is_success: False when the attempt raised.
        error: The raised exception for failed attempts.
    """

    sp_name: str
    duration: timedelta
    row_count: int | None = None
    parameters: Any = None
    is_success: bool = True
    error: BaseException | None = None

    @property
    def duration_ms(self) -> float:
        return self.duration.total_seconds() * 1000
