"""Diagnostics - execution events, logging and the user callback."""

from __future__ import annotations

from proc_forge.diagnostics.diagnostics import (
    LOG_PREFIX,
    Diagnostics,
    QueryDiagnostics,
    is_slow,
)
from proc_forge.diagnostics.events import QueryEvent

__all__ = [
    "QueryEvent",
    "Diagnostics",
    "QueryDiagnostics",
    "LOG_PREFIX",
    "is_slow",
]
