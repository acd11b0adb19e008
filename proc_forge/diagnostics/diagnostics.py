"""Query diagnostics.

Every QueryEvent goes to two independent sinks, synchronously:

1. the ``on_query_executed`` callback, whenever one is configured, even with
   logging disabled;
2. the ``proc_forge.diagnostics`` logger, only when diagnostics are enabled.
   Successful calls log at INFO, or WARNING tagged SLOW when the duration is
   strictly greater than the threshold. Failures log at ERROR with the
   exception attached.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from proc_forge.diagnostics.events import QueryEvent

if TYPE_CHECKING:
    from proc_forge.core.config import DiagnosticsConfig

logger = logging.getLogger(__name__)

LOG_PREFIX = "[ProcForge]"


@runtime_checkable
class Diagnostics(Protocol):
    """Sink for execution events."""

    def record(self, event: QueryEvent) -> None:
        """Record a successful execution."""
        ...

    def record_failure(self, event: QueryEvent) -> None:
        """Record a failed execution."""
        ...


def is_slow(duration: timedelta, threshold: timedelta) -> bool:
    """True when *duration* exceeds *threshold*; equal is not slow."""
    return duration > threshold


def _row_info(row_count: int | None) -> str:
    return f" -> {row_count} rows" if row_count is not None else ""


class QueryDiagnostics:
    """Default Diagnostics: user callback plus standard logging."""

    def __init__(
        self,
        config: DiagnosticsConfig | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        if config is None:
            from proc_forge.core.config import DiagnosticsConfig

            config = DiagnosticsConfig()
        self._config = config
        self._logger = log or logger

    @property
    def config(self) -> DiagnosticsConfig:
        return self._config

    def record(self, event: QueryEvent) -> None:
        self._notify(event)
        if not self._config.enabled:
            return

        fields = {
            "sp_name": event.sp_name,
            "duration_ms": round(event.duration_ms),
            "row_count": event.row_count,
        }
        if is_slow(event.duration, self._config.slow_query_threshold):
            self._logger.warning(
                "%s SLOW: %s executed in %.0fms%s",
                LOG_PREFIX,
                event.sp_name,
                event.duration_ms,
                _row_info(event.row_count),
                extra={**fields, "slow": True},
            )
        else:
            self._logger.info(
                "%s %s executed in %.0fms%s",
                LOG_PREFIX,
                event.sp_name,
                event.duration_ms,
                _row_info(event.row_count),
                extra=fields,
            )

    def record_failure(self, event: QueryEvent) -> None:
        self._notify(event)
        if not self._config.enabled:
            return

        error = event.error
        message = str(error) if error is not None else "Unknown error"
        self._logger.error(
            "%s FAILED: %s - %s (%.0fms)",
            LOG_PREFIX,
            event.sp_name,
            message or type(error).__name__,
            event.duration_ms,
            exc_info=(type(error), error, error.__traceback__) if error is not None else None,
            extra={
                "sp_name": event.sp_name,
                "duration_ms": round(event.duration_ms),
                "row_count": event.row_count,
                "error": message,
            },
        )

    def _notify(self, event: QueryEvent) -> None:
        callback = self._config.on_query_executed
        if callback is not None:
            callback(event)
