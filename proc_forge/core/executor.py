"""Procedure executor.

SpExecutor and AsyncSpExecutor run one procedure per call: build the command,
run it on the transaction's connection or the executor's own, shape the
result, and report a QueryEvent. Every attempt is timed with a monotonic
clock and produces exactly one event. Failures are recorded and then
re-raised unchanged, with a note naming the procedure and the elapsed time.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import timedelta
from types import MappingProxyType
from typing import Any

from proc_forge.core.command import CommandBuilder, create_command_builder
from proc_forge.core.enums import ParameterDirection
from proc_forge.core.exceptions import ResultSetError
from proc_forge.core.params import ParameterBag, coerce_parameters
from proc_forge.core.results import ProcedureResult
from proc_forge.diagnostics.diagnostics import LOG_PREFIX, Diagnostics, QueryDiagnostics
from proc_forge.diagnostics.events import QueryEvent
from proc_forge.mapping.model import resolve_mapper

logger = logging.getLogger(__name__)

# Shapes a ProcedureResult into (value returned to the caller, row count)
Shape = Callable[[ProcedureResult], tuple[Any, int]]


@dataclass(frozen=True)
class SpResult:
    """Result of an output-parameter call."""

    rows_affected: int = 0
    output_values: Mapping[str, Any] = field(default_factory=dict)


def _elapsed(start: float) -> timedelta:
    return timedelta(seconds=time.perf_counter() - start)


def _annotate(exc: BaseException, sp_name: str, elapsed: timedelta) -> None:
    exc.add_note(f"procedure: {sp_name} (failed after {elapsed.total_seconds() * 1000:.0f}ms)")


def _record_failure(
    diagnostics: Diagnostics, sp_name: str, params: Any, exc: BaseException, start: float
) -> None:
    """Annotate *exc* and report it. A failing sink is logged so *exc* still propagates."""
    elapsed = _elapsed(start)
    _annotate(exc, sp_name, elapsed)
    event = QueryEvent(sp_name, elapsed, None, params, is_success=False, error=exc)
    try:
        diagnostics.record_failure(event)
    except Exception:
        logger.exception("%s Diagnostics failed while recording %s", LOG_PREFIX, sp_name)


# --- result shapes ---


def _rows(model: Any) -> Shape:
    mapper = resolve_mapper(model)

    def shape(result: ProcedureResult) -> tuple[Any, int]:
        rows = result.first_set()
        return (mapper.map_many(rows) if mapper is not None else rows), len(rows)

    return shape


def _single(model: Any) -> Shape:
    mapper = resolve_mapper(model)

    def shape(result: ProcedureResult) -> tuple[Any, int]:
        rows = result.first_set()
        if not rows:
            return None, 0
        return (mapper.map_one(rows[0]) if mapper is not None else rows[0]), 1

    return shape


def _scalar(result: ProcedureResult) -> tuple[Any, int]:
    rows = result.first_set()
    if not rows or not rows[0]:
        return None, 1
    return next(iter(rows[0].values())), 1


def _affected(result: ProcedureResult) -> tuple[Any, int]:
    return result.rowcount, result.rowcount


def _multiple(sp_name: str, models: Sequence[Any]) -> Shape:
    mappers = [resolve_mapper(model) for model in models]

    def shape(result: ProcedureResult) -> tuple[Any, int]:
        if len(result.result_sets) < len(mappers):
            raise ResultSetError(sp_name, len(mappers), len(result.result_sets))
        sets = []
        for mapper, rows in zip(mappers, result.result_sets, strict=False):
            sets.append(mapper.map_many(rows) if mapper is not None else rows)
        return tuple(sets), sum(len(rows) for rows in result.result_sets[: len(mappers)])

    return shape


def _with_output(result: ProcedureResult) -> tuple[Any, int]:
    values = MappingProxyType(dict(result.output_values))
    return SpResult(rows_affected=result.rowcount, output_values=values), result.rowcount


def _merge_outputs(params: Any, outputs: Mapping[str, Any] | None) -> ParameterBag:
    """Copy *params* into a new bag and declare the output slots.

    An output named like an existing input becomes an input/output slot.
    """
    bag = ParameterBag(coerce_parameters(params))
    for name, db_type in (outputs or {}).items():
        if name in bag:
            current = bag.get(name)
            bag.add(
                name,
                current.value,
                direction=ParameterDirection.INPUT_OUTPUT,
                db_type=db_type if db_type is not None else current.db_type,
            )
        else:
            bag.add_output(name, db_type)
    return bag


def _check_models(models: Sequence[Any]) -> None:
    if len(models) < 1:
        raise ValueError("query_multiple needs at least one result set")


class SpExecutor:
    """Synchronous procedure executor.

    Args:
        adapter: The dialect's SyncAdapter.
        connect: Returns the connection to use outside transactions.
        builder: Command builder; defaults to the adapter's dialect.
        diagnostics: Event sink; defaults to QueryDiagnostics().
    """

    def __init__(
        self,
        adapter: Any,
        connect: Callable[[], Any],
        builder: CommandBuilder | None = None,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        self._adapter = adapter
        self._connect = connect
        self._builder = builder or create_command_builder(adapter.provider)
        self._diagnostics = diagnostics or QueryDiagnostics()

    @property
    def diagnostics(self) -> Diagnostics:
        return self._diagnostics

    def query(
        self,
        sp_name: str,
        params: Any = None,
        *,
        model: Any = None,
        transaction: Any = None,
        timeout: float | None = None,
    ) -> list[Any]:
        """Rows of the first result set, mapped when *model* is given."""
        return self._invoke(sp_name, params, _rows(model), transaction, timeout)  # type: ignore[no-any-return]

    def query_single(
        self,
        sp_name: str,
        params: Any = None,
        *,
        model: Any = None,
        transaction: Any = None,
        timeout: float | None = None,
    ) -> Any:
        """First row of the first result set, or None."""
        return self._invoke(sp_name, params, _single(model), transaction, timeout)

    def scalar(
        self,
        sp_name: str,
        params: Any = None,
        *,
        transaction: Any = None,
        timeout: float | None = None,
    ) -> Any:
        """First column of the first row, or None."""
        return self._invoke(sp_name, params, _scalar, transaction, timeout)

    def execute(
        self,
        sp_name: str,
        params: Any = None,
        *,
        transaction: Any = None,
        timeout: float | None = None,
    ) -> int:
        """Run a non-query procedure; returns rows affected."""
        return self._invoke(sp_name, params, _affected, transaction, timeout)  # type: ignore[no-any-return]

    def query_multiple(
        self,
        sp_name: str,
        params: Any = None,
        *,
        models: Sequence[Any] = (None, None),
        transaction: Any = None,
        timeout: float | None = None,
    ) -> tuple[list[Any], ...]:
        """One list per entry of *models*, in result-set order.

        Raises:
            ResultSetError: If the procedure produced fewer sets than declared.
        """
        return self._invoke(  # type: ignore[no-any-return]
            sp_name,
            params,
            _multiple(sp_name, models),
            transaction,
            timeout,
            check=lambda: _check_models(models),
        )

    def execute_with_output(
        self,
        sp_name: str,
        params: Any = None,
        outputs: Mapping[str, Any] | None = None,
        *,
        transaction: Any = None,
        timeout: float | None = None,
    ) -> SpResult:
        """Run a procedure with output slots declared as ``{name: db_type}``."""
        return self._invoke(  # type: ignore[no-any-return]
            sp_name, params, _with_output, transaction, timeout, outputs=outputs or {}
        )

    def _invoke(
        self,
        sp_name: str,
        params: Any,
        shape: Shape,
        transaction: Any,
        timeout: float | None,
        *,
        outputs: Mapping[str, Any] | None = None,
        check: Callable[[], None] | None = None,
    ) -> Any:
        start = time.perf_counter()
        try:
            if check is not None:
                check()
            bound = params if outputs is None else _merge_outputs(params, outputs)
            command = self._builder.build(sp_name, bound, transaction, timeout)
            connection = transaction.connection if transaction is not None else self._connect()
            value, row_count = shape(self._adapter.run(connection, command))
        except Exception as exc:
            _record_failure(self._diagnostics, sp_name, params, exc, start)
            raise
        self._diagnostics.record(QueryEvent(sp_name, _elapsed(start), row_count, params))
        return value


class AsyncSpExecutor:
    """Asynchronous procedure executor.

    ``timeout`` is enforced with ``asyncio.timeout``; a timed-out or
    cancelled call is recorded as a failure before the error propagates.
    """

    def __init__(
        self,
        adapter: Any,
        connect: Callable[[], Awaitable[Any]],
        builder: CommandBuilder | None = None,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        self._adapter = adapter
        self._connect = connect
        self._builder = builder or create_command_builder(adapter.provider)
        self._diagnostics = diagnostics or QueryDiagnostics()

    @property
    def diagnostics(self) -> Diagnostics:
        return self._diagnostics

    async def query(
        self,
        sp_name: str,
        params: Any = None,
        *,
        model: Any = None,
        transaction: Any = None,
        timeout: float | None = None,
    ) -> list[Any]:
        return await self._invoke(sp_name, params, _rows(model), transaction, timeout)  # type: ignore[no-any-return]

    async def query_single(
        self,
        sp_name: str,
        params: Any = None,
        *,
        model: Any = None,
        transaction: Any = None,
        timeout: float | None = None,
    ) -> Any:
        return await self._invoke(sp_name, params, _single(model), transaction, timeout)

    async def scalar(
        self,
        sp_name: str,
        params: Any = None,
        *,
        transaction: Any = None,
        timeout: float | None = None,
    ) -> Any:
        return await self._invoke(sp_name, params, _scalar, transaction, timeout)

    async def execute(
        self,
        sp_name: str,
        params: Any = None,
        *,
        transaction: Any = None,
        timeout: float | None = None,
    ) -> int:
        return await self._invoke(sp_name, params, _affected, transaction, timeout)  # type: ignore[no-any-return]

    async def query_multiple(
        self,
        sp_name: str,
        params: Any = None,
        *,
        models: Sequence[Any] = (None, None),
        transaction: Any = None,
        timeout: float | None = None,
    ) -> tuple[list[Any], ...]:
        return await self._invoke(  # type: ignore[no-any-return]
            sp_name,
            params,
            _multiple(sp_name, models),
            transaction,
            timeout,
            check=lambda: _check_models(models),
        )

    async def execute_with_output(
        self,
        sp_name: str,
        params: Any = None,
        outputs: Mapping[str, Any] | None = None,
        *,
        transaction: Any = None,
        timeout: float | None = None,
    ) -> SpResult:
        return await self._invoke(  # type: ignore[no-any-return]
            sp_name, params, _with_output, transaction, timeout, outputs=outputs or {}
        )

    async def _invoke(
        self,
        sp_name: str,
        params: Any,
        shape: Shape,
        transaction: Any,
        timeout: float | None,
        *,
        outputs: Mapping[str, Any] | None = None,
        check: Callable[[], None] | None = None,
    ) -> Any:
        start = time.perf_counter()
        try:
            if check is not None:
                check()
            bound = params if outputs is None else _merge_outputs(params, outputs)
            command = self._builder.build(sp_name, bound, transaction, timeout)
            async with asyncio.timeout(timeout):
                if transaction is not None:
                    connection = transaction.connection
                else:
                    connection = await self._connect()
                result = await self._adapter.run_async(connection, command)
            value, row_count = shape(result)
        except (Exception, asyncio.CancelledError) as exc:
            _record_failure(self._diagnostics, sp_name, params, exc, start)
            raise
        self._diagnostics.record(QueryEvent(sp_name, _elapsed(start), row_count, params))
        return value
