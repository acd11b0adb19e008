"""SQLite adapter - sync (sqlite3 stdlib) and async (aiosqlite).

Procedures are emulated with a ProcedureRegistry loaded from
``ConnectionConfig.procedure_dir``. Output values are read from the last row
the routine returns, by column name.
"""

from __future__ import annotations

import sqlite3
import time
from collections.abc import Callable
from contextlib import asynccontextmanager, closing, contextmanager
from typing import Any

from proc_forge.core.command import CommandDescriptor
from proc_forge.core.connection import ConnectionConfig
from proc_forge.core.enums import CommandType, DatabaseProvider
from proc_forge.core.params import ParameterBag
from proc_forge.core.registry import ProcedureRegistry
from proc_forge.core.results import ProcedureResult, pick_outputs, rows_to_dicts
from proc_forge.core.sqltext import render_markers, split_statements

# SQLite VM instructions between deadline checks
_PROGRESS_STEPS = 1000


def _bind_values(parameters: ParameterBag) -> dict[str, Any]:
    return {p.name: p.value for p in parameters}


def _expired(timeout: float) -> Callable[[], bool]:
    deadline = time.monotonic() + timeout
    return lambda: time.monotonic() > deadline


def _connect_kwargs(config: ConnectionConfig) -> dict[str, Any]:
    kwargs: dict[str, Any] = {"isolation_level": None, **config.extra}
    if config.connect_timeout is not None:
        kwargs["timeout"] = config.connect_timeout
    return kwargs


class _SqliteBase:
    def __init__(self, config: ConnectionConfig) -> None:
        if config.procedure_dir is None:
            raise ValueError("procedure_dir is required for the sqlite provider")
        self._config = config
        self._registry = ProcedureRegistry(config.procedure_dir)

    @property
    def provider(self) -> DatabaseProvider:
        return DatabaseProvider.SQLITE

    @property
    def paramstyle(self) -> str:
        return "named"

    @property
    def registry(self) -> ProcedureRegistry:
        return self._registry

    def _statements(self, command: CommandDescriptor) -> tuple[str, ...]:
        if command.command_type is CommandType.STORED_PROCEDURE:
            return self._registry.statements(command.procedure_name)
        return tuple(split_statements(render_markers(command.text, self.paramstyle)))

    @staticmethod
    def _finish(result: ProcedureResult, parameters: ParameterBag) -> ProcedureResult:
        outputs = parameters.output_names
        if outputs:
            rows = [row for result_set in result.result_sets for row in result_set]
            result.output_values = pick_outputs(rows[-1] if rows else None, outputs)
        return result


class SqliteSyncAdapter(_SqliteBase):
    """Synchronous SQLite adapter using stdlib sqlite3."""

    def connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._config.database, **_connect_kwargs(self._config))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def close(self, connection: sqlite3.Connection) -> None:
        connection.close()

    def begin(self, connection: sqlite3.Connection) -> None:
        connection.execute("BEGIN")

    def commit(self, connection: sqlite3.Connection) -> None:
        connection.execute("COMMIT")

    def rollback(self, connection: sqlite3.Connection) -> None:
        # SQLite ends the transaction itself after some errors, e.g. an interrupt
        if connection.in_transaction:
            connection.execute("ROLLBACK")

    def run(self, connection: sqlite3.Connection, command: CommandDescriptor) -> ProcedureResult:
        statements = self._statements(command)
        params = _bind_values(command.parameters)
        result = ProcedureResult()
        with self._deadline(connection, command.timeout):
            for statement in statements:
                with closing(connection.execute(statement, params)) as cursor:
                    if cursor.description is not None:
                        columns = [desc[0] for desc in cursor.description]
                        result.result_sets.append(rows_to_dicts(columns, cursor.fetchall()))
                    elif cursor.rowcount > 0:
                        result.rowcount += cursor.rowcount
        return self._finish(result, command.parameters)

    @staticmethod
    @contextmanager
    def _deadline(connection: sqlite3.Connection, timeout: float | None):  # type: ignore[no-untyped-def]
        """Abort the running statement once *timeout* seconds have passed."""
        if timeout is None:
            yield
            return
        connection.set_progress_handler(_expired(timeout), _PROGRESS_STEPS)
        try:
            yield
        finally:
            connection.set_progress_handler(None, 0)


class SqliteAsyncAdapter(_SqliteBase):
    """Asynchronous SQLite adapter using aiosqlite."""

    async def connect_async(self) -> Any:
        import aiosqlite

        conn = await aiosqlite.connect(self._config.database, **_connect_kwargs(self._config))
        conn.row_factory = aiosqlite.Row
        await conn.execute("PRAGMA journal_mode=WAL")
        return conn

    async def close_async(self, connection: Any) -> None:
        await connection.close()

    async def begin_async(self, connection: Any) -> None:
        await connection.execute("BEGIN")

    async def commit_async(self, connection: Any) -> None:
        await connection.execute("COMMIT")

    async def rollback_async(self, connection: Any) -> None:
        if connection.in_transaction:
            await connection.execute("ROLLBACK")

    async def run_async(self, connection: Any, command: CommandDescriptor) -> ProcedureResult:
        statements = self._statements(command)
        params = _bind_values(command.parameters)
        result = ProcedureResult()
        async with self._deadline(connection, command.timeout):
            for statement in statements:
                cursor = await connection.execute(statement, params)
                try:
                    if cursor.description is not None:
                        columns = [desc[0] for desc in cursor.description]
                        rows = await cursor.fetchall()
                        result.result_sets.append(rows_to_dicts(columns, rows))
                    elif cursor.rowcount > 0:
                        result.rowcount += cursor.rowcount
                finally:
                    await cursor.close()
        return self._finish(result, command.parameters)

    @staticmethod
    @asynccontextmanager
    async def _deadline(connection: Any, timeout: float | None):  # type: ignore[no-untyped-def]
        if timeout is None:
            yield
            return
        await connection.set_progress_handler(_expired(timeout), _PROGRESS_STEPS)
        try:
            yield
        finally:
            await connection.set_progress_handler(None, 0)
