"""PostgreSQL adapter - sync and async using psycopg (v3+).

Functions are called through ``SELECT * FROM name(...)`` TEXT commands.
STORED_PROCEDURE commands are sent as ``CALL name(...)`` with every slot
bound, output slots as NULL. Either way OUT values come back as columns of
the first row.

Call timeouts set ``statement_timeout`` for one call and put the previous value
back afterwards. Inside a transaction the setting is transaction-local, and it
is left alone once the transaction has failed so the failure propagates.
"""

from __future__ import annotations

from typing import Any

from proc_forge.core.command import CommandDescriptor
from proc_forge.core.connection import ConnectionConfig
from proc_forge.core.enums import CommandType, DatabaseProvider
from proc_forge.core.results import ProcedureResult, pick_outputs
from proc_forge.core.sqltext import render_markers


def _connect_params(config: ConnectionConfig) -> dict[str, Any]:
    """Build libpq connection parameters from config fields."""
    params: dict[str, Any] = {"dbname": config.database}
    if config.host is not None:
        params["host"] = config.host
    if config.port is not None:
        params["port"] = config.port
    if config.user is not None:
        params["user"] = config.user
    if config.password is not None:
        params["password"] = config.password
    if config.connect_timeout is not None:
        params["connect_timeout"] = max(int(config.connect_timeout), 1)
    params.update(config.extra)
    return params


def _statement(command: CommandDescriptor) -> tuple[str, dict[str, Any]]:
    bag = command.parameters
    if command.command_type is CommandType.STORED_PROCEDURE:
        slots = ", ".join(f"%({name})s" for name in bag.names)
        return f"CALL {command.procedure_name}({slots})", {p.name: p.value for p in bag}
    return render_markers(command.text, "pyformat"), bag.input_values()


def _swap_statement_timeout(cursor: Any, value: str, local: bool) -> str:
    """Set ``statement_timeout`` to *value* and return the setting it replaced."""
    cursor.execute("SELECT current_setting('statement_timeout') AS previous")
    previous: str = cursor.fetchone()["previous"]
    cursor.execute("SELECT set_config('statement_timeout', %s, %s)", (value, local))
    return previous


def _finish(result: ProcedureResult, command: CommandDescriptor) -> ProcedureResult:
    outputs = command.parameters.output_names
    if outputs:
        first = result.first_set()
        result.output_values = pick_outputs(first[0] if first else None, outputs)
    return result


class _PostgresqlBase:
    def __init__(self, config: ConnectionConfig) -> None:
        self._config = config

    @property
    def provider(self) -> DatabaseProvider:
        return DatabaseProvider.POSTGRESQL

    @property
    def paramstyle(self) -> str:
        return "pyformat"


class PostgresqlSyncAdapter(_PostgresqlBase):
    """Synchronous PostgreSQL adapter using psycopg (v3+)."""

    def connect(self) -> Any:
        import psycopg
        import psycopg.rows

        return psycopg.connect(
            autocommit=True,
            row_factory=psycopg.rows.dict_row,
            **_connect_params(self._config),
        )

    def close(self, connection: Any) -> None:
        connection.close()

    def begin(self, connection: Any) -> None:
        connection.execute("BEGIN")

    def commit(self, connection: Any) -> None:
        connection.execute("COMMIT")

    def rollback(self, connection: Any) -> None:
        connection.execute("ROLLBACK")

    def run(self, connection: Any, command: CommandDescriptor) -> ProcedureResult:
        from psycopg.pq import TransactionStatus

        sql, params = _statement(command)
        result = ProcedureResult()
        previous = None
        with connection.cursor() as cursor:
            if command.timeout is not None:
                local = connection.info.transaction_status is TransactionStatus.INTRANS
                previous = _swap_statement_timeout(
                    cursor, f"{int(command.timeout * 1000)}ms", local
                )
            try:
                cursor.execute(sql, params)
                result.rowcount = max(cursor.rowcount, 0)
                while True:
                    if cursor.description is not None:
                        result.result_sets.append([dict(row) for row in cursor.fetchall()])
                    if not cursor.nextset():
                        break
            finally:
                status = connection.info.transaction_status
                restorable = status in (TransactionStatus.IDLE, TransactionStatus.INTRANS)
                if previous is not None and restorable:
                    cursor.execute(
                        "SELECT set_config('statement_timeout', %s, %s)",
                        (previous, status is TransactionStatus.INTRANS),
                    )
        return _finish(result, command)


class PostgresqlAsyncAdapter(_PostgresqlBase):
    """Asynchronous PostgreSQL adapter using psycopg (v3+) async support.

    Call timeouts are enforced by the caller's task cancellation, which
    psycopg forwards to the server as a cancel request.
    """

    async def connect_async(self) -> Any:
        import psycopg
        import psycopg.rows

        return await psycopg.AsyncConnection.connect(
            autocommit=True,
            row_factory=psycopg.rows.dict_row,
            **_connect_params(self._config),
        )

    async def close_async(self, connection: Any) -> None:
        await connection.close()

    async def begin_async(self, connection: Any) -> None:
        await connection.execute("BEGIN")

    async def commit_async(self, connection: Any) -> None:
        await connection.execute("COMMIT")

    async def rollback_async(self, connection: Any) -> None:
        await connection.execute("ROLLBACK")

    async def run_async(self, connection: Any, command: CommandDescriptor) -> ProcedureResult:
        sql, params = _statement(command)
        result = ProcedureResult()
        async with connection.cursor() as cursor:
            await cursor.execute(sql, params)
            result.rowcount = max(cursor.rowcount, 0)
            while True:
                if cursor.description is not None:
                    result.result_sets.append([dict(row) for row in await cursor.fetchall()])
                if not cursor.nextset():
                    break
        return _finish(result, command)
