"""MySQL adapter - sync (mysql-connector-python) and async (aiomysql).

Stored procedures are invoked with ``callproc``. Every result set the
procedure produces is materialized in order; OUT and INOUT values are read
back after the call.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from proc_forge.core.command import CommandDescriptor
from proc_forge.core.connection import ConnectionConfig
from proc_forge.core.enums import CommandType, DatabaseProvider
from proc_forge.core.params import ParameterBag
from proc_forge.core.results import ProcedureResult, rows_to_dicts
from proc_forge.core.sqltext import render_markers

_DEFAULT_PORT = 3306


def _connect_kwargs(config: ConnectionConfig, database_key: str) -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        "host": config.host or "localhost",
        "port": config.port or _DEFAULT_PORT,
        database_key: config.database,
        "autocommit": True,
    }
    if config.user is not None:
        kwargs["user"] = config.user
    if config.password is not None:
        kwargs["password"] = config.password
    kwargs.update(config.extra)
    return kwargs


def _columns(description: Any) -> list[str]:
    return [desc[0] for desc in description]


def _output_values(parameters: ParameterBag, values: list[Any]) -> dict[str, Any]:
    return {
        p.name: value for p, value in zip(parameters, values, strict=False) if p.is_output
    }


class _MysqlBase:
    def __init__(self, config: ConnectionConfig) -> None:
        self._config = config

    @property
    def provider(self) -> DatabaseProvider:
        return DatabaseProvider.MYSQL

    @property
    def paramstyle(self) -> str:
        return "pyformat"


class MysqlSyncAdapter(_MysqlBase):
    """Synchronous MySQL adapter using mysql-connector-python.

    An output slot whose ``db_type`` is a string is passed as
    ``(value, db_type)`` so the connector casts the returned value.
    """

    def connect(self) -> Any:
        import mysql.connector

        kwargs = _connect_kwargs(self._config, "database")
        if self._config.connect_timeout is not None:
            kwargs["connection_timeout"] = int(self._config.connect_timeout)
        return mysql.connector.connect(**kwargs)

    def close(self, connection: Any) -> None:
        connection.close()

    def begin(self, connection: Any) -> None:
        connection.start_transaction()

    def commit(self, connection: Any) -> None:
        connection.commit()

    def rollback(self, connection: Any) -> None:
        connection.rollback()

    def run(self, connection: Any, command: CommandDescriptor) -> ProcedureResult:
        result = ProcedureResult()
        cursor = connection.cursor()
        try:
            if command.command_type is CommandType.STORED_PROCEDURE:
                args = tuple(
                    (p.value, p.db_type) if p.is_output and isinstance(p.db_type, str) else p.value
                    for p in command.parameters
                )
                returned = cursor.callproc(command.procedure_name, args)
                for stored in cursor.stored_results():
                    columns = _columns(stored.description or ())
                    result.result_sets.append(rows_to_dicts(columns, stored.fetchall()))
                values = list(returned.values()) if isinstance(returned, Mapping) else list(returned)
                result.output_values = _output_values(command.parameters, values)
            else:
                sql = render_markers(command.text, self.paramstyle)
                cursor.execute(sql, command.parameters.input_values())
                if cursor.description is not None:
                    columns = _columns(cursor.description)
                    result.result_sets.append(rows_to_dicts(columns, cursor.fetchall()))
            result.rowcount = max(cursor.rowcount, 0)
        finally:
            cursor.close()
        return result


class MysqlAsyncAdapter(_MysqlBase):
    """Asynchronous MySQL adapter using aiomysql.

    aiomysql binds procedure arguments to ``@_<name>_<n>`` session variables;
    output values are selected from those variables once every result set
    has been drained.
    """

    async def connect_async(self) -> Any:
        import aiomysql

        kwargs = _connect_kwargs(self._config, "db")
        if self._config.connect_timeout is not None:
            kwargs["connect_timeout"] = self._config.connect_timeout
        return await aiomysql.connect(**kwargs)

    async def close_async(self, connection: Any) -> None:
        connection.close()

    async def begin_async(self, connection: Any) -> None:
        await connection.begin()

    async def commit_async(self, connection: Any) -> None:
        await connection.commit()

    async def rollback_async(self, connection: Any) -> None:
        await connection.rollback()

    async def run_async(self, connection: Any, command: CommandDescriptor) -> ProcedureResult:
        result = ProcedureResult()
        bag = command.parameters
        cursor = await connection.cursor()
        try:
            if command.command_type is CommandType.STORED_PROCEDURE:
                await cursor.callproc(command.procedure_name, bag.positional_values())
            else:
                sql = render_markers(command.text, self.paramstyle)
                await cursor.execute(sql, bag.input_values())
            result.rowcount = max(cursor.rowcount, 0)
            while True:
                if cursor.description is not None:
                    columns = _columns(cursor.description)
                    result.result_sets.append(rows_to_dicts(columns, await cursor.fetchall()))
                if not await cursor.nextset():
                    break

            if command.command_type is CommandType.STORED_PROCEDURE and bag.output_names:
                variables = ", ".join(
                    f"@_{command.procedure_name}_{index}" for index in range(len(bag))
                )
                await cursor.execute(f"SELECT {variables}")
                row = await cursor.fetchone()
                result.output_values = _output_values(bag, list(row or ()))
        finally:
            await cursor.close()
        return result
