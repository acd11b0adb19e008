"""Catalog validators - does a routine exist?

Each validator splits a qualified name on its last ``.`` into schema and
routine name; names without a schema are looked up in the dialect's default
schema. The SQL validators open a dedicated connection per check.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from proc_forge.core.command import text_command
from proc_forge.core.connection import (
    ConnectionConfig,
    load_adapter,
    open_connection,
    open_connection_async,
)
from proc_forge.core.enums import DatabaseProvider
from proc_forge.core.exceptions import UnsupportedProviderError
from proc_forge.core.registry import ProcedureRegistry
from proc_forge.core.results import ProcedureResult


@runtime_checkable
class CatalogValidator(Protocol):
    def exists(self, qualified_name: str) -> bool:
        """True when the routine *qualified_name* exists."""
        ...


@runtime_checkable
class AsyncCatalogValidator(Protocol):
    async def exists(self, qualified_name: str) -> bool:
        """True when the routine *qualified_name* exists."""
        ...


def split_name(qualified_name: str, default_schema: str | None) -> tuple[str | None, str]:
    """``"dbo.Get_X"`` -> ``("dbo", "Get_X")``; no schema -> *default_schema*."""
    schema, _, name = qualified_name.rpartition(".")
    return (schema or default_schema), name


def _found(result: ProcedureResult) -> bool:
    rows = result.first_set()
    if not rows:
        return False
    return int(next(iter(rows[0].values())) or 0) > 0


class _SqlCatalog:
    """Counts matching routines with a catalog query on ``@Schema`` and ``@Name``."""

    query: str
    default_schema: str | None = None

    def _command(self, qualified_name: str) -> Any:
        schema, name = split_name(qualified_name, self.default_schema)
        return text_command(
            self.query, {"Schema": schema, "Name": name}, name="catalog.routine_exists"
        )


class _PostgresqlCatalog(_SqlCatalog):
    # unquoted identifiers are folded to lower case in the catalog
    query = (
        "SELECT COUNT(*) AS routine_count FROM information_schema.routines "
        "WHERE lower(routine_schema) = lower(@Schema) "
        "AND lower(routine_name) = lower(@Name)"
    )
    default_schema = "public"


class _MysqlCatalog(_SqlCatalog):
    query = (
        "SELECT COUNT(*) AS routine_count FROM information_schema.routines "
        "WHERE routine_schema = COALESCE(@Schema, DATABASE()) "
        "AND routine_name = @Name AND routine_type = 'PROCEDURE'"
    )


class _SyncSqlValidator(_SqlCatalog):
    def __init__(self, adapter: Any) -> None:
        self._adapter = adapter

    def exists(self, qualified_name: str) -> bool:
        command = self._command(qualified_name)
        with open_connection(self._adapter) as connection:
            return _found(self._adapter.run(connection, command))


class _AsyncSqlValidator(_SqlCatalog):
    def __init__(self, adapter: Any) -> None:
        self._adapter = adapter

    async def exists(self, qualified_name: str) -> bool:
        command = self._command(qualified_name)
        async with open_connection_async(self._adapter) as connection:
            return _found(await self._adapter.run_async(connection, command))


class PostgresqlCatalogValidator(_PostgresqlCatalog, _SyncSqlValidator):
    """Looks routines up in ``information_schema.routines``; default schema ``public``."""


class AsyncPostgresqlCatalogValidator(_PostgresqlCatalog, _AsyncSqlValidator):
    pass


class MysqlCatalogValidator(_MysqlCatalog, _SyncSqlValidator):
    """Looks procedures up in ``information_schema.routines``.

    The default schema is the connection's current database.
    """


class AsyncMysqlCatalogValidator(_MysqlCatalog, _AsyncSqlValidator):
    pass


class SqliteCatalogValidator:
    """Checks the procedure registry; no connection is opened."""

    def __init__(self, registry: ProcedureRegistry) -> None:
        self._registry = registry

    def exists(self, qualified_name: str) -> bool:
        return self._registry.has(qualified_name)


class AsyncSqliteCatalogValidator(SqliteCatalogValidator):
    async def exists(self, qualified_name: str) -> bool:  # type: ignore[override]
        return self._registry.has(qualified_name)


_VALIDATORS: dict[DatabaseProvider, tuple[type, type]] = {
    DatabaseProvider.POSTGRESQL: (PostgresqlCatalogValidator, AsyncPostgresqlCatalogValidator),
    DatabaseProvider.MYSQL: (MysqlCatalogValidator, AsyncMysqlCatalogValidator),
}


def _registry_for(config: ConnectionConfig) -> ProcedureRegistry:
    if config.procedure_dir is None:
        raise ValueError("procedure_dir is required for the sqlite provider")
    return ProcedureRegistry(config.procedure_dir)


def create_catalog_validator(config: ConnectionConfig) -> CatalogValidator:
    """Return the catalog validator for ``config.provider``."""
    if config.provider is DatabaseProvider.SQLITE:
        return SqliteCatalogValidator(_registry_for(config))
    if config.provider not in _VALIDATORS:
        raise UnsupportedProviderError(config.provider, "catalog validator")
    return _VALIDATORS[config.provider][0](load_adapter(config, "sync"))  # type: ignore[no-any-return]


def create_async_catalog_validator(config: ConnectionConfig) -> AsyncCatalogValidator:
    """Async counterpart of create_catalog_validator."""
    if config.provider is DatabaseProvider.SQLITE:
        return AsyncSqliteCatalogValidator(_registry_for(config))
    if config.provider not in _VALIDATORS:
        raise UnsupportedProviderError(config.provider, "catalog validator")
    return _VALIDATORS[config.provider][1](load_adapter(config, "async"))  # type: ignore[no-any-return]
