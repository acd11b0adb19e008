"""Connection configuration and adapter loading.

ConnectionConfig is a Pydantic model for type-safe connection settings.
Adapters are resolved from the provider through a fixed map and imported
lazily, so a missing optional driver only matters when its provider is used.
"""

from __future__ import annotations

import importlib
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, model_validator

from proc_forge.core.enums import DatabaseProvider
from proc_forge.core.exceptions import AdapterError, UnsupportedProviderError


class ConnectionConfig(BaseModel):
    """Configuration for database connections.

    ``database`` is the database name (a file path for SQLite).
    ``procedure_dir`` is the procedure registry root, required for SQLite.
    """

    provider: DatabaseProvider
    database: str
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = Field(default=None, repr=False)
    procedure_dir: Path | None = None
    connect_timeout: float | None = None
    extra: dict[str, Any] = {}

    @model_validator(mode="after")
    def _check_required(self) -> ConnectionConfig:
        if not self.database.strip():
            raise ValueError("database must be a non-empty string")
        if self.provider is DatabaseProvider.SQLITE and self.procedure_dir is None:
            raise ValueError("procedure_dir is required for the sqlite provider")
        return self


# Adapter module mapping: provider -> (module_path, sync_class, async_class)
_ADAPTER_MAP: dict[DatabaseProvider, tuple[str, str, str]] = {
    DatabaseProvider.SQLITE: (
        "proc_forge.adapters.sqlite",
        "SqliteSyncAdapter",
        "SqliteAsyncAdapter",
    ),
    DatabaseProvider.POSTGRESQL: (
        "proc_forge.adapters.postgresql",
        "PostgresqlSyncAdapter",
        "PostgresqlAsyncAdapter",
    ),
    DatabaseProvider.MYSQL: (
        "proc_forge.adapters.mysql",
        "MysqlSyncAdapter",
        "MysqlAsyncAdapter",
    ),
}


def load_adapter(config: ConnectionConfig, kind: str) -> Any:
    """Instantiate the sync or async adapter for ``config.provider``."""
    if config.provider not in _ADAPTER_MAP:
        raise UnsupportedProviderError(config.provider)

    module_path, sync_cls_name, async_cls_name = _ADAPTER_MAP[config.provider]
    cls_name = sync_cls_name if kind == "sync" else async_cls_name

    try:
        module = importlib.import_module(module_path)
        adapter_cls = getattr(module, cls_name)
    except (ImportError, AttributeError) as e:
        raise AdapterError(
            f"Failed to load {kind} adapter for '{config.provider.value}': {e}"
        ) from e
    return adapter_cls(config)


@contextmanager
def open_connection(adapter: Any) -> Iterator[Any]:
    """Open a dedicated connection for the duration of the block."""
    connection = adapter.connect()
    try:
        yield connection
    finally:
        adapter.close(connection)


@asynccontextmanager
async def open_connection_async(adapter: Any) -> AsyncIterator[Any]:
    """Async counterpart of open_connection."""
    connection = await adapter.connect_async()
    try:
        yield connection
    finally:
        await adapter.close_async(connection)
