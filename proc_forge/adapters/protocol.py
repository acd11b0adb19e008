"""Database adapter protocols.

Every adapter module implements both protocols with identical semantics.
Adapters are constructed with the ConnectionConfig and keep connections in
autocommit mode; transactions are opened and closed explicitly through
``begin``/``commit``/``rollback``.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from proc_forge.core.command import CommandDescriptor
from proc_forge.core.enums import DatabaseProvider
from proc_forge.core.results import ProcedureResult


@runtime_checkable
class SyncAdapter(Protocol):
    """Synchronous database adapter protocol."""

    @property
    def provider(self) -> DatabaseProvider:
        """The provider this adapter serves."""
        ...

    @property
    def paramstyle(self) -> str:
        """Parameter binding style: 'named' (:name) or 'pyformat' (%(name)s)."""
        ...

    def connect(self) -> Any:
        """Open a new connection."""
        ...

    def close(self, connection: Any) -> None:
        """Close a connection."""
        ...

    def begin(self, connection: Any) -> None:
        """Start a transaction on *connection*."""
        ...

    def commit(self, connection: Any) -> None:
        """Commit the open transaction."""
        ...

    def rollback(self, connection: Any) -> None:
        """Roll back the open transaction."""
        ...

    def run(self, connection: Any, command: CommandDescriptor) -> ProcedureResult:
        """Execute *command* and materialize every result set."""
        ...


@runtime_checkable
class AsyncAdapter(Protocol):
    """Asynchronous database adapter protocol."""

    @property
    def provider(self) -> DatabaseProvider:
        """The provider this adapter serves."""
        ...

    @property
    def paramstyle(self) -> str:
        """Parameter binding style: 'named' (:name) or 'pyformat' (%(name)s)."""
        ...

    async def connect_async(self) -> Any:
        """Open a new connection."""
        ...

    async def close_async(self, connection: Any) -> None:
        """Close a connection."""
        ...

    async def begin_async(self, connection: Any) -> None:
        """Start a transaction on *connection*."""
        ...

    async def commit_async(self, connection: Any) -> None:
        """Commit the open transaction."""
        ...

    async def rollback_async(self, connection: Any) -> None:
        """Roll back the open transaction."""
        ...

    async def run_async(self, connection: Any, command: CommandDescriptor) -> ProcedureResult:
        """Execute *command* and materialize every result set."""
        ...
