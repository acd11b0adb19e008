"""ForgeConnection - the top-level facade.

One ForgeConnection owns one database connection, opened on first use.
Procedure names come from the naming convention for the ``get``,
``get_single``, ``save`` and ``remove`` calls, or are given directly for
``query``, ``query_single``, ``scalar``, ``execute``, ``query_multiple`` and
``execute_with_output``.

A ForgeConnection must not be used by concurrent operations; it does not
serialize access. Open one per logical unit of work.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import Any, TypeVar

from proc_forge.conventions.naming import NamingConvention
from proc_forge.core.command import CommandBuilder, create_command_builder
from proc_forge.core.config import ForgeOptions
from proc_forge.core.connection import load_adapter
from proc_forge.core.exceptions import ConnectionClosedError, TransactionStateError
from proc_forge.core.executor import AsyncSpExecutor, SpExecutor
from proc_forge.core.operations import AsyncProcedureOperations, ProcedureOperations
from proc_forge.core.transaction import (
    AsyncForgeTransaction,
    AsyncTransactionHandle,
    ForgeTransaction,
    TransactionHandle,
)
from proc_forge.diagnostics.diagnostics import Diagnostics, QueryDiagnostics

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _ForgeBase:
    def __init__(
        self,
        options: ForgeOptions,
        adapter: Any,
        builder: CommandBuilder | None,
        diagnostics: Diagnostics | None,
    ) -> None:
        self._options = options
        self._adapter = adapter
        self._builder = builder or create_command_builder(options.connection.provider)
        self._diagnostics = diagnostics or QueryDiagnostics(options.diagnostics)
        self._convention = options.naming_convention()
        self._connection: Any = None
        self._transaction: TransactionHandle | None = None
        self._closed = False

    @property
    def options(self) -> ForgeOptions:
        return self._options

    @property
    def convention(self) -> NamingConvention:
        return self._convention

    @property
    def adapter(self) -> Any:
        return self._adapter

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def in_transaction(self) -> bool:
        return self._transaction is not None

    def _check_open(self, action: str) -> None:
        if self._closed:
            raise ConnectionClosedError(action)

    def _bind(self, action: str) -> None:
        self._check_open(action)

    def _check_can_begin(self) -> None:
        self._check_open("begin a transaction")
        if self._transaction is not None:
            raise TransactionStateError("active", "begin")

    def _release_transaction(self, handle: TransactionHandle) -> None:
        if self._transaction is handle:
            self._transaction = None


class ForgeConnection(_ForgeBase, ProcedureOperations):
    """Synchronous ProcForge connection.

    Args:
        options: The configuration.
        adapter: SyncAdapter override; loaded from ``options.connection``
            when omitted.
        builder: CommandBuilder override.
        diagnostics: Diagnostics override.
    """

    def __init__(
        self,
        options: ForgeOptions,
        *,
        adapter: Any = None,
        builder: CommandBuilder | None = None,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        if adapter is None:
            adapter = load_adapter(options.connection, "sync")
        super().__init__(options, adapter, builder, diagnostics)
        self._executor = SpExecutor(self._adapter, self._open, self._builder, self._diagnostics)

    def _open(self) -> Any:
        if self._connection is None:
            self._connection = self._adapter.connect()
            logger.debug("Opened %s connection", self._options.connection.provider.value)
        return self._connection

    def begin_transaction(self) -> ForgeTransaction:
        """Begin a transaction and return its scope for explicit commit/rollback.

        Raises:
            TransactionStateError: If a transaction is already open.
        """
        self._check_can_begin()
        connection = self._open()
        self._adapter.begin(connection)
        handle = TransactionHandle(connection, self._adapter, self._release_transaction)
        self._transaction = handle
        return ForgeTransaction(handle, self._executor, self._convention)

    @contextmanager
    def transaction(self) -> Iterator[ForgeTransaction]:
        """Commit when the block completes; roll back if it raises."""
        with self.begin_transaction() as tx:
            yield tx
            if tx.is_active:
                tx.commit()

    def run_in_transaction(self, work: Callable[[ForgeTransaction], T]) -> T:
        """Run *work* in a transaction; commit on return, roll back and re-raise on error."""
        with self.transaction() as tx:
            return work(tx)

    def close(self) -> None:
        """Close the connection. Uncommitted work is discarded. Idempotent."""
        if self._closed:
            return
        self._closed = True
        handle, self._transaction = self._transaction, None
        if handle is not None:
            handle.release()
        connection, self._connection = self._connection, None
        if connection is not None:
            self._adapter.close(connection)
            logger.debug("Closed %s connection", self._options.connection.provider.value)

    def __enter__(self) -> ForgeConnection:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class AsyncForgeConnection(_ForgeBase, AsyncProcedureOperations):
    """Asynchronous ProcForge connection."""

    def __init__(
        self,
        options: ForgeOptions,
        *,
        adapter: Any = None,
        builder: CommandBuilder | None = None,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        if adapter is None:
            adapter = load_adapter(options.connection, "async")
        super().__init__(options, adapter, builder, diagnostics)
        self._executor = AsyncSpExecutor(
            self._adapter, self._open, self._builder, self._diagnostics
        )

    async def _open(self) -> Any:
        if self._connection is None:
            self._connection = await self._adapter.connect_async()
            logger.debug("Opened %s connection", self._options.connection.provider.value)
        return self._connection

    async def begin_transaction(self) -> AsyncForgeTransaction:
        self._check_can_begin()
        connection = await self._open()
        await self._adapter.begin_async(connection)
        handle = AsyncTransactionHandle(connection, self._adapter, self._release_transaction)
        self._transaction = handle
        return AsyncForgeTransaction(handle, self._executor, self._convention)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncForgeTransaction]:
        async with await self.begin_transaction() as tx:
            yield tx
            if tx.is_active:
                await tx.commit()

    async def run_in_transaction(
        self, work: Callable[[AsyncForgeTransaction], Awaitable[T]]
    ) -> T:
        async with self.transaction() as tx:
            return await work(tx)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        handle, self._transaction = self._transaction, None
        if handle is not None:
            handle.release()
        connection, self._connection = self._connection, None
        if connection is not None:
            await self._adapter.close_async(connection)
            logger.debug("Closed %s connection", self._options.connection.provider.value)

    async def __aenter__(self) -> AsyncForgeConnection:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
