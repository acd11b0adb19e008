"""Transaction scopes.

A ForgeTransaction wraps one live transaction and exposes the same calls as
ForgeConnection, each bound to that transaction. ``commit()`` and
``rollback()`` are terminal: after either one, or after ``close()``, every
call raises ScopeClosedError. Closing an unfinished scope rolls it back.
The underlying handle is released exactly once on every path.

When a scope is closed by an error leaving its ``with`` block, a failing
rollback is logged and the block's error propagates.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

from proc_forge.conventions.naming import NamingConvention
from proc_forge.core.exceptions import ScopeClosedError
from proc_forge.core.executor import AsyncSpExecutor, SpExecutor
from proc_forge.core.operations import AsyncProcedureOperations, ProcedureOperations
from proc_forge.diagnostics.diagnostics import LOG_PREFIX

logger = logging.getLogger(__name__)


class _TxState(Enum):
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class TransactionHandle:
    """A transaction begun on *connection* through *adapter*."""

    def __init__(
        self,
        connection: Any,
        adapter: Any,
        on_release: Callable[[TransactionHandle], None] | None = None,
    ) -> None:
        self._connection = connection
        self._adapter = adapter
        self._on_release = on_release
        self._released = False

    @property
    def connection(self) -> Any:
        return self._connection

    @property
    def released(self) -> bool:
        return self._released

    def commit(self) -> None:
        self._adapter.commit(self._connection)

    def rollback(self) -> None:
        self._adapter.rollback(self._connection)

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        if self._on_release is not None:
            self._on_release(self)


class AsyncTransactionHandle(TransactionHandle):
    """TransactionHandle over an AsyncAdapter."""

    async def commit(self) -> None:  # type: ignore[override]
        await self._adapter.commit_async(self._connection)

    async def rollback(self) -> None:  # type: ignore[override]
        await self._adapter.rollback_async(self._connection)


class _ScopeState:
    """State checks shared by the sync and async scopes."""

    _handle: TransactionHandle

    def __init__(self) -> None:
        self._state = _TxState.ACTIVE
        self._closed = False

    @property
    def state(self) -> str:
        return self._state.value

    @property
    def is_active(self) -> bool:
        return self._state is _TxState.ACTIVE and not self._closed and not self._handle.released

    def _check_open(self, action: str) -> None:
        if self._state is not _TxState.ACTIVE:
            raise ScopeClosedError(self._state.value, action)
        if self._closed or self._handle.released:
            raise ScopeClosedError("closed", action)

    def _begin_close(self) -> bool:
        """Mark the scope closed; True when a rollback is still owed."""
        if self._closed:
            return False
        self._closed = True
        if self._state is _TxState.ACTIVE and not self._handle.released:
            self._state = _TxState.ROLLED_BACK
            return True
        return False

    @staticmethod
    def _rollback_failed(error: BaseException) -> None:
        logger.warning(
            "%s Rollback failed while handling %s: %s",
            LOG_PREFIX,
            type(error).__name__,
            error,
            exc_info=True,
        )


class ForgeTransaction(_ScopeState, ProcedureOperations):
    """Synchronous transaction scope."""

    def __init__(
        self,
        handle: TransactionHandle,
        executor: SpExecutor,
        convention: NamingConvention,
    ) -> None:
        super().__init__()
        self._handle = handle
        self._executor = executor
        self._convention = convention

    def _bind(self, action: str) -> TransactionHandle:
        self._check_open(action)
        return self._handle

    def commit(self) -> None:
        self._check_open("commit")
        self._handle.commit()
        self._state = _TxState.COMMITTED
        self._handle.release()

    def rollback(self) -> None:
        self._check_open("rollback")
        try:
            self._handle.rollback()
        finally:
            self._state = _TxState.ROLLED_BACK
            self._handle.release()

    def close(self, error: BaseException | None = None) -> None:
        """Roll back if still active and release the handle. Idempotent.

        Args:
            error: The error that is closing the scope, if any. A rollback
                failure is then logged instead of replacing it.
        """
        try:
            if self._begin_close():
                try:
                    self._handle.rollback()
                except Exception:
                    if error is None:
                        raise
                    self._rollback_failed(error)
        finally:
            self._handle.release()

    def __enter__(self) -> ForgeTransaction:
        return self

    def __exit__(self, exc_type: Any, exc: BaseException | None, tb: Any) -> None:
        self.close(exc)


class AsyncForgeTransaction(_ScopeState, AsyncProcedureOperations):
    """Asynchronous transaction scope."""

    _handle: AsyncTransactionHandle

    def __init__(
        self,
        handle: AsyncTransactionHandle,
        executor: AsyncSpExecutor,
        convention: NamingConvention,
    ) -> None:
        super().__init__()
        self._handle = handle
        self._executor = executor
        self._convention = convention

    def _bind(self, action: str) -> AsyncTransactionHandle:
        self._check_open(action)
        return self._handle

    async def commit(self) -> None:
        self._check_open("commit")
        await self._handle.commit()
        self._state = _TxState.COMMITTED
        self._handle.release()

    async def rollback(self) -> None:
        self._check_open("rollback")
        try:
            await self._handle.rollback()
        finally:
            self._state = _TxState.ROLLED_BACK
            self._handle.release()

    async def close(self, error: BaseException | None = None) -> None:
        try:
            if self._begin_close():
                try:
                    await self._handle.rollback()
                except Exception:
                    if error is None:
                        raise
                    self._rollback_failed(error)
        finally:
            self._handle.release()

    async def __aenter__(self) -> AsyncForgeTransaction:
        return self

    async def __aexit__(self, exc_type: Any, exc: BaseException | None, tb: Any) -> None:
        await self.close(exc)
