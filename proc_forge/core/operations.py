"""Convention-based and direct procedure calls.

ForgeConnection and ForgeTransaction expose the same call surface. They
differ only in the transaction handle a call is bound to, which each supplies
through ``_bind``; ``_bind`` also rejects calls on a closed object.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel

from proc_forge.conventions.naming import EntityToken, NamingConvention
from proc_forge.core.executor import AsyncSpExecutor, SpExecutor, SpResult
from proc_forge.core.params import ParameterBag


def entity_model(entity: EntityToken) -> Any:
    """The class convention reads map rows to: dataclass and pydantic tokens only."""
    if isinstance(entity, type) and (
        dataclasses.is_dataclass(entity) or issubclass(entity, BaseModel)
    ):
        return entity
    return None


def entity_type_of(entity: Any) -> type:
    if isinstance(entity, Mapping | ParameterBag):
        raise TypeError("entity_type is required when saving a mapping or a ParameterBag")
    return type(entity)


class ProcedureOperations:
    """Synchronous call surface shared by connections and transactions."""

    _executor: SpExecutor
    _convention: NamingConvention

    def _bind(self, action: str) -> Any:
        raise NotImplementedError

    # --- convention calls ---

    def get(
        self, entity: EntityToken, params: Any = None, *, timeout: float | None = None
    ) -> list[Any]:
        """Rows of the entity's select procedure."""
        transaction = self._bind("get")
        return self._executor.query(
            self._convention.resolve_select(entity),
            params,
            model=entity_model(entity),
            transaction=transaction,
            timeout=timeout,
        )

    def get_single(
        self, entity: EntityToken, params: Any = None, *, timeout: float | None = None
    ) -> Any:
        """First row of the entity's select procedure, or None."""
        transaction = self._bind("get_single")
        return self._executor.query_single(
            self._convention.resolve_select(entity),
            params,
            model=entity_model(entity),
            transaction=transaction,
            timeout=timeout,
        )

    def save(
        self,
        entity: Any,
        entity_type: EntityToken | None = None,
        *,
        timeout: float | None = None,
    ) -> int:
        """Run the upsert procedure with *entity* as the parameters.

        The entity type defaults to ``type(entity)``; pass *entity_type* when
        the entity is a plain mapping.
        """
        transaction = self._bind("save")
        token = entity_type if entity_type is not None else entity_type_of(entity)
        return self._executor.execute(
            self._convention.resolve_upsert(token),
            entity,
            transaction=transaction,
            timeout=timeout,
        )

    def remove(
        self, entity: EntityToken, params: Any = None, *, timeout: float | None = None
    ) -> int:
        """Run the entity's delete procedure."""
        transaction = self._bind("remove")
        return self._executor.execute(
            self._convention.resolve_delete(entity),
            params,
            transaction=transaction,
            timeout=timeout,
        )

    # --- direct calls ---

    def query(
        self,
        sp_name: str,
        params: Any = None,
        *,
        model: Any = None,
        timeout: float | None = None,
    ) -> list[Any]:
        transaction = self._bind("query")
        return self._executor.query(
            sp_name, params, model=model, transaction=transaction, timeout=timeout
        )

    def query_single(
        self,
        sp_name: str,
        params: Any = None,
        *,
        model: Any = None,
        timeout: float | None = None,
    ) -> Any:
        transaction = self._bind("query_single")
        return self._executor.query_single(
            sp_name, params, model=model, transaction=transaction, timeout=timeout
        )

    def scalar(self, sp_name: str, params: Any = None, *, timeout: float | None = None) -> Any:
        transaction = self._bind("scalar")
        return self._executor.scalar(sp_name, params, transaction=transaction, timeout=timeout)

    def execute(self, sp_name: str, params: Any = None, *, timeout: float | None = None) -> int:
        transaction = self._bind("execute")
        return self._executor.execute(sp_name, params, transaction=transaction, timeout=timeout)

    def query_multiple(
        self,
        sp_name: str,
        params: Any = None,
        *,
        models: Sequence[Any] = (None, None),
        timeout: float | None = None,
    ) -> tuple[list[Any], ...]:
        transaction = self._bind("query_multiple")
        return self._executor.query_multiple(
            sp_name, params, models=models, transaction=transaction, timeout=timeout
        )

    def execute_with_output(
        self,
        sp_name: str,
        params: Any = None,
        outputs: Mapping[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> SpResult:
        transaction = self._bind("execute_with_output")
        return self._executor.execute_with_output(
            sp_name, params, outputs, transaction=transaction, timeout=timeout
        )


class AsyncProcedureOperations:
    """Asynchronous call surface shared by connections and transactions."""

    _executor: AsyncSpExecutor
    _convention: NamingConvention

    def _bind(self, action: str) -> Any:
        raise NotImplementedError

    async def get(
        self, entity: EntityToken, params: Any = None, *, timeout: float | None = None
    ) -> list[Any]:
        transaction = self._bind("get")
        return await self._executor.query(
            self._convention.resolve_select(entity),
            params,
            model=entity_model(entity),
            transaction=transaction,
            timeout=timeout,
        )

    async def get_single(
        self, entity: EntityToken, params: Any = None, *, timeout: float | None = None
    ) -> Any:
        transaction = self._bind("get_single")
        return await self._executor.query_single(
            self._convention.resolve_select(entity),
            params,
            model=entity_model(entity),
            transaction=transaction,
            timeout=timeout,
        )

    async def save(
        self,
        entity: Any,
        entity_type: EntityToken | None = None,
        *,
        timeout: float | None = None,
    ) -> int:
        transaction = self._bind("save")
        token = entity_type if entity_type is not None else entity_type_of(entity)
        return await self._executor.execute(
            self._convention.resolve_upsert(token),
            entity,
            transaction=transaction,
            timeout=timeout,
        )

    async def remove(
        self, entity: EntityToken, params: Any = None, *, timeout: float | None = None
    ) -> int:
        transaction = self._bind("remove")
        return await self._executor.execute(
            self._convention.resolve_delete(entity),
            params,
            transaction=transaction,
            timeout=timeout,
        )

    async def query(
        self,
        sp_name: str,
        params: Any = None,
        *,
        model: Any = None,
        timeout: float | None = None,
    ) -> list[Any]:
        transaction = self._bind("query")
        return await self._executor.query(
            sp_name, params, model=model, transaction=transaction, timeout=timeout
        )

    async def query_single(
        self,
        sp_name: str,
        params: Any = None,
        *,
        model: Any = None,
        timeout: float | None = None,
    ) -> Any:
        transaction = self._bind("query_single")
        return await self._executor.query_single(
            sp_name, params, model=model, transaction=transaction, timeout=timeout
        )

    async def scalar(
        self, sp_name: str, params: Any = None, *, timeout: float | None = None
    ) -> Any:
        transaction = self._bind("scalar")
        return await self._executor.scalar(
            sp_name, params, transaction=transaction, timeout=timeout
        )

    async def execute(
        self, sp_name: str, params: Any = None, *, timeout: float | None = None
    ) -> int:
        transaction = self._bind("execute")
        return await self._executor.execute(
            sp_name, params, transaction=transaction, timeout=timeout
        )

    async def query_multiple(
        self,
        sp_name: str,
        params: Any = None,
        *,
        models: Sequence[Any] = (None, None),
        timeout: float | None = None,
    ) -> tuple[list[Any], ...]:
        transaction = self._bind("query_multiple")
        return await self._executor.query_multiple(
            sp_name, params, models=models, transaction=transaction, timeout=timeout
        )

    async def execute_with_output(
        self,
        sp_name: str,
        params: Any = None,
        outputs: Mapping[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> SpResult:
        transaction = self._bind("execute_with_output")
        return await self._executor.execute_with_output(
            sp_name, params, outputs, transaction=transaction, timeout=timeout
        )
