"""Row-to-model mapper.

Supports dataclasses, Pydantic models, and plain classes.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from proc_forge.core.exceptions import ColumnMismatchError

T = TypeVar("T")


@runtime_checkable
class Mapper(Protocol[T]):
    """Anything that turns row dicts into objects."""

    def map_one(self, row: dict[str, Any]) -> T: ...

    def map_many(self, rows: list[dict[str, Any]]) -> list[T]: ...


def _is_pydantic_model(cls: type) -> bool:
    return isinstance(cls, type) and issubclass(cls, BaseModel)


class ModelMapper(Generic[T]):
    """Maps row dicts onto instances of *target_class*.

    Detection order:
    1. Pydantic BaseModel -> model_validate(row); extra columns follow the
       model's own ``extra`` setting.
    2. dataclass -> target_class(**row), columns without a matching
       init field ignored.
    3. Plain class -> target_class(**row)

    Args:
        target_class: The class to construct from row data.
        aliases: Optional column-name to field-name mapping.
    """

    def __init__(
        self,
        target_class: type[T],
        aliases: dict[str, str] | None = None,
    ) -> None:
        self._target_class = target_class
        self._aliases = aliases
        self._is_pydantic = _is_pydantic_model(target_class)
        self._fields: frozenset[str] | None = None
        if dataclasses.is_dataclass(target_class):
            self._fields = frozenset(f.name for f in dataclasses.fields(target_class) if f.init)

    @property
    def target_class(self) -> type[T]:
        return self._target_class

    def _prepare(self, row: dict[str, Any]) -> dict[str, Any]:
        if self._aliases:
            row = {self._aliases.get(key, key): value for key, value in row.items()}
        if self._fields is not None:
            row = {key: value for key, value in row.items() if key in self._fields}
        return row

    def map_one(self, row: dict[str, Any]) -> T:
        """Map a single row to a target_class instance."""
        row = self._prepare(row)

        if self._is_pydantic:
            try:
                return self._target_class.model_validate(row)  # type: ignore[attr-defined, no-any-return]
            except PydanticValidationError as e:
                missing = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
                raise ColumnMismatchError(self._target_class.__name__, missing) from e

        try:
            return self._target_class(**row)
        except TypeError as e:
            raise ColumnMismatchError(self._target_class.__name__, [str(e)]) from e

    def map_many(self, rows: list[dict[str, Any]]) -> list[T]:
        """Map all rows via map_one."""
        return [self.map_one(row) for row in rows]


def resolve_mapper(model: Any) -> Any:
    """Turn a ``model=`` argument into a mapper.

    None stays None (rows are returned as dicts), an object with
    ``map_one``/``map_many`` is used as-is, and a class is wrapped in a
    ModelMapper.
    """
    if model is None:
        return None
    if isinstance(model, Mapper) and not isinstance(model, type):
        return model
    if isinstance(model, type):
        return ModelMapper(model)
    raise TypeError(f"model must be a class or a mapper, not {model!r}")
