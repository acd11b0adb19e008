"""Stored procedure naming conventions.

Resolves an entity type token and an operation kind to a procedure name:

    {schema}.{prefix}{separator}{entity name}    when a schema is configured
    {prefix}{separator}{entity name}             otherwise

Entity names come from, in order: an explicit per-type override, the global
resolver function, whose default appends "s" to the type name (``Person``
becomes ``Persons``). Irregular plurals need an override or a custom resolver.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Mapping
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

EntityToken = Hashable


def type_name(entity: EntityToken) -> str:
    """Return the type name of an entity token (a class or a registered name)."""
    if isinstance(entity, str):
        return entity
    name = getattr(entity, "__name__", None)
    if not isinstance(name, str):
        raise TypeError(f"Entity token must be a class or a type name, not {entity!r}")
    return name


def default_entity_name(entity: EntityToken) -> str:
    """Default global resolver: the type name with an "s" appended."""
    return f"{type_name(entity)}s"


class NamingConfig(BaseModel):
    """Prefixes, schema and separator of the naming convention.

    Prefixes and the separator must be non-empty; invalid values fail at
    construction, before any procedure runs.
    """

    model_config = ConfigDict(frozen=True)

    select_prefix: str = "Get"
    upsert_prefix: str = "Save"
    delete_prefix: str = "Remove"
    schema_name: str = ""
    separator: str = "_"

    @field_validator("select_prefix", "upsert_prefix", "delete_prefix", "separator")
    @classmethod
    def _not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("must be a non-empty string")
        return value

    @field_validator("schema_name")
    @classmethod
    def _strip_schema(cls, value: str) -> str:
        return value.strip()


class EntityNameResolver:
    """Resolves entity tokens to the entity part of procedure names."""

    def __init__(
        self,
        overrides: Mapping[EntityToken, str] | None = None,
        resolver: Callable[[EntityToken], str] | None = None,
    ) -> None:
        self._overrides = MappingProxyType(dict(overrides or {}))
        self._resolver = resolver or default_entity_name

    @property
    def overrides(self) -> Mapping[EntityToken, str]:
        return self._overrides

    def resolve(self, entity: EntityToken) -> str:
        mapped = self._overrides.get(entity)
        if mapped is not None:
            return mapped
        return self._resolver(entity)


class NamingConvention:
    """Resolves select, upsert and delete procedure names for entity tokens."""

    def __init__(
        self,
        config: NamingConfig | None = None,
        entity_names: EntityNameResolver | None = None,
    ) -> None:
        self._config = config or NamingConfig()
        self._entity_names = entity_names or EntityNameResolver()

    @property
    def config(self) -> NamingConfig:
        return self._config

    def resolve_entity_name(self, entity: EntityToken) -> str:
        return self._entity_names.resolve(entity)

    def resolve_select(self, entity: EntityToken) -> str:
        return self._build_name(self._config.select_prefix, entity)

    def resolve_upsert(self, entity: EntityToken) -> str:
        return self._build_name(self._config.upsert_prefix, entity)

    def resolve_delete(self, entity: EntityToken) -> str:
        return self._build_name(self._config.delete_prefix, entity)

    def expected_names(self, entity: EntityToken) -> tuple[str, str, str]:
        """The select, upsert and delete names expected to exist for *entity*."""
        return (
            self.resolve_select(entity),
            self.resolve_upsert(entity),
            self.resolve_delete(entity),
        )

    def _build_name(self, prefix: str, entity: EntityToken) -> str:
        name = f"{prefix}{self._config.separator}{self.resolve_entity_name(entity)}"
        if not self._config.schema_name:
            return name
        return f"{self._config.schema_name}.{name}"

    def __repr__(self) -> str:
        c = self._config
        return (
            f"NamingConvention(select={c.select_prefix!r}, upsert={c.upsert_prefix!r}, "
            f"delete={c.delete_prefix!r}, schema={c.schema_name!r}, separator={c.separator!r})"
        )


def build_convention(**settings: Any) -> NamingConvention:
    """Shortcut for ``NamingConvention(NamingConfig(**settings))``."""
    return NamingConvention(NamingConfig(**settings))
