"""ProcForge options.

ForgeOptions gathers everything a ForgeConnection needs: connection settings,
the naming convention, entity name overrides, diagnostics and startup
validation. Options are frozen pydantic models. Registration helpers return a
new ForgeOptions instead of mutating the existing one:

    options = (
        ForgeOptions(connection=ConnectionConfig(provider="sqlite", ...))
        .map_entity(Person, "People")
        .register_entity(Student, Course)
    )
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from datetime import timedelta
from types import ModuleType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from proc_forge.conventions.naming import (
    EntityNameResolver,
    EntityToken,
    NamingConfig,
    NamingConvention,
    default_entity_name,
)
from proc_forge.core.connection import ConnectionConfig
from proc_forge.core.enums import ValidationMode
from proc_forge.diagnostics.events import QueryEvent


class DiagnosticsConfig(BaseModel):
    """Diagnostics settings.

    ``on_query_executed`` receives every QueryEvent, whether or not logging
    is ``enabled``.
    """

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    slow_query_threshold: timedelta = timedelta(seconds=2)
    on_query_executed: Callable[[QueryEvent], Any] | None = None

    @field_validator("slow_query_threshold")
    @classmethod
    def _non_negative(cls, value: timedelta) -> timedelta:
        if value < timedelta(0):
            raise ValueError("slow_query_threshold must not be negative")
        return value


class ValidationConfig(BaseModel):
    """Startup validation settings."""

    model_config = ConfigDict(frozen=True)

    mode: ValidationMode = ValidationMode.DISABLED
    fail_on_missing: bool = False


def _is_entity_class(obj: Any, module: ModuleType) -> bool:
    return (
        inspect.isclass(obj)
        and obj.__module__ == module.__name__
        and not obj.__name__.startswith("_")
        and not inspect.isabstract(obj)
    )


class ForgeOptions(BaseModel):
    """Immutable ProcForge configuration."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    connection: ConnectionConfig
    naming: NamingConfig = NamingConfig()
    diagnostics: DiagnosticsConfig = DiagnosticsConfig()
    validation: ValidationConfig = ValidationConfig()
    entity_names: dict[Any, str] = Field(default_factory=dict)
    entity_name_resolver: Callable[[Any], str] = default_entity_name
    registered_entities: tuple[Any, ...] = ()

    @field_validator("entity_names")
    @classmethod
    def _names_not_blank(cls, value: dict[Any, str]) -> dict[Any, str]:
        for token, name in value.items():
            if not name.strip():
                raise ValueError(f"entity name for {token!r} must not be blank")
        return value

    def map_entity(self, entity: EntityToken, name: str) -> ForgeOptions:
        """Override the entity name of *entity*; the entity is registered too.

        A later mapping for the same entity replaces the earlier one.
        """
        if not name or not name.strip():
            raise ValueError("entity name must not be blank")
        return self._registering(entity).model_copy(
            update={"entity_names": {**self.entity_names, entity: name}}
        )

    def register_entity(self, *entities: EntityToken) -> ForgeOptions:
        """Register entities for startup validation."""
        return self._registering(*entities)

    def register_entities_from_module(
        self,
        module: ModuleType,
        predicate: Callable[[type], bool] | None = None,
    ) -> ForgeOptions:
        """Register the public, concrete classes defined in *module*.

        Classes imported into the module from elsewhere are skipped. An
        optional *predicate* narrows the selection further.
        """
        found = [
            obj
            for obj in vars(module).values()
            if _is_entity_class(obj, module) and (predicate is None or predicate(obj))
        ]
        return self._registering(*found)

    def naming_convention(self) -> NamingConvention:
        return NamingConvention(
            self.naming,
            EntityNameResolver(self.entity_names, self.entity_name_resolver),
        )

    def _registering(self, *entities: EntityToken) -> ForgeOptions:
        registered = list(self.registered_entities)
        for entity in entities:
            if entity not in registered:
                registered.append(entity)
        return self.model_copy(update={"registered_entities": tuple(registered)})
