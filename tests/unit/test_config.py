"""Unit tests for ForgeOptions and connection configuration."""

from __future__ import annotations

import abc
import types
from pathlib import Path

import pydantic
import pytest

from proc_forge.core.config import DiagnosticsConfig, ForgeOptions, ValidationConfig
from proc_forge.core.connection import ConnectionConfig
from proc_forge.core.enums import DatabaseProvider, ValidationMode


class Person:
    pass


class Student:
    pass


def _entities_module() -> types.ModuleType:
    module = types.ModuleType("school.entities")

    class Course:
        pass

    class Lecturer:
        pass

    class _Hidden:
        pass

    class Base(abc.ABC):
        @abc.abstractmethod
        def key(self) -> int: ...

    for cls in (Course, Lecturer, _Hidden, Base):
        cls.__module__ = module.__name__
        setattr(module, cls.__name__, cls)
    module.Imported = Person  # defined elsewhere
    return module


class TestConnectionConfig:
    def test_provider_from_string(self, tmp_path: Path) -> None:
        config = ConnectionConfig(provider="sqlite", database="app.db", procedure_dir=tmp_path)
        assert config.provider is DatabaseProvider.SQLITE

    def test_unknown_provider_rejected(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            ConnectionConfig(provider="sqlserver", database="app")

    def test_database_required(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            ConnectionConfig(provider="postgresql", database="  ")

    def test_sqlite_requires_procedure_dir(self) -> None:
        with pytest.raises(pydantic.ValidationError, match="procedure_dir"):
            ConnectionConfig(provider="sqlite", database="app.db")

    def test_password_hidden_from_repr(self) -> None:
        config = ConnectionConfig(provider="mysql", database="app", password="s3cret")
        assert "s3cret" not in repr(config)


class TestForgeOptions:
    def test_defaults(self, sqlite_options: ForgeOptions) -> None:
        assert sqlite_options.diagnostics.enabled is False
        assert sqlite_options.validation.mode is ValidationMode.DISABLED
        assert sqlite_options.validation.fail_on_missing is False
        assert sqlite_options.registered_entities == ()

    def test_map_entity_overrides_and_registers(self, sqlite_options: ForgeOptions) -> None:
        options = sqlite_options.map_entity(Person, "People")
        assert options.naming_convention().resolve_select(Person) == "Get_People"
        assert options.registered_entities == (Person,)
        assert sqlite_options.entity_names == {}

    def test_map_entity_last_write_wins(self, sqlite_options: ForgeOptions) -> None:
        options = sqlite_options.map_entity(Person, "People").map_entity(Person, "Humans")
        assert options.naming_convention().resolve_select(Person) == "Get_Humans"
        assert options.registered_entities == (Person,)

    def test_map_entity_rejects_blank_name(self, sqlite_options: ForgeOptions) -> None:
        with pytest.raises(ValueError):
            sqlite_options.map_entity(Person, " ")

    def test_register_entity_deduplicates(self, sqlite_options: ForgeOptions) -> None:
        options = sqlite_options.register_entity(Student, Person).register_entity(Student)
        assert options.registered_entities == (Student, Person)

    def test_register_entities_from_module(self, sqlite_options: ForgeOptions) -> None:
        options = sqlite_options.register_entities_from_module(_entities_module())
        assert [cls.__name__ for cls in options.registered_entities] == ["Course", "Lecturer"]

    def test_register_entities_from_module_predicate(self, sqlite_options: ForgeOptions) -> None:
        options = sqlite_options.register_entities_from_module(
            _entities_module(), predicate=lambda cls: cls.__name__.startswith("L")
        )
        assert [cls.__name__ for cls in options.registered_entities] == ["Lecturer"]

    def test_custom_resolver(self, sqlite_config: ConnectionConfig) -> None:
        options = ForgeOptions(
            connection=sqlite_config,
            entity_name_resolver=lambda entity: f"tbl{entity.__name__}",
        )
        assert options.naming_convention().resolve_delete(Student) == "Remove_tblStudent"

    def test_blank_override_rejected(self, sqlite_config: ConnectionConfig) -> None:
        with pytest.raises(pydantic.ValidationError):
            ForgeOptions(connection=sqlite_config, entity_names={Person: ""})

    def test_frozen(self, sqlite_options: ForgeOptions) -> None:
        with pytest.raises(pydantic.ValidationError):
            sqlite_options.validation = ValidationConfig()  # type: ignore[misc]

    def test_nested_settings(self, sqlite_config: ConnectionConfig) -> None:
        options = ForgeOptions(
            connection=sqlite_config,
            naming={"schema_name": "dbo", "select_prefix": "sel"},
            diagnostics=DiagnosticsConfig(enabled=True),
            validation={"mode": "catalog", "fail_on_missing": True},
        )
        assert options.naming_convention().resolve_select(Student) == "dbo.sel_Students"
        assert options.validation.mode is ValidationMode.CATALOG
        assert options.diagnostics.enabled is True
