"""Naming conventions - entity types to procedure names."""

from __future__ import annotations

from proc_forge.conventions.naming import (
    EntityNameResolver,
    NamingConfig,
    NamingConvention,
    build_convention,
    default_entity_name,
    type_name,
)

__all__ = [
    "NamingConfig",
    "NamingConvention",
    "EntityNameResolver",
    "build_convention",
    "default_entity_name",
    "type_name",
]
