"""Mapping layer - transform row dicts into typed objects."""

from __future__ import annotations

from proc_forge.mapping.model import Mapper, ModelMapper, resolve_mapper

__all__ = [
    "Mapper",
    "ModelMapper",
    "resolve_mapper",
]
