"""Procedure validation - catalog lookups and the startup check."""

from __future__ import annotations

from proc_forge.validation.catalog import (
    AsyncCatalogValidator,
    CatalogValidator,
    create_async_catalog_validator,
    create_catalog_validator,
    split_name,
)
from proc_forge.validation.startup import (
    AsyncStartupValidator,
    StartupValidator,
    ValidationReport,
    expected_procedures,
)

__all__ = [
    "CatalogValidator",
    "AsyncCatalogValidator",
    "create_catalog_validator",
    "create_async_catalog_validator",
    "split_name",
    "StartupValidator",
    "AsyncStartupValidator",
    "ValidationReport",
    "expected_procedures",
]
