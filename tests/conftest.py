"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from proc_forge.core.connection import ConnectionConfig
from proc_forge.core.config import ForgeOptions


@pytest.fixture
def proc_dir(tmp_path: Path) -> Path:
    """Temporary procedure registry root."""
    path = tmp_path / "procs"
    path.mkdir()
    return path


@pytest.fixture
def write_proc(proc_dir: Path):
    """Helper to write procedure files into the temp registry.

    Usage:
        write_proc("dbo/Get_Students.sql", "SELECT * FROM students")
    """

    def _write(relative_path: str, content: str) -> Path:
        file_path = proc_dir / relative_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")
        return file_path

    return _write


@pytest.fixture
def sqlite_config(tmp_path: Path, proc_dir: Path) -> ConnectionConfig:
    """SQLite file database backed by the temp procedure registry."""
    return ConnectionConfig(
        provider="sqlite",
        database=str(tmp_path / "app.db"),
        procedure_dir=proc_dir,
    )


@pytest.fixture
def sqlite_options(sqlite_config: ConnectionConfig) -> ForgeOptions:
    return ForgeOptions(connection=sqlite_config)
