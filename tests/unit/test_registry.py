"""Unit tests for ProcedureRegistry."""

from __future__ import annotations

from pathlib import Path

import pytest

from proc_forge.core.exceptions import (
    DuplicateProcedureError,
    ProcedureNotFoundError,
    SqlTextError,
)
from proc_forge.core.registry import ProcedureRegistry


class TestProcedureRegistry:
    def test_root_level_name(self, proc_dir: Path, write_proc) -> None:
        write_proc("Get_Students.sql", "SELECT * FROM students")
        registry = ProcedureRegistry(proc_dir)
        assert registry.has("Get_Students")

    def test_schema_from_directory(self, proc_dir: Path, write_proc) -> None:
        write_proc("dbo/Get_Students.sql", "SELECT * FROM students")
        registry = ProcedureRegistry(proc_dir)
        assert registry.has("dbo.Get_Students")
        assert not registry.has("Get_Students")

    def test_statements_split_in_order(self, proc_dir: Path, write_proc) -> None:
        write_proc(
            "Save_Students.sql",
            "-- upsert; then echo\n"
            "INSERT INTO students (name) VALUES (:Name);\n"
            "SELECT last_insert_rowid() AS NewId;\n",
        )
        registry = ProcedureRegistry(proc_dir)
        assert registry.statements("Save_Students") == (
            "INSERT INTO students (name) VALUES (:Name)",
            "SELECT last_insert_rowid() AS NewId",
        )

    def test_procedure_names_sorted(self, proc_dir: Path, write_proc) -> None:
        write_proc("b/Get_X.sql", "SELECT 1")
        write_proc("a/Get_X.sql", "SELECT 2")
        write_proc("Get_Y.sql", "SELECT 3")
        registry = ProcedureRegistry(proc_dir)
        assert registry.procedure_names == ["Get_Y", "a.Get_X", "b.Get_X"]
        assert len(registry) == 3

    def test_not_found(self, proc_dir: Path) -> None:
        registry = ProcedureRegistry(proc_dir)
        with pytest.raises(ProcedureNotFoundError, match="dbo.Missing"):
            registry.statements("dbo.Missing")

    def test_duplicate_name(self, proc_dir: Path, write_proc) -> None:
        write_proc("dbo/Get_X.sql", "SELECT 1")
        write_proc("dbo.Get_X.sql", "SELECT 2")
        with pytest.raises(DuplicateProcedureError, match="dbo.Get_X"):
            ProcedureRegistry(proc_dir)

    def test_unterminated_literal(self, proc_dir: Path, write_proc) -> None:
        write_proc("Broken.sql", "SELECT 'oops")
        with pytest.raises(SqlTextError):
            ProcedureRegistry(proc_dir)

    def test_missing_directory_is_empty(self, tmp_path: Path) -> None:
        registry = ProcedureRegistry(tmp_path / "nope")
        assert len(registry) == 0
        assert registry.root_dir == tmp_path / "nope"
