"""Procedure registry - emulated stored procedures for SQLite.

SQLite has no stored routines. A procedure directory stands in for the
catalog, one ``.sql`` file per routine:

    procs/Get_Students.sql        -> "Get_Students"
    procs/dbo/Get_Students.sql    -> "dbo.Get_Students"

A routine body holds one or more ``;``-separated statements using ``:name``
parameters. Each statement that returns rows produces one result set.
"""

from __future__ import annotations

from pathlib import Path

from proc_forge.core.exceptions import DuplicateProcedureError, ProcedureNotFoundError
from proc_forge.core.sqltext import split_statements


class ProcedureRegistry:
    """Loads and caches procedure bodies from a directory structure.

    The registry is immutable after loading: load once at startup, then
    read-only access for the lifetime of the application.

    Args:
        root_dir: Root directory containing procedure files.

    Raises:
        DuplicateProcedureError: If two files resolve to the same name.
        SqlTextError: If a body contains an unterminated literal.
    """

    def __init__(self, root_dir: Path | str) -> None:
        self._root_dir = Path(root_dir)
        self._statements: dict[str, tuple[str, ...]] = {}
        self._paths: dict[str, Path] = {}
        self._load()

    @property
    def root_dir(self) -> Path:
        return self._root_dir

    def _load(self) -> None:
        if not self._root_dir.exists():
            return

        for sql_file in sorted(self._root_dir.rglob("*.sql")):
            parts = list(sql_file.relative_to(self._root_dir).parts)
            parts[-1] = parts[-1].removesuffix(".sql")
            name = ".".join(parts)

            if name in self._statements:
                raise DuplicateProcedureError(
                    name, str(self._paths[name]), str(sql_file)
                )

            body = sql_file.read_text(encoding="utf-8")
            self._statements[name] = tuple(split_statements(body))
            self._paths[name] = sql_file

    def statements(self, name: str) -> tuple[str, ...]:
        """Statements of the procedure *name*, in execution order.

        Raises:
            ProcedureNotFoundError: If no procedure has that name.
        """
        try:
            return self._statements[name]
        except KeyError:
            raise ProcedureNotFoundError(name) from None

    def has(self, name: str) -> bool:
        return name in self._statements

    @property
    def procedure_names(self) -> list[str]:
        """All registered names, sorted alphabetically."""
        return sorted(self._statements)

    def __len__(self) -> int:
        return len(self._statements)
