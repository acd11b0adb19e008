"""
Example 05: Startup Validation and Diagnostics

This example demonstrates checking that every registered entity has its
procedures, and observing executions through logging and a callback.
"""

import logging
import shutil
import sqlite3
import tempfile
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from proc_forge import (
    ConnectionConfig,
    DiagnosticsConfig,
    ForgeConnection,
    ForgeOptions,
    MissingProceduresError,
    StartupValidator,
    ValidationConfig,
)


@dataclass
class Person:
    Id: int
    Name: str


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    work_dir = Path(tempfile.mkdtemp())
    db_path = work_dir / "app.db"

    conn = sqlite3.connect(db_path)
    conn.execute("CREATE TABLE people (Id INTEGER PRIMARY KEY, Name TEXT NOT NULL)")
    conn.close()

    procs = work_dir / "procs"
    procs.mkdir()
    (procs / "Get_People.sql").write_text("SELECT Id, Name FROM people")
    (procs / "Save_People.sql").write_text("INSERT INTO people VALUES (:Id, :Name)")

    events = []
    options = ForgeOptions(
        connection=ConnectionConfig(provider="sqlite", database=str(db_path), procedure_dir=procs),
        diagnostics=DiagnosticsConfig(
            enabled=True,
            slow_query_threshold=timedelta(milliseconds=500),
            on_query_executed=events.append,
        ),
        validation=ValidationConfig(mode="catalog", fail_on_missing=True),
    ).map_entity(Person, "People")

    print("=== Startup Validation ===\n")

    try:
        StartupValidator(options).run()
    except MissingProceduresError as e:
        print(f"missing: {e.missing}\n")

    print("=== Diagnostics ===\n")

    with ForgeConnection(options) as forge:
        forge.save(Person(1, "Alice"))
        forge.get(Person)

    for event in events:
        print(f"{event.sp_name}: {event.duration_ms:.1f}ms, rows={event.row_count}")

    shutil.rmtree(work_dir)


if __name__ == "__main__":
    main()
