"""
Example 01: Convention Calls

This example demonstrates get / get_single / save / remove against a SQLite
procedure registry. Procedure names come from the naming convention:
Get_Students, Save_Students and Remove_Students.
"""

import shutil
import sqlite3
import tempfile
from dataclasses import dataclass
from pathlib import Path

from proc_forge import ConnectionConfig, ForgeConnection, ForgeOptions


@dataclass
class Student:
    Id: int
    Name: str


def main():
    work_dir = Path(tempfile.mkdtemp())
    db_path = work_dir / "school.db"

    conn = sqlite3.connect(db_path)
    conn.execute("CREATE TABLE students (Id INTEGER PRIMARY KEY, Name TEXT NOT NULL)")
    conn.close()

    # One .sql file per procedure
    procs = work_dir / "procs"
    procs.mkdir()
    (procs / "Get_Students.sql").write_text("SELECT Id, Name FROM students ORDER BY Id")
    (procs / "Save_Students.sql").write_text(
        "INSERT INTO students (Id, Name) VALUES (:Id, :Name) "
        "ON CONFLICT (Id) DO UPDATE SET Name = excluded.Name"
    )
    (procs / "Remove_Students.sql").write_text("DELETE FROM students WHERE Id = :Id")

    options = ForgeOptions(
        connection=ConnectionConfig(provider="sqlite", database=str(db_path), procedure_dir=procs)
    )

    print("=== Convention Calls ===\n")

    with ForgeConnection(options) as forge:
        forge.save(Student(1, "Alice"))
        forge.save(Student(2, "Bob"))
        print(f"get: {forge.get(Student)}")

        forge.save(Student(2, "Robert"))
        print(f"after upsert: {forge.get(Student)}")

        removed = forge.remove(Student, {"Id": 1})
        print(f"remove: {removed} row(s)")
        print(f"get_single: {forge.get_single(Student)}\n")

        # Mapping parameters need an explicit entity type
        forge.save({"Id": 3, "Name": "Carol"}, Student)
        print(f"names resolved: {forge.convention.expected_names(Student)}")

    shutil.rmtree(work_dir)


if __name__ == "__main__":
    main()
