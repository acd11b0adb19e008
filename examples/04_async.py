"""
Example 04: Async Support

This example demonstrates AsyncForgeConnection with aiosqlite.
"""

import asyncio
import shutil
import sqlite3
import tempfile
from dataclasses import dataclass
from pathlib import Path

from proc_forge import AsyncForgeConnection, ConnectionConfig, ForgeOptions


@dataclass
class Student:
    Id: int
    Name: str


async def main():
    work_dir = Path(tempfile.mkdtemp())
    db_path = work_dir / "school.db"

    conn = sqlite3.connect(db_path)
    conn.execute("CREATE TABLE students (Id INTEGER PRIMARY KEY, Name TEXT NOT NULL)")
    conn.close()

    procs = work_dir / "procs"
    procs.mkdir()
    (procs / "Get_Students.sql").write_text("SELECT Id, Name FROM students ORDER BY Id")
    (procs / "Save_Students.sql").write_text(
        "INSERT OR REPLACE INTO students (Id, Name) VALUES (:Id, :Name)"
    )

    options = ForgeOptions(
        connection=ConnectionConfig(provider="sqlite", database=str(db_path), procedure_dir=procs)
    )

    print("=== Async Support ===\n")

    async with AsyncForgeConnection(options) as forge:
        async with forge.transaction() as tx:
            await tx.save(Student(1, "Alice"))
            await tx.save(Student(2, "Bob"))

        students = await forge.get(Student, timeout=5)
        print(f"get: {students}")

    shutil.rmtree(work_dir)


if __name__ == "__main__":
    asyncio.run(main())
