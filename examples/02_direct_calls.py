"""
Example 02: Direct Calls

This example demonstrates calling procedures by name: query, query_single,
scalar, query_multiple and execute_with_output.
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


@dataclass
class Course:
    Code: str
    Title: str


def main():
    work_dir = Path(tempfile.mkdtemp())
    db_path = work_dir / "school.db"

    conn = sqlite3.connect(db_path)
    conn.executescript("""
        CREATE TABLE students (Id INTEGER PRIMARY KEY, Name TEXT NOT NULL);
        CREATE TABLE courses (Code TEXT PRIMARY KEY, Title TEXT NOT NULL);
        INSERT INTO students (Name) VALUES ('Alice'), ('Bob');
        INSERT INTO courses VALUES ('M1', 'Algebra');
    """)
    conn.close()

    procs = work_dir / "procs"
    (procs / "dbo").mkdir(parents=True)
    (procs / "dbo" / "Find_Student.sql").write_text(
        "SELECT Id, Name FROM students WHERE Name = :Name"
    )
    (procs / "Count_Students.sql").write_text("SELECT COUNT(*) AS Total FROM students")
    (procs / "Get_Overview.sql").write_text(
        "SELECT Id, Name FROM students ORDER BY Id;\n"
        "SELECT Code, Title FROM courses ORDER BY Code;\n"
    )
    (procs / "Add_Student.sql").write_text(
        "INSERT INTO students (Name) VALUES (:Name);\n"
        "SELECT last_insert_rowid() AS NewId;\n"
    )

    options = ForgeOptions(
        connection=ConnectionConfig(provider="sqlite", database=str(db_path), procedure_dir=procs)
    )

    print("=== Direct Calls ===\n")

    with ForgeConnection(options) as forge:
        # Schema-qualified names map to sub-directories
        bob = forge.query_single("dbo.Find_Student", {"Name": "Bob"}, model=Student)
        print(f"query_single: {bob}")

        print(f"scalar: {forge.scalar('Count_Students')} students")

        students, courses = forge.query_multiple("Get_Overview", models=(Student, Course))
        print(f"query_multiple: {len(students)} students, {len(courses)} courses")

        result = forge.execute_with_output("Add_Student", {"Name": "Carol"}, {"NewId": None})
        print(f"execute_with_output: {result.rows_affected} row(s), NewId={result.output_values['NewId']}")

    shutil.rmtree(work_dir)


if __name__ == "__main__":
    main()
