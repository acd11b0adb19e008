"""
Example 03: Transactions

This example demonstrates transaction scopes: the context manager commits
when the block completes and rolls back when it raises.
"""

import shutil
import sqlite3
import tempfile
from dataclasses import dataclass
from pathlib import Path

from proc_forge import ConnectionConfig, ForgeConnection, ForgeOptions


@dataclass
class Account:
    Id: int
    Balance: int


def main():
    work_dir = Path(tempfile.mkdtemp())
    db_path = work_dir / "bank.db"

    conn = sqlite3.connect(db_path)
    conn.execute("CREATE TABLE accounts (Id INTEGER PRIMARY KEY, Balance INTEGER NOT NULL)")
    conn.execute("INSERT INTO accounts VALUES (1, 100), (2, 0)")
    conn.commit()
    conn.close()

    procs = work_dir / "procs"
    procs.mkdir()
    (procs / "Get_Accounts.sql").write_text("SELECT Id, Balance FROM accounts ORDER BY Id")
    (procs / "Adjust_Balance.sql").write_text(
        "UPDATE accounts SET Balance = Balance + :Amount WHERE Id = :Id"
    )

    options = ForgeOptions(
        connection=ConnectionConfig(provider="sqlite", database=str(db_path), procedure_dir=procs)
    )

    print("=== Transactions ===\n")

    with ForgeConnection(options) as forge:
        with forge.transaction() as tx:
            tx.execute("Adjust_Balance", {"Id": 1, "Amount": -30})
            tx.execute("Adjust_Balance", {"Id": 2, "Amount": 30})
        print(f"after commit: {forge.get(Account)}")

        try:
            with forge.transaction() as tx:
                tx.execute("Adjust_Balance", {"Id": 1, "Amount": -500})
                raise RuntimeError("insufficient funds")
        except RuntimeError as e:
            print(f"rolled back: {e}")
        print(f"after rollback: {forge.get(Account)}")

        # Explicit commit / rollback
        tx = forge.begin_transaction()
        tx.execute("Adjust_Balance", {"Id": 2, "Amount": 5})
        tx.rollback()
        print(f"scope state: {tx.state}")

    shutil.rmtree(work_dir)


if __name__ == "__main__":
    main()
