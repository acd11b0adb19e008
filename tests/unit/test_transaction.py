"""Unit tests for ForgeConnection and transaction scopes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import pytest

from proc_forge.core.command import CommandDescriptor
from proc_forge.core.config import ForgeOptions
from proc_forge.core.enums import DatabaseProvider
from proc_forge.core.exceptions import (
    ConnectionClosedError,
    ScopeClosedError,
    TransactionStateError,
)
from proc_forge.core.forge import AsyncForgeConnection, ForgeConnection
from proc_forge.core.results import ProcedureResult


@dataclass
class Student:
    Id: int
    Name: str


class RecordingAdapter:
    """Logs lifecycle calls and the procedures run on each connection."""

    provider = DatabaseProvider.SQLITE
    paramstyle = "named"

    def __init__(self, result: ProcedureResult | None = None) -> None:
        self.result = result or ProcedureResult(rowcount=1)
        self.log: list[str] = []
        self.commands: list[CommandDescriptor] = []

    def connect(self) -> str:
        self.log.append("connect")
        return "conn"

    def close(self, connection: Any) -> None:
        self.log.append("close")

    def begin(self, connection: Any) -> None:
        self.log.append("begin")

    def commit(self, connection: Any) -> None:
        self.log.append("commit")

    def rollback(self, connection: Any) -> None:
        self.log.append("rollback")

    def run(self, connection: Any, command: CommandDescriptor) -> ProcedureResult:
        self.log.append(f"run {command.procedure_name}")
        self.commands.append(command)
        return self.result

    async def connect_async(self) -> str:
        return self.connect()

    async def close_async(self, connection: Any) -> None:
        self.close(connection)

    async def begin_async(self, connection: Any) -> None:
        self.begin(connection)

    async def commit_async(self, connection: Any) -> None:
        self.commit(connection)

    async def rollback_async(self, connection: Any) -> None:
        self.rollback(connection)

    async def run_async(self, connection: Any, command: CommandDescriptor) -> ProcedureResult:
        return self.run(connection, command)


class FailingRollbackAdapter(RecordingAdapter):
    """Rollback raises, as when the server already ended the transaction."""

    def rollback(self, connection: Any) -> None:
        super().rollback(connection)
        raise LookupError("no transaction is active")


@pytest.fixture
def adapter() -> RecordingAdapter:
    return RecordingAdapter()


@pytest.fixture
def forge(sqlite_options: ForgeOptions, adapter: RecordingAdapter) -> ForgeConnection:
    return ForgeConnection(sqlite_options, adapter=adapter)


class TestForgeConnection:
    def test_connection_opened_lazily_once(
        self, forge: ForgeConnection, adapter: RecordingAdapter
    ) -> None:
        assert adapter.log == []
        forge.execute("Touch")
        forge.execute("Touch")
        assert adapter.log == ["connect", "run Touch", "run Touch"]

    def test_convention_calls(self, forge: ForgeConnection, adapter: RecordingAdapter) -> None:
        forge.get(Student)
        forge.save(Student(1, "Ana"))
        forge.remove(Student, {"Id": 1})
        assert [c.procedure_name for c in adapter.commands] == [
            "Get_Students",
            "Save_Students",
            "Remove_Students",
        ]
        assert adapter.commands[1].parameters.input_values() == {"Id": 1, "Name": "Ana"}

    def test_get_maps_dataclass_token(self, sqlite_options: ForgeOptions) -> None:
        adapter = RecordingAdapter(ProcedureResult([[{"Id": 1, "Name": "Ana", "Extra": 0}]]))
        with ForgeConnection(sqlite_options, adapter=adapter) as forge:
            assert forge.get(Student) == [Student(1, "Ana")]
            assert forge.get_single(Student) == Student(1, "Ana")

    def test_get_with_string_token_returns_rows(self, sqlite_options: ForgeOptions) -> None:
        rows = [{"Id": 1}]
        adapter = RecordingAdapter(ProcedureResult([rows]))
        with ForgeConnection(sqlite_options, adapter=adapter) as forge:
            assert forge.get("Course") == rows
            assert adapter.commands[0].procedure_name == "Get_Courses"

    def test_save_mapping_needs_entity_type(self, forge: ForgeConnection) -> None:
        with pytest.raises(TypeError, match="entity_type"):
            forge.save({"Id": 1, "Name": "Ana"})

    def test_save_mapping_with_entity_type(
        self, forge: ForgeConnection, adapter: RecordingAdapter
    ) -> None:
        assert forge.save({"Id": 1, "Name": "Ana"}, Student) == 1
        assert adapter.commands[0].procedure_name == "Save_Students"

    def test_mapped_entity_name(self, sqlite_options: ForgeOptions, adapter: RecordingAdapter) -> None:
        options = sqlite_options.map_entity(Student, "Pupils")
        with ForgeConnection(options, adapter=adapter) as forge:
            forge.remove(Student)
        assert adapter.commands[0].procedure_name == "Remove_Pupils"

    def test_close_is_idempotent(self, forge: ForgeConnection, adapter: RecordingAdapter) -> None:
        forge.execute("Touch")
        forge.close()
        forge.close()
        assert adapter.log.count("close") == 1
        assert forge.closed

    def test_closed_connection_rejects_calls(self, forge: ForgeConnection) -> None:
        forge.close()
        with pytest.raises(ConnectionClosedError, match="query"):
            forge.query("Get_Students")
        with pytest.raises(ConnectionClosedError):
            forge.begin_transaction()

    def test_close_without_use_does_not_connect(
        self, forge: ForgeConnection, adapter: RecordingAdapter
    ) -> None:
        forge.close()
        assert adapter.log == []


class TestForgeTransaction:
    def test_commit(self, forge: ForgeConnection, adapter: RecordingAdapter) -> None:
        tx = forge.begin_transaction()
        tx.execute("Save_Students", {"Name": "Ana"})
        tx.commit()
        assert adapter.log == ["connect", "begin", "run Save_Students", "commit"]
        assert tx.state == "committed"
        assert not forge.in_transaction

    def test_commands_carry_the_handle(
        self, forge: ForgeConnection, adapter: RecordingAdapter
    ) -> None:
        with forge.transaction() as tx:
            tx.get(Student)
        assert adapter.commands[0].transaction is not None
        assert adapter.commands[0].transaction.connection == "conn"

    def test_terminal_after_commit(self, forge: ForgeConnection) -> None:
        tx = forge.begin_transaction()
        tx.commit()
        with pytest.raises(ScopeClosedError, match="committed"):
            tx.commit()
        with pytest.raises(ScopeClosedError):
            tx.execute("Touch")
        with pytest.raises(ScopeClosedError):
            tx.rollback()

    def test_terminal_after_rollback(self, forge: ForgeConnection, adapter: RecordingAdapter) -> None:
        tx = forge.begin_transaction()
        tx.rollback()
        assert tx.state == "rolled_back"
        with pytest.raises(ScopeClosedError, match="rolled_back"):
            tx.query("Get_Students")
        assert adapter.log.count("rollback") == 1

    def test_close_rolls_back_active_scope(
        self, forge: ForgeConnection, adapter: RecordingAdapter
    ) -> None:
        tx = forge.begin_transaction()
        tx.close()
        tx.close()
        assert adapter.log.count("rollback") == 1
        assert not tx.is_active
        assert not forge.in_transaction

    def test_close_after_commit_does_not_roll_back(
        self, forge: ForgeConnection, adapter: RecordingAdapter
    ) -> None:
        with forge.begin_transaction() as tx:
            tx.commit()
        assert "rollback" not in adapter.log

    def test_begin_twice_rejected(self, forge: ForgeConnection) -> None:
        forge.begin_transaction()
        with pytest.raises(TransactionStateError):
            forge.begin_transaction()

    def test_begin_again_after_commit(self, forge: ForgeConnection) -> None:
        forge.begin_transaction().commit()
        tx = forge.begin_transaction()
        assert tx.is_active

    def test_context_manager_commits(self, forge: ForgeConnection, adapter: RecordingAdapter) -> None:
        with forge.transaction() as tx:
            tx.execute("Touch")
        assert adapter.log[-1] == "commit"

    def test_context_manager_rolls_back_on_error(
        self, forge: ForgeConnection, adapter: RecordingAdapter
    ) -> None:
        with pytest.raises(RuntimeError, match="boom"), forge.transaction() as tx:
            tx.execute("Touch")
            raise RuntimeError("boom")
        assert adapter.log[-1] == "rollback"
        assert "commit" not in adapter.log

    def test_explicit_rollback_inside_block(
        self, forge: ForgeConnection, adapter: RecordingAdapter
    ) -> None:
        with forge.transaction() as tx:
            tx.rollback()
        assert adapter.log == ["connect", "begin", "rollback"]

    def test_run_in_transaction(self, forge: ForgeConnection, adapter: RecordingAdapter) -> None:
        assert forge.run_in_transaction(lambda tx: tx.execute("Touch")) == 1
        assert adapter.log[-1] == "commit"

    def test_run_in_transaction_rolls_back(
        self, forge: ForgeConnection, adapter: RecordingAdapter
    ) -> None:
        def work(tx: Any) -> None:
            tx.execute("Touch")
            raise ValueError("bad input")

        with pytest.raises(ValueError, match="bad input"):
            forge.run_in_transaction(work)
        assert adapter.log[-1] == "rollback"

    def test_failed_rollback_keeps_block_error(
        self, sqlite_options: ForgeOptions, caplog: pytest.LogCaptureFixture
    ) -> None:
        adapter = FailingRollbackAdapter()
        forge = ForgeConnection(sqlite_options, adapter=adapter)

        def work(tx: Any) -> None:
            tx.execute("Fill")
            raise TimeoutError("interrupted")

        with caplog.at_level(logging.WARNING, logger="proc_forge.core.transaction"):
            with pytest.raises(TimeoutError, match="interrupted"):
                forge.run_in_transaction(work)
        assert adapter.log[-1] == "rollback"
        assert not forge.in_transaction
        assert any("Rollback failed" in r.getMessage() for r in caplog.records)
        forge.begin_transaction().commit()

    def test_failed_rollback_on_plain_close_raises(self, sqlite_options: ForgeOptions) -> None:
        forge = ForgeConnection(sqlite_options, adapter=FailingRollbackAdapter())
        tx = forge.begin_transaction()
        with pytest.raises(LookupError):
            tx.close()
        assert not tx.is_active
        assert not forge.in_transaction

    def test_closing_connection_closes_scope(self, forge: ForgeConnection) -> None:
        tx = forge.begin_transaction()
        forge.close()
        assert not tx.is_active
        with pytest.raises(ScopeClosedError, match="closed"):
            tx.execute("Touch")


class TestAsyncForgeConnection:
    async def test_calls_and_close(
        self, sqlite_options: ForgeOptions, adapter: RecordingAdapter
    ) -> None:
        async with AsyncForgeConnection(sqlite_options, adapter=adapter) as forge:
            assert await forge.execute("Touch") == 1
        assert adapter.log == ["connect", "run Touch", "close"]

    async def test_transaction_commit(
        self, sqlite_options: ForgeOptions, adapter: RecordingAdapter
    ) -> None:
        forge = AsyncForgeConnection(sqlite_options, adapter=adapter)
        async with forge.transaction() as tx:
            await tx.save(Student(2, "Ben"))
        assert adapter.log == ["connect", "begin", "run Save_Students", "commit"]
        await forge.close()

    async def test_transaction_rollback_on_error(
        self, sqlite_options: ForgeOptions, adapter: RecordingAdapter
    ) -> None:
        forge = AsyncForgeConnection(sqlite_options, adapter=adapter)
        with pytest.raises(RuntimeError):
            async with forge.transaction() as tx:
                await tx.execute("Touch")
                raise RuntimeError("boom")
        assert adapter.log[-1] == "rollback"
        await forge.close()

    async def test_failed_rollback_keeps_block_error(self, sqlite_options: ForgeOptions) -> None:
        adapter = FailingRollbackAdapter()
        forge = AsyncForgeConnection(sqlite_options, adapter=adapter)

        async def work(tx: Any) -> None:
            await tx.execute("Fill")
            raise TimeoutError("interrupted")

        with pytest.raises(TimeoutError, match="interrupted"):
            await forge.run_in_transaction(work)
        assert adapter.log[-1] == "rollback"
        assert not forge.in_transaction
        await forge.close()

    async def test_scope_terminal(self, sqlite_options: ForgeOptions, adapter: RecordingAdapter) -> None:
        forge = AsyncForgeConnection(sqlite_options, adapter=adapter)
        tx = await forge.begin_transaction()
        await tx.commit()
        with pytest.raises(ScopeClosedError):
            await tx.execute("Touch")
        with pytest.raises(TransactionStateError):
            await forge.begin_transaction()
            await forge.begin_transaction()
        await forge.close()

    async def test_run_in_transaction(
        self, sqlite_options: ForgeOptions, adapter: RecordingAdapter
    ) -> None:
        async def work(tx: Any) -> int:
            return await tx.execute("Touch")

        forge = AsyncForgeConnection(sqlite_options, adapter=adapter)
        assert await forge.run_in_transaction(work) == 1
        assert adapter.log[-1] == "commit"
        await forge.close()

    async def test_closed_rejects_calls(
        self, sqlite_options: ForgeOptions, adapter: RecordingAdapter
    ) -> None:
        forge = AsyncForgeConnection(sqlite_options, adapter=adapter)
        await forge.close()
        with pytest.raises(ConnectionClosedError):
            await forge.scalar("Count_Students")
