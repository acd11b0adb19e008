"""Command builders.

A CommandBuilder turns a procedure name and its parameters into a
CommandDescriptor, the dialect-specific description of one invocation.
Two calling styles exist:

* stored procedure (MySQL, SQLite): the descriptor names the routine and the
  adapter invokes it natively (``callproc`` or the procedure registry);
* function call (PostgreSQL): the builder writes
  ``SELECT * FROM name(@a, @b)`` and the adapter renders the markers into the
  driver's paramstyle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from proc_forge.core.enums import CommandType, DatabaseProvider
from proc_forge.core.exceptions import UnsupportedProviderError
from proc_forge.core.params import ParameterBag, coerce_parameters


@dataclass(frozen=True)
class CommandDescriptor:
    """One invocation, built fresh per call.

    Attributes:
        procedure_name: Routine name, schema-qualified or not.
        text: Call text for TEXT commands; the routine name otherwise.
        command_type: How the adapter dispatches the command.
        parameters: The ordered parameter slots.
        transaction: The transaction handle to run on, if any.
        timeout: Seconds before the call is aborted, if any.
    """

    procedure_name: str
    text: str
    command_type: CommandType
    parameters: ParameterBag = field(default_factory=ParameterBag)
    transaction: Any = None
    timeout: float | None = None


@runtime_checkable
class CommandBuilder(Protocol):
    """Builds CommandDescriptors for one dialect."""

    def build(
        self,
        procedure_name: str,
        parameters: Any = None,
        transaction: Any = None,
        timeout: float | None = None,
    ) -> CommandDescriptor:
        """Build the invocation of *procedure_name*."""
        ...


class StoredProcedureCommandBuilder:
    """Native stored-procedure style: name and parameters pass through."""

    def build(
        self,
        procedure_name: str,
        parameters: Any = None,
        transaction: Any = None,
        timeout: float | None = None,
    ) -> CommandDescriptor:
        return CommandDescriptor(
            procedure_name=procedure_name,
            text=procedure_name,
            command_type=CommandType.STORED_PROCEDURE,
            parameters=coerce_parameters(parameters),
            transaction=transaction,
            timeout=timeout,
        )


class FunctionCallCommandBuilder:
    """Function-call style: ``SELECT * FROM name(@p1, @p2, ...)``.

    Input and input/output slots are listed in declaration order. Output-only
    slots are left out of the call since PostgreSQL returns OUT values as
    result columns. The name is used verbatim, schema included.
    """

    def build(
        self,
        procedure_name: str,
        parameters: Any = None,
        transaction: Any = None,
        timeout: float | None = None,
    ) -> CommandDescriptor:
        bag = coerce_parameters(parameters)
        placeholders = ", ".join(f"@{name}" for name in bag.input_names)
        return CommandDescriptor(
            procedure_name=procedure_name,
            text=f"SELECT * FROM {procedure_name}({placeholders})",
            command_type=CommandType.TEXT,
            parameters=bag,
            transaction=transaction,
            timeout=timeout,
        )


_BUILDERS: dict[DatabaseProvider, type[CommandBuilder]] = {
    DatabaseProvider.MYSQL: StoredProcedureCommandBuilder,
    DatabaseProvider.SQLITE: StoredProcedureCommandBuilder,
    DatabaseProvider.POSTGRESQL: FunctionCallCommandBuilder,
}


def create_command_builder(provider: DatabaseProvider | str) -> CommandBuilder:
    """Return the command builder for *provider*."""
    try:
        return _BUILDERS[DatabaseProvider(provider)]()
    except (KeyError, ValueError):
        raise UnsupportedProviderError(provider, "command builder") from None


def text_command(
    sql: str,
    parameters: Any = None,
    *,
    name: str = "<text>",
    timeout: float | None = None,
) -> CommandDescriptor:
    """Build a TEXT command from SQL carrying ``@name`` markers."""
    return CommandDescriptor(
        procedure_name=name,
        text=sql,
        command_type=CommandType.TEXT,
        parameters=coerce_parameters(parameters),
        timeout=timeout,
    )
