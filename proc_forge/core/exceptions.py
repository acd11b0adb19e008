"""ProcForge exception hierarchy.

Driver and database errors raised while a procedure runs are never wrapped:
they reach the caller unchanged, with a note naming the procedure attached.
Everything ProcForge raises on its own derives from ProcForgeError.
"""

from __future__ import annotations

from collections.abc import Sequence


class ProcForgeError(Exception):
    """Base exception for all ProcForge errors."""


# --- Configuration ---


class ConfigurationError(ProcForgeError):
    """Raised when options cannot produce a working component."""


class UnsupportedProviderError(ConfigurationError):
    """Raised when a provider has no adapter, builder or validator."""

    def __init__(self, provider: object, component: str = "adapter") -> None:
        self.provider = provider
        super().__init__(f"Database provider '{provider}' has no {component}")


class AdapterError(ConfigurationError):
    """Raised when a dialect adapter cannot be loaded."""


# --- Execution ---


class ExecutionError(ProcForgeError):
    """Base for errors ProcForge itself raises while shaping a result."""


class ResultSetError(ExecutionError):
    """Raised when a declared result set is not produced by the procedure."""

    def __init__(self, sp_name: str, expected: int, received: int) -> None:
        self.sp_name = sp_name
        self.expected = expected
        self.received = received
        super().__init__(
            f"'{sp_name}' returned {received} result set(s), expected {expected}"
        )


# --- Procedure registry (SQLite emulation) ---


class RegistryError(ProcForgeError):
    """Base for procedure registry errors."""


class ProcedureNotFoundError(RegistryError):
    """Raised when a named procedure cannot be found in the registry."""

    def __init__(self, sp_name: str) -> None:
        self.sp_name = sp_name
        super().__init__(f"Procedure not found: '{sp_name}'")


class DuplicateProcedureError(RegistryError):
    """Raised when two files resolve to the same procedure name."""

    def __init__(self, sp_name: str, path_a: str, path_b: str) -> None:
        self.sp_name = sp_name
        super().__init__(f"Duplicate procedure name '{sp_name}': {path_a} and {path_b}")


class SqlTextError(RegistryError):
    """Raised when a procedure body cannot be split into statements."""


# --- Mapping ---


class MappingError(ProcForgeError):
    """Base for mapping errors."""


class ColumnMismatchError(MappingError):
    """Raised when required fields cannot be mapped from row columns."""

    def __init__(self, target_class: str, missing_fields: list[str]) -> None:
        self.target_class = target_class
        self.missing_fields = missing_fields
        super().__init__(f"Cannot map to {target_class}: missing fields {missing_fields}")


# --- Validation ---


class ValidationError(ProcForgeError):
    """Base for startup validation errors."""


class MissingProceduresError(ValidationError):
    """Raised by fail-fast startup validation when expected procedures are absent."""

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = list(missing)
        summary = ", ".join(self.missing)
        super().__init__(
            f"Procedure validation failed. {len(self.missing)} stored procedure(s) "
            f"not found: {summary}. Create the missing procedures or disable "
            "fail_on_missing."
        )


# --- Misuse ---


class MisuseError(ProcForgeError):
    """Base for operations attempted on a closed or finalized object."""


class ConnectionClosedError(MisuseError):
    """Raised when a closed ForgeConnection is used."""

    def __init__(self, attempted_action: str) -> None:
        self.attempted_action = attempted_action
        super().__init__(f"Cannot {attempted_action}: connection is closed")


class TransactionStateError(MisuseError):
    """Raised on invalid transaction state transitions."""

    def __init__(self, current_state: str, attempted_action: str) -> None:
        self.current_state = current_state
        self.attempted_action = attempted_action
        super().__init__(f"Cannot {attempted_action} transaction in state '{current_state}'")


class ScopeClosedError(MisuseError):
    """Raised when a committed, rolled back or closed scope is used."""

    def __init__(self, current_state: str, attempted_action: str) -> None:
        self.current_state = current_state
        self.attempted_action = attempted_action
        super().__init__(
            f"Transaction scope is closed (state '{current_state}'); "
            f"cannot {attempted_action}"
        )
