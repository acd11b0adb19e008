"""ProcForge - convention-driven stored procedure execution."""

from __future__ import annotations

from proc_forge.conventions.naming import (
    EntityNameResolver,
    NamingConfig,
    NamingConvention,
    default_entity_name,
)
from proc_forge.core.command import (
    CommandDescriptor,
    FunctionCallCommandBuilder,
    StoredProcedureCommandBuilder,
    create_command_builder,
)
from proc_forge.core.config import DiagnosticsConfig, ForgeOptions, ValidationConfig
from proc_forge.core.connection import ConnectionConfig
from proc_forge.core.enums import (
    CommandType,
    DatabaseProvider,
    ParameterDirection,
    ValidationMode,
)
from proc_forge.core.exceptions import (
    AdapterError,
    ColumnMismatchError,
    ConfigurationError,
    ConnectionClosedError,
    DuplicateProcedureError,
    ExecutionError,
    MappingError,
    MisuseError,
    MissingProceduresError,
    ProcedureNotFoundError,
    ProcForgeError,
    RegistryError,
    ResultSetError,
    ScopeClosedError,
    SqlTextError,
    TransactionStateError,
    UnsupportedProviderError,
    ValidationError,
)
from proc_forge.core.executor import AsyncSpExecutor, SpExecutor, SpResult
from proc_forge.core.forge import AsyncForgeConnection, ForgeConnection
from proc_forge.core.params import Parameter, ParameterBag
from proc_forge.core.registry import ProcedureRegistry
from proc_forge.core.transaction import AsyncForgeTransaction, ForgeTransaction
from proc_forge.diagnostics import QueryDiagnostics, QueryEvent
from proc_forge.mapping.model import ModelMapper
from proc_forge.validation import (
    AsyncStartupValidator,
    StartupValidator,
    ValidationReport,
    create_async_catalog_validator,
    create_catalog_validator,
)

__all__ = [
    # Configuration
    "ForgeOptions",
    "ConnectionConfig",
    "DiagnosticsConfig",
    "ValidationConfig",
    "NamingConfig",
    # Conventions
    "NamingConvention",
    "EntityNameResolver",
    "default_entity_name",
    # Connection
    "ForgeConnection",
    "AsyncForgeConnection",
    "ForgeTransaction",
    "AsyncForgeTransaction",
    # Execution
    "SpExecutor",
    "AsyncSpExecutor",
    "SpResult",
    "Parameter",
    "ParameterBag",
    "CommandDescriptor",
    "StoredProcedureCommandBuilder",
    "FunctionCallCommandBuilder",
    "create_command_builder",
    "ProcedureRegistry",
    # Mapping
    "ModelMapper",
    # Diagnostics
    "QueryDiagnostics",
    "QueryEvent",
    # Validation
    "StartupValidator",
    "AsyncStartupValidator",
    "ValidationReport",
    "create_catalog_validator",
    "create_async_catalog_validator",
    # Enums
    "DatabaseProvider",
    "CommandType",
    "ParameterDirection",
    "ValidationMode",
    # Exceptions
    "ProcForgeError",
    "ConfigurationError",
    "UnsupportedProviderError",
    "AdapterError",
    "ExecutionError",
    "ResultSetError",
    "RegistryError",
    "ProcedureNotFoundError",
    "DuplicateProcedureError",
    "SqlTextError",
    "MappingError",
    "ColumnMismatchError",
    "ValidationError",
    "MissingProceduresError",
    "MisuseError",
    "ConnectionClosedError",
    "TransactionStateError",
    "ScopeClosedError",
]
