"""Enumerations shared across the package."""

from __future__ import annotations

from enum import Enum


class DatabaseProvider(Enum):
    """Supported database providers.

    MYSQL calls native stored procedures, POSTGRESQL calls functions through
    ``SELECT * FROM``, SQLITE emulates procedures from a directory of SQL files.
    """

    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"


class CommandType(Enum):
    """How an adapter must dispatch a CommandDescriptor."""

    STORED_PROCEDURE = "stored_procedure"
    TEXT = "text"


class ParameterDirection(Enum):
    INPUT = "input"
    OUTPUT = "output"
    INPUT_OUTPUT = "input_output"


class ValidationMode(Enum):
    """Startup validation modes."""

    DISABLED = "disabled"
    LIST = "list"
    CATALOG = "catalog"
