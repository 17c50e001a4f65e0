"""
Database adapter interfaces and implementations.
"""

from .base import (
    AdapterConfigurationError,
    AdapterConnectionError,
    AdapterError,
    AdapterExecutionError,
    AdapterTransactionError,
    ConnectionConfig,
    DatabaseAdapter,
    DBAPIAdapter,
    SSLConfig,
    convert_placeholders,
    iter_rows,
    rows_from_cursor,
)
from .mysql import MySQLAdapter
from .postgres import PostgresAdapter
from .sqlite import SQLiteAdapter
from .sqlserver import SqlServerAdapter

ADAPTERS = {
    "sqlite": SQLiteAdapter,
    "postgres": PostgresAdapter,
    "mysql": MySQLAdapter,
    "sqlserver": SqlServerAdapter,
}

__all__ = [
    "ADAPTERS",
    "ConnectionConfig",
    "DatabaseAdapter",
    "DBAPIAdapter",
    "SSLConfig",
    "AdapterError",
    "AdapterConfigurationError",
    "AdapterConnectionError",
    "AdapterExecutionError",
    "AdapterTransactionError",
    "MySQLAdapter",
    "PostgresAdapter",
    "SQLiteAdapter",
    "SqlServerAdapter",
    "convert_placeholders",
    "iter_rows",
    "rows_from_cursor",
]
