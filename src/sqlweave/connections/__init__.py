"""
Connections, sessions and transient error detection.
"""

from .connection import (
    CONNECTIONS,
    Connection,
    MySQLConnection,
    PostgresConnection,
    SqlServerConnection,
    SQLiteConnection,
)
from .detectors import caused_by_concurrency_error, caused_by_lost_connection
from .factory import ConnectionFactory, DatabaseManager
from .session import ConnectionSession, LoggedQuery

__all__ = [
    "CONNECTIONS",
    "Connection",
    "ConnectionFactory",
    "ConnectionSession",
    "DatabaseManager",
    "LoggedQuery",
    "MySQLConnection",
    "PostgresConnection",
    "SQLiteConnection",
    "SqlServerConnection",
    "caused_by_concurrency_error",
    "caused_by_lost_connection",
]
