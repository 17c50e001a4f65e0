"""
sqlweave public package initialization.

A fluent query builder and schema builder that compiles to MySQL,
PostgreSQL, SQLite and SQL Server through per-dialect grammars.
"""

from .cache import CacheManager, InMemoryCache, NoOpCache  # noqa: F401
from .connections import (  # noqa: F401
    Connection,
    ConnectionFactory,
    ConnectionSession,
    DatabaseManager,
    MySQLConnection,
    PostgresConnection,
    SqlServerConnection,
    SQLiteConnection,
)
from .errors import (  # noqa: F401
    CacheConfigurationError,
    CompilationError,
    DeadlockError,
    MultipleColumnsError,
    QueryError,
    SqlweaveError,
    TransactionError,
)
from .expression import Expression, raw  # noqa: F401
from .hooks import hooks  # noqa: F401
from .pagination import Cursor, CursorPaginator, LengthAwarePaginator, Paginator  # noqa: F401
from .query import QueryBuilder  # noqa: F401
from .schema import Blueprint, SchemaBuilder  # noqa: F401

__all__ = [
    "Blueprint",
    "CacheConfigurationError",
    "CacheManager",
    "CompilationError",
    "Connection",
    "ConnectionFactory",
    "ConnectionSession",
    "Cursor",
    "CursorPaginator",
    "DatabaseManager",
    "DeadlockError",
    "Expression",
    "InMemoryCache",
    "LengthAwarePaginator",
    "MultipleColumnsError",
    "MySQLConnection",
    "NoOpCache",
    "Paginator",
    "PostgresConnection",
    "QueryBuilder",
    "QueryError",
    "SQLiteConnection",
    "SchemaBuilder",
    "SqlServerConnection",
    "SqlweaveError",
    "TransactionError",
    "hooks",
    "raw",
]
