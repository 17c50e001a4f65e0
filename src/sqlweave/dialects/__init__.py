"""
Dialect strategy registry.
"""

from .base import Dialect, DialectCapabilities, GenericDialect
from .mysql import MySQLDialect
from .postgres import PostgresDialect
from .sqlite import SQLiteDialect
from .sqlserver import SqlServerDialect

DIALECTS = {
    "generic": GenericDialect,
    "mysql": MySQLDialect,
    "postgres": PostgresDialect,
    "sqlite": SQLiteDialect,
    "sqlserver": SqlServerDialect,
}


def get_dialect(name: str) -> Dialect:
    try:
        return DIALECTS[name]()
    except KeyError as exc:
        raise ValueError(f"Unsupported dialect '{name}'") from exc


__all__ = [
    "DIALECTS",
    "Dialect",
    "DialectCapabilities",
    "GenericDialect",
    "MySQLDialect",
    "PostgresDialect",
    "SQLiteDialect",
    "SqlServerDialect",
    "get_dialect",
]
