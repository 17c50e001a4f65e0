"""
Schema builders per dialect.
"""

from .base import SchemaBuilder
from .mysql import MySQLSchemaBuilder
from .postgres import PostgresSchemaBuilder
from .sqlite import SQLiteSchemaBuilder
from .sqlserver import SqlServerSchemaBuilder

__all__ = [
    "MySQLSchemaBuilder",
    "PostgresSchemaBuilder",
    "SQLiteSchemaBuilder",
    "SchemaBuilder",
    "SqlServerSchemaBuilder",
]
