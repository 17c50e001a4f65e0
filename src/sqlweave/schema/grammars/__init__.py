"""
Schema grammars keyed by dialect name.
"""

from .base import SchemaGrammar
from .mysql import MySQLSchemaGrammar
from .postgres import PostgresSchemaGrammar
from .sqlite import SQLiteSchemaGrammar
from .sqlserver import SqlServerSchemaGrammar

SCHEMA_GRAMMARS = {
    "generic": SchemaGrammar,
    "mysql": MySQLSchemaGrammar,
    "postgres": PostgresSchemaGrammar,
    "sqlite": SQLiteSchemaGrammar,
    "sqlserver": SqlServerSchemaGrammar,
}


def get_schema_grammar(name: str, **options) -> SchemaGrammar:
    try:
        return SCHEMA_GRAMMARS[name](**options)
    except KeyError as exc:
        raise ValueError(f"Unsupported dialect '{name}'") from exc


__all__ = [
    "SCHEMA_GRAMMARS",
    "MySQLSchemaGrammar",
    "PostgresSchemaGrammar",
    "SQLiteSchemaGrammar",
    "SchemaGrammar",
    "SqlServerSchemaGrammar",
    "get_schema_grammar",
]
