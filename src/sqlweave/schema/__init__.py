"""
Schema layer: blueprints, per-dialect DDL grammars and builders.
"""

from .blueprint import Blueprint
from .builders import (
    MySQLSchemaBuilder,
    PostgresSchemaBuilder,
    SchemaBuilder,
    SQLiteSchemaBuilder,
    SqlServerSchemaBuilder,
)
from .definitions import (
    ColumnDefinition,
    CommandDefinition,
    ForeignIdColumnDefinition,
    ForeignKeyDefinition,
    IndexDefinition,
    ViewDefinition,
)
from .grammars import (
    SCHEMA_GRAMMARS,
    MySQLSchemaGrammar,
    PostgresSchemaGrammar,
    SchemaGrammar,
    SQLiteSchemaGrammar,
    SqlServerSchemaGrammar,
    get_schema_grammar,
)

__all__ = [
    "Blueprint",
    "ColumnDefinition",
    "CommandDefinition",
    "ForeignIdColumnDefinition",
    "ForeignKeyDefinition",
    "IndexDefinition",
    "MySQLSchemaBuilder",
    "MySQLSchemaGrammar",
    "PostgresSchemaBuilder",
    "PostgresSchemaGrammar",
    "SCHEMA_GRAMMARS",
    "SQLiteSchemaBuilder",
    "SQLiteSchemaGrammar",
    "SchemaBuilder",
    "SchemaGrammar",
    "SqlServerSchemaBuilder",
    "SqlServerSchemaGrammar",
    "ViewDefinition",
    "get_schema_grammar",
]
