"""
Query grammars keyed by dialect name.
"""

from .base import QueryGrammar
from .mysql import MySQLQueryGrammar
from .postgres import PostgresQueryGrammar
from .sqlite import SQLiteQueryGrammar
from .sqlserver import SqlServerQueryGrammar

GRAMMARS = {
    "generic": QueryGrammar,
    "mysql": MySQLQueryGrammar,
    "postgres": PostgresQueryGrammar,
    "sqlite": SQLiteQueryGrammar,
    "sqlserver": SqlServerQueryGrammar,
}


def get_query_grammar(name: str, **options) -> QueryGrammar:
    try:
        return GRAMMARS[name](**options)
    except KeyError as exc:
        raise ValueError(f"Unsupported dialect '{name}'") from exc


__all__ = [
    "GRAMMARS",
    "MySQLQueryGrammar",
    "PostgresQueryGrammar",
    "QueryGrammar",
    "SQLiteQueryGrammar",
    "SqlServerQueryGrammar",
    "get_query_grammar",
]
