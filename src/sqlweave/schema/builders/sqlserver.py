"""
SQL Server schema builder.
"""

from __future__ import annotations

from typing import Any, Dict, List

from ...errors import SqlweaveError
from .base import SchemaBuilder


class SqlServerSchemaBuilder(SchemaBuilder):
    def create_database(self, name: str) -> bool:
        return self.connection.statement(self.grammar.compile_create_database(name, self.connection))

    def drop_database_if_exists(self, name: str) -> bool:
        return self.connection.statement(self.grammar.compile_drop_database_if_exists(name))

    def get_column_listing(self, table: str) -> List[str]:
        table = self.connection.get_table_prefix() + table
        results = self.connection.select_from_write_connection(self.grammar.compile_column_listing(), [table])
        return [row["name"] for row in results]

    def get_column_type(self, table: str, column: str) -> str:
        table = self.connection.get_table_prefix() + table
        row = self.connection.select_one(self.grammar.compile_column_type(), [table, column], False)
        if row is None:
            raise SqlweaveError(f"Column '{column}' not found on table '{table}'.")
        return row["data_type"]

    def get_all_tables(self) -> List[Dict[str, Any]]:
        return self.connection.select(self.grammar.compile_get_all_tables())

    def drop_all_foreign_keys(self) -> bool:
        return self.connection.statement(self.grammar.compile_drop_all_foreign_keys())

    def drop_all_tables(self) -> None:
        self.logger.warning("DROP TABLE issued for every table on %s.", self.connection.get_name())
        self.drop_all_foreign_keys()
        self.connection.statement(self.grammar.compile_drop_all_tables())

    def drop_all_views(self) -> None:
        self.logger.warning("DROP VIEW issued for every view on %s.", self.connection.get_name())
        self.connection.statement(self.grammar.compile_drop_all_views())
