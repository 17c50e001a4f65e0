"""
MySQL schema builder.
"""

from __future__ import annotations

from typing import Any, List, Tuple

from ...errors import SqlweaveError
from .base import SchemaBuilder


class MySQLSchemaBuilder(SchemaBuilder):
    def create_database(self, name: str) -> bool:
        return self.connection.statement(self.grammar.compile_create_database(name, self.connection))

    def drop_database_if_exists(self, name: str) -> bool:
        return self.connection.statement(self.grammar.compile_drop_database_if_exists(name))

    def has_table(self, table: str) -> bool:
        database, table = self._parse_database_and_table(table)
        sql = self.grammar.compile_table_exists()
        return len(self.connection.select_from_write_connection(sql, [database, table])) > 0

    def get_column_listing(self, table: str) -> List[str]:
        database, table = self._parse_database_and_table(table)
        results = self.connection.select_from_write_connection(
            self.grammar.compile_column_listing(), [database, table]
        )
        return [row["column_name"] for row in results]

    def get_column_type(self, table: str, column: str) -> str:
        database, table = self._parse_database_and_table(table)
        row = self.connection.select_one(self.grammar.compile_column_type(), [database, table, column], False)
        if row is None:
            raise SqlweaveError(f"Column '{column}' not found on table '{table}'.")
        return row["data_type"]

    def get_all_tables(self) -> List[Any]:
        return self.connection.select_column(0, self.grammar.compile_get_all_tables(), [], False)

    def drop_all_tables(self) -> None:
        tables = self.get_all_tables()
        if not tables:
            return
        self.logger.warning("DROP TABLE issued for %d tables on %s.", len(tables), self.connection.get_name())
        with self.foreign_key_constraints_disabled():
            self.connection.statement(self.grammar.compile_drop_all_tables(tables))

    def get_all_views(self) -> List[Any]:
        return self.connection.select_column(0, self.grammar.compile_get_all_views(), [], False)

    def drop_all_views(self) -> None:
        views = self.get_all_views()
        if not views:
            return
        self.logger.warning("DROP VIEW issued for %d views on %s.", len(views), self.connection.get_name())
        self.connection.statement(self.grammar.compile_drop_all_views(views))

    def _parse_database_and_table(self, reference: str) -> Tuple[str, str]:
        database, _, table = reference.rpartition(".")
        return database or self.connection.get_database_name(), self.connection.get_table_prefix() + table
