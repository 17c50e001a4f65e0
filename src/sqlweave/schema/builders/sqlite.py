"""
SQLite schema builder. Databases are plain files.
"""

from __future__ import annotations

from pathlib import Path
from typing import List

from ...errors import SqlweaveError
from .base import SchemaBuilder


class SQLiteSchemaBuilder(SchemaBuilder):
    def create_database(self, name: str) -> bool:
        Path(name).write_bytes(b"")
        return True

    def drop_database_if_exists(self, name: str) -> bool:
        path = Path(name)
        if not path.exists():
            return True
        path.unlink()
        return True

    def get_column_listing(self, table: str) -> List[str]:
        return [row["name"] for row in self._table_info(table)]

    def get_column_type(self, table: str, column: str) -> str:
        for row in self._table_info(table):
            if row["name"].lower() == column.lower():
                return str(row["type"]).lower()
        raise SqlweaveError(f"Column '{column}' not found on table '{table}'.")

    def get_all_tables(self) -> List[str]:
        results = self.connection.select_from_write_connection(self.grammar.compile_get_all_tables())
        return [row["name"] for row in results]

    def drop_all_tables(self) -> None:
        tables = self.get_all_tables()
        if not tables:
            return
        self.logger.warning("DROP TABLE issued for %d tables on %s.", len(tables), self.connection.get_name())
        with self.foreign_key_constraints_disabled():
            for table in tables:
                self.connection.statement(f"drop table if exists {self.grammar.wrap_value(table)}")

    def get_all_views(self) -> List[str]:
        results = self.connection.select_from_write_connection(self.grammar.compile_get_all_views())
        return [row["name"] for row in results]

    def drop_all_views(self) -> None:
        views = self.get_all_views()
        if not views:
            return
        self.logger.warning("DROP VIEW issued for %d views on %s.", len(views), self.connection.get_name())
        for view in views:
            self.connection.statement(self.grammar.compile_drop_view_if_exists(view))

    def _table_info(self, table: str):
        table = self.connection.get_table_prefix() + table
        return self.connection.select_from_write_connection(self.grammar.compile_column_listing(table))
