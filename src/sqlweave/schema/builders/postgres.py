"""
PostgreSQL schema builder.

Table references may be ``table``, ``schema.table`` or
``database.schema.table``; the schema defaults to the first entry of the
configured ``search_path`` (or ``schema``), falling back to ``public``.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Sequence, Tuple, Union

from ...errors import SqlweaveError
from .base import SchemaBuilder

_SEARCH_PATH_RE = re.compile(r"[^\s,\"']+")


class PostgresSchemaBuilder(SchemaBuilder):
    def create_database(self, name: str) -> bool:
        return self.connection.statement(self.grammar.compile_create_database(name, self.connection))

    def drop_database_if_exists(self, name: str) -> bool:
        return self.connection.statement(self.grammar.compile_drop_database_if_exists(name))

    def has_table(self, table: str) -> bool:
        database, schema, table = self.parse_schema_and_table(table)
        sql = self.grammar.compile_table_exists()
        return len(self.connection.select_from_write_connection(sql, [database, schema, table])) > 0

    def get_column_listing(self, table: str) -> List[str]:
        database, schema, table = self.parse_schema_and_table(table)
        results = self.connection.select_from_write_connection(
            self.grammar.compile_column_listing(), [database, schema, table]
        )
        return [row["column_name"] for row in results]

    def get_column_type(self, table: str, column: str) -> str:
        database, schema, table = self.parse_schema_and_table(table)
        row = self.connection.select_one(
            self.grammar.compile_column_type(), [database, schema, table, column], False
        )
        if row is None:
            raise SqlweaveError(f"Column '{column}' not found on table '{table}'.")
        return row["data_type"]

    def get_all_tables(self) -> List[Dict[str, Any]]:
        return self.connection.select(self.grammar.compile_get_all_tables(self.search_path()))

    def drop_all_tables(self) -> None:
        excluded = self.connection.get_config("dont_drop") or ["spatial_ref_sys"]
        tables = [
            row["qualifiedname"]
            for row in self.get_all_tables()
            if row["tablename"] not in excluded and row["qualifiedname"] not in excluded
        ]
        if not tables:
            return
        self.logger.warning("DROP TABLE issued for %d tables on %s.", len(tables), self.connection.get_name())
        self.connection.statement(self.grammar.compile_drop_all_tables(tables))

    def get_all_views(self) -> List[Dict[str, Any]]:
        return self.connection.select(self.grammar.compile_get_all_views(self.search_path()))

    def drop_all_views(self) -> None:
        views = [row["qualifiedname"] for row in self.get_all_views()]
        if not views:
            return
        self.logger.warning("DROP VIEW issued for %d views on %s.", len(views), self.connection.get_name())
        self.connection.statement(self.grammar.compile_drop_all_views(views))

    def search_path(self) -> List[str]:
        configured = self.connection.get_config("search_path") or self.connection.get_config("schema") or "public"
        return self.parse_search_path(configured)

    def parse_search_path(self, search_path: Union[str, Sequence[str]]) -> List[str]:
        if isinstance(search_path, str):
            search_path = _SEARCH_PATH_RE.findall(search_path)
        username = self.connection.get_config("username")
        return [username if schema == "$user" else schema for schema in search_path]

    def parse_schema_and_table(self, reference: str) -> Tuple[str, str, str]:
        parts = reference.split(".")
        database = self.connection.get_database_name()
        if len(parts) == 3:
            database = parts.pop(0)
        schema = self.search_path()[0]
        if len(parts) == 2:
            schema = parts.pop(0)
        return database, schema, self.connection.get_table_prefix() + parts[0]
