"""
SQLite schema grammar.

SQLite's ``alter table`` only adds, drops or renames one column at a time, so
those commands compile to one statement per column. Primary and foreign keys
only exist inline in ``create table``.
"""

from __future__ import annotations

import re
from typing import Any, List

from ...dialects.sqlite import SQLiteDialect
from ...expression import Expression
from ..blueprint import Blueprint
from ..definitions import ColumnDefinition, CommandDefinition, ForeignKeyDefinition, IndexDefinition, ViewDefinition
from .base import SchemaGrammar

_STORED_COLUMN_RE = re.compile(r"as \(.*\) stored")


class SQLiteSchemaGrammar(SchemaGrammar):
    dialect_class = SQLiteDialect
    modifiers = ("increment", "nullable", "default", "virtual_as", "stored_as")

    def compile_table_exists(self) -> str:
        return "select * from sqlite_master where type = 'table' and name = ?"

    def compile_column_listing(self, table: str = "") -> str:
        return f"pragma table_info({self.wrap(table.replace('.', '__'))})"

    def compile_get_all_tables(self, search_path=()) -> str:
        return "select name from sqlite_master where type = 'table' and name not like 'sqlite_%' order by name"

    def compile_enable_foreign_key_constraints(self) -> str:
        return "PRAGMA foreign_keys = ON;"

    def compile_disable_foreign_key_constraints(self) -> str:
        return "PRAGMA foreign_keys = OFF;"

    def compile_create_view(self, name, view: ViewDefinition) -> str:
        create = "create temporary" if view.get("temporary") else "create"
        columns = self.compile_view_columns(view)
        return f"{create} view {self.wrap_table(name)}{columns} as {self.compile_view_query(view)}"

    def compile_get_all_views(self, search_path=()) -> str:
        return "select name, sql as definition from sqlite_master where type = 'view' order by name"

    def compile_indexes(self, table: str) -> str:
        table = self.quote_string(table.replace(".", "__"))
        return (
            "select 'primary' as name, group_concat(col) as columns, 1 as \"unique\", 1 as \"primary\" "
            f"from (select name as col from pragma_table_info({table}) where pk > 0 order by pk, cid) group by name "
            "union select name, group_concat(col) as columns, \"unique\", origin = 'pk' as \"primary\" "
            f"from (select il.*, ii.name as col from pragma_index_list({table}) il, pragma_index_info(il.name) ii "
            "order by il.seq, ii.seqno) group by name, \"unique\", \"primary\""
        )

    def compile_foreign_keys(self, table: str) -> str:
        table = self.quote_string(table.replace(".", "__"))
        return (
            'select group_concat("from") as columns, "table" as foreign_table, '
            'group_concat("to") as foreign_columns, on_update, on_delete '
            f"from (select * from pragma_foreign_key_list({table}) order by id desc, seq) "
            'group by id, "table", on_update, on_delete'
        )

    def compile_create(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        create = "create temporary" if blueprint.is_temporary() else "create"
        return (
            f"{create} table {self.wrap_table(blueprint)} ("
            f"{', '.join(self.get_columns(blueprint))}{self.add_foreign_keys(blueprint)}"
            f"{self.add_primary_keys(blueprint)})"
        )

    def add_foreign_keys(self, blueprint: Blueprint) -> str:
        sql = ""
        for command in self.get_commands_by_name(blueprint, "foreign"):
            sql += (
                f", foreign key({self.columnize(command.get('columns') or [])}) references "
                f"{self.wrap_table(command.get('on'))}({self.columnize(command.get('references') or [])})"
            )
            if command.get("on_delete"):
                sql += f" on delete {self.get_value(command.get('on_delete'))}"
            if command.get("on_update"):
                sql += f" on update {self.get_value(command.get('on_update'))}"
        return sql

    def add_primary_keys(self, blueprint: Blueprint) -> str:
        primary = self.get_command_by_name(blueprint, "primary")
        if primary is not None:
            return f", primary key ({self.columnize(primary.get('columns') or [])})"
        return ""

    def compile_add(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> List[str]:
        table = self.wrap_table(blueprint)
        columns = self.prefix_array("add column", self.get_columns(blueprint))
        return [f"alter table {table} {column}" for column in columns if not _STORED_COLUMN_RE.search(column)]

    def compile_drop(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        return f"drop table {self.wrap_table(blueprint)}"

    def compile_drop_if_exists(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        return f"drop table if exists {self.wrap_table(blueprint)}"

    def compile_drop_column(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> List[str]:
        table = self.wrap_table(blueprint)
        columns = self.prefix_array("drop column", self.wrap_array(command.get("columns") or []))
        return [f"alter table {table} {column}" for column in columns]

    def compile_rename(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        return f"alter table {self.wrap_table(blueprint)} rename to {self.wrap_table(command.get('to'))}"

    def compile_rename_column(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        return (
            f"alter table {self.wrap_table(blueprint)} rename column "
            f"{self.wrap(command.get('from_'))} to {self.wrap(command.get('to'))}"
        )

    def compile_primary(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return ""

    def compile_foreign(self, blueprint: Blueprint, command: ForeignKeyDefinition, connection: Any) -> str:
        return ""

    def compile_unique(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return (
            f"create unique index {self.wrap(command.index_name)} on {self.wrap_table(blueprint)} "
            f"({self.columnize(command.columns)})"
        )

    def compile_drop_unique(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return f"drop index {self.wrap(command.index_name)}"

    def compile_index(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return (
            f"create index {self.wrap(command.index_name)} on {self.wrap_table(blueprint)} "
            f"({self.columnize(command.columns)})"
        )

    def compile_drop_index(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return f"drop index {self.wrap(command.index_name)}"

    # ------------------------------------------------------------------ #
    # Types
    # ------------------------------------------------------------------ #
    def compile_type_char(self, column: ColumnDefinition) -> str:
        return "varchar"

    def compile_type_string(self, column: ColumnDefinition) -> str:
        return "varchar"

    def compile_type_tiny_text(self, column: ColumnDefinition) -> str:
        return "text"

    def compile_type_medium_text(self, column: ColumnDefinition) -> str:
        return "text"

    def compile_type_long_text(self, column: ColumnDefinition) -> str:
        return "text"

    def compile_type_big_integer(self, column: ColumnDefinition) -> str:
        return "integer"

    def compile_type_integer(self, column: ColumnDefinition) -> str:
        return "integer"

    def compile_type_medium_integer(self, column: ColumnDefinition) -> str:
        return "integer"

    def compile_type_tiny_integer(self, column: ColumnDefinition) -> str:
        return "integer"

    def compile_type_small_integer(self, column: ColumnDefinition) -> str:
        return "integer"

    def compile_type_double(self, column: ColumnDefinition) -> str:
        return "float"

    def compile_type_decimal(self, column: ColumnDefinition) -> str:
        return "numeric"

    def compile_type_boolean(self, column: ColumnDefinition) -> str:
        return "tinyint(1)"

    def compile_type_enum(self, column: ColumnDefinition) -> str:
        return (
            f"varchar check ({self.wrap_value(self.get_value(column.name))} "
            f"in ({self.quote_string(column.get('allowed') or [])}))"
        )

    def compile_type_json(self, column: ColumnDefinition) -> str:
        return "text"

    def compile_type_jsonb(self, column: ColumnDefinition) -> str:
        return "text"

    def compile_type_date_time(self, column: ColumnDefinition) -> str:
        return self.compile_type_timestamp(column)

    def compile_type_date_time_tz(self, column: ColumnDefinition) -> str:
        return self.compile_type_timestamp(column)

    def compile_type_time(self, column: ColumnDefinition) -> str:
        return "time"

    def compile_type_time_tz(self, column: ColumnDefinition) -> str:
        return "time"

    def compile_type_timestamp(self, column: ColumnDefinition) -> str:
        if column.get("use_current"):
            column.default(Expression("CURRENT_TIMESTAMP"))
        return "datetime"

    def compile_type_timestamp_tz(self, column: ColumnDefinition) -> str:
        return self.compile_type_timestamp(column)

    def compile_type_year(self, column: ColumnDefinition) -> str:
        return "integer"

    def compile_type_uuid(self, column: ColumnDefinition) -> str:
        return "varchar"

    def compile_type_ip_address(self, column: ColumnDefinition) -> str:
        return "varchar"

    def compile_type_mac_address(self, column: ColumnDefinition) -> str:
        return "varchar"

    # ------------------------------------------------------------------ #
    # Modifiers
    # ------------------------------------------------------------------ #
    def compile_modify_default(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        if column.has("default") and not column.has("virtual_as") and not column.has("stored_as"):
            return f" default {self.get_default_value(column.get('default'))}"
        return ""

    def compile_modify_increment(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        if column.get("auto_increment") and column.type in self.serials:
            return " primary key autoincrement"
        return ""

    def compile_modify_nullable(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        if not column.has("virtual_as") and not column.has("stored_as"):
            return "" if column.get("nullable") else " not null"
        if column.get("nullable") is False:
            return " not null"
        return ""

    def compile_modify_stored_as(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        if column.get("stored_as"):
            return f" as ({self.generated_expression(column.get('stored_as'))}) stored"
        return ""

    def compile_modify_virtual_as(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        if column.get("virtual_as"):
            return f" as ({self.generated_expression(column.get('virtual_as'))})"
        return ""

    def wrap_json_selector(self, value: Any) -> str:
        field, path = self.wrap_json_field_and_path(value)
        return f"json_extract({field}{path})"
