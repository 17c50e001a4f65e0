"""
MySQL schema grammar.
"""

from __future__ import annotations

from typing import Any

from ...dialects.mysql import MySQLDialect
from ...expression import Expression
from ..blueprint import Blueprint
from ..definitions import ColumnDefinition, CommandDefinition, ForeignKeyDefinition, IndexDefinition, ViewDefinition
from .base import SchemaGrammar, escape_quotes


def addslashes(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'").replace('"', '\\"').replace("\x00", "\\0")


class MySQLSchemaGrammar(SchemaGrammar):
    dialect_class = MySQLDialect
    modifiers = (
        "unsigned",
        "charset",
        "collate",
        "virtual_as",
        "stored_as",
        "nullable",
        "srid",
        "default",
        "on_update",
        "invisible",
        "increment",
        "comment",
        "after",
        "first",
    )
    commands = ("auto_increment_starting_values",)

    # ------------------------------------------------------------------ #
    # Database level statements
    # ------------------------------------------------------------------ #
    def compile_create_database(self, name: str, connection: Any) -> str:
        sql = f"create database {self.wrap_value(name)}"
        charset = connection.get_config("charset")
        if charset:
            sql += f" default character set {self.wrap_value(charset)}"
            collation = connection.get_config("collation")
            if collation:
                sql += f" default collate {self.wrap_value(collation)}"
        return sql

    def compile_drop_database_if_exists(self, name: str) -> str:
        return f"drop database if exists {self.wrap_value(name)}"

    def compile_table_exists(self) -> str:
        return (
            "select * from information_schema.tables where table_schema = ? and table_name = ? "
            "and table_type = 'BASE TABLE'"
        )

    def compile_column_listing(self, table: str = "") -> str:
        return (
            "select column_name as `column_name` from information_schema.columns "
            "where table_schema = ? and table_name = ?"
        )

    def compile_column_type(self) -> str:
        return (
            "select column_name as `column_name`, data_type as `data_type` from information_schema.columns "
            "where table_schema = ? and table_name = ? and column_name = ?"
        )

    def compile_get_all_tables(self, search_path=()) -> str:
        return "SHOW FULL TABLES WHERE table_type = 'BASE TABLE'"

    def compile_drop_all_tables(self, tables=()) -> str:
        return f"drop table {','.join(self.wrap_array(tables))}"

    def compile_enable_foreign_key_constraints(self) -> str:
        return "SET FOREIGN_KEY_CHECKS=1;"

    def compile_disable_foreign_key_constraints(self) -> str:
        return "SET FOREIGN_KEY_CHECKS=0;"

    def compile_create_view(self, name, view: ViewDefinition) -> str:
        sql = "create"
        if view.get("algorithm"):
            sql += f" algorithm = {self.get_value(view.get('algorithm'))}"
        if view.get("definer"):
            sql += f" definer = {self.get_value(view.get('definer'))}"
        sql += f" view {self.wrap_table(name)}{self.compile_view_columns(view)} as {self.compile_view_query(view)}"
        if view.get("check"):
            sql += f" with {self.get_value(view.get('check'))} check option"
        return sql

    def compile_get_all_views(self, search_path=()) -> str:
        return "SHOW FULL TABLES WHERE table_type = 'VIEW'"

    def compile_drop_all_views(self, views=()) -> str:
        return f"drop view {','.join(self.wrap_array(views))}"

    # ------------------------------------------------------------------ #
    # Tables
    # ------------------------------------------------------------------ #
    def compile_create(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        create = "create temporary" if blueprint.is_temporary() else "create"
        sql = f"{create} table {self.wrap_table(blueprint)} ({', '.join(self.get_columns(blueprint))})"

        registry = blueprint.registry
        charset = registry.charset or connection.get_config("charset")
        if charset:
            sql += f" default character set {charset}"
        collation = registry.collation or connection.get_config("collation")
        if collation:
            sql += f" collate '{collation}'"
        engine = registry.engine or connection.get_config("engine")
        if engine:
            sql += f" engine = {engine}"
        return sql

    def compile_add(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        columns = self.prefix_array("add", self.get_columns(blueprint))
        return f"alter table {self.wrap_table(blueprint)} {', '.join(columns)}"

    def compile_change(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        columns = []
        for column in blueprint.get_changed_columns():
            rename_to = column.get("rename_to")
            if rename_to:
                sql = f"change {self.wrap(column)} {self.wrap(rename_to)} {self.get_type(column)}"
            else:
                sql = f"modify {self.wrap(column)} {self.get_type(column)}"
            columns.append(self.add_modifiers(sql, blueprint, column))
        return f"alter table {self.wrap_table(blueprint)} {', '.join(columns)}"

    def compile_drop(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        return f"drop table {self.wrap_table(blueprint)}"

    def compile_drop_if_exists(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        return f"drop table if exists {self.wrap_table(blueprint)}"

    def compile_drop_column(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        columns = self.prefix_array("drop", self.wrap_array(command.get("columns") or []))
        return f"alter table {self.wrap_table(blueprint)} {', '.join(columns)}"

    def compile_rename(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        return f"rename table {self.wrap_table(blueprint)} to {self.wrap_table(command.get('to'))}"

    def compile_rename_column(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        return (
            f"alter table {self.wrap_table(blueprint)} rename column "
            f"{self.wrap(command.get('from_'))} to {self.wrap(command.get('to'))}"
        )

    def compile_auto_increment_starting_values(
        self, blueprint: Blueprint, command: CommandDefinition, connection: Any
    ) -> str:
        column: ColumnDefinition = command.get("column")
        value = column.get("starting_value", column.get("from"))
        if column.get("auto_increment") and value is not None:
            return f"alter table {self.wrap_table(blueprint)} auto_increment = {value}"
        return ""

    def compile_table_comment(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        return f"alter table {self.wrap_table(blueprint)} comment = '{escape_quotes(command.get('comment'))}'"

    # ------------------------------------------------------------------ #
    # Indexes
    # ------------------------------------------------------------------ #
    def compile_primary(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        algorithm = f"using {command.get('algorithm')}" if command.get("algorithm") else ""
        return f"alter table {self.wrap_table(blueprint)} add primary key {algorithm}({self.columnize(command.columns)})"

    def compile_drop_primary(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return f"alter table {self.wrap_table(blueprint)} drop primary key"

    def compile_unique(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return self.compile_key(blueprint, command, "unique")

    def compile_index(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return self.compile_key(blueprint, command, "index")

    def compile_fulltext(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return self.compile_key(blueprint, command, "fulltext")

    def compile_spatial_index(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return self.compile_key(blueprint, command, "spatial index")

    def compile_key(self, blueprint: Blueprint, command: IndexDefinition, type: str) -> str:
        algorithm = f" using {command.get('algorithm')}" if command.get("algorithm") else ""
        return (
            f"alter table {self.wrap_table(blueprint)} add {type} {self.wrap(command.index_name)}"
            f"{algorithm}({self.columnize(command.columns)})"
        )

    def compile_drop_index(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return f"alter table {self.wrap_table(blueprint)} drop index {self.wrap(command.index_name)}"

    def compile_drop_unique(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return self.compile_drop_index(blueprint, command, connection)

    def compile_drop_fulltext(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return self.compile_drop_index(blueprint, command, connection)

    def compile_drop_spatial_index(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return self.compile_drop_index(blueprint, command, connection)

    def compile_drop_foreign(self, blueprint: Blueprint, command: ForeignKeyDefinition, connection: Any) -> str:
        return f"alter table {self.wrap_table(blueprint)} drop foreign key {self.wrap(command.index_name)}"

    def compile_rename_index(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        return (
            f"alter table {self.wrap_table(blueprint)} rename index "
            f"{self.wrap(command.get('from_'))} to {self.wrap(command.get('to'))}"
        )

    # ------------------------------------------------------------------ #
    # Types
    # ------------------------------------------------------------------ #
    def compile_type_float(self, column: ColumnDefinition) -> str:
        return self.compile_type_double(column)

    def compile_type_boolean(self, column: ColumnDefinition) -> str:
        return "tinyint(1)"

    def compile_type_set(self, column: ColumnDefinition) -> str:
        return f"set({self.quote_string(column.get('allowed') or [])})"

    def compile_type_jsonb(self, column: ColumnDefinition) -> str:
        return "json"

    def compile_type_date_time(self, column: ColumnDefinition) -> str:
        self._use_current(column)
        return super().compile_type_date_time(column)

    def compile_type_timestamp(self, column: ColumnDefinition) -> str:
        self._use_current(column)
        return super().compile_type_timestamp(column)

    def compile_type_timestamp_tz(self, column: ColumnDefinition) -> str:
        return self.compile_type_timestamp(column)

    def _use_current(self, column: ColumnDefinition) -> None:
        precision = column.get("precision")
        current = Expression(f"CURRENT_TIMESTAMP({precision})" if precision else "CURRENT_TIMESTAMP")
        if column.get("use_current"):
            column.default(current)
        if column.get("use_current_on_update"):
            column.on_update(current)

    def compile_type_uuid(self, column: ColumnDefinition) -> str:
        return "char(36)"

    def compile_type_ip_address(self, column: ColumnDefinition) -> str:
        return "varchar(45)"

    def compile_type_mac_address(self, column: ColumnDefinition) -> str:
        return "varchar(17)"

    # ------------------------------------------------------------------ #
    # Modifiers
    # ------------------------------------------------------------------ #
    def compile_modify_after(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        return f" after {self.wrap(column.get('after'))}" if column.get("after") else ""

    def compile_modify_charset(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        return f" character set {column.get('charset')}" if column.get("charset") else ""

    def compile_modify_collate(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        return f" collate '{column.get('collation')}'" if column.get("collation") else ""

    def compile_modify_comment(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        return f" comment '{addslashes(column.get('comment'))}'" if column.get("comment") else ""

    def compile_modify_default(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        if column.has("default"):
            return f" default {self.get_default_value(column.get('default'))}"
        return ""

    def compile_modify_first(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        return " first" if column.get("first") else ""

    def compile_modify_increment(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        if column.get("auto_increment") and column.type in self.serials:
            return " auto_increment" if self.has_command(blueprint, "primary") else " auto_increment primary key"
        return ""

    def compile_modify_invisible(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        return " invisible" if column.get("invisible") else ""

    def compile_modify_nullable(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        if not column.get("virtual_as") and not column.get("stored_as"):
            return " null" if column.get("nullable") else " not null"
        if column.get("nullable") is False:
            return " not null"
        return ""

    def compile_modify_on_update(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        if column.has("on_update"):
            return f" on update {self.get_default_value(column.get('on_update'))}"
        return ""

    def compile_modify_srid(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        srid = column.get("srid")
        return f" srid {srid}" if srid and srid > 0 else ""

    def compile_modify_stored_as(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        if column.get("stored_as"):
            return f" as ({self.generated_expression(column.get('stored_as'))}) stored"
        return ""

    def compile_modify_unsigned(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        return " unsigned" if column.get("unsigned") else ""

    def compile_modify_virtual_as(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        if column.get("virtual_as"):
            return f" as ({self.generated_expression(column.get('virtual_as'))})"
        return ""

    def wrap_json_selector(self, value: Any) -> str:
        field, path = self.wrap_json_field_and_path(value)
        return f"json_unquote(json_extract({field}{path}))"
