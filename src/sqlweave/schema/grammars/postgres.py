"""
PostgreSQL schema grammar.

Column changes compile to a list of ``alter column`` clauses, and spatial
columns render in the PostGIS ``geography``/``geometry`` form.
"""

from __future__ import annotations

from typing import Any, Sequence

from ...dialects.postgres import PostgresDialect
from ...errors import CompilationError
from ...expression import Expression
from ..blueprint import Blueprint
from ..definitions import ColumnDefinition, CommandDefinition, ForeignKeyDefinition, IndexDefinition, ViewDefinition
from .base import SchemaGrammar, escape_quotes

_SERIALS = {"bigint": "bigserial", "integer": "serial", "smallint": "smallserial"}


class PostgresSchemaGrammar(SchemaGrammar):
    dialect_class = PostgresDialect
    modifiers = ("collate", "nullable", "default", "virtual_as", "stored_as", "generated_as", "increment")
    commands = ("auto_increment_starting_values", "comment")
    transactions = True

    # ------------------------------------------------------------------ #
    # Database level statements
    # ------------------------------------------------------------------ #
    def compile_create_database(self, name: str, connection: Any) -> str:
        sql = f"create database {self.wrap_value(name)}"
        charset = connection.get_config("charset")
        if charset:
            sql += f" encoding {self.wrap_value(charset)}"
        return sql

    def compile_drop_database_if_exists(self, name: str) -> str:
        return f"drop database if exists {self.wrap_value(name)}"

    def compile_table_exists(self) -> str:
        return (
            "select * from information_schema.tables where table_catalog = ? and table_schema = ? "
            "and table_name = ? and table_type = 'BASE TABLE'"
        )

    def compile_column_listing(self, table: str = "") -> str:
        return (
            "select column_name from information_schema.columns "
            "where table_catalog = ? and table_schema = ? and table_name = ?"
        )

    def compile_column_type(self) -> str:
        return (
            "select data_type from information_schema.columns "
            "where table_catalog = ? and table_schema = ? and table_name = ? and column_name = ?"
        )

    def compile_get_all_tables(self, search_path: Sequence[str] = ()) -> str:
        schemas = ",".join(f"'{schema}'" for schema in search_path)
        return (
            "select tablename, concat('\"', schemaname, '\".\"', tablename, '\"') as qualifiedname "
            f"from pg_catalog.pg_tables where schemaname in ({schemas})"
        )

    def compile_drop_all_tables(self, tables=()) -> str:
        return f"drop table {','.join(self.escape_names(tables))} cascade"

    def compile_enable_foreign_key_constraints(self) -> str:
        return "SET CONSTRAINTS ALL IMMEDIATE;"

    def compile_disable_foreign_key_constraints(self) -> str:
        return "SET CONSTRAINTS ALL DEFERRED;"

    def compile_create_view(self, name, view: ViewDefinition) -> str:
        sql = "create"
        if view.get("temporary"):
            sql += " temporary"
        if view.get("recursive"):
            sql += " recursive"
        sql += f" view {self.wrap_table(name)}{self.compile_view_columns(view)}"
        if view.get("view_attribute"):
            sql += f" with ({self.get_value(view.get('view_attribute'))})"
        sql += f" as {self.compile_view_query(view)}"
        if view.get("check"):
            sql += f" with {self.get_value(view.get('check'))} check option"
        return sql

    def compile_get_all_views(self, search_path: Sequence[str] = ()) -> str:
        schemas = ",".join(f"'{schema}'" for schema in search_path)
        return (
            "select viewname, concat('\"', schemaname, '\".\"', viewname, '\"') as qualifiedname "
            f"from pg_catalog.pg_views where schemaname in ({schemas})"
        )

    def compile_drop_all_views(self, views=()) -> str:
        return f"drop view {','.join(self.escape_names(views))} cascade"

    # ------------------------------------------------------------------ #
    # Tables
    # ------------------------------------------------------------------ #
    def compile_create(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        create = "create temporary" if blueprint.is_temporary() else "create"
        return f"{create} table {self.wrap_table(blueprint)} ({', '.join(self.get_columns(blueprint))})"

    def compile_add(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        columns = self.prefix_array("add column", self.get_columns(blueprint))
        return f"alter table {self.wrap_table(blueprint)} {', '.join(columns)}"

    def compile_change(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        changes = []
        for column in blueprint.get_changed_columns():
            collation = self.compile_modify_collate(blueprint, column)
            clauses = [f"type {self.get_type(column)}{collation}"]
            for modifier in self.modifiers:
                if modifier == "collate":
                    continue
                if modifier == "generated_as":
                    clauses.append("drop identity if exists")
                sql = self.compile_modifier(modifier, blueprint, column)
                if sql:
                    clauses.append(("add " if modifier == "generated_as" else "") + sql.strip())
            wrapped = self.wrap(column)
            changes.extend(f"alter column {wrapped} {clause}" for clause in clauses)
        return f"alter table {self.wrap_table(blueprint)} {', '.join(changes)}"

    def compile_drop(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        return f"drop table {self.wrap_table(blueprint)}"

    def compile_drop_if_exists(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        return f"drop table if exists {self.wrap_table(blueprint)}"

    def compile_drop_column(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        columns = self.prefix_array("drop column", self.wrap_array(command.get("columns") or []))
        return f"alter table {self.wrap_table(blueprint)} {', '.join(columns)}"

    def compile_rename(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        return f"alter table {self.wrap_table(blueprint)} rename to {self.wrap_table(command.get('to'))}"

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
            sequence = f"{self.get_table_prefix()}{blueprint.get_table()}_{self.get_value(column.name)}_seq"
            return f"alter sequence {sequence} restart with {value}"
        return ""

    def compile_comment(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        column: ColumnDefinition = command.get("column")
        comment = column.get("comment")
        if comment is not None or column.get("change"):
            value = "NULL" if comment is None else f"'{escape_quotes(comment)}'"
            return f"comment on column {self.wrap_table(blueprint)}.{self.wrap(column)} is {value}"
        return ""

    def compile_table_comment(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        return f"comment on table {self.wrap_table(blueprint)} is '{escape_quotes(command.get('comment'))}'"

    # ------------------------------------------------------------------ #
    # Indexes
    # ------------------------------------------------------------------ #
    def compile_primary(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return f"alter table {self.wrap_table(blueprint)} add primary key ({self.columnize(command.columns)})"

    def compile_drop_primary(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        index = self.wrap_value(f"{self.get_table_prefix()}{blueprint.get_table()}_pkey")
        return f"alter table {self.wrap_table(blueprint)} drop constraint {index}"

    def compile_unique(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        sql = (
            f"alter table {self.wrap_table(blueprint)} add constraint {self.wrap(command.index_name)} "
            f"unique ({self.columnize(command.columns)})"
        )
        return sql + self._deferrable(command)

    def compile_index(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        algorithm = f" using {command.get('algorithm')}" if command.get("algorithm") else ""
        return (
            f"create index {self.wrap(command.index_name)} on {self.wrap_table(blueprint)}"
            f"{algorithm} ({self.columnize(command.columns)})"
        )

    def compile_fulltext(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        language = command.get("language") or "english"
        vectors = " || ".join(
            f"to_tsvector({self.quote_string(language)}, {self.wrap(column)})" for column in command.columns
        )
        return f"create index {self.wrap(command.index_name)} on {self.wrap_table(blueprint)} using gin (({vectors}))"

    def compile_spatial_index(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        command.algorithm("gist")
        return self.compile_index(blueprint, command, connection)

    def compile_foreign(self, blueprint: Blueprint, command: ForeignKeyDefinition, connection: Any) -> str:
        sql = super().compile_foreign(blueprint, command, connection) + self._deferrable(command)
        if command.get("not_valid"):
            sql += " not valid"
        return sql

    def _deferrable(self, command: IndexDefinition) -> str:
        sql = ""
        if command.get("deferrable") is not None:
            sql += " deferrable" if command.get("deferrable") else " not deferrable"
        if command.get("deferrable") and command.get("initially_immediate") is not None:
            sql += " initially immediate" if command.get("initially_immediate") else " initially deferred"
        return sql

    def compile_drop_unique(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return f"alter table {self.wrap_table(blueprint)} drop constraint {self.wrap(command.index_name)}"

    def compile_drop_index(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return f"drop index {self.wrap(command.index_name)}"

    def compile_drop_fulltext(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return self.compile_drop_index(blueprint, command, connection)

    def compile_drop_spatial_index(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return self.compile_drop_index(blueprint, command, connection)

    def compile_drop_foreign(self, blueprint: Blueprint, command: ForeignKeyDefinition, connection: Any) -> str:
        return f"alter table {self.wrap_table(blueprint)} drop constraint {self.wrap(command.index_name)}"

    def compile_rename_index(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        return f"alter index {self.wrap(command.get('from_'))} rename to {self.wrap(command.get('to'))}"

    # ------------------------------------------------------------------ #
    # Types
    # ------------------------------------------------------------------ #
    def compile_type_tiny_text(self, column: ColumnDefinition) -> str:
        return "varchar(255)"

    def compile_type_medium_text(self, column: ColumnDefinition) -> str:
        return "text"

    def compile_type_long_text(self, column: ColumnDefinition) -> str:
        return "text"

    def compile_type_big_integer(self, column: ColumnDefinition) -> str:
        return self._serial_or(column, "bigint")

    def compile_type_integer(self, column: ColumnDefinition) -> str:
        return self._serial_or(column, "integer")

    def compile_type_medium_integer(self, column: ColumnDefinition) -> str:
        return self.compile_type_integer(column)

    def compile_type_small_integer(self, column: ColumnDefinition) -> str:
        return self._serial_or(column, "smallint")

    def compile_type_tiny_integer(self, column: ColumnDefinition) -> str:
        return self.compile_type_small_integer(column)

    @staticmethod
    def _serial_or(column: ColumnDefinition, type: str) -> str:
        if column.get("auto_increment") and column.get("generated_as") is None:
            return _SERIALS[type]
        return type

    def compile_type_float(self, column: ColumnDefinition) -> str:
        return "double precision"

    def compile_type_double(self, column: ColumnDefinition) -> str:
        return "double precision"

    def compile_type_enum(self, column: ColumnDefinition) -> str:
        return f"varchar(255) check ({self.wrap(column)} in ({self.quote_string(column.get('allowed') or [])}))"

    def compile_type_date_time(self, column: ColumnDefinition) -> str:
        return self.compile_type_timestamp(column)

    def compile_type_date_time_tz(self, column: ColumnDefinition) -> str:
        return self.compile_type_timestamp_tz(column)

    def compile_type_time(self, column: ColumnDefinition) -> str:
        return self._temporal("time", column, "without")

    def compile_type_time_tz(self, column: ColumnDefinition) -> str:
        return self._temporal("time", column, "with")

    def compile_type_timestamp(self, column: ColumnDefinition) -> str:
        self._use_current(column)
        return self._temporal("timestamp", column, "without")

    def compile_type_timestamp_tz(self, column: ColumnDefinition) -> str:
        self._use_current(column)
        return self._temporal("timestamp", column, "with")

    @staticmethod
    def _temporal(type: str, column: ColumnDefinition, zone: str) -> str:
        precision = column.get("precision")
        precision = f"({precision})" if precision else ""
        return f"{type}{precision} {zone} time zone"

    @staticmethod
    def _use_current(column: ColumnDefinition) -> None:
        if column.get("use_current"):
            column.default(Expression("CURRENT_TIMESTAMP"))

    def compile_type_year(self, column: ColumnDefinition) -> str:
        return self.compile_type_integer(column)

    def compile_type_binary(self, column: ColumnDefinition) -> str:
        return "bytea"

    def compile_type_geometry(self, column: ColumnDefinition) -> str:
        return self._format_postgis_type("geometry", column)

    def compile_type_point(self, column: ColumnDefinition) -> str:
        return self._format_postgis_type("point", column)

    def compile_type_line_string(self, column: ColumnDefinition) -> str:
        return self._format_postgis_type("linestring", column)

    def compile_type_polygon(self, column: ColumnDefinition) -> str:
        return self._format_postgis_type("polygon", column)

    def compile_type_geometry_collection(self, column: ColumnDefinition) -> str:
        return self._format_postgis_type("geometrycollection", column)

    def compile_type_multi_point(self, column: ColumnDefinition) -> str:
        return self._format_postgis_type("multipoint", column)

    def compile_type_multi_line_string(self, column: ColumnDefinition) -> str:
        return self._format_postgis_type("multilinestring", column)

    def compile_type_multi_polygon(self, column: ColumnDefinition) -> str:
        return self._format_postgis_type("multipolygon", column)

    def compile_type_multi_polygon_z(self, column: ColumnDefinition) -> str:
        return self._format_postgis_type("multipolygonz", column)

    @staticmethod
    def _format_postgis_type(type: str, column: ColumnDefinition) -> str:
        projection = column.get("projection")
        if not column.get("is_geometry"):
            return f"geography({type}, {projection or 4326})"
        if projection:
            return f"geometry({type}, {projection})"
        return f"geometry({type})"

    # ------------------------------------------------------------------ #
    # Modifiers
    # ------------------------------------------------------------------ #
    def compile_modify_collate(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        if column.get("collation"):
            return f" collate {self.wrap_value(self.get_value(column.get('collation')))}"
        return ""

    def compile_modify_nullable(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        if column.get("change"):
            return " drop not null" if column.get("nullable") else " set not null"
        return " null" if column.get("nullable") else " not null"

    def compile_modify_default(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        if column.get("change"):
            if column.get("auto_increment") and column.get("generated_as") is None:
                return ""
            if column.get("default") is None:
                return " drop default"
            return f" set default {self.get_default_value(column.get('default'))}"
        if column.has("default"):
            return f" default {self.get_default_value(column.get('default'))}"
        return ""

    def compile_modify_increment(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        if column.get("change") or not column.get("auto_increment") or self.has_command(blueprint, "primary"):
            return ""
        if column.type in self.serials or column.get("generated_as") is not None:
            return " primary key"
        return ""

    def compile_modify_virtual_as(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        return self._generated_column(column, "virtual_as", "")

    def compile_modify_stored_as(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        return self._generated_column(column, "stored_as", " stored")

    def _generated_column(self, column: ColumnDefinition, key: str, suffix: str) -> str:
        if column.get("change"):
            if column.get(key) is not None:
                raise CompilationError("This database driver does not support modifying generated columns.")
            if column.has(key):
                return " drop expression if exists"
            return ""
        if column.get(key) is not None:
            return f" generated always as ({self.get_value(column.get(key))}){suffix}"
        return ""

    def compile_modify_generated_as(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        expression = column.get("generated_as")
        if expression is None:
            return ""
        always = "always" if column.get("always") else "by default"
        sql = f" generated {always} as identity"
        if not isinstance(expression, bool) and expression != "":
            sql += f" ({self.get_value(expression)})"
        return sql
