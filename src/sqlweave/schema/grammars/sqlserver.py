"""
SQL Server schema grammar.
"""

from __future__ import annotations

from typing import Any, List, Sequence, Union

from ...dialects.sqlserver import SqlServerDialect
from ...expression import Expression
from ..blueprint import Blueprint
from ..definitions import ColumnDefinition, CommandDefinition, ForeignKeyDefinition, IndexDefinition, ViewDefinition
from .base import SchemaGrammar

_DROP_ALL_FOREIGN_KEYS = """DECLARE @sql NVARCHAR(MAX) = N'';
SELECT @sql += 'ALTER TABLE '
    + QUOTENAME(OBJECT_SCHEMA_NAME(parent_object_id)) + '.' + QUOTENAME(OBJECT_NAME(parent_object_id))
    + ' DROP CONSTRAINT ' + QUOTENAME(name) + ';'
FROM sys.foreign_keys;

EXEC sp_executesql @sql;"""

_DROP_ALL_VIEWS = """DECLARE @sql NVARCHAR(MAX) = N'';
SELECT @sql += 'DROP VIEW ' + QUOTENAME(OBJECT_SCHEMA_NAME(object_id)) + '.' + QUOTENAME(name) + ';'
FROM sys.views;

EXEC sp_executesql @sql;"""


class SqlServerSchemaGrammar(SchemaGrammar):
    dialect_class = SqlServerDialect
    modifiers = ("collate", "nullable", "default", "persisted", "increment")
    commands = ("default",)
    transactions = True

    # ------------------------------------------------------------------ #
    # Database level statements
    # ------------------------------------------------------------------ #
    def compile_create_database(self, name: str, connection: Any) -> str:
        return f"create database {self.wrap_value(name)}"

    def compile_drop_database_if_exists(self, name: str) -> str:
        return f"drop database if exists {self.wrap_value(name)}"

    def compile_table_exists(self) -> str:
        return "select * from sys.sysobjects where id = object_id(?) and xtype in ('U', 'V')"

    def compile_column_listing(self, table: str = "") -> str:
        return "select name from sys.columns where object_id = object_id(?)"

    def compile_column_type(self) -> str:
        return (
            "select type_name(user_type_id) as data_type from sys.columns "
            "where object_id = object_id(?) and name = ?"
        )

    def compile_get_all_tables(self, search_path: Sequence[str] = ()) -> str:
        return "select name, type from sys.tables where type = 'U'"

    def compile_drop_all_tables(self, tables=()) -> str:
        return "EXEC sp_msforeachtable 'DROP TABLE ?'"

    def compile_drop_all_foreign_keys(self) -> str:
        return _DROP_ALL_FOREIGN_KEYS

    def compile_enable_foreign_key_constraints(self) -> str:
        return 'EXEC sp_msforeachtable @command1="print \'?\'", @command2="ALTER TABLE ? WITH CHECK CHECK CONSTRAINT all";'

    def compile_disable_foreign_key_constraints(self) -> str:
        return 'EXEC sp_msforeachtable "ALTER TABLE ? NOCHECK CONSTRAINT all";'

    # ------------------------------------------------------------------ #
    # Views and introspection
    # ------------------------------------------------------------------ #
    def compile_create_view(self, name, view: ViewDefinition) -> str:
        sql = f"create view {self.wrap_table(name)}{self.compile_view_columns(view)}"
        if view.get("view_attribute"):
            sql += f" with {self.get_value(view.get('view_attribute'))}"
        sql += f" as {self.compile_view_query(view)}"
        if view.get("check"):
            sql += " with check option"
        return sql

    def compile_get_all_views(self, search_path: Sequence[str] = ()) -> str:
        return (
            "select name, SCHEMA_NAME(v.schema_id) as [schema], definition from sys.views as v "
            "inner join sys.sql_modules as m on v.object_id = m.object_id order by name"
        )

    def compile_drop_all_views(self, views=()) -> str:
        return _DROP_ALL_VIEWS

    def compile_indexes(self, table: str) -> str:
        return (
            "select idx.name as name, string_agg(col.name, ',') within group (order by idxcol.key_ordinal) as columns, "
            "idx.type_desc as [type], idx.is_unique as [unique], idx.is_primary_key as [primary] "
            "from sys.indexes as idx "
            "join sys.tables as tbl on idx.object_id = tbl.object_id "
            "join sys.schemas as scm on tbl.schema_id = scm.schema_id "
            "join sys.index_columns as idxcol on idx.object_id = idxcol.object_id and idx.index_id = idxcol.index_id "
            "join sys.columns as col on idxcol.object_id = col.object_id and idxcol.column_id = col.column_id "
            f"where tbl.name = {self.quote_string(table)} and scm.name = SCHEMA_NAME() "
            "group by idx.name, idx.type_desc, idx.is_unique, idx.is_primary_key"
        )

    def compile_foreign_keys(self, table: str) -> str:
        return (
            "select fk.name as name, "
            "string_agg(lc.name, ',') within group (order by fkc.constraint_column_id) as columns, "
            "fs.name as foreign_schema, ft.name as foreign_table, "
            "string_agg(fc.name, ',') within group (order by fkc.constraint_column_id) as foreign_columns, "
            "fk.update_referential_action_desc as on_update, fk.delete_referential_action_desc as on_delete "
            "from sys.foreign_keys as fk "
            "join sys.foreign_key_columns as fkc on fkc.constraint_object_id = fk.object_id "
            "join sys.tables as lt on lt.object_id = fk.parent_object_id "
            "join sys.schemas as ls on lt.schema_id = ls.schema_id "
            "join sys.columns as lc on fkc.parent_object_id = lc.object_id and fkc.parent_column_id = lc.column_id "
            "join sys.tables as ft on ft.object_id = fk.referenced_object_id "
            "join sys.schemas as fs on ft.schema_id = fs.schema_id "
            "join sys.columns as fc on fkc.referenced_object_id = fc.object_id "
            "and fkc.referenced_column_id = fc.column_id "
            f"where lt.name = {self.quote_string(table)} and ls.name = SCHEMA_NAME() "
            "group by fk.name, fs.name, ft.name, fk.update_referential_action_desc, fk.delete_referential_action_desc"
        )

    # ------------------------------------------------------------------ #
    # Tables
    # ------------------------------------------------------------------ #
    def wrap_table(self, table: Union[str, Expression, Blueprint]) -> str:
        if isinstance(table, Blueprint) and table.is_temporary():
            return self.wrap_value(f"#{self.get_table_prefix()}{table.get_table()}")
        return super().wrap_table(table)

    def compile_create(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        return f"create table {self.wrap_table(blueprint)} ({', '.join(self.get_columns(blueprint))})"

    def compile_add(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        return f"alter table {self.wrap_table(blueprint)} add {', '.join(self.get_columns(blueprint))}"

    def compile_change(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> List[str]:
        changed = blueprint.get_changed_columns()
        statements = [self.compile_drop_default_constraint(blueprint, [column.name for column in changed])]
        for column in changed:
            sql = f"alter table {self.wrap_table(blueprint)} alter column {self.wrap(column)} {self.get_type(column)}"
            statements.append(self.add_modifiers(sql, blueprint, column))
        return statements

    def compile_drop(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        return f"drop table {self.wrap_table(blueprint)}"

    def compile_drop_if_exists(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        table = f"{self.get_table_prefix()}{blueprint.get_table()}".replace("'", "''")
        return (
            f"if exists (select * from sys.sysobjects where id = object_id('{table}', 'U')) "
            f"drop table {self.wrap_table(blueprint)}"
        )

    def compile_drop_column(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        columns = command.get("columns") or []
        drop_defaults = self.compile_drop_default_constraint(blueprint, columns)
        return f"{drop_defaults};alter table {self.wrap_table(blueprint)} drop column {self.columnize(columns)}"

    def compile_drop_default_constraint(self, blueprint: Blueprint, columns: Sequence[Any]) -> str:
        names = ",".join(f"'{self.get_value(column)}'" for column in columns)
        table = self.get_table_prefix() + blueprint.get_table()
        return (
            "DECLARE @sql NVARCHAR(MAX) = '';"
            "SELECT @sql += 'ALTER TABLE [dbo].[" + table + "] DROP CONSTRAINT ' + OBJECT_NAME([default_object_id]) + ';' "
            "FROM sys.columns "
            f"WHERE [object_id] = OBJECT_ID('[dbo].[{table}]') AND [name] in ({names}) AND [default_object_id] <> 0;"
            "EXEC(@sql)"
        )

    def compile_rename(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        return f"sp_rename {self.wrap_table(blueprint)}, {self.wrap_table(command.get('to'))}"

    def compile_rename_column(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        source = self.wrap(f"{blueprint.get_table()}.{self.get_value(command.get('from_'))}")
        return f"sp_rename '{source}', {self.wrap(command.get('to'))}, 'COLUMN'"

    def compile_default(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        column: ColumnDefinition = command.get("column")
        if column.get("change") and column.get("default") is not None:
            return (
                f"alter table {self.wrap_table(blueprint)} add default "
                f"{self.get_default_value(column.get('default'))} for {self.wrap(column)}"
            )
        return ""

    # ------------------------------------------------------------------ #
    # Indexes
    # ------------------------------------------------------------------ #
    def compile_primary(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return (
            f"alter table {self.wrap_table(blueprint)} add constraint {self.wrap(command.index_name)} "
            f"primary key ({self.columnize(command.columns)})"
        )

    def compile_unique(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return (
            f"create unique index {self.wrap(command.index_name)} on {self.wrap_table(blueprint)} "
            f"({self.columnize(command.columns)})"
        )

    def compile_index(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return (
            f"create index {self.wrap(command.index_name)} on {self.wrap_table(blueprint)} "
            f"({self.columnize(command.columns)})"
        )

    def compile_spatial_index(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return (
            f"create spatial index {self.wrap(command.index_name)} on {self.wrap_table(blueprint)} "
            f"({self.columnize(command.columns)})"
        )

    def compile_drop_primary(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return f"alter table {self.wrap_table(blueprint)} drop constraint {self.wrap(command.index_name)}"

    def compile_drop_unique(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return f"drop index {self.wrap(command.index_name)} on {self.wrap_table(blueprint)}"

    def compile_drop_index(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return f"drop index {self.wrap(command.index_name)} on {self.wrap_table(blueprint)}"

    def compile_drop_spatial_index(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        return self.compile_drop_index(blueprint, command, connection)

    def compile_drop_foreign(self, blueprint: Blueprint, command: ForeignKeyDefinition, connection: Any) -> str:
        return f"alter table {self.wrap_table(blueprint)} drop constraint {self.wrap(command.index_name)}"

    def compile_rename_index(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        source = self.wrap(f"{blueprint.get_table()}.{self.get_value(command.get('from_'))}")
        return f"sp_rename N'{source}', {self.wrap(command.get('to'))}, N'INDEX'"

    # ------------------------------------------------------------------ #
    # Types
    # ------------------------------------------------------------------ #
    def compile_type_char(self, column: ColumnDefinition) -> str:
        return f"nchar({column.get('length')})"

    def compile_type_string(self, column: ColumnDefinition) -> str:
        return f"nvarchar({column.get('length')})"

    def compile_type_tiny_text(self, column: ColumnDefinition) -> str:
        return "nvarchar(255)"

    def compile_type_text(self, column: ColumnDefinition) -> str:
        return "nvarchar(max)"

    def compile_type_medium_text(self, column: ColumnDefinition) -> str:
        return "nvarchar(max)"

    def compile_type_long_text(self, column: ColumnDefinition) -> str:
        return "nvarchar(max)"

    def compile_type_medium_integer(self, column: ColumnDefinition) -> str:
        return "int"

    def compile_type_double(self, column: ColumnDefinition) -> str:
        return "float"

    def compile_type_boolean(self, column: ColumnDefinition) -> str:
        return "bit"

    def compile_type_enum(self, column: ColumnDefinition) -> str:
        return f"nvarchar(255) check ({self.wrap(column)} in ({self.quote_string(column.get('allowed') or [])}))"

    def compile_type_json(self, column: ColumnDefinition) -> str:
        return "nvarchar(max)"

    def compile_type_jsonb(self, column: ColumnDefinition) -> str:
        return "nvarchar(max)"

    def compile_type_date_time(self, column: ColumnDefinition) -> str:
        return self.compile_type_timestamp(column)

    def compile_type_date_time_tz(self, column: ColumnDefinition) -> str:
        return self.compile_type_timestamp_tz(column)

    def compile_type_timestamp(self, column: ColumnDefinition) -> str:
        return self._current("datetime2", column)

    def compile_type_timestamp_tz(self, column: ColumnDefinition) -> str:
        return self._current("datetimeoffset", column)

    @staticmethod
    def _current(type: str, column: ColumnDefinition) -> str:
        if column.get("use_current"):
            column.default(Expression("CURRENT_TIMESTAMP"))
        precision = column.get("precision")
        return f"{type}({precision})" if precision else type

    def compile_type_year(self, column: ColumnDefinition) -> str:
        return "int"

    def compile_type_binary(self, column: ColumnDefinition) -> str:
        return "varbinary(max)"

    def compile_type_uuid(self, column: ColumnDefinition) -> str:
        return "uniqueidentifier"

    def compile_type_ip_address(self, column: ColumnDefinition) -> str:
        return "nvarchar(45)"

    def compile_type_mac_address(self, column: ColumnDefinition) -> str:
        return "nvarchar(17)"

    def compile_type_geometry(self, column: ColumnDefinition) -> str:
        return "geography"

    compile_type_point = compile_type_geometry
    compile_type_line_string = compile_type_geometry
    compile_type_polygon = compile_type_geometry
    compile_type_geometry_collection = compile_type_geometry
    compile_type_multi_point = compile_type_geometry
    compile_type_multi_line_string = compile_type_geometry
    compile_type_multi_polygon = compile_type_geometry

    def compile_type_computed(self, column: ColumnDefinition) -> str:
        return f"as ({self.get_value(column.get('expression'))})"

    # ------------------------------------------------------------------ #
    # Modifiers
    # ------------------------------------------------------------------ #
    def compile_modify_collate(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        return f" collate {column.get('collation')}" if column.get("collation") else ""

    def compile_modify_nullable(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        if column.type == "computed":
            return ""
        return " null" if column.get("nullable") else " not null"

    def compile_modify_default(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        if not column.get("change") and column.has("default"):
            return f" default {self.get_default_value(column.get('default'))}"
        return ""

    def compile_modify_increment(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        if not column.get("change") and column.type in self.serials and column.get("auto_increment"):
            return " identity" if self.has_command(blueprint, "primary") else " identity primary key"
        return ""

    def compile_modify_persisted(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        if column.get("change"):
            if column.type == "computed":
                return " add persisted" if column.get("persisted") else " drop persisted"
            return ""
        return " persisted" if column.get("persisted") else ""
