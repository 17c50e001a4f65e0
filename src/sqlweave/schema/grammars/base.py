"""
Schema grammar base: column rendering shared by every dialect.

Command compilers are looked up by name (``compile_<command>``), column types
by ``compile_type_<type>`` and modifiers by ``compile_modify_<modifier>``.
The base class renders the generic type map and refuses every structural
command; dialects opt in by overriding.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, List, Optional, Sequence, Union

from ...errors import CompilationError
from ...expression import Expression
from ...grammar import BaseGrammar, Stringable
from ..blueprint import Blueprint
from ..definitions import ColumnDefinition, CommandDefinition, ForeignKeyDefinition, IndexDefinition, ViewDefinition

if TYPE_CHECKING:
    from ...connections.session import ConnectionSession

SERIALS = ("big_integer", "integer", "medium_integer", "small_integer", "tiny_integer")


def unsupported(feature: str) -> CompilationError:
    return CompilationError(f"This database driver does not support {feature}.")


def escape_quotes(value: Any) -> str:
    return str(value).replace("'", "''")


class SchemaGrammar(BaseGrammar):
    modifiers: Sequence[str] = ()
    commands: Sequence[str] = ()
    serials: Sequence[str] = SERIALS
    transactions: bool = False

    # ------------------------------------------------------------------ #
    # Database level statements
    # ------------------------------------------------------------------ #
    def compile_create_database(self, name: str, connection: "ConnectionSession") -> str:
        raise unsupported("creating databases")

    def compile_drop_database_if_exists(self, name: str) -> str:
        raise unsupported("dropping databases")

    def compile_table_exists(self) -> str:
        raise unsupported("table exists")

    def compile_column_listing(self, table: str = "") -> str:
        raise unsupported("column listing")

    def compile_column_type(self) -> str:
        raise unsupported("get column type")

    def compile_get_all_tables(self, search_path: Sequence[str] = ()) -> str:
        raise unsupported("get all tables")

    def compile_drop_all_tables(self, tables: Sequence[Stringable] = ()) -> str:
        raise unsupported("drop all tables")

    def compile_drop_all_foreign_keys(self) -> str:
        raise unsupported("drop all foreign keys")

    def compile_enable_foreign_key_constraints(self) -> str:
        raise unsupported("foreign key enabling")

    def compile_disable_foreign_key_constraints(self) -> str:
        raise unsupported("foreign key disabling")

    # ------------------------------------------------------------------ #
    # Views and introspection
    # ------------------------------------------------------------------ #
    def compile_create_view(self, name: Stringable, view: ViewDefinition) -> str:
        raise unsupported("create view")

    def compile_drop_view(self, name: Stringable) -> str:
        return f"drop view {self.wrap_table(name)}"

    def compile_drop_view_if_exists(self, name: Stringable) -> str:
        return f"drop view if exists {self.wrap_table(name)}"

    def compile_get_all_views(self, search_path: Sequence[str] = ()) -> str:
        raise unsupported("get all views")

    def compile_drop_all_views(self, views: Sequence[Stringable] = ()) -> str:
        raise unsupported("drop all views")

    def compile_indexes(self, table: str) -> str:
        raise unsupported("index listing")

    def compile_foreign_keys(self, table: str) -> str:
        raise unsupported("foreign key listing")

    def compile_view_columns(self, view: ViewDefinition) -> str:
        columns = view.get("column_names") or []
        return f" ({self.columnize(columns)})" if columns else ""

    def compile_view_query(self, view: ViewDefinition) -> str:
        query = view.get("as")
        if query is None:
            raise CompilationError("A view needs a defining query.")
        if hasattr(query, "to_raw_sql"):
            return query.to_raw_sql()
        return self.get_value(query)

    # ------------------------------------------------------------------ #
    # Blueprint commands
    # ------------------------------------------------------------------ #
    def compile_create(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        raise unsupported("create table")

    def compile_add(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> Union[str, List[str]]:
        raise unsupported("add column")

    def compile_change(
        self, blueprint: Blueprint, command: CommandDefinition, connection: Any
    ) -> Union[str, List[str]]:
        raise unsupported("change column")

    def compile_drop(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        raise unsupported("drop table")

    def compile_drop_if_exists(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        raise unsupported("drop table if exists")

    def compile_drop_column(
        self, blueprint: Blueprint, command: CommandDefinition, connection: Any
    ) -> Union[str, List[str]]:
        raise unsupported("drop column")

    def compile_rename(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        raise unsupported("rename table")

    def compile_rename_column(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        raise unsupported("rename column")

    def compile_auto_increment_starting_values(
        self, blueprint: Blueprint, command: CommandDefinition, connection: Any
    ) -> str:
        raise unsupported("auto increment starting values")

    def compile_comment(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        raise unsupported("column comments")

    def compile_default(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        raise unsupported("default constraints")

    def compile_table_comment(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        raise unsupported("table comment")

    def compile_primary(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        raise unsupported("primary key creation")

    def compile_drop_primary(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        raise unsupported("primary key removal")

    def compile_unique(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        raise unsupported("unique index creation")

    def compile_drop_unique(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        raise unsupported("unique index removal")

    def compile_index(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        raise unsupported("index creation")

    def compile_drop_index(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        raise unsupported("index removal")

    def compile_fulltext(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        raise unsupported("fulltext index creation")

    def compile_drop_fulltext(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        raise unsupported("fulltext index removal")

    def compile_spatial_index(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        raise unsupported("spatial index creation")

    def compile_drop_spatial_index(self, blueprint: Blueprint, command: IndexDefinition, connection: Any) -> str:
        raise unsupported("spatial index removal")

    def compile_rename_index(self, blueprint: Blueprint, command: CommandDefinition, connection: Any) -> str:
        raise unsupported("index renaming")

    def compile_drop_foreign(self, blueprint: Blueprint, command: ForeignKeyDefinition, connection: Any) -> str:
        raise unsupported("foreign key removal")

    def compile_foreign(self, blueprint: Blueprint, command: ForeignKeyDefinition, connection: Any) -> str:
        sql = f"alter table {self.wrap_table(blueprint)} add constraint {self.wrap(command.index_name)} "
        sql += (
            f"foreign key ({self.columnize(command.columns)}) references {self.wrap_table(command.get('on'))} "
            f"({self.columnize(command.get('references') or [])})"
        )
        if command.get("on_delete") is not None:
            sql += f" on delete {self.get_value(command.get('on_delete'))}"
        if command.get("on_update") is not None:
            sql += f" on update {self.get_value(command.get('on_update'))}"
        return sql

    # ------------------------------------------------------------------ #
    # Columns
    # ------------------------------------------------------------------ #
    def get_columns(self, blueprint: Blueprint) -> List[str]:
        columns = []
        for column in blueprint.get_added_columns():
            sql = f"{self.wrap(column)} {self.get_type(column)}"
            columns.append(self.add_modifiers(sql, blueprint, column))
        return columns

    def get_type(self, column: ColumnDefinition) -> str:
        compiler = getattr(self, f"compile_type_{column.type}", None)
        if compiler is None:
            raise unsupported(f"the {column.type} type")
        return compiler(column)

    def add_modifiers(self, sql: str, blueprint: Blueprint, column: ColumnDefinition) -> str:
        for modifier in self.modifiers:
            sql += self.compile_modifier(modifier, blueprint, column)
        return sql

    def compile_modifier(self, modifier: str, blueprint: Blueprint, column: ColumnDefinition) -> str:
        compiler = getattr(self, f"compile_modify_{modifier}", None)
        if compiler is None:
            raise unsupported(f"the {modifier} column modifier")
        return compiler(blueprint, column)

    def get_default_value(self, value: Any) -> str:
        if isinstance(value, Expression):
            return self.get_value(value)
        if value is None:
            return "null"
        if isinstance(value, bool):
            return f"'{int(value)}'"
        return f"'{escape_quotes(value)}'"

    def generated_expression(self, value: Any) -> str:
        if not self.is_expression(value) and self.is_json_selector(value):
            return self.wrap_json_selector(value)
        return self.get_value(value)

    # ------------------------------------------------------------------ #
    # Types
    # ------------------------------------------------------------------ #
    def compile_type_char(self, column: ColumnDefinition) -> str:
        return f"char({column.get('length')})" if column.get("length") else "char"

    def compile_type_string(self, column: ColumnDefinition) -> str:
        return f"varchar({column.get('length')})" if column.get("length") else "varchar"

    def compile_type_tiny_text(self, column: ColumnDefinition) -> str:
        return "tinytext"

    def compile_type_text(self, column: ColumnDefinition) -> str:
        return "text"

    def compile_type_medium_text(self, column: ColumnDefinition) -> str:
        return "mediumtext"

    def compile_type_long_text(self, column: ColumnDefinition) -> str:
        return "longtext"

    def compile_type_big_integer(self, column: ColumnDefinition) -> str:
        return "bigint"

    def compile_type_integer(self, column: ColumnDefinition) -> str:
        return "int"

    def compile_type_medium_integer(self, column: ColumnDefinition) -> str:
        return "mediumint"

    def compile_type_tiny_integer(self, column: ColumnDefinition) -> str:
        return "tinyint"

    def compile_type_small_integer(self, column: ColumnDefinition) -> str:
        return "smallint"

    def compile_type_float(self, column: ColumnDefinition) -> str:
        return "float"

    def compile_type_double(self, column: ColumnDefinition) -> str:
        if column.get("total") and column.get("places"):
            return f"double({column.get('total')}, {column.get('places')})"
        return "double"

    def compile_type_decimal(self, column: ColumnDefinition) -> str:
        return f"decimal({column.get('total')}, {column.get('places')})"

    def compile_type_boolean(self, column: ColumnDefinition) -> str:
        return "boolean"

    def compile_type_enum(self, column: ColumnDefinition) -> str:
        return f"enum({self.quote_string(column.get('allowed') or [])})"

    def compile_type_set(self, column: ColumnDefinition) -> str:
        raise unsupported("the set type")

    def compile_type_json(self, column: ColumnDefinition) -> str:
        return "json"

    def compile_type_jsonb(self, column: ColumnDefinition) -> str:
        return "jsonb"

    def compile_type_date(self, column: ColumnDefinition) -> str:
        return "date"

    def compile_type_date_time(self, column: ColumnDefinition) -> str:
        return _with_precision("datetime", column)

    def compile_type_date_time_tz(self, column: ColumnDefinition) -> str:
        return _with_precision("datetime", column)

    def compile_type_time(self, column: ColumnDefinition) -> str:
        return _with_precision("time", column)

    def compile_type_time_tz(self, column: ColumnDefinition) -> str:
        return _with_precision("time", column)

    def compile_type_timestamp(self, column: ColumnDefinition) -> str:
        return _with_precision("timestamp", column)

    def compile_type_timestamp_tz(self, column: ColumnDefinition) -> str:
        return _with_precision("timestamp", column)

    def compile_type_year(self, column: ColumnDefinition) -> str:
        return "year"

    def compile_type_binary(self, column: ColumnDefinition) -> str:
        return "blob"

    def compile_type_uuid(self, column: ColumnDefinition) -> str:
        return "uuid"

    def compile_type_ip_address(self, column: ColumnDefinition) -> str:
        return "inet"

    def compile_type_mac_address(self, column: ColumnDefinition) -> str:
        return "macaddr"

    def compile_type_geometry(self, column: ColumnDefinition) -> str:
        return "geometry"

    def compile_type_point(self, column: ColumnDefinition) -> str:
        return "point"

    def compile_type_line_string(self, column: ColumnDefinition) -> str:
        return "linestring"

    def compile_type_polygon(self, column: ColumnDefinition) -> str:
        return "polygon"

    def compile_type_geometry_collection(self, column: ColumnDefinition) -> str:
        return "geometrycollection"

    def compile_type_multi_point(self, column: ColumnDefinition) -> str:
        return "multipoint"

    def compile_type_multi_line_string(self, column: ColumnDefinition) -> str:
        return "multilinestring"

    def compile_type_multi_polygon(self, column: ColumnDefinition) -> str:
        return "multipolygon"

    def compile_type_multi_polygon_z(self, column: ColumnDefinition) -> str:
        raise unsupported("the multipolygonz type")

    def compile_type_computed(self, column: ColumnDefinition) -> str:
        raise unsupported("the computed type")

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def get_commands(self) -> Sequence[str]:
        return self.commands

    def supports_schema_transactions(self) -> bool:
        return self.transactions

    @staticmethod
    def prefix_array(prefix: str, values: Iterable[str]) -> List[str]:
        return [f"{prefix} {value}" for value in values]

    @staticmethod
    def get_commands_by_name(blueprint: Blueprint, name: str) -> List[CommandDefinition]:
        return [command for command in blueprint.get_commands() if command.name == name]

    def get_command_by_name(self, blueprint: Blueprint, name: str) -> Optional[CommandDefinition]:
        commands = self.get_commands_by_name(blueprint, name)
        return commands[0] if commands else None

    def has_command(self, blueprint: Blueprint, name: str) -> bool:
        return bool(self.get_commands_by_name(blueprint, name))

    def wrap_table(self, table: Union[Stringable, Blueprint]) -> str:
        if isinstance(table, Blueprint):
            table = table.get_table()
        return super().wrap_table(table)

    def wrap(self, value: Union[Stringable, ColumnDefinition, CommandDefinition]) -> str:
        if isinstance(value, (ColumnDefinition, CommandDefinition)):
            value = value.name
        return super().wrap(value)

    def escape_names(self, names: Iterable[Stringable]) -> List[str]:
        escaped = []
        for name in names:
            segments = [segment.strip("'\"") for segment in self.get_value(name).split(".")]
            escaped.append('"' + '"."'.join(segments) + '"')
        return escaped


def _with_precision(type: str, column: ColumnDefinition) -> str:
    precision = column.get("precision")
    return f"{type}({precision})" if precision else type
