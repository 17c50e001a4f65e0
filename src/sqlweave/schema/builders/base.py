"""
Schema builder: the entry point for creating, altering and inspecting tables.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, Dict, Generator, List, Optional, Sequence, Union

from ...errors import CompilationError
from ...utils import get_logger
from ..blueprint import DEFAULT_STRING_LENGTH, Blueprint, BlueprintCallback
from ..definitions import ViewDefinition

if TYPE_CHECKING:
    from ...connections.session import ConnectionSession
    from ..grammars.base import SchemaGrammar

BlueprintResolver = Callable[..., Blueprint]
ViewCallback = Callable[[ViewDefinition], Any]


class SchemaBuilder:
    """
    Runs blueprints against a schema session.

    Every table operation builds a :class:`Blueprint`, hands it to the
    optional callback, then executes the compiled statements in order.
    """

    def __init__(self, connection: "ConnectionSession") -> None:
        self.connection = connection
        self.grammar: "SchemaGrammar" = connection.get_schema_grammar()
        self.resolver: Optional[BlueprintResolver] = None
        self.logger = get_logger("schema.builder")

    # ------------------------------------------------------------------ #
    # Databases
    # ------------------------------------------------------------------ #
    def create_database(self, name: str) -> bool:
        raise CompilationError("This database driver does not support creating databases.")

    def drop_database_if_exists(self, name: str) -> bool:
        raise CompilationError("This database driver does not support dropping databases.")

    # ------------------------------------------------------------------ #
    # Inspection
    # ------------------------------------------------------------------ #
    def has_table(self, table: str) -> bool:
        table = self.connection.get_table_prefix() + table
        return len(self.connection.select_from_write_connection(self.grammar.compile_table_exists(), [table])) > 0

    def has_column(self, table: str, column: str) -> bool:
        return column.lower() in [name.lower() for name in self.get_column_listing(table)]

    def has_columns(self, table: str, columns: Sequence[str]) -> bool:
        listing = [name.lower() for name in self.get_column_listing(table)]
        return all(column.lower() in listing for column in columns)

    def when_table_has_column(self, table: str, column: str, callback: BlueprintCallback) -> None:
        if self.has_column(table, column):
            self.table(table, callback)

    def when_table_doesnt_have_column(self, table: str, column: str, callback: BlueprintCallback) -> None:
        if not self.has_column(table, column):
            self.table(table, callback)

    def get_column_type(self, table: str, column: str) -> str:
        raise CompilationError("This database driver does not support get column type.")

    def get_column_listing(self, table: str) -> List[str]:
        table = self.connection.get_table_prefix() + table
        results = self.connection.select_from_write_connection(self.grammar.compile_column_listing(table))
        return [row["column_name"] for row in results]

    def get_all_tables(self) -> List[Any]:
        raise CompilationError("This database driver does not support get all tables.")

    def get_indexes(self, table: str) -> List[Dict[str, Any]]:
        table = self.connection.get_table_prefix() + table
        rows = self.connection.select_from_write_connection(self.grammar.compile_indexes(table))
        return [
            {
                "name": str(row["name"]).lower(),
                "columns": _split_columns(row["columns"]),
                "type": str(row["type"]).lower() if row.get("type") else None,
                "unique": bool(row["unique"]),
                "primary": bool(row["primary"]),
            }
            for row in rows
        ]

    def get_foreign_keys(self, table: str) -> List[Dict[str, Any]]:
        table = self.connection.get_table_prefix() + table
        rows = self.connection.select_from_write_connection(self.grammar.compile_foreign_keys(table))
        return [
            {
                "name": str(row["name"]).lower() if row.get("name") else None,
                "columns": _split_columns(row["columns"]),
                "foreign_schema": row.get("foreign_schema"),
                "foreign_table": row["foreign_table"],
                "foreign_columns": _split_columns(row["foreign_columns"]),
                "on_update": _referential_action(row["on_update"]),
                "on_delete": _referential_action(row["on_delete"]),
            }
            for row in rows
        ]

    # ------------------------------------------------------------------ #
    # Views
    # ------------------------------------------------------------------ #
    def create_view(self, name: str, callback: ViewCallback) -> bool:
        """
        Create ``name`` from the query set with ``view.as_(...)``.

        ``as_`` also takes a callable; it receives a fresh query builder and
        may return another one to use instead.
        """
        view = ViewDefinition()
        callback(view)
        query = view.get("as")
        if callable(query) and not hasattr(query, "to_raw_sql"):
            builder = self.connection.query()
            result = query(builder)
            view.as_(result if hasattr(result, "to_raw_sql") else builder)
        return self.connection.statement(self.grammar.compile_create_view(name, view))

    def drop_view(self, name: str) -> bool:
        self.logger.warning("DROP VIEW issued for %s.", name)
        return self.connection.statement(self.grammar.compile_drop_view(name))

    def drop_view_if_exists(self, name: str) -> bool:
        self.logger.warning("DROP VIEW issued for %s.", name)
        return self.connection.statement(self.grammar.compile_drop_view_if_exists(name))

    def get_all_views(self) -> List[Any]:
        return self.connection.select(self.grammar.compile_get_all_views())

    def drop_all_views(self) -> None:
        raise CompilationError("This database driver does not support dropping all views.")

    # ------------------------------------------------------------------ #
    # Tables
    # ------------------------------------------------------------------ #
    def table(self, table: str, callback: BlueprintCallback) -> None:
        self.build(self.create_blueprint(table, callback))

    def create(self, table: str, callback: BlueprintCallback) -> None:
        def define(blueprint: Blueprint) -> None:
            blueprint.create()
            callback(blueprint)

        self.build(self.create_blueprint(table, define))

    def drop(self, table: str) -> None:
        self.logger.warning("DROP TABLE issued for %s; confirm destructive migration before applying.", table)
        self.build(self.create_blueprint(table, lambda blueprint: blueprint.drop()))

    def drop_if_exists(self, table: str) -> None:
        self.logger.warning("DROP TABLE issued for %s; confirm destructive migration before applying.", table)
        self.build(self.create_blueprint(table, lambda blueprint: blueprint.drop_if_exists()))

    def drop_columns(self, table: str, columns: Union[str, Sequence[str]]) -> None:
        self.table(table, lambda blueprint: blueprint.drop_column(columns))

    def drop_all_tables(self) -> None:
        raise CompilationError("This database driver does not support dropping all tables.")

    def rename(self, source: str, to: str) -> None:
        self.table(source, lambda blueprint: blueprint.rename(to))

    # ------------------------------------------------------------------ #
    # Foreign key constraints
    # ------------------------------------------------------------------ #
    def enable_foreign_key_constraints(self) -> bool:
        return self.connection.statement(self.grammar.compile_enable_foreign_key_constraints())

    def disable_foreign_key_constraints(self) -> bool:
        return self.connection.statement(self.grammar.compile_disable_foreign_key_constraints())

    @contextmanager
    def foreign_key_constraints_disabled(self) -> Generator["SchemaBuilder", None, None]:
        self.disable_foreign_key_constraints()
        try:
            yield self
        finally:
            self.enable_foreign_key_constraints()

    def without_foreign_key_constraints(self, callback: Callable[[], Any]) -> Any:
        with self.foreign_key_constraints_disabled():
            return callback()

    # ------------------------------------------------------------------ #
    # Blueprints
    # ------------------------------------------------------------------ #
    def build(self, blueprint: Blueprint) -> None:
        blueprint.build(self.connection)

    def create_blueprint(self, table: str, callback: Optional[BlueprintCallback] = None) -> Blueprint:
        prefix = self.connection.get_table_prefix() if self.connection.get_config("prefix_indexes") else ""
        options: Dict[str, Any] = {
            "default_string_length": self.connection.get_config("default_string_length", DEFAULT_STRING_LENGTH),
            "morph_key_type": self.connection.get_config("morph_key_type", "int"),
        }
        if self.resolver is not None:
            return self.resolver(table, self.grammar, callback, prefix, **options)
        return Blueprint(table, self.grammar, callback, prefix, **options)

    def blueprint_resolver(self, resolver: Optional[BlueprintResolver]) -> None:
        self.resolver = resolver

    def get_connection(self) -> "ConnectionSession":
        return self.connection

    def set_connection(self, connection: "ConnectionSession") -> "SchemaBuilder":
        self.connection = connection
        self.grammar = connection.get_schema_grammar()
        return self


def _split_columns(columns: Any) -> List[str]:
    return [column for column in str(columns or "").split(",") if column]


def _referential_action(action: Any) -> Optional[str]:
    if action is None:
        return None
    return str(action).lower().replace("_", " ")
