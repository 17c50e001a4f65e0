"""
Blueprint: the ordered list of pending schema commands for one table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Sequence, Union

from ..errors import CompilationError
from ..expression import Expression
from ..utils import get_logger
from .definitions import (
    INDEX_TYPES,
    ColumnDefinition,
    CommandDefinition,
    ForeignIdColumnDefinition,
    ForeignKeyDefinition,
    IndexDefinition,
    Stringable,
)

if TYPE_CHECKING:
    from ..connections.session import ConnectionSession
    from .grammars.base import SchemaGrammar

BlueprintCallback = Callable[["Blueprint"], Any]

DEFAULT_STRING_LENGTH = 255
MORPH_KEY_TYPES = ("int", "uuid", "ulid")

logger = get_logger("schema.blueprint")


@dataclass
class BlueprintRegistry:
    table: str
    prefix: str = ""
    temporary: bool = False
    charset: Optional[str] = None
    collation: Optional[str] = None
    engine: Optional[str] = None
    after: Optional[Stringable] = None
    columns: List[ColumnDefinition] = field(default_factory=list)
    commands: List[CommandDefinition] = field(default_factory=list)


class Blueprint:
    """
    Collects column definitions and commands, then compiles them through a
    schema grammar.

    ``default_string_length`` and ``morph_key_type`` come from the connection
    configuration; nothing here is process-wide state.
    """

    def __init__(
        self,
        table: str,
        grammar: "SchemaGrammar",
        callback: Optional[BlueprintCallback] = None,
        prefix: str = "",
        *,
        default_string_length: Optional[int] = DEFAULT_STRING_LENGTH,
        morph_key_type: str = "int",
    ) -> None:
        if morph_key_type not in MORPH_KEY_TYPES:
            raise ValueError("Morph key type must be 'int', 'uuid', or 'ulid'.")
        self.registry = BlueprintRegistry(table=table, prefix=prefix or "")
        self.grammar = grammar
        self.default_string_length = default_string_length
        self.morph_key_type = morph_key_type
        self._implied = False
        if callback is not None:
            callback(self)

    # ------------------------------------------------------------------ #
    # Compilation
    # ------------------------------------------------------------------ #
    def build(self, connection: "ConnectionSession") -> None:
        statements = self.to_sql(connection)
        logger.debug("Applying %d schema statement(s) to %s", len(statements), self.registry.table)
        for statement in statements:
            connection.statement(statement)

    def to_sql(self, connection: "ConnectionSession") -> List[str]:
        if not self._implied:
            self.add_implied_commands()
            self._implied = True
        self.ensure_commands_are_valid()

        statements: List[str] = []
        for command in self.registry.commands:
            method = getattr(self.grammar, f"compile_{command.name}", None)
            if method is None:
                raise CompilationError(f"This database driver does not support the {command.name} command.")
            compiled = method(self, command, connection)
            if isinstance(compiled, (list, tuple)):
                statements.extend(compiled)
            else:
                statements.append(compiled)
        return [statement for statement in statements if statement]

    def ensure_commands_are_valid(self) -> None:
        if self.grammar.dialect.name == "sqlite" and self.commands_named(["drop_foreign"]):
            raise CompilationError(
                "SQLite doesn't support dropping foreign keys (you would need to re-create the table)."
            )

    def commands_named(self, names: Sequence[str]) -> List[CommandDefinition]:
        return [command for command in self.registry.commands if command.name in names]

    def add_implied_commands(self) -> None:
        if self.get_added_columns() and not self.creating():
            self.registry.commands.insert(0, CommandDefinition("add"))
        if self.get_changed_columns() and not self.creating():
            self.registry.commands.insert(0, CommandDefinition("change"))
        self.add_fluent_indexes()
        self.add_fluent_commands()

    def add_fluent_indexes(self) -> None:
        for column in self.registry.columns:
            for index_type in INDEX_TYPES:
                if not column.has(index_type):
                    continue
                value = column.get(index_type)
                if value is True:
                    self._add_index_by_type(index_type, column.name)
                elif value is False:
                    if not column.get("change"):
                        continue
                    self._drop_index_by_type(index_type, column.name)
                elif value:
                    self._add_index_by_type(index_type, column.name, value)
                else:
                    continue
                column.reset_index(index_type)
                break

    def _add_index_by_type(self, index_type: str, column: Stringable, name: Optional[Stringable] = None) -> None:
        getattr(self, index_type)(column, name)

    def _drop_index_by_type(self, index_type: str, column: Stringable) -> None:
        getattr(self, f"drop_{index_type}")([column])

    def add_fluent_commands(self) -> None:
        for column in self.registry.columns:
            for name in self.grammar.get_commands():
                self.add_command(CommandDefinition(name, column=column))

    def creating(self) -> bool:
        return any(command.name == "create" for command in self.registry.commands)

    # ------------------------------------------------------------------ #
    # Table commands
    # ------------------------------------------------------------------ #
    def create(self) -> CommandDefinition:
        return self.add_command(CommandDefinition("create"))

    def temporary(self) -> None:
        self.registry.temporary = True

    def charset(self, charset: str) -> None:
        self.registry.charset = charset

    def collation(self, collation: str) -> None:
        self.registry.collation = collation

    def engine(self, engine: str) -> None:
        self.registry.engine = engine

    def comment(self, comment: str) -> CommandDefinition:
        return self.add_command(CommandDefinition("table_comment", comment=comment))

    def drop(self) -> CommandDefinition:
        return self.add_command(CommandDefinition("drop"))

    def drop_if_exists(self) -> CommandDefinition:
        return self.add_command(CommandDefinition("drop_if_exists"))

    def rename(self, to: Stringable) -> CommandDefinition:
        return self.add_command(CommandDefinition("rename", to=to))

    def drop_column(self, columns: Union[Stringable, Sequence[Stringable]], *others: Stringable) -> CommandDefinition:
        names = [columns] if isinstance(columns, (str, Expression)) else list(columns)
        names.extend(others)
        return self.add_command(CommandDefinition("drop_column", columns=names))

    def rename_column(self, from_: Stringable, to: Stringable) -> CommandDefinition:
        return self.add_command(CommandDefinition("rename_column", from_=from_, to=to))

    def drop_timestamps(self) -> CommandDefinition:
        return self.drop_column("created_at", "updated_at")

    def drop_timestamps_tz(self) -> CommandDefinition:
        return self.drop_timestamps()

    def drop_soft_deletes(self, column: str = "deleted_at") -> CommandDefinition:
        return self.drop_column(column)

    def drop_soft_deletes_tz(self, column: str = "deleted_at") -> CommandDefinition:
        return self.drop_soft_deletes(column)

    def drop_remember_token(self) -> CommandDefinition:
        return self.drop_column("remember_token")

    def drop_morphs(self, name: Stringable, index_name: Optional[Stringable] = None) -> None:
        name = self.grammar.get_value(name)
        self.drop_index(index_name or self.create_index_name("index", [f"{name}_type", f"{name}_id"]))
        self.drop_column(f"{name}_type", f"{name}_id")

    # ------------------------------------------------------------------ #
    # Indexes and foreign keys
    # ------------------------------------------------------------------ #
    def primary(
        self,
        columns: Union[Stringable, Sequence[Stringable]],
        name: Optional[Stringable] = None,
        algorithm: Optional[Stringable] = None,
    ) -> IndexDefinition:
        return self.add_command(self.index_command("primary", columns, name, algorithm))

    def unique(
        self,
        columns: Union[Stringable, Sequence[Stringable]],
        name: Optional[Stringable] = None,
        algorithm: Optional[Stringable] = None,
    ) -> IndexDefinition:
        return self.add_command(self.index_command("unique", columns, name, algorithm))

    def index(
        self,
        columns: Union[Stringable, Sequence[Stringable]],
        name: Optional[Stringable] = None,
        algorithm: Optional[Stringable] = None,
    ) -> IndexDefinition:
        return self.add_command(self.index_command("index", columns, name, algorithm))

    def fulltext(
        self,
        columns: Union[Stringable, Sequence[Stringable]],
        name: Optional[Stringable] = None,
        algorithm: Optional[Stringable] = None,
    ) -> IndexDefinition:
        return self.add_command(self.index_command("fulltext", columns, name, algorithm))

    def spatial_index(
        self, columns: Union[Stringable, Sequence[Stringable]], name: Optional[Stringable] = None
    ) -> IndexDefinition:
        return self.add_command(self.index_command("spatial_index", columns, name))

    def raw_index(self, expression: str, name: Stringable) -> IndexDefinition:
        return self.index([Expression(expression)], name)

    def foreign(
        self, columns: Union[Stringable, Sequence[Stringable]], name: Optional[Stringable] = None
    ) -> ForeignKeyDefinition:
        return self.add_command(self.foreign_key_command("foreign", columns, name))

    def drop_primary(self, index: Union[Stringable, Sequence[Stringable], None] = None) -> IndexDefinition:
        return self.add_command(self.drop_index_command("drop_primary", "primary", index))

    def drop_unique(self, index: Union[Stringable, Sequence[Stringable]]) -> IndexDefinition:
        return self.add_command(self.drop_index_command("drop_unique", "unique", index))

    def drop_index(self, index: Union[Stringable, Sequence[Stringable]]) -> IndexDefinition:
        return self.add_command(self.drop_index_command("drop_index", "index", index))

    def drop_fulltext(self, index: Union[Stringable, Sequence[Stringable]]) -> IndexDefinition:
        return self.add_command(self.drop_index_command("drop_fulltext", "fulltext", index))

    def drop_spatial_index(self, index: Union[Stringable, Sequence[Stringable]]) -> IndexDefinition:
        return self.add_command(self.drop_index_command("drop_spatial_index", "spatial_index", index))

    def drop_foreign(self, index: Union[Stringable, Sequence[Stringable]]) -> ForeignKeyDefinition:
        columns: List[Stringable] = []
        if isinstance(index, (list, tuple)):
            columns = list(index)
            index = self.create_index_name("foreign", columns)
        return self.add_command(self.foreign_key_command("drop_foreign", columns, index))

    def drop_constrained_foreign_id(self, column: Stringable) -> None:
        self.drop_foreign([column])
        self.drop_column(column)

    def rename_index(self, from_: Stringable, to: Stringable) -> CommandDefinition:
        return self.add_command(CommandDefinition("rename_index", from_=from_, to=to))

    def index_command(
        self,
        type: str,
        columns: Union[Stringable, Sequence[Stringable]],
        index: Optional[Stringable] = None,
        algorithm: Optional[Stringable] = None,
    ) -> IndexDefinition:
        columns = _as_list(columns)
        index = index or self.create_index_name(type, columns)
        return IndexDefinition(type, index=index, columns=columns, algorithm=algorithm)

    def drop_index_command(
        self, command: str, type: str, index: Union[Stringable, Sequence[Stringable], None]
    ) -> IndexDefinition:
        columns: List[Stringable] = []
        if isinstance(index, (list, tuple)):
            columns = list(index)
            index = None
        if index is None:
            index = self.create_index_name(type, columns)
        return self.index_command(command, columns, index)

    def foreign_key_command(
        self, type: str, columns: Union[Stringable, Sequence[Stringable]], index: Optional[Stringable] = None
    ) -> ForeignKeyDefinition:
        columns = _as_list(columns)
        index = index or self.create_index_name(type, columns)
        return ForeignKeyDefinition(type, index=index, columns=columns, on="", references=[])

    def create_index_name(self, type: str, columns: Sequence[Stringable]) -> str:
        joined = "_".join(self.grammar.get_value(column) for column in columns)
        index = f"{self.registry.prefix}{self.registry.table}_{joined}_{type}".lower()
        return index.replace("-", "_").replace(".", "_")

    # ------------------------------------------------------------------ #
    # Columns
    # ------------------------------------------------------------------ #
    def id(self, column: Stringable = "id") -> ColumnDefinition:
        return self.big_increments(column)

    def increments(self, column: Stringable) -> ColumnDefinition:
        return self.unsigned_integer(column, True)

    def integer_increments(self, column: Stringable) -> ColumnDefinition:
        return self.unsigned_integer(column, True)

    def tiny_increments(self, column: Stringable) -> ColumnDefinition:
        return self.unsigned_tiny_integer(column, True)

    def small_increments(self, column: Stringable) -> ColumnDefinition:
        return self.unsigned_small_integer(column, True)

    def medium_increments(self, column: Stringable) -> ColumnDefinition:
        return self.unsigned_medium_integer(column, True)

    def big_increments(self, column: Stringable) -> ColumnDefinition:
        return self.unsigned_big_integer(column, True)

    def char(self, column: Stringable, length: Optional[int] = None) -> ColumnDefinition:
        return self.add_column("char", column, length=length if length is not None else self.default_string_length)

    def string(self, column: Stringable, length: Optional[int] = None) -> ColumnDefinition:
        return self.add_column("string", column, length=length if length is not None else self.default_string_length)

    def tiny_text(self, column: Stringable) -> ColumnDefinition:
        return self.add_column("tiny_text", column)

    def text(self, column: Stringable) -> ColumnDefinition:
        return self.add_column("text", column)

    def medium_text(self, column: Stringable) -> ColumnDefinition:
        return self.add_column("medium_text", column)

    def long_text(self, column: Stringable) -> ColumnDefinition:
        return self.add_column("long_text", column)

    def integer(self, column: Stringable, auto_increment: bool = False, unsigned: bool = False) -> ColumnDefinition:
        return self.add_column("integer", column, auto_increment=auto_increment, unsigned=unsigned)

    def tiny_integer(
        self, column: Stringable, auto_increment: bool = False, unsigned: bool = False
    ) -> ColumnDefinition:
        return self.add_column("tiny_integer", column, auto_increment=auto_increment, unsigned=unsigned)

    def small_integer(
        self, column: Stringable, auto_increment: bool = False, unsigned: bool = False
    ) -> ColumnDefinition:
        return self.add_column("small_integer", column, auto_increment=auto_increment, unsigned=unsigned)

    def medium_integer(
        self, column: Stringable, auto_increment: bool = False, unsigned: bool = False
    ) -> ColumnDefinition:
        return self.add_column("medium_integer", column, auto_increment=auto_increment, unsigned=unsigned)

    def big_integer(
        self, column: Stringable, auto_increment: bool = False, unsigned: bool = False
    ) -> ColumnDefinition:
        return self.add_column("big_integer", column, auto_increment=auto_increment, unsigned=unsigned)

    def unsigned_integer(self, column: Stringable, auto_increment: bool = False) -> ColumnDefinition:
        return self.integer(column, auto_increment, True)

    def unsigned_tiny_integer(self, column: Stringable, auto_increment: bool = False) -> ColumnDefinition:
        return self.tiny_integer(column, auto_increment, True)

    def unsigned_small_integer(self, column: Stringable, auto_increment: bool = False) -> ColumnDefinition:
        return self.small_integer(column, auto_increment, True)

    def unsigned_medium_integer(self, column: Stringable, auto_increment: bool = False) -> ColumnDefinition:
        return self.medium_integer(column, auto_increment, True)

    def unsigned_big_integer(self, column: Stringable, auto_increment: bool = False) -> ColumnDefinition:
        return self.big_integer(column, auto_increment, True)

    def foreign_id(self, column: Stringable) -> ForeignIdColumnDefinition:
        definition = ForeignIdColumnDefinition(self, "big_integer", column, auto_increment=False, unsigned=True)
        return self.add_column_definition(definition)

    def float(
        self, column: Stringable, total: int = 8, places: int = 2, unsigned: Optional[bool] = None
    ) -> ColumnDefinition:
        return self.add_column("float", column, total=total, places=places, unsigned=unsigned)

    def double(
        self,
        column: Stringable,
        total: Optional[int] = None,
        places: Optional[int] = None,
        unsigned: Optional[bool] = None,
    ) -> ColumnDefinition:
        return self.add_column("double", column, total=total, places=places, unsigned=unsigned)

    def decimal(
        self, column: Stringable, total: int = 8, places: int = 2, unsigned: Optional[bool] = None
    ) -> ColumnDefinition:
        return self.add_column("decimal", column, total=total, places=places, unsigned=unsigned)

    def unsigned_float(self, column: Stringable, total: int = 8, places: int = 2) -> ColumnDefinition:
        return self.float(column, total, places, True)

    def unsigned_double(
        self, column: Stringable, total: Optional[int] = None, places: Optional[int] = None
    ) -> ColumnDefinition:
        return self.double(column, total, places, True)

    def unsigned_decimal(self, column: Stringable, total: int = 8, places: int = 2) -> ColumnDefinition:
        return self.decimal(column, total, places, True)

    def boolean(self, column: Stringable) -> ColumnDefinition:
        return self.add_column("boolean", column)

    def enum(self, column: Stringable, allowed: Sequence[str]) -> ColumnDefinition:
        return self.add_column("enum", column, allowed=list(allowed))

    def set(self, column: Stringable, allowed: Sequence[str]) -> ColumnDefinition:
        return self.add_column("set", column, allowed=list(allowed))

    def json(self, column: Stringable) -> ColumnDefinition:
        return self.add_column("json", column)

    def jsonb(self, column: Stringable) -> ColumnDefinition:
        return self.add_column("jsonb", column)

    def date(self, column: Stringable) -> ColumnDefinition:
        return self.add_column("date", column)

    def date_time(self, column: Stringable, precision: int = 0) -> ColumnDefinition:
        return self.add_column("date_time", column, precision=precision)

    def date_time_tz(self, column: Stringable, precision: int = 0) -> ColumnDefinition:
        return self.add_column("date_time_tz", column, precision=precision)

    def time(self, column: Stringable, precision: int = 0) -> ColumnDefinition:
        return self.add_column("time", column, precision=precision)

    def time_tz(self, column: Stringable, precision: int = 0) -> ColumnDefinition:
        return self.add_column("time_tz", column, precision=precision)

    def timestamp(self, column: Stringable, precision: int = 0) -> ColumnDefinition:
        return self.add_column("timestamp", column, precision=precision)

    def timestamp_tz(self, column: Stringable, precision: int = 0) -> ColumnDefinition:
        return self.add_column("timestamp_tz", column, precision=precision)

    def timestamps(self, precision: int = 0) -> None:
        self.timestamp("created_at", precision).nullable()
        self.timestamp("updated_at", precision).nullable()

    def timestamps_tz(self, precision: int = 0) -> None:
        self.timestamp_tz("created_at", precision).nullable()
        self.timestamp_tz("updated_at", precision).nullable()

    def datetimes(self, precision: int = 0) -> None:
        self.date_time("created_at", precision).nullable()
        self.date_time("updated_at", precision).nullable()

    def soft_deletes(self, column: Stringable = "deleted_at", precision: int = 0) -> ColumnDefinition:
        return self.timestamp(column, precision).nullable()

    def soft_deletes_tz(self, column: Stringable = "deleted_at", precision: int = 0) -> ColumnDefinition:
        return self.timestamp_tz(column, precision).nullable()

    def soft_deletes_datetime(self, column: Stringable = "deleted_at", precision: int = 0) -> ColumnDefinition:
        return self.date_time(column, precision).nullable()

    def year(self, column: Stringable) -> ColumnDefinition:
        return self.add_column("year", column)

    def binary(self, column: Stringable) -> ColumnDefinition:
        return self.add_column("binary", column)

    def uuid(self, column: Stringable = "uuid") -> ColumnDefinition:
        return self.add_column("uuid", column)

    def foreign_uuid(self, column: Stringable) -> ForeignIdColumnDefinition:
        return self.add_column_definition(ForeignIdColumnDefinition(self, "uuid", column))

    def ulid(self, column: Stringable = "ulid", length: int = 26) -> ColumnDefinition:
        return self.char(column, length)

    def foreign_ulid(self, column: Stringable, length: int = 26) -> ForeignIdColumnDefinition:
        return self.add_column_definition(ForeignIdColumnDefinition(self, "char", column, length=length))

    def ip_address(self, column: Stringable = "ip_address") -> ColumnDefinition:
        return self.add_column("ip_address", column)

    def mac_address(self, column: Stringable = "mac_address") -> ColumnDefinition:
        return self.add_column("mac_address", column)

    def geometry(self, column: Stringable) -> ColumnDefinition:
        return self.add_column("geometry", column)

    def point(self, column: Stringable, srid: Optional[int] = None) -> ColumnDefinition:
        return self.add_column("point", column, srid=srid)

    def line_string(self, column: Stringable) -> ColumnDefinition:
        return self.add_column("line_string", column)

    def polygon(self, column: Stringable) -> ColumnDefinition:
        return self.add_column("polygon", column)

    def geometry_collection(self, column: Stringable) -> ColumnDefinition:
        return self.add_column("geometry_collection", column)

    def multi_point(self, column: Stringable) -> ColumnDefinition:
        return self.add_column("multi_point", column)

    def multi_line_string(self, column: Stringable) -> ColumnDefinition:
        return self.add_column("multi_line_string", column)

    def multi_polygon(self, column: Stringable) -> ColumnDefinition:
        return self.add_column("multi_polygon", column)

    def multi_polygon_z(self, column: Stringable) -> ColumnDefinition:
        return self.add_column("multi_polygon_z", column)

    def computed(self, column: Stringable, expression: Stringable) -> ColumnDefinition:
        return self.add_column("computed", column, expression=expression)

    def remember_token(self) -> ColumnDefinition:
        return self.string("remember_token", 100).nullable()

    # morphs: a "<name>_type" string plus a "<name>_id" key, indexed together
    def morphs(self, name: Stringable, index_name: Optional[Stringable] = None) -> None:
        self._morphs(name, index_name, self.morph_key_type, nullable=False)

    def nullable_morphs(self, name: Stringable, index_name: Optional[Stringable] = None) -> None:
        self._morphs(name, index_name, self.morph_key_type, nullable=True)

    def numeric_morphs(self, name: Stringable, index_name: Optional[Stringable] = None) -> None:
        self._morphs(name, index_name, "int", nullable=False)

    def nullable_numeric_morphs(self, name: Stringable, index_name: Optional[Stringable] = None) -> None:
        self._morphs(name, index_name, "int", nullable=True)

    def uuid_morphs(self, name: Stringable, index_name: Optional[Stringable] = None) -> None:
        self._morphs(name, index_name, "uuid", nullable=False)

    def nullable_uuid_morphs(self, name: Stringable, index_name: Optional[Stringable] = None) -> None:
        self._morphs(name, index_name, "uuid", nullable=True)

    def ulid_morphs(self, name: Stringable, index_name: Optional[Stringable] = None) -> None:
        self._morphs(name, index_name, "ulid", nullable=False)

    def nullable_ulid_morphs(self, name: Stringable, index_name: Optional[Stringable] = None) -> None:
        self._morphs(name, index_name, "ulid", nullable=True)

    def _morphs(self, name: Stringable, index_name: Optional[Stringable], key_type: str, *, nullable: bool) -> None:
        name = self.grammar.get_value(name)
        type_column = self.string(f"{name}_type")
        if key_type == "uuid":
            id_column = self.uuid(f"{name}_id")
        elif key_type == "ulid":
            id_column = self.ulid(f"{name}_id")
        else:
            id_column = self.unsigned_big_integer(f"{name}_id")
        if nullable:
            type_column.nullable()
            id_column.nullable()
        self.index([f"{name}_type", f"{name}_id"], index_name)

    def add_column(self, type: str, name: Stringable, **parameters: Any) -> ColumnDefinition:
        return self.add_column_definition(ColumnDefinition(type, name, **parameters))

    def add_column_definition(self, definition: Any) -> Any:
        self.registry.columns.append(definition)
        if self.registry.after is not None:
            definition.after(self.registry.after)
            self.registry.after = definition.name
        return definition

    def after(self, column: Stringable, callback: BlueprintCallback) -> None:
        """Place every column added inside ``callback`` after ``column``, in order."""
        self.registry.after = column
        try:
            callback(self)
        finally:
            self.registry.after = None

    def remove_column(self, name: Stringable) -> "Blueprint":
        target = self.grammar.get_value(name)
        self.registry.columns = [
            definition for definition in self.registry.columns if self.grammar.get_value(definition.name) != target
        ]
        return self

    def add_command(self, command: Any) -> Any:
        self.registry.commands.append(command)
        return command

    # ------------------------------------------------------------------ #
    # Accessors
    # ------------------------------------------------------------------ #
    def get_grammar(self) -> "SchemaGrammar":
        return self.grammar

    def get_table(self) -> str:
        return self.registry.table

    def is_temporary(self) -> bool:
        return self.registry.temporary

    def get_columns(self) -> List[ColumnDefinition]:
        return list(self.registry.columns)

    def get_commands(self) -> List[CommandDefinition]:
        return list(self.registry.commands)

    def get_added_columns(self) -> List[ColumnDefinition]:
        return [column for column in self.registry.columns if not column.get("change")]

    def get_changed_columns(self) -> List[ColumnDefinition]:
        return [column for column in self.registry.columns if column.get("change")]


def _as_list(columns: Union[Stringable, Sequence[Stringable]]) -> List[Stringable]:
    if isinstance(columns, (str, Expression)):
        return [columns]
    return list(columns)
