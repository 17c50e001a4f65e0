"""
Column and command definitions collected by a :class:`Blueprint`.

Both kinds keep their options in an ``attributes`` mapping. A key that was
never set is absent, which lets grammars tell "not configured" apart from an
explicit ``None`` (``unset_stored_as`` drops a generated expression).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Union

from ..expression import Expression
from ..utils import pluralize

if TYPE_CHECKING:
    from .blueprint import Blueprint

Stringable = Union[str, Expression]

INDEX_TYPES = ("primary", "unique", "index", "fulltext", "spatial_index")


class ColumnDefinition:
    """
    Mutable handle returned by the blueprint column methods.

    Every modifier returns ``self`` so calls chain:
    ``table.string("email").nullable().unique()``.
    """

    def __init__(self, type: str, name: Stringable, **attributes: Any) -> None:
        self.type = type
        self.name = name
        self.attributes: Dict[str, Any] = {key: value for key, value in attributes.items() if value is not None}

    def __repr__(self) -> str:
        return f"ColumnDefinition(type={self.type!r}, name={self.name!r})"

    def get(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def has(self, key: str) -> bool:
        return key in self.attributes

    def set(self, key: str, value: Any) -> "ColumnDefinition":
        self.attributes[key] = value
        return self

    def reset_index(self, key: str) -> None:
        self.attributes.pop(key, None)

    # ------------------------------------------------------------------ #
    # Modifiers
    # ------------------------------------------------------------------ #
    def after(self, column: Stringable) -> "ColumnDefinition":
        return self.set("after", column)

    def always(self, value: bool = True) -> "ColumnDefinition":
        return self.set("always", value)

    def auto_increment(self, value: bool = True) -> "ColumnDefinition":
        return self.set("auto_increment", value)

    def change(self) -> "ColumnDefinition":
        return self.set("change", True)

    def charset(self, charset: Stringable) -> "ColumnDefinition":
        return self.set("charset", charset)

    def collation(self, collation: Stringable) -> "ColumnDefinition":
        return self.set("collation", collation)

    def comment(self, comment: str) -> "ColumnDefinition":
        return self.set("comment", comment)

    def default(self, value: Any) -> "ColumnDefinition":
        return self.set("default", value)

    def first(self) -> "ColumnDefinition":
        return self.set("first", True)

    def from_(self, starting_value: int) -> "ColumnDefinition":
        return self.set("from", starting_value)

    def generated_as(self, expression: Union[Stringable, bool] = True) -> "ColumnDefinition":
        return self.set("generated_as", expression)

    def index(self, index_name: Union[Stringable, bool, None] = None) -> "ColumnDefinition":
        return self.set("index", True if index_name is None else index_name)

    def invisible(self, value: bool = True) -> "ColumnDefinition":
        return self.set("invisible", value)

    def is_geometry(self, value: bool = True) -> "ColumnDefinition":
        return self.set("is_geometry", value)

    def nullable(self, value: bool = True) -> "ColumnDefinition":
        return self.set("nullable", value)

    def on_update(self, value: Any) -> "ColumnDefinition":
        return self.set("on_update", value)

    def persisted(self, value: bool = True) -> "ColumnDefinition":
        return self.set("persisted", value)

    def primary(self, value: Union[Stringable, bool] = True) -> "ColumnDefinition":
        return self.set("primary", value)

    def projection(self, number: int) -> "ColumnDefinition":
        return self.set("projection", number)

    def fulltext(self, index_name: Union[Stringable, bool, None] = None) -> "ColumnDefinition":
        return self.set("fulltext", True if index_name is None else index_name)

    def rename_to(self, column: Stringable) -> "ColumnDefinition":
        return self.set("rename_to", column)

    def spatial_index(self, index_name: Union[Stringable, bool, None] = None) -> "ColumnDefinition":
        return self.set("spatial_index", True if index_name is None else index_name)

    def srid(self, srid: int) -> "ColumnDefinition":
        return self.set("srid", srid)

    def starting_value(self, starting_value: int) -> "ColumnDefinition":
        return self.set("starting_value", starting_value)

    def stored_as(self, expression: Stringable) -> "ColumnDefinition":
        return self.set("stored_as", expression)

    def unique(self, index_name: Union[Stringable, bool, None] = None) -> "ColumnDefinition":
        return self.set("unique", True if index_name is None else index_name)

    def unset_stored_as(self) -> "ColumnDefinition":
        return self.set("stored_as", None)

    def unset_virtual_as(self) -> "ColumnDefinition":
        return self.set("virtual_as", None)

    def unsigned(self, value: bool = True) -> "ColumnDefinition":
        return self.set("unsigned", value)

    def use_current(self, value: bool = True) -> "ColumnDefinition":
        return self.set("use_current", value)

    def use_current_on_update(self, value: bool = True) -> "ColumnDefinition":
        return self.set("use_current_on_update", value)

    def virtual_as(self, expression: Stringable) -> "ColumnDefinition":
        return self.set("virtual_as", expression)


class ForeignIdColumnDefinition(ColumnDefinition):
    """
    Column that can declare its own foreign key through the blueprint.
    """

    def __init__(self, blueprint: "Blueprint", type: str, name: Stringable, **attributes: Any) -> None:
        super().__init__(type, name, **attributes)
        self.blueprint = blueprint

    def constrained(
        self,
        table: Optional[Stringable] = None,
        column: Stringable = "id",
        index_name: Optional[Stringable] = None,
    ) -> "ForeignKeyDefinition":
        """
        Reference ``column`` on ``table``; the table defaults to the plural of
        the column name without its ``_<column>`` suffix (``user_id`` -> ``users``).
        """

        if table is None:
            grammar = self.blueprint.get_grammar()
            name = grammar.get_value(self.name)
            head, sep, _ = name.rpartition(f"_{grammar.get_value(column)}")
            table = pluralize(head if sep else name)
        return self.references(column, index_name).on(table)

    def references(
        self, columns: Union[Stringable, Sequence[Stringable]], index_name: Optional[Stringable] = None
    ) -> "ForeignKeyDefinition":
        return self.blueprint.foreign(self.name, index_name).references(columns)


class CommandDefinition:
    """A single pending schema command and its options."""

    def __init__(self, name: str, **attributes: Any) -> None:
        self.name = name
        self.attributes: Dict[str, Any] = dict(attributes)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

    def get(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def has(self, key: str) -> bool:
        return key in self.attributes

    def set(self, key: str, value: Any) -> "CommandDefinition":
        self.attributes[key] = value
        return self


class IndexDefinition(CommandDefinition):
    """Index commands: ``index``/``columns`` plus the options below."""

    @property
    def index_name(self) -> Stringable:
        return self.attributes["index"]

    @property
    def columns(self) -> List[Stringable]:
        return list(self.attributes.get("columns") or [])

    def algorithm(self, algorithm: Stringable) -> "IndexDefinition":
        return self.set("algorithm", algorithm)

    def language(self, language: Stringable) -> "IndexDefinition":
        return self.set("language", language)

    def deferrable(self, value: bool = True) -> "IndexDefinition":
        return self.set("deferrable", value)

    def initially_immediate(self, value: bool = True) -> "IndexDefinition":
        return self.set("initially_immediate", value)


class ForeignKeyDefinition(IndexDefinition):
    def on(self, table: Stringable) -> "ForeignKeyDefinition":
        return self.set("on", table)

    def on_delete(self, action: Stringable) -> "ForeignKeyDefinition":
        return self.set("on_delete", action)

    def on_update(self, action: Stringable) -> "ForeignKeyDefinition":
        return self.set("on_update", action)

    def references(self, columns: Union[Stringable, Sequence[Stringable]]) -> "ForeignKeyDefinition":
        if isinstance(columns, (str, Expression)):
            columns = [columns]
        return self.set("references", list(columns))

    def not_valid(self, value: bool = True) -> "ForeignKeyDefinition":
        return self.set("not_valid", value)

    def cascade_on_update(self) -> "ForeignKeyDefinition":
        return self.on_update("cascade")

    def restrict_on_update(self) -> "ForeignKeyDefinition":
        return self.on_update("restrict")

    def no_action_on_update(self) -> "ForeignKeyDefinition":
        return self.on_update("no action")

    def cascade_on_delete(self) -> "ForeignKeyDefinition":
        return self.on_delete("cascade")

    def restrict_on_delete(self) -> "ForeignKeyDefinition":
        return self.on_delete("restrict")

    def null_on_delete(self) -> "ForeignKeyDefinition":
        return self.on_delete("set null")

    def no_action_on_delete(self) -> "ForeignKeyDefinition":
        return self.on_delete("no action")


class ViewDefinition(CommandDefinition):
    """
    Options for ``create view``.

    ``as`` holds the defining query: a query builder, or a callable the
    schema builder resolves against a fresh query before compiling.
    """

    def __init__(self, **attributes: Any) -> None:
        super().__init__("create_view", **attributes)

    def as_(self, query: Any) -> "ViewDefinition":
        return self.set("as", query)

    def algorithm(self, algorithm: Stringable) -> "ViewDefinition":
        return self.set("algorithm", algorithm)

    def definer(self, definer: Stringable) -> "ViewDefinition":
        return self.set("definer", definer)

    def temporary(self, value: bool = True) -> "ViewDefinition":
        return self.set("temporary", value)

    def column_names(self, columns: Sequence[Stringable]) -> "ViewDefinition":
        return self.set("column_names", list(columns))

    def with_check(self, check: Stringable) -> "ViewDefinition":
        return self.set("check", check)

    def with_check_cascade(self) -> "ViewDefinition":
        return self.with_check("cascaded")

    def with_check_local(self) -> "ViewDefinition":
        return self.with_check("local")

    def with_recursive(self, value: bool = True) -> "ViewDefinition":
        return self.set("recursive", value)

    def with_view_attribute(self, attribute: Stringable) -> "ViewDefinition":
        return self.set("view_attribute", attribute)

    # postgres
    def with_security_barrier(self) -> "ViewDefinition":
        return self.with_view_attribute("security_barrier")

    def with_security_invoker(self) -> "ViewDefinition":
        return self.with_view_attribute("security_invoker")

    # sql server
    def with_encryption(self) -> "ViewDefinition":
        return self.with_view_attribute("encryption")

    def with_schemabinding(self) -> "ViewDefinition":
        return self.with_view_attribute("schemabinding")

    def with_view_metadata(self) -> "ViewDefinition":
        return self.with_view_attribute("view_metadata")
