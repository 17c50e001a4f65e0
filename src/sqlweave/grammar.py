"""
Identifier wrapping shared by the query and schema grammars.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Sequence, Union

from .dialects.base import Dialect, GenericDialect
from .errors import CompilationError
from .expression import Expression

Stringable = Union[str, Expression]

_ALIAS_RE = re.compile(r"\s+as\s+", re.IGNORECASE)
_JSON_ARRAY_KEYS_RE = re.compile(r"(\[[^\]]+\])+$")
_JSON_QUOTE_RE = re.compile(r"(\\+)?'")


class BaseGrammar:
    """
    Quotes tables and columns through the injected dialect strategy.

    Subclasses never quote by hand: every identifier goes through
    :meth:`wrap_value`, which asks the dialect for its quoting rules.
    """

    dialect_class: type = GenericDialect

    def __init__(self, dialect: Dialect | None = None, *, table_prefix: str = "") -> None:
        self.dialect: Dialect = dialect if dialect is not None else self.dialect_class()
        self.table_prefix = table_prefix

    # ------------------------------------------------------------------ #
    # Wrapping
    # ------------------------------------------------------------------ #
    def wrap_array(self, values: Iterable[Stringable]) -> list[str]:
        return [self.wrap(value) for value in values]

    def wrap_table(self, table: Stringable) -> str:
        if self.is_expression(table):
            return self.get_value(table)
        table = str(table)
        if " as " in table.lower():
            segments = _ALIAS_RE.split(table)
            alias = segments[1] if len(segments) > 1 else ""
            return f"{self.wrap_table(segments[0])} as {self.wrap_value(self.table_prefix + alias)}"
        *schema, name = table.split(".")
        wrapped = [self.wrap_value(segment) for segment in schema]
        wrapped.append(self.wrap_value(f"{self.table_prefix}{name}"))
        return ".".join(wrapped)

    def wrap(self, value: Stringable) -> str:
        if self.is_expression(value):
            return self.get_value(value)
        value = str(value)
        if " as " in value.lower():
            return self.wrap_aliased_value(value)
        if self.is_json_selector(value):
            return self.wrap_json_selector(value)
        return self.wrap_segments(value.split("."))

    def wrap_aliased_value(self, value: str) -> str:
        segments = _ALIAS_RE.split(value)
        alias = segments[1] if len(segments) > 1 else ""
        return f"{self.wrap(segments[0])} as {self.wrap_value(alias)}"

    def wrap_segments(self, segments: Sequence[str]) -> str:
        wrapped = []
        for index, segment in enumerate(segments):
            if index == 0 and len(segments) > 1:
                wrapped.append(self.wrap_table(segment))
            else:
                wrapped.append(self.wrap_value(segment))
        return ".".join(wrapped)

    def wrap_value(self, value: str) -> str:
        return self.dialect.quote_identifier(value)

    # ------------------------------------------------------------------ #
    # JSON selectors (``column->path->to->key``)
    # ------------------------------------------------------------------ #
    @staticmethod
    def is_json_selector(value: Stringable) -> bool:
        return "->" in str(value)

    def wrap_json_selector(self, value: Stringable) -> str:
        raise CompilationError("This database engine does not support JSON operations.")

    def wrap_json_field_and_path(self, column: Stringable) -> tuple[str, str]:
        """
        Split ``column->path`` into the wrapped field and a ``, '$."path"'`` suffix.
        """
        parts = self.get_value(column).split("->", 1)
        field = self.wrap_segments(parts[0].split("."))
        path = f", {self.wrap_json_path(parts[1])}" if len(parts) > 1 else ""
        return field, path

    def wrap_json_path(self, value: str, delimiter: str = "->") -> str:
        value = _JSON_QUOTE_RE.sub("''", value)
        json_path = ".".join(self.wrap_json_path_segment(segment) for segment in value.split(delimiter))
        separator = "" if json_path.startswith("[") else "."
        return f"'${separator}{json_path}'"

    @staticmethod
    def wrap_json_path_segment(segment: str) -> str:
        match = _JSON_ARRAY_KEYS_RE.search(segment)
        if match is not None:
            key = segment[: match.start()]
            return f'"{key}"{match.group(0)}' if key else match.group(0)
        return f'"{segment}"'

    # ------------------------------------------------------------------ #
    # Lists and parameters
    # ------------------------------------------------------------------ #
    def columnize(self, columns: Iterable[Stringable]) -> str:
        return ", ".join(self.wrap(column) for column in columns)

    def parameterize(self, values: Iterable[Any]) -> str:
        return ", ".join(self.parameter(value) for value in values)

    def parameter(self, value: Any) -> str:
        return self.get_value(value) if self.is_expression(value) else "?"

    def quote_string(self, value: Union[str, Sequence[str]]) -> str:
        if isinstance(value, (list, tuple)):
            return ", ".join(self.quote_string(item) for item in value)
        return self.dialect.quote_string(str(value))

    @staticmethod
    def is_expression(value: Any) -> bool:
        return isinstance(value, Expression)

    def get_value(self, expression: Any) -> str:
        if isinstance(expression, Expression):
            return str(expression.get_value(self))
        return str(expression)

    def get_date_format(self) -> str:
        return "%Y-%m-%d %H:%M:%S"

    def get_table_prefix(self) -> str:
        return self.table_prefix

    def set_table_prefix(self, prefix: str) -> "BaseGrammar":
        self.table_prefix = prefix
        return self
